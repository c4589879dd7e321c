"""
Late Penalty Tier Model - Late-minute bands used for payroll deductions
"""
from sqlalchemy import Column, String, DateTime, Integer, Numeric
from sqlalchemy.sql import func
from atams.db import Base

from scan_attendance.db.types import BigIntPk, HRIS_SCHEMA


class LatePenaltyTier(Base):
    """Late penalty tier model for hris schema - Table: hris.late_penalty_tiers"""
    __tablename__ = "late_penalty_tiers"
    __table_args__ = {"schema": HRIS_SCHEMA}

    lp_id = Column(BigIntPk, primary_key=True, index=True, autoincrement=True)
    lp_code = Column(String(50), nullable=False, unique=True)  # e.g. TIER-1
    lp_name = Column(String(255), nullable=False)
    lp_min_late_min = Column(Integer, nullable=False)
    lp_max_late_min = Column(Integer, nullable=True)  # NULL = unlimited
    lp_penalty_type = Column(String(20), nullable=False, default="WARNING")  # WARNING, DEDUCTION, HALF_DAY, ABSENT
    lp_deduction_pct = Column(Numeric(5, 2, asdecimal=False), nullable=False, default=0)
    lp_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    lp_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
