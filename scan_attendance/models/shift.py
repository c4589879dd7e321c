"""
Shift Model - Expected working hours
"""
from sqlalchemy import Column, String, DateTime, Time, Integer, Boolean
from sqlalchemy.sql import func
from atams.db import Base

from scan_attendance.db.types import BigIntPk, HRIS_SCHEMA


class Shift(Base):
    """Shift model for hris schema - Table: hris.shifts"""
    __tablename__ = "shifts"
    __table_args__ = {"schema": HRIS_SCHEMA}

    sh_id = Column(BigIntPk, primary_key=True, index=True, autoincrement=True)
    sh_code = Column(String(50), nullable=False, unique=True)  # e.g. SHIFT-MORNING
    sh_name = Column(String(255), nullable=False)
    sh_start_time = Column(Time, nullable=False)
    sh_end_time = Column(Time, nullable=False)  # earlier than start for overnight shifts
    sh_late_after_min = Column(Integer, nullable=False, default=15)  # grace period
    sh_early_checkout_min = Column(Integer, nullable=False, default=0)
    sh_allow_checkout_before_end = Column(Boolean, nullable=False, default=False)
    sh_is_active = Column(Boolean, nullable=False, default=True)
    sh_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    sh_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
