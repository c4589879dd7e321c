"""
Holiday Model - Dates with an overtime multiplier
"""
from sqlalchemy import Column, String, DateTime, Date, Numeric
from sqlalchemy.sql import func
from atams.db import Base

from scan_attendance.db.types import BigIntPk, HRIS_SCHEMA


class Holiday(Base):
    """Holiday model for hris schema - Table: hris.holidays"""
    __tablename__ = "holidays"
    __table_args__ = {"schema": HRIS_SCHEMA}

    ho_id = Column(BigIntPk, primary_key=True, index=True, autoincrement=True)
    ho_date = Column(Date, nullable=False, unique=True, index=True)
    ho_name = Column(String(255), nullable=False)
    ho_type = Column(String(20), nullable=False, default="NATIONAL")  # NATIONAL, COMPANY, OPTIONAL
    ho_overtime_multiplier = Column(Numeric(3, 1, asdecimal=False), nullable=False, default=2.0)
    ho_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    ho_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
