"""
User Schedule Model - Assigns a shift to a user over a date range
"""
from sqlalchemy import Column, BigInteger, DateTime, Date, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from atams.db import Base

from scan_attendance.db.types import BigIntPk, HRIS_SCHEMA


class UserSchedule(Base):
    """User schedule model for hris schema - Table: hris.user_schedules"""
    __tablename__ = "user_schedules"
    __table_args__ = {"schema": HRIS_SCHEMA}

    us_id = Column(BigIntPk, primary_key=True, index=True, autoincrement=True)
    us_user_id = Column(BigInteger, nullable=False, index=True)  # References users(u_id)
    us_shift_id = Column(BigInteger, ForeignKey(f"{HRIS_SCHEMA}.shifts.sh_id"), nullable=False, index=True)
    us_start_date = Column(Date, nullable=False)
    us_end_date = Column(Date, nullable=True)  # NULL = open-ended
    us_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    us_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    shift = relationship("Shift", lazy="joined")
