"""
Attendance Event Model - Immutable check-in / check-out / absence records
"""
from sqlalchemy import (
    Column, BigInteger, String, DateTime, Date, Float, Integer, Boolean,
    Numeric, ForeignKey, UniqueConstraint, Index
)
from sqlalchemy.sql import func
from atams.db import Base

from scan_attendance.db.types import BigIntPk, HRIS_SCHEMA


class AttendanceEvent(Base):
    """Attendance Event model for hris schema - Table: hris.attendance_events"""
    __tablename__ = "attendance_events"
    __table_args__ = (
        # Serializes check-type alternation: two racing scans cannot take the same slot of the day
        UniqueConstraint("ae_user_id", "ae_work_date", "ae_sequence", name="uq_attendance_events_user_day_seq"),
        Index("ix_attendance_events_user_scan", "ae_user_id", "ae_scan_time"),
        {"schema": HRIS_SCHEMA},
    )

    ae_id = Column(BigIntPk, primary_key=True, index=True, autoincrement=True)
    ae_user_id = Column(BigInteger, nullable=False, index=True)  # References users(u_id)
    ae_location_id = Column(BigInteger, ForeignKey(f"{HRIS_SCHEMA}.locations.lo_id"), nullable=True, index=True)
    ae_scan_time = Column(DateTime(timezone=True), nullable=False)  # stored in UTC
    ae_work_date = Column(Date, nullable=False)
    ae_sequence = Column(Integer, nullable=False)  # 0 = system absence, scans count from 1
    ae_check_type = Column(String(3), nullable=False)  # 'IN' or 'OUT'

    # GPS data
    ae_lat = Column(Float, nullable=True)
    ae_lon = Column(Float, nullable=True)
    ae_accuracy_m = Column(Float, nullable=True)
    ae_distance_m = Column(Float, nullable=True)

    # Barcode and client metadata
    ae_time_slot = Column(BigInteger, nullable=True)
    ae_ip_address = Column(String(45), nullable=True)
    ae_device_id = Column(String(255), nullable=True)

    # Status computation
    ae_status = Column(String(10), nullable=False, default="ON_TIME")  # ON_TIME, LATE, EARLY, ABSENT, EXCUSED
    ae_late_min = Column(Integer, nullable=False, default=0)
    ae_early_leave_min = Column(Integer, nullable=False, default=0)
    ae_work_minutes = Column(Integer, nullable=False, default=0)
    ae_penalty_tier = Column(String(10), nullable=False, default="NONE")

    # Overtime
    ae_is_holiday = Column(Boolean, nullable=False, default=False)
    ae_overtime_min = Column(Integer, nullable=False, default=0)
    ae_overtime_multiplier = Column(Numeric(3, 1, asdecimal=False), nullable=False, default=1.0)

    # Origin of the record
    ae_method = Column(String(10), nullable=False, default="AUTO")  # AUTO, MANUAL, SYSTEM
    ae_approved_by = Column(BigInteger, nullable=True)
    ae_approved_at = Column(DateTime(timezone=True), nullable=True)

    ae_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    ae_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
