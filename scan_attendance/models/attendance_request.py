"""
Attendance Request Model - Manual attendance submitted when the scan fails
"""
from sqlalchemy import Column, BigInteger, String, DateTime, Float, Text, ForeignKey, Index
from sqlalchemy.sql import func
from atams.db import Base

from scan_attendance.db.types import BigIntPk, HRIS_SCHEMA


class AttendanceRequest(Base):
    """Attendance Request model for hris schema - Table: hris.attendance_requests"""
    __tablename__ = "attendance_requests"
    __table_args__ = (
        Index("ix_attendance_requests_user_status", "ar_user_id", "ar_status"),
        {"schema": HRIS_SCHEMA},
    )

    ar_id = Column(BigIntPk, primary_key=True, index=True, autoincrement=True)
    ar_user_id = Column(BigInteger, nullable=False, index=True)
    ar_location_id = Column(BigInteger, ForeignKey(f"{HRIS_SCHEMA}.locations.lo_id"), nullable=False)
    ar_request_time = Column(DateTime(timezone=True), nullable=False)  # stored in UTC
    ar_check_type = Column(String(3), nullable=False)

    # GPS data at time of request
    ar_lat = Column(Float, nullable=True)
    ar_lon = Column(Float, nullable=True)
    ar_accuracy_m = Column(Float, nullable=True)
    ar_distance_m = Column(Float, nullable=True)

    ar_reason = Column(Text, nullable=False)
    ar_evidence_path = Column(String(255), nullable=True)
    ar_failure_reason = Column(String(255), nullable=True)  # why the automatic scan failed

    ar_status = Column(String(10), nullable=False, default="PENDING")  # PENDING, APPROVED, REJECTED
    ar_admin_note = Column(Text, nullable=True)
    ar_reviewed_by = Column(BigInteger, nullable=True)
    ar_reviewed_at = Column(DateTime(timezone=True), nullable=True)
    ar_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    ar_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
