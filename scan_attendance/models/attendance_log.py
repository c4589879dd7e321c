"""
Attendance Log Model - Audit trail for every attendance action
"""
from sqlalchemy import Column, BigInteger, String, DateTime, Text, JSON, ForeignKey
from sqlalchemy.sql import func
from atams.db import Base

from scan_attendance.db.types import BigIntPk, HRIS_SCHEMA


class AttendanceLog(Base):
    """Attendance Log model for hris schema - Table: hris.attendance_logs"""
    __tablename__ = "attendance_logs"
    __table_args__ = {"schema": HRIS_SCHEMA}

    al_id = Column(BigIntPk, primary_key=True, index=True, autoincrement=True)
    al_user_id = Column(BigInteger, nullable=True, index=True)
    al_attendance_id = Column(BigInteger, ForeignKey(f"{HRIS_SCHEMA}.attendance_events.ae_id"), nullable=True)
    al_request_id = Column(BigInteger, ForeignKey(f"{HRIS_SCHEMA}.attendance_requests.ar_id"), nullable=True)
    al_action = Column(String(20), nullable=False, index=True)  # AUTO_CHECKIN, MANUAL_APPROVE, SYSTEM_ABSENT, ...
    al_actor_id = Column(BigInteger, nullable=True)  # NULL for system actions
    al_reason = Column(Text, nullable=True)
    al_payload = Column(JSON, nullable=True)
    al_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
