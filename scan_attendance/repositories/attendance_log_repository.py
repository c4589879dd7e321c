"""
Attendance Log Repository - Audit trail writes
"""
from typing import List
from sqlalchemy.orm import Session

from atams.db import BaseRepository
from scan_attendance.models.attendance_log import AttendanceLog


class AttendanceLogRepository(BaseRepository[AttendanceLog]):
    def __init__(self):
        super().__init__(AttendanceLog)

    def add(self, db: Session, log_data: dict) -> AttendanceLog:
        """Stage a log row; the enclosing transaction commits it"""
        db_log = AttendanceLog(**log_data)
        db.add(db_log)
        db.flush()
        return db_log

    def get_for_event(self, db: Session, attendance_id: int) -> List[AttendanceLog]:
        return db.query(AttendanceLog).filter(
            AttendanceLog.al_attendance_id == attendance_id
        ).order_by(AttendanceLog.al_id).all()

    def get_for_request(self, db: Session, request_id: int) -> List[AttendanceLog]:
        return db.query(AttendanceLog).filter(
            AttendanceLog.al_request_id == request_id
        ).order_by(AttendanceLog.al_id).all()
