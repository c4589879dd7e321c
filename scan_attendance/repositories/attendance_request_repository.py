"""
Attendance Request Repository - Manual attendance requests
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from atams.db import BaseRepository
from scan_attendance.models.attendance_request import AttendanceRequest


class AttendanceRequestRepository(BaseRepository[AttendanceRequest]):
    def __init__(self):
        super().__init__(AttendanceRequest)

    def add(self, db: Session, request_data: dict) -> AttendanceRequest:
        """Stage a request row; the enclosing transaction commits it"""
        db_request = AttendanceRequest(**request_data)
        db.add(db_request)
        db.flush()
        return db_request

    def get_for_update(self, db: Session, request_id: int) -> Optional[AttendanceRequest]:
        """Get request and lock the row while it is reviewed"""
        return db.query(AttendanceRequest).filter(
            AttendanceRequest.ar_id == request_id
        ).with_for_update().first()

    def get_requests_with_filters(
        self,
        db: Session,
        user_id: int = None,
        status: str = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[AttendanceRequest]:
        """Get requests with optional filters using ORM, newest first"""
        query = db.query(AttendanceRequest)

        if user_id:
            query = query.filter(AttendanceRequest.ar_user_id == user_id)
        if status:
            query = query.filter(AttendanceRequest.ar_status == status)

        return query.order_by(
            AttendanceRequest.ar_request_time.desc(),
            AttendanceRequest.ar_id.desc()
        ).offset(skip).limit(limit).all()

    def count_requests_with_filters(self, db: Session, user_id: int = None, status: str = None) -> int:
        """Count requests using native SQL"""
        query = "SELECT COUNT(*) FROM hris.attendance_requests WHERE 1 = 1"
        params = {}
        if user_id:
            query += " AND ar_user_id = :user_id"
            params["user_id"] = user_id
        if status:
            query += " AND ar_status = :status"
            params["status"] = status
        return self.execute_raw_sql_scalar(db, query, params)
