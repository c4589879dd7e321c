"""
Attendance Event Repository - Data access layer for attendance events
"""
from typing import List, Optional
from datetime import date
from sqlalchemy.orm import Session
from sqlalchemy import func

from atams.db import BaseRepository
from scan_attendance.core.enums import AttendanceMethod, CheckType
from scan_attendance.models.attendance_event import AttendanceEvent


class AttendanceEventRepository(BaseRepository[AttendanceEvent]):
    def __init__(self):
        super().__init__(AttendanceEvent)

    def get_latest_for_day(
        self,
        db: Session,
        user_id: int,
        work_date: date,
        lock: bool = False
    ) -> Optional[AttendanceEvent]:
        """
        Get the most recent IN/OUT event of a work day

        System absence records are skipped so they never take part in the
        IN/OUT alternation. With lock=True the row is locked (FOR UPDATE)
        where the database supports it.
        """
        query = db.query(AttendanceEvent).filter(
            AttendanceEvent.ae_user_id == user_id,
            AttendanceEvent.ae_work_date == work_date,
            AttendanceEvent.ae_method != AttendanceMethod.SYSTEM.value
        ).order_by(AttendanceEvent.ae_sequence.desc())

        if lock:
            query = query.with_for_update()

        return query.first()

    def get_event_of_type(
        self,
        db: Session,
        user_id: int,
        work_date: date,
        check_type: CheckType,
        latest: bool = True
    ) -> Optional[AttendanceEvent]:
        """First or most recent IN/OUT of a work day, system absences excluded"""
        order = AttendanceEvent.ae_sequence.desc() if latest else AttendanceEvent.ae_sequence.asc()
        return db.query(AttendanceEvent).filter(
            AttendanceEvent.ae_user_id == user_id,
            AttendanceEvent.ae_work_date == work_date,
            AttendanceEvent.ae_check_type == check_type.value,
            AttendanceEvent.ae_method != AttendanceMethod.SYSTEM.value
        ).order_by(order).first()

    def get_max_sequence(self, db: Session, user_id: int, work_date: date) -> int:
        """Highest sequence number used on a work day (0 when none)"""
        result = db.query(func.max(AttendanceEvent.ae_sequence)).filter(
            AttendanceEvent.ae_user_id == user_id,
            AttendanceEvent.ae_work_date == work_date
        ).scalar()
        return result or 0

    def has_events_on(self, db: Session, user_id: int, work_date: date) -> bool:
        """Check if any event, absence included, exists for the user on a work day"""
        return db.query(AttendanceEvent.ae_id).filter(
            AttendanceEvent.ae_user_id == user_id,
            AttendanceEvent.ae_work_date == work_date
        ).first() is not None

    def add(self, db: Session, event_data: dict) -> AttendanceEvent:
        """Stage an event row; the enclosing transaction commits it"""
        db_event = AttendanceEvent(**event_data)
        db.add(db_event)
        db.flush()
        return db_event

    def get_user_events(
        self,
        db: Session,
        user_id: int,
        work_date: date = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[AttendanceEvent]:
        """Get user's attendance events for a work day using ORM, newest first"""
        query = db.query(AttendanceEvent).filter(
            AttendanceEvent.ae_user_id == user_id
        )

        if work_date:
            query = query.filter(AttendanceEvent.ae_work_date == work_date)

        return query.order_by(
            AttendanceEvent.ae_scan_time.desc(),
            AttendanceEvent.ae_id.desc()
        ).offset(skip).limit(limit).all()

    def count_user_events(self, db: Session, user_id: int, work_date: date = None) -> int:
        """Count user's events for a work day using ORM"""
        query = db.query(func.count(AttendanceEvent.ae_id)).filter(
            AttendanceEvent.ae_user_id == user_id
        )

        if work_date:
            query = query.filter(AttendanceEvent.ae_work_date == work_date)

        return query.scalar()
