"""
User Schedule Repository - Shift assignments per user and date
"""
from datetime import date
from typing import List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session

from atams.db import BaseRepository
from scan_attendance.models.user_schedule import UserSchedule


class UserScheduleRepository(BaseRepository[UserSchedule]):
    def __init__(self):
        super().__init__(UserSchedule)

    @staticmethod
    def _covering(query, target_date: date):
        return query.filter(
            UserSchedule.us_start_date <= target_date,
            or_(UserSchedule.us_end_date.is_(None), UserSchedule.us_end_date >= target_date)
        )

    def get_active_for_user(self, db: Session, user_id: int, target_date: date) -> Optional[UserSchedule]:
        """
        Get the schedule covering a date

        Overlaps resolve to the latest start date, then the most recently created row.
        """
        query = db.query(UserSchedule).filter(UserSchedule.us_user_id == user_id)
        return self._covering(query, target_date).order_by(
            UserSchedule.us_start_date.desc(),
            UserSchedule.us_id.desc()
        ).first()

    def get_scheduled_user_ids(self, db: Session, target_date: date) -> List[int]:
        """Distinct users with at least one schedule covering the date"""
        query = db.query(UserSchedule.us_user_id).distinct()
        rows = self._covering(query, target_date).order_by(UserSchedule.us_user_id).all()
        return [row[0] for row in rows]
