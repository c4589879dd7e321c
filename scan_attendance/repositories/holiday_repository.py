"""
Holiday Repository - Data access layer for holidays
"""
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session

from atams.db import BaseRepository
from scan_attendance.models.holiday import Holiday


class HolidayRepository(BaseRepository[Holiday]):
    def __init__(self):
        super().__init__(Holiday)

    def get_by_date(self, db: Session, target_date: date) -> Optional[Holiday]:
        return db.query(Holiday).filter(Holiday.ho_date == target_date).first()
