"""
Schedule Service - Resolves the shift a user works on a given date
"""
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session

from scan_attendance.models.shift import Shift
from scan_attendance.models.user_schedule import UserSchedule
from scan_attendance.repositories.user_schedule_repository import UserScheduleRepository


class ScheduleResolver:
    def __init__(self) -> None:
        self.schedule_repo = UserScheduleRepository()

    def active_schedule_for(self, db: Session, user_id: int, target_date: date) -> Optional[UserSchedule]:
        """
        Get the schedule whose date range contains target_date

        When several schedules overlap, the one starting latest wins and
        ties go to the most recently created.
        """
        return self.schedule_repo.get_active_for_user(db, user_id, target_date)

    def active_shift_for(self, db: Session, user_id: int, target_date: date) -> Optional[Shift]:
        """Shift of the active schedule, None when unscheduled or the shift is inactive"""
        schedule = self.active_schedule_for(db, user_id, target_date)
        if schedule is None or schedule.shift is None or not schedule.shift.sh_is_active:
            return None
        return schedule.shift
