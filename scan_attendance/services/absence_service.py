"""
Absence Service - Daily detection of scheduled users without attendance
"""
import threading
from typing import Optional
from datetime import date, datetime
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from scan_attendance.core.config import AttendanceConfig, get_attendance_config
from scan_attendance.core.enums import AttendanceMethod, AttendanceStatus, CheckType, LogAction, PenaltyTier
from scan_attendance.core.exceptions import StorageWriteFailure
from scan_attendance.core.timeutils import get_zone, start_of_day_utc, utc_now, ensure_utc
from scan_attendance.models.attendance_event import AttendanceEvent as AttendanceEventModel
from scan_attendance.repositories.attendance_event_repository import AttendanceEventRepository
from scan_attendance.repositories.attendance_log_repository import AttendanceLogRepository
from scan_attendance.repositories.user_schedule_repository import UserScheduleRepository
from scan_attendance.schemas.request import AbsenceSweepResult
from scan_attendance.services.schedule_service import ScheduleResolver
from atams.exceptions import ConflictException
from atams.logging import get_logger
from atams.transaction import transaction

logger = get_logger(__name__)

# Absence records take sequence 0 so a second absence for the same day collides
ABSENCE_SEQUENCE = 0

# One sweep per process at a time
_sweep_lock = threading.Lock()


class AbsenceService:
    def __init__(self, config: Optional[AttendanceConfig] = None) -> None:
        self.config = config or get_attendance_config()
        self.event_repo = AttendanceEventRepository()
        self.log_repo = AttendanceLogRepository()
        self.schedule_repo = UserScheduleRepository()
        self.schedule_resolver = ScheduleResolver()

    def mark_absent(self, db: Session, user_id: int, target_date: date) -> Optional[AttendanceEventModel]:
        """
        Create a SYSTEM/ABSENT event for a user and date

        Returns None when the user already has an event that day (including
        one written concurrently).

        Raises:
            StorageWriteFailure: Database error other than the duplicate
        """
        try:
            with transaction(db):
                if self.event_repo.has_events_on(db, user_id, target_date):
                    return None

                schedule = self.schedule_resolver.active_schedule_for(db, user_id, target_date)
                event = self.event_repo.add(db, {
                    "ae_user_id": user_id,
                    "ae_location_id": None,
                    "ae_scan_time": start_of_day_utc(target_date),
                    "ae_work_date": target_date,
                    "ae_sequence": ABSENCE_SEQUENCE,
                    "ae_check_type": CheckType.IN.value,
                    "ae_status": AttendanceStatus.ABSENT.value,
                    "ae_penalty_tier": PenaltyTier.ABSENT.value,
                    "ae_method": AttendanceMethod.SYSTEM.value,
                })
                self.log_repo.add(db, {
                    "al_user_id": user_id,
                    "al_attendance_id": event.ae_id,
                    "al_action": LogAction.SYSTEM_ABSENT.value,
                    "al_actor_id": None,
                    "al_reason": "Automatically marked absent by system",
                    "al_payload": {
                        "date": target_date.isoformat(),
                        "schedule_id": schedule.us_id if schedule else None,
                        "shift_name": schedule.shift.sh_name if schedule and schedule.shift else None,
                    },
                })
                return event
        except IntegrityError:
            logger.info(
                f"User {user_id} already has attendance on {target_date}, skipping",
                extra={'extra_data': {'user_id': user_id, 'date': target_date.isoformat()}}
            )
            return None
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to mark user {user_id} absent on {target_date}",
                extra={'extra_data': {'user_id': user_id, 'error': str(e)}}
            )
            raise StorageWriteFailure(details={"operation": "mark_absent", "user_id": user_id}) from e

    def default_sweep_date(self, now: Optional[datetime] = None) -> date:
        now = ensure_utc(now) or utc_now()
        return now.astimezone(get_zone(self.config.default_timezone)).date()

    def run_absence_sweep(
        self,
        db: Session,
        target_date: Optional[date] = None,
        dry_run: bool = False
    ) -> AbsenceSweepResult:
        """
        Mark every scheduled user without attendance on target_date as ABSENT

        Args:
            db: Database session
            target_date: Date to check (default: today in the default timezone)
            dry_run: Only list the users that would be marked

        Returns:
            AbsenceSweepResult: Users found and number of events created

        Raises:
            ConflictException: Another sweep is already running
        """
        if target_date is None:
            target_date = self.default_sweep_date()

        if not _sweep_lock.acquire(blocking=False):
            raise ConflictException("Absence sweep already running")

        try:
            absent_user_ids = [
                user_id
                for user_id in self.schedule_repo.get_scheduled_user_ids(db, target_date)
                if not self.event_repo.has_events_on(db, user_id, target_date)
            ]

            created = 0
            if not dry_run:
                for user_id in absent_user_ids:
                    if self.mark_absent(db, user_id, target_date) is not None:
                        created += 1
        finally:
            _sweep_lock.release()

        logger.info(
            f"Absence sweep for {target_date}: {len(absent_user_ids)} absent, {created} marked"
            + (" (dry run)" if dry_run else ""),
            extra={'extra_data': {
                'date': target_date.isoformat(),
                'absent': len(absent_user_ids),
                'created': created,
                'dry_run': dry_run,
            }}
        )

        return AbsenceSweepResult(
            target_date=target_date,
            user_ids=absent_user_ids,
            created_count=created,
            dry_run=dry_run
        )
