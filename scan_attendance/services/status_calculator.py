"""
Attendance Status Calculator - check type, lateness, early leave, overtime

All arithmetic is done on UTC instants; shift boundaries are built from the
location's local calendar and converted to UTC first. Minutes are whole
minutes rounded down.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

from scan_attendance.core.enums import AttendanceStatus, CheckType, PenaltyTier
from scan_attendance.core.timeutils import ensure_utc, get_zone, to_local
from scan_attendance.models.attendance_event import AttendanceEvent
from scan_attendance.models.holiday import Holiday
from scan_attendance.models.shift import Shift

MINUTES_PER_DAY = 24 * 60

PenaltyLookup = Callable[[int], Optional[PenaltyTier]]


@dataclass(frozen=True)
class ShiftWindow:
    start: datetime
    end: datetime


@dataclass
class StatusResult:
    status: AttendanceStatus = AttendanceStatus.ON_TIME
    late_minutes: int = 0
    early_leave_minutes: int = 0
    work_minutes: int = 0
    penalty_tier: PenaltyTier = PenaltyTier.NONE
    overtime_minutes: int = 0
    is_holiday: bool = False
    overtime_multiplier: float = 1.0

    def to_event_fields(self) -> dict:
        return {
            "ae_status": self.status.value,
            "ae_late_min": self.late_minutes,
            "ae_early_leave_min": self.early_leave_minutes,
            "ae_work_minutes": self.work_minutes,
            "ae_penalty_tier": self.penalty_tier.value,
            "ae_overtime_min": self.overtime_minutes,
            "ae_is_holiday": self.is_holiday,
            "ae_overtime_multiplier": self.overtime_multiplier,
        }


def whole_minutes(delta: timedelta) -> int:
    return int(delta.total_seconds() // 60)


def is_overnight(shift: Shift) -> bool:
    return shift.sh_end_time < shift.sh_start_time


class AttendanceStatusCalculator:
    @staticmethod
    def determine_check_type(latest_event: Optional[AttendanceEvent]) -> CheckType:
        """First scan of a work day is IN, every later scan flips the latest one"""
        if latest_event is None:
            return CheckType.IN
        return CheckType(latest_event.ae_check_type).flipped()

    @staticmethod
    def expected_shift_minutes(shift: Shift) -> int:
        start = shift.sh_start_time.hour * 60 + shift.sh_start_time.minute
        end = shift.sh_end_time.hour * 60 + shift.sh_end_time.minute
        if end < start:
            end += MINUTES_PER_DAY
        return end - start

    @staticmethod
    def shift_window(shift: Shift, work_date: date, tz_name: Optional[str]) -> ShiftWindow:
        """Shift start/end as UTC instants for a work date in the location's timezone"""
        zone = get_zone(tz_name)
        end_date = work_date + timedelta(days=1) if is_overnight(shift) else work_date
        start = datetime.combine(work_date, shift.sh_start_time, tzinfo=zone)
        end = datetime.combine(end_date, shift.sh_end_time, tzinfo=zone)
        return ShiftWindow(
            start=start.astimezone(timezone.utc),
            end=end.astimezone(timezone.utc)
        )

    @staticmethod
    def resolve_work_date(
        scan_time: datetime,
        tz_name: Optional[str],
        previous_shift: Optional[Shift] = None,
        previous_latest: Optional[AttendanceEvent] = None
    ) -> date:
        """
        Work day a scan belongs to

        A scan before the shift start still belongs to the previous local
        date when that date's shift is overnight and its last event is an
        open IN; otherwise it is the local calendar date.
        """
        local = to_local(scan_time, tz_name)
        if (
            previous_shift is not None
            and is_overnight(previous_shift)
            and previous_latest is not None
            and previous_latest.ae_check_type == CheckType.IN.value
            and local.time() < previous_shift.sh_start_time
        ):
            return local.date() - timedelta(days=1)
        return local.date()

    def compute_check_in(
        self,
        scan_time: datetime,
        shift: Optional[Shift],
        work_date: date,
        tz_name: Optional[str],
        penalty_lookup: Optional[PenaltyLookup] = None
    ) -> StatusResult:
        if shift is None:
            return StatusResult()

        scan_time = ensure_utc(scan_time)
        window = self.shift_window(shift, work_date, tz_name)
        grace_end = window.start + timedelta(minutes=shift.sh_late_after_min or 0)

        if scan_time <= grace_end:
            return StatusResult()

        late_minutes = whole_minutes(scan_time - window.start)
        tier = penalty_lookup(late_minutes) if penalty_lookup else None
        return StatusResult(
            status=AttendanceStatus.LATE,
            late_minutes=late_minutes,
            penalty_tier=tier or PenaltyTier.NONE
        )

    def compute_check_out(
        self,
        scan_time: datetime,
        shift: Optional[Shift],
        work_date: date,
        tz_name: Optional[str],
        last_check_in: Optional[datetime] = None
    ) -> StatusResult:
        scan_time = ensure_utc(scan_time)
        work_minutes = 0
        if last_check_in is not None:
            work_minutes = max(0, whole_minutes(scan_time - ensure_utc(last_check_in)))

        if shift is None:
            return StatusResult(work_minutes=work_minutes)

        result = StatusResult(work_minutes=work_minutes)
        result.overtime_minutes = max(0, work_minutes - self.expected_shift_minutes(shift))

        if not shift.sh_allow_checkout_before_end:
            window = self.shift_window(shift, work_date, tz_name)
            if scan_time < window.end:
                result.status = AttendanceStatus.EARLY
                result.early_leave_minutes = whole_minutes(window.end - scan_time)

        return result

    @staticmethod
    def apply_holiday(result: StatusResult, holiday: Optional[Holiday]) -> StatusResult:
        if holiday is None:
            result.is_holiday = False
            result.overtime_multiplier = 1.0
        else:
            result.is_holiday = True
            result.overtime_multiplier = float(holiday.ho_overtime_multiplier)
        return result
