from .location_repository import LocationRepository
from .user_schedule_repository import UserScheduleRepository
from .holiday_repository import HolidayRepository
from .late_penalty_tier_repository import LatePenaltyTierRepository
from .attendance_event_repository import AttendanceEventRepository
from .attendance_log_repository import AttendanceLogRepository
from .attendance_request_repository import AttendanceRequestRepository

__all__ = [
    "LocationRepository",
    "UserScheduleRepository",
    "HolidayRepository",
    "LatePenaltyTierRepository",
    "AttendanceEventRepository",
    "AttendanceLogRepository",
    "AttendanceRequestRepository"
]
