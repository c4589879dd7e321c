from .location import Location
from .shift import Shift
from .user_schedule import UserSchedule
from .holiday import Holiday
from .late_penalty_tier import LatePenaltyTier
from .attendance_event import AttendanceEvent
from .attendance_request import AttendanceRequest
from .attendance_log import AttendanceLog

__all__ = [
    "Location",
    "Shift",
    "UserSchedule",
    "Holiday",
    "LatePenaltyTier",
    "AttendanceEvent",
    "AttendanceRequest",
    "AttendanceLog"
]
