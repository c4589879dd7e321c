from enum import Enum


class CheckType(str, Enum):
    """Direction of an attendance event"""

    IN = "IN"
    OUT = "OUT"

    def flipped(self) -> "CheckType":
        return CheckType.OUT if self is CheckType.IN else CheckType.IN


class AttendanceStatus(str, Enum):
    ON_TIME = "ON_TIME"
    LATE = "LATE"
    EARLY = "EARLY"
    ABSENT = "ABSENT"
    EXCUSED = "EXCUSED"


class PenaltyTier(str, Enum):
    """Penalty classification stored on events (NONE when no tier applies)"""

    NONE = "NONE"
    WARNING = "WARNING"
    DEDUCTION = "DEDUCTION"
    HALF_DAY = "HALF_DAY"
    ABSENT = "ABSENT"


class AttendanceMethod(str, Enum):
    AUTO = "AUTO"
    MANUAL = "MANUAL"
    SYSTEM = "SYSTEM"


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LogAction(str, Enum):
    """Audit trail actions written alongside attendance changes"""

    AUTO_CHECKIN = "AUTO_CHECKIN"
    AUTO_CHECKOUT = "AUTO_CHECKOUT"
    MANUAL_REQUEST = "MANUAL_REQUEST"
    MANUAL_APPROVE = "MANUAL_APPROVE"
    MANUAL_REJECT = "MANUAL_REJECT"
    SYSTEM_ABSENT = "SYSTEM_ABSENT"


class HolidayType(str, Enum):
    NATIONAL = "NATIONAL"
    COMPANY = "COMPANY"
    OPTIONAL = "OPTIONAL"
