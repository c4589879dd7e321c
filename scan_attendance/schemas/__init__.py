from .attendance import (
    AttendanceEvent,
    ScanRequest,
    ScanEventPayload,
    ScanResult,
    RollingTokenResponse,
    RotationInfo,
    TodaySummary
)
from .request import (
    ManualRequestCreate,
    ReviewRequest,
    AttendanceRequest,
    AbsenceSweepResult
)
from atams.schemas import DataResponse, PaginationResponse

__all__ = [
    # Attendance schemas
    "AttendanceEvent",
    "ScanRequest",
    "ScanEventPayload",
    "ScanResult",
    "RollingTokenResponse",
    "RotationInfo",
    "TodaySummary",
    # Manual request schemas
    "ManualRequestCreate",
    "ReviewRequest",
    "AttendanceRequest",
    "AbsenceSweepResult",
    # Common schemas
    "DataResponse",
    "PaginationResponse"
]
