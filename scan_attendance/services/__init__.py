from .geo_service import GeoValidator
from .token_service import RotatingTokenService
from .schedule_service import ScheduleResolver
from .status_calculator import AttendanceStatusCalculator
from .ip_validation_service import IpValidationService
from .attendance_service import AttendanceService
from .request_service import RequestService
from .absence_service import AbsenceService

__all__ = [
    "GeoValidator",
    "RotatingTokenService",
    "ScheduleResolver",
    "AttendanceStatusCalculator",
    "IpValidationService",
    "AttendanceService",
    "RequestService",
    "AbsenceService"
]
