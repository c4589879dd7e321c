"""
Attendance exceptions - scan rejections and storage failures

Scan rejections are raised inside the scan pipeline and converted into a
structured ScanResult before leaving it. StorageWriteFailure is the only
error that propagates to the caller (HTTP 503, safe to retry).
"""
from typing import Any, Dict, Optional

from atams.exceptions import BadRequestException, ServiceUnavailableException


class ScanRejected(BadRequestException):
    """Base class for every reason a scan can be refused"""

    code = "ScanRejected"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class InvalidCoordinates(ScanRejected):
    code = "InvalidCoordinates"


class TokenMalformed(ScanRejected):
    code = "TokenMalformed"


class TokenSignatureMismatch(ScanRejected):
    code = "TokenSignatureMismatch"


class TokenExpired(ScanRejected):
    code = "TokenExpired"


class UnknownOrInactiveLocation(ScanRejected):
    code = "UnknownOrInactiveLocation"


class GpsAccuracyTooLow(ScanRejected):
    code = "GpsAccuracyTooLow"


class OutsideAllowedRadius(ScanRejected):
    code = "OutsideAllowedRadius"


class IpNotAllowed(ScanRejected):
    code = "IpNotAllowed"


class StorageWriteFailure(ServiceUnavailableException):
    """Atomic event + audit log write failed; nothing was persisted"""

    def __init__(self, message: str = "Failed to store attendance, please retry", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
