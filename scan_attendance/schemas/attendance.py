"""
Attendance Schemas for scans, events and rolling tokens
"""
import re
from typing import Any, Dict, Optional, Literal
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from scan_attendance.core.timeutils import ensure_utc


def normalize_datetime(v):
    """Fix datetime timezone format from PostgreSQL and attach UTC to naive values"""
    if v == '' or v is None:
        return None

    if isinstance(v, str):
        match = re.search(r'([+-]\d{2})$', v)
        if match:
            v = v + ':00'
        return v

    if isinstance(v, datetime):
        return ensure_utc(v)

    return v


class AttendanceEventBase(BaseModel):
    ae_user_id: int
    ae_location_id: Optional[int] = None
    ae_scan_time: datetime
    ae_work_date: date
    ae_check_type: Literal["IN", "OUT"]
    ae_lat: Optional[float] = None
    ae_lon: Optional[float] = None
    ae_accuracy_m: Optional[float] = None
    ae_distance_m: Optional[float] = None
    ae_status: str
    ae_late_min: int = 0
    ae_early_leave_min: int = 0
    ae_work_minutes: int = 0
    ae_penalty_tier: str = "NONE"
    ae_is_holiday: bool = False
    ae_overtime_min: int = 0
    ae_overtime_multiplier: float = 1.0
    ae_method: str
    ae_device_id: Optional[str] = None


class AttendanceEventInDB(AttendanceEventBase):
    model_config = ConfigDict(from_attributes=True)

    ae_id: int
    ae_sequence: int
    ae_time_slot: Optional[int] = None
    ae_ip_address: Optional[str] = None
    ae_approved_by: Optional[int] = None
    ae_approved_at: Optional[datetime] = None
    ae_created_at: Optional[datetime] = None
    ae_updated_at: Optional[datetime] = None

    @field_validator('ae_scan_time', 'ae_approved_at', 'ae_updated_at', 'ae_created_at', mode='before')
    @classmethod
    def fix_datetime_timezone(cls, v):
        return normalize_datetime(v)


class AttendanceEvent(AttendanceEventInDB):
    pass


# Request/Response schemas for API endpoints
class ScanRequest(BaseModel):
    """Request schema for attendance scan endpoint"""
    token: str = Field(..., min_length=1, description="Token read from the rotating barcode")
    latitude: float
    longitude: float
    accuracy: Optional[float] = Field(None, ge=0, description="Reported GPS accuracy in meters")
    device_id: Optional[str] = Field(None, max_length=255)


class ScanEventPayload(BaseModel):
    """Accepted scan summary returned to the scanning device"""
    id: int
    check_type: Literal["IN", "OUT"]
    scan_time: datetime
    location_name: str
    status: str
    late_minutes: int = 0
    work_minutes: int = 0


class ScanResult(BaseModel):
    """Outcome of a scan: either an accepted event or a structured rejection"""
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    code: Optional[str] = None
    event: Optional[ScanEventPayload] = None
    diagnostics: Optional[Dict[str, Any]] = None


class RollingTokenResponse(BaseModel):
    """Response schema for rolling token endpoint"""
    token: str
    location_code: str
    location_name: str
    slot: int
    generated_at: datetime
    expires_in: int
    rotation_interval: int


class RotationInfo(BaseModel):
    rotation_interval: int
    current_slot: int
    seconds_until_rotation: int
    server_time: datetime


class TodaySummary(BaseModel):
    """Response schema for today's attendance"""
    work_date: date
    has_checked_in: bool = False
    has_checked_out: bool = False
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    status: Optional[str] = None
    late_minutes: int = 0
    work_minutes: int = 0
    shift_name: Optional[str] = None
