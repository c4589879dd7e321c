"""
Manual Attendance Request Schemas
"""
from typing import List, Literal, Optional
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from scan_attendance.schemas.attendance import normalize_datetime


class ManualRequestCreate(BaseModel):
    """Submitted when the automatic scan could not be completed"""
    location_code: str = Field(..., min_length=1, max_length=50)
    check_type: Literal["IN", "OUT"]
    request_time: Optional[datetime] = Field(None, description="Defaults to the submission time")
    reason: str = Field(..., min_length=10, max_length=500)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    accuracy: Optional[float] = Field(None, ge=0)
    evidence_path: Optional[str] = Field(None, max_length=255)
    failure_reason: Optional[str] = Field(None, max_length=255)

    @field_validator('reason')
    @classmethod
    def strip_reason(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 10:
            raise ValueError("Reason must be at least 10 characters")
        return v

    @model_validator(mode='after')
    def coordinates_together(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self


class ReviewRequest(BaseModel):
    admin_note: Optional[str] = Field(None, max_length=500)


class AttendanceRequestBase(BaseModel):
    ar_user_id: int
    ar_location_id: int
    ar_request_time: datetime
    ar_check_type: Literal["IN", "OUT"]
    ar_lat: Optional[float] = None
    ar_lon: Optional[float] = None
    ar_accuracy_m: Optional[float] = None
    ar_distance_m: Optional[float] = None
    ar_reason: str
    ar_evidence_path: Optional[str] = None
    ar_failure_reason: Optional[str] = None
    ar_status: Literal["PENDING", "APPROVED", "REJECTED"] = "PENDING"


class AttendanceRequest(AttendanceRequestBase):
    model_config = ConfigDict(from_attributes=True)

    ar_id: int
    ar_admin_note: Optional[str] = None
    ar_reviewed_by: Optional[int] = None
    ar_reviewed_at: Optional[datetime] = None
    ar_created_at: Optional[datetime] = None
    ar_updated_at: Optional[datetime] = None

    @field_validator('ar_request_time', 'ar_reviewed_at', 'ar_created_at', 'ar_updated_at', mode='before')
    @classmethod
    def fix_datetime_timezone(cls, v):
        return normalize_datetime(v)


class AbsenceSweepResult(BaseModel):
    target_date: date
    user_ids: List[int]
    created_count: int
    dry_run: bool
