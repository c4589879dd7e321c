"""
Attendance Endpoints - Rolling barcode tokens, scanning, and history
"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date as dt

from scan_attendance.db.session import get_db
from scan_attendance.services.attendance_service import AttendanceService
from scan_attendance.core.exceptions import ScanRejected
from scan_attendance.schemas import (
    ScanRequest,
    ScanResult,
    RollingTokenResponse,
    RotationInfo,
    TodaySummary,
    AttendanceEvent,
    DataResponse,
    PaginationResponse
)
from scan_attendance.api.deps import require_auth, require_min_role_level, require_display_key, get_client_meta
from scan_attendance.core.config import settings
from atams.encryption import encrypt_response_data
from atams.exceptions import BadRequestException

router = APIRouter()
attendance_service = AttendanceService()


@router.get(
    "/locations/{location_code}/rolling-token",
    response_model=DataResponse[RollingTokenResponse],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_display_key)]
)
async def get_rolling_token(
    location_code: str,
    db: Session = Depends(get_db)
):
    """
    Generate rolling barcode token for a location display

    **Authentication:**
    - Requires X-Display-Key header matching DISPLAY_API_KEY

    **Response:**
    - Token valid for the current slot and the previous tolerated slots
    - Slot number and seconds until the next rotation
    """
    token_response = attendance_service.generate_rolling_token(db, location_code)

    return DataResponse(
        success=True,
        message="Rolling token generated successfully",
        data=token_response
    )


@router.get(
    "/rolling-token/info",
    response_model=DataResponse[RotationInfo],
    status_code=status.HTTP_200_OK
)
async def get_rotation_info():
    """Current slot, rotation interval and server time, for display clock sync"""
    return DataResponse(
        success=True,
        message="Rotation info retrieved successfully",
        data=attendance_service.get_rotation_info()
    )


@router.post(
    "/scan",
    response_model=DataResponse[ScanResult],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(1))]
)
async def scan_attendance(
    request: ScanRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Process attendance scan (check-in/check-out)

    **Authentication:**
    - Requires valid user authentication (role level >= 1)

    **Process:**
    1. Client IP whitelist (if enabled)
    2. GPS coordinate sanity check
    3. Rolling token signature and slot validation
    4. GPS accuracy and location radius check
    5. Check type, status and penalty computation
    6. Event and audit log stored together

    **Errors:**
    - 400: Scan rejected, `details` carries the rejection code and diagnostics
    - 503: Storage failure, safe to retry
    """
    user_id = current_user["user_id"]

    result = attendance_service.process_scan(
        db,
        user_id,
        request.token,
        request.latitude,
        request.longitude,
        accuracy=request.accuracy,
        client_meta=get_client_meta(http_request, request.device_id)
    )

    if not result.success:
        raise ScanRejected(result.error, details={"code": result.code, **(result.diagnostics or {})})

    return DataResponse(
        success=True,
        message=result.message,
        data=result
    )


@router.get(
    "/today",
    response_model=DataResponse[TodaySummary],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(1))]
)
async def get_my_today(
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Get current user's attendance summary for today

    **Authentication:**
    - Requires valid user authentication (role level >= 1)
    """
    user_id = current_user["user_id"]

    summary = attendance_service.get_today_summary(db, user_id)

    response = DataResponse(
        success=True,
        message="Today's attendance retrieved successfully",
        data=summary
    )

    return encrypt_response_data(response, settings)


@router.get(
    "/events/me",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(1))]
)
async def get_my_events(
    date: Optional[str] = Query(None, description="Work date in YYYY-MM-DD format (default: today)"),
    limit: int = Query(50, ge=1, le=100, description="Maximum records to return"),
    offset: int = Query(0, ge=0, description="Number of records to skip"),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Get current user's attendance events, newest first

    **Query Parameters:**
    - date: YYYY-MM-DD format (optional, default today)
    - limit: Max records (1-100, default 50)
    - offset: Skip records (default 0)
    """
    user_id = current_user["user_id"]

    target_date = None
    if date:
        try:
            target_date = dt.fromisoformat(date)
        except ValueError:
            raise BadRequestException("Invalid date format. Use YYYY-MM-DD")

    events = attendance_service.get_user_events(db, user_id, target_date, offset, limit)
    total = attendance_service.count_user_events(db, user_id, target_date)

    response = PaginationResponse[AttendanceEvent](
        success=True,
        message="Events retrieved successfully",
        data=events,
        total=total,
        page=offset // limit + 1,
        size=limit,
        pages=(total + limit - 1) // limit
    )

    return encrypt_response_data(response, settings)
