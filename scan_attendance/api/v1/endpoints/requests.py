"""
Attendance Request Endpoints - Manual attendance submission and review
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Literal, Optional

from scan_attendance.db.session import get_db
from scan_attendance.services.request_service import RequestService
from scan_attendance.schemas import (
    ManualRequestCreate,
    ReviewRequest,
    AttendanceRequest,
    AttendanceEvent,
    DataResponse,
    PaginationResponse
)
from scan_attendance.api.deps import require_auth, require_min_role_level
from scan_attendance.core.config import settings
from atams.encryption import encrypt_response_data

router = APIRouter()
request_service = RequestService()

RequestStatusFilter = Literal["PENDING", "APPROVED", "REJECTED"]


@router.post(
    "",
    response_model=DataResponse[AttendanceRequest],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_min_role_level(1))]
)
async def submit_request(
    data: ManualRequestCreate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Submit a manual attendance request when scanning failed

    **Body:**
    - location_code, check_type (IN/OUT), reason (10-500 chars)
    - optional request_time, GPS fix, evidence path and failure reason
    """
    result = request_service.submit_manual_request(db, current_user["user_id"], data)

    return DataResponse(
        success=True,
        message="Attendance request submitted successfully",
        data=result
    )


@router.get(
    "/me",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(1))]
)
async def get_my_requests(
    status_filter: Optional[RequestStatusFilter] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """Get current user's manual attendance requests"""
    user_id = current_user["user_id"]
    requests = request_service.get_requests(db, user_id, status_filter, offset, limit)
    total = request_service.count_requests(db, user_id, status_filter)

    response = PaginationResponse[AttendanceRequest](
        success=True,
        message="Requests retrieved successfully",
        data=requests,
        total=total,
        page=offset // limit + 1,
        size=limit,
        pages=(total + limit - 1) // limit
    )

    return encrypt_response_data(response, settings)


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(50))]
)
async def get_requests_admin(
    user_id: Optional[int] = Query(None, description="Filter by user ID"),
    status_filter: Optional[RequestStatusFilter] = Query("PENDING", alias="status"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    """
    Get manual attendance requests (Admin only)

    **Authentication:**
    - Requires role level >= 50 (Admin or above)
    """
    requests = request_service.get_requests(db, user_id, status_filter, offset, limit)
    total = request_service.count_requests(db, user_id, status_filter)

    response = PaginationResponse[AttendanceRequest](
        success=True,
        message="Requests retrieved successfully",
        data=requests,
        total=total,
        page=offset // limit + 1,
        size=limit,
        pages=(total + limit - 1) // limit
    )

    return encrypt_response_data(response, settings)


@router.post(
    "/{request_id}/approve",
    response_model=DataResponse[AttendanceEvent],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(50))]
)
async def approve_request(
    request_id: int,
    review: ReviewRequest,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Approve a pending request (Admin only)

    Creates a MANUAL attendance event marked ON_TIME.

    **Errors:**
    - 404: Request not found
    - 409: Request already reviewed
    """
    event = request_service.approve_request(db, request_id, current_user["user_id"], review.admin_note)

    return DataResponse(
        success=True,
        message="Attendance request approved",
        data=event
    )


@router.post(
    "/{request_id}/reject",
    response_model=DataResponse[AttendanceRequest],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(50))]
)
async def reject_request(
    request_id: int,
    review: ReviewRequest,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Reject a pending request (Admin only); admin_note is required

    **Errors:**
    - 400: Missing note
    - 404: Request not found
    - 409: Request already reviewed
    """
    result = request_service.reject_request(db, request_id, current_user["user_id"], review.admin_note)

    return DataResponse(
        success=True,
        message="Attendance request rejected",
        data=result
    )
