"""
Maintenance Endpoints - Scheduled attendance jobs
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date as dt

from scan_attendance.db.session import get_db
from scan_attendance.services.absence_service import AbsenceService
from scan_attendance.schemas import AbsenceSweepResult, DataResponse
from scan_attendance.api.deps import require_min_role_level
from atams.exceptions import BadRequestException

router = APIRouter()
absence_service = AbsenceService()


@router.post(
    "/absence-sweep",
    response_model=DataResponse[AbsenceSweepResult],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(50))]
)
async def absence_sweep(
    date: Optional[str] = Query(None, description="Date to check in YYYY-MM-DD format (default: today)"),
    dry_run: bool = Query(False, description="List absent users without marking them"),
    db: Session = Depends(get_db)
):
    """
    Mark scheduled users without any attendance as ABSENT

    **Authorization:**
    - Requires role level >= 50 (Admin or above)

    **Use case:**
    - Run once daily after the last shift of the day via a scheduled job
    - Only one sweep can run at a time (409 otherwise)
    """
    target_date = None
    if date:
        try:
            target_date = dt.fromisoformat(date)
        except ValueError:
            raise BadRequestException("Invalid date format. Use YYYY-MM-DD")

    result = absence_service.run_absence_sweep(db, target_date, dry_run=dry_run)

    message = (
        f"Found {len(result.user_ids)} absent user(s) (dry run)"
        if dry_run
        else f"Marked {result.created_count} user(s) as ABSENT"
    )

    return DataResponse(
        success=True,
        message=message,
        data=result
    )
