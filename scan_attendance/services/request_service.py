"""
Request Service - Manual attendance requests and their review
"""
from typing import List, Optional
from datetime import datetime
from sqlalchemy.orm import Session

from scan_attendance.core.config import AttendanceConfig, get_attendance_config
from scan_attendance.core.enums import AttendanceMethod, AttendanceStatus, LogAction, RequestStatus
from scan_attendance.core.timeutils import ensure_utc, to_local, utc_now
from scan_attendance.models.attendance_request import AttendanceRequest as AttendanceRequestModel
from scan_attendance.repositories.attendance_event_repository import AttendanceEventRepository
from scan_attendance.repositories.attendance_log_repository import AttendanceLogRepository
from scan_attendance.repositories.attendance_request_repository import AttendanceRequestRepository
from scan_attendance.repositories.location_repository import LocationRepository
from scan_attendance.schemas.attendance import AttendanceEvent
from scan_attendance.schemas.request import AttendanceRequest, ManualRequestCreate
from scan_attendance.services.attendance_service import run_atomic
from scan_attendance.services.geo_service import GeoPoint, GeoValidator
from atams.exceptions import BadRequestException, ConflictException, NotFoundException
from atams.logging import get_logger

logger = get_logger(__name__)


class RequestService:
    def __init__(self, config: Optional[AttendanceConfig] = None) -> None:
        self.config = config or get_attendance_config()
        self.location_repo = LocationRepository()
        self.request_repo = AttendanceRequestRepository()
        self.event_repo = AttendanceEventRepository()
        self.log_repo = AttendanceLogRepository()
        self.geo = GeoValidator(self.config)

    def submit_manual_request(
        self,
        db: Session,
        user_id: int,
        data: ManualRequestCreate,
        now: Optional[datetime] = None
    ) -> AttendanceRequest:
        """
        Submit a manual attendance request for admin review

        Raises:
            NotFoundException: Unknown or inactive location
            BadRequestException: Invalid GPS coordinates or a future request time
        """
        now = ensure_utc(now) or utc_now()
        location = self.location_repo.get_active_by_code(db, data.location_code)
        if not location:
            raise NotFoundException("Location not found")

        request_time = ensure_utc(data.request_time) or now
        if request_time > now:
            raise BadRequestException("Request time cannot be in the future")

        distance = None
        if data.latitude is not None and data.longitude is not None:
            if not self.geo.validate_coordinates(data.latitude, data.longitude):
                raise BadRequestException("Invalid GPS coordinates")
            distance = round(self.geo.distance_meters(
                GeoPoint(data.latitude, data.longitude),
                GeoPoint(location.lo_latitude, location.lo_longitude)
            ), 2)

        def write() -> AttendanceRequestModel:
            db_request = self.request_repo.add(db, {
                "ar_user_id": user_id,
                "ar_location_id": location.lo_id,
                "ar_request_time": request_time,
                "ar_check_type": data.check_type,
                "ar_lat": data.latitude,
                "ar_lon": data.longitude,
                "ar_accuracy_m": data.accuracy,
                "ar_distance_m": distance,
                "ar_reason": data.reason,
                "ar_evidence_path": data.evidence_path,
                "ar_failure_reason": data.failure_reason,
                "ar_status": RequestStatus.PENDING.value,
            })
            self.log_repo.add(db, {
                "al_user_id": user_id,
                "al_request_id": db_request.ar_id,
                "al_action": LogAction.MANUAL_REQUEST.value,
                "al_actor_id": user_id,
                "al_reason": data.reason,
                "al_payload": {
                    "location_code": location.lo_code,
                    "check_type": data.check_type,
                    "distance_m": distance,
                },
            })
            return db_request

        db_request = run_atomic(db, write, 1, "manual_request")
        logger.info(
            f"Manual {data.check_type} request {db_request.ar_id} submitted by user {user_id}",
            extra={'extra_data': {'user_id': user_id, 'request_id': db_request.ar_id}}
        )
        return AttendanceRequest.model_validate(db_request)

    def _get_pending(self, db: Session, request_id: int) -> AttendanceRequestModel:
        db_request = self.request_repo.get_for_update(db, request_id)
        if not db_request:
            raise NotFoundException("Attendance request not found")
        if db_request.ar_status != RequestStatus.PENDING.value:
            raise ConflictException(
                "Attendance request already reviewed",
                details={"request_id": request_id, "status": db_request.ar_status}
            )
        return db_request

    def approve_request(
        self,
        db: Session,
        request_id: int,
        approver_id: int,
        note: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> AttendanceEvent:
        """
        Approve a pending request, creating a MANUAL attendance event

        Approved events are recorded as ON_TIME on the local date of the
        requested time.

        Raises:
            NotFoundException: Request not found
            ConflictException: Request is not PENDING
            StorageWriteFailure: Event, request update and log could not be stored
        """
        now = ensure_utc(now) or utc_now()

        def write():
            db_request = self._get_pending(db, request_id)
            location = self.location_repo.get(db, db_request.ar_location_id)
            tz_name = location.lo_timezone if location else None
            request_time = ensure_utc(db_request.ar_request_time)
            work_date = to_local(request_time, tz_name).date()

            db_request.ar_status = RequestStatus.APPROVED.value
            db_request.ar_admin_note = note
            db_request.ar_reviewed_by = approver_id
            db_request.ar_reviewed_at = now

            event = self.event_repo.add(db, {
                "ae_user_id": db_request.ar_user_id,
                "ae_location_id": db_request.ar_location_id,
                "ae_scan_time": request_time,
                "ae_work_date": work_date,
                "ae_sequence": self.event_repo.get_max_sequence(db, db_request.ar_user_id, work_date) + 1,
                "ae_check_type": db_request.ar_check_type,
                "ae_lat": db_request.ar_lat,
                "ae_lon": db_request.ar_lon,
                "ae_accuracy_m": db_request.ar_accuracy_m,
                "ae_distance_m": db_request.ar_distance_m,
                "ae_status": AttendanceStatus.ON_TIME.value,
                "ae_method": AttendanceMethod.MANUAL.value,
                "ae_approved_by": approver_id,
                "ae_approved_at": now,
            })
            self.log_repo.add(db, {
                "al_user_id": db_request.ar_user_id,
                "al_attendance_id": event.ae_id,
                "al_request_id": db_request.ar_id,
                "al_action": LogAction.MANUAL_APPROVE.value,
                "al_actor_id": approver_id,
                "al_reason": note,
            })
            return event

        event = run_atomic(db, write, self.config.write_retries, "manual_approve")
        logger.info(
            f"Attendance request {request_id} approved by {approver_id}",
            extra={'extra_data': {'request_id': request_id, 'event_id': event.ae_id}}
        )
        return AttendanceEvent.model_validate(event)

    def reject_request(
        self,
        db: Session,
        request_id: int,
        approver_id: int,
        note: str,
        now: Optional[datetime] = None
    ) -> AttendanceRequest:
        """
        Reject a pending request; a note explaining the rejection is required

        Raises:
            BadRequestException: Missing note
            NotFoundException: Request not found
            ConflictException: Request is not PENDING
        """
        if not note or not note.strip():
            raise BadRequestException("A note is required to reject a request")
        now = ensure_utc(now) or utc_now()

        def write() -> AttendanceRequestModel:
            db_request = self._get_pending(db, request_id)
            db_request.ar_status = RequestStatus.REJECTED.value
            db_request.ar_admin_note = note.strip()
            db_request.ar_reviewed_by = approver_id
            db_request.ar_reviewed_at = now
            db.flush()

            self.log_repo.add(db, {
                "al_user_id": db_request.ar_user_id,
                "al_request_id": db_request.ar_id,
                "al_action": LogAction.MANUAL_REJECT.value,
                "al_actor_id": approver_id,
                "al_reason": note.strip(),
            })
            return db_request

        db_request = run_atomic(db, write, 1, "manual_reject")
        logger.info(
            f"Attendance request {request_id} rejected by {approver_id}",
            extra={'extra_data': {'request_id': request_id}}
        )
        return AttendanceRequest.model_validate(db_request)

    def get_requests(
        self,
        db: Session,
        user_id: int = None,
        status: str = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[AttendanceRequest]:
        requests = self.request_repo.get_requests_with_filters(db, user_id, status, skip, limit)
        return [AttendanceRequest.model_validate(r) for r in requests]

    def count_requests(self, db: Session, user_id: int = None, status: str = None) -> int:
        return self.request_repo.count_requests_with_filters(db, user_id, status)
