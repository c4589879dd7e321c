"""
Attendance Service - Scan pipeline and attendance read operations
"""
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar
from datetime import datetime, date, timedelta
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from scan_attendance.core.config import AttendanceConfig, get_attendance_config
from scan_attendance.core.enums import AttendanceMethod, CheckType, LogAction, PenaltyTier
from scan_attendance.core.exceptions import (
    InvalidCoordinates,
    IpNotAllowed,
    ScanRejected,
    StorageWriteFailure,
    TokenExpired,
    TokenMalformed,
    TokenSignatureMismatch,
    UnknownOrInactiveLocation
)
from scan_attendance.core.timeutils import ensure_utc, get_zone, to_local, utc_now
from scan_attendance.models.attendance_event import AttendanceEvent as AttendanceEventModel
from scan_attendance.models.location import Location
from scan_attendance.repositories.attendance_event_repository import AttendanceEventRepository
from scan_attendance.repositories.attendance_log_repository import AttendanceLogRepository
from scan_attendance.repositories.holiday_repository import HolidayRepository
from scan_attendance.repositories.late_penalty_tier_repository import LatePenaltyTierRepository
from scan_attendance.repositories.location_repository import LocationRepository
from scan_attendance.schemas.attendance import (
    AttendanceEvent,
    RollingTokenResponse,
    RotationInfo,
    ScanEventPayload,
    ScanResult,
    TodaySummary
)
from scan_attendance.services.geo_service import GeofenceResult, GeoPoint, GeoValidator
from scan_attendance.services.ip_validation_service import IpValidationService
from scan_attendance.services.schedule_service import ScheduleResolver
from scan_attendance.services import token_service
from scan_attendance.services.token_service import RotatingTokenService
from scan_attendance.services.status_calculator import AttendanceStatusCalculator, is_overnight
from atams.exceptions import NotFoundException
from atams.logging import get_logger
from atams.transaction import transaction

logger = get_logger(__name__)

T = TypeVar("T")

TOKEN_REJECTIONS = {
    token_service.INVALID_FORMAT: TokenMalformed,
    token_service.INVALID_STRUCTURE: TokenMalformed,
    token_service.INVALID_PAYLOAD: TokenMalformed,
    token_service.INVALID_SIGNATURE: TokenSignatureMismatch,
    token_service.EXPIRED: TokenExpired,
    token_service.UNKNOWN_LOCATION: UnknownOrInactiveLocation,
}


def run_atomic(db: Session, write: Callable[[], T], attempts: int, operation: str) -> T:
    """
    Run a multi-row write inside one transaction

    A unique-constraint collision (two writers taking the same per-day
    sequence) is retried up to `attempts` times. Any other database error,
    or running out of attempts, raises StorageWriteFailure; the rollback
    guarantees no event is left without its audit log.
    """
    attempts = max(1, attempts)
    for attempt in range(1, attempts + 1):
        try:
            with transaction(db):
                return write()
        except IntegrityError as e:
            if attempt < attempts:
                logger.warning(
                    f"{operation}: sequence collision, retrying ({attempt}/{attempts})",
                    extra={'extra_data': {'operation': operation, 'attempt': attempt}}
                )
                continue
            logger.error(
                f"{operation}: giving up after {attempts} attempts",
                extra={'extra_data': {'operation': operation, 'error': str(e.orig)}}
            )
            raise StorageWriteFailure(details={"operation": operation, "attempts": attempts}) from e
        except SQLAlchemyError as e:
            logger.error(
                f"{operation}: storage error",
                extra={'extra_data': {'operation': operation, 'error': str(e)}}
            )
            raise StorageWriteFailure(details={"operation": operation}) from e


class AttendanceService:
    def __init__(self, config: Optional[AttendanceConfig] = None) -> None:
        self.config = config or get_attendance_config()
        self.location_repo = LocationRepository()
        self.event_repo = AttendanceEventRepository()
        self.log_repo = AttendanceLogRepository()
        self.holiday_repo = HolidayRepository()
        self.tier_repo = LatePenaltyTierRepository()
        self.schedule_resolver = ScheduleResolver()
        self.calculator = AttendanceStatusCalculator()
        self.geo = GeoValidator(self.config)
        self.token_service = RotatingTokenService(self.config)
        self.ip_service = IpValidationService(self.config)

    def generate_rolling_token(self, db: Session, location_code: str, now: Optional[datetime] = None) -> RollingTokenResponse:
        """
        Generate rolling token for barcode display

        Args:
            db: Database session
            location_code: Location to generate token for
            now: Reference time (default: current UTC time)

        Returns:
            RollingTokenResponse: Token data

        Raises:
            NotFoundException: If location not found or inactive
        """
        location = self.location_repo.get_active_by_code(db, location_code)
        if not location:
            raise NotFoundException("Location not found")

        token = self.token_service.generate(location, ensure_utc(now) or utc_now())
        return RollingTokenResponse(
            token=token.token,
            location_code=token.location_code,
            location_name=token.location_name,
            slot=token.slot,
            generated_at=token.generated_at,
            expires_in=token.expires_in,
            rotation_interval=token.rotation_interval
        )

    def get_rotation_info(self, now: Optional[datetime] = None) -> RotationInfo:
        now = ensure_utc(now) or utc_now()
        return RotationInfo(
            rotation_interval=self.token_service.rotation_seconds,
            current_slot=self.token_service.current_slot(now),
            seconds_until_rotation=self.token_service.seconds_until_rotation(now),
            server_time=now
        )

    def process_scan(
        self,
        db: Session,
        user_id: int,
        token: str,
        latitude: float,
        longitude: float,
        accuracy: Optional[float] = None,
        client_meta: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None
    ) -> ScanResult:
        """
        Process an attendance scan with full validation

        Validation failures come back as ScanResult(success=False) with the
        rejection code and diagnostics; nothing is written for them.

        Raises:
            StorageWriteFailure: The event and its audit log could not be stored
        """
        now = ensure_utc(now) or utc_now()
        client_meta = client_meta or {}

        try:
            location, slot, geofence = self._validate_scan(
                db, token, latitude, longitude, accuracy, client_meta, now
            )
        except ScanRejected as e:
            logger.info(
                f"Scan rejected for user {user_id}: {e.code}",
                extra={'extra_data': {'user_id': user_id, 'code': e.code, 'reason': e.message}}
            )
            return ScanResult(
                success=False,
                error=e.message,
                code=e.code,
                diagnostics=e.details or None
            )

        event = run_atomic(
            db,
            lambda: self._write_scan_event(
                db, user_id, location, slot, geofence, latitude, longitude, accuracy, client_meta, now
            ),
            self.config.write_retries,
            "scan"
        )

        logger.info(
            f"Scan accepted for user {user_id}: {event.ae_check_type} at {location.lo_code}",
            extra={'extra_data': {
                'user_id': user_id,
                'event_id': event.ae_id,
                'check_type': event.ae_check_type,
                'status': event.ae_status,
            }}
        )

        local_time = to_local(now, location.lo_timezone).strftime('%H:%M')
        label = "Check-in" if event.ae_check_type == CheckType.IN.value else "Check-out"
        return ScanResult(
            success=True,
            message=f"{label} recorded at {local_time}",
            event=ScanEventPayload(
                id=event.ae_id,
                check_type=event.ae_check_type,
                scan_time=ensure_utc(event.ae_scan_time),
                location_name=location.lo_name,
                status=event.ae_status,
                late_minutes=event.ae_late_min,
                work_minutes=event.ae_work_minutes
            )
        )

    def _validate_scan(
        self,
        db: Session,
        token: str,
        latitude: float,
        longitude: float,
        accuracy: Optional[float],
        client_meta: Dict[str, Any],
        now: datetime
    ) -> Tuple[Location, int, GeofenceResult]:
        ip_address = client_meta.get("ip_address")
        if not self.ip_service.is_allowed(ip_address):
            raise IpNotAllowed("IP address not allowed", details={"ip_address": ip_address})

        if not self.geo.validate_coordinates(latitude, longitude):
            raise InvalidCoordinates("Invalid GPS coordinates", details={
                "latitude": latitude,
                "longitude": longitude,
            })

        validation = self.token_service.validate(
            token,
            now,
            location_lookup=lambda code: self.location_repo.get_active_by_code(db, code)
        )
        if not validation.valid:
            rejection = TOKEN_REJECTIONS.get(validation.reason, TokenMalformed)
            details = {"reason": validation.reason}
            if validation.location_code:
                details["location_code"] = validation.location_code
            raise rejection(validation.reason, details=details)

        location = validation.location
        geofence = self.geo.ensure_within_location(
            GeoPoint(latitude, longitude),
            GeoPoint(location.lo_latitude, location.lo_longitude),
            location.lo_allowed_radius_m,
            accuracy
        )
        return location, validation.slot, geofence

    def resolve_work_date(self, db: Session, user_id: int, scan_time: datetime, tz_name: Optional[str]) -> date:
        """Calendar date of the scan, or the previous one while an overnight shift is still open"""
        local_date = to_local(scan_time, tz_name).date()
        previous_date = local_date - timedelta(days=1)

        previous_shift = self.schedule_resolver.active_shift_for(db, user_id, previous_date)
        if previous_shift is None or not is_overnight(previous_shift):
            return local_date

        previous_latest = self.event_repo.get_latest_for_day(db, user_id, previous_date)
        return self.calculator.resolve_work_date(scan_time, tz_name, previous_shift, previous_latest)

    def _penalty_for(self, db: Session, late_minutes: int) -> Optional[PenaltyTier]:
        tier = self.tier_repo.find_for_late_minutes(db, late_minutes)
        if tier is None:
            return None
        return PenaltyTier(tier.lp_penalty_type)

    def _write_scan_event(
        self,
        db: Session,
        user_id: int,
        location: Location,
        slot: int,
        geofence: GeofenceResult,
        latitude: float,
        longitude: float,
        accuracy: Optional[float],
        client_meta: Dict[str, Any],
        now: datetime
    ) -> AttendanceEventModel:
        tz_name = location.lo_timezone
        work_date = self.resolve_work_date(db, user_id, now, tz_name)

        latest = self.event_repo.get_latest_for_day(db, user_id, work_date, lock=True)
        check_type = self.calculator.determine_check_type(latest)

        shift = self.schedule_resolver.active_shift_for(db, user_id, work_date)
        if shift is None:
            logger.warning(
                f"No active schedule for user {user_id} on {work_date}, defaulting to ON_TIME",
                extra={'extra_data': {'user_id': user_id, 'work_date': work_date.isoformat()}}
            )

        if check_type is CheckType.IN:
            result = self.calculator.compute_check_in(
                now, shift, work_date, tz_name,
                penalty_lookup=lambda minutes: self._penalty_for(db, minutes)
            )
        else:
            last_in = self.event_repo.get_event_of_type(db, user_id, work_date, CheckType.IN)
            result = self.calculator.compute_check_out(
                now, shift, work_date, tz_name,
                last_check_in=last_in.ae_scan_time if last_in else None
            )

        scan_date = to_local(now, tz_name).date()
        self.calculator.apply_holiday(result, self.holiday_repo.get_by_date(db, scan_date))

        event = self.event_repo.add(db, {
            "ae_user_id": user_id,
            "ae_location_id": location.lo_id,
            "ae_scan_time": now,
            "ae_work_date": work_date,
            "ae_sequence": self.event_repo.get_max_sequence(db, user_id, work_date) + 1,
            "ae_check_type": check_type.value,
            "ae_lat": latitude,
            "ae_lon": longitude,
            "ae_accuracy_m": accuracy,
            "ae_distance_m": geofence.distance_m,
            "ae_time_slot": slot,
            "ae_ip_address": client_meta.get("ip_address"),
            "ae_device_id": client_meta.get("device_id"),
            "ae_method": AttendanceMethod.AUTO.value,
            **result.to_event_fields()
        })

        action = LogAction.AUTO_CHECKIN if check_type is CheckType.IN else LogAction.AUTO_CHECKOUT
        self.log_repo.add(db, {
            "al_user_id": user_id,
            "al_attendance_id": event.ae_id,
            "al_action": action.value,
            "al_actor_id": user_id,
            "al_payload": {
                "location_code": location.lo_code,
                "distance_m": geofence.distance_m,
                "accuracy_m": accuracy,
                "time_slot": slot,
            }
        })
        return event

    def today_for(self, now: Optional[datetime] = None) -> date:
        now = ensure_utc(now) or utc_now()
        return now.astimezone(get_zone(self.config.default_timezone)).date()

    def get_today_summary(self, db: Session, user_id: int, now: Optional[datetime] = None) -> TodaySummary:
        """Get user's check-in/check-out state for today"""
        today = self.today_for(now)
        check_in = self.event_repo.get_event_of_type(db, user_id, today, CheckType.IN, latest=False)
        check_out = self.event_repo.get_event_of_type(db, user_id, today, CheckType.OUT, latest=True)
        shift = self.schedule_resolver.active_shift_for(db, user_id, today)

        return TodaySummary(
            work_date=today,
            has_checked_in=check_in is not None,
            has_checked_out=check_out is not None,
            check_in_time=ensure_utc(check_in.ae_scan_time) if check_in else None,
            check_out_time=ensure_utc(check_out.ae_scan_time) if check_out else None,
            status=check_in.ae_status if check_in else None,
            late_minutes=check_in.ae_late_min if check_in else 0,
            work_minutes=check_out.ae_work_minutes if check_out else 0,
            shift_name=shift.sh_name if shift else None
        )

    def get_user_events(
        self,
        db: Session,
        user_id: int,
        work_date: date = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[AttendanceEvent]:
        """Get user's attendance events for a work day, newest first"""
        if work_date is None:
            work_date = self.today_for()

        events = self.event_repo.get_user_events(db, user_id, work_date, skip, limit)
        return [AttendanceEvent.model_validate(e) for e in events]

    def count_user_events(self, db: Session, user_id: int, work_date: date = None) -> int:
        if work_date is None:
            work_date = self.today_for()
        return self.event_repo.count_user_events(db, user_id, work_date)
