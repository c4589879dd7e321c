from datetime import date, time, timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError

from scan_attendance.core.config import AttendanceConfig
from scan_attendance.core.exceptions import StorageWriteFailure
from scan_attendance.models import AttendanceEvent, AttendanceLog, Location
from scan_attendance.services.attendance_service import AttendanceService
from tests.conftest import SECRET, utc

DAY = date(2024, 1, 15)
OFFICE_LAT, OFFICE_LNG = -6.2, 106.8
# ~200 m north of the office
FAR_LAT = OFFICE_LAT + 200 / 111194.93


@pytest.fixture
def service(config):
    return AttendanceService(config)


@pytest.fixture
def office(make_location):
    return make_location(latitude=OFFICE_LAT, longitude=OFFICE_LNG, radius=100)


@pytest.fixture
def morning(make_shift, assign_shift):
    shift = make_shift()
    assign_shift(1, shift)
    return shift


def scan(service, db, location, now, user_id=1, lat=OFFICE_LAT, lng=OFFICE_LNG, accuracy=10.0, **kwargs):
    token = service.token_service.generate(location, now).token
    return service.process_scan(db, user_id, token, lat, lng, accuracy=accuracy, now=now, **kwargs)


def event_count(db):
    return db.query(AttendanceEvent).count()


def test_accuracy_rejected_before_distance(service, db, office):
    result = scan(service, db, office, utc(2024, 1, 15, 9, 0), lat=FAR_LAT, accuracy=150)

    assert result.success is False
    assert result.code == "GpsAccuracyTooLow"
    assert result.diagnostics["accuracy_m"] == 150
    assert "distance_m" not in result.diagnostics
    assert event_count(db) == 0


def test_outside_radius_reports_distance(service, db, office):
    result = scan(service, db, office, utc(2024, 1, 15, 9, 0), lat=FAR_LAT)

    assert result.success is False
    assert result.code == "OutsideAllowedRadius"
    assert result.diagnostics["distance_m"] == pytest.approx(200.0, abs=0.01)
    assert result.diagnostics["allowed_radius_m"] == 100
    assert event_count(db) == 0


def test_null_island_rejected(service, db, office):
    result = scan(service, db, office, utc(2024, 1, 15, 9, 0), lat=0.0, lng=0.0)

    assert result.code == "InvalidCoordinates"
    assert event_count(db) == 0


def test_expired_token(service, db, office):
    issued = utc(2024, 1, 15, 9, 0)
    token = service.token_service.generate(office, issued).token

    result = service.process_scan(db, 1, token, OFFICE_LAT, OFFICE_LNG, now=issued + timedelta(minutes=10))

    assert result.code == "TokenExpired"
    assert result.error == "expired"
    assert result.diagnostics["location_code"] == "OFFICE-01"


def test_token_from_other_secret(service, db, office):
    other = AttendanceService(AttendanceConfig(secret_key="another-secret"))
    now = utc(2024, 1, 15, 9, 0)
    token = other.token_service.generate(office, now).token

    result = service.process_scan(db, 1, token, OFFICE_LAT, OFFICE_LNG, now=now)
    assert result.code == "TokenSignatureMismatch"


def test_garbage_token(service, db, office):
    result = service.process_scan(db, 1, "%%%", OFFICE_LAT, OFFICE_LNG, now=utc(2024, 1, 15, 9, 0))
    assert result.code == "TokenMalformed"


def test_unknown_and_inactive_location(service, db, make_location):
    now = utc(2024, 1, 15, 9, 0)
    ghost = Location(lo_code="GHOST", lo_name="Ghost")
    closed = make_location(code="CLOSED", active=False)

    assert scan(service, db, ghost, now).code == "UnknownOrInactiveLocation"
    assert scan(service, db, closed, now).code == "UnknownOrInactiveLocation"


def test_alternation_in_out_in(service, db, office, morning):
    first = scan(service, db, office, utc(2024, 1, 15, 8, 55))
    second = scan(service, db, office, utc(2024, 1, 15, 17, 5))
    third = scan(service, db, office, utc(2024, 1, 15, 18, 0))

    assert [first.event.check_type, second.event.check_type, third.event.check_type] == ["IN", "OUT", "IN"]
    assert first.event.status == "ON_TIME"
    assert second.event.work_minutes == 490
    assert first.event.location_name == "Office OFFICE-01"

    actions = [log.al_action for log in db.query(AttendanceLog).order_by(AttendanceLog.al_id)]
    assert actions == ["AUTO_CHECKIN", "AUTO_CHECKOUT", "AUTO_CHECKIN"]

    stored = db.query(AttendanceEvent).order_by(AttendanceEvent.ae_sequence).all()
    assert [e.ae_sequence for e in stored] == [1, 2, 3]
    assert stored[0].ae_method == "AUTO"
    assert stored[0].ae_work_date == DAY


def test_scan_log_payload(service, db, office, morning):
    now = utc(2024, 1, 15, 8, 55)
    result = scan(service, db, office, now, accuracy=12.5)

    log = db.query(AttendanceLog).one()
    assert log.al_attendance_id == result.event.id
    assert log.al_actor_id == 1
    assert log.al_payload["location_code"] == "OFFICE-01"
    assert log.al_payload["accuracy_m"] == 12.5
    assert log.al_payload["distance_m"] == 0
    assert log.al_payload["time_slot"] == service.token_service.current_slot(now)


def test_late_check_in_with_penalty(service, db, office, morning, seed_penalty_tiers):
    seed_penalty_tiers()
    result = scan(service, db, office, utc(2024, 1, 15, 10, 0))

    assert result.event.status == "LATE"
    assert result.event.late_minutes == 60
    assert db.query(AttendanceEvent).one().ae_penalty_tier == "DEDUCTION"


def test_no_schedule_is_on_time(service, db, office):
    result = scan(service, db, office, utc(2024, 1, 15, 13, 0))

    assert result.success is True
    assert result.event.status == "ON_TIME"
    assert result.event.late_minutes == 0


def test_overnight_checkout_belongs_to_previous_day(service, db, office, make_shift, assign_shift):
    assign_shift(1, make_shift("SHIFT-NIGHT", start=time(22, 0), end=time(7, 0)))

    check_in = scan(service, db, office, utc(2024, 1, 15, 22, 0))
    check_out = scan(service, db, office, utc(2024, 1, 16, 6, 30))

    assert check_in.event.check_type == "IN"
    assert check_out.event.check_type == "OUT"
    assert check_out.event.work_minutes == 510

    out_event = db.query(AttendanceEvent).filter(AttendanceEvent.ae_check_type == "OUT").one()
    assert out_event.ae_work_date == DAY


def test_holiday_sets_multiplier(service, db, office, morning, make_holiday):
    make_holiday(DAY, multiplier=3.0)
    scan(service, db, office, utc(2024, 1, 15, 9, 0))

    event = db.query(AttendanceEvent).one()
    assert event.ae_is_holiday is True
    assert event.ae_overtime_multiplier == 3.0


def test_overnight_checkout_uses_scan_date_for_holiday(service, db, office, make_shift, assign_shift, make_holiday):
    assign_shift(1, make_shift("SHIFT-NIGHT", start=time(22, 0), end=time(7, 0)))
    make_holiday(date(2024, 1, 16), multiplier=2.5)

    scan(service, db, office, utc(2024, 1, 15, 22, 0))
    scan(service, db, office, utc(2024, 1, 16, 6, 30))

    check_in, check_out = db.query(AttendanceEvent).order_by(AttendanceEvent.ae_sequence).all()
    assert check_in.ae_is_holiday is False
    assert check_out.ae_work_date == DAY
    assert check_out.ae_is_holiday is True
    assert check_out.ae_overtime_multiplier == 2.5


def test_ip_whitelist(db, office):
    service = AttendanceService(AttendanceConfig(
        secret_key=SECRET,
        ip_whitelist_enabled=True,
        ip_whitelist=["10.0.0.0/8"],
    ))
    now = utc(2024, 1, 15, 9, 0)

    rejected = scan(service, db, office, now, client_meta={"ip_address": "8.8.8.8"})
    assert rejected.code == "IpNotAllowed"

    accepted = scan(service, db, office, now, client_meta={"ip_address": "10.1.2.3", "device_id": "dev-1"})
    assert accepted.success is True
    event = db.query(AttendanceEvent).one()
    assert event.ae_ip_address == "10.1.2.3"
    assert event.ae_device_id == "dev-1"


def test_storage_failure_leaves_nothing(service, db, office, monkeypatch):
    def broken(*args, **kwargs):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(service.log_repo, "add", broken)

    with pytest.raises(StorageWriteFailure):
        scan(service, db, office, utc(2024, 1, 15, 9, 0))

    assert event_count(db) == 0


def test_sequence_collision_is_retried(service, db, office, monkeypatch):
    scan(service, db, office, utc(2024, 1, 15, 9, 0))

    real = service.event_repo.get_max_sequence
    calls = []

    def stale_once(db_, user_id, work_date):
        calls.append(work_date)
        return 0 if len(calls) == 1 else real(db_, user_id, work_date)

    monkeypatch.setattr(service.event_repo, "get_max_sequence", stale_once)
    result = scan(service, db, office, utc(2024, 1, 15, 17, 0))

    assert result.success is True
    assert result.event.check_type == "OUT"
    assert len(calls) == 2
    assert event_count(db) == 2


def test_sequence_collision_exhausts_retries(service, db, office, monkeypatch):
    scan(service, db, office, utc(2024, 1, 15, 9, 0))
    monkeypatch.setattr(service.event_repo, "get_max_sequence", lambda *args: 0)

    with pytest.raises(StorageWriteFailure) as exc:
        scan(service, db, office, utc(2024, 1, 15, 17, 0))

    assert exc.value.status_code == 503
    assert exc.value.details["attempts"] == 3
    assert event_count(db) == 1


def test_today_summary(service, db, office, morning):
    scan(service, db, office, utc(2024, 1, 15, 10, 0))
    scan(service, db, office, utc(2024, 1, 15, 17, 30))

    summary = service.get_today_summary(db, 1, now=utc(2024, 1, 15, 18, 0))

    assert summary.work_date == DAY
    assert summary.has_checked_in is True
    assert summary.has_checked_out is True
    assert summary.status == "LATE"
    assert summary.late_minutes == 60
    assert summary.work_minutes == 450
    assert summary.shift_name == "Morning"
    assert summary.check_in_time == utc(2024, 1, 15, 10, 0)


def test_empty_today_summary(service, db):
    summary = service.get_today_summary(db, 99, now=utc(2024, 1, 15, 18, 0))

    assert summary.has_checked_in is False
    assert summary.check_in_time is None
    assert summary.shift_name is None


def test_user_events_newest_first(service, db, office):
    scan(service, db, office, utc(2024, 1, 15, 9, 0))
    scan(service, db, office, utc(2024, 1, 15, 17, 0))

    events = service.get_user_events(db, 1, DAY)

    assert [e.ae_check_type for e in events] == ["OUT", "IN"]
    assert events[0].ae_scan_time == utc(2024, 1, 15, 17, 0)
    assert service.count_user_events(db, 1, DAY) == 2


def test_rolling_token_and_rotation_info(service, db, office):
    now = utc(2024, 1, 15, 9, 1)
    token = service.generate_rolling_token(db, "OFFICE-01", now)
    info = service.get_rotation_info(now)

    assert token.location_name == "Office OFFICE-01"
    assert token.expires_in == 240
    assert info.current_slot == token.slot
    assert info.seconds_until_rotation == 240
    assert info.rotation_interval == 300
