import threading
from datetime import date

import pytest

from atams.exceptions import ConflictException
from scan_attendance.models import AttendanceEvent, AttendanceLog
from scan_attendance.services import absence_service
from scan_attendance.services.absence_service import AbsenceService
from scan_attendance.services.attendance_service import AttendanceService
from tests.conftest import utc

DAY = date(2024, 1, 15)


@pytest.fixture
def service(config):
    return AbsenceService(config)


@pytest.fixture
def scheduled_users(make_shift, assign_shift):
    shift = make_shift()
    for user_id in (1, 2, 3):
        assign_shift(user_id, shift)
    # user 4's schedule ended before the sweep date
    assign_shift(4, shift, start_date=date(2023, 1, 1), end_date=date(2023, 12, 31))
    return shift


def test_marks_scheduled_users_without_attendance(service, db, config, make_location, scheduled_users):
    office = make_location()
    scanner = AttendanceService(config)
    now = utc(2024, 1, 15, 9, 0)
    token = scanner.token_service.generate(office, now).token
    assert scanner.process_scan(db, 2, token, -6.2, 106.8, now=now).success

    result = service.run_absence_sweep(db, DAY)

    assert result.target_date == DAY
    assert result.user_ids == [1, 3]
    assert result.created_count == 2
    assert result.dry_run is False

    absences = db.query(AttendanceEvent).filter(AttendanceEvent.ae_method == "SYSTEM").all()
    assert sorted(e.ae_user_id for e in absences) == [1, 3]
    absent = absences[0]
    assert absent.ae_status == "ABSENT"
    assert absent.ae_penalty_tier == "ABSENT"
    assert absent.ae_check_type == "IN"
    assert absent.ae_location_id is None
    assert absent.ae_sequence == 0
    assert absent.ae_scan_time.replace(tzinfo=None) == utc(2024, 1, 15).replace(tzinfo=None)


def test_absence_log_payload(service, db, scheduled_users):
    service.run_absence_sweep(db, DAY)

    logs = db.query(AttendanceLog).filter(AttendanceLog.al_action == "SYSTEM_ABSENT").all()
    assert len(logs) == 3
    payload = logs[0].al_payload
    assert payload["date"] == "2024-01-15"
    assert payload["shift_name"] == "Morning"
    assert payload["schedule_id"] is not None
    assert logs[0].al_actor_id is None


def test_dry_run_writes_nothing(service, db, scheduled_users):
    result = service.run_absence_sweep(db, DAY, dry_run=True)

    assert result.user_ids == [1, 2, 3]
    assert result.created_count == 0
    assert result.dry_run is True
    assert db.query(AttendanceEvent).count() == 0


def test_sweep_is_idempotent(service, db, scheduled_users):
    assert service.run_absence_sweep(db, DAY).created_count == 3

    again = service.run_absence_sweep(db, DAY)
    assert again.user_ids == []
    assert again.created_count == 0


def test_mark_absent_skips_users_with_attendance(service, db, scheduled_users):
    assert service.mark_absent(db, 1, DAY) is not None
    assert service.mark_absent(db, 1, DAY) is None
    assert db.query(AttendanceEvent).count() == 1


def test_absence_does_not_affect_alternation(db, config, make_location, scheduled_users):
    AbsenceService(config).mark_absent(db, 1, DAY)
    office = make_location()
    scanner = AttendanceService(config)
    now = utc(2024, 1, 15, 11, 0)
    token = scanner.token_service.generate(office, now).token

    result = scanner.process_scan(db, 1, token, -6.2, 106.8, now=now)

    assert result.event.check_type == "IN"
    assert result.event.status == "LATE"


def test_overlapping_sweeps_are_refused(service, db, monkeypatch):
    lock = threading.Lock()
    monkeypatch.setattr(absence_service, "_sweep_lock", lock)
    lock.acquire()
    try:
        with pytest.raises(ConflictException):
            service.run_absence_sweep(db, DAY)
    finally:
        lock.release()
