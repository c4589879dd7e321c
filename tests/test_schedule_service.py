from datetime import date

from scan_attendance.services.schedule_service import ScheduleResolver


def test_no_schedule(db):
    assert ScheduleResolver().active_schedule_for(db, 1, date(2024, 3, 1)) is None


def test_open_ended_schedule(db, make_shift, assign_shift):
    shift = make_shift()
    schedule = assign_shift(1, shift, start_date=date(2024, 1, 1))

    resolver = ScheduleResolver()
    assert resolver.active_schedule_for(db, 1, date(2030, 1, 1)).us_id == schedule.us_id
    assert resolver.active_schedule_for(db, 1, date(2023, 12, 31)) is None
    assert resolver.active_schedule_for(db, 2, date(2024, 3, 1)) is None


def test_end_date_is_inclusive(db, make_shift, assign_shift):
    shift = make_shift()
    assign_shift(1, shift, start_date=date(2024, 1, 1), end_date=date(2024, 1, 31))

    resolver = ScheduleResolver()
    assert resolver.active_schedule_for(db, 1, date(2024, 1, 31)) is not None
    assert resolver.active_schedule_for(db, 1, date(2024, 2, 1)) is None


def test_overlap_prefers_latest_start(db, make_shift, assign_shift):
    morning = make_shift("SHIFT-MORNING")
    night = make_shift("SHIFT-NIGHT")
    assign_shift(1, morning, start_date=date(2024, 1, 1))
    latest = assign_shift(1, night, start_date=date(2024, 2, 1), end_date=date(2024, 2, 29))

    resolver = ScheduleResolver()
    assert resolver.active_schedule_for(db, 1, date(2024, 2, 10)).us_id == latest.us_id
    assert resolver.active_schedule_for(db, 1, date(2024, 3, 1)).shift.sh_code == "SHIFT-MORNING"


def test_overlap_same_start_prefers_newest(db, make_shift, assign_shift):
    morning = make_shift("SHIFT-MORNING")
    night = make_shift("SHIFT-NIGHT")
    assign_shift(1, morning, start_date=date(2024, 1, 1))
    newest = assign_shift(1, night, start_date=date(2024, 1, 1))

    schedule = ScheduleResolver().active_schedule_for(db, 1, date(2024, 1, 5))
    assert schedule.us_id == newest.us_id


def test_inactive_shift_has_no_active_shift(db, make_shift, assign_shift):
    assign_shift(1, make_shift(active=False))

    resolver = ScheduleResolver()
    assert resolver.active_schedule_for(db, 1, date(2024, 1, 5)) is not None
    assert resolver.active_shift_for(db, 1, date(2024, 1, 5)) is None
