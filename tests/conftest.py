import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ATLAS_APP_CODE", "HRIS")
os.environ.setdefault("APP_NAME", "scan-attendance-test")
os.environ.setdefault("APP_VERSION", "0.0.0")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("BARCODE_SECRET_KEY", "test-secret")
os.environ.setdefault("DISPLAY_API_KEY", "display-key")

from datetime import date, datetime, time, timezone

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from atams.db import Base
from scan_attendance.core.config import AttendanceConfig
from scan_attendance.db.types import HRIS_SCHEMA
from scan_attendance.models import (
    Holiday,
    LatePenaltyTier,
    Location,
    Shift,
    UserSchedule,
)

SECRET = "test-secret"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def attach_schema(dbapi_connection, connection_record):
        dbapi_connection.execute(f"ATTACH DATABASE ':memory:' AS {HRIS_SCHEMA}")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def config():
    return AttendanceConfig(secret_key=SECRET)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def make_location(db):
    def _make(code="OFFICE-01", latitude=-6.2, longitude=106.8, radius=100, tz="UTC", active=True):
        location = Location(
            lo_code=code,
            lo_name=f"Office {code}",
            lo_latitude=latitude,
            lo_longitude=longitude,
            lo_allowed_radius_m=radius,
            lo_timezone=tz,
            lo_is_active=active,
        )
        db.add(location)
        db.commit()
        return location
    return _make


@pytest.fixture
def make_shift(db):
    def _make(code="SHIFT-MORNING", start=time(9, 0), end=time(17, 0), grace=15,
              early_checkout=0, allow_early=False, active=True):
        shift = Shift(
            sh_code=code,
            sh_name=code.replace("SHIFT-", "").title(),
            sh_start_time=start,
            sh_end_time=end,
            sh_late_after_min=grace,
            sh_early_checkout_min=early_checkout,
            sh_allow_checkout_before_end=allow_early,
            sh_is_active=active,
        )
        db.add(shift)
        db.commit()
        return shift
    return _make


@pytest.fixture
def assign_shift(db):
    def _assign(user_id, shift, start_date=date(2024, 1, 1), end_date=None):
        schedule = UserSchedule(
            us_user_id=user_id,
            us_shift_id=shift.sh_id,
            us_start_date=start_date,
            us_end_date=end_date,
        )
        db.add(schedule)
        db.commit()
        return schedule
    return _assign


@pytest.fixture
def seed_penalty_tiers(db):
    def _seed():
        tiers = [
            ("TIER-1", "Late 1-15 minutes", 1, 15, "WARNING", 0),
            ("TIER-2", "Late 16-30 minutes", 16, 30, "DEDUCTION", 25),
            ("TIER-3", "Late 31-60 minutes", 31, 60, "DEDUCTION", 50),
            ("TIER-4", "Late over 60 minutes", 61, None, "HALF_DAY", 50),
        ]
        for code, name, low, high, penalty, pct in tiers:
            db.add(LatePenaltyTier(
                lp_code=code,
                lp_name=name,
                lp_min_late_min=low,
                lp_max_late_min=high,
                lp_penalty_type=penalty,
                lp_deduction_pct=pct,
            ))
        db.commit()
    return _seed


@pytest.fixture
def make_holiday(db):
    def _make(day, name="Holiday", multiplier=2.0):
        holiday = Holiday(ho_date=day, ho_name=name, ho_overtime_multiplier=multiplier)
        db.add(holiday)
        db.commit()
        return holiday
    return _make
