"""
Location Model - Physical places where the rotating barcode is displayed
"""
from sqlalchemy import Column, String, DateTime, Float, Integer, Boolean
from sqlalchemy.sql import func
from atams.db import Base

from scan_attendance.db.types import BigIntPk, HRIS_SCHEMA


class Location(Base):
    """Location model for hris schema - Table: hris.locations"""
    __tablename__ = "locations"
    __table_args__ = {"schema": HRIS_SCHEMA}

    lo_id = Column(BigIntPk, primary_key=True, index=True, autoincrement=True)
    lo_code = Column(String(50), nullable=False, unique=True, index=True)  # e.g. OFFICE-JKT-01
    lo_name = Column(String(255), nullable=False)
    lo_latitude = Column(Float, nullable=False)
    lo_longitude = Column(Float, nullable=False)
    lo_allowed_radius_m = Column(Integer, nullable=False, default=100)
    lo_timezone = Column(String(64), nullable=False, default="UTC")  # IANA name, e.g. Asia/Jakarta
    lo_is_active = Column(Boolean, nullable=False, default=True)
    lo_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    lo_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
