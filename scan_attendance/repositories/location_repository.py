"""
Location Repository - Data access layer for barcode locations
"""
from typing import Optional
from sqlalchemy.orm import Session

from atams.db import BaseRepository
from scan_attendance.models.location import Location


class LocationRepository(BaseRepository[Location]):
    def __init__(self):
        super().__init__(Location)

    def get_by_code(self, db: Session, code: str) -> Optional[Location]:
        """Get location by code using ORM"""
        return db.query(Location).filter(Location.lo_code == code).first()

    def get_active_by_code(self, db: Session, code: str) -> Optional[Location]:
        """Get location by code, only when it is active"""
        return db.query(Location).filter(
            Location.lo_code == code,
            Location.lo_is_active.is_(True)
        ).first()
