"""
Late Penalty Tier Repository - Late-minute band lookup
"""
from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session

from atams.db import BaseRepository
from scan_attendance.models.late_penalty_tier import LatePenaltyTier


class LatePenaltyTierRepository(BaseRepository[LatePenaltyTier]):
    def __init__(self):
        super().__init__(LatePenaltyTier)

    def find_for_late_minutes(self, db: Session, late_minutes: int) -> Optional[LatePenaltyTier]:
        """Tier with the highest minimum that still contains late_minutes"""
        return db.query(LatePenaltyTier).filter(
            LatePenaltyTier.lp_min_late_min <= late_minutes,
            or_(
                LatePenaltyTier.lp_max_late_min.is_(None),
                LatePenaltyTier.lp_max_late_min >= late_minutes
            )
        ).order_by(LatePenaltyTier.lp_min_late_min.desc()).first()
