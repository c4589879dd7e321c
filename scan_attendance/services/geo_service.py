"""
Geo Service - Coordinate sanity checks and geofence validation
"""
import math
from dataclasses import dataclass
from typing import Optional

from scan_attendance.core.config import AttendanceConfig
from scan_attendance.core.exceptions import GpsAccuracyTooLow, OutsideAllowedRadius

EARTH_RADIUS_M = 6371000

# ~11m around (0, 0): devices report this when they have no fix
NULL_ISLAND_DEGREES = 0.0001


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class GeofenceResult:
    accepted: bool
    distance_m: Optional[float]
    allowed_radius_m: int
    accuracy_m: Optional[float] = None
    reason: Optional[str] = None


class GeoValidator:
    def __init__(self, config: AttendanceConfig) -> None:
        self.max_accuracy_m = config.max_accuracy_m

    @staticmethod
    def validate_coordinates(lat: float, lng: float) -> bool:
        """Reject out-of-range values and the (0, 0) no-fix position"""
        if lat is None or lng is None:
            return False
        if math.isnan(lat) or math.isnan(lng):
            return False
        if lat < -90 or lat > 90:
            return False
        if lng < -180 or lng > 180:
            return False
        if abs(lat) < NULL_ISLAND_DEGREES and abs(lng) < NULL_ISLAND_DEGREES:
            return False
        return True

    @staticmethod
    def distance_meters(p1: GeoPoint, p2: GeoPoint) -> float:
        """
        Calculate distance between two coordinates using Haversine formula

        Returns:
            float: Distance in meters
        """
        lat1_rad = math.radians(p1.latitude)
        lat2_rad = math.radians(p2.latitude)
        delta_lat = math.radians(p2.latitude - p1.latitude)
        delta_lon = math.radians(p2.longitude - p1.longitude)

        a = (math.sin(delta_lat / 2) ** 2 +
             math.cos(lat1_rad) * math.cos(lat2_rad) *
             math.sin(delta_lon / 2) ** 2)
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

        return EARTH_RADIUS_M * c

    def validate_against_location(
        self,
        user_point: GeoPoint,
        location_point: GeoPoint,
        allowed_radius_m: int,
        accuracy_m: Optional[float] = None
    ) -> GeofenceResult:
        """
        Validate a GPS fix against a location geofence

        Accuracy is checked first; an imprecise fix is rejected without
        computing the distance. The radius comparison uses the raw distance,
        the reported distance is rounded to 2 decimals.
        """
        if accuracy_m is not None and accuracy_m > self.max_accuracy_m:
            return GeofenceResult(
                accepted=False,
                distance_m=None,
                allowed_radius_m=allowed_radius_m,
                accuracy_m=accuracy_m,
                reason=f"GPS accuracy too low ({accuracy_m:g}m > {self.max_accuracy_m:g}m max)"
            )

        distance = self.distance_meters(user_point, location_point)
        rounded = round(distance, 2)

        if distance > allowed_radius_m:
            return GeofenceResult(
                accepted=False,
                distance_m=rounded,
                allowed_radius_m=allowed_radius_m,
                accuracy_m=accuracy_m,
                reason=f"Outside allowed area ({rounded:.2f}m from location, max {allowed_radius_m}m)"
            )

        return GeofenceResult(
            accepted=True,
            distance_m=rounded,
            allowed_radius_m=allowed_radius_m,
            accuracy_m=accuracy_m
        )

    def ensure_within_location(
        self,
        user_point: GeoPoint,
        location_point: GeoPoint,
        allowed_radius_m: int,
        accuracy_m: Optional[float] = None
    ) -> GeofenceResult:
        """
        Same as validate_against_location but raises on rejection

        Raises:
            GpsAccuracyTooLow: Reported accuracy above the configured maximum
            OutsideAllowedRadius: Fix farther than the allowed radius
        """
        result = self.validate_against_location(user_point, location_point, allowed_radius_m, accuracy_m)
        if result.accepted:
            return result

        if result.distance_m is None:
            raise GpsAccuracyTooLow(result.reason, details={
                "accuracy_m": accuracy_m,
                "max_accuracy_m": self.max_accuracy_m,
            })
        raise OutsideAllowedRadius(result.reason, details={
            "distance_m": result.distance_m,
            "allowed_radius_m": allowed_radius_m,
        })

