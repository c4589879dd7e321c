"""
Rotating Token Service - time-sliced signed barcode generation and validation

Token format: base64("{location_code}:{slot}|{signature}") where signature is
the first 16 hex chars of HMAC-SHA256(payload, secret). Truncating to 64 bits
keeps the QR code small; this is an accepted risk given the short validity
window (current slot plus `slot_tolerance` previous slots).
"""
import base64
import binascii
import hashlib
import hmac
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Tuple

from scan_attendance.core.config import AttendanceConfig
from scan_attendance.models.location import Location

SIGNATURE_LENGTH = 16
_SIGNATURE_RE = re.compile(r"^[0-9a-f]{16}$", re.IGNORECASE)

# Validation failure reasons
INVALID_FORMAT = "invalid format"
INVALID_STRUCTURE = "invalid structure"
INVALID_PAYLOAD = "invalid payload"
INVALID_SIGNATURE = "invalid signature"
EXPIRED = "expired"
UNKNOWN_LOCATION = "unknown location"


@dataclass(frozen=True)
class RollingToken:
    token: str
    location_code: str
    location_name: str
    slot: int
    generated_at: datetime
    expires_in: int
    rotation_interval: int


@dataclass(frozen=True)
class TokenValidation:
    valid: bool
    location_code: Optional[str] = None
    slot: Optional[int] = None
    location: Optional[Location] = None
    reason: Optional[str] = None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RotatingTokenService:
    def __init__(self, config: AttendanceConfig) -> None:
        if config.rotation_seconds <= 0:
            raise ValueError("rotation_seconds must be positive")
        self.secret = config.secret_key.encode("utf-8")
        self.rotation_seconds = config.rotation_seconds
        self.tolerance = config.slot_tolerance
        # (location_code, slot) -> token; generation is deterministic so racing writers store identical values
        self._cache: Dict[Tuple[str, int], RollingToken] = {}

    def current_slot(self, now: Optional[datetime] = None) -> int:
        now = now or _utc_now()
        return int(now.timestamp()) // self.rotation_seconds

    def seconds_until_rotation(self, now: Optional[datetime] = None) -> int:
        now = now or _utc_now()
        next_rotation = (self.current_slot(now) + 1) * self.rotation_seconds
        return next_rotation - int(now.timestamp())

    def sign(self, payload: str) -> str:
        digest = hmac.new(self.secret, payload.encode("utf-8"), hashlib.sha256).hexdigest()
        return digest[:SIGNATURE_LENGTH]

    def encode(self, location_code: str, slot: int) -> str:
        payload = f"{location_code}:{slot}"
        data = f"{payload}|{self.sign(payload)}"
        return base64.b64encode(data.encode("utf-8")).decode("ascii")

    def generate(self, location: Location, now: Optional[datetime] = None) -> RollingToken:
        """
        Generate (or return the cached) rolling token for a location

        Args:
            location: Location the barcode is displayed at
            now: Reference time (default: current UTC time)

        Returns:
            RollingToken: Encoded token with slot and remaining lifetime
        """
        now = now or _utc_now()
        slot = self.current_slot(now)
        key = (location.lo_code, slot)

        self._evict_expired(slot)

        cached = self._cache.get(key)
        if cached is None:
            cached = RollingToken(
                token=self.encode(location.lo_code, slot),
                location_code=location.lo_code,
                location_name=location.lo_name,
                slot=slot,
                generated_at=now,
                expires_in=self.rotation_seconds,
                rotation_interval=self.rotation_seconds
            )
            self._cache[key] = cached

        return RollingToken(
            token=cached.token,
            location_code=cached.location_code,
            location_name=cached.location_name,
            slot=slot,
            generated_at=cached.generated_at,
            expires_in=self.seconds_until_rotation(now),
            rotation_interval=self.rotation_seconds
        )

    def _evict_expired(self, current_slot: int) -> None:
        stale = [key for key in list(self._cache) if key[1] < current_slot]
        for key in stale:
            self._cache.pop(key, None)

    def decode(self, token: str) -> TokenValidation:
        """Check format, structure and signature without looking at time or storage"""
        try:
            decoded = base64.b64decode(token, validate=True).decode("utf-8")
        except (binascii.Error, ValueError, TypeError):
            return TokenValidation(valid=False, reason=INVALID_FORMAT)

        parts = decoded.split("|")
        if len(parts) != 2 or not _SIGNATURE_RE.match(parts[1]):
            return TokenValidation(valid=False, reason=INVALID_STRUCTURE)

        payload, provided_signature = parts
        payload_parts = payload.split(":")
        if len(payload_parts) != 2:
            return TokenValidation(valid=False, reason=INVALID_PAYLOAD)

        location_code, raw_slot = payload_parts
        if not location_code or not raw_slot.isdecimal():
            return TokenValidation(valid=False, reason=INVALID_PAYLOAD)

        if not hmac.compare_digest(self.sign(payload), provided_signature):
            return TokenValidation(valid=False, reason=INVALID_SIGNATURE)

        return TokenValidation(valid=True, location_code=location_code, slot=int(raw_slot))

    def validate(
        self,
        token: str,
        now: Optional[datetime] = None,
        location_lookup: Optional[Callable[[str], Optional[Location]]] = None
    ) -> TokenValidation:
        """
        Validate a scanned token

        Args:
            token: Base64 token read from the barcode
            now: Reference time (default: current UTC time)
            location_lookup: Resolves a location code to an active Location.
                When omitted the location step is skipped.

        Returns:
            TokenValidation: valid flag with location/slot, or the failure reason
        """
        result = self.decode(token)
        if not result.valid:
            return result

        current = self.current_slot(now)
        # Previous `tolerance` slots are accepted, future slots never are
        if not (current - self.tolerance <= result.slot <= current):
            return TokenValidation(
                valid=False,
                location_code=result.location_code,
                slot=result.slot,
                reason=EXPIRED
            )

        if location_lookup is None:
            return result

        location = location_lookup(result.location_code)
        if location is None or not location.lo_is_active:
            return TokenValidation(
                valid=False,
                location_code=result.location_code,
                slot=result.slot,
                reason=UNKNOWN_LOCATION
            )

        return TokenValidation(
            valid=True,
            location_code=result.location_code,
            slot=result.slot,
            location=location
        )
