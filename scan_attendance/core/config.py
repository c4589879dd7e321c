from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from atams import AtamsBaseSettings


class Settings(AtamsBaseSettings):
    """
    Application Settings

    Inherits from AtamsBaseSettings which includes:
    - DATABASE_URL (required)
    - ATLAS_SSO_URL, ATLAS_APP_CODE, ATLAS_ENCRYPTION_KEY, ATLAS_ENCRYPTION_IV
    - ENCRYPTION_ENABLED, ENCRYPTION_KEY, ENCRYPTION_IV (response encryption)
    - LOGGING_ENABLED, LOG_LEVEL, LOG_TO_FILE, LOG_FILE_PATH
    - CORS_ORIGINS, CORS_ALLOW_CREDENTIALS, CORS_ALLOW_METHODS, CORS_ALLOW_HEADERS
    - RATE_LIMIT_ENABLED, RATE_LIMIT_REQUESTS, RATE_LIMIT_WINDOW
    - DEBUG

    All settings can be overridden via .env file or by redefining them here.
    """
    APP_NAME: str
    APP_VERSION: str
    DEBUG: bool

    # Rotating barcode settings
    BARCODE_SECRET_KEY: str
    BARCODE_ROTATION_SECONDS: int = 300
    BARCODE_SLOT_TOLERANCE: int = 1

    # Display Authentication
    DISPLAY_API_KEY: str

    # GPS settings
    GPS_MAX_ACCURACY_METERS: float = 100.0

    # Client IP whitelist (comma or newline separated IPs / CIDRs)
    IP_WHITELIST_ENABLED: bool = False
    IP_WHITELIST: str = ""

    # Timezone used for "today" when no location is involved (summaries, absence sweep)
    DEFAULT_TIMEZONE: str = "UTC"

    # Retries when two scans race for the same per-day sequence number
    SCAN_WRITE_RETRIES: int = 3


class AttendanceConfig(BaseModel):
    """Explicit configuration handed to the attendance components"""
    model_config = ConfigDict(frozen=True)

    secret_key: str
    rotation_seconds: int = 300
    slot_tolerance: int = 1
    max_accuracy_m: float = 100.0
    ip_whitelist_enabled: bool = False
    ip_whitelist: List[str] = []
    write_retries: int = 3
    default_timezone: str = "UTC"

    @classmethod
    def from_settings(cls, settings: Settings) -> "AttendanceConfig":
        return cls(
            secret_key=settings.BARCODE_SECRET_KEY,
            rotation_seconds=settings.BARCODE_ROTATION_SECONDS,
            slot_tolerance=settings.BARCODE_SLOT_TOLERANCE,
            max_accuracy_m=settings.GPS_MAX_ACCURACY_METERS,
            ip_whitelist_enabled=settings.IP_WHITELIST_ENABLED,
            ip_whitelist=parse_ip_list(settings.IP_WHITELIST),
            write_retries=settings.SCAN_WRITE_RETRIES,
            default_timezone=settings.DEFAULT_TIMEZONE,
        )


def parse_ip_list(raw: Optional[str]) -> List[str]:
    """Split a comma/newline separated whitelist into trimmed entries"""
    if not raw:
        return []
    entries = raw.replace("\n", ",").split(",")
    return [entry.strip() for entry in entries if entry.strip()]


settings = Settings()


def get_attendance_config() -> AttendanceConfig:
    return AttendanceConfig.from_settings(settings)
