"""
API Dependencies
Provides authentication and authorization dependencies using ATAMS factory pattern
"""
from typing import Any, Dict

from fastapi import Header, Request
from atams.sso import create_atlas_client, create_auth_dependencies
from atams.exceptions import ForbiddenException

from scan_attendance.core.config import settings

# Initialize Atlas SSO client using factory
atlas_client = create_atlas_client(settings)

# Create auth dependencies using factory
get_current_user, require_auth, require_min_role_level, require_role_level = create_auth_dependencies(atlas_client)


def require_display_key(x_display_key: str = Header(..., alias="X-Display-Key")) -> None:
    """Barcode displays authenticate with a shared key instead of SSO"""
    if x_display_key != settings.DISPLAY_API_KEY:
        raise ForbiddenException("Invalid display API key")


def get_client_meta(request: Request, device_id: str = None) -> Dict[str, Any]:
    """Client IP (first X-Forwarded-For hop when proxied) and device id"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else None
    return {"ip_address": ip_address, "device_id": device_id}


# Export for use in endpoints
__all__ = [
    "atlas_client",
    "get_current_user",
    "require_auth",
    "require_min_role_level",
    "require_role_level",
    "require_display_key",
    "get_client_meta",
]
