"""
IP Validation Service - client IP whitelist with exact addresses and CIDR blocks
"""
import ipaddress
from typing import List, Optional, Union

from scan_attendance.core.config import AttendanceConfig
from atams.logging import get_logger

logger = get_logger(__name__)

Network = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


class IpValidationService:
    def __init__(self, config: AttendanceConfig) -> None:
        self.enabled = config.ip_whitelist_enabled
        self.networks: List[Network] = []
        for entry in config.ip_whitelist:
            try:
                # A bare address becomes a /32 (or /128) network
                self.networks.append(ipaddress.ip_network(entry, strict=False))
            except ValueError:
                logger.warning(f"Ignoring invalid IP whitelist entry '{entry}'")

    def is_allowed(self, ip: Optional[str]) -> bool:
        """
        Check a client IP against the whitelist

        Disabled filtering or an empty whitelist allows every address;
        otherwise a missing or unparsable address is refused.
        """
        if not self.enabled or not self.networks:
            return True
        if not ip:
            return False

        try:
            address = ipaddress.ip_address(ip.strip())
        except ValueError:
            return False

        return any(address.version == network.version and address in network for network in self.networks)
