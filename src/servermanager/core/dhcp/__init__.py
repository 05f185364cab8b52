"""ISC DHCP (dhcpd) configuration."""

from servermanager.core.dhcp.applier import DhcpConfigurationApplier
from servermanager.core.dhcp.checker import DhcpConfigChecker
from servermanager.core.dhcp.config import DhcpConfigRenderer
from servermanager.core.dhcp.models import DhcpConfiguration

__all__ = [
    "DhcpConfigChecker",
    "DhcpConfigRenderer",
    "DhcpConfiguration",
    "DhcpConfigurationApplier",
]
