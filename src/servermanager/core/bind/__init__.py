"""BIND (named) configuration."""

from servermanager.core.bind.applier import DnsConfigurationApplier
from servermanager.core.bind.checker import BindConfigChecker
from servermanager.core.bind.config import BindConfigRenderer
from servermanager.core.bind.models import DnsConfiguration, Zone, ZoneKind

__all__ = [
    "BindConfigChecker",
    "BindConfigRenderer",
    "DnsConfiguration",
    "DnsConfigurationApplier",
    "Zone",
    "ZoneKind",
]
