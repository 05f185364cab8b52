"""Apache httpd configuration."""

from servermanager.core.httpd.applier import HttpConfigurationApplier
from servermanager.core.httpd.checker import HttpdConfigChecker
from servermanager.core.httpd.config import HttpdConfigRenderer
from servermanager.core.httpd.models import HttpConfiguration, VirtualHost

__all__ = [
    "HttpConfiguration",
    "HttpConfigurationApplier",
    "HttpdConfigChecker",
    "HttpdConfigRenderer",
    "VirtualHost",
]
