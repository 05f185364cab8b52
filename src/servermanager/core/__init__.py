"""Core library: validation, rendering, persistence and service control."""

from servermanager.core.errors import (
    ConfigurationNotImplementedError,
    ErrorKind,
    ExternalValidationError,
    InvalidConfigurationError,
    PersistenceError,
    ServerManagerError,
    ServiceError,
)
from servermanager.core.models import (
    ApplyResult,
    FieldError,
    RenderedArtifact,
    ServiceId,
    ServiceState,
    ServiceStatus,
)

__all__ = [
    "ApplyResult",
    "ConfigurationNotImplementedError",
    "ErrorKind",
    "ExternalValidationError",
    "FieldError",
    "InvalidConfigurationError",
    "PersistenceError",
    "RenderedArtifact",
    "ServerManagerError",
    "ServiceError",
    "ServiceId",
    "ServiceState",
    "ServiceStatus",
]
