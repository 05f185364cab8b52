"""Error taxonomy for the configuration pipeline."""

from enum import Enum
from typing import Any

from servermanager.core.models import ApplyStage, FieldError, ServiceId


class ErrorKind(str, Enum):
    """Caller-facing error classification."""

    VALIDATION = "validation"
    IO = "io"
    EXTERNAL_VALIDATION = "external_validation"
    SERVICE = "service"
    NOT_IMPLEMENTED = "not_implemented"


_STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_IMPLEMENTED: 501,
}


def status_code_for(kind: ErrorKind) -> int:
    """HTTP status for an error kind."""
    return _STATUS_CODES.get(kind, 500)


class ServerManagerError(Exception):
    """Base class for every classified failure."""

    kind: ErrorKind = ErrorKind.IO

    def __init__(
        self,
        message: str,
        *,
        stage: ApplyStage | None = None,
        details: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.details = details

    @property
    def status_code(self) -> int:
        return status_code_for(self.kind)

    def to_response(self) -> dict[str, Any]:
        response: dict[str, Any] = {"message": self.message, "kind": self.kind.value}
        if self.stage is not None:
            response["stage"] = self.stage.value
        if self.details:
            response["details"] = self.details
        return response


class InvalidConfigurationError(ServerManagerError):
    """Submitted configuration failed schema or semantic validation."""

    kind = ErrorKind.VALIDATION

    def __init__(self, errors: list[FieldError], message: str = "Validation Error"):
        super().__init__(message, stage=ApplyStage.VALIDATE)
        self.errors = errors

    def to_response(self) -> dict[str, Any]:
        response = super().to_response()
        response["errors"] = [e.model_dump() for e in self.errors]
        return response


class PersistenceError(ServerManagerError):
    """Directory creation or file write failed."""

    kind = ErrorKind.IO

    def __init__(self, message: str, path: str, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.path = path


class ExternalValidationError(ServerManagerError):
    """The daemon's own checker rejected the written files."""

    kind = ErrorKind.EXTERNAL_VALIDATION

    def __init__(self, message: str, command: str, stderr: str = "", **kwargs: Any):
        kwargs.setdefault("stage", ApplyStage.EXTERNAL_VALIDATE)
        kwargs.setdefault("details", stderr.strip() or None)
        super().__init__(message, **kwargs)
        self.command = command
        self.stderr = stderr


class ServiceError(ServerManagerError):
    """A service action failed or the service did not reach the desired state."""

    kind = ErrorKind.SERVICE

    def __init__(self, message: str, service: ServiceId, action: str, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.service = service
        self.action = action

    def to_response(self) -> dict[str, Any]:
        response = super().to_response()
        response["service"] = self.service.value
        response["action"] = self.action
        return response


class ConfigurationNotImplementedError(ServerManagerError):
    """Reading an existing on-disk configuration back is not supported."""

    kind = ErrorKind.NOT_IMPLEMENTED
