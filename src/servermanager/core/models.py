"""Core data models shared by every configuration domain."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ServiceId(str, Enum):
    """System services the console is allowed to manage."""

    NAMED = "named"
    DHCPD = "dhcpd"
    HTTPD = "httpd"


class ServiceState(str, Enum):
    """Service states as reported to callers."""

    RUNNING = "running"
    STOPPED = "stopped"
    FAILED = "failed"
    UNKNOWN = "unknown"


class ApplyStage(str, Enum):
    """Stages of an apply request, in execution order."""

    VALIDATE = "validate"
    RENDER = "render"
    WRITE = "write"
    EXTERNAL_VALIDATE = "external_validate"
    RECONCILE = "reconcile"


# ============================================================================
# Service Models
# ============================================================================


class ServiceStatus(BaseModel):
    """Live status of a service, derived from systemd at query time."""

    service: ServiceId
    state: ServiceState
    raw_state: str | None = Field(default=None, description="Output of systemctl is-active")
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class ServiceControlResult(BaseModel):
    """Result of service control operation."""

    service: ServiceId
    action: str  # start, stop, restart, reload, none
    success: bool
    message: str
    previous_state: ServiceState
    current_state: ServiceState
    timestamp: datetime = Field(default_factory=datetime.utcnow)


# ============================================================================
# Process Models
# ============================================================================


class ProcessResult(BaseModel):
    """Outcome of one external command."""

    command: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def command_line(self) -> str:
        return " ".join(self.command)


# ============================================================================
# Validation / Rendering Models
# ============================================================================


class FieldError(BaseModel):
    """One validation failure located by a dotted/indexed path."""

    path: str
    message: str


class RenderedArtifact(BaseModel):
    """A file the renderer wants on disk."""

    path: str
    content: str
    warnings: list[str] = Field(default_factory=list)


class ApplyResult(BaseModel):
    """Successful outcome of an apply request."""

    service: ServiceId
    message: str
    data: dict[str, Any]
    artifacts: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    service_result: ServiceControlResult | None = None

    def to_response(self) -> dict[str, Any]:
        response: dict[str, Any] = {"message": self.message, "data": self.data}
        if self.warnings:
            response["warnings"] = self.warnings
        if self.service_result is not None:
            response["service"] = self.service_result.model_dump(mode="json")
        return response


# ============================================================================
# Configuration Base
# ============================================================================


class ConfigModel(BaseModel):
    """Base for submitted configuration: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
