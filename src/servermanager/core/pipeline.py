"""The apply pipeline shared by every configuration domain."""

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Generic, Sequence

from servermanager.core.base import BaseConfigChecker, BaseConfigRenderer, ConfigT
from servermanager.core.errors import ConfigurationNotImplementedError
from servermanager.core.models import (
    ApplyResult,
    RenderedArtifact,
    ServiceControlResult,
    ServiceId,
)
from servermanager.core.persistence import ConfigWriter, exists
from servermanager.core.services import ServiceManager
from servermanager.core.validation import SemanticCheck, validate_configuration
from servermanager.settings import ConsoleSettings

logger = logging.getLogger(__name__)


class ServiceLocks:
    """One asyncio.Lock per service, created on first use."""

    def __init__(self) -> None:
        self._locks: dict[ServiceId, asyncio.Lock] = {}

    def get(self, service: ServiceId) -> asyncio.Lock:
        if service not in self._locks:
            self._locks[service] = asyncio.Lock()
        return self._locks[service]

    def locked(self, service: ServiceId) -> bool:
        return service in self._locks and self._locks[service].locked()


class ConfigurationApplier(ABC, Generic[ConfigT]):
    """
    Runs one apply request through
    validate, render, write, external validation and reconcile.

    Each stage either proceeds or raises a classified ServerManagerError;
    later stages never run after a failure. Files already written are not
    rolled back. The whole pipeline holds the service's lock, so at most one
    apply per service is in flight.
    """

    service: ServiceId
    model: type[ConfigT]
    semantic_checks: Sequence[SemanticCheck] = ()
    label: str = "configuration"

    def __init__(
        self,
        settings: ConsoleSettings,
        renderer: BaseConfigRenderer[ConfigT],
        checker: BaseConfigChecker[ConfigT],
        writer: ConfigWriter,
        services: ServiceManager,
        locks: ServiceLocks,
    ):
        self.settings = settings
        self.renderer = renderer
        self.checker = checker
        self.writer = writer
        self.services = services
        self.locks = locks

    @property
    @abstractmethod
    def primary_path(self) -> Path:
        """The file whose absence means no configuration has been applied yet."""
        ...

    @abstractmethod
    def default_configuration(self) -> ConfigT:
        """Configuration reported when nothing has been written yet."""
        ...

    @abstractmethod
    def is_enabled(self, config: ConfigT) -> bool:
        """Whether the daemon should be running after apply."""
        ...

    async def prepare(self, config: ConfigT) -> None:
        """Hook for directories the daemon needs beyond the rendered files."""
        return None

    # ========================================================================
    # Stages
    # ========================================================================

    def validate(self, raw: Any) -> ConfigT:
        """Validate untyped input. Raises InvalidConfigurationError."""
        config = validate_configuration(self.model, raw, self.semantic_checks)
        logger.info(f"{self.label} validated")
        return config

    def render(self, config: ConfigT) -> list[RenderedArtifact]:
        artifacts = self.renderer.render(config)
        logger.info(f"{self.label} rendered into {len(artifacts)} artifact(s)")
        return artifacts

    def preview(self, raw: Any) -> list[RenderedArtifact]:
        """Validate and render without touching the filesystem."""
        return self.render(self.validate(raw))

    async def apply(self, raw: Any) -> ApplyResult:
        """Run the full pipeline for one request."""
        async with self.locks.get(self.service):
            config = self.validate(raw)
            artifacts = self.render(config)
            warnings = [w for artifact in artifacts for w in artifact.warnings]

            await self.prepare(config)
            written = await self.writer.write_all(artifacts)

            await self.checker.check(config)
            logger.info(f"{self.label} passed external validation")

            service_result: ServiceControlResult = await self.services.reconcile(
                self.service, self.is_enabled(config)
            )

        logger.info(f"{self.label} applied")
        return ApplyResult(
            service=self.service,
            message=f"{self.label} saved successfully",
            data=config.model_dump(mode="json", by_alias=True),
            artifacts=[str(p) for p in written],
            warnings=warnings,
            service_result=service_result,
        )

    async def current_configuration(self) -> dict[str, Any]:
        """
        The configuration to show a caller before any edits.

        Returns the synthesized default when nothing has been written yet.
        Reading an existing file back into the model is not supported.
        """
        if not await exists(self.primary_path):
            logger.info(f"No {self.label} at {self.primary_path}; returning default")
            return self.default_configuration().model_dump(mode="json", by_alias=True)
        raise ConfigurationNotImplementedError(
            f"Reading existing {self.label} from {self.primary_path} is not implemented"
        )
