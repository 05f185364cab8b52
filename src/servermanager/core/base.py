"""Abstract base classes defining renderer, checker and runner interfaces."""

import logging
import re
from abc import ABC, abstractmethod
from typing import Generic, Protocol, Sequence, TypeVar

from pydantic import BaseModel

from servermanager.core.errors import ExternalValidationError
from servermanager.core.models import ProcessResult, RenderedArtifact

logger = logging.getLogger(__name__)

ConfigT = TypeVar("ConfigT", bound=BaseModel)


class ProcessRunner(Protocol):
    """Anything that can execute an external command."""

    async def run(
        self,
        command: str,
        *args: str,
        timeout: float | None = None,
    ) -> ProcessResult:
        """Run a command and report its exit status and output."""
        ...


class BaseConfigRenderer(ABC, Generic[ConfigT]):
    """Abstract base class for configuration renderers."""

    @abstractmethod
    def render(self, config: ConfigT) -> list[RenderedArtifact]:
        """Render a validated configuration into on-disk artifacts."""
        ...


class BaseConfigChecker(ABC, Generic[ConfigT]):
    """
    Abstract base class for daemon-provided syntax checkers.

    Subclasses list the commands to run against the written files and the
    stderr lines their daemon prints even when the configuration is fine.
    """

    benign_patterns: Sequence[re.Pattern[str]] = ()

    def __init__(self, runner: ProcessRunner, timeout: float | None = None):
        self.runner = runner
        self.timeout = timeout

    @abstractmethod
    def commands(self, config: ConfigT) -> list[list[str]]:
        """Checker command lines for a written configuration."""
        ...

    def unexpected_stderr(self, stderr: str) -> list[str]:
        """Stderr lines that do not match a known-benign pattern."""
        return [
            line
            for line in (raw.strip() for raw in stderr.splitlines())
            if line and not any(p.search(line) for p in self.benign_patterns)
        ]

    async def check(self, config: ConfigT) -> list[ProcessResult]:
        """
        Run every checker command in order, stopping at the first failure.

        Raises ExternalValidationError carrying the failing command and its
        captured output.
        """
        results = []
        for command in self.commands(config):
            result = await self.runner.run(*command, timeout=self.timeout)
            results.append(result)

            if result.timed_out:
                logger.error(f"Checker timed out: {result.command_line}")
                raise ExternalValidationError(
                    f"Configuration check timed out: {result.command_line}",
                    command=result.command_line,
                    stderr=result.stderr,
                )

            unexpected = self.unexpected_stderr(result.stderr)
            if result.returncode != 0 or unexpected:
                output = "\n".join(unexpected) or result.stderr.strip() or result.stdout.strip()
                logger.error(f"Checker rejected configuration: {result.command_line}: {output}")
                raise ExternalValidationError(
                    f"Configuration check failed: {result.command_line}",
                    command=result.command_line,
                    stderr=output,
                )

            logger.info(f"Checker passed: {result.command_line}")
        return results
