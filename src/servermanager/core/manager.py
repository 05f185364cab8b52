"""Wiring of runner, writer, service manager and the three appliers."""

import logging
from datetime import date
from typing import Callable

from servermanager.core.base import ProcessRunner
from servermanager.core.bind import BindConfigChecker, BindConfigRenderer, DnsConfigurationApplier
from servermanager.core.dhcp import DhcpConfigChecker, DhcpConfigRenderer, DhcpConfigurationApplier
from servermanager.core.httpd import HttpConfigurationApplier, HttpdConfigChecker, HttpdConfigRenderer
from servermanager.core.persistence import ConfigWriter
from servermanager.core.pipeline import ConfigurationApplier, ServiceLocks
from servermanager.core.process import DryRunProcessRunner, SubprocessRunner
from servermanager.core.services import ServiceManager
from servermanager.settings import ConsoleSettings

logger = logging.getLogger(__name__)

DOMAINS = ("dns", "dhcp", "http")


class ServerManager:
    """
    Everything a caller needs to apply configuration and control services.

    One instance is shared by the API and the CLI; its ServiceLocks keep
    applies for the same service from overlapping.
    """

    def __init__(
        self,
        settings: ConsoleSettings,
        runner: ProcessRunner,
        clock: Callable[[], date] = date.today,
    ):
        self.settings = settings
        self.runner = runner
        self.writer = ConfigWriter()
        self.locks = ServiceLocks()
        self.services = ServiceManager(
            runner,
            settle_delay=settings.settle_delay,
            status_attempts=settings.status_attempts,
            use_sudo=settings.use_sudo,
            timeout=settings.process_timeout,
        )

        self.dns = DnsConfigurationApplier(
            settings,
            BindConfigRenderer(settings, clock=clock),
            BindConfigChecker(settings, runner),
            self.writer,
            self.services,
            self.locks,
        )
        self.dhcp = DhcpConfigurationApplier(
            settings,
            DhcpConfigRenderer(settings),
            DhcpConfigChecker(settings, runner),
            self.writer,
            self.services,
            self.locks,
        )
        self.http = HttpConfigurationApplier(
            settings,
            HttpdConfigRenderer(settings),
            HttpdConfigChecker(settings, runner),
            self.writer,
            self.services,
            self.locks,
        )

    @classmethod
    def from_settings(
        cls,
        settings: ConsoleSettings,
        clock: Callable[[], date] = date.today,
    ) -> "ServerManager":
        """Use real subprocesses in production and the dry-run runner otherwise."""
        runner: ProcessRunner
        if settings.dry_run:
            logger.info(f"{settings.environment.value} mode: system commands will be logged, not run")
            runner = DryRunProcessRunner()
        else:
            runner = SubprocessRunner(timeout=settings.process_timeout)
        return cls(settings, runner, clock=clock)

    def applier(self, domain: str) -> ConfigurationApplier:
        """The applier for ``dns``, ``dhcp`` or ``http``."""
        if domain not in DOMAINS:
            raise ValueError(f"Unknown configuration domain: {domain}")
        return getattr(self, domain)
