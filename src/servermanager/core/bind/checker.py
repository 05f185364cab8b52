"""named-checkconf / named-checkzone invocation."""

import re

from servermanager.core.base import BaseConfigChecker, ProcessRunner
from servermanager.core.bind.config import zone_file_path
from servermanager.core.bind.models import DnsConfiguration
from servermanager.settings import ConsoleSettings


class BindConfigChecker(BaseConfigChecker[DnsConfiguration]):
    """Checks named.conf once, then every master zone file."""

    benign_patterns = (
        re.compile(r"loaded serial \d+"),
        re.compile(r"^OK$"),
    )

    def __init__(self, settings: ConsoleSettings, runner: ProcessRunner):
        super().__init__(runner, timeout=settings.process_timeout)
        self.settings = settings

    def commands(self, config: DnsConfiguration) -> list[list[str]]:
        commands = [["named-checkconf", str(self.settings.dns.named_conf)]]
        for zone in config.master_zones:
            commands.append(["named-checkzone", zone.name, str(zone_file_path(self.settings, zone))])
        return commands
