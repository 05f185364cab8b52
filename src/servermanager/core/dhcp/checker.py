"""dhcpd -t invocation."""

import re

from servermanager.core.base import BaseConfigChecker, ProcessRunner
from servermanager.core.dhcp.models import DhcpConfiguration
from servermanager.settings import ConsoleSettings


class DhcpConfigChecker(BaseConfigChecker[DhcpConfiguration]):
    """Runs ``dhcpd -t -cf`` against the written dhcpd.conf."""

    # dhcpd prints its banner and file locations to stderr on every run.
    benign_patterns = (
        re.compile(r"^Internet Systems Consortium DHCP Server"),
        re.compile(r"^Copyright \d{4}"),
        re.compile(r"^All rights reserved\.?$"),
        re.compile(r"^For info, please visit"),
        re.compile(r"^ldap_gssapi_principal is not set"),
        re.compile(r"^Not searching LDAP"),
        re.compile(r"^(Config|Database|PID) file:"),
        re.compile(r"^Source compiled to use"),
        re.compile(r"^Wrote \d+ "),
    )

    def __init__(self, settings: ConsoleSettings, runner: ProcessRunner):
        super().__init__(runner, timeout=settings.process_timeout)
        self.settings = settings

    def commands(self, config: DhcpConfiguration) -> list[list[str]]:
        return [["dhcpd", "-t", "-cf", str(self.settings.dhcp.dhcpd_conf)]]
