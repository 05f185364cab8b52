"""httpd -t invocation."""

import re

from servermanager.core.base import BaseConfigChecker, ProcessRunner
from servermanager.core.httpd.models import HttpConfiguration
from servermanager.settings import ConsoleSettings


class HttpdConfigChecker(BaseConfigChecker[HttpConfiguration]):
    """Runs ``httpd -t -f`` against the written httpd.conf."""

    benign_patterns = (
        re.compile(r"^Syntax OK$"),
        # Could not reliably determine the server's fully qualified domain name
        re.compile(r"AH00558"),
    )

    def __init__(self, settings: ConsoleSettings, runner: ProcessRunner):
        super().__init__(runner, timeout=settings.process_timeout)
        self.settings = settings

    def commands(self, config: HttpConfiguration) -> list[list[str]]:
        return [["httpd", "-t", "-f", str(self.settings.http.httpd_conf)]]
