"""Pytest configuration and fixtures."""

import logging
from datetime import date
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from servermanager.core.manager import ServerManager
from servermanager.core.models import ProcessResult
from servermanager.settings import ConsoleSettings, Environment

FIXED_DATE = date(2024, 1, 15)


class FakeProcessRunner:
    """
    Records every command and answers like a small systemd.

    ``states`` maps service name to its is-active answer. ``fail`` makes
    any command whose program matches return a failure.
    """

    def __init__(self, states: dict[str, str] | None = None):
        self.states = dict(states or {})
        self.calls: list[list[str]] = []
        self.failures: dict[str, ProcessResult] = {}
        self.stuck: set[str] = set()

    def fail(self, program: str, returncode: int = 1, stderr: str = "", stdout: str = "") -> None:
        self.failures[program] = ProcessResult(
            command=[program], returncode=returncode, stdout=stdout, stderr=stderr
        )

    def programs(self) -> list[str]:
        return [call[0] for call in self.calls]

    def systemctl_actions(self) -> list[tuple[str, str]]:
        return [(c[1], c[2]) for c in self.calls if c[0] == "systemctl"]

    async def run(self, command: str, *args: str, timeout: float | None = None) -> ProcessResult:
        cmd = [command, *args]
        self.calls.append(cmd)

        key = " ".join(cmd[:2]) if command == "systemctl" else command
        failure = self.failures.get(key) or self.failures.get(command)
        if failure is not None and not (command == "systemctl" and args[0] == "is-active"):
            return failure.model_copy(update={"command": cmd})

        if command == "systemctl":
            action, service = args[0], args[1]
            state = self.states.get(service, "inactive")
            if action == "is-active":
                return ProcessResult(
                    command=cmd, returncode=0 if state == "active" else 3, stdout=f"{state}\n"
                )
            if service not in self.stuck:
                if action in ("start", "restart", "reload"):
                    self.states[service] = "active"
                elif action == "stop":
                    self.states[service] = "inactive"
        return ProcessResult(command=cmd, returncode=0)


@pytest.fixture(autouse=True)
def reset_logging():
    """The CLI installs its own handler; keep caplog working for later tests."""
    yield
    logger = logging.getLogger("servermanager")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_DATE


@pytest.fixture
def settings(tmp_path) -> ConsoleSettings:
    """Development settings rooted in a temporary directory."""
    return ConsoleSettings.for_environment(
        Environment.DEVELOPMENT,
        root=tmp_path,
        settle_delay=0,
        process_timeout=5,
    )


@pytest.fixture
def fake_runner() -> FakeProcessRunner:
    return FakeProcessRunner(states={"named": "active", "dhcpd": "active", "httpd": "active"})


@pytest.fixture
def manager(settings, fake_runner, fixed_clock) -> ServerManager:
    return ServerManager(settings, fake_runner, clock=fixed_clock)


@pytest.fixture
def sample_dns_config() -> dict:
    """DNS configuration as a form would submit it."""
    return {
        "dnsServerStatus": True,
        "listenOn": "127.0.0.1; 192.168.1.1;",
        "allowQuery": "localhost; 192.168.1.0/24;",
        "allowRecursion": "localhost;",
        "forwarders": "8.8.8.8; 8.8.4.4;",
        "dnssecValidation": True,
        "zones": [
            {
                "zoneName": "example.com",
                "zoneType": "master",
                "fileName": "example.com.zone",
                "allowUpdate": "none",
                "records": [
                    {"type": "A", "name": "@", "value": "192.168.1.100"},
                    {"type": "CNAME", "name": "www", "value": "@"},
                    {"type": "MX", "name": "@", "value": "mail.example.com", "priority": 10},
                    {"type": "TXT", "name": "@", "value": 'v=spf1 "mx" -all'},
                ],
            }
        ],
    }


@pytest.fixture
def sample_dhcp_config() -> dict:
    return {
        "dhcpServerStatus": True,
        "domainName": "example.local",
        "domainNameServers": "192.168.1.1, 8.8.8.8",
        "defaultLeaseTime": 86400,
        "maxLeaseTime": 604800,
        "authoritative": True,
        "ddnsUpdateStyle": "none",
        "listenInterface": "eth0",
        "subnets": [
            {
                "network": "192.168.1.0",
                "netmask": "255.255.255.0",
                "rangeStart": "192.168.1.100",
                "rangeEnd": "192.168.1.200",
                "defaultGateway": "192.168.1.1",
                "domainNameServers": "192.168.1.1",
            }
        ],
        "hostReservations": [
            {"hostname": "printer", "macAddress": "00-11-22-33-44-55", "fixedAddress": "192.168.1.50"}
        ],
        "globalOptions": [{"name": "ntp-servers", "value": "192.168.1.1"}],
    }


@pytest.fixture
def sample_http_config() -> dict:
    return {
        "serverStatus": True,
        "globalConfig": {
            "serverRoot": "/etc/httpd",
            "serverName": "localhost",
            "serverAdmin": "admin@localhost",
            "listen": [{"port": 80}],
            "user": "apache",
            "group": "apache",
        },
        "virtualHosts": [
            {
                "serverName": "example.com",
                "serverAlias": "www.example.com",
                "documentRoot": "example",
                "port": 80,
            }
        ],
    }


@pytest.fixture
async def api_client(manager) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for API testing."""
    from servermanager.api.main import app, state

    state.manager = manager
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    state.manager = None
