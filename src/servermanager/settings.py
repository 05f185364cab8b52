"""Runtime settings for paths, SOA defaults and process handling."""

import json
import os
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError


class Environment(str, Enum):
    """Deployment mode."""

    PRODUCTION = "production"
    DEVELOPMENT = "development"


class DnsPaths(BaseModel):
    """Where BIND configuration is written."""

    zones_dir: Path
    named_conf: Path
    zones_conf: Path
    working_dir: Path = Path("/var/named")


class DhcpPaths(BaseModel):
    """Where ISC dhcpd configuration is written."""

    dhcpd_conf: Path
    sysconfig: Path


class HttpPaths(BaseModel):
    """Where Apache configuration, logs and document roots live."""

    httpd_conf: Path
    log_dir: Path
    document_root_dir: Path


class SoaDefaults(BaseModel):
    """Timers and contact used for every generated SOA record."""

    ttl: int = Field(default=3600, ge=0)
    refresh: int = Field(default=3600, ge=0)
    retry: int = Field(default=1800, ge=0)
    expire: int = Field(default=604800, ge=0)
    negative_ttl: int = Field(default=86400, ge=0)
    admin_email: str = "admin@example.com"
    serial_sequence: int = Field(default=1, ge=0, le=99)


class ConsoleSettings(BaseModel):
    """All knobs the configuration pipeline reads."""

    environment: Environment = Environment.DEVELOPMENT
    dns: DnsPaths
    dhcp: DhcpPaths
    http: HttpPaths
    soa: SoaDefaults = Field(default_factory=SoaDefaults)
    process_timeout: float = Field(default=30.0, gt=0)
    settle_delay: float = Field(default=1.0, ge=0)
    status_attempts: int = Field(default=2, ge=1)
    use_sudo: bool = False

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def dry_run(self) -> bool:
        """Outside production, system commands are logged instead of executed."""
        return not self.is_production

    @classmethod
    def for_environment(
        cls,
        environment: Environment = Environment.DEVELOPMENT,
        root: Path | None = None,
        **overrides: Any,
    ) -> "ConsoleSettings":
        """
        Build settings with the standard path layout for an environment.

        Production uses the real system locations. Development keeps
        everything under ``<root>/test`` so nothing outside the working
        tree is touched.
        """
        if environment == Environment.PRODUCTION:
            paths: dict[str, Any] = {
                "dns": DnsPaths(
                    zones_dir=Path("/var/named"),
                    named_conf=Path("/etc/named.conf"),
                    zones_conf=Path("/etc/named.rfc1912.zones"),
                    working_dir=Path("/var/named"),
                ),
                "dhcp": DhcpPaths(
                    dhcpd_conf=Path("/etc/dhcp/dhcpd.conf"),
                    sysconfig=Path("/etc/sysconfig/dhcpd"),
                ),
                "http": HttpPaths(
                    httpd_conf=Path("/etc/httpd/conf/httpd.conf"),
                    log_dir=Path("/var/log/httpd"),
                    document_root_dir=Path("/var/www/html"),
                ),
            }
        else:
            base = (root or Path.cwd()) / "test"
            paths = {
                "dns": DnsPaths(
                    zones_dir=base / "dns" / "zones",
                    named_conf=base / "dns" / "config" / "named.conf",
                    zones_conf=base / "dns" / "config" / "named.conf.zones",
                    working_dir=base / "dns" / "zones",
                ),
                "dhcp": DhcpPaths(
                    dhcpd_conf=base / "dhcp" / "dhcpd.conf",
                    sysconfig=base / "dhcp" / "sysconfig" / "dhcpd",
                ),
                "http": HttpPaths(
                    httpd_conf=base / "httpd" / "conf" / "httpd.conf",
                    log_dir=base / "httpd" / "logs",
                    document_root_dir=base / "httpd" / "www",
                ),
            }
        paths.update(overrides)
        return cls(environment=environment, **paths)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "ConsoleSettings":
        """
        Load settings from environment variables.

        SERVERMANAGER_ENV (or NODE_ENV) selects the path layout,
        SERVERMANAGER_ROOT moves the development tree and
        SERVERMANAGER_CONFIG names a JSON file whose keys override
        the computed defaults.
        """
        env = os.environ if environ is None else environ

        mode = env.get("SERVERMANAGER_ENV") or env.get("NODE_ENV") or "development"
        try:
            environment = Environment(mode.lower())
        except ValueError:
            raise ValueError(f"Unknown environment: {mode}") from None

        root = Path(env["SERVERMANAGER_ROOT"]) if env.get("SERVERMANAGER_ROOT") else None
        settings = cls.for_environment(environment, root=root)

        data = settings.model_dump()
        if env.get("SERVERMANAGER_PROCESS_TIMEOUT"):
            data["process_timeout"] = env["SERVERMANAGER_PROCESS_TIMEOUT"]
        if env.get("SERVERMANAGER_USE_SUDO"):
            data["use_sudo"] = env["SERVERMANAGER_USE_SUDO"].lower() in ("1", "true", "yes")

        config_file = env.get("SERVERMANAGER_CONFIG")
        if config_file:
            cfg_path = Path(config_file)
            if not cfg_path.exists():
                raise FileNotFoundError(f"Settings file not found: {cfg_path}")
            overrides = json.loads(cfg_path.read_text())
            for key, value in overrides.items():
                if isinstance(value, dict) and isinstance(data.get(key), dict):
                    data[key] = {**data[key], **value}
                else:
                    data[key] = value

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid settings: {exc}") from exc
