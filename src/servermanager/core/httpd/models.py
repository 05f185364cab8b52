"""Apache httpd configuration models."""

from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator

from servermanager.core.models import ConfigModel
from servermanager.core.validation import parse_string_list


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class HttpListen(ConfigModel):
    port: int = Field(ge=1, le=65535)
    address: str | None = None
    ssl: bool = False

    @field_validator("address", mode="before")
    @classmethod
    def _blank_address(cls, v: Any) -> Any:
        return _blank_to_none(v)


class HttpModule(ConfigModel):
    name: str = Field(min_length=1)
    enabled: bool = True
    required: bool = False
    description: str | None = None
    filename: str | None = None


class HttpDirective(ConfigModel):
    """A raw ``Name value`` line with an optional comment above it."""

    name: str = Field(min_length=1)
    value: str = ""
    comment: str | None = None


class HttpLogConfig(ConfigModel):
    type: Literal["error", "access", "custom"] = "access"
    path: str = Field(min_length=1)
    format: str | None = None
    level: Literal["debug", "info", "notice", "warn", "error", "crit", "alert", "emerg"] | None = None


class HttpDirectory(ConfigModel):
    path: str = Field(min_length=1)
    allow_override: str | None = None
    options: list[str] = Field(default_factory=list)
    require: list[str] = Field(default_factory=list)
    directory_index: list[str] = Field(default_factory=list)
    custom_directives: list[HttpDirective] = Field(default_factory=list)

    @field_validator("options", "directory_index", mode="before")
    @classmethod
    def _split_words(cls, v: Any) -> list[str]:
        return parse_string_list(v, separators=" ,")


class HttpSsl(ConfigModel):
    enabled: bool = False
    certificate_file: str | None = None
    certificate_key_file: str | None = None
    certificate_chain_file: str | None = None
    ssl_protocol: list[str] = Field(default_factory=list)
    ssl_cipher_suite: str | None = None

    @field_validator("certificate_file", "certificate_key_file", "certificate_chain_file", mode="before")
    @classmethod
    def _blank_files(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("ssl_protocol", mode="before")
    @classmethod
    def _split_protocols(cls, v: Any) -> list[str]:
        return parse_string_list(v, separators=" ,")


class HttpRedirect(ConfigModel):
    source: str = Field(
        min_length=1,
        validation_alias=AliasChoices("from", "source"),
        serialization_alias="from",
    )
    to: str = ""
    type: Literal["permanent", "temporary", "seeother", "gone"] = "permanent"


class HttpRewrite(ConfigModel):
    pattern: str = Field(min_length=1)
    substitution: str = Field(min_length=1)
    flags: list[str] = Field(default_factory=list)

    @field_validator("flags", mode="before")
    @classmethod
    def _split_flags(cls, v: Any) -> list[str]:
        return parse_string_list(v, separators=",")


class VirtualHost(ConfigModel):
    """One ``<VirtualHost>`` block."""

    enabled: bool = True
    server_name: str = Field(min_length=1)
    server_alias: list[str] = Field(default_factory=list)
    document_root: str = Field(min_length=1)
    port: int = Field(default=80, ge=1, le=65535)
    ip_address: str | None = None
    directory_index: list[str] = Field(default_factory=list)
    error_log: str | None = None
    custom_log: list[HttpLogConfig] = Field(default_factory=list)
    log_level: str | None = None
    ssl: HttpSsl | None = None
    directories: list[HttpDirectory] = Field(default_factory=list)
    custom_directives: list[HttpDirective] = Field(default_factory=list)
    redirects: list[HttpRedirect] = Field(default_factory=list)
    rewrites: list[HttpRewrite] = Field(default_factory=list)

    @field_validator("server_alias", mode="before")
    @classmethod
    def _split_aliases(cls, v: Any) -> list[str]:
        return parse_string_list(v, separators=", ")

    @field_validator("directory_index", mode="before")
    @classmethod
    def _split_index(cls, v: Any) -> list[str]:
        return parse_string_list(v, separators=" ")

    @field_validator("ip_address", "error_log", "log_level", mode="before")
    @classmethod
    def _blank_optional(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("custom_log", mode="before")
    @classmethod
    def _single_log(cls, v: Any) -> Any:
        # A bare string is one access log in combined format.
        if isinstance(v, str):
            return [{"type": "access", "path": v, "format": "combined"}] if v.strip() else []
        return v

    @field_validator("ssl", mode="before")
    @classmethod
    def _ssl_flag(cls, v: Any) -> Any:
        if isinstance(v, bool):
            return {"enabled": v}
        return v

    @property
    def ssl_enabled(self) -> bool:
        return self.ssl is not None and self.ssl.enabled


class HttpGlobalConfig(ConfigModel):
    """Server-wide directives."""

    server_root: str = "/etc/httpd"
    server_name: str | None = None
    server_admin: str | None = None
    listen: list[HttpListen] = Field(min_length=1)

    start_servers: int | None = Field(default=None, ge=1)
    min_spare_servers: int | None = Field(default=None, ge=1)
    max_spare_servers: int | None = Field(default=None, ge=1)
    max_request_workers: int | None = Field(default=None, ge=1)
    server_limit: int | None = Field(default=None, ge=1)

    server_tokens: Literal["Off", "Prod", "Major", "Minor", "Min", "OS", "Full"] | None = None
    server_signature: Literal["Off", "On", "Email"] | None = None
    user: str | None = None
    group: str | None = None

    loaded_modules: list[str] = Field(default_factory=list)
    modules: list[HttpModule] = Field(default_factory=list)

    error_log: str | None = None
    log_level: str | None = None

    timeout: int | None = Field(default=None, ge=1)
    keep_alive: bool | None = None
    keep_alive_timeout: int | None = Field(default=None, ge=1)
    max_keep_alive_requests: int | None = Field(default=None, ge=0)

    custom_directives: list[HttpDirective] = Field(default_factory=list)

    @field_validator("loaded_modules", mode="before")
    @classmethod
    def _split_modules(cls, v: Any) -> list[str]:
        return parse_string_list(v, separators=", ")


class HttpConfiguration(ConfigModel):
    """Complete Apache configuration submitted in one apply."""

    enabled: bool = Field(
        default=False, validation_alias=AliasChoices("enabled", "serverStatus")
    )
    global_config: HttpGlobalConfig
    virtual_hosts: list[VirtualHost] = Field(default_factory=list)

    @property
    def active_hosts(self) -> list[VirtualHost]:
        return [v for v in self.virtual_hosts if v.enabled]

    @property
    def ssl_requested(self) -> bool:
        return any(entry.ssl for entry in self.global_config.listen) or any(
            v.ssl_enabled for v in self.active_hosts
        )
