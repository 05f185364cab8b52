"""ISC dhcpd configuration models."""

import re
from enum import Enum
from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from servermanager.core.models import ConfigModel
from servermanager.core.validation import (
    MAX_LEASE_SECONDS,
    is_hostname,
    is_ipv4,
    is_mac_address,
    is_netmask,
    parse_string_list,
)


_OPTION_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9.-]*$")


class DdnsUpdateStyle(str, Enum):
    INTERIM = "interim"
    STANDARD = "standard"
    NONE = "none"


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value.strip() if isinstance(value, str) else value


def _require_ipv4(value: str | None, what: str = "IP address") -> str | None:
    if value is not None and not is_ipv4(value):
        raise ValueError(f"Invalid {what}: {value}")
    return value


class DhcpOption(ConfigModel):
    """A free-form ``option name value;`` line."""

    name: str = ""
    value: str = ""
    code: int | None = Field(default=None, ge=1, le=254)

    @field_validator("name")
    @classmethod
    def _valid_name(cls, v: str) -> str:
        v = v.strip()
        if v and not _OPTION_NAME_RE.match(v):
            raise ValueError(f"Invalid option name: {v}")
        return v

    @field_validator("code", mode="before")
    @classmethod
    def _blank_code(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @property
    def is_complete(self) -> bool:
        return bool(self.name.strip() and self.value.strip())


class DhcpRange(ConfigModel):
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def _valid_address(cls, v: str) -> str:
        return _require_ipv4(v.strip())


class DhcpSubnet(ConfigModel):
    """
    One subnet declaration.

    The dynamic range may be sent as ``range: {start, end}`` or as the flat
    ``rangeStart`` / ``rangeEnd`` pair that HTML forms produce.
    """

    network: str
    netmask: str
    range: DhcpRange | None = None
    default_gateway: str | None = None
    domain_name_servers: list[str] = Field(default_factory=list)
    broadcast_address: str | None = None
    subnet_mask: str | None = None
    options: list[DhcpOption] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _fold_flat_range(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("range"):
            return data
        start = data.get("rangeStart") or data.get("range_start")
        end = data.get("rangeEnd") or data.get("range_end")
        data = {
            k: v for k, v in data.items()
            if k not in ("rangeStart", "rangeEnd", "range_start", "range_end")
        }
        if start or end:
            data["range"] = {"start": start or "", "end": end or ""}
        return data

    @field_validator(
        "network", "netmask", "default_gateway", "broadcast_address", "subnet_mask",
        mode="before",
    )
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("network", "default_gateway", "broadcast_address")
    @classmethod
    def _valid_address(cls, v: str | None) -> str | None:
        return _require_ipv4(v)

    @field_validator("netmask", "subnet_mask")
    @classmethod
    def _valid_netmask(cls, v: str | None) -> str | None:
        if v is not None and not is_netmask(v):
            raise ValueError(f"Invalid subnet mask: {v}")
        return v

    @field_validator("domain_name_servers", mode="before")
    @classmethod
    def _split_servers(cls, v: Any) -> list[str]:
        return parse_string_list(v, separators=",;")

    @field_validator("domain_name_servers")
    @classmethod
    def _valid_servers(cls, v: list[str]) -> list[str]:
        for server in v:
            _require_ipv4(server, "DNS server IP address")
        return v


class HostReservation(ConfigModel):
    """A fixed address bound to a MAC address."""

    hostname: str
    mac_address: str
    fixed_address: str
    options: list[DhcpOption] = Field(default_factory=list)

    @field_validator("hostname")
    @classmethod
    def _valid_hostname(cls, v: str) -> str:
        v = v.strip()
        if not is_hostname(v):
            raise ValueError("Invalid hostname format")
        return v

    @field_validator("mac_address")
    @classmethod
    def _valid_mac(cls, v: str) -> str:
        v = v.strip()
        if not is_mac_address(v):
            raise ValueError(
                "Invalid MAC address format (use format: XX:XX:XX:XX:XX:XX or XX-XX-XX-XX-XX-XX)"
            )
        return v.replace("-", ":").lower()

    @field_validator("fixed_address")
    @classmethod
    def _valid_address(cls, v: str) -> str:
        return _require_ipv4(v.strip())


class DhcpConfiguration(ConfigModel):
    """Complete dhcpd configuration submitted in one apply."""

    enabled: bool = Field(
        default=False, validation_alias=AliasChoices("enabled", "dhcpServerStatus")
    )
    domain_name: str | None = None
    domain_name_servers: list[str] = Field(default_factory=list)
    default_lease_time: int = Field(default=86400, ge=1, le=MAX_LEASE_SECONDS)
    max_lease_time: int = Field(default=604800, ge=1, le=MAX_LEASE_SECONDS)
    authoritative: bool = True
    ddns_update_style: DdnsUpdateStyle = DdnsUpdateStyle.NONE
    listen_interface: str | None = None
    subnets: list[DhcpSubnet] = Field(min_length=1)
    host_reservations: list[HostReservation] = Field(default_factory=list)
    global_options: list[DhcpOption] = Field(default_factory=list)

    @field_validator("domain_name", "listen_interface", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("domain_name")
    @classmethod
    def _valid_domain(cls, v: str | None) -> str | None:
        if v is not None and not is_hostname(v):
            raise ValueError("Invalid domain name format")
        return v

    @field_validator("listen_interface")
    @classmethod
    def _valid_interface(cls, v: str | None) -> str | None:
        if v is not None and not all(c.isalnum() or c in "-_.:@" for c in v):
            raise ValueError(f"Invalid interface name: {v}")
        return v

    @field_validator("domain_name_servers", mode="before")
    @classmethod
    def _split_servers(cls, v: Any) -> list[str]:
        return parse_string_list(v, separators=",;")

    @field_validator("domain_name_servers")
    @classmethod
    def _valid_servers(cls, v: list[str]) -> list[str]:
        for server in v:
            _require_ipv4(server, "DNS server IP address")
        return v

    @field_validator("ddns_update_style", mode="before")
    @classmethod
    def _lower_style(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v
