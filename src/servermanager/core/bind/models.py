"""BIND configuration models."""

import ipaddress
import re
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import AfterValidator, AliasChoices, Field, field_validator, model_validator

from servermanager.core.models import ConfigModel
from servermanager.core.validation import (
    is_domain_name,
    is_ipv4,
    is_ipv6,
    parse_string_list,
)


class ZoneKind(str, Enum):
    MASTER = "master"
    SLAVE = "slave"
    FORWARD = "forward"


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# ============================================================================
# Address match lists
# ============================================================================

ACL_KEYWORDS = {"any", "none", "localhost", "localnets"}
_LISTEN_KEYWORDS = {"any", "none"}
_ACL_NAME_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")
_EMAIL_LOCAL_RE = re.compile(r"^[A-Za-z0-9._%+-]+$")


def is_acl_element(value: str) -> bool:
    """
    One element of a BIND address match list.

    Accepts an address or CIDR prefix, one of the built-in ACL keywords,
    ``key <name>`` or the name of a user-defined ACL. A leading ``!``
    negates the element.
    """
    value = value.strip()
    if value.startswith("!"):
        value = value[1:].strip()
    if not value:
        return False

    keyword, _, rest = value.partition(" ")
    if keyword.lower() == "key":
        return bool(_ACL_NAME_RE.match(rest.strip()))
    if value.lower() in ACL_KEYWORDS:
        return True
    try:
        ipaddress.ip_network(value, strict=False)
    except ValueError:
        return bool(_ACL_NAME_RE.match(value))
    return True


def _acl_element(value: str) -> str:
    if not is_acl_element(value):
        raise ValueError(f"Invalid address match list element: {value}")
    return value


def _listen_address(value: str) -> str:
    if value.lower() not in _LISTEN_KEYWORDS and not is_ipv4(value):
        raise ValueError(f"Invalid IPv4 address: {value}")
    return value


def _ipv4_address(value: str) -> str:
    if not is_ipv4(value):
        raise ValueError(f"Invalid IPv4 address: {value}")
    return value


def _server_address(value: str) -> str:
    if not (is_ipv4(value) or is_ipv6(value)):
        raise ValueError(f"Invalid address: {value}")
    return value


AclElement = Annotated[str, AfterValidator(_acl_element)]
ListenAddress = Annotated[str, AfterValidator(_listen_address)]
IPv4Address = Annotated[str, AfterValidator(_ipv4_address)]
ServerAddress = Annotated[str, AfterValidator(_server_address)]


# ============================================================================
# Records
# ============================================================================


class _Record(ConfigModel):
    """Fields every record carries. An empty name means the zone apex."""

    name: str = "@"
    ttl: int | None = Field(default=None, ge=0, le=2147483647)

    @field_validator("name", mode="before")
    @classmethod
    def _default_apex(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return "@"
        return v.strip() if isinstance(v, str) else v

    @field_validator("name")
    @classmethod
    def _valid_owner(cls, v: str) -> str:
        if not is_domain_name(v):
            raise ValueError(f"Invalid record name: {v}")
        return v

    @field_validator("ttl", mode="before")
    @classmethod
    def _blank_ttl(cls, v: Any) -> Any:
        return _blank_to_none(v)


class _NameValueRecord(_Record):
    value: str

    @field_validator("value")
    @classmethod
    def _valid_target(cls, v: str) -> str:
        v = v.strip()
        if not is_domain_name(v):
            raise ValueError(f"Invalid domain name: {v}")
        return v


class ARecord(_Record):
    type: Literal["A"] = "A"
    value: str

    @field_validator("value")
    @classmethod
    def _valid_ipv4(cls, v: str) -> str:
        v = v.strip()
        if not is_ipv4(v):
            raise ValueError(f"Invalid IPv4 address: {v}")
        return v


class AAAARecord(_Record):
    type: Literal["AAAA"] = "AAAA"
    value: str

    @field_validator("value")
    @classmethod
    def _valid_ipv6(cls, v: str) -> str:
        v = v.strip()
        if not is_ipv6(v):
            raise ValueError(f"Invalid IPv6 address: {v}")
        return v


class CNAMERecord(_NameValueRecord):
    type: Literal["CNAME"] = "CNAME"


class NSRecord(_NameValueRecord):
    type: Literal["NS"] = "NS"


class PTRRecord(_NameValueRecord):
    type: Literal["PTR"] = "PTR"


class TXTRecord(_Record):
    type: Literal["TXT"] = "TXT"
    value: str = Field(min_length=1)


class MXRecord(_NameValueRecord):
    """Mail exchanger. A missing priority leaves the record unrenderable."""

    type: Literal["MX"] = "MX"
    priority: int | None = Field(default=None, ge=0, le=65535)

    @field_validator("priority", mode="before")
    @classmethod
    def _blank_priority(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @property
    def is_complete(self) -> bool:
        return self.priority is not None


class SRVRecord(_Record):
    """
    Service locator. The target host is ``target``; ``value`` is accepted
    on input for callers that send it under that name.
    """

    type: Literal["SRV"] = "SRV"
    priority: int | None = Field(default=None, ge=0, le=65535)
    weight: int | None = Field(default=None, ge=0, le=65535)
    port: int | None = Field(default=None, ge=0, le=65535)
    target: str | None = Field(default=None, validation_alias=AliasChoices("target", "value"))

    @field_validator("priority", "weight", "port", "target", mode="before")
    @classmethod
    def _blank_fields(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("target")
    @classmethod
    def _valid_target(cls, v: str | None) -> str | None:
        if v is not None:
            v = v.strip()
            if not is_domain_name(v):
                raise ValueError(f"Invalid domain name: {v}")
        return v

    @property
    def is_complete(self) -> bool:
        return None not in (self.priority, self.weight, self.port, self.target)


DnsRecord = Annotated[
    Union[ARecord, AAAARecord, CNAMERecord, MXRecord, NSRecord, PTRRecord, SRVRecord, TXTRecord],
    Field(discriminator="type"),
]


# ============================================================================
# Zones
# ============================================================================


class Zone(ConfigModel):
    """One zone and, for master zones, its records."""

    name: str = Field(validation_alias=AliasChoices("name", "zoneName"))
    kind: ZoneKind = Field(
        default=ZoneKind.MASTER, validation_alias=AliasChoices("kind", "zoneType")
    )
    file_name: str | None = None
    allow_update: list[AclElement] = Field(default_factory=lambda: ["none"])
    ttl: int | None = Field(default=None, ge=0, le=2147483647)
    admin_email: str | None = None
    masters: list[ServerAddress] = Field(default_factory=list)
    forwarders: list[ServerAddress] = Field(default_factory=list)
    records: list[DnsRecord] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def _normalize_name(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            if len(v) > 1:
                v = v.rstrip(".")
        return v

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Zone name is required")
        return v

    @field_validator("kind", mode="before")
    @classmethod
    def _lower_kind(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("file_name", "admin_email", "ttl", mode="before")
    @classmethod
    def _blank_optional(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("admin_email")
    @classmethod
    def _valid_admin_email(cls, v: str | None) -> str | None:
        if v is None:
            return v
        local, at, domain = v.strip().partition("@")
        if not (at and _EMAIL_LOCAL_RE.match(local) and domain != "@" and is_domain_name(domain)):
            raise ValueError(f"Invalid email address: {v}")
        return v.strip()

    @field_validator("allow_update", "masters", "forwarders", mode="before")
    @classmethod
    def _split_lists(cls, v: Any) -> list[str]:
        return parse_string_list(v)

    @field_validator("records", mode="before")
    @classmethod
    def _upper_record_types(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return v
        normalized = []
        for record in v:
            if isinstance(record, dict) and isinstance(record.get("type"), str):
                record = {**record, "type": record["type"].strip().upper()}
            normalized.append(record)
        return normalized

    @model_validator(mode="after")
    def _default_file_name(self) -> "Zone":
        if self.file_name is None:
            self.file_name = f"{self.name}.zone"
        return self


class DnsConfiguration(ConfigModel):
    """Complete BIND server configuration submitted in one apply."""

    enabled: bool = Field(
        default=False, validation_alias=AliasChoices("enabled", "dnsServerStatus")
    )
    listen_on: list[ListenAddress] = Field(default_factory=lambda: ["127.0.0.1"])
    allow_query: list[AclElement] = Field(default_factory=lambda: ["localhost"])
    allow_recursion: list[AclElement] = Field(default_factory=lambda: ["localhost"])
    forwarders: list[IPv4Address] = Field(default_factory=list)
    allow_transfer: list[AclElement] = Field(default_factory=list)
    dnssec_validation: bool = True
    query_logging: bool = False
    zones: list[Zone] = Field(min_length=1)

    @field_validator(
        "listen_on", "allow_query", "allow_recursion", "forwarders", "allow_transfer",
        mode="before",
    )
    @classmethod
    def _split_lists(cls, v: Any) -> list[str]:
        return parse_string_list(v)

    @property
    def master_zones(self) -> list[Zone]:
        return [z for z in self.zones if z.kind == ZoneKind.MASTER]
