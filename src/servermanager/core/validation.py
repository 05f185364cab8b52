"""Structural and semantic validation helpers."""

import ipaddress
import re
from typing import Any, Callable, Iterable, Sequence, TypeVar

import dns.exception
import dns.ipv4
import dns.ipv6
import dns.name
from pydantic import BaseModel, ValidationError

from servermanager.core.errors import InvalidConfigurationError
from servermanager.core.models import FieldError

ModelT = TypeVar("ModelT", bound=BaseModel)
SemanticCheck = Callable[[Any], list[FieldError]]

MAX_LEASE_SECONDS = 2147483647

_MAC_RE = re.compile(r"^([0-9A-Fa-f]{2}[:-]){5}[0-9A-Fa-f]{2}$")
_HOST_LABEL_RE = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")
_DNS_LABEL_RE = re.compile(r"^[A-Za-z0-9_*]([A-Za-z0-9_-]{0,61}[A-Za-z0-9_])?$")


# ============================================================================
# List coercion
# ============================================================================


def parse_string_list(value: Any, separators: str = ";") -> list[str]:
    """
    Split a delimited string into an ordered list of trimmed entries.

    Empty entries are dropped, so a trailing separator is harmless:
    ``"8.8.8.8; 8.8.4.4;"`` becomes ``["8.8.8.8", "8.8.4.4"]``.
    Lists pass through with the same trimming applied to each item.
    """
    if value is None:
        return []
    if isinstance(value, str):
        pattern = "[" + re.escape(separators) + "]"
        items: Iterable[Any] = re.split(pattern, value)
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        raise ValueError("Expected a delimited string or a list of strings")

    result = []
    for item in items:
        if not isinstance(item, str):
            raise ValueError("List entries must be strings")
        item = item.strip()
        if item:
            result.append(item)
    return result


def format_string_list(items: Sequence[str], separator: str = ";") -> str:
    """Inverse of parse_string_list: ``["a", "b"]`` -> ``"a; b;"``."""
    if not items:
        return ""
    return " ".join(f"{item}{separator}" for item in items)


# ============================================================================
# Predicates
# ============================================================================


def is_ipv4(value: str) -> bool:
    try:
        dns.ipv4.inet_aton(value)
    except dns.exception.SyntaxError:
        return False
    return True


def is_ipv6(value: str) -> bool:
    if ":" not in value:
        return False
    try:
        dns.ipv6.inet_aton(value)
    except dns.exception.SyntaxError:
        return False
    return True


def is_netmask(value: str) -> bool:
    """A dotted-quad mask whose set bits are contiguous."""
    if not is_ipv4(value):
        return False
    bits = int(ipaddress.IPv4Address(value))
    inverted = bits ^ 0xFFFFFFFF
    return (inverted & (inverted + 1)) == 0


def is_mac_address(value: str) -> bool:
    return bool(_MAC_RE.match(value))


def is_hostname(value: str) -> bool:
    """A single host label or dotted host name (RFC 1123 letters, digits, hyphens)."""
    if not value or len(value) > 253:
        return False
    return all(_HOST_LABEL_RE.match(label) for label in value.rstrip(".").split("."))


def is_domain_name(value: str) -> bool:
    """
    A DNS name acceptable as a zone or record owner.

    Underscores and a leading wildcard label are allowed, since SRV and
    wildcard owners use them.
    """
    if not value:
        return False
    if value == "@":
        return True
    try:
        name = dns.name.from_text(value)
    except dns.exception.DNSException:
        return False
    labels = [label.decode("ascii", errors="replace") for label in name.labels if label]
    if not labels:
        return False
    return all(_DNS_LABEL_RE.match(label) for label in labels)


def ipv4_network(network: str, netmask: str) -> ipaddress.IPv4Network | None:
    """Network for an address/netmask pair, or None when host bits are set."""
    try:
        return ipaddress.IPv4Network(f"{network}/{netmask}", strict=True)
    except ValueError:
        return None


def ipv4_int(value: str) -> int:
    return int(ipaddress.IPv4Address(value))


# ============================================================================
# Two-phase validation
# ============================================================================


def _is_union_tag(element: Any, previous: Any) -> bool:
    # Discriminated unions insert the tag value (e.g. "MX") after the list index.
    return isinstance(previous, int) and isinstance(element, str) and not any(
        c.islower() for c in element
    )


def format_location(loc: Sequence[Any]) -> str:
    """Render a pydantic error location as ``zones[0].records[1].value``."""
    path = ""
    previous: Any = None
    for element in loc:
        if isinstance(element, int):
            path += f"[{element}]"
        elif _is_union_tag(element, previous):
            pass
        elif str(element).startswith("function-"):
            pass
        else:
            path = f"{path}.{element}" if path else str(element)
        previous = element
    return path or "(root)"


def _clean_message(message: str) -> str:
    for prefix in ("Value error, ", "Assertion failed, "):
        if message.startswith(prefix):
            return message[len(prefix):]
    return message


def structural_errors(exc: ValidationError) -> list[FieldError]:
    """Translate every pydantic error into a FieldError."""
    return [
        FieldError(path=format_location(error["loc"]), message=_clean_message(error["msg"]))
        for error in exc.errors(include_url=False)
    ]


def validate_configuration(
    model: type[ModelT],
    raw: Any,
    semantic_checks: Sequence[SemanticCheck] = (),
) -> ModelT:
    """
    Validate untyped input into a configuration model.

    Structural errors are collected from pydantic first; per-field and
    per-element rules live on the models, so all of those are reported
    together. Semantic checks compare fields against each other and need
    a parsed model, so they run only once the shape is valid, and then all
    of their errors are gathered. Raises InvalidConfigurationError
    carrying the complete list for whichever phase failed.
    """
    try:
        config = model.model_validate(raw)
    except ValidationError as exc:
        raise InvalidConfigurationError(structural_errors(exc)) from None

    errors: list[FieldError] = []
    for check in semantic_checks:
        errors.extend(check(config))
    if errors:
        raise InvalidConfigurationError(errors)
    return config
