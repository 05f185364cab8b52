"""Semantic checks for BIND configuration."""

import re

from servermanager.core.bind.models import DnsConfiguration, ZoneKind
from servermanager.core.models import FieldError
from servermanager.core.validation import is_domain_name

_FILE_NAME_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.+-]*$")


def check_zones(config: DnsConfiguration) -> list[FieldError]:
    """Zone names, file names and per-kind companion fields."""
    errors = []
    seen_names: dict[str, int] = {}
    seen_files: dict[str, int] = {}

    for i, zone in enumerate(config.zones):
        prefix = f"zones[{i}]"

        if not is_domain_name(zone.name) or zone.name == "@":
            errors.append(FieldError(path=f"{prefix}.name", message=f"Invalid zone name: {zone.name}"))
        key = zone.name.lower()
        if key in seen_names:
            errors.append(FieldError(
                path=f"{prefix}.name",
                message=f"Duplicate zone {zone.name} (also zones[{seen_names[key]}])",
            ))
        else:
            seen_names[key] = i

        file_name = zone.file_name or ""
        if not _FILE_NAME_RE.match(file_name):
            errors.append(FieldError(
                path=f"{prefix}.fileName",
                message="File name must be a bare file name without directories or special characters",
            ))
        elif file_name in seen_files:
            errors.append(FieldError(
                path=f"{prefix}.fileName",
                message=f"Duplicate file name {file_name} (also zones[{seen_files[file_name]}])",
            ))
        else:
            seen_files[file_name] = i

        if zone.kind == ZoneKind.SLAVE and not zone.masters:
            errors.append(FieldError(path=f"{prefix}.masters", message="Slave zones need at least one master"))

        if zone.kind == ZoneKind.FORWARD and not zone.forwarders:
            errors.append(FieldError(
                path=f"{prefix}.forwarders", message="Forward zones need at least one forwarder"
            ))

    return errors


DNS_CHECKS = (check_zones,)
