"""Renderer for BIND zone files, named.conf and the zone-inclusion file."""

import logging
from datetime import date
from pathlib import Path
from typing import Callable

from servermanager.core.base import BaseConfigRenderer
from servermanager.core.bind.models import (
    ARecord,
    AAAARecord,
    CNAMERecord,
    DnsConfiguration,
    MXRecord,
    NSRecord,
    PTRRecord,
    SRVRecord,
    TXTRecord,
    Zone,
    ZoneKind,
)
from servermanager.core.formatting import fqdn, quote_txt, sanitize_bind_value, sanitize_value
from servermanager.core.models import RenderedArtifact
from servermanager.settings import ConsoleSettings

logger = logging.getLogger(__name__)

HEADER = "// Generated by server-manager"


def zone_file_path(settings: ConsoleSettings, zone: Zone) -> Path:
    return settings.dns.zones_dir / (zone.file_name or f"{zone.name}.zone")


def soa_email(email: str) -> str:
    """``admin@example.com`` -> ``admin.example.com.``"""
    local, at, domain = email.strip().partition("@")
    if not at:
        return fqdn(email)
    local = local.replace(".", "\\.")
    return fqdn(f"{local}.{domain}")


def _acl(items: list[str]) -> str:
    return " ".join(f"{sanitize_bind_value(item)};" for item in items)


class BindConfigRenderer(BaseConfigRenderer[DnsConfiguration]):
    """
    Renders a DnsConfiguration into BIND's native files.

    Artifacts come out in a fixed order: one zone file per master zone,
    then named.conf, then the zone-inclusion file. The serial date comes
    from ``clock`` so tests can pin it.
    """

    def __init__(self, settings: ConsoleSettings, clock: Callable[[], date] = date.today):
        self.settings = settings
        self.clock = clock

    def render(self, config: DnsConfiguration) -> list[RenderedArtifact]:
        artifacts = []
        ignored = []
        for zone in config.zones:
            if zone.kind == ZoneKind.MASTER:
                content, warnings = self.render_zone(zone)
                artifacts.append(RenderedArtifact(
                    path=str(zone_file_path(self.settings, zone)),
                    content=content,
                    warnings=warnings,
                ))
            elif zone.records:
                message = f"Ignoring {len(zone.records)} record(s) in {zone.kind.value} zone {zone.name}"
                logger.warning(message)
                ignored.append(message)

        artifacts.append(RenderedArtifact(
            path=str(self.settings.dns.named_conf),
            content=self.render_named_conf(config),
            warnings=ignored,
        ))
        artifacts.append(RenderedArtifact(
            path=str(self.settings.dns.zones_conf),
            content=self.render_zones_conf(config),
        ))
        return artifacts

    # ========================================================================
    # Zone files
    # ========================================================================

    def serial(self) -> int:
        return int(f"{self.clock():%Y%m%d}{self.settings.soa.serial_sequence:02d}")

    def render_zone(self, zone: Zone) -> tuple[str, list[str]]:
        """Zone file text plus warnings for records that were skipped."""
        soa = self.settings.soa
        ttl = zone.ttl if zone.ttl is not None else soa.ttl
        zone_name = sanitize_value(zone.name)

        apex_ns = [r for r in zone.records if isinstance(r, NSRecord) and r.name == "@"]
        primary_ns = fqdn(sanitize_value(apex_ns[0].value)) if apex_ns else f"ns1.{zone_name}."
        admin = soa_email(sanitize_bind_value(zone.admin_email or soa.admin_email))

        lines = [
            f"$TTL {ttl}",
            f"@ IN SOA {primary_ns} {admin} (",
            f"        {self.serial()} ; Serial",
            f"        {soa.refresh} ; Refresh",
            f"        {soa.retry} ; Retry",
            f"        {soa.expire} ; Expire",
            f"        {soa.negative_ttl} ) ; Negative Cache TTL",
            ";",
        ]
        if not apex_ns:
            lines.append(f"@ IN NS {primary_ns}")

        warnings = []
        for record in zone.records:
            line = self.render_record(record)
            if line is None:
                name = sanitize_value(record.name)
                if isinstance(record, MXRecord):
                    message = f"Skipping malformed MX record ({name}) in {zone_name}: missing priority."
                else:
                    message = (
                        f"Skipping malformed {record.type} record ({name}) in {zone_name}: "
                        "missing required properties."
                    )
                logger.warning(message)
                warnings.append(message)
                continue
            lines.append(line)

        return "\n".join(lines) + "\n", warnings

    def render_record(self, record) -> str | None:
        """One zone-file line, or None when the record is incomplete."""
        name = sanitize_value(record.name)
        owner = f"{name} {record.ttl}" if record.ttl is not None else name

        if isinstance(record, (ARecord, AAAARecord)):
            data = sanitize_value(record.value)
        elif isinstance(record, (CNAMERecord, NSRecord, PTRRecord)):
            data = fqdn(sanitize_value(record.value))
        elif isinstance(record, MXRecord):
            if not record.is_complete:
                return None
            data = f"{record.priority} {fqdn(sanitize_value(record.value))}"
        elif isinstance(record, SRVRecord):
            if not record.is_complete:
                return None
            data = (
                f"{record.priority} {record.weight} {record.port} "
                f"{fqdn(sanitize_value(record.target))}"
            )
        elif isinstance(record, TXTRecord):
            data = quote_txt(sanitize_value(record.value))
        else:
            return None

        return f"{owner} IN {record.type} {data}"

    # ========================================================================
    # named.conf
    # ========================================================================

    def render_named_conf(self, config: DnsConfiguration) -> str:
        dns = self.settings.dns
        lines = [
            HEADER,
            "",
            "options {",
            f'  directory "{dns.working_dir}";',
        ]
        if config.listen_on:
            lines.append(f"  listen-on port 53 {{ {_acl(config.listen_on)} }};")
        lines.append("  listen-on-v6 port 53 { ::1; };")
        lines.append("")

        if config.allow_query:
            lines.append(f"  allow-query {{ {_acl(config.allow_query)} }};")
        if config.allow_recursion:
            lines.append(f"  allow-recursion {{ {_acl(config.allow_recursion)} }};")
        if config.forwarders:
            lines.append(f"  forwarders {{ {_acl(config.forwarders)} }};")
        if config.allow_transfer:
            lines.append(f"  allow-transfer {{ {_acl(config.allow_transfer)} }};")
        lines.append("")

        lines.append(f"  dnssec-validation {'yes' if config.dnssec_validation else 'no'};")
        lines.append(f"  recursion {'yes' if config.allow_recursion else 'no'};")
        lines.append("};")
        lines.append("")

        lines.extend([
            "logging {",
            "  channel default_debug {",
            '    file "data/named.run";',
            "    severity dynamic;",
            "  };",
        ])
        if config.query_logging:
            lines.extend([
                "  channel query_log {",
                '    file "data/queries.log" versions 3 size 5m;',
                "    print-time yes;",
                "    severity info;",
                "  };",
                "  category queries { query_log; };",
            ])
        lines.append("};")
        lines.append("")
        lines.append(f'include "{dns.zones_conf}";')
        return "\n".join(lines) + "\n"

    # ========================================================================
    # Zone inclusion file
    # ========================================================================

    def _zone_file_reference(self, zone: Zone) -> str:
        # Files in BIND's working directory are referenced relative to it.
        path = zone_file_path(self.settings, zone)
        if path.parent == self.settings.dns.working_dir:
            return sanitize_bind_value(path.name)
        return sanitize_bind_value(str(path))

    def render_zones_conf(self, config: DnsConfiguration) -> str:
        lines = ["// Zone definitions generated by server-manager", ""]

        for zone in config.zones:
            lines.append(f'zone "{sanitize_bind_value(zone.name)}" IN {{')
            lines.append(f"  type {zone.kind.value};")

            if zone.kind == ZoneKind.MASTER:
                lines.append(f'  file "{self._zone_file_reference(zone)}";')
                lines.append(f"  allow-update {{ {_acl(zone.allow_update or ['none'])} }};")
                if config.allow_transfer:
                    lines.append(f"  allow-transfer {{ {_acl(config.allow_transfer)} }};")
            elif zone.kind == ZoneKind.SLAVE:
                lines.append(f'  file "{self._zone_file_reference(zone)}";')
                lines.append(f"  masters {{ {_acl(zone.masters)} }};")
            else:
                lines.append("  forward only;")
                lines.append(f"  forwarders {{ {_acl(zone.forwarders)} }};")

            lines.append("};")
            lines.append("")

        return "\n".join(lines)
