"""Renderer for dhcpd.conf and the dhcpd sysconfig file."""

import logging

from servermanager.core.base import BaseConfigRenderer
from servermanager.core.dhcp.models import DhcpConfiguration, DhcpOption, DhcpSubnet, HostReservation
from servermanager.core.formatting import sanitize_dhcp_value, sanitize_value
from servermanager.core.models import RenderedArtifact
from servermanager.settings import ConsoleSettings

logger = logging.getLogger(__name__)

HEADER = "# dhcpd.conf generated by server-manager"


def _quoted(value: str) -> str:
    return '"' + sanitize_value(value).replace('"', "").replace("\\", "") + '"'


class DhcpConfigRenderer(BaseConfigRenderer[DhcpConfiguration]):
    """
    Renders a DhcpConfiguration into ``dhcpd.conf``.

    A sysconfig file naming the listen interface is rendered as well when
    one is configured.
    """

    def __init__(self, settings: ConsoleSettings):
        self.settings = settings

    def render(self, config: DhcpConfiguration) -> list[RenderedArtifact]:
        content, warnings = self.render_dhcpd_conf(config)
        artifacts = [RenderedArtifact(
            path=str(self.settings.dhcp.dhcpd_conf),
            content=content,
            warnings=warnings,
        )]
        if config.listen_interface:
            artifacts.append(RenderedArtifact(
                path=str(self.settings.dhcp.sysconfig),
                content=f'DHCPDARGS="{sanitize_value(config.listen_interface)}"\n',
            ))
        return artifacts

    def _option_lines(
        self,
        options: list[DhcpOption],
        where: str,
        indent: str,
        warnings: list[str],
    ) -> list[str]:
        lines = []
        for option in options:
            if not option.is_complete:
                message = f"Skipping incomplete option in {where}: name and value are required."
                logger.warning(message)
                warnings.append(message)
                continue
            name = sanitize_value(option.name)
            if option.code is not None:
                lines.append(f"{indent}option {name} code {option.code} = text;")
                lines.append(f"{indent}option {name} {_quoted(option.value)};")
            else:
                lines.append(f"{indent}option {name} {sanitize_dhcp_value(option.value)};")
        return lines

    def render_dhcpd_conf(self, config: DhcpConfiguration) -> tuple[str, list[str]]:
        warnings: list[str] = []
        lines = [HEADER, ""]

        if config.domain_name:
            lines.append(f"option domain-name {_quoted(config.domain_name)};")
        if config.domain_name_servers:
            servers = ", ".join(sanitize_value(s) for s in config.domain_name_servers)
            lines.append(f"option domain-name-servers {servers};")
        lines.append("")

        lines.append(f"default-lease-time {config.default_lease_time};")
        lines.append(f"max-lease-time {config.max_lease_time};")
        lines.append("")

        lines.append(f"ddns-update-style {config.ddns_update_style.value};")
        if config.authoritative:
            lines.append("authoritative;")
        lines.append("")

        global_options = self._option_lines(config.global_options, "global options", "", warnings)
        if global_options:
            lines.extend(global_options)
            lines.append("")

        for i, subnet in enumerate(config.subnets):
            lines.extend(self.render_subnet(subnet, f"subnets[{i}]", warnings))
            lines.append("")

        for i, host in enumerate(config.host_reservations):
            lines.extend(self.render_host(host, f"hostReservations[{i}]", warnings))
            lines.append("")

        return "\n".join(lines), warnings

    def render_subnet(self, subnet: DhcpSubnet, where: str, warnings: list[str]) -> list[str]:
        lines = [f"subnet {sanitize_value(subnet.network)} netmask {sanitize_value(subnet.netmask)} {{"]
        if subnet.range is not None:
            lines.append(f"  range {sanitize_value(subnet.range.start)} {sanitize_value(subnet.range.end)};")
        if subnet.default_gateway:
            lines.append(f"  option routers {sanitize_value(subnet.default_gateway)};")
        if subnet.domain_name_servers:
            servers = ", ".join(sanitize_value(s) for s in subnet.domain_name_servers)
            lines.append(f"  option domain-name-servers {servers};")
        if subnet.broadcast_address:
            lines.append(f"  option broadcast-address {sanitize_value(subnet.broadcast_address)};")
        if subnet.subnet_mask:
            lines.append(f"  option subnet-mask {sanitize_value(subnet.subnet_mask)};")
        lines.extend(self._option_lines(subnet.options, where, "  ", warnings))
        lines.append("}")
        return lines

    def render_host(self, host: HostReservation, where: str, warnings: list[str]) -> list[str]:
        lines = [
            f"host {sanitize_value(host.hostname)} {{",
            f"  hardware ethernet {sanitize_value(host.mac_address)};",
            f"  fixed-address {sanitize_value(host.fixed_address)};",
        ]
        lines.extend(self._option_lines(host.options, where, "  ", warnings))
        lines.append("}")
        return lines
