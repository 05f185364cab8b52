"""Apply pipeline for DHCP configuration."""

from pathlib import Path

from servermanager.core.dhcp.models import DhcpConfiguration, DhcpRange, DhcpSubnet
from servermanager.core.dhcp.validation import DHCP_CHECKS
from servermanager.core.models import ServiceId
from servermanager.core.pipeline import ConfigurationApplier


class DhcpConfigurationApplier(ConfigurationApplier[DhcpConfiguration]):
    service = ServiceId.DHCPD
    model = DhcpConfiguration
    semantic_checks = DHCP_CHECKS
    label = "DHCP configuration"

    @property
    def primary_path(self) -> Path:
        return Path(self.settings.dhcp.dhcpd_conf)

    def default_configuration(self) -> DhcpConfiguration:
        return DhcpConfiguration(
            enabled=False,
            domain_name="local",
            domain_name_servers=["8.8.8.8", "8.8.4.4"],
            subnets=[
                DhcpSubnet(
                    network="192.168.1.0",
                    netmask="255.255.255.0",
                    range=DhcpRange(start="192.168.1.100", end="192.168.1.200"),
                    default_gateway="192.168.1.1",
                )
            ],
        )

    def is_enabled(self, config: DhcpConfiguration) -> bool:
        return config.enabled
