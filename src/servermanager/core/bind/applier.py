"""Apply pipeline for DNS configuration."""

from pathlib import Path

from servermanager.core.bind.models import ARecord, CNAMERecord, DnsConfiguration, Zone
from servermanager.core.bind.validation import DNS_CHECKS
from servermanager.core.models import ServiceId
from servermanager.core.pipeline import ConfigurationApplier


class DnsConfigurationApplier(ConfigurationApplier[DnsConfiguration]):
    service = ServiceId.NAMED
    model = DnsConfiguration
    semantic_checks = DNS_CHECKS
    label = "DNS configuration"

    @property
    def primary_path(self) -> Path:
        return Path(self.settings.dns.named_conf)

    def default_configuration(self) -> DnsConfiguration:
        return DnsConfiguration(
            enabled=False,
            listen_on=["127.0.0.1"],
            allow_query=["localhost", "127.0.0.1"],
            allow_recursion=["localhost"],
            forwarders=["8.8.8.8", "8.8.4.4"],
            zones=[
                Zone(
                    name="example.com",
                    file_name="example.com.zone",
                    records=[
                        ARecord(name="@", value="192.168.1.100"),
                        CNAMERecord(name="www", value="@"),
                    ],
                )
            ],
        )

    def is_enabled(self, config: DnsConfiguration) -> bool:
        return config.enabled

    async def prepare(self, config: DnsConfiguration) -> None:
        await self.writer.ensure_directory(self.settings.dns.zones_dir)
