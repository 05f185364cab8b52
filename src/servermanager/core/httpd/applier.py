"""Apply pipeline for Apache configuration."""

from pathlib import Path

from servermanager.core.httpd.config import HttpdConfigRenderer
from servermanager.core.httpd.models import (
    HttpConfiguration,
    HttpGlobalConfig,
    HttpListen,
    VirtualHost,
)
from servermanager.core.httpd.validation import HTTP_CHECKS
from servermanager.core.models import ServiceId
from servermanager.core.pipeline import ConfigurationApplier


class HttpConfigurationApplier(ConfigurationApplier[HttpConfiguration]):
    service = ServiceId.HTTPD
    model = HttpConfiguration
    semantic_checks = HTTP_CHECKS
    label = "HTTP configuration"
    renderer: HttpdConfigRenderer

    @property
    def primary_path(self) -> Path:
        return Path(self.settings.http.httpd_conf)

    def default_configuration(self) -> HttpConfiguration:
        return HttpConfiguration(
            enabled=False,
            global_config=HttpGlobalConfig(
                server_root="/etc/httpd",
                server_name="localhost",
                server_admin="admin@localhost",
                listen=[HttpListen(port=80)],
                user="apache",
                group="apache",
                server_tokens="Prod",
                server_signature="Off",
            ),
            virtual_hosts=[
                VirtualHost(server_name="localhost", document_root="default", port=80),
            ],
        )

    def is_enabled(self, config: HttpConfiguration) -> bool:
        return config.enabled

    async def prepare(self, config: HttpConfiguration) -> None:
        """Log directory and every enabled document root must exist."""
        await self.writer.ensure_directory(self.settings.http.log_dir)
        for vhost in config.active_hosts:
            await self.writer.ensure_directory(self.renderer.document_root(vhost))
