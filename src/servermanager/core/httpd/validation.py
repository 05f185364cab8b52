"""Semantic checks for Apache configuration."""

from servermanager.core.httpd.models import HttpConfiguration
from servermanager.core.models import FieldError


def check_listen(config: HttpConfiguration) -> list[FieldError]:
    errors = []
    seen: dict[tuple[str, int], int] = {}
    for i, entry in enumerate(config.global_config.listen):
        key = (entry.address or "*", entry.port)
        if key in seen:
            errors.append(FieldError(
                path=f"globalConfig.listen[{i}].port",
                message=f"Duplicate Listen {key[0]}:{key[1]} (also globalConfig.listen[{seen[key]}])",
            ))
        else:
            seen[key] = i
    return errors


def check_virtual_hosts(config: HttpConfiguration) -> list[FieldError]:
    """Unique enabled name/port pairs; SSL hosts need certificate and key."""
    errors = []
    seen: dict[tuple[str, int], int] = {}
    for i, vhost in enumerate(config.virtual_hosts):
        prefix = f"virtualHosts[{i}]"

        if vhost.enabled:
            key = (vhost.server_name.lower(), vhost.port)
            if key in seen:
                errors.append(FieldError(
                    path=f"{prefix}.serverName",
                    message=(
                        f"Duplicate virtual host {vhost.server_name}:{vhost.port} "
                        f"(also virtualHosts[{seen[key]}])"
                    ),
                ))
            else:
                seen[key] = i

        if vhost.ssl_enabled:
            if not vhost.ssl.certificate_file:
                errors.append(FieldError(
                    path=f"{prefix}.ssl.certificateFile",
                    message="SSL certificate file is required when SSL is enabled",
                ))
            if not vhost.ssl.certificate_key_file:
                errors.append(FieldError(
                    path=f"{prefix}.ssl.certificateKeyFile",
                    message="SSL certificate key file is required when SSL is enabled",
                ))
    return errors


HTTP_CHECKS = (check_listen, check_virtual_hosts)
