"""Renderer for Apache httpd.conf."""

import logging
from pathlib import Path

from servermanager.core.base import BaseConfigRenderer
from servermanager.core.formatting import sanitize_directive
from servermanager.core.httpd.models import (
    HttpConfiguration,
    HttpDirective,
    HttpDirectory,
    HttpGlobalConfig,
    VirtualHost,
)
from servermanager.core.models import RenderedArtifact
from servermanager.settings import ConsoleSettings

logger = logging.getLogger(__name__)

HEADER = "# httpd.conf generated by server-manager"

# Loaded first, in this order, whatever else is requested.
ESSENTIAL_MODULES = ("mpm_event", "unixd", "authz_core", "dir", "mime", "log_config")

REDIRECT_STATUS = {
    "permanent": "permanent",
    "temporary": "temp",
    "seeother": "seeother",
    "gone": "gone",
}

LOG_FORMATS = (
    'LogFormat "%h %l %u %t \\"%r\\" %s %b \\"%{Referer}i\\" \\"%{User-Agent}i\\"" combined',
    'LogFormat "%h %l %u %t \\"%r\\" %s %b" common',
)

INDENT = "    "


def module_name(name: str) -> str:
    """``mod_rewrite.so`` and ``rewrite`` both name the rewrite module."""
    name = sanitize_directive(name)
    if name.endswith(".so"):
        name = name[:-3]
    if name.startswith("mod_"):
        name = name[4:]
    return name


def resolve_under(base: Path, value: str) -> str:
    """Absolute paths are kept; relative ones are placed under ``base``."""
    value = sanitize_directive(value)
    if value.startswith("/"):
        return value
    return str(base / value.lstrip("./"))


class HttpdConfigRenderer(BaseConfigRenderer[HttpConfiguration]):
    """
    Renders an HttpConfiguration into a single httpd.conf.

    Every interpolated value goes through sanitize_directive, so only the
    renderer itself ever writes angle brackets (for container blocks).
    """

    def __init__(self, settings: ConsoleSettings):
        self.settings = settings

    def render(self, config: HttpConfiguration) -> list[RenderedArtifact]:
        return [RenderedArtifact(
            path=str(self.settings.http.httpd_conf),
            content=self.render_httpd_conf(config),
        )]

    def document_root(self, vhost: VirtualHost) -> str:
        return resolve_under(self.settings.http.document_root_dir, vhost.document_root)

    # ========================================================================
    # Modules
    # ========================================================================

    def modules(self, config: HttpConfiguration) -> list[tuple[str, str]]:
        """(name, filename) pairs in load order, each module once."""
        global_config = config.global_config
        hosts = config.active_hosts
        filenames = {
            module_name(m.name): sanitize_directive(m.filename)
            for m in global_config.modules
            if m.filename
        }

        requested = list(ESSENTIAL_MODULES)
        requested += [module_name(m) for m in global_config.loaded_modules]
        requested += [module_name(m.name) for m in global_config.modules if m.enabled]
        if any(v.redirects for v in hosts):
            requested.append("alias")
        if any(v.rewrites for v in hosts):
            requested.append("rewrite")
        if config.ssl_requested:
            requested.append("ssl")

        ordered = []
        for name in requested:
            if not name or name in ordered:
                continue
            if name == "ssl" and not config.ssl_requested:
                logger.info("Not loading ssl module: no listener or virtual host requests SSL")
                continue
            ordered.append(name)

        return [(name, filenames.get(name, f"modules/mod_{name}.so")) for name in ordered]

    # ========================================================================
    # Directives
    # ========================================================================

    def _directive_lines(self, directives: list[HttpDirective], indent: str = "") -> list[str]:
        lines = []
        for directive in directives:
            if directive.comment:
                lines.append(f"{indent}# {sanitize_directive(directive.comment)}")
            name = sanitize_directive(directive.name)
            value = sanitize_directive(directive.value)
            lines.append(f"{indent}{name} {value}".rstrip())
        return lines

    def render_global(self, global_config: HttpGlobalConfig) -> list[str]:
        g = global_config
        lines = [f'ServerRoot "{sanitize_directive(g.server_root)}"']
        if g.server_name:
            lines.append(f"ServerName {sanitize_directive(g.server_name)}")
        if g.server_admin:
            lines.append(f"ServerAdmin {sanitize_directive(g.server_admin)}")
        lines.append("")

        for entry in g.listen:
            address = sanitize_directive(entry.address) if entry.address else "*"
            suffix = " ssl" if entry.ssl else ""
            lines.append(f"Listen {address}:{entry.port}{suffix}")
        lines.append("")
        return lines

    def render_server_settings(self, g: HttpGlobalConfig) -> list[str]:
        settings = [
            ("User", g.user),
            ("Group", g.group),
            ("ServerTokens", g.server_tokens),
            ("ServerSignature", g.server_signature),
            ("Timeout", g.timeout),
            ("KeepAlive", None if g.keep_alive is None else ("On" if g.keep_alive else "Off")),
            ("KeepAliveTimeout", g.keep_alive_timeout),
            ("MaxKeepAliveRequests", g.max_keep_alive_requests),
            ("StartServers", g.start_servers),
            ("MinSpareServers", g.min_spare_servers),
            ("MaxSpareServers", g.max_spare_servers),
            ("MaxRequestWorkers", g.max_request_workers),
            ("ServerLimit", g.server_limit),
        ]
        lines = [f"{name} {sanitize_directive(value)}" for name, value in settings if value is not None]

        error_log = resolve_under(self.settings.http.log_dir, g.error_log or "error_log")
        lines.append(f"ErrorLog {error_log}")
        lines.append(f"LogLevel {sanitize_directive(g.log_level or 'warn')}")
        lines.extend(LOG_FORMATS)
        lines.append("TypesConfig /etc/mime.types")
        return lines

    def render_directory(self, directory: HttpDirectory, indent: str) -> list[str]:
        inner = indent + INDENT
        path = resolve_under(self.settings.http.document_root_dir, directory.path)
        lines = [f'{indent}<Directory "{path}">']
        if directory.options:
            lines.append(f"{inner}Options {' '.join(sanitize_directive(o) for o in directory.options)}")
        if directory.allow_override:
            lines.append(f"{inner}AllowOverride {sanitize_directive(directory.allow_override)}")
        for requirement in directory.require:
            lines.append(f"{inner}Require {sanitize_directive(requirement)}")
        if directory.directory_index:
            index = " ".join(sanitize_directive(i) for i in directory.directory_index)
            lines.append(f"{inner}DirectoryIndex {index}")
        lines.extend(self._directive_lines(directory.custom_directives, inner))
        lines.append(f"{indent}</Directory>")
        return lines

    def render_virtual_host(self, vhost: VirtualHost) -> list[str]:
        http = self.settings.http
        name = sanitize_directive(vhost.server_name)
        address = sanitize_directive(vhost.ip_address) if vhost.ip_address else "*"

        lines = [f"<VirtualHost {address}:{vhost.port}>"]
        body = [f"ServerName {name}"]
        if vhost.server_alias:
            body.append(f"ServerAlias {' '.join(sanitize_directive(a) for a in vhost.server_alias)}")
        body.append(f"DocumentRoot {self.document_root(vhost)}")
        index = " ".join(sanitize_directive(i) for i in vhost.directory_index) or "index.html"
        body.append(f"DirectoryIndex {index}")

        body.append(f"ErrorLog {resolve_under(http.log_dir, vhost.error_log or f'{name}_error.log')}")
        if vhost.custom_log:
            for log in vhost.custom_log:
                path = resolve_under(http.log_dir, log.path)
                if log.type == "error":
                    body.append(f"ErrorLog {path}")
                else:
                    body.append(f"CustomLog {path} {sanitize_directive(log.format or 'combined')}")
        else:
            body.append(f"CustomLog {resolve_under(http.log_dir, f'{name}_requests.log')} combined")
        if vhost.log_level:
            body.append(f"LogLevel {sanitize_directive(vhost.log_level)}")

        if vhost.ssl_enabled:
            ssl = vhost.ssl
            body.append("SSLEngine on")
            body.append(f"SSLCertificateFile {sanitize_directive(ssl.certificate_file)}")
            body.append(f"SSLCertificateKeyFile {sanitize_directive(ssl.certificate_key_file)}")
            if ssl.certificate_chain_file:
                body.append(f"SSLCertificateChainFile {sanitize_directive(ssl.certificate_chain_file)}")
            if ssl.ssl_protocol:
                body.append(f"SSLProtocol {' '.join(sanitize_directive(p) for p in ssl.ssl_protocol)}")
            if ssl.ssl_cipher_suite:
                body.append(f"SSLCipherSuite {sanitize_directive(ssl.ssl_cipher_suite)}")

        lines.extend(INDENT + line for line in body)
        for directory in vhost.directories:
            lines.extend(self.render_directory(directory, INDENT))

        for redirect in vhost.redirects:
            status = REDIRECT_STATUS[redirect.type]
            target = "" if redirect.type == "gone" else f" {sanitize_directive(redirect.to)}"
            lines.append(f"{INDENT}Redirect {status} {sanitize_directive(redirect.source)}{target}")

        if vhost.rewrites:
            lines.append(f"{INDENT}RewriteEngine on")
            for rewrite in vhost.rewrites:
                flags = ",".join(sanitize_directive(f) for f in rewrite.flags)
                flag_text = f" [{flags}]" if flags else ""
                lines.append(
                    f"{INDENT}RewriteRule {sanitize_directive(rewrite.pattern)} "
                    f"{sanitize_directive(rewrite.substitution)}{flag_text}"
                )

        lines.extend(self._directive_lines(vhost.custom_directives, INDENT))
        lines.append("</VirtualHost>")
        return lines

    def render_httpd_conf(self, config: HttpConfiguration) -> str:
        lines = [HEADER, ""]
        lines.extend(self.render_global(config.global_config))

        for name, filename in self.modules(config):
            lines.append(f"LoadModule {name}_module {filename}")
        lines.append("")

        lines.extend(self.render_server_settings(config.global_config))
        lines.append("")

        custom = self._directive_lines(config.global_config.custom_directives)
        if custom:
            lines.extend(custom)
            lines.append("")

        for vhost in config.virtual_hosts:
            if not vhost.enabled:
                logger.info(f"Skipping disabled virtual host {sanitize_directive(vhost.server_name)}")
                continue
            lines.extend(self.render_virtual_host(vhost))
            lines.append("")

        return "\n".join(lines)
