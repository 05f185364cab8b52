"""Tests for BIND rendering, validation and checking."""

import logging

import pytest

from servermanager.core.bind import BindConfigChecker, BindConfigRenderer, DnsConfiguration
from servermanager.core.bind.config import soa_email
from servermanager.core.bind.models import MXRecord, SRVRecord, Zone, ZoneKind
from servermanager.core.bind.validation import DNS_CHECKS
from servermanager.core.errors import ExternalValidationError, InvalidConfigurationError
from servermanager.core.models import ProcessResult
from servermanager.core.validation import validate_configuration


def build(raw: dict) -> DnsConfiguration:
    return validate_configuration(DnsConfiguration, raw, DNS_CHECKS)


def zone(records: list[dict], **fields) -> dict:
    return {"zoneName": "example.com", "records": records, **fields}


@pytest.fixture
def renderer(settings, fixed_clock):
    return BindConfigRenderer(settings, clock=fixed_clock)


class TestDnsModels:
    """Tests for DNS configuration models."""

    def test_legacy_field_names(self, sample_dns_config):
        config = DnsConfiguration.model_validate(sample_dns_config)
        assert config.enabled is True
        assert config.zones[0].name == "example.com"
        assert config.zones[0].kind == ZoneKind.MASTER

    def test_file_name_defaults_to_zone_name(self):
        config = build({"zones": [{"name": "example.org"}]})
        assert config.zones[0].file_name == "example.org.zone"

    def test_record_type_is_case_insensitive(self):
        config = build({"zones": [zone([{"type": "a", "name": "host", "value": "10.0.0.1"}])]})
        assert config.zones[0].records[0].type == "A"

    def test_blank_name_means_apex(self):
        config = build({"zones": [zone([{"type": "A", "name": "", "value": "10.0.0.1"}])]})
        assert config.zones[0].records[0].name == "@"

    def test_mx_without_priority_is_accepted(self):
        config = build({"zones": [zone([{"type": "MX", "name": "@", "value": "mail", "priority": ""}])]})
        record = config.zones[0].records[0]
        assert isinstance(record, MXRecord)
        assert not record.is_complete

    def test_srv_accepts_value_for_target(self):
        config = build({
            "zones": [zone([{
                "type": "SRV", "name": "_sip._tcp", "value": "sip.example.com",
                "priority": 10, "weight": 5, "port": 5060,
            }])]
        })
        record = config.zones[0].records[0]
        assert isinstance(record, SRVRecord)
        assert record.target == "sip.example.com"
        assert record.is_complete

    def test_master_zones(self):
        config = build({
            "zones": [
                {"name": "a.com"},
                {"name": "b.com", "kind": "slave", "masters": "10.0.0.1;"},
            ]
        })
        assert [z.name for z in config.master_zones] == ["a.com"]


class TestDnsValidation:
    """Tests for semantic DNS checks."""

    def test_duplicate_file_name(self):
        with pytest.raises(InvalidConfigurationError) as exc:
            build({
                "zones": [
                    {"name": "a.com", "fileName": "db.zone"},
                    {"name": "b.com", "fileName": "db.zone"},
                ]
            })
        assert [e.path for e in exc.value.errors] == ["zones[1].fileName"]

    def test_duplicate_zone_name(self):
        with pytest.raises(InvalidConfigurationError) as exc:
            build({
                "zones": [
                    {"name": "a.com", "fileName": "one.zone"},
                    {"name": "A.com", "fileName": "two.zone"},
                ]
            })
        assert exc.value.errors[0].path == "zones[1].name"

    def test_file_name_with_directory(self):
        with pytest.raises(InvalidConfigurationError) as exc:
            build({"zones": [{"name": "a.com", "fileName": "../etc/passwd"}]})
        assert exc.value.errors[0].path == "zones[0].fileName"

    def test_slave_without_masters(self):
        with pytest.raises(InvalidConfigurationError) as exc:
            build({"zones": [{"name": "a.com", "kind": "slave"}]})
        assert exc.value.errors[0].path == "zones[0].masters"

    def test_forward_without_forwarders(self):
        with pytest.raises(InvalidConfigurationError) as exc:
            build({"zones": [{"name": "a.com", "kind": "forward"}]})
        assert exc.value.errors[0].path == "zones[0].forwarders"

    def test_invalid_listen_address(self):
        with pytest.raises(InvalidConfigurationError) as exc:
            build({"listenOn": "127.0.0.1; 300.1.1.1;", "zones": [{"name": "a.com"}]})
        assert exc.value.errors[0].path == "listenOn[1]"

    def test_listen_keywords_allowed(self):
        config = build({"listenOn": "any;", "zones": [{"name": "a.com"}]})
        assert config.listen_on == ["any"]

    def test_invalid_master_address(self):
        with pytest.raises(InvalidConfigurationError) as exc:
            build({"zones": [{"name": "a.com", "kind": "slave", "masters": "10.0.0.1; primary;"}]})
        assert [e.path for e in exc.value.errors] == ["zones[0].masters[1]"]

    @pytest.mark.parametrize("element", [
        "any",
        "none",
        "localnets",
        "192.168.1.0/24",
        "2001:db8::/32",
        "!10.0.0.0/8",
        "key ddns-key.example.com",
        "trusted_clients",
    ])
    def test_acl_elements_accepted(self, element):
        config = build({"allowTransfer": [element], "zones": [{"name": "a.com"}]})
        assert config.allow_transfer == [element]

    @pytest.mark.parametrize("element", ["localhost }", "key x; }", '"quoted"', "two words", "!"])
    def test_acl_elements_rejected(self, element):
        with pytest.raises(InvalidConfigurationError) as exc:
            build({"allowQuery": ["localhost", element], "zones": [{"name": "a.com"}]})
        assert [e.path for e in exc.value.errors] == ["allowQuery[1]"]

    def test_acl_cannot_close_its_block(self):
        with pytest.raises(InvalidConfigurationError) as exc:
            build({
                "allowQuery": ["any", 'localhost; }; include "/etc/passwd"; options { x'],
                "zones": [{
                    "name": "a.com",
                    "allowUpdate": ['key x; }; }; zone "evil" { type master; file "/etc/shadow'],
                }],
            })
        assert {e.path for e in exc.value.errors} == {"allowQuery[1]", "zones[0].allowUpdate[0]"}

    def test_invalid_admin_email(self):
        with pytest.raises(InvalidConfigurationError) as exc:
            build({"zones": [{"name": "a.com", "adminEmail": "root@a.com ) 1 ;"}]})
        assert [e.path for e in exc.value.errors] == ["zones[0].adminEmail"]

    def test_file_name_with_quote(self):
        with pytest.raises(InvalidConfigurationError) as exc:
            build({"zones": [{"name": "a.com", "fileName": 'a.zone"; allow-update { any'}]})
        assert exc.value.errors[0].path == "zones[0].fileName"


class TestZoneRendering:
    """Tests for zone file generation."""

    def test_serial_from_clock(self, renderer):
        assert renderer.serial() == 2024011501

    def test_zone_file_layout(self, renderer, sample_dns_config):
        config = build(sample_dns_config)
        content, warnings = renderer.render_zone(config.zones[0])
        lines = content.splitlines()

        assert warnings == []
        assert lines[0] == "$TTL 3600"
        assert lines[1] == "@ IN SOA ns1.example.com. admin.example.com. ("
        assert "        2024011501 ; Serial" in lines
        assert "@ IN NS ns1.example.com." in lines
        assert "@ IN A 192.168.1.100" in lines
        assert "www IN CNAME @" in lines
        assert "@ IN MX 10 mail.example.com." in lines
        assert '@ IN TXT "v=spf1 \\"mx\\" -all"' in lines

    def test_records_follow_input_order(self, renderer, sample_dns_config):
        content, _ = renderer.render_zone(build(sample_dns_config).zones[0])
        soa = content.index("IN SOA")
        ns = content.index("IN NS")
        a = content.index("IN A ")
        mx = content.index("IN MX")
        assert soa < ns < a < mx

    def test_apex_ns_replaces_implicit_ns(self, renderer):
        config = build({"zones": [zone([{"type": "NS", "name": "@", "value": "ns.example.net"}])]})
        content, _ = renderer.render_zone(config.zones[0])
        assert "@ IN SOA ns.example.net. admin.example.com. (" in content
        assert content.count(" IN NS ") == 1

    def test_zone_ttl_override(self, renderer):
        config = build({"zones": [zone([], ttl=300)]})
        content, _ = renderer.render_zone(config.zones[0])
        assert content.startswith("$TTL 300\n")

    def test_record_ttl(self, renderer):
        config = build({"zones": [zone([{"type": "A", "name": "host", "value": "10.0.0.1", "ttl": 60}])]})
        content, _ = renderer.render_zone(config.zones[0])
        assert "host 60 IN A 10.0.0.1" in content

    def test_malformed_mx_is_skipped(self, renderer, caplog):
        config = build({
            "zones": [zone([
                {"type": "A", "name": "host", "value": "10.0.0.1"},
                {"type": "MX", "name": "mail", "value": "mx.example.com"},
            ])]
        })
        with caplog.at_level(logging.WARNING, logger="servermanager"):
            content, warnings = renderer.render_zone(config.zones[0])

        assert "host IN A 10.0.0.1" in content
        assert " IN MX " not in content
        assert len(warnings) == 1
        assert "malformed MX record (mail)" in warnings[0]
        assert "missing priority" in caplog.text

    def test_srv_record(self, renderer):
        config = build({
            "zones": [zone([{
                "type": "SRV", "name": "_sip._tcp", "target": "sip.example.com",
                "priority": 10, "weight": 5, "port": 5060,
            }])]
        })
        content, _ = renderer.render_zone(config.zones[0])
        assert "_sip._tcp IN SRV 10 5 5060 sip.example.com." in content

    def test_incomplete_srv_is_skipped(self, renderer):
        config = build({
            "zones": [zone([{"type": "SRV", "name": "_sip._tcp", "target": "sip.example.com", "priority": 10}])]
        })
        content, warnings = renderer.render_zone(config.zones[0])
        assert " IN SRV " not in content
        assert "malformed SRV record" in warnings[0]

    def test_fqdn_keeps_existing_dot(self, renderer):
        config = build({"zones": [zone([{"type": "CNAME", "name": "alias", "value": "target.example.org."}])]})
        content, _ = renderer.render_zone(config.zones[0])
        assert "alias IN CNAME target.example.org." in content
        assert ".." not in content

    def test_long_txt_is_split(self, renderer):
        config = build({"zones": [zone([{"type": "TXT", "name": "@", "value": "x" * 300}])]})
        content, _ = renderer.render_zone(config.zones[0])
        assert f'"{"x" * 255}" "{"x" * 45}"' in content

    def test_txt_markup_is_stripped(self, renderer):
        config = build({"zones": [zone([{"type": "TXT", "name": "@", "value": "<script>`x`</script>"}])]})
        content, _ = renderer.render_zone(config.zones[0])
        assert "<" not in content
        assert "`" not in content

    def test_txt_trailing_backslash_is_escaped(self, renderer):
        config = build({"zones": [zone([{"type": "TXT", "name": "t", "value": "ends\\"}])]})
        content, _ = renderer.render_zone(config.zones[0])
        assert 't IN TXT "ends\\\\"' in content.splitlines()

    def test_txt_quote_cannot_close_string(self, renderer):
        config = build({"zones": [zone([{"type": "TXT", "name": "@", "value": r'a\" "b'}])]})
        content, _ = renderer.render_zone(config.zones[0])
        assert r'@ IN TXT "a\\\" \"b"' in content.splitlines()

    def test_txt_escapes_do_not_span_chunks(self, renderer):
        value = "x" * 254 + '"' + "y"
        config = build({"zones": [zone([{"type": "TXT", "name": "@", "value": value}])]})
        content, _ = renderer.render_zone(config.zones[0])
        assert f'"{"x" * 254}\\"" "y"' in content

    def test_txt_keeps_semicolons_inside_quotes(self, renderer):
        config = build({"zones": [zone([{"type": "TXT", "name": "dkim", "value": "v=DKIM1; k=rsa"}])]})
        content, _ = renderer.render_zone(config.zones[0])
        assert 'dkim IN TXT "v=DKIM1; k=rsa"' in content.splitlines()

    def test_rendering_is_deterministic(self, renderer, sample_dns_config):
        config = build(sample_dns_config)
        first = [(a.path, a.content) for a in renderer.render(config)]
        second = [(a.path, a.content) for a in renderer.render(config)]
        assert first == second


class TestSoaEmail:
    """Tests for SOA contact conversion."""

    def test_simple(self):
        assert soa_email("admin@example.com") == "admin.example.com."

    def test_dotted_local_part(self):
        assert soa_email("dns.admin@example.com") == "dns\\.admin.example.com."


class TestNamedConf:
    """Tests for named.conf and the zone-inclusion file."""

    def test_artifact_order(self, renderer, settings, sample_dns_config):
        artifacts = renderer.render(build(sample_dns_config))
        assert [a.path for a in artifacts] == [
            str(settings.dns.zones_dir / "example.com.zone"),
            str(settings.dns.named_conf),
            str(settings.dns.zones_conf),
        ]

    def test_options(self, renderer, settings, sample_dns_config):
        content = renderer.render_named_conf(build(sample_dns_config))
        assert f'directory "{settings.dns.working_dir}";' in content
        assert "listen-on port 53 { 127.0.0.1; 192.168.1.1; };" in content
        assert "allow-query { localhost; 192.168.1.0/24; };" in content
        assert "forwarders { 8.8.8.8; 8.8.4.4; };" in content
        assert "dnssec-validation yes;" in content
        assert "recursion yes;" in content
        assert f'include "{settings.dns.zones_conf}";' in content

    def test_recursion_disabled(self, renderer):
        config = build({"allowRecursion": "", "zones": [{"name": "a.com"}]})
        content = renderer.render_named_conf(config)
        assert "recursion no;" in content
        assert "allow-recursion" not in content

    def test_query_logging(self, renderer):
        config = build({"queryLogging": True, "zones": [{"name": "a.com"}]})
        content = renderer.render_named_conf(config)
        assert "channel query_log {" in content
        assert "category queries { query_log; };" in content

    def test_zones_conf(self, renderer, sample_dns_config):
        content = renderer.render_zones_conf(build(sample_dns_config))
        assert 'zone "example.com" IN {' in content
        assert "  type master;" in content
        assert '  file "example.com.zone";' in content
        assert "  allow-update { none; };" in content

    def test_slave_and_forward_zones(self, renderer, caplog):
        config = build({
            "zones": [
                {"name": "a.com"},
                {
                    "name": "b.com", "kind": "slave", "masters": "10.0.0.1;",
                    "records": [{"type": "A", "name": "x", "value": "10.0.0.9"}],
                },
                {"name": "c.com", "kind": "forward", "forwarders": "10.0.0.2; 10.0.0.3;"},
            ]
        })
        with caplog.at_level(logging.WARNING, logger="servermanager"):
            artifacts = renderer.render(config)

        assert len(artifacts) == 3
        named_conf = artifacts[1]
        assert "Ignoring 1 record(s) in slave zone b.com" in named_conf.warnings

        content = artifacts[2].content
        assert "  masters { 10.0.0.1; };" in content
        assert "  forward only;" in content
        assert "  forwarders { 10.0.0.2; 10.0.0.3; };" in content

    def test_absolute_reference_outside_working_dir(self, settings, fixed_clock, tmp_path):
        moved = settings.model_copy(
            update={"dns": settings.dns.model_copy(update={"working_dir": tmp_path / "elsewhere"})}
        )
        content = BindConfigRenderer(moved, clock=fixed_clock).render_zones_conf(
            build({"zones": [{"name": "a.com"}]})
        )
        assert f'file "{settings.dns.zones_dir / "a.com.zone"}";' in content

    def test_list_values_stay_inside_their_block(self, renderer):
        zone_model = Zone.model_construct(
            name="a.com",
            kind=ZoneKind.MASTER,
            file_name="a.com.zone",
            allow_update=['key x; }; }; zone "evil" { type master; file "/etc/shadow'],
            records=[],
        )
        config = DnsConfiguration.model_construct(
            allow_query=["any", 'localhost; }; include "/etc/passwd"; options { x'],
            zones=[zone_model],
        )

        named_conf = renderer.render_named_conf(config)
        zones_conf = renderer.render_zones_conf(config)

        allow_query = next(line for line in named_conf.splitlines() if "allow-query" in line)
        assert allow_query == "  allow-query { any; localhost  include /etc/passwd options  x; };"
        allow_update = next(line for line in zones_conf.splitlines() if "allow-update" in line)
        assert allow_update.count("{") == 1
        assert allow_update.count("}") == 1
        assert '"' not in allow_update
        assert 'zone "evil"' not in zones_conf


class TestBindChecker:
    """Tests for named-checkconf / named-checkzone invocation."""

    @pytest.mark.asyncio
    async def test_commands(self, settings, fake_runner, sample_dns_config):
        checker = BindConfigChecker(settings, fake_runner)
        await checker.check(build(sample_dns_config))
        assert fake_runner.calls == [
            ["named-checkconf", str(settings.dns.named_conf)],
            ["named-checkzone", "example.com", str(settings.dns.zones_dir / "example.com.zone")],
        ]

    @pytest.mark.asyncio
    async def test_zone_failure_stops_checking(self, settings, fake_runner, sample_dns_config):
        fake_runner.fail("named-checkzone", stderr="zone example.com/IN: loading from master file failed")
        checker = BindConfigChecker(settings, fake_runner)

        with pytest.raises(ExternalValidationError) as exc:
            await checker.check(build(sample_dns_config))

        assert "named-checkzone example.com" in exc.value.command
        assert "loading from master file failed" in exc.value.stderr
        assert exc.value.status_code == 500

    @pytest.mark.asyncio
    async def test_benign_stderr_passes(self, settings, sample_dns_config):
        class ChattyRunner:
            async def run(self, command, *args, timeout=None):
                return ProcessResult(
                    command=[command, *args],
                    returncode=0,
                    stderr="zone example.com/IN: loaded serial 2024011501\nOK\n",
                )

        checker = BindConfigChecker(settings, ChattyRunner())
        results = await checker.check(build(sample_dns_config))
        assert len(results) == 2

    @pytest.mark.asyncio
    async def test_unexpected_stderr_fails(self, settings, fake_runner, sample_dns_config):
        fake_runner.fail("named-checkconf", returncode=0, stderr="/etc/named.conf:3: unknown option 'bogus'")
        checker = BindConfigChecker(settings, fake_runner)

        with pytest.raises(ExternalValidationError) as exc:
            await checker.check(build(sample_dns_config))
        assert "unknown option" in exc.value.stderr
        assert fake_runner.programs() == ["named-checkconf"]
