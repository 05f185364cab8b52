"""Tests for list coercion, predicates and two-phase validation."""

import pytest

from servermanager.core.bind.models import DnsConfiguration
from servermanager.core.bind.validation import DNS_CHECKS
from servermanager.core.errors import InvalidConfigurationError
from servermanager.core.validation import (
    format_location,
    format_string_list,
    is_domain_name,
    is_hostname,
    is_ipv4,
    is_ipv6,
    is_mac_address,
    is_netmask,
    parse_string_list,
    validate_configuration,
)


class TestStringLists:
    """Tests for semicolon/comma list handling."""

    def test_parse_semicolon_list(self):
        assert parse_string_list("127.0.0.1; 192.168.1.1;") == ["127.0.0.1", "192.168.1.1"]

    def test_parse_drops_empty_entries(self):
        assert parse_string_list(" ;; a ;b; ; ") == ["a", "b"]

    def test_parse_list_input(self):
        assert parse_string_list([" a ", "", "b"]) == ["a", "b"]

    def test_parse_none(self):
        assert parse_string_list(None) == []

    def test_parse_custom_separators(self):
        assert parse_string_list("8.8.8.8, 8.8.4.4", separators=",") == ["8.8.8.8", "8.8.4.4"]

    def test_parse_rejects_numbers(self):
        with pytest.raises(ValueError):
            parse_string_list(42)

    def test_format_preserves_order(self):
        items = ["192.168.1.1", "127.0.0.1", "10.0.0.1"]
        text = format_string_list(items)
        assert text == "192.168.1.1; 127.0.0.1; 10.0.0.1;"
        assert parse_string_list(text) == items

    def test_format_empty(self):
        assert format_string_list([]) == ""


class TestPredicates:
    """Tests for address and name predicates."""

    @pytest.mark.parametrize("value", ["192.168.1.1", "0.0.0.0", "255.255.255.255"])
    def test_valid_ipv4(self, value):
        assert is_ipv4(value)

    @pytest.mark.parametrize("value", ["256.1.1.1", "192.168.1", "a.b.c.d", ""])
    def test_invalid_ipv4(self, value):
        assert not is_ipv4(value)

    def test_ipv6(self):
        assert is_ipv6("2001:db8::1")
        assert not is_ipv6("192.168.1.1")

    def test_netmask(self):
        assert is_netmask("255.255.255.0")
        assert is_netmask("255.255.0.0")
        assert not is_netmask("255.0.255.0")

    def test_mac_address(self):
        assert is_mac_address("00:11:22:33:44:55")
        assert is_mac_address("00-11-22-33-44-55")
        assert not is_mac_address("00:11:22:33:44")

    def test_hostname(self):
        assert is_hostname("printer")
        assert is_hostname("web-01.example.com")
        assert not is_hostname("-bad")
        assert not is_hostname("bad_name")

    def test_domain_name(self):
        assert is_domain_name("example.com")
        assert is_domain_name("example.com.")
        assert is_domain_name("_sip._tcp")
        assert is_domain_name("*.example.com")
        assert is_domain_name("@")
        assert not is_domain_name("bad..name")
        assert not is_domain_name("")


class TestFormatLocation:
    """Tests for error path rendering."""

    def test_nested_path(self):
        assert format_location(("zones", 0, "records", 1, "value")) == "zones[0].records[1].value"

    def test_drops_union_tag(self):
        assert format_location(("zones", 0, "records", 1, "MX", "priority")) == "zones[0].records[1].priority"

    def test_root(self):
        assert format_location(()) == "(root)"


class TestValidateConfiguration:
    """Tests for error accumulation."""

    def test_valid_config(self, sample_dns_config):
        config = validate_configuration(DnsConfiguration, sample_dns_config, DNS_CHECKS)
        assert config.listen_on == ["127.0.0.1", "192.168.1.1"]
        assert config.forwarders == ["8.8.8.8", "8.8.4.4"]

    def test_collects_every_structural_error(self):
        raw = {
            "zones": [
                {
                    "zoneName": "example.com",
                    "records": [
                        {"type": "A", "name": "@", "value": "999.1.1.1"},
                        {"type": "CNAME", "name": "www"},
                    ],
                }
            ]
        }
        with pytest.raises(InvalidConfigurationError) as exc:
            validate_configuration(DnsConfiguration, raw, DNS_CHECKS)

        paths = {e.path for e in exc.value.errors}
        assert "zones[0].records[0].value" in paths
        assert "zones[0].records[1].value" in paths
        messages = [e.message for e in exc.value.errors]
        assert "Invalid IPv4 address: 999.1.1.1" in messages

    def test_collects_record_and_server_errors_together(self):
        raw = {
            "listenOn": "127.0.0.1; 300.1.1.1;",
            "allowQuery": ["localhost", "bad acl;"],
            "zones": [
                {
                    "zoneName": "example.com",
                    "records": [{"type": "A", "name": "@", "value": "999.1.1.1"}],
                }
            ],
        }
        with pytest.raises(InvalidConfigurationError) as exc:
            validate_configuration(DnsConfiguration, raw, DNS_CHECKS)

        paths = {e.path for e in exc.value.errors}
        assert paths == {"listenOn[1]", "allowQuery[1]", "zones[0].records[0].value"}

    def test_collects_every_semantic_error(self):
        raw = {
            "zones": [
                {"zoneName": "a.com", "fileName": "shared.zone"},
                {"zoneName": "b.com", "fileName": "shared.zone"},
                {"zoneName": "c.com", "kind": "slave"},
                {"zoneName": "d.com", "kind": "forward"},
            ],
        }
        with pytest.raises(InvalidConfigurationError) as exc:
            validate_configuration(DnsConfiguration, raw, DNS_CHECKS)

        paths = {e.path for e in exc.value.errors}
        assert paths == {"zones[1].fileName", "zones[2].masters", "zones[3].forwarders"}

    def test_empty_zone_list_rejected(self):
        with pytest.raises(InvalidConfigurationError) as exc:
            validate_configuration(DnsConfiguration, {"zones": []}, DNS_CHECKS)
        assert exc.value.errors[0].path == "zones"

    def test_unsupported_record_type_rejected(self):
        raw = {"zones": [{"zoneName": "example.com", "records": [{"type": "HINFO", "value": "x"}]}]}
        with pytest.raises(InvalidConfigurationError) as exc:
            validate_configuration(DnsConfiguration, raw, DNS_CHECKS)
        assert exc.value.errors[0].path.startswith("zones[0].records[0]")

    def test_non_object_input(self):
        with pytest.raises(InvalidConfigurationError) as exc:
            validate_configuration(DnsConfiguration, ["not", "an", "object"], DNS_CHECKS)
        assert exc.value.errors[0].path == "(root)"
