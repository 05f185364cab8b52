"""Semantic checks for dhcpd configuration."""

from ipaddress import IPv4Address, IPv4Network

from servermanager.core.dhcp.models import DhcpConfiguration, DhcpOption
from servermanager.core.models import FieldError
from servermanager.core.validation import ipv4_int, ipv4_network


def check_lease_times(config: DhcpConfiguration) -> list[FieldError]:
    if config.default_lease_time > config.max_lease_time:
        return [FieldError(
            path="maxLeaseTime",
            message="Max lease time must be greater than or equal to default lease time",
        )]
    return []


def _networks(config: DhcpConfiguration) -> list[IPv4Network | None]:
    return [ipv4_network(s.network, s.netmask) for s in config.subnets]


def check_subnets(config: DhcpConfiguration) -> list[FieldError]:
    """Range order and containment, gateway containment, duplicate networks."""
    errors = []
    seen: dict[str, int] = {}

    for i, (subnet, network) in enumerate(zip(config.subnets, _networks(config))):
        prefix = f"subnets[{i}]"

        if network is None:
            errors.append(FieldError(
                path=f"{prefix}.network",
                message=f"{subnet.network} is not a network address for netmask {subnet.netmask}",
            ))
            continue

        key = str(network)
        if key in seen:
            errors.append(FieldError(
                path=f"{prefix}.network",
                message=f"Duplicate network address {subnet.network} (also subnets[{seen[key]}])",
            ))
        else:
            seen[key] = i

        if subnet.range is not None:
            start, end = subnet.range.start, subnet.range.end
            if ipv4_int(end) < ipv4_int(start):
                errors.append(FieldError(
                    path=f"{prefix}.range.end",
                    message="End IP must be greater than or equal to start IP",
                ))
            if IPv4Address(start) not in network:
                errors.append(FieldError(path=f"{prefix}.range.start", message="Start IP must be within the subnet"))
            if IPv4Address(end) not in network:
                errors.append(FieldError(path=f"{prefix}.range.end", message="End IP must be within the subnet"))

        if subnet.default_gateway and IPv4Address(subnet.default_gateway) not in network:
            errors.append(FieldError(
                path=f"{prefix}.defaultGateway", message="Gateway must be within the subnet"
            ))
        if subnet.broadcast_address and IPv4Address(subnet.broadcast_address) not in network:
            errors.append(FieldError(
                path=f"{prefix}.broadcastAddress", message="Broadcast address must be within the subnet"
            ))

    return errors


def check_reservations(config: DhcpConfiguration) -> list[FieldError]:
    """Unique MACs, addresses and hostnames; fixed addresses outside dynamic ranges."""
    errors = []
    macs: dict[str, int] = {}
    addresses: dict[str, int] = {}
    hostnames: dict[str, int] = {}

    for i, host in enumerate(config.host_reservations):
        prefix = f"hostReservations[{i}]"

        for field, key, seen, label in (
            ("macAddress", host.mac_address.lower(), macs, "MAC address"),
            ("fixedAddress", host.fixed_address, addresses, "fixed IP address"),
            ("hostname", host.hostname.lower(), hostnames, "hostname"),
        ):
            if key in seen:
                errors.append(FieldError(
                    path=f"{prefix}.{field}",
                    message=f"Duplicate {label} {key} (also hostReservations[{seen[key]}])",
                ))
            else:
                seen[key] = i

        address = ipv4_int(host.fixed_address)
        for subnet in config.subnets:
            if subnet.range is None:
                continue
            if ipv4_int(subnet.range.start) <= address <= ipv4_int(subnet.range.end):
                errors.append(FieldError(
                    path=f"{prefix}.fixedAddress",
                    message=(
                        f"Host reservation {host.hostname} ({host.fixed_address}) conflicts with "
                        f"dynamic range {subnet.range.start}-{subnet.range.end}"
                    ),
                ))

    return errors


_STATEMENT_CHARS = set(";{}\"#\\")


def _option_errors(options: list[DhcpOption], prefix: str) -> list[FieldError]:
    errors = []
    for j, option in enumerate(options):
        if option.code is not None:
            continue
        found = sorted(_STATEMENT_CHARS.intersection(option.value))
        if found:
            errors.append(FieldError(
                path=f"{prefix}[{j}].value",
                message=f"Option value may not contain {' '.join(found)}",
            ))
    return errors


def check_options(config: DhcpConfiguration) -> list[FieldError]:
    """Unquoted option values must stay inside their own statement."""
    errors = _option_errors(config.global_options, "globalOptions")
    for i, subnet in enumerate(config.subnets):
        errors.extend(_option_errors(subnet.options, f"subnets[{i}].options"))
    for i, host in enumerate(config.host_reservations):
        errors.extend(_option_errors(host.options, f"hostReservations[{i}].options"))
    return errors


DHCP_CHECKS = (check_lease_times, check_subnets, check_reservations, check_options)
