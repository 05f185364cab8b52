"""DHCP (ISC dhcpd) configuration API endpoints."""

from servermanager.api.routers.configuration import build_router

router = build_router("dhcp")
