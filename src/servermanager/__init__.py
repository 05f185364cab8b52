"""Server Manager - configuration and service control for BIND, ISC DHCP and Apache."""

__version__ = "0.3.0"
