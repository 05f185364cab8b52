"""Helpers that make values safe to interpolate into daemon config text."""

import re

_UNSAFE_CHARS = re.compile(r"[<>`\x00-\x1f\x7f]")
_UNSAFE_DIRECTIVE_CHARS = re.compile(r"[<>`\"'&\x00-\x1f\x7f]")
_UNSAFE_BIND_CHARS = re.compile(r"[<>`;{}\"\\\x00-\x1f\x7f]")
_UNSAFE_DHCP_CHARS = re.compile(r"[<>`;{}\"#\\\x00-\x1f\x7f]")

TXT_CHUNK_SIZE = 255


def sanitize_value(value: object) -> str:
    """Strip angle brackets, backticks and control characters."""
    return _UNSAFE_CHARS.sub("", str(value)).strip()


def sanitize_directive(value: object) -> str:
    """
    Sanitize text that lands inside an Apache directive.

    Quotes and ampersands are removed as well, so a value can never close
    the directive's own quoting. ``$`` survives for rewrite backreferences.
    """
    return _UNSAFE_DIRECTIVE_CHARS.sub("", str(value)).strip()


def sanitize_bind_value(value: object) -> str:
    """
    Sanitize text placed in a named.conf ``{ ... }`` list or ``"..."`` string.

    Semicolons, braces, quotes and backslashes are removed along with the
    characters sanitize_value strips, so a value stays one list element.
    """
    return _UNSAFE_BIND_CHARS.sub("", str(value)).strip()


def sanitize_dhcp_value(value: object) -> str:
    """Sanitize an unquoted dhcpd.conf value; ``#`` would start a comment."""
    return _UNSAFE_DHCP_CHARS.sub("", str(value)).strip()


def fqdn(value: str) -> str:
    """Append the trailing dot to a domain name unless it is ``@``."""
    value = value.strip()
    if value == "@" or value.endswith("."):
        return value
    return f"{value}."


def _escape_txt(chunk: str) -> str:
    return chunk.replace("\\", "\\\\").replace('"', '\\"')


def quote_txt(value: str) -> str:
    """
    Quote TXT data, escaping backslashes and double quotes.

    Data longer than 255 characters is split into several quoted strings.
    Splitting happens before escaping, so an escape pair never straddles
    two strings.
    """
    chunks = [value[i:i + TXT_CHUNK_SIZE] for i in range(0, len(value), TXT_CHUNK_SIZE)] or [""]
    return " ".join(f'"{_escape_txt(chunk)}"' for chunk in chunks)
