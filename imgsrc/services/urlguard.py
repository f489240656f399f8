# imgsrc/services/urlguard.py
"""
SSRF guard for caller-supplied URLs.

Decisions are made on the literal hostname in the URL. No DNS lookups are
performed, so a public name that resolves to a private address is NOT caught
here.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

ALLOWED_SCHEMES = ("http", "https")

LOCALHOST_HOSTS = frozenset({"localhost", "127.0.0.1", "0.0.0.0", "::1", "[::1]"})
METADATA_HOSTS = frozenset({"169.254.169.254", "metadata.google.internal", "metadata.goog"})

_DIGITS = re.compile(r"^\d+$", re.ASCII)
_OCTAL_FIRST = re.compile(r"^0\d+\.", re.ASCII)
_NUMERIC_LABEL = re.compile(r"^(?:0x[0-9a-f]*|\d+)$", re.ASCII)
_DOTTED_QUAD = re.compile(r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$", re.ASCII)


@dataclass(frozen=True)
class UrlVerdict:
    allowed: bool
    reason: Optional[str] = None


def _deny(reason: str) -> UrlVerdict:
    return UrlVerdict(allowed=False, reason=reason)


def _parse_quad(host: str) -> tuple[int, int, int, int] | None:
    m = _DOTTED_QUAD.match(host)
    if not m:
        return None
    octets = tuple(int(x) for x in m.groups())
    if any(o > 255 for o in octets):
        return None
    return octets  # type: ignore[return-value]


def _is_numeric_alias(host: str) -> bool:
    """
    True for encodings the socket layer would read as an IPv4 address but a
    dotted-decimal check would not: decimal integers, hex, octal and
    short/zero-padded dotted forms (``127.1``, ``10.01.0.1``).
    """
    if _DIGITS.match(host) or host.startswith("0x") or _OCTAL_FIRST.match(host):
        return True
    labels = host.split(".")
    if not all(_NUMERIC_LABEL.match(label) for label in labels):
        return False
    # Only the canonical a.b.c.d form is left for the range checks
    canonical = _parse_quad(host) is not None and all(
        label == "0" or not label.startswith("0") for label in labels
    )
    return not canonical


def check_url(url: str) -> UrlVerdict:
    """
    Classify ``url`` as fetchable or forbidden. Never raises.

    Checks run in a fixed order: parse, scheme, localhost names, cloud
    metadata hosts, IPv6 literals, alternate numeric encodings, then the
    private and link-local IPv4 ranges.
    """
    try:
        parts = urlsplit(url.strip())
        parts.port  # raises on a malformed port
        hostname = parts.hostname or ""
    except (ValueError, AttributeError, TypeError):
        return _deny("Invalid URL format")

    scheme = parts.scheme.lower()
    if not scheme or (scheme in ALLOWED_SCHEMES and not parts.netloc):
        return _deny("Invalid URL format")
    if scheme not in ALLOWED_SCHEMES:
        return _deny(f"Protocol '{scheme}:' is not allowed")

    host = hostname.lower().rstrip(".")
    if not host:
        return _deny("Invalid URL format")

    if host in LOCALHOST_HOSTS:
        return _deny("Localhost URLs are not allowed")

    if host in METADATA_HOSTS:
        return _deny("Cloud metadata endpoints are not allowed")

    # Covers ::ffff:127.0.0.1 style aliases of private IPv4 space
    if ":" in host:
        return _deny("IPv6 addresses are not allowed")

    # Must precede the dotted-decimal ranges below
    if _is_numeric_alias(host):
        return _deny("Numeric IP representations are not allowed")

    octets = _parse_quad(host)
    if octets:
        a, b = octets[0], octets[1]
        if a == 10 or (a == 172 and 16 <= b <= 31) or (a == 192 and b == 168):
            return _deny("Private network URLs are not allowed")
        if a == 169 and b == 254:
            return _deny("Link-local URLs are not allowed")

    return UrlVerdict(allowed=True)
