"""Validation and canonicalisation of URLs submitted for analysis."""
from __future__ import annotations

import ipaddress
import logging
import re
from urllib.parse import urlsplit

from .config import get_settings
from .errors import BlockedTarget, DisallowedScheme, InvalidUrl

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = frozenset({"http", "https"})
DEFAULT_PORTS = {"http": 80, "https": 443}
MAX_URL_LENGTH = 2048

_NUMERIC_PART = re.compile(r"[0-9]+|0[xX][0-9a-fA-F]*")

BLOCKED_HOSTNAMES = frozenset({"localhost"})
BLOCKED_NETWORKS = (
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("0.0.0.0/32"),
    ipaddress.ip_network("::1/128"),
)


def _parse_ipv4_part(part: str) -> int:
    if part[:2] in ("0x", "0X"):
        digits, base = part[2:], 16
    elif len(part) > 1 and part.startswith("0"):
        digits, base = part[1:], 8
    else:
        digits, base = part, 10
    if not digits:
        return 0
    return int(digits, base)


def _normalise_ipv4_host(hostname: str) -> str:
    """Rewrite numeric IPv4 shorthand (``127.1``, ``0x7f000001``, ``0177.0.0.1``) as dotted-quad.

    Browsers resolve these forms to ordinary addresses, so they are expanded
    before the private-target check. Hostnames that do not end in a number are
    returned unchanged.
    """

    parts = hostname.split(".")
    if len(parts) > 1 and parts[-1] == "":
        parts.pop()
    last = parts[-1]
    if not _NUMERIC_PART.fullmatch(last):
        return hostname
    if len(parts) > 4 or not all(_NUMERIC_PART.fullmatch(part) for part in parts):
        raise InvalidUrl(f"Invalid IPv4 address: {hostname}")
    try:
        numbers = [_parse_ipv4_part(part) for part in parts]
    except ValueError as exc:
        raise InvalidUrl(f"Invalid IPv4 address: {hostname}") from exc
    if any(number > 255 for number in numbers[:-1]) or numbers[-1] >= 256 ** (5 - len(numbers)):
        raise InvalidUrl(f"Invalid IPv4 address: {hostname}")
    value = numbers[-1]
    for index, number in enumerate(numbers[:-1]):
        value += number * 256 ** (3 - index)
    return str(ipaddress.IPv4Address(value))


def _is_blocked_host(hostname: str) -> bool:
    if hostname in BLOCKED_HOSTNAMES or hostname.endswith(".localhost"):
        return True
    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return any(address in network for network in BLOCKED_NETWORKS)


def validate_url(url: str, production: bool | None = None) -> str:
    """Return the canonical form of ``url`` or raise a validation error.

    The canonical form keeps scheme, host, optional port, path and query while
    dropping credentials and the fragment. Loopback and private targets are
    only rejected in production mode so that local pages can be analysed
    during development. ``production`` defaults to the configured environment.
    """

    if production is None:
        production = get_settings().production

    candidate = (url or "").strip()
    if not candidate:
        raise InvalidUrl("URL is required")
    if len(candidate) > MAX_URL_LENGTH:
        raise InvalidUrl(f"URL must not exceed {MAX_URL_LENGTH} characters")

    try:
        parts = urlsplit(candidate)
        port = parts.port
    except ValueError as exc:
        raise InvalidUrl(f"Invalid URL format: {exc}") from exc

    scheme = parts.scheme.lower()
    if not scheme:
        raise InvalidUrl("Invalid URL format: missing scheme")
    if scheme not in ALLOWED_SCHEMES:
        raise DisallowedScheme(f'Protocol "{scheme}:" is not allowed')

    hostname = parts.hostname
    if not hostname:
        raise InvalidUrl("Invalid URL format: missing host")
    if ":" not in hostname:
        hostname = _normalise_ipv4_host(hostname)

    if production and _is_blocked_host(hostname):
        logger.warning("Rejected private or local target %s", hostname)
        raise BlockedTarget("Private or local URLs are not allowed in production")

    host = f"[{hostname}]" if ":" in hostname else hostname
    if port is not None and port != DEFAULT_PORTS[scheme]:
        netloc = f"{host}:{port}"
    else:
        netloc = host
    path = parts.path or "/"
    query = f"?{parts.query}" if parts.query else ""
    return f"{scheme}://{netloc}{path}{query}"
