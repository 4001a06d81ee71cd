"""SSRF guard: classify hosts and IP literals as private or public.

``is_private_host`` is pure and synchronous. It decides IP literals (in any of
the encodings URL parsers and ``inet_aton`` accept) and the ``localhost`` /
``.local`` names. Every other hostname is undecidable without DNS and must go
through ``is_private_host_or_resolved`` before an outbound fetch, which fails
closed when resolution errors out or times out.

Dependencies: (none — leaf module)
Wired in: tools/tool_guard.py
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import re
import socket
from collections.abc import Iterable, Sequence
from enum import Enum
from typing import Protocol

_log = logging.getLogger(__name__)


class IpClassification(Enum):
    """Closed set of address ranges. Everything but ``PUBLIC`` is private."""

    LOOPBACK = "loopback"
    THIS_NETWORK = "this-network"
    PRIVATE = "rfc1918-private"
    CARRIER_GRADE_NAT = "carrier-grade-nat"
    LINK_LOCAL = "link-local"
    UNIQUE_LOCAL = "unique-local"
    MULTICAST = "multicast"
    RESERVED = "reserved"
    PUBLIC = "public"

    @property
    def is_private(self) -> bool:
        return self is not IpClassification.PUBLIC


_IPV4_RANGES: tuple[tuple[ipaddress.IPv4Network, IpClassification], ...] = (
    (ipaddress.IPv4Network("0.0.0.0/8"), IpClassification.THIS_NETWORK),
    (ipaddress.IPv4Network("127.0.0.0/8"), IpClassification.LOOPBACK),
    (ipaddress.IPv4Network("10.0.0.0/8"), IpClassification.PRIVATE),
    (ipaddress.IPv4Network("172.16.0.0/12"), IpClassification.PRIVATE),
    (ipaddress.IPv4Network("192.168.0.0/16"), IpClassification.PRIVATE),
    (ipaddress.IPv4Network("169.254.0.0/16"), IpClassification.LINK_LOCAL),
    (ipaddress.IPv4Network("100.64.0.0/10"), IpClassification.CARRIER_GRADE_NAT),
    (ipaddress.IPv4Network("224.0.0.0/4"), IpClassification.MULTICAST),
    (ipaddress.IPv4Network("240.0.0.0/4"), IpClassification.RESERVED),
)

_IPV6_RANGES: tuple[tuple[ipaddress.IPv6Network, IpClassification], ...] = (
    (ipaddress.IPv6Network("::1/128"), IpClassification.LOOPBACK),
    (ipaddress.IPv6Network("::/128"), IpClassification.THIS_NETWORK),
    (ipaddress.IPv6Network("fc00::/7"), IpClassification.UNIQUE_LOCAL),
    (ipaddress.IPv6Network("fe80::/10"), IpClassification.LINK_LOCAL),
    (ipaddress.IPv6Network("ff00::/8"), IpClassification.MULTICAST),
)

# Prefixes whose low 32 bits carry an IPv4 address.
_IPV4_EMBEDDING_PREFIXES: tuple[ipaddress.IPv6Network, ...] = (
    ipaddress.IPv6Network("::ffff:0:0/96"),  # IPv4-mapped
    ipaddress.IPv6Network("::/96"),  # IPv4-compatible (deprecated)
    ipaddress.IPv6Network("64:ff9b::/96"),  # NAT64 well-known prefix
)

_IPV4_PART_RE = re.compile(r"0x[0-9a-f]*|[0-9]+")
_PORT_RE = re.compile(r":\d*$")

_MAX_IPV4 = 0xFFFFFFFF


def normalize_hostname(host: str) -> str:
    """Trim, lowercase, strip IPv6 brackets, a trailing port and a trailing dot."""
    value = host.strip().lower()
    if value.startswith("["):
        end = value.find("]")
        value = value[1:end] if end != -1 else value[1:]
    elif value.count(":") == 1:
        value = _PORT_RE.sub("", value)
    return value.rstrip(".")


def _parse_ipv4_part(part: str) -> int | None:
    if not _IPV4_PART_RE.fullmatch(part):
        return None
    if part.startswith("0x"):
        return int(part[2:] or "0", 16)
    if len(part) > 1 and part.startswith("0"):
        if not all(c in "01234567" for c in part):
            return None
        return int(part, 8)
    return int(part)


def parse_ipv4(host: str) -> ipaddress.IPv4Address | None:
    """Parse *host* the way ``inet_aton`` does.

    Accepts dotted quads, a single 32-bit integer (``2130706433``), short forms
    (``127.1``) and hex/octal parts (``0x7f.0.0.1``, ``0177.0.0.1``).
    """
    if not host or host.endswith("."):
        return None
    parts = host.split(".")
    if len(parts) > 4:
        return None
    values: list[int] = []
    for part in parts:
        parsed = _parse_ipv4_part(part)
        if parsed is None:
            return None
        values.append(parsed)

    *head, last = values
    if any(value > 0xFF for value in head):
        return None
    if last >= 1 << (8 * (4 - len(head))):
        return None
    number = last
    for index, value in enumerate(head):
        number |= value << (8 * (3 - index))
    if number > _MAX_IPV4:
        return None
    return ipaddress.IPv4Address(number)


def _parse_ipv6(host: str) -> ipaddress.IPv6Address | None:
    if ":" not in host:
        return None
    try:
        return ipaddress.IPv6Address(host.split("%", 1)[0])
    except ValueError:
        return None


def is_ip_literal(host: str) -> bool:
    """Return whether *host* is a strict IPv4 dotted quad or an IPv6 literal."""
    value = normalize_hostname(host)
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return _parse_ipv6(value) is not None
    return True


def classify_ipv4(address: ipaddress.IPv4Address) -> IpClassification:
    for network, classification in _IPV4_RANGES:
        if address in network:
            return classification
    return IpClassification.PUBLIC


def _embedded_ipv4(address: ipaddress.IPv6Address) -> ipaddress.IPv4Address | None:
    for prefix in _IPV4_EMBEDDING_PREFIXES:
        if address in prefix:
            return ipaddress.IPv4Address(int(address) & _MAX_IPV4)
    return None


def classify_ipv6(address: ipaddress.IPv6Address) -> IpClassification:
    for network, classification in _IPV6_RANGES:
        if address in network:
            return classification
    embedded = _embedded_ipv4(address)
    if embedded is not None:
        return classify_ipv4(embedded)
    return IpClassification.PUBLIC


def classify_ip(text: str) -> IpClassification | None:
    """Classify an IP literal in any accepted encoding; ``None`` if it is not one."""
    value = normalize_hostname(text)
    v6 = _parse_ipv6(value)
    if v6 is not None:
        return classify_ipv6(v6)
    v4 = parse_ipv4(value)
    if v4 is not None:
        return classify_ipv4(v4)
    return None


def is_private_ipv4(octets: Sequence[int]) -> bool:
    """Return whether the four *octets* fall in a private IPv4 range."""
    if len(octets) != 4 or any(not 0 <= octet <= 0xFF for octet in octets):
        raise ValueError(f"Not an IPv4 address: {list(octets)!r}")
    return classify_ipv4(ipaddress.IPv4Address(bytes(octets))).is_private


def _is_local_name(host: str) -> bool:
    return (
        host == "localhost"
        or host.endswith(".localhost")
        or host == "local"
        or host.endswith(".local")
    )


def is_private_host(host: str) -> bool:
    """Return whether *host* is private by name or IP literal. No I/O.

    Hostnames that need DNS to decide return ``False`` here; callers must use
    :func:`is_private_host_or_resolved` before fetching.
    """
    value = normalize_hostname(host)
    if _is_local_name(value):
        return True
    classification = classify_ip(value)
    return classification is not None and classification.is_private


class DnsResolver(Protocol):
    """Resolves a hostname to its IP address strings."""

    async def resolve(self, host: str) -> Iterable[str]: ...


class SystemResolver:
    """Resolve through the event loop's ``getaddrinfo``."""

    async def resolve(self, host: str) -> Iterable[str]:
        loop = asyncio.get_running_loop()
        infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
        return [str(info[4][0]) for info in infos]


async def _resolve_addresses(resolver: DnsResolver, host: str, timeout: float | None) -> list[str]:
    if timeout is None:
        return list(await resolver.resolve(host))
    return list(await asyncio.wait_for(resolver.resolve(host), timeout=timeout))


async def is_private_host_or_resolved(
    host: str,
    *,
    resolver: DnsResolver | None = None,
    timeout: float | None = None,
) -> bool:
    """Return whether *host* or any address it resolves to is private.

    Fails closed: resolver errors, timeouts, empty answers and unparseable
    addresses all count as private.
    """
    value = normalize_hostname(host)
    if not value:
        return True
    if is_private_host(value):
        return True
    if classify_ip(value) is not None:
        return False

    active = resolver if resolver is not None else SystemResolver()
    try:
        addresses = await _resolve_addresses(active, value, timeout)
    except Exception:  # noqa: BLE001
        _log.warning("DNS resolution failed for %s; treating as private", value, exc_info=True)
        return True

    if not addresses:
        _log.warning("DNS resolution for %s returned no addresses; treating as private", value)
        return True
    for address in addresses:
        classification = classify_ip(str(address))
        if classification is None or classification.is_private:
            _log.info("Host %s resolves to blocked address %s", value, address)
            return True
    return False
