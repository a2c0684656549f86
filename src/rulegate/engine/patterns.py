"""
IP Address and Email Pattern Matching

Pattern forms for IP addresses, tried in order:
    1. Exact address        192.168.1.10, 2001:db8::1
    2. CIDR notation        10.0.0.0/24, 2001:db8::/32
    3. Wildcard             192.168.1.*, 2001:db8:*:*:*:*:*:1

Pattern forms for email addresses, tried in order:
    1. Full address         alice@example.com
    2. Domain               @example.com (also matches subdomains)
    3. Bare domain          example.com (same as @example.com)
    4. TLD suffix           .com, .co.uk

Malformed patterns are ignored, never raised.
"""
from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

_SPLIT_RE = re.compile(r"[,\n\r]+")
_DOMAIN_RE = re.compile(r"^(?=.{1,253}$)([a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z0-9-]{2,63}$")
_LABELS_RE = re.compile(r"^(\.[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?)+$")


def split_patterns(value: Any) -> list[str]:
    """
    Normalize an authored pattern threshold to a list of stripped strings.

    Accepts a single string (comma or newline separated) or any iterable
    of strings. Blank entries are dropped.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items: Iterable[Any] = _SPLIT_RE.split(value)
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = value
    else:
        items = [value]
    return [str(item).strip() for item in items if item is not None and str(item).strip()]


# =============================================================================
# IP Addresses
# =============================================================================

def parse_ip(value: Any) -> Optional[IPAddress]:
    """Parse an IP address, returning None when the value is not one."""
    if value is None:
        return None
    try:
        return ipaddress.ip_address(str(value).strip())
    except ValueError:
        return None


def is_valid_ip_pattern(pattern: str) -> bool:
    """Check whether a pattern parses as any of the supported IP forms."""
    return _ip_pattern_kind(pattern) is not None


def _ip_pattern_kind(pattern: str) -> Optional[str]:
    if parse_ip(pattern) is not None:
        return "exact"
    if "/" in pattern:
        try:
            ipaddress.ip_network(pattern, strict=False)
            return "cidr"
        except ValueError:
            return None
    if "*" in pattern and _wildcard_segments(pattern) is not None:
        return "wildcard"
    return None


def _wildcard_segments(pattern: str) -> Optional[tuple[int, list[Optional[int]]]]:
    """
    Parse a wildcard pattern into (version, segments).

    Each segment is an int or None for '*'. IPv6 wildcards must be written
    with all eight segments (no '::' compression).
    """
    if "." in pattern and ":" not in pattern:
        parts = pattern.split(".")
        if len(parts) != 4:
            return None
        segments: list[Optional[int]] = []
        for part in parts:
            if part == "*":
                segments.append(None)
            elif part.isdigit() and 0 <= int(part) <= 255:
                segments.append(int(part))
            else:
                return None
        return 4, segments

    if ":" in pattern and "::" not in pattern:
        parts = pattern.split(":")
        if len(parts) != 8:
            return None
        segments = []
        for part in parts:
            if part == "*":
                segments.append(None)
                continue
            try:
                number = int(part, 16)
            except ValueError:
                return None
            if not 0 <= number <= 0xFFFF or len(part) > 4:
                return None
            segments.append(number)
        return 6, segments

    return None


def _address_segments(address: IPAddress) -> list[int]:
    if address.version == 4:
        return [int(p) for p in str(address).split(".")]
    return [int(p, 16) for p in address.exploded.split(":")]


def ip_matches_pattern(address: IPAddress, pattern: str) -> bool:
    """Test one address against one pattern; malformed patterns never match."""
    kind = _ip_pattern_kind(pattern)

    if kind == "exact":
        other = parse_ip(pattern)
        return other is not None and other == address

    if kind == "cidr":
        network = ipaddress.ip_network(pattern, strict=False)
        return network.version == address.version and address in network

    if kind == "wildcard":
        parsed = _wildcard_segments(pattern)
        if parsed is None:
            return False
        version, segments = parsed
        if version != address.version:
            return False
        return all(
            seg is None or seg == actual
            for seg, actual in zip(segments, _address_segments(address))
        )

    return False


def ip_matches_any(address: Any, patterns: Iterable[str]) -> bool:
    """Check whether an address matches at least one pattern."""
    parsed = parse_ip(address)
    if parsed is None:
        return False
    return any(ip_matches_pattern(parsed, p) for p in patterns)


# =============================================================================
# Email Addresses
# =============================================================================

@dataclass(frozen=True)
class EmailAddress:
    """A parsed email address: local part kept as written, domain lowercased."""
    local: str
    domain: str

    @classmethod
    def parse(cls, value: Any) -> Optional[EmailAddress]:
        if value is None:
            return None
        text = str(value).strip()
        if text.count("@") != 1:
            return None
        local, domain = text.split("@")
        domain = domain.lower().rstrip(".")
        if not local or not _DOMAIN_RE.match(domain):
            return None
        return cls(local=local, domain=domain)

    def in_domain(self, domain: str) -> bool:
        """True for the domain itself and any of its subdomains."""
        return self.domain == domain or self.domain.endswith("." + domain)

    def matches(self, pattern: str) -> bool:
        """Test one pattern; malformed patterns never match."""
        kind = email_pattern_kind(pattern)
        text = pattern.strip()

        if kind == "address":
            other = EmailAddress.parse(text)
            return other is not None and other == self
        if kind == "domain":
            return self.in_domain(text[1:].lower())
        if kind == "bare_domain":
            return self.in_domain(text.lower())
        if kind == "tld":
            return self.domain.endswith(text.lower())
        return False

    def matches_any(self, patterns: Iterable[str]) -> bool:
        return any(self.matches(p) for p in patterns)


def email_pattern_kind(pattern: str) -> Optional[str]:
    """Classify an email pattern as address, domain, bare_domain or tld."""
    text = pattern.strip().lower()
    if not text:
        return None
    if "@" in text and not text.startswith("@"):
        return "address" if EmailAddress.parse(text) is not None else None
    if text.startswith("@"):
        return "domain" if _DOMAIN_RE.match(text[1:]) else None
    if text.startswith("."):
        return "tld" if _LABELS_RE.match(text) else None
    return "bare_domain" if _DOMAIN_RE.match(text) else None


def is_valid_email_pattern(pattern: str) -> bool:
    return email_pattern_kind(pattern) is not None
