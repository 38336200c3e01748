from __future__ import annotations
import argparse
import ipaddress
import re
from typing import Optional

import dns.exception
import dns.name
import dns.reversename

_UNSAFE_LABEL = re.compile(r"[^a-z0-9-]+")
_UNSAFE_WILDCARD_LABEL = re.compile(r"[^a-z0-9*.-]+")
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}

_FALLBACK_CHARS = re.compile(r"^[a-zA-Z0-9.-]+$")
_FALLBACK_BAD_LABEL = re.compile(r"(^|\.)-|-(\.|$)")

def str_to_bool(value: str) -> bool:
    if isinstance(value, bool):
        return value
    v = value.strip().lower()
    if v in ("true", "t", "yes", "y", "1"):
        return True
    if v in ("false", "f", "no", "n", "0"):
        return False
    raise argparse.ArgumentTypeError("expected boolean value (true/false)")

def parse_duration(value: str) -> float:
    """Parse '90', '90s', '10m' or '1h30m' into seconds."""
    v = (value or "").strip().lower()
    if not v:
        raise ValueError("empty duration")
    try:
        return float(v)
    except ValueError:
        pass
    pos = 0
    total = 0.0
    for m in _DURATION_PART.finditer(v):
        if m.start() != pos:
            break
        total += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    if pos != len(v):
        raise ValueError(f"invalid duration {value!r}")
    return total

def make_dns_safe(name: str) -> str:
    label = _UNSAFE_LABEL.sub("-", (name or "").lower())
    return label.strip("-")

def make_dns_safe_allow_wildcard(name: str) -> str:
    # keeps '*' and '.' so reservations can delegate patterns like '*.kubernetes'
    label = _UNSAFE_WILDCARD_LABEL.sub("-", (name or "").lower())
    label = re.sub(r"\.{2,}", ".", label)
    return label.strip("-.")

def normalize_fqdn(name: str) -> str:
    n = (name or "").strip().lower()
    if not n.endswith("."):
        n += "."
    return n

def checked_fqdn(name: str) -> Optional[str]:
    """Return ``name`` when it is a usable absolute DNS name, else None.

    Rejects labels over 63 octets, names over 255 octets, empty labels and
    anything that does not survive a text round trip unescaped.
    """
    try:
        parsed = dns.name.from_text(name)
    except dns.exception.DNSException:
        return None
    if parsed.to_text() != name:
        return None
    return name

def parse_ipv4(value: Optional[str]) -> Optional[ipaddress.IPv4Address]:
    try:
        ip = ipaddress.ip_address((value or "").strip())
    except ValueError:
        return None
    if ip.version != 4:
        return None
    return ip

def parse_subnet(value: Optional[str]) -> ipaddress.IPv4Network:
    # controllers report the gateway address with the prefix, e.g. 10.0.0.1/24
    net = ipaddress.ip_network((value or "").strip(), strict=False)
    if net.version != 4:
        raise ValueError(f"not an IPv4 subnet: {value!r}")
    return net

def reverse_name(ip: ipaddress.IPv4Address) -> str:
    return dns.reversename.from_address(str(ip)).to_text()

def fallback_syntax_error(value: str) -> Optional[str]:
    """Return a reason string when a fallback target is not a valid address or host name."""
    if not value:
        return None
    if len(value) > 253:
        return f"fallback too long (max 253 characters): {value!r}"
    if (
        not _FALLBACK_CHARS.match(value)
        or ".." in value
        or _FALLBACK_BAD_LABEL.search(value)
    ):
        return f"fallback contains invalid characters: {value!r}"
    return None
