"""Wildcard fallback target resolution.

The configured target is tried, in order, as a literal IPv4 address, as a
fully-qualified name (anything containing a dot) and as a short host name
qualified with the domain being processed. Names are looked up only in the
forward records of the candidate set being built.
"""

from __future__ import annotations

import ipaddress
import logging
from typing import Mapping, Optional

from .models import DomainRecordSet
from .utils import normalize_fqdn

logger = logging.getLogger(__name__)

FALLBACK_TTL = 300


def wildcard_name(domain: str) -> str:
    return f"*.{domain}"


def find_forward_address(records: Mapping[str, DomainRecordSet], fqdn: str) -> Optional[ipaddress.IPv4Address]:
    for record_set in records.values():
        rec = record_set.forward.get(fqdn)
        if rec is not None:
            return rec.address
    return None


def resolve_fallback(
    fallback: str,
    domain: str,
    records: Mapping[str, DomainRecordSet],
) -> Optional[ipaddress.IPv4Address]:
    if not fallback:
        return None

    try:
        ip = ipaddress.ip_address(fallback)
    except ValueError:
        ip = None
    if ip is not None:
        if ip.version != 4:
            logger.warning("update: fallback %s is not an IPv4 address, skipping fallback for zone %s", fallback, domain)
            return None
        logger.debug("update: fallback is IP: %s", ip)
        return ip

    if "." in fallback:
        target = normalize_fqdn(fallback)
    else:
        target = f"{fallback.lower()}.{domain}"
    logger.debug("update: looking for fallback FQDN: %s", target)

    ip = find_forward_address(records, target)
    if ip is None:
        logger.warning("update: fallback '%s' not found in any zone, skipping fallback for zone %s", fallback, domain)
        return None

    logger.debug("update: found fallback IP: %s for FQDN: %s", ip, target)
    return ip
