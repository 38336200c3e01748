"""Zone building and publication.

A refresh cycle turns its candidate record sets into ``dns.zone.Zone``
objects and hands them to :class:`ZoneStore`, which swaps the zone names,
zones and records in as one :class:`ZoneSnapshot`. Readers take the current
snapshot reference once and never see a mix of two cycles.
"""

from __future__ import annotations

import ipaddress
import logging
import threading
from types import MappingProxyType
from typing import Dict, Mapping, Optional

import dns.name
import dns.rdata
import dns.rdataclass
import dns.rdatatype
import dns.rrset
import dns.zone

from .fallback import FALLBACK_TTL, wildcard_name
from .models import DomainRecordSet, ZoneSnapshot

logger = logging.getLogger(__name__)

RECORD_TTL = 60

SOA_REFRESH = 7200
SOA_RETRY = 1800
SOA_EXPIRE = 86400
SOA_MINIMUM = 30


def _add_rdata(zone: dns.zone.Zone, name: str, rdtype: dns.rdatatype.RdataType, text: str, ttl: int) -> None:
    rdata = dns.rdata.from_text(dns.rdataclass.IN, rdtype, text)
    zone.find_rdataset(name, rdtype, create=True).add(rdata, ttl)


def add_soa_record(zone: dns.zone.Zone, domain: str, serial: int) -> None:
    text = f"ns1.{domain} hostmaster.{domain} {serial} {SOA_REFRESH} {SOA_RETRY} {SOA_EXPIRE} {SOA_MINIMUM}"
    _add_rdata(zone, domain, dns.rdatatype.SOA, text, RECORD_TTL)


def new_zone(domain: str, serial: int) -> dns.zone.Zone:
    logger.debug("update: creating zone: %s", domain)
    zone = dns.zone.Zone(dns.name.from_text(domain), relativize=False)
    add_soa_record(zone, domain, serial)
    return zone


def record_count(zone: dns.zone.Zone) -> int:
    return sum(len(rds) for node in zone.values() for rds in node)


def build_zones(
    records: Mapping[str, DomainRecordSet],
    reverse_zone: str,
    serial: int,
    fallbacks: Optional[Mapping[str, ipaddress.IPv4Address]] = None,
) -> Dict[str, dns.zone.Zone]:
    """Build one zone per domain plus the shared reverse zone.

    Forward records go into their domain's zone, reverse records into
    ``reverse_zone``. ``fallbacks`` maps a domain to the address of its
    wildcard record.
    """
    fallbacks = fallbacks or {}
    zones: Dict[str, dns.zone.Zone] = {reverse_zone: new_zone(reverse_zone, serial)}

    for domain, record_set in records.items():
        zone = zones.get(domain)
        if zone is None:
            zone = zones[domain] = new_zone(domain, serial)

        fallback_ip = fallbacks.get(domain)
        if fallback_ip is not None:
            _add_rdata(zone, wildcard_name(domain), dns.rdatatype.A, str(fallback_ip), FALLBACK_TTL)
            logger.debug("update: added wildcard fallback record: %s -> %s", wildcard_name(domain), fallback_ip)

        for rec in record_set.forward.values():
            _add_rdata(zone, rec.name, dns.rdatatype.A, str(rec.address), RECORD_TTL)
        for rec in record_set.reverse.values():
            _add_rdata(zones[reverse_zone], rec.name, dns.rdatatype.PTR, rec.target, RECORD_TTL)

    for domain, zone in zones.items():
        logger.debug("update: zone %s contains %d records", domain, record_count(zone))
    return zones


class ZoneStore:
    """Holds the published snapshot; writers swap it under one lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot = ZoneSnapshot()

    @property
    def snapshot(self) -> ZoneSnapshot:
        return self._snapshot

    def publish(
        self,
        zones: Mapping[str, dns.zone.Zone],
        records: Mapping[str, DomainRecordSet],
        published_at: float,
    ) -> ZoneSnapshot:
        snapshot = ZoneSnapshot(
            zone_names=tuple(sorted(zones)),
            zones=MappingProxyType(dict(zones)),
            records=MappingProxyType(dict(records)),
            published_at=published_at,
        )
        with self._lock:
            self._snapshot = snapshot
        return snapshot


def find_zone(snapshot: ZoneSnapshot, qname: dns.name.Name) -> Optional[dns.zone.Zone]:
    best: Optional[dns.zone.Zone] = None
    for zone in snapshot.zones.values():
        if qname.is_subdomain(zone.origin) and (best is None or len(zone.origin) > len(best.origin)):
            best = zone
    return best


def lookup(snapshot: ZoneSnapshot, qname, rdtype) -> Optional[dns.rrset.RRset]:
    """Answer ``qname``/``rdtype`` from the snapshot, or None.

    An exact match wins. A name with no node of its own and nothing beneath
    it is answered by the closest ``*.<ancestor>`` wildcard inside the zone. Forward and reverse
    zones are searched independently.
    """
    if isinstance(qname, str):
        qname = dns.name.from_text(qname)
    rdtype = dns.rdatatype.RdataType.make(rdtype)

    zone = find_zone(snapshot, qname)
    if zone is None:
        return None

    rds = zone.get_rdataset(qname, rdtype)
    if rds is not None:
        return dns.rrset.from_rdata_list(qname, rds.ttl, list(rds))
    if zone.get_node(qname) is not None:
        return None
    # an empty non-terminal exists too, so no wildcard above it applies
    if any(owner != qname and owner.is_subdomain(qname) for owner in zone.keys()):
        return None

    candidate = qname.parent()
    while candidate.is_subdomain(zone.origin):
        wild = dns.name.from_text("*", origin=candidate)
        rds = zone.get_rdataset(wild, rdtype)
        if rds is not None:
            return dns.rrset.from_rdata_list(qname, rds.ttl, list(rds))
        if candidate == zone.origin:
            break
        candidate = candidate.parent()
    return None
