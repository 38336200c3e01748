"""Turn controller inventory into forward (A) and reverse (PTR) record entries.

Records are written into a candidate ``{domain: DomainRecordSet}`` map. For
each client-facing network the sources are applied in a fixed order:
clients, then devices, then DHCP reservations. A later source overwrites an
earlier one for the same forward name or reverse name, so reservations win.
"""

from __future__ import annotations

import ipaddress
import logging
import re
from typing import Dict, Iterable, List, Optional, Set

from .models import (
    ClientEntry,
    DeviceEntry,
    DomainRecordSet,
    ForwardRecord,
    NetworkInterface,
    ReservationEntry,
    ReverseRecord,
    SiteInventory,
)
from .utils import (
    checked_fqdn,
    make_dns_safe,
    make_dns_safe_allow_wildcard,
    normalize_fqdn,
    parse_ipv4,
    parse_subnet,
    reverse_name,
)

logger = logging.getLogger(__name__)

REVERSE_ZONE = "in-addr.arpa."
HOSTNAME_PLACEHOLDER = "--"

_CLIENT_FACING = re.compile("interface")


def client_facing_networks(networks: Iterable[NetworkInterface]) -> List[NetworkInterface]:
    return [n for n in networks if _CLIENT_FACING.search(n.purpose or "")]


def client_display_name(client: ClientEntry) -> str:
    name = client.name
    if (not name or name.lower() == client.mac.lower()) and client.hostname and client.hostname != HOSTNAME_PLACEHOLDER:
        name = client.hostname
    return name


def reservation_display_name(reservation: ReservationEntry) -> str:
    name = reservation.client_name
    if (not name or name.lower() == reservation.mac.lower()) and reservation.description:
        name = reservation.description
    return name


def ensure_record_set(records: Dict[str, DomainRecordSet], domain: str) -> DomainRecordSet:
    rs = records.get(domain)
    if rs is None:
        logger.debug("update: creating record map: %s", domain)
        rs = records[domain] = DomainRecordSet()
    return rs


def _add(
    records: Dict[str, DomainRecordSet],
    domain: str,
    label: str,
    ip: ipaddress.IPv4Address,
    timestamp: float,
) -> bool:
    fqdn = checked_fqdn(f"{label}.{domain}")
    if fqdn is None:
        return False
    ensure_record_set(records, domain).forward[fqdn] = ForwardRecord(name=fqdn, address=ip, created_at=timestamp)
    ptr = reverse_name(ip)
    ensure_record_set(records, REVERSE_ZONE).reverse[ptr] = ReverseRecord(name=ptr, target=fqdn, created_at=timestamp)
    return True


def _in_subnet(value: str, subnet: ipaddress.IPv4Network) -> Optional[ipaddress.IPv4Address]:
    ip = parse_ipv4(value)
    if ip is None or ip not in subnet:
        return None
    return ip


def synthesize_records(
    records: Dict[str, DomainRecordSet],
    inventory: SiteInventory,
    timestamp: float,
    live_domains: Optional[Set[str]] = None,
) -> int:
    """Write the records derived from one site's inventory into ``records``.

    Networks without a usable domain or with an unparseable subnet are
    skipped, as are entries whose address does not parse or lies outside the
    subnet, and entries whose name is not a valid DNS name (a label over 63
    octets, for instance). Every domain a network resolved to is added to
    ``live_domains`` when given, even if no entry landed in it.
    Returns the number of forward records written.
    """
    ensure_record_set(records, REVERSE_ZONE)
    written = 0

    for network in client_facing_networks(inventory.networks):
        logger.debug("update: -- processing network: %s", network.name)

        if not network.domain:
            logger.debug("update: skipping network: %s because no DNS search domain is set", network.name)
            continue
        domain = normalize_fqdn(network.domain)
        # the SOA names hostmaster.<domain>, so that must fit as well
        if checked_fqdn(domain) is None or checked_fqdn(f"hostmaster.{domain}") is None:
            logger.warning("update: skipping network: %s because %r is not a valid domain", network.name, network.domain)
            continue

        try:
            subnet = parse_subnet(network.subnet)
        except ValueError as exc:
            logger.debug("update: failed to parse network cidr %r for %s: %s", network.subnet, network.name, exc)
            continue

        ensure_record_set(records, domain)
        if live_domains is not None:
            live_domains.add(domain)
        logger.debug("update: adding records to zone: %s", domain)

        for client in inventory.clients:
            ip = _in_subnet(client.ip, subnet)
            if ip is None:
                continue
            label = make_dns_safe(client_display_name(client))
            if not label:
                logger.debug("update: client %s has no usable name", client.mac)
                continue
            if not _add(records, domain, label, ip, timestamp):
                logger.warning("update: skipping client %s: %r is not a valid DNS name", client.mac, label)
                continue
            written += 1

        for device in inventory.devices:
            ip = _in_subnet(device.ip, subnet)
            if ip is None:
                continue
            label = make_dns_safe(device.dns_name)
            if not label:
                logger.debug("update: device %s has no usable name", device.mac)
                continue
            if not _add(records, domain, label, ip, timestamp):
                logger.warning("update: skipping device %s: %r is not a valid DNS name", device.mac, label)
                continue
            written += 1

        for reservation in inventory.reservations:
            if not reservation.enabled:
                continue
            ip = _in_subnet(reservation.ip, subnet)
            if ip is None:
                continue
            label = make_dns_safe_allow_wildcard(reservation_display_name(reservation))
            if not label:
                logger.debug("update: reservation %s has no usable name", reservation.mac)
                continue
            if not _add(records, domain, label, ip, timestamp):
                logger.warning("update: skipping reservation %s: %r is not a valid DNS name", reservation.mac, label)
                continue
            written += 1

    return written


def purge(record_set: DomainRecordSet, max_age_seconds: float, now: float) -> None:
    for key in record_set.purge_stale(now, max_age_seconds):
        logger.debug("purging stale record: %s", key)
