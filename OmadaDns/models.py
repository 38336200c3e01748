from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

import dns.zone

@dataclass(frozen=True)
class NetworkInterface:
    name: str
    domain: str
    subnet: str
    purpose: str

@dataclass(frozen=True)
class ClientEntry:
    name: str
    mac: str
    ip: str
    hostname: Optional[str] = None

@dataclass(frozen=True)
class DeviceEntry:
    dns_name: str
    mac: str
    ip: str

@dataclass(frozen=True)
class ReservationEntry:
    client_name: str
    mac: str
    ip: str
    enabled: bool = True
    description: str = ""

@dataclass(frozen=True)
class Site:
    id: str
    name: str

@dataclass(frozen=True)
class ForwardRecord:
    name: str
    address: ipaddress.IPv4Address
    created_at: float

@dataclass(frozen=True)
class ReverseRecord:
    name: str
    target: str
    created_at: float

@dataclass
class DomainRecordSet:
    forward: Dict[str, ForwardRecord] = field(default_factory=dict)
    reverse: Dict[str, ReverseRecord] = field(default_factory=dict)

    def copy(self) -> "DomainRecordSet":
        # entries are frozen, copying the maps is enough to detach from a published set
        return DomainRecordSet(forward=dict(self.forward), reverse=dict(self.reverse))

    def purge_stale(self, now: float, max_age_seconds: float) -> Tuple[str, ...]:
        purged = []
        for key, rec in list(self.forward.items()):
            if now - rec.created_at > max_age_seconds:
                del self.forward[key]
                purged.append(key)
        for key, rec in list(self.reverse.items()):
            if now - rec.created_at > max_age_seconds:
                del self.reverse[key]
                purged.append(key)
        return tuple(purged)

    def __len__(self) -> int:
        return len(self.forward) + len(self.reverse)

@dataclass(frozen=True)
class ZoneSnapshot:
    """What readers see: never mutated once published, replaced as a whole."""

    zone_names: Tuple[str, ...] = ()
    zones: Mapping[str, dns.zone.Zone] = field(default_factory=lambda: MappingProxyType({}))
    records: Mapping[str, DomainRecordSet] = field(default_factory=lambda: MappingProxyType({}))
    published_at: Optional[float] = None

@dataclass(frozen=True)
class SiteInventory:
    site: str
    networks: Tuple[NetworkInterface, ...] = ()
    clients: Tuple[ClientEntry, ...] = ()
    devices: Tuple[DeviceEntry, ...] = ()
    reservations: Tuple[ReservationEntry, ...] = ()
