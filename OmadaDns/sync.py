"""Keeps the published zones in step with the controller inventory."""

from __future__ import annotations

import ipaddress
import logging
import re
import threading
import time
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Set

from .errors import ApiError
from .fallback import resolve_fallback
from .models import (
    ClientEntry,
    DeviceEntry,
    DomainRecordSet,
    NetworkInterface,
    ReservationEntry,
    Site,
    SiteInventory,
    ZoneSnapshot,
)
from .records import REVERSE_ZONE, purge, synthesize_records
from .resolver import NextHandler, SnapshotResolver
from .scheduler import PeriodicWorker
from .settings import OmadaSettings
from .zones import ZoneStore, build_zones

logger = logging.getLogger(__name__)


class InventoryAdapter(Protocol):
    def login(self) -> None: ...
    def list_sites(self) -> List[Site]: ...
    def select_site(self, site_id: str) -> None: ...
    def list_networks(self) -> List[NetworkInterface]: ...
    def list_clients(self) -> List[ClientEntry]: ...
    def list_devices(self) -> List[DeviceEntry]: ...
    def list_reservations(self) -> List[ReservationEntry]: ...


def match_sites(sites: Iterable[Site], pattern: str) -> List[Site]:
    rx = re.compile(pattern)
    return [s for s in sites if s.id and (rx.search(s.name) or rx.search(s.id))]


class OmadaSync:
    def __init__(
        self,
        settings: OmadaSettings,
        adapter: InventoryAdapter,
        *,
        store: Optional[ZoneStore] = None,
        next_handler: Optional[NextHandler] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.adapter = adapter
        self.store = store or ZoneStore()
        self.resolver = SnapshotResolver(self.store, next_handler)
        self.clock = clock
        self.sites: List[str] = []

        self._refresh_lock = threading.Lock()
        self._stop = threading.Event()
        self._workers: List[PeriodicWorker] = []

    @property
    def snapshot(self) -> ZoneSnapshot:
        return self.store.snapshot

    # ---------------- Controller ----------------

    def init_controller(self, *, login: bool = True) -> None:
        if login:
            self.adapter.login()
        sites = match_sites(self.adapter.list_sites(), self.settings.site)
        if not sites:
            raise ApiError(f"no site on the controller matches {self.settings.site!r}")
        self.sites = [s.id for s in sites]
        logger.info("controller: resolving sites: %s", ", ".join(s.name or s.id for s in sites))

    def refresh_session(self) -> None:
        logger.info("controller: refreshing login session")
        self.adapter.login()

    def fetch_inventory(self) -> List[SiteInventory]:
        s = self.settings
        inventories: List[SiteInventory] = []
        for site in self.sites:
            logger.debug("update: getting inventory for site: %s", site)
            self.adapter.select_site(site)
            inventories.append(
                SiteInventory(
                    site=site,
                    networks=tuple(self.adapter.list_networks()),
                    clients=tuple(self.adapter.list_clients()) if s.resolve_clients else (),
                    devices=tuple(self.adapter.list_devices()) if s.resolve_devices else (),
                    reservations=tuple(self.adapter.list_reservations()) if s.resolve_dhcp_reservations else (),
                )
            )
        if s.resolve_clients:
            logger.debug("update: found '%d' clients", sum(len(i.clients) for i in inventories))
        if s.resolve_devices:
            logger.debug("update: found '%d' devices", sum(len(i.devices) for i in inventories))
        if s.resolve_dhcp_reservations:
            logger.debug("update: found '%d' reservations", sum(len(i.reservations) for i in inventories))
        return inventories

    # ---------------- Refresh ----------------

    def update_zones(self) -> ZoneSnapshot:
        """Run one refresh cycle and publish its snapshot.

        Any inventory error propagates before anything is published, so the
        previous snapshot stays in place.
        """
        with self._refresh_lock:
            logger.info("update: updating zones...")
            if not self.sites:
                self.init_controller()
            inventories = self.fetch_inventory()

            previous = self.store.snapshot
            records: Dict[str, DomainRecordSet] = {d: rs.copy() for d, rs in previous.records.items()}

            timestamp = self.clock()
            live_domains: Set[str] = set()
            for inventory in inventories:
                synthesize_records(records, inventory, timestamp, live_domains)

            for record_set in records.values():
                purge(record_set, self.settings.stale_record_duration, timestamp)
            # domains whose network is gone disappear once their last record is stale
            for domain in [d for d, rs in records.items() if d != REVERSE_ZONE and d not in live_domains and not len(rs)]:
                logger.debug("update: dropping empty zone: %s", domain)
                del records[domain]

            fallbacks: Dict[str, ipaddress.IPv4Address] = {}
            if self.settings.fallback:
                for domain in records:
                    if domain == REVERSE_ZONE:
                        continue
                    logger.debug("update: adding fallback %s record for zone: %s", self.settings.fallback, domain)
                    ip = resolve_fallback(self.settings.fallback, domain, records)
                    if ip is not None:
                        fallbacks[domain] = ip

            zones = build_zones(records, REVERSE_ZONE, int(timestamp), fallbacks)

            if self._stop.is_set():
                logger.debug("update: cancelled, discarding built zones")
                return previous
            snapshot = self.store.publish(zones, records, timestamp)
            logger.info("update: published %d zones", len(snapshot.zone_names))
            return snapshot

    # ---------------- Lifecycle ----------------

    def start(self, *, login: bool = True) -> None:
        """Log in, build the first snapshot and start both refresh loops."""
        self._stop.clear()
        try:
            self.init_controller(login=login)
            self.update_zones()
        except ApiError as exc:
            if not self.settings.ignore_startup_errors:
                raise
            logger.warning("startup: ignoring error during initial zone refresh: %s", exc)

        self._workers = [
            PeriodicWorker(
                "omada-zones",
                self.settings.refresh_interval,
                self.update_zones,
                self._stop,
                description="update zones",
            ),
            PeriodicWorker(
                "omada-session",
                self.settings.login_interval,
                self.refresh_session,
                self._stop,
                description="login to controller",
            ),
        ]
        for worker in self._workers:
            worker.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        for worker in self._workers:
            worker.join(timeout)

    def wait(self) -> None:
        while not self._stop.wait(1.0):
            pass
