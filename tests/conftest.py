"""
Shared fixtures: an in-memory controller inventory and matching settings.

The sample site has two client-facing networks with a domain
(omada.home, iot.home), plus networks that must be skipped: one without a
domain, one whose purpose is not an interface and one with a broken subnet.
"""

from typing import List, Optional, Set

import pytest

from OmadaDns.errors import ApiError
from OmadaDns.models import ClientEntry, DeviceEntry, NetworkInterface, ReservationEntry, Site
from OmadaDns.settings import OmadaSettings


def sample_networks() -> List[NetworkInterface]:
    return [
        NetworkInterface(name="LAN", domain="omada.home", subnet="10.0.0.1/24", purpose="interface"),
        NetworkInterface(name="IoT", domain="iot.home", subnet="10.0.1.1/24", purpose="interface"),
        NetworkInterface(name="Guest", domain="", subnet="10.0.2.1/24", purpose="interface"),
        NetworkInterface(name="VLAN-only", domain="vlan.home", subnet="10.0.3.1/24", purpose="vlan"),
        NetworkInterface(name="Broken", domain="broken.home", subnet="not-a-cidr", purpose="interface"),
    ]


def sample_clients() -> List[ClientEntry]:
    return [
        ClientEntry(name="client-001", mac="AA-BB-CC-00-00-01", ip="10.0.0.101", hostname="client-001"),
        ClientEntry(name="AA-BB-CC-00-00-02", mac="AA-BB-CC-00-00-02", ip="10.0.0.102", hostname="Win10-VM"),
        ClientEntry(name="AA-BB-CC-00-00-03", mac="AA-BB-CC-00-00-03", ip="10.0.0.103", hostname="--"),
        ClientEntry(name="printer", mac="AA-BB-CC-00-00-04", ip="10.0.0.170"),
        ClientEntry(name="no-address", mac="AA-BB-CC-00-00-05", ip=""),
        ClientEntry(name="elsewhere", mac="AA-BB-CC-00-00-06", ip="192.168.5.5"),
        ClientEntry(name="Smart Plug", mac="AA-BB-CC-00-01-01", ip="10.0.1.20"),
    ]


def sample_devices() -> List[DeviceEntry]:
    return [
        DeviceEntry(dns_name="Gateway ER605", mac="10-27-F5-00-00-01", ip="10.0.0.1"),
        DeviceEntry(dns_name="SG2008P", mac="10-27-F5-00-00-02", ip="10.0.0.2"),
    ]


def sample_reservations() -> List[ReservationEntry]:
    return [
        ReservationEntry(client_name="client-01", mac="AA-BB-CC-00-00-01", ip="10.0.0.101"),
        ReservationEntry(client_name="disabled-dhcp-01", mac="AA-BB-CC-00-00-09", ip="10.0.0.120", enabled=False),
        ReservationEntry(client_name="*.kubernetes", mac="AA-BB-CC-00-00-10", ip="10.0.0.150"),
        ReservationEntry(client_name="AA-BB-CC-00-00-11", mac="AA-BB-CC-00-00-11", ip="10.0.0.160", description="nas"),
        ReservationEntry(client_name="printer", mac="AA-BB-CC-00-00-12", ip="10.0.0.171"),
    ]


class FakeInventory:
    """In-memory stand-in for OmadaClientApi."""

    def __init__(self) -> None:
        self.sites = [Site(id="site-default", name="Default"), Site(id="site-lab", name="Lab")]
        self.networks = sample_networks()
        self.clients = sample_clients()
        self.devices = sample_devices()
        self.reservations = sample_reservations()
        self.selected: Optional[str] = None
        self.logins = 0
        self.calls: List[str] = []
        self.fail_on: Set[str] = set()

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise ApiError(f"{name} failed")

    def login(self) -> None:
        self._call("login")
        self.logins += 1

    def list_sites(self):
        self._call("list_sites")
        return list(self.sites)

    def select_site(self, site_id: str) -> None:
        self._call("select_site")
        self.selected = site_id

    def list_networks(self):
        self._call("list_networks")
        return list(self.networks)

    def list_clients(self):
        self._call("list_clients")
        return list(self.clients)

    def list_devices(self):
        self._call("list_devices")
        return list(self.devices)

    def list_reservations(self):
        self._call("list_reservations")
        return list(self.reservations)


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def inventory() -> FakeInventory:
    return FakeInventory()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> OmadaSettings:
    return OmadaSettings(
        controller_url="https://omada.example:8043",
        site="^Default$",
        username="dns",
        password="secret",
        stale_record_duration=300.0,
    )
