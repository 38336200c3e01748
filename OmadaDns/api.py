from __future__ import annotations
from typing import Any, Dict, List, Optional
from .settings import OmadaSettings
from .client import OmadaV2Client
from .models import NetworkInterface, ClientEntry, DeviceEntry, ReservationEntry, Site
from .errors import ApiError


class OmadaClientApi:
    """
    High-level facade over the controller inventory.
    - context-managed login/logout
    - returns dataclasses (NetworkInterface/ClientEntry/DeviceEntry/ReservationEntry)
    - list_* calls are scoped to the site chosen with select_site()
    """

    def __init__(self, settings: OmadaSettings, *, debug: bool = False, timeout: float = 10.0) -> None:
        self.settings = settings
        self.client = OmadaV2Client(
            settings.controller_url,
            settings.username,
            settings.password,
            verify=settings.verify_tls,
            debug=debug,
            timeout=timeout,
        )

    def __enter__(self) -> "OmadaClientApi":
        if not self.settings.password:
            raise ApiError("Omada password missing (set OMADA_PASSWORD or pass settings.password).")
        if not self.settings.controller_url or not self.settings.username:
            raise ApiError("Omada settings incomplete (need controller_url/username).")
        self.login()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.client.logout()

    def login(self) -> None:
        self.client.login()

    def list_sites(self) -> List[Site]:
        return [Site(id=str(s.get("key") or s.get("id") or ""), name=str(s.get("name") or "")) for s in self.client.get_sites()]

    def select_site(self, site_id: str) -> None:
        self.client.set_site(site_id)

    def list_networks(self) -> List[NetworkInterface]:
        return [_map_network(d) for d in self.client.get_networks()]

    def list_clients(self) -> List[ClientEntry]:
        return [_map_client(d) for d in self.client.get_clients()]

    def list_devices(self) -> List[DeviceEntry]:
        return [_map_device(d) for d in self.client.get_devices()]

    def list_reservations(self) -> List[ReservationEntry]:
        return [_map_reservation(d) for d in self.client.get_dhcp_reservations()]


def _str(d: Dict[str, Any], *keys: str) -> str:
    for k in keys:
        v = d.get(k)
        if v is not None:
            return str(v)
    return ""


def _map_network(d: dict) -> NetworkInterface:
    return NetworkInterface(
        name=_str(d, "name"),
        domain=_str(d, "domain").strip(),
        subnet=_str(d, "gatewaySubnet", "subnet"),
        purpose=_str(d, "purpose"),
    )


def _map_client(d: dict) -> ClientEntry:
    hostname: Optional[str] = d.get("hostName")
    return ClientEntry(
        name=_str(d, "name"),
        mac=_str(d, "mac"),
        ip=_str(d, "ip"),
        hostname=str(hostname) if hostname is not None else None,
    )


def _map_device(d: dict) -> DeviceEntry:
    return DeviceEntry(
        dns_name=_str(d, "dnsName", "name"),
        mac=_str(d, "mac"),
        ip=_str(d, "ip"),
    )


def _map_reservation(d: dict) -> ReservationEntry:
    return ReservationEntry(
        client_name=_str(d, "clientName", "name"),
        mac=_str(d, "mac"),
        ip=_str(d, "ip"),
        enabled=bool(d.get("status", True)),
        description=_str(d, "description"),
    )
