from __future__ import annotations
from dataclasses import dataclass, replace, fields
from urllib.parse import urlparse
import argparse
import re
import os

from .errors import SettingsError
from .utils import str_to_bool, parse_duration, fallback_syntax_error

def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return str_to_bool(raw)
    except argparse.ArgumentTypeError as exc:
        raise SettingsError(f"{name}: {exc}") from exc

def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise SettingsError(f"{name}: expected an integer, got {raw!r}") from exc

def _env_duration(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return parse_duration(raw)
    except ValueError as exc:
        raise SettingsError(f"{name}: {exc}") from exc

@dataclass(frozen=True)
class OmadaSettings:
    controller_url: str
    site: str
    username: str
    password: str
    verify_tls: bool = True
    refresh_minutes: int = 1                  # rebuild zones every x minutes
    refresh_login_hours: int = 24             # new session token every x hours
    resolve_clients: bool = True
    resolve_devices: bool = True
    resolve_dhcp_reservations: bool = True
    stale_record_duration: float = 600.0      # seconds to keep serving records no longer reported
    ignore_startup_errors: bool = False
    fallback: str = ""                        # IP, FQDN or short hostname for unmatched names

    @staticmethod
    def from_env() -> "OmadaSettings":
        return OmadaSettings(
            controller_url=os.getenv("OMADA_URL", "").strip(),
            site=os.getenv("OMADA_SITE", "").strip(),
            username=os.getenv("OMADA_USERNAME", "").strip(),
            password=os.getenv("OMADA_PASSWORD", ""),
            verify_tls=_env_bool("OMADA_VERIFY_TLS", True),
            refresh_minutes=_env_int("OMADA_REFRESH_MINUTES", 1),
            refresh_login_hours=_env_int("OMADA_REFRESH_LOGIN_HOURS", 24),
            resolve_clients=_env_bool("OMADA_RESOLVE_CLIENTS", True),
            resolve_devices=_env_bool("OMADA_RESOLVE_DEVICES", True),
            resolve_dhcp_reservations=_env_bool("OMADA_RESOLVE_DHCP_RESERVATIONS", True),
            stale_record_duration=_env_duration("OMADA_STALE_RECORD_DURATION", 600.0),
            ignore_startup_errors=_env_bool("OMADA_IGNORE_STARTUP_ERRORS", False),
            fallback=os.getenv("OMADA_FALLBACK", "").strip(),
        )

    def with_overrides(self, **overrides) -> "OmadaSettings":
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"unknown settings: {', '.join(sorted(unknown))}")
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def validate(self) -> "OmadaSettings":
        missing = [n for n in ("controller_url", "site", "username", "password") if not getattr(self, n)]
        if missing:
            raise SettingsError(f"missing required settings: {', '.join(missing)}")

        url = urlparse(self.controller_url)
        if url.scheme not in ("http", "https") or not url.netloc:
            raise SettingsError(f"controller_url must be an http(s) URL: {self.controller_url!r}")

        try:
            re.compile(self.site)
        except re.error as exc:
            raise SettingsError(f"site is not a valid regular expression: {self.site!r}: {exc}") from exc

        if self.refresh_minutes <= 0:
            raise SettingsError("refresh_minutes must be positive")
        if self.refresh_login_hours <= 0:
            raise SettingsError("refresh_login_hours must be positive")
        if self.stale_record_duration < 0:
            raise SettingsError("stale_record_duration must not be negative")

        reason = fallback_syntax_error(self.fallback)
        if reason:
            raise SettingsError(reason)
        return self

    @property
    def refresh_interval(self) -> float:
        return self.refresh_minutes * 60.0

    @property
    def login_interval(self) -> float:
        return self.refresh_login_hours * 3600.0
