from .settings import OmadaSettings
from .api import OmadaClientApi
from .sync import OmadaSync
from .zones import ZoneStore
from .resolver import SnapshotResolver

from .errors import (
    ApiError,
    AuthenticationError,
    BadRequestError,
    NotFoundError,
    SettingsError,
)

from .models import (
    NetworkInterface,
    ClientEntry,
    DeviceEntry,
    ReservationEntry,
    ForwardRecord,
    ReverseRecord,
    DomainRecordSet,
    ZoneSnapshot,
)

__all__ = [
    "OmadaSettings",
    "OmadaClientApi",
    "OmadaSync",
    "ZoneStore",
    "SnapshotResolver",
    "ApiError",
    "AuthenticationError",
    "BadRequestError",
    "NotFoundError",
    "SettingsError",
    "NetworkInterface",
    "ClientEntry",
    "DeviceEntry",
    "ReservationEntry",
    "ForwardRecord",
    "ReverseRecord",
    "DomainRecordSet",
    "ZoneSnapshot",
]
