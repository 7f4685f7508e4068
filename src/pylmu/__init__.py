"""pylmu - Async Python client for Le Mans Ultimate live telemetry."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pylmu")
except PackageNotFoundError:
    __version__ = "0+local"
from pylmu.client import LmuClient
from pylmu.config import AUTO_SCHEMA, LmuConfig
from pylmu.exceptions import (
    LmuConfigError,
    LmuError,
    LmuPayloadError,
    LmuSchemaError,
    LmuTransportError,
)
from pylmu.models import (
    CarClass,
    ConnectionStatus,
    DriverStanding,
    DriverStatus,
    FlagState,
    LmuState,
    Penalty,
    PenaltyKind,
    SectorTimes,
    SessionKind,
    SessionSnapshot,
    TyreCompound,
)
from pylmu.schema import SchemaAdapter, available_adapters, register_adapter

__all__ = [
    "__version__",
    "AUTO_SCHEMA",
    "CarClass",
    "ConnectionStatus",
    "DriverStanding",
    "DriverStatus",
    "FlagState",
    "LmuClient",
    "LmuConfig",
    "LmuConfigError",
    "LmuError",
    "LmuPayloadError",
    "LmuSchemaError",
    "LmuState",
    "LmuTransportError",
    "Penalty",
    "PenaltyKind",
    "SchemaAdapter",
    "SectorTimes",
    "SessionKind",
    "SessionSnapshot",
    "TyreCompound",
    "available_adapters",
    "register_adapter",
]
