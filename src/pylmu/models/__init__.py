"""Canonical data models for pylmu."""

from pylmu.models._base import LmuEnum, LmuModel, LmuRawModel
from pylmu.models.session import FlagState, SessionKind, SessionSnapshot
from pylmu.models.standing import (
    CarClass,
    DriverStanding,
    DriverStatus,
    Penalty,
    PenaltyKind,
    SectorTimes,
    TyreCompound,
)
from pylmu.models.state import ConnectionStatus, LmuState

__all__ = [
    "CarClass",
    "ConnectionStatus",
    "DriverStanding",
    "DriverStatus",
    "FlagState",
    "LmuEnum",
    "LmuModel",
    "LmuRawModel",
    "LmuState",
    "Penalty",
    "PenaltyKind",
    "SectorTimes",
    "SessionKind",
    "SessionSnapshot",
    "TyreCompound",
]
