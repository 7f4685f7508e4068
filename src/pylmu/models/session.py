"""Canonical session model."""

from __future__ import annotations

from pydantic import Field

from pylmu.models._base import LmuEnum, LmuModel


class SessionKind(LmuEnum):
    PRACTICE = "PRACTICE"
    QUALIFYING = "QUALIFYING"
    WARMUP = "WARMUP"
    RACE = "RACE"
    UNKNOWN = "UNKNOWN"


class FlagState(LmuEnum):
    """Course flag state.

    ``NONE`` is the fallback for indicator codes without a mapping.
    """

    GREEN = "GREEN"
    YELLOW = "YELLOW"
    FULL_COURSE_YELLOW = "FULL_COURSE_YELLOW"
    SAFETY_CAR = "SAFETY_CAR"
    RED = "RED"
    CHEQUERED = "CHEQUERED"
    NONE = "NONE"


class SessionSnapshot(LmuModel):
    """Session state at one poll tick."""

    kind: SessionKind = SessionKind.UNKNOWN
    track_name: str = ""
    current_lap: int = Field(default=0, ge=0)
    total_laps: int = Field(default=0, ge=0)
    """Lap limit; ``0`` means unlimited, never "zero laps"."""
    time_remaining: float = Field(default=0.0, ge=0)
    """Seconds left in the session."""
    elapsed: float = 0.0
    """Elapsed session time in seconds."""
    flag: FlagState = FlagState.NONE
    car_count: int = Field(default=0, ge=0)
    cars_on_track: int = Field(default=0, ge=0)
    active: bool = False

    @property
    def has_lap_limit(self) -> bool:
        return self.total_laps > 0

