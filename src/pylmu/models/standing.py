"""Canonical driver standing model."""

from __future__ import annotations

from pydantic import Field

from pylmu.models._base import LmuEnum, LmuModel


class CarClass(LmuEnum):
    HYPERCAR = "HYPERCAR"
    LMP2 = "LMP2"
    LMP3 = "LMP3"
    LMGT3 = "LMGT3"
    GTE = "GTE"
    UNKNOWN = "UNKNOWN"


class TyreCompound(LmuEnum):
    """Tyre compound.

    Neither REST schema generation reports compounds, so standings always
    carry ``UNKNOWN`` today.
    """

    SOFT = "SOFT"
    MEDIUM = "MEDIUM"
    HARD = "HARD"
    WET = "WET"
    UNKNOWN = "UNKNOWN"


class DriverStatus(LmuEnum):
    RACING = "RACING"
    PITTING = "PITTING"
    RETIRED = "RETIRED"
    FINISHED = "FINISHED"
    DISQUALIFIED = "DISQUALIFIED"
    UNKNOWN = "UNKNOWN"


class PenaltyKind(LmuEnum):
    DRIVE_THROUGH = "DRIVE_THROUGH"
    STOP_AND_GO = "STOP_AND_GO"
    TIME_PENALTY = "TIME_PENALTY"
    DISQUALIFICATION = "DISQUALIFICATION"
    UNKNOWN = "UNKNOWN"


class Penalty(LmuModel):
    kind: PenaltyKind = PenaltyKind.TIME_PENALTY
    time: float = 0.0
    """Penalty time in seconds."""
    reason: str = ""


class SectorTimes(LmuModel):
    """Three sector slots in seconds; each is ``None`` until set."""

    sector1: float | None = None
    sector2: float | None = None
    sector3: float | None = None

    def as_tuple(self) -> tuple[float | None, float | None, float | None]:
        return (self.sector1, self.sector2, self.sector3)


class DriverStanding(LmuModel):
    """One car's standing at one poll tick."""

    position: int = Field(ge=1)
    """Dense 1-based running order."""
    car_number: str
    driver_name: str = ""
    team_name: str = ""
    car_class: CarClass = CarClass.UNKNOWN
    car_name: str = ""
    """Vehicle display name with the ``#<number>...`` decoration stripped."""
    last_lap_time: float | None = None
    best_lap_time: float | None = None
    current_sectors: SectorTimes = Field(default_factory=SectorTimes)
    best_sectors: SectorTimes = Field(default_factory=SectorTimes)
    last_sectors: SectorTimes = Field(default_factory=SectorTimes)
    gap_to_leader: float | None = None
    interval_to_ahead: float | None = None
    laps_completed: int = Field(default=0, ge=0)
    laps_down: int = Field(default=0, ge=0)
    fuel: float | None = Field(default=None, ge=0, le=100)
    """Fuel load in percent, ``None`` when the schema does not report it."""
    tyre_compound: TyreCompound = TyreCompound.UNKNOWN
    pit_stop_count: int = Field(default=0, ge=0)
    penalties: tuple[Penalty, ...] = ()
    status: DriverStatus = DriverStatus.UNKNOWN
    is_player: bool = False
    """Whether this is the locally spectated car."""
    slot_id: int
    """Stable per-car identifier used for focus commands."""

    @property
    def is_leader(self) -> bool:
        return self.position == 1
