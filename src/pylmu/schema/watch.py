"""String-enum schema generation (``/rest/watch`` payloads).

Sessions are named (``"RACE1"``), flags and finish states are strings
(``"FULLCOURSE"``, ``"FSTAT_DQ"``), fuel comes as a fraction and penalties
as a pending count. Only the first two sectors are reported.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import Field, field_validator

from pylmu._constants import UNKNOWN_TRACK
from pylmu.ingestion.normalize import (
    non_negative_or_zero,
    positive_or_none,
    safe_bool,
    safe_float,
    safe_int,
    safe_list,
    safe_str,
)
from pylmu.models._base import LmuRawModel
from pylmu.models.session import FlagState, SessionKind, SessionSnapshot
from pylmu.models.standing import SectorTimes, TyreCompound
from pylmu.schema import _rules
from pylmu.schema._rules import FinishState
from pylmu.schema.base import Normalized, SchemaAdapter

_SESSION_PREFIXES: tuple[tuple[str, SessionKind], ...] = (
    ("PRACTICE", SessionKind.PRACTICE),
    ("TESTDAY", SessionKind.PRACTICE),
    ("QUALIFY", SessionKind.QUALIFYING),
    ("WARMUP", SessionKind.WARMUP),
    ("RACE", SessionKind.RACE),
)

_FLAG_TABLE: dict[str, FlagState] = {
    "NONE": FlagState.GREEN,
    "PENDING": FlagState.YELLOW,
    "RESUME": FlagState.YELLOW,
    "FULLCOURSE": FlagState.FULL_COURSE_YELLOW,
    "SAFETYCAR": FlagState.SAFETY_CAR,
}

_FINISH_TABLE: dict[str, FinishState] = {
    "FSTAT_NONE": FinishState.NONE,
    "FSTAT_FINISHED": FinishState.FINISHED,
    "FSTAT_DNF": FinishState.DNF,
    "FSTAT_DQ": FinishState.DISQUALIFIED,
}


class RawWatchSession(LmuRawModel):
    """``sessionInfo`` payload."""

    session: str = ""
    track_name: str = Field(default="", validation_alias="trackName")
    current_event_time: float | None = Field(default=None, validation_alias="currentEventTime")
    end_event_time: float | None = Field(default=None, validation_alias="endEventTime")
    max_time: float | None = Field(default=None, validation_alias="maxTime")
    time_remaining_in_game_phase: float | None = Field(default=None, validation_alias="timeRemainingInGamePhase")
    maximum_laps: int | None = Field(default=None, validation_alias="maximumLaps")
    yellow_flag_state: str = Field(default="", validation_alias="yellowFlagState")
    sector_flag: list[str] = Field(default_factory=list, validation_alias="sectorFlag")
    number_of_vehicles: int | None = Field(default=None, validation_alias="numberOfVehicles")

    @field_validator("session", "track_name", "yellow_flag_state", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str:
        return safe_str(value) or ""

    @field_validator(
        "current_event_time",
        "end_event_time",
        "max_time",
        "time_remaining_in_game_phase",
        mode="before",
    )
    @classmethod
    def _coerce_float(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("maximum_laps", "number_of_vehicles", mode="before")
    @classmethod
    def _coerce_int(cls, value: Any) -> int | None:
        return safe_int(value)

    @field_validator("sector_flag", mode="before")
    @classmethod
    def _coerce_flags(cls, value: Any) -> list[str]:
        return [text for text in (safe_str(item) for item in safe_list(value)) if text]


class RawWatchVehicle(LmuRawModel):
    """One entry of the ``standings`` payload."""

    position: int | None = None
    car_class: str = Field(default="", validation_alias="carClass")
    car_number: str = Field(default="", validation_alias="carNumber")
    slot_id: int | None = Field(default=None, validation_alias="slotID")
    driver_name: str = Field(default="", validation_alias="driverName")
    full_team_name: str = Field(default="", validation_alias="fullTeamName")
    vehicle_name: str = Field(default="", validation_alias="vehicleName")
    last_lap_time: float | None = Field(default=None, validation_alias="lastLapTime")
    best_lap_time: float | None = Field(default=None, validation_alias="bestLapTime")
    time_behind_leader: float | None = Field(default=None, validation_alias="timeBehindLeader")
    time_behind_next: float | None = Field(default=None, validation_alias="timeBehindNext")
    laps_completed: int | None = Field(default=None, validation_alias="lapsCompleted")
    laps_behind_leader: int | None = Field(default=None, validation_alias="lapsBehindLeader")
    pitting: bool = False
    in_garage_stall: bool = Field(default=False, validation_alias="inGarageStall")
    pitstops: int | None = None
    finish_status: str = Field(default="", validation_alias="finishStatus")
    penalties: int | None = None
    fuel_fraction: float | None = Field(default=None, validation_alias="fuelFraction")
    player: bool = False
    has_focus: bool = Field(default=False, validation_alias="hasFocus")
    current_sector_time1: float | None = Field(default=None, validation_alias="currentSectorTime1")
    current_sector_time2: float | None = Field(default=None, validation_alias="currentSectorTime2")
    last_sector_time1: float | None = Field(default=None, validation_alias="lastSectorTime1")
    last_sector_time2: float | None = Field(default=None, validation_alias="lastSectorTime2")
    best_sector_time1: float | None = Field(default=None, validation_alias="bestSectorTime1")
    best_sector_time2: float | None = Field(default=None, validation_alias="bestSectorTime2")

    @field_validator(
        "car_class",
        "car_number",
        "driver_name",
        "full_team_name",
        "vehicle_name",
        "finish_status",
        mode="before",
    )
    @classmethod
    def _coerce_str(cls, value: Any) -> str:
        return safe_str(value) or ""

    @field_validator(
        "last_lap_time",
        "best_lap_time",
        "time_behind_leader",
        "time_behind_next",
        "fuel_fraction",
        "current_sector_time1",
        "current_sector_time2",
        "last_sector_time1",
        "last_sector_time2",
        "best_sector_time1",
        "best_sector_time2",
        mode="before",
    )
    @classmethod
    def _coerce_float(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator(
        "position",
        "slot_id",
        "laps_completed",
        "laps_behind_leader",
        "pitstops",
        "penalties",
        mode="before",
    )
    @classmethod
    def _coerce_int(cls, value: Any) -> int | None:
        return safe_int(value)

    @field_validator("pitting", "in_garage_stall", "player", "has_focus", mode="before")
    @classmethod
    def _coerce_bool(cls, value: Any) -> bool:
        return safe_bool(value)

    @property
    def finish(self) -> FinishState:
        return _FINISH_TABLE.get(self.finish_status.strip().upper(), FinishState.NONE)


def map_session_kind(session: str) -> SessionKind:
    upper = session.strip().upper()
    for prefix, kind in _SESSION_PREFIXES:
        if upper.startswith(prefix):
            return kind
    return SessionKind.UNKNOWN


def _two_sectors(first: float | None, second: float | None) -> SectorTimes:
    return SectorTimes(sector1=positive_or_none(first), sector2=positive_or_none(second))


class WatchSchemaAdapter(SchemaAdapter):
    """Adapter for the string-enum ``/rest/watch`` generation."""

    name = "watch"

    def matches(self, raw_session: Mapping[str, Any]) -> bool:
        return isinstance(raw_session.get("session"), str) or "currentEventTime" in raw_session

    def normalize_payloads(
        self,
        raw_session: dict[str, Any],
        raw_vehicles: list[dict[str, Any]],
    ) -> Normalized:
        session = RawWatchSession.model_validate(raw_session)
        vehicles = [RawWatchVehicle.model_validate(entry) for entry in raw_vehicles]
        return self._session(session, vehicles), _rules.build_standings(
            (v.position, v.slot_id, self._vehicle_fields(v)) for v in vehicles
        )

    def _session(self, raw: RawWatchSession, vehicles: list[RawWatchVehicle]) -> SessionSnapshot:
        car_count = raw.number_of_vehicles if raw.number_of_vehicles and raw.number_of_vehicles > 0 else len(vehicles)
        end_time = raw.max_time if raw.max_time is not None else raw.end_event_time
        sector_yellow = _rules.any_sector_yellow(raw.sector_flag, lambda flag: "YELLOW" in flag.upper())
        return SessionSnapshot(
            kind=map_session_kind(raw.session),
            track_name=raw.track_name.strip() or UNKNOWN_TRACK,
            current_lap=_rules.derive_current_lap((v.position, v.laps_completed) for v in vehicles),
            total_laps=_rules.derive_total_laps(raw.maximum_laps),
            time_remaining=_rules.derive_time_remaining(
                raw.time_remaining_in_game_phase,
                end_time,
                raw.current_event_time,
            ),
            elapsed=raw.current_event_time if raw.current_event_time is not None else 0.0,
            flag=_rules.derive_flag(
                raw.yellow_flag_state.strip().upper() or None,
                _FLAG_TABLE,
                clear="NONE",
                sector_yellow=sector_yellow,
            ),
            car_count=car_count,
            cars_on_track=_rules.count_on_track((v.finish, v.in_garage_stall) for v in vehicles),
            active=car_count > 0,
        )

    def _vehicle_fields(self, raw: RawWatchVehicle) -> dict[str, Any]:
        return {
            "car_number": _rules.recover_car_number(raw.car_number, raw.vehicle_name, raw.slot_id),
            "driver_name": raw.driver_name,
            "team_name": raw.full_team_name,
            "car_class": _rules.map_car_class(raw.car_class),
            "car_name": _rules.clean_car_name(raw.vehicle_name),
            "last_lap_time": positive_or_none(raw.last_lap_time),
            "best_lap_time": positive_or_none(raw.best_lap_time),
            "current_sectors": _two_sectors(raw.current_sector_time1, raw.current_sector_time2),
            "best_sectors": _two_sectors(raw.best_sector_time1, raw.best_sector_time2),
            "last_sectors": _two_sectors(raw.last_sector_time1, raw.last_sector_time2),
            "gap_to_leader": positive_or_none(raw.time_behind_leader),
            "interval_to_ahead": positive_or_none(raw.time_behind_next),
            "laps_completed": non_negative_or_zero(raw.laps_completed),
            "laps_down": non_negative_or_zero(raw.laps_behind_leader),
            "fuel": _rules.fuel_percent(raw.fuel_fraction),
            "tyre_compound": TyreCompound.UNKNOWN,
            "pit_stop_count": non_negative_or_zero(raw.pitstops),
            "penalties": _rules.pending_penalties(raw.penalties),
            "status": _rules.derive_driver_status(
                raw.finish,
                in_garage=raw.in_garage_stall,
                pitting=raw.pitting,
            ),
            "is_player": raw.player or raw.has_focus,
            "slot_id": raw.slot_id if raw.slot_id is not None else -1,
        }
