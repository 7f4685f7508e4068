"""Numeric-code schema generation (scoring-style payloads).

Sessions, flags and finish states are small integer codes, sector times
are cumulative splits, and the payload carries neither fuel nor penalties.
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
    split_or_none,
)
from pylmu.models._base import LmuRawModel
from pylmu.models.session import FlagState, SessionKind, SessionSnapshot
from pylmu.models.standing import SectorTimes, TyreCompound
from pylmu.schema import _rules
from pylmu.schema._rules import FinishState
from pylmu.schema.base import Normalized, SchemaAdapter

# 0 test day, 1-4 practice, 5-8 qualifying, 9 warmup, 10-13 race.
_SESSION_CODES: dict[int, SessionKind] = {
    0: SessionKind.PRACTICE,
    **{code: SessionKind.PRACTICE for code in range(1, 5)},
    **{code: SessionKind.QUALIFYING for code in range(5, 9)},
    9: SessionKind.WARMUP,
    **{code: SessionKind.RACE for code in range(10, 14)},
}

_YELLOW_FLAG_CLEAR = 0
_FLAG_CODES: dict[int, FlagState] = {
    0: FlagState.GREEN,
    1: FlagState.YELLOW,  # pending
    2: FlagState.FULL_COURSE_YELLOW,  # pits closed
    3: FlagState.FULL_COURSE_YELLOW,  # pit lead lap
    4: FlagState.FULL_COURSE_YELLOW,  # pits open
    5: FlagState.FULL_COURSE_YELLOW,  # last lap
    6: FlagState.YELLOW,  # resume
    7: FlagState.RED,  # race halt
}

_SECTOR_YELLOW = 1

_FINISH_CODES: dict[int, FinishState] = {
    0: FinishState.NONE,
    1: FinishState.FINISHED,
    2: FinishState.DNF,
    3: FinishState.DISQUALIFIED,
}


class RawScoringSession(LmuRawModel):
    session: int | None = None
    track_name: str = Field(default="", validation_alias="trackName")
    current_et: float | None = Field(default=None, validation_alias="currentET")
    end_et: float | None = Field(default=None, validation_alias="endET")
    max_laps: int | None = Field(default=None, validation_alias="maxLaps")
    yellow_flag_state: int | None = Field(default=None, validation_alias="yellowFlagState")
    sector_flag: list[int | None] = Field(default_factory=list, validation_alias="sectorFlag")
    num_vehicles: int | None = Field(default=None, validation_alias="numVehicles")

    @field_validator("track_name", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str:
        return safe_str(value) or ""

    @field_validator("current_et", "end_et", mode="before")
    @classmethod
    def _coerce_float(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("session", "max_laps", "yellow_flag_state", "num_vehicles", mode="before")
    @classmethod
    def _coerce_int(cls, value: Any) -> int | None:
        return safe_int(value)

    @field_validator("sector_flag", mode="before")
    @classmethod
    def _coerce_flags(cls, value: Any) -> list[int | None]:
        return [safe_int(item) for item in safe_list(value)]


class RawScoringVehicle(LmuRawModel):
    id: int | None = None
    place: int | None = None
    driver_name: str = Field(default="", validation_alias="driverName")
    vehicle_name: str = Field(default="", validation_alias="vehicleName")
    vehicle_class: str = Field(default="", validation_alias="vehicleClass")
    total_laps: int | None = Field(default=None, validation_alias="totalLaps")
    laps_behind_leader: int | None = Field(default=None, validation_alias="lapsBehindLeader")
    time_behind_leader: float | None = Field(default=None, validation_alias="timeBehindLeader")
    time_behind_next: float | None = Field(default=None, validation_alias="timeBehindNext")
    last_lap_time: float | None = Field(default=None, validation_alias="lastLapTime")
    best_lap_time: float | None = Field(default=None, validation_alias="bestLapTime")
    cur_sector1: float | None = Field(default=None, validation_alias="curSector1")
    cur_sector2: float | None = Field(default=None, validation_alias="curSector2")
    last_sector1: float | None = Field(default=None, validation_alias="lastSector1")
    last_sector2: float | None = Field(default=None, validation_alias="lastSector2")
    best_sector1: float | None = Field(default=None, validation_alias="bestSector1")
    best_sector2: float | None = Field(default=None, validation_alias="bestSector2")
    num_pitstops: int | None = Field(default=None, validation_alias="numPitstops")
    finish_status: int | None = Field(default=None, validation_alias="finishStatus")
    in_pits: bool = Field(default=False, validation_alias="inPits")
    in_garage_stall: bool = Field(default=False, validation_alias="inGarageStall")
    is_player: bool = Field(default=False, validation_alias="isPlayer")

    @field_validator("driver_name", "vehicle_name", "vehicle_class", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str:
        return safe_str(value) or ""

    @field_validator(
        "time_behind_leader",
        "time_behind_next",
        "last_lap_time",
        "best_lap_time",
        "cur_sector1",
        "cur_sector2",
        "last_sector1",
        "last_sector2",
        "best_sector1",
        "best_sector2",
        mode="before",
    )
    @classmethod
    def _coerce_float(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator(
        "id",
        "place",
        "total_laps",
        "laps_behind_leader",
        "num_pitstops",
        "finish_status",
        mode="before",
    )
    @classmethod
    def _coerce_int(cls, value: Any) -> int | None:
        return safe_int(value)

    @field_validator("in_pits", "in_garage_stall", "is_player", mode="before")
    @classmethod
    def _coerce_bool(cls, value: Any) -> bool:
        return safe_bool(value)

    @property
    def finish(self) -> FinishState:
        if self.finish_status is None:
            return FinishState.NONE
        return _FINISH_CODES.get(self.finish_status, FinishState.NONE)


def map_session_kind(code: int | None) -> SessionKind:
    if code is None:
        return SessionKind.UNKNOWN
    return _SESSION_CODES.get(code, SessionKind.UNKNOWN)


def _cumulative_sectors(
    split1: float | None,
    split2: float | None,
    lap: float | None = None,
) -> SectorTimes:
    """Per-sector times from cumulative splits; sector 3 needs the full lap time."""
    return SectorTimes(
        sector1=positive_or_none(split1),
        sector2=split_or_none(split2, split1),
        sector3=split_or_none(lap, split2),
    )


class ScoringSchemaAdapter(SchemaAdapter):
    """Adapter for the numeric-code generation."""

    name = "scoring"

    def matches(self, raw_session: Mapping[str, Any]) -> bool:
        session = raw_session.get("session")
        if isinstance(session, int) and not isinstance(session, bool):
            return True
        return "currentET" in raw_session

    def normalize_payloads(
        self,
        raw_session: dict[str, Any],
        raw_vehicles: list[dict[str, Any]],
    ) -> Normalized:
        session = RawScoringSession.model_validate(raw_session)
        vehicles = [RawScoringVehicle.model_validate(entry) for entry in raw_vehicles]
        return self._session(session, vehicles), _rules.build_standings(
            (v.place, v.id, self._vehicle_fields(v)) for v in vehicles
        )

    def _session(self, raw: RawScoringSession, vehicles: list[RawScoringVehicle]) -> SessionSnapshot:
        car_count = raw.num_vehicles if raw.num_vehicles and raw.num_vehicles > 0 else len(vehicles)
        return SessionSnapshot(
            kind=map_session_kind(raw.session),
            track_name=raw.track_name.strip() or UNKNOWN_TRACK,
            current_lap=_rules.derive_current_lap((v.place, v.total_laps) for v in vehicles),
            total_laps=_rules.derive_total_laps(raw.max_laps),
            # No direct remaining-time field in this generation.
            time_remaining=_rules.derive_time_remaining(None, raw.end_et, raw.current_et),
            elapsed=raw.current_et if raw.current_et is not None else 0.0,
            flag=_rules.derive_flag(
                raw.yellow_flag_state,
                _FLAG_CODES,
                clear=_YELLOW_FLAG_CLEAR,
                sector_yellow=_rules.any_sector_yellow(raw.sector_flag, lambda code: code == _SECTOR_YELLOW),
            ),
            car_count=car_count,
            cars_on_track=_rules.count_on_track((v.finish, v.in_garage_stall) for v in vehicles),
            active=car_count > 0,
        )

    def _vehicle_fields(self, raw: RawScoringVehicle) -> dict[str, Any]:
        return {
            "car_number": _rules.recover_car_number(None, raw.vehicle_name, raw.id),
            "driver_name": raw.driver_name,
            "team_name": "",
            "car_class": _rules.map_car_class(raw.vehicle_class),
            "car_name": _rules.clean_car_name(raw.vehicle_name),
            "last_lap_time": positive_or_none(raw.last_lap_time),
            "best_lap_time": positive_or_none(raw.best_lap_time),
            # The lap in progress has no sector 3 split yet.
            "current_sectors": _cumulative_sectors(raw.cur_sector1, raw.cur_sector2),
            "best_sectors": _cumulative_sectors(raw.best_sector1, raw.best_sector2),
            "last_sectors": _cumulative_sectors(raw.last_sector1, raw.last_sector2, raw.last_lap_time),
            "gap_to_leader": positive_or_none(raw.time_behind_leader),
            "interval_to_ahead": positive_or_none(raw.time_behind_next),
            "laps_completed": non_negative_or_zero(raw.total_laps),
            "laps_down": non_negative_or_zero(raw.laps_behind_leader),
            "fuel": None,
            "tyre_compound": TyreCompound.UNKNOWN,
            "pit_stop_count": non_negative_or_zero(raw.num_pitstops),
            "penalties": (),
            "status": _rules.derive_driver_status(
                raw.finish,
                in_garage=raw.in_garage_stall,
                pitting=raw.in_pits,
            ),
            "is_player": raw.is_player,
            "slot_id": raw.id if raw.id is not None else -1,
        }
