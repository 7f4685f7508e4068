"""Normalization rules shared by every schema generation.

Adapters translate their raw field names and codes into the plain values
these helpers take; the helpers own the canonical semantics (sentinels,
priorities, fallbacks). Nothing here raises on odd input.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeVar

from pylmu._constants import NO_LAP_LIMIT, PENDING_PENALTY_REASON
from pylmu.models.session import FlagState
from pylmu.models.standing import CarClass, DriverStanding, DriverStatus, Penalty, PenaltyKind

K = TypeVar("K")

# Penalty placeholders carry no detail; cap them so a garbage count cannot
# blow up a tick.
MAX_PENDING_PENALTIES = 99

_CAR_NUMBER_RE = re.compile(r"#(\w+)")
_CAR_NAME_SUFFIX_RE = re.compile(r"#\w+.*$", re.DOTALL)

_CAR_CLASS_EXACT: dict[str, CarClass] = {
    "HYPER": CarClass.HYPERCAR,
    "HYPERCAR": CarClass.HYPERCAR,
    "LMH": CarClass.HYPERCAR,
    "LMP2": CarClass.LMP2,
    "LMP3": CarClass.LMP3,
    "GT3": CarClass.LMGT3,
    "LMGT3": CarClass.LMGT3,
    "GTE": CarClass.GTE,
}

# Substring fallback, checked in order ("LMGT3 Pro" before a bare "GT3").
_CAR_CLASS_CONTAINS: tuple[tuple[str, CarClass], ...] = (
    ("HYPER", CarClass.HYPERCAR),
    ("LMH", CarClass.HYPERCAR),
    ("LMP2", CarClass.LMP2),
    ("LMP3", CarClass.LMP3),
    ("LMGT3", CarClass.LMGT3),
    ("GT3", CarClass.LMGT3),
    ("GTE", CarClass.GTE),
)


class FinishState(enum.Enum):
    """Schema-independent finish flag of a vehicle."""

    NONE = "none"
    FINISHED = "finished"
    DNF = "dnf"
    DISQUALIFIED = "dq"


_INACTIVE_FINISH = frozenset({FinishState.FINISHED, FinishState.DNF, FinishState.DISQUALIFIED})


# ------------------------------------------------------------------
# Session
# ------------------------------------------------------------------


def derive_flag(
    indicator: K | None,
    table: Mapping[K, FlagState],
    *,
    clear: K,
    sector_yellow: bool,
    default: FlagState = FlagState.NONE,
) -> FlagState:
    """Course flag from the primary indicator, with sector yellows on top.

    *clear* is the indicator value meaning "no flag". When the indicator is
    clear but any sector reports a yellow, the result is ``YELLOW``.
    """
    if indicator == clear and sector_yellow:
        return FlagState.YELLOW
    if indicator is None:
        return default
    return table.get(indicator, default)


def derive_time_remaining(
    direct: float | None,
    end_time: float | None,
    current_time: float | None,
) -> float:
    """Seconds left: direct field, else ``end - now``, else ``0``. Never negative."""
    if direct is not None and direct >= 0:
        return direct
    if end_time is not None and current_time is not None and end_time > 0:
        return max(0.0, end_time - current_time)
    return 0.0


def derive_total_laps(maximum_laps: int | None) -> int:
    """Lap limit with the "unlimited" sentinel (and ``0``) folded to ``0``."""
    if maximum_laps is None or maximum_laps <= 0 or maximum_laps >= NO_LAP_LIMIT:
        return 0
    return maximum_laps


def derive_current_lap(cars: Iterable[tuple[int | None, int | None]]) -> int:
    """Leader's completed laps + 1, from ``(position, laps_completed)`` pairs.

    The leader is the car with the lowest valid position; ``0`` when there
    are no cars.
    """
    ordered = sorted(
        enumerate(cars),
        key=lambda item: (not _valid_position(item[1][0]), item[1][0] or 0, item[0]),
    )
    if not ordered:
        return 0
    laps = ordered[0][1][1]
    if laps is None:
        return 0
    return max(0, laps) + 1


def count_on_track(cars: Iterable[tuple[FinishState, bool]]) -> int:
    """Cars neither classified out (finished/DNF/DQ) nor sitting in the garage."""
    return sum(1 for finish, in_garage in cars if finish not in _INACTIVE_FINISH and not in_garage)


def any_sector_yellow(sector_flags: Iterable[K], is_yellow: Callable[[K], bool]) -> bool:
    return any(is_yellow(flag) for flag in sector_flags)


# ------------------------------------------------------------------
# Vehicle
# ------------------------------------------------------------------


def derive_driver_status(finish: FinishState, *, in_garage: bool, pitting: bool) -> DriverStatus:
    """First match wins: DQ, DNF, finished, garage, pitting, racing."""
    if finish is FinishState.DISQUALIFIED:
        return DriverStatus.DISQUALIFIED
    if finish is FinishState.DNF:
        return DriverStatus.RETIRED
    if finish is FinishState.FINISHED:
        return DriverStatus.FINISHED
    if in_garage:
        return DriverStatus.RETIRED
    if pitting:
        return DriverStatus.PITTING
    return DriverStatus.RACING


def recover_car_number(explicit: str | None, vehicle_name: str, slot_id: int | None) -> str:
    """Explicit number, else ``#<token>`` from the display name, else the slot id."""
    if explicit and explicit.strip():
        return explicit.strip()
    match = _CAR_NUMBER_RE.search(vehicle_name)
    if match:
        return match.group(1)
    return str(slot_id) if slot_id is not None else ""


def clean_car_name(vehicle_name: str) -> str:
    """``"Aston Martin THOR Team 2025 #007:EC"`` -> ``"Aston Martin THOR Team 2025"``."""
    return _CAR_NAME_SUFFIX_RE.sub("", vehicle_name).strip()


def map_car_class(value: str | None) -> CarClass:
    if not value:
        return CarClass.UNKNOWN
    upper = value.strip().upper()
    exact = _CAR_CLASS_EXACT.get(upper)
    if exact is not None:
        return exact
    for token, car_class in _CAR_CLASS_CONTAINS:
        if token in upper:
            return car_class
    return CarClass.UNKNOWN


def fuel_percent(fraction: float | None) -> float | None:
    """Fuel fraction ``0..1`` as a ``0..100`` percentage; ``None`` stays unknown."""
    if fraction is None:
        return None
    return round(min(1.0, max(0.0, fraction)) * 100.0, 2)


_PENDING_PENALTY = Penalty(kind=PenaltyKind.TIME_PENALTY, time=0.0, reason=PENDING_PENALTY_REASON)


def pending_penalties(count: int | None) -> tuple[Penalty, ...]:
    """One placeholder record per pending penalty; the source reports no detail.

    Counts above ``MAX_PENDING_PENALTIES`` are treated as garbage and capped.
    """
    if count is None or count <= 0:
        return ()
    return (_PENDING_PENALTY,) * min(count, MAX_PENDING_PENALTIES)


def build_standings(entries: Iterable[tuple[int | None, int | None, dict[str, Any]]]) -> tuple[DriverStanding, ...]:
    """Order ``(raw_position, slot_id, fields)`` entries and number them densely from 1.

    Cars without a valid raw position sort last; ties keep slot order.
    """
    ordered = sorted(
        entries,
        key=lambda entry: (
            not _valid_position(entry[0]),
            entry[0] or 0,
            entry[1] if entry[1] is not None else 0,
        ),
    )
    return tuple(DriverStanding(position=index, **fields) for index, (_, _, fields) in enumerate(ordered, start=1))


def _valid_position(position: int | None) -> bool:
    return position is not None and position > 0
