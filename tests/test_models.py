from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from pylmu.models import (
    CarClass,
    ConnectionStatus,
    DriverStanding,
    FlagState,
    LmuState,
    SessionKind,
    SessionSnapshot,
)


def test_enums_resolve_case_insensitively_and_fall_back() -> None:
    assert CarClass("lmp2") == CarClass.LMP2
    assert CarClass("F1") == CarClass.UNKNOWN
    assert FlagState("purple") == FlagState.NONE
    assert SessionKind("race") == SessionKind.RACE
    assert ConnectionStatus("connected") == ConnectionStatus.CONNECTED
    assert ConnectionStatus("sleeping") == ConnectionStatus.DISCONNECTED


def test_models_are_frozen() -> None:
    session = SessionSnapshot(track_name="Monza")

    with pytest.raises(ValidationError):
        session.track_name = "Imola"  # type: ignore[misc]


def test_canonical_invariants_are_enforced() -> None:
    with pytest.raises(ValidationError):
        SessionSnapshot(time_remaining=-1.0)
    with pytest.raises(ValidationError):
        DriverStanding(position=0, car_number="1", slot_id=0)
    with pytest.raises(ValidationError):
        DriverStanding(position=1, car_number="1", slot_id=0, fuel=120.0)


def test_state_payload_uses_camel_case_keys() -> None:
    state = LmuState(
        connection=ConnectionStatus.CONNECTED,
        session=SessionSnapshot(kind=SessionKind.RACE, track_name="Monza", total_laps=0, time_remaining=10.0),
        standings=(DriverStanding(position=1, car_number="7", slot_id=3, is_player=True),),
        last_updated=datetime(2026, 1, 1, tzinfo=UTC),
    )

    payload = state.to_payload()

    assert payload["connection"] == "CONNECTED"
    assert payload["session"]["trackName"] == "Monza"
    assert payload["session"]["timeRemaining"] == 10.0
    assert payload["standings"][0]["carNumber"] == "7"
    assert payload["standings"][0]["bestSectors"] == {"sector1": None, "sector2": None, "sector3": None}
    assert payload["lastUpdated"].startswith("2026-01-01")
    assert state.player is not None
    assert state.player.slot_id == 3


def test_empty_state_has_no_player() -> None:
    state = LmuState()

    assert state.connection == ConnectionStatus.DISCONNECTED
    assert state.session is None
    assert state.standings == ()
    assert state.player is None
