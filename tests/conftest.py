from __future__ import annotations

import asyncio
import copy
from dataclasses import dataclass, field
from typing import Any

import pytest

from pylmu._constants import SESSION_INFO_PATH, STANDINGS_PATH
from pylmu.config import LmuConfig
from pylmu.exceptions import LmuTransportError

WATCH_SESSION: dict[str, Any] = {
    "session": "RACE1",
    "trackName": "Circuit de la Sarthe",
    "currentEventTime": 120.0,
    "endEventTime": 86400.0,
    "maxTime": 3600.0,
    "timeRemainingInGamePhase": -1,
    "maximumLaps": 4294967295,
    "yellowFlagState": "NONE",
    "sectorFlag": ["NONE", "NONE", "NONE"],
    "numberOfVehicles": 3,
}

WATCH_STANDINGS: list[dict[str, Any]] = [
    {
        "slotID": 0,
        "position": 2,
        "carClass": "Hyper",
        "carNumber": "",
        "driverName": "B. Hartley",
        "fullTeamName": "Toyota Gazoo Racing",
        "vehicleName": "Toyota Gazoo Racing 2025 #8:LM",
        "lastLapTime": 210.5,
        "bestLapTime": 208.1,
        "timeBehindLeader": 1.5,
        "timeBehindNext": 1.5,
        "lapsCompleted": 10,
        "lapsBehindLeader": 0,
        "pitting": False,
        "inGarageStall": False,
        "pitstops": 1,
        "finishStatus": "FSTAT_NONE",
        "penalties": 0,
        "fuelFraction": 0.42,
        "player": False,
        "hasFocus": False,
        "currentSectorTime1": 61.2,
        "currentSectorTime2": -1,
        "bestSectorTime1": 60.8,
        "bestSectorTime2": 72.4,
    },
    {
        "slotID": 3,
        "position": 1,
        "carClass": "LMGT3",
        "carNumber": "92",
        "driverName": "R. Lietz",
        "fullTeamName": "Manthey PureRxcing",
        "vehicleName": "Manthey PureRxcing #92:LM",
        "lastLapTime": 95.123,
        "bestLapTime": -1,
        "timeBehindLeader": 0,
        "timeBehindNext": 0,
        "lapsCompleted": 11,
        "lapsBehindLeader": 0,
        "pitting": False,
        "inGarageStall": False,
        "pitstops": 0,
        "finishStatus": "FSTAT_NONE",
        "penalties": 2,
        "fuelFraction": 0.75,
        "player": False,
        "hasFocus": True,
    },
    {
        "slotID": 5,
        "position": 3,
        "carClass": "LMP2",
        "driverName": "P. Hanson",
        "fullTeamName": "United Autosports",
        "vehicleName": "United Autosports #22:LM",
        "lastLapTime": 0,
        "bestLapTime": 222.0,
        "lapsCompleted": 4,
        "lapsBehindLeader": 7,
        "pitting": True,
        "inGarageStall": True,
        "finishStatus": "FSTAT_NONE",
        "fuelFraction": 0.1,
    },
]


def watch_session(**overrides: Any) -> dict[str, Any]:
    return {**copy.deepcopy(WATCH_SESSION), **overrides}


def watch_standings() -> list[dict[str, Any]]:
    return copy.deepcopy(WATCH_STANDINGS)


@dataclass
class FakeLmuTransport:
    """In-memory stand-in for the simulator's REST service."""

    session: Any = field(default_factory=watch_session)
    standings: Any = field(default_factory=watch_standings)
    fail_paths: set[str] = field(default_factory=set)
    delay: float = 0.0
    put_ok: bool = True
    calls: list[tuple[str, str]] = field(default_factory=list)
    in_flight: int = 0
    max_in_flight: int = 0

    def count(self, method: str, path: str) -> int:
        return sum(1 for call in self.calls if call == (method, path))

    async def get_json(self, path: str, *, timeout: float) -> Any:
        self.calls.append(("GET", path))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if path in self.fail_paths:
                raise LmuTransportError(f"Request to {path} failed: connection refused", endpoint=path)
            if path == SESSION_INFO_PATH:
                return copy.deepcopy(self.session)
            if path == STANDINGS_PATH:
                return copy.deepcopy(self.standings)
            raise AssertionError(f"Unexpected path in fake transport: {path}")
        finally:
            self.in_flight -= 1

    async def put(self, path: str, *, timeout: float) -> bool:
        self.calls.append(("PUT", path))
        return self.put_ok


@pytest.fixture
def transport() -> FakeLmuTransport:
    return FakeLmuTransport()


@pytest.fixture
def config() -> LmuConfig:
    return LmuConfig(poll_interval=0.02, error_cooldown=0.05, probe_timeout=0.5, request_timeout=0.5)


async def wait_until(predicate: Any, *, timeout: float = 1.0) -> None:
    """Yield to the loop until *predicate()* is true."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.005)
