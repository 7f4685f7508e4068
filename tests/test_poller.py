from __future__ import annotations

import asyncio

import pytest
from conftest import FakeLmuTransport, wait_until

from pylmu._constants import SESSION_INFO_PATH, STANDINGS_PATH
from pylmu.exceptions import LmuPayloadError, LmuTransportError
from pylmu.ingestion.poller import Poller
from pylmu.models.session import SessionSnapshot
from pylmu.models.standing import DriverStanding
from pylmu.schema.watch import WatchSchemaAdapter

Snapshot = tuple[SessionSnapshot, tuple[DriverStanding, ...]]


def _poller(
    transport: FakeLmuTransport,
    snapshots: list[Snapshot],
    failures: list[BaseException],
    *,
    interval: float = 0.02,
    request_timeout: float = 0.5,
) -> Poller:
    return Poller(
        transport,
        WatchSchemaAdapter(),
        session_path=SESSION_INFO_PATH,
        standings_path=STANDINGS_PATH,
        interval=interval,
        request_timeout=request_timeout,
        on_snapshot=lambda session, standings: snapshots.append((session, standings)),
        on_failure=failures.append,
    )


@pytest.mark.asyncio
async def test_tick_fetches_both_resources_and_normalizes(transport: FakeLmuTransport) -> None:
    poller = _poller(transport, [], [])

    session, standings = await poller.tick()

    assert session.track_name == "Circuit de la Sarthe"
    assert len(standings) == 3
    assert transport.count("GET", SESSION_INFO_PATH) == 1
    assert transport.count("GET", STANDINGS_PATH) == 1


@pytest.mark.asyncio
async def test_tick_raises_the_failing_fetch_error(transport: FakeLmuTransport) -> None:
    transport.fail_paths.add(STANDINGS_PATH)
    poller = _poller(transport, [], [])

    with pytest.raises(LmuTransportError):
        await poller.tick()


@pytest.mark.asyncio
async def test_tick_is_bounded_by_request_timeout(transport: FakeLmuTransport) -> None:
    transport.delay = 0.5
    poller = _poller(transport, [], [], request_timeout=0.02)

    with pytest.raises(TimeoutError):
        await poller.tick()


@pytest.mark.asyncio
async def test_runs_first_tick_immediately_then_repeats(transport: FakeLmuTransport) -> None:
    snapshots: list[Snapshot] = []
    poller = _poller(transport, snapshots, [])

    poller.start()
    poller.start()
    await wait_until(lambda: len(snapshots) >= 3)
    poller.stop()
    await asyncio.sleep(0.05)

    assert poller.is_running is False
    assert poller.ticks >= 3
    stopped_at = len(snapshots)
    await asyncio.sleep(0.05)
    assert len(snapshots) == stopped_at


@pytest.mark.asyncio
async def test_ticks_never_overlap_and_overruns_are_skipped(transport: FakeLmuTransport) -> None:
    transport.delay = 0.05
    snapshots: list[Snapshot] = []
    poller = _poller(transport, snapshots, [], interval=0.02)

    poller.start()
    await wait_until(lambda: len(snapshots) >= 2)
    poller.stop()

    # One session and one standings request at a time, never two ticks' worth.
    assert transport.max_in_flight == 2
    assert poller.skipped_ticks >= 1


@pytest.mark.asyncio
async def test_failure_stops_the_loop_and_reports_once(transport: FakeLmuTransport) -> None:
    snapshots: list[Snapshot] = []
    failures: list[BaseException] = []
    poller = _poller(transport, snapshots, failures)

    poller.start()
    await wait_until(lambda: len(snapshots) >= 1)
    transport.fail_paths.add(SESSION_INFO_PATH)
    await wait_until(lambda: bool(failures))
    await asyncio.sleep(0.05)

    assert len(failures) == 1
    assert isinstance(failures[0], LmuTransportError)
    assert poller.is_running is False


@pytest.mark.asyncio
async def test_malformed_payload_is_a_tick_failure(transport: FakeLmuTransport) -> None:
    transport.standings = {"vehicles": []}
    snapshots: list[Snapshot] = []
    failures: list[BaseException] = []
    poller = _poller(transport, snapshots, failures)

    poller.start()
    await wait_until(lambda: bool(failures))

    assert snapshots == []
    assert isinstance(failures[0], LmuPayloadError)


@pytest.mark.asyncio
async def test_stop_from_snapshot_callback_ends_the_loop(transport: FakeLmuTransport) -> None:
    snapshots: list[Snapshot] = []
    poller: Poller

    def on_snapshot(session: SessionSnapshot, standings: tuple[DriverStanding, ...]) -> None:
        snapshots.append((session, standings))
        poller.stop()

    poller = Poller(
        transport,
        WatchSchemaAdapter(),
        session_path=SESSION_INFO_PATH,
        standings_path=STANDINGS_PATH,
        interval=0.01,
        request_timeout=0.5,
        on_snapshot=on_snapshot,
        on_failure=lambda exc: None,
    )

    poller.start()
    await wait_until(lambda: bool(snapshots))
    await asyncio.sleep(0.05)

    assert len(snapshots) == 1
    assert poller.is_running is False
