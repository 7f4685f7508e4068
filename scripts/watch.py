#!/usr/bin/env python3
"""Live leaderboard in the terminal.

Connects to the simulator, subscribes to snapshots and prints the running
order as snapshots arrive (at most once per ``--refresh`` seconds).

Usage
-----
::

    python scripts/watch.py --url http://192.168.1.50:6397 --duration 60

Options::

    --url URL          Simulator REST host (default: $LMU_BASE_URL or localhost)
    --interval MS      Poll interval in milliseconds (default: 200)
    --duration SEC     Stop after SEC seconds (default: run until Ctrl+C)
    --refresh SEC      Minimum seconds between printed tables (default: 1)
    --json             Print each snapshot as one JSON line instead
    --focus SLOT       Point the spectator camera at SLOT after connecting
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pylmu import ConnectionStatus, DriverStanding, LmuClient, LmuConfig, LmuState  # noqa: E402


def _fmt_time(seconds: float | None) -> str:
    if seconds is None:
        return "-"
    minutes, secs = divmod(seconds, 60)
    return f"{int(minutes)}:{secs:06.3f}"


def _fmt_gap(standing: DriverStanding) -> str:
    if standing.is_leader:
        return "leader"
    if standing.laps_down:
        return f"+{standing.laps_down}L"
    if standing.gap_to_leader is None:
        return "-"
    return f"+{standing.gap_to_leader:.3f}"


def render(state: LmuState) -> str:
    session = state.session
    if session is None:
        return f"[{state.connection}] no data"

    laps = f"{session.current_lap}/{session.total_laps}" if session.has_lap_limit else f"{session.current_lap}"
    remaining = int(session.time_remaining)
    lines = [
        f"[{state.connection}] {session.track_name} {session.kind} | flag {session.flag} | lap {laps}"
        f" | {remaining // 3600:d}:{remaining % 3600 // 60:02d}:{remaining % 60:02d} left"
        f" | {session.cars_on_track}/{session.car_count} on track",
        f"{'Pos':>3} {'#':>4} {'Class':<9} {'Driver':<22} {'Last':>9} {'Best':>9} {'Gap':>9} {'Pit':>3} Status",
    ]
    for s in state.standings:
        marker = "*" if s.is_player else " "
        lines.append(
            f"{s.position:>3}{marker}{s.car_number:>4} {s.car_class:<9} {s.driver_name[:22]:<22} "
            f"{_fmt_time(s.last_lap_time):>9} {_fmt_time(s.best_lap_time):>9} {_fmt_gap(s):>9} "
            f"{s.pit_stop_count:>3} {s.status}"
        )
    return "\n".join(lines)


async def main() -> int:
    parser = argparse.ArgumentParser(description="Print the live LMU leaderboard.")
    parser.add_argument("--url", help="Simulator REST host (default: $LMU_BASE_URL or localhost)")
    parser.add_argument("--interval", type=float, help="Poll interval in milliseconds")
    parser.add_argument("--duration", type=float, help="Stop after this many seconds")
    parser.add_argument("--refresh", type=float, default=1.0, help="Minimum seconds between printed tables")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Print snapshots as JSON lines")
    parser.add_argument("--focus", type=int, help="Focus the spectator camera on this slot id")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = LmuConfig.from_env()
    last_printed = 0.0

    def on_state(state: LmuState) -> None:
        nonlocal last_printed
        if state.session is None:
            return
        if args.json_mode:
            print(json.dumps(state.to_payload(), ensure_ascii=False), flush=True)
            return
        now = time.monotonic()
        if now - last_printed < args.refresh:
            return
        last_printed = now
        print(render(state) + "\n", flush=True)

    def on_status(status: ConnectionStatus) -> None:
        print(f"connection: {status}", file=sys.stderr, flush=True)

    async with LmuClient(config) as client:
        client.subscribe_state(on_state)
        client.subscribe_connection(on_status)

        if args.url or args.interval:
            await client.connect(args.url or config.base_url, args.interval)
        else:
            await client.connect()

        if args.focus is not None and client.status is ConnectionStatus.CONNECTED:
            ok = await client.focus_vehicle(args.focus)
            print(f"focus slot {args.focus}: {'ok' if ok else 'rejected'}", file=sys.stderr)

        if args.duration is not None:
            await asyncio.sleep(args.duration)
        else:
            await asyncio.Event().wait()

    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(130)
