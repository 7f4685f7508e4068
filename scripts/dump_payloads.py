#!/usr/bin/env python3
"""Dump one raw and normalized poll of the LMU REST service.

Fetches ``sessionInfo`` and ``standings`` once, then prints the raw JSON
next to what the selected schema adapter makes of it, so you can spot
fields that aren't mapped yet.

Usage
-----
Start Le Mans Ultimate (any session) and run::

    python scripts/dump_payloads.py

Options::

    --url URL          Simulator REST host (default: $LMU_BASE_URL or localhost)
    --schema NAME      Force a schema adapter (default: detect from payload)
    --json             Output as machine-readable JSON
    --output FILE      Write output to FILE instead of stdout
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import aiohttp

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pylmu import AUTO_SCHEMA, LmuConfig, LmuError  # noqa: E402
from pylmu._transport import HttpTransport  # noqa: E402
from pylmu.schema import detect_adapter, get_adapter  # noqa: E402


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _pretty(value: Any) -> str:
    return json.dumps(value, indent=2, default=str, ensure_ascii=False)


async def main() -> int:
    parser = argparse.ArgumentParser(
        description="Dump one raw and normalized LMU poll for debugging / development.",
    )
    parser.add_argument("--url", help="Simulator REST host (default: $LMU_BASE_URL or localhost)")
    parser.add_argument("--schema", help="Force a schema adapter instead of detecting it")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    overrides: dict[str, Any] = {}
    if args.url:
        overrides["base_url"] = args.url
    if args.schema:
        overrides["schema"] = args.schema
    config = LmuConfig.from_env(**overrides)

    async with aiohttp.ClientSession() as http:
        transport = HttpTransport(config, http)
        try:
            raw_session = await transport.get_json(config.session_path, timeout=config.request_timeout)
            raw_standings = await transport.get_json(config.standings_path, timeout=config.request_timeout)
        except LmuError as exc:
            print(f"Could not reach {config.base_url}: {exc}", file=sys.stderr)
            return 1

    adapter = detect_adapter(raw_session) if config.schema == AUTO_SCHEMA else get_adapter(config.schema)
    try:
        session, standings = adapter.normalize(raw_session, raw_standings)
    except LmuError as exc:
        print(f"Payload rejected by {adapter!r}: {exc}", file=sys.stderr)
        return 1

    result: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "base_url": config.base_url,
        "schema": adapter.name,
        "raw": {"session": raw_session, "standings": raw_standings},
        "normalized": {
            "session": session.model_dump(mode="json", by_alias=True),
            "standings": [s.model_dump(mode="json", by_alias=True) for s in standings],
        },
    }

    if args.json_mode:
        text = _pretty(result)
    else:
        out: list[str] = [_section("pylmu dump_payloads")]
        out.append(f"  time      : {result['timestamp']}")
        out.append(f"  host      : {config.base_url}")
        out.append(f"  schema    : {adapter.name}")
        out.append(_section("RAW sessionInfo"))
        out.append(_pretty(raw_session))
        out.append(_section("NORMALIZED session"))
        out.append(_pretty(result["normalized"]["session"]))
        out.append(_section(f"RAW standings ({len(raw_standings) if isinstance(raw_standings, list) else '?'})"))
        out.append(_pretty(raw_standings))
        out.append(_section(f"NORMALIZED standings ({len(standings)})"))
        out.append(_pretty(result["normalized"]["standings"]))
        text = "\n".join(out)

    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        print(f"Output written to {args.output}", file=sys.stderr)
    else:
        print(text)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
