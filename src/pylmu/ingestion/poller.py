"""Fixed-rate telemetry polling.

This module owns the repeating fetch-normalize-publish loop. The poller
knows nothing about connection status; it reports each tick's outcome
through two callbacks and stops itself after the first failure.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from pylmu._transport import Transport
from pylmu.models.session import SessionSnapshot
from pylmu.models.standing import DriverStanding
from pylmu.schema.base import Normalized, SchemaAdapter

_logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[SessionSnapshot, tuple[DriverStanding, ...]], None]
FailureCallback = Callable[[BaseException], None]


def _current_task() -> asyncio.Task[object] | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class Poller:
    """Polls the session and standings resources every *interval* seconds.

    Ticks never overlap: a tick that overruns its slot makes the poller
    skip the missed slots rather than queue them. Both resources are
    fetched concurrently and a tick publishes only when both succeed.
    """

    def __init__(
        self,
        transport: Transport,
        adapter: SchemaAdapter,
        *,
        session_path: str,
        standings_path: str,
        interval: float,
        request_timeout: float,
        on_snapshot: SnapshotCallback,
        on_failure: FailureCallback,
    ) -> None:
        self._transport = transport
        self._adapter = adapter
        self._session_path = session_path
        self._standings_path = standings_path
        self._interval = interval
        self._request_timeout = request_timeout
        self._on_snapshot = on_snapshot
        self._on_failure = on_failure
        self._task: asyncio.Task[None] | None = None
        self.ticks = 0
        self.skipped_ticks = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking on the running loop; the first tick runs immediately."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="pylmu-poller")

    def stop(self) -> None:
        """Cancel the loop. Safe to call from a callback running inside the loop."""
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        if task is _current_task():
            # Called from on_snapshot/on_failure; _run checks _task and exits.
            return
        task.cancel()

    async def tick(self) -> Normalized:
        """Fetch both resources concurrently and normalize them.

        Raises the first error of either fetch (a sibling still in flight is
        cancelled) or whatever the adapter raises. The whole fan-out is
        bounded by the request timeout.
        """
        try:
            async with asyncio.timeout(self._request_timeout), asyncio.TaskGroup() as group:
                session_task = group.create_task(
                    self._transport.get_json(self._session_path, timeout=self._request_timeout)
                )
                standings_task = group.create_task(
                    self._transport.get_json(self._standings_path, timeout=self._request_timeout)
                )
        except BaseExceptionGroup as group_exc:
            # Surface the first fetch failure.
            raise group_exc.exceptions[0] from None
        return self._adapter.normalize(session_task.result(), standings_task.result())

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        me = _current_task()
        next_tick = loop.time()

        while self._task is me:
            try:
                session, standings = await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self._fail(exc)
                return

            self.ticks += 1
            if self._task is not me:
                _logger.debug("Discarding tick result of a stopped poller")
                return
            self._on_snapshot(session, standings)

            next_tick += self._interval
            now = loop.time()
            if next_tick <= now:
                missed = int((now - next_tick) // self._interval) + 1
                self.skipped_ticks += missed
                next_tick += missed * self._interval
                _logger.debug("Poll tick overran; skipping %d tick(s)", missed)
            await asyncio.sleep(next_tick - now)

    def _fail(self, exc: BaseException) -> None:
        _logger.debug("Poll tick failed", exc_info=exc)
        if self._task is not _current_task():
            return
        self._task = None
        self._on_failure(exc)
