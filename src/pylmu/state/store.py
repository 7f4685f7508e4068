"""In-memory state store.

This is the only component that owns the published telemetry snapshot.
Snapshots are replaced wholesale, never patched, so every subscriber sees a
session and standings list from the same poll tick.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Generic, TypeVar

from pylmu.models.session import SessionSnapshot
from pylmu.models.standing import DriverStanding
from pylmu.models.state import ConnectionStatus, LmuState

_logger = logging.getLogger(__name__)

T = TypeVar("T")

StateCallback = Callable[[LmuState], None]
ConnectionCallback = Callable[[ConnectionStatus], None]
Unsubscribe = Callable[[], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class _Subscribers(Generic[T]):
    """Ordered callback registry with per-registration unsubscribe handles."""

    def __init__(self, kind: str) -> None:
        self._kind = kind
        self._callbacks: dict[int, Callable[[T], None]] = {}
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._callbacks)

    def add(self, callback: Callable[[T], None]) -> Unsubscribe:
        token = self._next_id
        self._next_id += 1
        self._callbacks[token] = callback

        def unsubscribe() -> None:
            self._callbacks.pop(token, None)

        return unsubscribe

    def clear(self) -> None:
        self._callbacks.clear()

    def notify(self, value: T) -> None:
        # Copy: a callback may unsubscribe itself or others while we iterate.
        for callback in list(self._callbacks.values()):
            try:
                callback(value)
            except Exception:
                _logger.debug("%s subscriber %r failed", self._kind, callback, exc_info=True)


class StateStore:
    """Holds the latest :class:`LmuState` and fans changes out to subscribers."""

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._state = LmuState()
        self._state_subscribers: _Subscribers[LmuState] = _Subscribers("state")
        self._connection_subscribers: _Subscribers[ConnectionStatus] = _Subscribers("connection")

    @property
    def state(self) -> LmuState:
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return self._state.connection

    def subscribe_state(self, callback: StateCallback) -> Unsubscribe:
        """Call *callback* with every new snapshot. Returns an unsubscribe handle."""
        return self._state_subscribers.add(callback)

    def subscribe_connection(self, callback: ConnectionCallback) -> Unsubscribe:
        """Call *callback* on every connection status emission."""
        return self._connection_subscribers.add(callback)

    def clear_subscribers(self) -> None:
        self._state_subscribers.clear()
        self._connection_subscribers.clear()

    def replace(self, session: SessionSnapshot, standings: tuple[DriverStanding, ...]) -> LmuState:
        """Publish one tick's session and standings as a new snapshot."""
        self._state = self._state.model_copy(
            update={
                "session": session,
                "standings": tuple(standings),
                "last_updated": self._clock(),
            }
        )
        self._state_subscribers.notify(self._state)
        return self._state

    def clear(self) -> LmuState:
        """Drop session and standings and publish the empty snapshot."""
        self._state = self._state.model_copy(
            update={"session": None, "standings": (), "last_updated": self._clock()},
        )
        self._state_subscribers.notify(self._state)
        return self._state

    def set_status(self, status: ConnectionStatus) -> None:
        """Record and emit *status*, even when it equals the current one."""
        if status is not self._state.connection:
            _logger.info("Connection status %s -> %s", self._state.connection, status)
        self._state = self._state.model_copy(update={"connection": status})
        self._connection_subscribers.notify(status)
