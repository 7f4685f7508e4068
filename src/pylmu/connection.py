"""Connection lifecycle state machine.

``DISCONNECTED -> CONNECTING -> CONNECTED`` on a successful liveness probe,
``-> ERROR`` on a failed probe or poll tick, and back to ``DISCONNECTED``
after the error cool-down or an explicit :meth:`ConnectionManager.disconnect`.

Every ``connect()``/``disconnect()`` starts a new epoch. Probe results, tick
results and cool-down timers carry the epoch they were started in and are
dropped when it is no longer current, so late work can never revive a
connection that was torn down.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable
from typing import Any

from pylmu._transport import Transport
from pylmu.config import AUTO_SCHEMA, LmuConfig
from pylmu.exceptions import LmuConfigError
from pylmu.ingestion.poller import Poller
from pylmu.models.session import SessionSnapshot
from pylmu.models.standing import DriverStanding
from pylmu.models.state import ConnectionStatus, LmuState
from pylmu.schema import detect_adapter, get_adapter
from pylmu.schema.base import SchemaAdapter
from pylmu.state.store import ConnectionCallback, StateCallback, StateStore, Unsubscribe

_logger = logging.getLogger(__name__)

TransportFactory = Callable[[LmuConfig], Transport]


class ConnectionManager:
    """Supervises the liveness probe and at most one active :class:`Poller`.

    Public operations never raise on network or payload problems; those
    become :class:`ConnectionStatus` transitions published through the
    :class:`StateStore`.
    """

    def __init__(
        self,
        config: LmuConfig,
        transport_factory: TransportFactory,
        *,
        store: StateStore | None = None,
    ) -> None:
        self._config = config.validated()
        self._transport_factory = transport_factory
        self._store = store if store is not None else StateStore()
        self._poller: Poller | None = None
        self._adapter: SchemaAdapter | None = None
        self._reset_handle: asyncio.TimerHandle | None = None
        self._epoch = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def config(self) -> LmuConfig:
        return self._config

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def status(self) -> ConnectionStatus:
        return self._store.status

    @property
    def adapter(self) -> SchemaAdapter | None:
        """Adapter chosen by the last successful ``connect()``."""
        return self._adapter

    @property
    def is_polling(self) -> bool:
        return self._poller is not None and self._poller.is_running

    def get_state(self) -> LmuState:
        return self._store.state

    def subscribe_state(self, callback: StateCallback) -> Unsubscribe:
        return self._store.subscribe_state(callback)

    def subscribe_connection(self, callback: ConnectionCallback) -> Unsubscribe:
        return self._store.subscribe_connection(callback)

    def configure(self, endpoint_url: str, poll_interval_ms: float) -> None:
        """Point the manager at *endpoint_url*, polling every *poll_interval_ms*.

        Raises
        ------
        LmuConfigError
            If called while not ``DISCONNECTED`` or with invalid values.
        """
        self.replace_config(self._config.with_endpoint(endpoint_url, poll_interval_ms))

    def replace_config(self, config: LmuConfig) -> None:
        if self.status is not ConnectionStatus.DISCONNECTED:
            raise LmuConfigError(f"cannot reconfigure while {self.status}; disconnect first")
        self._config = config.validated()

    async def connect(self) -> None:
        """Probe the host and start polling. Never raises on network failure."""
        config = self._config

        self._cancel_reset()
        self._stop_poller()
        self._epoch += 1
        epoch = self._epoch
        self._store.set_status(ConnectionStatus.CONNECTING)

        try:
            transport = self._transport_factory(config)
            async with asyncio.timeout(config.probe_timeout):
                payload = await transport.get_json(config.session_path, timeout=config.probe_timeout)
            adapter = self._resolve_adapter(payload)
        except asyncio.CancelledError:
            if epoch == self._epoch:
                _logger.debug("connect() cancelled during the liveness probe")
                self._epoch += 1
                self._store.set_status(ConnectionStatus.DISCONNECTED)
            raise
        except Exception as exc:
            if epoch != self._epoch:
                return
            _logger.warning("Liveness probe against %s failed: %s", config.base_url, exc)
            self._enter_error()
            return

        if epoch != self._epoch:
            _logger.debug("Discarding probe result of a superseded connect()")
            return

        _logger.debug("Using %r schema adapter", adapter)
        self._adapter = adapter
        self._store.set_status(ConnectionStatus.CONNECTED)
        self._poller = Poller(
            transport,
            adapter,
            session_path=config.session_path,
            standings_path=config.standings_path,
            interval=config.poll_interval,
            request_timeout=config.request_timeout,
            on_snapshot=functools.partial(self._on_snapshot, epoch),
            on_failure=functools.partial(self._on_poll_failure, epoch),
        )
        self._poller.start()

    def disconnect(self) -> None:
        """Stop polling, clear the snapshot and emit ``DISCONNECTED``.

        Idempotent. After it returns no tick, snapshot or status callback
        from the previous connection fires.
        """
        self._epoch += 1
        self._cancel_reset()
        self._stop_poller()
        self._store.set_status(ConnectionStatus.DISCONNECTED)
        self._store.clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _resolve_adapter(self, probe_payload: Any) -> SchemaAdapter:
        if self._config.schema == AUTO_SCHEMA:
            return detect_adapter(probe_payload)
        return get_adapter(self._config.schema)

    def _on_snapshot(
        self,
        epoch: int,
        session: SessionSnapshot,
        standings: tuple[DriverStanding, ...],
    ) -> None:
        if epoch != self._epoch or self.status is not ConnectionStatus.CONNECTED:
            _logger.debug("Discarding snapshot from a stale poll tick")
            return
        self._store.replace(session, standings)

    def _on_poll_failure(self, epoch: int, exc: BaseException) -> None:
        if epoch != self._epoch:
            return
        _logger.warning("Poll tick against %s failed: %s", self._config.base_url, exc)
        self._stop_poller()
        self._enter_error()

    def _enter_error(self) -> None:
        self._store.set_status(ConnectionStatus.ERROR)
        loop = asyncio.get_running_loop()
        self._reset_handle = loop.call_later(
            self._config.error_cooldown,
            self._auto_reset,
            self._epoch,
        )

    def _auto_reset(self, epoch: int) -> None:
        self._reset_handle = None
        if epoch != self._epoch:
            return
        self._store.set_status(ConnectionStatus.DISCONNECTED)

    def _cancel_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None

    def _stop_poller(self) -> None:
        poller = self._poller
        self._poller = None
        if poller is not None:
            poller.stop()
