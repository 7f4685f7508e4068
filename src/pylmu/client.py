"""High-level async client for the Le Mans Ultimate REST telemetry API."""

from __future__ import annotations

from typing import Any

import aiohttp

from pylmu._constants import FOCUS_PATH
from pylmu._transport import HttpTransport
from pylmu.config import LmuConfig
from pylmu.connection import ConnectionManager, TransportFactory
from pylmu.exceptions import LmuError
from pylmu.models.state import ConnectionStatus, LmuState
from pylmu.schema.base import SchemaAdapter
from pylmu.state.store import ConnectionCallback, StateCallback, StateStore, Unsubscribe


class LmuClient:
    """Async client for live LMU telemetry.

    Usage::

        async with LmuClient(LmuConfig.from_env()) as client:
            client.subscribe_state(render)
            await client.connect()
            ...

    Parameters
    ----------
    config : LmuConfig, optional
        Connection settings; defaults to the local endpoint.
    session : aiohttp.ClientSession, optional
        Externally owned HTTP session. When omitted the client opens and
        closes its own.
    transport_factory : callable, optional
        Builds a :class:`~pylmu._transport.Transport` for a config. Tests
        pass fakes here; by default an :class:`HttpTransport` on the
        client's HTTP session is used.
    """

    def __init__(
        self,
        config: LmuConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport_factory: TransportFactory | None = None,
    ) -> None:
        self._external_session = session is not None
        self._http_session = session
        self._transport_factory: TransportFactory = (
            transport_factory if transport_factory is not None else self._http_transport
        )
        self._manager = ConnectionManager(
            config if config is not None else LmuConfig(),
            self._transport_factory,
        )

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> LmuClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self._manager.disconnect()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    @property
    def config(self) -> LmuConfig:
        return self._manager.config

    @property
    def status(self) -> ConnectionStatus:
        return self._manager.status

    @property
    def store(self) -> StateStore:
        return self._manager.store

    @property
    def adapter(self) -> SchemaAdapter | None:
        return self._manager.adapter

    def configure(self, endpoint_url: str, poll_interval_ms: float) -> None:
        """Set the endpoint and poll interval. Only valid while disconnected."""
        self._manager.configure(endpoint_url, poll_interval_ms)

    async def connect(self, endpoint_url: str | None = None, poll_interval_ms: float | None = None) -> None:
        """Connect, optionally re-targeting first.

        With *endpoint_url* the client drops any current connection,
        applies the new endpoint (and interval, defaulting to the current
        one) and connects; this mirrors the dashboard's connect button.
        Never raises on network failure; watch :attr:`status` instead.
        """
        if endpoint_url is not None:
            if poll_interval_ms is None:
                poll_interval_ms = self.config.poll_interval * 1000.0
            self._manager.disconnect()
            self._manager.configure(endpoint_url, poll_interval_ms)
        await self._manager.connect()

    def disconnect(self) -> None:
        self._manager.disconnect()

    def get_state(self) -> LmuState:
        """Return the current immutable snapshot."""
        return self._manager.get_state()

    def subscribe_state(self, callback: StateCallback) -> Unsubscribe:
        """Register *callback* for snapshot updates; returns its unsubscribe handle."""
        return self._manager.subscribe_state(callback)

    def subscribe_connection(self, callback: ConnectionCallback) -> Unsubscribe:
        """Register *callback* for connection status changes; returns its unsubscribe handle."""
        return self._manager.subscribe_connection(callback)

    # ------------------------------------------------------------------
    # One-shot commands
    # ------------------------------------------------------------------

    async def focus_vehicle(self, slot_id: int) -> bool:
        """Point the spectator camera at the car in *slot_id*."""
        return await self._command(f"{FOCUS_PATH}/{int(slot_id)}")

    async def set_camera_angle(self, camera_type: int, track_side_group: int, should_advance: bool) -> bool:
        """Switch the spectator camera angle."""
        advance = "true" if should_advance else "false"
        return await self._command(f"{FOCUS_PATH}/camera/{int(camera_type)}/{int(track_side_group)}/{advance}")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _command(self, path: str) -> bool:
        config = self.config
        transport = self._transport_factory(config)
        return await transport.put(path, timeout=config.request_timeout)

    def _http_transport(self, config: LmuConfig) -> HttpTransport:
        if self._http_session is None:
            raise LmuError("Client not initialized. Use 'async with LmuClient(...) as client:'")
        return HttpTransport(config, self._http_session)
