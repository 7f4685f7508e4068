from __future__ import annotations

import copy
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import test_utils, web
from conftest import FakeLmuTransport, wait_until, watch_session, watch_standings

from pylmu import LmuClient, LmuConfig
from pylmu._constants import FOCUS_PATH, SESSION_INFO_PATH, STANDINGS_PATH
from pylmu._transport import HttpTransport
from pylmu.exceptions import LmuError, LmuTransportError
from pylmu.models.state import ConnectionStatus, LmuState


@dataclass
class FakeLmuServer:
    """Records requests and serves canned watch payloads over real HTTP."""

    session: Any = field(default_factory=watch_session)
    standings: Any = field(default_factory=watch_standings)
    standings_status: int = 200
    raw_session_body: str | None = None
    puts: list[str] = field(default_factory=list)

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get(SESSION_INFO_PATH, self._session_info)
        app.router.add_get(STANDINGS_PATH, self._standings)
        app.router.add_put(FOCUS_PATH + "/camera/{camera_type}/{group}/{advance}", self._put)
        app.router.add_put(FOCUS_PATH + "/{slot_id}", self._put)
        return app

    async def _session_info(self, _request: web.Request) -> web.Response:
        if self.raw_session_body is not None:
            return web.Response(text=self.raw_session_body, content_type="application/json")
        return web.json_response(copy.deepcopy(self.session))

    async def _standings(self, _request: web.Request) -> web.Response:
        if self.standings_status != 200:
            return web.Response(status=self.standings_status, text="simulator busy")
        return web.json_response(copy.deepcopy(self.standings))

    async def _put(self, request: web.Request) -> web.Response:
        self.puts.append(request.path)
        return web.Response(status=204)


@pytest.fixture
def backend() -> FakeLmuServer:
    return FakeLmuServer()


@pytest_asyncio.fixture
async def server_url(backend: FakeLmuServer) -> AsyncIterator[str]:
    async with test_utils.TestServer(backend.app()) as server:
        yield f"http://{server.host}:{server.port}"


def _config(base_url: str) -> LmuConfig:
    return LmuConfig(base_url=base_url, poll_interval=0.02, error_cooldown=0.05, request_timeout=1.0)


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_client_happy_path(backend: FakeLmuServer, server_url: str) -> None:
    states: list[LmuState] = []
    statuses: list[ConnectionStatus] = []

    async with LmuClient(_config(server_url)) as client:
        client.subscribe_state(states.append)
        client.subscribe_connection(statuses.append)

        await client.connect()
        await wait_until(lambda: any(state.session is not None for state in states))

        state = client.get_state()
        assert client.status is ConnectionStatus.CONNECTED
        assert state.session is not None
        assert state.session.time_remaining == 3480.0
        assert state.player is not None
        assert state.player.car_number == "92"

        assert await client.focus_vehicle(state.player.slot_id) is True
        assert await client.set_camera_angle(2, 1, True) is True

    assert backend.puts == ["/rest/watch/focus/3", "/rest/watch/focus/camera/2/1/true"]
    assert statuses[:2] == [ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED]
    assert statuses[-1] is ConnectionStatus.DISCONNECTED
    assert client.get_state().session is None


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_http_error_during_polling_enters_error(backend: FakeLmuServer, server_url: str) -> None:
    backend.standings_status = 503

    async with LmuClient(_config(server_url)) as client:
        await client.connect()
        await wait_until(lambda: client.status is ConnectionStatus.ERROR)
        await wait_until(lambda: client.status is ConnectionStatus.DISCONNECTED)


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_invalid_json_probe_is_a_failed_probe(backend: FakeLmuServer, server_url: str) -> None:
    backend.raw_session_body = "<html>not json</html>"

    async with LmuClient(_config(server_url)) as client:
        await client.connect()
        assert client.status is ConnectionStatus.ERROR


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_transport_maps_http_status(server_url: str) -> None:
    config = _config(server_url)

    async with aiohttp.ClientSession() as http:
        transport = HttpTransport(config, http)
        with pytest.raises(LmuTransportError) as exc_info:
            await transport.get_json("/rest/watch/nothing-here", timeout=1.0)

    assert exc_info.value.status_code == 404
    assert exc_info.value.endpoint == "/rest/watch/nothing-here"


@pytest.mark.asyncio
async def test_connect_with_endpoint_reconfigures_first(transport: FakeLmuTransport) -> None:
    seen_urls: list[str] = []

    def factory(config: LmuConfig) -> FakeLmuTransport:
        seen_urls.append(config.base_url)
        return transport

    client = LmuClient(LmuConfig(poll_interval=0.02), transport_factory=factory)
    await client.connect()
    await client.connect("http://192.168.1.20:6397", 100)

    assert seen_urls == ["http://localhost:6397", "http://192.168.1.20:6397"]
    assert client.config.poll_interval == 0.1
    assert client.status is ConnectionStatus.CONNECTED
    client.disconnect()


@pytest.mark.asyncio
async def test_connect_with_endpoint_keeps_current_interval(transport: FakeLmuTransport) -> None:
    client = LmuClient(LmuConfig(poll_interval=0.05), transport_factory=lambda _cfg: transport)

    await client.connect("http://192.168.1.20:6397")

    assert client.config.poll_interval == pytest.approx(0.05)
    client.disconnect()


@pytest.mark.asyncio
async def test_commands_report_failure_without_raising(transport: FakeLmuTransport) -> None:
    transport.put_ok = False
    client = LmuClient(transport_factory=lambda _cfg: transport)

    assert await client.focus_vehicle(12) is False
    assert await client.set_camera_angle(0, 3, False) is False
    assert transport.calls == [
        ("PUT", "/rest/watch/focus/12"),
        ("PUT", "/rest/watch/focus/camera/0/3/false"),
    ]


@pytest.mark.asyncio
async def test_connect_before_entering_client_fails_probe_without_raising() -> None:
    client = LmuClient(LmuConfig(error_cooldown=10.0))
    statuses: list[ConnectionStatus] = []
    client.subscribe_connection(statuses.append)

    await client.connect()

    assert statuses == [ConnectionStatus.CONNECTING, ConnectionStatus.ERROR]
    client.disconnect()


@pytest.mark.asyncio
async def test_commands_require_entered_client() -> None:
    client = LmuClient()

    with pytest.raises(LmuError, match="async with"):
        await client.focus_vehicle(1)


@pytest.mark.asyncio
async def test_borrowed_session_is_not_closed() -> None:
    async with aiohttp.ClientSession() as http:
        async with LmuClient(session=http):
            pass

        assert http.closed is False
