"""HTTP transport for the simulator's local REST service."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import aiohttp

from pylmu._constants import USER_AGENT
from pylmu.config import LmuConfig
from pylmu.exceptions import LmuTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the poller and connection manager.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, path: str, *, timeout: float) -> Any: ...

    async def put(self, path: str, *, timeout: float) -> bool: ...


class HttpTransport:
    """aiohttp-backed transport bound to one base URL."""

    def __init__(self, config: LmuConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    @property
    def config(self) -> LmuConfig:
        return self._config

    async def get_json(self, path: str, *, timeout: float) -> Any:
        """GET *path* and decode the JSON body.

        Raises
        ------
        LmuTransportError
            On network failure, timeout, non-2xx status or a body that is
            not JSON.
        """
        url = self._config.url(path)
        _logger.debug("GET %s", url)

        try:
            async with self._http.get(
                url,
                headers={"accept": "application/json", "user-agent": USER_AGENT},
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise LmuTransportError(
                        f"HTTP {resp.status} from {path}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=path,
                    )
        except LmuTransportError:
            raise
        except TimeoutError as exc:
            raise LmuTransportError(f"Request to {path} timed out after {timeout}s", endpoint=path) from exc
        except aiohttp.ClientError as exc:
            raise LmuTransportError(f"Request to {path} failed: {exc}", endpoint=path) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise LmuTransportError(f"Invalid JSON from {path}: {text[:200]}", endpoint=path) from exc

    async def put(self, path: str, *, timeout: float) -> bool:
        """Fire-and-forget PUT; returns whether the simulator accepted it."""
        url = self._config.url(path)
        _logger.debug("PUT %s", url)

        try:
            async with self._http.put(
                url,
                headers={"user-agent": USER_AGENT},
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as resp:
                ok = 200 <= resp.status < 300
                if not ok:
                    _logger.warning("PUT %s returned HTTP %s", path, resp.status)
                return ok
        except (TimeoutError, aiohttp.ClientError) as exc:
            _logger.warning("PUT %s failed: %s", path, exc)
            return False
