"""Client configuration for pylmu."""

from __future__ import annotations

import dataclasses
import os
from typing import Any
from urllib.parse import urlsplit

from pylmu._constants import (
    BASE_URL,
    DEFAULT_ERROR_COOLDOWN,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_PROBE_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    SESSION_INFO_PATH,
    STANDINGS_PATH,
)
from pylmu.exceptions import LmuConfigError
from pylmu.schema import available_adapters

#: Schema name that selects the adapter from the liveness probe payload.
AUTO_SCHEMA = "auto"


@dataclasses.dataclass(frozen=True)
class LmuConfig:
    """Connection configuration.

    Parameters
    ----------
    base_url : str
        Simulator REST host. Defaults to the local LMU endpoint.
    poll_interval : float
        Seconds between poll ticks.
    probe_timeout : float
        Upper bound in seconds for the liveness probe issued by ``connect()``.
    request_timeout : float
        Upper bound in seconds for each poll-tick fetch and one-shot command.
    error_cooldown : float
        Seconds spent in ``ERROR`` before the status reverts to
        ``DISCONNECTED``.
    schema : str
        Name of the raw schema adapter (``"watch"``, ``"scoring"``), or
        ``"auto"`` to detect it from the probe payload.
    session_path : str
        Path of the session-info resource.
    standings_path : str
        Path of the vehicle standings resource.
    """

    base_url: str = BASE_URL
    poll_interval: float = DEFAULT_POLL_INTERVAL
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    error_cooldown: float = DEFAULT_ERROR_COOLDOWN
    schema: str = AUTO_SCHEMA
    session_path: str = SESSION_INFO_PATH
    standings_path: str = STANDINGS_PATH

    def url(self, path: str) -> str:
        """Join *path* onto the base URL."""
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def with_endpoint(self, endpoint_url: str, poll_interval_ms: float) -> LmuConfig:
        """Return a copy targeting *endpoint_url*, polling every *poll_interval_ms*."""
        return dataclasses.replace(
            self,
            base_url=endpoint_url,
            poll_interval=float(poll_interval_ms) / 1000.0,
        ).validated()

    def validated(self) -> LmuConfig:
        """Return ``self`` after checking every field, raising :class:`LmuConfigError`."""
        parts = urlsplit(self.base_url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise LmuConfigError(f"base_url must be an http(s) URL, got {self.base_url!r}")
        for name in ("poll_interval", "probe_timeout", "request_timeout"):
            value = getattr(self, name)
            if not value > 0:
                raise LmuConfigError(f"{name} must be positive, got {value!r}")
        if self.error_cooldown < 0:
            raise LmuConfigError(f"error_cooldown must be >= 0, got {self.error_cooldown!r}")

        if self.schema != AUTO_SCHEMA and self.schema not in available_adapters():
            raise LmuConfigError(
                f"schema must be {AUTO_SCHEMA!r} or one of {sorted(available_adapters())}, got {self.schema!r}"
            )
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> LmuConfig:
        """Create configuration from environment variables.

        Reads ``LMU_BASE_URL``, ``LMU_POLL_INTERVAL_MS``, ``LMU_PROBE_TIMEOUT``,
        ``LMU_REQUEST_TIMEOUT``, ``LMU_ERROR_COOLDOWN`` and ``LMU_SCHEMA``.
        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        base_url = env.get("LMU_BASE_URL")
        if base_url is not None:
            config_kwargs["base_url"] = base_url.strip()

        schema = env.get("LMU_SCHEMA")
        if schema is not None:
            config_kwargs["schema"] = schema.strip().lower()

        # Poll interval is configured in milliseconds, like the dashboard setting.
        interval_env = env.get("LMU_POLL_INTERVAL_MS")
        if interval_env is not None and "poll_interval" not in overrides:
            config_kwargs["poll_interval"] = _env_float("LMU_POLL_INTERVAL_MS", interval_env) / 1000.0

        _ENV_SECONDS_MAP = {
            "LMU_PROBE_TIMEOUT": "probe_timeout",
            "LMU_REQUEST_TIMEOUT": "request_timeout",
            "LMU_ERROR_COOLDOWN": "error_cooldown",
        }
        for env_key, field_name in _ENV_SECONDS_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, val)

        config_kwargs.update(overrides)
        return cls(**config_kwargs).validated()


def _env_float(key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise LmuConfigError(f"{key} must be numeric, got {value!r}") from exc
