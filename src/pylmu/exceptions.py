"""Custom exception hierarchy for pylmu."""

from __future__ import annotations


class LmuError(Exception):
    """Base exception for all pylmu errors."""


class LmuConfigError(LmuError):
    """Invalid configuration, or configuration changed while connected."""


class LmuSchemaError(LmuError):
    """Requested telemetry schema adapter is not registered."""


class LmuTransportError(LmuError):
    """HTTP-level failure (network, timeout, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class LmuPayloadError(LmuError):
    """Well-formed JSON whose top-level shape is not what the resource serves.

    Field-level anomalies never raise; they are resolved by the schema
    adapters' normalization defaults.
    """

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)
