"""Schema adapter interface.

An adapter turns one raw REST schema generation into the canonical
session/standings pair. Callers only ever see :class:`SchemaAdapter`.
"""

from __future__ import annotations

import abc
import logging
from collections.abc import Mapping
from typing import Any

from pylmu.exceptions import LmuPayloadError
from pylmu.models.session import SessionSnapshot
from pylmu.models.standing import DriverStanding

_logger = logging.getLogger(__name__)

Normalized = tuple[SessionSnapshot, tuple[DriverStanding, ...]]


class SchemaAdapter(abc.ABC):
    """Maps one raw telemetry schema generation to the canonical model."""

    #: Registry key, also accepted by ``LmuConfig.schema``.
    name: str = ""

    @abc.abstractmethod
    def matches(self, raw_session: Mapping[str, Any]) -> bool:
        """Return ``True`` when *raw_session* looks like this generation."""

    @abc.abstractmethod
    def normalize_payloads(
        self,
        raw_session: dict[str, Any],
        raw_vehicles: list[dict[str, Any]],
    ) -> Normalized:
        """Build the canonical pair from shape-checked payloads. Must not raise."""

    def normalize(self, raw_session: Any, raw_vehicles: Any) -> Normalized:
        """Normalize decoded JSON from the session and standings resources.

        Raises
        ------
        LmuPayloadError
            If the session payload is not a JSON object or the standings
            payload is not a JSON array. Anything below the top level is
            resolved by normalization defaults instead.
        """
        if not isinstance(raw_session, dict):
            raise LmuPayloadError(f"session payload must be an object, got {type(raw_session).__name__}")
        if not isinstance(raw_vehicles, list):
            raise LmuPayloadError(f"standings payload must be an array, got {type(raw_vehicles).__name__}")

        vehicles = [entry for entry in raw_vehicles if isinstance(entry, dict)]
        if len(vehicles) != len(raw_vehicles):
            _logger.debug("Dropped %d non-object standings entries", len(raw_vehicles) - len(vehicles))
        return self.normalize_payloads(raw_session, vehicles)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"
