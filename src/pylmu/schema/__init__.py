"""Raw-to-canonical schema adapters.

Each known REST schema generation has one :class:`SchemaAdapter` registered
here under its name. Callers pick one by name (``LmuConfig.schema``) or let
:func:`detect_adapter` choose from a session payload; registering a new
generation needs no change anywhere else.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pylmu.exceptions import LmuSchemaError
from pylmu.schema.base import Normalized, SchemaAdapter
from pylmu.schema.scoring import ScoringSchemaAdapter
from pylmu.schema.watch import WatchSchemaAdapter

_logger = logging.getLogger(__name__)

# Insertion order is detection order; the first entry is the fallback.
_ADAPTERS: dict[str, SchemaAdapter] = {}


def register_adapter(adapter: SchemaAdapter, *, replace: bool = False) -> None:
    """Register *adapter* under ``adapter.name``."""
    if not adapter.name:
        raise LmuSchemaError(f"{adapter!r} has no name")
    if adapter.name in _ADAPTERS and not replace:
        raise LmuSchemaError(f"schema adapter {adapter.name!r} is already registered")
    _ADAPTERS[adapter.name] = adapter


def available_adapters() -> tuple[str, ...]:
    return tuple(_ADAPTERS)


def get_adapter(name: str) -> SchemaAdapter:
    try:
        return _ADAPTERS[name]
    except KeyError:
        raise LmuSchemaError(f"unknown schema adapter {name!r}; known: {sorted(_ADAPTERS)}") from None


def detect_adapter(raw_session: Any) -> SchemaAdapter:
    """Pick the adapter whose generation *raw_session* looks like.

    Falls back to the first registered adapter when nothing matches.
    """
    fallback = next(iter(_ADAPTERS.values()))
    if not isinstance(raw_session, Mapping):
        return fallback
    for adapter in _ADAPTERS.values():
        if adapter.matches(raw_session):
            return adapter
    _logger.debug("No schema adapter matched session keys %s; using %r", sorted(raw_session)[:10], fallback)
    return fallback


register_adapter(WatchSchemaAdapter())
register_adapter(ScoringSchemaAdapter())

__all__ = [
    "Normalized",
    "SchemaAdapter",
    "ScoringSchemaAdapter",
    "WatchSchemaAdapter",
    "available_adapters",
    "detect_adapter",
    "get_adapter",
    "register_adapter",
]
