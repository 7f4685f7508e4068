from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

import pytest

from pylmu import schema
from pylmu.exceptions import LmuSchemaError
from pylmu.models.session import SessionKind, SessionSnapshot
from pylmu.schema import (
    ScoringSchemaAdapter,
    SchemaAdapter,
    WatchSchemaAdapter,
    available_adapters,
    detect_adapter,
    get_adapter,
    register_adapter,
)
from pylmu.schema.base import Normalized


class _TelemetryV3Adapter(SchemaAdapter):
    name = "v3"

    def matches(self, raw_session: Mapping[str, Any]) -> bool:
        return raw_session.get("schemaVersion") == 3

    def normalize_payloads(self, raw_session: dict[str, Any], raw_vehicles: list[dict[str, Any]]) -> Normalized:
        return SessionSnapshot(kind=SessionKind.RACE), ()


@pytest.fixture
def restore_registry() -> Iterator[None]:
    saved = dict(schema._ADAPTERS)
    yield
    schema._ADAPTERS.clear()
    schema._ADAPTERS.update(saved)


def test_builtin_generations_are_registered() -> None:
    assert available_adapters()[:2] == ("watch", "scoring")
    assert isinstance(get_adapter("watch"), WatchSchemaAdapter)
    assert isinstance(get_adapter("scoring"), ScoringSchemaAdapter)


def test_unknown_adapter_name_raises() -> None:
    with pytest.raises(LmuSchemaError, match="unknown schema adapter"):
        get_adapter("v99")


def test_detect_picks_generation_from_session_payload() -> None:
    assert detect_adapter({"session": "RACE1"}).name == "watch"
    assert detect_adapter({"session": 10, "currentET": 3.0}).name == "scoring"


def test_detect_falls_back_to_first_registered() -> None:
    assert detect_adapter({}).name == "watch"
    assert detect_adapter(["not", "a", "dict"]).name == "watch"


@pytest.mark.usefixtures("restore_registry")
def test_new_generation_plugs_in_without_caller_changes() -> None:
    register_adapter(_TelemetryV3Adapter())

    adapter = detect_adapter({"schemaVersion": 3})
    session, standings = adapter.normalize({"schemaVersion": 3}, [])

    assert adapter.name == "v3"
    assert session.kind == SessionKind.RACE
    assert standings == ()


@pytest.mark.usefixtures("restore_registry")
def test_duplicate_registration_needs_replace() -> None:
    with pytest.raises(LmuSchemaError, match="already registered"):
        register_adapter(WatchSchemaAdapter())

    register_adapter(WatchSchemaAdapter(), replace=True)
    assert "watch" in available_adapters()
