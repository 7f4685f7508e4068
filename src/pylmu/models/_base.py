"""Base models and enum for pylmu.

Canonical models inherit from :class:`LmuModel`:

* frozen, so a published snapshot can be shared with every subscriber
* ``alias_generator=to_camel`` so :meth:`pydantic.BaseModel.model_dump`
  with ``by_alias=True`` yields the camelCase payload the dashboard expects

Raw payload models inherit from :class:`LmuRawModel`, which ignores unknown
keys and stashes the original dict in ``raw``.

Canonical enums inherit from :class:`LmuEnum`, which resolves values
case-insensitively and falls back to ``UNKNOWN`` (or ``NONE``) instead of
raising ``ValueError``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class LmuEnum(StrEnum):
    """Base for canonical string enums.

    Every subclass **must** define ``UNKNOWN`` or ``NONE``.
    """

    @classmethod
    def _missing_(cls, value: object) -> LmuEnum:
        if isinstance(value, str):
            upper = value.strip().upper()
            for member in cls:
                if member.value == upper:
                    return member
        for fallback in ("UNKNOWN", "NONE"):
            if fallback in cls.__members__:
                return cls.__members__[fallback]
        # Fallback: return first member
        return next(iter(cls))


class LmuModel(BaseModel):
    """Base for canonical (schema-independent) models."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class LmuRawModel(BaseModel):
    """Base for raw, schema-generation-specific payload models.

    Every field must have a default and a ``mode="before"`` coercion so
    that validating any dict succeeds.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original payload dict."""

    @model_validator(mode="before")
    @classmethod
    def _ensure_raw(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        # A payload key named "raw" must never replace the stash.
        merged = dict(values)
        merged["raw"] = dict(values)
        return merged
