"""Base model and enum for backend rows.

Every row model inherits from :class:`FleetBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase column names map
  automatically to snake_case fields (odd spellings such as
  ``employeeID`` use an explicit alias).
* A ``model_validator(mode="before")`` that drops ``None`` and blank
  strings so the field default is used.
* A ``raw`` dict that captures the original payload.

Status enums inherit from :class:`FleetEnum` which adds an ``UNKNOWN``
member and a ``_missing_`` hook that returns it for any value without a
mapped member.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def parse_fleet_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp (or bare ``yyyy-MM-dd``) to an aware datetime.

    Naive values are taken as UTC.  Epoch numbers are accepted as seconds.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=UTC)
    parsed = datetime.fromisoformat(str(value).strip())
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


def parse_fleet_date(value: Any) -> date | None:
    """Parse a bare ``yyyy-MM-dd`` day, or take the date part of a timestamp."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    parsed = parse_fleet_timestamp(text)
    return parsed.date() if parsed is not None else None


def parse_keyed_pairs(value: Any) -> Any:
    """Accept a mapping or a flat ``[key, value, key, value, ...]`` list.

    Dictionaries keyed by an enum are written by some clients as an
    alternating array instead of an object.
    """
    if isinstance(value, list):
        if len(value) % 2:
            raise ValueError("keyed pair list must have an even length")
        return dict(zip(value[::2], value[1::2], strict=True))
    return value


FleetTimestamp = Annotated[datetime | None, BeforeValidator(parse_fleet_timestamp)]
"""Annotated type that coerces ISO-8601 strings to UTC datetimes."""

FleetDate = Annotated[date | None, BeforeValidator(parse_fleet_date)]
"""Annotated type for day-only (``yyyy-MM-dd``) columns."""


class FleetEnum(StrEnum):
    """Base for backend status enums.

    Every subclass **must** define ``UNKNOWN``.  Values the backend sends
    that have no mapped member resolve to ``UNKNOWN`` instead of raising.
    """

    @classmethod
    def _missing_(cls, value: object) -> FleetEnum:
        if hasattr(cls, "UNKNOWN"):
            unknown: FleetEnum = cls.UNKNOWN  # type: ignore[attr-defined]
            return unknown
        return next(iter(cls))


class FleetBaseModel(BaseModel):
    """Base for backend row models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)
    """Original row dict."""

    @model_validator(mode="before")
    @classmethod
    def _clean_values(cls, values: Any) -> Any:
        """Drop nulls and blank strings, and stash the raw payload."""
        if not isinstance(values, Mapping):
            return values
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and not value.strip() and key != "raw":
                continue
            cleaned[key] = value
        # Only auto-stash raw when not explicitly provided.
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
