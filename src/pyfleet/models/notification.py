"""Push notification model."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from pyfleet.models._base import parse_fleet_timestamp


class PushNotification(BaseModel):
    """A row of the notification table.

    Rows arrive snake_case from the realtime channel; the camelCase
    spellings are accepted as well.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    id: str
    sender_id: str = Field(validation_alias=AliasChoices("sender_id", "senderID", "senderId"))
    recipient_id: str = Field(validation_alias=AliasChoices("recipient_id", "recipientID", "recipientId"))
    title: str = ""
    message: str = ""
    sent_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        validation_alias=AliasChoices("sent_at", "sentAt"),
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Full row dict."""

    @model_validator(mode="before")
    @classmethod
    def _ensure_raw(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        merged.setdefault("raw", values)
        return merged

    @field_validator("sent_at", mode="before")
    @classmethod
    def _parse_sent_at(cls, value: Any) -> datetime:
        # Unparseable timestamps fall back to "now" rather than dropping the row.
        try:
            parsed = parse_fleet_timestamp(value)
        except (TypeError, ValueError):
            parsed = None
        return parsed or datetime.now(UTC)
