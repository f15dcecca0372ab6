"""Change events emitted by the client state store.

Listeners receive one :class:`StoreChange` per mutation of a cached
section.  Optimistic updates and their rollbacks are reported too, so a
UI can re-render at each step.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class StoreSection(StrEnum):
    DRIVERS = "drivers"
    VEHICLES = "vehicles"
    TRIPS = "trips"
    PERSONNEL_TASKS = "personnel_tasks"
    SERVICE_CENTERS = "service_centers"


class ChangeSource(StrEnum):
    REMOTE = "remote"
    """Section reloaded (or confirmed) from the backend."""
    OPTIMISTIC = "optimistic"
    """Applied locally while the remote call is in flight."""
    ROLLBACK = "rollback"
    """An optimistic change undone because the remote call failed."""
    LOCAL = "local"
    """Derived locally with no remote call."""


class StoreChange(BaseModel):
    """A single change to one store section."""

    model_config = ConfigDict(frozen=True)

    section: StoreSection
    source: ChangeSource
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    item_ids: tuple[str, ...] = Field(default=(), description="Ids of the touched items, if known")
