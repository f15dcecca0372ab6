"""Pydantic request models for gateway entrypoints.

These models provide a consistent "validate → normalize → execute" flow.
They are used internally by :class:`pyfleet.gateway.RemoteGateway`.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _uuid_string(value: str) -> str:
    text = str(value).strip()
    try:
        return str(uuid.UUID(text))
    except ValueError as exc:
        raise ValueError(f"not a UUID: {text!r}") from exc


class _Request(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )


class UserIdRequest(_Request):
    """Request containing a user UUID."""

    user_id: str

    @field_validator("user_id")
    @classmethod
    def _valid_uuid(cls, value: str) -> str:
        return _uuid_string(value)


class Coordinate(_Request):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    def as_wire(self) -> str:
        return f"{self.latitude}, {self.longitude}"


class AddDriverRequest(UserIdRequest):
    phone: str
    full_name: str
    employee_id: int = Field(ge=1)
    license_number: str

    @field_validator("full_name", "license_number")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must be non-empty")
        return value


class AssignTripRequest(_Request):
    assigned_by: str
    pickup: Coordinate
    destination: Coordinate
    vehicle_id: int = Field(ge=1)
    driver_ids: list[str] = Field(min_length=1)
    estimated_arrival: datetime
    description: str = ""
    total_distance: int = Field(ge=0)
    duration_hours: int = Field(ge=0)
    duration_minutes: int = Field(ge=0, lt=60)
    scheduled_at: datetime

    @field_validator("assigned_by")
    @classmethod
    def _valid_manager(cls, value: str) -> str:
        return _uuid_string(value)

    @field_validator("driver_ids")
    @classmethod
    def _valid_drivers(cls, value: list[str]) -> list[str]:
        return [_uuid_string(item) for item in value]

    def duration_wire(self) -> str:
        return f"{self.duration_hours} hours {self.duration_minutes} minutes"


class VehicleExpiryRequest(_Request):
    vehicle_id: int = Field(ge=1)
    puc: datetime
    insurance: datetime
    registration: datetime


class EstimatedDateRequest(_Request):
    task_id: str
    estimated_completion_date: date

    @field_validator("task_id")
    @classmethod
    def _valid_task(cls, value: str) -> str:
        return _uuid_string(value)


class PhoneUpdateRequest(UserIdRequest):
    phone: str

    @field_validator("phone")
    @classmethod
    def _phone_non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("phone must be non-empty")
        return value
