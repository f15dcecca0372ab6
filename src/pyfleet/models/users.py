"""User, role and profile models."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from pyfleet.models._base import FleetBaseModel, FleetEnum, FleetTimestamp


class Role(StrEnum):
    """Closed set of account roles."""

    FLEET_MANAGER = "fleetManager"
    DRIVER = "driver"
    MAINTENANCE_PERSONNEL = "maintenancePersonnel"

    @classmethod
    def parse(cls, value: Any) -> Role:
        """Map a role column value to a member.

        Anything that is not ``driver`` or ``fleetManager`` is treated as
        maintenance personnel, matching how the role table is populated.
        """
        if isinstance(value, Role):
            return value
        text = str(value or "").strip()
        if text == cls.DRIVER.value:
            return cls.DRIVER
        if text == cls.FLEET_MANAGER.value:
            return cls.FLEET_MANAGER
        return cls.MAINTENANCE_PERSONNEL


RoleField = Annotated[Role, BeforeValidator(Role.parse)]


class DriverStatus(FleetEnum):
    AVAILABLE = "Available"
    ON_TRIP = "On Trip"
    OFFLINE = "Offline"
    UNKNOWN = "Unknown"


class UserMetaData(FleetBaseModel):
    """Shared profile columns for every role."""

    id: str
    full_name: str = ""
    email: str = ""
    phone: str = ""
    role: RoleField = Role.MAINTENANCE_PERSONNEL
    employee_id: int = Field(default=0, alias="employeeID")
    first_time_login: bool = False
    created_at: FleetTimestamp = None
    active_status: bool = True


class _Profile(FleetBaseModel):
    meta_data: UserMetaData = Field(alias="meta_data")

    @property
    def id(self) -> str:
        return self.meta_data.id

    @property
    def active_status(self) -> bool:
        return self.meta_data.active_status

    @property
    def employee_id(self) -> int:
        return self.meta_data.employee_id

    @property
    def role(self) -> Role:
        return self.meta_data.role


class FleetManager(_Profile):
    pass


class Driver(_Profile):
    license_number: str = ""
    total_trips: int = 0
    status: DriverStatus = DriverStatus.AVAILABLE


class MaintenancePersonnel(_Profile):
    total_repairs: int = 0


Profile = FleetManager | Driver | MaintenancePersonnel

_PROFILE_TYPES: dict[Role, type[_Profile]] = {
    Role.FLEET_MANAGER: FleetManager,
    Role.DRIVER: Driver,
    Role.MAINTENANCE_PERSONNEL: MaintenancePersonnel,
}


def profile_type_for(role: Role) -> type[_Profile]:
    return _PROFILE_TYPES[role]


class AppUser(BaseModel):
    """The signed-in user: a role plus that role's profile."""

    model_config = ConfigDict(frozen=True)

    role: Role
    profile: Profile

    @classmethod
    def from_row(cls, role: Role, row: dict[str, Any]) -> AppUser:
        return cls(role=role, profile=profile_type_for(role).model_validate(row))

    @property
    def meta_data(self) -> UserMetaData:
        return self.profile.meta_data

    @property
    def id(self) -> str:
        return self.profile.meta_data.id

    @property
    def email(self) -> str | None:
        return self.profile.meta_data.email or None

    @property
    def active_status(self) -> bool:
        return self.profile.meta_data.active_status

    @property
    def employee_id(self) -> int:
        return self.profile.meta_data.employee_id

    @property
    def license_number(self) -> str | None:
        return self.profile.license_number if isinstance(self.profile, Driver) else None

    @property
    def total_trips(self) -> int | None:
        return self.profile.total_trips if isinstance(self.profile, Driver) else None

    @property
    def driver_status(self) -> DriverStatus | None:
        return self.profile.status if isinstance(self.profile, Driver) else None
