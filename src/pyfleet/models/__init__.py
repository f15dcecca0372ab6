"""Data models for backend rows and requests."""

from pyfleet.models._base import (
    FleetBaseModel,
    FleetDate,
    FleetEnum,
    FleetTimestamp,
    parse_fleet_date,
    parse_fleet_timestamp,
)
from pyfleet.models.maintenance import (
    Invoice,
    MaintenanceExpenseType,
    MaintenanceStatus,
    MaintenanceTask,
    MaintenanceTaskType,
    build_invoice,
)
from pyfleet.models.notification import PushNotification
from pyfleet.models.token import AuthToken
from pyfleet.models.trip import Trip, TripInspection, TripInspectionItem, TripStatus
from pyfleet.models.users import (
    AppUser,
    Driver,
    DriverStatus,
    FleetManager,
    MaintenancePersonnel,
    Role,
    UserMetaData,
)
from pyfleet.models.vehicle import FuelType, ServiceCenter, Vehicle, VehicleStatus

__all__ = [
    "AppUser",
    "AuthToken",
    "Driver",
    "DriverStatus",
    "FleetBaseModel",
    "FleetDate",
    "FleetEnum",
    "FleetManager",
    "FleetTimestamp",
    "FuelType",
    "Invoice",
    "MaintenanceExpenseType",
    "MaintenancePersonnel",
    "MaintenanceStatus",
    "MaintenanceTask",
    "MaintenanceTaskType",
    "PushNotification",
    "Role",
    "ServiceCenter",
    "Trip",
    "TripInspection",
    "TripInspectionItem",
    "TripStatus",
    "UserMetaData",
    "Vehicle",
    "VehicleStatus",
    "build_invoice",
    "parse_fleet_date",
    "parse_fleet_timestamp",
]
