"""Trip and inspection models."""

from __future__ import annotations

from typing import Annotated

from pydantic import BeforeValidator, Field

from pyfleet.models._base import FleetBaseModel, FleetEnum, FleetTimestamp, parse_keyed_pairs


class TripStatus(FleetEnum):
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    UNKNOWN = "Unknown"


class TripInspectionItem(FleetEnum):
    TIRE_CONDITION = "Tire Condition"
    BRAKE_SYSTEM = "Brake System"
    LIGHTS = "Lights"
    FLUID_LEVELS = "Fluid Levels"
    TIRE_PRESSURE = "Tire Pressure"
    COOLING_SYSTEM = "Cooling System"
    MIRRORS = "Mirrors"
    BATTERY_HEALTH = "Battery Health"
    SEAT_BELTS = "Seat Belts"
    AIRBAGS = "Airbags"
    EMERGENCY_KIT = "Emergency Kit"
    UNKNOWN = "Unknown"


class Trip(FleetBaseModel):
    """A trip assigned by a fleet manager to one or more drivers."""

    id: str
    trip_id: int = Field(default=0, alias="tripID")
    assigned_by_fleet_manager_id: str = Field(default="", alias="assignedByFleetManagerID")
    assigned_driver_ids: list[str] = Field(default_factory=list, alias="assignedDriverIDs")
    assigned_vehicle_id: int = Field(default=0, alias="assignedVehicleID")
    pickup_location: str = ""
    destination: str = ""
    estimated_arrival_date_time: FleetTimestamp = None
    total_distance: int = 0
    total_trip_duration: str | None = None
    description: str | None = None
    scheduled_date_time: FleetTimestamp = None
    created_at: FleetTimestamp = None
    status: TripStatus = TripStatus.SCHEDULED


InspectionChecklist = Annotated[dict[TripInspectionItem, bool], BeforeValidator(parse_keyed_pairs)]


class TripInspection(FleetBaseModel):
    """Pre/post trip checklist.  ``id`` is the trip id."""

    id: str
    pre_inspection: InspectionChecklist = Field(default_factory=dict)
    post_inspection: InspectionChecklist = Field(default_factory=dict)
    pre_inspection_note: str = ""
    post_inspection_note: str = ""

    @property
    def failed_pre_items(self) -> list[TripInspectionItem]:
        return [item for item, passed in self.pre_inspection.items() if not passed]

    @property
    def failed_post_items(self) -> list[TripInspectionItem]:
        return [item for item, passed in self.post_inspection.items() if not passed]
