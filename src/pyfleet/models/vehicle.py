"""Vehicle and service-center models."""

from __future__ import annotations

from pyfleet.models._base import FleetBaseModel, FleetEnum, FleetTimestamp


class FuelType(FleetEnum):
    DIESEL = "Diesel"
    PETROL = "Petrol"
    ELECTRIC = "Electric"
    HYBRID = "Hybrid"
    UNKNOWN = "Unknown"


class VehicleStatus(FleetEnum):
    AVAILABLE = "Available"
    ASSIGNED = "Assigned"
    UNDER_MAINTENANCE = "Under Maintenance"
    INACTIVE = "Inactive"
    UNKNOWN = "Unknown"


class Vehicle(FleetBaseModel):
    """A registered fleet vehicle.

    ``id`` is the integer registration id assigned by the backend; it is
    ``0`` for a vehicle that has not been added yet.
    """

    id: int = 0
    make: str = ""
    """Manufacturer."""
    model: str = ""
    vin_number: str = ""
    license_number: str = ""
    fuel_type: FuelType = FuelType.UNKNOWN
    load_capacity: float = 0.0
    insurance_policy_number: str = ""
    insurance_expiry_date: FleetTimestamp = None
    puc_certificate_number: str = ""
    """Pollution-under-control certificate number."""
    puc_expiry_date: FleetTimestamp = None
    rc_number: str = ""
    """Registration certificate number."""
    rc_expiry_date: FleetTimestamp = None
    current_coordinate: str = ""
    """``"lat, lon"`` string."""
    status: VehicleStatus = VehicleStatus.AVAILABLE
    active_status: bool = True


class ServiceCenter(FleetBaseModel):
    id: int = 0
    coordinate: str = ""
    is_assigned: bool = False
