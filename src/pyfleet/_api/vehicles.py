"""Vehicle and service-center procedures."""

from __future__ import annotations

from pyfleet._api._common import as_list, call_rpc, iso8601
from pyfleet._transport import Transport
from pyfleet.models.requests import Coordinate, VehicleExpiryRequest
from pyfleet.models.vehicle import ServiceCenter, Vehicle, VehicleStatus
from pyfleet.session import Session


def _vehicle_params(vehicle: Vehicle) -> dict[str, str]:
    missing = [
        name
        for name in ("insurance_expiry_date", "puc_expiry_date", "rc_expiry_date")
        if getattr(vehicle, name) is None
    ]
    if missing:
        raise ValueError(f"vehicle is missing {', '.join(missing)}")
    if not vehicle.make or not vehicle.model or not vehicle.license_number:
        raise ValueError("vehicle make, model and license number are required")

    # Column names on this procedure are not consistently cased.
    return {
        "p_make": vehicle.make,
        "p_model": vehicle.model,
        "p_vinNumber": vehicle.vin_number,
        "p_licenseNumber": vehicle.license_number,
        "p_fuelType": vehicle.fuel_type.value,
        "p_loadcapacity": str(vehicle.load_capacity),
        "p_insurancepolicynumber": vehicle.insurance_policy_number,
        "p_insuranceexpirydate": iso8601(vehicle.insurance_expiry_date),  # type: ignore[arg-type]
        "p_puccertificatenumber": vehicle.puc_certificate_number,
        "p_pucexpirydate": iso8601(vehicle.puc_expiry_date),  # type: ignore[arg-type]
        "p_rcnumber": vehicle.rc_number,
        "p_rcexpirydate": iso8601(vehicle.rc_expiry_date),  # type: ignore[arg-type]
    }


async def add_vehicle(transport: Transport, session: Session, vehicle: Vehicle) -> None:
    await call_rpc(transport, session, "add_new_vehicle", _vehicle_params(vehicle))


async def fetch_registered_vehicles(transport: Transport, session: Session) -> list[Vehicle]:
    decoded = await call_rpc(transport, session, "get_registered_vehicles")
    return [Vehicle.model_validate(row) for row in as_list(decoded)]


async def update_expiry_dates(transport: Transport, session: Session, req: VehicleExpiryRequest) -> None:
    await call_rpc(
        transport,
        session,
        "update_registered_vehicle_for_id",
        {
            "p_registered_id": req.vehicle_id,
            "p_insurance_expiry_date": iso8601(req.insurance),
            "p_puc_expiry_date": iso8601(req.puc),
            "p_rc_expiry_date": iso8601(req.registration),
        },
    )


async def update_status(transport: Transport, session: Session, vehicle_id: int, status: VehicleStatus) -> None:
    if status == VehicleStatus.UNKNOWN:
        raise ValueError("cannot set a vehicle to an unknown status")
    await call_rpc(
        transport,
        session,
        "update_vehicle_status_for_id",
        {"p_vehicle_id": int(vehicle_id), "p_status": status.value},
    )


async def update_active_status(transport: Transport, session: Session, vehicle_id: int, *, active: bool) -> None:
    await call_rpc(
        transport,
        session,
        "update_vehicle_active_status_for_id",
        {"p_vehicle_id": int(vehicle_id), "p_new_status": active},
    )


async def fetch_service_centers(transport: Transport, session: Session) -> list[ServiceCenter]:
    decoded = await call_rpc(transport, session, "get_registered_service_centers")
    return [ServiceCenter.model_validate(row) for row in as_list(decoded)]


async def add_service_center(transport: Transport, session: Session, coordinate: Coordinate) -> None:
    await call_rpc(transport, session, "add_new_service_center", {"p_coordinate": coordinate.as_wire()})
