"""Trip and inspection procedures."""

from __future__ import annotations

import uuid

from pyfleet._api._common import as_list, as_object, call_rpc, iso8601
from pyfleet._transport import Transport
from pyfleet.exceptions import FleetApiError
from pyfleet.models.requests import AssignTripRequest, UserIdRequest
from pyfleet.models.trip import Trip, TripInspection, TripStatus
from pyfleet.session import Session


def _trip_id(value: str) -> str:
    return str(uuid.UUID(str(value)))


async def assign_trip(transport: Transport, session: Session, req: AssignTripRequest) -> str:
    """Create a trip and return its UUID."""
    name = "assign_new_trip"
    decoded = await call_rpc(
        transport,
        session,
        name,
        {
            "p_assigned_by": req.assigned_by,
            "p_pickup_location": req.pickup.as_wire(),
            "p_destination": req.destination.as_wire(),
            "p_vehicle_id": req.vehicle_id,
            "p_driver_ids": list(req.driver_ids),
            "p_estimated_arrival_date_time": iso8601(req.estimated_arrival),
            "p_description": req.description,
            "p_total_distance": req.total_distance,
            "p_total_trip_duration": req.duration_wire(),
            "p_scheduled_date_time": iso8601(req.scheduled_at),
        },
    )
    try:
        return str(uuid.UUID(str(decoded)))
    except ValueError as exc:
        raise FleetApiError(
            f"{name} returned a non-UUID result: {decoded!r}",
            code="bad_result",
            endpoint=name,
        ) from exc


async def fetch_manager_trips(transport: Transport, session: Session, manager_id: str) -> list[Trip]:
    req = UserIdRequest(user_id=manager_id)
    decoded = await call_rpc(transport, session, "get_assigned_trips_by_manager_id", {"p_manager_id": req.user_id})
    return [Trip.model_validate(row) for row in as_list(decoded)]


async def fetch_driver_trips(transport: Transport, session: Session, driver_id: str) -> list[Trip]:
    req = UserIdRequest(user_id=driver_id)
    decoded = await call_rpc(transport, session, "get_assigned_trip_for_driver_id", {"p_driver_id": req.user_id})
    return [Trip.model_validate(row) for row in as_list(decoded)]


async def update_trip_status(transport: Transport, session: Session, trip_id: str, status: TripStatus) -> None:
    if status == TripStatus.UNKNOWN:
        raise ValueError("cannot set a trip to an unknown status")
    await call_rpc(
        transport,
        session,
        "update_trip_status_for_id",
        {"p_trip_id": _trip_id(trip_id), "p_new_status": status.value},
    )


async def fetch_trip_inspection(transport: Transport, session: Session, trip_id: str) -> TripInspection:
    name = "get_trip_inspection_for_trip"
    decoded = await call_rpc(transport, session, name, {"p_trip_id": _trip_id(trip_id)})
    return TripInspection.model_validate(as_object(decoded, endpoint=name))
