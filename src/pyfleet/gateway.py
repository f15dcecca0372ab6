"""Remote data gateway: one method per backend procedure.

Inputs are validated (pydantic request models) before any request is
made, every call runs with the active session and is retried once after a
token refresh.  Failures raise; callers that want the "empty on failure"
behaviour use :class:`pyfleet.state.FleetStore`.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime
from typing import TypeVar

from pyfleet._api import auth as _auth_api
from pyfleet._api import maintenance as _maintenance_api
from pyfleet._api import notifications as _notifications_api
from pyfleet._api import trips as _trips_api
from pyfleet._api import users as _users_api
from pyfleet._api import vehicles as _vehicles_api
from pyfleet._transport import Transport
from pyfleet.auth.manager import AuthManager
from pyfleet.models.maintenance import MaintenanceExpenseType, MaintenanceTask
from pyfleet.models.requests import (
    AddDriverRequest,
    AssignTripRequest,
    Coordinate,
    EstimatedDateRequest,
    PhoneUpdateRequest,
    VehicleExpiryRequest,
)
from pyfleet.models.trip import Trip, TripInspection, TripStatus
from pyfleet.models.users import Driver, FleetManager, Role, UserMetaData
from pyfleet.models.vehicle import ServiceCenter, Vehicle, VehicleStatus
from pyfleet.session import Session

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class RemoteGateway:
    """Typed wrappers around the backend's remote procedures."""

    def __init__(self, auth: AuthManager) -> None:
        self._auth = auth

    async def _call(self, fn: Callable[[Transport, Session], Awaitable[T]]) -> T:
        async def _run() -> T:
            session = await self._auth.ensure_session()
            return await fn(self._auth.transport, session)

        return await self._auth.call_with_reauth(_run)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def get_fleet_manager(self, user_id: str) -> FleetManager:
        return await self._call(lambda t, s: _users_api.fetch_fleet_manager(t, s, user_id))

    async def get_registered_drivers(self) -> list[Driver]:
        return await self._call(_users_api.fetch_registered_drivers)

    async def get_user_email(self, user_id: str) -> str:
        return await self._call(lambda t, s: _users_api.fetch_user_email(t, s, user_id))

    async def get_user_meta_data(self, user_id: str) -> UserMetaData:
        return await self._call(lambda t, s: _users_api.fetch_user_meta_data(t, s, user_id))

    async def sign_up_user(self, email: str, password: str) -> str:
        """Create an auth account (no session change) and return its id."""
        return await _auth_api.sign_up(self._auth.transport, email, password)

    async def add_new_driver_meta_data(
        self,
        user_id: str,
        *,
        phone: str,
        full_name: str,
        employee_id: int,
        license_number: str,
    ) -> Driver:
        req = AddDriverRequest(
            user_id=user_id,
            phone=phone,
            full_name=full_name,
            employee_id=employee_id,
            license_number=license_number,
        )
        return await self._call(lambda t, s: _users_api.add_driver_meta_data(t, s, req))

    async def update_user_working_status(self, user_id: str, *, active: bool) -> None:
        await self._call(lambda t, s: _users_api.update_working_status(t, s, user_id, active=active))

    async def update_user_phone(self, user_id: str, phone: str) -> None:
        req = PhoneUpdateRequest(user_id=user_id, phone=phone)
        await self._call(lambda t, s: _users_api.update_phone(t, s, req))

    async def get_max_employee_id(self, role: Role) -> int:
        return await self._call(lambda t, s: _users_api.fetch_max_employee_id(t, s, role))

    # ------------------------------------------------------------------
    # Vehicles and service centers
    # ------------------------------------------------------------------

    async def add_new_vehicle(self, vehicle: Vehicle) -> None:
        await self._call(lambda t, s: _vehicles_api.add_vehicle(t, s, vehicle))

    async def get_registered_vehicles(self) -> list[Vehicle]:
        return await self._call(_vehicles_api.fetch_registered_vehicles)

    async def update_vehicle_expiry(
        self,
        vehicle_id: int,
        *,
        puc: datetime,
        insurance: datetime,
        registration: datetime,
    ) -> None:
        req = VehicleExpiryRequest(
            vehicle_id=vehicle_id,
            puc=puc,
            insurance=insurance,
            registration=registration,
        )
        await self._call(lambda t, s: _vehicles_api.update_expiry_dates(t, s, req))

    async def update_vehicle_status(self, vehicle_id: int, status: VehicleStatus) -> None:
        await self._call(lambda t, s: _vehicles_api.update_status(t, s, vehicle_id, status))

    async def update_vehicle_active_status(self, vehicle_id: int, *, active: bool) -> None:
        await self._call(lambda t, s: _vehicles_api.update_active_status(t, s, vehicle_id, active=active))

    async def get_service_centers(self) -> list[ServiceCenter]:
        return await self._call(_vehicles_api.fetch_service_centers)

    async def add_service_center(self, latitude: float, longitude: float) -> None:
        coordinate = Coordinate(latitude=latitude, longitude=longitude)
        await self._call(lambda t, s: _vehicles_api.add_service_center(t, s, coordinate))

    # ------------------------------------------------------------------
    # Trips
    # ------------------------------------------------------------------

    async def assign_new_trip(
        self,
        *,
        assigned_by: str,
        pickup: tuple[float, float],
        destination: tuple[float, float],
        vehicle_id: int,
        driver_ids: list[str],
        estimated_arrival: datetime,
        description: str,
        total_distance: int,
        duration: tuple[int, int],
        scheduled_at: datetime,
    ) -> str:
        """Create a trip and return its UUID.

        Parameters
        ----------
        pickup, destination : tuple of float
            ``(latitude, longitude)`` pairs.
        duration : tuple of int
            ``(hours, minutes)``.
        """
        req = AssignTripRequest(
            assigned_by=assigned_by,
            pickup=Coordinate(latitude=pickup[0], longitude=pickup[1]),
            destination=Coordinate(latitude=destination[0], longitude=destination[1]),
            vehicle_id=vehicle_id,
            driver_ids=driver_ids,
            estimated_arrival=estimated_arrival,
            description=description,
            total_distance=total_distance,
            duration_hours=duration[0],
            duration_minutes=duration[1],
            scheduled_at=scheduled_at,
        )
        return await self._call(lambda t, s: _trips_api.assign_trip(t, s, req))

    async def get_manager_assigned_trips(self, manager_id: str) -> list[Trip]:
        return await self._call(lambda t, s: _trips_api.fetch_manager_trips(t, s, manager_id))

    async def get_driver_trips(self, driver_id: str) -> list[Trip]:
        return await self._call(lambda t, s: _trips_api.fetch_driver_trips(t, s, driver_id))

    async def update_trip_status(self, trip_id: str, status: TripStatus) -> None:
        await self._call(lambda t, s: _trips_api.update_trip_status(t, s, trip_id, status))

    async def get_trip_inspection(self, trip_id: str) -> TripInspection:
        return await self._call(lambda t, s: _trips_api.fetch_trip_inspection(t, s, trip_id))

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def get_personnel_tasks(self, personnel_id: str) -> list[MaintenanceTask]:
        return await self._call(lambda t, s: _maintenance_api.fetch_personnel_tasks(t, s, personnel_id))

    async def make_task_in_progress(self, task_id: str) -> None:
        await self._call(lambda t, s: _maintenance_api.mark_in_progress(t, s, task_id))

    async def update_task_estimated_date(self, task_id: str, estimated_completion_date: date) -> None:
        req = EstimatedDateRequest(task_id=task_id, estimated_completion_date=estimated_completion_date)
        await self._call(lambda t, s: _maintenance_api.update_estimated_date(t, s, req))

    async def create_invoice(
        self,
        task_id: str,
        *,
        expenses: dict[MaintenanceExpenseType, float],
        repair_note: str,
        completion_date: date,
    ) -> None:
        await self._call(
            lambda t, s: _maintenance_api.complete_with_invoice(
                t,
                s,
                task_id,
                expenses=expenses,
                repair_note=repair_note,
                completion_date=completion_date,
            )
        )

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def notify_user(self, *, sender_id: str, recipient_id: str, title: str, message: str) -> None:
        await self._call(
            lambda t, s: _notifications_api.notify_user(
                t,
                s,
                sender_id=sender_id,
                recipient_id=recipient_id,
                title=title,
                message=message,
            )
        )
