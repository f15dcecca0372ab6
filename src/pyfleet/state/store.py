"""In-memory cache of the lists a signed-in user works with.

Loads replace a section wholesale.  Mutations that the UI shows straight
away are applied optimistically and rolled back if the remote call fails;
the rest are applied after the remote call succeeds.  Every failure is
logged and turned into ``False``/``None``/an unchanged list.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import UTC, date, datetime, timedelta
from typing import Any, TypeVar

from pyfleet.exceptions import FleetError
from pyfleet.gateway import RemoteGateway
from pyfleet.mailer import WelcomeMailer
from pyfleet.models.maintenance import (
    Invoice,
    MaintenanceExpenseType,
    MaintenanceStatus,
    MaintenanceTask,
    build_invoice,
)
from pyfleet.models.trip import Trip, TripStatus
from pyfleet.models.users import AppUser, Driver, DriverStatus, Role
from pyfleet.models.vehicle import ServiceCenter, Vehicle, VehicleStatus
from pyfleet.state.events import ChangeSource, StoreChange, StoreSection

_logger = logging.getLogger(__name__)

M = TypeVar("M")

StoreListener = Callable[[StoreChange], None]

# Remote failures the store absorbs; pydantic validation errors are ValueErrors.
_ABSORBED = (FleetError, ValueError)


def _index_of(items: list[Any], item_id: Any) -> int | None:
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    return None


def _with_meta(driver: Driver, **changes: Any) -> Driver:
    return driver.model_copy(update={"meta_data": driver.meta_data.model_copy(update=changes)})


class FleetStore:
    """Observable cache backed by a :class:`RemoteGateway`.

    Parameters
    ----------
    gateway : RemoteGateway
        Gateway used for every load and mutation.
    mailer : WelcomeMailer, optional
        Sends the welcome e-mail after :meth:`add_driver`.
    """

    def __init__(self, gateway: RemoteGateway, *, mailer: WelcomeMailer | None = None) -> None:
        self._gateway = gateway
        self._mailer = mailer
        self._listeners: list[StoreListener] = []
        self.drivers: list[Driver] = []
        self.vehicles: list[Vehicle] = []
        self.trips: list[Trip] = []
        self.personnel_tasks: list[MaintenanceTask] = []
        self.service_centers: list[ServiceCenter] = []

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register *listener* and return a callable that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, section: StoreSection, source: ChangeSource, item_ids: Iterable[Any] = ()) -> None:
        change = StoreChange(section=section, source=source, item_ids=tuple(str(i) for i in item_ids))
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                _logger.debug("Store listener failed for %s", section, exc_info=True)

    def clear(self) -> None:
        """Drop every cached section (e.g. after sign-out)."""
        self.drivers = []
        self.vehicles = []
        self.trips = []
        self.personnel_tasks = []
        self.service_centers = []
        for section in StoreSection:
            self._emit(section, ChangeSource.LOCAL)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _load(
        self,
        section: StoreSection,
        fetch: Callable[[], Awaitable[list[M]]],
        error_text: str,
    ) -> list[M]:
        try:
            items = await fetch()
        except _ABSORBED as exc:
            _logger.error("%s: %s", error_text, exc)
            return list(getattr(self, section.value))
        setattr(self, section.value, list(items))
        self._emit(section, ChangeSource.REMOTE)
        return list(items)

    async def _optimistic(
        self,
        section: StoreSection,
        updated: Any,
        remote: Callable[[], Awaitable[None]],
        error_text: str,
    ) -> bool:
        """Swap in *updated* by id, run *remote*, restore the old item on failure."""
        items: list[Any] = getattr(self, section.value)
        index = _index_of(items, updated.id)
        previous = items[index] if index is not None else None
        if index is None:
            items.append(updated)
        else:
            items[index] = updated
        self._emit(section, ChangeSource.OPTIMISTIC, [updated.id])

        try:
            await remote()
        except _ABSORBED as exc:
            _logger.error("%s: %s", error_text, exc)
            items = getattr(self, section.value)
            current = _index_of(items, updated.id)
            if current is not None:
                if previous is None:
                    del items[current]
                else:
                    items[current] = previous
            self._emit(section, ChangeSource.ROLLBACK, [updated.id])
            return False
        return True

    def _replace_local(self, section: StoreSection, updated: Any) -> None:
        items: list[Any] = getattr(self, section.value)
        index = _index_of(items, updated.id)
        if index is None:
            items.append(updated)
        else:
            items[index] = updated
        self._emit(section, ChangeSource.REMOTE, [updated.id])

    # ------------------------------------------------------------------
    # Loads
    # ------------------------------------------------------------------

    async def load_drivers(self) -> list[Driver]:
        return await self._load(
            StoreSection.DRIVERS,
            self._gateway.get_registered_drivers,
            "Error while fetching registered drivers",
        )

    async def load_vehicles(self) -> list[Vehicle]:
        return await self._load(
            StoreSection.VEHICLES,
            self._gateway.get_registered_vehicles,
            "Error while fetching registered vehicles",
        )

    async def load_manager_trips(self, manager_id: str) -> list[Trip]:
        return await self._load(
            StoreSection.TRIPS,
            lambda: self._gateway.get_manager_assigned_trips(manager_id),
            "Error while fetching assigned trips",
        )

    async def load_driver_trips(self, driver_id: str) -> list[Trip]:
        return await self._load(
            StoreSection.TRIPS,
            lambda: self._gateway.get_driver_trips(driver_id),
            "Error while fetching driver trips",
        )

    async def load_personnel_tasks(self, personnel_id: str) -> list[MaintenanceTask]:
        return await self._load(
            StoreSection.PERSONNEL_TASKS,
            lambda: self._gateway.get_personnel_tasks(personnel_id),
            "Error while fetching maintenance tasks",
        )

    async def load_service_centers(self) -> list[ServiceCenter]:
        return await self._load(
            StoreSection.SERVICE_CENTERS,
            self._gateway.get_service_centers,
            "Error while fetching service centers",
        )

    async def load_for(self, user: AppUser) -> None:
        """Refresh the sections *user*'s role works with."""
        loads: list[Awaitable[Any]]
        if user.role == Role.FLEET_MANAGER:
            loads = [
                self.load_drivers(),
                self.load_vehicles(),
                self.load_manager_trips(user.id),
                self.load_service_centers(),
            ]
        elif user.role == Role.DRIVER:
            loads = [self.load_driver_trips(user.id), self.load_vehicles()]
        else:
            loads = [self.load_personnel_tasks(user.id), self.load_vehicles()]
        await asyncio.gather(*loads)

    # ------------------------------------------------------------------
    # Drivers
    # ------------------------------------------------------------------

    async def add_driver(self, driver: Driver, password: str) -> Driver | None:
        """Create the driver's account and profile, then send the welcome e-mail.

        ``driver`` supplies e-mail, phone, name and license number; its id
        and employee id are assigned by the backend.
        """
        meta = driver.meta_data
        try:
            user_id = await self._gateway.sign_up_user(meta.email, password)
            employee_id = await self._gateway.get_max_employee_id(Role.DRIVER) + 1
            created = await self._gateway.add_new_driver_meta_data(
                user_id,
                phone=meta.phone,
                full_name=meta.full_name,
                employee_id=employee_id,
                license_number=driver.license_number,
            )
        except _ABSORBED as exc:
            _logger.error("Error while adding new driver: %s", exc)
            return None

        self.drivers.append(created)
        self._emit(StoreSection.DRIVERS, ChangeSource.REMOTE, [created.id])

        if self._mailer is not None:
            await self._mailer.send_welcome_email(meta.email, password)
        return created

    async def _set_driver_active(self, driver: Driver, active: bool, error_text: str) -> bool:
        return await self._optimistic(
            StoreSection.DRIVERS,
            _with_meta(driver, active_status=active),
            lambda: self._gateway.update_user_working_status(driver.id, active=active),
            error_text,
        )

    async def remove_driver(self, driver: Driver) -> bool:
        return await self._set_driver_active(driver, False, "Error while removing the driver")

    async def enable_driver(self, driver: Driver) -> bool:
        return await self._set_driver_active(driver, True, "Error while enabling the driver")

    async def update_driver_phone(self, driver: Driver, phone: str) -> bool:
        return await self._optimistic(
            StoreSection.DRIVERS,
            _with_meta(driver, phone=phone),
            lambda: self._gateway.update_user_phone(driver.id, phone),
            "Error while updating the driver phone",
        )

    # ------------------------------------------------------------------
    # Vehicles
    # ------------------------------------------------------------------

    async def add_vehicle(self, vehicle: Vehicle) -> bool:
        """Register *vehicle* and reload the list to pick up its backend id."""
        try:
            await self._gateway.add_new_vehicle(vehicle)
        except _ABSORBED as exc:
            _logger.error("Error while adding new vehicle: %s", exc)
            return False
        await self.load_vehicles()
        return True

    async def remove_vehicle(self, vehicle: Vehicle) -> bool:
        return await self._optimistic(
            StoreSection.VEHICLES,
            vehicle.model_copy(update={"active_status": False}),
            lambda: self._gateway.update_vehicle_active_status(vehicle.id, active=False),
            "Error while removing the vehicle",
        )

    async def enable_vehicle(self, vehicle: Vehicle) -> bool:
        return await self._optimistic(
            StoreSection.VEHICLES,
            vehicle.model_copy(update={"active_status": True, "status": VehicleStatus.AVAILABLE}),
            lambda: self._gateway.update_vehicle_active_status(vehicle.id, active=True),
            "Error while activating the vehicle",
        )

    async def update_vehicle_expiry_dates(self, vehicle: Vehicle, updated: Vehicle) -> bool:
        """Persist *updated*'s PUC, insurance and registration expiry dates."""
        if updated.puc_expiry_date is None or updated.insurance_expiry_date is None or updated.rc_expiry_date is None:
            _logger.error("Error while updating the vehicle: expiry dates are missing")
            return False
        try:
            await self._gateway.update_vehicle_expiry(
                vehicle.id,
                puc=updated.puc_expiry_date,
                insurance=updated.insurance_expiry_date,
                registration=updated.rc_expiry_date,
            )
        except _ABSORBED as exc:
            _logger.error("Error while updating the vehicle: %s", exc)
            return False
        self._replace_local(StoreSection.VEHICLES, updated.model_copy(update={"id": vehicle.id}))
        return True

    async def get_registered_vehicle(self, vehicle_id: int) -> Vehicle | None:
        """Return the cached vehicle, reloading once if it is not cached."""
        index = _index_of(self.vehicles, vehicle_id)
        if index is None:
            await self.load_vehicles()
            index = _index_of(self.vehicles, vehicle_id)
        return self.vehicles[index] if index is not None else None

    async def add_service_center(self, latitude: float, longitude: float) -> bool:
        try:
            await self._gateway.add_service_center(latitude, longitude)
        except _ABSORBED as exc:
            _logger.error("Error while adding service center: %s", exc)
            return False
        await self.load_service_centers()
        return True

    # ------------------------------------------------------------------
    # Trips
    # ------------------------------------------------------------------

    def add_trip(self, trip: Trip) -> None:
        """Add *trip* locally and mark its drivers and vehicle as busy."""
        self.trips.append(trip)
        self._emit(StoreSection.TRIPS, ChangeSource.LOCAL, [trip.id])

        touched: list[str] = []
        for driver_id in trip.assigned_driver_ids:
            index = _index_of(self.drivers, driver_id)
            if index is not None:
                self.drivers[index] = self.drivers[index].model_copy(update={"status": DriverStatus.ON_TRIP})
                touched.append(driver_id)
        if touched:
            self._emit(StoreSection.DRIVERS, ChangeSource.LOCAL, touched)

        index = _index_of(self.vehicles, trip.assigned_vehicle_id)
        if index is not None:
            self.vehicles[index] = self.vehicles[index].model_copy(update={"status": VehicleStatus.ASSIGNED})
            self._emit(StoreSection.VEHICLES, ChangeSource.LOCAL, [trip.assigned_vehicle_id])

    async def assign_trip(
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
    ) -> str | None:
        """Create a trip remotely, then reload trips and mark the assignees busy."""
        try:
            trip_id = await self._gateway.assign_new_trip(
                assigned_by=assigned_by,
                pickup=pickup,
                destination=destination,
                vehicle_id=vehicle_id,
                driver_ids=driver_ids,
                estimated_arrival=estimated_arrival,
                description=description,
                total_distance=total_distance,
                duration=duration,
                scheduled_at=scheduled_at,
            )
        except _ABSORBED as exc:
            _logger.error("Error while assigning trip: %s", exc)
            return None

        await self.load_manager_trips(assigned_by)
        index = _index_of(self.trips, trip_id)
        if index is not None:
            # add_trip appends, so take the reloaded copy out first.
            self.add_trip(self.trips.pop(index))
        return trip_id

    async def update_trip_status(self, trip: Trip, status: TripStatus) -> bool:
        return await self._optimistic(
            StoreSection.TRIPS,
            trip.model_copy(update={"status": status}),
            lambda: self._gateway.update_trip_status(trip.id, status),
            "Error while updating the trip status",
        )

    def get_filtered_trips(self, status: TripStatus | None = None) -> list[Trip]:
        if status is None:
            return list(self.trips)
        return [trip for trip in self.trips if trip.status == status]

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    @property
    def current_task(self) -> MaintenanceTask | None:
        """First task that is scheduled or in progress."""
        for task in self.personnel_tasks:
            if task.status in (MaintenanceStatus.SCHEDULED, MaintenanceStatus.IN_PROGRESS):
                return task
        return None

    async def make_task_in_progress(self, task: MaintenanceTask) -> bool:
        """Start a scheduled task; a missing estimate defaults to tomorrow."""
        if task.status != MaintenanceStatus.SCHEDULED:
            return False
        estimate = task.estimated_completion_date or (datetime.now(UTC) + timedelta(days=1)).date()
        return await self._optimistic(
            StoreSection.PERSONNEL_TASKS,
            task.model_copy(update={"status": MaintenanceStatus.IN_PROGRESS, "estimated_completion_date": estimate}),
            lambda: self._gateway.make_task_in_progress(task.id),
            "Error while starting the maintenance task",
        )

    async def update_task_estimated_date(self, task: MaintenanceTask, estimated_completion_date: date) -> bool:
        return await self._optimistic(
            StoreSection.PERSONNEL_TASKS,
            task.model_copy(update={"estimated_completion_date": estimated_completion_date}),
            lambda: self._gateway.update_task_estimated_date(task.id, estimated_completion_date),
            "Error while updating the estimated completion date",
        )

    async def complete_task(
        self,
        task: MaintenanceTask,
        *,
        expenses: dict[MaintenanceExpenseType, float],
        repair_note: str,
        completion_date: date | None = None,
    ) -> MaintenanceTask | None:
        """Complete an in-progress task and record its invoice data."""
        if task.status != MaintenanceStatus.IN_PROGRESS:
            return None
        completed_on = completion_date or datetime.now(UTC).date()
        try:
            await self._gateway.create_invoice(
                task.id,
                expenses=expenses,
                repair_note=repair_note,
                completion_date=completed_on,
            )
        except _ABSORBED as exc:
            _logger.error("Error while completing the maintenance task: %s", exc)
            return None
        completed = task.model_copy(
            update={
                "status": MaintenanceStatus.COMPLETED,
                "expenses": dict(expenses),
                "repair_note": repair_note,
                "completion_date": completed_on,
            }
        )
        self._replace_local(StoreSection.PERSONNEL_TASKS, completed)
        return completed

    async def generate_invoice(self, task: MaintenanceTask) -> Invoice | None:
        if build_invoice(task, "") is None:
            _logger.error("Cannot generate invoice for an incomplete task.")
            return None
        vehicle = await self.get_registered_vehicle(task.vehicle_id)
        if vehicle is None:
            _logger.error("Error retrieving vehicle details for invoice.")
            return None
        return build_invoice(task, vehicle.license_number)
