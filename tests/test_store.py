from __future__ import annotations

import logging
from datetime import UTC, date, datetime, timedelta

import pytest
from _fakes import (
    DRIVER2_ID,
    DRIVER_ID,
    MANAGER_ID,
    PERSONNEL_ID,
    TRIP_ID,
    FakeTransport,
    driver_row,
    err,
    make_config,
    make_session,
    manager_row,
    meta_row,
    ok,
    task_row,
    trip_row,
    vehicle_row,
)

from pyfleet.auth.manager import AuthManager
from pyfleet.gateway import RemoteGateway
from pyfleet.models.maintenance import MaintenanceExpenseType, MaintenanceStatus, MaintenanceTask
from pyfleet.models.trip import Trip, TripStatus
from pyfleet.models.users import AppUser, Driver, DriverStatus, Role
from pyfleet.models.vehicle import Vehicle, VehicleStatus
from pyfleet.state import ChangeSource, FleetStore, StoreChange, StoreSection


class _RecordingMailer:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    async def send_welcome_email(self, email: str, password: str) -> bool:
        self.sent.append((email, password))
        return True


def _store(transport: FakeTransport, mailer: _RecordingMailer | None = None) -> FleetStore:
    auth = AuthManager(make_config(), transport)
    auth._store_session(make_session(MANAGER_ID))
    return FleetStore(RemoteGateway(auth), mailer=mailer)  # type: ignore[arg-type]


def _changes(store: FleetStore) -> list[StoreChange]:
    changes: list[StoreChange] = []
    store.subscribe(changes.append)
    return changes


def _driver(user_id: str = DRIVER_ID) -> Driver:
    return Driver.model_validate(driver_row(user_id))


# ------------------------------------------------------------------
# Loads
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_load_replaces_section_and_notifies() -> None:
    transport = FakeTransport().rpc("get_registered_drivers", ok([driver_row(), driver_row(DRIVER2_ID)]))
    store = _store(transport)
    changes = _changes(store)

    drivers = await store.load_drivers()

    assert [d.id for d in drivers] == [DRIVER_ID, DRIVER2_ID]
    assert store.drivers == drivers
    assert changes[0].section == StoreSection.DRIVERS
    assert changes[0].source == ChangeSource.REMOTE


@pytest.mark.asyncio
async def test_failed_load_keeps_cache(caplog: pytest.LogCaptureFixture) -> None:
    transport = FakeTransport().rpc("get_registered_vehicles", err(500, "XX000"))
    store = _store(transport)
    cached = Vehicle.model_validate(vehicle_row())
    store.vehicles = [cached]
    changes = _changes(store)

    with caplog.at_level(logging.ERROR):
        result = await store.load_vehicles()

    assert result == [cached]
    assert store.vehicles == [cached]
    assert changes == []
    assert "Error while fetching registered vehicles" in caplog.text


@pytest.mark.asyncio
async def test_load_for_fleet_manager() -> None:
    transport = FakeTransport()
    transport.rpc("get_registered_drivers", ok([driver_row()]))
    transport.rpc("get_registered_vehicles", ok([vehicle_row()]))
    transport.rpc("get_assigned_trips_by_manager_id", ok([trip_row()]))
    transport.rpc("get_registered_service_centers", ok([{"id": 3, "coordinate": "1.0, 2.0"}]))
    store = _store(transport)

    await store.load_for(AppUser.from_row(Role.FLEET_MANAGER, manager_row()))

    assert len(store.drivers) == 1
    assert len(store.vehicles) == 1
    assert store.trips[0].id == TRIP_ID
    assert store.service_centers[0].id == 3
    assert transport.rpc_calls("get_assigned_trips_by_manager_id")[0].json_body == {"p_manager_id": MANAGER_ID}


@pytest.mark.asyncio
async def test_load_for_driver_only_touches_driver_sections() -> None:
    transport = FakeTransport()
    transport.rpc("get_assigned_trip_for_driver_id", ok([trip_row()]))
    transport.rpc("get_registered_vehicles", ok([vehicle_row()]))
    store = _store(transport)

    await store.load_for(AppUser.from_row(Role.DRIVER, driver_row()))

    assert len(store.trips) == 1
    assert len(store.vehicles) == 1
    assert {call.path for call in transport.calls} == {
        "/rest/v1/rpc/get_assigned_trip_for_driver_id",
        "/rest/v1/rpc/get_registered_vehicles",
    }


@pytest.mark.asyncio
async def test_load_for_maintenance_personnel() -> None:
    transport = FakeTransport()
    transport.rpc("get_maintenance_personnel_tasks_by_id", ok([task_row()]))
    transport.rpc("get_registered_vehicles", ok([]))
    store = _store(transport)
    user = AppUser.from_row(Role.MAINTENANCE_PERSONNEL, {"meta_data": meta_row(PERSONNEL_ID, "maintenancePersonnel")})

    await store.load_for(user)

    assert store.current_task is not None
    assert store.current_task.task_id == 44


# ------------------------------------------------------------------
# Drivers
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_add_driver_assigns_next_employee_id_and_sends_welcome() -> None:
    transport = FakeTransport()
    transport.add("POST", "/auth/v1/signup", ok({"id": DRIVER2_ID}))
    transport.rpc("get_max_employee_id", ok(41))
    transport.rpc("add_new_driver_meta_data", ok(driver_row(DRIVER2_ID, employeeID=42)))
    mailer = _RecordingMailer()
    store = _store(transport, mailer)
    draft = Driver.model_validate(driver_row("00000000-0000-0000-0000-000000000000"))

    created = await store.add_driver(draft, "Temp!pass1")

    assert created is not None
    assert created.employee_id == 42
    assert store.drivers == [created]
    assert transport.rpc_calls("add_new_driver_meta_data")[0].json_body["p_employee_id"] == 42
    assert transport.rpc_calls("add_new_driver_meta_data")[0].json_body["p_id"] == DRIVER2_ID
    assert mailer.sent == [("dana@example.com", "Temp!pass1")]


@pytest.mark.asyncio
async def test_add_driver_failure_sends_nothing() -> None:
    transport = FakeTransport().add("POST", "/auth/v1/signup", err(422, "user_already_exists", "User already registered"))
    mailer = _RecordingMailer()
    store = _store(transport, mailer)

    assert await store.add_driver(_driver(), "Temp!pass1") is None
    assert store.drivers == []
    assert mailer.sent == []


@pytest.mark.asyncio
async def test_remove_driver_is_optimistic() -> None:
    transport = FakeTransport().rpc("update_user_working_status_for_id", ok(None, status=204))
    store = _store(transport)
    store.drivers = [_driver()]
    changes = _changes(store)

    assert await store.remove_driver(store.drivers[0])

    assert store.drivers[0].active_status is False
    assert [c.source for c in changes] == [ChangeSource.OPTIMISTIC]
    assert changes[0].item_ids == (DRIVER_ID,)


@pytest.mark.asyncio
async def test_remove_driver_rolls_back_on_failure() -> None:
    transport = FakeTransport().rpc("update_user_working_status_for_id", err(500, "XX000"))
    store = _store(transport)
    original = _driver()
    store.drivers = [original]
    changes = _changes(store)

    assert not await store.remove_driver(original)

    assert store.drivers == [original]
    assert [c.source for c in changes] == [ChangeSource.OPTIMISTIC, ChangeSource.ROLLBACK]


@pytest.mark.asyncio
async def test_update_driver_phone_rolls_back_on_invalid_input() -> None:
    store = _store(FakeTransport())
    original = _driver()
    store.drivers = [original]

    assert not await store.update_driver_phone(original, "")
    assert store.drivers[0].meta_data.phone == "5550100"


# ------------------------------------------------------------------
# Vehicles
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_enable_vehicle_sets_available() -> None:
    transport = FakeTransport().rpc("update_vehicle_active_status_for_id", ok(None, status=204))
    store = _store(transport)
    vehicle = Vehicle.model_validate(vehicle_row(status="Inactive", activeStatus=False))
    store.vehicles = [vehicle]

    assert await store.enable_vehicle(vehicle)

    assert store.vehicles[0].active_status is True
    assert store.vehicles[0].status == VehicleStatus.AVAILABLE


@pytest.mark.asyncio
async def test_add_vehicle_reloads_for_backend_id() -> None:
    transport = FakeTransport()
    transport.rpc("add_new_vehicle", ok(None, status=204))
    transport.rpc("get_registered_vehicles", ok([vehicle_row(9)]))
    store = _store(transport)

    assert await store.add_vehicle(Vehicle.model_validate(vehicle_row(0)))
    assert [v.id for v in store.vehicles] == [9]


@pytest.mark.asyncio
async def test_update_vehicle_expiry_dates() -> None:
    transport = FakeTransport().rpc("update_registered_vehicle_for_id", ok(None, status=204))
    store = _store(transport)
    vehicle = Vehicle.model_validate(vehicle_row(5))
    store.vehicles = [vehicle]
    updated = vehicle.model_copy(update={"puc_expiry_date": datetime(2027, 1, 1, tzinfo=UTC)})

    assert await store.update_vehicle_expiry_dates(vehicle, updated)

    assert store.vehicles[0].puc_expiry_date == datetime(2027, 1, 1, tzinfo=UTC)
    assert transport.calls[0].json_body["p_registered_id"] == 5


@pytest.mark.asyncio
async def test_update_vehicle_expiry_dates_requires_all_dates() -> None:
    transport = FakeTransport()
    store = _store(transport)
    vehicle = Vehicle.model_validate(vehicle_row(5))

    assert not await store.update_vehicle_expiry_dates(vehicle, vehicle.model_copy(update={"rc_expiry_date": None}))
    assert transport.calls == []


# ------------------------------------------------------------------
# Trips
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_assign_trip_marks_driver_and_vehicle_busy() -> None:
    transport = FakeTransport()
    transport.rpc("assign_new_trip", ok(TRIP_ID))
    transport.rpc("get_assigned_trips_by_manager_id", ok([trip_row()]))
    store = _store(transport)
    store.drivers = [_driver(), _driver(DRIVER2_ID)]
    store.vehicles = [Vehicle.model_validate(vehicle_row(1))]

    trip_id = await store.assign_trip(
        assigned_by=MANAGER_ID,
        pickup=(12.97, 77.59),
        destination=(13.08, 80.27),
        vehicle_id=1,
        driver_ids=[DRIVER_ID],
        estimated_arrival=datetime(2025, 4, 2, 18, tzinfo=UTC),
        description="Deliver parts",
        total_distance=350,
        duration=(6, 30),
        scheduled_at=datetime(2025, 4, 2, 8, tzinfo=UTC),
    )

    assert trip_id == TRIP_ID
    assert [t.id for t in store.trips] == [TRIP_ID]
    assert store.drivers[0].status == DriverStatus.ON_TRIP
    assert store.drivers[1].status == DriverStatus.AVAILABLE
    assert store.vehicles[0].status == VehicleStatus.ASSIGNED


@pytest.mark.asyncio
async def test_assign_trip_failure_returns_none() -> None:
    store = _store(FakeTransport())

    trip_id = await store.assign_trip(
        assigned_by=MANAGER_ID,
        pickup=(12.97, 77.59),
        destination=(13.08, 80.27),
        vehicle_id=1,
        driver_ids=[],
        estimated_arrival=datetime(2025, 4, 2, 18, tzinfo=UTC),
        description="",
        total_distance=350,
        duration=(6, 30),
        scheduled_at=datetime(2025, 4, 2, 8, tzinfo=UTC),
    )

    assert trip_id is None
    assert store.trips == []


@pytest.mark.asyncio
async def test_update_trip_status_rollback_and_filter() -> None:
    transport = FakeTransport().rpc("update_trip_status_for_id", err(500, "XX000"), ok(None, status=204))
    store = _store(transport)
    trip = Trip.model_validate(trip_row())
    store.trips = [trip]

    assert not await store.update_trip_status(trip, TripStatus.IN_PROGRESS)
    assert store.get_filtered_trips(TripStatus.IN_PROGRESS) == []

    assert await store.update_trip_status(trip, TripStatus.IN_PROGRESS)
    assert [t.id for t in store.get_filtered_trips(TripStatus.IN_PROGRESS)] == [TRIP_ID]
    assert len(store.get_filtered_trips()) == 1


# ------------------------------------------------------------------
# Maintenance
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_make_task_in_progress_defaults_estimate_to_tomorrow() -> None:
    transport = FakeTransport().rpc("make_maintenance_task_in_progress", ok(None, status=204))
    store = _store(transport)
    task = MaintenanceTask.model_validate(task_row())
    store.personnel_tasks = [task]
    tomorrow = (datetime.now(UTC) + timedelta(days=1)).date()

    assert await store.make_task_in_progress(task)

    started = store.personnel_tasks[0]
    assert started.status == MaintenanceStatus.IN_PROGRESS
    assert started.estimated_completion_date == tomorrow


@pytest.mark.asyncio
async def test_only_scheduled_tasks_can_start() -> None:
    transport = FakeTransport()
    store = _store(transport)
    task = MaintenanceTask.model_validate(task_row(status="Completed"))

    assert not await store.make_task_in_progress(task)
    assert transport.calls == []


@pytest.mark.asyncio
async def test_complete_task_and_generate_invoice() -> None:
    transport = FakeTransport().rpc("create_invoice_for_maintenance_task", ok(None, status=204))
    store = _store(transport)
    task = MaintenanceTask.model_validate(task_row(status="In Progress"))
    store.personnel_tasks = [task]
    store.vehicles = [Vehicle.model_validate(vehicle_row(1))]

    assert await store.generate_invoice(task) is None

    completed = await store.complete_task(
        task,
        expenses={MaintenanceExpenseType.LABORS_COST: 80.0, MaintenanceExpenseType.PARTS_COST: 20.0},
        repair_note="Replaced pads",
        completion_date=date(2025, 4, 11),
    )

    assert completed is not None
    assert store.personnel_tasks[0].status == MaintenanceStatus.COMPLETED
    assert store.current_task is None

    invoice = await store.generate_invoice(completed)
    assert invoice is not None
    assert invoice.total_expense == 100.0
    assert invoice.vehicle_license_number == "KA-01-0001"
    assert invoice.completion_date == date(2025, 4, 11)


@pytest.mark.asyncio
async def test_generate_invoice_reloads_missing_vehicle(caplog: pytest.LogCaptureFixture) -> None:
    transport = FakeTransport().rpc("get_registered_vehicles", ok([]))
    store = _store(transport)
    task = MaintenanceTask.model_validate(
        task_row(status="Completed", completionDate="2025-04-11", expenses={"Other Cost": 5})
    )

    with caplog.at_level(logging.ERROR):
        assert await store.generate_invoice(task) is None

    assert len(transport.rpc_calls("get_registered_vehicles")) == 1
    assert "Error retrieving vehicle details for invoice." in caplog.text


# ------------------------------------------------------------------
# Listeners
# ------------------------------------------------------------------


def test_failing_listener_does_not_block_others() -> None:
    store = _store(FakeTransport())
    seen: list[StoreChange] = []

    def _broken(change: StoreChange) -> None:
        raise RuntimeError("listener bug")

    store.subscribe(_broken)
    unsubscribe = store.subscribe(seen.append)
    store.clear()

    assert [c.section for c in seen] == list(StoreSection)
    assert all(c.source == ChangeSource.LOCAL for c in seen)

    unsubscribe()
    store.clear()
    assert len(seen) == len(StoreSection)
