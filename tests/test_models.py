"""Tests for row parsing with FleetBaseModel + FleetEnum."""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest
from _fakes import DRIVER_ID, MANAGER_ID, PERSONNEL_ID, driver_row, manager_row, meta_row, task_row, trip_row, vehicle_row

from pyfleet.models.maintenance import (
    MaintenanceExpenseType,
    MaintenanceStatus,
    MaintenanceTask,
    MaintenanceTaskType,
    build_invoice,
)
from pyfleet.models.notification import PushNotification
from pyfleet.models.requests import AssignTripRequest, Coordinate, UserIdRequest
from pyfleet.models.trip import Trip, TripInspection, TripInspectionItem, TripStatus
from pyfleet.models.users import AppUser, Driver, DriverStatus, FleetManager, MaintenancePersonnel, Role
from pyfleet.models.vehicle import FuelType, Vehicle, VehicleStatus

# ------------------------------------------------------------------
# FleetEnum / Role
# ------------------------------------------------------------------


class TestFleetEnum:
    def test_unknown_value_falls_back(self) -> None:
        assert VehicleStatus("Scrapped") == VehicleStatus.UNKNOWN
        assert TripStatus("Cancelled") == TripStatus.UNKNOWN

    def test_known_value(self) -> None:
        assert DriverStatus("On Trip") == DriverStatus.ON_TRIP

    def test_all_enums_have_unknown(self) -> None:
        for cls in (DriverStatus, FuelType, VehicleStatus, TripStatus, MaintenanceStatus, MaintenanceTaskType):
            assert hasattr(cls, "UNKNOWN"), f"{cls.__name__} missing UNKNOWN"


class TestRole:
    def test_known_roles(self) -> None:
        assert Role.parse("driver") == Role.DRIVER
        assert Role.parse("fleetManager") == Role.FLEET_MANAGER

    @pytest.mark.parametrize("value", ["maintenancePersonnel", "mechanic", "", None])
    def test_everything_else_is_maintenance_personnel(self, value: object) -> None:
        assert Role.parse(value) == Role.MAINTENANCE_PERSONNEL


# ------------------------------------------------------------------
# Users
# ------------------------------------------------------------------


class TestProfiles:
    def test_driver_row(self) -> None:
        driver = Driver.model_validate(driver_row())
        assert driver.id == DRIVER_ID
        assert driver.meta_data.full_name == "Dana Driver"
        assert driver.meta_data.employee_id == 7
        assert driver.meta_data.created_at == datetime(2025, 3, 21, 10, 0, tzinfo=UTC)
        assert driver.license_number == "DL-0420"
        assert driver.total_trips == 3
        assert driver.status == DriverStatus.AVAILABLE
        assert driver.role == Role.DRIVER

    def test_app_user_from_row(self) -> None:
        user = AppUser.from_row(Role.FLEET_MANAGER, manager_row())
        assert isinstance(user.profile, FleetManager)
        assert user.id == MANAGER_ID
        assert user.email == "manager@example.com"
        assert user.license_number is None
        assert user.driver_status is None

    def test_app_user_driver_accessors(self) -> None:
        user = AppUser.from_row(Role.DRIVER, driver_row())
        assert user.license_number == "DL-0420"
        assert user.total_trips == 3
        assert user.driver_status == DriverStatus.AVAILABLE

    def test_personnel_defaults(self) -> None:
        person = MaintenancePersonnel.model_validate({"meta_data": meta_row(PERSONNEL_ID, "maintenancePersonnel")})
        assert person.total_repairs == 0
        assert person.role == Role.MAINTENANCE_PERSONNEL

    def test_blank_email_reads_as_none(self) -> None:
        user = AppUser.from_row(Role.DRIVER, driver_row(email=""))
        assert user.email is None


# ------------------------------------------------------------------
# Vehicles and trips
# ------------------------------------------------------------------


class TestVehicle:
    def test_vehicle_row(self) -> None:
        vehicle = Vehicle.model_validate(vehicle_row(3))
        assert vehicle.id == 3
        assert vehicle.license_number == "KA-01-0003"
        assert vehicle.fuel_type == FuelType.DIESEL
        assert vehicle.load_capacity == 750.0
        assert vehicle.puc_expiry_date == datetime(2026, 2, 1, tzinfo=UTC)
        assert vehicle.status == VehicleStatus.AVAILABLE
        assert vehicle.raw["vinNumber"] == "VIN0000001"

    def test_null_columns_use_defaults(self) -> None:
        vehicle = Vehicle.model_validate(vehicle_row(status=None, fuelType=None, currentCoordinate=""))
        assert vehicle.status == VehicleStatus.AVAILABLE
        assert vehicle.fuel_type == FuelType.UNKNOWN
        assert vehicle.current_coordinate == ""


class TestTrip:
    def test_trip_row(self) -> None:
        trip = Trip.model_validate(trip_row())
        assert trip.trip_id == 12
        assert trip.assigned_by_fleet_manager_id == MANAGER_ID
        assert trip.assigned_driver_ids == [DRIVER_ID]
        assert trip.assigned_vehicle_id == 1
        assert trip.scheduled_date_time == datetime(2025, 4, 2, 8, 0, tzinfo=UTC)
        assert trip.status == TripStatus.SCHEDULED

    def test_inspection_accepts_keyed_pair_lists(self) -> None:
        inspection = TripInspection.model_validate(
            {
                "id": "trip",
                "preInspection": ["Brake System", True, "Lights", False],
                "postInspection": {"Mirrors": True},
            }
        )
        assert inspection.pre_inspection[TripInspectionItem.BRAKE_SYSTEM] is True
        assert inspection.failed_pre_items == [TripInspectionItem.LIGHTS]
        assert inspection.failed_post_items == []

    def test_inspection_rejects_odd_pair_lists(self) -> None:
        with pytest.raises(ValueError):
            TripInspection.model_validate({"id": "trip", "preInspection": ["Lights"]})


# ------------------------------------------------------------------
# Maintenance
# ------------------------------------------------------------------


class TestMaintenance:
    def test_task_row(self) -> None:
        task = MaintenanceTask.model_validate(task_row(estimatedCompletionDate="2025-04-10"))
        assert task.task_id == 44
        assert task.vehicle_id == 1
        assert task.estimated_completion_date == date(2025, 4, 10)
        assert task.expenses is None
        assert task.total_cost == 0.0
        assert not task.is_emergency

    def test_invoice_only_for_completed_tasks(self) -> None:
        scheduled = MaintenanceTask.model_validate(task_row())
        assert build_invoice(scheduled, "KA-01-0001") is None

        completed = MaintenanceTask.model_validate(
            task_row(
                status="Completed",
                completionDate="2025-04-11",
                expenses={"Labors Cost": 100, "Parts Cost": 250.5},
                repairNote="Replaced pads",
            )
        )
        invoice = build_invoice(completed, "KA-01-0001")
        assert invoice is not None
        assert invoice.total_expense == 350.5
        assert invoice.completion_date == date(2025, 4, 11)
        assert invoice.expenses[MaintenanceExpenseType.PARTS_COST] == 250.5
        assert invoice.vehicle_license_number == "KA-01-0001"


# ------------------------------------------------------------------
# Notifications
# ------------------------------------------------------------------


class TestPushNotification:
    def test_snake_case_row(self) -> None:
        note = PushNotification.model_validate(
            {
                "id": "n1",
                "sender_id": MANAGER_ID,
                "recipient_id": DRIVER_ID,
                "title": "Trip assigned",
                "message": "Pickup at 8",
                "sent_at": "2025-04-01T08:00:00+00:00",
            }
        )
        assert note.recipient_id == DRIVER_ID
        assert note.sent_at == datetime(2025, 4, 1, 8, 0, tzinfo=UTC)
        assert note.raw["title"] == "Trip assigned"

    def test_camel_case_row_and_bad_timestamp(self) -> None:
        note = PushNotification.model_validate(
            {"id": "n2", "senderID": MANAGER_ID, "recipientID": DRIVER_ID, "sentAt": "not a date"}
        )
        assert note.sender_id == MANAGER_ID
        assert note.sent_at.tzinfo is not None


# ------------------------------------------------------------------
# Requests
# ------------------------------------------------------------------


class TestRequests:
    def test_user_id_is_normalized(self) -> None:
        assert UserIdRequest(user_id=f" {DRIVER_ID.upper()} ").user_id == DRIVER_ID

    def test_malformed_user_id(self) -> None:
        with pytest.raises(ValueError):
            UserIdRequest(user_id="not-a-uuid")

    def test_coordinate_bounds(self) -> None:
        assert Coordinate(latitude=12.5, longitude=77.25).as_wire() == "12.5, 77.25"
        with pytest.raises(ValueError):
            Coordinate(latitude=91, longitude=0)

    def test_trip_duration_wire(self) -> None:
        req = AssignTripRequest(
            assigned_by=MANAGER_ID,
            pickup=Coordinate(latitude=1, longitude=2),
            destination=Coordinate(latitude=3, longitude=4),
            vehicle_id=1,
            driver_ids=[DRIVER_ID],
            estimated_arrival=datetime(2025, 4, 2, 18, tzinfo=UTC),
            total_distance=10,
            duration_hours=2,
            duration_minutes=5,
            scheduled_at=datetime(2025, 4, 2, 8, tzinfo=UTC),
        )
        assert req.duration_wire() == "2 hours 5 minutes"

    def test_trip_needs_a_driver(self) -> None:
        with pytest.raises(ValueError):
            AssignTripRequest(
                assigned_by=MANAGER_ID,
                pickup=Coordinate(latitude=1, longitude=2),
                destination=Coordinate(latitude=3, longitude=4),
                vehicle_id=1,
                driver_ids=[],
                estimated_arrival=datetime(2025, 4, 2, 18, tzinfo=UTC),
                total_distance=10,
                duration_hours=2,
                duration_minutes=5,
                scheduled_at=datetime(2025, 4, 2, 8, tzinfo=UTC),
            )
