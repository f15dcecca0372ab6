"""Maintenance task and invoice models."""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from pyfleet.models._base import FleetBaseModel, FleetDate, FleetEnum, FleetTimestamp, parse_keyed_pairs


class MaintenanceExpenseType(FleetEnum):
    LABORS_COST = "Labors Cost"
    PARTS_COST = "Parts Cost"
    OTHER_COST = "Other Cost"
    UNKNOWN = "Unknown"


class MaintenanceTaskType(FleetEnum):
    REGULAR_MAINTENANCE = "Regular Maintenance"
    PRE_INSPECTION_MAINTENANCE = "Pre-Inspection Maintenance"
    POST_INSPECTION_MAINTENANCE = "Post-Inspection Maintenance"
    EMERGENCY_MAINTENANCE = "Emergency Maintenance"
    UNKNOWN = "Unknown"


class MaintenanceStatus(FleetEnum):
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    UNKNOWN = "Unknown"


Expenses = Annotated[dict[MaintenanceExpenseType, float], BeforeValidator(parse_keyed_pairs)]


class MaintenanceTask(FleetBaseModel):
    """A maintenance job assigned to maintenance personnel.

    ``estimated_completion_date`` and ``completion_date`` are day-only
    columns (``yyyy-MM-dd``).
    """

    id: str
    task_id: int = Field(default=0, alias="taskID")
    vehicle_id: int = Field(default=0, alias="vehicleID")
    assigned_to: str = ""
    assigned_by: str = ""
    """Driver or fleet manager id."""
    type: MaintenanceTaskType = MaintenanceTaskType.REGULAR_MAINTENANCE
    status: MaintenanceStatus = MaintenanceStatus.SCHEDULED
    estimated_completion_date: FleetDate = None
    created_at: FleetTimestamp = None
    issue_note: str = ""
    repair_note: str = ""
    expenses: Expenses | None = None
    completion_date: FleetDate = None

    @property
    def is_emergency(self) -> bool:
        return self.type == MaintenanceTaskType.EMERGENCY_MAINTENANCE

    @property
    def total_cost(self) -> float:
        if not self.expenses:
            return 0.0
        return sum(self.expenses.values())


class Invoice(BaseModel):
    """Invoice for a completed maintenance task.

    ``id`` and ``task_id`` are the task's ids.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    task_id: int
    expenses: dict[MaintenanceExpenseType, float]
    issue_note: str
    repair_note: str
    created_at: datetime | None
    completion_date: date
    vehicle_id: int
    vehicle_license_number: str
    type: MaintenanceTaskType

    @property
    def total_expense(self) -> float:
        return sum(self.expenses.values())


def build_invoice(task: MaintenanceTask, vehicle_license_number: str) -> Invoice | None:
    """Return the invoice for *task*, or ``None`` while it is not completed."""
    if task.status != MaintenanceStatus.COMPLETED or task.completion_date is None or task.expenses is None:
        return None
    return Invoice(
        id=task.id,
        task_id=task.task_id,
        expenses=dict(task.expenses),
        issue_note=task.issue_note,
        repair_note=task.repair_note,
        created_at=task.created_at,
        completion_date=task.completion_date,
        vehicle_id=task.vehicle_id,
        vehicle_license_number=vehicle_license_number,
        type=task.type,
    )
