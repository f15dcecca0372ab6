"""Maintenance task procedures."""

from __future__ import annotations

import uuid
from datetime import date

from pyfleet._api._common import as_list, call_rpc, day_string
from pyfleet._transport import Transport
from pyfleet.models.maintenance import MaintenanceExpenseType, MaintenanceTask
from pyfleet.models.requests import EstimatedDateRequest, UserIdRequest
from pyfleet.session import Session


def _task_id(value: str) -> str:
    return str(uuid.UUID(str(value)))


async def fetch_personnel_tasks(transport: Transport, session: Session, personnel_id: str) -> list[MaintenanceTask]:
    req = UserIdRequest(user_id=personnel_id)
    decoded = await call_rpc(transport, session, "get_maintenance_personnel_tasks_by_id", {"p_id": req.user_id})
    return [MaintenanceTask.model_validate(row) for row in as_list(decoded)]


async def mark_in_progress(transport: Transport, session: Session, task_id: str) -> None:
    await call_rpc(transport, session, "make_maintenance_task_in_progress", {"p_task_id": _task_id(task_id)})


async def update_estimated_date(transport: Transport, session: Session, req: EstimatedDateRequest) -> None:
    await call_rpc(
        transport,
        session,
        "update_maintenance_task_estimated_date",
        {
            "p_task_id": req.task_id,
            "p_estimated_completion_date": day_string(req.estimated_completion_date),
        },
    )


async def complete_with_invoice(
    transport: Transport,
    session: Session,
    task_id: str,
    *,
    expenses: dict[MaintenanceExpenseType, float],
    repair_note: str,
    completion_date: date,
) -> None:
    """Record the expenses and repair note, and mark the task completed."""
    if not expenses:
        raise ValueError("at least one expense is required")
    if any(cost < 0 for cost in expenses.values()):
        raise ValueError("expenses must not be negative")
    await call_rpc(
        transport,
        session,
        "create_invoice_for_maintenance_task",
        {
            "p_task_id": _task_id(task_id),
            "p_expenses": {MaintenanceExpenseType(k).value: float(v) for k, v in expenses.items()},
            "p_repair_note": repair_note,
            "p_completion_date": day_string(completion_date),
        },
    )
