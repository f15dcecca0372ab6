"""User and profile procedures.

Procedures:
  - get_user_active_status_by_id
  - get_user_first_time_login_status_by_id
  - get_driver_data_by_id / get_fleet_manager_data_by_id / get_maintenance_personnel_data_by_id
  - get_fleet_manager_data_for_id
  - get_registered_drivers
  - get_user_email_by_id
  - get_user_meta_data_by_id
  - add_new_driver_meta_data
  - update_user_working_status_for_id
  - update_user_phone_by_id
  - get_max_employee_id
"""

from __future__ import annotations

import logging
from typing import Any

from pyfleet._api._common import as_list, as_object, call_rpc
from pyfleet._transport import Transport
from pyfleet.models.requests import AddDriverRequest, PhoneUpdateRequest, UserIdRequest
from pyfleet.models.users import AppUser, Driver, FleetManager, Role, UserMetaData
from pyfleet.session import Session

_logger = logging.getLogger(__name__)

_PROFILE_PROCEDURES: dict[Role, str] = {
    Role.DRIVER: "get_driver_data_by_id",
    Role.FLEET_MANAGER: "get_fleet_manager_data_by_id",
    Role.MAINTENANCE_PERSONNEL: "get_maintenance_personnel_data_by_id",
}


def _scalar(decoded: Any) -> Any:
    """Unwrap scalar results that arrive as ``[{"fn": value}]`` or ``{"fn": value}``."""
    if isinstance(decoded, list):
        decoded = decoded[0] if decoded else None
    if isinstance(decoded, dict) and len(decoded) == 1:
        return next(iter(decoded.values()))
    return decoded


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "t", "1", "yes"}
    return bool(value)


async def fetch_active_status(transport: Transport, session: Session, user_id: str) -> bool:
    """Return the user's working (active) status."""
    req = UserIdRequest(user_id=user_id)
    decoded = await call_rpc(transport, session, "get_user_active_status_by_id", {"p_id": req.user_id})
    return _as_bool(_scalar(decoded))


async def fetch_first_time_login(transport: Transport, session: Session, user_id: str) -> bool:
    req = UserIdRequest(user_id=user_id)
    decoded = await call_rpc(
        transport,
        session,
        "get_user_first_time_login_status_by_id",
        {"p_id": req.user_id},
    )
    return _as_bool(_scalar(decoded))


async def fetch_profile(transport: Transport, session: Session, role: Role, user_id: str) -> AppUser:
    """Fetch the role-specific profile and wrap it in an :class:`AppUser`."""
    req = UserIdRequest(user_id=user_id)
    name = _PROFILE_PROCEDURES[role]
    decoded = await call_rpc(transport, session, name, {"p_id": req.user_id})
    return AppUser.from_row(role, as_object(decoded, endpoint=name))


async def fetch_fleet_manager(transport: Transport, session: Session, user_id: str) -> FleetManager:
    req = UserIdRequest(user_id=user_id)
    name = "get_fleet_manager_data_for_id"
    decoded = await call_rpc(transport, session, name, {"p_id": req.user_id})
    return FleetManager.model_validate(as_object(decoded, endpoint=name))


async def fetch_registered_drivers(transport: Transport, session: Session) -> list[Driver]:
    decoded = await call_rpc(transport, session, "get_registered_drivers")
    return [Driver.model_validate(row) for row in as_list(decoded)]


async def fetch_user_email(transport: Transport, session: Session, user_id: str) -> str:
    req = UserIdRequest(user_id=user_id)
    decoded = await call_rpc(transport, session, "get_user_email_by_id", {"p_user_uuid": req.user_id})
    value = _scalar(decoded)
    return "" if value is None else str(value)


async def fetch_user_meta_data(transport: Transport, session: Session, user_id: str) -> UserMetaData:
    req = UserIdRequest(user_id=user_id)
    name = "get_user_meta_data_by_id"
    decoded = await call_rpc(transport, session, name, {"p_id": req.user_id})
    return UserMetaData.model_validate(as_object(decoded, endpoint=name))


async def add_driver_meta_data(transport: Transport, session: Session, req: AddDriverRequest) -> Driver:
    """Create the profile rows for a freshly signed-up driver."""
    name = "add_new_driver_meta_data"
    decoded = await call_rpc(
        transport,
        session,
        name,
        {
            "p_id": req.user_id,
            "p_phone": req.phone,
            "p_display_name": req.full_name,
            "p_employee_id": req.employee_id,
            "p_licenseNumber": req.license_number,
        },
    )
    return Driver.model_validate(as_object(decoded, endpoint=name))


async def update_working_status(
    transport: Transport,
    session: Session,
    user_id: str,
    *,
    active: bool,
) -> None:
    req = UserIdRequest(user_id=user_id)
    await call_rpc(
        transport,
        session,
        "update_user_working_status_for_id",
        {"p_user_uuid": req.user_id, "p_new_status": active},
    )


async def update_phone(transport: Transport, session: Session, req: PhoneUpdateRequest) -> None:
    await call_rpc(
        transport,
        session,
        "update_user_phone_by_id",
        {"p_user_uuid": req.user_id, "p_phone": req.phone},
    )


async def fetch_max_employee_id(transport: Transport, session: Session, role: Role) -> int:
    """Highest employee id in use for *role* (``0`` when none)."""
    decoded = await call_rpc(transport, session, "get_max_employee_id", {"p_role": role.value})
    value = _scalar(decoded)
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        _logger.debug("Unexpected max employee id value: %r", value)
        return 0
