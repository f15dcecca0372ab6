"""Row-table endpoints used by the auth bootstrap.

Endpoints:
  - GET   /rest/v1/UserRoles?select=role&id=eq.<uuid>
  - PATCH /rest/v1/UserMetaData?id=eq.<uuid>
"""

from __future__ import annotations

import uuid

from pyfleet._api._common import as_object, raise_for_response
from pyfleet._constants import REST_PREFIX, USER_META_DATA_TABLE, USER_ROLES_TABLE
from pyfleet._transport import Transport
from pyfleet.models.users import Role
from pyfleet.session import Session

# Ask PostgREST for a single object rather than a one-element array.
_SINGLE_OBJECT = {"accept": "application/vnd.pgrst.object+json"}


def _eq_uuid(user_id: str) -> str:
    # Raises ValueError for malformed ids before any request is made.
    return f"eq.{uuid.UUID(str(user_id))}"


async def fetch_user_role(transport: Transport, session: Session, user_id: str) -> Role:
    """Look up the role assigned to *user_id*.

    Unknown role strings resolve to :attr:`Role.MAINTENANCE_PERSONNEL`.

    Raises
    ------
    ValueError
        If *user_id* is not a UUID.
    FleetApiError
        If no role row exists or the query fails.
    """
    endpoint = f"{REST_PREFIX}/{USER_ROLES_TABLE}"
    response = await transport.request(
        "GET",
        endpoint,
        params={"select": "role", "id": _eq_uuid(user_id)},
        access_token=session.access_token,
        headers=_SINGLE_OBJECT,
    )
    raise_for_response(response, endpoint=endpoint)
    row = as_object(response.data, endpoint=endpoint)
    return Role.parse(row.get("role"))


async def update_first_time_login(
    transport: Transport,
    session: Session,
    user_id: str,
    *,
    first_time_login: bool,
) -> None:
    endpoint = f"{REST_PREFIX}/{USER_META_DATA_TABLE}"
    response = await transport.request(
        "PATCH",
        endpoint,
        params={"id": _eq_uuid(user_id)},
        json_body={"firstTimeLogin": first_time_login},
        access_token=session.access_token,
    )
    raise_for_response(response, endpoint=endpoint)
