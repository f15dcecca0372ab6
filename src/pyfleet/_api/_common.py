"""Shared helpers for backend endpoint modules.

This module centralizes the most repeated patterns:
- mapping error statuses/codes to the exception hierarchy
- invoking a named remote procedure with JSON parameters
- wire formatting of timestamps and day-only dates

It is internal to pyfleet and may change at any time.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, date, datetime
from typing import Any

from pyfleet._constants import (
    DAY_FORMAT,
    ISO8601_FORMAT,
    OTP_RATE_LIMIT_CODES,
    RPC_PREFIX,
    SESSION_EXPIRED_CODES,
)
from pyfleet._transport import RestResponse, Transport
from pyfleet.exceptions import (
    FleetApiError,
    FleetAuthenticationError,
    FleetRateLimitError,
    FleetSessionExpiredError,
)
from pyfleet.session import Session

_logger = logging.getLogger(__name__)


def iso8601(value: datetime) -> str:
    """Format *value* as ``YYYY-MM-DDTHH:MM:SSZ`` in UTC (naive is taken as UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime(ISO8601_FORMAT)


def day_string(value: date) -> str:
    """Format a day-only column value as ``yyyy-MM-dd``."""
    return value.strftime(DAY_FORMAT)


def _error_field(data: Any, keys: tuple[str, ...]) -> str:
    if not isinstance(data, Mapping):
        return ""
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return str(value)
    return ""


def error_code(response: RestResponse) -> str:
    return _error_field(response.data, ("error_code", "code", "error"))


def error_message(response: RestResponse) -> str:
    return _error_field(response.data, ("msg", "message", "error_description", "error")) or f"HTTP {response.status}"


def raise_for_response(
    response: RestResponse,
    *,
    endpoint: str,
    auth_endpoint: bool = False,
) -> None:
    """Raise the matching :class:`FleetApiError` subclass for a failed response."""
    if response.ok:
        return
    code = error_code(response)
    message = error_message(response)
    text = f"{endpoint} failed: status={response.status} code={code} message={message}"

    if response.status == 429 or code in OTP_RATE_LIMIT_CODES:
        raise FleetRateLimitError(text, code=code, endpoint=endpoint, status_code=response.status)
    if code in SESSION_EXPIRED_CODES or (response.status == 401 and not auth_endpoint):
        raise FleetSessionExpiredError(text, code=code, endpoint=endpoint, status_code=response.status)
    if auth_endpoint:
        raise FleetAuthenticationError(text, code=code, endpoint=endpoint, status_code=response.status)
    raise FleetApiError(text, code=code, endpoint=endpoint, status_code=response.status)


async def call_rpc(
    transport: Transport,
    session: Session,
    name: str,
    params: Mapping[str, Any] | None = None,
) -> Any:
    """Invoke one remote procedure and return its decoded JSON result.

    This intentionally returns `Any` since procedures may return objects,
    lists, scalars or nothing.
    """
    endpoint = f"{RPC_PREFIX}/{name}"
    response = await transport.request(
        "POST",
        endpoint,
        json_body=dict(params or {}),
        access_token=session.access_token,
    )
    raise_for_response(response, endpoint=endpoint)
    return response.data


def as_list(decoded: Any) -> list[dict[str, Any]]:
    if not isinstance(decoded, list):
        return []
    return [item for item in decoded if isinstance(item, dict)]


def as_object(decoded: Any, *, endpoint: str) -> dict[str, Any]:
    """Unwrap a single-row result (object, or a one-element list)."""
    if isinstance(decoded, list) and len(decoded) == 1:
        decoded = decoded[0]
    if not isinstance(decoded, dict):
        raise FleetApiError(
            f"{endpoint} returned no row",
            code="empty_result",
            endpoint=endpoint,
        )
    return decoded
