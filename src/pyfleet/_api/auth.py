"""Auth endpoints.

Endpoints:
  - /auth/v1/token?grant_type=password
  - /auth/v1/token?grant_type=refresh_token
  - /auth/v1/logout
  - /auth/v1/user
  - /auth/v1/otp
  - /auth/v1/verify
  - /auth/v1/signup
"""

from __future__ import annotations

import logging
from typing import Any

from pyfleet._api._common import error_code, raise_for_response
from pyfleet._constants import AUTH_PREFIX, INVALID_CREDENTIALS_CODES
from pyfleet._redact import redact_for_log
from pyfleet._transport import Transport
from pyfleet.exceptions import FleetAuthenticationError, FleetInvalidCredentialsError, SignInFailure
from pyfleet.models.token import AuthToken
from pyfleet.session import Session

_logger = logging.getLogger(__name__)

_TOKEN_ENDPOINT = f"{AUTH_PREFIX}/token"


def _float_or_none(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_token_response(data: Any, *, endpoint: str) -> AuthToken:
    """Extract an :class:`AuthToken` from a token-bearing auth response.

    Parameters
    ----------
    data : Any
        Decoded JSON body.
    endpoint : str
        Endpoint path, used in error messages.

    Returns
    -------
    AuthToken
        Parsed token.

    Raises
    ------
    FleetAuthenticationError
        If the response does not carry an access token or a user id.
    """
    if not isinstance(data, dict):
        raise FleetAuthenticationError(f"{endpoint} returned a non-object body", endpoint=endpoint)

    # Some verify responses nest the token under "session".
    body = data.get("session") if isinstance(data.get("session"), dict) else data
    user = body.get("user") or data.get("user") or {}
    access_token = body.get("access_token")
    user_id = user.get("id") if isinstance(user, dict) else None

    if not access_token or not user_id:
        _logger.debug("Token response missing fields: %s", redact_for_log(data))
        raise FleetAuthenticationError(
            f"{endpoint} response missing access_token or user id",
            endpoint=endpoint,
        )

    return AuthToken(
        user_id=str(user_id),
        email=user.get("email") or None,
        access_token=str(access_token),
        refresh_token=str(body.get("refresh_token") or ""),
        expires_in=_float_or_none(body.get("expires_in")),
        expires_at=_float_or_none(body.get("expires_at")),
        raw=data,
    )


async def sign_in_with_password(transport: Transport, email: str, password: str) -> AuthToken:
    """Exchange an email/password pair for a token.

    Raises
    ------
    FleetInvalidCredentialsError
        If the auth endpoint rejects the pair.
    """
    response = await transport.request(
        "POST",
        _TOKEN_ENDPOINT,
        params={"grant_type": "password"},
        json_body={"email": email, "password": password},
    )
    if not response.ok and (error_code(response) in INVALID_CREDENTIALS_CODES or response.status == 400):
        raise FleetInvalidCredentialsError(
            SignInFailure.INVALID_FORM.value,
            code=error_code(response),
            endpoint=_TOKEN_ENDPOINT,
            status_code=response.status,
        )
    raise_for_response(response, endpoint=_TOKEN_ENDPOINT, auth_endpoint=True)
    return parse_token_response(response.data, endpoint=_TOKEN_ENDPOINT)


async def refresh_session(transport: Transport, refresh_token: str) -> AuthToken:
    """Obtain a new access token with the refresh grant."""
    if not refresh_token:
        raise FleetAuthenticationError("No refresh token available", endpoint=_TOKEN_ENDPOINT)
    response = await transport.request(
        "POST",
        _TOKEN_ENDPOINT,
        params={"grant_type": "refresh_token"},
        json_body={"refresh_token": refresh_token},
    )
    raise_for_response(response, endpoint=_TOKEN_ENDPOINT, auth_endpoint=True)
    return parse_token_response(response.data, endpoint=_TOKEN_ENDPOINT)


async def sign_out(transport: Transport, session: Session) -> None:
    endpoint = f"{AUTH_PREFIX}/logout"
    response = await transport.request("POST", endpoint, access_token=session.access_token)
    raise_for_response(response, endpoint=endpoint, auth_endpoint=True)


async def get_user(transport: Transport, session: Session) -> dict[str, Any]:
    """Fetch the auth user record for the session's access token."""
    endpoint = f"{AUTH_PREFIX}/user"
    response = await transport.request("GET", endpoint, access_token=session.access_token)
    raise_for_response(response, endpoint=endpoint)
    return response.data if isinstance(response.data, dict) else {}


async def send_email_otp(transport: Transport, email: str) -> None:
    """Ask the backend to e-mail a one-time code to an existing user.

    The code is generated server-side and never returned to the caller.
    """
    endpoint = f"{AUTH_PREFIX}/otp"
    response = await transport.request(
        "POST",
        endpoint,
        json_body={"email": email, "create_user": False},
    )
    raise_for_response(response, endpoint=endpoint, auth_endpoint=True)


async def verify_email_otp(transport: Transport, email: str, token: str) -> AuthToken:
    """Verify an e-mailed code and return the session it unlocks."""
    endpoint = f"{AUTH_PREFIX}/verify"
    response = await transport.request(
        "POST",
        endpoint,
        json_body={"type": "email", "email": email, "token": token},
    )
    raise_for_response(response, endpoint=endpoint, auth_endpoint=True)
    return parse_token_response(response.data, endpoint=endpoint)


async def update_user_password(transport: Transport, session: Session, password: str) -> None:
    endpoint = f"{AUTH_PREFIX}/user"
    response = await transport.request(
        "PUT",
        endpoint,
        json_body={"password": password},
        access_token=session.access_token,
    )
    raise_for_response(response, endpoint=endpoint)


async def sign_up(transport: Transport, email: str, password: str) -> str:
    """Create an auth account and return the new user's id.

    Raises
    ------
    FleetAuthenticationError
        If the response does not include a user id.
    """
    endpoint = f"{AUTH_PREFIX}/signup"
    response = await transport.request(
        "POST",
        endpoint,
        json_body={"email": email, "password": password},
    )
    raise_for_response(response, endpoint=endpoint, auth_endpoint=True)
    data = response.data if isinstance(response.data, dict) else {}
    user = data.get("user") if isinstance(data.get("user"), dict) else data
    user_id = user.get("id")
    if not user_id:
        raise FleetAuthenticationError(f"{endpoint} response missing user id", endpoint=endpoint)
    return str(user_id)
