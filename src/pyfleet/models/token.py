"""Authentication token model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class AuthToken(BaseModel):
    """Token returned by a password sign-in, OTP verification or refresh.

    Parameters
    ----------
    user_id : str
        The authenticated user's UUID.
    email : str or None
        E-mail on the auth record.
    access_token : str
        Bearer token for REST/RPC calls.
    refresh_token : str
        Token for the refresh grant.
    expires_in : float or None
        Lifetime in seconds, as reported.
    expires_at : float or None
        Absolute expiry (epoch seconds), as reported.
    raw : dict
        Full decoded response for access to additional fields.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    email: str | None = None
    access_token: str
    refresh_token: str = ""
    expires_in: float | None = None
    expires_at: float | None = None
    raw: dict[str, Any]
