"""Session state for authenticated API calls."""

from __future__ import annotations

import time

from pydantic import BaseModel, ConfigDict, Field

from pyfleet.models.token import AuthToken
from pyfleet.models.users import Role

#: Fallback lifetime when the backend does not report one.
DEFAULT_SESSION_TTL: float = 3600.0


class Session(BaseModel):
    """Authenticated session.

    Created on sign-in (or OTP verification), replaced on token refresh and
    dropped on sign-out.  Nothing is persisted.

    Parameters
    ----------
    user_id : str
        The authenticated user's UUID.
    email : str or None
        E-mail address on the auth record.
    role : Role or None
        Assigned role, filled in once the role lookup has run.
    access_token : str
        Bearer token for REST/RPC calls.
    refresh_token : str
        Token used to obtain a new access token.
    expires_at : float or None
        Wall-clock expiry (epoch seconds).  ``None`` never expires locally.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    user_id: str
    email: str | None = None
    role: Role | None = None
    access_token: str
    refresh_token: str = ""
    expires_at: float | None = None
    created_at: float = Field(default_factory=time.time)

    @classmethod
    def from_token(cls, token: AuthToken, *, fallback_ttl: float = DEFAULT_SESSION_TTL) -> Session:
        """Build a session from a parsed token response."""
        expires_at = token.expires_at
        if expires_at is None and token.expires_in is not None:
            expires_at = time.time() + token.expires_in
        if expires_at is None and fallback_ttl > 0:
            expires_at = time.time() + fallback_ttl
        return cls(
            user_id=token.user_id,
            email=token.email,
            access_token=token.access_token,
            refresh_token=token.refresh_token,
            expires_at=expires_at,
        )

    def with_role(self, role: Role) -> Session:
        return self.model_copy(update={"role": role})

    @property
    def is_expired(self) -> bool:
        """Whether the access token has passed its expiry."""
        if self.expires_at is None:
            return False
        return time.time() >= self.expires_at

    @property
    def age(self) -> float:
        """Seconds since the session was created."""
        return time.time() - self.created_at
