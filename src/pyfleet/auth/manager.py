"""Session/auth gateway: sign-in, session bootstrap, OTP and password operations."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pyfleet._api import auth as _auth_api
from pyfleet._api import roles as _roles_api
from pyfleet._api import users as _users_api
from pyfleet._constants import OTP_LENGTH
from pyfleet._transport import Transport
from pyfleet.config import FleetConfig
from pyfleet.exceptions import (
    FleetAuthenticationError,
    FleetError,
    FleetInactiveUserError,
    FleetInvalidCredentialsError,
    FleetSessionExpiredError,
)
from pyfleet.models.users import AppUser, Role
from pyfleet.session import Session

_logger = logging.getLogger(__name__)

T = TypeVar("T")

INACTIVE_USER_MESSAGE = "Your account is currently inactive. Please contact your administrator."


class AuthManager:
    """Owns the authenticated session and the signed-in user.

    Usage::

        auth = AuthManager(config, transport)
        user = await auth.sign_in_and_initiate_2fa(email, password)

    State moves from unauthenticated to authenticated on a successful
    sign-in (or OTP verification) and back on :meth:`sign_out`.  Nothing
    is persisted between processes.

    Parameters
    ----------
    config : FleetConfig
        Client configuration.  ``two_factor_enabled`` seeds the
        :attr:`two_factor_enabled` flag.
    transport : Transport
        Transport used for every auth and data call.
    """

    def __init__(self, config: FleetConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport
        self._session: Session | None = None
        self._current_user: AppUser | None = None
        self._two_factor_completed = False
        self._two_factor_code = ""
        self._first_time_login_cache: dict[str, bool] = {}
        self.two_factor_enabled = config.two_factor_enabled

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def current_user(self) -> AppUser | None:
        return self._current_user

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    @property
    def is_2fa_completed(self) -> bool:
        return self._two_factor_completed

    @property
    def is_two_factor_code_sent(self) -> bool:
        """Whether a two-factor code went out and is still awaiting verification."""
        return bool(self._two_factor_code) and not self._two_factor_completed

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def resend_seconds(self) -> int:
        return self._config.otp_resend_seconds

    def mark_2fa_completed(self) -> None:
        self._two_factor_completed = True
        self._two_factor_code = ""

    def _store_session(self, session: Session) -> Session:
        self._session = session
        return session

    def _clear(self) -> None:
        self._session = None
        self._current_user = None
        self._two_factor_completed = False
        self._two_factor_code = ""
        self._first_time_login_cache.clear()

    # ------------------------------------------------------------------
    # Session plumbing
    # ------------------------------------------------------------------

    async def ensure_session(self) -> Session:
        """Return the active session, refreshing it if the token has expired.

        Raises
        ------
        FleetAuthenticationError
            If nobody is signed in.
        """
        if self._session is None:
            raise FleetAuthenticationError("Not signed in", code="no_session")
        if self._session.is_expired:
            return await self.refresh_session()
        return self._session

    async def refresh_session(self) -> Session:
        """Exchange the refresh token for a new access token."""
        if self._session is None:
            raise FleetAuthenticationError("Not signed in", code="no_session")
        previous = self._session
        token = await _auth_api.refresh_session(self._transport, previous.refresh_token)
        session = Session.from_token(token, fallback_ttl=self._config.session_ttl)
        if previous.role is not None:
            session = session.with_role(previous.role)
        _logger.debug("Refreshed session for user %s", session.user_id)
        return self._store_session(session)

    async def call_with_reauth(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Run an authenticated call, retrying once after a token refresh."""
        try:
            return await fn()
        except FleetSessionExpiredError:
            _logger.debug("Session rejected by backend, refreshing and retrying once")
            await self.refresh_session()
            return await fn()

    # ------------------------------------------------------------------
    # Sign-in / sign-out
    # ------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> Session:
        """Authenticate and resolve the user's role.

        Raises
        ------
        FleetInvalidCredentialsError
            If the email/password pair is rejected.
        """
        token = await _auth_api.sign_in_with_password(self._transport, email, password)
        session = self._store_session(Session.from_token(token, fallback_ttl=self._config.session_ttl))
        try:
            role = await self.get_role(token.user_id)
        except Exception:
            await self._sign_out_quietly()
            raise
        return self._store_session(session.with_role(role))

    async def sign_in_with_email(self, email: str, password: str) -> AppUser:
        """Sign in, reject inactive accounts and load the role profile.

        Raises
        ------
        FleetInvalidCredentialsError
            If the email/password pair is rejected.
        FleetInactiveUserError
            If the account's working status is off.  The session is
            signed out first.
        """
        token = await _auth_api.sign_in_with_password(self._transport, email, password)
        session = self._store_session(Session.from_token(token, fallback_ttl=self._config.session_ttl))

        try:
            active = await self.get_working_status(session.user_id)
            if active:
                role = await self.get_role(session.user_id)
                user = await self.get_app_user(role, session.user_id)
        except Exception:
            await self._sign_out_quietly()
            raise
        if not active:
            await self._sign_out_quietly()
            raise FleetInactiveUserError(INACTIVE_USER_MESSAGE, code="inactive_user")

        self._store_session(session.with_role(role))
        self._current_user = user
        return user

    async def sign_in_and_initiate_2fa(self, email: str, password: str) -> AppUser:
        """Sign in and start the two-factor step when it applies.

        First-time users skip two-factor (they must replace their temporary
        password first), as does everyone while :attr:`two_factor_enabled`
        is off.  Otherwise a local six-digit code is generated and the
        backend is asked to e-mail its own one-time code.
        """
        user = await self.sign_in_with_email(email, password)
        self._two_factor_completed = False

        try:
            if await self.check_first_time_login(user.id) or not self.two_factor_enabled:
                self.mark_2fa_completed()
                return user
            await self.send_two_factor_code(email)
        except Exception:
            await self._sign_out_quietly()
            raise
        return user

    async def sign_out(self) -> None:
        """Sign out remotely and clear all local auth state.

        Local state is cleared even when the remote call fails.  A token
        the backend already considers invalid counts as signed out.
        """
        session = self._session
        try:
            if session is not None:
                await _auth_api.sign_out(self._transport, session)
        except FleetAuthenticationError as exc:
            _logger.debug("Remote sign-out rejected, session already gone: %s", exc)
        finally:
            self._clear()

    async def _sign_out_quietly(self) -> None:
        try:
            await self.sign_out()
        except FleetError as exc:
            _logger.warning("Sign-out failed: %s", exc)

    async def get_current_session(self) -> AppUser | None:
        """Return the bootstrapped user for the active session, if any.

        An expired session is refreshed, and signed out when the refresh
        fails.  A session whose two-factor step is required but not
        completed is signed out.
        """
        session = self._session
        if session is None:
            return None
        try:
            if session.is_expired:
                _logger.info("Session expired, refreshing")
                session = await self.refresh_session()

            if self.two_factor_enabled and not self._two_factor_completed:
                _logger.info("Two-factor verification pending, signing out")
                await self._sign_out_quietly()
                return None

            role = await self.get_role(session.user_id)
            user = await self.get_app_user(role, session.user_id)
        except (FleetError, ValueError) as exc:
            _logger.error("Error in get_current_session: %s", exc)
            await self._sign_out_quietly()
            return None

        self._store_session(session.with_role(role))
        self._current_user = user
        return user

    # ------------------------------------------------------------------
    # Roles, profiles and account flags
    # ------------------------------------------------------------------

    async def get_role(self, user_id: str) -> Role:
        """Look up the role for *user_id*.

        Raises
        ------
        ValueError
            If *user_id* is not a UUID.
        """

        async def _call() -> Role:
            session = await self.ensure_session()
            return await _roles_api.fetch_user_role(self._transport, session, user_id)

        return await self.call_with_reauth(_call)

    async def get_app_user(self, role: Role, user_id: str) -> AppUser:
        async def _call() -> AppUser:
            session = await self.ensure_session()
            return await _users_api.fetch_profile(self._transport, session, role, user_id)

        return await self.call_with_reauth(_call)

    async def get_working_status(self, user_id: str) -> bool:
        async def _call() -> bool:
            session = await self.ensure_session()
            return await _users_api.fetch_active_status(self._transport, session, user_id)

        return await self.call_with_reauth(_call)

    async def check_first_time_login(self, user_id: str) -> bool:
        """Whether *user_id* still has to replace a temporary password.

        Cached per user.  Lookup failures (including a malformed id) are
        logged and read as ``False``.
        """
        cached = self._first_time_login_cache.get(user_id)
        if cached is not None:
            return cached

        async def _call() -> bool:
            session = await self.ensure_session()
            return await _users_api.fetch_first_time_login(self._transport, session, user_id)

        try:
            status = await self.call_with_reauth(_call)
        except (FleetError, ValueError) as exc:
            _logger.error("Error fetching firstTimeLogin status: %s", exc)
            return False
        self._first_time_login_cache[user_id] = status
        return status

    async def update_first_time_login_status(self, user_id: str, first_time_login: bool) -> None:
        async def _call() -> None:
            session = await self.ensure_session()
            await _roles_api.update_first_time_login(
                self._transport,
                session,
                user_id,
                first_time_login=first_time_login,
            )

        await self.call_with_reauth(_call)
        self._first_time_login_cache[user_id] = first_time_login

    def clear_user_cache(self, user_id: str) -> None:
        self._first_time_login_cache.pop(user_id, None)

    # ------------------------------------------------------------------
    # One-time codes
    # ------------------------------------------------------------------

    @staticmethod
    def generate_reset_code() -> str:
        """Return a random zero-padded six-digit code."""
        return f"{secrets.randbelow(10**OTP_LENGTH):0{OTP_LENGTH}d}"

    @staticmethod
    def verify_password_reset_code(submitted: str, expected: str) -> bool:
        """Compare a submitted code with one the caller already holds.

        This is a local comparison only; it proves nothing about the
        e-mail the backend sent.
        """
        if not expected:
            return False
        return secrets.compare_digest(submitted.encode(), expected.encode())

    async def request_password_reset_code(self, email: str) -> None:
        """Ask the backend to e-mail a one-time code (no account is created)."""
        await _auth_api.send_email_otp(self._transport, email)

    async def send_two_factor_code(self, email: str) -> None:
        """Generate a fresh local code and trigger the backend e-mail."""
        self._two_factor_code = self.generate_reset_code()
        await _auth_api.send_email_otp(self._transport, email)
        _logger.debug("Two-factor code sent to %s", email)

    def verify_local_two_factor_code(self, submitted: str) -> bool:
        """Check *submitted* against the locally generated two-factor code."""
        if self.verify_password_reset_code(submitted, self._two_factor_code):
            self.mark_2fa_completed()
            return True
        return False

    async def verify_otp(self, email: str, token: str) -> bool:
        """Verify an e-mailed code with the backend.

        On success the session it returns replaces the current one.
        A rejected code returns ``False``; transport failures and rate
        limits propagate.
        """
        try:
            auth_token = await _auth_api.verify_email_otp(self._transport, email, token)
        except FleetAuthenticationError as exc:
            _logger.info("OTP verification error: %s", exc)
            return False
        previous = self._session
        session = Session.from_token(auth_token, fallback_ttl=self._config.session_ttl)
        if previous is not None and previous.user_id == session.user_id and previous.role is not None:
            session = session.with_role(previous.role)
        self._store_session(session)
        return True

    async def verify_two_factor_code(self, email: str, token: str) -> bool:
        """Verify a two-factor code with the backend and mark the step done."""
        if await self.verify_otp(email, token):
            self.mark_2fa_completed()
            return True
        return False

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    async def update_user_password(self, password: str) -> None:
        """Set a new password for the signed-in (or OTP-verified) user."""

        async def _call() -> None:
            session = await self.ensure_session()
            await _auth_api.update_user_password(self._transport, session, password)

        await self.call_with_reauth(_call)

    async def check_if_same_password(self, email: str, password: str) -> bool:
        """Whether *password* is the account's current password.

        Checks with a password grant; the resulting token is discarded.
        """
        try:
            await _auth_api.sign_in_with_password(self._transport, email, password)
        except FleetInvalidCredentialsError:
            return False
        return True
