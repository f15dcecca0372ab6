"""Two-factor verification step that follows a password sign-in."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum

from pyfleet.auth.countdown import ResendCountdown
from pyfleet.auth.manager import AuthManager
from pyfleet.auth.validation import is_valid_otp, sanitize_otp_input
from pyfleet.exceptions import FleetError, TwoFactorError, TwoFactorFailure
from pyfleet.models.users import AppUser

_logger = logging.getLogger(__name__)


class TwoFactorState(StrEnum):
    PENDING = "pending"
    VERIFIED = "verified"
    CANCELLED = "cancelled"


class TwoFactorMode(StrEnum):
    """Where a submitted code is checked.

    ``SERVER`` verifies against the code the backend e-mailed.  ``LOCAL``
    compares with the code generated in this process.
    """

    SERVER = "server"
    LOCAL = "local"


class TwoFactorFlow:
    """Drive the e-mail code step for a pending user.

    ``PENDING`` moves to ``VERIFIED`` on a correct code.  A wrong code
    signs the session out, drops the pending user and moves to
    ``CANCELLED``; the user has to sign in again.

    Parameters
    ----------
    auth : AuthManager
        Manager holding the half-authenticated session.
    user : AppUser
        The user who passed the password step.
    countdown : ResendCountdown, optional
        Resend gate.  Defaults to the configured resend interval.
    mode : TwoFactorMode
        Verification mode.
    on_cancel : callable, optional
        Called once when the flow moves to ``CANCELLED``.
    """

    def __init__(
        self,
        auth: AuthManager,
        user: AppUser,
        *,
        countdown: ResendCountdown | None = None,
        mode: TwoFactorMode = TwoFactorMode.SERVER,
        on_cancel: Callable[[], None] | None = None,
    ) -> None:
        self._auth = auth
        self._user: AppUser | None = user
        self._countdown = countdown or ResendCountdown()
        self._mode = mode
        self._on_cancel = on_cancel
        self._code = ""
        self.state = TwoFactorState.PENDING
        self.is_loading = False
        self.error_message: str | None = None
        self.info_message: str | None = None

    @property
    def user(self) -> AppUser | None:
        return self._user

    @property
    def countdown(self) -> ResendCountdown:
        return self._countdown

    @property
    def verification_code(self) -> str:
        return self._code

    @verification_code.setter
    def verification_code(self, value: str) -> None:
        self._code = sanitize_otp_input(value)

    @property
    def can_submit(self) -> bool:
        return self.state == TwoFactorState.PENDING and is_valid_otp(self._code)

    def _fail(self, reason: TwoFactorFailure) -> TwoFactorError:
        self.error_message = reason.value
        return TwoFactorError(reason)

    def _email(self) -> str:
        if self.state != TwoFactorState.PENDING or self._user is None:
            raise self._fail(TwoFactorFailure.NOT_PENDING)
        email = self._user.email
        if not email:
            raise self._fail(TwoFactorFailure.EMAIL_UNAVAILABLE)
        return email

    async def send_verification_code(self) -> None:
        """(Re)send the code, gated by the resend countdown.

        Raises
        ------
        TwoFactorError
            If the countdown is still running, no user is pending or the
            user has no e-mail.
        """
        email = self._email()
        if not self._countdown.can_resend:
            raise self._fail(TwoFactorFailure.RESEND_NOT_READY)

        self.is_loading = True
        self.error_message = None
        try:
            await self._auth.send_two_factor_code(email)
        except FleetError as exc:
            self.error_message = f"Failed to send verification code: {exc}"
            raise
        finally:
            self.is_loading = False

        self.info_message = f"Verification code sent to {email}"
        self._countdown.start_background()

    async def verify_code(self) -> AppUser:
        """Check the entered code.

        Returns
        -------
        AppUser
            The now fully authenticated user.

        Raises
        ------
        TwoFactorError
            ``INVALID_CODE`` when the code is wrong (the flow is cancelled
            and the session signed out) or is not six digits (nothing is
            sent and the flow stays pending), ``NOT_PENDING`` when the
            flow is already finished.
        """
        email = self._email()
        if not is_valid_otp(self._code):
            raise self._fail(TwoFactorFailure.INVALID_CODE)
        user = self._user
        assert user is not None  # noqa: S101

        self.is_loading = True
        try:
            if self._mode == TwoFactorMode.LOCAL:
                verified = self._auth.verify_local_two_factor_code(self._code)
            else:
                verified = await self._auth.verify_two_factor_code(email, self._code)
        finally:
            self.is_loading = False

        if not verified:
            await self.cancel()
            raise self._fail(TwoFactorFailure.INVALID_CODE)

        self.error_message = None
        self.state = TwoFactorState.VERIFIED
        self._countdown.invalidate()
        return user

    async def cancel(self) -> None:
        """Abandon the step: sign out and drop the pending user."""
        if self.state == TwoFactorState.CANCELLED:
            return
        self._countdown.invalidate()
        self._user = None
        self.state = TwoFactorState.CANCELLED
        if self._on_cancel is not None:
            self._on_cancel()
        try:
            await self._auth.sign_out()
        except FleetError as exc:
            _logger.warning("Sign-out after failed verification failed: %s", exc)
