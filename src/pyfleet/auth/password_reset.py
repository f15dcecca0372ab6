"""Forgotten-password wizard and first-login password replacement."""

from __future__ import annotations

import logging
from enum import StrEnum

from pyfleet.auth.countdown import ResendCountdown
from pyfleet.auth.manager import AuthManager
from pyfleet.auth.validation import (
    PasswordCriteria,
    evaluate_password,
    is_valid_email,
    is_valid_otp,
    sanitize_otp_input,
    validate_reset_password,
)
from pyfleet.exceptions import (
    FleetError,
    FleetRateLimitError,
    PasswordResetError,
    PasswordResetFailure,
    PasswordUpdateError,
    PasswordUpdateFailure,
)

_logger = logging.getLogger(__name__)


class PasswordResetStep(StrEnum):
    EMAIL_ENTRY = "emailEntry"
    OTP_VERIFICATION = "otpVerification"
    NEW_PASSWORD_ENTRY = "newPasswordEntry"
    COMPLETED = "completed"


class PasswordResetWizard:
    """Four-step password reset: e-mail, code, new password, done.

    Each step only advances after its remote call succeeds; any failure
    leaves :attr:`current_step` unchanged, sets :attr:`error_message` and
    raises :class:`PasswordResetError`.  There are no backward
    transitions.

    Usage::

        wizard = PasswordResetWizard(auth)
        wizard.email = "user@example.com"
        await wizard.request_otp()
        wizard.otp_code = "123456"
        await wizard.verify_otp()
        wizard.new_password = wizard.confirm_password = "s3cret-pass"
        await wizard.update_password()
    """

    def __init__(self, auth: AuthManager, *, countdown: ResendCountdown | None = None) -> None:
        self._auth = auth
        self._countdown = countdown or ResendCountdown(auth.resend_seconds)
        self._otp = ""
        self.current_step = PasswordResetStep.EMAIL_ENTRY
        self.email = ""
        self.new_password = ""
        self.confirm_password = ""
        self.is_loading = False
        self.error_message: str | None = None

    @property
    def countdown(self) -> ResendCountdown:
        return self._countdown

    @property
    def otp_code(self) -> str:
        return self._otp

    @otp_code.setter
    def otp_code(self, value: str) -> None:
        self._otp = sanitize_otp_input(value)

    def _fail(self, reason: PasswordResetFailure) -> PasswordResetError:
        self.error_message = reason.value
        return PasswordResetError(reason)

    def _require_step(self, step: PasswordResetStep) -> None:
        if self.current_step != step:
            raise self._fail(PasswordResetFailure.OUT_OF_ORDER)

    def _remote_failure(self, exc: FleetError) -> PasswordResetError:
        _logger.error("Password reset step %s failed: %s", self.current_step, exc)
        if isinstance(exc, FleetRateLimitError):
            return self._fail(PasswordResetFailure.RESEND_NOT_READY)
        return self._fail(PasswordResetFailure.RESET_FAILED)

    async def _send_code(self) -> None:
        self.is_loading = True
        try:
            await self._auth.request_password_reset_code(self.email)
        except FleetError as exc:
            raise self._remote_failure(exc) from exc
        finally:
            self.is_loading = False
        self._countdown.start_background()

    async def request_otp(self) -> None:
        """Send a one-time code to :attr:`email` and move to code entry."""
        self._require_step(PasswordResetStep.EMAIL_ENTRY)
        self.email = self.email.strip()
        if not is_valid_email(self.email):
            raise self._fail(PasswordResetFailure.INVALID_EMAIL)
        await self._send_code()
        self.error_message = None
        self.current_step = PasswordResetStep.OTP_VERIFICATION

    async def resend_otp(self) -> None:
        """Send another code once the resend countdown has run out."""
        self._require_step(PasswordResetStep.OTP_VERIFICATION)
        if not self._countdown.can_resend:
            raise self._fail(PasswordResetFailure.RESEND_NOT_READY)
        await self._send_code()
        self.error_message = None

    async def verify_otp(self) -> None:
        """Verify :attr:`otp_code` with the backend and move to password entry."""
        self._require_step(PasswordResetStep.OTP_VERIFICATION)
        if not is_valid_otp(self._otp):
            raise self._fail(PasswordResetFailure.INVALID_OTP)

        self.is_loading = True
        try:
            verified = await self._auth.verify_otp(self.email, self._otp)
        except FleetError as exc:
            raise self._remote_failure(exc) from exc
        finally:
            self.is_loading = False

        if not verified:
            raise self._fail(PasswordResetFailure.INVALID_OTP)
        self.error_message = None
        self._countdown.invalidate()
        self.current_step = PasswordResetStep.NEW_PASSWORD_ENTRY

    async def update_password(self) -> None:
        """Store :attr:`new_password` for the verified user and finish."""
        self._require_step(PasswordResetStep.NEW_PASSWORD_ENTRY)
        reason = validate_reset_password(self.new_password, self.confirm_password)
        if reason is not None:
            raise self._fail(reason)

        self.is_loading = True
        try:
            await self._auth.update_user_password(self.new_password)
        except FleetError as exc:
            raise self._remote_failure(exc) from exc
        finally:
            self.is_loading = False

        self.error_message = None
        self.current_step = PasswordResetStep.COMPLETED


class FirstLoginPasswordReset:
    """Replace the temporary password a new account was created with."""

    def __init__(self, auth: AuthManager) -> None:
        self._auth = auth
        self.criteria = PasswordCriteria()

    @property
    def is_password_valid(self) -> bool:
        return self.criteria.is_valid

    def validate_password_criteria(self, password: str, confirm_password: str) -> PasswordCriteria:
        """Re-evaluate the live checklist for the current input."""
        self.criteria = evaluate_password(password, confirm_password)
        return self.criteria

    async def update_password_and_first_time_login_status(
        self,
        user_id: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        """Set the new password and clear the first-time-login flag.

        Raises
        ------
        PasswordUpdateError
            If the password does not satisfy every criterion.  Nothing is
            sent to the backend.
        """
        if not self.validate_password_criteria(new_password, confirm_password).is_valid:
            raise PasswordUpdateError(PasswordUpdateFailure.INVALID_PASSWORD)

        await self._auth.update_user_password(new_password)
        await self._auth.update_first_time_login_status(user_id, False)
        self._auth.clear_user_cache(user_id)
