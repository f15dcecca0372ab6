"""Custom exception hierarchy for pyfleet."""

from __future__ import annotations

from enum import StrEnum


class FleetError(Exception):
    """Base exception for all pyfleet errors."""


class FleetConfigError(FleetError):
    """Invalid or missing configuration."""


class FleetTransportError(FleetError):
    """HTTP-level failure (network, timeout, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class FleetApiError(FleetError):
    """Backend answered with a non-2xx status (application-level error)."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
        status_code: int | None = None,
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(message)


class FleetAuthenticationError(FleetApiError):
    """Sign-in failed, or an operation needs a session and none is active."""


class FleetInvalidCredentialsError(FleetAuthenticationError):
    """Email or password rejected by the auth endpoint."""


class FleetInactiveUserError(FleetAuthenticationError):
    """Credentials are valid but the account's working status is off.

    The session is signed out before this is raised.
    """


class FleetSessionExpiredError(FleetAuthenticationError):
    """Access token rejected or expired.

    The client catches this internally to refresh the session and retry
    the call once.
    """


class FleetRateLimitError(FleetApiError):
    """Backend throttled the request (HTTP 429 or OTP send limit)."""


# ------------------------------------------------------------------
# Local validation errors raised by the auth flows
# ------------------------------------------------------------------


class SignInFailure(StrEnum):
    INVALID_FORM = "Email or password is incorrect."
    INVALID_EMAIL = "Please enter a valid email address."
    EMPTY_FIELDS = "Please enter your email and password."


class PasswordResetFailure(StrEnum):
    INVALID_EMAIL = "Please enter a valid email address."
    INVALID_OTP = "The verification code is incorrect. Please try again."
    INVALID_PASSWORD = "Password must be at least 8 characters."
    PASSWORDS_DO_NOT_MATCH = "Passwords do not match."
    RESEND_NOT_READY = "Please wait before requesting another OTP. Try again in a few seconds."
    OUT_OF_ORDER = "This step of the password reset is not available yet."
    RESET_FAILED = "Failed to reset password. Please try again."


class PasswordUpdateFailure(StrEnum):
    INVALID_PASSWORD = "Password does not meet all requirements."
    PASSWORD_TOO_SHORT = "Password must be at least 8 characters long."
    NO_LOWERCASE = "Include at least 1 lowercase letter."
    NO_UPPERCASE = "Include at least 1 uppercase letter."
    NO_DIGIT = "Include at least 1 number."
    NO_SPECIAL_CHAR = "Include at least 1 special character (!@#$%^&*)."
    PASSWORDS_DO_NOT_MATCH = "Passwords do not match."


class TwoFactorFailure(StrEnum):
    EMAIL_UNAVAILABLE = "User email not available"
    INVALID_CODE = "Invalid verification code. Please try again."
    RESEND_NOT_READY = "Please wait before requesting another OTP. Try again in a few seconds."
    NOT_PENDING = "There is no pending verification for this sign-in."


class FleetValidationError(FleetError):
    """Local input validation failed before (or instead of) a remote call.

    ``reason`` is a string enum whose value is the user-facing message.
    """

    def __init__(self, reason: StrEnum) -> None:
        self.reason = reason
        super().__init__(str(reason))


class SignInError(FleetValidationError):
    """Sign-in form rejected locally."""


class PasswordResetError(FleetValidationError):
    """A password reset wizard step failed; the wizard did not advance."""


class PasswordUpdateError(FleetValidationError):
    """A first-login password does not satisfy the strength rules."""


class TwoFactorError(FleetValidationError):
    """Two-factor verification failed or was requested out of turn."""
