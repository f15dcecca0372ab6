"""Authentication: session manager, sign-in, two-factor and password reset flows."""

from pyfleet.auth.countdown import ResendCountdown
from pyfleet.auth.manager import AuthManager
from pyfleet.auth.password_reset import FirstLoginPasswordReset, PasswordResetStep, PasswordResetWizard
from pyfleet.auth.sign_in import SignInFlow
from pyfleet.auth.two_factor import TwoFactorFlow, TwoFactorMode, TwoFactorState
from pyfleet.auth.validation import (
    PasswordCriteria,
    evaluate_password,
    is_valid_email,
    is_valid_otp,
    sanitize_otp_input,
    validate_reset_password,
)

__all__ = [
    "AuthManager",
    "FirstLoginPasswordReset",
    "PasswordCriteria",
    "PasswordResetStep",
    "PasswordResetWizard",
    "ResendCountdown",
    "SignInFlow",
    "TwoFactorFlow",
    "TwoFactorMode",
    "TwoFactorState",
    "evaluate_password",
    "is_valid_email",
    "is_valid_otp",
    "sanitize_otp_input",
    "validate_reset_password",
]
