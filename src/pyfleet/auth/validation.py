"""Input validators shared by the sign-in, two-factor and reset flows."""

from __future__ import annotations

import re
from dataclasses import dataclass

from pyfleet._constants import MIN_PASSWORD_LENGTH, OTP_LENGTH
from pyfleet.exceptions import PasswordResetFailure, PasswordUpdateFailure

_EMAIL_RE = re.compile(r"[A-Z0-9a-z._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,64}")
_LOWER_RE = re.compile(r"[a-z]")
_UPPER_RE = re.compile(r"[A-Z]")
_DIGIT_RE = re.compile(r"[0-9]")
_SPECIAL_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")


def is_valid_email(value: str) -> bool:
    """Whether the whole of *value* looks like an e-mail address."""
    return _EMAIL_RE.fullmatch(value) is not None


def sanitize_otp_input(value: str) -> str:
    """Keep only digits and truncate to the code length."""
    return "".join(ch for ch in value if "0" <= ch <= "9")[:OTP_LENGTH]


def is_valid_otp(value: str) -> bool:
    return len(value) == OTP_LENGTH and all("0" <= ch <= "9" for ch in value)


def validate_reset_password(password: str, confirmation: str) -> PasswordResetFailure | None:
    """Check a forgotten-password replacement.

    Returns the failure reason, or ``None`` when the pair is acceptable.
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        return PasswordResetFailure.INVALID_PASSWORD
    if password != confirmation:
        return PasswordResetFailure.PASSWORDS_DO_NOT_MATCH
    return None


@dataclass(frozen=True)
class PasswordCriteria:
    """Live strength checklist for a first-login password.

    Parameters
    ----------
    has_min_length : bool
        At least eight characters.
    has_lowercase, has_uppercase, has_digit : bool
        At least one of each character class.
    has_special_char : bool
        At least one character from ``!@#$%^&*()_+-=[]{};':"\\|,.<>/?``.
    passwords_match : bool
        The confirmation is non-empty and equal to the password.
    """

    has_min_length: bool = False
    has_lowercase: bool = False
    has_uppercase: bool = False
    has_digit: bool = False
    has_special_char: bool = False
    passwords_match: bool = False

    @property
    def is_valid(self) -> bool:
        return all(
            (
                self.has_min_length,
                self.has_lowercase,
                self.has_uppercase,
                self.has_digit,
                self.has_special_char,
                self.passwords_match,
            )
        )

    @property
    def failures(self) -> list[PasswordUpdateFailure]:
        """Unmet requirements, in checklist order."""
        checks = (
            (self.has_min_length, PasswordUpdateFailure.PASSWORD_TOO_SHORT),
            (self.has_lowercase, PasswordUpdateFailure.NO_LOWERCASE),
            (self.has_uppercase, PasswordUpdateFailure.NO_UPPERCASE),
            (self.has_digit, PasswordUpdateFailure.NO_DIGIT),
            (self.has_special_char, PasswordUpdateFailure.NO_SPECIAL_CHAR),
            (self.passwords_match, PasswordUpdateFailure.PASSWORDS_DO_NOT_MATCH),
        )
        return [reason for ok, reason in checks if not ok]


def evaluate_password(password: str, confirmation: str) -> PasswordCriteria:
    return PasswordCriteria(
        has_min_length=len(password) >= MIN_PASSWORD_LENGTH,
        has_lowercase=_LOWER_RE.search(password) is not None,
        has_uppercase=_UPPER_RE.search(password) is not None,
        has_digit=_DIGIT_RE.search(password) is not None,
        has_special_char=_SPECIAL_RE.search(password) is not None,
        passwords_match=bool(confirmation) and password == confirmation,
    )
