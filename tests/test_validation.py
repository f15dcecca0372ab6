from __future__ import annotations

import pytest

from pyfleet.auth.validation import (
    evaluate_password,
    is_valid_email,
    is_valid_otp,
    sanitize_otp_input,
    validate_reset_password,
)
from pyfleet.exceptions import PasswordResetFailure, PasswordUpdateFailure


@pytest.mark.parametrize("value", ["user@example.com", "first.last+fleet@mail.example.co", "A_B%c@x-y.io"])
def test_valid_emails(value: str) -> None:
    assert is_valid_email(value)


@pytest.mark.parametrize("value", ["", "plainstring", "user@@example", "user@example", "user@example.c", " user@example.com"])
def test_invalid_emails(value: str) -> None:
    assert not is_valid_email(value)


def test_sanitize_otp_input_keeps_six_digits() -> None:
    assert sanitize_otp_input("12a3-45 6789") == "123456"
    assert sanitize_otp_input("abc") == ""
    assert sanitize_otp_input("0012") == "0012"


def test_is_valid_otp() -> None:
    assert is_valid_otp("000123")
    assert not is_valid_otp("12345")
    assert not is_valid_otp("1234567")
    assert not is_valid_otp("12a456")


def test_validate_reset_password_checks_length_before_match() -> None:
    assert validate_reset_password("short", "different") == PasswordResetFailure.INVALID_PASSWORD
    assert validate_reset_password("longenough", "longenougH") == PasswordResetFailure.PASSWORDS_DO_NOT_MATCH
    assert validate_reset_password("longenough", "longenough") is None


def test_evaluate_password_all_criteria_met() -> None:
    criteria = evaluate_password("Str0ng!pass", "Str0ng!pass")
    assert criteria.is_valid
    assert criteria.failures == []


def test_evaluate_password_reports_each_missing_class() -> None:
    criteria = evaluate_password("abcdefgh", "abcdefgh")
    assert criteria.has_min_length
    assert criteria.has_lowercase
    assert criteria.passwords_match
    assert not criteria.is_valid
    assert criteria.failures == [
        PasswordUpdateFailure.NO_UPPERCASE,
        PasswordUpdateFailure.NO_DIGIT,
        PasswordUpdateFailure.NO_SPECIAL_CHAR,
    ]


def test_evaluate_password_empty_confirmation_never_matches() -> None:
    assert not evaluate_password("", "").passwords_match
    assert not evaluate_password("Str0ng!pass", "").passwords_match


@pytest.mark.parametrize("special", list("!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"))
def test_every_listed_special_character_counts(special: str) -> None:
    assert evaluate_password(f"Abcdef1{special}", "").has_special_char


def test_space_is_not_a_special_character() -> None:
    assert not evaluate_password("Abcdef1 x", "").has_special_char
