"""Field validators for the public intake endpoints.

Each ``validate_*`` function raises :class:`django.core.exceptions.ValidationError`
so it can be attached to model and form fields directly.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils import timezone

from blood.constants import BLOOD_GROUPS

EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_RE = re.compile(r"[0-9]{10}")
USERNAME_RE = re.compile(r"[a-zA-Z][a-zA-Z0-9_]*")
FULL_NAME_RE = re.compile(r"[a-zA-Z][a-zA-Z ]*")

EMAIL_MAX_LENGTH = 100
USERNAME_MIN_LENGTH, USERNAME_MAX_LENGTH = 3, 30
FULL_NAME_MIN_LENGTH, FULL_NAME_MAX_LENGTH = 2, 50
PASSWORD_MIN_LENGTH, PASSWORD_MAX_LENGTH = 8, 128

STRENGTH_EASY = 'Easy'
STRENGTH_NORMAL = 'Normal'
STRENGTH_HARD = 'Hard'


def is_valid_email(value: Optional[str]) -> bool:
    return bool(value) and EMAIL_RE.fullmatch(value) is not None


def is_valid_phone(value: Optional[str]) -> bool:
    """Exactly ten ASCII digits, no formatting characters."""
    return isinstance(value, str) and PHONE_RE.fullmatch(value) is not None


def validate_email_shape(value: str) -> None:
    if not is_valid_email(value) or len(value) > EMAIL_MAX_LENGTH:
        raise ValidationError(
            'Please enter a valid email address (max 100 characters).',
            code='invalid_email',
        )


def validate_phone(value: str) -> None:
    if not is_valid_phone(value):
        raise ValidationError('Phone number must be exactly 10 digits.', code='invalid_phone')


def validate_blood_type(value: str) -> None:
    if value not in BLOOD_GROUPS:
        raise ValidationError('Invalid blood type.', code='invalid_blood_type')


def validate_username(value: str) -> None:
    if not USERNAME_MIN_LENGTH <= len(value) <= USERNAME_MAX_LENGTH:
        raise ValidationError('Username must be between 3 and 30 characters.', code='username_length')
    if USERNAME_RE.fullmatch(value) is None:
        raise ValidationError(
            'Username must start with a letter and contain only letters, numbers, or underscores.',
            code='invalid_username',
        )


def validate_full_name(value: str) -> None:
    if value.startswith(' '):
        raise ValidationError('Full name should not start with space.', code='leading_space')
    trimmed = value.strip()
    if not FULL_NAME_MIN_LENGTH <= len(trimmed) <= FULL_NAME_MAX_LENGTH:
        raise ValidationError('Full name must be between 2 and 50 characters.', code='full_name_length')
    if FULL_NAME_RE.fullmatch(trimmed) is None:
        raise ValidationError(
            'Full name can only contain letters and spaces, and must start with a letter.',
            code='invalid_full_name',
        )


def validate_password_policy(value: str) -> None:
    if not PASSWORD_MIN_LENGTH <= len(value) <= PASSWORD_MAX_LENGTH:
        raise ValidationError('Password must be between 8 and 128 characters.', code='password_length')
    if any(ch.isspace() for ch in value):
        raise ValidationError('Password must not contain spaces.', code='password_space')


def age_on(dob: date, today: date) -> int:
    years = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        years -= 1
    return years


def validate_donor_age(dob: date, today: Optional[date] = None) -> None:
    today = today or timezone.localdate()
    min_age = int(getattr(settings, 'DONOR_MIN_AGE', 18))
    max_age = int(getattr(settings, 'DONOR_MAX_AGE', 65))
    if not min_age <= age_on(dob, today) <= max_age:
        raise ValidationError(
            f'Age must be between {min_age} and {max_age} years.',
            code='age_out_of_range',
        )


@dataclass(frozen=True)
class PasswordFeedback:
    strength: str
    message: str
    valid: bool


def classify_password(password: str) -> PasswordFeedback:
    """Rate a password for the strength meter.

    Counts how many of {letters, digits, symbols} are present: all three is
    Hard, two is Normal, fewer is Easy. Whitespace always rates Easy. This is
    feedback only; acceptance is decided by :func:`validate_password_policy`.
    """

    if any(ch.isspace() for ch in password):
        return PasswordFeedback(STRENGTH_EASY, 'Password must not contain spaces.', False)

    has_letter = any('a' <= ch.lower() <= 'z' for ch in password)
    has_digit = any('0' <= ch <= '9' for ch in password)
    has_symbol = any(not ('a' <= ch.lower() <= 'z' or '0' <= ch <= '9') for ch in password)
    kinds = has_letter + has_digit + has_symbol

    valid = PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH
    if kinds == 3:
        return PasswordFeedback(STRENGTH_HARD, 'Strong password.', valid)
    if kinds == 2:
        return PasswordFeedback(
            STRENGTH_NORMAL,
            'Add a letter, a number and a special symbol for a stronger password.',
            valid,
        )
    return PasswordFeedback(STRENGTH_EASY, 'Mix letters, numbers and symbols.', valid)
