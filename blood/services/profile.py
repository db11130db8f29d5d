"""Profile completeness check used to decide whether to prompt a donor."""

from __future__ import annotations

from typing import Any, List

from blood.utils.validators import is_valid_phone

REQUIRED_LOCATION_FIELDS = ("state", "district", "city")


def _read(donor: Any, name: str):
    if isinstance(donor, dict):
        return donor.get(name)
    return getattr(donor, name, None)


def _filled(value) -> bool:
    return isinstance(value, str) and value.strip() != ""


def missing_profile_fields(donor: Any) -> List[str]:
    missing = []
    if not _filled(_read(donor, "gender")):
        missing.append("gender")
    if not is_valid_phone(_read(donor, "phone")):
        missing.append("phone")
    for name in REQUIRED_LOCATION_FIELDS:
        if not _filled(_read(donor, name)):
            missing.append(name)
    return missing


def is_profile_complete(donor: Any) -> bool:
    """True when gender, a 10-digit phone, state, district and city are all present."""
    return not missing_profile_fields(donor)
