from __future__ import annotations

import re
from typing import Optional

from django.conf import settings


def default_country_code() -> str:
    code = str(getattr(settings, "AWS_SNS_DEFAULT_COUNTRY_CODE", None) or "+91")
    return code if code.startswith("+") else f"+{code}"


def normalize_phone_number(raw: Optional[str], country_code: Optional[str] = None) -> Optional[str]:
    """E.164 form of a donor phone number for SMS delivery.

    Donor profiles store ten local digits ("9876543210"); those get the
    default country code. Numbers already carrying "+" keep their own code,
    and a trunk "0" prefix is dropped. Returns None when nothing dialable
    remains.
    """

    if not raw:
        return None

    cleaned = re.sub(r"[\s\-()]+", "", str(raw).strip())
    if cleaned.startswith("+"):
        digits = "+" + re.sub(r"[^0-9]", "", cleaned)
        return digits if len(digits) >= 8 else None

    digits_only = re.sub(r"[^0-9]", "", cleaned).lstrip("0")
    if len(digits_only) < 7:
        return None

    code = country_code or default_country_code()
    if not code.startswith("+"):
        code = f"+{code}"
    # Country code typed without '+'
    if len(digits_only) > 10 and digits_only.startswith(code.lstrip("+")):
        return f"+{digits_only}"
    return f"{code}{digits_only}"


def mask_phone_number(phone: Optional[str]) -> str:
    if not phone:
        return ""
    return f"{'*' * max(len(phone) - 4, 0)}{phone[-4:]}"
