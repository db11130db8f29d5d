"""Four-digit password reset codes delivered by email."""

from __future__ import annotations

import logging
import secrets
from typing import Optional

from django.conf import settings
from django.contrib.auth.models import User
from django.core.mail import send_mail
from django.utils import timezone

from blood.models import PasswordResetCode

logger = logging.getLogger(__name__)


def generate_code() -> str:
    return f"{secrets.randbelow(9000) + 1000}"


def issue_code(user: User) -> PasswordResetCode:
    """Replace any outstanding code for ``user`` with a fresh one."""

    PasswordResetCode.objects.filter(user=user).delete()
    return PasswordResetCode.objects.create(user=user, code=generate_code())


def email_code(reset: PasswordResetCode) -> int:
    ttl = int(getattr(settings, 'PASSWORD_RESET_CODE_TTL_MINUTES', 10))
    body = (
        f"Your eBloodBank password reset code is {reset.code}.\n\n"
        f"It expires in {ttl} minutes. If you did not ask for a reset, ignore this email."
    )
    return send_mail('eBloodBank password reset code', body, None, [reset.user.email])


def find_valid_code(user: User, code: str, now=None) -> Optional[PasswordResetCode]:
    reset = PasswordResetCode.objects.filter(user=user, code=str(code or '').strip()).first()
    if reset is None or reset.is_expired(now or timezone.now()):
        return None
    return reset


def reset_password(user: User, code: str, new_password: str) -> bool:
    reset = find_valid_code(user, code)
    if reset is None:
        return False
    user.set_password(new_password)
    user.save(update_fields=['password'])
    PasswordResetCode.objects.filter(user=user).delete()
    logger.info("Password reset completed for user %s", user.pk)
    return True
