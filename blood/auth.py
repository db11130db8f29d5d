"""Bearer tokens for the JSON API.

Tokens are signed with ``django.core.signing`` and carry the account role and
the id of the role's profile row. Views decorated with
:func:`api_auth_required` receive the decoded :class:`AuthSession` as
``request.auth``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Optional

from django.conf import settings
from django.contrib.auth.models import User
from django.core import signing
from django.views.decorators.csrf import csrf_exempt

from .utils.http import error_response

logger = logging.getLogger(__name__)

ROLE_DONOR = 'donor'
ROLE_ORGANIZATION = 'organization'
ROLE_ADMIN = 'admin'

TOKEN_SALT = 'ebloodbank.auth'


@dataclass(frozen=True)
class AuthSession:
    user_id: int
    role: str
    subject_id: int


def _max_age_for(role: str) -> int:
    if role == ROLE_ADMIN:
        return int(getattr(settings, 'ADMIN_TOKEN_MAX_AGE_SECONDS', 24 * 60 * 60))
    return int(getattr(settings, 'AUTH_TOKEN_MAX_AGE_SECONDS', 7 * 24 * 60 * 60))


def issue_token(user: User, role: str, subject_id: Optional[int] = None) -> str:
    payload = {'uid': user.pk, 'role': role, 'sid': subject_id if subject_id is not None else user.pk}
    return signing.dumps(payload, salt=TOKEN_SALT, compress=True)


def read_token(token: str) -> AuthSession:
    """Decode ``token``; raises :class:`signing.BadSignature` (or its
    ``SignatureExpired`` subclass) when it is forged or too old."""

    # Expiry depends on the role, so read the payload first and then
    # re-check the timestamp against the role's limit.
    payload = signing.loads(token, salt=TOKEN_SALT)
    role = payload.get('role')
    signing.loads(token, salt=TOKEN_SALT, max_age=_max_age_for(role))
    try:
        return AuthSession(int(payload['uid']), str(role), int(payload['sid']))
    except (KeyError, TypeError, ValueError) as exc:
        raise signing.BadSignature('Malformed token payload') from exc


def bearer_token(request) -> Optional[str]:
    header = request.META.get('HTTP_AUTHORIZATION', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


def api_auth_required(*roles):
    """Require a valid bearer token whose role is one of ``roles``.

    Responds 401 when the token is missing, invalid or expired and 403 when
    it belongs to another role.
    """

    def decorator(view_func):
        @csrf_exempt
        @wraps(view_func)
        def _wrapped(request, *args, **kwargs):
            token = bearer_token(request)
            if token is None:
                return error_response('Authentication required.', status=401)
            try:
                session = read_token(token)
            except signing.SignatureExpired:
                return error_response('Session expired. Please log in again.', status=401)
            except signing.BadSignature:
                logger.info("Rejected bearer token for %s", request.path)
                return error_response('Invalid token.', status=401)

            if roles and session.role not in roles:
                return error_response('You do not have access to this resource.', status=403)
            if not User.objects.filter(pk=session.user_id, is_active=True).exists():
                return error_response('Account is no longer active.', status=401)

            request.auth = session
            return view_func(request, *args, **kwargs)

        return _wrapped

    return decorator
