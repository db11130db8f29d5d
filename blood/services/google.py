"""Google sign-in: exchange an access token for the account's profile."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class GoogleAuthError(Exception):
    pass


@dataclass(frozen=True)
class GoogleProfile:
    subject: str
    email: str
    name: str
    picture: Optional[str] = None


def fetch_google_profile(credential: str, *, session=None) -> GoogleProfile:
    url = getattr(settings, 'GOOGLE_USERINFO_URL', 'https://www.googleapis.com/oauth2/v3/userinfo')
    timeout = float(getattr(settings, 'GOOGLE_USERINFO_TIMEOUT_SECONDS', 5))
    http = session or requests
    try:
        response = http.get(url, headers={'Authorization': f'Bearer {credential}'}, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Google userinfo lookup failed: %s", exc)
        raise GoogleAuthError('Google auth failed.') from exc

    subject = payload.get('sub')
    email = payload.get('email')
    if not subject or not email:
        raise GoogleAuthError('Google auth failed.')
    return GoogleProfile(
        subject=str(subject),
        email=email,
        name=payload.get('name') or email.split('@')[0],
        picture=payload.get('picture'),
    )
