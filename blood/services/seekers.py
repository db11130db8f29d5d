"""Duplicate-submission guard for public blood requests."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from django.conf import settings


def cooldown_window_seconds() -> int:
    return int(getattr(settings, "SEEKER_COOLDOWN_SECONDS", 30))


def cooldown_remaining(
    last_submitted_at: Optional[datetime],
    now: datetime,
    window: Optional[int] = None,
) -> Optional[int]:
    """Seconds the caller must wait, or ``None`` when a new submission is allowed.

    The wait is ``window - whole seconds elapsed``, kept within ``1..window``.
    """

    if last_submitted_at is None:
        return None
    window = cooldown_window_seconds() if window is None else int(window)
    elapsed = (now - last_submitted_at).total_seconds()
    if elapsed >= window:
        return None
    remaining = window - math.floor(elapsed)
    return max(1, min(window, remaining))
