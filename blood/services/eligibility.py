"""Donor eligibility from donation history.

A donor may give blood again once ``DONATION_RECOVERY_DAYS`` (90 by default)
have passed since their most recent donation. The calculation is pure: it
never touches the database and never raises on bad input; anything it cannot
read as a date is ignored, and a history with no readable dates is eligible.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Optional

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

logger = logging.getLogger(__name__)


def get_recovery_days() -> int:
    return int(getattr(settings, "DONATION_RECOVERY_DAYS", 90))


@dataclass(frozen=True)
class Countdown:
    days: int
    hours: int
    minutes: int
    seconds: int

    def as_dict(self) -> dict:
        return {
            "days": self.days,
            "hours": self.hours,
            "minutes": self.minutes,
            "seconds": self.seconds,
        }


@dataclass(frozen=True)
class EligibilityResult:
    is_eligible: bool
    last_donation_date: Optional[date] = None
    next_eligible_date: Optional[datetime] = None
    countdown: Optional[Countdown] = None

    def as_dict(self) -> dict:
        return {
            "isEligible": self.is_eligible,
            "lastDonationDate": self.last_donation_date,
            "nextEligibleDate": self.next_eligible_date,
            "countdown": self.countdown.as_dict() if self.countdown else None,
        }


def coerce_donation_date(value: Any) -> Optional[date]:
    """Read a donation date from a date, datetime, ISO string, record or mapping."""

    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get("date")
    elif not isinstance(value, (date, str)) and hasattr(value, "date"):
        value = value.date
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localtime(value).date()
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            parsed = parse_date(text)
            if parsed is None:
                parsed_dt = parse_datetime(text)
                if parsed_dt is not None:
                    return coerce_donation_date(parsed_dt)
        except ValueError:
            parsed = None
        return parsed
    return None


def latest_donation_date(donations: Iterable[Any]) -> Optional[date]:
    latest: Optional[date] = None
    for donation in donations or ():
        donated_on = coerce_donation_date(donation)
        if donated_on is None:
            logger.debug("Ignoring donation with unreadable date: %r", donation)
            continue
        if latest is None or donated_on > latest:
            latest = donated_on
    return latest


def next_eligible_from(last_donation: date, recovery_days: Optional[int] = None) -> datetime:
    """Start of the day ``recovery_days`` after ``last_donation`` in the active time zone."""

    days = get_recovery_days() if recovery_days is None else int(recovery_days)
    resume_on = last_donation + timedelta(days=days)
    return timezone.make_aware(datetime.combine(resume_on, time.min))


def countdown_between(now: datetime, target: datetime) -> Countdown:
    remaining_ms = max(0, int((target - now) / timedelta(milliseconds=1)))
    total_seconds = remaining_ms // 1000
    days = total_seconds // 86400
    hours = (total_seconds % 86400) // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return Countdown(max(0, days), max(0, hours), max(0, minutes), max(0, seconds))


def compute_eligibility(
    donations: Iterable[Any],
    *,
    now: Optional[datetime] = None,
    recovery_days: Optional[int] = None,
) -> EligibilityResult:
    """Decide whether a donor may donate at ``now`` given their donation history."""

    last = latest_donation_date(donations)
    if last is None:
        return EligibilityResult(is_eligible=True)

    try:
        next_eligible = next_eligible_from(last, recovery_days)
    except (OverflowError, ValueError):
        logger.warning("Could not derive next eligible date from %s", last)
        return EligibilityResult(is_eligible=True, last_donation_date=last)

    now = now or timezone.now()
    if now >= next_eligible:
        return EligibilityResult(True, last, next_eligible, None)
    return EligibilityResult(False, last, next_eligible, countdown_between(now, next_eligible))
