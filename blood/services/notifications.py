"""In-app notification fan-out for emergency requests and admin broadcasts."""

from __future__ import annotations

import logging
from typing import List

from django.conf import settings
from django.core.mail import send_mail

from blood.models import Notification
from donor.models import Donor

logger = logging.getLogger(__name__)

AUDIENCE_DONORS = 'donors'
AUDIENCE_ORGANIZATIONS = 'organizations'
AUDIENCE_ALL = 'all'
AUDIENCES = (AUDIENCE_DONORS, AUDIENCE_ORGANIZATIONS, AUDIENCE_ALL)


def matching_members(emergency_request) -> List[Donor]:
    """Members of the requesting organization with the requested blood type who can donate today."""

    return list(
        Donor.objects.eligible()
        .select_related('user')
        .filter(
            memberships__organization=emergency_request.organization,
            blood_type=emergency_request.blood_group,
        )
        .distinct()
        .order_by('id')
    )


def emergency_message(emergency_request) -> str:
    org_name = emergency_request.organization.name or 'An Organization'
    if emergency_request.description:
        briefing = f"Briefing: {emergency_request.description}"
    else:
        briefing = 'Please help if possible.'
    return f"{org_name} needs {emergency_request.blood_group} blood. {briefing}"


def broadcast_emergency(emergency_request) -> List[Donor]:
    donors = matching_members(emergency_request)
    if not donors:
        logger.info("No matching members for emergency request %s", emergency_request.pk)
        return []

    title = f"Emergency {emergency_request.blood_group} Required"
    message = emergency_message(emergency_request)
    Notification.objects.bulk_create(
        [
            Notification(
                donor=donor,
                kind=Notification.KIND_EMERGENCY,
                title=title,
                message=message,
                source_request=emergency_request,
            )
            for donor in donors
        ]
    )
    logger.info("Emergency request %s notified %s donor(s)", emergency_request.pk, len(donors))
    return donors


def clear_emergency_notifications(emergency_request) -> int:
    deleted, _ = Notification.objects.filter(
        source_request=emergency_request,
        kind=Notification.KIND_EMERGENCY,
    ).delete()
    return deleted


def send_emergency_email(emergency_request, donor) -> int:
    """Email one donor about the request; returns how many messages were sent (0 or 1)."""

    if not donor.email:
        return 0
    org_name = emergency_request.organization.name
    subject = f"CRITICAL: {emergency_request.blood_group} Blood Required at {org_name}"
    frontend = getattr(settings, 'FRONTEND_URL', '').rstrip('/')
    lines = [
        f"Hello {donor.get_name},",
        "",
        f"{org_name} is reporting a critical shortage of {emergency_request.blood_group} blood "
        "and needs urgent assistance.",
        "",
        f"Requirement: {emergency_request.units_required} Units",
        f"Urgency: {emergency_request.urgency_level}",
    ]
    if emergency_request.description:
        lines.append(f'"{emergency_request.description}"')
    lines += ["", f"Open your dashboard: {frontend}/dashboard"]
    return send_mail(subject, "\n".join(lines), None, [donor.email])


def broadcast_system(title: str, message: str, audience: str = AUDIENCE_ALL) -> int:
    """Create one System notification per donor and/or organization."""

    from organization.models import Organization

    rows = []
    if audience in (AUDIENCE_DONORS, AUDIENCE_ALL):
        rows += [
            Notification(donor_id=pk, kind=Notification.KIND_SYSTEM, title=title, message=message)
            for pk in Donor.objects.values_list('pk', flat=True)
        ]
    if audience in (AUDIENCE_ORGANIZATIONS, AUDIENCE_ALL):
        rows += [
            Notification(organization_id=pk, kind=Notification.KIND_SYSTEM, title=title, message=message)
            for pk in Organization.objects.values_list('pk', flat=True)
        ]
    Notification.objects.bulk_create(rows)
    logger.info("Broadcast '%s' to %s recipient(s) (%s)", title, len(rows), audience)
    return len(rows)
