"""Organization-side write paths: inventory, activity log, donor verification
and clinical reports.

The clinical donation path (report, donation, inventory increment and log
entries) runs in one transaction so a rejected donation leaves no partial
rows behind.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from django.db import transaction
from django.utils import timezone

from blood.services import inventory as inventory_service
from donor.models import Donation, Donor
from .models import DonorVerification, InventoryItem, MedicalReport, Organization, OrganizationLog

logger = logging.getLogger(__name__)

ACTION_INVENTORY_SYNC = 'INVENTORY_SYNC'
ACTION_EMERGENCY = 'EMERGENCY'
ACTION_VERIFICATION = 'VERIFICATION'
ACTION_DONATION = 'DONATION'
ACTION_CLINICAL = 'CLINICAL'
ACTION_MEMBER_ADD = 'MEMBER_ADD'
ACTION_MEMBER_REMOVE = 'MEMBER_REMOVE'

UNAVAILABLE_MESSAGE = 'Donor is currently unavailable for donation.'


class DonorUnavailable(Exception):
    """The donor is still inside their recovery window."""


def add_org_log(organization: Organization, action_type: str, entity_name: str, description: str,
                details: Optional[dict] = None) -> OrganizationLog:
    return OrganizationLog.objects.create(
        organization=organization,
        action_type=action_type,
        entity_name=entity_name or '',
        description=description,
        details=details or {},
    )


def set_inventory(organization: Organization, blood_group: str, units: int,
                  min_threshold: Optional[int] = None) -> InventoryItem:
    """Absolute set; the row is created on first write."""

    item, created = InventoryItem.objects.get_or_create(
        organization=organization,
        blood_group=blood_group,
        defaults={
            'units': units,
            'min_threshold': inventory_service.default_min_threshold() if min_threshold is None else min_threshold,
        },
    )
    if not created:
        item.units = units
        if min_threshold is not None:
            item.min_threshold = min_threshold
        item.save()
    add_org_log(
        organization,
        ACTION_INVENTORY_SYNC,
        blood_group,
        f"Inventory set for {blood_group} ({units} units)",
        {'units': units, 'min_threshold': item.min_threshold},
    )
    return item


def adjust_inventory(organization: Organization, blood_group: str, delta: int) -> InventoryItem:
    with transaction.atomic():
        item, _ = InventoryItem.objects.select_for_update().get_or_create(
            organization=organization,
            blood_group=blood_group,
            defaults={'units': 0},
        )
        before = item.units
        item.units = inventory_service.apply_delta(before, delta)
        item.save()
        add_org_log(
            organization,
            ACTION_INVENTORY_SYNC,
            blood_group,
            f"Inventory adjusted for {blood_group} ({before} -> {item.units} units)",
            {'delta': delta, 'before': before, 'after': item.units},
        )
    return item


def whole_units(units) -> int:
    return int(Decimal(str(units or 0)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _increment_inventory(organization: Organization, blood_group: str, units: int) -> InventoryItem:
    item, _ = InventoryItem.objects.select_for_update().get_or_create(
        organization=organization,
        blood_group=blood_group,
        defaults={'units': 0},
    )
    item.units = item.units + units
    item.save()
    return item


def _ensure_eligible(donor: Donor):
    if not donor.eligibility.is_eligible:
        raise DonorUnavailable(UNAVAILABLE_MESSAGE)


def verify_donor(organization: Organization, donor: Donor, notes: str = '') -> DonorVerification:
    """Record a verification and the donation it stands for (today, one unit)."""

    with transaction.atomic():
        _ensure_eligible(donor)
        verification = DonorVerification.objects.create(organization=organization, donor=donor, notes=notes or '')
        Donation.objects.create(
            donor=donor,
            organization=organization,
            date=timezone.localdate(),
            units=Decimal('1'),
            notes='Verified by Organization',
        )
        add_org_log(organization, ACTION_VERIFICATION, donor.get_name, f"Verified {donor.get_name}")
    logger.info("Organization %s verified donor %s", organization.pk, donor.pk)
    return verification


def record_medical_report(organization: Organization, donor: Donor, report_data: dict,
                          is_donation: bool = False) -> MedicalReport:
    """Store a clinical report; when ``is_donation`` also record the donation and stock it.

    Raises :class:`DonorUnavailable` (and writes nothing) if the donor is not
    eligible to donate.
    """

    units = Decimal(str(report_data.get('units_donated') or 0))
    with transaction.atomic():
        report = MedicalReport(organization=organization, donor=donor, **report_data)
        report.units_donated = units
        if is_donation:
            _ensure_eligible(donor)
            report.donation = Donation.objects.create(
                donor=donor,
                organization=organization,
                date=timezone.localdate(),
                units=units if units > 0 else Decimal('1'),
                notes='Clinical Donation',
                hb_level=report_data.get('hb_level'),
                blood_pressure=report_data.get('blood_pressure') or '',
                pulse_rate=report_data.get('pulse_rate'),
                temperature=report_data.get('temperature'),
                weight=report_data.get('weight'),
            )
            stocked = whole_units(units)
            blood_group = report_data.get('blood_group') or donor.blood_type
            if stocked > 0 and blood_group:
                _increment_inventory(organization, blood_group, stocked)
                add_org_log(
                    organization,
                    ACTION_INVENTORY_SYNC,
                    blood_group,
                    f"Added {stocked} units of {blood_group} via Donation",
                )
        report.save()

        if is_donation:
            description = f"Recorded medical report and donation for {donor.get_name}"
        else:
            description = f"Recorded medical report for {donor.get_name}"
        add_org_log(
            organization,
            ACTION_DONATION if is_donation else ACTION_CLINICAL,
            donor.get_name,
            description,
            {'report_id': report.pk},
        )
    return report
