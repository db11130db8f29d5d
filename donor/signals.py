from __future__ import annotations

import logging

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Donation, Donor

LOGGER = logging.getLogger(__name__)


@receiver(post_save, sender=Donation)
@receiver(post_delete, sender=Donation)
def sync_availability_with_history(sender, instance: Donation, **kwargs):
	"""Keep the donor's availability index in line with their donation history."""

	try:
		donor = Donor.objects.get(pk=instance.donor_id)
	except Donor.DoesNotExist:
		# Cascade delete of the donor itself
		return

	before = donor.is_available
	eligible = donor.refresh_availability()
	if before != eligible:
		LOGGER.debug("Donor %s availability changed to %s", donor.pk, eligible)
