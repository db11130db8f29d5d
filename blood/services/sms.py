"""AWS SNS powered SMS alerts for organization emergency requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from blood.utils.phone import mask_phone_number, normalize_phone_number


logger = logging.getLogger(__name__)


@dataclass
class AlertResult:
	"""Lightweight summary of an alert dispatch attempt."""

	enabled: bool
	attempted: int
	delivered: int
	recipients: List[str] = field(default_factory=list)
	skipped: List[str] = field(default_factory=list)
	reason: Optional[str] = None


def notify_emergency_donors(emergency_request, donors: Iterable, *, sns_client=None) -> AlertResult:
	"""Text each donor about an emergency request when SNS delivery is enabled."""

	if not getattr(settings, 'AWS_SNS_ENABLED', False):
		logger.info("AWS SNS alerts disabled; skipping emergency request %s", emergency_request.pk)
		return AlertResult(False, 0, 0, reason="sns-disabled")

	targets = _phone_targets(donors)
	if not targets:
		logger.warning(
			"No reachable donors for emergency request %s (%s)",
			emergency_request.pk,
			emergency_request.blood_group,
		)
		return AlertResult(True, 0, 0, reason="no-donors")

	if sns_client is None:
		sns_client = _get_sns_client()

	message = build_emergency_message(emergency_request)
	attributes = _message_attributes()

	sent_to: List[str] = []
	skipped: List[str] = []
	for donor, phone in targets:
		try:
			sns_client.publish(PhoneNumber=phone, Message=message, MessageAttributes=attributes)
		except (BotoCoreError, ClientError) as exc:
			skipped.append(phone)
			logger.error(
				"Failed to publish emergency alert for request %s to donor %s (phone: %s): %s",
				emergency_request.pk,
				donor.pk,
				mask_phone_number(phone),
				exc,
			)
			continue
		sent_to.append(phone)

	return AlertResult(True, len(targets), len(sent_to), sent_to, skipped)


def build_emergency_message(emergency_request) -> str:
	org = emergency_request.organization
	where = f" in {org.city}" if org.city else ""
	base = (
		f"Emergency: {org.name}{where} needs {emergency_request.units_required} unit(s) of "
		f"{emergency_request.blood_group} blood ({emergency_request.urgency_level})."
	)
	contact = f" Call {org.phone} if you can donate." if org.phone else ""
	return f"{base}{contact}"[:1200]


def _get_sns_client():
	return boto3.client('sns', region_name=settings.AWS_SNS_REGION)


def _phone_targets(donors: Iterable) -> Sequence[Tuple[object, str]]:
	max_recipients = max(int(getattr(settings, 'AWS_SNS_MAX_RECIPIENTS', 25)), 1)
	targets: List[Tuple[object, str]] = []
	seen_numbers = set()
	skipped_invalid = 0
	for donor in donors:
		formatted = normalize_phone_number(donor.phone)
		if not formatted:
			skipped_invalid += 1
			continue
		if formatted in seen_numbers:
			continue
		targets.append((donor, formatted))
		seen_numbers.add(formatted)
		if len(targets) >= max_recipients:
			break

	if skipped_invalid:
		logger.warning("Skipped %s donors due to invalid phone numbers", skipped_invalid)
	return targets


def _message_attributes():
	attributes = {
		'AWS.SNS.SMS.SMSType': {'DataType': 'String', 'StringValue': settings.AWS_SNS_SMS_TYPE},
	}
	if settings.AWS_SNS_SENDER_ID:
		attributes['AWS.SNS.SMS.SenderID'] = {
			'DataType': 'String',
			'StringValue': settings.AWS_SNS_SENDER_ID[:11],
		}
	return attributes
