"""Unit tests for the AWS SNS emergency alert helper."""

from unittest.mock import MagicMock

from botocore.exceptions import ClientError
from django.contrib.auth.models import User
from django.test import TestCase, override_settings

from blood.services import sms
from donor.models import Donor
from organization.models import EmergencyRequest, Organization


class SNSAlertTests(TestCase):
	def setUp(self):
		self.user_counter = 0
		org_user = User.objects.create_user(username="org@example.com", email="org@example.com", password="DemoPass123!")
		self.org = Organization.objects.create(
			user=org_user,
			name="City Hospital",
			phone="9000000000",
			license_number="LIC-100",
			city="Kochi",
		)

	def _create_donor(self, blood_type="A+", phone="9876543210"):
		self.user_counter += 1
		user = User.objects.create_user(
			username=f"donor{self.user_counter}",
			password="DemoPass123!",
		)
		return Donor.objects.create(
			user=user,
			full_name="Test Donor",
			blood_type=blood_type,
			phone=phone,
		)

	def _create_request(self, blood_group="A+", urgency="Critical"):
		return EmergencyRequest.objects.create(
			organization=self.org,
			blood_group=blood_group,
			units_required=3,
			urgency_level=urgency,
			description="Road accident",
		)

	@override_settings(AWS_SNS_ENABLED=False)
	def test_notify_skips_when_disabled(self):
		emergency = self._create_request()
		result = sms.notify_emergency_donors(emergency, [self._create_donor()])
		self.assertFalse(result.enabled)
		self.assertEqual(result.delivered, 0)
		self.assertEqual(result.reason, "sns-disabled")

	@override_settings(AWS_SNS_ENABLED=True)
	def test_notify_reports_no_donors(self):
		emergency = self._create_request()
		result = sms.notify_emergency_donors(emergency, [self._create_donor(phone="")], sns_client=MagicMock())
		self.assertEqual(result.reason, "no-donors")

	@override_settings(
		AWS_SNS_ENABLED=True,
		AWS_SNS_MAX_RECIPIENTS=5,
		AWS_SNS_DEFAULT_COUNTRY_CODE="+91",
	)
	def test_notify_publishes_once_per_number(self):
		donor_one = self._create_donor(phone="9876543210")
		donor_two = self._create_donor(phone="9123456789")
		duplicate = self._create_donor(phone="9876543210")
		emergency = self._create_request()

		mock_client = MagicMock()

		result = sms.notify_emergency_donors(emergency, [donor_one, donor_two, duplicate], sns_client=mock_client)

		self.assertEqual(result.delivered, 2)
		self.assertEqual(result.recipients, ["+919876543210", "+919123456789"])
		self.assertEqual(mock_client.publish.call_count, 2)
		kwargs = mock_client.publish.call_args.kwargs
		self.assertIn("City Hospital", kwargs["Message"])
		self.assertIn("A+", kwargs["Message"])

	@override_settings(AWS_SNS_ENABLED=True, AWS_SNS_MAX_RECIPIENTS=1)
	def test_notify_respects_recipient_cap(self):
		donors = [self._create_donor(phone="9876543210"), self._create_donor(phone="9123456789")]
		mock_client = MagicMock()
		result = sms.notify_emergency_donors(self._create_request(), donors, sns_client=mock_client)
		self.assertEqual(result.attempted, 1)
		self.assertEqual(mock_client.publish.call_count, 1)

	@override_settings(AWS_SNS_ENABLED=True)
	def test_publish_failures_are_skipped(self):
		donors = [self._create_donor(phone="9876543210"), self._create_donor(phone="9123456789")]
		mock_client = MagicMock()
		mock_client.publish.side_effect = [
			ClientError({"Error": {"Code": "Throttling", "Message": "Rate exceeded"}}, "Publish"),
			{"MessageId": "abc"},
		]
		result = sms.notify_emergency_donors(self._create_request(), donors, sns_client=mock_client)
		self.assertEqual(result.attempted, 2)
		self.assertEqual(result.delivered, 1)
		self.assertEqual(result.skipped, ["+919876543210"])

	@override_settings(AWS_SNS_SENDER_ID="EBLOODBANKSMS")
	def test_sender_id_is_truncated(self):
		attributes = sms._message_attributes()
		self.assertEqual(attributes["AWS.SNS.SMS.SenderID"]["StringValue"], "EBLOODBANKS")

	def test_message_mentions_contact_and_city(self):
		message = sms.build_emergency_message(self._create_request(urgency="High"))
		self.assertIn("in Kochi", message)
		self.assertIn("Call 9000000000", message)
		self.assertIn("(High)", message)
