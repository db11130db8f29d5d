import io
import shutil
import tempfile
from datetime import timedelta
from unittest.mock import patch

from django.contrib.auth.models import Group, User
from django.core import mail
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from PIL import Image

from blood.auth import ROLE_DONOR, issue_token
from blood.constants import DONOR_GROUP
from blood.models import Notification, PasswordResetCode
from blood.services.google import GoogleAuthError, GoogleProfile
from donor import models as dmodels
from donor.forms import DonorProfileForm
from organization.models import EmergencyRequest, Organization

PASSWORD = 'Secret123!'


def create_donor(username='asha', email=None, **fields):
	user = User.objects.create_user(username=username, email=email or f'{username}@example.com', password=PASSWORD)
	Group.objects.get_or_create(name=DONOR_GROUP)[0].user_set.add(user)
	defaults = {
		'full_name': 'Asha Menon',
		'phone': '9876543210',
		'gender': 'Female',
		'blood_type': 'O+',
		'state': 'Kerala',
		'district': 'Ernakulam',
		'city': 'Kochi',
	}
	defaults.update(fields)
	return dmodels.Donor.objects.create(user=user, **defaults)


class DonorApiTestCase(TestCase):
	def setUp(self):
		self.donor = create_donor()
		self.headers = {'HTTP_AUTHORIZATION': f'Bearer {issue_token(self.donor.user, ROLE_DONOR, self.donor.pk)}'}

	def post_json(self, name, data, args=None, **extra):
		return self.client.post(reverse(name, args=args), data, content_type='application/json', **self.headers, **extra)

	def put_json(self, name, data, args=None):
		return self.client.put(reverse(name, args=args), data, content_type='application/json', **self.headers)


class RegistrationAndLoginTests(TestCase):
	payload = {
		'username': 'ravi_k',
		'full_name': 'Ravi Kumar',
		'email': 'ravi@example.com',
		'password': 'Secret123!',
		'confirm_password': 'Secret123!',
		'blood_type': 'B+',
	}

	def _register(self, **overrides):
		return self.client.post(reverse('auth-register'), {**self.payload, **overrides}, content_type='application/json')

	def test_register_returns_token_and_profile(self):
		response = self._register()
		self.assertEqual(response.status_code, 201)
		body = response.json()
		self.assertTrue(body['token'])
		self.assertEqual(body['user']['blood_type'], 'B+')
		self.assertTrue(body['user']['donor_tag'].startswith('DON-'))
		user = User.objects.get(username='ravi_k')
		self.assertTrue(user.groups.filter(name=DONOR_GROUP).exists())

	def test_duplicate_registration_is_rejected(self):
		self._register()
		response = self._register(username='ravi_two')
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()['error'], 'Username or email already registered. Please login.')

	def test_field_rules(self):
		response = self._register(username='9lives', full_name=' Ravi', confirm_password='Different1!')
		self.assertEqual(response.status_code, 400)
		errors = response.json()['errors']
		self.assertIn('username', errors)
		self.assertIn('full_name', errors)
		self.assertIn('confirm_password', errors)

	def test_login_by_username_or_email(self):
		self._register()
		for identifier in ('ravi_k', 'RAVI@example.com'):
			response = self.client.post(
				reverse('auth-login'),
				{'username': identifier, 'password': 'Secret123!'},
				content_type='application/json',
			)
			self.assertEqual(response.status_code, 200, identifier)
			self.assertIn('token', response.json())

	def test_login_failures(self):
		self._register()
		wrong = self.client.post(reverse('auth-login'), {'username': 'ravi_k', 'password': 'nope'}, content_type='application/json')
		self.assertEqual(wrong.status_code, 400)
		self.assertEqual(wrong.json()['error'], 'Invalid username or password.')

		missing = self.client.post(reverse('auth-login'), {'username': 'ravi_k'}, content_type='application/json')
		self.assertEqual(missing.json()['error'], 'Missing username or password')

	def test_non_donor_accounts_cannot_log_in(self):
		User.objects.create_user('staff', 'staff@example.com', 'Secret123!')
		response = self.client.post(reverse('auth-login'), {'username': 'staff', 'password': 'Secret123!'}, content_type='application/json')
		self.assertEqual(response.status_code, 400)

	def test_check_username(self):
		self._register()
		self.assertFalse(self.client.get(reverse('auth-check-username'), {'username': 'RAVI_K'}).json()['available'])
		self.assertTrue(self.client.get(reverse('auth-check-username'), {'username': 'someone'}).json()['available'])
		self.assertEqual(self.client.get(reverse('auth-check-username')).status_code, 400)


class PasswordResetTests(TestCase):
	def setUp(self):
		self.donor = create_donor()

	def _post(self, name, data):
		return self.client.post(reverse(name), data, content_type='application/json')

	def test_unknown_email(self):
		response = self._post('auth-forgot-password', {'email': 'nobody@example.com'})
		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.json()['error'], 'Email not found.')

	def test_full_reset_flow(self):
		with self.captureOnCommitCallbacks(execute=True):
			response = self._post('auth-forgot-password', {'email': 'asha@example.com'})
		self.assertEqual(response.status_code, 200)
		code = PasswordResetCode.objects.get(user=self.donor.user).code
		self.assertEqual(len(code), 4)
		self.assertEqual(len(mail.outbox), 1)
		self.assertIn(code, mail.outbox[0].body)

		wrong = '0000' if code != '0000' else '1111'
		self.assertEqual(self._post('auth-verify-reset-code', {'email': 'asha@example.com', 'code': wrong}).status_code, 400)
		verified = self._post('auth-verify-reset-code', {'email': 'asha@example.com', 'code': code})
		self.assertTrue(verified.json()['valid'])

		reset = self._post('auth-reset-password', {'email': 'asha@example.com', 'code': code, 'newPassword': 'BrandNew123'})
		self.assertEqual(reset.status_code, 200)
		self.assertFalse(PasswordResetCode.objects.exists())
		self.donor.user.refresh_from_db()
		self.assertTrue(self.donor.user.check_password('BrandNew123'))

	def test_expired_code_is_rejected(self):
		reset = PasswordResetCode.objects.create(
			user=self.donor.user,
			code='4321',
			expires_at=timezone.now() - timedelta(minutes=1),
		)
		response = self._post('auth-reset-password', {'email': 'asha@example.com', 'code': reset.code, 'newPassword': 'BrandNew123'})
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()['error'], 'Invalid or expired request.')

	def test_new_code_replaces_old_one(self):
		self._post('auth-forgot-password', {'email': 'asha@example.com'})
		self._post('auth-forgot-password', {'email': 'asha@example.com'})
		self.assertEqual(PasswordResetCode.objects.filter(user=self.donor.user).count(), 1)


class GoogleSignInTests(TestCase):
	profile = GoogleProfile(subject='google-123', email='new@example.com', name='New Donor')

	def _post(self):
		return self.client.post(reverse('auth-google'), {'credential': 'token'}, content_type='application/json')

	@patch('donor.views.fetch_google_profile')
	def test_creates_donor_on_first_sign_in(self, fetch):
		fetch.return_value = self.profile
		response = self._post()
		self.assertEqual(response.status_code, 200)
		donor = dmodels.Donor.objects.get(google_id='google-123')
		self.assertEqual(donor.email, 'new@example.com')
		self.assertFalse(donor.user.has_usable_password())

		self._post()
		self.assertEqual(dmodels.Donor.objects.count(), 1)

	@patch('donor.views.fetch_google_profile')
	def test_links_existing_donor_by_email(self, fetch):
		existing = create_donor(username='linked', email='new@example.com')
		fetch.return_value = self.profile
		response = self._post()
		self.assertEqual(response.json()['user']['id'], existing.pk)
		existing.refresh_from_db()
		self.assertEqual(existing.google_id, 'google-123')

	@patch('donor.views.fetch_google_profile', side_effect=GoogleAuthError('Google auth failed.'))
	def test_rejected_credential(self, fetch):
		response = self._post()
		self.assertEqual(response.status_code, 401)
		self.assertEqual(response.json()['error'], 'Google auth failed.')


class DashboardTests(DonorApiTestCase):
	def test_new_donor_is_eligible(self):
		stats = self.client.get(reverse('donor-stats'), **self.headers).json()['stats']
		self.assertTrue(stats['isEligible'])
		self.assertIsNone(stats['countdown'])
		self.assertEqual(stats['totalDonations'], 0)
		self.assertTrue(stats['profileComplete'])

	def test_recent_donation_starts_countdown(self):
		dmodels.Donation.objects.create(donor=self.donor, date=timezone.localdate() - timedelta(days=10))
		stats = self.client.get(reverse('donor-stats'), **self.headers).json()['stats']
		self.assertFalse(stats['isEligible'])
		self.assertIn(stats['countdown']['days'], (79, 80))
		self.assertEqual(stats['livesSaved'], 3)
		self.assertEqual(stats['milestone'], 'Bronze')

	def test_incomplete_profile_is_flagged(self):
		self.donor.phone = '98765'
		self.donor.city = ''
		self.donor.save()
		stats = self.client.get(reverse('donor-stats'), **self.headers).json()['stats']
		self.assertFalse(stats['profileComplete'])
		self.assertEqual(stats['missingFields'], ['phone', 'city'])

	def test_complete_profile(self):
		self.donor.phone = ''
		self.donor.gender = ''
		self.donor.save()
		response = self.post_json('auth-complete-profile', {
			'bloodGroup': 'A+',
			'gender': 'male',
			'phoneNumber': '9123456780',
			'state': 'Kerala',
			'district': 'Ernakulam',
			'city': 'Kochi',
		})
		self.assertEqual(response.status_code, 200)
		self.donor.refresh_from_db()
		self.assertTrue(self.donor.is_profile_complete)
		self.assertEqual(self.donor.blood_type, 'A+')
		self.assertEqual(self.donor.gender, 'Male')


class DonationTests(DonorApiTestCase):
	def test_record_donation_updates_availability(self):
		response = self.post_json('donor-donations', {'date': timezone.localdate().isoformat(), 'units': '1.0'})
		self.assertEqual(response.status_code, 201)
		self.donor.refresh_from_db()
		self.assertFalse(self.donor.is_available)
		self.assertIsNotNone(self.donor.availability_updated_at)

	def test_future_date_is_rejected(self):
		tomorrow = timezone.localdate() + timedelta(days=1)
		response = self.post_json('donor-donations', {'date': tomorrow.isoformat(), 'units': '1.0'})
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()['errors']['date'], ['Donation date cannot be in the future.'])

	def test_units_must_be_positive(self):
		response = self.post_json('donor-donations', {'date': timezone.localdate().isoformat(), 'units': '0'})
		self.assertEqual(response.status_code, 400)
		self.assertIn('units', response.json()['errors'])

	def test_ninety_day_rule(self):
		last = timezone.localdate() - timedelta(days=30)
		dmodels.Donation.objects.create(donor=self.donor, date=last)
		response = self.post_json('donor-donations', {'date': timezone.localdate().isoformat(), 'units': '1.0'})
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()['error'], 'You can only donate every 90 days.')

	def test_list_is_most_recent_first(self):
		dmodels.Donation.objects.create(donor=self.donor, date=timezone.localdate() - timedelta(days=400))
		dmodels.Donation.objects.create(donor=self.donor, date=timezone.localdate() - timedelta(days=200))
		rows = self.client.get(reverse('donor-donations'), **self.headers).json()['donations']
		self.assertGreater(rows[0]['date'], rows[1]['date'])

	def test_update_and_delete_own_donation(self):
		donation = dmodels.Donation.objects.create(donor=self.donor, date=timezone.localdate() - timedelta(days=5))
		self.donor.refresh_from_db()
		self.assertFalse(self.donor.is_available)

		response = self.put_json('donor-donation-detail', {'notes': 'Felt great'}, args=[donation.pk])
		self.assertEqual(response.status_code, 200)
		donation.refresh_from_db()
		self.assertEqual(donation.notes, 'Felt great')

		self.client.delete(reverse('donor-donation-detail', args=[donation.pk]), **self.headers)
		self.donor.refresh_from_db()
		self.assertTrue(self.donor.is_available)

	def test_edit_cannot_move_date_into_another_recovery_window(self):
		today = timezone.localdate()
		dmodels.Donation.objects.create(donor=self.donor, date=today - timedelta(days=400))
		donation = dmodels.Donation.objects.create(donor=self.donor, date=today - timedelta(days=200))

		clash = (today - timedelta(days=380)).isoformat()
		response = self.put_json('donor-donation-detail', {'date': clash}, args=[donation.pk])
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()['error'], 'You can only donate every 90 days.')
		donation.refresh_from_db()
		self.assertEqual(donation.date, today - timedelta(days=200))

		clear = today - timedelta(days=300)
		response = self.put_json('donor-donation-detail', {'date': clear.isoformat()}, args=[donation.pk])
		self.assertEqual(response.status_code, 200)
		donation.refresh_from_db()
		self.assertEqual(donation.date, clear)

	def test_other_donors_rows_are_not_found(self):
		other = create_donor(username='other')
		donation = dmodels.Donation.objects.create(donor=other, date=timezone.localdate() - timedelta(days=200))
		response = self.put_json('donor-donation-detail', {'notes': 'x'}, args=[donation.pk])
		self.assertEqual(response.status_code, 404)
		response = self.client.delete(reverse('donor-donation-detail', args=[donation.pk]), **self.headers)
		self.assertEqual(response.status_code, 404)
		self.assertTrue(dmodels.Donation.objects.filter(pk=donation.pk).exists())


class ReminderTests(DonorApiTestCase):
	def test_crud(self):
		created = self.post_json('donor-reminders', {'reminder_date': '2030-01-01', 'message': 'Donate again'})
		self.assertEqual(created.status_code, 201)
		pk = created.json()['reminder']['id']

		updated = self.put_json('donor-reminder-detail', {'message': 'Book a slot'}, args=[pk])
		self.assertEqual(updated.json()['reminder']['message'], 'Book a slot')
		self.assertEqual(updated.json()['reminder']['reminder_date'], '2030-01-01')

		self.client.delete(reverse('donor-reminder-detail', args=[pk]), **self.headers)
		self.assertFalse(dmodels.Reminder.objects.exists())


class ProfileTests(DonorApiTestCase):
	def test_partial_update_only_touches_sent_fields(self):
		response = self.put_json('donor-profile', {'city': 'Aluva', 'phone': ''})
		self.assertEqual(response.status_code, 200)
		self.donor.refresh_from_db()
		self.assertEqual(self.donor.city, 'Aluva')
		self.assertEqual(self.donor.phone, '9876543210')
		self.assertEqual(self.donor.state, 'Kerala')

	def test_invalid_values(self):
		response = self.put_json('donor-profile', {'phone': '12345', 'email': 'not-an-email'})
		self.assertEqual(response.status_code, 400)
		self.assertIn('phone', response.json()['errors'])
		self.assertIn('email', response.json()['errors'])

	def test_age_must_be_between_limits(self):
		young = (timezone.localdate() - timedelta(days=365 * 10)).isoformat()
		response = self.put_json('donor-profile', {'dob': young})
		self.assertEqual(response.status_code, 400)
		self.assertIn('dob', response.json()['errors'])

	def test_email_taken_by_someone_else(self):
		create_donor(username='other', email='other@example.com')
		response = self.put_json('donor-profile', {'email': 'other@example.com'})
		self.assertEqual(response.json()['errors']['email'], ['Email is already registered'])

	def test_password_change(self):
		self.put_json('donor-profile', {'password': 'AnotherPass9'})
		self.donor.user.refresh_from_db()
		self.assertTrue(self.donor.user.check_password('AnotherPass9'))

	def test_changed_values_skip_blank_fields(self):
		form = DonorProfileForm({'city': 'Aluva', 'state': ''}, donor=self.donor)
		self.assertTrue(form.is_valid(), form.errors)
		self.assertEqual(form.changed_values(), {'city': 'Aluva'})


class ProfilePictureTests(DonorApiTestCase):
	def setUp(self):
		super().setUp()
		self.media_root = tempfile.mkdtemp()
		self.override = override_settings(MEDIA_ROOT=self.media_root)
		self.override.enable()

	def tearDown(self):
		self.override.disable()
		shutil.rmtree(self.media_root, ignore_errors=True)

	def _image(self):
		buffer = io.BytesIO()
		Image.new('RGB', (8, 8), color='red').save(buffer, format='PNG')
		return SimpleUploadedFile('avatar.png', buffer.getvalue(), content_type='image/png')

	def test_upload_and_remove(self):
		response = self.client.post(reverse('donor-profile-picture'), {'profile_picture': self._image()}, **self.headers)
		self.assertEqual(response.status_code, 200)
		self.donor.refresh_from_db()
		self.assertTrue(self.donor.has_profile_pic)

		response = self.client.delete(reverse('donor-profile-picture'), **self.headers)
		self.assertEqual(response.status_code, 200)
		self.donor.refresh_from_db()
		self.assertFalse(self.donor.has_profile_pic)

	@override_settings(PROFILE_PICTURE_MAX_BYTES=10)
	def test_size_limit(self):
		response = self.client.post(reverse('donor-profile-picture'), {'profile_picture': self._image()}, **self.headers)
		self.assertEqual(response.status_code, 400)

	def test_non_image_is_rejected(self):
		upload = SimpleUploadedFile('notes.txt', b'hello', content_type='text/plain')
		response = self.client.post(reverse('donor-profile-picture'), {'profile_picture': upload}, **self.headers)
		self.assertEqual(response.status_code, 400)


class FeedTests(DonorApiTestCase):
	def setUp(self):
		super().setUp()
		org_user = User.objects.create_user('org@example.com', 'org@example.com', PASSWORD)
		self.org = Organization.objects.create(user=org_user, name='City Hospital', license_number='LIC-9', city='kochi')

	def test_urgent_needs_match_blood_type_and_city(self):
		match = EmergencyRequest.objects.create(organization=self.org, blood_group='O+', units_required=2)
		EmergencyRequest.objects.create(organization=self.org, blood_group='A+', units_required=2)
		closed = EmergencyRequest.objects.create(organization=self.org, blood_group='O+', units_required=1)
		closed.close()

		rows = self.client.get(reverse('donor-urgent-needs'), **self.headers).json()['requests']
		self.assertEqual([row['id'] for row in rows], [match.id])
		self.assertEqual(rows[0]['org_name'], 'City Hospital')

	def test_notifications(self):
		first = Notification.objects.create(donor=self.donor, title='One', message='m')
		Notification.objects.create(donor=self.donor, title='Two', message='m')
		other = create_donor(username='other')
		foreign = Notification.objects.create(donor=other, title='Not yours', message='m')

		data = self.client.get(reverse('donor-notifications'), **self.headers).json()
		self.assertEqual(len(data['notifications']), 2)
		self.assertEqual(data['unread'], 2)

		self.client.post(reverse('donor-notification-read', args=[first.pk]), **self.headers)
		self.assertEqual(self.client.get(reverse('donor-notifications'), **self.headers).json()['unread'], 1)

		response = self.client.post(reverse('donor-notification-read', args=[foreign.pk]), **self.headers)
		self.assertEqual(response.status_code, 404)

		self.client.post(reverse('donor-notifications-read-all'), **self.headers)
		self.assertFalse(Notification.objects.filter(donor=self.donor, is_read=False).exists())

		self.client.delete(reverse('donor-notifications-clear'), **self.headers)
		self.assertFalse(Notification.objects.filter(donor=self.donor).exists())
		self.assertTrue(Notification.objects.filter(pk=foreign.pk).exists())

	def test_chat_and_password_strength(self):
		reply = self.post_json('donor-chat', {'message': 'Am I eligible?'}).json()
		self.assertEqual(reply['rule'], 'eligibility')

		strength = self.client.get(reverse('donor-password-strength'), {'password': 'abc123'}).json()
		self.assertEqual(strength['strength'], 'Normal')


class RecomputeAvailabilityCommandTests(TestCase):
	def setUp(self):
		self.donor = create_donor()
		dmodels.Donation.objects.create(donor=self.donor, date=timezone.localdate() - timedelta(days=200))
		# Simulate a stale index
		dmodels.Donor.objects.filter(pk=self.donor.pk).update(is_available=False)

	def test_dry_run_changes_nothing(self):
		out = io.StringIO()
		call_command('recompute_availability', stdout=out)
		self.assertIn('DRY-RUN', out.getvalue())
		self.donor.refresh_from_db()
		self.assertFalse(self.donor.is_available)

	def test_apply_rebuilds_flag(self):
		call_command('recompute_availability', '--apply', stdout=io.StringIO())
		self.donor.refresh_from_db()
		self.assertTrue(self.donor.is_available)
