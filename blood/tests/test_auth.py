from django.contrib.auth.models import User
from django.core import signing
from django.test import TestCase, override_settings
from django.urls import reverse

from blood.auth import ROLE_DONOR, ROLE_ORGANIZATION, issue_token, read_token
from donor.models import Donor


class BearerTokenTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username='asha', email='asha@example.com', password='Secret123')
        self.donor = Donor.objects.create(user=self.user, full_name='Asha Menon')

    def _auth(self, token):
        return {'HTTP_AUTHORIZATION': f'Bearer {token}'}

    def test_token_round_trip(self):
        session = read_token(issue_token(self.user, ROLE_DONOR, self.donor.pk))
        self.assertEqual(session.user_id, self.user.pk)
        self.assertEqual(session.role, ROLE_DONOR)
        self.assertEqual(session.subject_id, self.donor.pk)

    def test_tampered_token_is_rejected(self):
        token = issue_token(self.user, ROLE_DONOR, self.donor.pk)
        with self.assertRaises(signing.BadSignature):
            read_token(token[:-2] + 'xx')

    def test_missing_token_is_unauthorized(self):
        response = self.client.get(reverse('donor-stats'))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['error'], 'Authentication required.')

    def test_garbage_token_is_unauthorized(self):
        response = self.client.get(reverse('donor-stats'), **self._auth('not-a-token'))
        self.assertEqual(response.status_code, 401)

    @override_settings(AUTH_TOKEN_MAX_AGE_SECONDS=-1)
    def test_expired_token_is_unauthorized(self):
        token = issue_token(self.user, ROLE_DONOR, self.donor.pk)
        response = self.client.get(reverse('donor-stats'), **self._auth(token))
        self.assertEqual(response.status_code, 401)
        self.assertIn('expired', response.json()['error'])

    def test_wrong_role_is_forbidden(self):
        token = issue_token(self.user, ROLE_DONOR, self.donor.pk)
        response = self.client.get(reverse('org-stats'), **self._auth(token))
        self.assertEqual(response.status_code, 403)

        admin_token = issue_token(self.user, ROLE_ORGANIZATION, 1)
        response = self.client.get(reverse('admin-stats'), **self._auth(admin_token))
        self.assertEqual(response.status_code, 403)

    def test_inactive_account_is_unauthorized(self):
        token = issue_token(self.user, ROLE_DONOR, self.donor.pk)
        self.user.is_active = False
        self.user.save(update_fields=['is_active'])
        response = self.client.get(reverse('donor-stats'), **self._auth(token))
        self.assertEqual(response.status_code, 401)

    def test_valid_token_reaches_view(self):
        token = issue_token(self.user, ROLE_DONOR, self.donor.pk)
        response = self.client.get(reverse('donor-stats'), **self._auth(token))
        self.assertEqual(response.status_code, 200)
