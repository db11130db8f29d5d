from datetime import timedelta
from smtplib import SMTPException
from unittest.mock import patch

from django.contrib.auth.models import User
from django.core import mail
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from blood import tasks
from blood.auth import ROLE_DONOR, issue_token
from blood.models import Notification
from donor.models import Donation, Donor
from organization import services
from organization.models import (
    DonorVerification,
    EmergencyRequest,
    InventoryItem,
    MedicalReport,
    Organization,
    OrganizationLog,
    OrganizationMember,
)

REGISTRATION = {
    'name': 'City Hospital',
    'email': 'city@example.com',
    'phone': '9000000000',
    'password': 'HospitalPass1',
    'confirm_password': 'HospitalPass1',
    'license_number': 'LIC-100',
    'type': 'Hospital',
    'state': 'Kerala',
    'district': 'Ernakulam',
    'city': 'Kochi',
}


def make_donor(username, blood_type='O+', **extra):
    user = User.objects.create_user(username=username, email=f'{username}@example.com', password='Secret123')
    return Donor.objects.create(
        user=user,
        full_name=extra.pop('full_name', username.title()),
        phone=extra.pop('phone', '9876543210'),
        blood_type=blood_type,
        city='Kochi',
        **extra,
    )


class OrganizationAccountTests(TestCase):
    def _register(self, **overrides):
        return self.client.post(reverse('org-register'), {**REGISTRATION, **overrides}, content_type='application/json')

    def test_register_and_login(self):
        response = self._register()
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['user']['role'], 'organization')

        login = self.client.post(
            reverse('org-login'),
            {'email': 'CITY@example.com', 'password': 'HospitalPass1'},
            content_type='application/json',
        )
        self.assertEqual(login.status_code, 200)
        self.assertTrue(login.json()['token'])

    def test_duplicate_email_and_license(self):
        self._register()
        response = self._register(email='city@example.com', license_number='lic-100')
        self.assertEqual(response.status_code, 400)
        errors = response.json()['errors']
        self.assertIn('email', errors)
        self.assertIn('license_number', errors)

    def test_donor_credentials_cannot_log_in_here(self):
        make_donor('asha')
        response = self.client.post(
            reverse('org-login'),
            {'email': 'asha@example.com', 'password': 'Secret123'},
            content_type='application/json',
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Invalid credentials.')


class OrganizationApiTestCase(TestCase):
    def setUp(self):
        response = self.client.post(reverse('org-register'), REGISTRATION, content_type='application/json')
        self.headers = {'HTTP_AUTHORIZATION': f"Bearer {response.json()['token']}"}
        self.org = User.objects.get(username='city@example.com').organization

    def get(self, name, args=None, **params):
        return self.client.get(reverse(name, args=args), params, **self.headers)

    def post(self, name, data, args=None):
        return self.client.post(reverse(name, args=args), data, content_type='application/json', **self.headers)


class ProfileAndStatsTests(OrganizationApiTestCase):
    def test_donor_token_is_forbidden(self):
        donor = make_donor('asha')
        token = issue_token(donor.user, ROLE_DONOR, donor.pk)
        response = self.client.get(reverse('org-stats'), HTTP_AUTHORIZATION=f'Bearer {token}')
        self.assertEqual(response.status_code, 403)

    def test_partial_profile_update(self):
        response = self.client.put(
            reverse('org-profile'),
            {'address': '12 MG Road'},
            content_type='application/json',
            **self.headers,
        )
        self.assertEqual(response.status_code, 200)
        self.org.refresh_from_db()
        self.assertEqual(self.org.address, '12 MG Road')
        self.assertEqual(self.org.name, 'City Hospital')

    def test_stats(self):
        InventoryItem.objects.create(organization=self.org, blood_group='O+', units=2)
        InventoryItem.objects.create(organization=self.org, blood_group='A+', units=10)
        EmergencyRequest.objects.create(organization=self.org, blood_group='O+', units_required=1)
        stats = self.get('org-stats').json()
        self.assertEqual(stats['total_units'], 12)
        self.assertEqual(stats['active_requests'], 1)
        self.assertEqual(stats['low_stock_count'], 1)
        self.assertEqual(len(stats['inventory_breakdown']), 2)


class InventoryTests(OrganizationApiTestCase):
    def test_set_creates_then_overwrites(self):
        response = self.post('org-inventory-update', {'blood_group': 'B+', 'units': 4})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['item']['min_threshold'], 5)
        self.assertTrue(response.json()['item']['is_low'])

        self.post('org-inventory-update', {'blood_group': 'B+', 'units': 9, 'min_threshold': 3})
        item = InventoryItem.objects.get(organization=self.org, blood_group='B+')
        self.assertEqual((item.units, item.min_threshold), (9, 3))
        self.assertTrue(OrganizationLog.objects.filter(action_type=services.ACTION_INVENTORY_SYNC).exists())

    def test_negative_units_are_rejected(self):
        response = self.post('org-inventory-update', {'blood_group': 'B+', 'units': -1})
        self.assertEqual(response.status_code, 400)
        self.assertIn('units', response.json()['errors'])

    def test_adjust_never_goes_below_zero(self):
        self.post('org-inventory-adjust', {'blood_group': 'AB-', 'delta': 1})
        self.post('org-inventory-adjust', {'blood_group': 'AB-', 'delta': -1})
        response = self.post('org-inventory-adjust', {'blood_group': 'AB-', 'delta': -1})
        self.assertEqual(response.json()['item']['units'], 0)

    def test_adjust_only_accepts_single_steps(self):
        response = self.post('org-inventory-adjust', {'blood_group': 'AB-', 'delta': 5})
        self.assertEqual(response.status_code, 400)

    def test_alerts_list_low_rows(self):
        InventoryItem.objects.create(organization=self.org, blood_group='O-', units=1)
        InventoryItem.objects.create(organization=self.org, blood_group='O+', units=5)
        alerts = self.get('org-inventory-alerts').json()['alerts']
        self.assertEqual([row['blood_group'] for row in alerts], ['O-'])


class EmergencyRequestTests(OrganizationApiTestCase):
    def setUp(self):
        super().setUp()
        self.match = make_donor('match', blood_type='AB+')
        self.other_type = make_donor('othertype', blood_type='B+')
        self.outsider = make_donor('outsider', blood_type='AB+')
        for donor in (self.match, self.other_type):
            OrganizationMember.objects.create(organization=self.org, donor=donor)

    def _create(self):
        with self.captureOnCommitCallbacks(execute=True):
            return self.post('org-request-create', {
                'blood_group': 'AB+',
                'units_required': 3,
                'urgency_level': 'Critical',
                'description': 'Surgery',
            })

    def test_create_notifies_matching_members(self):
        response = self._create()
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['notified'], 1)

        note = Notification.objects.get()
        self.assertEqual(note.donor, self.match)
        self.assertEqual(note.kind, Notification.KIND_EMERGENCY)
        self.assertEqual(note.title, 'Emergency AB+ Required')

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['match@example.com'])
        self.assertIn('City Hospital', mail.outbox[0].subject)
        self.assertTrue(OrganizationLog.objects.filter(action_type=services.ACTION_EMERGENCY).exists())

    def test_resting_members_are_skipped(self):
        Donation.objects.create(donor=self.match, date=timezone.localdate() - timedelta(days=3))
        response = self._create()
        self.assertEqual(response.json()['notified'], 0)
        self.assertEqual(len(mail.outbox), 0)

    def test_recovered_member_is_alerted_despite_stale_flag(self):
        Donation.objects.create(donor=self.match, date=timezone.localdate() - timedelta(days=100))
        Donor.objects.filter(pk=self.match.pk).update(is_available=False)
        response = self._create()
        self.assertEqual(response.json()['notified'], 1)
        self.assertEqual(mail.outbox[0].to, ['match@example.com'])

    def test_email_retry_resends_only_unsent_donors(self):
        second = make_donor('second', blood_type='AB+')
        OrganizationMember.objects.create(organization=self.org, donor=second)
        emergency = EmergencyRequest.objects.create(organization=self.org, blood_group='AB+', units_required=2)

        outcomes = [1, SMTPException('relay down'), 1]
        with patch('blood.services.notifications.send_mail', side_effect=outcomes) as send_mail:
            tasks.send_emergency_emails.apply(args=(emergency.pk, [self.match.pk, second.pk]))

        recipients = [call.args[3] for call in send_mail.call_args_list]
        self.assertEqual(recipients, [['match@example.com'], ['second@example.com'], ['second@example.com']])

    def test_urgency_defaults_to_medium(self):
        response = self.post('org-request-create', {'blood_group': 'AB+', 'units_required': 1})
        self.assertEqual(response.json()['request']['urgency_level'], 'Medium')

    def test_close_clears_notifications(self):
        pk = self._create().json()['request']['id']
        url = reverse('org-request-status', args=[pk])

        response = self.client.put(url, {'status': 'closed'}, content_type='application/json', **self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['request']['status'], 'Closed')
        self.assertFalse(Notification.objects.exists())

        again = self.client.put(url, {'status': 'Closed'}, content_type='application/json', **self.headers)
        self.assertEqual(again.status_code, 400)
        self.assertEqual(again.json()['error'], 'Request is already closed.')

    def test_only_closing_is_allowed(self):
        pk = self._create().json()['request']['id']
        response = self.client.put(
            reverse('org-request-status', args=[pk]),
            {'status': 'Active'},
            content_type='application/json',
            **self.headers,
        )
        self.assertEqual(response.status_code, 400)

    def test_requests_are_scoped_to_the_organization(self):
        other_user = User.objects.create_user('other@example.com', 'other@example.com', 'Secret123')
        other = Organization.objects.create(user=other_user, name='Other', license_number='LIC-2')
        foreign = EmergencyRequest.objects.create(organization=other, blood_group='O+', units_required=1)
        response = self.client.put(
            reverse('org-request-status', args=[foreign.pk]),
            {'status': 'Closed'},
            content_type='application/json',
            **self.headers,
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(self.get('org-requests').json()['requests'], [])


class DonorWorkflowTests(OrganizationApiTestCase):
    def setUp(self):
        super().setUp()
        self.donor = make_donor('asha', blood_type='O+', full_name='Asha Menon')
        InventoryItem.objects.create(organization=self.org, blood_group='O+', units=3)

    def test_search(self):
        rows = self.get('org-donor-search', query='asha').json()['donors']
        self.assertEqual([row['id'] for row in rows], [self.donor.id])
        self.assertEqual(rows[0]['donor_tag'], self.donor.donor_tag)
        self.assertEqual(self.get('org-donor-search').json()['donors'], [])

    def test_verify_records_donation(self):
        response = self.post('org-verify', {'donor_id': self.donor.pk, 'notes': 'ID checked'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(DonorVerification.objects.count(), 1)
        donation = Donation.objects.get()
        self.assertEqual(donation.organization, self.org)
        self.donor.refresh_from_db()
        self.assertFalse(self.donor.is_available)

        again = self.post('org-verify', {'donor_id': self.donor.pk})
        self.assertEqual(again.status_code, 400)
        self.assertEqual(again.json()['error'], services.UNAVAILABLE_MESSAGE)
        self.assertEqual(DonorVerification.objects.count(), 1)

    def test_verify_unknown_donor(self):
        self.assertEqual(self.post('org-verify', {'donor_id': 9999}).status_code, 404)

    def test_clinical_donation_stocks_rounded_units(self):
        response = self.post('org-donor-reports', {
            'isDonation': True,
            'units_donated': '1.5',
            'blood_group': 'O+',
            'hb_level': '13.5',
        }, args=[self.donor.pk])
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['message'], 'Donation recorded and donor status updated')

        report = MedicalReport.objects.get()
        self.assertIsNotNone(report.donation_id)
        self.assertEqual(report.hiv_status, 'Negative')
        self.assertEqual(InventoryItem.objects.get(organization=self.org, blood_group='O+').units, 5)
        self.assertTrue(OrganizationLog.objects.filter(action_type=services.ACTION_DONATION).exists())

    def test_clinical_donation_rejected_during_recovery(self):
        Donation.objects.create(donor=self.donor, date=timezone.localdate() - timedelta(days=20))
        response = self.post('org-donor-reports', {'isDonation': True, 'units_donated': '1'}, args=[self.donor.pk])
        self.assertEqual(response.status_code, 400)
        self.assertFalse(MedicalReport.objects.exists())
        self.assertEqual(InventoryItem.objects.get(blood_group='O+').units, 3)

    def test_clinical_record_without_donation(self):
        response = self.post('org-donor-reports', {'pulse_rate': 72, 'notes': 'Routine'}, args=[self.donor.pk])
        self.assertEqual(response.json()['message'], 'Clinical record created')
        self.assertIsNone(MedicalReport.objects.get().donation_id)
        self.assertFalse(Donation.objects.exists())

        reports = self.get('org-donor-reports', args=[self.donor.pk]).json()['reports']
        self.assertEqual(reports[0]['org_name'], 'City Hospital')


class MembersAndActivityTests(OrganizationApiTestCase):
    def setUp(self):
        super().setUp()
        self.donor = make_donor('asha', full_name='Asha Menon')

    def test_add_list_remove(self):
        response = self.post('org-members', {'donor_id': self.donor.pk, 'role': 'Volunteer'})
        self.assertEqual(response.status_code, 201)

        duplicate = self.post('org-members', {'donor_id': self.donor.pk})
        self.assertEqual(duplicate.status_code, 400)
        self.assertEqual(duplicate.json()['error'], 'Already a member')

        members = self.get('org-members').json()['members']
        self.assertEqual(members[0]['role'], 'Volunteer')

        self.client.delete(reverse('org-member-remove', args=[self.donor.pk]), **self.headers)
        self.assertFalse(OrganizationMember.objects.exists())

        actions = [row['action_type'] for row in self.get('org-history').json()['logs']]
        self.assertIn(services.ACTION_MEMBER_ADD, actions)
        self.assertIn(services.ACTION_MEMBER_REMOVE, actions)

    def test_analytics_and_recent_activity(self):
        self.post('org-verify', {'donor_id': self.donor.pk})
        EmergencyRequest.objects.create(organization=self.org, blood_group='O+', units_required=2)

        analytics = self.get('org-analytics').json()
        self.assertEqual(sum(row['count'] for row in analytics['verifications']), 1)
        self.assertEqual(sum(row['count'] for row in analytics['requests']), 1)
        self.assertEqual(float(analytics['units_collected']), 1.0)

        activity = self.get('org-recent-activity').json()['activity']
        self.assertEqual({row['type'] for row in activity}, {'Verification', 'Emergency'})
