from django.contrib.auth.models import User
from django.test import TestCase
from django.urls import reverse

from blood.models import Notification
from donor.models import Donor
from organization.models import EmergencyRequest, InventoryItem, MedicalReport, Organization


class AdminApiTests(TestCase):
    def setUp(self):
        self.admin = User.objects.create_superuser('root', 'root@example.com', 'RootPass123')
        response = self.client.post(
            reverse('admin-login'),
            {'username': 'root', 'password': 'RootPass123'},
            content_type='application/json',
        )
        self.assertEqual(response.status_code, 200)
        self.headers = {'HTTP_AUTHORIZATION': f"Bearer {response.json()['token']}"}

        donor_user = User.objects.create_user('asha', 'asha@example.com', 'Secret123')
        self.donor = Donor.objects.create(user=donor_user, full_name='Asha Menon', blood_type='O+', city='Kochi')
        org_user = User.objects.create_user('city@example.com', 'city@example.com', 'Secret123')
        self.org = Organization.objects.create(user=org_user, name='City Hospital', license_number='LIC-1', city='Kochi')
        InventoryItem.objects.create(organization=self.org, blood_group='O+', units=7)
        EmergencyRequest.objects.create(organization=self.org, blood_group='O+', units_required=2)
        self.report = MedicalReport.objects.create(donor=self.donor, organization=self.org, blood_group='O+')

    def test_login_rejects_non_superusers(self):
        response = self.client.post(
            reverse('admin-login'),
            {'username': 'asha', 'password': 'Secret123'},
            content_type='application/json',
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['error'], 'Invalid credentials.')

    def test_stats(self):
        data = self.client.get(reverse('admin-stats'), **self.headers).json()
        self.assertEqual(data['donors'], 1)
        self.assertEqual(data['organizations'], 1)
        self.assertEqual(data['bloodUnits'], 7)
        self.assertEqual(data['activeRequests'], 1)

    def test_donor_list_and_detail(self):
        donors = self.client.get(reverse('admin-donors'), **self.headers).json()['donors']
        self.assertEqual(donors[0]['donor_tag'], self.donor.donor_tag)

        detail = self.client.get(reverse('admin-donor-detail', args=[self.donor.pk]), **self.headers).json()
        self.assertEqual(detail['reports'][0]['id'], self.report.pk)

        missing = self.client.get(reverse('admin-donor-detail', args=[9999]), **self.headers)
        self.assertEqual(missing.status_code, 404)

    def test_delete_donor_removes_account(self):
        response = self.client.delete(reverse('admin-donor-detail', args=[self.donor.pk]), **self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Donor.objects.exists())
        self.assertFalse(User.objects.filter(username='asha').exists())

    def test_verify_toggles(self):
        url = reverse('admin-organization-verify', args=[self.org.pk])
        self.assertTrue(self.client.put(url, **self.headers).json()['verified'])
        self.assertFalse(self.client.put(url, **self.headers).json()['verified'])

    def test_organization_detail_and_delete(self):
        detail = self.client.get(reverse('admin-organization-detail', args=[self.org.pk]), **self.headers).json()
        self.assertEqual(len(detail['inventory']), 1)
        self.assertEqual(len(detail['requests']), 1)

        response = self.client.delete(reverse('admin-organization-detail', args=[self.org.pk]), **self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Organization.objects.exists())
        self.assertFalse(InventoryItem.objects.exists())

    def test_inventory_requests_and_reports(self):
        inventory = self.client.get(reverse('admin-inventory'), **self.headers).json()['inventory']
        self.assertEqual(inventory[0]['org_name'], 'City Hospital')

        requests_ = self.client.get(reverse('admin-requests'), **self.headers).json()['requests']
        self.assertEqual(requests_[0]['org_name'], 'City Hospital')

        reports = self.client.get(reverse('admin-reports'), **self.headers).json()['reports']
        self.assertEqual(reports[0]['donor_name'], 'Asha Menon')
        report = self.client.get(reverse('admin-report-detail', args=[self.report.pk]), **self.headers).json()
        self.assertEqual(report['org_name'], 'City Hospital')

    def test_admin_accounts(self):
        response = self.client.post(
            reverse('admin-admins'),
            {'username': 'ops', 'password': 'OpsPass123'},
            content_type='application/json',
            **self.headers,
        )
        self.assertEqual(response.status_code, 201)
        ops = User.objects.get(username='ops')
        self.assertTrue(ops.is_superuser)

        admins = self.client.get(reverse('admin-admins'), **self.headers).json()['admins']
        self.assertEqual({row['username'] for row in admins}, {'root', 'ops'})

        status = self.client.put(reverse('admin-admin-status', args=[ops.pk]), **self.headers)
        self.assertFalse(status.json()['admin']['is_active'])

        self_delete = self.client.delete(reverse('admin-admin-delete', args=[self.admin.pk]), **self.headers)
        self.assertEqual(self_delete.status_code, 400)

        self.client.delete(reverse('admin-admin-delete', args=[ops.pk]), **self.headers)
        self.assertFalse(User.objects.filter(username='ops').exists())

    def test_broadcast_creates_system_notifications(self):
        response = self.client.post(
            reverse('admin-notifications'),
            {'title': 'Camp', 'message': 'Donation camp on Sunday', 'audience': 'donors'},
            content_type='application/json',
            **self.headers,
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['delivered'], 1)
        note = Notification.objects.get()
        self.assertEqual(note.donor, self.donor)
        self.assertEqual(note.kind, Notification.KIND_SYSTEM)

    def test_broadcast_defaults_to_everyone(self):
        response = self.client.post(
            reverse('admin-notifications'),
            {'title': 'Notice', 'message': 'Maintenance tonight'},
            content_type='application/json',
            **self.headers,
        )
        self.assertEqual(response.json()['delivered'], 2)
