from datetime import timedelta
from unittest.mock import patch

from django.contrib.auth.models import User
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from blood.models import Seeker
from donor.models import Donation, Donor


def make_donor(username, blood_type='O+', city='Kochi', district='Ernakulam', state='Kerala', **extra):
    user = User.objects.create_user(username=username, email=f'{username}@example.com', password='Secret123')
    return Donor.objects.create(
        user=user,
        full_name=extra.pop('full_name', username.title()),
        phone=extra.pop('phone', '9876543210'),
        blood_type=blood_type,
        city=city,
        district=district,
        state=state,
        **extra,
    )


class PublicDonorDirectoryTests(TestCase):
    def setUp(self):
        self.kochi = make_donor('kochi', blood_type='O+')
        self.pune = make_donor('pune', blood_type='A+', city='Pune', district='Pune', state='Maharashtra')
        self.resting = make_donor('resting', blood_type='O+')
        Donation.objects.create(donor=self.resting, date=timezone.localdate() - timedelta(days=5))

    def test_only_available_donors_are_listed(self):
        response = self.client.get(reverse('public-donors'))
        self.assertEqual(response.status_code, 200)
        ids = {row['id'] for row in response.json()['donors']}
        self.assertEqual(ids, {self.kochi.id, self.pune.id})

    def test_filters(self):
        response = self.client.get(reverse('public-donors'), {'blood_type': 'A+'})
        self.assertEqual([row['id'] for row in response.json()['donors']], [self.pune.id])

        response = self.client.get(reverse('public-donors'), {'city': 'ernak'})
        self.assertEqual([row['id'] for row in response.json()['donors']], [self.kochi.id])

        response = self.client.get(reverse('public-donors'), {'state': 'maharashtra'})
        self.assertEqual([row['id'] for row in response.json()['donors']], [self.pune.id])

    def test_missing_location_renders_as_na(self):
        bare = make_donor('bare', city='', district='', state='')
        response = self.client.get(reverse('public-donors'), {'blood_type': 'O+'})
        row = next(item for item in response.json()['donors'] if item['id'] == bare.id)
        self.assertEqual((row['city'], row['district'], row['state']), ('N/A', 'N/A', 'N/A'))

    def test_directory_follows_live_eligibility(self):
        self.resting.refresh_from_db()
        self.assertFalse(self.resting.is_available)

        later = timezone.now() + timedelta(days=91)
        with patch('django.utils.timezone.now', return_value=later):
            ids = {row['id'] for row in self.client.get(reverse('public-donors')).json()['donors']}
        self.assertIn(self.resting.id, ids)

    def test_featured_donors_hide_contact_details(self):
        for index in range(10):
            make_donor(f'extra{index}')
        donors = self.client.get(reverse('public-featured-donors')).json()['donors']
        self.assertEqual(len(donors), 8)
        self.assertNotIn('phone', donors[0])
        self.assertNotIn('email', donors[0])


class SeekerIntakeTests(TestCase):
    payload = {
        'full_name': 'Ravi Kumar',
        'email': 'ravi@example.com',
        'phone': '9123456780',
        'blood_type': 'B+',
        'required_by': '2030-01-15',
        'state': 'Kerala',
        'district': 'Ernakulam',
    }

    def _post(self, data):
        return self.client.post(reverse('public-seekers'), data, content_type='application/json')

    def test_creates_seeker(self):
        response = self._post(self.payload)
        self.assertEqual(response.status_code, 201)
        seeker = Seeker.objects.get(pk=response.json()['id'])
        self.assertEqual(seeker.country, 'India')
        self.assertEqual(seeker.required_date.isoformat(), '2030-01-15')

    def test_validation_errors(self):
        response = self._post({**self.payload, 'phone': '12345', 'blood_type': 'Z+'})
        self.assertEqual(response.status_code, 400)
        self.assertIn('phone', response.json()['errors'])
        self.assertIn('blood_type', response.json()['errors'])

    def test_full_name_must_not_start_with_space(self):
        response = self._post({**self.payload, 'full_name': ' Asha Menon'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['errors']['full_name'], ['Full name should not start with space.'])
        self.assertFalse(Seeker.objects.exists())

    def test_invalid_json(self):
        response = self.client.post(reverse('public-seekers'), '{broken', content_type='application/json')
        self.assertEqual(response.status_code, 400)

    def test_repeat_submission_is_throttled(self):
        start = timezone.now()
        with patch('blood.views.timezone.now', return_value=start):
            self.assertEqual(self._post(self.payload).status_code, 201)

        with patch('blood.views.timezone.now', return_value=start + timedelta(seconds=10)):
            response = self._post({**self.payload, 'email': 'other@example.com'})
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.json()['retry_after'], 20)
        self.assertIn('20 seconds', response.json()['error'])

        with patch('blood.views.timezone.now', return_value=start + timedelta(seconds=35)):
            self.assertEqual(self._post(self.payload).status_code, 201)
        self.assertEqual(Seeker.objects.count(), 2)

    @override_settings(SEEKER_COOLDOWN_SECONDS=0)
    def test_cooldown_can_be_disabled(self):
        self.assertEqual(self._post(self.payload).status_code, 201)
        self.assertEqual(self._post(self.payload).status_code, 201)


class SmartMatchEndpointTests(TestCase):
    def test_requires_blood_type(self):
        response = self.client.get(reverse('public-smart-match'))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Missing blood_type')

    def test_returns_compatible_donors_closest_first(self):
        far = make_donor('far', blood_type='O-', city='Delhi', district='New Delhi', state='Delhi')
        near = make_donor('near', blood_type='A+', city='Kochi')
        make_donor('wrongtype', blood_type='B+', city='Kochi')

        response = self.client.get(reverse('public-smart-match'), {'blood_type': 'A+', 'city': 'Kochi'})
        self.assertEqual(response.status_code, 200)
        matches = response.json()['matches']
        self.assertEqual([row['id'] for row in matches], [near.id, far.id])
        self.assertEqual(matches[0]['compatibility_score'], 100)
        self.assertEqual(matches[1]['compatibility_score'], 80)
        self.assertEqual(matches[0]['distance'], 0.0)

    def test_donor_returns_to_matches_when_recovery_ends(self):
        donor = make_donor('recovering', blood_type='A+', city='Kochi')
        Donation.objects.create(donor=donor, date=timezone.localdate())
        params = {'blood_type': 'A+', 'city': 'Kochi'}
        self.assertEqual(self.client.get(reverse('public-smart-match'), params).json()['matches'], [])

        later = timezone.now() + timedelta(days=91)
        with patch('django.utils.timezone.now', return_value=later):
            matches = self.client.get(reverse('public-smart-match'), params).json()['matches']
        self.assertEqual([row['id'] for row in matches], [donor.id])
