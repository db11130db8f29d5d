from datetime import date, datetime, timedelta

from django.test import SimpleTestCase, override_settings
from django.utils import timezone

from blood.services.eligibility import (
    coerce_donation_date,
    compute_eligibility,
    countdown_between,
    latest_donation_date,
    next_eligible_from,
)


class EligibilityCalculatorTests(SimpleTestCase):
    def test_empty_history_is_eligible_without_countdown(self):
        result = compute_eligibility([])
        self.assertTrue(result.is_eligible)
        self.assertIsNone(result.countdown)
        self.assertIsNone(result.next_eligible_date)

    def test_next_eligible_is_ninety_days_after_last_donation(self):
        donated = date(2024, 1, 1)
        self.assertEqual(next_eligible_from(donated).date(), donated + timedelta(days=90))
        self.assertEqual(next_eligible_from(donated).date(), date(2024, 3, 31))

    def test_boundary_is_inclusive(self):
        donated = date(2024, 1, 1)
        boundary = next_eligible_from(donated)

        at_boundary = compute_eligibility([donated], now=boundary)
        self.assertTrue(at_boundary.is_eligible)
        self.assertIsNone(at_boundary.countdown)

        just_before = compute_eligibility([donated], now=boundary - timedelta(seconds=1))
        self.assertFalse(just_before.is_eligible)
        self.assertEqual(just_before.countdown.as_dict(), {'days': 0, 'hours': 0, 'minutes': 0, 'seconds': 1})

    def test_uses_most_recent_donation_regardless_of_order(self):
        history = [date(2024, 1, 1), date(2024, 3, 1), date(2023, 12, 1)]
        result = compute_eligibility(history, now=timezone.make_aware(datetime(2024, 4, 1)))
        self.assertEqual(result.last_donation_date, date(2024, 3, 1))
        self.assertEqual(result.next_eligible_date.date(), date(2024, 5, 30))
        self.assertFalse(result.is_eligible)

    def test_countdown_decomposes_remaining_time(self):
        target = timezone.make_aware(datetime(2024, 3, 31))
        now = target - timedelta(days=2, hours=3, minutes=4, seconds=5, milliseconds=500)
        countdown = countdown_between(now, target)
        self.assertEqual((countdown.days, countdown.hours, countdown.minutes, countdown.seconds), (2, 3, 4, 5))

    def test_countdown_never_negative(self):
        target = timezone.make_aware(datetime(2024, 3, 31))
        countdown = countdown_between(target + timedelta(hours=1), target)
        self.assertEqual(countdown.as_dict(), {'days': 0, 'hours': 0, 'minutes': 0, 'seconds': 0})

    def test_unreadable_dates_are_ignored(self):
        history = ['not-a-date', None, {'date': '2024-02-10'}, '2024-13-45', 42]
        self.assertEqual(latest_donation_date(history), date(2024, 2, 10))

    def test_history_without_readable_dates_is_eligible(self):
        result = compute_eligibility(['garbage', None, {'date': ''}])
        self.assertTrue(result.is_eligible)
        self.assertIsNone(result.countdown)

    def test_reads_dates_from_strings_datetimes_and_records(self):
        class Record:
            date = date(2024, 5, 6)

        self.assertEqual(coerce_donation_date('2024-05-06'), date(2024, 5, 6))
        self.assertEqual(coerce_donation_date('2024-05-06T10:00:00'), date(2024, 5, 6))
        self.assertEqual(coerce_donation_date(Record()), date(2024, 5, 6))
        self.assertEqual(coerce_donation_date(datetime(2024, 5, 6, 23, 0)), date(2024, 5, 6))

    @override_settings(DONATION_RECOVERY_DAYS=56)
    def test_recovery_days_come_from_settings(self):
        self.assertEqual(next_eligible_from(date(2024, 1, 1)).date(), date(2024, 2, 26))

    def test_as_dict_uses_dashboard_keys(self):
        donated = date(2024, 1, 1)
        now = next_eligible_from(donated) - timedelta(days=1)
        data = compute_eligibility([donated], now=now).as_dict()
        self.assertEqual(set(data), {'isEligible', 'lastDonationDate', 'nextEligibleDate', 'countdown'})
        self.assertFalse(data['isEligible'])
        self.assertEqual(data['countdown']['days'], 1)
