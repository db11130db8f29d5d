"""Pure rule helpers: profile gate, stock thresholds, cooldown, validation and chat replies."""

from datetime import date, datetime, timedelta

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, override_settings
from django.utils import timezone

from blood.services import chatbot
from blood.services.inventory import apply_delta, is_low_stock, low_stock
from blood.services.profile import is_profile_complete, missing_profile_fields
from blood.services.seekers import cooldown_remaining
from blood.utils.phone import mask_phone_number, normalize_phone_number
from blood.utils.validators import (
    classify_password,
    validate_donor_age,
    validate_full_name,
    validate_password_policy,
    validate_username,
)

COMPLETE_PROFILE = {
    'gender': 'Female',
    'phone': '9876543210',
    'state': 'Kerala',
    'district': 'Ernakulam',
    'city': 'Kochi',
}


class ProfileGateTests(SimpleTestCase):
    def test_complete_profile(self):
        self.assertTrue(is_profile_complete(COMPLETE_PROFILE))
        self.assertEqual(missing_profile_fields(COMPLETE_PROFILE), [])

    def test_nine_digit_phone_is_incomplete(self):
        donor = {**COMPLETE_PROFILE, 'phone': '987654321'}
        self.assertFalse(is_profile_complete(donor))
        self.assertEqual(missing_profile_fields(donor), ['phone'])

    def test_formatted_phone_is_incomplete(self):
        self.assertFalse(is_profile_complete({**COMPLETE_PROFILE, 'phone': '98765-43210'}))

    def test_blank_location_fields_are_reported(self):
        donor = {**COMPLETE_PROFILE, 'city': '   ', 'district': None, 'gender': ''}
        self.assertEqual(missing_profile_fields(donor), ['gender', 'district', 'city'])


class InventoryThresholdTests(SimpleTestCase):
    def test_strictly_below_threshold_is_low(self):
        self.assertTrue(is_low_stock({'units': 4, 'min_threshold': 5}))
        self.assertFalse(is_low_stock({'units': 5, 'min_threshold': 5}))

    def test_missing_threshold_defaults_to_five(self):
        rows = [{'units': 4}, {'units': 5}, {'units': 0, 'min_threshold': 0}]
        self.assertEqual(low_stock(rows), [{'units': 4}])

    @override_settings(INVENTORY_DEFAULT_MIN_THRESHOLD=3)
    def test_default_threshold_is_configurable(self):
        self.assertEqual(low_stock([{'units': 4}, {'units': 2}]), [{'units': 2}])

    def test_delta_never_goes_below_zero(self):
        self.assertEqual(apply_delta(0, -1), 0)
        self.assertEqual(apply_delta(3, -1), 2)
        self.assertEqual(apply_delta(3, 1), 4)


class SeekerCooldownTests(SimpleTestCase):
    def setUp(self):
        self.start = timezone.make_aware(datetime(2024, 6, 1, 12, 0, 0))

    def test_first_submission_is_allowed(self):
        self.assertIsNone(cooldown_remaining(None, self.start))

    def test_repeat_within_window_reports_remaining_seconds(self):
        self.assertEqual(cooldown_remaining(self.start, self.start + timedelta(seconds=10)), 20)

    def test_repeat_after_window_is_allowed(self):
        self.assertIsNone(cooldown_remaining(self.start, self.start + timedelta(seconds=35)))
        self.assertIsNone(cooldown_remaining(self.start, self.start + timedelta(seconds=30)))

    def test_remaining_stays_between_one_and_window(self):
        self.assertEqual(cooldown_remaining(self.start, self.start + timedelta(milliseconds=500)), 30)
        self.assertEqual(cooldown_remaining(self.start, self.start + timedelta(seconds=29, milliseconds=900)), 1)
        # Clock skew: a submission "from the future" still waits the full window
        self.assertEqual(cooldown_remaining(self.start, self.start - timedelta(seconds=5)), 30)


class PasswordStrengthTests(SimpleTestCase):
    def test_examples(self):
        self.assertEqual(classify_password('abc123!').strength, 'Hard')
        self.assertEqual(classify_password('abc123').strength, 'Normal')
        self.assertEqual(classify_password('abcdef').strength, 'Easy')

    def test_whitespace_is_easy_with_space_message(self):
        feedback = classify_password('abc 123')
        self.assertEqual(feedback.strength, 'Easy')
        self.assertIn('spaces', feedback.message)
        self.assertFalse(feedback.valid)

    def test_valid_flag_follows_length_policy(self):
        self.assertFalse(classify_password('abc123!').valid)
        self.assertTrue(classify_password('abc123!x').valid)


class FieldValidatorTests(SimpleTestCase):
    def test_username_rules(self):
        validate_username('donor_01')
        for bad in ('1donor', 'ab', 'has space', 'x' * 31):
            with self.assertRaises(ValidationError):
                validate_username(bad)

    def test_full_name_rules(self):
        validate_full_name('Asha Menon')
        with self.assertRaisesMessage(ValidationError, 'Full name should not start with space.'):
            validate_full_name(' Asha')
        for bad in ('A', 'Asha2', 'Asha-Menon'):
            with self.assertRaises(ValidationError):
                validate_full_name(bad)

    def test_password_policy(self):
        validate_password_policy('Secret123')
        for bad in ('short1', 'has space 123', 'x' * 129):
            with self.assertRaises(ValidationError):
                validate_password_policy(bad)

    def test_donor_age_range(self):
        validate_donor_age(date(2000, 6, 15), today=date(2018, 6, 15))
        validate_donor_age(date(1950, 6, 15), today=date(2015, 6, 15))
        with self.assertRaises(ValidationError):
            validate_donor_age(date(2000, 6, 15), today=date(2018, 6, 14))
        with self.assertRaises(ValidationError):
            validate_donor_age(date(1950, 6, 15), today=date(2016, 6, 15))


class PhoneNumberTests(SimpleTestCase):
    def test_local_numbers_get_default_country_code(self):
        self.assertEqual(normalize_phone_number('9876543210'), '+919876543210')
        self.assertEqual(normalize_phone_number('09876543210'), '+919876543210')
        self.assertEqual(normalize_phone_number('919876543210'), '+919876543210')

    def test_international_numbers_keep_their_code(self):
        self.assertEqual(normalize_phone_number('+1 (555) 123-4567'), '+15551234567')

    def test_undialable_numbers(self):
        self.assertIsNone(normalize_phone_number(''))
        self.assertIsNone(normalize_phone_number('12345'))

    def test_mask(self):
        self.assertEqual(mask_phone_number('+919876543210'), '*********3210')
        self.assertEqual(mask_phone_number(None), '')


class ChatbotTests(SimpleTestCase):
    def test_keyword_rules(self):
        self.assertEqual(chatbot.reply_to('When am I eligible again?').rule_id, 'eligibility')
        self.assertEqual(chatbot.reply_to('How do I update my profile').rule_id, 'profile')
        self.assertEqual(chatbot.reply_to('Thanks a lot').rule_id, 'farewell')

    def test_first_matching_rule_wins(self):
        # "find" (find-donors) is listed before "help" (support)
        self.assertEqual(chatbot.reply_to('help me find a donor').rule_id, 'find-donors')

    def test_greeting_matches_whole_words_only(self):
        self.assertEqual(chatbot.reply_to('Hello!').rule_id, 'greeting')
        self.assertIsNone(chatbot.reply_to('this is odd').rule_id)

    def test_fallback(self):
        rules, fallback = chatbot.load_rules()
        self.assertTrue(rules)
        self.assertEqual(chatbot.reply_to('').reply, fallback)
        self.assertEqual(chatbot.reply_to('qwerty').reply, fallback)
