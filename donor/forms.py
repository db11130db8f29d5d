from django import forms
from django.conf import settings
from django.contrib.auth.models import User
from django.db.models import Q
from django.utils import timezone

from blood.constants import BLOOD_GROUP_CHOICES, GENDER_CHOICES
from blood.utils.validators import (
    validate_donor_age,
    validate_email_shape,
    validate_full_name,
    validate_password_policy,
    validate_phone,
    validate_username,
)
from .models import Donation, Reminder


class GenderField(forms.ChoiceField):
    """Gender choice that accepts any letter case and stores the capitalised spelling."""

    def __init__(self, **kwargs):
        super().__init__(choices=GENDER_CHOICES, **kwargs)

    def to_python(self, value):
        return super().to_python(value).strip().capitalize()


class DonorRegistrationForm(forms.Form):
    username = forms.CharField(max_length=30, validators=[validate_username])
    full_name = forms.CharField(max_length=60, strip=False, validators=[validate_full_name])
    email = forms.CharField(max_length=254, validators=[validate_email_shape])
    password = forms.CharField(strip=False, validators=[validate_password_policy])
    confirm_password = forms.CharField(strip=False)
    blood_type = forms.ChoiceField(choices=BLOOD_GROUP_CHOICES, required=False)
    dob = forms.DateField(required=False)
    phone = forms.CharField(required=False, validators=[validate_phone])
    gender = GenderField(required=False)
    latitude = forms.DecimalField(max_digits=9, decimal_places=6, min_value=-90, max_value=90, required=False)
    longitude = forms.DecimalField(max_digits=9, decimal_places=6, min_value=-180, max_value=180, required=False)

    def clean_full_name(self):
        return self.cleaned_data['full_name'].strip()

    def clean(self):
        cleaned = super().clean()
        password = cleaned.get('password')
        confirm = cleaned.get('confirm_password')
        if password and confirm is not None and password != confirm:
            self.add_error('confirm_password', 'Passwords do not match.')

        username = cleaned.get('username')
        email = cleaned.get('email')
        if username and email:
            taken = User.objects.filter(Q(username__iexact=username) | Q(email__iexact=email)).exists()
            if taken:
                raise forms.ValidationError('Username or email already registered. Please login.')
        return cleaned


class LoginForm(forms.Form):
    username = forms.CharField(error_messages={'required': 'Missing username or password'})
    password = forms.CharField(strip=False, error_messages={'required': 'Missing username or password'})


class DonorProfileForm(forms.Form):
    """Partial profile edit: every field is optional and blank values are skipped."""

    full_name = forms.CharField(required=False, strip=False, max_length=60, validators=[validate_full_name])
    email = forms.CharField(required=False, max_length=254, validators=[validate_email_shape])
    username = forms.CharField(required=False, max_length=30, validators=[validate_username])
    password = forms.CharField(required=False, strip=False, validators=[validate_password_policy])
    dob = forms.DateField(required=False)
    phone = forms.CharField(required=False, validators=[validate_phone])
    blood_type = forms.ChoiceField(choices=BLOOD_GROUP_CHOICES, required=False)
    gender = GenderField(required=False)
    state = forms.CharField(required=False, max_length=60)
    district = forms.CharField(required=False, max_length=60)
    city = forms.CharField(required=False, max_length=60)
    latitude = forms.DecimalField(max_digits=9, decimal_places=6, min_value=-90, max_value=90, required=False)
    longitude = forms.DecimalField(max_digits=9, decimal_places=6, min_value=-180, max_value=180, required=False)

    def __init__(self, *args, donor=None, **kwargs):
        self.donor = donor
        super().__init__(*args, **kwargs)

    def clean_full_name(self):
        return (self.cleaned_data.get('full_name') or '').strip()

    def clean_dob(self):
        dob = self.cleaned_data.get('dob')
        if dob:
            validate_donor_age(dob)
        return dob

    def clean_username(self):
        username = self.cleaned_data.get('username')
        if username and User.objects.filter(username__iexact=username).exclude(pk=self.donor.user_id).exists():
            raise forms.ValidationError('Username is already taken')
        return username

    def clean_email(self):
        email = self.cleaned_data.get('email')
        if email and User.objects.filter(email__iexact=email).exclude(pk=self.donor.user_id).exists():
            raise forms.ValidationError('Email is already registered')
        return email

    def changed_values(self):
        """Cleaned values for the keys the client actually sent with a non-empty value."""

        return {
            name: value
            for name, value in self.cleaned_data.items()
            if name in self.data and value not in (None, '')
        }


class CompleteProfileForm(forms.Form):
    bloodGroup = forms.ChoiceField(choices=BLOOD_GROUP_CHOICES)
    gender = GenderField()
    phoneNumber = forms.CharField(validators=[validate_phone])
    dob = forms.DateField(required=False)
    state = forms.CharField(max_length=60)
    district = forms.CharField(max_length=60)
    city = forms.CharField(max_length=60)
    latitude = forms.DecimalField(max_digits=9, decimal_places=6, min_value=-90, max_value=90, required=False)
    longitude = forms.DecimalField(max_digits=9, decimal_places=6, min_value=-180, max_value=180, required=False)

    def clean_dob(self):
        dob = self.cleaned_data.get('dob')
        if dob:
            validate_donor_age(dob)
        return dob


class DonationForm(forms.ModelForm):
    class Meta:
        model = Donation
        fields = ['date', 'units', 'notes', 'hb_level', 'blood_pressure', 'pulse_rate', 'temperature', 'weight']

    def clean_date(self):
        donated_on = self.cleaned_data['date']
        if donated_on > timezone.localdate():
            raise forms.ValidationError('Donation date cannot be in the future.')
        return donated_on


class ReminderForm(forms.ModelForm):
    class Meta:
        model = Reminder
        fields = ['reminder_date', 'message']


class ProfilePictureForm(forms.Form):
    profile_picture = forms.ImageField()

    def clean_profile_picture(self):
        picture = self.cleaned_data['profile_picture']
        limit = int(getattr(settings, 'PROFILE_PICTURE_MAX_BYTES', 5 * 1024 * 1024))
        if picture.size > limit:
            raise forms.ValidationError(f'Profile picture must be at most {limit // (1024 * 1024)} MB.')
        return picture


class ForgotPasswordForm(forms.Form):
    email = forms.CharField(validators=[validate_email_shape])


class VerifyResetCodeForm(forms.Form):
    email = forms.CharField()
    code = forms.CharField(max_length=4)


class ResetPasswordForm(VerifyResetCodeForm):
    newPassword = forms.CharField(strip=False, validators=[validate_password_policy])


class GoogleAuthForm(forms.Form):
    credential = forms.CharField()
