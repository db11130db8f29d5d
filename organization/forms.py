from django import forms
from django.contrib.auth.models import User
from django.db.models import Q

from blood.constants import BLOOD_GROUP_CHOICES, FACILITY_TYPE_CHOICES, URGENCY_CHOICES, URGENCY_MEDIUM
from blood.utils.validators import validate_email_shape, validate_password_policy
from .models import EmergencyRequest, MedicalReport, Organization


class OrganizationRegistrationForm(forms.Form):
    name = forms.CharField(max_length=120)
    email = forms.CharField(max_length=254, validators=[validate_email_shape])
    phone = forms.CharField(max_length=20, required=False)
    password = forms.CharField(strip=False, validators=[validate_password_policy])
    confirm_password = forms.CharField(strip=False)
    license_number = forms.CharField(max_length=60)
    type = forms.ChoiceField(choices=FACILITY_TYPE_CHOICES)
    state = forms.CharField(max_length=60, required=False)
    district = forms.CharField(max_length=60, required=False)
    city = forms.CharField(max_length=60, required=False)
    address = forms.CharField(max_length=255, required=False)

    def clean(self):
        cleaned = super().clean()
        if cleaned.get('password') and cleaned.get('password') != cleaned.get('confirm_password'):
            self.add_error('confirm_password', 'Passwords do not match.')
        email = cleaned.get('email')
        if email and User.objects.filter(Q(email__iexact=email) | Q(username__iexact=email)).exists():
            self.add_error('email', 'Email already registered.')
        license_number = cleaned.get('license_number')
        if license_number and Organization.objects.filter(license_number__iexact=license_number).exists():
            self.add_error('license_number', 'License number already registered.')
        return cleaned


class OrganizationLoginForm(forms.Form):
    email = forms.CharField()
    password = forms.CharField(strip=False)


class OrganizationProfileForm(forms.ModelForm):
    class Meta:
        model = Organization
        fields = ['name', 'phone', 'license_number', 'type', 'state', 'district', 'city', 'address']


class InventorySetForm(forms.Form):
    blood_group = forms.ChoiceField(choices=BLOOD_GROUP_CHOICES)
    units = forms.IntegerField(min_value=0)
    min_threshold = forms.IntegerField(min_value=0, required=False)


class InventoryAdjustForm(forms.Form):
    blood_group = forms.ChoiceField(choices=BLOOD_GROUP_CHOICES)
    delta = forms.TypedChoiceField(choices=[('1', '+1'), ('-1', '-1')], coerce=int)


class EmergencyRequestForm(forms.ModelForm):
    urgency_level = forms.ChoiceField(choices=URGENCY_CHOICES, required=False)

    class Meta:
        model = EmergencyRequest
        fields = ['blood_group', 'units_required', 'urgency_level', 'description']

    def clean_urgency_level(self):
        return self.cleaned_data.get('urgency_level') or URGENCY_MEDIUM


class RequestStatusForm(forms.Form):
    status = forms.CharField()


class VerifyDonorForm(forms.Form):
    donor_id = forms.IntegerField(min_value=1)
    notes = forms.CharField(required=False)


class MemberForm(forms.Form):
    donor_id = forms.IntegerField(min_value=1)
    role = forms.CharField(max_length=40, required=False)


class MedicalReportForm(forms.ModelForm):
    isDonation = forms.BooleanField(required=False)

    class Meta:
        model = MedicalReport
        fields = [
            'hb_level', 'blood_pressure', 'pulse_rate', 'temperature', 'weight', 'units_donated',
            'blood_group', 'rh_factor', 'hiv_status', 'hepatitis_b', 'hepatitis_c', 'syphilis',
            'malaria', 'notes',
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Screens default to Negative when omitted
        for name in ('hiv_status', 'hepatitis_b', 'hepatitis_c', 'syphilis', 'malaria'):
            self.fields[name].required = False

    def clean(self):
        cleaned = super().clean()
        for name in ('hiv_status', 'hepatitis_b', 'hepatitis_c', 'syphilis', 'malaria'):
            if not cleaned.get(name):
                cleaned[name] = 'Negative'
        units = cleaned.get('units_donated')
        if units is not None and units < 0:
            self.add_error('units_donated', 'Units donated cannot be negative.')
        return cleaned

    def report_data(self):
        return {name: value for name, value in self.cleaned_data.items() if name != 'isDonation'}
