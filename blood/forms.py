from django import forms
from django.contrib.auth.models import User

from .constants import BLOOD_GROUP_CHOICES
from .models import Seeker
from .services.notifications import AUDIENCE_ALL, AUDIENCES
from .utils.validators import validate_email_shape, validate_full_name, validate_password_policy, validate_phone


class SeekerForm(forms.ModelForm):
    full_name = forms.CharField(max_length=50, strip=False)
    email = forms.CharField(max_length=100, validators=[validate_email_shape])
    phone = forms.CharField(validators=[validate_phone])
    blood_type = forms.ChoiceField(choices=BLOOD_GROUP_CHOICES)
    required_by = forms.DateField(required=False)
    country = forms.CharField(max_length=60, required=False)

    class Meta:
        model = Seeker
        fields = ['full_name', 'email', 'phone', 'blood_type', 'country', 'state', 'district']

    def clean_full_name(self):
        full_name = self.cleaned_data['full_name']
        validate_full_name(full_name)
        return full_name.strip()

    def clean_country(self):
        return self.cleaned_data.get('country') or 'India'

    def save(self, commit=True):
        seeker = super().save(commit=False)
        seeker.required_date = self.cleaned_data.get('required_by')
        if commit:
            seeker.save()
        return seeker


class SmartMatchForm(forms.Form):
    blood_type = forms.ChoiceField(choices=BLOOD_GROUP_CHOICES, error_messages={'required': 'Missing blood_type'})
    lat = forms.FloatField(min_value=-90, max_value=90, required=False)
    lng = forms.FloatField(min_value=-180, max_value=180, required=False)
    city = forms.CharField(required=False)
    district = forms.CharField(required=False)


class AdminLoginForm(forms.Form):
    username = forms.CharField()
    password = forms.CharField(strip=False)


class AdminAccountForm(forms.Form):
    username = forms.CharField(max_length=150)
    email = forms.CharField(required=False, validators=[validate_email_shape])
    password = forms.CharField(strip=False, validators=[validate_password_policy])

    def clean_username(self):
        username = self.cleaned_data['username']
        if User.objects.filter(username__iexact=username).exists():
            raise forms.ValidationError('Username is already taken')
        return username


class BroadcastForm(forms.Form):
    title = forms.CharField(max_length=255)
    message = forms.CharField()
    audience = forms.ChoiceField(choices=[(name, name) for name in AUDIENCES], required=False)

    def clean_audience(self):
        return self.cleaned_data.get('audience') or AUDIENCE_ALL
