from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import User
from django.db import models
from django.utils import timezone

from .constants import BLOOD_GROUP_CHOICES


class Seeker(models.Model):
    full_name = models.CharField(max_length=50)
    email = models.EmailField(max_length=100)
    phone = models.CharField(max_length=10)
    blood_type = models.CharField(max_length=20, choices=BLOOD_GROUP_CHOICES)
    required_date = models.DateField(null=True, blank=True)
    country = models.CharField(max_length=60, default='India')
    state = models.CharField(max_length=60, blank=True)
    district = models.CharField(max_length=60, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.full_name} - {self.blood_type}"


class Notification(models.Model):
    KIND_EMERGENCY = 'Emergency'
    KIND_SYSTEM = 'System'
    KIND_UPDATE = 'Update'
    KIND_CHOICES = [
        (KIND_EMERGENCY, 'Emergency'),
        (KIND_SYSTEM, 'System'),
        (KIND_UPDATE, 'Update'),
    ]

    donor = models.ForeignKey(
        'donor.Donor', null=True, blank=True, on_delete=models.CASCADE, related_name='notifications'
    )
    organization = models.ForeignKey(
        'organization.Organization', null=True, blank=True, on_delete=models.CASCADE, related_name='notifications'
    )
    kind = models.CharField(max_length=10, choices=KIND_CHOICES, default=KIND_SYSTEM)
    title = models.CharField(max_length=255, blank=True)
    message = models.TextField(blank=True)
    source_request = models.ForeignKey(
        'organization.EmergencyRequest',
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name='notifications',
    )
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"[{self.kind}] {self.title}"


def _reset_code_expiry():
    minutes = int(getattr(settings, 'PASSWORD_RESET_CODE_TTL_MINUTES', 10))
    return timezone.now() + timedelta(minutes=minutes)


class PasswordResetCode(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='reset_codes')
    code = models.CharField(max_length=4)
    expires_at = models.DateTimeField(default=_reset_code_expiry)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def is_expired(self, now=None) -> bool:
        return (now or timezone.now()) > self.expires_at

    def __str__(self):
        return f"Reset code for {self.user.username}"
