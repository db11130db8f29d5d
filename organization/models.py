from django.db import models
from django.contrib.auth.models import User
from django.core.validators import MinValueValidator
from django.utils import timezone

from blood.constants import (
    BLOOD_GROUP_CHOICES,
    FACILITY_TYPE_CHOICES,
    REQUEST_ACTIVE,
    REQUEST_CLOSED,
    REQUEST_STATUS_CHOICES,
    RH_FACTOR_CHOICES,
    SCREEN_RESULT_CHOICES,
    URGENCY_CHOICES,
    URGENCY_MEDIUM,
)
from blood.services import inventory as inventory_service
from donor.models import Donor, Donation


class Organization(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='organization')
    name = models.CharField(max_length=120)
    phone = models.CharField(max_length=20, blank=True)
    license_number = models.CharField(max_length=60, unique=True)
    type = models.CharField(max_length=20, choices=FACILITY_TYPE_CHOICES, default='Hospital')
    state = models.CharField(max_length=60, blank=True)
    district = models.CharField(max_length=60, blank=True)
    city = models.CharField(max_length=60, blank=True)
    address = models.CharField(max_length=255, blank=True)
    verified = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at', '-id']

    @property
    def email(self):
        return self.user.email

    def __str__(self):
        return self.name


class InventoryItem(models.Model):
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='inventory')
    blood_group = models.CharField(max_length=20, choices=BLOOD_GROUP_CHOICES)
    units = models.PositiveIntegerField(default=0)
    min_threshold = models.PositiveIntegerField(default=inventory_service.default_min_threshold)
    last_updated = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['blood_group']
        constraints = [
            models.UniqueConstraint(fields=['organization', 'blood_group'], name='unique_org_blood_group'),
        ]

    @property
    def is_low(self) -> bool:
        return inventory_service.is_low_stock(self)

    def __str__(self):
        return f"{self.organization.name} - {self.blood_group}: {self.units}"


class EmergencyRequest(models.Model):
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='emergency_requests')
    blood_group = models.CharField(max_length=20, choices=BLOOD_GROUP_CHOICES)
    units_required = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    urgency_level = models.CharField(max_length=10, choices=URGENCY_CHOICES, default=URGENCY_MEDIUM)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=10, choices=REQUEST_STATUS_CHOICES, default=REQUEST_ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at', '-id']

    @property
    def is_active(self) -> bool:
        return self.status == REQUEST_ACTIVE

    def close(self):
        """Active -> Closed. Closed is terminal, so closing twice is a no-op."""

        if not self.is_active:
            return False
        self.status = REQUEST_CLOSED
        self.closed_at = timezone.now()
        self.save(update_fields=['status', 'closed_at'])
        return True

    def __str__(self):
        return f"{self.blood_group} x{self.units_required} ({self.status})"


class MedicalReport(models.Model):
    donor = models.ForeignKey(Donor, on_delete=models.CASCADE, related_name='medical_reports')
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='medical_reports')
    donation = models.OneToOneField(
        Donation, null=True, blank=True, on_delete=models.SET_NULL, related_name='medical_report'
    )

    hb_level = models.DecimalField(max_digits=4, decimal_places=2, null=True, blank=True)
    blood_pressure = models.CharField(max_length=20, blank=True)
    pulse_rate = models.PositiveSmallIntegerField(null=True, blank=True)
    temperature = models.DecimalField(max_digits=4, decimal_places=1, null=True, blank=True)
    weight = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    units_donated = models.DecimalField(max_digits=4, decimal_places=1, null=True, blank=True)
    blood_group = models.CharField(max_length=20, choices=BLOOD_GROUP_CHOICES, blank=True)
    rh_factor = models.CharField(max_length=10, choices=RH_FACTOR_CHOICES, blank=True)

    hiv_status = models.CharField(max_length=10, choices=SCREEN_RESULT_CHOICES, default='Negative')
    hepatitis_b = models.CharField(max_length=10, choices=SCREEN_RESULT_CHOICES, default='Negative')
    hepatitis_c = models.CharField(max_length=10, choices=SCREEN_RESULT_CHOICES, default='Negative')
    syphilis = models.CharField(max_length=10, choices=SCREEN_RESULT_CHOICES, default='Negative')
    malaria = models.CharField(max_length=10, choices=SCREEN_RESULT_CHOICES, default='Negative')

    notes = models.TextField(blank=True)
    test_date = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-test_date', '-id']

    def __str__(self):
        return f"Report #{self.pk} for {self.donor.get_name}"


class DonorVerification(models.Model):
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='verifications')
    donor = models.ForeignKey(Donor, on_delete=models.CASCADE, related_name='verifications')
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=20, default='Verified')
    verified_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-verified_at', '-id']


class OrganizationMember(models.Model):
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='members')
    donor = models.ForeignKey(Donor, on_delete=models.CASCADE, related_name='memberships')
    role = models.CharField(max_length=40, default='Member')
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-joined_at', '-id']
        constraints = [
            models.UniqueConstraint(fields=['organization', 'donor'], name='unique_org_member'),
        ]

    def __str__(self):
        return f"{self.donor.get_name} @ {self.organization.name}"


class OrganizationLog(models.Model):
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='logs')
    action_type = models.CharField(max_length=40)
    entity_name = models.CharField(max_length=120, blank=True)
    description = models.TextField(blank=True)
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.action_type}: {self.entity_name}"
