from datetime import timedelta
from decimal import Decimal

from django.db import models
from django.db.models import Exists, OuterRef
from django.contrib.auth.models import User
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils import timezone

from blood.constants import BLOOD_GROUP_CHOICES, GENDER_CHOICES
from blood.services import eligibility as eligibility_service
from blood.services import profile as profile_service
from blood.utils.validators import age_on


class DonorQuerySet(models.QuerySet):
    def eligible(self, today=None):
        """Donors past their recovery window as of ``today``.

        Reads donation dates directly, so the result does not depend on the
        stored ``is_available`` index being current.
        """

        today = today or timezone.localdate()
        cutoff = today - timedelta(days=eligibility_service.get_recovery_days())
        recent = Donation.objects.filter(donor=OuterRef("pk"), date__gt=cutoff)
        return self.filter(~Exists(recent))


class Donor(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='donor')
    profile_pic = models.ImageField(upload_to='profile_pic/Donor/', null=True, blank=True)

    full_name = models.CharField(max_length=50, blank=True)
    phone = models.CharField(max_length=10, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    blood_type = models.CharField(max_length=20, choices=BLOOD_GROUP_CHOICES, blank=True)

    country = models.CharField(max_length=60, default='India')
    state = models.CharField(max_length=60, blank=True)
    district = models.CharField(max_length=60, blank=True)
    city = models.CharField(max_length=60, blank=True)
    latitude = models.DecimalField(
        max_digits=9,
        decimal_places=6,
        null=True,
        blank=True,
        validators=[MinValueValidator(-90), MaxValueValidator(90)],
        help_text="Decimal latitude between -90 and 90"
    )
    longitude = models.DecimalField(
        max_digits=9,
        decimal_places=6,
        null=True,
        blank=True,
        validators=[MinValueValidator(-180), MaxValueValidator(180)],
        help_text="Decimal longitude between -180 and 180"
    )

    # Display index only; filtering uses ``Donor.objects.eligible()`` and
    # decisions use the live ``eligibility`` property.
    is_available = models.BooleanField(default=True)
    availability_updated_at = models.DateTimeField(null=True, blank=True)

    google_id = models.CharField(max_length=64, unique=True, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    objects = DonorQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at', '-id']

    @property
    def get_name(self):
        return self.full_name or self.user.username

    @property
    def email(self):
        return self.user.email

    @property
    def username(self):
        return self.user.username

    @property
    def donor_tag(self):
        return f"DON-{self.pk:06d}" if self.pk else ""

    @property
    def has_profile_pic(self):
        return bool(self.profile_pic) and hasattr(self.profile_pic, 'url')

    def __str__(self):
        return self.get_name

    @property
    def is_profile_complete(self) -> bool:
        return profile_service.is_profile_complete(self)

    @property
    def missing_profile_fields(self):
        return profile_service.missing_profile_fields(self)

    @property
    def eligibility(self):
        return eligibility_service.compute_eligibility(self.donations.values_list('date', flat=True))

    def mark_availability(self, available: bool):
        self.is_available = available
        self.availability_updated_at = timezone.now()
        self.save(update_fields=["is_available", "availability_updated_at"])

    def refresh_availability(self) -> bool:
        """Sync the stored availability flag with the live eligibility result."""

        eligible = self.eligibility.is_eligible
        if eligible != self.is_available:
            self.mark_availability(eligible)
        return eligible

    @property
    def age_years(self):
        if not self.date_of_birth:
            return None
        return age_on(self.date_of_birth, timezone.localdate())


class DonationQuerySet(models.QuerySet):
    def for_donor(self, donor):
        return self.filter(donor=donor).order_by('-date', '-id')


class Donation(models.Model):
    donor = models.ForeignKey(Donor, on_delete=models.CASCADE, related_name='donations')
    organization = models.ForeignKey(
        'organization.Organization',
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='donations',
    )
    date = models.DateField()
    units = models.DecimalField(
        max_digits=4,
        decimal_places=1,
        default=Decimal('1.0'),
        validators=[MinValueValidator(Decimal('0.1'))],
    )
    notes = models.TextField(blank=True)

    hb_level = models.DecimalField(max_digits=4, decimal_places=1, null=True, blank=True)
    blood_pressure = models.CharField(max_length=20, blank=True)
    pulse_rate = models.PositiveSmallIntegerField(null=True, blank=True)
    temperature = models.DecimalField(max_digits=4, decimal_places=1, null=True, blank=True)
    weight = models.DecimalField(max_digits=5, decimal_places=1, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    objects = DonationQuerySet.as_manager()

    def __str__(self):
        return f"{self.donor.get_name} - {self.units} unit(s) on {self.date}"

    class Meta:
        ordering = ['-date', '-id']  # Most recent first
        verbose_name = "Donation"
        verbose_name_plural = "Donations"


class Reminder(models.Model):
    donor = models.ForeignKey(Donor, on_delete=models.CASCADE, related_name='reminders')
    reminder_date = models.DateField()
    message = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['reminder_date', 'id']

    def __str__(self):
        return f"{self.donor.get_name} - {self.reminder_date}"
