import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth.models import Group, User
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone
from faker import Faker

from blood import models as blood_models
from blood.constants import (
    DONOR_GROUP,
    FACILITY_TYPE_CHOICES,
    ORGANIZATION_GROUP,
    REQUEST_ACTIVE,
    REQUEST_CLOSED,
    URGENCY_CHOICES,
)
from blood.services.eligibility import get_recovery_days
from donor import models as donor_models
from organization import models as org_models

COMMON_GROUPS = ["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]
GROUP_WEIGHTS = [22, 2, 32, 2, 8, 1, 30, 3]
PLACES = [
    ("Delhi", "New Delhi", "New Delhi"),
    ("Maharashtra", "Mumbai", "Mumbai"),
    ("Maharashtra", "Pune", "Pune"),
    ("Karnataka", "Bengaluru Urban", "Bengaluru"),
    ("Tamil Nadu", "Chennai", "Chennai"),
    ("Telangana", "Hyderabad", "Hyderabad"),
    ("West Bengal", "Kolkata", "Kolkata"),
    ("Gujarat", "Ahmedabad", "Ahmedabad"),
    ("Rajasthan", "Jaipur", "Jaipur"),
    ("Uttar Pradesh", "Lucknow", "Lucknow"),
    ("Kerala", "Ernakulam", "Kochi"),
    ("Kerala", "Thiruvananthapuram", "Thiruvananthapuram"),
]
DEFAULT_PASSWORD = "DemoPass123!"


class Command(BaseCommand):
    help = "Generate a demo dataset with donors, donations, organizations, inventory, emergencies and seekers"

    def add_arguments(self, parser):
        parser.add_argument("--donors", type=int, default=60, help="Number of donors to create (default 60)")
        parser.add_argument("--organizations", type=int, default=6, help="Number of organizations to create (default 6)")
        parser.add_argument("--seekers", type=int, default=15, help="Number of public seeker requests (default 15)")
        parser.add_argument("--seed", type=int, help="Random seed for deterministic runs")
        parser.add_argument("--purge", action="store_true", help="Delete existing donors/organizations/seekers before seeding")

    def handle(self, *args, **options):
        for name in ("donors", "organizations", "seekers"):
            if options[name] < 0:
                raise CommandError(f"--{name} must not be negative")

        faker = Faker("en_IN")
        if options.get("seed") is not None:
            Faker.seed(options["seed"])
            random.seed(options["seed"])

        if options.get("purge"):
            self._purge_existing()

        donor_group, _ = Group.objects.get_or_create(name=DONOR_GROUP)
        org_group, _ = Group.objects.get_or_create(name=ORGANIZATION_GROUP)

        with transaction.atomic():
            orgs = self._create_organizations(options["organizations"], org_group, faker)
            donors = self._create_donors(options["donors"], donor_group, faker)
            donation_count = self._create_donations(donors, orgs)
            self._create_inventory(orgs)
            request_count = self._create_requests(orgs, faker)
            member_count = self._create_memberships(orgs, donors)
            self._create_seekers(options["seekers"], faker)

        for donor in donors:
            donor.refresh_availability()

        summary = (
            f"Seed complete: {len(donors)} donors, {len(orgs)} organizations, "
            f"{donation_count} donations, {request_count} emergency requests, {member_count} memberships."
        )
        self.stdout.write(self.style.SUCCESS(summary))
        self.stdout.write(self.style.SUCCESS("Default password for generated accounts: '" + DEFAULT_PASSWORD + "'"))

    # ------------------------------------------------------------------
    def _purge_existing(self):
        self.stdout.write("Purging existing demo data…")
        blood_models.Seeker.objects.all().delete()
        user_ids = list(donor_models.Donor.objects.values_list("user_id", flat=True))
        user_ids += list(org_models.Organization.objects.values_list("user_id", flat=True))
        # Deleting the user cascades to donor/organization profiles
        User.objects.filter(id__in=user_ids).delete()
        self.stdout.write(self.style.WARNING("Existing demo records removed."))

    def _random_username(self, prefix):
        suffix = random.randint(1000, 999999)
        username = f"{prefix}{suffix}"
        while User.objects.filter(username=username).exists():
            suffix = random.randint(1000, 999999)
            username = f"{prefix}{suffix}"
        return username

    def _create_user(self, prefix, group):
        username = self._random_username(prefix)
        user = User.objects.create_user(username=username, email=f"{username}@demo.local", password=DEFAULT_PASSWORD)
        group.user_set.add(user)
        return user

    def _phone(self):
        return str(random.randint(6, 9)) + "".join(str(random.randint(0, 9)) for _ in range(9))

    def _create_organizations(self, target, org_group, faker):
        orgs = []
        for index in range(target):
            state, district, city = random.choice(PLACES)
            user = self._create_user("org_", org_group)
            user.username = user.email
            user.save(update_fields=["username"])
            orgs.append(org_models.Organization.objects.create(
                user=user,
                name=f"{city} {faker.last_name()} {random.choice(['Hospital', 'Blood Centre', 'Clinic'])}",
                phone=self._phone(),
                license_number=f"LIC-{index + 1:04d}-{random.randint(1000, 9999)}",
                type=random.choice(FACILITY_TYPE_CHOICES)[0],
                state=state,
                district=district,
                city=city,
                address=faker.street_address(),
                verified=random.random() < 0.7,
            ))
        return orgs

    def _create_donors(self, target, donor_group, faker):
        donors = []
        today = timezone.localdate()
        for _ in range(target):
            state, district, city = random.choice(PLACES)
            user = self._create_user("donor_", donor_group)
            gender = random.choice(["Male", "Female"])
            name = faker.name_male() if gender == "Male" else faker.name_female()
            donors.append(donor_models.Donor.objects.create(
                user=user,
                full_name="".join(ch for ch in name if ch.isalpha() or ch == " ")[:50].strip(),
                phone=self._phone(),
                gender=gender,
                date_of_birth=today - timedelta(days=random.randint(19 * 365, 60 * 365)),
                blood_type=random.choices(COMMON_GROUPS, weights=GROUP_WEIGHTS, k=1)[0],
                state=state,
                district=district,
                city=city,
            ))
        return donors

    def _create_donations(self, donors, orgs):
        total = 0
        today = timezone.localdate()
        gap = get_recovery_days()
        for donor in donors:
            # Walk backwards from a random recent date so history respects the recovery gap
            donated_on = today - timedelta(days=random.randint(0, 200))
            for _ in range(random.randint(0, 4)):
                donor_models.Donation.objects.create(
                    donor=donor,
                    organization=random.choice(orgs) if orgs and random.random() < 0.6 else None,
                    date=donated_on,
                    units=Decimal(random.choice(["0.5", "1.0", "1.0", "1.5"])),
                    notes="Demo donation",
                )
                total += 1
                donated_on -= timedelta(days=gap + random.randint(0, 120))
        return total

    def _create_inventory(self, orgs):
        for org in orgs:
            for group in COMMON_GROUPS:
                org_models.InventoryItem.objects.update_or_create(
                    organization=org,
                    blood_group=group,
                    defaults={"units": random.randint(0, 40)},
                )

    def _create_requests(self, orgs, faker):
        total = 0
        for org in orgs:
            for _ in range(random.randint(0, 3)):
                closed = random.random() < 0.4
                org_models.EmergencyRequest.objects.create(
                    organization=org,
                    blood_group=random.choices(COMMON_GROUPS, weights=GROUP_WEIGHTS, k=1)[0],
                    units_required=random.randint(1, 6),
                    urgency_level=random.choice(URGENCY_CHOICES)[0],
                    description=faker.sentence(nb_words=10),
                    status=REQUEST_CLOSED if closed else REQUEST_ACTIVE,
                    closed_at=timezone.now() if closed else None,
                )
                total += 1
        return total

    def _create_memberships(self, orgs, donors):
        total = 0
        for org in orgs:
            local = [donor for donor in donors if donor.city == org.city] or donors
            for donor in random.sample(local, k=min(len(local), random.randint(2, 8))):
                _, created = org_models.OrganizationMember.objects.get_or_create(organization=org, donor=donor)
                total += int(created)
        return total

    def _create_seekers(self, target, faker):
        today = timezone.localdate()
        for _ in range(target):
            state, district, _city = random.choice(PLACES)
            name = "".join(ch for ch in faker.name() if ch.isalpha() or ch == " ")[:50].strip()
            blood_models.Seeker.objects.create(
                full_name=name,
                email=faker.email(),
                phone=self._phone(),
                blood_type=random.choice(COMMON_GROUPS),
                required_date=today + timedelta(days=random.randint(0, 14)),
                state=state,
                district=district,
            )
