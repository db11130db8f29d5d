from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.db.models import Max
from django.utils import timezone

from blood.services.eligibility import compute_eligibility
from donor.models import Donor


class Command(BaseCommand):
    help = (
        "Rebuild the stored donor availability flag from donation history. "
        "Defaults to dry-run; pass --apply to write changes."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--limit",
            type=int,
            default=0,
            help="Optional limit on donors processed (0 = all).",
        )
        parser.add_argument(
            "--apply",
            action="store_true",
            help="Actually write changes to DB (default is dry-run).",
        )

    def handle(self, *args, **options):
        limit = int(options.get("limit") or 0)
        apply_changes = bool(options.get("apply"))
        if limit < 0:
            raise CommandError("--limit must not be negative")

        qs = Donor.objects.select_related("user").annotate(last_donation=Max("donations__date")).order_by("id")
        donors = list(qs[:limit] if limit > 0 else qs)
        if not donors:
            self.stdout.write(self.style.WARNING("No donors found."))
            return

        now = timezone.now()
        changed: list[Donor] = []
        for donor in donors:
            history = [donor.last_donation] if donor.last_donation else []
            eligible = compute_eligibility(history, now=now).is_eligible
            if donor.is_available != eligible:
                donor.is_available = eligible
                donor.availability_updated_at = now
                changed.append(donor)

        self.stdout.write(f"Checked {len(donors)} donors; {len(changed)} need their availability updated.")
        for donor in changed[:10]:
            state = "AVAILABLE" if donor.is_available else "UNAVAILABLE"
            self.stdout.write(f"- {donor.donor_tag} username={donor.username} -> {state}")

        if not apply_changes:
            self.stdout.write(self.style.WARNING("DRY-RUN: no changes written. Re-run with --apply to commit."))
            return

        with transaction.atomic():
            Donor.objects.bulk_update(changed, ["is_available", "availability_updated_at"], batch_size=500)

        self.stdout.write(self.style.SUCCESS(f"Availability recomputed for {len(changed)} donors."))
