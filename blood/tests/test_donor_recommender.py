from datetime import date, timedelta
from decimal import Decimal

from django.contrib.auth.models import User
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone

from donor.models import Donation, Donor
from blood.services.donor_recommender import (
    compatible_blood_types,
    distance_factor,
    recommend_donors,
    resolve_coordinates,
    suitability_score,
)


class ScoringTests(SimpleTestCase):
    def test_compatibility_table(self):
        self.assertEqual(compatible_blood_types("O-"), ("O-",))
        self.assertIn("O-", compatible_blood_types("AB+"))
        self.assertEqual(compatible_blood_types("INRA"), ("INRA",))

    def test_distance_bands_decrease(self):
        self.assertEqual(distance_factor(None), 0.0)
        self.assertAlmostEqual(distance_factor(0.0), 1.0)
        self.assertGreater(distance_factor(5), distance_factor(20))
        self.assertGreater(distance_factor(20), distance_factor(60))
        self.assertEqual(distance_factor(1000), 0.0)

    def test_score_without_location(self):
        score, heuristic = suitability_score(
            distance_km=None,
            donor_type="A+",
            target_type="A+",
            last_donation=None,
            total_donations=0,
            today=date(2024, 1, 1),
        )
        self.assertAlmostEqual(heuristic, 30.0)
        self.assertEqual(score, 30)

    def test_neighbourhood_boost_is_capped(self):
        score, heuristic = suitability_score(
            distance_km=0.0,
            donor_type="A+",
            target_type="A+",
            last_donation=None,
            total_donations=0,
            today=date(2024, 1, 1),
        )
        self.assertAlmostEqual(heuristic, 90.0)
        self.assertEqual(score, 100)

    @override_settings(SMART_MATCH_WEIGHTS={"distance": 0.0, "compatibility": 1.0, "recency": 0.0, "history": 0.0})
    def test_weights_are_configurable(self):
        score, _ = suitability_score(
            distance_km=None,
            donor_type="O+",
            target_type="A+",
            last_donation=None,
            total_donations=0,
            today=date(2024, 1, 1),
        )
        self.assertEqual(score, 80)

    def test_city_lookup_ignores_suffixes(self):
        self.assertEqual(resolve_coordinates("Kochi City", None), resolve_coordinates("kochi", None))
        self.assertEqual(resolve_coordinates("Nowhere", "Ernakulam District"), resolve_coordinates(None, "ernakulam"))
        self.assertIsNone(resolve_coordinates("Atlantis", None))


class DonorRecommenderTests(TestCase):
    def _donor(self, username, blood_type, **extra):
        user = User.objects.create(username=username)
        return Donor.objects.create(user=user, blood_type=blood_type, is_available=True, **extra)

    def test_recommender_skips_donors_in_recovery(self):
        donor = self._donor("d1", "O+", city="Kochi")
        Donation.objects.create(donor=donor, date=timezone.localdate() - timedelta(days=10))

        self.assertEqual(recommend_donors("O+", city="Kochi"), [])

        Donation.objects.all().delete()
        recs = recommend_donors("O+", city="Kochi")
        self.assertEqual([rec.donor.id for rec in recs], [donor.id])

    def test_recommender_uses_compatibility_not_exact_match(self):
        universal = self._donor("d2", "O-")
        self._donor("d3", "B+")
        recs = recommend_donors("A+")
        self.assertEqual([rec.donor.id for rec in recs], [universal.id])
        self.assertEqual(recs[0].compatibility_score, 80)

    def test_recommender_orders_by_distance_with_unknown_last(self):
        unknown = self._donor("d4", "A+")
        far = self._donor("d5", "A+", latitude=Decimal("28.613900"), longitude=Decimal("77.209000"))
        near = self._donor("d6", "A+", latitude=Decimal("9.931200"), longitude=Decimal("76.267300"))

        recs = recommend_donors("A+", lat=9.9312, lng=76.2673)
        self.assertEqual([rec.donor.id for rec in recs], [near.id, far.id, unknown.id])
        self.assertIsNone(recs[-1].distance_km)
        self.assertLess(recs[0].distance_km, 0.01)

    def test_history_counts_toward_total(self):
        donor = self._donor("d7", "A+")
        Donation.objects.create(donor=donor, date=timezone.localdate() - timedelta(days=400))
        Donation.objects.create(donor=donor, date=timezone.localdate() - timedelta(days=200))
        recs = recommend_donors("A+", limit=5)
        self.assertEqual(recs[0].total_donations, 2)
        self.assertEqual(recs[0].as_dict()["total_donations"], 2)
