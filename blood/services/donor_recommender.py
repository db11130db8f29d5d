from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from functools import lru_cache
from math import radians, sin, cos, sqrt, atan2
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from django.conf import settings
from django.db.models import Count, Max
from django.utils import timezone

from donor import models as dmodels

Number = Union[float, Decimal]

COORDINATES_PATH = Path(__file__).resolve().parent.parent / "data" / "city_coordinates.json"

# Recipient blood type -> donor types that can give to it.
BLOOD_COMPATIBILITY: Dict[str, Tuple[str, ...]] = {
    "A+": ("A+", "A-", "O+", "O-"),
    "O+": ("O+", "O-"),
    "B+": ("B+", "B-", "O+", "O-"),
    "AB+": ("AB+", "AB-", "A+", "A-", "B+", "B-", "O+", "O-"),
    "A-": ("A-", "O-"),
    "O-": ("O-",),
    "B-": ("B-", "O-"),
    "AB-": ("AB-", "A-", "B-", "O-"),
    "A1+": ("A1+", "A1-", "A+", "A-", "O+", "O-"),
    "A1B+": ("A1B+", "A1B-", "A1+", "A1-", "B+", "B-", "AB+", "AB-", "O+", "O-"),
    "Bombay Blood Group": ("Bombay Blood Group",),
}


@dataclass(frozen=True)
class DonorRecommendation:
    donor: dmodels.Donor
    score: int
    heuristic_score: float
    compatibility_score: int
    distance_km: Optional[float]
    total_donations: int
    last_donation_date: Optional[date]

    def as_dict(self) -> dict:
        donor = self.donor
        return {
            "id": donor.id,
            "name": donor.get_name,
            "email": donor.email,
            "phone": donor.phone,
            "blood_group": donor.blood_type,
            "city": donor.city or "N/A",
            "district": donor.district or "N/A",
            "state": donor.state or "N/A",
            "distance": round(self.distance_km, 2) if self.distance_km is not None else None,
            "suitability_score": self.score,
            "heuristic_score": round(self.heuristic_score, 2),
            "compatibility_score": self.compatibility_score,
            "total_donations": self.total_donations,
        }


def compatible_blood_types(target: str) -> Tuple[str, ...]:
    return BLOOD_COMPATIBILITY.get(target, (target,))


def compatibility_score(donor_type: str, target: str) -> int:
    return 100 if donor_type == target else 80


def _haversine_km(lat1: Number, lon1: Number, lat2: Number, lon2: Number) -> float:
    # Earth radius in KM
    R = 6371.0
    phi1, phi2 = radians(float(lat1)), radians(float(lat2))
    dphi = radians(float(lat2) - float(lat1))
    dlambda = radians(float(lon2) - float(lon1))
    a = sin(dphi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(dlambda / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return float(R * c)


@lru_cache(maxsize=1)
def _city_coordinates() -> Dict[str, Tuple[float, float]]:
    with open(COORDINATES_PATH, encoding="utf-8") as handle:
        return {name: (float(lat), float(lng)) for name, (lat, lng) in json.load(handle).items()}


def _normalize_place(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    cleaned = re.sub(r"\b(city|town|district)\b", "", value.lower())
    return " ".join(cleaned.split()) or None


def resolve_coordinates(city: Optional[str], district: Optional[str]) -> Optional[Tuple[float, float]]:
    """Approximate coordinates for a known Indian city, falling back to the district."""

    table = _city_coordinates()
    for place in (_normalize_place(city), _normalize_place(district)):
        if place and place in table:
            return table[place]
    return None


def _get_weights() -> dict:
    default = {
        "distance": 0.6,
        "compatibility": 0.2,
        "recency": 0.1,
        "history": 0.1,
    }
    configured = getattr(settings, "SMART_MATCH_WEIGHTS", None)
    if isinstance(configured, dict):
        default.update({k: float(v) for k, v in configured.items() if v is not None})
    return default


def distance_factor(distance_km: Optional[float]) -> float:
    """Banded proximity score in ``[0, 1]``; nearer bands dominate."""

    if distance_km is None:
        return 0.0
    d = distance_km
    if d <= 2.0:
        return 0.90 + (1 - d / 2.0) * 0.10
    if d <= 10.0:
        return 0.70 + (1 - (d - 2.0) / 8.0) * 0.19
    if d <= 30.0:
        return 0.40 + (1 - (d - 10.0) / 20.0) * 0.29
    if d <= 100.0:
        return 0.10 + (1 - (d - 30.0) / 70.0) * 0.29
    return max(0.0, (1 - (d - 100.0) / 400.0) * 0.09)


def recency_factor(last_donation: Optional[date], today: date) -> float:
    if not last_donation:
        return 1.0
    days_since = (today - last_donation).days
    return max(0.0, min(days_since / 180.0, 1.0))


def history_factor(total_donations: int) -> float:
    return min((total_donations or 0) / 10.0, 1.0)


def suitability_score(
    *,
    distance_km: Optional[float],
    donor_type: str,
    target_type: str,
    last_donation: Optional[date],
    total_donations: int,
    today: date,
) -> Tuple[int, float]:
    """Return ``(final score 0-100, unrounded heuristic score)``."""

    weights = _get_weights()
    heuristic = 0.0
    heuristic += distance_factor(distance_km) * weights["distance"] * 100
    heuristic += (compatibility_score(donor_type, target_type) / 100) * weights["compatibility"] * 100
    heuristic += recency_factor(last_donation, today) * weights["recency"] * 100
    heuristic += history_factor(total_donations) * weights["history"] * 100

    final = heuristic
    # Neighbourhood boost
    if distance_km is not None and distance_km < 2.0:
        final *= 1.25
    elif distance_km is not None and distance_km < 5.0:
        final *= 1.10
    return int(round(min(final, 100.0))), heuristic


def recommend_donors(
    blood_type: str,
    *,
    lat: Optional[float] = None,
    lng: Optional[float] = None,
    city: Optional[str] = None,
    district: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[DonorRecommendation]:
    """Rank available donors who can give to ``blood_type``, closest first.

    Donors without resolvable coordinates have no distance and sort last.
    """

    today = timezone.localdate()
    if lat is None or lng is None:
        seeker_coords = resolve_coordinates(city, district)
    else:
        seeker_coords = (float(lat), float(lng))

    candidates: Sequence[dmodels.Donor] = (
        dmodels.Donor.objects.eligible(today)
        .select_related("user")
        .filter(blood_type__in=compatible_blood_types(blood_type))
        .annotate(last_donation=Max("donations__date"), donation_count=Count("donations"))
        .order_by("id")
    )

    recs: List[DonorRecommendation] = []
    for donor in candidates:
        if donor.latitude is not None and donor.longitude is not None:
            donor_coords = (donor.latitude, donor.longitude)
        else:
            donor_coords = resolve_coordinates(donor.city, donor.district)

        distance_km: Optional[float] = None
        if donor_coords and seeker_coords:
            distance_km = _haversine_km(seeker_coords[0], seeker_coords[1], donor_coords[0], donor_coords[1])

        score, heuristic = suitability_score(
            distance_km=distance_km,
            donor_type=donor.blood_type,
            target_type=blood_type,
            last_donation=donor.last_donation,
            total_donations=donor.donation_count,
            today=today,
        )
        recs.append(
            DonorRecommendation(
                donor=donor,
                score=score,
                heuristic_score=heuristic,
                compatibility_score=compatibility_score(donor.blood_type, blood_type),
                distance_km=distance_km,
                total_donations=donor.donation_count,
                last_donation_date=donor.last_donation,
            )
        )

    recs.sort(key=lambda r: (r.distance_km is None, r.distance_km or 0.0))
    if limit:
        return recs[: max(1, int(limit))]
    return recs
