"""CandidateRankingPolicy — filter and order professionals for a request."""

from __future__ import annotations

from dataclasses import dataclass

from app.domain.entities.professional import Professional
from app.domain.value_objects.geo_point import GeoPoint


@dataclass(frozen=True)
class RankedCandidate:
    professional_id: int
    distance_km: float
    rating: float


def rank_candidates(
    origin: GeoPoint,
    radius_km: float,
    service_category: str,
    professionals: list[Professional],
    exclude_ids: set[int] | frozenset[int] = frozenset(),
    limit: int | None = None,
) -> list[RankedCandidate]:
    """Deterministic eligibility filter + ranking.

    Eligible = available, same category, known location, not excluded and
    within ``radius_km`` (inclusive) by haversine distance.

    Ordering: distance rounded to 0.1 km ASC, rating DESC, id ASC, so
    professionals at practically the same distance are ordered by rating
    and repeated runs give the same list.
    """
    category = service_category.strip().lower()
    ranked: list[RankedCandidate] = []

    for p in professionals:
        if not p.is_available or p.location is None:
            continue
        if p.id in exclude_ids:
            continue
        if p.category.strip().lower() != category:
            continue
        distance = origin.haversine_km(p.location)
        if distance > radius_km:
            continue
        ranked.append(
            RankedCandidate(
                professional_id=p.id,
                distance_km=round(distance, 3),
                rating=p.rating or 0.0,
            )
        )

    ranked.sort(key=lambda c: (round(c.distance_km, 1), -c.rating, c.professional_id))
    if limit is not None:
        ranked = ranked[:limit]
    return ranked
