"""CandidateFinder — geospatial lookup of eligible professionals."""

from __future__ import annotations

import logging

from app.application.ports.professional_directory import ProfessionalDirectory
from app.domain.policies.candidate_ranking import RankedCandidate, rank_candidates
from app.domain.policies.validation import validate_location, validate_radius
from app.domain.value_objects.geo_point import GeoPoint

logger = logging.getLogger(__name__)


class CandidateFinder:
    """Directory lookup + haversine filter + deterministic ranking."""

    def __init__(
        self,
        directory: ProfessionalDirectory,
        min_radius_km: float,
        max_radius_km: float,
        max_candidates: int | None = None,
    ):
        self._directory = directory
        self._min_radius_km = min_radius_km
        self._max_radius_km = max_radius_km
        self._max_candidates = max_candidates

    async def find(
        self,
        origin: GeoPoint,
        radius_km: float,
        service_category: str,
        exclude_ids: set[int] | frozenset[int] = frozenset(),
    ) -> list[RankedCandidate]:
        """Return ranked (professional, distance) pairs; empty is not an error.

        Raises:
            InvalidRadius: radius outside the configured bounds.
            InvalidCoordinates: origin outside ±90 / ±180.
        """
        validate_radius(radius_km, self._min_radius_km, self._max_radius_km)
        validate_location(origin)

        professionals = await self._directory.find_eligible(origin, radius_km, service_category)
        ranked = rank_candidates(
            origin,
            radius_km,
            service_category,
            professionals,
            exclude_ids=exclude_ids,
            limit=self._max_candidates,
        )
        logger.info(
            "Finder: %d/%d professionals eligible for '%s' within %.1f km",
            len(ranked), len(professionals), service_category, radius_km,
        )
        return ranked
