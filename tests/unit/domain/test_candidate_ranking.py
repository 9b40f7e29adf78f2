"""Tests for candidate filtering and ranking."""

import math

from app.domain.entities.professional import Professional
from app.domain.policies.candidate_ranking import rank_candidates
from app.domain.value_objects.geo_point import EARTH_RADIUS_KM, GeoPoint

ORIGIN = GeoPoint(latitude=-34.6118, longitude=-58.3960)


def _north(km: float) -> GeoPoint:
    return GeoPoint(
        latitude=ORIGIN.latitude + math.degrees(km / EARTH_RADIUS_KM),
        longitude=ORIGIN.longitude,
    )


def _pro(pid, km, category="plumber", available=True, rating=4.0, location=True):
    return Professional(
        id=pid, name=f"Pro {pid}", category=category,
        location=_north(km) if location else None,
        is_available=available, rating=rating,
    )


def test_professional_at_origin_has_zero_distance():
    ranked = rank_candidates(ORIGIN, 5.0, "plumber", [_pro(1, 0.0)])
    assert ranked[0].distance_km == 0.0


def test_radius_boundary_is_inclusive():
    pros = [_pro(1, 4.0)]
    d = ORIGIN.haversine_km(pros[0].location)
    assert [c.professional_id for c in rank_candidates(ORIGIN, d, "plumber", pros)] == [1]
    assert rank_candidates(ORIGIN, d - 1e-6, "plumber", pros) == []


def test_scenario_three_and_eight_km():
    pros = [_pro(1, 3.0), _pro(2, 8.0)]
    ranked = rank_candidates(ORIGIN, 5.0, "plumber", pros)
    assert [c.professional_id for c in ranked] == [1]
    assert abs(ranked[0].distance_km - 3.0) < 0.001


def test_filters_unavailable_wrong_category_and_unlocated():
    pros = [
        _pro(1, 1.0, available=False),
        _pro(2, 1.0, category="electrician"),
        _pro(3, 1.0, location=False),
        _pro(4, 1.0, category="PLUMBER"),
    ]
    ranked = rank_candidates(ORIGIN, 5.0, "plumber", pros)
    assert [c.professional_id for c in ranked] == [4]


def test_excluded_professionals_are_skipped():
    pros = [_pro(1, 1.0), _pro(2, 2.0)]
    ranked = rank_candidates(ORIGIN, 5.0, "plumber", pros, exclude_ids={1})
    assert [c.professional_id for c in ranked] == [2]


def test_near_ties_ordered_by_rating_then_id():
    pros = [
        _pro(3, 2.02, rating=4.0),
        _pro(1, 2.01, rating=4.0),
        _pro(2, 2.03, rating=4.9),
        _pro(4, 1.0, rating=1.0),
    ]
    ranked = rank_candidates(ORIGIN, 5.0, "plumber", pros)
    assert [c.professional_id for c in ranked] == [4, 2, 1, 3]


def test_limit_caps_pool_size():
    pros = [_pro(i, i * 0.3) for i in range(1, 15)]
    ranked = rank_candidates(ORIGIN, 50.0, "plumber", pros, limit=10)
    assert len(ranked) == 10
    assert ranked[0].professional_id == 1
