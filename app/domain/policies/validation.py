"""Boundary validation for new urgent requests."""

from __future__ import annotations

from app.domain.errors import (
    InvalidCoordinates,
    InvalidRadius,
    MissingCategory,
    MissingDescription,
)
from app.domain.value_objects.geo_point import GeoPoint


def validate_radius(radius_km: float, min_radius_km: float, max_radius_km: float) -> None:
    if radius_km is None or not (min_radius_km <= radius_km <= max_radius_km):
        raise InvalidRadius(
            f"Radius must be between {min_radius_km:g} and {max_radius_km:g} km"
        )


def validate_location(location: GeoPoint) -> None:
    if not location.is_valid():
        raise InvalidCoordinates(
            "Latitude must be within ±90 and longitude within ±180"
        )


def validate_new_request(
    description: str | None,
    location: GeoPoint,
    radius_km: float,
    service_category: str | None,
    min_radius_km: float,
    max_radius_km: float,
) -> None:
    """Reject bad input before any state is touched."""
    if not description or not description.strip():
        raise MissingDescription("Description is required")
    if not service_category or not service_category.strip():
        raise MissingCategory("Service category is required")
    validate_location(location)
    validate_radius(radius_km, min_radius_km, max_radius_km)
