"""Professional as seen through the directory — location and availability."""

from dataclasses import dataclass

from app.domain.value_objects.geo_point import GeoPoint


@dataclass
class Professional:
    id: int
    name: str
    category: str
    location: GeoPoint | None
    is_available: bool = True
    rating: float = 0.0
