"""GeoPoint value object — immutable (lat, lon) pair."""

import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    def is_valid(self) -> bool:
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0

    def haversine_km(self, other: "GeoPoint") -> float:
        """Calculate distance in km between two points using the Haversine formula."""
        lat1 = math.radians(self.latitude)
        lat2 = math.radians(other.latitude)
        dlat = math.radians(other.latitude - self.latitude)
        dlon = math.radians(other.longitude - self.longitude)

        a = (
            math.sin(dlat / 2) ** 2
            + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
        )
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

        return EARTH_RADIUS_KM * c

    def bounding_box(self, radius_km: float) -> tuple[float, float, float, float]:
        """Return (min_lat, max_lat, min_lon, max_lon) enclosing the radius.

        Used as a coarse pre-filter before the exact haversine check.
        """
        angular = radius_km / EARTH_RADIUS_KM
        dlat = math.degrees(angular)
        cos_lat = math.cos(math.radians(self.latitude))
        # widest longitude of the circle is asin(sin(d) / cos(lat)), not d / cos(lat)
        if angular >= math.pi / 2 or math.sin(angular) >= cos_lat:
            dlon = 180.0
        else:
            dlon = math.degrees(math.asin(math.sin(angular) / cos_lat))
        return (
            max(-90.0, self.latitude - dlat),
            min(90.0, self.latitude + dlat),
            self.longitude - dlon,
            self.longitude + dlon,
        )
