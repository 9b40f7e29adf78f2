"""Port interface for the professional directory."""

from abc import ABC, abstractmethod

from app.domain.entities.professional import Professional
from app.domain.value_objects.geo_point import GeoPoint


class ProfessionalDirectory(ABC):
    @abstractmethod
    async def find_eligible(
        self, location: GeoPoint, radius_km: float, service_category: str
    ) -> list[Professional]:
        """Return professionals of the category near the location.

        The result may be a coarse superset; the caller applies the exact
        distance and availability checks.
        """
        ...
