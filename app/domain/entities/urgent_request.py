"""UrgentRequest entity — a client's "I need a professional now" request."""

from dataclasses import dataclass
from datetime import datetime

from app.domain.value_objects.enums import RequestStatus
from app.domain.value_objects.geo_point import GeoPoint


@dataclass
class UrgentRequest:
    id: int | None
    client_id: int
    description: str
    location: GeoPoint
    radius_km: float
    service_category: str
    price_estimate: float
    status: RequestStatus = RequestStatus.PENDING
    assigned_professional_id: int | None = None
    dispatch_round: int = 0
    match_failed: bool = False
    last_dispatched_at: datetime | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None

    def is_terminal(self) -> bool:
        return self.status in (RequestStatus.COMPLETED, RequestStatus.CANCELLED)

    def is_open_for_responses(self) -> bool:
        """Candidates may still accept or reject."""
        return self.status == RequestStatus.PENDING and not self.match_failed

    def summary(self) -> dict:
        return {
            "urgent_request_id": self.id,
            "description": self.description,
            "service_category": self.service_category,
            "location": {"lat": self.location.latitude, "lng": self.location.longitude},
            "radius_km": self.radius_km,
            "price_estimate": self.price_estimate,
        }
