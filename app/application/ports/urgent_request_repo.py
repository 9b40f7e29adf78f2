"""Port interface for urgent request persistence.

Every method that changes ``status`` is a single conditional write against
the store; it returns False when the precondition no longer holds.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from app.domain.entities.urgent_request import UrgentRequest
from app.domain.value_objects.enums import RequestStatus
from app.domain.value_objects.geo_point import GeoPoint


class UrgentRequestRepository(ABC):
    @abstractmethod
    async def save(self, request: UrgentRequest) -> UrgentRequest:
        ...

    @abstractmethod
    async def get_by_id(self, request_id: int) -> UrgentRequest | None:
        ...

    @abstractmethod
    async def get_pending_near(self, location: GeoPoint, radius_km: float) -> list[UrgentRequest]:
        """Open pending requests within the bounding box of ``radius_km``.

        Coarse filter only; callers check the exact distance.
        """
        ...

    @abstractmethod
    async def get_due_for_redispatch(self, dispatched_before: datetime) -> list[UrgentRequest]:
        """Open pending requests whose current round started before the cutoff."""
        ...

    @abstractmethod
    async def lock_client(self, client_id: int) -> None:
        """Serialize request creation for one client until the transaction ends."""
        ...

    @abstractmethod
    async def count_created_since(self, client_id: int, since: datetime) -> int:
        ...

    @abstractmethod
    async def try_assign(self, request_id: int, professional_id: int) -> bool:
        """Atomically move pending -> assigned for an open candidate.

        One round-trip: succeeds only if the request is pending, not
        failed-to-match, and (request, professional) is an open candidate.
        """
        ...

    @abstractmethod
    async def try_transition(
        self,
        request_id: int,
        from_status: RequestStatus,
        to_status: RequestStatus,
        completed_at: datetime | None = None,
    ) -> bool:
        ...

    @abstractmethod
    async def claim_round(
        self,
        request_id: int,
        expected_round: int,
        radius_km: float,
        dispatched_at: datetime,
    ) -> bool:
        """Start dispatch round ``expected_round + 1`` if nobody else did."""
        ...

    @abstractmethod
    async def mark_match_failed(self, request_id: int, expected_round: int) -> bool:
        ...
