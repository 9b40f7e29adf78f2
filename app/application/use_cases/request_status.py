"""Read-side use cases — request status view and nearby requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from app.application.ports.assignment_repo import AssignmentRepository
from app.application.ports.candidate_repo import CandidateRepository
from app.application.ports.urgent_request_repo import UrgentRequestRepository
from app.application.use_cases.lifecycle_tracker import LifecycleTracker
from app.domain.entities.assignment import Assignment
from app.domain.entities.candidate import Candidate
from app.domain.entities.tracking_entry import TrackingEntry
from app.domain.entities.urgent_request import UrgentRequest
from app.domain.errors import PermissionDenied, RequestNotFound
from app.domain.policies.validation import validate_location
from app.domain.value_objects.enums import UserRole
from app.domain.value_objects.geo_point import GeoPoint

logger = logging.getLogger(__name__)


@dataclass
class RequestStatusView:
    request: UrgentRequest
    assignment: Assignment | None
    history: list[TrackingEntry] = field(default_factory=list)
    candidates: list[Candidate] = field(default_factory=list)


@dataclass
class NearbyRequest:
    request: UrgentRequest
    distance_km: float


class GetRequestStatusUseCase:
    def __init__(
        self,
        request_repo: UrgentRequestRepository,
        candidate_repo: CandidateRepository,
        assignment_repo: AssignmentRepository,
        tracker: LifecycleTracker,
    ):
        self._requests = request_repo
        self._candidates = candidate_repo
        self._assignments = assignment_repo
        self._tracker = tracker

    async def execute(self, request_id: int, user_id: int, role: UserRole) -> RequestStatusView:
        request = await self._requests.get_by_id(request_id)
        if request is None:
            raise RequestNotFound(f"Urgent request {request_id} not found")

        candidates = await self._candidates.get_by_request(request_id)
        allowed = (
            role == UserRole.ADMIN
            or request.client_id == user_id
            or request.assigned_professional_id == user_id
            or any(c.professional_id == user_id for c in candidates)
        )
        if not allowed:
            raise PermissionDenied("Not allowed to view this urgent request")

        # the candidate list is only shown to the owner and admins
        if role != UserRole.ADMIN and request.client_id != user_id:
            candidates = [c for c in candidates if c.professional_id == user_id]

        return RequestStatusView(
            request=request,
            assignment=await self._assignments.get_by_request(request_id),
            history=await self._tracker.history(request_id),
            candidates=candidates,
        )


class ListNearbyRequestsUseCase:
    """Pending requests a professional could still be dispatched to.

    A request is listed when the professional is inside its radius and is
    not already in its candidate pool.
    """

    def __init__(
        self,
        request_repo: UrgentRequestRepository,
        candidate_repo: CandidateRepository,
        max_radius_km: float,
    ):
        self._requests = request_repo
        self._candidates = candidate_repo
        self._max_radius_km = max_radius_km

    async def execute(self, professional_id: int, location: GeoPoint) -> list[NearbyRequest]:
        validate_location(location)

        already_in = await self._candidates.get_request_ids_for_professional(professional_id)
        nearby: list[NearbyRequest] = []
        # no request radius exceeds the configured maximum
        pending = await self._requests.get_pending_near(location, self._max_radius_km)
        for request in pending:
            if request.id in already_in:
                continue
            distance = location.haversine_km(request.location)
            if distance <= request.radius_km:
                nearby.append(NearbyRequest(request=request, distance_km=round(distance, 3)))

        nearby.sort(key=lambda n: (n.distance_km, n.request.id))
        logger.info(
            "Professional %s: %d nearby urgent requests", professional_id, len(nearby)
        )
        return nearby
