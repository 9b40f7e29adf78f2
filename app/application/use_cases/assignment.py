"""AssignmentCoordinator — accept / reject / cancel / complete.

The only place that changes an urgent request's status. Every status
change goes through a conditional write on the request row, so the
guarantees hold across processes, not just within one event loop:
for N concurrent accepts exactly one wins and N-1 see AlreadyAssigned.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from app.application.ports.assignment_repo import AssignmentRepository
from app.application.ports.candidate_repo import CandidateRepository
from app.application.ports.notifier_port import NotifierPort
from app.application.ports.rejection_repo import RejectionRepository
from app.application.ports.settlement_port import SettlementEvent, SettlementPort
from app.application.ports.unit_of_work import UnitOfWork
from app.application.ports.urgent_request_repo import UrgentRequestRepository
from app.application.use_cases.lifecycle_tracker import LifecycleTracker
from app.application.use_cases.retry_policy import RedispatchResult, RedispatchUseCase
from app.domain.entities.assignment import Assignment
from app.domain.entities.rejection import DEFAULT_REJECTION_REASON, Rejection
from app.domain.entities.urgent_request import UrgentRequest
from app.domain.errors import (
    InvalidRating,
    InvalidTransition,
    NotACandidate,
    NotCancellable,
    PermissionDenied,
    RequestNotFound,
)
from app.domain.policies.lifecycle import ensure_transition
from app.domain.value_objects.clock import utcnow
from app.domain.value_objects.enums import NotificationKind, Outcome, RequestStatus

logger = logging.getLogger(__name__)


@dataclass
class AcceptResult:
    request_id: int
    professional_id: int
    outcome: Outcome
    assignment: Assignment | None = None


@dataclass
class RejectResult:
    request_id: int
    professional_id: int
    outcome: Outcome
    redispatch: RedispatchResult | None = None


@dataclass
class CompletionResult:
    request: UrgentRequest
    assignment: Assignment | None


class AssignmentCoordinator:
    def __init__(
        self,
        request_repo: UrgentRequestRepository,
        candidate_repo: CandidateRepository,
        assignment_repo: AssignmentRepository,
        rejection_repo: RejectionRepository,
        tracker: LifecycleTracker,
        notifier: NotifierPort,
        settlement: SettlementPort,
        uow: UnitOfWork,
        redispatch: RedispatchUseCase | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._requests = request_repo
        self._candidates = candidate_repo
        self._assignments = assignment_repo
        self._rejections = rejection_repo
        self._tracker = tracker
        self._notifier = notifier
        self._settlement = settlement
        self._uow = uow
        self._redispatch = redispatch
        self._clock = clock

    # ─── Accept ─────────────────────────────────────────────────────

    async def accept(self, request_id: int, professional_id: int) -> AcceptResult:
        """Try to win the request for ``professional_id``.

        Pipeline:
        1. Conditional pending -> assigned update (checks the open pool too)
        2. Loser: classify as NotACandidate / AlreadyAssigned / AlreadyResolved
        3. Winner: assignment row, candidate responded, tracking entry, commit
        4. Notify client and the still-open losing candidates
        """
        request = await self._get_request(request_id)

        won = await self._requests.try_assign(request_id, professional_id)
        if not won:
            await self._uow.rollback()
            return await self._classify_lost_accept(request_id, professional_id)

        now = self._clock()
        assignment = await self._assignments.save(
            Assignment(
                id=None,
                request_id=request_id,
                professional_id=professional_id,
                assigned_at=now,
            )
        )
        await self._candidates.mark_responded(request_id, professional_id, now)
        await self._tracker.record(
            request_id,
            RequestStatus.PENDING,
            RequestStatus.ASSIGNED,
            actor_id=professional_id,
            note=f"Accepted by professional {professional_id}",
        )
        await self._uow.commit()
        logger.info("Urgent request %s assigned to professional %s", request_id, professional_id)

        await self._notify(
            request.client_id,
            NotificationKind.REQUEST_ACCEPTED,
            {
                "urgent_request_id": request_id,
                "professional_id": professional_id,
                "assignment_id": assignment.id,
            },
        )
        for candidate in await self._candidates.get_by_request(request_id):
            if candidate.is_open() and candidate.professional_id != professional_id:
                await self._notify(
                    candidate.professional_id,
                    NotificationKind.ASSIGNED_TO_OTHER,
                    {"urgent_request_id": request_id},
                )

        return AcceptResult(
            request_id=request_id,
            professional_id=professional_id,
            outcome=Outcome.ACCEPTED,
            assignment=assignment,
        )

    async def _classify_lost_accept(self, request_id: int, professional_id: int) -> AcceptResult:
        current = await self._get_request(request_id)
        if (
            current.status in (RequestStatus.ASSIGNED, RequestStatus.COMPLETED)
            and current.assigned_professional_id == professional_id
        ):
            return AcceptResult(request_id, professional_id, Outcome.ALREADY_ASSIGNED)

        candidate = await self._candidates.get(request_id, professional_id)
        if candidate is None or candidate.responded:
            raise NotACandidate(
                f"Professional {professional_id} is not an open candidate for request {request_id}"
            )

        if current.status in (RequestStatus.ASSIGNED, RequestStatus.COMPLETED):
            outcome = Outcome.ALREADY_ASSIGNED
        elif current.status == RequestStatus.CANCELLED or current.match_failed:
            outcome = Outcome.ALREADY_RESOLVED
        else:
            # candidate row appeared after the conditional update ran
            raise NotACandidate(
                f"Professional {professional_id} was not in the open pool of request {request_id}"
            )

        logger.info(
            "Accept by professional %s on urgent request %s lost: %s",
            professional_id, request_id, outcome.value,
        )
        return AcceptResult(request_id, professional_id, outcome)

    # ─── Reject ─────────────────────────────────────────────────────

    async def reject(
        self, request_id: int, professional_id: int, reason: str | None = None
    ) -> RejectResult:
        request = await self._get_request(request_id)
        if not request.is_open_for_responses():
            return RejectResult(request_id, professional_id, Outcome.ALREADY_RESOLVED)

        candidate = await self._candidates.get(request_id, professional_id)
        if candidate is None or candidate.responded:
            raise NotACandidate(
                f"Professional {professional_id} is not an open candidate for request {request_id}"
            )

        now = self._clock()
        if not await self._candidates.mark_responded(request_id, professional_id, now):
            await self._uow.rollback()
            raise NotACandidate(f"Professional {professional_id} already responded")

        await self._rejections.save(
            Rejection(
                id=None,
                request_id=request_id,
                professional_id=professional_id,
                reason=(reason or "").strip() or DEFAULT_REJECTION_REASON,
                rejected_at=now,
            )
        )
        await self._uow.commit()
        logger.info("Urgent request %s rejected by professional %s", request_id, professional_id)

        redispatch = None
        if self._redispatch is not None and await self._candidates.count_open(request_id) == 0:
            redispatch = await self._redispatch.on_pool_exhausted(request_id)

        return RejectResult(request_id, professional_id, Outcome.REJECTED, redispatch)

    # ─── Cancel ─────────────────────────────────────────────────────

    async def cancel(self, request_id: int, client_id: int) -> UrgentRequest:
        request = await self._get_request(request_id)
        if request.client_id != client_id:
            raise PermissionDenied("Only the client who created the request can cancel it")

        if request.status != RequestStatus.PENDING or not await self._requests.try_transition(
            request_id, RequestStatus.PENDING, RequestStatus.CANCELLED
        ):
            await self._uow.rollback()
            current = await self._get_request(request_id)
            raise NotCancellable(f"Urgent request is already {current.status.value}")

        await self._tracker.record(
            request_id,
            RequestStatus.PENDING,
            RequestStatus.CANCELLED,
            actor_id=client_id,
            note="Cancelled by client",
        )
        await self._uow.commit()
        logger.info("Urgent request %s cancelled by client %s", request_id, client_id)

        request.status = RequestStatus.CANCELLED
        return request

    # ─── Complete ───────────────────────────────────────────────────

    async def complete(
        self,
        request_id: int,
        user_id: int,
        rating: int | None = None,
        comment: str | None = None,
    ) -> CompletionResult:
        if rating is not None and not 1 <= rating <= 5:
            raise InvalidRating("Rating must be between 1 and 5")

        request = await self._get_request(request_id)
        is_client = request.client_id == user_id
        is_professional = request.assigned_professional_id == user_id
        if not (is_client or is_professional):
            raise PermissionDenied("Only the client or the assigned professional can complete")

        ensure_transition(request.status, RequestStatus.COMPLETED)

        now = self._clock()
        if not await self._requests.try_transition(
            request_id, RequestStatus.ASSIGNED, RequestStatus.COMPLETED, completed_at=now
        ):
            await self._uow.rollback()
            current = await self._get_request(request_id)
            raise InvalidTransition(
                f"Cannot move urgent request from '{current.status.value}' to 'completed'"
            )

        assignment = await self._assignments.complete(request_id, now, rating, comment)
        await self._tracker.record(
            request_id,
            RequestStatus.ASSIGNED,
            RequestStatus.COMPLETED,
            actor_id=user_id,
            note="Completed",
        )
        await self._uow.commit()
        logger.info("Urgent request %s completed by user %s", request_id, user_id)

        request.status = RequestStatus.COMPLETED
        request.completed_at = now

        try:
            await self._settlement.settle(
                SettlementEvent(
                    request_id=request_id,
                    final_price=request.price_estimate,
                    professional_id=request.assigned_professional_id,
                    client_id=request.client_id,
                )
            )
        except Exception:
            logger.exception("Settlement hand-off failed for urgent request %s", request_id)

        other_party = request.assigned_professional_id if is_client else request.client_id
        await self._notify(
            other_party,
            NotificationKind.COMPLETED,
            {
                "urgent_request_id": request_id,
                "completed_by": user_id,
                "rating": rating,
                "comment": comment,
            },
        )
        return CompletionResult(request=request, assignment=assignment)

    # ─── Helpers ────────────────────────────────────────────────────

    async def _get_request(self, request_id: int) -> UrgentRequest:
        request = await self._requests.get_by_id(request_id)
        if request is None:
            raise RequestNotFound(f"Urgent request {request_id} not found")
        return request

    async def _notify(self, recipient_id: int, kind: NotificationKind, payload: dict) -> None:
        try:
            await self._notifier.notify(recipient_id, kind, payload)
        except Exception:
            logger.exception("Notification %s to %s failed", kind.value, recipient_id)
