"""RedispatchUseCase — re-run dispatch when a pool yields no winner."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from app.application.ports.candidate_repo import CandidateRepository
from app.application.ports.notifier_port import NotifierPort
from app.application.ports.unit_of_work import UnitOfWork
from app.application.ports.urgent_request_repo import UrgentRequestRepository
from app.application.use_cases.dispatch_request import DispatchRequestUseCase
from app.application.use_cases.lifecycle_tracker import LifecycleTracker
from app.domain.entities.urgent_request import UrgentRequest
from app.domain.policies.redispatch import decide_redispatch, is_window_elapsed
from app.domain.value_objects.clock import utcnow
from app.domain.value_objects.enums import NotificationKind, RequestStatus

logger = logging.getLogger(__name__)


class RedispatchAction(str, Enum):
    SKIPPED = "skipped"
    REDISPATCHED = "redispatched"
    FAILED_TO_MATCH = "failed_to_match"


@dataclass
class RedispatchResult:
    request_id: int
    action: RedispatchAction
    dispatch_round: int | None = None
    radius_km: float | None = None
    new_candidates: int = 0


class RedispatchUseCase:
    """Retry / re-dispatch policy.

    Triggers:
      * pool exhausted — every candidate responded and nobody accepted
        (also an empty pool);
      * window elapsed — the current round has been open for
        ``window_seconds`` with the request still pending.

    Rounds are claimed with a conditional update on the round counter, so
    concurrent triggers for one request start at most one new round.
    """

    def __init__(
        self,
        request_repo: UrgentRequestRepository,
        candidate_repo: CandidateRepository,
        dispatcher: DispatchRequestUseCase,
        tracker: LifecycleTracker,
        notifier: NotifierPort,
        uow: UnitOfWork,
        max_rounds: int,
        expansion_factor: float,
        max_radius_km: float,
        window_seconds: float,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._requests = request_repo
        self._candidates = candidate_repo
        self._dispatcher = dispatcher
        self._tracker = tracker
        self._notifier = notifier
        self._uow = uow
        self._max_rounds = max_rounds
        self._expansion_factor = expansion_factor
        self._max_radius_km = max_radius_km
        self._window_seconds = window_seconds
        self._clock = clock

    async def on_pool_exhausted(self, request_id: int) -> RedispatchResult:
        return await self._run(request_id, window_trigger=False)

    async def on_window_elapsed(self, request_id: int) -> RedispatchResult:
        return await self._run(request_id, window_trigger=True)

    async def _run(self, request_id: int, window_trigger: bool) -> RedispatchResult:
        outcome = RedispatchResult(request_id=request_id, action=RedispatchAction.SKIPPED)

        while True:
            request = await self._requests.get_by_id(request_id)
            if request is None or not request.is_open_for_responses():
                return outcome

            if window_trigger:
                if not is_window_elapsed(
                    request.last_dispatched_at, self._clock(), self._window_seconds
                ):
                    return outcome
            elif await self._candidates.count_open(request_id) > 0:
                return outcome

            decision = decide_redispatch(
                request.dispatch_round,
                self._max_rounds,
                request.radius_km,
                self._expansion_factor,
                self._max_radius_km,
            )
            if not decision.redispatch:
                return await self._fail(request, decision.reason, outcome)

            claimed = await self._requests.claim_round(
                request_id, request.dispatch_round, decision.next_radius_km, self._clock()
            )
            if not claimed:
                await self._uow.rollback()
                logger.info("Urgent request %s: round already advanced elsewhere", request_id)
                return outcome

            await self._tracker.record(
                request_id,
                RequestStatus.PENDING,
                RequestStatus.PENDING,
                note=f"Re-dispatch: {decision.reason}",
            )
            await self._uow.commit()

            pool = await self._candidates.get_by_request(request_id)
            already_in_pool = {c.professional_id for c in pool}
            request.dispatch_round = decision.next_round
            request.radius_km = decision.next_radius_km

            dispatch = await self._dispatcher.execute(request, exclude_ids=already_in_pool)
            outcome = RedispatchResult(
                request_id=request_id,
                action=RedispatchAction.REDISPATCHED,
                dispatch_round=decision.next_round,
                radius_km=decision.next_radius_km,
                new_candidates=dispatch.inserted,
            )
            logger.info(
                "Urgent request %s re-dispatched: round %d, radius %.1f km, %d new candidates",
                request_id, decision.next_round, decision.next_radius_km, dispatch.inserted,
            )
            if dispatch.degraded:
                return outcome
            # an empty round exhausts the pool straight away
            window_trigger = False

    async def _fail(
        self, request: UrgentRequest, reason: str, outcome: RedispatchResult
    ) -> RedispatchResult:
        if not await self._requests.mark_match_failed(request.id, request.dispatch_round):
            await self._uow.rollback()
            return outcome

        await self._tracker.record(
            request.id,
            RequestStatus.PENDING,
            RequestStatus.PENDING,
            note=f"Failed to match: {reason}",
        )
        await self._uow.commit()
        logger.warning("Urgent request %s failed to match: %s", request.id, reason)

        try:
            await self._notifier.notify(
                request.client_id,
                NotificationKind.NO_MATCH,
                {"urgent_request_id": request.id, "reason": reason},
            )
        except Exception:
            logger.exception("Could not notify client %s about no match", request.client_id)

        return RedispatchResult(
            request_id=request.id,
            action=RedispatchAction.FAILED_TO_MATCH,
            dispatch_round=request.dispatch_round,
            radius_km=request.radius_km,
        )
