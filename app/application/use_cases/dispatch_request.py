"""DispatchRequestUseCase — build and alert the candidate pool of a request."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from app.application.ports.candidate_repo import CandidateRepository
from app.application.ports.notifier_port import NotifierPort
from app.application.ports.unit_of_work import UnitOfWork
from app.application.use_cases.find_candidates import CandidateFinder
from app.domain.entities.candidate import Candidate
from app.domain.entities.urgent_request import UrgentRequest
from app.domain.errors import DispatchError
from app.domain.value_objects.clock import utcnow
from app.domain.value_objects.enums import NotificationKind

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Summary of one dispatch round."""

    request_id: int
    dispatch_round: int
    candidates_found: int
    inserted: int
    notified: int
    degraded: bool = False


class DispatchRequestUseCase:
    """Persists the candidate pool first, then fans out alerts.

    Insertion is idempotent per (request, professional) and alerts are
    tracked with ``notified_at``, so running the same round again after a
    crash only alerts candidates that were missed. Never touches the
    request status.
    """

    def __init__(
        self,
        finder: CandidateFinder,
        candidate_repo: CandidateRepository,
        notifier: NotifierPort,
        uow: UnitOfWork,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._finder = finder
        self._candidates = candidate_repo
        self._notifier = notifier
        self._uow = uow
        self._clock = clock

    async def execute(
        self,
        request: UrgentRequest,
        exclude_ids: set[int] | frozenset[int] = frozenset(),
    ) -> DispatchResult:
        try:
            ranked = await self._finder.find(
                request.location,
                request.radius_km,
                request.service_category,
                exclude_ids=exclude_ids,
            )
        except DispatchError:
            raise
        except Exception:
            logger.exception("Professional directory unavailable for urgent request %s", request.id)
            notified = await self._notify_pending(request)
            return DispatchResult(
                request_id=request.id,
                dispatch_round=request.dispatch_round,
                candidates_found=0,
                inserted=0,
                notified=notified,
                degraded=True,
            )

        inserted = await self._candidates.add_many(
            [
                Candidate(
                    id=None,
                    request_id=request.id,
                    professional_id=c.professional_id,
                    distance_km=c.distance_km,
                    dispatch_round=request.dispatch_round,
                )
                for c in ranked
            ]
        )
        await self._uow.commit()

        notified = await self._notify_pending(request)
        logger.info(
            "Dispatch round %d for urgent request %s: %d found, %d new, %d notified",
            request.dispatch_round, request.id, len(ranked), inserted, notified,
        )
        return DispatchResult(
            request_id=request.id,
            dispatch_round=request.dispatch_round,
            candidates_found=len(ranked),
            inserted=inserted,
            notified=notified,
        )

    async def _notify_pending(self, request: UrgentRequest) -> int:
        """Alert every open candidate that has not been alerted yet."""
        pending = await self._candidates.get_unnotified(request.id)
        delivered: list[int] = []
        for candidate in pending:
            try:
                await self._notifier.notify(
                    candidate.professional_id,
                    NotificationKind.REQUEST_NEARBY,
                    {**request.summary(), "distance_km": candidate.distance_km},
                )
            except Exception:
                logger.exception(
                    "Could not alert professional %s about urgent request %s",
                    candidate.professional_id, request.id,
                )
                continue
            delivered.append(candidate.id)

        if delivered:
            await self._candidates.mark_notified(delivered, self._clock())
            await self._uow.commit()
        return len(delivered)
