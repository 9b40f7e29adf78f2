"""CreateUrgentRequestUseCase — validate → price → persist → dispatch."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.application.ports.unit_of_work import UnitOfWork
from app.application.ports.urgent_request_repo import UrgentRequestRepository
from app.application.use_cases.dispatch_request import DispatchRequestUseCase, DispatchResult
from app.application.use_cases.lifecycle_tracker import LifecycleTracker
from app.application.use_cases.pricing import PricingService
from app.application.use_cases.retry_policy import RedispatchResult, RedispatchUseCase
from app.domain.entities.urgent_request import UrgentRequest
from app.domain.errors import RateLimitExceeded
from app.domain.policies.validation import validate_new_request
from app.domain.value_objects.clock import utcnow
from app.domain.value_objects.enums import RequestStatus
from app.domain.value_objects.geo_point import GeoPoint

logger = logging.getLogger(__name__)

RATE_LIMIT_WINDOW = timedelta(hours=1)


@dataclass
class CreateRequestResult:
    request: UrgentRequest
    dispatch: DispatchResult
    redispatch: RedispatchResult | None = None


class CreateUrgentRequestUseCase:
    def __init__(
        self,
        request_repo: UrgentRequestRepository,
        pricing: PricingService,
        dispatcher: DispatchRequestUseCase,
        redispatch: RedispatchUseCase,
        tracker: LifecycleTracker,
        uow: UnitOfWork,
        min_radius_km: float,
        max_radius_km: float,
        max_requests_per_hour: int,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._requests = request_repo
        self._pricing = pricing
        self._dispatcher = dispatcher
        self._redispatch = redispatch
        self._tracker = tracker
        self._uow = uow
        self._min_radius_km = min_radius_km
        self._max_radius_km = max_radius_km
        self._max_requests_per_hour = max_requests_per_hour
        self._clock = clock

    async def execute(
        self,
        client_id: int,
        description: str,
        location: GeoPoint,
        radius_km: float,
        service_category: str,
    ) -> CreateRequestResult:
        """Create a pending request and run its first dispatch round.

        Pipeline:
        1. Validate input (nothing is written on failure)
        2. Per-client rate limit over the trailing hour
        3. Price estimate
        4. Persist request + creation tracking entry, commit
        5. Dispatch round 1; an empty pool goes straight to the retry policy
        """
        validate_new_request(
            description,
            location,
            radius_km,
            service_category,
            self._min_radius_km,
            self._max_radius_km,
        )

        now = self._clock()
        # held until the commit below, so concurrent creates see each other
        await self._requests.lock_client(client_id)
        recent = await self._requests.count_created_since(client_id, now - RATE_LIMIT_WINDOW)
        if recent >= self._max_requests_per_hour:
            await self._uow.rollback()
            logger.warning("Client %s hit the urgent request rate limit", client_id)
            raise RateLimitExceeded(
                f"At most {self._max_requests_per_hour} urgent requests per hour"
            )

        category = service_category.strip()
        price = await self._pricing.estimate(category, radius_km)

        request = await self._requests.save(
            UrgentRequest(
                id=None,
                client_id=client_id,
                description=description.strip(),
                location=location,
                radius_km=radius_km,
                service_category=category,
                price_estimate=price,
                status=RequestStatus.PENDING,
                dispatch_round=1,
                last_dispatched_at=now,
                created_at=now,
            )
        )
        await self._tracker.record(
            request.id,
            None,
            RequestStatus.PENDING,
            actor_id=client_id,
            note="Urgent request created",
        )
        await self._uow.commit()
        logger.info(
            "Urgent request %s created by client %s ('%s', %.1f km, price %.2f)",
            request.id, client_id, category, radius_km, price,
        )

        dispatch = await self._dispatcher.execute(request)

        redispatch = None
        if not dispatch.degraded and dispatch.candidates_found == 0:
            redispatch = await self._redispatch.on_pool_exhausted(request.id)

        current = await self._requests.get_by_id(request.id) or request
        return CreateRequestResult(request=current, dispatch=dispatch, redispatch=redispatch)
