"""LifecycleTracker — append-only history of urgent request transitions."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from app.application.ports.tracking_repo import TrackingRepository
from app.domain.entities.tracking_entry import TrackingEntry
from app.domain.value_objects.clock import utcnow
from app.domain.value_objects.enums import RequestStatus

logger = logging.getLogger(__name__)


class LifecycleTracker:
    """Records transitions; never decides whether they are legal."""

    def __init__(
        self,
        tracking_repo: TrackingRepository,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._tracking = tracking_repo
        self._clock = clock

    async def record(
        self,
        request_id: int,
        previous_status: RequestStatus | None,
        new_status: RequestStatus,
        actor_id: int | None = None,
        note: str | None = None,
    ) -> TrackingEntry:
        entry = await self._tracking.append(
            TrackingEntry(
                id=None,
                request_id=request_id,
                previous_status=previous_status,
                new_status=new_status,
                actor_id=actor_id,
                note=note,
                created_at=self._clock(),
            )
        )
        logger.debug(
            "Urgent request %s: %s -> %s (%s)",
            request_id,
            previous_status.value if previous_status else None,
            new_status.value,
            note,
        )
        return entry

    async def history(self, request_id: int) -> list[TrackingEntry]:
        return await self._tracking.get_history(request_id)
