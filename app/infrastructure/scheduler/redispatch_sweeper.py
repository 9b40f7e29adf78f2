"""RedispatchSweeper — periodic window-elapsed trigger for the retry policy."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.adapters.persistence.repositories import SqlUrgentRequestRepository
from app.application.ports.urgent_request_repo import UrgentRequestRepository
from app.application.use_cases.retry_policy import (
    RedispatchAction,
    RedispatchResult,
    RedispatchUseCase,
)
from app.domain.value_objects.clock import utcnow

logger = logging.getLogger(__name__)


class RedispatchSweeper:
    """Every ``interval_seconds`` re-dispatches requests whose round timed out.

    Each request is handled in its own session so one failure does not
    poison the others. Several instances may sweep at once: round claims
    are conditional updates, so a round is started at most once.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        build_redispatch: Callable[[AsyncSession], RedispatchUseCase],
        window_seconds: float,
        interval_seconds: float,
        request_repo_factory: Callable[[AsyncSession], UrgentRequestRepository] = (
            SqlUrgentRequestRepository
        ),
        clock: Callable[[], datetime] = utcnow,
    ):
        self._session_factory = session_factory
        self._build_redispatch = build_redispatch
        self._request_repo_factory = request_repo_factory
        self._window_seconds = window_seconds
        self._interval_seconds = interval_seconds
        self._clock = clock

    async def run_once(self) -> list[RedispatchResult]:
        cutoff = self._clock() - timedelta(seconds=self._window_seconds)
        async with self._session_factory() as session:
            due = await self._request_repo_factory(session).get_due_for_redispatch(cutoff)
        if not due:
            return []

        results: list[RedispatchResult] = []
        for request in due:
            try:
                async with self._session_factory() as session:
                    result = await self._build_redispatch(session).on_window_elapsed(request.id)
            except Exception:
                logger.exception("Sweep failed for urgent request %s", request.id)
                continue
            results.append(result)

        acted = [r for r in results if r.action != RedispatchAction.SKIPPED]
        logger.info("Sweep: %d due, %d acted on", len(due), len(acted))
        return results

    async def run_forever(self) -> None:
        logger.info("Redispatch sweeper started (every %.0fs)", self._interval_seconds)
        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Redispatch sweep tick failed")
            await asyncio.sleep(self._interval_seconds)
