"""Settlement adapters — hand completed requests to payments / commissions."""

from __future__ import annotations

import logging
from dataclasses import asdict

import httpx

from app.application.ports.settlement_port import SettlementEvent, SettlementPort
from app.config import settings

logger = logging.getLogger(__name__)


class WebhookSettlement(SettlementPort):
    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._url = url or settings.settlement_webhook_url
        self._timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._transport = transport

    async def settle(self, event: SettlementEvent) -> None:
        async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
            response = await client.post(self._url, json=asdict(event))
            response.raise_for_status()
        logger.info(
            "Settlement emitted for urgent request %s (%.2f)", event.request_id, event.final_price
        )


class LoggingSettlement(SettlementPort):
    async def settle(self, event: SettlementEvent) -> None:
        logger.info("Settlement event (no webhook configured): %s", asdict(event))
