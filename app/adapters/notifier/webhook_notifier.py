"""Webhook notifier adapter — implements NotifierPort."""

from __future__ import annotations

import logging

import httpx

from app.application.ports.notifier_port import NotifierPort
from app.config import settings
from app.domain.value_objects.enums import NotificationKind

logger = logging.getLogger(__name__)


class WebhookNotifier(NotifierPort):
    """POSTs one JSON document per notification to the delivery service."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._url = url or settings.notifier_webhook_url
        self._timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._transport = transport

    async def notify(self, recipient_id: int, kind: NotificationKind, payload: dict) -> None:
        body = {"recipient_id": recipient_id, "type": kind.value, "payload": payload}
        async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
            response = await client.post(self._url, json=body)
            response.raise_for_status()
        logger.info("Notification %s delivered to %s", kind.value, recipient_id)


class LoggingNotifier(NotifierPort):
    """Used when no webhook is configured; notifications only reach the log."""

    async def notify(self, recipient_id: int, kind: NotificationKind, payload: dict) -> None:
        logger.info("Notification %s for %s: %s", kind.value, recipient_id, payload)
