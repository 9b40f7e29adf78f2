"""Port interface for pushing alerts to clients and professionals."""

from abc import ABC, abstractmethod

from app.domain.value_objects.enums import NotificationKind


class NotifierPort(ABC):
    @abstractmethod
    async def notify(self, recipient_id: int, kind: NotificationKind, payload: dict) -> None:
        """Fire-and-forget delivery. May raise; callers log and move on."""
        ...
