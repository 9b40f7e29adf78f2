"""Port interface for the append-only tracking ledger."""

from abc import ABC, abstractmethod

from app.domain.entities.tracking_entry import TrackingEntry


class TrackingRepository(ABC):
    @abstractmethod
    async def append(self, entry: TrackingEntry) -> TrackingEntry:
        ...

    @abstractmethod
    async def get_history(self, request_id: int) -> list[TrackingEntry]:
        """Entries in insertion order."""
        ...
