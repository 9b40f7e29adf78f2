"""Port interface for candidate pool persistence."""

from abc import ABC, abstractmethod
from datetime import datetime

from app.domain.entities.candidate import Candidate


class CandidateRepository(ABC):
    @abstractmethod
    async def add_many(self, candidates: list[Candidate]) -> int:
        """Insert candidates, skipping existing (request, professional) pairs.

        Returns the number of rows actually inserted.
        """
        ...

    @abstractmethod
    async def get(self, request_id: int, professional_id: int) -> Candidate | None:
        ...

    @abstractmethod
    async def get_by_request(self, request_id: int) -> list[Candidate]:
        ...

    @abstractmethod
    async def get_unnotified(self, request_id: int) -> list[Candidate]:
        """Open candidates that have not received the alert yet."""
        ...

    @abstractmethod
    async def get_request_ids_for_professional(self, professional_id: int) -> set[int]:
        ...

    @abstractmethod
    async def mark_responded(self, request_id: int, professional_id: int, at: datetime) -> bool:
        """Flip ``responded`` to True; False if it already was (or no row)."""
        ...

    @abstractmethod
    async def mark_notified(self, candidate_ids: list[int], at: datetime) -> None:
        ...

    @abstractmethod
    async def count_open(self, request_id: int) -> int:
        ...
