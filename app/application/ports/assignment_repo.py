"""Port interface for assignment persistence."""

from abc import ABC, abstractmethod
from datetime import datetime

from app.domain.entities.assignment import Assignment


class AssignmentRepository(ABC):
    @abstractmethod
    async def save(self, assignment: Assignment) -> Assignment:
        ...

    @abstractmethod
    async def get_by_request(self, request_id: int) -> Assignment | None:
        ...

    @abstractmethod
    async def complete(
        self,
        request_id: int,
        completed_at: datetime,
        rating: int | None,
        comment: str | None,
    ) -> Assignment | None:
        ...
