"""Port interface for rejection audit records."""

from abc import ABC, abstractmethod

from app.domain.entities.rejection import Rejection


class RejectionRepository(ABC):
    @abstractmethod
    async def save(self, rejection: Rejection) -> Rejection:
        ...

    @abstractmethod
    async def get_by_request(self, request_id: int) -> list[Rejection]:
        ...
