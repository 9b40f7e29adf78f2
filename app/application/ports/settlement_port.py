"""Port interface for the commission / payment settlement collaborator."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class SettlementEvent:
    request_id: int
    final_price: float
    professional_id: int
    client_id: int


class SettlementPort(ABC):
    @abstractmethod
    async def settle(self, event: SettlementEvent) -> None:
        ...
