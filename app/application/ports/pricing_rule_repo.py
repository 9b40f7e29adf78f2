"""Port interface for pricing rule configuration."""

from abc import ABC, abstractmethod

from app.domain.entities.pricing_rule import PricingRule


class PricingRuleRepository(ABC):
    @abstractmethod
    async def get_all(self) -> list[PricingRule]:
        ...

    @abstractmethod
    async def get_by_category(self, service_category: str) -> PricingRule | None:
        ...

    @abstractmethod
    async def upsert(self, rule: PricingRule) -> PricingRule:
        ...
