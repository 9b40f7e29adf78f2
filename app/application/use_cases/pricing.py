"""PricingService — price estimates and pricing rule administration."""

from __future__ import annotations

import logging

from app.application.ports.pricing_rule_repo import PricingRuleRepository
from app.domain.entities.pricing_rule import PricingRule
from app.domain.errors import InvalidInput
from app.domain.policies.pricing import estimate_price

logger = logging.getLogger(__name__)


class PricingService:
    def __init__(
        self,
        rule_repo: PricingRuleRepository,
        baseline_cost: float,
        default_category: str = "general",
        default_rule: PricingRule | None = None,
        surcharge_per_km: float = 0.0,
    ):
        self._rules = rule_repo
        self._baseline_cost = baseline_cost
        self._default_category = default_category
        self._default_rule = default_rule
        self._surcharge_per_km = surcharge_per_km

    async def estimate(self, service_category: str, radius_km: float) -> float:
        """Estimate the price for a category.

        A stored rule for the default category overrides the configured
        default rule.
        """
        rules = await self._rules.get_all()
        default_rule = next(
            (
                r for r in rules
                if r.service_category.strip().lower() == self._default_category.lower()
            ),
            self._default_rule,
        )
        return estimate_price(
            service_category,
            radius_km,
            rules,
            default_rule,
            self._baseline_cost,
            self._surcharge_per_km,
        )

    async def list_rules(self) -> list[PricingRule]:
        rules = await self._rules.get_all()
        return sorted(rules, key=lambda r: r.service_category)

    async def upsert_rules(self, rules: list[PricingRule]) -> list[PricingRule]:
        for rule in rules:
            if not rule.service_category or not rule.service_category.strip():
                raise InvalidInput("Pricing rule needs a service category")
            if rule.base_multiplier < 0 or rule.min_price < 0:
                raise InvalidInput(
                    f"Pricing rule '{rule.service_category}' must not be negative"
                )
        saved = [await self._rules.upsert(rule) for rule in rules]
        logger.info("Upserted %d urgent pricing rules", len(saved))
        return saved
