"""PricingPolicy — estimate the price of an urgent request."""

from __future__ import annotations

from app.domain.entities.pricing_rule import PricingRule
from app.domain.errors import UnknownCategory


def select_rule(
    service_category: str,
    rules: list[PricingRule],
    default_rule: PricingRule | None,
) -> PricingRule:
    """Pick the rule for the category, falling back to the default rule.

    Raises:
        UnknownCategory: if neither a matching rule nor a default exists.
    """
    key = service_category.strip().lower()
    for rule in rules:
        if rule.service_category.strip().lower() == key:
            return rule
    if default_rule is None:
        raise UnknownCategory(f"No pricing rule for '{service_category}' and no default rule")
    return default_rule


def estimate_price(
    service_category: str,
    radius_km: float,
    rules: list[PricingRule],
    default_rule: PricingRule | None,
    baseline_cost: float,
    surcharge_per_km: float = 0.0,
) -> float:
    """Pure function: estimate = max(min_price, multiplier × reference cost).

    The reference cost is the configured baseline plus an optional per-km
    surcharge over the requested radius (zero by default).

    Args:
        service_category: requested service category.
        radius_km: requested search radius.
        rules: configured pricing rules.
        default_rule: global fallback rule (may be None).
        baseline_cost: reference cost of an urgent visit.
        surcharge_per_km: extra reference cost per km of radius.

    Returns:
        Non-negative estimated price rounded to cents.
    """
    rule = select_rule(service_category, rules, default_rule)
    reference_cost = baseline_cost + surcharge_per_km * max(0.0, radius_km)
    estimate = max(rule.min_price, rule.base_multiplier * reference_cost)
    return round(max(0.0, estimate), 2)
