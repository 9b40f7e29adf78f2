"""PricingRule entity — per-category urgent pricing configuration."""

from dataclasses import dataclass


@dataclass
class PricingRule:
    id: int | None
    service_category: str
    base_multiplier: float
    min_price: float = 0.0
