"""Pricing rule administration."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session
from app.application.use_cases.pricing import PricingService
from app.domain.entities.pricing_rule import PricingRule
from app.domain.value_objects.enums import UserRole
from app.infrastructure.api.dependencies import get_pricing_service, require_role
from app.infrastructure.api.serializers import serialize_pricing_rule

router = APIRouter(prefix="/urgent/pricing", tags=["pricing"])

_admin = require_role(UserRole.ADMIN)


class PricingRuleIn(BaseModel):
    service_category: str
    base_multiplier: float = 1.5
    min_price: float = 0.0


class PricingRulesIn(BaseModel):
    rules: list[PricingRuleIn]


@router.get("", dependencies=[Depends(_admin)])
async def list_pricing_rules(pricing: PricingService = Depends(get_pricing_service)):
    rules = await pricing.list_rules()
    return {"rules": [serialize_pricing_rule(r) for r in rules]}


@router.put("", dependencies=[Depends(_admin)])
async def upsert_pricing_rules(
    body: PricingRulesIn,
    pricing: PricingService = Depends(get_pricing_service),
    session: AsyncSession = Depends(get_session),
):
    saved = await pricing.upsert_rules(
        [
            PricingRule(
                id=None,
                service_category=r.service_category,
                base_multiplier=r.base_multiplier,
                min_price=r.min_price,
            )
            for r in body.rules
        ]
    )
    await session.commit()
    return {"updated": len(saved), "rules": [serialize_pricing_rule(r) for r in saved]}
