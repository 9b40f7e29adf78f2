"""Seed database from CSV files.

Usage:
    python -m app.tools.seed_db
    python -m app.tools.seed_db --data-dir data
    python -m app.tools.seed_db --drop  # drop existing data first
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.csv_loader.loader import load_pricing_rules, load_professionals
from app.adapters.persistence.database import async_session_factory
from app.adapters.persistence.models import (
    AssignmentModel,
    CandidateModel,
    PricingRuleModel,
    ProfessionalModel,
    RejectionModel,
    TrackingEntryModel,
    UrgentRequestModel,
)

logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")
logger = logging.getLogger(__name__)


async def _drop_data(session: AsyncSession) -> None:
    """Delete all data in correct order (respecting FK constraints)."""
    for model in [
        TrackingEntryModel,
        RejectionModel,
        AssignmentModel,
        CandidateModel,
        UrgentRequestModel,
        PricingRuleModel,
        ProfessionalModel,
    ]:
        await session.execute(delete(model))
    await session.commit()
    logger.info("Dropped all existing data")


async def seed(data_dir: Path, drop: bool = False) -> dict[str, int]:
    """Main seed function. Returns counts of seeded records."""
    counts = {"professionals": 0, "pricing_rules": 0}

    professionals_csv = _find_csv(data_dir, ["professionals", "profesionales", "pros"])
    pricing_csv = _find_csv(data_dir, ["pricing_rules", "pricing", "precios"])

    if not professionals_csv:
        raise FileNotFoundError(
            f"No professionals CSV found in {data_dir}. Expected something like professionals.csv"
        )

    async with async_session_factory() as session:
        if drop:
            await _drop_data(session)

        # 1. Professionals
        for pd in load_professionals(professionals_csv):
            existing = await session.execute(
                select(ProfessionalModel).where(
                    ProfessionalModel.name == pd["name"],
                    ProfessionalModel.category == pd["category"],
                )
            )
            if existing.scalar_one_or_none():
                logger.debug("Professional '%s' already exists, skipping", pd["name"])
                continue
            if pd["latitude"] is None or pd["longitude"] is None:
                logger.warning(
                    "Professional '%s' has no coordinates — it will never be dispatched",
                    pd["name"],
                )
            session.add(ProfessionalModel(**pd))
            counts["professionals"] += 1
        await session.commit()

        # 2. Pricing rules (upsert by category)
        if pricing_csv:
            for rd in load_pricing_rules(pricing_csv):
                stmt = pg_insert(PricingRuleModel).values(**rd)
                await session.execute(
                    stmt.on_conflict_do_update(
                        index_elements=["service_category"],
                        set_={
                            "base_multiplier": stmt.excluded.base_multiplier,
                            "min_price": stmt.excluded.min_price,
                            "updated_at": func.now(),
                        },
                    )
                )
                counts["pricing_rules"] += 1
            await session.commit()
        else:
            logger.info("No pricing CSV found — the configured default rule applies")

    logger.info(
        "Seed complete: %d professionals, %d pricing rules",
        counts["professionals"], counts["pricing_rules"],
    )
    return counts


def _find_csv(data_dir: Path, name_hints: list[str]) -> Path | None:
    """Find a CSV file matching any of the name hints."""
    for f in sorted(data_dir.glob("*.csv")):
        fname_lower = f.stem.lower()
        for hint in name_hints:
            if hint in fname_lower:
                logger.info("Found CSV: %s (matched hint '%s')", f.name, hint)
                return f
    return None


async def _verify_data() -> None:
    """Print sanity checks after seeding."""
    async with async_session_factory() as session:
        professionals = (await session.execute(select(ProfessionalModel))).scalars().all()
        rules = (await session.execute(select(PricingRuleModel))).scalars().all()

        print(f"\n{'='*50}")
        print("SEED VERIFICATION")
        print(f"{'='*50}")
        print(f"Professionals: {len(professionals)}")
        print(f"Pricing rules: {len(rules)}")

        with_coords = sum(1 for p in professionals if p.latitude is not None and p.longitude is not None)
        print(f"Professionals with coordinates: {with_coords}/{len(professionals)}")

        available = sum(1 for p in professionals if p.is_available)
        print(f"Available professionals: {available}/{len(professionals)}")

        categories: dict[str, int] = {}
        for p in professionals:
            categories[p.category] = categories.get(p.category, 0) + 1
        print(f"Category distribution: {categories}")
        print(f"Priced categories: {sorted(r.service_category for r in rules)}")
        print(f"{'='*50}\n")


def main():
    parser = argparse.ArgumentParser(description="Seed the urgent dispatch database from CSV files")
    parser.add_argument(
        "--data-dir", type=str, default="data",
        help="Directory containing CSV files (default: data)",
    )
    parser.add_argument(
        "--drop", action="store_true",
        help="Drop existing data before seeding",
    )
    parser.add_argument(
        "--verify-only", action="store_true",
        help="Only run verification, don't seed",
    )
    args = parser.parse_args()

    data_dir = Path(args.data_dir)
    if not args.verify_only and not data_dir.exists():
        logger.error("Data directory not found: %s", data_dir)
        sys.exit(1)

    if args.verify_only:
        asyncio.run(_verify_data())
    else:
        async def run_all():
            await seed(data_dir, drop=args.drop)
            await _verify_data()
        asyncio.run(run_all())


if __name__ == "__main__":
    main()
