#!/usr/bin/env python3
"""Seed product catalog script.

Creates the catalog tables, loads reference brands, categories and
occasions, and inserts sample products through the catalog service.

Usage:
    python scripts/seed_catalog.py
    python scripts/seed_catalog.py --products 50
    python scripts/seed_catalog.py --reference-only
"""

import argparse
import asyncio
import random
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import func, select

from app.catalog.models import Brand, Category, Occasion, Product
from app.catalog.service import CatalogService
from app.infrastructure.database import async_session_factory, create_tables, engine

BRANDS = ["Nike", "Adidas", "Puma", "Levi's", "Zara", "H&M", "Uniqlo", "Gucci"]
CATEGORIES = ["Shirts", "Trousers", "Shoes", "Jackets", "Dresses", "Accessories"]
OCCASIONS = {
    "casual": "Casual",
    "party": "Party",
    "formal": "Formal",
    "sports": "Sports",
    "wedding": "Wedding",
}
COLORS = ["red", "blue", "black", "white", "green", "beige"]
GENDERS = ["men", "women", "boy", "girl"]


async def seed_reference_data() -> dict[str, int]:
    """Insert brands, categories and occasions if the tables are empty.

    Returns:
        Number of rows inserted per table.
    """
    inserted = {"brands": 0, "categories": 0, "occasions": 0}
    async with async_session_factory() as session:
        if not await session.scalar(select(func.count(Brand.id))):
            session.add_all(Brand(name=name) for name in BRANDS)
            inserted["brands"] = len(BRANDS)
        if not await session.scalar(select(func.count(Category.id))):
            session.add_all(Category(name=name) for name in CATEGORIES)
            inserted["categories"] = len(CATEGORIES)
        if not await session.scalar(select(func.count(Occasion.id))):
            session.add_all(Occasion(id=token, name=name) for token, name in OCCASIONS.items())
            inserted["occasions"] = len(OCCASIONS)
        await session.commit()
    return inserted


def build_payload(
    rng: random.Random,
    index: int,
    brands: list[tuple[int, str]],
    categories: list[tuple[int, str]],
) -> dict:
    """Build a random but valid product payload."""
    picked_brands = rng.sample(brands, k=rng.randint(1, 2))
    picked_categories = rng.sample(categories, k=rng.randint(1, 2))
    picked_occasions = rng.sample(sorted(OCCASIONS), k=rng.randint(1, 3))
    return {
        "name": f"Sample product {index}",
        "description": f"Description of sample product {index}",
        "rating": round(rng.uniform(1, 5), 1),
        "old_price": rng.choice([19.99, 49.5, 100, 149.99, 250]),
        "discount": rng.choice([0, 5, 10, 20, 35, 50]),
        "colors": rng.choice(COLORS),
        "gender": rng.choice(GENDERS),
        "brands": [{"value": brand_id, "label": name} for brand_id, name in picked_brands],
        "occasion": [{"value": o, "label": OCCASIONS[o]} for o in picked_occasions],
        "categories": [{"value": category_id, "label": name} for category_id, name in picked_categories],
    }


async def seed_products(count: int, seed: int) -> tuple[int, int]:
    """Create sample products through the catalog service.

    Returns:
        (created, failed) counts.
    """
    rng = random.Random(seed)
    created = failed = 0
    async with async_session_factory() as session:
        brands = [tuple(row) for row in (await session.execute(select(Brand.id, Brand.name))).all()]
        categories = [
            tuple(row) for row in (await session.execute(select(Category.id, Category.name))).all()
        ]
        existing = await session.scalar(select(func.count(Product.id))) or 0
        service = CatalogService(session, request_id="seed")

        for index in range(existing + 1, existing + count + 1):
            result = await service.create_product(
                build_payload(rng, index, brands, categories)
            )
            if result.success:
                created += 1
            else:
                failed += 1
                print(f"  ✗ Product {index}: {result.error}")
    return created, failed


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Seed the product catalog",
    )
    parser.add_argument(
        "--products",
        type=int,
        default=25,
        help="Number of sample products to create (default: 25)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for deterministic sample data",
    )
    parser.add_argument(
        "--reference-only",
        action="store_true",
        help="Only load brands, categories and occasions",
    )

    args = parser.parse_args()

    print("=" * 60)
    print("Catalog Seeder")
    print("=" * 60)

    print("Creating database tables...")
    await create_tables(engine)
    print("Tables ready.")
    print()

    inserted = await seed_reference_data()
    print(f"  ✓ Brands: {inserted['brands']}")
    print(f"  ✓ Categories: {inserted['categories']}")
    print(f"  ✓ Occasions: {inserted['occasions']}")

    if not args.reference_only:
        created, failed = await seed_products(args.products, args.seed)
        print(f"  ✓ Products created: {created}")
        if failed:
            print(f"  ✗ Products failed: {failed}")

    await engine.dispose()

    print("=" * 60)
    print("Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
