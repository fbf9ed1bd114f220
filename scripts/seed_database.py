#!/usr/bin/env python
"""
Database seeding script for local development.

It will:

1. Create the pantry, cache and interaction tables if they don't exist
2. Check if inventory already exists (skip if already seeded)
3. Insert sample inventory, including items arriving later this week
4. Insert expected shipments and a few recipe views and likes

Run with: python scripts/seed_database.py

Environment Variables:
    SEED_SKIP_IF_EXISTS: Skip seeding if inventory rows exist (default: true)
    DATABASE_URL: PostgreSQL connection string
"""

import asyncio
import os
import sys
from datetime import date, timedelta

from sqlalchemy import func, select

from pantryplanner.database import AsyncSessionLocal, async_engine, create_tables
from pantryplanner.logging_config import configure_logging, get_logger
from pantryplanner.models import InventoryItem, RecipeInteraction, Shipment

configure_logging(log_level=os.getenv("LOG_LEVEL", "INFO"))
logger = get_logger(__name__)

SEED_SKIP_IF_EXISTS = os.getenv("SEED_SKIP_IF_EXISTS", "true").lower() == "true"

VEGAN = ["vegan", "vegetarian", "gluten-free", "dairy-free"]

# (name, category, quantity, unit, dietary tags, days until available)
INVENTORY = [
    ("Bananas", "Produce", 30, "each", VEGAN, None),
    ("Baby Carrots", "Produce", 15, "bag", VEGAN, None),
    ("Spinach", "Produce", 10, "bag", VEGAN, None),
    ("Sweet Potatoes", "Produce", 18, "lbs", VEGAN, None),
    ("Yellow Onions", "Produce", 20, "lbs", VEGAN, None),
    ("Garlic", "Produce", 12, "head", VEGAN, None),
    ("Bell Peppers", "Produce", 20, "each", VEGAN, None),
    ("Canned Black Beans", "Proteins", 40, "can", VEGAN, None),
    ("Canned Chickpeas", "Proteins", 35, "can", VEGAN, None),
    ("Peanut Butter", "Proteins", 20, "jar", VEGAN, None),
    ("Canned Tuna", "Proteins", 30, "can", ["gluten-free", "dairy-free"], None),
    ("Eggs", "Proteins", 20, "dozen", ["vegetarian", "gluten-free"], None),
    ("Red Lentils", "Proteins", 15, "bag", VEGAN, None),
    ("Tofu", "Proteins", 20, "block", VEGAN, None),
    ("White Rice", "Grains", 20, "5 lb bag", VEGAN, None),
    ("Spaghetti", "Grains", 25, "box", ["vegan", "vegetarian", "dairy-free"], None),
    ("Rolled Oats", "Grains", 18, "container", ["vegan", "vegetarian", "dairy-free"], None),
    ("Flour Tortillas", "Grains", 15, "pack", ["vegetarian", "dairy-free"], None),
    ("Oat Milk", "Dairy & Alternatives", 20, "carton", ["vegan", "vegetarian", "dairy-free"], None),
    ("Cheddar Cheese", "Dairy & Alternatives", 10, "block", ["vegetarian", "gluten-free"], None),
    ("Greek Yogurt", "Dairy & Alternatives", 25, "cup", ["vegetarian", "gluten-free"], None),
    ("Canned Diced Tomatoes", "Pantry", 30, "can", VEGAN, None),
    ("Vegetable Broth", "Pantry", 18, "carton", VEGAN, None),
    ("Olive Oil", "Pantry", 10, "bottle", VEGAN, None),
    ("Soy Sauce", "Pantry", 14, "bottle", ["vegan", "vegetarian", "dairy-free"], None),
    ("Avocados", "Produce", 24, "each", VEGAN, 2),
    ("Chicken Thighs", "Proteins", 20, "lbs", ["gluten-free", "dairy-free"], 3),
    ("Brown Rice", "Grains", 15, "5 lb bag", VEGAN, 4),
]

# (item name, quantity, unit, days until expected, notes)
SHIPMENTS = [
    ("Limes", 40, "each", 1, "Farmers market donation"),
    ("Cilantro", 20, "bunch", 1, None),
    ("Frozen Broccoli", 30, "bag", 3, None),
    ("Ground Turkey", 18, "lbs", 5, "Weekly protein delivery"),
]

# (provider recipe id, title, views, likes)
INTERACTIONS = [
    (716429, "Pasta with Garlic, Scallions, Cauliflower & Breadcrumbs", 3, 2),
    (782585, "Cannellini Bean and Asparagus Salad with Mushrooms", 2, 1),
    (642583, "Farfalle with Peas, Ham and Cream Sauce", 3, 1),
    (511728, "Pasta Margherita", 1, 1),
    (716408, "Greek Pasta Salad", 2, 0),
]


def _image_url(recipe_id: int) -> str:
    return f"https://img.spoonacular.com/recipes/{recipe_id}-312x231.jpg"


def build_rows(today: date) -> list:
    """Build inventory, shipment and interaction rows relative to today."""
    rows: list = []
    for name, category, quantity, unit, tags, days in INVENTORY:
        rows.append(
            InventoryItem(
                name=name,
                category=category,
                quantity=quantity,
                unit=unit,
                dietary_tags=tags,
                date_available=today + timedelta(days=days) if days is not None else None,
            )
        )
    for name, quantity, unit, days, notes in SHIPMENTS:
        rows.append(
            Shipment(
                item_name=name,
                expected_quantity=quantity,
                unit=unit,
                expected_date=today + timedelta(days=days),
                notes=notes,
            )
        )
    for recipe_id, title, views, likes in INTERACTIONS:
        for interaction_type in ["view"] * views + ["like"] * likes:
            rows.append(
                RecipeInteraction(
                    recipe_id=recipe_id,
                    recipe_title=title,
                    recipe_image_url=_image_url(recipe_id),
                    interaction_type=interaction_type,
                )
            )
    return rows


async def seed_database() -> dict:
    """
    Main seeding function.

    Returns:
        Dictionary with seeding results.
    """
    results = {"status": "unknown", "rows_inserted": 0, "skipped": False}

    try:
        await create_tables()

        async with AsyncSessionLocal() as session:
            existing = await session.scalar(select(func.count(InventoryItem.id))) or 0
            logger.info(f"Found {existing} existing inventory items")

            if SEED_SKIP_IF_EXISTS and existing > 0:
                logger.info("Inventory already seeded, skipping")
                results["status"] = "skipped"
                results["skipped"] = True
                return results

            rows = build_rows(date.today())
            session.add_all(rows)
            await session.commit()
            results["rows_inserted"] = len(rows)
    finally:
        await async_engine.dispose()

    results["status"] = "completed"
    logger.info(f"Seeding completed: {results}")
    return results


def main():
    """Entry point for the seed script."""
    logger.info("=" * 60)
    logger.info("Pantry Seeding Script")
    logger.info("=" * 60)

    try:
        results = asyncio.run(seed_database())
    except Exception as e:
        logger.exception(f"Seeding failed: {e}")
        sys.exit(1)

    if results["status"] not in ("completed", "skipped"):
        sys.exit(1)


if __name__ == "__main__":
    main()
