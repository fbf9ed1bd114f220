"""SQLAlchemy database models."""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pantryplanner.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class InventoryItem(Base):
    """Item held in the shared pantry."""

    __tablename__ = "inventory"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    quantity: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    unit: Mapped[str] = mapped_column(String(50), nullable=False, default="item")
    dietary_tags: Mapped[list] = mapped_column(JSON, default=list)
    date_available: Mapped[date | None] = mapped_column(Date, nullable=True)  # null = now
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
        Index("idx_inventory_date_available", "date_available"),
    )


class Shipment(Base):
    """Expected delivery to the pantry."""

    __tablename__ = "shipments"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    item_name: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    expected_quantity: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    unit: Mapped[str] = mapped_column(String(50), nullable=False, default="item")
    expected_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (Index("idx_shipments_expected_date", "expected_date"),)


class CachedRecipe(Base):
    """Recipe detail fetched from the search provider, one row per provider id."""

    __tablename__ = "recipes_cache"

    provider_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    ingredient_names: Mapped[list] = mapped_column(JSON, default=list)
    ingredients: Mapped[list] = mapped_column(JSON, default=list)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    nutrition: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    dietary_tags: Mapped[list] = mapped_column(JSON, default=list)
    cuisines: Mapped[list] = mapped_column(JSON, default=list)
    ready_in_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    source_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    meal_type: Mapped[str] = mapped_column(String(16), nullable=False, default="unknown")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    last_fetched_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    ingredient_links: Mapped[list["CachedRecipeIngredient"]] = relationship(
        "CachedRecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_recipes_cache_last_fetched_at", "last_fetched_at"),
        Index("idx_recipes_cache_meal_type", "meal_type"),
    )


class CachedRecipeIngredient(Base):
    """Lower-cased ingredient name of a cached recipe, for set-overlap lookups."""

    __tablename__ = "recipes_cache_ingredients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipe_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("recipes_cache.provider_id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String, nullable=False)

    recipe: Mapped["CachedRecipe"] = relationship("CachedRecipe", back_populates="ingredient_links")

    __table_args__ = (
        UniqueConstraint("recipe_id", "name", name="uq_recipe_cache_ingredient"),
        Index("idx_recipes_cache_ingredients_name", "name"),
    )


class RecipeInteraction(Base):
    """A view or like recorded against a provider recipe."""

    __tablename__ = "recipe_interactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipe_id: Mapped[int] = mapped_column(Integer, nullable=False)
    recipe_title: Mapped[str] = mapped_column(String, nullable=False)
    recipe_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    interaction_type: Mapped[str] = mapped_column(String(16), nullable=False)  # view, like
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(
            "interaction_type IN ('view', 'like')", name="ck_recipe_interactions_type"
        ),
        Index("idx_recipe_interactions_recipe_id", "recipe_id"),
    )
