"""Persistence for the recipe cache and recipe interactions."""

from datetime import datetime

from sqlalchemy import case, delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from pantryplanner.logging_config import get_logger
from pantryplanner.models import CachedRecipe, CachedRecipeIngredient, RecipeInteraction
from pantryplanner.schemas import CachedRecipeRecord, PopularityStats

logger = get_logger(__name__)


class RecipeCacheRepository:
    """Repository for cached provider recipes."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_ingredients(
        self,
        ingredient_names: list[str],
        fetched_after: datetime | None = None,
    ) -> list[CachedRecipeRecord]:
        """
        Rows whose ingredient-name set overlaps the query set.

        Args:
            ingredient_names: Lower-cased ingredient names.
            fetched_after: Only rows fetched at or after this instant; None for any age.

        Returns:
            Matching cache records.
        """
        if not ingredient_names:
            return []

        overlapping_ids = select(CachedRecipeIngredient.recipe_id).where(
            CachedRecipeIngredient.name.in_(ingredient_names)
        )
        stmt = select(CachedRecipe).where(CachedRecipe.provider_id.in_(overlapping_ids))
        if fetched_after is not None:
            stmt = stmt.where(CachedRecipe.last_fetched_at >= fetched_after)

        result = await self.session.execute(stmt.order_by(CachedRecipe.provider_id))
        return [CachedRecipeRecord.model_validate(row) for row in result.scalars()]

    async def fresh_ids(self, ids: list[int], fetched_after: datetime) -> set[int]:
        """Subset of ids that have a row fetched at or after the cutoff."""
        if not ids:
            return set()
        result = await self.session.execute(
            select(CachedRecipe.provider_id).where(
                CachedRecipe.provider_id.in_(ids),
                CachedRecipe.last_fetched_at >= fetched_after,
            )
        )
        return set(result.scalars())

    async def get_many(self, ids: list[int]) -> dict[int, CachedRecipeRecord]:
        """Cache rows by provider id, regardless of age."""
        if not ids:
            return {}
        result = await self.session.execute(
            select(CachedRecipe).where(CachedRecipe.provider_id.in_(ids))
        )
        return {
            row.provider_id: CachedRecipeRecord.model_validate(row) for row in result.scalars()
        }

    async def upsert(self, records: list[CachedRecipeRecord]) -> int:
        """
        Insert or refresh cache rows, one per provider id.

        Re-running with the same records leaves the table unchanged apart
        from timestamps, so concurrent refreshes are harmless.

        Returns:
            Number of records written.
        """
        for record in records:
            values = record.model_dump(mode="json", exclude={"last_fetched_at"})
            values["last_fetched_at"] = record.last_fetched_at

            stmt = insert(CachedRecipe).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=["provider_id"],
                set_={
                    column: stmt.excluded[column]
                    for column in values
                    if column != "provider_id"
                },
            )
            await self.session.execute(stmt)

            names = sorted(set(record.ingredient_names))
            await self.session.execute(
                delete(CachedRecipeIngredient).where(
                    CachedRecipeIngredient.recipe_id == record.provider_id,
                    CachedRecipeIngredient.name.not_in(names),
                )
            )
            if names:
                link_stmt = insert(CachedRecipeIngredient).values(
                    [{"recipe_id": record.provider_id, "name": name} for name in names]
                )
                await self.session.execute(
                    link_stmt.on_conflict_do_nothing(index_elements=["recipe_id", "name"])
                )

        await self.session.commit()
        logger.info(f"Upserted {len(records)} cached recipes")
        return len(records)

    async def delete_stale(self, fetched_before: datetime) -> int:
        """Delete rows last fetched before the cutoff. Returns rows removed."""
        result = await self.session.execute(
            delete(CachedRecipe).where(CachedRecipe.last_fetched_at < fetched_before)
        )
        await self.session.commit()
        return result.rowcount or 0


class InteractionRepository:
    """Repository for recipe views and likes."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(
        self,
        recipe_id: int,
        recipe_title: str,
        interaction_type: str,
        recipe_image_url: str | None = None,
    ) -> RecipeInteraction:
        """Store a single interaction."""
        interaction = RecipeInteraction(
            recipe_id=recipe_id,
            recipe_title=recipe_title,
            recipe_image_url=recipe_image_url,
            interaction_type=interaction_type,
        )
        self.session.add(interaction)
        await self.session.commit()
        return interaction

    async def popularity_stats(
        self, limit: int = 50, recipe_ids: list[int] | None = None
    ) -> list[PopularityStats]:
        """Most interacted-with recipes with their view and like counts.

        Args:
            limit: Maximum number of recipes.
            recipe_ids: Only aggregate these recipes.
        """
        view_count = func.sum(case((RecipeInteraction.interaction_type == "view", 1), else_=0))
        like_count = func.sum(case((RecipeInteraction.interaction_type == "like", 1), else_=0))

        stmt = select(
            RecipeInteraction.recipe_id,
            func.max(RecipeInteraction.recipe_title).label("recipe_title"),
            func.max(RecipeInteraction.recipe_image_url).label("recipe_image_url"),
            view_count.label("view_count"),
            like_count.label("like_count"),
        )
        if recipe_ids is not None:
            stmt = stmt.where(RecipeInteraction.recipe_id.in_(recipe_ids))

        result = await self.session.execute(
            stmt.group_by(RecipeInteraction.recipe_id)
            .order_by(func.count(RecipeInteraction.id).desc())
            .limit(limit)
        )
        return [
            PopularityStats(
                recipe_id=row.recipe_id,
                recipe_title=row.recipe_title or "",
                recipe_image_url=row.recipe_image_url,
                view_count=int(row.view_count or 0),
                like_count=int(row.like_count or 0),
            )
            for row in result
        ]
