"""Per-meal-type review queues for accepting or skipping recipes."""

from collections.abc import Sequence
from dataclasses import dataclass, field

from pantryplanner.logging_config import get_logger
from pantryplanner.schemas import MealType, ScoredRecipe

logger = get_logger(__name__)


@dataclass
class SwipeSession:
    """
    A finite review queue for one meal type.

    Recipes are consumed one at a time. ``accept`` and ``reject`` move past
    the current recipe; ``undo`` steps back one position and takes that
    recipe out of whichever list it landed in.
    """

    meal_type: MealType
    recipes: list[ScoredRecipe]
    current_index: int = 0
    liked: list[ScoredRecipe] = field(default_factory=list)
    skipped: list[ScoredRecipe] = field(default_factory=list)

    @property
    def current(self) -> ScoredRecipe | None:
        if self.is_finished:
            return None
        return self.recipes[self.current_index]

    @property
    def is_finished(self) -> bool:
        return self.current_index >= len(self.recipes)

    @property
    def progress(self) -> tuple[int, int]:
        """(reviewed, total)."""
        return min(self.current_index, len(self.recipes)), len(self.recipes)

    def accept(self) -> ScoredRecipe | None:
        """Like the current recipe and advance. None when the queue is done."""
        recipe = self.current
        if recipe is None:
            return None
        self.liked.append(recipe)
        self.current_index += 1
        return recipe

    def reject(self) -> ScoredRecipe | None:
        """Skip the current recipe and advance. None when the queue is done."""
        recipe = self.current
        if recipe is None:
            return None
        self.skipped.append(recipe)
        self.current_index += 1
        return recipe

    def undo(self) -> ScoredRecipe | None:
        """Rewind one position. None at the start of the queue."""
        if self.current_index == 0:
            return None
        self.current_index -= 1
        recipe = self.recipes[self.current_index]
        self.liked = [r for r in self.liked if r.id != recipe.id]
        self.skipped = [r for r in self.skipped if r.id != recipe.id]
        return recipe

    def restart(self) -> None:
        """Start the queue over with no decisions recorded."""
        self.current_index = 0
        self.liked = []
        self.skipped = []


def build_sessions(
    scored: Sequence[ScoredRecipe],
    meal_types: Sequence[MealType],
    session_size: int = 10,
) -> list[SwipeSession]:
    """
    Build one session per meal type.

    Each queue holds the best recipes typed for the meal, topped up with
    untyped recipes (re-tagged to the meal type) when there are fewer than
    ``session_size``.

    Args:
        scored: Recipes sorted by score, best first.
        meal_types: Meal types to build sessions for.
        session_size: Maximum queue length.

    Returns:
        Sessions in the order of ``meal_types``.
    """
    unknown = [r for r in scored if r.effective_meal_type == "unknown"]
    sessions = []

    for meal_type in meal_types:
        queue = [r for r in scored if r.meal_type == meal_type][:session_size]
        queued_ids = {r.id for r in queue}

        for recipe in unknown:
            if len(queue) >= session_size:
                break
            if recipe.id in queued_ids:
                continue
            queue.append(recipe.model_copy(update={"meal_type": meal_type}))
            queued_ids.add(recipe.id)

        logger.debug(f"Swipe session for {meal_type}: {len(queue)} recipes")
        sessions.append(SwipeSession(meal_type=meal_type, recipes=queue))

    return sessions


def collect_liked(sessions: Sequence[SwipeSession]) -> list[ScoredRecipe]:
    """Liked recipes from all sessions, each tagged with its session's meal type."""
    pool = []
    for session in sessions:
        pool.extend(r.model_copy(update={"meal_type": session.meal_type}) for r in session.liked)
    return pool
