"""Unit tests for swipe session building and review."""

import pytest

from pantryplanner.plan.swipe import SwipeSession, build_sessions, collect_liked


@pytest.fixture
def scored_pool(make_recipe):
    """Recipes in score order: two dinners, one lunch, two untyped."""
    return [
        make_recipe(1, meal_type="dinner"),
        make_recipe(2, meal_type=None),
        make_recipe(3, meal_type="lunch"),
        make_recipe(4, meal_type="dinner"),
        make_recipe(5, meal_type="unknown"),
    ]


class TestBuildSessions:
    """Tests for per-meal-type queue construction."""

    def test_one_session_per_meal_type(self, scored_pool):
        sessions = build_sessions(scored_pool, ["breakfast", "lunch", "dinner"], session_size=3)

        assert [s.meal_type for s in sessions] == ["breakfast", "lunch", "dinner"]

    def test_typed_recipes_first_then_untyped(self, scored_pool):
        lunch, dinner = build_sessions(scored_pool, ["lunch", "dinner"], session_size=3)

        assert [r.id for r in lunch.recipes] == [3, 2, 5]
        assert [r.id for r in dinner.recipes] == [1, 4, 2]

    def test_untyped_recipes_retagged(self, scored_pool):
        (breakfast,) = build_sessions(scored_pool, ["breakfast"], session_size=10)

        assert [r.id for r in breakfast.recipes] == [2, 5]
        assert all(r.meal_type == "breakfast" for r in breakfast.recipes)
        # Source recipes are untouched
        assert scored_pool[1].meal_type is None

    def test_session_size_caps_typed_recipes(self, scored_pool):
        (dinner,) = build_sessions(scored_pool, ["dinner"], session_size=1)

        assert [r.id for r in dinner.recipes] == [1]

    def test_empty_pool(self):
        sessions = build_sessions([], ["dinner"])

        assert sessions[0].recipes == []
        assert sessions[0].is_finished
        assert sessions[0].current is None


class TestSwipeSession:
    """Tests for accept, reject and undo."""

    @pytest.fixture
    def session(self, make_recipe):
        return SwipeSession(meal_type="dinner", recipes=[make_recipe(i) for i in (1, 2, 3)])

    def test_accept_and_reject_advance(self, session):
        assert session.accept().id == 1
        assert session.reject().id == 2

        assert [r.id for r in session.liked] == [1]
        assert [r.id for r in session.skipped] == [2]
        assert session.current.id == 3
        assert session.progress == (2, 3)

    def test_finished_session_ignores_decisions(self, session):
        for _ in range(3):
            session.accept()

        assert session.is_finished
        assert session.accept() is None
        assert session.reject() is None
        assert session.progress == (3, 3)
        assert len(session.liked) == 3

    def test_undo_removes_previous_decision(self, session):
        session.accept()
        session.reject()

        undone = session.undo()

        assert undone.id == 2
        assert session.skipped == []
        assert session.current.id == 2
        assert [r.id for r in session.liked] == [1]

    def test_undo_at_start(self, session):
        assert session.undo() is None
        assert session.current_index == 0

    def test_restart(self, session):
        session.accept()
        session.reject()

        session.restart()

        assert session.current.id == 1
        assert session.liked == []
        assert session.skipped == []


def test_collect_liked_tags_session_meal_type(scored_pool):
    lunch, dinner = build_sessions(scored_pool, ["lunch", "dinner"], session_size=3)
    lunch.accept()
    lunch.accept()
    dinner.reject()
    dinner.accept()

    liked = collect_liked([lunch, dinner])

    assert [(r.id, r.meal_type) for r in liked] == [(3, "lunch"), (2, "lunch"), (4, "dinner")]
