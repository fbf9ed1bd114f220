"""Fuzzy ingredient-name matching against pantry and shipment names.

Two names match when, lower-cased and trimmed, either one contains the other.
"onion" matches "green onion" and "rice" matches "rice vinegar".
"""

from collections.abc import Iterable, Mapping
from typing import TypeVar

T = TypeVar("T")


def normalize_name(name: str) -> str:
    """Lower-case and trim an ingredient name."""
    return name.strip().lower()


def names_match(first: str, second: str) -> bool:
    """Check whether either name contains the other. Empty names never match."""
    a = normalize_name(first)
    b = normalize_name(second)
    if not a or not b:
        return False
    return a in b or b in a


def matches(ingredient_name: str, known_names: Iterable[str]) -> bool:
    """Check whether an ingredient name matches any known name."""
    return any(names_match(ingredient_name, known) for known in known_names)


def find_match(ingredient_name: str, known: Mapping[str, T]) -> tuple[str, T] | None:
    """
    Find the first known name matching an ingredient.

    Args:
        ingredient_name: Recipe ingredient name.
        known: Mapping of known names to an attached value (e.g. a date).

    Returns:
        The matching (name, value) pair in mapping order, or None.
    """
    for name, value in known.items():
        if names_match(ingredient_name, name):
            return name, value
    return None
