"""Shared pantry inventory, shipments and ingredient matching."""

from pantryplanner.pantry.matching import find_match, matches, names_match, normalize_name
from pantryplanner.pantry.snapshot import PantrySnapshot

__all__ = [
    "PantrySnapshot",
    "find_match",
    "matches",
    "names_match",
    "normalize_name",
]
