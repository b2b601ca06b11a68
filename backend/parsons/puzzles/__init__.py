"""Bundled puzzle catalog: JSON-based proof puzzles grouped by category."""

from parsons.puzzles.loader import (
    clear_cache,
    get_all_puzzles,
    get_catalog_metadata,
    get_next_puzzle,
    get_previous_puzzle,
    get_puzzle_by_id,
    get_puzzles_by_category,
    get_puzzles_by_difficulty,
)

__all__ = [
    "clear_cache",
    "get_all_puzzles",
    "get_catalog_metadata",
    "get_next_puzzle",
    "get_previous_puzzle",
    "get_puzzle_by_id",
    "get_puzzles_by_category",
    "get_puzzles_by_difficulty",
]
