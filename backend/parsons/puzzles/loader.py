"""Puzzle catalog loader: reads bundled JSON puzzle files and serves lookups.

Each data file holds one category:

    {"category": "Recursion", "puzzles": [{"id": ..., "fragments": [...], "canonical_order": [...]}]}

Files are read once per data directory and cached. Structural validation of
each puzzle (bijection, duplicates) happens later, when a ProofValidator is
built for it.
"""

import json
from pathlib import Path
from typing import Optional, Union

import pydantic
import structlog

from parsons.config import get_settings
from parsons.validators.models import Puzzle

logger = structlog.get_logger()

DATA_DIR = Path(__file__).parent / "data"

# Cache loaded catalogs to avoid re-reading from disk
_catalog_cache: dict[Path, list[Puzzle]] = {}


def _resolve_dir(data_dir: Optional[Union[str, Path]] = None) -> Path:
    if data_dir is None:
        configured = get_settings().PUZZLE_DATA_DIR
        data_dir = configured if configured else DATA_DIR
    return Path(data_dir).resolve()


def _load_file(json_file: Path) -> list[Puzzle]:
    """Parse one category file. Raises on unreadable or malformed content."""
    data = json.loads(json_file.read_text(encoding="utf-8"))
    category = data.get("category", json_file.stem)
    return [
        Puzzle.model_validate({"category": category, **entry})
        for entry in data.get("puzzles", [])
    ]


def _load_catalog(data_dir: Optional[Union[str, Path]] = None) -> list[Puzzle]:
    """Load and cache every puzzle file in the data directory, ordered by file name."""
    root = _resolve_dir(data_dir)
    if root in _catalog_cache:
        return _catalog_cache[root]

    puzzles: list[Puzzle] = []
    seen_ids: set[str] = set()

    for json_file in sorted(root.glob("*.json")):
        try:
            loaded = _load_file(json_file)
        except (ValueError, OSError, pydantic.ValidationError, AttributeError, TypeError) as e:
            logger.warning("puzzle_file_skipped", file=str(json_file), error=str(e))
            continue

        for puzzle in loaded:
            if puzzle.id in seen_ids:
                logger.warning("puzzle_duplicate_skipped", file=str(json_file), puzzle_id=puzzle.id)
                continue
            seen_ids.add(puzzle.id)
            puzzles.append(puzzle)

    logger.debug("puzzle_catalog_loaded", data_dir=str(root), count=len(puzzles))
    _catalog_cache[root] = puzzles
    return puzzles


def clear_cache() -> None:
    """Forget every loaded catalog so the next lookup re-reads from disk."""
    _catalog_cache.clear()


def get_all_puzzles(data_dir: Optional[Union[str, Path]] = None) -> list[Puzzle]:
    """All puzzles in navigation order."""
    return list(_load_catalog(data_dir))


def get_puzzle_by_id(puzzle_id: str, data_dir: Optional[Union[str, Path]] = None) -> Optional[Puzzle]:
    """Look up a puzzle by id.

    Args:
        puzzle_id: Unique puzzle identifier (e.g., "proof1", "recursion2")
        data_dir: Optional data directory override

    Returns:
        The puzzle, or None if not found
    """
    return next((p for p in _load_catalog(data_dir) if p.id == puzzle_id), None)


def get_puzzles_by_category(category: str, data_dir: Optional[Union[str, Path]] = None) -> list[Puzzle]:
    return [p for p in _load_catalog(data_dir) if p.category == category]


def get_puzzles_by_difficulty(difficulty: str, data_dir: Optional[Union[str, Path]] = None) -> list[Puzzle]:
    return [p for p in _load_catalog(data_dir) if p.difficulty == difficulty]


def get_next_puzzle(puzzle_id: str, data_dir: Optional[Union[str, Path]] = None) -> Optional[Puzzle]:
    """The puzzle after ``puzzle_id``, or None at the end or for unknown ids."""
    puzzles = _load_catalog(data_dir)
    index = _index_of(puzzles, puzzle_id)
    if index is None or index == len(puzzles) - 1:
        return None
    return puzzles[index + 1]


def get_previous_puzzle(puzzle_id: str, data_dir: Optional[Union[str, Path]] = None) -> Optional[Puzzle]:
    """The puzzle before ``puzzle_id``, or None at the start or for unknown ids."""
    puzzles = _load_catalog(data_dir)
    index = _index_of(puzzles, puzzle_id)
    if index is None or index == 0:
        return None
    return puzzles[index - 1]


def get_catalog_metadata(data_dir: Optional[Union[str, Path]] = None) -> dict:
    """Counts plus the categories and difficulty levels present, in first-seen order."""
    puzzles = _load_catalog(data_dir)
    return {
        "total_count": len(puzzles),
        "categories": list(dict.fromkeys(p.category for p in puzzles)),
        "difficulties": list(dict.fromkeys(p.difficulty for p in puzzles if p.difficulty)),
    }


def _index_of(puzzles: list[Puzzle], puzzle_id: str) -> Optional[int]:
    for i, puzzle in enumerate(puzzles):
        if puzzle.id == puzzle_id:
            return i
    return None
