"""Stateless helpers for comparing a learner order with a canonical order.

None of these need a puzzle; they operate on plain sequences of ids.
"""

from typing import Sequence

from parsons.validators.models import DuplicateInfo


def matches_span(order: Sequence[str], canonical: Sequence[str], start: int, end: int) -> bool:
    """True if ``order[start:end]`` equals ``canonical`` at the same indices.

    Fails as soon as an index runs past the end of ``canonical``.
    """
    for i in range(start, end):
        if i >= len(canonical) or order[i] != canonical[i]:
            return False
    return True


def is_correct_order(order: Sequence[str], canonical: Sequence[str]) -> bool:
    """Exact match over the full length."""
    if len(order) != len(canonical):
        return False
    return all(a == b for a, b in zip(order, canonical))


def calculate_similarity(order: Sequence[str], canonical: Sequence[str]) -> float:
    """Percentage of canonical positions the learner got right."""
    if not canonical:
        return 0.0
    matches = sum(1 for a, b in zip(order, canonical) if a == b)
    return (matches / len(canonical)) * 100


def find_correct_prefix(order: Sequence[str], canonical: Sequence[str]) -> int:
    """Length of the longest correct run from position 0."""
    length = 0
    for a, b in zip(order, canonical):
        if a != b:
            break
        length += 1
    return length


def find_duplicates(order: Sequence[str]) -> list[DuplicateInfo]:
    """Every repeated occurrence after the first, with its position."""
    seen: set[str] = set()
    duplicates = []
    for position, fragment_id in enumerate(order):
        if fragment_id in seen:
            duplicates.append(DuplicateInfo(fragment_id=fragment_id, position=position))
        else:
            seen.add(fragment_id)
    return duplicates
