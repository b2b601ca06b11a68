"""Exceptions raised by the validation engine."""

from typing import Optional


class InvalidPuzzleError(ValueError):
    """Puzzle reference data is malformed; the validator refuses to operate.

    Attributes:
        puzzle_id: Id of the offending puzzle (may be empty)
        problems: Every finding, in the order they were detected
    """

    def __init__(self, puzzle_id: Optional[str], problems: list[str]):
        self.puzzle_id = puzzle_id
        self.problems = list(problems)
        super().__init__(f"Invalid puzzle '{puzzle_id}': " + "; ".join(self.problems))
