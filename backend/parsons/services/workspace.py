"""Proof workspace: binds the puzzle on screen to one ProofValidator.

The UI collaborator calls ``bind`` whenever it shows a puzzle and ``submit``
on every arrangement change. The validator is rebuilt only when the bound
puzzle's id changes, and never implicitly.
"""

from typing import Any, Optional, Sequence

import structlog

from parsons.validators.engine import ProofValidator
from parsons.validators.models import PartialValidation, Puzzle, ValidationResult

logger = structlog.get_logger()


class ProofWorkspace:
    """Holds the validator for the puzzle currently being solved."""

    def __init__(self, event_logger: Optional[Any] = None):
        self._event_logger = event_logger
        self._validator: Optional[ProofValidator] = None

    @property
    def puzzle(self) -> Optional[Puzzle]:
        return self._validator.puzzle if self._validator else None

    @property
    def validator(self) -> ProofValidator:
        if self._validator is None:
            raise RuntimeError("No puzzle bound to this workspace")
        return self._validator

    def bind(self, puzzle: Puzzle) -> ProofValidator:
        """Bind a puzzle, rebuilding the validator only if the puzzle id changed.

        Raises:
            InvalidPuzzleError: If the new puzzle is malformed. The previous
                binding is kept in that case.
        """
        if self._validator is not None and puzzle.is_same_puzzle(self._validator.puzzle):
            return self._validator

        previous = self.puzzle.id if self.puzzle else None
        self._validator = ProofValidator(puzzle, event_logger=self._event_logger)
        logger.debug("workspace_bound", puzzle_id=puzzle.id, previous_puzzle_id=previous)
        return self._validator

    def submit(self, learner_order: Sequence[str]) -> Optional[ValidationResult]:
        """Validate the arrangement, or None while the workspace region is empty."""
        if not learner_order:
            return None
        return self.validator.validate(learner_order)

    def progress(self, current_order: Sequence[str]) -> PartialValidation:
        return self.validator.validate_partial(current_order)
