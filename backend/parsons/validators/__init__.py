"""Proof validator: deterministic validation and feedback for proof orderings.

Usage:
    from parsons.validators import ProofValidator

    validator = ProofValidator(puzzle)
    result = validator.validate(learner_order)
    if not result.is_correct:
        # Render result.feedback_text and result.hints
"""

from parsons.validators.engine import ProofValidator
from parsons.validators.errors import InvalidPuzzleError
from parsons.validators.models import (
    AnalysisDetails,
    Fragment,
    Hint,
    HintKind,
    PartialValidation,
    Puzzle,
    ScoreBand,
    ValidationResult,
)

__all__ = [
    "ProofValidator",
    "InvalidPuzzleError",
    "AnalysisDetails",
    "Fragment",
    "Hint",
    "HintKind",
    "PartialValidation",
    "Puzzle",
    "ScoreBand",
    "ValidationResult",
]
