"""Proof validator: scores a learner's arrangement of proof fragments.

A validator is bound to exactly one puzzle for its whole life. Each call is a
pure function of that puzzle and the learner order passed in; nothing is
remembered between calls.

Usage:
    validator = ProofValidator(puzzle)
    result = validator.validate(["step-1", "step-3", "step-2"])
    if not result.is_correct:
        # Render result.feedback_text and result.hints
"""

import math
from collections import Counter
from typing import Any, Optional, Sequence

import structlog

from parsons.validators import sequence
from parsons.validators.errors import InvalidPuzzleError
from parsons.validators.hints import HintContext, generate_hints
from parsons.validators.models import (
    AnalysisDetails,
    BlockIdCheck,
    FragmentPreview,
    Hint,
    HintKind,
    PartialValidation,
    PositionInfo,
    Puzzle,
    PuzzleStatistics,
    ValidationResult,
)

logger = structlog.get_logger()

# Score weights
POSITION_WEIGHT = 60
PRESENCE_WEIGHT = 40
EXTRA_PENALTY_PER_BLOCK = 5
EXTRA_PENALTY_CAP = 20

PREVIEW_LENGTH = 30

EMPTY_FEEDBACK = "Please arrange the proof blocks to create a valid proof."
CORRECT_FEEDBACK = "Excellent! Your proof is completely correct!"
KEEP_WORKING_FEEDBACK = "Keep working on your proof!"
MISMATCH_HINT_MESSAGE = "Please reload the puzzle. Some blocks do not belong to it."


class ProofValidator:
    """Validates learner orderings against one puzzle's canonical order.

    Design principles:
        - Deterministic: same learner order gives the same result
        - Fail fast: malformed puzzle data is rejected at construction
        - Graceful at runtime: foreign ids produce a result, never an exception
        - Quiet: the only side effect is a log entry on puzzle mismatch
    """

    def __init__(self, puzzle: Puzzle, event_logger: Optional[Any] = None):
        """Bind the validator to a puzzle.

        Args:
            puzzle: Puzzle reference data. Treated as read-only.
            event_logger: Optional structlog-style logger for diagnostics.
                If None, uses the module logger.

        Raises:
            InvalidPuzzleError: If the canonical order and fragment catalog
                are empty, contain duplicates, or are not a bijection.
        """
        self._check_puzzle(puzzle)
        self.puzzle = puzzle
        self.canonical_order: tuple[str, ...] = tuple(puzzle.canonical_order)
        self.fragments = {fragment.id: fragment for fragment in puzzle.fragments}
        self._logger = event_logger if event_logger is not None else logger

    @staticmethod
    def _check_puzzle(puzzle: Puzzle) -> None:
        """Collect every structural problem and raise once if there are any."""
        problems = []

        if not puzzle.canonical_order:
            problems.append("canonical order is empty")
        if not puzzle.fragments:
            problems.append("fragment catalog is empty")

        canonical_dupes = sorted(fid for fid, n in Counter(puzzle.canonical_order).items() if n > 1)
        if canonical_dupes:
            problems.append(f"canonical order repeats ids: {', '.join(canonical_dupes)}")

        fragment_ids = [fragment.id for fragment in puzzle.fragments]
        fragment_dupes = sorted(fid for fid, n in Counter(fragment_ids).items() if n > 1)
        if fragment_dupes:
            problems.append(f"fragment catalog repeats ids: {', '.join(fragment_dupes)}")

        catalog = set(fragment_ids)
        canonical = set(puzzle.canonical_order)
        unknown = [fid for fid in puzzle.canonical_order if fid not in catalog]
        if unknown:
            problems.append(f"canonical order references unknown fragments: {', '.join(unknown)}")
        unused = [fid for fid in fragment_ids if fid not in canonical]
        if unused:
            problems.append(f"fragments missing from canonical order: {', '.join(unused)}")

        if problems:
            raise InvalidPuzzleError(puzzle.id, problems)

    @property
    def total_blocks(self) -> int:
        return len(self.canonical_order)

    # ── Public API ──

    def validate(self, learner_order: Sequence[str]) -> ValidationResult:
        """Validate a complete learner arrangement.

        Args:
            learner_order: Fragment ids in the learner's current order

        Returns:
            ValidationResult with correctness, score, feedback, details and hints
        """
        learner_order = list(learner_order or [])

        if not learner_order:
            return self._empty_result()

        block_check = self.validate_block_ids(learner_order)
        if not block_check.is_valid:
            self._logger.warning(
                "puzzle_mismatch",
                puzzle_id=self.puzzle.id,
                puzzle_title=self.puzzle.title,
                invalid_ids=list(block_check.invalid_ids),
                learner_order=learner_order,
            )
            return self._mismatch_result(learner_order, block_check)

        details = self._analyze_sequence(learner_order)

        return ValidationResult(
            is_correct=details.is_complete and details.correct_sequence,
            score=self._calculate_score(details),
            feedback_text=self._generate_feedback(details),
            details=details,
            hints=self._generate_hints(details, learner_order),
        )

    def validate_block_ids(self, learner_order: Sequence[str]) -> BlockIdCheck:
        """Partition a learner order by membership in this puzzle's catalog."""
        invalid = tuple(fid for fid in learner_order if fid not in self.fragments)
        valid = tuple(fid for fid in learner_order if fid in self.fragments)
        return BlockIdCheck(
            is_valid=not invalid,
            invalid_ids=invalid,
            valid_ids=valid,
            puzzle_id=self.puzzle.id,
            puzzle_title=self.puzzle.title,
        )

    def validate_partial(self, current_order: Sequence[str]) -> PartialValidation:
        """Check whether an in-progress arrangement is a correct prefix."""
        current_order = list(current_order or [])

        if not current_order:
            return PartialValidation(
                is_valid=True,
                correct_so_far=True,
                next_expected=self.canonical_order[0],
                progress=0.0,
                current_length=0,
                total_length=self.total_blocks,
            )

        correct_so_far = sequence.matches_span(current_order, self.canonical_order, 0, len(current_order))
        next_index = len(current_order)
        next_expected = self.canonical_order[next_index] if next_index < self.total_blocks else None

        return PartialValidation(
            is_valid=correct_so_far,
            correct_so_far=correct_so_far,
            next_expected=next_expected,
            progress=(len(current_order) / self.total_blocks) * 100,
            current_length=len(current_order),
            total_length=self.total_blocks,
        )

    def can_place_block(self, fragment_id: str, position: int, current_order: Sequence[str] = ()) -> bool:
        """Whether placing ``fragment_id`` at ``position`` is legal in sequential mode.

        Legal only when the fragment belongs at that position and every
        earlier position is already solved.
        """
        if position < 0 or position >= self.total_blocks:
            return False

        if self.canonical_order[position] != fragment_id:
            return False

        return len(current_order) >= position and sequence.matches_span(
            current_order, self.canonical_order, 0, position
        )

    def get_next_expected_block(self, current_order: Sequence[str] = ()) -> Optional[str]:
        """The fragment id the learner should place next, or None if full length."""
        if len(current_order) >= self.total_blocks:
            return None

        if sequence.matches_span(current_order, self.canonical_order, 0, len(current_order)):
            return self.canonical_order[len(current_order)]

        for i, fragment_id in enumerate(current_order):
            if fragment_id != self.canonical_order[i]:
                return self.canonical_order[i]

        return None

    def get_statistics(self) -> PuzzleStatistics:
        """Structural statistics with short content previews."""
        return PuzzleStatistics(
            total_blocks=self.total_blocks,
            fragments=tuple(
                FragmentPreview(id=fragment.id, preview=self._truncate(fragment.content, PREVIEW_LENGTH))
                for fragment in self.puzzle.fragments
            ),
            difficulty=self._estimate_difficulty(),
        )

    def debug_validation(self, learner_order: Sequence[str]) -> dict:
        """Dump every intermediate stage of a validation for diagnostics."""
        learner_order = list(learner_order or [])
        details = self._analyze_sequence(learner_order)

        return {
            "puzzle": {
                "id": self.puzzle.id,
                "title": self.puzzle.title,
                "total_blocks": self.total_blocks,
                "canonical_order": list(self.canonical_order),
            },
            "learner_input": {
                "learner_order": learner_order,
                "user_blocks": len(learner_order),
            },
            "analysis": details.model_dump(),
            "hints": [hint.model_dump() for hint in self._generate_hints(details, learner_order)],
            "validation": self.validate(learner_order).model_dump(),
        }

    # ── Analysis ──

    def _analyze_sequence(self, learner_order: list[str]) -> AnalysisDetails:
        """Single pass over the learner order against the canonical order."""
        canonical_set = set(self.canonical_order)
        learner_set = set(learner_order)

        correct_blocks = len(learner_set & canonical_set)
        extra_blocks = len(learner_set - canonical_set)
        missing_blocks = len(canonical_set - learner_set)

        is_complete = len(learner_order) == self.total_blocks and missing_blocks == 0 and extra_blocks == 0
        correct_sequence = is_complete and sequence.matches_span(
            learner_order, self.canonical_order, 0, len(learner_order)
        )

        correctly_positioned = []
        incorrectly_positioned = []
        for i in range(min(len(learner_order), self.total_blocks)):
            if learner_order[i] == self.canonical_order[i]:
                correctly_positioned.append(PositionInfo(fragment_id=learner_order[i], position=i))
            else:
                incorrectly_positioned.append(PositionInfo(
                    fragment_id=learner_order[i],
                    position=i,
                    expected_fragment_id=self.canonical_order[i],
                ))

        return AnalysisDetails(
            total_blocks=self.total_blocks,
            user_blocks=len(learner_order),
            correct_blocks=correct_blocks,
            extra_blocks=extra_blocks,
            missing_blocks=missing_blocks,
            is_complete=is_complete,
            correct_sequence=correct_sequence,
            correctly_positioned=tuple(correctly_positioned),
            incorrectly_positioned=tuple(incorrectly_positioned),
            duplicates=tuple(sequence.find_duplicates(learner_order)),
        )

    def _calculate_score(self, details: AnalysisDetails) -> int:
        """Position accuracy weighs 60, presence 40, extras cost 5 each up to 20."""
        if details.correct_sequence:
            return 100

        position_score = (len(details.correctly_positioned) / details.total_blocks) * POSITION_WEIGHT
        presence_score = (details.correct_blocks / details.total_blocks) * PRESENCE_WEIGHT
        extra_penalty = min(details.extra_blocks * EXTRA_PENALTY_PER_BLOCK, EXTRA_PENALTY_CAP)

        # Halves round up
        return math.floor(max(0, position_score + presence_score - extra_penalty) + 0.5)

    def _generate_feedback(self, details: AnalysisDetails) -> str:
        """Compose one short clause per non-zero condition, in fixed order."""
        if details.correct_sequence:
            return CORRECT_FEEDBACK

        clauses = []

        if details.missing_blocks > 0:
            clauses.append(f"Missing {details.missing_blocks} block(s) from your proof.")

        if details.extra_blocks > 0:
            clauses.append(f"You have {details.extra_blocks} extra or incorrect block(s).")

        if details.duplicates:
            clauses.append(f"You have {len(details.duplicates)} duplicate block(s).")

        if details.incorrectly_positioned:
            clauses.append(f"{len(details.incorrectly_positioned)} block(s) are in the wrong position.")

        if details.correctly_positioned:
            clauses.append(f"{len(details.correctly_positioned)} block(s) are correctly positioned.")

        return " ".join(clauses) if clauses else KEEP_WORKING_FEEDBACK

    def _generate_hints(self, details: AnalysisDetails, learner_order: list[str]) -> tuple[Hint, ...]:
        if details.correct_sequence:
            return ()

        if not self.validate_block_ids(learner_order).is_valid:
            return (self._mismatch_hint(),)

        ctx = HintContext(
            canonical_order=self.canonical_order,
            fragments=self.fragments,
            learner_order=learner_order,
            analysis=details,
            next_expected=self.get_next_expected_block(learner_order),
        )
        return generate_hints(ctx)

    # ── Fixed results ──

    def _empty_result(self) -> ValidationResult:
        return ValidationResult(
            is_correct=False,
            score=0,
            feedback_text=EMPTY_FEEDBACK,
            details=AnalysisDetails(
                total_blocks=self.total_blocks,
                user_blocks=0,
                correct_blocks=0,
                extra_blocks=0,
                missing_blocks=self.total_blocks,
            ),
        )

    def _mismatch_result(self, learner_order: list[str], block_check: BlockIdCheck) -> ValidationResult:
        return ValidationResult(
            is_correct=False,
            score=0,
            feedback_text=(
                f'Error: Some blocks don\'t belong to the current puzzle "{self.puzzle.title or self.puzzle.id}". '
                "Please refresh the page."
            ),
            details=AnalysisDetails(
                total_blocks=self.total_blocks,
                user_blocks=len(learner_order),
                correct_blocks=0,
                extra_blocks=len(learner_order),
                missing_blocks=self.total_blocks,
                puzzle_mismatch=True,
                invalid_ids=block_check.invalid_ids,
            ),
            hints=(self._mismatch_hint(),),
        )

    @staticmethod
    def _mismatch_hint() -> Hint:
        return Hint(kind=HintKind.ERROR, message=MISMATCH_HINT_MESSAGE)

    # ── Helpers ──

    @staticmethod
    def _truncate(content: str, max_length: int) -> str:
        if len(content) <= max_length:
            return content
        return content[:max_length] + "..."

    def _estimate_difficulty(self) -> str:
        if self.total_blocks <= 5:
            return "Easy"
        if self.total_blocks <= 10:
            return "Medium"
        return "Hard"
