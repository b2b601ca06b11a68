"""Validation models: puzzle reference data, analysis details, hints, and results.

Every model is frozen. A result is computed from scratch on each call and is
never mutated afterwards, so callers may keep or share it freely.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class Fragment(BaseModel):
    """One orderable proof step. ``content`` is opaque display payload (LaTeX)."""

    id: str
    content: str

    model_config = {"frozen": True}


class Puzzle(BaseModel):
    """A proof puzzle: a fragment catalog plus its single correct ordering.

    Title, statement, category and difficulty are display metadata; the
    validator only reads ``id``, ``title``, ``fragments`` and
    ``canonical_order``.
    """

    id: str
    title: str = ""
    display_title: str = ""
    statement: str = ""
    category: str = ""
    difficulty: str = ""
    fragments: tuple[Fragment, ...] = Field(default_factory=tuple)
    canonical_order: tuple[str, ...] = Field(default_factory=tuple)

    model_config = {"frozen": True}

    def is_same_puzzle(self, other: Optional["Puzzle"]) -> bool:
        """Identity check used when deciding whether to rebuild a validator."""
        return other is not None and other.id == self.id


class HintKind(str, Enum):
    """Kinds of remediation hints."""

    POSITION = "position"  # Names the fragment that belongs at a misplaced slot
    MISSING = "missing"    # A canonical fragment absent from the learner order
    NEXT = "next"          # The fragment the learner should place next
    ERROR = "error"        # Puzzle mismatch, caller must resynchronize


class ScoreBand(str, Enum):
    """Coarse score banding for presentation."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    NEEDS_WORK = "needs_work"


class Hint(BaseModel):
    """A single remediation hint."""

    kind: HintKind
    message: str
    payload: str = ""                          # Content of the target fragment
    related_fragment_id: Optional[str] = None
    position: Optional[int] = None             # 0-indexed, position hints only

    model_config = {"frozen": True}


class PositionInfo(BaseModel):
    """Placement of one learner entry against the canonical order."""

    fragment_id: str
    position: int
    expected_fragment_id: Optional[str] = None  # Set only when misplaced

    model_config = {"frozen": True}


class DuplicateInfo(BaseModel):
    """A repeated occurrence of a fragment id in the learner order."""

    fragment_id: str
    position: int

    model_config = {"frozen": True}


class AnalysisDetails(BaseModel):
    """Counts and per-position classification for one learner order."""

    total_blocks: int
    user_blocks: int
    correct_blocks: int = Field(description="Distinct learner ids that belong to the canonical order")
    extra_blocks: int = Field(description="Distinct learner ids foreign to the canonical order")
    missing_blocks: int = Field(description="Canonical ids absent from the learner order")
    is_complete: bool = False
    correct_sequence: bool = False
    correctly_positioned: tuple[PositionInfo, ...] = Field(default_factory=tuple)
    incorrectly_positioned: tuple[PositionInfo, ...] = Field(default_factory=tuple)
    duplicates: tuple[DuplicateInfo, ...] = Field(default_factory=tuple)
    puzzle_mismatch: bool = False
    invalid_ids: tuple[str, ...] = Field(default_factory=tuple)

    model_config = {"frozen": True}


class ValidationResult(BaseModel):
    """Complete validation result, the output of ``ProofValidator.validate``."""

    is_correct: bool
    score: int = Field(ge=0, le=100, description="Partial-credit score 0-100")
    feedback_text: str
    details: AnalysisDetails
    hints: tuple[Hint, ...] = Field(default_factory=tuple, max_length=3)

    model_config = {"frozen": True}

    @property
    def band(self) -> ScoreBand:
        if self.score >= 90:
            return ScoreBand.EXCELLENT
        if self.score >= 70:
            return ScoreBand.GOOD
        if self.score >= 50:
            return ScoreBand.FAIR
        return ScoreBand.NEEDS_WORK


class BlockIdCheck(BaseModel):
    """Partition of a learner order by membership in the puzzle catalog."""

    is_valid: bool
    invalid_ids: tuple[str, ...] = Field(default_factory=tuple)
    valid_ids: tuple[str, ...] = Field(default_factory=tuple)
    puzzle_id: str
    puzzle_title: str = ""

    model_config = {"frozen": True}


class PartialValidation(BaseModel):
    """Live, prefix-only feedback for an in-progress arrangement."""

    is_valid: bool
    correct_so_far: bool
    next_expected: Optional[str] = None
    progress: float = Field(description="Percentage of canonical length placed")
    current_length: int
    total_length: int

    model_config = {"frozen": True}


class FragmentPreview(BaseModel):
    """Short preview of a fragment's content."""

    id: str
    preview: str

    model_config = {"frozen": True}


class PuzzleStatistics(BaseModel):
    """Structural statistics about a puzzle."""

    total_blocks: int
    fragments: tuple[FragmentPreview, ...] = Field(default_factory=tuple)
    difficulty: str

    model_config = {"frozen": True}
