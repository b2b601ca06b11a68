"""Hint rules: ranked, non-redundant remediation hints for a learner order.

Each rule is a standalone strategy. The pipeline runs them in priority order
and threads an explicit accumulator of already-suggested fragment ids
through every rule, so no fragment is ever suggested twice in one result.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from parsons.validators.models import AnalysisDetails, Fragment, Hint, HintKind

MAX_HINTS = 3


@dataclass(frozen=True)
class HintContext:
    """Read-only inputs shared by every hint rule for one validation call."""

    canonical_order: Sequence[str]
    fragments: Mapping[str, Fragment]
    learner_order: Sequence[str]
    analysis: AnalysisDetails
    next_expected: Optional[str] = None

    def missing_ids(self) -> list[str]:
        """Canonical ids absent from the learner order, in canonical order."""
        present = set(self.learner_order)
        return [fid for fid in self.canonical_order if fid not in present]


class BaseHintRule(ABC):
    """Abstract base for all hint rules.

    Contract:
        - suggest() never returns a hint whose fragment id is in ``used``
        - suggest() returns at most ``capacity`` hints
        - suggest() is deterministic and does not mutate its inputs
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for diagnostics."""
        ...

    @abstractmethod
    def suggest(self, ctx: HintContext, used: frozenset[str], capacity: int) -> list[Hint]:
        """Produce hints for this rule.

        Args:
            ctx: Shared analysis inputs
            used: Fragment ids already suggested by earlier rules
            capacity: Remaining room under the hint cap (always >= 1)

        Returns:
            Zero or more hints
        """
        ...

    def _hint(
        self,
        ctx: HintContext,
        kind: HintKind,
        message: str,
        fragment_id: str,
        position: Optional[int] = None,
    ) -> Optional[Hint]:
        """Build a hint carrying the target fragment's content, or None if unknown."""
        fragment = ctx.fragments.get(fragment_id)
        if fragment is None:
            return None
        return Hint(
            kind=kind,
            message=message,
            payload=fragment.content,
            related_fragment_id=fragment_id,
            position=position,
        )


class PositionHintRule(BaseHintRule):
    """Points at the lowest-index misplaced slot and shows what belongs there."""

    @property
    def name(self) -> str:
        return "PositionHintRule"

    def suggest(self, ctx: HintContext, used: frozenset[str], capacity: int) -> list[Hint]:
        if not ctx.analysis.incorrectly_positioned:
            return []

        first_error = ctx.analysis.incorrectly_positioned[0]
        expected_id = first_error.expected_fragment_id
        if expected_id is None or expected_id in used:
            return []

        hint = self._hint(
            ctx,
            HintKind.POSITION,
            f"The block at position {first_error.position + 1} should be:",
            expected_id,
            position=first_error.position,
        )
        return [hint] if hint is not None else []


class MissingHintRule(BaseHintRule):
    """Suggests the earliest canonical fragment the learner has not placed."""

    @property
    def name(self) -> str:
        return "MissingHintRule"

    def suggest(self, ctx: HintContext, used: frozenset[str], capacity: int) -> list[Hint]:
        if ctx.analysis.missing_blocks == 0:
            return []

        for fragment_id in ctx.missing_ids():
            if fragment_id in used:
                continue
            hint = self._hint(ctx, HintKind.MISSING, "You're missing this important step:", fragment_id)
            if hint is not None:
                # Only one missing fragment at a time
                return [hint]
        return []


class NextHintRule(BaseHintRule):
    """Suggests the next expected fragment for an incomplete arrangement."""

    @property
    def name(self) -> str:
        return "NextHintRule"

    def suggest(self, ctx: HintContext, used: frozenset[str], capacity: int) -> list[Hint]:
        if ctx.analysis.user_blocks >= ctx.analysis.total_blocks:
            return []

        next_id = ctx.next_expected
        if next_id is None or next_id in used:
            return []

        hint = self._hint(ctx, HintKind.NEXT, "Try adding this block next:", next_id)
        return [hint] if hint is not None else []


class FillMissingHintRule(BaseHintRule):
    """Fills remaining capacity with further missing fragments."""

    @property
    def name(self) -> str:
        return "FillMissingHintRule"

    def suggest(self, ctx: HintContext, used: frozenset[str], capacity: int) -> list[Hint]:
        if ctx.analysis.missing_blocks == 0:
            return []

        hints = []
        for fragment_id in ctx.missing_ids():
            if len(hints) >= capacity:
                break
            if fragment_id in used:
                continue
            hint = self._hint(ctx, HintKind.MISSING, "Consider this step:", fragment_id)
            if hint is not None:
                hints.append(hint)
        return hints


def default_rules() -> list[BaseHintRule]:
    """The default rule chain in priority order."""
    return [
        PositionHintRule(),
        MissingHintRule(),
        NextHintRule(),
        FillMissingHintRule(),
    ]


def generate_hints(
    ctx: HintContext,
    rules: Optional[Sequence[BaseHintRule]] = None,
    limit: int = MAX_HINTS,
) -> tuple[Hint, ...]:
    """Run the rule chain and collect at most ``limit`` distinct-fragment hints.

    Args:
        ctx: Shared analysis inputs
        rules: Optional rule chain. If None, uses ``default_rules()``.
        limit: Hint cap

    Returns:
        Hints in rule priority order. Empty when the sequence is already correct.
    """
    if ctx.analysis.correct_sequence:
        return ()

    hints: list[Hint] = []
    used: frozenset[str] = frozenset()

    for rule in rules if rules is not None else default_rules():
        capacity = limit - len(hints)
        if capacity <= 0:
            break
        for hint in rule.suggest(ctx, used, capacity)[:capacity]:
            if hint.related_fragment_id in used:
                continue
            hints.append(hint)
            used = used | {hint.related_fragment_id}

    return tuple(hints)
