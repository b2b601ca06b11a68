"""Tests for ProofValidator: construction, validation, scoring, feedback and helpers."""

import pydantic
import pytest
import structlog

from conftest import make_puzzle
from parsons.validators.engine import EMPTY_FEEDBACK, CORRECT_FEEDBACK, ProofValidator
from parsons.validators.errors import InvalidPuzzleError
from parsons.validators.models import Fragment, HintKind, Puzzle, ScoreBand


# ── Construction ──


def test_rejects_empty_puzzle():
    with pytest.raises(InvalidPuzzleError) as exc_info:
        ProofValidator(Puzzle(id="empty"))

    assert exc_info.value.puzzle_id == "empty"
    assert "canonical order is empty" in exc_info.value.problems
    assert "fragment catalog is empty" in exc_info.value.problems


def test_rejects_duplicate_canonical_ids():
    puzzle = make_puzzle(["a", "b"], canonical=["a", "a", "b"])

    with pytest.raises(InvalidPuzzleError) as exc_info:
        ProofValidator(puzzle)

    assert "canonical order repeats ids: a" in exc_info.value.problems


def test_rejects_duplicate_fragment_ids():
    puzzle = Puzzle(
        id="dupes",
        fragments=(Fragment(id="a", content="x"), Fragment(id="a", content="y")),
        canonical_order=("a",),
    )

    with pytest.raises(InvalidPuzzleError, match="fragment catalog repeats ids: a"):
        ProofValidator(puzzle)


def test_rejects_non_bijective_puzzle_and_reports_both_directions():
    puzzle = make_puzzle(["a", "b", "c"], canonical=["a", "b", "z"])

    with pytest.raises(InvalidPuzzleError) as exc_info:
        ProofValidator(puzzle)

    problems = exc_info.value.problems
    assert "canonical order references unknown fragments: z" in problems
    assert "fragments missing from canonical order: c" in problems


def test_invalid_puzzle_error_is_a_value_error():
    with pytest.raises(ValueError):
        ProofValidator(Puzzle(id="empty"))


# ── Testable properties ──


def test_canonical_order_is_correct_with_full_score(validator):
    result = validator.validate(["a", "b", "c", "d"])

    assert result.is_correct is True
    assert result.score == 100
    assert result.hints == ()
    assert result.feedback_text == CORRECT_FEEDBACK
    assert result.band == ScoreBand.EXCELLENT


def test_empty_order_prompts_learner(validator):
    result = validator.validate([])

    assert result.is_correct is False
    assert result.score == 0
    assert result.feedback_text == EMPTY_FEEDBACK
    assert result.hints == ()
    assert result.details.missing_blocks == 4
    assert result.details.total_blocks == 4


def test_none_is_treated_as_empty(validator):
    assert validator.validate(None).feedback_text == EMPTY_FEEDBACK


def test_validate_is_idempotent(validator):
    order = ["b", "a", "d"]
    assert validator.validate(order) == validator.validate(order)


def test_validate_does_not_mutate_input(validator):
    order = ["b", "a", "d"]
    validator.validate(order)
    assert order == ["b", "a", "d"]


@pytest.mark.parametrize("swap_at", [0, 1, 2])
def test_adjacent_swap_drops_score_below_full(validator, swap_at):
    order = ["a", "b", "c", "d"]
    order[swap_at], order[swap_at + 1] = order[swap_at + 1], order[swap_at]

    result = validator.validate(order)

    assert result.is_correct is False
    assert result.score < 100


@pytest.mark.parametrize("order", [
    ["zzz"],
    ["a", "b", "c", "zzz"],
    ["a", "b", "c", "d", "zzz"],
    ["x", "y"],
])
def test_foreign_ids_short_circuit_to_mismatch(validator, order):
    result = validator.validate(order)

    assert result.is_correct is False
    assert result.score == 0
    assert len(result.hints) == 1
    assert result.hints[0].kind == HintKind.ERROR
    assert result.details.puzzle_mismatch is True
    assert result.details.correctly_positioned == ()


def test_mismatch_details_and_feedback(validator):
    result = validator.validate(["a", "zzz", "b", "yyy"])

    assert result.details.invalid_ids == ("zzz", "yyy")
    assert result.details.user_blocks == 4
    assert result.details.extra_blocks == 4
    assert result.details.missing_blocks == 4
    assert '"Four step proof"' in result.feedback_text
    assert result.hints[0].payload == ""
    assert result.hints[0].related_fragment_id is None


@pytest.mark.parametrize("order", [
    ["b"],
    ["c"],
    ["d", "c", "b", "a"],
    ["a", "a", "a"],
    ["b", "b", "d", "d", "a"],
])
def test_hints_are_capped_and_distinct(validator, order):
    result = validator.validate(order)

    assert len(result.hints) <= 3
    ids = [hint.related_fragment_id for hint in result.hints]
    assert len(ids) == len(set(ids))


# ── Worked examples ──


def test_swapped_middle_pair(validator):
    result = validator.validate(["a", "c", "b", "d"])
    details = result.details

    assert [(p.fragment_id, p.position) for p in details.correctly_positioned] == [("a", 0), ("d", 3)]
    assert [(p.fragment_id, p.position, p.expected_fragment_id) for p in details.incorrectly_positioned] == [
        ("c", 1, "b"),
        ("b", 2, "c"),
    ]
    assert details.is_complete is True
    assert details.correct_sequence is False
    assert result.score == 70
    assert result.is_correct is False
    assert result.band == ScoreBand.GOOD

    first = result.hints[0]
    assert first.kind == HintKind.POSITION
    assert first.related_fragment_id == "b"
    assert first.position == 1
    assert first.message == "The block at position 2 should be:"
    assert first.payload == "\\text{Step B}"
    assert len(result.hints) == 1


def test_correct_prefix_of_half_length(validator):
    result = validator.validate(["a", "b"])
    details = result.details

    assert details.missing_blocks == 2
    assert details.is_complete is False
    assert [p.fragment_id for p in details.correctly_positioned] == ["a", "b"]
    assert result.score == 50
    assert result.band == ScoreBand.FAIR

    # The next-block hint would repeat "c", so it is dropped
    assert [(h.kind, h.related_fragment_id) for h in result.hints] == [
        (HintKind.MISSING, "c"),
        (HintKind.MISSING, "d"),
    ]
    assert result.hints[0].message == "You're missing this important step:"
    assert result.hints[1].message == "Consider this step:"


def test_trailing_duplicate(validator):
    result = validator.validate(["a", "b", "c", "d", "a"])
    details = result.details

    assert [(d.fragment_id, d.position) for d in details.duplicates] == [("a", 4)]
    assert details.is_complete is False
    assert len(details.correctly_positioned) == 4
    assert "You have 1 duplicate block(s)." in result.feedback_text
    # Duplicates are not scored: every fragment is present and in place
    assert result.is_correct is False
    assert result.score == 100


def test_single_misplaced_fragment_fills_hint_capacity(validator):
    result = validator.validate(["b"])

    assert [(h.kind, h.related_fragment_id) for h in result.hints] == [
        (HintKind.POSITION, "a"),
        (HintKind.MISSING, "c"),
        (HintKind.MISSING, "d"),
    ]
    assert result.score == 10


# ── Scoring ──


def test_score_for_reversed_order(validator):
    # No position matches, every fragment present
    assert validator.validate(["d", "c", "b", "a"]).score == 40


def test_score_rounds_to_nearest_integer():
    validator = ProofValidator(make_puzzle(["a", "b", "c"]))
    # 1/3 * 60 + 1/3 * 40 = 33.33
    assert validator.validate(["a"]).score == 33


def test_score_rounds_halves_up():
    validator = ProofValidator(make_puzzle([f"s{i}" for i in range(8)]))
    # 1/8 * 60 + 1/8 * 40 = 12.5
    assert validator.validate(["s0"]).score == 13


def test_extra_penalty_is_capped(validator):
    details = validator._analyze_sequence(["a", "b", "c", "d"]).model_copy(
        update={"extra_blocks": 10, "correct_sequence": False}
    )
    # 60 + 40 - min(50, 20)
    assert validator._calculate_score(details) == 80


def test_extra_penalty_per_block(validator):
    details = validator._analyze_sequence(["a", "b"]).model_copy(update={"extra_blocks": 2})
    # 30 + 20 - 10
    assert validator._calculate_score(details) == 40


def test_score_never_negative(validator):
    details = validator._analyze_sequence(["d"]).model_copy(update={"extra_blocks": 4})
    # 0 + 10 - 20
    assert validator._calculate_score(details) == 0


# ── Feedback ──


def test_feedback_clauses_follow_fixed_order(validator):
    result = validator.validate(["b", "b", "d"])

    assert result.feedback_text == (
        "Missing 2 block(s) from your proof. "
        "You have 1 duplicate block(s). "
        "2 block(s) are in the wrong position. "
        "1 block(s) are correctly positioned."
    )


def test_feedback_includes_extra_clause(validator):
    details = validator._analyze_sequence(["a", "b", "c", "d"]).model_copy(
        update={"extra_blocks": 1, "correct_sequence": False}
    )
    assert validator._generate_feedback(details).startswith("You have 1 extra or incorrect block(s).")


def test_feedback_falls_back_to_keep_working(validator):
    details = validator._analyze_sequence([]).model_copy(update={"missing_blocks": 0})
    assert validator._generate_feedback(details) == "Keep working on your proof!"


# ── Block id validation ──


def test_validate_block_ids_partitions_in_order(validator):
    check = validator.validate_block_ids(["a", "x", "b", "y", "a"])

    assert check.is_valid is False
    assert check.invalid_ids == ("x", "y")
    assert check.valid_ids == ("a", "b", "a")
    assert check.puzzle_id == "abcd"


def test_validate_block_ids_accepts_duplicates_of_known_ids(validator):
    assert validator.validate_block_ids(["a", "a"]).is_valid is True


# ── Sequential mode ──


@pytest.mark.parametrize("fragment_id,position,current,expected", [
    ("a", 0, [], True),
    ("b", 1, ["a"], True),
    ("b", 1, ["a", "c", "d"], True),
    ("b", 1, [], False),
    ("c", 1, ["a"], False),
    ("c", 2, ["a", "x"], False),
    ("d", 3, ["a", "b", "c"], True),
    ("a", 4, ["a", "b", "c", "d"], False),
    ("a", -1, [], False),
])
def test_can_place_block(validator, fragment_id, position, current, expected):
    assert validator.can_place_block(fragment_id, position, current) is expected


@pytest.mark.parametrize("current,expected", [
    ([], "a"),
    (["a", "b"], "c"),
    (["a", "c"], "b"),
    (["b"], "a"),
    (["a", "b", "c", "d"], None),
    (["a", "b", "c", "d", "a"], None),
])
def test_get_next_expected_block(validator, current, expected):
    assert validator.get_next_expected_block(current) == expected


# ── Partial validation ──


def test_validate_partial_empty(validator):
    partial = validator.validate_partial([])

    assert partial.is_valid is True
    assert partial.correct_so_far is True
    assert partial.next_expected == "a"
    assert partial.progress == 0


def test_validate_partial_correct_prefix(validator):
    partial = validator.validate_partial(["a", "b"])

    assert partial.is_valid is True
    assert partial.next_expected == "c"
    assert partial.progress == 50.0
    assert partial.current_length == 2
    assert partial.total_length == 4


def test_validate_partial_wrong_prefix(validator):
    partial = validator.validate_partial(["a", "c"])

    assert partial.is_valid is False
    assert partial.correct_so_far is False
    assert partial.next_expected == "c"


def test_validate_partial_complete_and_overlong(validator):
    assert validator.validate_partial(["a", "b", "c", "d"]).next_expected is None

    overlong = validator.validate_partial(["a", "b", "c", "d", "a"])
    assert overlong.is_valid is False
    assert overlong.progress == 125.0


# ── Statistics and diagnostics ──


def test_get_statistics_truncates_previews():
    puzzle = Puzzle(
        id="long",
        fragments=(
            Fragment(id="a", content="short"),
            Fragment(id="b", content="x" * 40),
        ),
        canonical_order=("a", "b"),
    )

    stats = ProofValidator(puzzle).get_statistics()

    assert stats.total_blocks == 2
    assert stats.fragments[0].preview == "short"
    assert stats.fragments[1].preview == "x" * 30 + "..."
    assert stats.difficulty == "Easy"


@pytest.mark.parametrize("count,difficulty", [(5, "Easy"), (6, "Medium"), (10, "Medium"), (11, "Hard")])
def test_difficulty_estimate(count, difficulty):
    ids = [f"s{i}" for i in range(count)]
    assert ProofValidator(make_puzzle(ids)).get_statistics().difficulty == difficulty


def test_debug_validation_collects_every_stage(validator):
    dump = validator.debug_validation(["a", "c"])

    assert dump["puzzle"]["canonical_order"] == ["a", "b", "c", "d"]
    assert dump["learner_input"] == {"learner_order": ["a", "c"], "user_blocks": 2}
    assert dump["analysis"]["missing_blocks"] == 2
    assert dump["hints"][0]["related_fragment_id"] == "b"
    assert dump["validation"]["score"] == validator.validate(["a", "c"]).score


# ── Results are immutable ──


def test_result_is_frozen(validator):
    result = validator.validate(["a", "b"])

    with pytest.raises(pydantic.ValidationError):
        result.score = 0


# ── Diagnostic logging ──


def test_mismatch_is_logged_through_injected_logger(validator, recording_logger):
    validator.validate(["a", "zzz"])

    assert recording_logger.calls == [
        ("warning", "puzzle_mismatch", {
            "puzzle_id": "abcd",
            "puzzle_title": "Four step proof",
            "invalid_ids": ["zzz"],
            "learner_order": ["a", "zzz"],
        }),
    ]


def test_valid_orders_log_nothing(validator, recording_logger):
    validator.validate([])
    validator.validate(["a", "b"])
    validator.validate(["a", "b", "c", "d"])

    assert recording_logger.calls == []


def test_default_logger_emits_structured_event(puzzle):
    validator = ProofValidator(puzzle)

    with structlog.testing.capture_logs() as logs:
        validator.validate(["nope"])

    assert logs == [{
        "event": "puzzle_mismatch",
        "log_level": "warning",
        "puzzle_id": "abcd",
        "puzzle_title": "Four step proof",
        "invalid_ids": ["nope"],
        "learner_order": ["nope"],
    }]


def test_reports_each_repeated_id_once_in_sorted_order():
    puzzle = make_puzzle(["a", "b", "c"], canonical=["c", "a", "c", "b", "a", "c"])

    with pytest.raises(InvalidPuzzleError) as exc_info:
        ProofValidator(puzzle)

    assert "canonical order repeats ids: a, c" in exc_info.value.problems
