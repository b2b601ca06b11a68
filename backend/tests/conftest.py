"""Shared fixtures: a four-step puzzle with canonical order [a, b, c, d]."""

import pytest

from parsons.config import get_settings
from parsons.puzzles import clear_cache
from parsons.validators.engine import ProofValidator
from parsons.validators.models import Fragment, Puzzle


def make_puzzle(ids, puzzle_id="abcd", title="Four step proof", canonical=None):
    return Puzzle(
        id=puzzle_id,
        title=title,
        fragments=tuple(Fragment(id=fid, content=f"\\text{{Step {fid.upper()}}}") for fid in ids),
        canonical_order=tuple(canonical if canonical is not None else ids),
    )


class RecordingLogger:
    """Stand-in for a structlog logger that records every call."""

    def __init__(self):
        self.calls = []

    def _record(self, level, event, **kw):
        self.calls.append((level, event, kw))

    def debug(self, event, **kw):
        self._record("debug", event, **kw)

    def info(self, event, **kw):
        self._record("info", event, **kw)

    def warning(self, event, **kw):
        self._record("warning", event, **kw)

    def error(self, event, **kw):
        self._record("error", event, **kw)


@pytest.fixture
def puzzle():
    return make_puzzle(["a", "b", "c", "d"])


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def validator(puzzle, recording_logger):
    return ProofValidator(puzzle, event_logger=recording_logger)


@pytest.fixture(autouse=True)
def fresh_settings_and_catalog():
    get_settings.cache_clear()
    clear_cache()
    yield
    get_settings.cache_clear()
    clear_cache()
