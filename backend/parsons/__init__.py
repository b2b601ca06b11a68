"""Parsons proofs: validation and feedback for proof-reordering puzzles."""

__version__ = "1.0.0"
