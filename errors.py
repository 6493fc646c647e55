# errors.py
"""
Error types for Tenboard layout construction, scoring and search.

All errors are raised synchronously where malformed input is detected.
They subclass ValueError so callers that already guard against bad
input with ``except ValueError`` keep working.
"""


class TenboardError(ValueError):
    """Base class for all Tenboard validation failures."""


class InvalidAssignment(TenboardError):
    """A character-to-chord assignment violates a layout invariant."""


class UnknownCharacter(TenboardError):
    """A character is not part of the layout's alphabet."""

    def __init__(self, char: str, message: str = ""):
        self.char = char
        super().__init__(message or f"Character {char!r} was not found in layout")


class EmptyCorpus(TenboardError):
    """A corpus has no character occurrences to normalize."""


class UnknownMetric(TenboardError):
    """A weight references a metric name that no evaluator provides."""

    def __init__(self, name: str, known=()):
        self.name = name
        message = f"Unknown metric '{name}'"
        if known:
            message += f" (known metrics: {', '.join(known)})"
        super().__init__(message)


class EmptySearchSpace(TenboardError):
    """The alphabet is too small for any swap to exist."""


class InvalidBudget(TenboardError):
    """The search budget allows no work or has invalid values."""
