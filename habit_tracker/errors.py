from __future__ import annotations


class InvalidInputError(ValueError):
    """An instant or calendar date could not be parsed."""


class TrackerError(ValueError):
    """A tracker operation was rejected because of the caller's input."""
