"""Errors raised to callers of the facade."""

from __future__ import annotations


class InvalidArgument(ValueError):
    """Raised when a caller passes a value the agent cannot accept (e.g. a non-numeric metric)."""
