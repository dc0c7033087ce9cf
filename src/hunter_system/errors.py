from __future__ import annotations


class InvalidInputError(ValueError):
    """Raised when user-supplied data cannot be turned into a record."""
