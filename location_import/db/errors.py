from __future__ import annotations

"""Record store error types."""

__all__ = [
    "StoreError",
    "BatchInsertError",
]


class StoreError(Exception):
    """Raised when a record store call fails."""


class BatchInsertError(StoreError):
    """Raised when a batch insert fails; the whole batch is not stored."""
