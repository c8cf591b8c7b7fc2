"""Item store errors."""

from clipdeck.errors import ClipdeckError


class StoreError(ClipdeckError):
    """Base exception for item store operations."""


class MissingItemError(StoreError):
    """Raised when an item id is not present in the store."""
