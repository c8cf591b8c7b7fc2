"""Abstract interface to an externally-owned clipboard."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from clipdeck.models import RepresentationKind


class ClipboardSource(ABC):
    """A clipboard-like resource the watcher can poll.

    Implementations expose a change counter that increases whenever the
    clipboard owner replaces the content, the representation kinds currently on
    offer, and raw bytes per kind. Link and text representations are UTF-8
    encoded; file representations hold a path or ``file://`` URI.
    """

    @abstractmethod
    def change_count(self) -> int:
        """Return the current, monotonically increasing change counter."""

    @abstractmethod
    def available_kinds(self) -> frozenset[RepresentationKind]:
        """Return the representation kinds currently offered."""

    @abstractmethod
    def read(self, kind: RepresentationKind) -> Optional[bytes]:
        """Return the bytes for `kind`, or None when the kind is not available."""

    def owner_hint(self) -> Optional[str]:
        """Return a best-effort label for the application owning the clipboard."""
        return None


__all__ = ["ClipboardSource"]
