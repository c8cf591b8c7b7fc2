"""In-process clipboard used for embedding and tests."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Mapping, Optional

from clipdeck.models import RepresentationKind

from .base import ClipboardSource


class MemoryClipboard(ClipboardSource):
    """Thread-safe clipboard whose counter advances on every write."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._count = 0
        self._content: dict[RepresentationKind, bytes] = {}
        self._owner: Optional[str] = None

    def change_count(self) -> int:
        with self._lock:
            return self._count

    def available_kinds(self) -> frozenset[RepresentationKind]:
        with self._lock:
            return frozenset(self._content)

    def read(self, kind: RepresentationKind) -> Optional[bytes]:
        with self._lock:
            return self._content.get(kind)

    def owner_hint(self) -> Optional[str]:
        with self._lock:
            return self._owner

    # Writers ----------------------------------------------------------

    def set_representations(
        self,
        content: Mapping[RepresentationKind, bytes],
        *,
        owner: Optional[str] = None,
    ) -> int:
        """Replace the clipboard content and return the new change counter."""
        with self._lock:
            self._content = dict(content)
            self._owner = owner
            self._count += 1
            return self._count

    def set_text(self, text: str, *, owner: Optional[str] = None) -> int:
        return self.set_representations({RepresentationKind.TEXT: text.encode("utf-8")}, owner=owner)

    def set_link(self, url: str, *, owner: Optional[str] = None) -> int:
        encoded = url.encode("utf-8")
        return self.set_representations(
            {RepresentationKind.LINK: encoded, RepresentationKind.TEXT: encoded}, owner=owner
        )

    def set_image(self, data: bytes, *, owner: Optional[str] = None) -> int:
        return self.set_representations({RepresentationKind.IMAGE: data}, owner=owner)

    def set_file(self, path: Path, *, owner: Optional[str] = None) -> int:
        reference = str(path).encode("utf-8")
        return self.set_representations(
            {RepresentationKind.FILE: reference, RepresentationKind.TEXT: reference}, owner=owner
        )

    def clear(self) -> int:
        return self.set_representations({})


__all__ = ["MemoryClipboard"]
