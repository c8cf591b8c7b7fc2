"""Item stores the capture pipeline deduplicates against."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from pydantic import ValidationError

from clipdeck.models import CapturedItem, Tag

from .errors import MissingItemError, StoreError
from .models import StoreSnapshot

LOGGER = logging.getLogger(__name__)

DEFAULT_STORE_PATH = Path("~/.clipdeck/items.json")


@runtime_checkable
class ItemStore(Protocol):
    """Storage collaborator consumed by the capture and thumbnail pipelines."""

    def insert(self, item: CapturedItem) -> None: ...

    def find_by_fingerprint(self, fingerprint: str) -> Optional[CapturedItem]: ...

    def update(self, item: CapturedItem) -> None: ...

    def get(self, item_id: str) -> CapturedItem: ...

    def list_recent(self, limit: Optional[int] = None) -> list[CapturedItem]: ...


class InMemoryItemStore:
    """Thread-safe store keeping at most one item per fingerprint.

    Items are held by reference, so writers touching disjoint fields of the
    same item (timestamp refresh and thumbnail write-back) do not clobber each
    other.
    """

    def __init__(self, *, history_limit: Optional[int] = None) -> None:
        self._lock = threading.RLock()
        self._items: dict[str, CapturedItem] = {}
        self._by_fingerprint: dict[str, str] = {}
        self._history_limit = history_limit

    def insert(self, item: CapturedItem) -> None:
        with self._lock:
            if item.fingerprint in self._by_fingerprint:
                raise StoreError(f"An item with fingerprint {item.fingerprint} already exists.")
            self._items[item.id] = item
            self._by_fingerprint[item.fingerprint] = item.id
            self._evict_overflow()
            self._persist()

    def find_by_fingerprint(self, fingerprint: str) -> Optional[CapturedItem]:
        with self._lock:
            item_id = self._by_fingerprint.get(fingerprint)
            return self._items.get(item_id) if item_id is not None else None

    def update(self, item: CapturedItem) -> None:
        with self._lock:
            if item.id not in self._items:
                raise MissingItemError(f"No item with id {item.id}.")
            self._items[item.id] = item
            self._persist()

    def get(self, item_id: str) -> CapturedItem:
        with self._lock:
            try:
                return self._items[item_id]
            except KeyError:
                raise MissingItemError(f"No item with id {item_id}.") from None

    def delete(self, item_id: str) -> None:
        with self._lock:
            item = self._items.pop(item_id, None)
            if item is None:
                raise MissingItemError(f"No item with id {item_id}.")
            self._by_fingerprint.pop(item.fingerprint, None)
            self._persist()

    def list_recent(self, limit: Optional[int] = None) -> list[CapturedItem]:
        """Return items ordered by most recent timestamp first."""
        with self._lock:
            ordered = sorted(self._items.values(), key=lambda item: item.timestamp, reverse=True)
        return ordered if limit is None else ordered[:limit]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def _evict_overflow(self) -> None:
        if self._history_limit is None or len(self._items) <= self._history_limit:
            return
        candidates = sorted(
            (item for item in self._items.values() if not item.favorite),
            key=lambda item: item.timestamp,
        )
        for item in candidates:
            if len(self._items) <= self._history_limit:
                break
            del self._items[item.id]
            self._by_fingerprint.pop(item.fingerprint, None)
            LOGGER.debug("Evicted item %s beyond history limit.", item.id)

    def _persist(self) -> None:
        """Hook for subclasses that write through to durable storage."""


class JsonItemStore(InMemoryItemStore):
    """Persist items to a JSON file, rewriting it on every change."""

    def __init__(self, path: Path | None = None, *, history_limit: Optional[int] = None) -> None:
        super().__init__(history_limit=history_limit)
        self._path = (path or DEFAULT_STORE_PATH).expanduser()
        self._tags: list[Tag] = []

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> "JsonItemStore":
        """Load items from disk, replacing anything held in memory.

        Raises:
            StoreError: If the file exists but cannot be parsed.
        """
        with self._lock:
            self._items.clear()
            self._by_fingerprint.clear()
            if not self._path.exists():
                return self
            try:
                snapshot = StoreSnapshot.model_validate_json(self._path.read_text(encoding="utf-8"))
            except (OSError, ValidationError) as exc:
                raise StoreError(f"Invalid item store data in {self._path}: {exc}") from exc
            for item in snapshot.items:
                self._items[item.id] = item
                self._by_fingerprint[item.fingerprint] = item.id
            self._tags = list(snapshot.tags)
        return self

    @property
    def tags(self) -> list[Tag]:
        with self._lock:
            return list(self._tags)

    def add_tag(self, tag: Tag) -> None:
        with self._lock:
            self._tags.append(tag)
            self._persist()

    def _persist(self) -> None:
        snapshot = StoreSnapshot(
            items=list(self._items.values()),
            tags=list(self._tags),
            updated_at=datetime.now(timezone.utc),
        )
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as exc:
            raise StoreError(f"Could not write item store {self._path}: {exc}") from exc


__all__ = [
    "DEFAULT_STORE_PATH",
    "InMemoryItemStore",
    "ItemStore",
    "JsonItemStore",
    "MissingItemError",
    "StoreError",
]
