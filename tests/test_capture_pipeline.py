"""Tests for capture-event deduplication."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from clipdeck.capture import CaptureAction, CapturePipeline
from clipdeck.models import CapturedItem, ItemType
from clipdeck.state import InMemoryItemStore, StoreError

T0 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class RecordingThumbnails:
    """Stand-in for the thumbnail pipeline that records submissions."""

    def __init__(self) -> None:
        self.submitted: list[CapturedItem] = []

    def submit(self, item: CapturedItem) -> None:
        self.submitted.append(item)


class FailingStore(InMemoryItemStore):
    def insert(self, item: CapturedItem) -> None:
        raise StoreError("disk full")


def _capture(payload: bytes, *, at: datetime, category: ItemType = ItemType.TEXT) -> CapturedItem:
    return CapturedItem(raw_content=payload, timestamp=at, category=category, title="t")


def test_new_content_is_inserted_and_scheduled() -> None:
    store = InMemoryItemStore()
    thumbnails = RecordingThumbnails()
    pipeline = CapturePipeline(store, thumbnails)  # type: ignore[arg-type]
    item = _capture(b"fresh", at=T0, category=ItemType.IMAGE)

    outcome = pipeline.handle(item)

    assert outcome.action is CaptureAction.INSERTED
    assert outcome.item is item
    assert store.get(item.id) is item
    assert thumbnails.submitted == [item]


def test_identical_content_refreshes_timestamp_only() -> None:
    """Capturing the same bytes twice keeps one item stamped with the second capture."""
    store = InMemoryItemStore()
    thumbnails = RecordingThumbnails()
    pipeline = CapturePipeline(store, thumbnails)  # type: ignore[arg-type]
    first = _capture(b"same bytes", at=T0)
    second = _capture(b"same bytes", at=T0 + timedelta(minutes=3))

    pipeline.handle(first)
    outcome = pipeline(second)

    assert outcome.action is CaptureAction.REFRESHED
    assert outcome.item is first
    assert len(store) == 1
    stored = store.list_recent()[0]
    assert stored.id == first.id
    assert stored.timestamp == second.timestamp
    assert thumbnails.submitted == [first]


def test_refresh_keeps_existing_thumbnail() -> None:
    store = InMemoryItemStore()
    pipeline = CapturePipeline(store)
    first = _capture(b"image bytes", at=T0, category=ItemType.IMAGE)
    pipeline.handle(first)
    first.thumbnail = b"\xff\xd8preview"

    pipeline.handle(_capture(b"image bytes", at=T0 + timedelta(seconds=5), category=ItemType.IMAGE))

    assert store.get(first.id).thumbnail == b"\xff\xd8preview"


def test_refresh_moves_item_to_front() -> None:
    store = InMemoryItemStore()
    pipeline = CapturePipeline(store)
    a = _capture(b"a", at=T0)
    b = _capture(b"b", at=T0 + timedelta(minutes=1))
    pipeline.handle(a)
    pipeline.handle(b)

    pipeline.handle(_capture(b"a", at=T0 + timedelta(minutes=2)))

    assert [item.id for item in store.list_recent()] == [a.id, b.id]


def test_store_errors_propagate_without_scheduling() -> None:
    thumbnails = RecordingThumbnails()
    pipeline = CapturePipeline(FailingStore(), thumbnails)  # type: ignore[arg-type]

    with pytest.raises(StoreError):
        pipeline.handle(_capture(b"x", at=T0))
    assert thumbnails.submitted == []
