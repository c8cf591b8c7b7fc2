"""Capture-event handling: deduplicate against the store, then schedule previews."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from clipdeck.models import CapturedItem
from clipdeck.state import ItemStore

if TYPE_CHECKING:
    from clipdeck.thumbnails.pipeline import ThumbnailPipeline

LOGGER = logging.getLogger(__name__)


class CaptureAction(str, Enum):
    """What happened to a captured item after deduplication."""

    INSERTED = "inserted"
    REFRESHED = "refreshed"


@dataclass(slots=True)
class CaptureOutcome:
    """Result of handling one capture event.

    Attributes:
        action: Whether the item was inserted or an existing one refreshed.
        item: The item now held by the store; for refreshes this is the
            pre-existing item, and the newly captured bytes are discarded.
    """

    action: CaptureAction
    item: CapturedItem


class CapturePipeline:
    """Keep the store at one item per fingerprint.

    A capture whose fingerprint is already stored only moves the existing item's
    timestamp forward. New content is inserted and, when a thumbnail pipeline is
    attached, handed to it without waiting for the render.
    """

    def __init__(self, store: ItemStore, thumbnails: Optional["ThumbnailPipeline"] = None) -> None:
        self.store = store
        self.thumbnails = thumbnails
        self._lock = threading.Lock()

    def handle(self, item: CapturedItem) -> CaptureOutcome:
        """Deduplicate `item` against the store.

        Raises:
            StoreError: Propagated from the store; never retried here.
        """
        with self._lock:
            existing = self.store.find_by_fingerprint(item.fingerprint)
            if existing is not None:
                existing.timestamp = item.timestamp
                self.store.update(existing)
                LOGGER.info("Refreshed existing item %s (%s).", existing.id, existing.title)
                return CaptureOutcome(CaptureAction.REFRESHED, existing)

            self.store.insert(item)
            LOGGER.info("Stored new %s item %s (%s).", item.category.value, item.id, item.title)

        if self.thumbnails is not None:
            self.thumbnails.submit(item)
        return CaptureOutcome(CaptureAction.INSERTED, item)

    __call__ = handle


__all__ = ["CaptureAction", "CaptureOutcome", "CapturePipeline"]
