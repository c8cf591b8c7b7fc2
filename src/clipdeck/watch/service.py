"""Clipboard watch service that polls a change counter and emits capture events."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from clipdeck.capture.extractor import ContentExtractor, build_item
from clipdeck.capture.sources import SourceAppResolver
from clipdeck.classification import ContentClassifier
from clipdeck.clipboard.base import ClipboardSource
from clipdeck.errors import CaptureError, ClipdeckError
from clipdeck.models import CapturedItem

LOGGER = logging.getLogger(__name__)

CaptureCallback = Callable[[CapturedItem], Any]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClipboardWatcher:
    """Poll a clipboard source and turn each detected change into a `CapturedItem`.

    The poll interval is the only bound on capture latency: content that is
    replaced between two ticks is never observed. Each tick finishes its
    extraction, classification and callback before the next one starts.
    """

    def __init__(
        self,
        source: ClipboardSource,
        *,
        on_capture: Optional[CaptureCallback] = None,
        classifier: Optional[ContentClassifier] = None,
        extractor: Optional[ContentExtractor] = None,
        resolver: Optional[SourceAppResolver] = None,
        poll_interval: float = 0.5,
        clock: Optional[Clock] = None,
    ) -> None:
        """Initialize the watcher.

        Args:
            source: Clipboard to poll.
            on_capture: Receives every captured item before deduplication.
            classifier: Classifier used for captured snapshots.
            extractor: Extractor that reads the selected representation.
            resolver: Normalizes source application hints.
            poll_interval: Seconds between two change-counter checks.
            clock: Timestamp factory for captured items.
        """
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive.")
        self._source = source
        self._on_capture = on_capture
        self._classifier = classifier or ContentClassifier()
        self._extractor = extractor or ContentExtractor()
        self._resolver = resolver or SourceAppResolver()
        self._poll_interval = poll_interval
        self._clock = clock or _utcnow
        self._last_count: Optional[int] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._tick_lock = threading.Lock()

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def last_change_count(self) -> Optional[int]:
        return self._last_count

    # Lifecycle --------------------------------------------------------

    def prime(self) -> None:
        """Baseline the change counter so content already present is not captured.

        Only the first call has an effect; later calls keep the last observed
        counter, so restarting never re-emits what was on the clipboard at stop.
        """
        if self._last_count is None:
            self._last_count = self._source.change_count()
            LOGGER.debug("Clipboard baseline change count is %d.", self._last_count)

    def start(self) -> None:
        """Begin polling on a background thread; a no-op if already running."""
        if self.is_running:
            return
        self.prime()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="clipdeck-watcher", daemon=True
        )
        self._thread.start()
        LOGGER.info("Clipboard watcher started (interval %.2fs).", self._poll_interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop polling before the next tick and wait for the loop to exit."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        LOGGER.info("Clipboard watcher stopped.")

    def run_forever(self) -> None:
        """Poll on the calling thread until `stop()` is called from elsewhere."""
        self.prime()
        self._stop_event.clear()
        self._run()

    def __enter__(self) -> "ClipboardWatcher":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    # Polling ----------------------------------------------------------

    def poll_once(self) -> Optional[CapturedItem]:
        """Run a single tick.

        Returns:
            CapturedItem | None: The emitted item, or None when the counter did
            not move or the change could not be captured.
        """
        with self._tick_lock:
            try:
                current = self._source.change_count()
            except (OSError, RuntimeError) as exc:
                LOGGER.warning("Could not read clipboard change count: %s", exc)
                return None

            if self._last_count is None:
                self._last_count = current
                return None
            if current == self._last_count:
                return None
            self._last_count = current
            return self._capture()

    def capture_now(self) -> Optional[CapturedItem]:
        """Capture whatever is on the clipboard right now, ignoring the counter.

        The current counter becomes the new baseline so the next tick does not
        capture the same content again.
        """
        with self._tick_lock:
            try:
                self._last_count = self._source.change_count()
            except (OSError, RuntimeError) as exc:
                LOGGER.warning("Could not read clipboard change count: %s", exc)
                return None
            return self._capture()

    def _capture(self) -> Optional[CapturedItem]:
        try:
            snapshot = self._extractor.extract(self._source)
        except CaptureError as exc:
            LOGGER.debug("Skipping clipboard change: %s", exc)
            return None

        category = self._classifier.classify(snapshot)
        try:
            item = build_item(
                snapshot,
                category,
                timestamp=self._clock(),
                source_app=self._resolver.resolve(snapshot.source_app),
            )
        except CaptureError as exc:
            LOGGER.debug("Skipping clipboard change: %s", exc)
            return None

        LOGGER.debug("Captured %s item %s (%s).", item.category.value, item.id, item.title)
        if self._on_capture is not None:
            try:
                self._on_capture(item)
            except ClipdeckError as exc:
                LOGGER.error("Capture handler failed for %s: %s", item.id, exc)
            except Exception:  # noqa: BLE001
                LOGGER.exception("Unexpected error in capture handler for %s.", item.id)
        return item

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll_once()
            except Exception:  # noqa: BLE001 - a faulty tick must not end the watch loop
                LOGGER.exception("Unexpected error during clipboard poll.")
            if self._stop_event.wait(self._poll_interval):
                break


__all__ = ["ClipboardWatcher"]
