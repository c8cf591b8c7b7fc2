"""Background preview generation with single-writer thumbnail write-back."""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, cast

from clipdeck.errors import RenderError
from clipdeck.models import PREVIEWABLE_TYPES, CapturedItem
from clipdeck.state import ItemStore, MissingItemError, StoreError

from .renderer import ThumbnailRenderer, ThumbnailState

LOGGER = logging.getLogger(__name__)

_STOP = object()


@dataclass(slots=True)
class ThumbnailResult:
    """Completion message posted by a render task to the coordinator.

    Attributes:
        item_id: Identifier of the item the preview belongs to.
        fingerprint: Content version the preview was rendered from.
        state: Terminal state reached by the render task.
        data: Encoded preview bytes for `rendered` results.
        error: Failure description for `failed` results.
    """

    item_id: str
    fingerprint: str
    state: ThumbnailState
    data: Optional[bytes] = None
    error: Optional[str] = None


ErrorCallback = Callable[[CapturedItem, Exception], None]
CompleteCallback = Callable[[ThumbnailResult], None]


def _log_render_error(item: CapturedItem, exc: Exception) -> None:
    if isinstance(exc, RenderError):
        LOGGER.warning("Thumbnail rendering failed for %s (%s): %s", item.id, item.category.value, exc)
    else:
        LOGGER.error(
            "Unexpected error rendering thumbnail for %s (%s).",
            item.id,
            item.category.value,
            exc_info=exc,
        )


class ThumbnailPipeline:
    """Render previews off the capture path and apply them through one coordinator.

    Render tasks run on a worker pool and never touch the store. Each task posts
    a `ThumbnailResult` to a queue; a single coordinator thread drains it and is
    the only writer of `CapturedItem.thumbnail`. A preview is applied at most once
    per item and content version, and an existing thumbnail is never replaced.
    """

    def __init__(
        self,
        store: ItemStore,
        renderer: Optional[ThumbnailRenderer] = None,
        *,
        max_workers: int = 2,
        on_error: Optional[ErrorCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
    ) -> None:
        self.store = store
        self.renderer = renderer or ThumbnailRenderer()
        self._on_error = on_error or _log_render_error
        self._on_complete = on_complete
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers), thread_name_prefix="clipdeck-thumb"
        )
        self._results: queue.Queue[object] = queue.Queue()
        self._states: dict[tuple[str, str], ThumbnailState] = {}
        self._outstanding = 0
        self._idle = threading.Condition()
        self._closed = False
        self._coordinator = threading.Thread(
            target=self._coordinate, name="clipdeck-thumb-coordinator", daemon=True
        )
        self._coordinator.start()

    # Public API -------------------------------------------------------

    def submit(self, item: CapturedItem) -> ThumbnailState:
        """Schedule `item` for rendering without waiting for the result.

        Returns:
            ThumbnailState: `pending` when work was scheduled, otherwise the
            terminal state already known for this item and content version.
        """
        key = (item.id, item.fingerprint)
        with self._idle:
            if self._closed:
                raise RuntimeError("Thumbnail pipeline has been shut down.")
            known = self._states.get(key)
            if known is not None:
                return known
            if item.has_thumbnail:
                self._states[key] = ThumbnailState.RENDERED
                return ThumbnailState.RENDERED
            if item.category not in PREVIEWABLE_TYPES:
                self._states[key] = ThumbnailState.UNSUPPORTED
                return ThumbnailState.UNSUPPORTED
            self._states[key] = ThumbnailState.PENDING
            self._outstanding += 1

        self._executor.submit(self._render_task, item)
        return ThumbnailState.PENDING

    def post_result(self, result: ThumbnailResult) -> None:
        """Queue a completion for the coordinator; repeated completions are no-ops."""
        with self._idle:
            self._outstanding += 1
        self._results.put(result)

    def state_of(self, item: CapturedItem) -> Optional[ThumbnailState]:
        with self._idle:
            return self._states.get((item.id, item.fingerprint))

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until every scheduled render has been applied.

        Returns:
            bool: False if `timeout` elapsed with work still outstanding.
        """
        with self._idle:
            return self._idle.wait_for(lambda: self._outstanding == 0, timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work; in-flight renders still complete and write back."""
        with self._idle:
            if self._closed:
                return
            self._closed = True
        self._executor.shutdown(wait=wait)
        self._results.put(_STOP)
        if wait:
            self._coordinator.join()

    def __enter__(self) -> "ThumbnailPipeline":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown(wait=True)

    # Workers ----------------------------------------------------------

    def _render_task(self, item: CapturedItem) -> None:
        result = ThumbnailResult(item.id, item.fingerprint, ThumbnailState.FAILED)
        try:
            data = self.renderer.render(item)
        except Exception as exc:  # noqa: BLE001 - decoder failures stay with their item
            result.error = str(exc) or type(exc).__name__
            self._report_failure(item, exc)
        else:
            result.state = ThumbnailState.RENDERED if data is not None else ThumbnailState.UNSUPPORTED
            result.data = data
        finally:
            self._results.put(result)

    def _report_failure(self, item: CapturedItem, exc: Exception) -> None:
        try:
            self._on_error(item, exc)
        except Exception:  # noqa: BLE001
            LOGGER.exception("Thumbnail error observer raised for %s.", item.id)

    def _coordinate(self) -> None:
        while True:
            message = self._results.get()
            if message is _STOP:
                return
            result = cast(ThumbnailResult, message)
            try:
                self._apply(result)
            except StoreError as exc:
                LOGGER.error("Could not store thumbnail for %s: %s", result.item_id, exc)
            except Exception:  # noqa: BLE001
                LOGGER.exception("Unexpected error storing thumbnail for %s.", result.item_id)
            if self._settle(result) and self._on_complete is not None:
                try:
                    self._on_complete(result)
                except Exception:  # noqa: BLE001
                    LOGGER.exception("Thumbnail completion listener raised for %s.", result.item_id)

    def _apply(self, result: ThumbnailResult) -> None:
        key = (result.item_id, result.fingerprint)
        with self._idle:
            current = self._states.get(key)
        if current is not None and current is not ThumbnailState.PENDING:
            LOGGER.debug("Ignoring repeated thumbnail completion for %s.", result.item_id)
            return
        if result.state is not ThumbnailState.RENDERED or result.data is None:
            return

        try:
            item = self.store.get(result.item_id)
        except MissingItemError:
            LOGGER.debug("Item %s left the store before its thumbnail finished.", result.item_id)
            return
        if item.fingerprint != result.fingerprint or item.has_thumbnail:
            return
        item.thumbnail = result.data
        self.store.update(item)
        LOGGER.debug("Stored %d-byte thumbnail for %s.", len(result.data), item.id)

    def _settle(self, result: ThumbnailResult) -> bool:
        """Record the terminal state and release one unit of outstanding work.

        Returns:
            bool: True when this result moved the item out of `pending`.
        """
        key = (result.item_id, result.fingerprint)
        changed = False
        with self._idle:
            previous = self._states.get(key)
            if previous is None or previous is ThumbnailState.PENDING:
                self._states[key] = result.state
                changed = True
            self._outstanding -= 1
            self._idle.notify_all()
        return changed


__all__ = ["ThumbnailPipeline", "ThumbnailResult"]
