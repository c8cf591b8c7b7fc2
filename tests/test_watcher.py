"""Tests for the clipboard watcher."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

import pytest

from clipdeck.clipboard import ClipboardSource, MemoryClipboard
from clipdeck.errors import ClipdeckError
from clipdeck.models import CapturedItem, ItemType, RepresentationKind
from clipdeck.watch import ClipboardWatcher

FIXED_TIME = datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)


def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class BrokenCounterClipboard(ClipboardSource):
    def change_count(self) -> int:
        raise OSError("display went away")

    def available_kinds(self) -> frozenset[RepresentationKind]:
        return frozenset()

    def read(self, kind: RepresentationKind) -> Optional[bytes]:
        return None


def test_content_present_at_start_is_not_captured() -> None:
    clipboard = MemoryClipboard()
    clipboard.set_text("already here")
    captured: list[CapturedItem] = []
    watcher = ClipboardWatcher(clipboard, on_capture=captured.append)

    assert watcher.poll_once() is None
    assert captured == []


def test_change_is_captured_once() -> None:
    clipboard = MemoryClipboard()
    captured: list[CapturedItem] = []
    watcher = ClipboardWatcher(clipboard, on_capture=captured.append, clock=lambda: FIXED_TIME)
    watcher.prime()

    clipboard.set_text("def run():\n    import sys\n", owner="code")
    item = watcher.poll_once()

    assert item is not None
    assert captured == [item]
    assert item.category is ItemType.CODE
    assert item.timestamp == FIXED_TIME
    assert item.source_app == "Visual Studio Code"
    assert watcher.poll_once() is None
    assert len(captured) == 1


def test_links_and_files_are_classified(tmp_path: Path) -> None:
    clipboard = MemoryClipboard()
    watcher = ClipboardWatcher(clipboard)
    watcher.prime()

    clipboard.set_link("https://example.com")
    link = watcher.poll_once()
    target = tmp_path / "track.mp3"
    target.write_bytes(b"ID3 fake audio")
    clipboard.set_file(target)
    audio = watcher.poll_once()

    assert link is not None and link.category is ItemType.LINK
    assert audio is not None and audio.category is ItemType.AUDIO
    assert audio.title == "track.mp3"
    assert audio.file_path == str(target)


def test_zero_byte_change_emits_nothing_and_watcher_continues() -> None:
    clipboard = MemoryClipboard()
    captured: list[CapturedItem] = []
    watcher = ClipboardWatcher(clipboard, on_capture=captured.append)
    watcher.prime()

    clipboard.set_text("")
    assert watcher.poll_once() is None
    clipboard.clear()
    assert watcher.poll_once() is None
    clipboard.set_text("after")
    assert watcher.poll_once() is not None

    assert [item.title for item in captured] == ["after"]


def test_handler_errors_do_not_stop_capture() -> None:
    clipboard = MemoryClipboard()

    def _failing(item: CapturedItem) -> None:
        raise ClipdeckError("store offline")

    watcher = ClipboardWatcher(clipboard, on_capture=_failing)
    watcher.prime()
    clipboard.set_text("one")

    assert watcher.poll_once() is not None
    clipboard.set_text("two")
    assert watcher.poll_once() is not None


def test_unexpected_handler_errors_are_absorbed_by_every_entry_point() -> None:
    clipboard = MemoryClipboard()
    calls: list[str] = []

    def _closed_pipeline(item: CapturedItem) -> None:
        calls.append(item.title)
        raise RuntimeError("Thumbnail pipeline has been shut down.")

    watcher = ClipboardWatcher(clipboard, on_capture=_closed_pipeline)
    watcher.prime()
    clipboard.set_text("polled")

    assert watcher.poll_once() is not None
    clipboard.set_text("forced")
    assert watcher.capture_now() is not None
    assert calls == ["polled", "forced"]


def test_unreadable_counter_is_absorbed() -> None:
    watcher = ClipboardWatcher(BrokenCounterClipboard())

    assert watcher.poll_once() is None


def test_capture_now_ignores_counter_and_rebaselines() -> None:
    clipboard = MemoryClipboard()
    clipboard.set_text("on the clipboard")
    watcher = ClipboardWatcher(clipboard)

    item = watcher.capture_now()

    assert item is not None and item.title == "on the clipboard"
    assert watcher.poll_once() is None


def test_stop_then_restart_does_not_reemit_stop_time_state() -> None:
    clipboard = MemoryClipboard()
    clipboard.set_text("before start")
    captured: list[CapturedItem] = []
    watcher = ClipboardWatcher(clipboard, on_capture=captured.append, poll_interval=0.01)

    watcher.start()
    clipboard.set_text("while running")
    assert _wait_for(lambda: len(captured) == 1)
    watcher.stop()

    watcher.start()
    time.sleep(0.1)
    watcher.stop()
    assert [item.title for item in captured] == ["while running"]

    clipboard.set_text("while stopped")
    watcher.start()
    assert _wait_for(lambda: len(captured) == 2)
    watcher.stop()

    assert [item.title for item in captured] == ["while running", "while stopped"]


def test_context_manager_starts_and_stops() -> None:
    watcher = ClipboardWatcher(MemoryClipboard(), poll_interval=0.01)

    with watcher:
        assert watcher.is_running
    assert not watcher.is_running


def test_start_is_idempotent() -> None:
    watcher = ClipboardWatcher(MemoryClipboard(), poll_interval=0.01)
    watcher.start()
    first_thread = watcher._thread

    watcher.start()

    assert watcher._thread is first_thread
    watcher.stop()


def test_poll_interval_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ClipboardWatcher(MemoryClipboard(), poll_interval=0)
