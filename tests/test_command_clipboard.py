"""Tests for the command-line clipboard backend using a scripted runner."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pytest

from clipdeck.capture import ContentExtractor
from clipdeck.clipboard import CommandClipboard, MemoryClipboard, get_clipboard_source
from clipdeck.clipboard import command as command_module
from clipdeck.models import RepresentationKind


class FakeDesktop:
    """Answer `xclip` invocations from an in-memory target table."""

    def __init__(self) -> None:
        self.targets: dict[str, bytes] = {}
        self.calls: list[List[str]] = []
        self.window_class: Optional[bytes] = None

    def __call__(self, command: List[str]) -> Optional[bytes]:
        self.calls.append(command)
        if command[0] == "xdotool":
            return self.window_class
        target = command[4]
        if target == "TARGETS":
            return "\n".join(self.targets).encode("utf-8") if self.targets else None
        return self.targets.get(target)

    def reads_of(self, target: str) -> int:
        return sum(1 for call in self.calls if call[0] == "xclip" and call[4] == target)


@pytest.fixture()
def desktop() -> FakeDesktop:
    return FakeDesktop()


@pytest.fixture()
def clipboard(desktop: FakeDesktop) -> CommandClipboard:
    return CommandClipboard("x11", runner=desktop)


def test_counter_advances_only_when_content_changes(
    desktop: FakeDesktop, clipboard: CommandClipboard
) -> None:
    desktop.targets = {"UTF8_STRING": b"hello"}
    first = clipboard.change_count()

    assert clipboard.change_count() == first

    desktop.targets = {"UTF8_STRING": b"world"}
    assert clipboard.change_count() == first + 1
    assert clipboard.change_count() == first + 1


def test_text_targets_are_exposed(desktop: FakeDesktop, clipboard: CommandClipboard) -> None:
    desktop.targets = {"TARGETS": b"", "UTF8_STRING": b"plain words", "STRING": b"plain words"}
    clipboard.change_count()

    assert clipboard.available_kinds() == frozenset({RepresentationKind.TEXT})
    assert clipboard.read(RepresentationKind.TEXT) == b"plain words"
    assert clipboard.read(RepresentationKind.IMAGE) is None


def test_web_uri_list_is_a_link(desktop: FakeDesktop, clipboard: CommandClipboard) -> None:
    desktop.targets = {
        "text/uri-list": b"# comment\r\nhttps://example.com/page\r\n",
        "text/plain": b"https://example.com/page",
    }
    clipboard.change_count()

    kinds = clipboard.available_kinds()

    assert RepresentationKind.LINK in kinds
    assert RepresentationKind.FILE not in kinds
    assert clipboard.read(RepresentationKind.LINK) == b"https://example.com/page"


def test_copied_files_are_file_references(
    tmp_path: Path, desktop: FakeDesktop, clipboard: CommandClipboard
) -> None:
    target = tmp_path / "slides.pptx"
    target.write_bytes(b"PK fake pptx")
    desktop.targets = {
        "x-special/gnome-copied-files": f"copy\n{target.as_uri()}".encode("utf-8"),
        "text/plain": str(target).encode("utf-8"),
    }
    clipboard.change_count()

    snapshot = ContentExtractor().extract(clipboard)

    assert snapshot.primary is RepresentationKind.FILE
    assert snapshot.payload == b"PK fake pptx"
    assert snapshot.file_extension == "pptx"


def test_image_targets_are_images(desktop: FakeDesktop, clipboard: CommandClipboard) -> None:
    desktop.targets = {"image/png": b"\x89PNG\r\n\x1a\nfake"}
    clipboard.change_count()

    assert clipboard.available_kinds() == frozenset({RepresentationKind.IMAGE})
    assert clipboard.read(RepresentationKind.IMAGE) == b"\x89PNG\r\n\x1a\nfake"


def test_payloads_are_read_once_per_change(
    desktop: FakeDesktop, clipboard: CommandClipboard
) -> None:
    desktop.targets = {"UTF8_STRING": b"cached"}
    clipboard.change_count()

    clipboard.available_kinds()
    clipboard.read(RepresentationKind.TEXT)
    clipboard.read(RepresentationKind.TEXT)

    assert desktop.reads_of("UTF8_STRING") == 1


def test_selection_timestamp_detects_changes_without_reading_images(
    desktop: FakeDesktop, clipboard: CommandClipboard
) -> None:
    desktop.targets = {"TIMESTAMP": b"1001", "image/png": b"\x89PNG first"}
    first = clipboard.change_count()
    assert clipboard.change_count() == first

    desktop.targets = {"TIMESTAMP": b"1002", "image/png": b"\x89PNG second"}
    assert clipboard.change_count() == first + 1

    assert desktop.reads_of("image/png") == 0
    assert desktop.reads_of("TIMESTAMP") == 3
    assert clipboard.read(RepresentationKind.IMAGE) == b"\x89PNG second"


def test_owner_hint_uses_active_window_class(
    monkeypatch: pytest.MonkeyPatch, desktop: FakeDesktop, clipboard: CommandClipboard
) -> None:
    monkeypatch.setattr(command_module.shutil, "which", lambda name: f"/usr/bin/{name}")
    desktop.window_class = b"firefox\n"

    assert clipboard.owner_hint() == "firefox"


def test_owner_hint_without_xdotool(
    monkeypatch: pytest.MonkeyPatch, clipboard: CommandClipboard
) -> None:
    monkeypatch.setattr(command_module.shutil, "which", lambda name: None)

    assert clipboard.owner_hint() is None


def test_missing_tools_raise(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(CommandClipboard, "detect_backend", staticmethod(lambda: None))

    with pytest.raises(RuntimeError):
        CommandClipboard()


def test_factory_selects_sources() -> None:
    assert isinstance(get_clipboard_source("memory"), MemoryClipboard)
    with pytest.raises(ValueError):
        get_clipboard_source("carrier-pigeon")
