"""Tests for clipboard content extraction and item construction."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from clipdeck.capture import ContentExtractor, build_item, derive_title, parse_file_reference
from clipdeck.capture.extractor import TITLE_MAX_CHARS
from clipdeck.clipboard import MemoryClipboard
from clipdeck.errors import CaptureError, EmptyPayloadError
from clipdeck.models import ContentSnapshot, ItemType, RepresentationKind


def _png_bytes(size: tuple[int, int] = (4, 3)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, (200, 10, 10)).save(buffer, format="PNG")
    return buffer.getvalue()


def test_empty_clipboard_raises_capture_error() -> None:
    with pytest.raises(CaptureError):
        ContentExtractor().extract(MemoryClipboard())


def test_link_is_preferred_over_text() -> None:
    clipboard = MemoryClipboard()
    clipboard.set_link("https://example.com/page")

    snapshot = ContentExtractor().extract(clipboard)

    assert snapshot.primary is RepresentationKind.LINK
    assert snapshot.text == "https://example.com/page"
    assert RepresentationKind.TEXT in snapshot.kinds


def test_file_reference_reads_file_bytes(tmp_path: Path) -> None:
    target = tmp_path / "Report.PDF"
    target.write_bytes(b"%PDF-1.4 fake")
    clipboard = MemoryClipboard()
    clipboard.set_file(target, owner="Finder")

    snapshot = ContentExtractor().extract(clipboard)

    assert snapshot.primary is RepresentationKind.FILE
    assert snapshot.payload == b"%PDF-1.4 fake"
    assert snapshot.file_extension == "pdf"
    assert snapshot.file_name == "Report.PDF"
    assert snapshot.source_app == "Finder"


def test_missing_file_reference_is_not_captured(tmp_path: Path) -> None:
    clipboard = MemoryClipboard()
    clipboard.set_file(tmp_path / "gone.txt")

    with pytest.raises(CaptureError):
        ContentExtractor().extract(clipboard)


def test_oversized_file_is_not_captured(tmp_path: Path) -> None:
    target = tmp_path / "big.bin"
    target.write_bytes(b"x" * 2048)
    clipboard = MemoryClipboard()
    clipboard.set_file(target)

    with pytest.raises(CaptureError):
        ContentExtractor(max_file_size_bytes=1024).extract(clipboard)


def test_file_capture_can_be_disabled(tmp_path: Path) -> None:
    target = tmp_path / "note.txt"
    target.write_text("hello", encoding="utf-8")
    clipboard = MemoryClipboard()
    clipboard.set_file(target)

    with pytest.raises(CaptureError):
        ContentExtractor(capture_files=False).extract(clipboard)


def test_image_representation_records_dimensions() -> None:
    clipboard = MemoryClipboard()
    clipboard.set_image(_png_bytes((40, 30)))

    snapshot = ContentExtractor().extract(clipboard)

    assert snapshot.primary is RepresentationKind.IMAGE
    assert snapshot.image_size == (40, 30)


def test_zero_byte_text_is_a_capture_error() -> None:
    clipboard = MemoryClipboard()
    clipboard.set_text("")

    with pytest.raises(CaptureError):
        ContentExtractor().extract(clipboard)


@pytest.mark.parametrize(
    ("reference", "expected"),
    [
        (b"/tmp/plain.txt", Path("/tmp/plain.txt")),
        (b"file:///tmp/with%20space.txt", Path("/tmp/with space.txt")),
        (b"copy\nfile:///tmp/copied.png\n", Path("/tmp/copied.png")),
        (b"https://example.com/file.txt", None),
        (b"", None),
    ],
)
def test_parse_file_reference(reference: bytes, expected: Path | None) -> None:
    assert parse_file_reference(reference) == expected


def test_text_titles_collapse_whitespace_and_truncate() -> None:
    text = "  First line\n\n\tsecond   line " + "x" * 100
    snapshot = ContentSnapshot(
        kinds=frozenset({RepresentationKind.TEXT}),
        primary=RepresentationKind.TEXT,
        payload=text.encode("utf-8"),
        text=text,
    )

    title = derive_title(snapshot, ItemType.TEXT)

    assert title.startswith("First line second line x")
    assert len(title) == TITLE_MAX_CHARS


def test_image_and_file_titles() -> None:
    image = ContentSnapshot(
        kinds=frozenset({RepresentationKind.IMAGE}),
        primary=RepresentationKind.IMAGE,
        payload=b"png",
        image_size=(1920, 1080),
    )
    file_ref = ContentSnapshot(
        kinds=frozenset({RepresentationKind.FILE}),
        primary=RepresentationKind.FILE,
        payload=b"data",
        file_path="/home/me/notes.md",
        file_extension="md",
    )

    assert derive_title(image, ItemType.IMAGE) == "Image - 1920x1080"
    assert derive_title(file_ref, ItemType.TEXT) == "notes.md"


def test_build_item_carries_snapshot_fields() -> None:
    snapshot = ContentSnapshot(
        kinds=frozenset({RepresentationKind.LINK}),
        primary=RepresentationKind.LINK,
        payload=b"https://example.com",
        text="https://example.com",
    )

    item = build_item(snapshot, ItemType.LINK, source_app="Firefox")

    assert item.title == "https://example.com"
    assert item.category is ItemType.LINK
    assert item.source_app == "Firefox"
    assert item.raw_content == b"https://example.com"


def test_build_item_rejects_empty_payload() -> None:
    snapshot = ContentSnapshot(kinds=frozenset({RepresentationKind.TEXT}), text="")

    with pytest.raises(EmptyPayloadError):
        build_item(snapshot, ItemType.TEXT)
