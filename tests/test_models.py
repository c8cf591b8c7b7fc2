"""Tests for the core item models."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from clipdeck.errors import EmptyPayloadError
from clipdeck.fingerprint import fingerprint
from clipdeck.models import (
    PREVIEWABLE_TYPES,
    CapturedItem,
    ItemType,
    Tag,
    parse_hex_color,
)


def test_item_derives_fingerprint_and_size_from_payload() -> None:
    item = CapturedItem(title="Note", category=ItemType.TEXT, raw_content=b"remember the milk")

    assert item.fingerprint == fingerprint(b"remember the milk")
    assert item.file_size == len(b"remember the milk")
    assert item.thumbnail is None
    assert not item.has_thumbnail
    assert item.timestamp.tzinfo is not None


def test_supplied_fingerprint_is_ignored() -> None:
    item = CapturedItem(raw_content=b"payload", fingerprint="bogus", file_size=1)

    assert item.fingerprint == fingerprint(b"payload")
    assert item.file_size == 7


def test_zero_byte_item_is_never_constructed() -> None:
    with pytest.raises(EmptyPayloadError):
        CapturedItem(raw_content=b"")


def test_identity_fields_are_immutable() -> None:
    item = CapturedItem(raw_content=b"payload", category=ItemType.TEXT)

    for name, value in (
        ("raw_content", b"other"),
        ("fingerprint", "0" * 64),
        ("category", ItemType.CODE),
        ("id", "new-id"),
        ("file_size", 3),
    ):
        with pytest.raises(AttributeError):
            setattr(item, name, value)


def test_mutable_fields_can_change() -> None:
    item = CapturedItem(raw_content=b"payload")
    later = datetime(2030, 1, 1, tzinfo=timezone.utc)

    item.title = "Renamed"
    item.favorite = True
    item.tags = ["work"]
    item.timestamp = later
    item.thumbnail = b"\xff\xd8jpeg"

    assert item.title == "Renamed"
    assert item.favorite is True
    assert item.tags == ["work"]
    assert item.timestamp == later
    assert item.has_thumbnail


def test_item_json_round_trip_keeps_identity() -> None:
    item = CapturedItem(raw_content=b"\x00\x01binary", category=ItemType.FILE, title="blob")

    restored = CapturedItem.model_validate_json(item.model_dump_json())

    assert restored.id == item.id
    assert restored.raw_content == item.raw_content
    assert restored.fingerprint == item.fingerprint


def test_item_type_parse_falls_back_to_file() -> None:
    assert ItemType.parse("pdf") is ItemType.PDF
    assert ItemType.parse("hologram") is ItemType.FILE
    assert ItemType.parse(None) is ItemType.FILE


def test_every_category_has_labels() -> None:
    for category in ItemType:
        assert category.display_name
        assert category.description


def test_previewable_categories() -> None:
    assert PREVIEWABLE_TYPES == {
        ItemType.IMAGE,
        ItemType.SCREENSHOT,
        ItemType.PDF,
        ItemType.VIDEO,
        ItemType.DESIGN,
    }
    assert ItemType.IMAGE.supports_thumbnails
    assert not ItemType.TEXT.supports_thumbnails


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("#FFF", (255, 255, 255, 255)),
        ("#007AFF", (0, 122, 255, 255)),
        ("80FF0000", (255, 0, 0, 128)),
        ("not-a-color", (0, 0, 0, 255)),
        ("#12345", (0, 0, 0, 255)),
    ],
)
def test_parse_hex_color(value: str, expected: tuple[int, int, int, int]) -> None:
    assert parse_hex_color(value) == expected


def test_tag_exposes_rgba() -> None:
    assert Tag(name="Urgent", color_hex="#FF0000").rgba == (255, 0, 0, 255)
