"""Core data models: item categories, clipboard snapshots, and captured items."""

from __future__ import annotations

import base64
import binascii
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from clipdeck.errors import EmptyPayloadError
from clipdeck.fingerprint import fingerprint as compute_fingerprint


class ItemType(str, Enum):
    """Closed set of content categories a captured item can belong to."""

    IMAGE = "image"
    SCREENSHOT = "screenshot"
    TEXT = "text"
    PDF = "pdf"
    WORD = "word"
    EXCEL = "excel"
    POWERPOINT = "powerpoint"
    PAGES = "pages"
    NUMBERS = "numbers"
    KEYNOTE = "keynote"
    CODE = "code"
    AUDIO = "audio"
    VIDEO = "video"
    DESIGN = "design"
    FONT = "font"
    ARCHIVE = "archive"
    INSTALLER = "installer"
    THREE_D_MODEL = "threedmodel"
    DATA = "data"
    LINK = "link"
    FILE = "file"

    @classmethod
    def parse(cls, value: str | None) -> "ItemType":
        """Return the member for `value`, falling back to `FILE` for anything unknown."""
        try:
            return cls(value)
        except ValueError:
            return cls.FILE

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def supports_thumbnails(self) -> bool:
        return self in PREVIEWABLE_TYPES


_DISPLAY_NAMES = {
    ItemType.IMAGE: "Image",
    ItemType.SCREENSHOT: "Screenshot",
    ItemType.TEXT: "Text",
    ItemType.PDF: "PDF",
    ItemType.WORD: "Word",
    ItemType.EXCEL: "Excel",
    ItemType.POWERPOINT: "PowerPoint",
    ItemType.PAGES: "Pages",
    ItemType.NUMBERS: "Numbers",
    ItemType.KEYNOTE: "Keynote",
    ItemType.CODE: "Code",
    ItemType.AUDIO: "Audio",
    ItemType.VIDEO: "Video",
    ItemType.DESIGN: "Design",
    ItemType.FONT: "Font",
    ItemType.ARCHIVE: "Archive",
    ItemType.INSTALLER: "Installer",
    ItemType.THREE_D_MODEL: "3D Model",
    ItemType.DATA: "Data",
    ItemType.LINK: "Link",
    ItemType.FILE: "File",
}

_DESCRIPTIONS = {
    ItemType.IMAGE: "Image",
    ItemType.SCREENSHOT: "Screenshot",
    ItemType.TEXT: "Text Document",
    ItemType.PDF: "PDF Document",
    ItemType.WORD: "Word Document",
    ItemType.EXCEL: "Excel Spreadsheet",
    ItemType.POWERPOINT: "PowerPoint Presentation",
    ItemType.PAGES: "Pages Document",
    ItemType.NUMBERS: "Numbers Spreadsheet",
    ItemType.KEYNOTE: "Keynote Presentation",
    ItemType.CODE: "Source Code",
    ItemType.AUDIO: "Audio File",
    ItemType.VIDEO: "Video File",
    ItemType.DESIGN: "Design File",
    ItemType.FONT: "Font File",
    ItemType.ARCHIVE: "Archive",
    ItemType.INSTALLER: "Installer",
    ItemType.THREE_D_MODEL: "3D Model",
    ItemType.DATA: "Data File",
    ItemType.LINK: "Web Link",
    ItemType.FILE: "File",
}

PREVIEWABLE_TYPES = frozenset(
    {ItemType.IMAGE, ItemType.SCREENSHOT, ItemType.PDF, ItemType.VIDEO, ItemType.DESIGN}
)


class RepresentationKind(str, Enum):
    """Representation kinds a clipboard can offer, most specific first."""

    LINK = "link"
    FILE = "file"
    IMAGE = "image"
    TEXT = "text"


EXTRACTION_PRIORITY: Tuple[RepresentationKind, ...] = (
    RepresentationKind.LINK,
    RepresentationKind.FILE,
    RepresentationKind.IMAGE,
    RepresentationKind.TEXT,
)


@dataclass(frozen=True, slots=True)
class ContentSnapshot:
    """Immutable result of one clipboard extraction.

    Attributes:
        kinds: Every representation kind the clipboard offered at extraction time.
        primary: The single kind selected by extraction priority.
        payload: Raw bytes captured for the primary representation.
        text: Decoded text for link and text representations.
        file_path: Referenced file for file representations.
        file_extension: Lower-case extension of `file_path` without the dot.
        image_size: Pixel dimensions for decoded image payloads.
        source_app: Best-effort label of the application that owns the clipboard.
    """

    kinds: frozenset[RepresentationKind]
    primary: Optional[RepresentationKind] = None
    payload: bytes = b""
    text: Optional[str] = None
    file_path: Optional[str] = None
    file_extension: Optional[str] = None
    image_size: Optional[Tuple[int, int]] = None
    source_app: Optional[str] = None

    @property
    def file_name(self) -> Optional[str]:
        if not self.file_path:
            return None
        return self.file_path.replace("\\", "/").rsplit("/", 1)[-1]


_IMMUTABLE_FIELDS = frozenset(
    {"id", "category", "raw_content", "fingerprint", "file_size", "source_app", "file_path"}
)


class CapturedItem(BaseModel):
    """A single clipboard entry captured by the pipeline.

    Attributes:
        id: Opaque unique identifier assigned at construction.
        title: Short label derived from content; user-editable afterwards.
        timestamp: Capture time, refreshed when a duplicate is captured again.
        category: Classified content category.
        source_app: Best-effort label of the producing application.
        raw_content: Captured bytes; never mutated after construction.
        fingerprint: SHA-256 of `raw_content`, computed once at construction.
        thumbnail: Bounded JPEG preview, written at most once.
        file_size: Byte length of `raw_content`.
        file_path: Referenced file for file-backed content.
        favorite: User-controlled flag.
        tags: Identifiers of externally-owned tags.
    """

    model_config = ConfigDict(ser_json_bytes="base64")

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    title: str = "Untitled"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    category: ItemType = ItemType.FILE
    source_app: Optional[str] = None
    raw_content: bytes
    fingerprint: str = ""
    thumbnail: Optional[bytes] = None
    file_size: int = 0
    file_path: Optional[str] = None
    favorite: bool = False
    tags: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _derive_identity(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        derived = dict(data)
        for name in ("raw_content", "thumbnail"):
            if isinstance(derived.get(name), str):
                derived[name] = _decode_base64(derived[name], name)
        payload = derived.get("raw_content")
        if not payload:
            raise EmptyPayloadError("Captured items require a non-empty payload.")
        derived["fingerprint"] = compute_fingerprint(bytes(payload))
        derived["file_size"] = len(payload)
        return derived

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _IMMUTABLE_FIELDS:
            raise AttributeError(f"CapturedItem.{name} is immutable once the item exists.")
        super().__setattr__(name, value)

    @property
    def has_thumbnail(self) -> bool:
        return self.thumbnail is not None


def _decode_base64(value: str, field_name: str) -> bytes:
    """Decode the base64 text written for bytes fields in serialized items."""
    padded = value + "=" * (-len(value) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"{field_name} is not valid base64: {exc}") from exc


class Tag(BaseModel):
    """User label that items reference by id."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    color_hex: str = "#007AFF"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def rgba(self) -> Tuple[int, int, int, int]:
        return parse_hex_color(self.color_hex)


def parse_hex_color(value: str) -> Tuple[int, int, int, int]:
    """Parse `#RGB`, `#RRGGBB`, or `#AARRGGBB` into an `(r, g, b, a)` tuple.

    Unparseable input yields opaque black.
    """
    digits = "".join(ch for ch in value if ch.isalnum())
    try:
        number = int(digits, 16)
    except ValueError:
        return (0, 0, 0, 255)

    if len(digits) == 3:
        return ((number >> 8) * 17, (number >> 4 & 0xF) * 17, (number & 0xF) * 17, 255)
    if len(digits) == 6:
        return (number >> 16, number >> 8 & 0xFF, number & 0xFF, 255)
    if len(digits) == 8:
        return (number >> 16 & 0xFF, number >> 8 & 0xFF, number & 0xFF, number >> 24)
    return (0, 0, 0, 255)


__all__ = [
    "ItemType",
    "PREVIEWABLE_TYPES",
    "RepresentationKind",
    "EXTRACTION_PRIORITY",
    "ContentSnapshot",
    "CapturedItem",
    "Tag",
    "parse_hex_color",
]
