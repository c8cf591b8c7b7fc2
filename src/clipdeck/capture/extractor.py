"""Select and read the most specific representation on the clipboard."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

from PIL import Image, UnidentifiedImageError

from clipdeck.clipboard.base import ClipboardSource
from clipdeck.errors import CaptureError
from clipdeck.models import (
    EXTRACTION_PRIORITY,
    CapturedItem,
    ContentSnapshot,
    ItemType,
    RepresentationKind,
)

LOGGER = logging.getLogger(__name__)

TITLE_MAX_CHARS = 50
_WHITESPACE = re.compile(r"\s+")


class ContentExtractor:
    """Turn the current clipboard content into a `ContentSnapshot`.

    Exactly one representation is read per extraction, chosen in the order
    link, file reference, image, text.
    """

    def __init__(
        self,
        *,
        capture_files: bool = True,
        max_file_size_bytes: Optional[int] = None,
    ) -> None:
        self.capture_files = capture_files
        self.max_file_size_bytes = max_file_size_bytes

    def extract(self, source: ClipboardSource) -> ContentSnapshot:
        """Read the clipboard once.

        Args:
            source: Clipboard to read from.

        Returns:
            ContentSnapshot: Snapshot holding the selected representation's bytes.

        Raises:
            CaptureError: If nothing usable is on the clipboard or the selected
                representation yields no bytes.
        """
        kinds = source.available_kinds()
        primary = next((kind for kind in EXTRACTION_PRIORITY if kind in kinds), None)
        if primary is None:
            raise CaptureError("Clipboard offers no supported representation.")

        raw = source.read(primary)
        if not raw:
            raise CaptureError(f"Clipboard {primary.value} representation is empty.")

        owner = source.owner_hint()

        if primary is RepresentationKind.LINK:
            url = raw.decode("utf-8", errors="replace").strip()
            return ContentSnapshot(
                kinds=kinds, primary=primary, payload=raw, text=url, source_app=owner
            )

        if primary is RepresentationKind.FILE:
            return self._extract_file(raw, kinds, owner)

        if primary is RepresentationKind.IMAGE:
            return ContentSnapshot(
                kinds=kinds,
                primary=primary,
                payload=raw,
                image_size=_read_image_size(raw),
                source_app=owner,
            )

        text = raw.decode("utf-8", errors="replace")
        return ContentSnapshot(kinds=kinds, primary=primary, payload=raw, text=text, source_app=owner)

    def _extract_file(
        self,
        reference: bytes,
        kinds: frozenset[RepresentationKind],
        owner: Optional[str],
    ) -> ContentSnapshot:
        if not self.capture_files:
            raise CaptureError("File capture is disabled.")

        path = parse_file_reference(reference)
        if path is None:
            raise CaptureError("Clipboard file reference could not be parsed.")
        if not path.is_file():
            raise CaptureError(f"{path} is not a readable file.")

        try:
            size = path.stat().st_size
            if self.max_file_size_bytes is not None and size > self.max_file_size_bytes:
                raise CaptureError(
                    f"{path} exceeds the capture limit of {self.max_file_size_bytes} bytes."
                )
            payload = path.read_bytes()
        except OSError as exc:
            raise CaptureError(f"Could not read {path}: {exc}") from exc

        extension = path.suffix[1:].lower() if path.suffix else None
        return ContentSnapshot(
            kinds=kinds,
            primary=RepresentationKind.FILE,
            payload=payload,
            file_path=str(path),
            file_extension=extension,
            source_app=owner,
        )


def parse_file_reference(reference: bytes) -> Optional[Path]:
    """Return the first path named by a plain path or `file://` URI list."""
    text = reference.decode("utf-8", errors="ignore")
    lines = [line.strip() for line in text.replace("\r", "\n").split("\n") if line.strip()]
    if lines and lines[0].lower() in {"copy", "cut"}:
        lines = lines[1:]
    for entry in lines:
        parsed = urlparse(entry)
        if parsed.scheme == "file":
            return Path(unquote(parsed.path))
        if not parsed.scheme or len(parsed.scheme) == 1:
            # Windows drive letters parse as one-letter schemes.
            return Path(unquote(entry))
    return None


def _read_image_size(payload: bytes) -> Optional[tuple[int, int]]:
    try:
        with Image.open(BytesIO(payload)) as img:
            return img.size
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        LOGGER.debug("Unable to read image dimensions: %s", exc)
        return None


def derive_title(snapshot: ContentSnapshot, category: ItemType) -> str:
    """Return a short, deterministic label for the captured content."""
    if snapshot.primary is RepresentationKind.FILE and snapshot.file_name:
        return snapshot.file_name
    if snapshot.primary is RepresentationKind.IMAGE or category is ItemType.IMAGE:
        if snapshot.image_size:
            width, height = snapshot.image_size
            return f"Image - {width}x{height}"
        return "Image"
    if category is ItemType.LINK and snapshot.text:
        return snapshot.text.strip()
    if snapshot.text:
        collapsed = _WHITESPACE.sub(" ", snapshot.text).strip()
        if collapsed:
            return collapsed[:TITLE_MAX_CHARS]
    return "Untitled"


def build_item(
    snapshot: ContentSnapshot,
    category: ItemType,
    *,
    timestamp: Optional[datetime] = None,
    source_app: Optional[str] = None,
) -> CapturedItem:
    """Construct a `CapturedItem` from an extraction.

    Raises:
        EmptyPayloadError: If the snapshot carries no bytes.
    """
    fields: dict = {
        "title": derive_title(snapshot, category),
        "category": category,
        "source_app": source_app,
        "raw_content": snapshot.payload,
        "file_path": snapshot.file_path,
    }
    if timestamp is not None:
        fields["timestamp"] = timestamp
    return CapturedItem(**fields)


__all__ = [
    "ContentExtractor",
    "TITLE_MAX_CHARS",
    "build_item",
    "derive_title",
    "parse_file_reference",
]
