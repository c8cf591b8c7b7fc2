"""Content classification for clipboard snapshots.

Classification is a pure function of the snapshot it receives: the available
representation kinds, the referenced file extension, and the captured text.
It runs in fixed phases and the first phase that decides wins:

1. an explicit web-link representation is always a ``link``;
2. a file reference is looked up in the extension table;
3. an image representation is an ``image``;
4. plain text is scored against a vocabulary of code indicators.

Anything that falls through is a generic ``file``; classification never fails.
"""

from __future__ import annotations

from typing import Optional

from clipdeck.models import ContentSnapshot, ItemType, RepresentationKind

from .extensions import category_for_extension, normalize_extension

CODE_INDICATORS: tuple[str, ...] = (
    "function", "def ", "class ", "import ", "export ",
    "var ", "let ", "const ", "if (", "for (", "while (",
    "{", "}", "[", "]", "//", "/*", "*/", "#include",
    "<?php", "<!doctype", "<html>", "select ", "from ",
    "print(", "console.log", "println!", "fmt.print",
)
CODE_FENCE = "```"
CODE_SCORE_THRESHOLD = 2

_SCREENSHOT_PREFIXES = ("screenshot", "screen shot", "bildschirmfoto")


def code_score(text: str) -> int:
    """Count how many distinct code indicators occur in `text`, ignoring case."""
    lowered = text.lower()
    return sum(1 for indicator in CODE_INDICATORS if indicator in lowered)


def looks_like_code(text: str) -> bool:
    """Return True when `text` reads as source code rather than prose."""
    return CODE_FENCE in text or code_score(text) >= CODE_SCORE_THRESHOLD


def classify_text(text: str) -> ItemType:
    return ItemType.CODE if looks_like_code(text) else ItemType.TEXT


def classify_extension(extension: Optional[str], file_name: Optional[str] = None) -> ItemType:
    """Classify a file reference by extension, recognising screenshot file names."""
    category = category_for_extension(extension)
    if category is ItemType.IMAGE and file_name:
        if file_name.strip().lower().startswith(_SCREENSHOT_PREFIXES):
            return ItemType.SCREENSHOT
    return category


class ContentClassifier:
    """Map content snapshots onto the closed `ItemType` enumeration."""

    def classify(self, snapshot: ContentSnapshot) -> ItemType:
        """Return the category for `snapshot`.

        Args:
            snapshot: Extraction result describing what the clipboard offered.

        Returns:
            ItemType: The most specific category; `ItemType.FILE` when nothing matches.
        """
        kinds = snapshot.kinds

        if RepresentationKind.LINK in kinds:
            return ItemType.LINK

        if RepresentationKind.FILE in kinds and snapshot.primary is RepresentationKind.FILE:
            extension = snapshot.file_extension
            if extension is None and snapshot.file_name and "." in snapshot.file_name:
                extension = snapshot.file_name.rsplit(".", 1)[-1]
            if not normalize_extension(extension):
                return ItemType.FILE
            return classify_extension(extension, snapshot.file_name)

        if RepresentationKind.IMAGE in kinds and snapshot.primary is RepresentationKind.IMAGE:
            return ItemType.IMAGE

        if snapshot.text is not None:
            return classify_text(snapshot.text)

        return ItemType.FILE


__all__ = [
    "CODE_INDICATORS",
    "CODE_FENCE",
    "CODE_SCORE_THRESHOLD",
    "ContentClassifier",
    "classify_extension",
    "classify_text",
    "code_score",
    "looks_like_code",
]
