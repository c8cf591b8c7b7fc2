"""Clipboard capture: extraction, source labels, and deduplication."""

from .extractor import ContentExtractor, build_item, derive_title, parse_file_reference
from .pipeline import CaptureAction, CaptureOutcome, CapturePipeline
from .sources import LRUCache, SourceAppResolver

__all__ = [
    "CaptureAction",
    "CaptureOutcome",
    "CapturePipeline",
    "ContentExtractor",
    "LRUCache",
    "SourceAppResolver",
    "build_item",
    "derive_title",
    "parse_file_reference",
]
