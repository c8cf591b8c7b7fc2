"""Clipboard resource adapters."""

from .base import ClipboardSource
from .command import CommandClipboard
from .factory import SOURCE_NAMES, get_clipboard_source
from .memory import MemoryClipboard

__all__ = [
    "ClipboardSource",
    "CommandClipboard",
    "MemoryClipboard",
    "SOURCE_NAMES",
    "get_clipboard_source",
]
