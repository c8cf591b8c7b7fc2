"""Select a clipboard source by name."""

from __future__ import annotations

import platform

from .base import ClipboardSource
from .command import CommandClipboard
from .memory import MemoryClipboard

SOURCE_NAMES: tuple[str, ...] = ("auto", "command", "memory")


def get_clipboard_source(name: str = "auto") -> ClipboardSource:
    """Return the clipboard source configured by `name`.

    Args:
        name: One of `SOURCE_NAMES`; `auto` picks the command tools on Linux.

    Raises:
        ValueError: If `name` is not a known source.
        RuntimeError: If no usable clipboard backend exists for this platform.
    """
    if name not in SOURCE_NAMES:
        raise ValueError(f"Unknown clipboard source '{name}'. Choose from: {', '.join(SOURCE_NAMES)}.")
    if name == "memory":
        return MemoryClipboard()
    if name == "command":
        return CommandClipboard()

    system = platform.system()
    if system == "Linux":
        return CommandClipboard()
    raise RuntimeError(f"Platform '{system}' has no supported clipboard source.")


__all__ = ["SOURCE_NAMES", "get_clipboard_source"]
