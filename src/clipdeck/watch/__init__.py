"""Clipboard watch service."""

from .service import ClipboardWatcher

__all__ = ["ClipboardWatcher"]
