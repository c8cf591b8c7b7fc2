"""Normalize source application labels with an explicitly owned, bounded cache."""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

APP_NAME_ALIASES = {
    "chrome": "Google Chrome",
    "google chrome": "Google Chrome",
    "google-chrome": "Google Chrome",
    "chromium": "Chromium",
    "firefox": "Firefox",
    "mozilla firefox": "Firefox",
    "safari": "Safari",
    "mail": "Mail",
    "apple mail": "Mail",
    "thunderbird": "Thunderbird",
    "messages": "Messages",
    "imessage": "Messages",
    "slack": "Slack",
    "discord": "Discord",
    "vscode": "Visual Studio Code",
    "visual studio code": "Visual Studio Code",
    "code": "Visual Studio Code",
    "xcode": "Xcode",
    "terminal": "Terminal",
    "gnome-terminal": "Terminal",
    "gnome-terminal-server": "Terminal",
    "iterm": "iTerm",
    "iterm2": "iTerm",
    "photoshop": "Adobe Photoshop",
    "adobe photoshop": "Adobe Photoshop",
    "illustrator": "Adobe Illustrator",
    "adobe illustrator": "Adobe Illustrator",
    "figma": "Figma",
    "sketch": "Sketch",
    "notion": "Notion",
    "obsidian": "Obsidian",
    "spotify": "Spotify",
    "finder": "Finder",
    "nautilus": "Files",
    "org.gnome.nautilus": "Files",
    "preview": "Preview",
    "notes": "Notes",
    "apple notes": "Notes",
    "zoom": "zoom.us",
    "teams": "Microsoft Teams",
    "microsoft teams": "Microsoft Teams",
    "excel": "Microsoft Excel",
    "microsoft excel": "Microsoft Excel",
    "word": "Microsoft Word",
    "microsoft word": "Microsoft Word",
    "powerpoint": "Microsoft PowerPoint",
    "microsoft powerpoint": "Microsoft PowerPoint",
    "outlook": "Microsoft Outlook",
    "microsoft outlook": "Microsoft Outlook",
}


class LRUCache(Generic[K, V]):
    """Thread-safe mapping that evicts the least recently used entry past `capacity`."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._entries: OrderedDict[K, V] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: K) -> Optional[V]:
        with self._lock:
            if key not in self._entries:
                return None
            self._entries.move_to_end(key)
            return self._entries[key]

    def put(self, key: K, value: V) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self._capacity:
                self._entries.popitem(last=False)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class SourceAppResolver:
    """Map raw window-class or process names onto friendly application labels."""

    def __init__(self, cache: Optional[LRUCache[str, str]] = None, *, cache_size: int = 128) -> None:
        self._cache: LRUCache[str, str] = cache if cache is not None else LRUCache(cache_size)

    @property
    def cache(self) -> LRUCache[str, str]:
        return self._cache

    def resolve(self, raw: Optional[str]) -> Optional[str]:
        """Return the label for `raw`, or None when no hint is available."""
        if raw is None:
            return None
        key = raw.strip()
        if not key:
            return None
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        label = APP_NAME_ALIASES.get(key.lower(), key)
        self._cache.put(key, label)
        return label


__all__ = ["APP_NAME_ALIASES", "LRUCache", "SourceAppResolver"]
