"""Clipboard source backed by the `wl-paste` and `xclip` command-line tools."""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
import subprocess
import threading
from typing import Callable, List, Optional
from urllib.parse import urlparse

from clipdeck.models import RepresentationKind

from .base import ClipboardSource

LOGGER = logging.getLogger(__name__)

_LINK_TARGETS = ("text/x-moz-url",)
_FILE_TARGETS = ("x-special/gnome-copied-files", "text/uri-list")
_IMAGE_TARGETS = (
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/pjpeg",
    "image/bmp",
    "image/x-ms-bmp",
    "image/webp",
    "image/gif",
    "image/tiff",
)
_TEXT_TARGETS = (
    "text/plain;charset=utf-8",
    "text/plain;charset=utf8",
    "utf8_string",
    "text/plain",
    "string",
)
_WEB_SCHEMES = ("http", "https")
_TIMESTAMP_TARGET = "TIMESTAMP"

Runner = Callable[[List[str]], Optional[bytes]]


class CommandClipboard(ClipboardSource):
    """Poll the desktop clipboard through `wl-paste` (Wayland) or `xclip` (X11).

    Neither tool exposes a change counter, so one is synthesized from a
    signature of the target list plus a change marker. On X11 the marker is the
    selection `TIMESTAMP`, which is a few bytes. Wayland has no such target, so
    the most specific payload is read instead; for a copied image that means the
    whole image on every poll. Payloads read for the signature are reused by
    `read` until the next change.
    """

    def __init__(
        self,
        backend: Optional[str] = None,
        *,
        timeout: float = 1.5,
        runner: Optional[Runner] = None,
    ) -> None:
        self._backend = backend or self.detect_backend()
        if self._backend not in {"wayland", "x11"}:
            raise RuntimeError(
                "No clipboard command available. Install wl-clipboard (Wayland) or xclip (X11)."
            )
        self._timeout = timeout
        self._runner = runner or self._run_command
        self._lock = threading.Lock()
        self._count = 0
        self._signature: Optional[bytes] = None
        self._targets: list[str] = []
        self._cache: dict[str, Optional[bytes]] = {}

    @staticmethod
    def detect_backend() -> Optional[str]:
        """Return `wayland` or `x11` depending on which tool is usable, else None."""
        if os.environ.get("WAYLAND_DISPLAY") and shutil.which("wl-paste"):
            return "wayland"
        if shutil.which("xclip"):
            return "x11"
        return None

    @property
    def backend(self) -> str:
        return self._backend

    def change_count(self) -> int:
        with self._lock:
            targets = self._list_targets()
            self._targets = targets
            self._cache = {}
            digest = hashlib.blake2b(digest_size=16)
            digest.update("\n".join(targets).encode("utf-8"))
            marker = self._change_marker(targets)
            if marker is not None:
                digest.update(self._read_target(marker) or b"")
            signature = digest.digest()
            if self._signature is not None and signature != self._signature:
                self._count += 1
            self._signature = signature
            return self._count

    def available_kinds(self) -> frozenset[RepresentationKind]:
        with self._lock:
            kinds: set[RepresentationKind] = set()
            for kind in RepresentationKind:
                if self._target_for(kind) is not None:
                    kinds.add(kind)
            return frozenset(kinds)

    def read(self, kind: RepresentationKind) -> Optional[bytes]:
        with self._lock:
            target = self._target_for(kind)
            if target is None:
                return None
            data = self._read_target(target)
            if not data:
                return None
            if kind is RepresentationKind.LINK:
                return self._first_web_uri(data)
            if kind is RepresentationKind.FILE:
                return self._first_file_uri(data)
            return data

    def owner_hint(self) -> Optional[str]:
        if not shutil.which("xdotool"):
            return None
        output = self._runner(["xdotool", "getactivewindow", "getwindowclassname"])
        if not output:
            return None
        label = output.decode("utf-8", errors="ignore").strip()
        return label or None

    # Target handling --------------------------------------------------

    def _target_for(self, kind: RepresentationKind) -> Optional[str]:
        lowered = {target.lower(): target for target in self._targets}
        if kind is RepresentationKind.LINK:
            for candidate in _LINK_TARGETS:
                if candidate in lowered:
                    return lowered[candidate]
            uri_list = lowered.get("text/uri-list")
            if uri_list and self._first_web_uri(self._read_target(uri_list) or b""):
                return uri_list
            return None
        if kind is RepresentationKind.FILE:
            for candidate in _FILE_TARGETS:
                target = lowered.get(candidate)
                if target and self._first_file_uri(self._read_target(target) or b""):
                    return target
            return None
        candidates = _IMAGE_TARGETS if kind is RepresentationKind.IMAGE else _TEXT_TARGETS
        for candidate in candidates:
            if candidate in lowered:
                return lowered[candidate]
        return None

    def _change_marker(self, targets: list[str]) -> Optional[str]:
        if self._backend == "x11" and _TIMESTAMP_TARGET in targets:
            return _TIMESTAMP_TARGET
        return self._most_specific_target(targets)

    def _most_specific_target(self, targets: list[str]) -> Optional[str]:
        lowered = {target.lower(): target for target in targets}
        for group in (_LINK_TARGETS, _FILE_TARGETS, _IMAGE_TARGETS, _TEXT_TARGETS):
            for candidate in group:
                if candidate in lowered:
                    return lowered[candidate]
        return None

    def _list_targets(self) -> list[str]:
        if self._backend == "wayland":
            output = self._runner(["wl-paste", "--list-types"])
        else:
            output = self._runner(["xclip", "-selection", "clipboard", "-t", "TARGETS", "-o"])
        if not output:
            return []
        text = output.decode("utf-8", errors="ignore")
        return [line.strip() for line in text.splitlines() if line.strip()]

    def _read_target(self, target: str) -> Optional[bytes]:
        """Read `target` at most once per observed change."""
        if target in self._cache:
            return self._cache[target]
        if self._backend == "wayland":
            command = ["wl-paste", "--type", target, "--no-newline"]
        else:
            command = ["xclip", "-selection", "clipboard", "-t", target, "-o"]
        data = self._runner(command)
        self._cache[target] = data
        return data

    # URI helpers --------------------------------------------------------

    @staticmethod
    def _uri_lines(data: bytes) -> list[str]:
        if data.startswith((b"\xff\xfe", b"\xfe\xff")):
            text = data.decode("utf-16", errors="ignore")
        else:
            text = data.decode("utf-8", errors="ignore")
        lines = [line.strip() for line in text.replace("\r", "\n").split("\n") if line.strip()]
        if lines and lines[0].lower() in {"copy", "cut"}:
            lines = lines[1:]
        return [line for line in lines if not line.startswith("#")]

    def _first_web_uri(self, data: bytes) -> Optional[bytes]:
        for line in self._uri_lines(data):
            if urlparse(line).scheme in _WEB_SCHEMES:
                return line.encode("utf-8")
        return None

    def _first_file_uri(self, data: bytes) -> Optional[bytes]:
        for line in self._uri_lines(data):
            if urlparse(line).scheme == "file":
                return line.encode("utf-8")
        return None

    def _run_command(self, command: List[str]) -> Optional[bytes]:
        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True,
                timeout=self._timeout,
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError) as exc:
            LOGGER.debug("Clipboard command %s failed: %s", command[0], exc)
            return None
        return result.stdout


__all__ = ["CommandClipboard"]
