"""Content-addressable fingerprints used as the sole deduplication key."""

from __future__ import annotations

import hashlib
from pathlib import Path

from clipdeck.errors import EmptyPayloadError

_CHUNK_SIZE = 1024 * 1024


def fingerprint(payload: bytes | None) -> str:
    """Return the SHA-256 hex digest of `payload`.

    Only the raw bytes participate; titles, metadata and thumbnails never do.

    Raises:
        EmptyPayloadError: If the payload is missing or empty.
    """
    if not payload:
        raise EmptyPayloadError("Cannot fingerprint an empty payload.")
    return hashlib.sha256(payload).hexdigest()


class HashComputer:
    """Compute content hashes for in-memory payloads and files on disk."""

    def compute(self, payload: bytes | None) -> str:
        """Return the fingerprint for an in-memory payload."""
        return fingerprint(payload)

    def compute_file(self, path: Path) -> str:
        """Return the fingerprint of a file's contents, read in chunks.

        Raises:
            EmptyPayloadError: If the file is empty.
        """
        digest = hashlib.sha256()
        size = 0
        with path.open("rb") as fh:
            for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
                digest.update(chunk)
                size += len(chunk)
        if size == 0:
            raise EmptyPayloadError(f"{path} is empty.")
        return digest.hexdigest()


__all__ = ["fingerprint", "HashComputer"]
