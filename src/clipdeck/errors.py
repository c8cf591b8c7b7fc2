"""Exception hierarchy shared across clipdeck components."""


class ClipdeckError(Exception):
    """Root of the clipdeck exception hierarchy."""


class CaptureError(ClipdeckError):
    """Raised when the clipboard holds no extractable payload."""


class EmptyPayloadError(CaptureError):
    """Raised when a zero-byte payload reaches fingerprinting or item construction."""


class RenderError(ClipdeckError):
    """Raised when a preview cannot be decoded or rendered for an item."""


__all__ = ["ClipdeckError", "CaptureError", "EmptyPayloadError", "RenderError"]
