"""Preview rendering for previewable item categories."""

from .pipeline import ThumbnailPipeline, ThumbnailResult
from .renderer import RenderOutcome, ThumbnailRenderer, ThumbnailState, render

__all__ = [
    "RenderOutcome",
    "ThumbnailPipeline",
    "ThumbnailRenderer",
    "ThumbnailResult",
    "ThumbnailState",
    "render",
]
