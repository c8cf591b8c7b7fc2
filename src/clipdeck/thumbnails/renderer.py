"""Bounded JPEG previews for previewable item categories."""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
import textwrap
from dataclasses import dataclass
from enum import Enum
from io import BytesIO
from pathlib import Path
from typing import Callable, Optional

import pypdfium2 as pdfium
from PIL import Image, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError

from clipdeck.config.models import ThumbnailSettings
from clipdeck.errors import RenderError
from clipdeck.models import PREVIEWABLE_TYPES, CapturedItem, ItemType

LOGGER = logging.getLogger(__name__)

TEXT_PREVIEW_MAX_CHARS = 500

_PIL_ERRORS = (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError)


class ThumbnailState(str, Enum):
    """Per-item preview lifecycle; everything but `pending` is terminal."""

    PENDING = "pending"
    RENDERED = "rendered"
    UNSUPPORTED = "unsupported"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class RenderOutcome:
    state: ThumbnailState
    data: Optional[bytes] = None
    error: Optional[str] = None


class ThumbnailRenderer:
    """Render previews that fit a fixed bounding box.

    Sources are only ever scaled down, preserving aspect ratio, and every preview
    is re-encoded as JPEG at the configured quality.
    """

    def __init__(self, settings: Optional[ThumbnailSettings] = None) -> None:
        self.settings = settings or ThumbnailSettings()
        self._dispatch: dict[ItemType, Callable[[CapturedItem], bytes]] = {
            ItemType.IMAGE: self._render_image,
            ItemType.SCREENSHOT: self._render_image,
            ItemType.PDF: self._render_pdf,
            ItemType.VIDEO: self._render_video,
            ItemType.DESIGN: self._render_generic,
        }

    @property
    def box(self) -> tuple[int, int]:
        return self.settings.box

    @property
    def supported_types(self) -> frozenset[ItemType]:
        return frozenset(self._dispatch)

    def render(self, item: CapturedItem) -> Optional[bytes]:
        """Return preview bytes for `item`, or None when its category has no preview.

        Raises:
            RenderError: If the content cannot be decoded or rendered.
        """
        handler = self._dispatch.get(item.category)
        if handler is None:
            return None
        return handler(item)

    def render_outcome(self, item: CapturedItem) -> RenderOutcome:
        """Render `item` and report the terminal state instead of raising."""
        if item.category not in PREVIEWABLE_TYPES:
            return RenderOutcome(ThumbnailState.UNSUPPORTED)
        try:
            data = self.render(item)
        except RenderError as exc:
            return RenderOutcome(ThumbnailState.FAILED, error=str(exc))
        if data is None:
            return RenderOutcome(ThumbnailState.UNSUPPORTED)
        return RenderOutcome(ThumbnailState.RENDERED, data=data)

    # Category renderers -----------------------------------------------

    def _render_image(self, item: CapturedItem) -> bytes:
        return self.render_image_bytes(item.raw_content)

    def render_image_bytes(self, payload: bytes) -> bytes:
        """Downscale and re-encode an encoded raster image."""
        try:
            with Image.open(BytesIO(payload)) as img:
                img.draft("RGB", self.box)
                oriented = ImageOps.exif_transpose(img)
                return self._encode(self._fit(oriented))
        except _PIL_ERRORS as exc:
            raise RenderError(f"Could not decode image: {exc}") from exc

    def _render_pdf(self, item: CapturedItem) -> bytes:
        try:
            document = pdfium.PdfDocument(item.raw_content)
        except (pdfium.PdfiumError, ValueError) as exc:
            raise RenderError(f"Could not open PDF: {exc}") from exc
        try:
            if len(document) == 0:
                raise RenderError("PDF has no pages.")
            page = document[0]
            try:
                width, height = page.get_size()
                if width <= 0 or height <= 0:
                    raise RenderError("PDF first page has no area.")
                scale = min(self.box[0] / width, self.box[1] / height, 1.0)
                bitmap = page.render(scale=scale)
                preview = self._fit(bitmap.to_pil())
            finally:
                page.close()
        except pdfium.PdfiumError as exc:
            raise RenderError(f"Could not render PDF page: {exc}") from exc
        finally:
            document.close()
        return self._encode(preview)

    def _render_video(self, item: CapturedItem) -> bytes:
        binary = shutil.which(self.settings.ffmpeg_binary)
        if binary is None:
            raise RenderError(f"{self.settings.ffmpeg_binary} is not installed.")

        if item.file_path and Path(item.file_path).is_file():
            return self._extract_frame(binary, Path(item.file_path))

        suffix = Path(item.file_path).suffix if item.file_path else ".bin"
        with tempfile.TemporaryDirectory(prefix="clipdeck-") as tmp:
            source = Path(tmp) / f"video{suffix}"
            source.write_bytes(item.raw_content)
            return self._extract_frame(binary, source)

    def _extract_frame(self, binary: str, source: Path) -> bytes:
        width, height = self.box
        scale = (
            f"scale='min(iw,{width})':'min(ih,{height})'"
            ":force_original_aspect_ratio=decrease"
        )
        command = [
            binary,
            "-v", "error",
            "-nostdin",
            "-i", str(source),
            "-frames:v", "1",
            "-vf", scale,
            "-f", "image2pipe",
            "-vcodec", "png",
            "-",
        ]
        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True,
                timeout=self.settings.video_timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            raise RenderError(f"Frame extraction timed out for {source.name}.") from exc
        except subprocess.CalledProcessError as exc:
            detail = exc.stderr.decode("utf-8", errors="ignore").strip()
            raise RenderError(f"Frame extraction failed for {source.name}: {detail}") from exc
        if not result.stdout:
            raise RenderError(f"No frame decoded from {source.name}.")
        return self.render_image_bytes(result.stdout)

    def _render_generic(self, item: CapturedItem) -> bytes:
        """Preview formats Pillow can rasterize, then fall back to QuickLook on macOS."""
        try:
            return self.render_image_bytes(item.raw_content)
        except RenderError as pillow_error:
            if item.file_path and shutil.which("qlmanage"):
                return self._render_quicklook(Path(item.file_path))
            raise pillow_error

    def _render_quicklook(self, path: Path) -> bytes:
        size = str(max(self.box))
        with tempfile.TemporaryDirectory(prefix="clipdeck-ql-") as tmp:
            try:
                subprocess.run(
                    ["qlmanage", "-t", "-s", size, "-o", tmp, str(path)],
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.PIPE,
                    check=True,
                    timeout=self.settings.video_timeout_seconds,
                )
            except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as exc:
                raise RenderError(f"QuickLook could not preview {path.name}: {exc}") from exc
            rendered = next(Path(tmp).glob("*.png"), None)
            if rendered is None:
                raise RenderError(f"QuickLook produced no preview for {path.name}.")
            return self.render_image_bytes(rendered.read_bytes())

    # On-demand text previews --------------------------------------------

    def render_text_preview(self, text: str, *, is_code: bool = False) -> bytes:
        """Draw the start of `text` onto a bounded card, monospaced for code."""
        snippet = text[:TEXT_PREVIEW_MAX_CHARS]
        font = _load_font(monospace=is_code)
        lines: list[str] = []
        for raw_line in snippet.splitlines() or [""]:
            wrapped = textwrap.wrap(raw_line, width=60, replace_whitespace=False) or [""]
            lines.extend(wrapped)

        measure = ImageDraw.Draw(Image.new("RGB", (1, 1)))
        left, top, right, bottom = measure.multiline_textbbox((0, 0), "\n".join(lines), font=font)
        width = min(int(right - left) + 20, self.box[0])
        height = min(int(bottom - top) + 20, self.box[1])

        background = (245, 245, 247) if is_code else (255, 255, 255)
        card = Image.new("RGB", (max(width, 1), max(height, 1)), background)
        ImageDraw.Draw(card).multiline_text((10, 10), "\n".join(lines), fill=(29, 29, 31), font=font)
        return self._encode(card)

    # Helpers ----------------------------------------------------------------

    def _fit(self, image: Image.Image) -> Image.Image:
        fitted = image.copy()
        fitted.thumbnail(self.box, Image.Resampling.LANCZOS)
        return fitted

    def _encode(self, image: Image.Image) -> bytes:
        buffer = BytesIO()
        _flatten(image).save(buffer, format="JPEG", quality=self.settings.quality, optimize=True)
        return buffer.getvalue()


def _flatten(image: Image.Image) -> Image.Image:
    """Return an RGB image, compositing transparency over white."""
    if image.mode == "RGB":
        return image
    if image.mode == "P":
        image = image.convert("RGBA")
    if image.mode in ("RGBA", "LA"):
        background = Image.new("RGB", image.size, (255, 255, 255))
        background.paste(image, mask=image.getchannel("A"))
        return background
    return image.convert("RGB")


def _load_font(*, monospace: bool) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    candidates = ("DejaVuSansMono.ttf", "Menlo.ttc") if monospace else ("DejaVuSans.ttf", "Arial.ttf")
    for name in candidates:
        try:
            return ImageFont.truetype(name, 12 if monospace else 14)
        except OSError:
            continue
    return ImageFont.load_default()


def render(item: CapturedItem, settings: Optional[ThumbnailSettings] = None) -> Optional[bytes]:
    """Render a preview for `item` outside the background pipeline."""
    return ThumbnailRenderer(settings).render(item)


__all__ = ["RenderOutcome", "ThumbnailRenderer", "ThumbnailState", "render"]
