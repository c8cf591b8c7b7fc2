"""Configuration models describing clipdeck settings."""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from clipdeck.clipboard.factory import SOURCE_NAMES

# Text preview cards pad their content by 10 px on every side.
MIN_THUMBNAIL_SIDE = 32
MAX_THUMBNAIL_ASPECT = 4.0


class ClipdeckBaseModel(BaseModel):
    """Shared configuration for clipdeck Pydantic settings models."""

    model_config = ConfigDict(extra="forbid")


class WatcherSettings(ClipdeckBaseModel):
    """Clipboard polling options.

    Attributes:
        poll_interval_seconds: Delay between two change-counter checks. This is
            the only bound on capture latency.
        source: Clipboard source to poll; one of `clipdeck.clipboard.SOURCE_NAMES`.
        capture_files: Whether file references are read and captured.
        max_file_size_mb: Largest referenced file that will be read into memory.
    """

    poll_interval_seconds: float = Field(default=0.5, gt=0)
    source: str = "auto"
    capture_files: bool = True
    max_file_size_mb: int = Field(default=100, ge=0)

    @field_validator("source")
    @classmethod
    def _known_source(cls, value: str) -> str:
        name = value.strip().lower()
        if name not in SOURCE_NAMES:
            raise ValueError(f"unknown clipboard source {value!r}; expected one of {', '.join(SOURCE_NAMES)}")
        return name

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024


class ThumbnailSettings(ClipdeckBaseModel):
    """Preview rendering options.

    The box is the only size previews are fitted into, so both sides must leave
    room for a text card and neither may dwarf the other.

    Attributes:
        enabled: Whether new items are scheduled for preview rendering.
        max_width: Width of the bounding box previews are fitted into.
        max_height: Height of the bounding box previews are fitted into.
        quality: JPEG quality factor (1-95).
        max_workers: Size of the background rendering pool.
        ffmpeg_binary: Executable used to sample video frames.
        video_timeout_seconds: Upper bound for a single frame extraction.
    """

    enabled: bool = True
    max_width: int = Field(default=400, ge=MIN_THUMBNAIL_SIDE)
    max_height: int = Field(default=300, ge=MIN_THUMBNAIL_SIDE)
    quality: int = Field(default=80, ge=1, le=95)
    max_workers: int = Field(default=2, ge=1)
    ffmpeg_binary: str = "ffmpeg"
    video_timeout_seconds: float = Field(default=15.0, gt=0)

    @model_validator(mode="after")
    def _balanced_box(self) -> "ThumbnailSettings":
        longer, shorter = sorted((self.max_width, self.max_height), reverse=True)
        if longer / shorter > MAX_THUMBNAIL_ASPECT:
            raise ValueError(
                f"thumbnail box {self.max_width}x{self.max_height} is more than "
                f"{MAX_THUMBNAIL_ASPECT:g}:1"
            )
        return self

    @property
    def box(self) -> tuple[int, int]:
        return (self.max_width, self.max_height)


class StoreSettings(ClipdeckBaseModel):
    """Item store options.

    Attributes:
        path: JSON file holding captured items.
        history_limit: Maximum number of items retained, oldest evicted first.
    """

    path: str = "~/.clipdeck/items.json"
    history_limit: int = Field(default=500, ge=1)


class SourceAppSettings(ClipdeckBaseModel):
    """Source application label resolution.

    Attributes:
        cache_size: Number of resolved labels kept before least-recently-used eviction.
    """

    cache_size: int = Field(default=128, ge=1)


class LoggingSettings(ClipdeckBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging level name, stored upper-case.
        file: Log file path; empty disables file logging.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    file: str = "~/.clipdeck/clipdeck.log"
    max_size_mb: int = Field(default=10, ge=1)
    backup_count: int = Field(default=5, ge=0)

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        name = value.strip().upper()
        if name not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown logging level {value!r}")
        return name


class CLIOptions(ClipdeckBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether `clipdeck watch` suppresses non-error output by default.
        summary_default: Whether `clipdeck watch` only prints summary lines by default.
        history_limit: Default number of entries shown by `clipdeck history`.
    """

    quiet_default: bool = False
    summary_default: bool = False
    history_limit: int = Field(default=20, ge=1)

    @model_validator(mode="after")
    def _one_output_mode(self) -> "CLIOptions":
        if self.quiet_default and self.summary_default:
            raise ValueError("quiet_default and summary_default cannot both be enabled")
        return self


class ClipdeckConfig(ClipdeckBaseModel):
    """Top-level configuration struct for clipdeck.

    Attributes:
        watcher: Clipboard polling settings.
        thumbnails: Preview rendering settings.
        store: Item store settings.
        source_apps: Source application resolver settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    watcher: WatcherSettings = Field(default_factory=WatcherSettings)
    thumbnails: ThumbnailSettings = Field(default_factory=ThumbnailSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    source_apps: SourceAppSettings = Field(default_factory=SourceAppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)

    @model_validator(mode="after")
    def _history_fits_store(self) -> "ClipdeckConfig":
        if self.cli.history_limit > self.store.history_limit:
            raise ValueError(
                f"cli.history_limit ({self.cli.history_limit}) exceeds the "
                f"{self.store.history_limit} items the store keeps"
            )
        return self


__all__ = [
    "ClipdeckBaseModel",
    "WatcherSettings",
    "ThumbnailSettings",
    "StoreSettings",
    "SourceAppSettings",
    "LoggingSettings",
    "CLIOptions",
    "ClipdeckConfig",
    "MIN_THUMBNAIL_SIDE",
    "MAX_THUMBNAIL_ASPECT",
]
