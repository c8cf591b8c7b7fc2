"""Runtime logging configuration driven by `LoggingSettings`."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from clipdeck.config.models import LoggingSettings

_FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_HANDLER_MARKER = "_clipdeck_handler"


def configure_logging(
    settings: Optional[LoggingSettings] = None,
    *,
    console: Optional[Console] = None,
    verbose: bool = False,
) -> logging.Logger:
    """Attach console and rotating-file handlers to the `clipdeck` logger.

    Calling this again replaces the handlers installed by a previous call.

    Args:
        settings: Logging configuration; defaults are used when omitted.
        console: Rich console used for terminal output (stderr by default).
        verbose: Force DEBUG level regardless of `settings.level`.

    Returns:
        logging.Logger: The configured package logger.
    """
    settings = settings or LoggingSettings()
    level = logging.DEBUG if verbose else logging.getLevelNamesMapping()[settings.level]

    logger = logging.getLogger("clipdeck")
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    rich_handler.setLevel(level)
    setattr(rich_handler, _HANDLER_MARKER, True)
    logger.addHandler(rich_handler)

    if settings.file:
        log_path = Path(settings.file).expanduser()
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_path,
                maxBytes=settings.max_size_mb * 1024 * 1024,
                backupCount=settings.backup_count,
                encoding="utf-8",
            )
        except OSError as exc:
            logger.warning("File logging disabled; cannot open %s: %s", log_path, exc)
        else:
            file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
            file_handler.setLevel(level)
            setattr(file_handler, _HANDLER_MARKER, True)
            logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging"]
