"""Custom exceptions for configuration management."""

from clipdeck.errors import ClipdeckError


class ConfigError(ClipdeckError):
    """Raised when configuration data cannot be processed."""
