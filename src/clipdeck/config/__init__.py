"""Configuration management for clipdeck."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .exceptions import ConfigError
from .models import ClipdeckConfig
from .resolver import (
    ENV_PREFIX,
    SettingChange,
    build_config,
    diff_configs,
    flatten_for_env,
    parse_scalar,
    resolve_with_precedence,
    set_dotted,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.clipdeck/config.yaml")


def _file_header() -> str:
    stamp = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
    sections = ", ".join(ClipdeckConfig.model_fields)
    return (
        "# clipdeck configuration file\n"
        f"# Sections: {sections}.\n"
        f"# Any setting can be overridden with {ENV_PREFIX}SECTION__KEY environment variables.\n"
        "# Changes apply the next time `clipdeck watch` starts.\n"
        f"# Last updated: {stamp}\n"
    )


class ConfigManager:
    """Own `~/.clipdeck/config.yaml` and resolve effective settings from it.

    The file only ever holds validated settings: `set_value` and `replace`
    check the result against `ClipdeckConfig` before anything is written.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._environ = os.environ if environ is None else environ

    @property
    def config_path(self) -> Path:
        return self._config_path

    def ensure_exists(self) -> Path:
        """Write the default settings if no configuration file exists yet."""
        if not self._config_path.exists():
            self._write(ClipdeckConfig().model_dump(mode="python"))
        return self._config_path

    def read_text(self) -> str:
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    def read_overrides(self) -> dict[str, Any]:
        """Return the sections stored in the file, unvalidated.

        Raises:
            ConfigError: If the file is not YAML or not a mapping.
        """
        text = self.read_text()
        try:
            data = yaml.safe_load(text) if text else None
        except yaml.YAMLError as exc:
            raise ConfigError(f"{self._config_path} is not valid YAML: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"{self._config_path} must contain a mapping of sections.")
        return data

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        use_env: bool = True,
    ) -> ClipdeckConfig:
        """Resolve defaults < file < `CLIPDECK__` variables < `cli_overrides`."""
        return resolve_with_precedence(
            file_overrides=self.read_overrides(),
            env_overrides=self._environ if use_env else None,
            cli_overrides=cli_overrides,
        )

    def set_value(self, key: str, value: Any) -> list[SettingChange]:
        """Persist one dotted setting and report what changed in the file."""
        data = self.read_overrides()
        set_dotted(data, key, value, source=key)
        return self.replace(data)

    def replace(self, data: Mapping[str, Any]) -> list[SettingChange]:
        """Validate `data` as the new file contents and write it if anything changed.

        Raises:
            ConfigError: If `data` does not describe a valid configuration; the
                file is left untouched.
        """
        updated = resolve_with_precedence(file_overrides=data)
        stored = self._stored_config()
        changes = diff_configs(stored or ClipdeckConfig(), updated)
        if changes or stored is None:
            self._write(dict(data))
        return changes

    def _stored_config(self) -> Optional[ClipdeckConfig]:
        """Return the validated file settings, or None when the file is missing or broken."""
        if not self._config_path.exists():
            return None
        try:
            return resolve_with_precedence(file_overrides=self.read_overrides())
        except ConfigError as exc:
            LOGGER.warning("Replacing unreadable configuration file: %s", exc)
            return None

    def _write(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        body = yaml.safe_dump(dict(data), sort_keys=False)
        tmp_path = self._config_path.with_suffix(self._config_path.suffix + ".tmp")
        tmp_path.write_text(_file_header() + body, encoding="utf-8")
        tmp_path.replace(self._config_path)


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "ClipdeckConfig",
    "ConfigError",
    "SettingChange",
    "build_config",
    "flatten_for_env",
    "parse_scalar",
    "resolve_with_precedence",
    "set_dotted",
]
