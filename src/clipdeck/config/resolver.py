"""Layered settings: defaults, then the YAML file, `CLIPDECK__` variables, and CLI flags."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import ClipdeckConfig

ENV_PREFIX = "CLIPDECK__"


@dataclass(frozen=True, slots=True)
class ConfigLayer:
    """One named source of overrides, expanded into nested sections.

    Attributes:
        name: Where the overrides came from; used in error messages.
        values: Nested mapping of `section -> key -> value`.
    """

    name: str
    values: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dotted(cls, name: str, overrides: Mapping[str, Any]) -> "ConfigLayer":
        """Build a layer from `{"watcher.poll_interval_seconds": 0.25}` style keys."""
        values: dict[str, Any] = {}
        for key, value in overrides.items():
            if not isinstance(key, str):
                raise ConfigError(f"{name} override keys must be dotted strings, got {key!r}.")
            set_dotted(values, key, value, source=name)
        return cls(name, values)

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]) -> "ConfigLayer":
        """Collect `CLIPDECK__SECTION__KEY` variables; values are read as YAML scalars."""
        values: dict[str, Any] = {}
        for variable, raw in environ.items():
            if not variable.startswith(ENV_PREFIX):
                continue
            parts = [part.lower() for part in variable[len(ENV_PREFIX) :].split("__") if part]
            if parts:
                set_dotted(values, parts, parse_scalar(raw), source=variable)
        return cls("environment", values)


@dataclass(frozen=True, slots=True)
class SettingChange:
    """A single setting whose effective value differs between two configs."""

    key: str
    before: Any
    after: Any

    def __str__(self) -> str:
        return f"{self.key}: {_render(self.before)} -> {_render(self.after)}"


def parse_scalar(raw: str) -> Any:
    """Interpret `raw` as YAML so `0.25`, `true` and `null` get their types back."""
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw


def set_dotted(
    target: dict[str, Any],
    key: str | Sequence[str],
    value: Any,
    *,
    source: str = "override",
) -> None:
    """Store `value` under a dotted `key`, creating sections along the way.

    Mapping values are merged into an existing section instead of replacing it.

    Raises:
        ConfigError: If the key is empty or walks through a non-section value.
    """
    path = [part.strip() for part in (key.split(".") if isinstance(key, str) else key)]
    if not path or not all(path):
        raise ConfigError(f"{source}: {key!r} is not a dotted setting name.")

    section = target
    for depth, part in enumerate(path[:-1], start=1):
        child = section.setdefault(part, {})
        if not isinstance(child, dict):
            raise ConfigError(f"{source}: {'.'.join(path[:depth])} is a value, not a section.")
        section = child

    leaf = path[-1]
    if isinstance(value, Mapping) and isinstance(section.get(leaf), dict):
        section[leaf] = _overlay(section[leaf], value)
    else:
        section[leaf] = dict(value) if isinstance(value, Mapping) else value


def build_config(*layers: ConfigLayer) -> ClipdeckConfig:
    """Validate the defaults overlaid with `layers`, later layers winning.

    Raises:
        ConfigError: Listing every invalid setting by its dotted name.
    """
    merged = ClipdeckConfig().model_dump(mode="python")
    for layer in layers:
        if not isinstance(layer.values, Mapping):
            raise ConfigError(f"{layer.name} settings must be a mapping of sections.")
        merged = _overlay(merged, layer.values)
    try:
        return ClipdeckConfig.model_validate(merged)
    except ValidationError as exc:
        problems = [
            f"{'.'.join(str(part) for part in error['loc']) or 'config'}: {error['msg']}"
            for error in exc.errors()
        ]
        raise ConfigError("Invalid configuration: " + "; ".join(problems)) from exc


def resolve_with_precedence(
    *,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, str] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> ClipdeckConfig:
    """Resolve defaults < file < environment < CLI into a validated config."""
    layers: list[ConfigLayer] = []
    if file_overrides is not None:
        layers.append(ConfigLayer("config file", dict(file_overrides)))
    if env_overrides is not None:
        layers.append(ConfigLayer.from_environ(env_overrides))
    if cli_overrides is not None:
        layers.append(ConfigLayer.from_dotted("command line", cli_overrides))
    return build_config(*layers)


def flatten_for_env(config: ClipdeckConfig) -> dict[str, str]:
    """Render `config` as the `CLIPDECK__SECTION__KEY=value` variables that reproduce it."""
    return {
        ENV_PREFIX + "__".join(part.upper() for part in key.split(".")): _render(value)
        for key, value in _dotted_items(config.model_dump(mode="python"))
    }


def diff_configs(before: ClipdeckConfig, after: ClipdeckConfig) -> list[SettingChange]:
    """List the settings whose value differs, in declaration order."""
    old = dict(_dotted_items(before.model_dump(mode="python")))
    return [
        SettingChange(key, old.get(key), value)
        for key, value in _dotted_items(after.model_dump(mode="python"))
        if old.get(key) != value
    ]


def _dotted_items(values: Mapping[str, Any], prefix: str = "") -> Iterator[tuple[str, Any]]:
    for key, value in values.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, Mapping):
            yield from _dotted_items(value, dotted + ".")
        else:
            yield dotted, value


def _overlay(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in overrides.items():
        current = result.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            result[key] = _overlay(current, value)
        else:
            result[key] = dict(value) if isinstance(value, Mapping) else value
    return result


def _render(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


__all__ = [
    "ENV_PREFIX",
    "ConfigLayer",
    "SettingChange",
    "build_config",
    "diff_configs",
    "flatten_for_env",
    "parse_scalar",
    "resolve_with_precedence",
    "set_dotted",
]
