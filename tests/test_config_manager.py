"""Unit tests for layered settings and the settings file."""

from pathlib import Path

import pytest

from clipdeck.clipboard import SOURCE_NAMES
from clipdeck.config import (
    ClipdeckConfig,
    ConfigError,
    ConfigManager,
    build_config,
    flatten_for_env,
    resolve_with_precedence,
    set_dotted,
)
from clipdeck.config.resolver import ConfigLayer, diff_configs


def _manager(tmp_path: Path, **environ: str) -> ConfigManager:
    return ConfigManager(tmp_path / ".clipdeck" / "config.yaml", environ=environ)


def test_defaults_file_is_written_with_header(tmp_path: Path) -> None:
    manager = _manager(tmp_path)

    path = manager.ensure_exists()

    text = path.read_text(encoding="utf-8")
    assert text.startswith("# clipdeck configuration file")
    assert "CLIPDECK__SECTION__KEY" in text
    config = manager.load()
    assert config.watcher.poll_interval_seconds == pytest.approx(0.5)
    assert config.thumbnails.box == (400, 300)


def test_home_directory_is_the_default_location(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))

    assert ConfigManager().ensure_exists() == tmp_path / ".clipdeck" / "config.yaml"


def test_layers_apply_file_then_environment_then_cli(tmp_path: Path) -> None:
    manager = _manager(
        tmp_path,
        CLIPDECK__WATCHER__POLL_INTERVAL_SECONDS="1.0",
        CLIPDECK__THUMBNAILS__QUALITY="70",
        UNRELATED="ignored",
    )
    manager.replace({"watcher": {"poll_interval_seconds": 2.0}, "store": {"history_limit": 50}})

    config = manager.load(cli_overrides={"watcher.poll_interval_seconds": 0.25})

    assert config.store.history_limit == 50
    assert config.thumbnails.quality == 70
    assert config.watcher.poll_interval_seconds == pytest.approx(0.25)
    assert manager.load(use_env=False).thumbnails.quality == 80


def test_environment_values_keep_their_yaml_types() -> None:
    layer = ConfigLayer.from_environ(
        {"CLIPDECK__WATCHER__CAPTURE_FILES": "false", "CLIPDECK__THUMBNAILS__ENABLED": "no"}
    )

    assert layer.values == {"watcher": {"capture_files": False}, "thumbnails": {"enabled": False}}


def test_broken_yaml_raises_config_error(tmp_path: Path) -> None:
    manager = _manager(tmp_path)
    manager.ensure_exists()
    manager.config_path.write_text("watcher: [unclosed", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_errors_name_every_invalid_setting() -> None:
    with pytest.raises(ConfigError) as excinfo:
        resolve_with_precedence(
            file_overrides={"watcher": {"poll_every": 1}, "thumbnails": {"quality": 0}}
        )

    message = str(excinfo.value)
    assert "watcher.poll_every" in message
    assert "thumbnails.quality" in message


@pytest.mark.parametrize("name", SOURCE_NAMES)
def test_every_factory_source_is_a_valid_setting(name: str) -> None:
    config = build_config(ConfigLayer.from_dotted("test", {"watcher.source": name.upper()}))

    assert config.watcher.source == name


def test_unknown_clipboard_source_is_rejected() -> None:
    with pytest.raises(ConfigError, match="watcher.source"):
        build_config(ConfigLayer.from_dotted("test", {"watcher.source": "carrier-pigeon"}))


@pytest.mark.parametrize(
    "box",
    [
        {"max_width": 20, "max_height": 300},
        {"max_width": 1000, "max_height": 200},
    ],
)
def test_thumbnail_box_must_be_usable(box: dict) -> None:
    with pytest.raises(ConfigError, match="thumbnails"):
        resolve_with_precedence(file_overrides={"thumbnails": box})


def test_history_view_cannot_exceed_what_the_store_keeps() -> None:
    with pytest.raises(ConfigError, match="history_limit"):
        resolve_with_precedence(
            file_overrides={"store": {"history_limit": 10}, "cli": {"history_limit": 20}}
        )


def test_logging_level_is_normalized_and_checked() -> None:
    config = resolve_with_precedence(file_overrides={"logging": {"level": "debug"}})
    assert config.logging.level == "DEBUG"

    with pytest.raises(ConfigError):
        resolve_with_precedence(file_overrides={"logging": {"level": "chatty"}})


def test_flatten_for_env_reproduces_the_config() -> None:
    config = resolve_with_precedence(file_overrides={"watcher": {"source": "memory"}})

    flat = flatten_for_env(config)

    assert flat["CLIPDECK__WATCHER__SOURCE"] == "memory"
    assert flat["CLIPDECK__WATCHER__CAPTURE_FILES"] == "true"
    assert flat["CLIPDECK__THUMBNAILS__QUALITY"] == "80"
    assert resolve_with_precedence(env_overrides=flat) == config


def test_set_value_reports_changes_and_validates(tmp_path: Path) -> None:
    manager = _manager(tmp_path)
    manager.ensure_exists()

    changes = manager.set_value("thumbnails.max_workers", 4)

    assert [str(change) for change in changes] == ["thumbnails.max_workers: 2 -> 4"]
    assert manager.set_value("thumbnails.max_workers", 4) == []
    with pytest.raises(ConfigError):
        manager.set_value("thumbnails.max_width", 5000)
    assert manager.load().thumbnails.max_width == 400


def test_replace_repairs_a_broken_file(tmp_path: Path) -> None:
    manager = _manager(tmp_path)
    manager.ensure_exists()
    manager.config_path.write_text("watcher: {poll_interval_seconds: -1}\n", encoding="utf-8")

    changes = manager.replace({})

    assert changes == []
    assert manager.load() == ClipdeckConfig()


def test_set_dotted_merges_and_guards_sections() -> None:
    target: dict = {"watcher": {"source": "auto"}}

    set_dotted(target, "watcher.capture_files", False)
    set_dotted(target, "watcher", {"poll_interval_seconds": 1.0})

    assert target == {
        "watcher": {"source": "auto", "capture_files": False, "poll_interval_seconds": 1.0}
    }
    with pytest.raises(ConfigError):
        set_dotted(target, "watcher.source.deeper", 1)
    with pytest.raises(ConfigError):
        set_dotted(target, "watcher..source", 1)


def test_diff_configs_lists_changed_settings_in_order() -> None:
    before = ClipdeckConfig()
    after = resolve_with_precedence(
        file_overrides={"store": {"history_limit": 900}, "watcher": {"capture_files": False}}
    )

    assert [change.key for change in diff_configs(before, after)] == [
        "watcher.capture_files",
        "store.history_limit",
    ]
