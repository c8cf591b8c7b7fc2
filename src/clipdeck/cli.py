"""Command line interface for clipdeck."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, NoReturn, Optional

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from clipdeck.capture import (
    CaptureAction,
    CaptureOutcome,
    CapturePipeline,
    ContentExtractor,
    SourceAppResolver,
    build_item,
)
from clipdeck.classification import ContentClassifier, looks_like_code
from clipdeck.clipboard import SOURCE_NAMES, get_clipboard_source
from clipdeck.config import (
    ClipdeckConfig,
    ConfigError,
    ConfigManager,
    SettingChange,
    flatten_for_env,
    parse_scalar,
)
from clipdeck.errors import CaptureError, RenderError
from clipdeck.fingerprint import HashComputer
from clipdeck.logging_setup import configure_logging
from clipdeck.models import CapturedItem, ContentSnapshot, ItemType, RepresentationKind
from clipdeck.state import JsonItemStore, StoreError
from clipdeck.thumbnails import ThumbnailPipeline, ThumbnailRenderer
from clipdeck.watch import ClipboardWatcher

console = Console()


@dataclass(slots=True)
class Output:
    """How much a command prints, and whether it speaks JSON.

    Attributes:
        json: Emit machine-readable payloads; text lines are suppressed.
        quiet: Suppress every text line.
        summary_only: Suppress `detail` lines but keep summaries and warnings.
    """

    json: bool = False
    quiet: bool = False
    summary_only: bool = False

    @classmethod
    def for_watch(
        cls,
        ctx: click.Context,
        config: ClipdeckConfig,
        *,
        json_output: bool,
        quiet: bool,
        summary: bool,
    ) -> "Output":
        """Combine `--json/--quiet/--summary` with the `cli` defaults.

        Flags given on the command line replace both defaults.

        Raises:
            click.UsageError: If the chosen modes contradict each other.
        """
        flagged = any(
            ctx.get_parameter_source(name) is ParameterSource.COMMANDLINE
            for name in ("quiet", "summary_mode")
        )
        if flagged:
            quiet_on, summary_on = quiet, summary
        else:
            quiet_on, summary_on = config.cli.quiet_default, config.cli.summary_default

        if json_output and flagged and (quiet_on or summary_on):
            raise click.UsageError("--json cannot be combined with --quiet or --summary.")
        if quiet_on and summary_on:
            raise click.UsageError("--quiet and --summary cannot be combined.")
        return cls(json=json_output, quiet=quiet_on, summary_only=summary_on)

    def show(self, message: Any, *, level: str = "detail") -> None:
        """Print a text line unless the active mode hides `level`.

        Args:
            message: Renderable or markup string.
            level: `detail`, `summary`, or `warning`.
        """
        if self.json or self.quiet:
            return
        if self.summary_only and level == "detail":
            return
        console.print(message)

    def emit(self, payload: dict[str, Any]) -> None:
        console.print_json(data=payload)

    def fail(self, message: str, *, code: str, cause: Optional[Exception] = None) -> NoReturn:
        """Stop the command with `message`, as a JSON error object in JSON mode."""
        if self.json:
            console.print_json(data={"error": {"code": code, "message": message}})
            raise SystemExit(1)
        raise click.ClickException(message) from cause


def _load_config(output: Output) -> ClipdeckConfig:
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        return manager.load()
    except ConfigError as exc:
        output.fail(str(exc), code="config_error", cause=exc)


def _open_store(config: ClipdeckConfig, output: Output) -> JsonItemStore:
    store = JsonItemStore(Path(config.store.path), history_limit=config.store.history_limit)
    try:
        return store.load()
    except StoreError as exc:
        output.fail(str(exc), code="store_error", cause=exc)


def _item_payload(item: CapturedItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "title": item.title,
        "category": item.category.value,
        "timestamp": item.timestamp.isoformat(),
        "source_app": item.source_app,
        "fingerprint": item.fingerprint,
        "file_size": item.file_size,
        "file_path": item.file_path,
        "has_thumbnail": item.has_thumbnail,
        "favorite": item.favorite,
    }


def _file_snapshot(path: Path) -> ContentSnapshot:
    try:
        payload = path.read_bytes()
    except OSError as exc:
        raise click.ClickException(f"Unable to read {path}: {exc}") from exc
    extension = path.suffix[1:].lower() if path.suffix else None
    return ContentSnapshot(
        kinds=frozenset({RepresentationKind.FILE}),
        primary=RepresentationKind.FILE,
        payload=payload,
        file_path=str(path),
        file_extension=extension,
    )


def _format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="clipdeck")
def cli() -> None:
    """Clipboard history capture, classification, and previews."""


@cli.command()
@click.option("--interval", type=float, help="Override the poll interval in seconds.")
@click.option("--source", type=click.Choice(SOURCE_NAMES), help="Clipboard source to poll.")
@click.option("--no-thumbnails", is_flag=True, help="Skip background preview rendering.")
@click.option("--json", "json_output", is_flag=True, help="Emit one JSON object per capture.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option("--once", is_flag=True, help="Capture the current clipboard content once and exit.")
@click.pass_context
def watch(
    ctx: click.Context,
    interval: float | None,
    source: str | None,
    no_thumbnails: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
    verbose: bool,
    once: bool,
) -> None:
    """Watch the clipboard and store every new capture.

    Args:
        ctx: Click context for parameter source inspection.
        interval: Optional poll interval override in seconds.
        source: Optional clipboard source override.
        no_thumbnails: When True, do not render previews.
        json_output: When True, emit JSON payloads instead of text.
        summary_mode: When True, restrict output to summary/warning lines.
        quiet: When True, suppress non-error output entirely.
        verbose: When True, log at DEBUG level.
        once: When True, capture the current content once and exit.
    """
    config = _load_config(Output(json=json_output))
    output = Output.for_watch(
        ctx, config, json_output=json_output, quiet=quiet, summary=summary_mode
    )
    if interval is not None and interval <= 0:
        raise click.BadParameter("must be greater than zero.", param_hint="--interval")

    configure_logging(config.logging, verbose=verbose)

    try:
        clipboard = get_clipboard_source(source or config.watcher.source)
    except (RuntimeError, ValueError) as exc:
        output.fail(str(exc), code="clipboard_unavailable", cause=exc)

    store = _open_store(config, output)
    thumbnails: ThumbnailPipeline | None = None
    if config.thumbnails.enabled and not no_thumbnails:
        thumbnails = ThumbnailPipeline(
            store,
            ThumbnailRenderer(config.thumbnails),
            max_workers=config.thumbnails.max_workers,
        )
    pipeline = CapturePipeline(store, thumbnails)

    def _on_capture(item: CapturedItem) -> CaptureOutcome:
        outcome = pipeline.handle(item)
        stored = outcome.item
        if output.json:
            output.emit({"action": outcome.action.value, "item": _item_payload(stored)})
        else:
            verb = "Captured" if outcome.action is CaptureAction.INSERTED else "Refreshed"
            output.show(f"[green]{verb}[/green] {stored.category.display_name}: {stored.title}")
        return outcome

    watcher = ClipboardWatcher(
        clipboard,
        on_capture=_on_capture,
        extractor=ContentExtractor(
            capture_files=config.watcher.capture_files,
            max_file_size_bytes=config.watcher.max_file_size_bytes,
        ),
        resolver=SourceAppResolver(cache_size=config.source_apps.cache_size),
        poll_interval=interval or config.watcher.poll_interval_seconds,
    )

    try:
        if once:
            if watcher.capture_now() is None:
                output.show("[yellow]Nothing capturable is on the clipboard.[/yellow]", level="warning")
            return

        output.show(
            f"[cyan]Watching the clipboard every {watcher.poll_interval:.2f}s. "
            "Press Ctrl+C to stop.[/cyan]"
        )
        try:
            watcher.run_forever()
        except KeyboardInterrupt:
            watcher.stop()
            output.show("[yellow]Watch stopped by user request.[/yellow]", level="summary")
    finally:
        if thumbnails is not None:
            thumbnails.shutdown(wait=True)


@cli.command()
@click.argument("path", required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--text", "text", type=str, help="Classify literal text instead of a file.")
@click.option("--json", "json_output", is_flag=True, help="Emit the result as JSON.")
def classify(path: Path | None, text: str | None, json_output: bool) -> None:
    """Report the category of PATH, --text, or the current clipboard content.

    Args:
        path: Optional file to classify by its extension.
        text: Optional literal text to classify.
        json_output: When True, emit JSON instead of text.
    """
    if path is not None and text is not None:
        raise click.UsageError("Provide either PATH or --text, not both.")

    output = Output(json=json_output)
    classifier = ContentClassifier()
    if path is not None:
        snapshot = ContentSnapshot(
            kinds=frozenset({RepresentationKind.FILE}),
            primary=RepresentationKind.FILE,
            file_path=str(path),
            file_extension=path.suffix[1:].lower() if path.suffix else None,
        )
        subject = str(path)
    elif text is not None:
        snapshot = ContentSnapshot(
            kinds=frozenset({RepresentationKind.TEXT}),
            primary=RepresentationKind.TEXT,
            payload=text.encode("utf-8"),
            text=text,
        )
        subject = "text"
    else:
        config = _load_config(output)
        try:
            clipboard = get_clipboard_source(config.watcher.source)
            snapshot = ContentExtractor(capture_files=config.watcher.capture_files).extract(clipboard)
        except (RuntimeError, ValueError) as exc:
            output.fail(str(exc), code="clipboard_unavailable", cause=exc)
        except CaptureError as exc:
            output.fail(str(exc), code="capture_error", cause=exc)
        subject = "clipboard"

    category = classifier.classify(snapshot)
    if output.json:
        output.emit(
            {
                "subject": subject,
                "category": category.value,
                "display_name": category.display_name,
                "description": category.description,
                "supports_thumbnails": category.supports_thumbnails,
            }
        )
        return
    console.print(f"[bold]{category.display_name}[/bold] ({category.description}) - {subject}")


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def fingerprint(path: Path) -> None:
    """Print the SHA-256 content fingerprint of PATH.

    Args:
        path: File to hash.
    """
    try:
        digest = HashComputer().compute_file(path)
    except CaptureError as exc:
        raise click.ClickException(str(exc)) from exc
    except OSError as exc:
        raise click.ClickException(f"Unable to read {path}: {exc}") from exc
    console.print(f"{digest}  {path}", highlight=False)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    "destination",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Destination for the JPEG preview.",
)
def thumbnail(path: Path, destination: Path) -> None:
    """Render the preview PATH would receive once captured.

    Text and code files get a rendered text card instead of a content preview.

    Args:
        path: File to preview.
        destination: JPEG file to write.
    """
    config = _load_config(Output())
    snapshot = _file_snapshot(path)
    category = ContentClassifier().classify(snapshot)
    try:
        item = build_item(snapshot, category)
    except CaptureError as exc:
        raise click.ClickException(str(exc)) from exc

    renderer = ThumbnailRenderer(config.thumbnails)
    try:
        data = renderer.render(item)
        if data is None and category in {ItemType.TEXT, ItemType.CODE}:
            content = item.raw_content.decode("utf-8", errors="replace")
            data = renderer.render_text_preview(content, is_code=looks_like_code(content))
    except RenderError as exc:
        raise click.ClickException(f"Unable to render {path.name}: {exc}") from exc

    if data is None:
        raise click.ClickException(f"{category.display_name} items have no preview.")

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(data)
    except OSError as exc:
        raise click.ClickException(f"Unable to write {destination}: {exc}") from exc
    console.print(f"[green]Wrote {len(data)}-byte preview to {destination}.[/green]")


@cli.command()
@click.option("--limit", "-n", type=click.IntRange(min=1), help="Number of entries to show.")
@click.option("--json", "json_output", is_flag=True, help="Emit history as JSON.")
def history(limit: int | None, json_output: bool) -> None:
    """Show the most recently captured items.

    Args:
        limit: Optional number of entries; defaults to `cli.history_limit`.
        json_output: When True, emit JSON instead of a table.
    """
    output = Output(json=json_output)
    config = _load_config(output)
    store = _open_store(config, output)
    items = store.list_recent(limit or config.cli.history_limit)

    if output.json:
        output.emit({"items": [_item_payload(item) for item in items]})
        return

    if not items:
        console.print("[yellow]No captured items yet.[/yellow]")
        return

    table = Table(title="Clipboard history")
    table.add_column("When")
    table.add_column("Category")
    table.add_column("Title", overflow="fold")
    table.add_column("Source")
    table.add_column("Size", justify="right")
    table.add_column("Preview")
    for item in items:
        table.add_row(
            item.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S"),
            item.category.display_name,
            item.title,
            item.source_app or "-",
            _format_size(item.file_size),
            "yes" if item.has_thumbnail else "-",
        )
    console.print(table)


@cli.group()
def config() -> None:
    """Inspect and change the clipdeck settings file."""


def _config_manager() -> ConfigManager:
    manager = ConfigManager()
    try:
        manager.ensure_exists()
    except OSError as exc:
        raise click.ClickException(f"Unable to create {manager.config_path}: {exc}") from exc
    return manager


def _report_changes(manager: ConfigManager, changes: list[SettingChange]) -> None:
    if not changes:
        console.print("[yellow]No settings changed.[/yellow]")
        return
    for change in changes:
        console.print(f"  {change}", markup=False, highlight=False)
    noun = "setting" if len(changes) == 1 else "settings"
    console.print(f"[green]Saved {len(changes)} {noun} to {manager.config_path}.[/green]")


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore CLIPDECK__ environment overrides.")
@click.option("--env-vars", is_flag=True, help="Print the settings as CLIPDECK__ variables.")
def config_view(no_env: bool, env_vars: bool) -> None:
    """Show the effective settings after file and environment overrides.

    Args:
        no_env: If True, ignore environment-derived overrides.
        env_vars: If True, print `NAME=value` lines instead of YAML.
    """
    manager = _config_manager()
    try:
        effective = manager.load(use_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if env_vars:
        for name, value in flatten_for_env(effective).items():
            click.echo(f"{name}={value}")
        return

    console.print(f"# {manager.config_path}", markup=False, highlight=False)
    console.print(Syntax(yaml.safe_dump(effective.model_dump(mode="python"), sort_keys=False), "yaml"))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="YAML value to store, such as 0.25, true or memory.")
def config_set(key: str, value: str) -> None:
    """Store VALUE under the dotted KEY, e.g. `watcher.poll_interval_seconds`.

    Args:
        key: Dotted setting name.
        value: YAML scalar to store.
    """
    manager = _config_manager()
    try:
        changes = manager.set_value(key, parse_scalar(value))
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    _report_changes(manager, changes)


@config.command("edit")
def config_edit() -> None:
    """Open the settings file in $EDITOR and save it if it still validates."""
    manager = _config_manager()
    current = manager.read_text()
    edited = click.edit(current, extension=".yaml")
    if edited is None or edited == current:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return

    try:
        data = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Edited settings are not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise click.ClickException("Edited settings must be a mapping of sections.")

    try:
        changes = manager.replace(data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    _report_changes(manager, changes)


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
