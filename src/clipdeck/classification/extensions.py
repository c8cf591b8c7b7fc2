"""Fixed, case-insensitive file extension to category table."""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from clipdeck.models import ItemType

_GROUPS: tuple[tuple[ItemType, tuple[str, ...]], ...] = (
    (
        ItemType.IMAGE,
        ("jpg", "jpeg", "png", "gif", "heic", "heif", "bmp", "tiff", "tif", "webp", "svg", "ico"),
    ),
    (ItemType.PDF, ("pdf",)),
    (ItemType.TEXT, ("txt", "rtf", "md", "markdown", "log", "readme")),
    (ItemType.WORD, ("doc", "docx", "odt")),
    (ItemType.EXCEL, ("xls", "xlsx", "ods")),
    (ItemType.POWERPOINT, ("ppt", "pptx", "odp")),
    (ItemType.PAGES, ("pages",)),
    (ItemType.NUMBERS, ("numbers",)),
    (ItemType.KEYNOTE, ("key", "keynote")),
    (
        ItemType.CODE,
        (
            # web
            "html", "htm", "css", "scss", "sass", "less", "js", "javascript", "jsx",
            "ts", "typescript", "tsx", "vue", "svelte",
            # mobile
            "swift", "kt", "kotlin", "java", "dart", "flutter",
            # backend and systems
            "py", "python", "rb", "ruby", "php", "go", "rs", "rust", "c", "cc", "cpp",
            "h", "hpp", "m", "mm", "cs",
            # markup and config
            "json", "xml", "yaml", "yml", "toml", "ini", "env",
            # shells
            "sh", "bash", "zsh", "fish", "ps1", "bat", "cmd",
            # other languages
            "sql", "r", "pl", "scala", "clj", "elm", "haskell", "hs", "lua",
        ),
    ),
    (
        ItemType.AUDIO,
        ("mp3", "wav", "aac", "flac", "m4a", "ogg", "wma", "aiff", "ape", "opus", "alac", "dsd"),
    ),
    (
        ItemType.VIDEO,
        (
            "mp4", "mov", "avi", "mkv", "webm", "flv", "wmv", "m4v", "mpg", "mpeg", "3gp",
            "ogv", "mxf", "prores", "dnxhd",
        ),
    ),
    (ItemType.DESIGN, ("psd", "ai", "sketch", "fig", "xd", "indd", "eps", "affinity")),
    (ItemType.FONT, ("ttf", "otf", "woff", "woff2", "eot", "fon")),
    (ItemType.ARCHIVE, ("zip", "rar", "7z", "tar", "gz", "bz2", "xz", "dmg", "pkg", "cab")),
    (ItemType.INSTALLER, ("app", "msi", "exe", "deb", "rpm", "appx")),
    (ItemType.THREE_D_MODEL, ("obj", "fbx", "dae", "3ds", "blend", "max", "maya", "c4d")),
    (ItemType.DATA, ("csv", "tsv", "db", "sqlite", "plist")),
)


def _build_table(groups: Iterable[tuple[ItemType, tuple[str, ...]]]) -> Mapping[str, ItemType]:
    table: dict[str, ItemType] = {}
    for category, extensions in groups:
        for extension in extensions:
            if extension in table:
                raise ValueError(
                    f"Extension {extension!r} mapped to both {table[extension].value} "
                    f"and {category.value}."
                )
            table[extension] = category
    return MappingProxyType(table)


EXTENSION_TABLE: Mapping[str, ItemType] = _build_table(_GROUPS)


def normalize_extension(extension: str | None) -> str:
    """Return `extension` lower-cased without surrounding whitespace or a leading dot."""
    if not extension:
        return ""
    return extension.strip().lstrip(".").lower()


def category_for_extension(extension: str | None) -> ItemType:
    """Look up `extension` in the table; anything unrecognized is a generic file."""
    return EXTENSION_TABLE.get(normalize_extension(extension), ItemType.FILE)


__all__ = ["EXTENSION_TABLE", "normalize_extension", "category_for_extension"]
