"""Content classification package."""

from .engine import (
    CODE_INDICATORS,
    ContentClassifier,
    classify_extension,
    classify_text,
    code_score,
    looks_like_code,
)
from .extensions import EXTENSION_TABLE, category_for_extension

__all__ = [
    "CODE_INDICATORS",
    "ContentClassifier",
    "EXTENSION_TABLE",
    "category_for_extension",
    "classify_extension",
    "classify_text",
    "code_score",
    "looks_like_code",
]
