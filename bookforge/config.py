"""YAML loading for layout overrides and book generation settings."""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any, Dict

import yaml

from .errors import ManuscriptError
from .models import GENRES, BookConfig
from .pdf.pdf_settings import PdfConfig, merge_pdf_config

_BOOK_ALIASES = {
    "targetAudience": "target_audience",
    "chaptersCount": "chapters_count",
    "wordsPerChapter": "words_per_chapter",
}


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Return the top-level mapping of a YAML (or JSON) file.

    Args:
        path: File to read.
    Returns:
        Parsed mapping; an empty file yields ``{}``.
    """

    if not path.exists():
        raise ManuscriptError(f"Config file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ManuscriptError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ManuscriptError(f"Expected a mapping at the top of {path}")
    return data


def load_pdf_config(path: Path) -> PdfConfig:
    """Load layout overrides and merge them over the defaults.

    A ``pdf:`` section is used when present, so one file can hold both the
    book and layout settings.

    Args:
        path: YAML file.
    Returns:
        Validated PdfConfig.
    """

    data = _read_yaml(path)
    section = data.get("pdf", data)
    if not isinstance(section, dict):
        raise ManuscriptError(f"Expected the pdf section of {path} to be a mapping")
    return merge_pdf_config(section)


def load_book_config(path: Path) -> BookConfig:
    """Load a ``BookConfig`` for offline drafting.

    A ``book:`` section is used when present. Camel-case keys are accepted.

    Args:
        path: YAML file.
    Returns:
        BookConfig.
    """

    data = _read_yaml(path)
    section = data.get("book", data)
    return book_config_from_mapping(section)


def book_config_from_mapping(values: Any) -> BookConfig:
    """Build a ``BookConfig`` from a plain mapping.

    Example:
        >>> book_config_from_mapping({"title": "Tides", "topic": "Oceans", "chaptersCount": 3}).chapters_count
        3
    """

    if not isinstance(values, dict):
        raise ManuscriptError("Book config must be a mapping")
    normalized = {_BOOK_ALIASES.get(key, key): value for key, value in values.items()}
    allowed = {f.name for f in fields(BookConfig)}
    unknown = set(normalized) - allowed
    if unknown:
        raise ManuscriptError(f"Unknown book config keys: {', '.join(sorted(unknown))}")
    missing = {"title", "topic"} - set(normalized)
    if missing:
        raise ManuscriptError(f"Book config is missing: {', '.join(sorted(missing))}")
    genre = normalized.get("genre", "Other")
    if genre not in GENRES:
        raise ManuscriptError(f"Unknown genre {genre!r}; expected one of {', '.join(GENRES)}")
    try:
        config = BookConfig(**normalized)
    except TypeError as exc:
        raise ManuscriptError(f"Invalid book config: {exc}") from exc
    if config.chapters_count < 1:
        raise ManuscriptError("chapters_count must be at least 1")
    return config
