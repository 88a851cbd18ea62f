"""
Small, focused text cleaning utilities.
"""

import re

_WHITESPACE = re.compile(r"\s+")
_CHAPTER_PREFIX = re.compile(r"^\s*chapter\s+\d+\s*[:\-]?", re.IGNORECASE)
_NON_ALNUM = re.compile(r"[\W_]+")


def collapse_whitespace(value: str) -> str:
    """Collapse every whitespace run into a single ASCII space.

    Leading and trailing whitespace is kept (as one space) so inline spans
    keep their word gaps.

    Example:
        >>> collapse_whitespace("a \\n\\t b ")
        'a b '
    """

    return _WHITESPACE.sub(" ", value)


def normalize_whitespace(value: str) -> str:
    """Collapse whitespace runs and strip the ends.

    Example:
        >>> normalize_whitespace("  one\\n two  ")
        'one two'
    """

    return collapse_whitespace(value).strip()


def normalize_title(value: str | None) -> str:
    """Return a comparison key for chapter titles.

    A leading "Chapter N:" style prefix is removed and the rest is reduced to
    lowercase alphanumeric words.

    Example:
        >>> normalize_title("Chapter 3: The Core of Things!")
        'the core of things'
        >>> normalize_title(None)
        ''
    """

    if not value:
        return ""
    stripped = _CHAPTER_PREFIX.sub("", value)
    return _NON_ALNUM.sub(" ", stripped.lower()).strip()
