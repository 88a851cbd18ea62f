"""Greedy line breaking for styled spans and plain strings."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from ..markup import Span
from .pdf_fonts import FontHandle, FontVariants

_SPLIT_WS = re.compile(r"(\s+)")


@dataclass(frozen=True, slots=True)
class StyledToken:
    """A word or a single space with its face and measured width.

    Args:
        text: Token text; whitespace runs are stored as one space.
        font: Face chosen from the originating span's style.
        width: Advance width at the wrap font size.
        is_space: True for whitespace tokens.
    """

    text: str
    font: FontHandle
    width: float
    is_space: bool


Line = List[StyledToken]


def tokenize_spans(
    *, spans: Iterable[Span], fonts: FontVariants, font_size: float
) -> List[StyledToken]:
    """Split spans into measured word and space tokens.

    Args:
        spans: Styled spans in reading order.
        fonts: Family variants used to pick each span's face.
        font_size: Size used for measuring.
    Returns:
        Tokens in reading order.
    """

    tokens: List[StyledToken] = []
    for span in spans:
        font = fonts.for_style(bold=span.bold, italic=span.italic)
        for part in _SPLIT_WS.split(span.text):
            if not part:
                continue
            is_space = part.isspace()
            text = " " if is_space else part
            tokens.append(
                StyledToken(
                    text=text,
                    font=font,
                    width=font.width_of(text, font_size),
                    is_space=is_space,
                )
            )
    return tokens


def wrap_tokens(
    *,
    tokens: Sequence[StyledToken],
    max_width: float,
    narrow_width: float | None = None,
    narrow_lines: int = 0,
) -> List[Line]:
    """Greedily pack tokens into lines no wider than ``max_width``.

    A word that would overflow a non-empty line starts the next line, lines
    never begin with a space, trailing spaces are trimmed, and a word wider
    than the line is placed alone rather than split.

    Args:
        tokens: Tokens from ``tokenize_spans``.
        max_width: Line width limit in points.
        narrow_width: Optional reduced width for the first ``narrow_lines``
            lines (used beside a drop cap).
        narrow_lines: Number of leading lines using ``narrow_width``.
    Returns:
        List of token lines.
    """

    lines: List[Line] = []
    current: Line = []
    width = 0.0

    def limit() -> float:
        if narrow_width is not None and len(lines) < narrow_lines:
            return narrow_width
        return max_width

    def push() -> None:
        end = len(current)
        while end > 0 and current[end - 1].is_space:
            end -= 1
        if end:
            lines.append(current[:end])

    for token in tokens:
        if not token.is_space and current and width + token.width > limit():
            push()
            current = []
            width = 0.0
        if token.is_space and not current:
            continue
        current.append(token)
        width += token.width
    push()
    return lines


def line_width(line: Sequence[StyledToken]) -> float:
    """Return the summed width of a token line."""

    return sum(token.width for token in line)


def line_text(line: Sequence[StyledToken]) -> str:
    """Return the plain text of a token line."""

    return "".join(token.text for token in line)


def wrap_rich_text(
    *, spans: Iterable[Span], fonts: FontVariants, font_size: float, max_width: float
) -> List[Line]:
    """Tokenize and wrap styled spans in one step.

    Args:
        spans: Styled spans.
        fonts: Family variants for the spans.
        font_size: Font size in points.
        max_width: Line width limit.
    Returns:
        Wrapped token lines.
    """

    tokens = tokenize_spans(spans=spans, fonts=fonts, font_size=font_size)
    return wrap_tokens(tokens=tokens, max_width=max_width)


def wrap_text(*, text: str, font: FontHandle, font_size: float, max_width: float) -> List[str]:
    """Wrap a plain string word by word in a single face.

    Blank source lines are kept as empty output lines so paragraph breaks
    survive.

    Args:
        text: Possibly multi-line string.
        font: Face used for measuring.
        font_size: Font size in points.
        max_width: Line width limit.
    Returns:
        Wrapped lines.

    Example:
        >>> wrap_text(text="aaa bbb\\n\\nccc", font=FontHandle("Courier"), font_size=10, max_width=40)
        ['aaa', 'bbb', '', 'ccc']
    """

    lines: List[str] = []
    for paragraph in str(text).split("\n"):
        if not paragraph.strip():
            lines.append("")
            continue
        current = ""
        for word in paragraph.split():
            candidate = f"{current} {word}" if current else word
            if font.width_of(candidate, font_size) > max_width:
                if current:
                    lines.append(current)
                current = word
            else:
                current = candidate
        lines.append(current)
    return lines
