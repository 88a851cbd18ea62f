"""
Lightweight markup parsing into structured blocks of styled spans.

Only headings, bullet lists, blockquotes and bold/italic/code inline spans
are recognized; everything else is prose.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple, Union

from .cleaning import collapse_whitespace, normalize_title, normalize_whitespace

_HEADING_RE = re.compile(r"^(#{1,3})\s+(.+)$")
_BULLET_RE = re.compile(r"^[*+\-]\s+(.+)$")
_QUOTE_RE = re.compile(r"^>\s*(.+)$")
_INLINE_RE = re.compile(r"(\*\*[^*]+\*\*|__[^_]+__|\*[^*]+\*|_[^_]+_|`[^`]+`)")


@dataclass(frozen=True, slots=True)
class Span:
    """A run of text sharing one style.

    When both flags are set, bold wins at render time.
    """

    text: str
    bold: bool = False
    italic: bool = False


Spans = Tuple[Span, ...]


@dataclass(frozen=True, slots=True)
class HeadingBlock:
    """Section heading, level 1-3."""

    level: int
    text: str


@dataclass(frozen=True, slots=True)
class ParagraphBlock:
    """Prose paragraph made of inline spans."""

    spans: Spans


@dataclass(frozen=True, slots=True)
class ListBlock:
    """Bullet list; each item is its own span sequence."""

    items: Tuple[Spans, ...]


@dataclass(frozen=True, slots=True)
class QuoteBlock:
    """Single-line blockquote."""

    spans: Spans


Block = Union[HeadingBlock, ParagraphBlock, ListBlock, QuoteBlock]


def parse_inline_spans(text: str) -> Spans:
    """Split inline markup into plain, bold and italic spans.

    Args:
        text: One logical line of prose.
    Returns:
        Tuple of spans in source order; unmatched markers stay literal.

    Example:
        >>> parse_inline_spans("Hello **world**.")
        (Span(text='Hello ', bold=False, italic=False), Span(text='world', bold=True, italic=False), Span(text='.', bold=False, italic=False))
    """

    spans: List[Span] = []
    last = 0
    for match in _INLINE_RE.finditer(text):
        if match.start() > last:
            spans.append(Span(text=text[last : match.start()]))
        spans.append(_styled_span(token=match.group(0)))
        last = match.end()
    if last < len(text):
        spans.append(Span(text=text[last:]))
    return tuple(
        Span(text=collapse_whitespace(span.text), bold=span.bold, italic=span.italic)
        for span in spans
    )


def _styled_span(*, token: str) -> Span:
    """Return the span for one matched inline token.

    Args:
        token: Matched text including its markers.
    Returns:
        Span with the markers removed and style flags set.
    """

    if token.startswith(("**", "__")):
        return Span(text=token[2:-2], bold=True)
    if token.startswith("`"):
        return Span(text=token[1:-1])
    return Span(text=token[1:-1], italic=True)


def parse_markdown_to_blocks(raw_text: str | None) -> List[Block]:
    """Convert chapter text into an ordered list of blocks.

    Blank lines end paragraphs; headings, bullets and quotes always end the
    current paragraph. Consecutive bullet lines form one list.

    Args:
        raw_text: Markdown-like chapter text; ``None`` is treated as empty.
    Returns:
        Blocks in source order.

    Example:
        >>> [type(b).__name__ for b in parse_markdown_to_blocks("# Hi\\n\\ntext\\n- a\\n- b\\n> q")]
        ['HeadingBlock', 'ParagraphBlock', 'ListBlock', 'QuoteBlock']
    """

    lines = (raw_text or "").replace("\r\n", "\n").split("\n")
    blocks: List[Block] = []
    buffer: List[str] = []

    def flush() -> None:
        text = normalize_whitespace(" ".join(buffer))
        buffer.clear()
        if text:
            blocks.append(ParagraphBlock(spans=parse_inline_spans(text)))

    idx = 0
    while idx < len(lines):
        trimmed = lines[idx].strip()
        idx += 1
        if not trimmed:
            flush()
            continue
        heading = _HEADING_RE.match(trimmed)
        if heading:
            flush()
            level = len(heading.group(1))
            blocks.append(
                HeadingBlock(level=level, text=normalize_whitespace(heading.group(2)))
            )
            continue
        bullet = _BULLET_RE.match(trimmed)
        if bullet:
            flush()
            items, idx = _consume_list_items(lines=lines, start=idx - 1)
            blocks.append(ListBlock(items=items))
            continue
        quote = _QUOTE_RE.match(trimmed)
        if quote:
            flush()
            blocks.append(
                QuoteBlock(spans=parse_inline_spans(normalize_whitespace(quote.group(1))))
            )
            continue
        buffer.append(trimmed)
    flush()
    return blocks


def _consume_list_items(
    *, lines: Sequence[str], start: int
) -> tuple[Tuple[Spans, ...], int]:
    """Collect consecutive bullet lines beginning at ``start``.

    Args:
        lines: All source lines.
        start: Index of the first bullet line.
    Returns:
        Tuple of (item span tuples, index of the first non-bullet line).
    """

    items: List[Spans] = []
    idx = start
    while idx < len(lines):
        match = _BULLET_RE.match(lines[idx].strip())
        if not match:
            break
        items.append(parse_inline_spans(normalize_whitespace(match.group(1))))
        idx += 1
    return tuple(items), idx


def spans_to_plain_text(spans: Iterable[Span]) -> str:
    """Join span texts into normalized plain text.

    Example:
        >>> spans_to_plain_text(parse_inline_spans("The **Core**"))
        'The Core'
    """

    return normalize_whitespace(" ".join(span.text for span in spans))


def strip_leading_chapter_heading(
    blocks: Sequence[Block], chapter_title: str
) -> List[Block]:
    """Drop leading heading/paragraph blocks that repeat the chapter title.

    Args:
        blocks: Parsed chapter blocks.
        chapter_title: Title rendered by the chapter banner.
    Returns:
        Blocks with duplicated leading titles removed.

    Example:
        >>> blocks = parse_markdown_to_blocks("## Chapter 1: Origins\\n\\nOrigins\\n\\nBody")
        >>> strip_leading_chapter_heading(blocks, "Origins")
        [ParagraphBlock(spans=(Span(text='Body', bold=False, italic=False),))]
    """

    target = normalize_title(chapter_title)
    if not target:
        return list(blocks)
    start = 0
    while start < len(blocks):
        candidate = _block_title_text(block=blocks[start])
        if candidate is None or normalize_title(candidate) != target:
            break
        start += 1
    return list(blocks[start:])


def _block_title_text(*, block: Block) -> str | None:
    """Return text comparable with a chapter title, or None for other kinds.

    Args:
        block: Block to inspect.
    Returns:
        Heading text, paragraph plain text, or None.
    """

    if isinstance(block, HeadingBlock):
        return block.text
    if isinstance(block, ParagraphBlock):
        return spans_to_plain_text(block.spans)
    return None
