"""Chapter body rendering: blocks, rich paragraphs, drop caps, anchored images."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Iterable, List, Sequence

from reportlab.lib.colors import Color

from ..markup import (
    Block,
    HeadingBlock,
    ListBlock,
    ParagraphBlock,
    QuoteBlock,
    Span,
    Spans,
    parse_markdown_to_blocks,
    strip_leading_chapter_heading,
)
from ..models import ChapterContent, UserImageAsset
from .pdf_constants import (
    BULLET,
    DROP_CAP_GAP,
    DROP_CAP_LINES,
    DROP_CAP_SCALE,
    LIST_INDENT,
    MIN_WRAP_WIDTH,
    QUOTE_INSET,
)
from .pdf_images import ImageCache, ResolvedImages, middle_trigger
from .pdf_pagination import PageManager
from .pdf_types import TocEntry
from .pdf_wrap import Line, tokenize_spans, wrap_text, wrap_tokens

logger = logging.getLogger(__name__)

HEADING_MINOR_SCALE = 0.9
HEADING_RESERVE = 2.0
HEADING_ADVANCE = 1.3


def render_chapter(
    *,
    manager: PageManager,
    chapter: ChapterContent,
    images: ResolvedImages,
    cache: ImageCache,
    toc_entries: List[TocEntry],
) -> bool:
    """Lay out one chapter and record its table-of-contents entry.

    Start images precede every block, middle images follow the block at
    ``middle_trigger(len(blocks))`` and end images follow the last block. A
    chapter with no text and no anchored images emits no pages.

    Args:
        manager: Page manager positioned after the previous content.
        chapter: Chapter to render.
        images: Resolved image buckets.
        cache: Per-build decoded image cache.
        toc_entries: Accumulator for table-of-contents entries.
    Returns:
        True when at least one page was emitted for the chapter.
    """

    has_images = bool(images.for_chapter(chapter.index))
    if not (chapter.text or "").strip() and not has_images:
        logger.info("Skipping empty chapter %d (%s)", chapter.index, chapter.title)
        return False
    blocks = strip_leading_chapter_heading(parse_markdown_to_blocks(chapter.text), chapter.title)
    if not blocks and not has_images:
        logger.info("Skipping chapter %d: nothing left after its title", chapter.index)
        return False

    manager.begin_chapter(index=chapter.index, title=chapter.title)
    toc_entries.append(
        TocEntry(
            title=f"Chapter {chapter.index}: {chapter.title}",
            page_number=manager.content_page_number(),
        )
    )

    _draw_images(manager=manager, assets=images.anchored(chapter.index, "start"), cache=cache)
    middle = images.anchored(chapter.index, "middle")
    trigger = middle_trigger(len(blocks))
    middle_done = False
    drop_cap = manager.ctx.config.drop_caps
    for position, block in enumerate(blocks, start=1):
        if isinstance(block, ParagraphBlock) and drop_cap:
            drop_cap = False
            _draw_drop_cap_paragraph(manager=manager, spans=block.spans)
        else:
            _draw_block(manager=manager, block=block)
        if not middle_done and position >= trigger:
            _draw_images(manager=manager, assets=middle, cache=cache)
            middle_done = True
    if not middle_done:
        _draw_images(manager=manager, assets=middle, cache=cache)
    _draw_images(manager=manager, assets=images.anchored(chapter.index, "end"), cache=cache)
    manager.end_chapter()
    return True


def _draw_images(
    *, manager: PageManager, assets: Iterable[UserImageAsset], cache: ImageCache
) -> None:
    for asset in assets:
        manager.draw_image(asset=asset, images=cache)


def _draw_block(*, manager: PageManager, block: Block) -> None:
    """Dispatch one block to its renderer.

    Args:
        manager: Page manager.
        block: Parsed block.
    Returns:
        None.
    """

    ctx = manager.ctx
    colors = ctx.theme.colors
    if isinstance(block, HeadingBlock):
        _draw_heading(manager=manager, block=block)
    elif isinstance(block, ListBlock):
        for item in block.items:
            _draw_list_item(manager=manager, spans=item)
    elif isinstance(block, QuoteBlock):
        _draw_rich_paragraph(
            manager=manager,
            spans=block.spans,
            x=ctx.origin_x + QUOTE_INSET,
            width=ctx.content_width - 2 * QUOTE_INSET,
            color=colors.caption,
            spacing_after=ctx.paragraph_spacing / 2,
        )
    else:
        _draw_rich_paragraph(
            manager=manager,
            spans=block.spans,
            x=ctx.origin_x,
            width=ctx.content_width,
            color=colors.body,
            spacing_after=ctx.paragraph_spacing,
        )


def _draw_heading(*, manager: PageManager, block: HeadingBlock) -> None:
    """Draw an in-chapter heading; levels 1-2 share the heading size.

    Args:
        manager: Page manager.
        block: Heading block.
    Returns:
        None.
    """

    ctx = manager.ctx
    size = ctx.heading_size if block.level <= 2 else ctx.heading_size * HEADING_MINOR_SCALE
    font = ctx.fonts.heading
    lines = wrap_text(text=block.text, font=font, font_size=size, max_width=ctx.content_width)
    for idx, line in enumerate(lines):
        manager.ensure_space(size * HEADING_RESERVE if idx == 0 else size * HEADING_ADVANCE)
        manager.text(line, x=ctx.origin_x, font=font, size=size, color=ctx.theme.colors.heading)
        manager.y -= size * HEADING_ADVANCE
    manager.y -= ctx.paragraph_spacing / 2


def _draw_list_item(*, manager: PageManager, spans: Spans) -> None:
    """Draw one bullet item with a hanging bullet.

    Args:
        manager: Page manager.
        spans: Item spans.
    Returns:
        None.
    """

    ctx = manager.ctx

    def bullet(line_y: float) -> None:
        manager.text(
            BULLET,
            x=ctx.origin_x,
            y=line_y,
            font=ctx.fonts.heading,
            size=ctx.body_size + 2,
            color=ctx.theme.colors.heading,
        )

    _draw_rich_paragraph(
        manager=manager,
        spans=spans,
        x=ctx.origin_x + LIST_INDENT,
        width=ctx.content_width - LIST_INDENT,
        color=ctx.theme.colors.body,
        spacing_after=ctx.paragraph_spacing / 2,
        before_first_line=bullet,
    )


def _draw_rich_paragraph(
    *,
    manager: PageManager,
    spans: Sequence[Span],
    x: float,
    width: float,
    color: Color,
    spacing_after: float,
    before_first_line: Callable[[float], None] | None = None,
) -> None:
    """Wrap styled spans and draw them line by line, breaking pages as needed.

    Args:
        manager: Page manager.
        spans: Styled spans.
        x: Left edge of the text column.
        width: Column width.
        color: Text colour.
        spacing_after: Gap added below the last line.
        before_first_line: Callback receiving the first line's baseline,
            called after any page break that line needs.
    Returns:
        None.
    """

    if not spans:
        return
    ctx = manager.ctx
    tokens = tokenize_spans(spans=spans, fonts=ctx.fonts.text, font_size=ctx.body_size)
    lines = wrap_tokens(tokens=tokens, max_width=max(MIN_WRAP_WIDTH, width))
    if not lines:
        return
    for idx, line in enumerate(lines):
        manager.ensure_space(ctx.line_height)
        if idx == 0 and before_first_line is not None:
            before_first_line(manager.y)
        _draw_line(manager=manager, line=line, x=x, color=color)
        manager.y -= ctx.line_height
    manager.y -= spacing_after


def _draw_drop_cap_paragraph(*, manager: PageManager, spans: Spans) -> None:
    """Draw a paragraph whose initial spans ``DROP_CAP_LINES`` body lines.

    Falls back to a plain paragraph when the text does not start with a
    letter or digit.

    Args:
        manager: Page manager.
        spans: Paragraph spans.
    Returns:
        None.
    """

    ctx = manager.ctx
    split = _split_initial(spans)
    if split is None:
        _draw_block(manager=manager, block=ParagraphBlock(spans=tuple(spans)))
        return
    initial, rest = split
    cap_font = ctx.fonts.heading
    cap_size = ctx.body_size * DROP_CAP_SCALE
    cap_width = cap_font.width_of(initial, cap_size) + DROP_CAP_GAP
    width = max(MIN_WRAP_WIDTH, ctx.content_width)
    tokens = tokenize_spans(spans=rest, fonts=ctx.fonts.text, font_size=ctx.body_size)
    lines = wrap_tokens(
        tokens=tokens,
        max_width=width,
        narrow_width=max(MIN_WRAP_WIDTH, width - cap_width),
        narrow_lines=DROP_CAP_LINES,
    )

    manager.ensure_space(ctx.line_height * DROP_CAP_LINES)
    first_y = manager.y
    start_page = manager.page
    manager.text(
        initial,
        x=ctx.origin_x,
        y=first_y - ctx.line_height * (DROP_CAP_LINES - 1),
        font=cap_font,
        size=cap_size,
        color=ctx.theme.colors.accent,
    )
    for idx, line in enumerate(lines):
        manager.ensure_space(ctx.line_height)
        offset = cap_width if idx < DROP_CAP_LINES else 0.0
        _draw_line(manager=manager, line=line, x=ctx.origin_x + offset, color=ctx.theme.colors.body)
        manager.y -= ctx.line_height
    if manager.page is start_page:
        manager.y = min(manager.y, first_y - ctx.line_height * DROP_CAP_LINES)
    manager.y -= ctx.paragraph_spacing


def _split_initial(spans: Sequence[Span]) -> tuple[str, Spans] | None:
    """Return the first character and the remaining spans, if alphanumeric.

    Example:
        >>> _split_initial((Span("  Once"), Span("upon", bold=True)))[0]
        'O'
        >>> _split_initial((Span('"Quoted"'),)) is None
        True
    """

    for idx, span in enumerate(spans):
        text = span.text.lstrip()
        if not text:
            continue
        if not text[0].isalnum():
            return None
        return text[0], (replace(span, text=text[1:]),) + tuple(spans[idx + 1 :])
    return None


def _draw_line(*, manager: PageManager, line: Line, x: float, color: Color) -> None:
    """Draw a wrapped line as one text run per consecutive font.

    Args:
        manager: Page manager.
        line: Token line.
        x: Left edge.
        color: Text colour.
    Returns:
        None.
    """

    size = manager.ctx.body_size
    run_x = x
    run_text = ""
    run_font = None
    run_width = 0.0
    for token in line:
        if run_font is not None and token.font != run_font and not token.is_space:
            manager.text(run_text.rstrip(), x=run_x, font=run_font, size=size, color=color)
            run_x += run_width
            run_text, run_width, run_font = "", 0.0, None
        if run_font is None:
            run_font = token.font
        run_text += token.text
        run_width += token.width
    if run_font is not None and run_text.strip():
        manager.text(run_text.rstrip(), x=run_x, font=run_font, size=size, color=color)
