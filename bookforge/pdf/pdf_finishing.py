"""Deferred passes over finished pages: table of contents and running footers."""

from __future__ import annotations

import logging
import math
from typing import List, Sequence

from .pdf_constants import FOOTER_FAMILY, FOOTER_FONT_SIZE
from .pdf_fonts import FONT_CATALOG
from .pdf_pagination import PageManager
from .pdf_types import DrawOp, LayoutContext, PageMeta, RectOp, TextOp, TocEntry, TocPageState

logger = logging.getLogger(__name__)

TOC_TITLE = "Table of Contents"
TOC_LAYER = "toc"
TOC_HEADER_ADVANCE = 1.8
FOOTER_LAYER = "footer"


def toc_first_row_y(ctx: LayoutContext) -> float:
    """Return the baseline of the first entry row on a table-of-contents page."""

    return ctx.settings.top_y - ctx.heading_size * TOC_HEADER_ADVANCE


def toc_entries_per_page(ctx: LayoutContext) -> int:
    """Return how many entry rows fit on one table-of-contents page.

    Rows start at ``toc_first_row_y`` and step down by the line height; the
    last row keeps one line height clear of the bottom margin. Reservation
    and filling both use this count.

    Args:
        ctx: Layout context.
    Returns:
        Entries per page, at least 1.
    """

    floor_y = ctx.settings.margin_bottom + ctx.line_height
    span = toc_first_row_y(ctx) - floor_y
    if span < 0:
        return 1
    return math.floor(span / ctx.line_height) + 1


def toc_page_count(*, ctx: LayoutContext, chapter_count: int) -> int:
    """Return how many table-of-contents pages to reserve (at least 1).

    Args:
        ctx: Layout context.
        chapter_count: Number of chapters in the manuscript.
    Returns:
        Page count.
    """

    return max(1, math.ceil(chapter_count / toc_entries_per_page(ctx)))


def reserve_toc_pages(*, manager: PageManager, chapter_count: int) -> List[TocPageState]:
    """Append titled placeholder pages to be filled once page numbers are known.

    Args:
        manager: Page manager positioned after the cover.
        chapter_count: Number of chapters in the manuscript.
    Returns:
        One state per reserved page, in order.
    """

    ctx = manager.ctx
    size = ctx.heading_size
    states: List[TocPageState] = []
    for _ in range(toc_page_count(ctx=ctx, chapter_count=chapter_count)):
        page = manager.add_content_page(role="toc")
        header_y = manager.top_y
        manager.text(
            TOC_TITLE,
            x=ctx.origin_x,
            y=header_y,
            font=ctx.fonts.heading,
            size=size,
            color=ctx.theme.colors.heading,
        )
        page.draw(
            RectOp(
                x=ctx.origin_x,
                y=header_y - size - 6,
                width=ctx.content_width,
                height=2,
                color=ctx.theme.colors.accent,
                opacity=0.3,
            )
        )
        states.append(TocPageState(page=page, start_y=toc_first_row_y(ctx)))
    return states


def render_table_of_contents(
    *, ctx: LayoutContext, toc_pages: Sequence[TocPageState], entries: Sequence[TocEntry]
) -> int:
    """Fill the reserved pages with titles and right-aligned page numbers.

    Each page's rows are written to its ``"toc"`` layer, so calling this
    again replaces the previous rows. Entries beyond the reserved rows are
    dropped with a warning.

    Args:
        ctx: Layout context.
        toc_pages: Pages returned by ``reserve_toc_pages``.
        entries: Entries in chapter order.
    Returns:
        Number of entries written.
    """

    font = ctx.fonts.body
    size = ctx.body_size
    color = ctx.theme.colors.body
    right = ctx.page_width - ctx.settings.margin_right
    per_page = toc_entries_per_page(ctx)
    layers: List[List[DrawOp]] = [[] for _ in toc_pages]
    written = 0
    for entry in entries[: per_page * len(toc_pages)]:
        page_idx, row = divmod(written, per_page)
        y = toc_pages[page_idx].start_y - row * ctx.line_height
        number = str(entry.page_number)
        layers[page_idx].append(
            TextOp(text=entry.title, x=ctx.origin_x, y=y, font_name=font.name, size=size, color=color)
        )
        layers[page_idx].append(
            TextOp(
                text=number,
                x=right - font.width_of(number, size),
                y=y,
                font_name=font.name,
                size=size,
                color=color,
            )
        )
        written += 1
    for state, ops in zip(toc_pages, layers):
        state.page.set_layer(TOC_LAYER, ops)
    if written < len(entries):
        logger.warning(
            "Table of contents ran out of reserved rows; dropped %d entr%s",
            len(entries) - written,
            "y" if len(entries) - written == 1 else "ies",
        )
    return written


def stamp_footers(*, ctx: LayoutContext, meta: Sequence[PageMeta], book_title: str) -> int:
    """Write the running label and page number on every page but the cover.

    Numbers count from 1 on the first page after the cover. The label is
    ``"{book} • {chapter}"`` on chapter pages and the book title elsewhere.
    Output goes to each page's ``"footer"`` layer.

    Args:
        ctx: Layout context.
        meta: Page metadata in creation order.
        book_title: Book title.
    Returns:
        Number of pages stamped.
    """

    font = FONT_CATALOG[FOOTER_FAMILY].regular
    size = FOOTER_FONT_SIZE
    color = ctx.theme.colors.caption
    y = ctx.settings.margin_bottom / 2
    right = ctx.page_width - ctx.settings.margin_right
    counter = 0
    for entry in meta:
        if entry.role == "cover":
            continue
        counter += 1
        label = f"{book_title} • {entry.chapter_title}" if entry.chapter_title else book_title
        label_x = max(ctx.origin_x, (ctx.page_width - font.width_of(label, size)) / 2)
        number = str(counter)
        entry.page.set_layer(
            FOOTER_LAYER,
            [
                TextOp(text=label, x=label_x, y=y, font_name=font.name, size=size, color=color),
                TextOp(
                    text=number,
                    x=right - font.width_of(number, size),
                    y=y,
                    font_name=font.name,
                    size=size,
                    color=color,
                ),
            ],
        )
    return counter
