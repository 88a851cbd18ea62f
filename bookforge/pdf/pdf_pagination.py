"""Page sequence, vertical cursor, and chapter page chrome."""

from __future__ import annotations

import logging
from typing import List

from reportlab.lib.colors import Color

from ..models import UserImageAsset
from .pdf_constants import (
    CHAPTER_LABEL_SIZE,
    CHAPTER_STRIP_HEIGHT,
    COVER_PAGE_COUNT,
    DEBUG_PAGINATION,
    IMAGE_CAPTION_ALLOWANCE,
    IMAGE_CAPTION_GAP,
    IMAGE_CAPTION_SIZE,
    IMAGE_MAX_HEIGHT_RATIO,
)
from .pdf_fonts import FontHandle
from .pdf_images import ImageCache, scale_to_fit
from .pdf_types import ImageOp, LayoutContext, PageHandle, PageMeta, PageRole, RectOp, TextOp
from .pdf_wrap import wrap_text

logger = logging.getLogger(__name__)

CHAPTER_TITLE_SCALE = 1.05
CHAPTER_RULE_WIDTH = 60.0
CHAPTER_RULE_HEIGHT = 3.0


def _debug(msg: str, *args: object) -> None:
    """Log pagination debug output when enabled.

    Args:
        msg: Format string.
        args: Format arguments.
    Returns:
        None.
    """

    if DEBUG_PAGINATION:
        logger.debug(msg, *args)


class PageManager:
    """Owns the page list, the current page and its vertical cursor ``y``.

    Pages are only ever appended; ``meta`` is the append-only log read by the
    table-of-contents and footer passes once every page exists. While a
    chapter is active, running out of room opens a continuation page with
    the chapter strip and label but without the title banner.

    Args:
        ctx: Resolved layout context.
    """

    def __init__(self, *, ctx: LayoutContext) -> None:
        self.ctx = ctx
        self.pages: List[PageHandle] = []
        self.meta: List[PageMeta] = []
        self.page: PageHandle | None = None
        self.y = 0.0
        self._chapter: tuple[int, str] | None = None

    @property
    def bottom(self) -> float:
        """Lowest baseline content may use."""

        return self.ctx.settings.margin_bottom

    @property
    def top_y(self) -> float:
        """Cursor start on a page without chapter chrome."""

        return self.ctx.settings.top_y

    def add_content_page(
        self,
        *,
        role: PageRole,
        chapter_title: str | None = None,
        background: Color | None = None,
    ) -> PageHandle:
        """Append a page, paint its background, and log its metadata.

        Args:
            role: Page role recorded for the finishing passes.
            chapter_title: Chapter the page belongs to, if any.
            background: Fill colour; defaults to the theme page background.
        Returns:
            The new page, which becomes the current page.
        """

        if role == "cover":
            assert not self.meta, "The cover must be the first page"
        ctx = self.ctx
        if background is None:
            background = ctx.theme.colors.page_background
        page = PageHandle(index=len(self.pages), width=ctx.page_width, height=ctx.page_height)
        page.draw(
            RectOp(x=0, y=0, width=ctx.page_width, height=ctx.page_height, color=background)
        )
        self.pages.append(page)
        self.meta.append(PageMeta(page=page, role=role, chapter_title=chapter_title))
        self.page = page
        self.y = self.top_y
        _debug("page %d opened (%s, %s)", page.index, role, chapter_title or "-")
        return page

    def content_page_number(self) -> int:
        """Return the visible number of the newest page (cover excluded)."""

        return max(1, len(self.meta) - COVER_PAGE_COUNT)

    def begin_chapter(self, *, index: int, title: str) -> PageHandle:
        """Open the first page of a chapter with its full title treatment.

        Args:
            index: Chapter index shown in the strip label.
            title: Chapter title.
        Returns:
            The chapter's first page.
        """

        self._chapter = (index, title)
        return self._chapter_page(first=True)

    def end_chapter(self) -> None:
        """Forget the active chapter; later breaks no longer draw its chrome."""

        self._chapter = None

    def ensure_space(self, height: float) -> bool:
        """Start a new page when fewer than ``height`` points remain.

        Args:
            height: Vertical space the next item needs below the cursor.
        Returns:
            True when a page break happened.
        """

        assert self.page is not None, "No page is open"
        if self.y - height >= self.bottom:
            return False
        _debug("break on page %d: y=%.1f need=%.1f", self.page.index, self.y, height)
        if self._chapter is not None:
            self._chapter_page(first=False)
        else:
            current = self.meta[-1]
            self.add_content_page(role=current.role, chapter_title=current.chapter_title)
        return True

    def text(
        self,
        value: str,
        *,
        x: float,
        font: FontHandle,
        size: float,
        color: Color,
        y: float | None = None,
    ) -> None:
        """Draw a string on the current page at ``y`` (default: the cursor)."""

        assert self.page is not None, "No page is open"
        self.page.draw(
            TextOp(
                text=value,
                x=x,
                y=self.y if y is None else y,
                font_name=font.name,
                size=size,
                color=color,
            )
        )

    def draw_image(self, *, asset: UserImageAsset, images: ImageCache) -> None:
        """Draw an image (and caption) centred, breaking first if it won't fit.

        Args:
            asset: Image to draw.
            images: Per-build decoded image cache.
        Returns:
            None.
        """

        ctx = self.ctx
        decoded = images.get(asset)
        width, height = scale_to_fit(
            width=decoded.width,
            height=decoded.height,
            max_width=ctx.content_width,
            max_height=ctx.page_height * IMAGE_MAX_HEIGHT_RATIO,
        )
        self.ensure_space(height + IMAGE_CAPTION_ALLOWANCE)
        assert self.page is not None
        self.page.draw(
            ImageOp(
                image_key=decoded.key,
                x=ctx.origin_x + (ctx.content_width - width) / 2,
                y=self.y - height,
                width=width,
                height=height,
            )
        )
        self.y -= height + IMAGE_CAPTION_GAP
        caption = (asset.caption or "").strip()
        if caption:
            self.text(
                caption,
                x=ctx.origin_x,
                font=ctx.fonts.text.italic,
                size=IMAGE_CAPTION_SIZE,
                color=ctx.theme.colors.caption,
            )
            self.y -= ctx.line_height
        self.y -= ctx.paragraph_spacing / 2

    def _chapter_page(self, *, first: bool) -> PageHandle:
        """Open a chapter page with strip and label, plus the banner if first.

        Args:
            first: Whether this is the chapter's first page.
        Returns:
            The new page.
        """

        assert self._chapter is not None
        index, title = self._chapter
        ctx = self.ctx
        colors = ctx.theme.colors
        page = self.add_content_page(role="chapter", chapter_title=title)
        page.draw(
            RectOp(
                x=0,
                y=ctx.page_height - CHAPTER_STRIP_HEIGHT,
                width=ctx.page_width,
                height=CHAPTER_STRIP_HEIGHT,
                color=colors.accent_soft,
                opacity=0.25,
            )
        )
        self.text(
            f"Chapter {index}".upper(),
            x=ctx.origin_x,
            y=ctx.page_height - 22,
            font=ctx.fonts.heading,
            size=CHAPTER_LABEL_SIZE,
            color=colors.caption,
        )
        self.y = self.top_y - CHAPTER_STRIP_HEIGHT
        if first:
            self.y = self._chapter_banner(title=title)
        return page

    def _chapter_banner(self, *, title: str) -> float:
        """Draw the centred chapter title and accent rule.

        Args:
            title: Chapter title.
        Returns:
            Cursor position for the first body line.
        """

        ctx = self.ctx
        size = ctx.heading_size * CHAPTER_TITLE_SCALE
        font = ctx.fonts.heading
        y = self.top_y - CHAPTER_STRIP_HEIGHT
        for line in wrap_text(text=title, font=font, font_size=size, max_width=ctx.content_width * 0.9):
            self.text(
                line,
                x=ctx.origin_x + (ctx.content_width - font.width_of(line, size)) / 2,
                y=y,
                font=font,
                size=size,
                color=ctx.theme.colors.heading,
            )
            y -= size * 1.2
        y -= 28
        assert self.page is not None
        self.page.draw(
            RectOp(
                x=ctx.origin_x + ctx.content_width / 2 - CHAPTER_RULE_WIDTH / 2,
                y=y + 12,
                width=CHAPTER_RULE_WIDTH,
                height=CHAPTER_RULE_HEIGHT,
                color=ctx.theme.colors.accent,
            )
        )
        return y - 24
