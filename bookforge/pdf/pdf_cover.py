"""Cover page and contributor gallery pages."""

from __future__ import annotations

from typing import Sequence

from ..models import BookConfig, UserImageAsset
from .pdf_constants import IMAGE_CAPTION_SIZE, IMAGE_MAX_HEIGHT_RATIO, IMPRINT
from .pdf_images import ImageCache, ResolvedImages, scale_to_fit
from .pdf_pagination import PageManager
from .pdf_types import ImageOp, RectOp
from .pdf_wrap import wrap_text

COVER_ART_HEIGHT_RATIO = 0.55
COVER_ART_BOTTOM_RATIO = 0.35
COVER_ART_OPACITY = 0.35
COVER_TITLE_RATIO = 0.58
SUBTITLE_SCALE = 0.6
BADGE_MAX = 140.0
BADGE_WIDTH_RATIO = 0.2

GALLERY_TITLE = "Contributor Gallery"
GALLERY_COLUMNS = 2
GALLERY_GUTTER = 18.0
GALLERY_CARD_OPACITY = 0.2
GALLERY_ROW_GAP = 80.0
GALLERY_FOOT_ALLOWANCE = 50.0


def render_cover(
    *,
    manager: PageManager,
    book: BookConfig,
    images: ResolvedImages,
    cache: ImageCache,
) -> None:
    """Draw the cover page; it is always the first page of the document.

    Args:
        manager: Page manager with no pages yet.
        book: Book configuration (title, genre, topic, dedication).
        images: Resolved image buckets.
        cache: Per-build decoded image cache.
    Returns:
        None.
    """

    ctx = manager.ctx
    colors = ctx.theme.colors
    page = manager.add_content_page(role="cover", background=colors.cover_background)
    width, height = ctx.page_width, ctx.page_height

    if images.cover_background is not None:
        decoded = cache.get(images.cover_background)
        draw_w, draw_h = scale_to_fit(
            width=decoded.width,
            height=decoded.height,
            max_width=width - ctx.origin_x * 2,
            max_height=height * COVER_ART_HEIGHT_RATIO,
        )
        page.draw(
            ImageOp(
                image_key=decoded.key,
                x=(width - draw_w) / 2,
                y=height * COVER_ART_BOTTOM_RATIO,
                width=draw_w,
                height=draw_h,
                opacity=COVER_ART_OPACITY,
            )
        )

    title_cfg = ctx.config.fonts.title
    y = height * COVER_TITLE_RATIO
    for line in wrap_text(
        text=book.title,
        font=ctx.fonts.title,
        font_size=title_cfg.size,
        max_width=ctx.content_width * 0.9,
    ):
        line_w = ctx.fonts.title.width_of(line, title_cfg.size)
        manager.text(
            line,
            x=(width - line_w) / 2,
            y=y,
            font=ctx.fonts.title,
            size=title_cfg.size,
            color=colors.title,
        )
        y -= title_cfg.size * 1.2

    subtitle = f"{book.genre} • {book.topic}"
    subtitle_size = ctx.heading_size * SUBTITLE_SCALE
    manager.text(
        subtitle,
        x=(width - ctx.fonts.heading.width_of(subtitle, subtitle_size)) / 2,
        y=y - 10,
        font=ctx.fonts.heading,
        size=subtitle_size,
        color=colors.caption,
    )

    bottom = ctx.settings.margin_bottom
    dedication = (book.dedication or "").strip()
    if dedication:
        manager.text(
            f"For {dedication}",
            x=ctx.origin_x,
            y=bottom + 40,
            font=ctx.fonts.text.italic,
            size=12,
            color=colors.caption,
        )
    manager.text(
        IMPRINT,
        x=ctx.origin_x,
        y=bottom + 20,
        font=ctx.fonts.body,
        size=11,
        color=colors.caption,
    )

    if images.cover_badge is not None:
        decoded = cache.get(images.cover_badge)
        badge = min(BADGE_MAX, width * BADGE_WIDTH_RATIO)
        draw_w, draw_h = scale_to_fit(
            width=decoded.width, height=decoded.height, max_width=badge, max_height=badge
        )
        page.draw(
            ImageOp(
                image_key=decoded.key,
                x=width - ctx.settings.margin_right - draw_w,
                y=bottom + 30,
                width=draw_w,
                height=draw_h,
            )
        )


def render_gallery(
    *, manager: PageManager, assets: Sequence[UserImageAsset], cache: ImageCache
) -> int:
    """Draw gallery images as two-column captioned cards.

    A new gallery page starts when the first card of a row would run into
    the bottom margin.

    Args:
        manager: Page manager.
        assets: Gallery images in display order.
        cache: Per-build decoded image cache.
    Returns:
        Number of gallery pages created.
    """

    if not assets:
        return 0
    ctx = manager.ctx
    colors = ctx.theme.colors
    page = manager.add_content_page(role="gallery")
    pages = 1
    manager.text(
        GALLERY_TITLE,
        x=ctx.origin_x,
        font=ctx.fonts.heading,
        size=ctx.heading_size,
        color=colors.heading,
    )
    y = manager.y - ctx.heading_size * 1.4
    card_w = (ctx.content_width - GALLERY_GUTTER) / GALLERY_COLUMNS
    row_max = 0.0
    for idx, asset in enumerate(assets):
        decoded = cache.get(asset)
        draw_w, draw_h = scale_to_fit(
            width=decoded.width,
            height=decoded.height,
            max_width=card_w,
            max_height=ctx.page_height * IMAGE_MAX_HEIGHT_RATIO,
        )
        column = idx % GALLERY_COLUMNS
        if column == 0 and y - draw_h - GALLERY_FOOT_ALLOWANCE < manager.bottom:
            page = manager.add_content_page(role="gallery")
            pages += 1
            y = manager.y
        card_x = ctx.origin_x + column * (card_w + GALLERY_GUTTER)
        page.draw(
            RectOp(
                x=card_x,
                y=y - draw_h - 12,
                width=card_w,
                height=draw_h + 42,
                color=colors.accent_soft,
                opacity=GALLERY_CARD_OPACITY,
            )
        )
        page.draw(
            ImageOp(
                image_key=decoded.key,
                x=card_x + (card_w - draw_w) / 2,
                y=y - draw_h - 8,
                width=draw_w,
                height=draw_h,
            )
        )
        caption = (asset.caption or "").strip() or asset.name or "Uploaded image"
        manager.text(
            caption,
            x=card_x + 8,
            y=y - draw_h - 28,
            font=ctx.fonts.text.italic,
            size=IMAGE_CAPTION_SIZE,
            color=colors.caption,
        )
        row_max = max(row_max, draw_h)
        if column == GALLERY_COLUMNS - 1 or idx == len(assets) - 1:
            y -= row_max + GALLERY_ROW_GAP
            row_max = 0.0
    manager.y = y
    return pages
