import pytest
from helpers import image_asset

from bookforge.errors import LayoutError
from bookforge.pdf.pdf_images import DecodedImage, ImageCache
from bookforge.pdf.pdf_pagination import PageManager
from bookforge.pdf.pdf_settings import merge_pdf_config
from bookforge.pdf.pdf_types import ImageOp, LayoutContext, RectOp, TextOp


def _manager(**overrides) -> PageManager:
    manager = PageManager(ctx=LayoutContext.from_config(merge_pdf_config(overrides)))
    manager.add_content_page(role="cover")
    return manager


def test_content_page_resets_cursor_and_paints_background():
    manager = _manager()
    page = manager.add_content_page(role="toc")

    assert manager.y == pytest.approx(manager.ctx.page_height - 64)
    background = page.ops[0]
    assert isinstance(background, RectOp)
    assert (background.width, background.height) == (
        manager.ctx.page_width,
        manager.ctx.page_height,
    )
    assert background.color == manager.ctx.theme.colors.page_background
    assert [m.role for m in manager.meta] == ["cover", "toc"]
    assert manager.content_page_number() == 1


def test_cover_must_come_first():
    manager = _manager()

    with pytest.raises(AssertionError):
        manager.add_content_page(role="cover")


def test_ensure_space_only_breaks_when_needed():
    manager = _manager()
    manager.add_content_page(role="gallery")
    manager.y = manager.bottom + 10

    assert manager.ensure_space(10) is False
    assert manager.ensure_space(10.5) is True
    assert manager.meta[-1].role == "gallery"
    assert manager.y == pytest.approx(manager.top_y)


def test_first_chapter_page_has_banner_and_continuation_does_not():
    manager = _manager()
    first = manager.begin_chapter(index=3, title="Deep Water")
    body_start = manager.y

    assert "CHAPTER 3" in first.texts()
    assert "Deep Water" in first.texts()
    assert body_start < manager.top_y - 32

    manager.y = manager.bottom
    manager.ensure_space(20)
    continuation = manager.page

    assert continuation is not first
    assert "CHAPTER 3" in continuation.texts()
    assert "Deep Water" not in continuation.texts()
    assert manager.y == pytest.approx(manager.top_y - 32)
    assert manager.meta[-1].chapter_title == "Deep Water"
    rule = [op for op in first.ops if isinstance(op, RectOp) and op.width == 60]
    assert rule and not [op for op in continuation.ops if isinstance(op, RectOp) and op.width == 60]


def test_chapter_pages_stop_after_end_chapter():
    manager = _manager()
    manager.begin_chapter(index=1, title="One")
    manager.end_chapter()
    manager.y = manager.bottom
    manager.ensure_space(20)

    assert "CHAPTER 1" not in manager.page.texts()


def test_image_moves_to_next_page_with_its_caption():
    manager = _manager()
    manager.begin_chapter(index=1, title="Pictures")
    manager.y = manager.bottom + 60
    asset = image_asset("tall", width=100, height=100, caption="Low tide")

    manager.draw_image(asset=asset, images=ImageCache())

    images = [op for op in manager.page.ops if isinstance(op, ImageOp)]
    assert len(manager.pages) == 3
    assert len(images) == 1
    assert images[0].y >= manager.bottom
    assert "Low tide" in manager.page.texts()
    caption = next(op for op in manager.page.ops if isinstance(op, TextOp) and op.text == "Low tide")
    assert caption.y < images[0].y


def test_image_is_scaled_to_content_width_and_centred():
    manager = _manager()
    manager.begin_chapter(index=1, title="Wide")
    asset = image_asset("wide", width=2000, height=100)

    manager.draw_image(asset=asset, images=ImageCache())

    op = next(op for op in manager.page.ops if isinstance(op, ImageOp))
    assert op.width == pytest.approx(manager.ctx.content_width)
    assert op.x == pytest.approx(manager.ctx.origin_x)


def test_zero_sized_image_is_a_layout_error():
    manager = _manager()
    manager.begin_chapter(index=1, title="Broken")
    cache = ImageCache()
    asset = image_asset("flat")
    decoded = cache.get(asset)
    cache._images[asset.id] = DecodedImage(key=decoded.key, reader=decoded.reader, width=40, height=0)

    with pytest.raises(LayoutError):
        manager.draw_image(asset=asset, images=cache)
