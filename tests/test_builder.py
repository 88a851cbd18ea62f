import logging

import pytest
from helpers import image_asset, long_text, make_book

from bookforge.errors import ImageDecodeError
from bookforge.models import ChapterPlacement, CoverPlacement, UserImageAsset
from bookforge.pdf.builder import build_book_pdf, lay_out_book, write_book_pdf
from bookforge.pdf.pdf_finishing import (
    render_table_of_contents,
    reserve_toc_pages,
    stamp_footers,
    toc_entries_per_page,
)
from bookforge.pdf.pdf_pagination import PageManager
from bookforge.pdf.pdf_settings import merge_pdf_config
from bookforge.pdf.pdf_themes import THEME_DEFINITIONS
from bookforge.pdf.pdf_types import ImageOp, LayoutContext, TextOp, TocEntry


def _op_index(page, predicate):
    for idx, op in enumerate(page.all_ops()):
        if predicate(op):
            return idx
    raise AssertionError("operation not found")


def _text_at(page, text):
    return _op_index(page, lambda op: isinstance(op, TextOp) and op.text == text)


def _image_at(page, key):
    return _op_index(page, lambda op: isinstance(op, ImageOp) and op.image_key == key)


def test_single_chapter_page_order_and_footers():
    layout = lay_out_book(make_book([(1, "Shore", "Waves arrive.")]))

    assert [m.role for m in layout.meta] == ["cover", "toc", "chapter"]
    assert "footer" not in layout.pages[0].layers
    assert [op.text for op in layout.pages[1].layers["footer"]] == ["Tides", "1"]
    assert [op.text for op in layout.pages[2].layers["footer"]] == ["Tides • Shore", "2"]


def test_footer_numbers_count_every_non_cover_page():
    layout = lay_out_book(make_book([(1, "Long", long_text(30))]))

    numbers = [page.layers["footer"][-1].text for page in layout.pages[1:]]
    assert numbers == [str(n) for n in range(1, len(layout.pages))]
    footer = layout.pages[-1].layers["footer"]
    assert footer[0].y == pytest.approx(32.0)
    assert footer[1].x + 9 > layout.ctx.page_width - 60 - 20


def test_page_numbering_can_be_disabled():
    layout = lay_out_book(make_book([(1, "Shore", "Waves.")]), {"pageNumbering": False})

    assert all("footer" not in page.layers for page in layout.pages)


def test_toc_page_numbers_follow_chapter_page_counts():
    book = make_book(
        [
            (1, "Alpha Bay", long_text(40)),
            (2, "Beta Reef", "Short."),
            (3, "Gamma Cove", long_text(15)),
        ]
    )
    layout = lay_out_book(book)
    toc_pages = sum(1 for m in layout.meta if m.role == "toc")
    counts = [
        sum(1 for m in layout.meta if m.chapter_title == chapter.title)
        for chapter in book.chapters
    ]

    assert counts[0] > 1
    expected = [1 + toc_pages + sum(counts[:k]) for k in range(len(counts))]
    assert [entry.page_number for entry in layout.toc_entries] == expected
    toc_texts = layout.pages[1].texts()
    assert "Chapter 2: Beta Reef" in toc_texts
    assert str(expected[1]) in toc_texts


@pytest.mark.parametrize("preset", sorted(THEME_DEFINITIONS))
@pytest.mark.parametrize("page_size", ["A4", "Letter"])
def test_toc_reserves_enough_pages_for_many_chapters(preset, page_size, caplog):
    overrides = {"stylePreset": preset, "pageSize": page_size}
    ctx = LayoutContext.from_config(merge_pdf_config(overrides))
    per_page = toc_entries_per_page(ctx)
    chapters = [(i, f"Part {i}", f"Body {i}.") for i in range(1, per_page + 3)]

    with caplog.at_level(logging.WARNING):
        layout = lay_out_book(make_book(chapters), overrides)

    assert sum(1 for m in layout.meta if m.role == "toc") == 2
    rows = [len(state.page.layers["toc"]) // 2 for state in layout.toc_pages]
    assert rows == [per_page, 2]
    assert "dropped" not in caplog.text


@pytest.mark.parametrize("preset", sorted(THEME_DEFINITIONS))
def test_full_toc_page_keeps_rows_above_bottom_margin(preset, caplog):
    overrides = {"stylePreset": preset}
    ctx = LayoutContext.from_config(merge_pdf_config(overrides))
    per_page = toc_entries_per_page(ctx)
    chapters = [(i, f"Part {i}", f"Body {i}.") for i in range(1, per_page + 1)]

    with caplog.at_level(logging.WARNING):
        layout = lay_out_book(make_book(chapters), overrides)

    assert sum(1 for m in layout.meta if m.role == "toc") == 1
    toc_ops = layout.toc_pages[0].page.layers["toc"]
    assert len(toc_ops) == 2 * per_page
    assert min(op.y for op in toc_ops) >= ctx.settings.margin_bottom + ctx.line_height - 1e-6
    assert "dropped" not in caplog.text


@pytest.mark.parametrize("preset,rows", [("aurora", 41), ("editorial", 42), ("midnight", 39)])
def test_toc_rows_per_a4_page(preset, rows):
    ctx = LayoutContext.from_config(merge_pdf_config({"stylePreset": preset}))

    assert toc_entries_per_page(ctx) == rows


def test_toc_overflow_drops_entries_with_warning(caplog):
    ctx = LayoutContext.from_config(merge_pdf_config())
    manager = PageManager(ctx=ctx)
    manager.add_content_page(role="cover")
    states = reserve_toc_pages(manager=manager, chapter_count=1)
    entries = [TocEntry(title=f"Chapter {i}", page_number=i) for i in range(1, 201)]

    with caplog.at_level(logging.WARNING):
        written = render_table_of_contents(ctx=ctx, toc_pages=states, entries=entries)

    assert 0 < written < len(entries)
    assert "dropped" in caplog.text


def test_finishing_passes_are_idempotent():
    book = make_book([(1, "Shore", long_text(20)), (2, "Dunes", "Sand.")])
    layout = lay_out_book(book)
    before = [page.all_ops() for page in layout.pages]

    render_table_of_contents(ctx=layout.ctx, toc_pages=layout.toc_pages, entries=layout.toc_entries)
    stamp_footers(ctx=layout.ctx, meta=layout.meta, book_title=book.config.title)

    assert [page.all_ops() for page in layout.pages] == before


def test_images_follow_their_anchors():
    images = [
        image_asset("mid", placement=ChapterPlacement(1, "middle")),
        image_asset("end", placement=ChapterPlacement(1, "end")),
        image_asset("start", placement=ChapterPlacement(1, "start")),
    ]
    book = make_book([(1, "Order", "Alpha\n\nBravo\n\nCharlie\n\nDelta")])
    page = lay_out_book(book, images=images).pages[2]

    assert _image_at(page, "start") < _text_at(page, "Alpha")
    assert _text_at(page, "Bravo") < _image_at(page, "mid") < _text_at(page, "Charlie")
    assert _text_at(page, "Delta") < _image_at(page, "end")


def test_middle_images_render_when_no_blocks_remain():
    images = [image_asset("mid", placement=ChapterPlacement(1, "middle"))]
    layout = lay_out_book(make_book([(1, "Only Title", "## Only Title")]), images=images)

    assert [m.role for m in layout.meta] == ["cover", "toc", "chapter"]
    assert _image_at(layout.pages[2], "mid") > 0
    assert layout.toc_entries[0].title == "Chapter 1: Only Title"


def test_empty_chapters_are_skipped():
    book = make_book([(1, "One", "Text one."), (2, "Two", "   "), (3, "Three", "Text three.")])
    layout = lay_out_book(book)

    assert [e.title for e in layout.toc_entries] == ["Chapter 1: One", "Chapter 3: Three"]
    assert all(m.chapter_title != "Two" for m in layout.meta)


def test_empty_chapter_with_image_renders_only_the_image():
    images = [image_asset("pic", placement=ChapterPlacement(2))]
    book = make_book([(1, "One", "Text."), (2, "Two", "")])
    layout = lay_out_book(book, images=images)

    chapter_two = [m.page for m in layout.meta if m.chapter_title == "Two"]
    assert len(chapter_two) == 1
    assert _image_at(chapter_two[0], "pic") > 0


def test_dangling_chapter_image_is_ignored(caplog):
    images = [image_asset("ghost", placement=ChapterPlacement(5))]

    with caplog.at_level(logging.WARNING):
        layout = lay_out_book(make_book([(1, "One", "Text.")]), images=images)

    assert not any(
        isinstance(op, ImageOp) for page in layout.pages for op in page.all_ops()
    )
    assert len(layout.images) == 0
    assert "missing chapter 5" in caplog.text


def test_corrupt_image_aborts_the_build():
    bad = UserImageAsset("bad", "bad.png", b"\x89PNG garbage", 12, "image/png")

    with pytest.raises(ImageDecodeError):
        build_book_pdf(make_book([(1, "One", "Text.")]), images=[bad])


def test_body_text_stays_above_bottom_margin_and_descends():
    layout = lay_out_book(make_book([(1, "Long", long_text(30))]))
    bottom = layout.ctx.settings.margin_bottom

    for meta in layout.meta:
        if meta.role != "chapter":
            continue
        body = [
            op.y
            for op in meta.page.ops
            if isinstance(op, TextOp) and op.font_name == "Times-Roman"
        ]
        assert body
        assert all(y >= bottom for y in body)
        assert body == sorted(body, reverse=True)
        assert max(body) <= layout.ctx.page_height - 64


def test_lists_and_quotes():
    layout = lay_out_book(make_book([(1, "Marks", "- first item\n- second item\n\n> wise words")]))
    page = layout.pages[2]
    ctx = layout.ctx
    bullets = [op for op in page.ops if isinstance(op, TextOp) and op.text == "•"]
    first = next(op for op in page.ops if isinstance(op, TextOp) and op.text == "first item")
    quote = next(op for op in page.ops if isinstance(op, TextOp) and op.text == "wise words")

    assert len(bullets) == 2
    assert bullets[0].y == first.y
    assert first.x == pytest.approx(ctx.origin_x + 18)
    assert quote.x == pytest.approx(ctx.origin_x + 10)
    assert quote.color == ctx.theme.colors.caption


def test_inline_styles_use_matching_faces():
    layout = lay_out_book(make_book([(1, "Styles", "Hello **world** and *you*.")]))
    faces = {
        op.text: op.font_name for op in layout.pages[2].ops if isinstance(op, TextOp)
    }

    assert faces["Hello"] == "Times-Roman"
    assert faces["world"] == "Times-Bold"
    assert faces["you"] == "Times-Italic"


def test_drop_cap_on_first_paragraph():
    text = "Once upon a tide the sea was calm.\n\nAnother paragraph follows."
    layout = lay_out_book(make_book([(1, "Calm", text)]), {"dropCaps": True})
    page = layout.pages[2]
    ctx = layout.ctx
    cap = next(op for op in page.ops if isinstance(op, TextOp) and op.text == "O")
    first_line = next(op for op in page.ops if isinstance(op, TextOp) and op.text.startswith("nce"))

    assert cap.size == pytest.approx(12 * 2.6)
    assert cap.font_name == "Helvetica-Bold"
    assert cap.y == pytest.approx(first_line.y - ctx.line_height)
    assert first_line.x > ctx.origin_x
    assert not any(
        isinstance(op, TextOp) and op.text == "A" and op.size > 12 for op in page.ops
    )


def test_drop_cap_paragraph_crossing_a_page_keeps_spacing():
    headings = "\n\n".join(f"## Section {n}" for n in range(1, 15))
    opening = "Once " + " ".join(f"word{n}" for n in range(300))
    text = f"{headings}\n\n{opening}\n\nNext paragraph here."
    layout = lay_out_book(make_book([(1, "Drift", text)]), {"dropCaps": True})
    ctx = layout.ctx
    chapter_pages = [m.page for m in layout.meta if m.role == "chapter"]
    cap_page = next(
        page for page in chapter_pages
        if any(isinstance(op, TextOp) and op.text == "O" and op.size > 12 for op in page.ops)
    )
    next_page = next(page for page in chapter_pages if "Next paragraph here." in page.texts())

    assert next_page is not cap_page
    body = [op for op in next_page.ops if isinstance(op, TextOp) and op.font_name == "Times-Roman"]
    assert body[0].y == pytest.approx(ctx.page_height - 64 - 32)
    last_line, following = body[-2], body[-1]
    assert following.text == "Next paragraph here."
    assert last_line.y - following.y == pytest.approx(ctx.line_height + ctx.paragraph_spacing)


def test_cover_and_gallery():
    images = [
        image_asset("bg", placement=CoverPlacement("background")),
        image_asset("badge", placement=CoverPlacement("badge")),
        image_asset("g1", caption="Harbor at dawn"),
        image_asset("g2"),
        image_asset("g3"),
    ]
    book = make_book([(1, "One", "Text.")], dedication="Grandma")
    layout = lay_out_book(book, images=images)
    cover, gallery = layout.pages[0], layout.pages[2]

    assert [m.role for m in layout.meta] == ["cover", "toc", "gallery", "chapter"]
    assert "Tides" in cover.texts()
    assert "Educational • Oceans" in cover.texts()
    assert "For Grandma" in cover.texts()
    assert "Crafted with BookForge AI" in cover.texts()
    background = cover.ops[_image_at(cover, "bg")]
    assert background.opacity == pytest.approx(0.35)
    badge = cover.ops[_image_at(cover, "badge")]
    assert badge.x + badge.width == pytest.approx(layout.ctx.page_width - 60)
    assert "Contributor Gallery" in gallery.texts()
    assert {"Harbor at dawn", "g2.png", "g3.png"} <= set(gallery.texts())
    g1, g2, g3 = (gallery.ops[_image_at(gallery, key)] for key in ("g1", "g2", "g3"))
    assert g1.x < g2.x
    assert g3.y < g1.y
    assert layout.toc_entries[0].page_number == 3


def test_build_and_write_pdf(tmp_path):
    images = [
        image_asset("bg", placement=CoverPlacement("background")),
        image_asset("g1", caption="A caption"),
        image_asset("c1", placement=ChapterPlacement(1, "end"), caption="Figure"),
    ]
    book = make_book([(1, "One", long_text(12)), (2, "Two", "# Heading\n\nText.")])

    data = build_book_pdf(book, {"stylePreset": "midnight", "pageSize": "Letter"}, images=images)

    assert data.startswith(b"%PDF-")
    target = tmp_path / "out" / "book.pdf"
    write_book_pdf(book=book, output_path=target, images=images, progress=True)
    assert target.read_bytes().startswith(b"%PDF-")
