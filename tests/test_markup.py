from bookforge.cleaning import normalize_title
from bookforge.markup import (
    HeadingBlock,
    ListBlock,
    ParagraphBlock,
    QuoteBlock,
    Span,
    parse_inline_spans,
    parse_markdown_to_blocks,
    spans_to_plain_text,
    strip_leading_chapter_heading,
)


def test_bold_and_italic_paragraphs():
    blocks = parse_markdown_to_blocks("Hello **world**.\n\nSecond *paragraph*.")

    assert len(blocks) == 2
    assert blocks[0] == ParagraphBlock(
        spans=(Span("Hello "), Span("world", bold=True), Span("."))
    )
    italic = [span.text for span in blocks[1].spans if span.italic]
    assert italic == ["paragraph"]


def test_plain_paragraphs_keep_one_unstyled_span_each():
    source = "first   line\nwraps here\n\n\n  second\tgroup  \n\nthird"
    blocks = parse_markdown_to_blocks(source)

    assert [b.spans for b in blocks] == [
        (Span("first line wraps here"),),
        (Span("second group"),),
        (Span("third"),),
    ]


def test_headings_lists_and_quotes():
    source = "# Top\n### Deep\nintro\n- one\n* two\n+ three\nafter\n> quoted *bit*"
    blocks = parse_markdown_to_blocks(source)

    assert blocks[0] == HeadingBlock(level=1, text="Top")
    assert blocks[1] == HeadingBlock(level=3, text="Deep")
    assert blocks[2] == ParagraphBlock(spans=(Span("intro"),))
    assert isinstance(blocks[3], ListBlock)
    assert [spans_to_plain_text(item) for item in blocks[3].items] == ["one", "two", "three"]
    assert blocks[4] == ParagraphBlock(spans=(Span("after"),))
    assert isinstance(blocks[5], QuoteBlock)
    assert blocks[5].spans[-1] == Span("bit", italic=True)


def test_four_hashes_stay_paragraph_text():
    blocks = parse_markdown_to_blocks("### Deep\n#### Deeper\nstill prose")

    assert blocks == [
        HeadingBlock(level=3, text="Deep"),
        ParagraphBlock(spans=(Span("#### Deeper still prose"),)),
    ]


def test_heading_ends_open_paragraph():
    blocks = parse_markdown_to_blocks("line one\n## Break\nline two")

    assert [type(b) for b in blocks] == [ParagraphBlock, HeadingBlock, ParagraphBlock]


def test_unmatched_markers_stay_literal():
    assert parse_inline_spans("2 * 3 = 6") == (Span("2 * 3 = 6"),)


def test_empty_and_none_input():
    assert parse_markdown_to_blocks("") == []
    assert parse_markdown_to_blocks(None) == []
    assert parse_markdown_to_blocks("\n \n\t\n") == []


def test_strip_leading_title_repeats():
    blocks = parse_markdown_to_blocks(
        "## Chapter 2: Rising Water\n\nRising water!\n\nBody text.\n\n## Rising Water"
    )
    stripped = strip_leading_chapter_heading(blocks, "Rising Water")

    assert stripped[0] == ParagraphBlock(spans=(Span("Body text."),))
    assert stripped[-1] == HeadingBlock(level=2, text="Rising Water")


def test_strip_is_idempotent():
    blocks = parse_markdown_to_blocks("# Harbor\n\nHarbor\n\n- list\n\nHarbor")
    once = strip_leading_chapter_heading(blocks, "Chapter 4 - Harbor")

    assert strip_leading_chapter_heading(once, "Chapter 4 - Harbor") == once
    assert isinstance(once[0], ListBlock)


def test_strip_stops_at_lists_and_quotes():
    blocks = parse_markdown_to_blocks("> Harbor\n\nHarbor")

    assert strip_leading_chapter_heading(blocks, "Harbor") == blocks


def test_strip_with_blank_title_keeps_everything():
    blocks = parse_markdown_to_blocks("Text")

    assert strip_leading_chapter_heading(blocks, "  !! ") == blocks


def test_normalize_title_ignores_case_and_punctuation():
    assert normalize_title("CHAPTER 12 -  Salt & Light") == normalize_title("salt light")
