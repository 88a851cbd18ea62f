from bookforge.markup import Span, parse_inline_spans
from bookforge.pdf.pdf_fonts import FONT_CATALOG, FontHandle
from bookforge.pdf.pdf_wrap import (
    line_text,
    line_width,
    tokenize_spans,
    wrap_rich_text,
    wrap_text,
    wrap_tokens,
)

TIMES = FONT_CATALOG["TimesRoman"]
PROSE = (
    "The tide came in slowly over the flats, carrying **weed and shells** toward the "
    "old harbor wall while *gulls* circled above the fishing boats."
)


def test_lines_never_exceed_width():
    for max_width in (60.0, 120.0, 200.0, 333.0):
        lines = wrap_rich_text(
            spans=parse_inline_spans(PROSE), fonts=TIMES, font_size=12, max_width=max_width
        )
        assert lines
        for line in lines:
            words = [token for token in line if not token.is_space]
            assert line_width(line) <= max_width + 1e-6 or len(words) == 1


def test_lines_never_start_or_end_with_space():
    lines = wrap_rich_text(spans=parse_inline_spans(PROSE), fonts=TIMES, font_size=12, max_width=90)

    for line in lines:
        assert not line[0].is_space
        assert not line[-1].is_space


def test_wrapping_keeps_every_word_in_order():
    lines = wrap_rich_text(spans=parse_inline_spans(PROSE), fonts=TIMES, font_size=12, max_width=110)

    assert " ".join(line_text(line) for line in lines).split() == (
        PROSE.replace("**", "").replace("*", "").split()
    )


def test_oversized_word_sits_alone():
    spans = (Span("a Pneumonoultramicroscopicsilicovolcanoconiosis b"),)
    lines = wrap_rich_text(spans=spans, fonts=TIMES, font_size=12, max_width=50)

    assert [line_text(line) for line in lines] == [
        "a",
        "Pneumonoultramicroscopicsilicovolcanoconiosis",
        "b",
    ]


def test_styles_pick_faces_and_bold_wins():
    tokens = tokenize_spans(
        spans=(
            Span("plain"),
            Span("strong", bold=True),
            Span("both", bold=True, italic=True),
            Span("soft", italic=True),
        ),
        fonts=TIMES,
        font_size=12,
    )

    assert [t.font.name for t in tokens] == [
        "Times-Roman",
        "Times-Bold",
        "Times-Bold",
        "Times-Italic",
    ]


def test_narrow_leading_lines():
    tokens = tokenize_spans(spans=(Span("aaa " * 12),), fonts=FONT_CATALOG["Courier"], font_size=10)
    lines = wrap_tokens(tokens=tokens, max_width=80, narrow_width=40, narrow_lines=2)

    assert [line_text(line) for line in lines[:3]] == ["aaa", "aaa", "aaa aaa aaa"]


def test_empty_input_has_no_lines():
    assert wrap_tokens(tokens=[], max_width=100) == []
    assert wrap_rich_text(spans=(Span("   "),), fonts=TIMES, font_size=12, max_width=100) == []


def test_wrap_text_plain():
    lines = wrap_text(
        text="one two three four", font=FontHandle("Courier"), font_size=10, max_width=55
    )

    assert lines == ["one two", "three", "four"]
