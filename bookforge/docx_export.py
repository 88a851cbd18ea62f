"""Word-processor export: the same blocks as the PDF, flowed without pagination."""

from __future__ import annotations

from io import BytesIO
from typing import Iterable, Sequence

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt

from .markup import (
    HeadingBlock,
    ListBlock,
    ParagraphBlock,
    QuoteBlock,
    Span,
    parse_markdown_to_blocks,
    strip_leading_chapter_heading,
)
from .models import ChapterContent, GeneratedBook, UserImageAsset
from .pdf.pdf_constants import IMPRINT


def _add_runs(paragraph, spans: Iterable[Span], *, italic: bool = False) -> None:
    """Append one run per span, carrying its bold and italic flags."""

    for span in spans:
        run = paragraph.add_run(span.text)
        run.bold = span.bold
        run.italic = italic or span.italic


def _spaced(paragraph, *, after: float):
    paragraph.paragraph_format.space_after = Pt(after)
    return paragraph


def _add_cover(document, book: GeneratedBook) -> None:
    """Write the title page.

    Args:
        document: Target document.
        book: Manuscript.
    Returns:
        None.
    """

    config = book.config
    title = _spaced(document.add_heading(config.title, 0), after=15)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER
    subtitle = _spaced(document.add_heading(f"{config.genre} • {config.topic}", 3), after=10)
    subtitle.alignment = WD_ALIGN_PARAGRAPH.CENTER
    if (config.dedication or "").strip():
        dedication = _spaced(document.add_paragraph(f"For {config.dedication.strip()}"), after=10)
        dedication.alignment = WD_ALIGN_PARAGRAPH.CENTER
    document.add_paragraph(IMPRINT).alignment = WD_ALIGN_PARAGRAPH.CENTER
    document.add_page_break()


def _add_contents(document, chapters: Sequence[ChapterContent]) -> None:
    """Write the table of contents as a plain list (no page numbers).

    Args:
        document: Target document.
        chapters: Chapters in order.
    Returns:
        None.
    """

    _spaced(document.add_heading("Table of Contents", 1), after=15)
    for chapter in chapters:
        _spaced(document.add_paragraph(f"Chapter {chapter.index} – {chapter.title}"), after=6)
    document.add_page_break()


def _add_chapter(document, chapter: ChapterContent) -> None:
    """Write one chapter's headings and blocks.

    Args:
        document: Target document.
        chapter: Chapter to write.
    Returns:
        None.
    """

    _spaced(document.add_heading(f"Chapter {chapter.index}", 2), after=6)
    _spaced(document.add_heading(chapter.title, 1), after=12)
    blocks = strip_leading_chapter_heading(parse_markdown_to_blocks(chapter.text), chapter.title)
    for block in blocks:
        if isinstance(block, HeadingBlock):
            _spaced(document.add_heading(block.text, 2 if block.level == 1 else 3), after=10)
        elif isinstance(block, ListBlock):
            for item in block.items:
                _add_runs(_spaced(document.add_paragraph(style="List Bullet"), after=5), item)
            document.add_paragraph()
        elif isinstance(block, QuoteBlock):
            quote = _spaced(document.add_paragraph(), after=9)
            quote.paragraph_format.left_indent = Inches(0.5)
            _add_runs(quote, block.spans, italic=True)
        elif isinstance(block, ParagraphBlock):
            _add_runs(_spaced(document.add_paragraph(), after=10), block.spans)
    _spaced(document.add_paragraph(), after=20)


def build_book_docx(
    book: GeneratedBook, images: Sequence[UserImageAsset] | None = None
) -> bytes:
    """Render a book as a DOCX document.

    Included images are listed by name and caption in an appendix rather
    than embedded.

    Args:
        book: Manuscript.
        images: Optional user images.
    Returns:
        DOCX bytes.
    """

    document = Document()
    _add_cover(document, book)
    _add_contents(document, book.chapters)
    for idx, chapter in enumerate(book.chapters):
        if idx:
            document.add_page_break()
        _add_chapter(document, chapter)
    included = [asset for asset in images or () if asset.include]
    if included:
        document.add_page_break()
        _spaced(document.add_heading("Image Appendix", 2), after=10)
        for asset in included:
            caption = (asset.caption or "").strip()
            label = f"{asset.name} – {caption}" if caption else asset.name
            _spaced(document.add_paragraph(label), after=6)
    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()
