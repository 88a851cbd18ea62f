"""PDF generation for a generated or loaded book manuscript."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Sequence

from tqdm import tqdm

from ..models import GeneratedBook, UserImageAsset
from .pdf_chapters import render_chapter
from .pdf_cover import render_cover, render_gallery
from .pdf_finishing import render_table_of_contents, reserve_toc_pages, stamp_footers
from .pdf_images import (
    ImageCache,
    ResolvedImages,
    resolve_image_placements,
    warn_dangling_chapter_images,
)
from .pdf_pagination import PageManager
from .pdf_render import render_pages
from .pdf_settings import PdfConfig, merge_pdf_config
from .pdf_types import LayoutContext, PageHandle, PageMeta, TocEntry, TocPageState

logger = logging.getLogger(__name__)

__all__ = [
    "BookLayout",
    "build_book_pdf",
    "lay_out_book",
    "write_book_pdf",
]


@dataclass(slots=True)
class BookLayout:
    """Finished page records for one build.

    Args:
        ctx: Layout context used for every page.
        pages: Pages in document order.
        meta: Page metadata in creation order.
        toc_entries: Chapter entries with their first page numbers.
        toc_pages: Reserved table-of-contents pages.
        images: Decoded images referenced by the pages.
    """

    ctx: LayoutContext
    pages: List[PageHandle]
    meta: List[PageMeta]
    toc_entries: List[TocEntry]
    toc_pages: List[TocPageState]
    images: ImageCache

    def page_texts(self) -> List[List[str]]:
        """Return the strings drawn on every page, in document order."""

        return [page.texts() for page in self.pages]


def lay_out_book(
    book: GeneratedBook,
    config: Mapping[str, Any] | PdfConfig | None = None,
    *,
    images: Sequence[UserImageAsset] | None = None,
    progress: bool = False,
) -> BookLayout:
    """Paginate a book into recorded pages without serializing them.

    Page order is cover, table-of-contents placeholders, gallery, then one
    run of pages per non-empty chapter. The table of contents and footers
    are filled in after every page exists.

    Args:
        book: Manuscript to lay out.
        config: Partial layout overrides or a full ``PdfConfig``.
        images: User images; excluded ones are ignored.
        progress: Show a chapter progress bar.
    Returns:
        BookLayout.

    Example:
        >>> from bookforge.models import BookConfig, BookOutline, ChapterContent
        >>> book = GeneratedBook(
        ...     config=BookConfig(title="Tides", topic="Oceans"),
        ...     outline=BookOutline(title="Tides"),
        ...     chapters=[ChapterContent(index=1, title="Shore", text="Waves arrive.")],
        ... )
        >>> layout = lay_out_book(book)
        >>> [m.role for m in layout.meta]
        ['cover', 'toc', 'chapter']
        >>> layout.toc_entries[0].page_number
        2
    """

    pdf_config = merge_pdf_config(config)
    ctx = LayoutContext.from_config(pdf_config)
    resolved = resolve_image_placements(images)
    warn_dangling_chapter_images(
        resolved=resolved, chapter_indexes=[chapter.index for chapter in book.chapters]
    )
    cache = ImageCache()
    manager = PageManager(ctx=ctx)

    render_cover(manager=manager, book=book.config, images=resolved, cache=cache)
    toc_pages = reserve_toc_pages(manager=manager, chapter_count=len(book.chapters))
    render_gallery(manager=manager, assets=resolved.gallery, cache=cache)
    toc_entries = _render_chapters(
        manager=manager, book=book, resolved=resolved, cache=cache, progress=progress
    )

    render_table_of_contents(ctx=ctx, toc_pages=toc_pages, entries=toc_entries)
    if pdf_config.page_numbering:
        stamp_footers(ctx=ctx, meta=manager.meta, book_title=book.config.title)
    return BookLayout(
        ctx=ctx,
        pages=manager.pages,
        meta=manager.meta,
        toc_entries=toc_entries,
        toc_pages=toc_pages,
        images=cache,
    )


def _render_chapters(
    *,
    manager: PageManager,
    book: GeneratedBook,
    resolved: ResolvedImages,
    cache: ImageCache,
    progress: bool,
) -> List[TocEntry]:
    """Render every chapter in manuscript order.

    Args:
        manager: Page manager.
        book: Manuscript.
        resolved: Resolved image buckets.
        cache: Per-build decoded image cache.
        progress: Show a chapter progress bar.
    Returns:
        Table-of-contents entries for rendered chapters.
    """

    entries: List[TocEntry] = []
    bar = (
        tqdm(total=len(book.chapters), desc="Rendering chapters", unit="chapter")
        if progress and book.chapters
        else None
    )
    try:
        for chapter in book.chapters:
            render_chapter(
                manager=manager,
                chapter=chapter,
                images=resolved,
                cache=cache,
                toc_entries=entries,
            )
            if bar is not None:
                bar.update(1)
    finally:
        if bar is not None:
            bar.close()
    return entries


def build_book_pdf(
    book: GeneratedBook,
    config: Mapping[str, Any] | PdfConfig | None = None,
    *,
    images: Sequence[UserImageAsset] | None = None,
    progress: bool = False,
) -> bytes:
    """Lay out a book and return the PDF bytes.

    Either the complete document is returned or an error is raised; corrupt
    images raise ``ImageDecodeError`` and zero-sized ones ``LayoutError``.

    Args:
        book: Manuscript to render.
        config: Partial layout overrides or a full ``PdfConfig``.
        images: User images.
        progress: Show a chapter progress bar.
    Returns:
        PDF bytes.
    """

    logger.info("Building PDF for %r (%d chapters)", book.config.title, len(book.chapters))
    layout = lay_out_book(book, config, images=images, progress=progress)
    data = render_pages(
        pages=layout.pages,
        images=layout.images,
        title=book.config.title,
        subject=book.config.topic,
    )
    logger.info("Built PDF with %d pages (%d bytes)", len(layout.pages), len(data))
    return data


def write_book_pdf(
    *,
    book: GeneratedBook,
    output_path: Path,
    config: Mapping[str, Any] | PdfConfig | None = None,
    images: Sequence[UserImageAsset] | None = None,
    progress: bool = False,
) -> None:
    """Render a book and write the PDF to ``output_path``.

    Args:
        book: Manuscript to render.
        output_path: Destination file; parent directories are created.
        config: Partial layout overrides or a full ``PdfConfig``.
        images: User images.
        progress: Show a chapter progress bar.
    Returns:
        None.

    Example:
        >>> write_book_pdf(book=book, output_path=Path("output/book.pdf"))  # doctest: +SKIP
    """

    data = build_book_pdf(book, config, images=images, progress=progress)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)
    logger.info("Wrote %s", output_path)
