"""Replay recorded pages onto a ReportLab canvas."""

from __future__ import annotations

from io import BytesIO
from typing import Sequence

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from .pdf_images import ImageCache
from .pdf_types import DrawOp, ImageOp, PageHandle, RectOp, TextOp


def render_pages(
    *,
    pages: Sequence[PageHandle],
    images: ImageCache,
    title: str | None = None,
    subject: str | None = None,
) -> bytes:
    """Serialize recorded pages (content plus finishing layers) to PDF bytes.

    Args:
        pages: Pages in document order.
        images: Cache holding every image referenced by ``ImageOp``.
        title: Optional document title metadata.
        subject: Optional document subject metadata.
    Returns:
        PDF document bytes.
    """

    buffer = BytesIO()
    pagesize = (pages[0].width, pages[0].height) if pages else A4
    pdf = canvas.Canvas(buffer, pagesize=pagesize, pageCompression=1)
    if title:
        pdf.setTitle(title)
    if subject:
        pdf.setSubject(subject)
    for page in pages:
        pdf.setPageSize((page.width, page.height))
        for op in page.all_ops():
            _draw_op(pdf=pdf, op=op, images=images)
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def _draw_op(*, pdf: canvas.Canvas, op: DrawOp, images: ImageCache) -> None:
    """Draw one recorded operation.

    Args:
        pdf: Target canvas.
        op: Recorded operation.
        images: Image cache for ``ImageOp`` lookups.
    Returns:
        None.
    """

    if isinstance(op, TextOp):
        pdf.setFillColor(op.color)
        pdf.setFont(op.font_name, op.size)
        pdf.drawString(op.x, op.y, op.text)
        return
    pdf.saveState()
    if isinstance(op, RectOp):
        pdf.setFillColor(op.color)
        pdf.setFillAlpha(op.opacity)
        pdf.rect(op.x, op.y, op.width, op.height, stroke=0, fill=1)
    elif isinstance(op, ImageOp):
        pdf.setFillAlpha(op.opacity)
        pdf.drawImage(
            images.reader(op.image_key),
            op.x,
            op.y,
            width=op.width,
            height=op.height,
            mask="auto",
        )
    pdf.restoreState()
