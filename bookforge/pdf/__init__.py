"""PDF layout: themes, fonts, wrapping, pagination and the document assembler."""

from .builder import BookLayout, build_book_pdf, lay_out_book, write_book_pdf
from .pdf_settings import DEFAULT_PDF_CONFIG, PdfConfig, merge_pdf_config

__all__ = [
    "DEFAULT_PDF_CONFIG",
    "BookLayout",
    "PdfConfig",
    "build_book_pdf",
    "lay_out_book",
    "merge_pdf_config",
    "write_book_pdf",
]
