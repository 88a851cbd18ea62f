"""
End-to-end helper: load (or draft) a manuscript and render it as PDF or DOCX.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Sequence, Tuple

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bookforge.config import load_book_config, load_pdf_config
from bookforge.docx_export import build_book_docx
from bookforge.errors import BookForgeError
from bookforge.gemini_client import GeminiClient
from bookforge.generation import generate_chapters, generate_outline
from bookforge.ingest import dump_manuscript, load_image_asset, load_manuscript
from bookforge.logging_utils import setup_logger
from bookforge.models import GeneratedBook, UserImageAsset
from bookforge.pdf.builder import write_book_pdf
from bookforge.pdf.pdf_settings import PdfConfig

logger = logging.getLogger("bookforge.cli")


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Return CLI arguments for the build script."""

    parser = argparse.ArgumentParser(
        description="Render a manuscript (or a freshly drafted one) into a styled book."
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--manuscript",
        type=Path,
        help="JSON manuscript with config, chapters and optional images.",
    )
    source.add_argument(
        "--generate-config",
        type=Path,
        help=(
            "YAML/JSON book config to draft from. Uses Gemini when GEMINI_API_KEY "
            "is set, otherwise offline placeholder text."
        ),
    )
    parser.add_argument(
        "--layout",
        type=Path,
        default=None,
        help="YAML file with layout overrides (page size, margins, fonts, preset).",
    )
    parser.add_argument(
        "--images",
        nargs="+",
        type=Path,
        default=[],
        metavar="IMAGE",
        help="Extra image files to show in the contributor gallery.",
    )
    parser.add_argument(
        "--output-file",
        "-o",
        type=Path,
        default=Path("output/book.pdf"),
        help="File path into which the resulting document will be saved.",
    )
    parser.add_argument(
        "--format",
        choices=("pdf", "docx"),
        default="pdf",
        help="Output format.",
    )
    parser.add_argument(
        "--save-manuscript",
        type=Path,
        default=None,
        help="Also write the (possibly drafted) manuscript as JSON.",
    )
    parser.add_argument(
        "--max-chapters",
        type=int,
        default=None,
        help="Limit the number of chapters rendered.",
    )
    parser.add_argument("--progress", action="store_true", help="Show a chapter progress bar.")
    parser.add_argument("--log-file", type=Path, default=None, help="Also log to this file.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def _draft_book(config_path: Path) -> GeneratedBook:
    """Draft a manuscript from a book config, reporting any fallback.

    Args:
        config_path: Book config file.
    Returns:
        GeneratedBook.
    """

    config = load_book_config(config_path)
    client = GeminiClient.from_env()
    outline = generate_outline(config, client)
    if outline.warning:
        logger.warning(outline.warning)
    chapters = generate_chapters(config, outline.data, client)
    if chapters.warning:
        logger.warning(chapters.warning)
    return GeneratedBook(config=config, outline=outline.data, chapters=chapters.data)


def _load_inputs(args: argparse.Namespace) -> Tuple[GeneratedBook, List[UserImageAsset]]:
    """Return the manuscript and images selected on the command line.

    Args:
        args: Parsed arguments.
    Returns:
        Tuple of (book, images).
    """

    if args.manuscript is not None:
        book, images = load_manuscript(args.manuscript)
    else:
        book, images = _draft_book(args.generate_config), []
    images.extend(load_image_asset(path) for path in args.images)
    if args.max_chapters is not None:
        book.chapters = book.chapters[: args.max_chapters]
    return book, images


def main(argv: Sequence[str] | None = None) -> int:
    """Render the selected manuscript to ``--output-file``.

    Example:
        >>> main(["--generate-config", "book.yaml"])  # doctest: +SKIP
        0
    """

    args = _parse_args(argv)
    setup_logger(
        "bookforge",
        log_file=args.log_file,
        level=logging.DEBUG if args.verbose else logging.INFO,
    )
    try:
        book, images = _load_inputs(args)
        if args.save_manuscript is not None:
            args.save_manuscript.parent.mkdir(parents=True, exist_ok=True)
            args.save_manuscript.write_text(
                json.dumps(dump_manuscript(book), indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        if args.format == "docx":
            args.output_file.parent.mkdir(parents=True, exist_ok=True)
            args.output_file.write_bytes(build_book_docx(book, images))
            logger.info("Wrote %s", args.output_file)
        else:
            layout = load_pdf_config(args.layout) if args.layout else PdfConfig()
            write_book_pdf(
                book=book,
                output_path=args.output_file,
                config=layout,
                images=images,
                progress=args.progress,
            )
    except BookForgeError as exc:
        logger.error("Build failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
