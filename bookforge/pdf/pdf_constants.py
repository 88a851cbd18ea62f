"""Shared constants for PDF layout."""

from __future__ import annotations

import os

COVER_PAGE_COUNT = 1
IMAGE_CAPTION_ALLOWANCE = 40.0
IMAGE_CAPTION_GAP = 16.0
IMAGE_CAPTION_SIZE = 10.0
IMAGE_MAX_HEIGHT_RATIO = 0.35
CHAPTER_STRIP_HEIGHT = 32.0
CHAPTER_LABEL_SIZE = 12.0
LIST_INDENT = 18.0
QUOTE_INSET = 10.0
MIN_WRAP_WIDTH = 20.0
DROP_CAP_LINES = 2
DROP_CAP_SCALE = 2.6
DROP_CAP_GAP = 4.0
FOOTER_FONT_SIZE = 9.0
FOOTER_FAMILY = "Helvetica"
BULLET = "•"
IMPRINT = "Crafted with BookForge AI"
DEBUG_PAGINATION = os.getenv("BOOKFORGE_DEBUG_PAGINATION", "0") not in {
    "",
    "0",
    "false",
    "False",
}
