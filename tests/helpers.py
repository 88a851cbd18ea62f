"""Builders for manuscripts and in-memory images shared by the tests."""

from __future__ import annotations

from io import BytesIO
from typing import Sequence, Tuple

from PIL import Image

from bookforge.models import (
    BookConfig,
    BookOutline,
    ChapterContent,
    ChapterOutline,
    GeneratedBook,
    UserImageAsset,
)


def png_bytes(width: int = 40, height: int = 20, color: str = "#3366cc") -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def image_asset(
    asset_id: str,
    *,
    placement=None,
    caption: str | None = None,
    width: int = 40,
    height: int = 20,
    include: bool = True,
) -> UserImageAsset:
    data = png_bytes(width, height)
    return UserImageAsset(
        id=asset_id,
        name=f"{asset_id}.png",
        data=data,
        size=len(data),
        mime_type="image/png",
        include=include,
        caption=caption,
        placement=placement,
    )


def make_book(
    chapters: Sequence[Tuple[int, str, str]],
    *,
    title: str = "Tides",
    dedication: str | None = None,
) -> GeneratedBook:
    config = BookConfig(
        title=title,
        topic="Oceans",
        genre="Educational",
        chapters_count=max(1, len(chapters)),
        dedication=dedication,
    )
    outline = BookOutline(
        title=title,
        chapters=[ChapterOutline(index=i, title=t) for i, t, _ in chapters],
    )
    return GeneratedBook(
        config=config,
        outline=outline,
        chapters=[ChapterContent(index=i, title=t, text=text) for i, t, text in chapters],
    )


def long_text(paragraphs: int, *, words: int = 60) -> str:
    sentence = " ".join(f"word{n}" for n in range(words))
    return "\n\n".join(f"Paragraph {p} {sentence}" for p in range(paragraphs))
