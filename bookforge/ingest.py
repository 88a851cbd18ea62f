"""
Helpers that assemble manuscript files and image files into typed objects.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import re
from pathlib import Path
from typing import Any, List, Mapping, Tuple

from .config import book_config_from_mapping
from .errors import ManuscriptError
from .models import (
    IMAGE_ANCHORS,
    BookOutline,
    ChapterContent,
    ChapterOutline,
    ChapterPlacement,
    CoverPlacement,
    GalleryPlacement,
    GeneratedBook,
    ImagePlacement,
    UserImageAsset,
)

_DATA_URL = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(?:;[\w=-]+)*;base64,(?P<data>.*)$", re.S)


def sniff_mime_type(data: bytes) -> str | None:
    """Return the image MIME type implied by the file signature.

    Example:
        >>> sniff_mime_type(b"\\x89PNG\\r\\n\\x1a\\n....")
        'image/png'
        >>> sniff_mime_type(b"RIFF\\x00\\x00\\x00\\x00WEBPVP8 ")
        'image/webp'
        >>> sniff_mime_type(b"GIF89a") is None
        True
    """

    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def asset_id_for(data: bytes) -> str:
    """Return a stable identifier derived from the image bytes."""

    return hashlib.sha1(data).hexdigest()[:16]


def image_asset_from_bytes(
    *,
    data: bytes,
    name: str,
    caption: str | None = None,
    include: bool = True,
    placement: ImagePlacement | None = None,
    asset_id: str | None = None,
) -> UserImageAsset:
    """Wrap encoded image bytes in a ``UserImageAsset``.

    Args:
        data: Encoded png, jpeg or webp bytes.
        name: Display name.
        caption: Optional caption.
        include: Inclusion flag.
        placement: Optional placement.
        asset_id: Explicit id; defaults to a content hash.
    Returns:
        UserImageAsset.
    """

    mime = sniff_mime_type(data)
    if mime is None:
        raise ManuscriptError(f"{name}: not a PNG, JPEG or WebP image")
    return UserImageAsset(
        id=asset_id or asset_id_for(data),
        name=name,
        data=data,
        size=len(data),
        mime_type=mime,
        include=include,
        caption=caption,
        placement=placement,
    )


def load_image_asset(
    path: Path,
    *,
    caption: str | None = None,
    include: bool = True,
    placement: ImagePlacement | None = None,
) -> UserImageAsset:
    """Read an image file into a ``UserImageAsset``.

    Args:
        path: Image file.
        caption: Optional caption.
        include: Inclusion flag.
        placement: Optional placement.
    Returns:
        UserImageAsset named after the file.
    """

    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ManuscriptError(f"Cannot read image {path}: {exc}") from exc
    return image_asset_from_bytes(
        data=data, name=path.name, caption=caption, include=include, placement=placement
    )


def parse_placement(value: Mapping[str, Any] | None) -> ImagePlacement | None:
    """Parse a placement mapping (``type`` plus slot or chapter fields).

    Example:
        >>> parse_placement({"type": "chapter", "chapterIndex": 2, "anchor": "end"})
        ChapterPlacement(chapter_index=2, anchor='end', type='chapter')
        >>> parse_placement({"type": "cover", "coverSlot": "badge"})
        CoverPlacement(slot='badge', type='cover')
    """

    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ManuscriptError(f"Placement must be a mapping, got {value!r}")
    kind = value.get("type", "gallery")
    if kind == "gallery":
        return GalleryPlacement()
    if kind == "cover":
        slot = value.get("slot", value.get("coverSlot", "background"))
        if slot not in ("background", "badge"):
            raise ManuscriptError(f"Unknown cover slot {slot!r}")
        return CoverPlacement(slot=slot)
    if kind == "chapter":
        index = value.get("chapter_index", value.get("chapterIndex"))
        if not isinstance(index, int):
            raise ManuscriptError("Chapter placement needs an integer chapterIndex")
        anchor = value.get("anchor")
        if anchor is not None and anchor not in IMAGE_ANCHORS:
            raise ManuscriptError(f"Unknown chapter anchor {anchor!r}")
        return ChapterPlacement(chapter_index=index, anchor=anchor)
    raise ManuscriptError(f"Unknown placement type {kind!r}")


def _decode_data_url(value: str, *, name: str) -> bytes:
    """Return the bytes of a base64 ``data:`` URL.

    Args:
        value: Data URL.
        name: Image name used in errors.
    Returns:
        Decoded bytes.
    """

    match = _DATA_URL.match(value.strip())
    if not match:
        raise ManuscriptError(f"{name}: only base64 data URLs are supported")
    try:
        return base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ManuscriptError(f"{name}: invalid base64 image data") from exc


def _image_from_entry(entry: Mapping[str, Any], *, base_dir: Path) -> UserImageAsset:
    """Build an image asset from a manuscript ``images`` entry.

    Args:
        entry: Mapping with ``path`` or ``dataUrl`` plus optional metadata.
        base_dir: Directory that relative paths resolve against.
    Returns:
        UserImageAsset.
    """

    placement = parse_placement(entry.get("placement"))
    caption = entry.get("caption")
    include = bool(entry.get("include", True))
    if "path" in entry:
        path = Path(entry["path"])
        if not path.is_absolute():
            path = base_dir / path
        asset = load_image_asset(path, caption=caption, include=include, placement=placement)
        if entry.get("name"):
            asset.name = entry["name"]
        if entry.get("id"):
            asset.id = str(entry["id"])
        return asset
    data_url = entry.get("data_url", entry.get("dataUrl"))
    if data_url:
        name = entry.get("name") or "image"
        return image_asset_from_bytes(
            data=_decode_data_url(data_url, name=name),
            name=name,
            caption=caption,
            include=include,
            placement=placement,
            asset_id=str(entry["id"]) if entry.get("id") else None,
        )
    raise ManuscriptError("Image entries need a path or a dataUrl")


def _chapters_from(values: Any) -> List[ChapterContent]:
    """Parse the ``chapters`` list, sorted by index.

    Args:
        values: Raw list of chapter mappings.
    Returns:
        ChapterContent list.
    """

    if not isinstance(values, list):
        raise ManuscriptError("Manuscript chapters must be a list")
    chapters: List[ChapterContent] = []
    for position, raw in enumerate(values, start=1):
        if not isinstance(raw, Mapping) or "title" not in raw:
            raise ManuscriptError(f"Chapter {position} needs at least a title")
        chapters.append(
            ChapterContent(
                index=int(raw.get("index", position)),
                title=str(raw["title"]),
                text=str(raw.get("text") or ""),
            )
        )
    indexes = [chapter.index for chapter in chapters]
    if len(set(indexes)) != len(indexes):
        raise ManuscriptError("Chapter indexes must be unique")
    return sorted(chapters, key=lambda chapter: chapter.index)


def _outline_from(
    values: Mapping[str, Any] | None, *, title: str, chapters: List[ChapterContent]
) -> BookOutline:
    """Parse the optional outline, or derive it from the chapters.

    Args:
        values: Raw outline mapping or None.
        title: Book title used when the outline has none.
        chapters: Parsed chapters.
    Returns:
        BookOutline.
    """

    if not values:
        return BookOutline(
            title=title,
            chapters=[ChapterOutline(index=c.index, title=c.title) for c in chapters],
        )
    return BookOutline(
        title=str(values.get("title") or title),
        chapters=[
            ChapterOutline(
                index=int(item["index"]),
                title=str(item["title"]),
                short_description=str(
                    item.get("short_description", item.get("shortDescription", ""))
                ),
            )
            for item in values.get("chapters", [])
        ],
    )


def load_manuscript(path: Path) -> Tuple[GeneratedBook, List[UserImageAsset]]:
    """Load a JSON manuscript with its images.

    The file holds ``config``, ``chapters`` and optional ``outline`` and
    ``images`` entries; camel-case keys from the web client are accepted.
    Image paths are resolved relative to the manuscript.

    Args:
        path: Manuscript JSON file.
    Returns:
        Tuple of (GeneratedBook, images).
    """

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ManuscriptError(f"Cannot read manuscript {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ManuscriptError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(payload, Mapping) or "config" not in payload:
        raise ManuscriptError(f"{path}: manuscript needs a config section")
    config = book_config_from_mapping(payload["config"])
    chapters = _chapters_from(payload.get("chapters", []))
    outline = _outline_from(payload.get("outline"), title=config.title, chapters=chapters)
    images = [
        _image_from_entry(entry, base_dir=path.parent) for entry in payload.get("images", [])
    ]
    return GeneratedBook(config=config, outline=outline, chapters=chapters), images


def dump_manuscript(book: GeneratedBook) -> dict:
    """Return the JSON-ready mapping ``load_manuscript`` reads (images omitted).

    Example:
        >>> from bookforge.models import BookConfig
        >>> book = GeneratedBook(BookConfig("T", "X"), BookOutline("T"), [ChapterContent(1, "A", "b")])
        >>> dump_manuscript(book)["chapters"]
        [{'index': 1, 'title': 'A', 'text': 'b'}]
    """

    cfg = book.config
    return {
        "config": {
            "title": cfg.title,
            "topic": cfg.topic,
            "genre": cfg.genre,
            "targetAudience": cfg.target_audience,
            "language": cfg.language,
            "tone": cfg.tone,
            "chaptersCount": cfg.chapters_count,
            "wordsPerChapter": cfg.words_per_chapter,
            "dedication": cfg.dedication,
        },
        "outline": {
            "title": book.outline.title,
            "chapters": [
                {"index": c.index, "title": c.title, "shortDescription": c.short_description}
                for c in book.outline.chapters
            ],
        },
        "chapters": [{"index": c.index, "title": c.title, "text": c.text} for c in book.chapters],
    }
