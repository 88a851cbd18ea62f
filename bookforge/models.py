"""
Typed containers for manuscripts, generated chapters, and user images.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, List, Literal, TypeVar, Union

Genre = Literal["Educational", "Fiction", "Non-Fiction", "Guide", "Story", "Other"]
GENRES: tuple[str, ...] = (
    "Educational",
    "Fiction",
    "Non-Fiction",
    "Guide",
    "Story",
    "Other",
)

CoverSlot = Literal["background", "badge"]
ChapterImageAnchor = Literal["start", "middle", "end"]
IMAGE_ANCHORS: tuple[str, ...] = ("start", "middle", "end")

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class BookConfig:
    """Immutable generation input describing the requested book.

    Attributes:
        title: Working title shown on the cover.
        topic: Subject matter, also printed in the cover subtitle.
        genre: One of ``GENRES``.
        target_audience: Free-form audience description.
        language: Output language name.
        tone: Writing tone.
        chapters_count: Requested chapter count.
        words_per_chapter: Target chapter length.
        dedication: Optional dedication printed on the cover.
    """

    title: str
    topic: str
    genre: Genre = "Other"
    target_audience: str = "General readers"
    language: str = "English"
    tone: str = "Informative"
    chapters_count: int = 1
    words_per_chapter: int = 500
    dedication: str | None = None


@dataclass(frozen=True, slots=True)
class ChapterOutline:
    """Chapter stub produced by outline generation."""

    index: int
    title: str
    short_description: str = ""


@dataclass(frozen=True, slots=True)
class BookOutline:
    """Book title plus ordered chapter stubs (indexes are 1..N)."""

    title: str
    chapters: List[ChapterOutline] = field(default_factory=list)


@dataclass(slots=True)
class ChapterContent:
    """Full chapter text; ``index`` joins back to the outline.

    The text may be overwritten by a user edit, so layout always re-parses it.
    """

    index: int
    title: str
    text: str


@dataclass(slots=True)
class GeneratedBook:
    """Everything the layout engine needs from generation."""

    config: BookConfig
    outline: BookOutline
    chapters: List[ChapterContent]


@dataclass(frozen=True, slots=True)
class GalleryPlacement:
    """Image shown on the contributor gallery pages."""

    type: Literal["gallery"] = "gallery"


@dataclass(frozen=True, slots=True)
class CoverPlacement:
    """Image drawn on the cover, either as background art or as a badge."""

    slot: CoverSlot = "background"
    type: Literal["cover"] = "cover"


@dataclass(frozen=True, slots=True)
class ChapterPlacement:
    """Image anchored inside a chapter's block stream."""

    chapter_index: int
    anchor: ChapterImageAnchor | None = None
    type: Literal["chapter"] = "chapter"


ImagePlacement = Union[GalleryPlacement, CoverPlacement, ChapterPlacement]


@dataclass(slots=True)
class UserImageAsset:
    """User supplied picture plus its inclusion flag and placement.

    Attributes:
        id: Opaque identifier, stable for the lifetime of the asset.
        name: Display name (usually the file name).
        data: Encoded image bytes.
        size: Byte size of ``data``.
        mime_type: ``image/png``, ``image/jpeg`` or ``image/webp``.
        include: Whether the image takes part in exports.
        caption: Optional caption drawn under the image.
        placement: Target zone; ``None`` behaves as gallery.
    """

    id: str
    name: str
    data: bytes
    size: int
    mime_type: str
    include: bool = True
    caption: str | None = None
    placement: ImagePlacement | None = None


@dataclass(slots=True)
class ServiceResult(Generic[T]):
    """Result of a generation call that may have fallen back to offline data."""

    data: T
    used_fallback: bool
    warning: str | None = None
