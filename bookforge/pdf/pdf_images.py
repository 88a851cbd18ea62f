"""User image placement buckets and decoding for PDF output."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from io import BytesIO
from typing import Dict, Iterable, List

from PIL import Image, UnidentifiedImageError
from reportlab.lib.utils import ImageReader

from ..errors import ImageDecodeError, LayoutError
from ..models import (
    ChapterImageAnchor,
    ChapterPlacement,
    CoverPlacement,
    GalleryPlacement,
    UserImageAsset,
)

logger = logging.getLogger(__name__)

EMBEDDABLE_MIME_TYPES = frozenset({"image/png", "image/jpeg"})
TRANSCODED_MIME_TYPES = frozenset({"image/webp"})


@dataclass(frozen=True, slots=True)
class AnchoredImage:
    """A chapter image with its resolved anchor."""

    asset: UserImageAsset
    anchor: ChapterImageAnchor


@dataclass(slots=True)
class ResolvedImages:
    """Included images bucketed by placement.

    Args:
        cover_background: First cover image in the background slot.
        cover_badge: First cover image in the badge slot.
        gallery: Gallery images (explicit or unplaced), in input order.
        chapters: Chapter index to anchored images, in input order.
    """

    cover_background: UserImageAsset | None = None
    cover_badge: UserImageAsset | None = None
    gallery: List[UserImageAsset] = field(default_factory=list)
    chapters: Dict[int, List[AnchoredImage]] = field(default_factory=dict)

    def for_chapter(self, index: int) -> List[AnchoredImage]:
        """Return images anchored in chapter ``index`` (possibly empty)."""

        return self.chapters.get(index, [])

    def anchored(self, index: int, anchor: ChapterImageAnchor) -> List[UserImageAsset]:
        """Return the chapter's images for one anchor, in input order."""

        return [item.asset for item in self.for_chapter(index) if item.anchor == anchor]


def resolve_anchor(asset: UserImageAsset) -> ChapterImageAnchor:
    """Return the anchor of a chapter image, defaulting to ``"start"``.

    Args:
        asset: Image asset.
    Returns:
        ``"start"``, ``"middle"`` or ``"end"``.
    """

    placement = asset.placement
    if isinstance(placement, ChapterPlacement) and placement.anchor:
        return placement.anchor
    return "start"


def resolve_image_placements(images: Iterable[UserImageAsset] | None) -> ResolvedImages:
    """Partition included images into cover, gallery and chapter buckets.

    Args:
        images: All user images; excluded ones are ignored.
    Returns:
        ResolvedImages.

    Example:
        >>> a = UserImageAsset("a", "a.png", b"", 0, "image/png")
        >>> b = UserImageAsset("b", "b.png", b"", 0, "image/png", placement=ChapterPlacement(2, "end"))
        >>> resolved = resolve_image_placements([a, b])
        >>> ([x.id for x in resolved.gallery], resolved.anchored(2, "end")[0].id)
        (['a'], 'b')
    """

    resolved = ResolvedImages()
    for asset in images or ():
        if not asset.include:
            continue
        placement = asset.placement
        if placement is None or isinstance(placement, GalleryPlacement):
            resolved.gallery.append(asset)
        elif isinstance(placement, CoverPlacement):
            if placement.slot == "background" and resolved.cover_background is None:
                resolved.cover_background = asset
            elif placement.slot == "badge" and resolved.cover_badge is None:
                resolved.cover_badge = asset
        elif isinstance(placement, ChapterPlacement):
            resolved.chapters.setdefault(placement.chapter_index, []).append(
                AnchoredImage(asset=asset, anchor=resolve_anchor(asset))
            )
    return resolved


def middle_trigger(total_blocks: int) -> int:
    """Return how many blocks render before middle-anchored images.

    Example:
        >>> [middle_trigger(n) for n in (0, 1, 4, 5)]
        [1, 1, 2, 3]
    """

    return max(1, math.ceil(total_blocks / 2))


def warn_dangling_chapter_images(
    *, resolved: ResolvedImages, chapter_indexes: Iterable[int]
) -> List[int]:
    """Log chapter images whose chapter does not exist.

    Args:
        resolved: Placement buckets.
        chapter_indexes: Indexes present in the manuscript.
    Returns:
        Sorted dangling chapter indexes.
    """

    present = set(chapter_indexes)
    dangling = sorted(index for index in resolved.chapters if index not in present)
    for index in dangling:
        logger.warning(
            "Skipping %d image(s) placed in missing chapter %d",
            len(resolved.chapters[index]),
            index,
        )
    return dangling


@dataclass(frozen=True, slots=True)
class DecodedImage:
    """Embeddable image with its pixel dimensions."""

    key: str
    reader: ImageReader
    width: int
    height: int


class ImageCache:
    """Decode each asset once per document build, keyed by asset id."""

    def __init__(self) -> None:
        self._images: Dict[str, DecodedImage] = {}

    def __len__(self) -> int:
        return len(self._images)

    def __contains__(self, key: object) -> bool:
        return key in self._images

    def get(self, asset: UserImageAsset) -> DecodedImage:
        """Return the decoded image for ``asset``, decoding on first use.

        Args:
            asset: Image asset.
        Returns:
            DecodedImage.
        """

        cached = self._images.get(asset.id)
        if cached is None:
            cached = decode_image(asset)
            self._images[asset.id] = cached
        return cached

    def reader(self, key: str) -> ImageReader:
        """Return the ReportLab reader for a previously decoded key."""

        return self._images[key].reader


def decode_image(asset: UserImageAsset) -> DecodedImage:
    """Decode asset bytes into a ReportLab image reader.

    PNG and JPEG are embedded as decoded; WebP is transcoded in memory.

    Args:
        asset: Image asset.
    Returns:
        DecodedImage.
    """

    mime = (asset.mime_type or "").lower()
    if mime not in EMBEDDABLE_MIME_TYPES | TRANSCODED_MIME_TYPES:
        raise ImageDecodeError(f"Unsupported image type {asset.mime_type!r} for {asset.name!r}")
    try:
        picture = Image.open(BytesIO(asset.data))
        picture.load()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise ImageDecodeError(f"Could not decode image {asset.name!r}: {exc}") from exc
    if mime in TRANSCODED_MIME_TYPES:
        picture = picture.convert("RGBA" if "A" in picture.getbands() else "RGB")
    width, height = picture.size
    return DecodedImage(key=asset.id, reader=ImageReader(picture), width=width, height=height)


def scale_to_fit(
    *, width: float, height: float, max_width: float, max_height: float
) -> tuple[float, float]:
    """Scale a box down (never up) to fit inside ``max_width`` x ``max_height``.

    Args:
        width: Source width.
        height: Source height.
        max_width: Width limit.
        max_height: Height limit.
    Returns:
        Tuple of (draw_width, draw_height).

    Example:
        >>> scale_to_fit(width=400, height=200, max_width=100, max_height=100)
        (100.0, 50.0)
    """

    if width <= 0 or height <= 0:
        raise LayoutError(f"Image has non-positive size {width}x{height}")
    scale = min(1.0, max_width / width, max_height / height)
    draw_width, draw_height = width * scale, height * scale
    if draw_width <= 0 or draw_height <= 0:
        raise LayoutError(f"Image scales to non-positive size {draw_width}x{draw_height}")
    return draw_width, draw_height
