"""Book layout engine: manuscripts and user images in, paginated PDF or DOCX out."""

from .errors import BookForgeError, GenerationError, ImageDecodeError, LayoutError, ManuscriptError
from .models import (
    BookConfig,
    BookOutline,
    ChapterContent,
    ChapterOutline,
    ChapterPlacement,
    CoverPlacement,
    GalleryPlacement,
    GeneratedBook,
    UserImageAsset,
)

__all__ = [
    "BookConfig",
    "BookForgeError",
    "BookOutline",
    "ChapterContent",
    "ChapterOutline",
    "ChapterPlacement",
    "CoverPlacement",
    "GalleryPlacement",
    "GeneratedBook",
    "GenerationError",
    "ImageDecodeError",
    "LayoutError",
    "ManuscriptError",
    "UserImageAsset",
]
