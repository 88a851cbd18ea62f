"""Exception types raised by the layout engine and its collaborators."""

from __future__ import annotations


class BookForgeError(Exception):
    """Base class for every error raised by this package."""


class ManuscriptError(BookForgeError):
    """Malformed manuscript, configuration, or image input."""


class ImageDecodeError(BookForgeError):
    """Image bytes could not be decoded into an embeddable picture."""


class LayoutError(BookForgeError):
    """Content that cannot be placed on a page (e.g. a zero-sized image)."""


class GenerationError(BookForgeError):
    """Failure reported by a text-generation client.

    Args:
        message: Human readable description.
        code: Optional numeric status (HTTP-like) reported upstream.
        status: Optional symbolic status such as ``"UNAVAILABLE"``.
    """

    def __init__(
        self, message: str, *, code: int | None = None, status: str | None = None
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status = status
