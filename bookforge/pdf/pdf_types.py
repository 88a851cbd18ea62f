"""Data structures for PDF layout planning and rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Sequence, Union

from reportlab.lib.colors import Color

from .pdf_fonts import FontSet, resolve_fonts
from .pdf_settings import PageSettings, PdfConfig
from .pdf_themes import Theme, get_theme

PageRole = Literal["cover", "gallery", "toc", "chapter"]


@dataclass(frozen=True, slots=True)
class RectOp:
    """Filled rectangle with optional opacity."""

    x: float
    y: float
    width: float
    height: float
    color: Color
    opacity: float = 1.0


@dataclass(frozen=True, slots=True)
class TextOp:
    """Single-line string drawn at a baseline position."""

    text: str
    x: float
    y: float
    font_name: str
    size: float
    color: Color


@dataclass(frozen=True, slots=True)
class ImageOp:
    """Decoded image drawn into a box; ``image_key`` indexes the image cache."""

    image_key: str
    x: float
    y: float
    width: float
    height: float
    opacity: float = 1.0


DrawOp = Union[RectOp, TextOp, ImageOp]


@dataclass(slots=True)
class PageHandle:
    """A page's recorded drawing operations.

    Content drawn while paginating goes to ``ops``. Finishing passes
    (table of contents, footers) write named layers, so running a pass again
    replaces its earlier output instead of stacking it.

    Args:
        index: Zero-based creation order.
        width: Page width in points.
        height: Page height in points.
    """

    index: int
    width: float
    height: float
    ops: List[DrawOp] = field(default_factory=list)
    layers: Dict[str, List[DrawOp]] = field(default_factory=dict)

    def draw(self, op: DrawOp) -> None:
        """Append a content operation."""

        self.ops.append(op)

    def set_layer(self, name: str, ops: Sequence[DrawOp]) -> None:
        """Replace the operations of a finishing layer.

        Args:
            name: Layer name such as ``"footer"``.
            ops: Operations for the layer.
        Returns:
            None.
        """

        self.layers[name] = list(ops)

    def all_ops(self) -> List[DrawOp]:
        """Return content operations followed by every layer in creation order."""

        result = list(self.ops)
        for ops in self.layers.values():
            result.extend(ops)
        return result

    def texts(self) -> List[str]:
        """Return every string drawn on the page, layers included."""

        return [op.text for op in self.all_ops() if isinstance(op, TextOp)]


@dataclass(frozen=True, slots=True)
class PageMeta:
    """Bookkeeping entry for a created page.

    Args:
        page: Owning page handle.
        role: Page role.
        chapter_title: Title of the chapter the page belongs to, if any.
    """

    page: PageHandle
    role: PageRole
    chapter_title: str | None = None


@dataclass(frozen=True, slots=True)
class TocEntry:
    """Table-of-contents line: display title and 1-based page number."""

    title: str
    page_number: int


@dataclass(slots=True)
class TocPageState:
    """Reserved table-of-contents page and the baseline of its first row."""

    page: PageHandle
    start_y: float


@dataclass(frozen=True, slots=True)
class LayoutContext:
    """Resolved configuration shared by every layout step of one build.

    Args:
        config: Validated layout configuration.
        settings: Page geometry.
        theme: Resolved colour theme.
        fonts: Resolved fonts.
    """

    config: PdfConfig
    settings: PageSettings
    theme: Theme
    fonts: FontSet

    @classmethod
    def from_config(cls, config: PdfConfig) -> "LayoutContext":
        """Resolve geometry, theme and fonts for ``config``.

        Args:
            config: Validated configuration.
        Returns:
            LayoutContext instance.
        """

        return cls(
            config=config,
            settings=PageSettings.from_config(config),
            theme=get_theme(config.style_preset),
            fonts=resolve_fonts(config.fonts),
        )

    @property
    def page_width(self) -> float:
        return self.settings.page_width

    @property
    def page_height(self) -> float:
        return self.settings.page_height

    @property
    def origin_x(self) -> float:
        return self.settings.margin_left

    @property
    def content_width(self) -> float:
        return self.settings.body_width

    @property
    def body_size(self) -> float:
        return self.config.fonts.body.size

    @property
    def heading_size(self) -> float:
        return self.config.fonts.heading.size

    @property
    def line_height(self) -> float:
        """Body line advance: body size times the theme multiplier."""

        return self.body_size * self.theme.line_height_multiplier

    @property
    def paragraph_spacing(self) -> float:
        """Gap after a paragraph: body size times the theme multiplier."""

        return self.body_size * self.theme.paragraph_spacing_multiplier
