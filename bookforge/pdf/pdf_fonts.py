"""Font catalog and metrics for the title, heading and body roles."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Literal, Mapping

from reportlab.pdfbase import pdfmetrics

from .pdf_settings import PdfFontConfig, PdfFonts

Variant = Literal["regular", "bold", "italic"]


@dataclass(frozen=True, slots=True)
class FontHandle:
    """A drawable font that can measure strings.

    Example:
        >>> round(FontHandle("Courier").width_of("abcd", 10), 3)
        24.0
    """

    name: str

    def width_of(self, text: str, size: float) -> float:
        """Return the advance width of ``text`` at ``size`` points.

        Args:
            text: String to measure.
            size: Font size in points.
        Returns:
            Width in points.
        """

        return pdfmetrics.stringWidth(text, self.name, size)


@dataclass(frozen=True, slots=True)
class FontVariants:
    """Regular, bold and italic faces of one family."""

    regular: FontHandle
    bold: FontHandle
    italic: FontHandle

    def variant(self, name: Variant) -> FontHandle:
        """Return the handle for a variant name."""

        return getattr(self, name)

    def for_style(self, *, bold: bool, italic: bool) -> FontHandle:
        """Return the face for a span's style flags; bold wins over italic.

        Example:
            >>> FONT_CATALOG["Helvetica"].for_style(bold=True, italic=True).name
            'Helvetica-Bold'
        """

        if bold:
            return self.bold
        if italic:
            return self.italic
        return self.regular


def _family(regular: str, bold: str, italic: str) -> FontVariants:
    return FontVariants(
        regular=FontHandle(regular), bold=FontHandle(bold), italic=FontHandle(italic)
    )


FONT_CATALOG: Mapping[str, FontVariants] = MappingProxyType(
    {
        "TimesRoman": _family("Times-Roman", "Times-Bold", "Times-Italic"),
        "Helvetica": _family("Helvetica", "Helvetica-Bold", "Helvetica-Oblique"),
        "Courier": _family("Courier", "Courier-Bold", "Courier-Oblique"),
    }
)


@dataclass(frozen=True, slots=True)
class FontSet:
    """Fonts resolved for one document build.

    Args:
        title: Face used for the cover title.
        heading: Face used for headings, labels and bullets.
        body: Regular body face.
        text: Body family variants used for rich text.
        families: Every family in use, keyed by catalog name.
    """

    title: FontHandle
    heading: FontHandle
    body: FontHandle
    text: FontVariants
    families: Mapping[str, FontVariants]


def _role_font(*, config: PdfFontConfig, families: Mapping[str, FontVariants]) -> FontHandle:
    """Return the configured face for a role.

    Args:
        config: Role font configuration.
        families: Resolved families.
    Returns:
        FontHandle for the role.
    """

    return families[config.family].variant("bold" if config.bold else "regular")


def resolve_fonts(fonts: PdfFonts) -> FontSet:
    """Resolve role fonts, loading each distinct family once.

    Args:
        fonts: Font configuration for all roles.
    Returns:
        FontSet for the build.

    Example:
        >>> fs = resolve_fonts(PdfFonts())
        >>> (fs.title.name, fs.body.name, sorted(fs.families))
        ('Helvetica-Bold', 'Times-Roman', ['Helvetica', 'TimesRoman'])
    """

    families: Dict[str, FontVariants] = {}
    for role in (fonts.title, fonts.heading, fonts.body):
        if role.family not in families:
            families[role.family] = FONT_CATALOG[role.family]
    return FontSet(
        title=_role_font(config=fonts.title, families=families),
        heading=_role_font(config=fonts.heading, families=families),
        body=_role_font(config=fonts.body, families=families),
        text=families[fonts.body.family],
        families=MappingProxyType(families),
    )
