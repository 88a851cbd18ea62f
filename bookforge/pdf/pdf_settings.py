"""Layout configuration, defaults, and page geometry for PDF generation."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from types import MappingProxyType
from typing import Any, Dict, Literal, Mapping

from reportlab.lib.pagesizes import A4, LETTER

from ..errors import ManuscriptError

PageSize = Literal["A4", "Letter"]
FontFamilyName = Literal["TimesRoman", "Helvetica", "Courier"]
StylePreset = Literal["aurora", "editorial", "midnight"]

PAGE_SIZES: Mapping[str, tuple[float, float]] = MappingProxyType(
    {"A4": A4, "Letter": LETTER}
)
FONT_FAMILIES: tuple[str, ...] = ("TimesRoman", "Helvetica", "Courier")

_KEY_ALIASES = {
    "pageSize": "page_size",
    "pageNumbering": "page_numbering",
    "stylePreset": "style_preset",
    "dropCaps": "drop_caps",
    "enableDropCaps": "drop_caps",
}


@dataclass(frozen=True, slots=True)
class PdfMargins:
    """Page insets in points."""

    top: float = 64.0
    bottom: float = 64.0
    left: float = 60.0
    right: float = 60.0


@dataclass(frozen=True, slots=True)
class PdfFontConfig:
    """Family, size and weight for one typographic role."""

    family: FontFamilyName = "TimesRoman"
    size: float = 12.0
    bold: bool = False


@dataclass(frozen=True, slots=True)
class PdfFonts:
    """Font configuration for the title, heading and body roles."""

    title: PdfFontConfig = PdfFontConfig(family="Helvetica", size=40.0, bold=True)
    heading: PdfFontConfig = PdfFontConfig(family="Helvetica", size=24.0, bold=True)
    body: PdfFontConfig = PdfFontConfig(family="TimesRoman", size=12.0, bold=False)


@dataclass(frozen=True, slots=True)
class PdfConfig:
    """Complete layout configuration for one document build.

    Example:
        >>> PdfConfig().page_size
        'A4'
    """

    page_size: PageSize = "A4"
    margins: PdfMargins = PdfMargins()
    page_numbering: bool = True
    fonts: PdfFonts = PdfFonts()
    style_preset: str = "aurora"
    drop_caps: bool = False


DEFAULT_PDF_CONFIG = PdfConfig()


def merge_pdf_config(overrides: Mapping[str, Any] | PdfConfig | None = None) -> PdfConfig:
    """Apply a partial configuration mapping on top of the defaults.

    Nested ``margins`` and ``fonts`` mappings are merged key by key, so a
    caller may override only ``fonts.body.size``. Camel-case keys used by the
    web client (``pageSize``, ``stylePreset`` ...) are accepted.

    Args:
        overrides: Partial mapping, a full ``PdfConfig``, or None.
    Returns:
        Validated ``PdfConfig``.

    Example:
        >>> cfg = merge_pdf_config({"pageSize": "Letter", "fonts": {"body": {"size": 11}}})
        >>> (cfg.page_size, cfg.fonts.body.size, cfg.fonts.body.family)
        ('Letter', 11, 'TimesRoman')
    """

    if isinstance(overrides, PdfConfig):
        return _validate(config=overrides)
    values = {_KEY_ALIASES.get(key, key): value for key, value in (overrides or {}).items()}
    _reject_unknown(values=values, allowed={f.name for f in fields(PdfConfig)}, where="config")
    config = DEFAULT_PDF_CONFIG
    if "margins" in values:
        config = replace(
            config, margins=_merge_dataclass(base=config.margins, values=values.pop("margins"))
        )
    if "fonts" in values:
        config = replace(config, fonts=_merge_fonts(base=config.fonts, values=values.pop("fonts")))
    config = replace(config, **{key: value for key, value in values.items() if value is not None})
    return _validate(config=config)


def _merge_fonts(*, base: PdfFonts, values: Mapping[str, Any] | None) -> PdfFonts:
    """Merge per-role font overrides.

    Args:
        base: Current font configuration.
        values: Mapping of role name to partial font mapping.
    Returns:
        Updated PdfFonts.
    """

    values = dict(values or {})
    _reject_unknown(values=values, allowed={"title", "heading", "body"}, where="fonts")
    updates = {
        role: _merge_dataclass(base=getattr(base, role), values=partial)
        for role, partial in values.items()
    }
    return replace(base, **updates)


def _merge_dataclass(*, base, values: Mapping[str, Any] | None):
    """Return ``base`` with the non-None entries of ``values`` applied.

    Args:
        base: Frozen dataclass instance.
        values: Partial mapping of field overrides.
    Returns:
        New dataclass instance.
    """

    values = dict(values or {})
    _reject_unknown(
        values=values, allowed={f.name for f in fields(base)}, where=type(base).__name__
    )
    return replace(base, **{key: value for key, value in values.items() if value is not None})


def _reject_unknown(*, values: Mapping[str, Any], allowed: set[str], where: str) -> None:
    """Raise when ``values`` contains keys outside ``allowed``.

    Args:
        values: Mapping to check.
        allowed: Permitted keys.
        where: Label used in the error message.
    Returns:
        None.
    """

    unknown = set(values) - allowed
    if unknown:
        raise ManuscriptError(f"Unknown {where} keys: {', '.join(sorted(unknown))}")


def _validate(*, config: PdfConfig) -> PdfConfig:
    """Check enumerated values and positive sizes.

    Args:
        config: Configuration to validate.
    Returns:
        The same configuration.
    """

    if config.page_size not in PAGE_SIZES:
        raise ManuscriptError(f"Unsupported page size: {config.page_size!r}")
    for role in ("title", "heading", "body"):
        font = getattr(config.fonts, role)
        if font.family not in FONT_FAMILIES:
            raise ManuscriptError(f"Unsupported {role} font family: {font.family!r}")
        if font.size <= 0:
            raise ManuscriptError(f"{role} font size must be positive")
    margins = config.margins
    if min(margins.top, margins.bottom, margins.left, margins.right) < 0:
        raise ManuscriptError("Margins must not be negative")
    return config


@dataclass(slots=True)
class PageSettings:
    """Geometry constants derived from a ``PdfConfig``.

    Example:
        >>> settings = PageSettings.from_config(PdfConfig())
        >>> settings.body_width > 0
        True
    """

    page_width: float
    page_height: float
    margin_left: float
    margin_right: float
    margin_top: float
    margin_bottom: float

    @classmethod
    def from_config(cls, config: PdfConfig) -> "PageSettings":
        """Return settings for the configured page size and margins.

        Args:
            config: Layout configuration.
        Returns:
            PageSettings instance.
        """

        width, height = PAGE_SIZES[config.page_size]
        margins = config.margins
        return cls(
            page_width=width,
            page_height=height,
            margin_left=margins.left,
            margin_right=margins.right,
            margin_top=margins.top,
            margin_bottom=margins.bottom,
        )

    @property
    def body_width(self) -> float:
        """Return the width available for content inside margins.

        Returns:
            Width in points.
        """

        return self.page_width - self.margin_left - self.margin_right

    @property
    def top_y(self) -> float:
        """Return the baseline of the first content line on a fresh page."""

        return self.page_height - self.margin_top


def config_to_dict(config: PdfConfig) -> Dict[str, Any]:
    """Return a plain nested mapping for a configuration (for logging/YAML).

    Example:
        >>> config_to_dict(PdfConfig())["margins"]["top"]
        64.0
    """

    fonts = config.fonts
    return {
        "page_size": config.page_size,
        "margins": {f.name: getattr(config.margins, f.name) for f in fields(PdfMargins)},
        "page_numbering": config.page_numbering,
        "fonts": {
            role: {f.name: getattr(getattr(fonts, role), f.name) for f in fields(PdfFontConfig)}
            for role in ("title", "heading", "body")
        },
        "style_preset": config.style_preset,
        "drop_caps": config.drop_caps,
    }
