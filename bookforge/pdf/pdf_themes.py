"""Named colour/spacing presets for PDF output."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from reportlab.lib.colors import Color, HexColor

DEFAULT_PRESET = "aurora"


@dataclass(frozen=True, slots=True)
class ThemePalette:
    """The ten colours every theme defines."""

    page_background: Color
    cover_background: Color
    ribbon_color: Color
    accent: Color
    accent_soft: Color
    title: Color
    heading: Color
    body: Color
    caption: Color
    subtle: Color


@dataclass(frozen=True, slots=True)
class Theme:
    """A resolved preset: palette plus line-height and paragraph-spacing multipliers."""

    id: str
    name: str
    colors: ThemePalette
    line_height_multiplier: float
    paragraph_spacing_multiplier: float


def _palette(
    *,
    page_background: str,
    cover_background: str,
    ribbon_color: str,
    accent: str,
    accent_soft: str,
    title: str,
    heading: str,
    body: str,
    caption: str,
    subtle: str,
) -> ThemePalette:
    """Build a palette from hex strings.

    Returns:
        ThemePalette with ReportLab colours.
    """

    return ThemePalette(
        page_background=HexColor(page_background),
        cover_background=HexColor(cover_background),
        ribbon_color=HexColor(ribbon_color),
        accent=HexColor(accent),
        accent_soft=HexColor(accent_soft),
        title=HexColor(title),
        heading=HexColor(heading),
        body=HexColor(body),
        caption=HexColor(caption),
        subtle=HexColor(subtle),
    )


THEME_DEFINITIONS: Mapping[str, Theme] = MappingProxyType(
    {
        "aurora": Theme(
            id="aurora",
            name="Aurora Glow",
            colors=_palette(
                page_background="#f9fbff",
                cover_background="#edf6ff",
                ribbon_color="#5eead4",
                accent="#2563eb",
                accent_soft="#a5f3fc",
                title="#0f172a",
                heading="#1e293b",
                body="#111827",
                caption="#475569",
                subtle="#94a3b8",
            ),
            line_height_multiplier=1.35,
            paragraph_spacing_multiplier=0.55,
        ),
        "editorial": Theme(
            id="editorial",
            name="Editorial Amber",
            colors=_palette(
                page_background="#fffdf8",
                cover_background="#fff7ed",
                ribbon_color="#f97316",
                accent="#d97706",
                accent_soft="#fed7aa",
                title="#78350f",
                heading="#92400e",
                body="#3f2a1d",
                caption="#9a6a45",
                subtle="#fbbf24",
            ),
            line_height_multiplier=1.32,
            paragraph_spacing_multiplier=0.5,
        ),
        "midnight": Theme(
            id="midnight",
            name="Midnight Neon",
            colors=_palette(
                page_background="#0f172a",
                cover_background="#0b1120",
                ribbon_color="#38bdf8",
                accent="#c084fc",
                accent_soft="#1e293b",
                title="#f8fafc",
                heading="#f1f5f9",
                body="#e2e8f0",
                caption="#94a3b8",
                subtle="#334155",
            ),
            line_height_multiplier=1.4,
            paragraph_spacing_multiplier=0.6,
        ),
    }
)


def get_theme(preset: str | None = None) -> Theme:
    """Return the theme for ``preset``, falling back to the default.

    Args:
        preset: Preset key such as ``"editorial"``; None or unknown keys
            resolve to ``"aurora"``.
    Returns:
        Theme instance.

    Example:
        >>> get_theme("editorial").name
        'Editorial Amber'
        >>> get_theme("no-such-theme").id
        'aurora'
    """

    if not preset:
        return THEME_DEFINITIONS[DEFAULT_PRESET]
    return THEME_DEFINITIONS.get(preset, THEME_DEFINITIONS[DEFAULT_PRESET])
