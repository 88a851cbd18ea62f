import pytest

from bookforge.errors import ManuscriptError
from bookforge.pdf.pdf_fonts import resolve_fonts
from bookforge.pdf.pdf_settings import (
    DEFAULT_PDF_CONFIG,
    PageSettings,
    PdfConfig,
    config_to_dict,
    merge_pdf_config,
)
from bookforge.pdf.pdf_themes import THEME_DEFINITIONS, get_theme
from bookforge.pdf.pdf_types import LayoutContext


def test_defaults():
    config = merge_pdf_config()

    assert config == DEFAULT_PDF_CONFIG
    assert config.page_size == "A4"
    assert (config.margins.top, config.margins.left) == (64.0, 60.0)
    assert config.fonts.title.family == "Helvetica" and config.fonts.title.bold
    assert config.fonts.body.family == "TimesRoman" and config.fonts.body.size == 12
    assert config.style_preset == "aurora"
    assert config.page_numbering and not config.drop_caps


def test_nested_partial_override():
    config = merge_pdf_config(
        {"margins": {"left": 30}, "fonts": {"heading": {"family": "Courier"}}, "dropCaps": True}
    )

    assert config.margins.left == 30
    assert config.margins.right == 60.0
    assert config.fonts.heading.family == "Courier"
    assert config.fonts.heading.size == 24.0
    assert config.drop_caps is True


def test_full_config_passes_through():
    config = PdfConfig(page_size="Letter")

    assert merge_pdf_config(config) is config


@pytest.mark.parametrize(
    "overrides",
    [
        {"page_size": "A5"},
        {"fonts": {"body": {"family": "Papyrus"}}},
        {"fonts": {"body": {"size": 0}}},
        {"margins": {"top": -1}},
        {"colour": "red"},
        {"fonts": {"caption": {}}},
    ],
)
def test_invalid_overrides_raise(overrides):
    with pytest.raises(ManuscriptError):
        merge_pdf_config(overrides)


def test_page_geometry_letter():
    settings = PageSettings.from_config(merge_pdf_config({"pageSize": "Letter"}))

    assert (settings.page_width, settings.page_height) == (612.0, 792.0)
    assert settings.body_width == 612.0 - 120.0
    assert settings.top_y == 792.0 - 64.0


def test_unknown_theme_falls_back_to_default():
    assert get_theme("neon-dreams") is THEME_DEFINITIONS["aurora"]
    assert get_theme(None) is THEME_DEFINITIONS["aurora"]
    assert set(THEME_DEFINITIONS) == {"aurora", "editorial", "midnight"}


def test_layout_context_spacing_follows_theme():
    ctx = LayoutContext.from_config(merge_pdf_config({"stylePreset": "midnight"}))

    assert ctx.theme.id == "midnight"
    assert ctx.line_height == pytest.approx(12 * 1.4)
    assert ctx.paragraph_spacing == pytest.approx(12 * 0.6)


def test_fonts_loaded_once_per_family():
    fonts = resolve_fonts(
        merge_pdf_config({"fonts": {"title": {"family": "Courier", "bold": False}}}).fonts
    )

    assert fonts.title.name == "Courier"
    assert fonts.heading.name == "Helvetica-Bold"
    assert fonts.text.italic.name == "Times-Italic"
    assert sorted(fonts.families) == ["Courier", "Helvetica", "TimesRoman"]


def test_config_round_trips_through_dict():
    config = merge_pdf_config({"stylePreset": "editorial", "fonts": {"body": {"size": 11}}})

    assert merge_pdf_config(config_to_dict(config)) == config
