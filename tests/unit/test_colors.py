"""Unit tests for beatkit/tags/colors.py"""
import pytest

from beatkit.tags.colors import (
    PALETTE,
    ContrastParams,
    contrast_ratio,
    darken_hex,
    ensure_contrast,
    normalize_hex,
    palette_color,
    parse_hex,
    readable_text_color,
    string_hash,
)

WHITE = "#ffffff"
BLACK = "#000000"


@pytest.mark.unit
class TestHexParsing:
    def test_short_form(self):
        assert parse_hex("#abc") == (170, 187, 204)

    def test_normalize(self):
        assert normalize_hex("ABCDEF") == "#abcdef"

    @pytest.mark.parametrize("bad", ["", "#12", "#gggggg", "#1234567"])
    def test_invalid(self, bad):
        with pytest.raises(ValueError):
            parse_hex(bad)


@pytest.mark.unit
class TestEnsureContrast:
    def test_legible_color_unchanged(self):
        assert ensure_contrast("#000080", WHITE, ContrastParams()) == "#000080"

    def test_pale_highlight_darkened_for_white_text(self):
        result = ensure_contrast("#fefbc0", WHITE, ContrastParams())
        assert result != "#fefbc0"
        assert contrast_ratio(parse_hex(result), parse_hex(WHITE)) >= 4.5

    @pytest.mark.parametrize("color", sorted(set(PALETTE)) + ["#fefbc0", "#808080"])
    @pytest.mark.parametrize("foreground", [WHITE, BLACK])
    def test_never_less_contrast_than_input(self, color, foreground):
        result = ensure_contrast(color, foreground, ContrastParams())
        fg = parse_hex(foreground)
        assert contrast_ratio(parse_hex(result), fg) >= contrast_ratio(parse_hex(color), fg)

    @pytest.mark.parametrize("color", ["#fefbc0", "#3498db", "#808080", "#1a1a1a"])
    @pytest.mark.parametrize("foreground", [WHITE, BLACK])
    def test_fixed_point(self, color, foreground):
        once = ensure_contrast(color, foreground, ContrastParams())
        assert ensure_contrast(once, foreground, ContrastParams()) == once

    def test_unreachable_returns_input(self):
        params = ContrastParams(min_ratio=21.0)
        assert ensure_contrast("#ABC", "#777777", params) == "#aabbcc"

    def test_params_from_config(self, monkeypatch):
        monkeypatch.setenv("BEATKIT_CONTRAST_MIN_RATIO", "7")
        assert ContrastParams.from_config().min_ratio == 7.0

    def test_invalid_params(self):
        with pytest.raises(ValueError):
            ContrastParams(min_ratio=0.5)


@pytest.mark.unit
class TestPillColors:
    def test_darken(self):
        assert darken_hex("#ffffff", 0.2) == "#cccccc"

    def test_readable_text(self):
        assert readable_text_color("#ffffff") == "#000000"
        assert readable_text_color("#000000") == "#ffffff"

    def test_string_hash_matches_classic_value(self):
        assert string_hash("abc") == 96354

    def test_palette_color_is_stable(self):
        assert palette_color("SMOKE") == palette_color("SMOKE")
        assert palette_color("SMOKE") in PALETTE
