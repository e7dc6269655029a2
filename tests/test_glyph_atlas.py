import subprocess

import numpy as np
import pytest
from PIL import Image

from tests.conftest import FONT_PATH, needs_font
from termglyph import glyph_atlas
from termglyph.bitmap_font import FONT_HEIGHT, FONT_WIDTH, glyph_bitmap
from termglyph.errors import EmptyRamp
from termglyph.glyph_atlas import GlyphTable, _FallbackFonts, fontconfig_match, quadrance, structural_similarity
from termglyph.model import PatternMetric


def _flat(char):
    return glyph_bitmap(char).reshape(1, -1).astype(np.int64)


def test_bitmap_space_is_blank():
    assert glyph_bitmap(" ").sum() == 0


def test_bitmap_values_are_binary():
    bitmap = glyph_bitmap("@")
    assert bitmap.shape == (FONT_HEIGHT, FONT_WIDTH)
    assert set(np.unique(bitmap).tolist()) == {0, 255}


def test_bitmap_column_layout():
    # '|' is a single full-height column in the middle
    bitmap = glyph_bitmap("|")
    assert (bitmap[:, 2] == 255).all()
    assert bitmap[:, [0, 1, 3, 4]].sum() == 0


def test_non_ascii_renders_blank():
    assert glyph_bitmap("é").sum() == 0


def test_table_deduplicates_characters():
    table = GlyphTable.from_bitmap_font("aab a")
    assert table.chars == ("a", "b", " ")
    assert table.patterns.shape == (3, FONT_HEIGHT, FONT_WIDTH)


def test_table_is_read_only():
    table = GlyphTable.from_bitmap_font(" #")
    with pytest.raises(ValueError):
        table.patterns[0, 0, 0] = 1


def test_empty_table_raises():
    with pytest.raises(EmptyRamp):
        GlyphTable.from_bitmap_font("")


def test_quadrance_equal_is_zero():
    assert quadrance(_flat("a"), _flat("a"))[0, 0] == 0


def test_quadrance_prefers_similar_shapes():
    dot = _flat(".")
    assert quadrance(dot, _flat(","))[0, 0] < quadrance(dot, _flat("#"))[0, 0]


def test_find_nearest_quadrance():
    table = GlyphTable.from_bitmap_font("#,?")
    assert table.find_nearest(glyph_bitmap(".")) == ","


def test_ssim_equal_is_one():
    assert structural_similarity(_flat("a"), _flat("a"))[0, 0] == pytest.approx(1.0)


def test_ssim_prefers_similar_shapes():
    b = _flat("B")
    assert structural_similarity(b, _flat("8"))[0, 0] > structural_similarity(b, _flat("."))[0, 0]


def test_find_nearest_ssim():
    table = GlyphTable.from_bitmap_font(".8|")
    assert table.find_nearest(glyph_bitmap("B"), PatternMetric.SSIM) == "8"


def test_find_nearest_exact_match_for_every_glyph():
    chars = "#@%*+=-:. "
    table = GlyphTable.from_bitmap_font(chars)
    windows = np.stack([glyph_bitmap(c) for c in chars]).reshape(1, len(chars), FONT_HEIGHT, FONT_WIDTH)
    index = table.find_nearest_grid(windows)
    assert "".join(table.chars[i] for i in index[0]) == chars


def test_ties_go_to_first_character():
    # Both glyphs are blank in the bitmap font
    table = GlyphTable.from_bitmap_font(" é")
    assert table.find_nearest(np.zeros((FONT_HEIGHT, FONT_WIDTH))) == " "


def test_grid_shape():
    table = GlyphTable.from_bitmap_font(" #")
    index = table.find_nearest_grid(np.zeros((3, 4, FONT_HEIGHT, FONT_WIDTH), dtype=np.uint8))
    assert index.shape == (3, 4)
    assert (index == 0).all()


@needs_font
def test_font_table_shape():
    table = GlyphTable.from_font(FONT_PATH, " #@")
    assert table.chars == (" ", "#", "@")
    assert table.patterns.shape == (3, FONT_HEIGHT, FONT_WIDTH)
    assert table.patterns.dtype == np.uint8


@needs_font
def test_font_table_space_is_blank():
    table = GlyphTable.from_font(FONT_PATH, " @")
    assert table.patterns[0].sum() == 0
    assert table.patterns[1].sum() > 0


@needs_font
def test_font_table_dense_glyph_has_more_ink():
    table = GlyphTable.from_font(FONT_PATH, ".@")
    assert table.patterns[1].sum() > table.patterns[0].sum()


def test_fontconfig_match_without_fc_match(monkeypatch):
    def missing(*args, **kwargs):
        raise FileNotFoundError("fc-match")

    monkeypatch.setattr(glyph_atlas.subprocess, "run", missing)
    assert fontconfig_match("★") is None


def test_fontconfig_match_failure(monkeypatch):
    monkeypatch.setattr(
        glyph_atlas.subprocess, "run", lambda args, **kw: subprocess.CompletedProcess(args, 1, stdout="", stderr="")
    )
    assert fontconfig_match("★") is None


def test_fontconfig_match_returns_path(monkeypatch):
    calls = []

    def run(args, **kwargs):
        calls.append(args)
        return subprocess.CompletedProcess(args, 0, stdout="/fonts/Symbols.ttf\n", stderr="")

    monkeypatch.setattr(glyph_atlas.subprocess, "run", run)
    assert fontconfig_match("★") == "/fonts/Symbols.ttf"
    assert calls[0][-1] == ":charset=2605"


def test_fallback_without_match_is_blank(monkeypatch):
    monkeypatch.setattr(glyph_atlas, "fontconfig_match", lambda char: None)
    img = _FallbackFonts((6, 9)).render("★")
    assert img.size == (6, 9)
    assert img.getbbox() is None


@needs_font
def test_fallback_draws_with_matched_font(monkeypatch):
    monkeypatch.setattr(glyph_atlas, "fontconfig_match", lambda char: FONT_PATH)
    fonts = _FallbackFonts((10, 16))
    img = fonts.render("@")
    assert img.size == (10, 16)
    assert img.getbbox() is not None
    # The fitted font is reused for later characters from the same file
    fonts.render("#")
    assert list(fonts._fitted) == [FONT_PATH]


@needs_font
def test_from_font_uses_fallback_for_blank_glyphs(monkeypatch):
    drawn = []

    def fallback(self, char):
        drawn.append(char)
        return Image.new("L", self.cell_size, 255)

    monkeypatch.setattr(glyph_atlas, "_render_cell", lambda char, font, x, y, size: Image.new("L", size, 0))
    monkeypatch.setattr(_FallbackFonts, "render", fallback)
    table = GlyphTable.from_font(FONT_PATH, "A ")
    # Whitespace is blank on purpose and never goes to the fallback
    assert drawn == ["A"]
    assert (table.patterns[0] == 255).all()
    assert (table.patterns[1] == 0).all()
