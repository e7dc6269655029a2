import subprocess
from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from termglyph.bitmap_font import FONT_HEIGHT, FONT_WIDTH, glyph_bitmap
from termglyph.errors import EmptyRamp
from termglyph.model import PatternMetric

# SSIM stabilisers for an 8-bit dynamic range
SSIM_C1 = (0.01 * 255) ** 2
SSIM_C2 = (0.03 * 255) ** 2


def _render_cell(char: str, font: ImageFont.FreeTypeFont, x_offset: int, y_offset: int, size: tuple[int, int]):
    img = Image.new("L", size, 0)
    draw = ImageDraw.Draw(img)
    draw.text((x_offset, y_offset), char, fill=255, font=font)
    return img


def _downsample(img: Image.Image) -> np.ndarray:
    """Box-average a rendered cell down to the pattern grid."""
    small = img.resize((FONT_WIDTH, FONT_HEIGHT), Image.Resampling.BOX)
    return np.asarray(small, dtype=np.uint8)


def fontconfig_match(char: str) -> str | None:
    """Path of a font that fontconfig says can draw char, or None."""
    query = f":charset={ord(char):04x}"
    try:
        result = subprocess.run(["fc-match", "-f", "%{file}", query], capture_output=True, text=True)
    except FileNotFoundError:
        return None
    path = result.stdout.strip()
    return path if result.returncode == 0 and path else None


class _FallbackFonts:
    """Draws characters the primary font lacks, one fitted font per fallback file."""

    def __init__(self, cell_size: tuple[int, int]):
        self.cell_size = cell_size
        self._fitted: dict[str, tuple[ImageFont.FreeTypeFont, int]] = {}

    def _fit(self, path: str) -> tuple[ImageFont.FreeTypeFont, int]:
        # Largest size whose capital height fits the cell, with its baseline offset
        cell_height = self.cell_size[1]
        for size in range(cell_height, 4, -1):
            font = ImageFont.truetype(path, size)
            top, bottom = font.getbbox("M")[1::2]
            if bottom - top <= cell_height:
                return font, -top
        return ImageFont.truetype(path, 6), 0

    def render(self, char: str) -> Image.Image:
        path = fontconfig_match(char)
        if path is None:
            return Image.new("L", self.cell_size, 0)
        if path not in self._fitted:
            self._fitted[path] = self._fit(path)
        font, y_offset = self._fitted[path]
        left, _, right, _ = font.getbbox(char)
        x_offset = (self.cell_size[0] - (right - left)) // 2
        return _render_cell(char, font, x_offset, y_offset, self.cell_size)


@dataclass(frozen=True, eq=False)
class GlyphTable:
    """Luminance patterns for a set of characters, built once and read-only afterwards.

    Patterns are (FONT_HEIGHT, FONT_WIDTH) grids of 0-255 ink values. A cell is
    matched by sampling the image on the same grid and picking the closest pattern.
    """

    chars: tuple[str, ...]
    patterns: np.ndarray  # (num_chars, FONT_HEIGHT, FONT_WIDTH) uint8

    @property
    def grid(self) -> tuple[int, int]:
        """Pattern resolution as (columns, rows)."""
        return FONT_WIDTH, FONT_HEIGHT

    @classmethod
    def from_bitmap_font(cls, characters: str) -> "GlyphTable":
        chars = _unique(characters)
        patterns = np.stack([glyph_bitmap(char) for char in chars])
        return cls._frozen(chars, patterns)

    @classmethod
    def from_font(cls, font_path: str, characters: str, font_size: int = 16) -> "GlyphTable":
        """Rasterise characters with a TrueType font, falling back via fontconfig for missing glyphs."""
        chars = _unique(characters)
        font = ImageFont.truetype(font_path, font_size)
        left, top, right, bottom = font.getbbox("M")
        cell_size = (right - left, bottom - top)
        fallback = _FallbackFonts(cell_size)

        patterns = np.zeros((len(chars), FONT_HEIGHT, FONT_WIDTH), dtype=np.uint8)
        for i, char in enumerate(chars):
            img = _render_cell(char, font, 0, -top, cell_size)
            # Blank ink for a visible character means the font has no glyph for it
            if not char.isspace() and not img.getbbox():
                img = fallback.render(char)
            patterns[i] = _downsample(img)
        return cls._frozen(chars, patterns)

    @classmethod
    def _frozen(cls, chars: tuple[str, ...], patterns: np.ndarray) -> "GlyphTable":
        patterns.setflags(write=False)
        return cls(chars=chars, patterns=patterns)

    def find_nearest(self, window: np.ndarray, metric: PatternMetric = PatternMetric.QUADRANCE) -> str:
        """Best matching character for one (FONT_HEIGHT, FONT_WIDTH) luma window."""
        index = self.find_nearest_grid(np.asarray(window)[np.newaxis, np.newaxis], metric)
        return self.chars[int(index[0, 0])]

    def find_nearest_grid(self, windows: np.ndarray, metric: PatternMetric = PatternMetric.QUADRANCE) -> np.ndarray:
        """Best matching character index for every window.

        windows: (rows, cols, FONT_HEIGHT, FONT_WIDTH) luma values.
        Returns (rows, cols) indices into `chars`. Ties go to the earliest character.
        """
        rows, cols = windows.shape[:2]
        x = windows.reshape(rows * cols, -1).astype(np.int64)
        y = self.patterns.reshape(len(self.chars), -1).astype(np.int64)
        if metric is PatternMetric.SSIM:
            best = structural_similarity(x, y).argmax(axis=1)
        else:
            best = quadrance(x, y).argmin(axis=1)
        return best.reshape(rows, cols)


def quadrance(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Sum of squared differences between every row of x and every row of y.

    Computed in integer arithmetic so results do not depend on how the rows
    are batched.
    """
    xx = (x * x).sum(axis=1)[:, None]
    yy = (y * y).sum(axis=1)[None, :]
    return xx - 2 * (x @ y.T) + yy


def structural_similarity(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Simplified SSIM (alpha = beta = gamma = 1, c3 = c2 / 2) between rows of x and rows of y."""
    n = x.shape[1]
    sx = x.sum(axis=1)[:, None]
    sy = y.sum(axis=1)[None, :]
    sxx = (x * x).sum(axis=1)[:, None]
    syy = (y * y).sum(axis=1)[None, :]
    sxy = x @ y.T

    # Exact integer moments, scaled to means and sample (co)variances
    ux = sx / n
    uy = sy / n
    norm = n * (n - 1)
    var_x = (n * sxx - sx * sx) / norm
    var_y = (n * syy - sy * sy) / norm
    cov = (n * sxy - sx * sy) / norm

    return ((2 * ux * uy + SSIM_C1) * (2 * cov + SSIM_C2)) / ((ux * ux + uy * uy + SSIM_C1) * (var_x + var_y + SSIM_C2))


def _unique(characters: str) -> tuple[str, ...]:
    chars = tuple(dict.fromkeys(characters))
    if not chars:
        raise EmptyRamp("Glyph table needs at least one character")
    return chars
