from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import numpy as np
from PIL import Image

from termglyph.encoder import encode_line
from termglyph.errors import EmptyRamp
from termglyph.glyph_atlas import GlyphTable
from termglyph.glyphs import binarize, compose, select_gradient
from termglyph.model import AsciiStrategy, Cell, RenderConfig, RenderedFrame, RenderMode, SourceImage, load_image
from termglyph.sampling import BoxSampler, luminance, otsu_threshold, to_luma8, validate_dimensions
from termglyph.tone import adjust_tone_array


def _masked_mean(samples: np.ndarray, mask: np.ndarray, fallback: np.ndarray) -> np.ndarray:
    """Average colour of the sub-positions in mask, or the fallback where none are set."""
    m = mask[..., np.newaxis]
    sums = (samples.astype(np.int64) * m).sum(axis=(2, 3))
    counts = m.sum(axis=(2, 3))
    mean = (2 * sums + counts) // (2 * np.maximum(counts, 1))
    return np.where(counts > 0, mean, fallback)


def _cell_mean(samples: np.ndarray) -> np.ndarray:
    sums = samples.astype(np.int64).sum(axis=(2, 3))
    count = samples.shape[2] * samples.shape[3]
    return (2 * sums + count) // (2 * count)


def _colour_values(arr: np.ndarray | None, rows: int, cols: int) -> list:
    if arr is None:
        return [[None] * cols for _ in range(rows)]
    values = arr.tolist()
    if arr.ndim == 3:
        return [[tuple(c) for c in row] for row in values]
    return values


class _Pipeline:
    """Per-cell work for one render call: sample, adjust, select, quantize."""

    def __init__(self, image: SourceImage, config: RenderConfig):
        validate_dimensions(image, config.width, config.height)
        self.config = config
        self.table = None
        self.ramp = None

        if config.mode is RenderMode.ASCII:
            pattern = config.strategy is AsciiStrategy.PATTERN
            if not config.ramp and not (pattern and config.glyph_table is not None):
                raise EmptyRamp("Ascii mode needs a non-empty character ramp")
            if pattern:
                self.table = config.glyph_table or GlyphTable.from_bitmap_font(config.ramp)
                subdivisions = self.table.grid
            else:
                self.ramp = np.array(list(config.ramp))
                subdivisions = (1, 1)
        else:
            subdivisions = config.mode.subdivisions

        self.sampler = BoxSampler(image, config.width, config.height, subdivisions)
        self.threshold = config.threshold
        if config.otsu and config.mode is not RenderMode.ASCII:
            self.threshold = otsu_threshold(self._luma(self._samples(0, config.height)))

    def _samples(self, row_start: int, row_stop: int) -> np.ndarray:
        c = self.config
        return adjust_tone_array(self.sampler.sample(row_start, row_stop), c.brightness, c.contrast, c.invert)

    def _luma(self, samples: np.ndarray) -> np.ndarray:
        return to_luma8(samples, self.config.luma_weights)

    def rows(self, row_start: int, row_stop: int) -> list[list[Cell]]:
        config = self.config
        samples = self._samples(row_start, row_stop)
        luma = self._luma(samples)
        average = _cell_mean(samples)

        if config.mode is RenderMode.ASCII:
            if self.table is not None:
                index = self.table.find_nearest_grid(luma, config.metric)
                glyphs = np.array(self.table.chars)[index]
            else:
                cell_luma = luminance(samples[:, :, 0, 0], config.luma_weights)
                glyphs = self.ramp[select_gradient(cell_luma, config.ramp)]
            fg, bg = config.colour.quantize(average, None)
        else:
            on = binarize(luma, self.threshold)
            glyphs = compose(config.mode, on)
            ink = _masked_mean(samples, on, average)
            paper = _masked_mean(samples, ~on, average)
            fg, bg = config.colour.quantize(ink, paper)

        rows, cols = glyphs.shape
        fg_values = _colour_values(fg, rows, cols)
        bg_values = _colour_values(bg, rows, cols)
        glyph_rows = glyphs.tolist()
        return [
            [Cell(g, f, b) for g, f, b in zip(glyph_rows[r], fg_values[r], bg_values[r])] for r in range(rows)
        ]


def _partition(height: int, workers: int) -> list[tuple[int, int]]:
    """Split output rows into contiguous, non-empty ranges."""
    workers = max(1, min(workers, height))
    bounds = [height * i // workers for i in range(workers + 1)]
    return list(zip(bounds[:-1], bounds[1:]))


def compute_cells(image: SourceImage, config: RenderConfig) -> list[list[Cell]]:
    """Run the per-cell pipeline over the whole output grid, without encoding."""
    pipeline = _Pipeline(image, config)
    ranges = _partition(config.height, config.workers)
    if len(ranges) == 1:
        return pipeline.rows(0, config.height)

    with ThreadPoolExecutor(max_workers=len(ranges)) as pool:
        chunks = list(pool.map(lambda bounds: pipeline.rows(*bounds), ranges))
    return [row for chunk in chunks for row in chunk]


def render(image: SourceImage, config: RenderConfig) -> RenderedFrame:
    """Render an image into lines of glyphs with embedded ANSI colour codes."""
    cells = compute_cells(image, config)
    attributes = config.attributes
    return RenderedFrame(lines=tuple(encode_line(row, attributes) for row in cells))


def image_to_ansi(image: Image.Image | SourceImage | str | Path, config: RenderConfig) -> str:
    if isinstance(image, Image.Image):
        image = SourceImage.from_pil(image)
    elif not isinstance(image, SourceImage):
        image = load_image(image)
    return render(image, config).text()
