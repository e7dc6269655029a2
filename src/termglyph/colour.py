from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

import numpy as np

from termglyph.errors import UnsupportedColourDepth

# xterm defaults for the 16 base colours
BASE_COLOURS = [
    (0, 0, 0),
    (128, 0, 0),
    (0, 128, 0),
    (128, 128, 0),
    (0, 0, 128),
    (128, 0, 128),
    (0, 128, 128),
    (192, 192, 192),
    (128, 128, 128),
    (255, 0, 0),
    (0, 255, 0),
    (255, 255, 0),
    (0, 0, 255),
    (255, 0, 255),
    (0, 255, 255),
    (255, 255, 255),
]
CUBE_LEVELS = (0, 95, 135, 175, 215, 255)


@lru_cache(maxsize=1)
def xterm_palette() -> np.ndarray:
    """The 256-colour terminal palette as a read-only (256, 3) int64 array.

    Enumeration order is the palette index order: 16 base colours, the
    6x6x6 cube (red major), then 24 greys from 8 to 238.
    """
    colours = list(BASE_COLOURS)
    for r in CUBE_LEVELS:
        for g in CUBE_LEVELS:
            for b in CUBE_LEVELS:
                colours.append((r, g, b))
    for i in range(24):
        level = 8 + 10 * i
        colours.append((level, level, level))
    palette = np.array(colours, dtype=np.int64)
    palette.setflags(write=False)
    return palette


def nearest_palette_index(rgb, palette: np.ndarray | None = None) -> np.ndarray:
    """Index of the closest palette entry by Euclidean distance in RGB.

    `rgb` may be a single triple or any array with a trailing axis of 3.
    Ties go to the lowest index.
    """
    if palette is None:
        palette = xterm_palette()
    if len(palette) == 0:
        raise UnsupportedColourDepth("No palette entries available for colour mapping")
    arr = np.asarray(rgb, dtype=np.int64)
    flat = arr.reshape(-1, 3)
    diff = flat[:, np.newaxis, :] - palette[np.newaxis, :, :]
    dist = (diff * diff).sum(axis=2)
    # argmin returns the first occurrence of the minimum
    return dist.argmin(axis=1).reshape(arr.shape[:-1])


def _clamp(arr: np.ndarray) -> np.ndarray:
    return np.clip(arr, 0, 255).astype(np.uint8)


def _constant(shape: tuple[int, ...], rgb: tuple[int, int, int]) -> np.ndarray:
    return np.broadcast_to(_clamp(np.asarray(rgb)), shape[:-1] + (3,)).copy()


class ColourMode(Protocol):
    def quantize(self, fg: np.ndarray, bg: np.ndarray | None) -> tuple[np.ndarray | None, np.ndarray | None]:
        """Map computed (rows, cols, 3) colours to the colours that get encoded.

        Returned arrays are (rows, cols, 3) uint8 for true colour or
        (rows, cols) integer palette indices; None means no colour.
        """
        ...


@dataclass(frozen=True)
class TrueColour:
    def quantize(self, fg, bg):
        return _clamp(fg), None if bg is None else _clamp(bg)


@dataclass(frozen=True)
class Terminal256:
    palette: tuple[tuple[int, int, int], ...] | None = None

    def _table(self) -> np.ndarray:
        if self.palette is None:
            return xterm_palette()
        table = np.array(self.palette, dtype=np.int64).reshape(-1, 3)
        if len(table) == 0:
            raise UnsupportedColourDepth("Terminal256 requested with an empty palette")
        return table

    def quantize(self, fg, bg):
        table = self._table()
        fg_index = nearest_palette_index(fg, table)
        bg_index = None if bg is None else nearest_palette_index(bg, table)
        return fg_index, bg_index


@dataclass(frozen=True)
class FixedForeground:
    colour: tuple[int, int, int]

    def quantize(self, fg, bg):
        return _constant(fg.shape, self.colour), None if bg is None else _clamp(bg)


@dataclass(frozen=True)
class FixedBackground:
    colour: tuple[int, int, int]

    def quantize(self, fg, bg):
        return _clamp(fg), _constant(fg.shape, self.colour)


@dataclass(frozen=True)
class FixedColours:
    foreground: tuple[int, int, int]
    background: tuple[int, int, int]

    def quantize(self, fg, bg):
        return _constant(fg.shape, self.foreground), _constant(fg.shape, self.background)


@dataclass(frozen=True)
class NoColour:
    def quantize(self, fg, bg):
        return None, None
