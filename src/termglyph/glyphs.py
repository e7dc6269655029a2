"""Glyph composition for each rendering mode.

Dot modes binarise every sub-position of a cell and pack the results into a
bitmask; the mask indexes straight into the mode's glyph set.
"""

import numpy as np

from termglyph.charsets import BRAILLE, QUADRANTS, SEXTANTS
from termglyph.model import RenderMode

# Bit index of each sub-position, laid out as (rows, columns) of the sub-cell grid.
# Braille dots are numbered 1-2-3-7 down the left column and 4-5-6-8 down the right;
# bit i set means dot i+1 is raised.
BRAILLE_BITS = np.array([[0, 3], [1, 4], [2, 5], [6, 7]])
QUADRANT_BITS = np.array([[0, 1], [2, 3]])
SEXTANT_BITS = np.array([[0, 1], [2, 3], [4, 5]])

_DOT_MODES = {
    RenderMode.BRAILLE: (BRAILLE_BITS, BRAILLE),
    RenderMode.BLOCK: (QUADRANT_BITS, QUADRANTS),
    RenderMode.UNIBLOCK: (SEXTANT_BITS, SEXTANTS),
}


def select_gradient(luma: np.ndarray, ramp: str) -> np.ndarray:
    """Ramp index for each luminance in 0..255: floor(luma / 255 * (len(ramp) - 1)).

    Takes the unrounded luminance so values just past a band edge land in the
    upper band.
    """
    top = len(ramp) - 1
    index = np.floor(np.asarray(luma, dtype=np.float64) * top / 255).astype(np.int64)
    return np.clip(index, 0, top)


def binarize(luma: np.ndarray, threshold: int) -> np.ndarray:
    """A sub-position is on when its luma is strictly above the threshold."""
    return np.asarray(luma) > threshold


def pack_bits(on: np.ndarray, bits: np.ndarray) -> np.ndarray:
    """Pack (..., sub_h, sub_w) booleans into integer masks using a bit layout."""
    weights = np.left_shift(1, bits)
    return (on.astype(np.int64) * weights).sum(axis=(-2, -1))


def compose(mode: RenderMode, on: np.ndarray) -> np.ndarray:
    """Glyph for every cell of a (rows, cols, sub_h, sub_w) on/off grid."""
    bits, glyph_set = _DOT_MODES[mode]
    table = np.array(list(glyph_set))
    return table[pack_bits(on, bits)]


def braille_glyph(mask: int) -> str:
    return BRAILLE[mask]


def quadrant_glyph(mask: int) -> str:
    return QUADRANTS[mask]


def sextant_glyph(mask: int) -> str:
    return SEXTANTS[mask]
