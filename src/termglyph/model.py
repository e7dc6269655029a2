from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple, Union

import numpy as np
from PIL import Image

from termglyph.charsets import DEFAULT_RAMP
from termglyph.colour import ColourMode, TrueColour

if TYPE_CHECKING:
    from termglyph.glyph_atlas import GlyphTable

RGB = tuple[int, int, int]
# A cell colour is either a true colour triple or an index into the 256-colour palette
CellColour = Union[RGB, int, None]


class RenderMode(Enum):
    ASCII = "ascii"
    BRAILLE = "braille"
    BLOCK = "block"
    UNIBLOCK = "uniblock"

    @property
    def subdivisions(self) -> tuple[int, int]:
        """Sub-cell grid as (columns, rows)."""
        return _SUBDIVISIONS[self]


_SUBDIVISIONS = {
    RenderMode.ASCII: (1, 1),
    RenderMode.BRAILLE: (2, 4),
    RenderMode.BLOCK: (2, 2),
    RenderMode.UNIBLOCK: (2, 3),
}


class AsciiStrategy(Enum):
    GRADIENT = "gradient"
    PATTERN = "pattern"


class PatternMetric(Enum):
    QUADRANCE = "quadrance"
    SSIM = "ssim"


@dataclass(frozen=True)
class SourceImage:
    """Decoded pixels, row-major, 8 bits per channel. Alpha is ignored."""

    width: int
    height: int
    pixels: np.ndarray  # (height, width, 3 or 4) uint8

    @classmethod
    def from_array(cls, array) -> "SourceImage":
        arr = np.asarray(array)
        if arr.ndim == 2:
            arr = np.repeat(arr[:, :, np.newaxis], 3, axis=2)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"Expected an (H, W), (H, W, 3) or (H, W, 4) array, got shape {arr.shape}")
        arr = np.clip(arr, 0, 255).astype(np.uint8)
        return cls(width=arr.shape[1], height=arr.shape[0], pixels=arr)

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes, channels: int = 3) -> "SourceImage":
        if channels not in (3, 4):
            raise ValueError(f"Unsupported channel count: {channels}")
        expected = width * height * channels
        if len(data) != expected:
            raise ValueError(f"Pixel buffer has {len(data)} bytes, expected {expected}")
        arr = np.frombuffer(data, dtype=np.uint8).reshape(height, width, channels)
        return cls(width=width, height=height, pixels=arr)

    @classmethod
    def from_pil(cls, image: Image.Image) -> "SourceImage":
        return cls.from_array(np.asarray(image.convert("RGB"), dtype=np.uint8))

    @property
    def rgb(self) -> np.ndarray:
        return self.pixels[:, :, :3]


def load_image(path: str | Path) -> SourceImage:
    with Image.open(path) as image:
        return SourceImage.from_pil(image)


@dataclass(frozen=True)
class RenderConfig:
    width: int
    height: int
    mode: RenderMode = RenderMode.ASCII
    colour: ColourMode = field(default_factory=TrueColour)
    brightness: int = 0
    contrast: float = 1.0
    invert: bool = False
    ramp: str = DEFAULT_RAMP
    strategy: AsciiStrategy = AsciiStrategy.GRADIENT
    metric: PatternMetric = PatternMetric.QUADRANCE
    threshold: int = 127
    otsu: bool = False
    luma_weights: tuple[float, float, float] = (0.299, 0.587, 0.114)
    glyph_table: GlyphTable | None = None
    bold: bool = False
    blink: bool = False
    underline: bool = False
    workers: int = 1

    @property
    def attributes(self) -> tuple[int, ...]:
        """SGR codes for the enabled text attributes, in emission order."""
        codes = []
        if self.bold:
            codes.append(1)
        if self.underline:
            codes.append(4)
        if self.blink:
            codes.append(5)
        return tuple(codes)


class Cell(NamedTuple):
    glyph: str
    fg: CellColour = None
    bg: CellColour = None


@dataclass(frozen=True)
class RenderedFrame:
    lines: tuple[tuple[str, ...], ...]

    def text(self) -> str:
        return "\n".join("".join(tokens) for tokens in self.lines)

    def __str__(self) -> str:
        return self.text()

    def save(self, path: str | Path) -> None:
        Path(path).write_text(self.text() + "\n", encoding="utf-8")
