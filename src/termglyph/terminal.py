import os
import sys
from typing import TextIO

from termglyph.errors import InvalidDimensions
from termglyph.model import RenderedFrame

# Terminal cells are roughly twice as tall as they are wide
CELL_ASPECT = 0.5


def get_terminal_size() -> tuple[int, int]:
    """Return (columns, rows) of the terminal, or (80, 24) if not a tty."""
    if not sys.stdout.isatty():
        return (80, 24)
    size = os.get_terminal_size()
    return (size.columns, size.lines)


def fit_size(image_width: int, image_height: int, width: int | None, height: int | None) -> tuple[int, int]:
    """Fill in a missing output dimension so the image keeps its aspect ratio on screen."""
    if image_width <= 0 or image_height <= 0:
        raise InvalidDimensions(f"Source image must be non-empty, got {image_width}x{image_height}")
    if width is None and height is None:
        width = get_terminal_size()[0]
    if width is None:
        width = max(1, round(height * image_width / image_height / CELL_ASPECT))
    if height is None:
        height = max(1, round(width * image_height / image_width * CELL_ASPECT))
    return width, height


def fit_terminal(image_width: int, image_height: int) -> tuple[int, int]:
    """Largest size that keeps the aspect ratio and fits both terminal columns and rows."""
    columns, rows = get_terminal_size()
    width, height = fit_size(image_width, image_height, columns, None)
    if height > rows:
        width, height = fit_size(image_width, image_height, None, rows)
    return min(width, columns), height


def write_frame(frame: RenderedFrame, stream: TextIO | None = None) -> None:
    stream = stream if stream is not None else sys.stdout
    for tokens in frame.lines:
        stream.write("".join(tokens))
        stream.write("\n")
    stream.flush()
