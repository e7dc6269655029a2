from collections.abc import Iterable
from dataclasses import dataclass

from termglyph.model import Cell, CellColour

RESET = "\033[0m"


def sgr(*params: int) -> str:
    """Select Graphic Rendition escape sequence."""
    return f"\033[{';'.join(str(p) for p in params)}m"


def colour_params(colour: CellColour, background: bool = False) -> tuple[int, ...]:
    """SGR parameters selecting a palette index or an RGB colour."""
    base = 48 if background else 38
    if isinstance(colour, int):
        return (base, 5, colour)
    r, g, b = colour
    return (base, 2, r, g, b)


def colour_sgr(colour: CellColour, background: bool = False) -> str:
    return sgr(*colour_params(colour, background))


@dataclass
class EncoderState:
    """Colours the terminal is currently set to, as last emitted on this line."""

    fg: CellColour = None
    bg: CellColour = None


def encode_line(cells: Iterable[Cell], attributes: tuple[int, ...] = ()) -> tuple[str, ...]:
    """Encode one line of cells into tokens, emitting colour codes only when they change.

    A foreground and background change on the same cell share one escape
    sequence. Lines that set any style end with a reset token so backgrounds
    never bleed past the last cell. Lines without any styling stay plain text.
    """
    state = EncoderState()
    attrs = sgr(*attributes) if attributes else ""
    tokens = []
    styled = bool(attrs)
    if attrs:
        tokens.append(attrs)

    for cell in cells:
        prefix = ""
        # Going back to "no colour" can only be done with a full reset
        if (cell.fg is None and state.fg is not None) or (cell.bg is None and state.bg is not None):
            prefix = RESET + attrs
            state = EncoderState()
        params: list[int] = []
        if cell.fg != state.fg:
            params.extend(colour_params(cell.fg))
            state.fg = cell.fg
        if cell.bg != state.bg:
            params.extend(colour_params(cell.bg, background=True))
            state.bg = cell.bg
        if params:
            prefix += sgr(*params)
        if prefix:
            styled = True
        tokens.append(prefix + cell.glyph)

    if styled:
        tokens.append(RESET)
    return tuple(tokens)
