import argparse
import sys
from pathlib import Path

from termglyph.charsets import DEFAULT_RAMP
from termglyph.colour import (
    FixedBackground,
    FixedColours,
    FixedForeground,
    NoColour,
    Terminal256,
    TrueColour,
)
from termglyph.converter import render
from termglyph.errors import RenderError
from termglyph.glyph_atlas import GlyphTable
from termglyph.model import AsciiStrategy, PatternMetric, RenderConfig, RenderMode, load_image
from termglyph.terminal import fit_size, fit_terminal, write_frame

COLOUR_MODES = {"truecolor": TrueColour, "256": Terminal256, "none": NoColour}


def parse_rgb(value: str) -> tuple[int, int, int]:
    parts = value.split(",")
    try:
        rgb = tuple(int(p) for p in parts)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected R,G,B integers, got {value!r}") from None
    if len(rgb) != 3 or not all(0 <= v <= 255 for v in rgb):
        raise argparse.ArgumentTypeError(f"Expected three values between 0 and 255, got {value!r}")
    return rgb


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render an image as coloured text for the terminal")
    parser.add_argument("image", help="Path to input image")
    parser.add_argument(
        "-m",
        "--mode",
        default="ascii",
        choices=[m.value for m in RenderMode],
        help="Glyph set to render with (default: ascii)",
    )
    parser.add_argument(
        "-s", "--size", type=int, default=None, help="Output width in columns (default: terminal width)"
    )
    parser.add_argument("--height", type=int, default=None, help="Output height in rows (default: keep aspect ratio)")
    parser.add_argument(
        "-f", "--fullscreen", action="store_true", default=False, help="Fit the whole terminal, ignoring -s/--height"
    )
    parser.add_argument(
        "-c", "--colour", default="truecolor", choices=sorted(COLOUR_MODES), help="Colour output (default: truecolor)"
    )
    parser.add_argument("--fg", type=parse_rgb, default=None, help="Fixed foreground colour as R,G,B")
    parser.add_argument("--bg", type=parse_rgb, default=None, help="Fixed background colour as R,G,B")
    parser.add_argument("-b", "--brightness", type=int, default=0, help="Brightness offset added to each channel")
    parser.add_argument("-k", "--contrast", type=float, default=1.0, help="Contrast factor around mid-grey")
    parser.add_argument("-i", "--invert", action="store_true", default=False, help="Invert image colours")
    threshold = parser.add_mutually_exclusive_group()
    threshold.add_argument(
        "-t", "--threshold", type=int, default=127, help="Dot threshold for braille/block/uniblock (default: 127)"
    )
    threshold.add_argument(
        "--otsu", action="store_true", default=False, help="Pick the dot threshold with Otsu's method"
    )
    parser.add_argument("-r", "--ramp", default=DEFAULT_RAMP, help="Ascii characters from lightest to densest ink")
    parser.add_argument(
        "--pattern", action="store_true", default=False, help="Match ascii glyph shapes, not brightness"
    )
    parser.add_argument("--ssim", action="store_true", default=False, help="Use structural similarity for --pattern")
    parser.add_argument("--font", default=None, help="TrueType font to rasterise --pattern glyphs with")
    parser.add_argument("--bold", action="store_true", default=False)
    parser.add_argument("--blink", action="store_true", default=False)
    parser.add_argument("--underline", action="store_true", default=False)
    parser.add_argument("-j", "--workers", type=int, default=1, help="Worker threads (default: 1)")
    parser.add_argument("-o", "--output", default=None, help="Write to a file instead of stdout")
    return parser


def _colour_mode(args):
    if args.fg is not None and args.bg is not None:
        return FixedColours(args.fg, args.bg)
    if args.fg is not None:
        return FixedForeground(args.fg)
    if args.bg is not None:
        return FixedBackground(args.bg)
    return COLOUR_MODES[args.colour]()


def config_from_args(args, image_width: int, image_height: int) -> RenderConfig:
    if args.fullscreen:
        width, height = fit_terminal(image_width, image_height)
    else:
        width, height = fit_size(image_width, image_height, args.size, args.height)
    glyph_table = None
    if args.pattern and args.font is not None:
        glyph_table = GlyphTable.from_font(args.font, args.ramp)
    return RenderConfig(
        width=width,
        height=height,
        mode=RenderMode(args.mode),
        colour=_colour_mode(args),
        brightness=args.brightness,
        contrast=args.contrast,
        invert=args.invert,
        ramp=args.ramp,
        strategy=AsciiStrategy.PATTERN if args.pattern else AsciiStrategy.GRADIENT,
        metric=PatternMetric.SSIM if args.ssim else PatternMetric.QUADRANCE,
        threshold=args.threshold,
        otsu=args.otsu,
        glyph_table=glyph_table,
        bold=args.bold,
        blink=args.blink,
        underline=args.underline,
        workers=args.workers,
    )


def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)

    image_path = Path(args.image)
    if not image_path.exists():
        print(f"File not found: {image_path}", file=sys.stderr)
        sys.exit(1)

    try:
        image = load_image(image_path)
        config = config_from_args(args, image.width, image.height)
        frame = render(image, config)
    except (RenderError, OSError) as e:
        print(f"termglyph: {e}", file=sys.stderr)
        sys.exit(1)

    if args.output is not None:
        frame.save(args.output)
    else:
        write_frame(frame)
