import argparse

import pytest
from PIL import Image

from termglyph import terminal
from termglyph.cli import build_parser, config_from_args, main, parse_rgb
from termglyph.colour import FixedBackground, FixedColours, FixedForeground, NoColour, Terminal256, TrueColour
from termglyph.model import AsciiStrategy, PatternMetric, RenderMode
from termglyph.terminal import fit_size, fit_terminal


@pytest.fixture
def white_png(tmp_path):
    path = tmp_path / "white.png"
    Image.new("RGB", (40, 20), (255, 255, 255)).save(path)
    return path


def test_parse_rgb():
    assert parse_rgb("1,2,3") == (1, 2, 3)
    with pytest.raises(argparse.ArgumentTypeError):
        parse_rgb("1,2")
    with pytest.raises(argparse.ArgumentTypeError):
        parse_rgb("1,2,300")
    with pytest.raises(argparse.ArgumentTypeError):
        parse_rgb("red")


def test_fit_size_keeps_aspect_ratio():
    # Cells are twice as tall as wide, so a 2:1 image fills a square-ish grid
    assert fit_size(200, 100, 40, None) == (40, 10)
    assert fit_size(200, 100, None, 10) == (40, 10)
    assert fit_size(200, 100, 7, 3) == (7, 3)


def test_config_defaults():
    args = build_parser().parse_args(["img.png", "-s", "10"])
    config = config_from_args(args, 100, 100)
    assert (config.width, config.height) == (10, 5)
    assert config.mode is RenderMode.ASCII
    assert config.colour == TrueColour()
    assert config.strategy is AsciiStrategy.GRADIENT
    assert config.threshold == 127


@pytest.mark.parametrize(
    "flags,expected",
    [
        (["-c", "256"], Terminal256()),
        (["-c", "none"], NoColour()),
        (["--fg", "1,2,3"], FixedForeground((1, 2, 3))),
        (["--bg", "4,5,6"], FixedBackground((4, 5, 6))),
        (["--fg", "1,2,3", "--bg", "4,5,6"], FixedColours((1, 2, 3), (4, 5, 6))),
    ],
)
def test_colour_flags(flags, expected):
    args = build_parser().parse_args(["img.png", "-s", "4", "--height", "2", *flags])
    assert config_from_args(args, 10, 10).colour == expected


def test_mode_and_pattern_flags():
    args = build_parser().parse_args(
        ["img.png", "-s", "4", "--height", "2", "-m", "braille", "--pattern", "--ssim", "--otsu", "-i", "-j", "3"]
    )
    config = config_from_args(args, 10, 10)
    assert config.mode is RenderMode.BRAILLE
    assert config.strategy is AsciiStrategy.PATTERN
    assert config.metric is PatternMetric.SSIM
    assert config.otsu
    assert config.invert
    assert config.workers == 3


def test_threshold_and_otsu_are_exclusive():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["img.png", "-t", "50", "--otsu"])


def test_main_writes_frame(white_png, capsys):
    main([str(white_png), "-s", "4", "--height", "2", "-c", "none"])
    assert capsys.readouterr().out == "@@@@\n@@@@\n"


def test_main_writes_output_file(white_png, tmp_path, capsys):
    out = tmp_path / "frame.txt"
    main([str(white_png), "-s", "3", "--height", "1", "-m", "block", "-c", "none", "-o", str(out)])
    assert out.read_text(encoding="utf-8") == "███\n"
    assert capsys.readouterr().out == ""


def test_main_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main([str(tmp_path / "nope.png")])
    assert exc.value.code == 1
    assert "File not found" in capsys.readouterr().err


def test_main_reports_render_errors(white_png, capsys):
    with pytest.raises(SystemExit) as exc:
        main([str(white_png), "-s", "4", "--height", "2", "-r", ""])
    assert exc.value.code == 1
    assert "ramp" in capsys.readouterr().err


def test_main_reports_undecodable_image(tmp_path, capsys):
    path = tmp_path / "broken.png"
    path.write_bytes(b"not an image")
    with pytest.raises(SystemExit):
        main([str(path), "-s", "4"])
    assert "termglyph:" in capsys.readouterr().err


def test_fit_terminal_bounds_both_axes(monkeypatch):
    monkeypatch.setattr(terminal, "get_terminal_size", lambda: (80, 24))
    # Wide images are limited by the columns, tall ones by the rows
    assert fit_terminal(200, 100) == (80, 20)
    assert fit_terminal(100, 200) == (24, 24)


def test_fullscreen_flag_overrides_size(monkeypatch):
    monkeypatch.setattr(terminal, "get_terminal_size", lambda: (80, 24))
    args = build_parser().parse_args(["img.png", "-f", "-s", "10"])
    config = config_from_args(args, 100, 200)
    assert (config.width, config.height) == (24, 24)
