import pytest

from pixelview.models.render_options import Font, RenderMode, RenderOptions
from pixelview.utils import text_art
from pixelview.utils.text_art import (UnsupportedFormat, cell_size, parse_ansi,
                                      parse_binary, rasterize)


def test_sgr_colors_and_bold():
    rows = parse_ansi(b'\x1b[1;31mA\x1b[0mB', columns=80)
    assert rows[0][0].char == 'A'
    assert rows[0][0].fg == 9
    assert rows[0][1].fg == 7


def test_blink_is_bright_background_with_ice_colors():
    rows = parse_ansi(b'\x1b[5;44mX', columns=80, ice_colors=True)
    assert rows[0][0].bg == 12
    rows = parse_ansi(b'\x1b[5;44mX', columns=80, ice_colors=False)
    assert rows[0][0].bg == 4


def test_lines_wrap_at_column_count():
    rows = parse_ansi(b'ABC', columns=2)
    assert [''.join(c.char for c in row) for row in rows] == ['AB', 'C']


def test_cursor_movement():
    rows = parse_ansi(b'\x1b[2;3HZ\x1b[1;1HA', columns=80)
    assert rows[0][0].char == 'A'
    assert rows[1][2].char == 'Z'


def test_payload_stops_at_eof_marker():
    rows = parse_ansi(b'AB\x1aSAUCE', columns=80)
    assert len(rows) == 1
    assert len(rows[0]) == 2


def test_binary_attributes_map_to_ansi_order():
    rows = parse_binary(b'A\x1fB\x07', columns=160)
    assert rows[0][0].fg == 15
    assert rows[0][0].bg == 4
    assert rows[0][1].char == 'B'


def test_cell_size():
    assert cell_size(RenderOptions()) == (8, 16)
    assert cell_size(RenderOptions(wide_font=True)) == (9, 16)
    assert cell_size(RenderOptions(font_id=int(Font.CP437_80X50))) == (8, 8)


def test_rasterize_size():
    pixels = rasterize(b'hello\r\nworld', 'ansi', RenderOptions(columns=40))
    assert (pixels.width, pixels.height) == (40 * 8, 2 * 16)


def test_ced_mode_forces_columns():
    options = RenderOptions(render_mode=RenderMode.CED)
    pixels = rasterize(b'x', 'ansi', options)
    assert pixels.width == text_art.CED_COLUMNS * 8


def test_unsupported_dialect():
    with pytest.raises(UnsupportedFormat):
        rasterize(b'', 'tundra', RenderOptions())


def test_oversized_canvas_is_rejected_before_drawing():
    with pytest.raises(ValueError):
        rasterize(b'x', 'ansi', RenderOptions(columns=4096, wide_font=True))
    with pytest.raises(ValueError):
        rasterize(b'x\n' * 2000, 'ansi', RenderOptions())
