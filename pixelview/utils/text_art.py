"""Minimal built-in rasterizer for ANSI/ASCII and BIN text art.

This covers the common case of CP437 text with SGR colors. The loader
accepts any other callable with the same signature for other dialects.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from PIL import Image as pilimage
from PIL import ImageDraw, ImageFont

from pixelview.models.render_options import Font, RenderMode, RenderOptions
from pixelview.utils.pixel_buffer import MAX_DIMENSION, PixelBuffer
from pixelview.utils.sauce import strip_record

MAX_ROWS = 8192
DEFAULT_COLUMNS = 80
DEFAULT_BINARY_COLUMNS = 160
CED_COLUMNS = 78

VGA_RGB = [
    (0, 0, 0), (170, 0, 0), (0, 170, 0), (170, 85, 0),
    (0, 0, 170), (170, 0, 170), (0, 170, 170), (170, 170, 170),
    (85, 85, 85), (255, 85, 85), (85, 255, 85), (255, 255, 85),
    (85, 85, 255), (255, 85, 255), (85, 255, 255), (255, 255, 255),
]
WORKBENCH_RGB = [
    (170, 170, 170), (0, 0, 0), (255, 255, 255), (102, 136, 187),
    (0, 0, 255), (255, 0, 255), (0, 255, 255), (255, 255, 255),
] * 2

# VGA attribute color order -> ANSI color order (swap red and blue bits)
VGA_TO_ANSI = [0, 4, 2, 6, 1, 5, 3, 7, 8, 12, 10, 14, 9, 13, 11, 15]
CED_COLORS = ((0, 0, 0), (170, 170, 170))

CSI_PATTERN = re.compile(rb'\x1b\[([0-9;?]*)([@-~])')


class UnsupportedFormat(ValueError):
    pass


@dataclass
class Cell:
    char: str
    fg: int
    bg: int


def cell_size(options: RenderOptions) -> tuple[int, int]:
    height = 8 if options.font_id == Font.CP437_80X50 else 16
    width = 9 if options.wide_font else 8
    return width, height


def effective_columns(options: RenderOptions) -> int:
    if options.render_mode == RenderMode.CED:
        return CED_COLUMNS
    return max(1, options.columns)


def _params(raw: bytes, default: int) -> list[int]:
    values = []
    for part in raw.decode('ascii', errors='ignore').lstrip('?').split(';'):
        values.append(int(part) if part.isdigit() else default)
    return values or [default]


def parse_ansi(data: bytes, columns: int, ice_colors: bool = True) -> list[list[Cell]]:
    """Interpret CP437 text with ANSI escape sequences into a cell grid."""
    data = strip_record(data)
    rows: list[list[Cell]] = []
    x = y = 0
    saved = (0, 0)
    fg, bg, bold, blink = 7, 0, False, False

    def put(ch: str):
        nonlocal x, y
        if y >= MAX_ROWS:
            return
        while len(rows) <= y:
            rows.append([])
        row = rows[y]
        while len(row) <= x:
            row.append(Cell(' ', 7, 0))
        fore = fg + 8 if bold else fg
        back = bg + 8 if (blink and ice_colors) else bg
        row[x] = Cell(ch, fore, back)
        x += 1
        if x >= columns:
            x = 0
            y += 1

    pos = 0
    while pos < len(data):
        byte = data[pos]
        if byte == 0x1B:
            match = CSI_PATTERN.match(data, pos)
            if not match:
                pos += 1
                continue
            pos = match.end()
            command = match.group(2)
            if command == b'm':
                for code in _params(match.group(1), 0):
                    if code == 0:
                        fg, bg, bold, blink = 7, 0, False, False
                    elif code == 1:
                        bold = True
                    elif code == 5:
                        blink = True
                    elif code in (22, 25):
                        bold = bold and code != 22
                        blink = blink and code != 25
                    elif 30 <= code <= 37:
                        fg = code - 30
                    elif code == 39:
                        fg = 7
                    elif 40 <= code <= 47:
                        bg = code - 40
                    elif code == 49:
                        bg = 0
            elif command in b'ABCD':
                n = max(1, _params(match.group(1), 1)[0])
                if command == b'A':
                    y = max(0, y - n)
                elif command == b'B':
                    y += n
                elif command == b'C':
                    x = min(columns - 1, x + n)
                else:
                    x = max(0, x - n)
            elif command in b'Hf':
                params = _params(match.group(1), 1) + [1]
                y = max(0, params[0] - 1)
                x = min(columns - 1, max(0, params[1] - 1))
            elif command == b's':
                saved = (x, y)
            elif command == b'u':
                x, y = saved
            elif command == b'J' and _params(match.group(1), 0)[0] == 2:
                rows.clear()
                x = y = 0
            continue
        pos += 1
        if byte == 0x0D:
            x = 0
        elif byte == 0x0A:
            x = 0
            y += 1
        elif byte == 0x09:
            for _ in range(8 - x % 8):
                put(' ')
        else:
            put(bytes([byte]).decode('cp437'))
    return rows


def parse_binary(data: bytes, columns: int, ice_colors: bool = True) -> list[list[Cell]]:
    """Interpret character/attribute byte pairs into a cell grid."""
    data = strip_record(data)
    rows: list[list[Cell]] = []
    for index in range(0, len(data) - 1, 2):
        if index // 2 // columns >= MAX_ROWS:
            break
        if index // 2 % columns == 0:
            rows.append([])
        attr = data[index + 1]
        bg = attr >> 4 if ice_colors else (attr >> 4) & 7
        char = bytes([data[index]]).decode('cp437')
        rows[-1].append(Cell(char, VGA_TO_ANSI[attr & 15], VGA_TO_ANSI[bg]))
    return rows


def pick_mono_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Return a monospace font, falling back to Pillow's default."""
    for name in ('DejaVuSansMono.ttf', 'Consolas.ttf', 'cour.ttf'):
        try:
            return ImageFont.truetype(name, size=size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def draw_cells(rows: list[list[Cell]], columns: int,
               options: RenderOptions) -> pilimage.Image:
    cell_w, cell_h = cell_size(options)
    height = max(1, len(rows))
    if columns * cell_w > MAX_DIMENSION or height * cell_h > MAX_DIMENSION:
        raise ValueError(f'text art too large ({columns}x{height} cells)')
    palette = VGA_RGB
    if options.render_mode == RenderMode.WORKBENCH:
        palette = WORKBENCH_RGB
    ced = options.render_mode == RenderMode.CED
    background = CED_COLORS[1] if ced else palette[0]
    image = pilimage.new('RGB', (columns * cell_w, height * cell_h), background)
    draw = ImageDraw.Draw(image)
    font = pick_mono_font(cell_h - 2)
    for row_index, row in enumerate(rows):
        top = row_index * cell_h
        for col_index, cell in enumerate(row[:columns]):
            left = col_index * cell_w
            fg, bg = CED_COLORS if ced else (palette[cell.fg], palette[cell.bg])
            if bg != background:
                draw.rectangle((left, top, left + cell_w - 1, top + cell_h - 1), fill=bg)
            if not cell.char.isspace():
                draw.text((left, top), cell.char, fill=fg, font=font)
    return image


def rasterize(data: bytes, fmt: str, options: RenderOptions) -> PixelBuffer:
    """Render text art bytes of the given dialect into RGBA pixels."""
    if fmt == 'binary':
        columns = effective_columns(options)
        rows = parse_binary(data, columns, options.ice_colors)
    elif fmt == 'ansi':
        columns = effective_columns(options)
        rows = parse_ansi(data, columns, options.ice_colors)
    else:
        raise UnsupportedFormat(f'no built-in renderer for {fmt} files')
    return PixelBuffer.from_pil(draw_cells(rows, columns, options))
