"""Rendering knobs for text-art documents and the font catalogue."""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import IntEnum


class RenderMode(IntEnum):
    NORMAL = 0
    CED = 1        # black on gray, forced 78 columns
    WORKBENCH = 3  # Amiga Workbench palette


class Font(IntEnum):
    CP437 = 0
    CP437_80X50 = 1
    CP737 = 2
    CP775 = 3
    CP850 = 4
    CP852 = 5
    CP855 = 6
    CP857 = 7
    CP860 = 8
    CP861 = 9
    CP862 = 10
    CP863 = 11
    CP865 = 12
    CP866 = 13
    CP869 = 14
    TERMINUS = 20
    SPLEEN = 21
    MICROKNIGHT = 30
    MICROKNIGHT_PLUS = 31
    MOSOUL = 32
    POT_NOODLE = 33
    TOPAZ = 34
    TOPAZ_PLUS = 35
    TOPAZ500 = 36
    TOPAZ500_PLUS = 37


FONT_NAMES = {
    Font.CP437: 'IBM PC 80x25 (code page 437)',
    Font.CP437_80X50: 'IBM PC 80x50 (code page 437)',
    Font.CP737: 'IBM PC Greek (code page 737)',
    Font.CP775: 'IBM PC Baltic (code page 775)',
    Font.CP850: 'IBM PC Latin-1 (code page 850)',
    Font.CP852: 'IBM PC Latin-2 (code page 852)',
    Font.CP855: 'IBM PC Cyrillic (code page 855)',
    Font.CP857: 'IBM PC Turkish (code page 857)',
    Font.CP860: 'IBM PC Portuguese (code page 860)',
    Font.CP861: 'IBM PC Icelandic (code page 861)',
    Font.CP862: 'IBM PC Hebrew (code page 862)',
    Font.CP863: 'IBM PC French-Canadian (code page 863)',
    Font.CP865: 'IBM PC Nordic (code page 865)',
    Font.CP866: 'IBM PC Cyrillic (code page 866)',
    Font.CP869: 'IBM PC Greek (code page 869)',
    Font.TERMINUS: 'Terminus',
    Font.SPLEEN: 'Spleen',
    Font.MICROKNIGHT: 'Amiga MicroKnight',
    Font.MICROKNIGHT_PLUS: 'Amiga MicroKnight+',
    Font.MOSOUL: "Amiga mO'sOul",
    Font.POT_NOODLE: 'Amiga P0T-NOoDLE',
    Font.TOPAZ: 'Amiga Topaz 1200',
    Font.TOPAZ_PLUS: 'Amiga Topaz 1200+',
    Font.TOPAZ500: 'Amiga Topaz 500',
    Font.TOPAZ500_PLUS: 'Amiga Topaz 500+',
}


def font_list() -> list[tuple[int, str]]:
    """(font id, human-readable name) pairs in id order."""
    return [(int(font), FONT_NAMES[font]) for font in Font]


def font_name(font_id: int) -> str:
    try:
        return FONT_NAMES[Font(font_id)]
    except ValueError:
        return f'unknown font #{font_id}'


MAX_COLUMNS = 4096

# name -> (min, max) accepted by RenderOptions.set_option()
OPTION_RANGES = {
    'tabs_to_spaces': (0, 1),
    'use_record': (0, 1),
    'wide_font': (0, 1),
    'ice_colors': (0, 1),
    'font_id': (0, max(Font)),
    'auto_columns': (0, 1),
    'columns': (1, MAX_COLUMNS),
    'render_mode': (0, max(RenderMode)),
}

# short names accepted in config files as "ansi_<name>"
OPTION_ALIASES = {
    'tabs': 'tabs_to_spaces',
    'sauce': 'use_record',
    '9col': 'wide_font',
    'ice': 'ice_colors',
    'font': 'font_id',
    'autocols': 'auto_columns',
    'mode': 'render_mode',
}


@dataclass
class RenderOptions:
    tabs_to_spaces: bool = True
    use_record: bool = True
    wide_font: bool = False
    ice_colors: bool = True
    font_id: int = int(Font.CP437)
    auto_columns: bool = True
    columns: int = 80
    render_mode: RenderMode = RenderMode.NORMAL

    def set_option(self, name: str, value: int) -> bool:
        """Set one option from an integer, rejecting unknown names and
        out-of-range values (the previous value is kept)."""
        name = OPTION_ALIASES.get(name.lower(), name.lower())
        if name not in OPTION_RANGES:
            return False
        lo, hi = OPTION_RANGES[name]
        value = int(value)
        if not lo <= value <= hi:
            return False
        if name == 'font_id':
            try:
                Font(value)
            except ValueError:
                return False
        elif name == 'render_mode':
            try:
                value = RenderMode(value)
            except ValueError:
                return False
        current = getattr(self, name)
        setattr(self, name, bool(value) if isinstance(current, bool) else value)
        return True

    def as_items(self) -> list[tuple[str, int]]:
        return [(f.name, int(getattr(self, f.name))) for f in fields(self)]

    def copy(self) -> 'RenderOptions':
        return RenderOptions(**{f.name: getattr(self, f.name) for f in fields(self)})
