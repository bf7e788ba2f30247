"""Reader for the SAUCE metadata record appended to text-art files.

The record is the last 128 bytes of the file::

    offset  size  field
         0     5  "SAUCE"
         5     2  version
         7    35  title
        42    20  author
        62    20  group
        82     8  date (CCYYMMDD)
        90     4  original file size
        94     1  data type
        95     1  file type
        96     2  type info 1 (u16, little endian)
        98     6  type info 2-4
       104     1  number of comment lines
       105     1  flags
       106    22  font name (zero-terminated)

Parsing never raises; the outcome only tells the caller how much of the
record could be used.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum

from pixelview.models.render_options import MAX_COLUMNS, Font, RenderOptions

RECORD_SIZE = 128
MAGIC = b'SAUCE'
DATA_TYPE_CHARACTER = 1
DATA_TYPE_BINARY_TEXT = 5
EOF_MARKER = 0x1A

_OFS_DATA_TYPE = 94
_OFS_FILE_TYPE = 95
_OFS_TINFO1 = 96
_OFS_FLAGS = 105
_OFS_FONT_NAME = 106

CODE_PAGES = (437, 737, 775, 850, 852, 855, 857, 860, 861, 862, 863, 865, 866, 869)


class SauceOutcome(str, Enum):
    NO_HEADER = 'no header'
    UNSUPPORTED_TYPE = 'unsupported data/file type'
    IGNORED = 'valid but ignored'
    FONT_UNRESOLVED = 'valid, font unresolved'
    RESOLVED = 'valid and fully resolved'


@dataclass(frozen=True)
class SauceRecord:
    has_record: bool = False
    outcome: SauceOutcome = SauceOutcome.NO_HEADER
    columns: int | None = None
    ice_colors: bool | None = None
    wide_font: bool | None = None
    aspect_correct: bool | None = None
    font_id: int | None = None
    font_name: str = ''


def _tri_state(bits: int, *, on: int, off: int) -> bool | None:
    if bits == on:
        return True
    if bits == off:
        return False
    return None


def parse_sauce(data: bytes, declared_length: int | None = None, *,
                use_record: bool = True) -> SauceRecord:
    """Extract rendering hints from the trailing SAUCE record of ``data``.

    ``declared_length`` limits how much of ``data`` counts as the file, for
    callers that pass a larger buffer.
    """
    length = len(data) if declared_length is None else min(declared_length, len(data))
    if length < RECORD_SIZE:
        return SauceRecord()
    record = bytes(data[length - RECORD_SIZE:length])
    if not record.startswith(MAGIC):
        return SauceRecord()
    if not use_record:
        return SauceRecord(has_record=True, outcome=SauceOutcome.IGNORED)

    data_type = record[_OFS_DATA_TYPE]
    file_type = record[_OFS_FILE_TYPE]
    tinfo1, = struct.unpack_from('<H', record, _OFS_TINFO1)
    if data_type == DATA_TYPE_CHARACTER:
        columns = tinfo1
    elif data_type == DATA_TYPE_BINARY_TEXT:
        columns = 2 * file_type
    else:
        return SauceRecord(has_record=True, outcome=SauceOutcome.UNSUPPORTED_TYPE)
    if not 1 <= columns <= MAX_COLUMNS:
        columns = None

    flags = record[_OFS_FLAGS]
    font_name = record[_OFS_FONT_NAME:].split(b'\0', 1)[0].decode('ascii', errors='replace')
    font_id = resolve_font(font_name)
    return SauceRecord(
        has_record=True,
        outcome=SauceOutcome.FONT_UNRESOLVED if font_id is None else SauceOutcome.RESOLVED,
        columns=columns,
        ice_colors=bool(flags & 1),
        wide_font=_tri_state((flags >> 1) & 3, on=2, off=1),
        aspect_correct=_tri_state((flags >> 3) & 3, on=1, off=2),
        font_id=font_id,
        font_name=font_name,
    )


def canonicalize_font_name(name: str) -> tuple[str, int | None, bool]:
    """Reduce a font name to lowercase letters and digits.

    Returns the canonical string, the last run of digits as a number (if
    any) and whether the name contained a '+'.
    """
    canon = []
    number = None
    in_number = False
    plus = False
    for ch in name:
        if 'A' <= ch <= 'Z' or 'a' <= ch <= 'z':
            canon.append(ch.lower())
            in_number = False
        elif '0' <= ch <= '9':
            canon.append(ch)
            digit = ord(ch) - ord('0')
            number = number * 10 + digit if in_number else digit
            in_number = True
        else:
            if ch == '+':
                plus = True
            in_number = False
    return ''.join(canon), number, plus


def resolve_font(name: str) -> int | None:
    """Map a SAUCE font name to a font id, or None if it is unknown."""
    canon, number, plus = canonicalize_font_name(name)
    if not canon:
        return None
    if 'vga50' in canon or 'ega43' in canon:
        return int(Font.CP437_80X50)
    if canon.startswith('ibm') or 'vga' in canon or 'ega' in canon:
        if number in CODE_PAGES:
            return int(Font[f'CP{number}'])
        return int(Font.CP437)
    if 'topaz' in canon:
        if number == 1:
            return int(Font.TOPAZ500_PLUS if plus else Font.TOPAZ500)
        return int(Font.TOPAZ_PLUS if plus else Font.TOPAZ)
    if 'knight' in canon:
        return int(Font.MICROKNIGHT_PLUS if plus else Font.MICROKNIGHT)
    if 'mosoul' in canon:
        return int(Font.MOSOUL)
    if 'noodle' in canon:
        return int(Font.POT_NOODLE)
    if 'terminus' in canon:
        return int(Font.TERMINUS)
    if 'spleen' in canon:
        return int(Font.SPLEEN)
    return None


def merge_into(options: RenderOptions, record: SauceRecord) -> RenderOptions:
    """Apply the known fields of ``record`` to ``options`` in place."""
    if not (options.use_record and record.has_record):
        return options
    if record.columns is not None and options.auto_columns:
        options.set_option('columns', record.columns)
    if record.ice_colors is not None:
        options.ice_colors = record.ice_colors
    if record.wide_font is not None:
        options.wide_font = record.wide_font
    if record.font_id is not None:
        options.font_id = record.font_id
    return options


def strip_record(data: bytes) -> bytes:
    """Return the payload in front of the EOF marker, without the record."""
    end = data.find(bytes([EOF_MARKER]))
    return data if end < 0 else data[:end]


def tabs_to_spaces(data: bytes) -> bytes:
    """Replace tab characters with spaces up to the EOF marker, leaving the
    SAUCE record behind it untouched."""
    end = data.find(bytes([EOF_MARKER]))
    if end < 0:
        return data.replace(b'\t', b' ')
    return data[:end].replace(b'\t', b' ') + data[end:]
