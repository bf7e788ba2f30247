import struct

import pytest

from pixelview.models.render_options import Font, RenderOptions
from pixelview.utils.sauce import (RECORD_SIZE, SauceOutcome, SauceRecord,
                                   canonicalize_font_name, merge_into,
                                   parse_sauce, resolve_font, strip_record,
                                   tabs_to_spaces)


def make_record(data_type=1, file_type=1, tinfo1=80, flags=0, font=b'IBM VGA'):
    record = bytearray(RECORD_SIZE)
    record[0:7] = b'SAUCE00'
    record[94] = data_type
    record[95] = file_type
    struct.pack_into('<H', record, 96, tinfo1)
    record[105] = flags
    record[106:106 + len(font)] = font
    return bytes(record)


def make_file(payload=b'\x1b[31mhello\r\n', **kwargs):
    return payload + b'\x1a' + make_record(**kwargs)


def test_short_buffer_has_no_header():
    record = parse_sauce(b'SAUCE00' + bytes(50))
    assert record.outcome == SauceOutcome.NO_HEADER
    assert record.has_record is False


def test_missing_magic_has_no_header():
    assert parse_sauce(bytes(400)).outcome == SauceOutcome.NO_HEADER


def test_character_record_is_resolved():
    record = parse_sauce(make_file())
    assert record.outcome == SauceOutcome.RESOLVED
    assert record.columns == 80
    assert record.font_id == Font.CP437
    assert record.font_name == 'IBM VGA'


def test_binary_text_columns_from_file_type():
    record = parse_sauce(make_file(data_type=5, file_type=80, tinfo1=0))
    assert record.columns == 160


def test_flags():
    record = parse_sauce(make_file(flags=1 | (2 << 1) | (1 << 3)))
    assert record.ice_colors is True
    assert record.wide_font is True
    assert record.aspect_correct is True

    record = parse_sauce(make_file(flags=(1 << 1) | (2 << 3)))
    assert record.ice_colors is False
    assert record.wide_font is False
    assert record.aspect_correct is False

    record = parse_sauce(make_file(flags=0))
    assert record.wide_font is None
    assert record.aspect_correct is None


def test_unsupported_data_type():
    record = parse_sauce(make_file(data_type=2))
    assert record.has_record
    assert record.outcome == SauceOutcome.UNSUPPORTED_TYPE
    assert record.columns is None


def test_record_ignored_when_disabled():
    record = parse_sauce(make_file(), use_record=False)
    assert record.has_record
    assert record.outcome == SauceOutcome.IGNORED
    assert record.columns is None


def test_unknown_font_is_unresolved():
    record = parse_sauce(make_file(font=b'Comic Sans'))
    assert record.outcome == SauceOutcome.FONT_UNRESOLVED
    assert record.font_id is None
    assert record.columns == 80


def test_declared_length_limits_the_buffer():
    data = make_file() + b'trailing garbage'
    assert parse_sauce(data).outcome == SauceOutcome.NO_HEADER
    assert parse_sauce(data, declared_length=len(data) - 16).outcome == SauceOutcome.RESOLVED


def test_canonicalize_font_name():
    assert canonicalize_font_name('IBM VGA50 437') == ('ibmvga50437', 437, False)
    assert canonicalize_font_name('Topaz+1') == ('topaz1', 1, True)
    assert canonicalize_font_name('') == ('', None, False)


@pytest.mark.parametrize("name, font", [
    ('IBM VGA', Font.CP437),
    ('IBM VGA50', Font.CP437_80X50),
    ('IBM EGA43', Font.CP437_80X50),
    ('IBM VGA 850', Font.CP850),
    ('IBM VGA 999', Font.CP437),
    ('Amiga Topaz 1', Font.TOPAZ500),
    ('Topaz+1', Font.TOPAZ500_PLUS),
    ('Amiga Topaz 2+', Font.TOPAZ_PLUS),
    ('Amiga MicroKnight+', Font.MICROKNIGHT_PLUS),
    ("Amiga mOsOul", Font.MOSOUL),
    ('Amiga P0T-NOoDLE', Font.POT_NOODLE),
    ('Terminus', Font.TERMINUS),
])
def test_resolve_font(name, font):
    assert resolve_font(name) == font


def test_resolve_font_unknown():
    assert resolve_font('Comic Sans') is None
    assert resolve_font('+++') is None


def test_merge_fills_options():
    options = RenderOptions()
    merge_into(options, parse_sauce(make_file(tinfo1=132, flags=2 << 1, font=b'IBM VGA50')))
    assert options.columns == 132
    assert options.wide_font is True
    assert options.ice_colors is False
    assert options.font_id == Font.CP437_80X50


def test_merge_respects_fixed_columns_and_disabled_record():
    options = RenderOptions(auto_columns=False, columns=100)
    merge_into(options, parse_sauce(make_file(tinfo1=132)))
    assert options.columns == 100

    options = RenderOptions(use_record=False)
    merge_into(options, parse_sauce(make_file(tinfo1=132)))
    assert options.columns == 80


def test_strip_record_and_tabs():
    data = make_file(payload=b'a\tb')
    assert strip_record(data) == b'a\tb'
    converted = tabs_to_spaces(data)
    assert converted.startswith(b'a b\x1a')
    assert converted[-RECORD_SIZE:] == data[-RECORD_SIZE:]
    assert tabs_to_spaces(b'\t\t') == b'  '


@pytest.mark.parametrize("tinfo1", [0, 60000])
def test_out_of_range_columns_are_discarded(tinfo1):
    record = parse_sauce(make_file(tinfo1=tinfo1))
    assert record.outcome == SauceOutcome.RESOLVED
    assert record.columns is None
    options = merge_into(RenderOptions(), record)
    assert options.columns == 80


def test_merge_validates_columns():
    record = SauceRecord(has_record=True, outcome=SauceOutcome.RESOLVED, columns=60000)
    assert merge_into(RenderOptions(), record).columns == 80
