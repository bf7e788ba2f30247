"""Line-oriented display configuration files (``key value``, ``#`` comments).

The same format is used for the per-document sidecar files.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path

from pixelview.models.document import ViewMode, ViewState
from pixelview.models.render_options import RenderOptions

logger = logging.getLogger(__name__)

SIDECAR_SUFFIX = '.pixelview'
HEADER = '# PixelView display configuration file'

TRUE_WORDS = ('yes', 'true', 'on')
FALSE_WORDS = ('no', 'false', 'off')

# key -> (attribute, min, max, scale)
NUMERIC_KEYS = {
    'aspect': ('aspect', 1e-2, 1e+2, 1.0),
    'maxcrop': ('max_crop', 0.0, 99.9, 0.01),
    'zoom': ('zoom', 1e-6, 1e+6, 1.0),
    'relx': ('rel_x', 0.0, 100.0, 0.01),
    'rely': ('rel_y', 0.0, 100.0, 0.01),
    'scrollspeed': ('scroll_speed', 0.0, 1e+10, 1.0),
}


class ConfigParseError(ValueError):
    """One bad line in a configuration file; the line has no effect."""

    def __init__(self, line_number: int, key: str, message: str):
        super().__init__(f'line {line_number}: {message}')
        self.line_number = line_number
        self.key = key


@dataclass
class ViewConfig:
    """Settings read from a configuration file; None means "not given"."""
    mode: ViewMode | None = None
    integer: bool | None = None
    aspect: float | None = None
    max_crop: float | None = None
    zoom: float | None = None
    rel_x: float | None = None
    rel_y: float | None = None
    scroll_speed: float | None = None
    ansi: dict[str, int] = field(default_factory=dict)


def sidecar_path(document_path: Path | str) -> Path:
    document_path = Path(document_path)
    return document_path.with_name(document_path.name + SIDECAR_SUFFIX)


def _parse_float(value: str) -> float | None:
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_config(text: str) -> tuple[ViewConfig, list[ConfigParseError]]:
    """Parse configuration text. Bad lines are collected, never fatal."""
    config = ViewConfig()
    errors: list[ConfigParseError] = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        line = line.split('#', 1)[0].strip().lower()
        if not line:
            continue
        parts = line.split(None, 1)
        key = parts[0]
        value = parts[1].strip() if len(parts) > 1 else ''
        number = _parse_float(value)

        def fail(message):
            errors.append(ConfigParseError(line_number, key, message))

        if key == 'mode':
            try:
                config.mode = ViewMode(value)
            except ValueError:
                fail(f"invalid enumeration value '{value}' for key '{key}'")
        elif key == 'integer':
            if value in TRUE_WORDS or (number is not None and number != 0.0):
                config.integer = True
            elif value in FALSE_WORDS or number == 0.0:
                config.integer = False
            else:
                fail(f"invalid enumeration value '{value}' for key '{key}'")
        elif key in NUMERIC_KEYS:
            attribute, vmin, vmax, scale = NUMERIC_KEYS[key]
            if number is None:
                fail(f"invalid numerical value '{value}' for key '{key}'")
            elif not vmin <= number <= vmax:
                fail(f"numerical value {number:g} for key '{key}' out of range ({vmin:g}...{vmax:g})")
            else:
                setattr(config, attribute, number * scale)
        elif key.startswith('ansi_') and len(key) > 5:
            if number is None or number != int(number):
                fail(f"invalid integer value '{value}' for key '{key}'")
            else:
                config.ansi[key[5:]] = int(number)
        else:
            fail(f"unrecognized key '{key}'")
    return config, errors


def load_config_file(path: Path | str) -> ViewConfig | None:
    """Read and parse a configuration file, logging each bad line.

    Returns None if the file cannot be read.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding='utf-8', errors='replace')
    except OSError as e:
        logger.debug(f"[CONFIG] Could not open config file '{path}': {e}")
        return None
    config, errors = parse_config(text)
    for error in errors:
        logger.warning(f"[CONFIG] {path.name}: {error}")
    logger.info(f"[CONFIG] Loaded configuration from '{path}'")
    return config


def format_config(state: ViewState, *, rel_x: float = 0.5, rel_y: float = 0.5,
                  render_options: RenderOptions | None = None) -> str:
    lines = [HEADER]
    lines.append(f'aspect {state.aspect:.10g}')
    if state.max_crop > 0.0 or (state.mode == ViewMode.FILL and state.integer):
        lines.append(f'maxcrop {state.max_crop * 100.0:.10g}')
    lines.append(f'mode {state.mode.value}')
    lines.append(f"integer {'yes' if state.integer else 'no'}")
    if state.mode == ViewMode.FREE:
        lines.append(f'zoom {state.zoom:.10g}')
        lines.append(f'relx {rel_x * 100.0:.4f}')
        lines.append(f'rely {rel_y * 100.0:.4f}')
    lines.append(f'scrollspeed {state.scroll_speed:.10g}')
    if render_options is not None:
        for name, value in render_options.as_items():
            lines.append(f'ansi_{name} {value}')
    return '\n'.join(lines) + '\n'


def save_config_file(path: Path | str, text: str) -> bool:
    path = Path(path)
    try:
        path.write_text(text, encoding='utf-8')
    except OSError as e:
        logger.warning(f"[CONFIG] Saving config file '{path}' failed: {e}")
        return False
    logger.info(f"[CONFIG] Saved configuration into '{path}'")
    return True
