"""Document loading: extension dispatch, raster decoding and text-art
rendering. Failures are returned as values, never raised."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable

from PIL import Image as pilimage

from pixelview.models.render_options import RenderOptions
from pixelview.utils import text_art
from pixelview.utils.pixel_buffer import MAX_DIMENSION, PixelBuffer
from pixelview.utils.sauce import (SauceRecord, merge_into, parse_sauce,
                                   tabs_to_spaces)

logger = logging.getLogger(__name__)

RASTER_EXTENSIONS = ('bmp', 'gif', 'jpg', 'jpeg', 'png', 'tga', 'psd', 'pcx',
                     'pnm', 'ppm', 'pgm', 'pbm', 'tif', 'tiff', 'webp')
TEXT_ART_EXTENSIONS = ('asc', 'ans', 'adf', 'bin', 'idf', 'pcb', 'tnd', 'xb')
TEXT_ART_DIALECTS = {
    'asc': 'ansi',
    'ans': 'ansi',
    'pcb': 'ansi',
    'bin': 'binary',
    'adf': 'artworx',
    'idf': 'icedraw',
    'tnd': 'tundra',
    'xb': 'xbin',
}

# Pixel aspect of 80x25 text modes on a 4:3 screen.
NARROW_FONT_ASPECT = 1.2   # 640x400
WIDE_FONT_ASPECT = 1.35    # 720x400

Rasterizer = Callable[[bytes, str, RenderOptions], PixelBuffer]


class FileKind(str, Enum):
    RASTER = 'raster'
    TEXT_ART = 'text art'
    UNKNOWN = 'unknown'


def extension(path: Path | str) -> str:
    return Path(path).suffix.lower().lstrip('.')


def file_kind(path: Path | str) -> FileKind:
    ext = extension(path)
    if ext in TEXT_ART_EXTENSIONS:
        return FileKind.TEXT_ART
    if ext in RASTER_EXTENSIONS:
        return FileKind.RASTER
    return FileKind.UNKNOWN


@dataclass(frozen=True)
class LoadedImage:
    pixels: PixelBuffer
    recommended_aspect: float = 1.0
    is_text_art: bool = False
    render_options: RenderOptions | None = None
    record: SauceRecord | None = None

    @property
    def width(self) -> int:
        return self.pixels.width

    @property
    def height(self) -> int:
        return self.pixels.height


@dataclass(frozen=True)
class LoadFailure:
    path: Path
    reason: str

    def __str__(self):
        return f"could not load '{self.path.name}': {self.reason}"


def recommended_aspect(options: RenderOptions, record: SauceRecord | None) -> float:
    if record is not None and record.aspect_correct:
        return WIDE_FONT_ASPECT if options.wide_font else NARROW_FONT_ASPECT
    return 1.0


def _load_raster(path: Path) -> LoadedImage:
    with pilimage.open(path) as image:
        if max(image.size) > MAX_DIMENSION:
            raise ValueError(f'image too large ({image.width}x{image.height})')
        return LoadedImage(pixels=PixelBuffer.from_pil(image))


def _load_text_art(path: Path, options: RenderOptions,
                   overrides: dict[str, int] | None,
                   rasterizer: Rasterizer) -> LoadedImage:
    data = path.read_bytes()
    dialect = TEXT_ART_DIALECTS.get(extension(path), 'ansi')
    record = parse_sauce(data, use_record=options.use_record)
    logger.debug(f"[LOAD] SAUCE record of '{path.name}': {record.outcome.value}")
    merge_into(options, record)
    if options.auto_columns and record.columns is None:
        options.columns = (text_art.DEFAULT_BINARY_COLUMNS if dialect == 'binary'
                           else text_art.DEFAULT_COLUMNS)
    for name, value in (overrides or {}).items():
        if not options.set_option(name, value):
            logger.warning(f"[LOAD] Ignoring invalid render option ansi_{name} {value}")
    cell_width, _ = text_art.cell_size(options)
    columns = text_art.effective_columns(options)
    if columns * cell_width > MAX_DIMENSION:
        raise ValueError(f'{columns} columns exceed the maximum width')
    if options.tabs_to_spaces:
        data = tabs_to_spaces(data)
    pixels = rasterizer(data, dialect, options)
    return LoadedImage(
        pixels=pixels,
        recommended_aspect=recommended_aspect(options, record),
        is_text_art=True,
        render_options=options,
        record=record,
    )


def load_document(path: Path | str, options: RenderOptions | None = None, *,
                  overrides: dict[str, int] | None = None,
                  rasterizer: Rasterizer | None = None) -> LoadedImage | LoadFailure:
    """Load an image or text-art file.

    For text art, ``options`` is copied, completed from the file's SAUCE
    record and then from ``overrides`` (``ansi_*`` values from a sidecar
    file); the effective options are returned with the image.
    """
    path = Path(path)
    try:
        if file_kind(path) == FileKind.TEXT_ART:
            options = (options or RenderOptions()).copy()
            result = _load_text_art(path, options, overrides,
                                    rasterizer or text_art.rasterize)
        else:
            result = _load_raster(path)
    except (OSError, ValueError, MemoryError, pilimage.DecompressionBombError) as e:
        logger.warning(f"[LOAD] Loading '{path}' failed: {e}")
        return LoadFailure(path, str(e) or type(e).__name__)
    if result.width > MAX_DIMENSION or result.height > MAX_DIMENSION:
        reason = f'result too large ({result.width}x{result.height})'
        logger.warning(f"[LOAD] Loading '{path}' failed: {reason}")
        return LoadFailure(path, reason)
    logger.info(f"[LOAD] Loaded '{path.name}' ({result.width}x{result.height} pixels)")
    return result
