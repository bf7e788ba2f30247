"""Value types shared by the viewport engine, the controller and the window."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, Flag, auto
from pathlib import Path


class ViewMode(str, Enum):
    FREE = 'free'
    FIT = 'fit'
    FILL = 'fill'
    PANEL = 'panel'

    @property
    def is_autofit(self) -> bool:
        return self in (ViewMode.FIT, ViewMode.FILL, ViewMode.PANEL)


class ViewAction(Flag):
    """Side effects requested together with a view state change."""
    NONE = 0
    FREE = auto()         # switch to free pan/zoom mode
    ANIMATE = auto()      # animate towards the new target
    NO_ANIMATE = auto()   # jump to the new target
    STOP_SCROLL = auto()  # cancel auto-scrolling
    NO_UPDATE = auto()    # skip the view recompute


def is_valid_number(value) -> bool:
    """True for strictly positive finite numbers."""
    try:
        return math.isfinite(value) and value > 0
    except TypeError:
        return False


@dataclass(frozen=True)
class Size:
    width: float
    height: float

    @property
    def is_valid(self) -> bool:
        return is_valid_number(self.width) and is_valid_number(self.height)


ScreenSize = Size


@dataclass(frozen=True)
class Document:
    """A successfully loaded image; replaced as a whole on the next load."""
    width: int
    height: int
    aspect: float = 1.0
    is_text_art: bool = False
    path: Path | None = None

    @property
    def is_valid(self) -> bool:
        return self.width > 0 and self.height > 0 and is_valid_number(self.aspect)


@dataclass
class ViewState:
    mode: ViewMode = ViewMode.FIT
    zoom: float = 1.0
    x0: float = 0.0
    y0: float = 0.0
    integer: bool = False
    max_crop: float = 0.0
    aspect: float = 1.0
    animating: bool = False
    scroll_speed: float = 4.0

    @property
    def is_square_pixels(self) -> bool:
        return 0.9999 <= self.aspect <= 1.0001

    @property
    def want_integer_zoom(self) -> bool:
        # Integer scaling makes no sense once pixels are stretched.
        return self.integer and self.is_square_pixels

    @property
    def is_zoomed(self) -> bool:
        return self.zoom < 0.9999 or self.zoom > 1.0001


@dataclass(frozen=True)
class PresentationRect:
    """Affine map from the unit quad to normalized device coordinates.

    A point ``(u, v)`` of the document quad lands at
    ``(scale_x * u + offset_x, scale_y * v + offset_y)`` in NDC, where
    ``(-1, 1)`` is the upper-left corner of the screen.
    """
    scale_x: float = 2.0
    scale_y: float = -2.0
    offset_x: float = -1.0
    offset_y: float = 1.0

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.scale_x, self.scale_y, self.offset_x, self.offset_y)

    @property
    def is_valid(self) -> bool:
        return all(math.isfinite(v) for v in self.as_tuple()) \
            and self.scale_x != 0 and self.scale_y != 0


FULL_SCREEN_RECT = PresentationRect()


@dataclass(frozen=True)
class ScreenBox:
    """Axis-aligned box in screen pixels, used as a panel clip region."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class Panel:
    area: PresentationRect
    clip: ScreenBox


PanelLayout = tuple[Panel, ...]


@dataclass(frozen=True)
class ViewGeometry:
    """Result of one viewport recompute."""
    zoom: float
    x0: float
    y0: float
    view_width: float
    view_height: float
    min_x0: float
    min_y0: float
    min_zoom: float
    target: PresentationRect = field(default=FULL_SCREEN_RECT)
