"""Pure viewport math: fit/fill zoom, integer snapping, zoom ladders,
origin clamping and the presentation rectangle in normalized device space."""

from __future__ import annotations

import math

from pixelview.models.document import (PresentationRect, ScreenBox, Size,
                                       ViewGeometry, ViewMode,
                                       is_valid_number)

MAX_ZOOM = 16.0
ZOOM_STEP_BASE = 2.0 ** 0.25  # four stops per doubling
STEP_SNAP_TOLERANCE = 1.0 / 8
DRIFT_TOLERANCE = 0.001
MANUAL_ROUNDING = 0.5
ANIMATION_SPEED = 1.0 / 8
CONVERGENCE_FRACTION = 1.0 / 1024
_SNAP_EPSILON = 1e-9


def raw_size(width: float, height: float, aspect: float = 1.0) -> Size:
    """Document size in square screen pixels at zoom 1.

    Non-square pixels only ever stretch, never shrink, the document.
    """
    if aspect > 1.0:
        return Size(float(width), height * aspect)
    return Size(width / aspect, float(height))


def compute_fit(raw: Size, screen: Size, mode: ViewMode,
                integer: bool = False, max_crop: float = 0.0) -> float:
    """Zoom that fits (whole document visible) or fills (whole screen
    covered) the screen. With integer scaling, up to ``max_crop`` of the
    document may be cut off on the constraining axis."""
    if mode == ViewMode.FREE:
        raise ValueError('free mode has no automatic zoom')
    width, height = raw.width, raw.height
    if integer:
        keep = 1.0 - min(max(max_crop, 0.0), 0.999)
        width *= keep
        height *= keep
    zoom_x = screen.width / width
    zoom_y = screen.height / height
    if mode == ViewMode.FILL:
        return max(zoom_x, zoom_y)
    return min(zoom_x, zoom_y)


def autofit_rounding(zoom: float) -> float:
    """Rounding bias for integer-snapping an automatically fitted zoom.

    Enlarging (zoom >= 1) rounds the factor down; shrinking rounds the
    reciprocal up. Either way the snapped zoom never exceeds the fit.
    """
    return 0.0 if zoom >= 1.0 else 0.999


def snap_zoom(zoom: float, rounding: float = MANUAL_ROUNDING) -> float:
    """Snap to an integer zoom, or to the reciprocal of an integer below 1."""
    if zoom < 1.0:
        n = max(1, math.floor(1.0 / zoom + rounding + _SNAP_EPSILON))
        return 1.0 / n
    return float(max(1, math.floor(zoom + rounding + _SNAP_EPSILON)))


def fix_zoom_drift(zoom: float) -> float:
    """Make zoom values that are almost integral (or almost an integer
    reciprocal) exact, so repeated zoom steps do not accumulate error."""
    if zoom >= 1.0:
        n = round(zoom)
        if abs(zoom - n) < DRIFT_TOLERANCE:
            return float(n)
        return zoom
    inverse = 1.0 / zoom
    n = round(inverse)
    if n >= 1 and abs(inverse - n) < DRIFT_TOLERANCE:
        return 1.0 / n
    return zoom


def minimum_zoom(raw: Size, screen: Size, integer: bool = False) -> float:
    """Smallest zoom that still fills one screen dimension, never above 1."""
    zoom = min(1.0, compute_fit(raw, screen, ViewMode.FIT))
    if integer:
        zoom = snap_zoom(zoom, autofit_rounding(zoom))
    return zoom


def step_index(zoom: float, integer: bool = False) -> float:
    if integer:
        return zoom - 1.0 if zoom >= 1.0 else 1.0 - 1.0 / zoom
    return math.log(zoom) / math.log(ZOOM_STEP_BASE)


def zoom_from_index(index: float, integer: bool = False) -> float:
    if integer:
        return index + 1.0 if index >= 0 else 1.0 / (1.0 - index)
    return ZOOM_STEP_BASE ** index


def step_zoom(zoom: float, direction: float, integer: bool = False) -> float:
    """Move to the next stop of the zoom ladder in the given direction.

    A zoom already within an eighth of a step of a stop counts as sitting
    on that stop; otherwise the first move only reaches the adjacent stop.
    """
    if not direction:
        return zoom
    index = step_index(zoom, integer)
    nearest = round(index)
    if abs(index - nearest) <= STEP_SNAP_TOLERANCE:
        index = nearest
    elif direction > 0:
        index = math.floor(index)
    else:
        index = math.ceil(index)
    steps = max(1, round(abs(direction)))
    index += steps if direction > 0 else -steps
    return fix_zoom_drift(zoom_from_index(index, integer))


def constrain_origin(origin: float, view: float, screen: float,
                     center: bool = False) -> float:
    """Keep the near edge of the document from leaving the screen edge."""
    min_origin = screen - view
    if center or min_origin >= 0.0:
        return min_origin * 0.5
    return min(0.0, max(min_origin, origin))


def relative_position(origin: float, min_origin: float) -> float:
    """Pan position as a fraction in [0, 1]; 0.5 if the axis is not pannable."""
    if min_origin >= 0.0:
        return 0.5
    return min(1.0, max(0.0, origin / min_origin))


def presentation_rect(x0: float, y0: float, width: float, height: float,
                      screen: Size) -> PresentationRect:
    return PresentationRect(
        scale_x=2.0 * width / screen.width,
        scale_y=-2.0 * height / screen.height,
        offset_x=2.0 * x0 / screen.width - 1.0,
        offset_y=1.0 - 2.0 * y0 / screen.height,
    )


def rect_to_pixels(rect: PresentationRect, screen: Size) -> ScreenBox:
    return ScreenBox(
        x=(rect.offset_x + 1.0) * 0.5 * screen.width,
        y=(1.0 - rect.offset_y) * 0.5 * screen.height,
        width=rect.scale_x * 0.5 * screen.width,
        height=-rect.scale_y * 0.5 * screen.height,
    )


def compute_view(raw: Size, screen: Size, mode: ViewMode, zoom: float,
                 x0: float, y0: float, *, integer: bool = False,
                 max_crop: float = 0.0,
                 pivot: tuple[float, float] | None = None,
                 previous: ViewGeometry | None = None) -> ViewGeometry:
    """Recompute zoom, origin and target rectangle for one view state.

    If a pivot is given, the document point under it before the recompute
    (according to ``previous``) stays under it afterwards.
    """
    autofit = mode.is_autofit
    min_zoom = minimum_zoom(raw, screen, integer)

    if autofit:
        new_zoom = compute_fit(raw, screen, mode, integer, max_crop)
        if integer:
            new_zoom = snap_zoom(new_zoom, autofit_rounding(new_zoom))
    else:
        new_zoom = min(MAX_ZOOM, max(min_zoom, zoom))
        if integer:
            new_zoom = snap_zoom(new_zoom, MANUAL_ROUNDING)
    new_zoom = fix_zoom_drift(new_zoom)
    if not is_valid_number(new_zoom):
        new_zoom = previous.zoom if previous else 1.0

    view_width = raw.width * new_zoom
    view_height = raw.height * new_zoom

    if pivot is not None and previous is not None \
            and previous.view_width > 0 and previous.view_height > 0:
        rel_x = (pivot[0] - x0) / previous.view_width
        rel_y = (pivot[1] - y0) / previous.view_height
        x0 = pivot[0] - rel_x * view_width
        y0 = pivot[1] - rel_y * view_height
    x0 = constrain_origin(x0, view_width, screen.width, autofit)
    y0 = constrain_origin(y0, view_height, screen.height, autofit)

    return ViewGeometry(
        zoom=new_zoom,
        x0=x0,
        y0=y0,
        view_width=view_width,
        view_height=view_height,
        min_x0=screen.width - view_width,
        min_y0=screen.height - view_height,
        min_zoom=min_zoom,
        target=presentation_rect(x0, y0, view_width, view_height, screen),
    )


def animate_step(current: PresentationRect, target: PresentationRect,
                 speed: float = ANIMATION_SPEED) -> tuple[PresentationRect, bool]:
    """Move ``current`` a fixed fraction towards ``target``.

    Returns the new rectangle and whether the animation has converged, in
    which case the rectangle is exactly the target.
    """
    moved = PresentationRect(*(
        c + speed * (t - c)
        for c, t in zip(current.as_tuple(), target.as_tuple())))
    remaining = sum(abs(t - m) for m, t in zip(moved.as_tuple(), target.as_tuple()))
    scale = abs(target.scale_x) + abs(target.scale_y)
    if not moved.is_valid or remaining < scale * CONVERGENCE_FRACTION:
        return target, True
    return moved, False
