"""Session state of the viewer and the intents that change it.

The controller owns the current document, the view state and the render
options. Every intent mutates that state and recomputes the presentation
rectangle through the pure functions in ``utils.viewport`` and
``utils.panel_layout``; the window only reads the result.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from pixelview.models.document import (FULL_SCREEN_RECT, Document, PanelLayout,
                                       PresentationRect, Size, ViewAction,
                                       ViewGeometry, ViewMode, ViewState,
                                       is_valid_number)
from pixelview.models.render_options import RenderOptions
from pixelview.utils.config_file import (ViewConfig, format_config,
                                         load_config_file, save_config_file,
                                         sidecar_path)
from pixelview.utils.loader import LoadedImage, LoadFailure, load_document
from pixelview.utils.panel_layout import compute_panel_layout
from pixelview.utils.pixel_buffer import PixelBuffer
from pixelview.utils.viewport import (animate_step, compute_view, raw_size,
                                      relative_position, step_zoom)

logger = logging.getLogger(__name__)

CURSOR_PAN_STEP = 64.0
CURSOR_PAN_FAST = 4.0
CURSOR_PAN_SLOW = 0.25
SCROLL_SPEED_STEPS = (1, 2, 3, 4, 6, 8, 12, 16, 24)
MIN_ASPECT, MAX_ASPECT = 1e-2, 1e+2
MAX_CROP_LIMIT = 0.999

Loader = Callable[..., LoadedImage | LoadFailure]


class ViewController:
    """Owns the current document, its view state and render options."""

    def __init__(self, *, animate: bool = True, scroll_speed: float = 4.0,
                 default_mode: ViewMode = ViewMode.FIT, integer: bool = False,
                 render_options: RenderOptions | None = None,
                 preserve_render_options: bool = False,
                 loader: Loader = load_document, rasterizer=None):
        self.state = ViewState(mode=default_mode, integer=integer,
                               scroll_speed=scroll_speed)
        self.animate_enabled = animate
        self.document: Document | None = None
        self.pixels: PixelBuffer | None = None
        self.default_render_options = render_options or RenderOptions()
        self.render_options = self.default_render_options.copy()
        self.preserve_render_options = preserve_render_options
        self.screen = Size(0.0, 0.0)
        self.geometry: ViewGeometry | None = None
        self.current_area: PresentationRect = FULL_SCREEN_RECT
        self.target_area: PresentationRect = FULL_SCREEN_RECT
        self._panels: PanelLayout = ()
        self.scroll_x = 0.0
        self.scroll_y = 0.0
        self._wheel_residue = 0.0
        self.load_generation = 0
        self.loading = False
        self.status_message = ''
        self.status_is_error = False
        self._loader = loader
        self._rasterizer = rasterizer

    # ---- queries ----

    @property
    def has_document(self) -> bool:
        return self.document is not None

    @property
    def is_scrolling(self) -> bool:
        return self.scroll_x != 0.0 or self.scroll_y != 0.0

    def presentation(self) -> PresentationRect:
        return self.current_area

    def panels(self) -> PanelLayout:
        return self._panels

    def raw_size(self) -> Size | None:
        if self.document is None:
            return None
        return raw_size(self.document.width, self.document.height, self.state.aspect)

    def panel_available(self) -> bool:
        raw = self.raw_size()
        return raw is not None and self.screen.is_valid \
            and bool(compute_panel_layout(raw, self.screen))

    def screen_center(self) -> tuple[float, float]:
        return (self.screen.width * 0.5, self.screen.height * 0.5)

    # ---- view recompute ----

    def view_cfg(self, actions: ViewAction = ViewAction.NONE,
                 pivot: tuple[float, float] | None = None,
                 use_pivot: bool = True):
        """Apply the side effects in ``actions`` and recompute the view."""
        if ViewAction.FREE in actions:
            self.state.mode = ViewMode.FREE
        if ViewAction.ANIMATE in actions:
            self.state.animating = self.animate_enabled
        if ViewAction.NO_ANIMATE in actions:
            self.state.animating = False
        if ViewAction.STOP_SCROLL in actions:
            self.stop_scroll()
        if ViewAction.NO_UPDATE not in actions:
            self.update_view(use_pivot=use_pivot, pivot=pivot)

    def update_view(self, use_pivot: bool = True,
                    pivot: tuple[float, float] | None = None):
        raw = self.raw_size()
        if raw is None or not self.screen.is_valid or not raw.is_valid:
            return
        if use_pivot and pivot is None:
            pivot = self.screen_center()
        geometry = compute_view(
            raw, self.screen, self.state.mode, self.state.zoom,
            self.state.x0, self.state.y0,
            integer=self.state.want_integer_zoom,
            max_crop=self.state.max_crop,
            pivot=pivot if use_pivot else None,
            previous=self.geometry)
        if not geometry.target.is_valid:
            logger.error(f"[VIEW] Discarding invalid view geometry {geometry}")
            return
        self.geometry = geometry
        self.state.zoom = geometry.zoom
        self.state.x0 = geometry.x0
        self.state.y0 = geometry.y0
        self.target_area = geometry.target
        if self.state.mode == ViewMode.PANEL:
            self._panels = compute_panel_layout(raw, self.screen)
            if not self._panels:
                logger.debug("[VIEW] Panel mode unavailable, showing fit-to-screen")
        else:
            self._panels = ()
        if not self.state.animating or self._panels:
            self.state.animating = False
            self.current_area = self.target_area

    def set_screen_size(self, width: float, height: float):
        screen = Size(float(width), float(height))
        if not screen.is_valid or screen == self.screen:
            return
        self.screen = screen
        self.view_cfg(ViewAction.NO_ANIMATE)

    def tick(self) -> bool:
        """Advance auto-scrolling and animation by one frame.

        Returns True if the presentation changed and needs a repaint.
        """
        changed = False
        if self.is_scrolling:
            changed = self._scroll_step()
        if self.state.animating:
            self.current_area, converged = animate_step(self.current_area, self.target_area)
            if converged:
                self.state.animating = False
            changed = True
        return changed

    # ---- intents ----

    def set_mode(self, mode: ViewMode):
        self.state.mode = ViewMode(mode)
        self.view_cfg(ViewAction.STOP_SCROLL | ViewAction.ANIMATE)

    def cycle_view_mode(self, with_1x: bool = False):
        """Z-key behaviour with ``with_1x`` (1:1 <-> fit), otherwise the
        F-key cycle fit -> fill -> panel (where available) -> fit."""
        if with_1x:
            if self.state.mode != ViewMode.FREE or self.state.is_zoomed:
                self.state.zoom = 1.0
                self.view_cfg(ViewAction.FREE | ViewAction.STOP_SCROLL | ViewAction.ANIMATE)
            else:
                self.set_mode(ViewMode.FIT)
            return
        if self.state.mode == ViewMode.FIT:
            self.set_mode(ViewMode.FILL)
        elif self.state.mode == ViewMode.FILL and self.panel_available():
            self.set_mode(ViewMode.PANEL)
        else:
            self.set_mode(ViewMode.FIT)

    def set_integer(self, integer: bool):
        self.state.integer = bool(integer)
        self.view_cfg(ViewAction.STOP_SCROLL | ViewAction.ANIMATE)

    def set_aspect(self, aspect: float) -> bool:
        if not is_valid_number(aspect) or not MIN_ASPECT <= aspect <= MAX_ASPECT:
            logger.warning(f"[VIEW] Rejecting pixel aspect {aspect!r}")
            return False
        self.state.aspect = float(aspect)
        self.view_cfg(ViewAction.STOP_SCROLL | ViewAction.NO_ANIMATE)
        return True

    def set_max_crop(self, max_crop: float) -> bool:
        if not 0.0 <= max_crop <= MAX_CROP_LIMIT:
            logger.warning(f"[VIEW] Rejecting max. crop {max_crop!r}")
            return False
        self.state.max_crop = float(max_crop)
        self.view_cfg(ViewAction.STOP_SCROLL | ViewAction.ANIMATE)
        return True

    def set_zoom(self, zoom: float) -> bool:
        if not is_valid_number(zoom):
            logger.warning(f"[VIEW] Rejecting zoom factor {zoom!r}")
            return False
        self.state.zoom = float(zoom)
        self.view_cfg(ViewAction.FREE | ViewAction.STOP_SCROLL | ViewAction.NO_ANIMATE)
        return True

    def change_zoom(self, direction: float,
                    pivot: tuple[float, float] | None = None):
        """Zoom one ladder step in or out, keeping the pivot point fixed."""
        if self.document is None or not direction:
            return
        self.state.zoom = step_zoom(self.state.zoom, direction,
                                    self.state.want_integer_zoom)
        self.view_cfg(ViewAction.FREE | ViewAction.STOP_SCROLL | ViewAction.ANIMATE,
                      pivot=pivot)

    def wheel_zoom(self, notches: float,
                   pivot: tuple[float, float] | None = None) -> bool:
        """Collect wheel deltas, in notches, and zoom one ladder step per
        whole notch. Returns True if the zoom changed."""
        self._wheel_residue += notches
        steps = int(self._wheel_residue)
        if not steps:
            return False
        self._wheel_residue -= steps
        self.change_zoom(steps, pivot)
        return True

    def pan(self, dx: float, dy: float, animate: bool = False):
        """Move the document by (dx, dy) screen pixels."""
        if self.document is None:
            return
        self.state.x0 += dx
        self.state.y0 += dy
        actions = ViewAction.FREE | ViewAction.STOP_SCROLL
        actions |= ViewAction.ANIMATE if animate else ViewAction.NO_ANIMATE
        self.view_cfg(actions, use_pivot=False)

    def cursor_pan(self, dx: int, dy: int, fast: bool = False, slow: bool = False):
        """Cursor-key panning; (dx, dy) is the direction to look at."""
        step = CURSOR_PAN_STEP
        if fast:
            step *= CURSOR_PAN_FAST
        elif slow:
            step *= CURSOR_PAN_SLOW
        self.pan(-dx * step, -dy * step, animate=True)

    def move_to_corner(self, end: bool = False):
        """Home (upper-left) or End (lower-right)."""
        if self.document is None or self.geometry is None:
            return
        self.state.x0 = self.geometry.min_x0 if end else 0.0
        self.state.y0 = self.geometry.min_y0 if end else 0.0
        self.view_cfg(ViewAction.FREE | ViewAction.STOP_SCROLL | ViewAction.ANIMATE,
                      use_pivot=False)

    # ---- auto-scrolling ----

    def start_scroll(self, speed: float = 0.0, dx: float = 0.0, dy: float = 0.0) -> bool:
        """Start scrolling in (dx, dy), or in an auto-detected direction.

        The document moves by ``scroll_speed`` pixels per frame; a positive
        direction reveals content to the right/bottom.
        """
        if self.document is None or self.geometry is None:
            return False
        if speed > 0.0:
            self.state.scroll_speed = float(speed)
        if not dx and not dy:
            geometry = self.geometry
            if geometry.min_y0 < 0.0:
                dy = -1.0 if self.state.y0 <= geometry.min_y0 else 1.0
            elif geometry.min_x0 < 0.0:
                dx = -1.0 if self.state.x0 <= geometry.min_x0 else 1.0
            else:
                return False
        self.view_cfg(ViewAction.FREE | ViewAction.NO_ANIMATE | ViewAction.NO_UPDATE)
        self.scroll_x = float(dx)
        self.scroll_y = float(dy)
        return True

    def stop_scroll(self):
        self.scroll_x = self.scroll_y = 0.0

    def toggle_scroll(self):
        if self.is_scrolling:
            self.stop_scroll()
        else:
            self.start_scroll()

    def set_scroll_speed(self, level: int) -> bool:
        """Keys 1..9: pick a speed from the ladder and scroll."""
        if not 1 <= level <= len(SCROLL_SPEED_STEPS):
            return False
        self.state.scroll_speed = float(SCROLL_SPEED_STEPS[level - 1])
        if self.is_scrolling:
            return True
        return self.start_scroll()

    def _scroll_step(self) -> bool:
        if self.document is None:
            self.stop_scroll()
            return False
        before = (self.state.x0, self.state.y0)
        self.state.x0 -= self.scroll_x * self.state.scroll_speed
        self.state.y0 -= self.scroll_y * self.state.scroll_speed
        self.update_view(use_pivot=False)
        self.current_area = self.target_area
        if (self.state.x0, self.state.y0) == before:
            logger.debug("[SCROLL] Reached the edge, stopping")
            self.stop_scroll()
            return False
        return True

    # ---- documents ----

    def load(self, path: Path | str) -> bool:
        """Load a document synchronously; supersedes any pending load."""
        path = Path(path)
        self.load_generation += 1
        generation = self.load_generation
        self.loading = True
        config = load_config_file(sidecar_path(path))
        options = (self.render_options if self.preserve_render_options
                   else self.default_render_options).copy()
        result = self._loader(path, options,
                              overrides=config.ansi if config else None,
                              rasterizer=self._rasterizer)
        return self.finish_load(generation, path, result, config)

    def finish_load(self, generation: int, path: Path,
                    result: LoadedImage | LoadFailure,
                    config: ViewConfig | None = None) -> bool:
        """Install the result of a load, unless a newer load was started."""
        if generation != self.load_generation:
            logger.debug(f"[LOAD] Discarding stale result for '{path}'")
            return False
        self.loading = False
        if isinstance(result, LoadFailure):
            self.unload()
            self.show_status(str(result), error=True)
            return False

        aspect = result.recommended_aspect
        if not is_valid_number(aspect):
            aspect = 1.0
        self.document = Document(width=result.width, height=result.height,
                                 aspect=aspect, is_text_art=result.is_text_art,
                                 path=Path(path))
        self.pixels = result.pixels
        if result.render_options is not None:
            self.render_options = result.render_options
        self.state.aspect = aspect
        self.state.animating = False
        self.state.x0 = self.state.y0 = 0.0
        self.stop_scroll()
        self.geometry = None
        if config is not None:
            self.apply_config(config)
        else:
            self.update_view(use_pivot=False)
        self.show_status(f'{Path(path).name} ({result.width}x{result.height})')
        return True

    def reload(self) -> bool:
        if self.document is None or self.document.path is None:
            return False
        return self.load(self.document.path)

    def unload(self):
        self.document = None
        self.pixels = None
        self.geometry = None
        self._panels = ()
        self.current_area = self.target_area = FULL_SCREEN_RECT
        self.state.animating = False
        self.stop_scroll()

    # ---- configuration ----

    def apply_config(self, config: ViewConfig):
        """Apply the view settings of a parsed configuration file."""
        state = self.state
        if config.mode is not None:
            state.mode = config.mode
        if config.integer is not None:
            state.integer = config.integer
        if config.aspect is not None:
            state.aspect = config.aspect
        if config.max_crop is not None:
            state.max_crop = min(config.max_crop, MAX_CROP_LIMIT)
        if config.zoom is not None:
            state.zoom = config.zoom
        if config.scroll_speed is not None:
            state.scroll_speed = config.scroll_speed
        self.view_cfg(ViewAction.STOP_SCROLL | ViewAction.NO_ANIMATE, use_pivot=False)
        if state.mode == ViewMode.FREE and self.geometry is not None \
                and (config.rel_x is not None or config.rel_y is not None):
            if config.rel_x is not None:
                state.x0 = config.rel_x * self.geometry.min_x0
            if config.rel_y is not None:
                state.y0 = config.rel_y * self.geometry.min_y0
            self.update_view(use_pivot=False)

    def current_config(self) -> str:
        rel_x = rel_y = 0.5
        if self.geometry is not None:
            rel_x = relative_position(self.state.x0, self.geometry.min_x0)
            rel_y = relative_position(self.state.y0, self.geometry.min_y0)
        options = None
        if self.document is not None and self.document.is_text_art:
            options = self.render_options
        return format_config(self.state, rel_x=rel_x, rel_y=rel_y,
                             render_options=options)

    def save_sidecar(self) -> bool:
        if self.document is None or self.document.path is None:
            return False
        path = sidecar_path(self.document.path)
        if save_config_file(path, self.current_config()):
            self.show_status(f'saved display configuration to {path.name}')
            return True
        self.show_status(f'could not save {path.name}', error=True)
        return False

    def load_sidecar(self) -> bool:
        """Re-read the sidecar of the current document and apply it."""
        if self.document is None or self.document.path is None:
            return False
        if self.document.is_text_art:
            # render options may have changed; needs a re-render
            return self.reload()
        config = load_config_file(sidecar_path(self.document.path))
        if config is None:
            return False
        self.apply_config(config)
        return True

    def show_status(self, message: str, error: bool = False):
        self.status_message = message
        self.status_is_error = error
        if error:
            logger.warning(f"[STATUS] {message}")
        else:
            logger.info(f"[STATUS] {message}")
