import pytest

from pixelview.controllers.view_controller import ViewController
from pixelview.models.document import FULL_SCREEN_RECT, ViewMode
from pixelview.models.render_options import RenderOptions
from pixelview.utils.config_file import parse_config, sidecar_path
from pixelview.utils.loader import LoadedImage, LoadFailure
from pixelview.utils.pixel_buffer import PixelBuffer


class FakeLoader:
    """Stands in for load_document; returns a blank image of a fixed size."""

    def __init__(self, width=192, height=108, **extra):
        self.width = width
        self.height = height
        self.extra = extra
        self.fail = False
        self.calls = []

    def __call__(self, path, options=None, *, overrides=None, rasterizer=None):
        self.calls.append((path, options, overrides))
        if self.fail:
            return LoadFailure(path, 'broken')
        pixels = PixelBuffer(self.width, self.height, bytes(self.width * self.height * 4))
        return LoadedImage(pixels=pixels, **self.extra)


def make_controller(loader, **kwargs):
    controller = ViewController(loader=loader, **kwargs)
    controller.set_screen_size(800, 600)
    return controller


def run_ticks(controller, limit=2000):
    for _ in range(limit):
        if not controller.tick():
            break


def test_load_fits_document(tmp_path):
    controller = make_controller(FakeLoader())
    assert controller.load(tmp_path / 'a.png')
    assert controller.has_document
    assert controller.state.zoom == pytest.approx(800 / 192)
    assert controller.state.y0 == pytest.approx(75.0)
    area = controller.presentation()
    assert area.scale_x == pytest.approx(2.0)
    assert area.scale_y == pytest.approx(-1.5)
    assert 'a.png' in controller.status_message


def test_load_before_screen_size_is_known(tmp_path):
    controller = ViewController(loader=FakeLoader(400, 300))
    controller.load(tmp_path / 'a.png')
    assert controller.geometry is None
    controller.set_screen_size(800, 600)
    assert controller.state.zoom == pytest.approx(2.0)
    assert controller.presentation() == FULL_SCREEN_RECT


def test_load_failure_unloads(tmp_path):
    loader = FakeLoader()
    controller = make_controller(loader)
    controller.load(tmp_path / 'a.png')
    loader.fail = True
    assert not controller.load(tmp_path / 'b.png')
    assert not controller.has_document
    assert controller.pixels is None
    assert controller.status_is_error
    assert 'b.png' in controller.status_message
    assert controller.presentation() == FULL_SCREEN_RECT


def test_stale_load_result_is_ignored(tmp_path):
    loader = FakeLoader()
    controller = make_controller(loader)
    stale_generation = controller.load_generation
    controller.load(tmp_path / 'new.png')
    old = loader(tmp_path / 'old.png')
    assert not controller.finish_load(stale_generation, tmp_path / 'old.png', old)
    assert controller.document.path.name == 'new.png'


def test_text_art_aspect_and_render_options(tmp_path):
    options = RenderOptions(columns=132)
    controller = make_controller(FakeLoader(640, 400, recommended_aspect=1.2,
                                            is_text_art=True, render_options=options))
    controller.load(tmp_path / 'a.ans')
    assert controller.state.aspect == pytest.approx(1.2)
    assert controller.render_options.columns == 132
    assert controller.raw_size().height == pytest.approx(480.0)


def test_cycle_view_modes(tmp_path):
    controller = make_controller(FakeLoader(), animate=False)
    controller.load(tmp_path / 'a.png')
    controller.cycle_view_mode()
    assert controller.state.mode == ViewMode.FILL
    assert controller.state.zoom == pytest.approx(600 / 108)
    # panel mode is skipped for documents close to the screen shape
    controller.cycle_view_mode()
    assert controller.state.mode == ViewMode.FIT


def test_one_to_one_toggle(tmp_path):
    controller = make_controller(FakeLoader(), animate=False)
    controller.load(tmp_path / 'a.png')
    controller.cycle_view_mode(with_1x=True)
    assert controller.state.mode == ViewMode.FREE
    assert controller.state.zoom == 1.0
    controller.cycle_view_mode(with_1x=True)
    assert controller.state.mode == ViewMode.FIT


def test_panel_mode_for_long_strips(tmp_path):
    controller = make_controller(FakeLoader(4000, 100), animate=False)
    controller.load(tmp_path / 'strip.png')
    assert controller.panel_available()
    controller.set_mode(ViewMode.PANEL)
    assert len(controller.panels()) == 5
    controller.set_mode(ViewMode.FIT)
    assert controller.panels() == ()


def test_zoom_switches_to_free_and_keeps_center(tmp_path):
    controller = make_controller(FakeLoader(), animate=False)
    controller.load(tmp_path / 'a.png')
    controller.change_zoom(+1)
    assert controller.state.mode == ViewMode.FREE
    assert controller.state.zoom == pytest.approx(2 ** 2.25)
    geometry = controller.geometry
    assert geometry.x0 == pytest.approx((800 - geometry.view_width) / 2)


def test_zoom_animates_towards_target(tmp_path):
    controller = make_controller(FakeLoader())
    controller.load(tmp_path / 'a.png')
    controller.change_zoom(+1)
    assert controller.state.animating
    assert controller.presentation() != controller.target_area
    run_ticks(controller)
    assert not controller.state.animating
    assert controller.presentation() == controller.target_area


def test_invalid_values_keep_previous_state(tmp_path):
    controller = make_controller(FakeLoader())
    controller.load(tmp_path / 'a.png')
    zoom = controller.state.zoom
    assert not controller.set_zoom(float('nan'))
    assert not controller.set_zoom(0.0)
    assert not controller.set_aspect(float('inf'))
    assert not controller.set_max_crop(2.0)
    assert controller.state.zoom == zoom
    assert controller.state.aspect == 1.0


def test_screen_size_ignores_invalid_values(tmp_path):
    controller = make_controller(FakeLoader())
    controller.set_screen_size(0, 600)
    controller.set_screen_size(float('nan'), 600)
    assert (controller.screen.width, controller.screen.height) == (800.0, 600.0)


def test_pan_and_corners(tmp_path):
    controller = make_controller(FakeLoader(400, 2000), default_mode=ViewMode.FREE)
    controller.load(tmp_path / 'tall.png')
    assert controller.state.x0 == pytest.approx(200.0)
    assert controller.state.y0 == 0.0
    controller.pan(0, -100)
    assert controller.state.y0 == pytest.approx(-100.0)
    controller.move_to_corner(end=True)
    assert controller.state.y0 == pytest.approx(-1400.0)
    controller.move_to_corner(end=False)
    assert controller.state.y0 == 0.0


def test_cursor_pan_moves_view(tmp_path):
    controller = make_controller(FakeLoader(400, 2000), default_mode=ViewMode.FREE,
                                 animate=False)
    controller.load(tmp_path / 'tall.png')
    controller.cursor_pan(0, 1)
    assert controller.state.y0 == pytest.approx(-64.0)
    controller.cursor_pan(0, 1, fast=True)
    assert controller.state.y0 == pytest.approx(-320.0)


def test_auto_scroll_runs_to_the_edge(tmp_path):
    controller = make_controller(FakeLoader(400, 2000), default_mode=ViewMode.FREE)
    controller.load(tmp_path / 'tall.png')
    assert controller.start_scroll()
    assert controller.scroll_y == 1.0
    controller.tick()
    assert controller.state.y0 == pytest.approx(-4.0)
    run_ticks(controller)
    assert not controller.is_scrolling
    assert controller.state.y0 == pytest.approx(-1400.0)


def test_auto_scroll_not_possible_when_document_fits(tmp_path):
    controller = make_controller(FakeLoader())
    controller.load(tmp_path / 'a.png')
    assert not controller.start_scroll()
    assert not controller.is_scrolling


def test_scroll_speed_keys(tmp_path):
    controller = make_controller(FakeLoader(400, 2000), default_mode=ViewMode.FREE)
    controller.load(tmp_path / 'tall.png')
    assert controller.set_scroll_speed(9)
    assert controller.state.scroll_speed == 24.0
    assert controller.is_scrolling
    assert not controller.set_scroll_speed(0)


def test_sidecar_is_applied_on_load(tmp_path):
    path = tmp_path / 'a.png'
    sidecar_path(path).write_text('mode free\nzoom 2\nrelx 100\nrely 0\n')
    controller = make_controller(FakeLoader(800, 600))
    controller.load(path)
    assert controller.state.mode == ViewMode.FREE
    assert controller.state.zoom == 2.0
    assert controller.state.x0 == pytest.approx(-800.0)
    assert controller.state.y0 == 0.0


def test_sidecar_ansi_values_are_passed_to_loader(tmp_path):
    path = tmp_path / 'a.ans'
    sidecar_path(path).write_text('ansi_columns 100\n')
    loader = FakeLoader()
    controller = make_controller(loader)
    controller.load(path)
    assert loader.calls[0][2] == {'columns': 100}


def test_save_sidecar_round_trip(tmp_path):
    path = tmp_path / 'a.png'
    controller = make_controller(FakeLoader(), animate=False)
    controller.load(path)
    controller.set_mode(ViewMode.FILL)
    assert controller.save_sidecar()
    config, errors = parse_config(sidecar_path(path).read_text())
    assert errors == []
    assert config.mode == ViewMode.FILL

    controller.set_mode(ViewMode.FIT)
    assert controller.load_sidecar()
    assert controller.state.mode == ViewMode.FILL


def test_render_options_reset_unless_preserved(tmp_path):
    loader = FakeLoader()
    defaults = RenderOptions(columns=90)
    controller = make_controller(loader, render_options=defaults)
    controller.render_options = RenderOptions(columns=132)
    controller.load(tmp_path / 'a.ans')
    assert loader.calls[-1][1].columns == 90

    controller = make_controller(loader, render_options=defaults,
                                 preserve_render_options=True)
    controller.render_options = RenderOptions(columns=132)
    controller.load(tmp_path / 'a.ans')
    assert loader.calls[-1][1].columns == 132


def test_sidecar_restores_aspect_overriding_recommendation(tmp_path):
    path = tmp_path / 'a.ans'
    controller = make_controller(FakeLoader(640, 400, recommended_aspect=1.2,
                                            is_text_art=True))
    controller.load(path)
    assert controller.set_aspect(1.0)
    controller.set_integer(True)
    assert controller.save_sidecar()
    assert 'aspect 1\n' in sidecar_path(path).read_text()

    controller.load(path)
    assert controller.state.aspect == pytest.approx(1.0)
    assert controller.state.integer is True


def test_directional_scroll(tmp_path):
    controller = make_controller(FakeLoader(400, 2000), default_mode=ViewMode.FREE)
    controller.load(tmp_path / 'tall.png')
    assert controller.start_scroll(dy=1)
    assert (controller.scroll_x, controller.scroll_y) == (0.0, 1.0)
    assert controller.tick()
    assert controller.state.y0 == pytest.approx(-4.0)

    # already at the top edge: scrolling up stops on the first frame
    controller.move_to_corner(end=False)
    assert controller.start_scroll(dy=-1)
    controller.tick()
    assert not controller.is_scrolling
    assert controller.state.y0 == 0.0

    # the horizontal axis fits the screen and cannot move
    assert controller.start_scroll(dx=1)
    controller.tick()
    assert not controller.is_scrolling
    assert controller.state.x0 == pytest.approx(200.0)


def test_wheel_zoom_steps_on_whole_notches(tmp_path):
    controller = make_controller(FakeLoader(400, 2000), default_mode=ViewMode.FREE,
                                 animate=False)
    controller.load(tmp_path / 'tall.png')
    for _ in range(3):
        assert not controller.wheel_zoom(0.25)
    assert controller.state.zoom == 1.0
    assert controller.wheel_zoom(0.25)
    assert controller.state.zoom == pytest.approx(2 ** 0.25)
    assert controller.wheel_zoom(-1.0)
    assert controller.state.zoom == pytest.approx(1.0)
