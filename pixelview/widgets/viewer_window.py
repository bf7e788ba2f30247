import logging
from pathlib import Path

from PySide6.QtCore import QRectF, Qt, QTimer, Signal, Slot
from PySide6.QtGui import QColor, QFont, QImage, QPainter
from PySide6.QtWidgets import QWidget

from pixelview.controllers.view_controller import ViewController
from pixelview.models.document import PresentationRect, ScreenBox
from pixelview.utils.loader import file_kind, FileKind
from pixelview.utils.settings import get_setting, settings
from pixelview.utils.viewport import rect_to_pixels

logger = logging.getLogger(__name__)

FRAME_INTERVAL_MS = 16
WHEEL_STEP = 120
DRAG_BUTTONS = (Qt.MouseButton.LeftButton, Qt.MouseButton.MiddleButton)

HELP_TEXT = '\n'.join((
    'F1            show/hide this help',
    'F             cycle fit / fill / panel mode',
    'Z             toggle 1:1 and fit',
    'I             toggle integer scaling',
    '+ / - / wheel zoom in / out',
    'cursor keys   pan (Ctrl fast, Shift slow)',
    'Alt+cursor    auto-scroll in that direction',
    'drag          pan (left or middle button)',
    'Home / End    upper-left / lower-right corner',
    'S             start/stop auto-scrolling',
    '1 .. 9        auto-scroll speed',
    'Ctrl+S        save display configuration',
    'Ctrl+L        reload display configuration',
    'F11           toggle fullscreen',
    'Q / F10 / Esc quit',
))


class ViewerWindow(QWidget):
    """Fullscreen surface that paints the controller's presentation."""

    document_changed = Signal(str, name='documentChanged')

    def __init__(self, controller: ViewController):
        super().__init__()
        self.controller = controller
        self.image: QImage | None = None
        self.show_help = False
        self._drag_pos = None
        self.setWindowTitle('PixelView')
        self.setAcceptDrops(True)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

        self._frame_timer = QTimer(self)
        self._frame_timer.setInterval(FRAME_INTERVAL_MS)
        self._frame_timer.timeout.connect(self._on_frame)
        self._frame_timer.start()

        self._status_timer = QTimer(self)
        self._status_timer.setSingleShot(True)
        self._status_timer.timeout.connect(self._clear_status)

        self._cursor_timer = QTimer(self)
        self._cursor_timer.setSingleShot(True)
        self._cursor_timer.timeout.connect(
            lambda: self.setCursor(Qt.CursorShape.BlankCursor))

        settings.change.connect(self.setting_change)

    # ---- documents ----

    def open_path(self, path: Path | str) -> bool:
        loaded = self.controller.load(path)
        self._refresh_image()
        self._show_status()
        if loaded:
            self.setWindowTitle(f'{Path(path).name} - PixelView')
            self.document_changed.emit(str(path))
        else:
            self.setWindowTitle('PixelView')
        self.update()
        return loaded

    def _refresh_image(self):
        pixels = self.controller.pixels
        if pixels is None:
            self.image = None
            return
        # copy() detaches the image from the Python bytes object
        self.image = QImage(pixels.data, pixels.width, pixels.height,
                            pixels.width * 4, QImage.Format.Format_RGBA8888).copy()

    @Slot(str, object)
    def setting_change(self, key, value):
        if key == 'animate':
            self.controller.animate_enabled = get_setting('animate')
        elif key == 'scroll_speed':
            self.controller.state.scroll_speed = get_setting('scroll_speed')

    # ---- frame loop ----

    @Slot()
    def _on_frame(self):
        if self.controller.tick():
            self.update()

    def _show_status(self):
        if self.controller.status_message:
            self._status_timer.start(get_setting('status_timeout_ms'))

    @Slot()
    def _clear_status(self):
        self.controller.status_message = ''
        self.update()

    # ---- painting ----

    def _box(self, rect: PresentationRect) -> QRectF:
        box = rect_to_pixels(rect, self.controller.screen)
        return QRectF(box.x, box.y, box.width, box.height)

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), Qt.GlobalColor.black)
        if self.image is not None and self.controller.screen.is_valid:
            smooth = self.controller.state.zoom < 1.0
            painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, smooth)
            panels = self.controller.panels()
            if panels:
                for panel in panels:
                    clip: ScreenBox = panel.clip
                    painter.save()
                    painter.setClipRect(QRectF(clip.x, clip.y, clip.width, clip.height))
                    painter.drawImage(self._box(panel.area), self.image)
                    painter.restore()
            else:
                painter.drawImage(self._box(self.controller.presentation()), self.image)
        self._paint_overlays(painter)
        painter.end()

    def _paint_overlays(self, painter: QPainter):
        font = QFont('monospace')
        font.setStyleHint(QFont.StyleHint.Monospace)
        painter.setFont(font)
        if self.show_help:
            area = self.rect().adjusted(40, 40, -40, -40)
            painter.fillRect(area, QColor(0, 0, 0, 200))
            painter.setPen(Qt.GlobalColor.white)
            painter.drawText(area.adjusted(16, 16, -16, -16),
                             Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop,
                             HELP_TEXT)
        message = self.controller.status_message
        if message:
            color = QColor(255, 96, 96) if self.controller.status_is_error \
                else QColor(255, 255, 255)
            metrics = painter.fontMetrics()
            box = metrics.boundingRect(message).adjusted(-8, -4, 8, 4)
            box.moveTopLeft(self.rect().topLeft())
            painter.fillRect(box, QColor(0, 0, 0, 180))
            painter.setPen(color)
            painter.drawText(box, Qt.AlignmentFlag.AlignCenter, message)

    # ---- events ----

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self.controller.set_screen_size(self.width(), self.height())
        self.update()

    def keyPressEvent(self, event):
        key = event.key()
        modifiers = event.modifiers()
        ctrl = bool(modifiers & Qt.KeyboardModifier.ControlModifier)
        shift = bool(modifiers & Qt.KeyboardModifier.ShiftModifier)
        alt = bool(modifiers & Qt.KeyboardModifier.AltModifier)
        controller = self.controller
        cursor_keys = {
            Qt.Key.Key_Left: (-1, 0), Qt.Key.Key_Right: (1, 0),
            Qt.Key.Key_Up: (0, -1), Qt.Key.Key_Down: (0, 1),
        }

        if key in (Qt.Key.Key_Q, Qt.Key.Key_F10, Qt.Key.Key_Escape):
            if key == Qt.Key.Key_Escape and self.show_help:
                self.show_help = False
            else:
                self.close()
                return
        elif key == Qt.Key.Key_F1:
            self.show_help = not self.show_help
        elif key == Qt.Key.Key_F11:
            self.setWindowState(self.windowState() ^ Qt.WindowState.WindowFullScreen)
        elif key == Qt.Key.Key_S and ctrl:
            controller.save_sidecar()
            self._show_status()
        elif key == Qt.Key.Key_L and ctrl:
            controller.load_sidecar()
            self._refresh_image()
            self._show_status()
        elif key == Qt.Key.Key_S:
            controller.toggle_scroll()
        elif key == Qt.Key.Key_F:
            controller.cycle_view_mode()
        elif key == Qt.Key.Key_Z:
            controller.cycle_view_mode(with_1x=True)
        elif key == Qt.Key.Key_I:
            controller.set_integer(not controller.state.integer)
            controller.show_status(
                f"integer scaling {'on' if controller.state.integer else 'off'}")
            self._show_status()
        elif key in (Qt.Key.Key_Plus, Qt.Key.Key_Equal):
            controller.change_zoom(+1)
        elif key == Qt.Key.Key_Minus:
            controller.change_zoom(-1)
        elif key in cursor_keys:
            dx, dy = cursor_keys[key]
            if alt:
                controller.start_scroll(dx=dx, dy=dy)
            else:
                controller.cursor_pan(dx, dy, fast=ctrl, slow=shift)
        elif key == Qt.Key.Key_Home:
            controller.move_to_corner(end=False)
        elif key == Qt.Key.Key_End:
            controller.move_to_corner(end=True)
        elif Qt.Key.Key_1 <= key <= Qt.Key.Key_9:
            controller.set_scroll_speed(key - Qt.Key.Key_0)
        else:
            super().keyPressEvent(event)
            return
        self.update()

    def wheelEvent(self, event):
        pos = event.position()
        if self.controller.wheel_zoom(event.angleDelta().y() / WHEEL_STEP,
                                      pivot=(pos.x(), pos.y())):
            self.update()
        event.accept()

    def mousePressEvent(self, event):
        if event.button() in DRAG_BUTTONS:
            self._drag_pos = event.position()
        super().mousePressEvent(event)

    def mouseReleaseEvent(self, event):
        if event.button() in DRAG_BUTTONS:
            self._drag_pos = None
        super().mouseReleaseEvent(event)

    def mouseMoveEvent(self, event):
        self.unsetCursor()
        self._cursor_timer.start(get_setting('cursor_hide_ms'))
        if self._drag_pos is not None:
            pos = event.position()
            self.controller.pan(pos.x() - self._drag_pos.x(),
                                pos.y() - self._drag_pos.y())
            self._drag_pos = pos
            self.update()
        super().mouseMoveEvent(event)

    def dragEnterEvent(self, event):
        if event.mimeData().hasUrls():
            event.acceptProposedAction()

    def dropEvent(self, event):
        for url in event.mimeData().urls():
            path = Path(url.toLocalFile())
            if file_kind(path) != FileKind.UNKNOWN:
                self.open_path(path)
                event.acceptProposedAction()
                return
        logger.info("[DROP] No supported file in drop")
