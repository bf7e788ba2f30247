import faulthandler
import logging
import os
import sys
import threading
import traceback
import warnings
from datetime import datetime

try:
    from PySide6.QtWidgets import QApplication, QMessageBox
    from PySide6.QtCore import qInstallMessageHandler

    from pixelview.controllers.view_controller import ViewController
    from pixelview.models.document import ViewMode
    from pixelview.utils.settings import (get_default_render_options,
                                          get_setting, settings)
    from pixelview.widgets.viewer_window import ViewerWindow
except Exception as e:
    with open('pixelview_import_crash.log', 'w') as f:
        f.write(str(e) + "\n" + traceback.format_exc())
    sys.exit(1)


def qt_message_handler(msg_type, msg_context, msg_string):
    """Suppress Qt's QPainter debug messages."""
    if "QPainter" in msg_string or "Paint device returned engine" in msg_string:
        return
    logging.getLogger('qt').debug(msg_string)

qInstallMessageHandler(qt_message_handler)

CRASH_LOG_PATH = os.path.abspath('pixelview_crash.log')
FATAL_LOG_PATH = os.path.abspath('pixelview_fatal.log')
_fatal_log_handle = None
ENABLE_FATAL_CRASH_DUMPS = os.getenv('PIXELVIEW_ENABLE_FAULTHANDLER', '0') == '1'


def _append_crash_log(title: str, exc_info=None):
    """Append a timestamped crash entry to the crash log."""
    ts = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    try:
        with open(CRASH_LOG_PATH, 'a', encoding='utf-8') as f:
            f.write("\n" + "=" * 80 + "\n")
            f.write(f"{ts} | {title}\n")
            f.write("=" * 80 + "\n")
            if exc_info is None:
                f.write(traceback.format_exc())
            else:
                f.writelines(traceback.format_exception(*exc_info))
            f.write("\n")
    except OSError as log_error:
        print(f"[CRASH] Failed to write crash log: {log_error}")
    print(f"[CRASH] Details written to: {CRASH_LOG_PATH}")


def install_crash_handlers():
    """Install Python/thread crash handlers; fatal dumps are opt-in."""
    global _fatal_log_handle
    if _fatal_log_handle is not None:
        return

    def _unhandled_exception(exc_type, exc_value, exc_traceback):
        _append_crash_log("UNHANDLED EXCEPTION", (exc_type, exc_value, exc_traceback))
        sys.__excepthook__(exc_type, exc_value, exc_traceback)

    def _thread_exception(args):
        thread_name = getattr(args.thread, 'name', 'unknown')
        _append_crash_log(
            f"THREAD EXCEPTION ({thread_name})",
            (args.exc_type, args.exc_value, args.exc_traceback),
        )

    sys.excepthook = _unhandled_exception
    threading.excepthook = _thread_exception

    if ENABLE_FATAL_CRASH_DUMPS:
        try:
            _fatal_log_handle = open(FATAL_LOG_PATH, 'a', encoding='utf-8', buffering=1)
            _fatal_log_handle.write(
                "\n" + "=" * 80 + "\n"
                f"{datetime.now().isoformat()} | SESSION START pid={os.getpid()}\n"
                + "=" * 80 + "\n"
            )
            faulthandler.enable(file=_fatal_log_handle, all_threads=True)
            print(f"[CRASH] Fatal trace dumps enabled: {FATAL_LOG_PATH}")
        except OSError as e:
            print(f"[WARNING] Could not enable faulthandler: {e}")


def configure_logging():
    """Verbose logging in development, errors only otherwise."""
    environment = os.getenv('PIXELVIEW_ENVIRONMENT')
    if environment == 'development':
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s %(name)s %(levelname)s %(message)s')
        print('Running in development environment.')
        return
    logging.getLogger('PIL').setLevel(logging.ERROR)
    logging.basicConfig(level=logging.ERROR)
    warnings.simplefilter('ignore')


def create_controller() -> ViewController:
    try:
        mode = ViewMode(get_setting('default_view_mode'))
    except ValueError:
        mode = ViewMode.FIT
    return ViewController(
        animate=get_setting('animate'),
        scroll_speed=get_setting('scroll_speed'),
        default_mode=mode,
        integer=get_setting('integer_scaling'),
        render_options=get_default_render_options(),
        preserve_render_options=get_setting('preserve_render_options'),
    )


def run_gui(argv: list[str] | None = None) -> int:
    argv = sys.argv if argv is None else argv
    install_crash_handlers()

    app = QApplication(argv[:1])
    # The application name is shown in the taskbar.
    app.setApplicationName('PixelView')
    app.setApplicationDisplayName('PixelView')

    window = ViewerWindow(create_controller())
    if get_setting('start_fullscreen'):
        window.showFullScreen()
    else:
        window.resize(1280, 800)
        window.show()

    def remember(path):
        recent = [p for p in get_setting('recent_files') if p != path]
        settings.setValue('recent_files', [path] + recent[:9])

    window.document_changed.connect(remember)
    if len(argv) > 1:
        window.open_path(argv[1])

    return int(app.exec())


def show_error_dialog(exception: BaseException):
    # the box needs an application even when startup failed before creating one
    if QApplication.instance() is None:
        QApplication(sys.argv[:1])
    error_message_box = QMessageBox()
    error_message_box.setWindowTitle('Error')
    error_message_box.setIcon(QMessageBox.Icon.Critical)
    error_message_box.setText(str(exception))
    error_message_box.setDetailedText(traceback.format_exc())
    error_message_box.exec()


def main() -> int:
    configure_logging()
    try:
        return run_gui()
    except Exception as exception:
        _append_crash_log("TOP-LEVEL EXCEPTION", sys.exc_info())
        show_error_dialog(exception)
        if ENABLE_FATAL_CRASH_DUMPS:
            print(f"[CRASH] Fatal trace dump path: {FATAL_LOG_PATH}")
        return 1
