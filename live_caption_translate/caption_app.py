"""Windows LiveCaptions translator with a PyQt5 subtitle overlay."""
import atexit
import logging
import os
import signal
import sys
from datetime import datetime

from dotenv import load_dotenv
from PyQt5.QtCore import QCoreApplication, QTimer
from PyQt5.QtWidgets import QApplication

from caption_capture_loop import CaptureLoop
from caption_config import Config, setup_logging
from caption_settings import SettingsStore
from caption_source import create_caption_source
from caption_state import CaptionState
from caption_text import wrap_text_to_lines
from caption_translator import CaptionTranslator

logger = logging.getLogger(__name__)


class AppContext:
    """
    Owns every long-lived object of a run and wires their signals together.

    The capture thread and translation threads talk to CaptionState only
    through queued signals; everything else here lives on the GUI thread.
    """

    def __init__(self, config, settings_store=None, source=None, translator=None):
        self.config = config
        self.settings_store = settings_store or SettingsStore()
        self.settings_store.load()
        self.state = CaptionState()
        self.state.apply_settings(self.settings_store.settings)
        self.translator = translator or CaptionTranslator(
            endpoint=config.endpoint,
            client_id=config.client_id,
            request_timeout=config.request_timeout,
            client_timeout=config.client_timeout,
            max_inflight=config.max_inflight,
        )
        self.source = source or create_caption_source(config)
        self.capture = CaptureLoop(self.source, self.translator, self.target_language, config)
        self._shut_down = False

        self.settings_store.changed.connect(self.state.apply_settings)
        signals = self.capture.signals
        signals.caption_changed.connect(self.state.set_original)
        signals.translation_ready.connect(self.state.set_translation)
        signals.status.connect(self.state.set_status)
        signals.fatal.connect(self.state.set_status)
        signals.cleared.connect(self.state.clear)

    def target_language(self):
        """Called from the capture thread; save() swaps the settings object in one assignment."""
        return self.settings_store.settings.target_language

    def bind_overlay(self, overlay):
        self.state.original_changed.connect(overlay.set_original_text)
        self.state.translation_changed.connect(overlay.set_translated_text)
        self.state.status_changed.connect(overlay.set_status)
        self.state.visibility_changed.connect(overlay.set_visible)
        self.state.cleared.connect(overlay.clear)
        overlay.set_visible(self.state.show_original, self.state.show_translation)

    def start(self):
        self.capture.start()

    def shutdown(self):
        """Stop capture, abandon in-flight translations and give the LiveCaptions window back."""
        if self._shut_down:
            return
        self._shut_down = True
        logger.info("Shutting down...")
        self.capture.stop()
        self.translator.shutdown()
        self.source.reveal()


def _install_sigint_handler(app):
    """Ctrl+C quits the Qt event loop; the timer lets Python run its signal handlers."""
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    timer = QTimer()
    timer.start(250)
    timer.timeout.connect(lambda: None)
    return timer


def format_console_caption(text, now=None):
    now = now or datetime.now()
    return f"[{now:%H:%M:%S}] {wrap_text_to_lines(text)}"


def run_console(config):
    """No overlay: print each caption (and its translation) to stdout."""
    app = QCoreApplication(sys.argv)
    ctx = AppContext(config)
    print("=== Live Caption Translate - Console Mode ===")
    print("Press Ctrl+C to exit\n")

    def on_translation(text):
        # Failed translations come back as the original
        if text and text != ctx.state.original_text:
            print(f"  -> {text}", flush=True)

    ctx.state.original_changed.connect(lambda text: print(format_console_caption(text), flush=True))
    ctx.state.translation_changed.connect(on_translation)
    ctx.state.status_changed.connect(lambda msg: print(msg, flush=True))

    app.aboutToQuit.connect(ctx.shutdown)
    atexit.register(ctx.translator.close)
    sigint_timer = _install_sigint_handler(app)
    ctx.start()
    code = app.exec_()
    sigint_timer.stop()
    return code


def run_overlay(config):
    from caption_overlay import SubtitleOverlay
    from caption_settings_dialog import show_settings_dialog

    app = QApplication(sys.argv)
    app.setApplicationName("LiveCaptionTranslate")
    app.setQuitOnLastWindowClosed(True)
    ctx = AppContext(config)

    overlay = SubtitleOverlay(
        ctx.settings_store,
        config,
        on_quit=app.quit,
        on_settings=lambda: show_settings_dialog(ctx.settings_store, overlay),
    )
    ctx.bind_overlay(overlay)
    overlay.show()

    app.aboutToQuit.connect(ctx.shutdown)
    atexit.register(ctx.translator.close)
    sigint_timer = _install_sigint_handler(app)
    ctx.start()
    print("Overlay running. Drag to move, R to re-centre, Esc to quit.")
    code = app.exec_()
    sigint_timer.stop()
    return code


def main():
    # .env next to the modules first, then the working directory
    app_dir = os.path.dirname(os.path.abspath(__file__))
    load_dotenv(os.path.join(app_dir, ".env"))
    load_dotenv()

    debug = "--debug" in sys.argv
    setup_logging("DEBUG" if debug else None)
    config = Config()
    if not debug:
        setup_logging(config.log_level)
    config.log_config()

    if "--console" in sys.argv:
        return run_console(config)
    return run_overlay(config)


if __name__ == "__main__":
    sys.exit(main())
