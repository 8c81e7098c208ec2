import logging
import threading

from PyQt5.QtCore import QObject, pyqtSignal

from caption_change_detector import ChangeDetector
from caption_source import SourceLaunchFailure, SourceUnavailable
from caption_text import extract_latest_sentence, normalize_caption

logger = logging.getLogger(__name__)

STATUS_STARTING = "Starting Windows LiveCaptions..."
STATUS_STARTED = "LiveCaptions started! Speak into microphone..."
STATUS_RECONNECTING = "Connection to LiveCaptions lost, reconnecting..."


class CaptureSignals(QObject):
    """Signals for capture loop events (emitted from the capture/translation threads)"""
    caption_changed = pyqtSignal(str)    # Normalized caption
    translation_ready = pyqtSignal(str)  # Translated caption (or the original on failure)
    status = pyqtSignal(str)             # Status / error line for the overlay
    cleared = pyqtSignal()               # Startup finished, show placeholder
    fatal = pyqtSignal(str)              # Capture session gave up


class CaptureLoop:
    """Polls the caption source, publishes changed sentences and fires off translations."""

    def __init__(self, source, translator, target_lang_getter, config):
        """
        Args:
            source: CaptionSource to read from
            translator: CaptionTranslator (translate never raises)
            target_lang_getter: Callable returning the current target language code
            config: Config with poll/reconnect intervals and text limits
        """
        self.signals = CaptureSignals()
        self.source = source
        self.translator = translator
        self.target_lang_getter = target_lang_getter
        self.poll_interval = config.poll_interval
        self.reconnect_delay = config.reconnect_delay
        self.settle_delay = config.settle_delay
        self.byte_budget = config.byte_budget
        self.join_threshold = config.join_threshold
        self.detector = ChangeDetector()
        self.translation_threads = []
        self.running = False
        self.thread = None
        self._stop_event = threading.Event()

    def start(self):
        """Start the capture session in a background thread"""
        if self.running:
            return
        self.running = True
        self._stop_event.clear()
        self.thread = threading.Thread(target=self.run_session, name="caption-capture", daemon=True)
        self.thread.start()
        logger.info("Capture started")

    def stop(self):
        was_running = self.running or self.thread is not None
        self.running = False
        self._stop_event.set()
        if self.thread and self.thread.is_alive() and self.thread is not threading.current_thread():
            self.thread.join(timeout=3.0)
        self.thread = None
        # Translations still running are abandoned; their results are discarded
        self.translation_threads = []
        if was_running:
            logger.info("Capture stopped")

    def _sleep(self, seconds):
        """Interruptible sleep; returns False once stop() was called."""
        return not self._stop_event.wait(seconds)

    def run_session(self):
        """Launch/attach to the source, then poll until stopped."""
        self.signals.status.emit(STATUS_STARTING)
        try:
            self.source.connect()
        except SourceLaunchFailure as e:
            logger.error("Caption source failed to start: %s", e)
            self.signals.fatal.emit(f"Failed to launch LiveCaptions! {e}")
            self.running = False
            return
        except Exception as e:
            logger.exception("Unexpected error starting caption source")
            self.signals.fatal.emit(f"Error: {e}")
            self.running = False
            return

        self.source.hide()
        self.signals.status.emit(STATUS_STARTED)
        if not self._sleep(self.settle_delay):
            return
        self.signals.cleared.emit()

        logger.info("Polling every %.0f ms", self.poll_interval * 1000)
        while self.running:
            self.poll_once()
            if not self._sleep(self.poll_interval):
                break
        logger.info("Capture loop exited")

    def poll_once(self):
        """One poll: read, extract, normalize, publish on change. Never raises."""
        try:
            raw = self.source.get_text()
            if not raw:
                return None
            caption = normalize_caption(
                extract_latest_sentence(raw), self.byte_budget, self.join_threshold)
            if not self.detector.accept(caption):
                return None
            logger.debug("Caption: %s", caption)
            self.signals.caption_changed.emit(caption)
            self._dispatch_translation(caption)
            return caption
        except SourceUnavailable as e:
            logger.warning("Caption source unavailable: %s", e)
            self.signals.status.emit(STATUS_RECONNECTING)
            self.source.reset()
            self._sleep(self.reconnect_delay)
        except Exception as e:
            logger.exception("Capture poll failed")
            self.signals.status.emit(f"Error: {e}")
        return None

    def _dispatch_translation(self, caption):
        """Translate on a daemon thread of its own; the translator enforces the deadline."""
        if self._stop_event.is_set():
            return
        target_lang = self.target_lang_getter()
        self.translation_threads = [t for t in self.translation_threads if t.is_alive()]
        thread = threading.Thread(target=self._translate_and_publish, args=(caption, target_lang),
                                  name="caption-translate", daemon=True)
        self.translation_threads.append(thread)
        thread.start()

    def _translate_and_publish(self, caption, target_lang):
        try:
            translation = self.translator.translate(caption, target_lang)
        except Exception as e:
            logger.warning("Translation task failed: %s", e)
            return
        if self._stop_event.is_set():
            return
        self.signals.translation_ready.emit(translation)
