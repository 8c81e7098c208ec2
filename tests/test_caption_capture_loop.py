"""
Unit tests for CaptureLoop. poll_once and run_session are driven synchronously
on the test thread; only the start/stop test uses the real capture thread.
"""

import threading
import time
from unittest.mock import MagicMock

import pytest
import requests
from PyQt5.QtCore import Qt

from caption_capture_loop import STATUS_RECONNECTING, STATUS_STARTED, STATUS_STARTING, CaptureLoop
from caption_source import SourceLaunchFailure, SourceUnavailable
from caption_translator import CaptionTranslator


class Recorder:
    """Collects everything CaptureSignals emits."""

    def __init__(self, signals):
        self.captions = []
        self.translations = []
        self.statuses = []
        self.fatal = []
        self.cleared = 0
        signals.caption_changed.connect(self.captions.append)
        signals.translation_ready.connect(self.translations.append)
        signals.status.connect(self.statuses.append)
        signals.fatal.connect(self.fatal.append)
        signals.cleared.connect(self._on_cleared)

    def _on_cleared(self):
        self.cleared += 1


@pytest.fixture
def translator():
    t = MagicMock()
    t.translate.side_effect = lambda text, lang: f"[{lang}] {text}"
    return t


def make_loop(source, translator, config):
    loop = CaptureLoop(source, translator, lambda: "ru", config)
    return loop, Recorder(loop.signals)


def join_translations(loop, timeout=5):
    for thread in list(loop.translation_threads):
        thread.join(timeout)


class TestPollOnce:
    """Tests for a single poll."""

    def test_new_caption_published_and_translated(self, qapp, config, fake_source, translator):
        source = fake_source(["Hello world. How are you today?"])
        loop, rec = make_loop(source, translator, config)

        assert loop.poll_once() == "How are you today?"
        join_translations(loop)

        assert rec.captions == ["How are you today?"]
        translator.translate.assert_called_once_with("How are you today?", "ru")

    def test_unchanged_caption_not_republished(self, qapp, config, fake_source, translator):
        source = fake_source(["Same sentence here."])
        loop, rec = make_loop(source, translator, config)
        loop.poll_once()
        loop.poll_once()
        join_translations(loop)
        assert rec.captions == ["Same sentence here."]
        assert translator.translate.call_count == 1

    def test_growing_caption_republished(self, qapp, config, fake_source, translator):
        source = fake_source(["We are", "We are going home"])
        loop, rec = make_loop(source, translator, config)
        loop.poll_once()
        loop.poll_once()
        assert rec.captions == ["We are", "We are going home"]

    def test_empty_buffer_ignored(self, qapp, config, fake_source, translator):
        loop, rec = make_loop(fake_source([""]), translator, config)
        assert loop.poll_once() is None
        assert rec.captions == []

    def test_source_unavailable_reconnects(self, qapp, config, fake_source, translator):
        source = fake_source([SourceUnavailable("element gone"), "Back online now."])
        loop, rec = make_loop(source, translator, config)

        assert loop.poll_once() is None
        assert rec.statuses == [STATUS_RECONNECTING]
        assert source.resets == 1

        assert loop.poll_once() == "Back online now."

    def test_unexpected_error_reported_and_polling_continues(self, qapp, config, fake_source, translator):
        source = fake_source([ValueError("boom"), "Still running fine."])
        loop, rec = make_loop(source, translator, config)
        loop.poll_once()
        assert rec.statuses == ["Error: boom"]
        assert loop.poll_once() == "Still running fine."

    def test_translation_published(self, qapp, config, fake_source, translator):
        loop, rec = make_loop(fake_source(), translator, config)
        loop._translate_and_publish("Hello", "de")
        assert rec.translations == ["[de] Hello"]

    def test_translation_task_error_swallowed(self, qapp, config, fake_source):
        translator = MagicMock()
        translator.translate.side_effect = RuntimeError("broken")
        loop, rec = make_loop(fake_source(), translator, config)
        loop._translate_and_publish("Hello", "de")
        assert rec.translations == []

    def test_dispatch_after_stop_ignored(self, qapp, config, fake_source, translator):
        loop, rec = make_loop(fake_source(["A fresh caption."]), translator, config)
        loop.stop()
        assert loop.poll_once() == "A fresh caption."
        assert loop.translation_threads == []
        translator.translate.assert_not_called()


class TestTranslationLatency:
    """Each caption's translation is bounded by the deadline from its own dispatch."""

    def test_stalled_transport_does_not_queue_captions(self, qapp, config, fake_source):
        release = threading.Event()
        session = MagicMock(spec=requests.Session)
        session.get.side_effect = lambda *args, **kwargs: release.wait(10)
        translator = CaptionTranslator(session=session, request_timeout=0.2)
        captions = [f"Caption number {i} is here" for i in range(16)]
        loop = CaptureLoop(fake_source(captions), translator, lambda: "ru", config)

        dispatched = {}
        results = []
        loop.signals.caption_changed.connect(
            lambda caption: dispatched.__setitem__(caption, time.monotonic()), Qt.DirectConnection)
        loop.signals.translation_ready.connect(
            lambda text: results.append((text, time.monotonic() - dispatched[text])), Qt.DirectConnection)
        try:
            for _ in captions:
                loop.poll_once()
            join_translations(loop)
        finally:
            release.set()
            translator.shutdown()

        assert len(dispatched) == 16
        assert sorted(text for text, _ in results) == sorted(dispatched)
        assert max(latency for _, latency in results) < 0.6


class TestRunSession:
    """Tests for the session start sequence."""

    def test_startup_sequence(self, qapp, config, fake_source, translator):
        source = fake_source(["Hello"])
        loop, rec = make_loop(source, translator, config)
        # Not started, so the poll loop exits right after the start sequence
        loop.run_session()

        assert source.connected and source.hidden
        assert rec.statuses == [STATUS_STARTING, STATUS_STARTED]
        assert rec.cleared == 1
        assert rec.fatal == []

    def test_launch_failure_is_fatal(self, qapp, config, fake_source, translator):
        source = fake_source(connect_error=SourceLaunchFailure("window not found"))
        loop, rec = make_loop(source, translator, config)
        loop.running = True
        loop.run_session()

        assert loop.running is False
        assert len(rec.fatal) == 1
        assert "window not found" in rec.fatal[0]
        assert rec.cleared == 0
        assert source.hidden is False


class TestStartStop:
    """Tests for the background thread."""

    def test_start_and_stop(self, qapp, config, fake_source, translator):
        source = fake_source(["A steady caption."])
        loop, _ = make_loop(source, translator, config)
        loop.start()
        deadline = time.time() + 2
        while loop.detector.last_text != "A steady caption." and time.time() < deadline:
            time.sleep(0.01)
        loop.stop()

        assert loop.detector.last_text == "A steady caption."
        assert loop.thread is None
        assert loop.running is False

    def test_stop_without_start(self, qapp, config, fake_source, translator):
        loop, _ = make_loop(fake_source(), translator, config)
        loop.stop()
        assert loop.thread is None
