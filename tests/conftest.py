"""Shared fixtures: an offscreen QApplication and small fakes for the capture pipeline."""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt5.QtWidgets import QApplication

from caption_config import Config
from caption_settings import SettingsStore
from caption_source import CaptionSource


@pytest.fixture(scope="session")
def qapp():
    """One QApplication for the whole run (Qt allows only one per process)."""
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def config(tmp_path, monkeypatch):
    """Config with defaults only and the waits shrunk for tests."""
    for var in ("CAPTION_SOURCE_FILE", "CAPTION_TRANSLATE_ENDPOINT", "LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    cfg = Config(config_path=str(tmp_path / "missing.ini"))
    cfg.poll_interval = 0.01
    cfg.reconnect_delay = 0
    cfg.settle_delay = 0
    return cfg


@pytest.fixture
def settings_store(qapp, tmp_path):
    """SettingsStore backed by an ini file in tmp_path, already loaded."""
    store = SettingsStore(path=str(tmp_path / "settings.ini"))
    store.load()
    return store


class FakeSource(CaptionSource):
    """Hands out scripted buffers; an Exception instance in the script is raised instead."""

    def __init__(self, script=None, connect_error=None):
        self.script = list(script or [])
        self.connect_error = connect_error
        self.connected = False
        self.hidden = False
        self.revealed = False
        self.resets = 0

    def connect(self):
        if self.connect_error:
            raise self.connect_error
        self.connected = True

    def get_text(self):
        if not self.script:
            return ""
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, Exception):
            raise item
        return item

    def reset(self):
        self.resets += 1

    def hide(self):
        self.hidden = True

    def reveal(self):
        self.revealed = True


@pytest.fixture
def fake_source():
    return FakeSource
