"""
Smoke tests for the overlay and settings dialog under the offscreen Qt platform.
"""

import pytest

from caption_overlay import SubtitleOverlay
from caption_presentation import DisplayMode
from caption_settings import DEFAULTS, DisplaySettings
from caption_settings_dialog import SettingsDialog
from caption_state import WAITING_TEXT


@pytest.fixture
def overlay(qapp, settings_store, config):
    quit_calls = []
    widget = SubtitleOverlay(settings_store, config, on_quit=lambda: quit_calls.append(True))
    widget.quit_calls = quit_calls
    yield widget
    widget.close()
    widget.deleteLater()


class TestSubtitleOverlay:
    """Render surface behaviour."""

    def test_starts_with_placeholder(self, overlay):
        assert overlay.original_label.text() == WAITING_TEXT

    def test_caption_resets_fade(self, overlay):
        overlay.set_original_text("Hello there")
        assert overlay.original_label.text() == "Hello there"
        assert overlay.fade.active is True
        assert overlay._fade_timer.isActive()

    def test_translation(self, overlay):
        overlay.set_translated_text("Привет")
        assert overlay.translation_label.text() == "Привет"

    def test_status_replaces_caption_until_next_caption(self, overlay):
        overlay.set_status("Connection lost")
        assert not overlay.status_label.isHidden()
        assert overlay.original_label.isHidden()
        overlay.set_original_text("We are back")
        assert overlay.status_label.isHidden()
        assert not overlay.original_label.isHidden()

    def test_set_visible(self, overlay):
        overlay.set_visible(False, True)
        assert overlay.original_label.isHidden()
        assert not overlay.translation_label.isHidden()
        assert overlay.divider.isHidden()

    def test_clear(self, overlay):
        overlay.set_original_text("Hello there")
        overlay.set_translated_text("Привет")
        overlay.clear()
        assert overlay.original_label.text() == WAITING_TEXT
        assert overlay.translation_label.text() == ""
        assert overlay.fade.active is False
        assert not overlay._fade_timer.isActive()

    def test_font_button_saves_through_store(self, overlay, settings_store):
        overlay._update_settings(lambda s: s.step_font_size(1))
        assert settings_store.settings.font_size == DEFAULTS["font_size"] + 1
        assert overlay.original_label.font().pointSize() == DEFAULTS["font_size"] + 1
        assert overlay.translation_label.font().pointSize() == DEFAULTS["font_size"]

    def test_mode_toggle(self, overlay, settings_store):
        overlay._toggle_display_mode()
        assert settings_store.settings.display_mode is DisplayMode.TRANSLATION_ONLY
        assert overlay.original_label.isHidden()

    def test_opacity_setting_changes_window_opacity(self, overlay, settings_store):
        settings_store.save(DisplaySettings(opacity=255))
        assert overlay.windowOpacity() == pytest.approx(1.0, abs=0.01)

    def test_close_button_calls_quit(self, overlay):
        overlay._quit()
        assert overlay.quit_calls == [True]


class TestSettingsDialog:
    """Apply and Defaults."""

    def test_apply_saves(self, qapp, settings_store):
        dlg = SettingsDialog(settings_store)
        dlg.font_spin.setValue(30)
        dlg.language_combo.setCurrentIndex(dlg.language_combo.findData("ja"))
        dlg.mode_combo.setCurrentIndex(dlg.mode_combo.findData(int(DisplayMode.ORIGINAL_ONLY)))
        dlg.apply()

        settings = settings_store.settings
        assert settings.font_size == 30
        assert settings.target_language == "ja"
        assert (settings.show_original, settings.show_translation) == (True, False)

    def test_defaults(self, qapp, settings_store):
        settings_store.save(DisplaySettings(font_size=40, opacity=10))
        dlg = SettingsDialog(settings_store)
        assert dlg.font_spin.value() == 40
        dlg.restore_defaults()
        assert dlg.font_spin.value() == DEFAULTS["font_size"]
        assert settings_store.settings == DisplaySettings()

    def test_unknown_language_kept(self, qapp, settings_store):
        settings_store.save(DisplaySettings(target_language="xx"))
        dlg = SettingsDialog(settings_store)
        assert dlg.gather_settings().target_language == "xx"
