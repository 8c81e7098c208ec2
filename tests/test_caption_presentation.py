"""
Unit tests for presentation: fade curve, control panel visibility and display modes.
"""

import pytest

from caption_presentation import (
    ControlPanelVisibility,
    DisplayMode,
    FadeController,
    FadePhase,
    next_display_mode,
    normalized_opacity,
    visibility_for_mode,
)


class TestFadeController:
    """FadeController holds for 10 s then fades 1.0 per 20 s down to 0.3."""

    def make(self, opacity_byte=255):
        fade = FadeController(opacity_byte=opacity_byte, clock=lambda: 0.0)
        fade.on_caption_update(now=0.0)
        return fade

    def test_fresh_caption_at_baseline(self):
        fade = self.make()
        assert fade.tick(now=0.0) == pytest.approx(1.0)
        assert fade.phase is FadePhase.FRESH

    def test_still_baseline_at_end_of_hold(self):
        fade = self.make()
        assert fade.tick(now=10.0) == pytest.approx(1.0)

    def test_fading_after_hold(self):
        fade = self.make()
        assert fade.tick(now=15.0) == pytest.approx(0.75)
        assert fade.phase is FadePhase.FADING

    def test_floor_after_long_silence(self):
        fade = self.make()
        assert fade.tick(now=40.0) == pytest.approx(0.3)
        assert fade.phase is FadePhase.IDLE
        assert fade.tick(now=400.0) == pytest.approx(0.3)

    def test_baseline_follows_opacity_setting(self):
        fade = self.make(opacity_byte=150)
        assert fade.tick(now=0.0) == pytest.approx(150 / 255)
        assert fade.tick(now=15.0) == pytest.approx(150 / 255 - 0.25)

    def test_new_caption_restores_baseline(self):
        fade = self.make()
        fade.tick(now=30.0)
        assert fade.on_caption_update(now=30.0) == pytest.approx(1.0)
        assert fade.tick(now=35.0) == pytest.approx(1.0)

    def test_reset_stops_fading(self):
        fade = self.make()
        fade.tick(now=30.0)
        assert fade.reset() == pytest.approx(1.0)
        assert fade.active is False


class TestNormalizedOpacity:
    """Opacity bytes are clamped to 1-255."""

    @pytest.mark.parametrize("value,expected", [(0, 1 / 255), (255, 1.0), (300, 1.0), (51, 0.2)])
    def test_clamped(self, value, expected):
        assert normalized_opacity(value) == pytest.approx(expected)


class TestControlPanelVisibility:
    """Control panel show/hide timing."""

    def test_enter_shows_immediately(self):
        panel = ControlPanelVisibility()
        panel.pointer_entered()
        assert panel.visible is True

    def test_leave_arms_delay(self):
        panel = ControlPanelVisibility(hide_delay_ms=300)
        panel.pointer_entered()
        assert panel.pointer_left() == 300
        assert panel.visible is True
        assert panel.hide_pending is True

    def test_hides_when_pointer_gone(self):
        panel = ControlPanelVisibility()
        panel.pointer_entered()
        panel.pointer_left()
        assert panel.hide_timer_fired(pointer_over=False) is False

    def test_stays_when_pointer_over_panel(self):
        panel = ControlPanelVisibility()
        panel.pointer_entered()
        panel.pointer_left()
        assert panel.hide_timer_fired(pointer_over=True) is True

    def test_reenter_cancels_pending_hide(self):
        panel = ControlPanelVisibility()
        panel.pointer_entered()
        panel.pointer_left()
        panel.pointer_entered()
        assert panel.hide_timer_fired(pointer_over=False) is True


class TestDisplayMode:
    """Display mode cycle and visibility mapping."""

    def test_cycle(self):
        assert next_display_mode(DisplayMode.BOTH) is DisplayMode.TRANSLATION_ONLY
        assert next_display_mode(DisplayMode.TRANSLATION_ONLY) is DisplayMode.ORIGINAL_ONLY
        assert next_display_mode(DisplayMode.ORIGINAL_ONLY) is DisplayMode.BOTH

    def test_cycle_accepts_ints(self):
        assert next_display_mode(2) is DisplayMode.BOTH

    @pytest.mark.parametrize("mode,expected", [
        (DisplayMode.BOTH, (True, True)),
        (DisplayMode.TRANSLATION_ONLY, (False, True)),
        (DisplayMode.ORIGINAL_ONLY, (True, False)),
    ])
    def test_visibility(self, mode, expected):
        assert visibility_for_mode(mode) == expected
