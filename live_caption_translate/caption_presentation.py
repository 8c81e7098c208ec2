"""
Overlay presentation state: opacity fade after the last caption, control panel
visibility and display-mode cycling.

Nothing here touches Qt. The overlay calls these from its QTimers with
time.monotonic() timestamps; tests pass explicit times.
"""
import time
from enum import Enum, IntEnum


class DisplayMode(IntEnum):
    BOTH = 0
    TRANSLATION_ONLY = 1
    ORIGINAL_ONLY = 2


_NEXT_MODE = {
    DisplayMode.BOTH: DisplayMode.TRANSLATION_ONLY,
    DisplayMode.TRANSLATION_ONLY: DisplayMode.ORIGINAL_ONLY,
    DisplayMode.ORIGINAL_ONLY: DisplayMode.BOTH,
}

_VISIBILITY = {
    DisplayMode.BOTH: (True, True),
    DisplayMode.TRANSLATION_ONLY: (False, True),
    DisplayMode.ORIGINAL_ONLY: (True, False),
}


def next_display_mode(mode):
    return _NEXT_MODE[DisplayMode(mode)]


def visibility_for_mode(mode):
    """(show_original, show_translation) for a display mode."""
    return _VISIBILITY[DisplayMode(mode)]


def normalized_opacity(opacity_byte):
    """Settings opacity (1-255) as a window opacity in (0, 1]."""
    return min(255, max(1, int(opacity_byte))) / 255.0


class FadePhase(Enum):
    FRESH = "fresh"
    FADING = "fading"
    IDLE = "idle"


class FadeController:
    """
    Holds the overlay at baseline opacity for hold_sec after each caption,
    then fades linearly (1.0 per divisor seconds) down to floor.
    """

    def __init__(self, opacity_byte=150, hold_sec=10.0, divisor=20.0, floor=0.3, clock=time.monotonic):
        self.opacity_byte = opacity_byte
        self.hold_sec = hold_sec
        self.divisor = divisor
        self.floor = floor
        self._clock = clock
        self.last_update = clock()
        self.phase = FadePhase.FRESH
        self.opacity = self.baseline
        self.active = False

    @property
    def baseline(self):
        return normalized_opacity(self.opacity_byte)

    def on_caption_update(self, now=None):
        """New caption: back to baseline and (re)start fading."""
        self.last_update = self._clock() if now is None else now
        self.phase = FadePhase.FRESH
        self.opacity = self.baseline
        self.active = True
        return self.opacity

    def tick(self, now=None):
        if now is None:
            now = self._clock()
        elapsed = now - self.last_update
        baseline = self.baseline
        if elapsed <= self.hold_sec:
            self.phase = FadePhase.FRESH
            self.opacity = baseline
        else:
            faded = baseline - (elapsed - self.hold_sec) / self.divisor
            if faded <= self.floor:
                self.phase = FadePhase.IDLE
                self.opacity = self.floor
            else:
                self.phase = FadePhase.FADING
                self.opacity = faded
        return self.opacity

    def reset(self):
        """Captions cleared: stop fading and sit at baseline."""
        self.active = False
        self.phase = FadePhase.FRESH
        self.opacity = self.baseline
        return self.opacity


class ControlPanelVisibility:
    """Shown as soon as the pointer enters; hidden only after a quiet hide delay."""

    def __init__(self, hide_delay_ms=300):
        self.hide_delay_ms = hide_delay_ms
        self.visible = False
        self.hide_pending = False

    def pointer_entered(self):
        self.hide_pending = False
        self.visible = True

    def pointer_left(self):
        """Arm the hide timer. Returns the delay the caller should wait."""
        self.hide_pending = True
        return self.hide_delay_ms

    def hide_timer_fired(self, pointer_over):
        """pointer_over: pointer is over the overlay or the panel right now."""
        if not self.hide_pending:
            return self.visible
        self.hide_pending = False
        if not pointer_over:
            self.visible = False
        return self.visible
