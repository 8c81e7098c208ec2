"""Overlay display settings, persisted with QSettings."""
import logging

from PyQt5.QtCore import QObject, QSettings, pyqtSignal

from caption_presentation import DisplayMode, visibility_for_mode

logger = logging.getLogger(__name__)

_SETTINGS_ORG = "LiveCaptionTranslate"
_SETTINGS_APP = "LiveCaptionTranslate"

FONT_SIZE_MIN, FONT_SIZE_MAX = 10, 48

# Text and background colours share one palette; indices are 1-based
COLOR_PALETTE = [
    ("White", "#FFFFFF"),
    ("Orange", "#FFA500"),
    ("Light green", "#90EE90"),
    ("Sky blue", "#87CEEB"),
    ("Royal blue", "#4169E1"),
    ("Magenta", "#FF00FF"),
    ("Crimson", "#DC143C"),
    ("Dark gray", "#A9A9A9"),
    ("Gold", "#FFD700"),
    ("Violet", "#EE82EE"),
]
COLOR_COUNT = len(COLOR_PALETTE)
OPACITY_MIN, OPACITY_MAX = 1, 255
OPACITY_STEP = 20
OPACITY_STEP_MAX = 251

DEFAULTS = {
    "target_language": "ru",
    "font_size": 18,
    "show_original": True,
    "show_translation": True,
    "color_index": 1,
    "background_color_index": 8,
    "opacity": 150,
    "display_mode": int(DisplayMode.BOTH),
}


class DisplaySettings:
    def __init__(self, **values):
        merged = dict(DEFAULTS)
        merged.update(values)
        self.target_language = merged["target_language"]
        self.font_size = merged["font_size"]
        self.show_original = merged["show_original"]
        self.show_translation = merged["show_translation"]
        self.color_index = merged["color_index"]
        self.background_color_index = merged["background_color_index"]
        self.opacity = merged["opacity"]
        self.display_mode = DisplayMode(merged["display_mode"])

    def to_dict(self):
        return {
            "target_language": self.target_language,
            "font_size": self.font_size,
            "show_original": self.show_original,
            "show_translation": self.show_translation,
            "color_index": self.color_index,
            "background_color_index": self.background_color_index,
            "opacity": self.opacity,
            "display_mode": int(self.display_mode),
        }

    def copy(self):
        return DisplaySettings(**self.to_dict())

    def __eq__(self, other):
        return isinstance(other, DisplaySettings) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"DisplaySettings({self.to_dict()})"

    # --- Control panel mutators ---

    def set_display_mode(self, mode):
        """Keeps (show_original, show_translation) in step with the mode."""
        self.display_mode = DisplayMode(mode)
        self.show_original, self.show_translation = visibility_for_mode(self.display_mode)

    def step_font_size(self, delta):
        self.font_size = min(FONT_SIZE_MAX, max(FONT_SIZE_MIN, self.font_size + delta))

    def cycle_color(self):
        self.color_index = self.color_index % COLOR_COUNT + 1

    def cycle_background_color(self):
        self.background_color_index = self.background_color_index % COLOR_COUNT + 1

    def step_opacity(self, delta):
        self.opacity = min(OPACITY_STEP_MAX, max(OPACITY_MIN, self.opacity + delta))


def palette_color(index):
    """Hex colour for a 1-based palette index; out-of-range indices wrap to the first colour."""
    if not 1 <= index <= COLOR_COUNT:
        index = 1
    return COLOR_PALETTE[index - 1][1]


def _read(qs, key, kind):
    """Raw QSettings value coerced to kind; None when missing or unparsable."""
    if not qs.contains(key):
        return None
    try:
        return qs.value(key, type=kind)
    except (TypeError, ValueError):
        return None


def heal_settings(raw):
    """
    Replace invalid fields with defaults, one field at a time.
    Returns (DisplaySettings, list of fixed field names).
    """
    fixed = []
    values = {}

    lang = raw.get("target_language")
    if not isinstance(lang, str) or not lang.strip():
        lang = DEFAULTS["target_language"]
        fixed.append("target_language")
    values["target_language"] = lang.strip()

    for key, lo, hi in (
        ("font_size", FONT_SIZE_MIN, FONT_SIZE_MAX),
        ("color_index", 1, COLOR_COUNT),
        ("background_color_index", 1, COLOR_COUNT),
        ("opacity", OPACITY_MIN, OPACITY_MAX),
        ("display_mode", 0, len(DisplayMode) - 1),
    ):
        value = raw.get(key)
        if isinstance(value, bool) or not isinstance(value, int) or not lo <= value <= hi:
            value = DEFAULTS[key]
            fixed.append(key)
        values[key] = value

    settings = DisplaySettings(**values)
    settings.set_display_mode(settings.display_mode)
    for key in ("show_original", "show_translation"):
        if raw.get(key) != getattr(settings, key):
            fixed.append(key)
    return settings, fixed


class SettingsStore(QObject):
    """
    Loads, heals and saves DisplaySettings. Subscribers connect to `changed`,
    which carries a copy of the saved settings.
    """

    changed = pyqtSignal(object)

    def __init__(self, path=None, parent=None):
        super().__init__(parent)
        if path:
            self._qs = QSettings(path, QSettings.IniFormat)
        else:
            self._qs = QSettings(_SETTINGS_ORG, _SETTINGS_APP)
        self.settings = None

    def load(self):
        """Read settings; invalid or missing fields get defaults and are written back."""
        qs = self._qs
        raw = {
            "target_language": _read(qs, "target_language", str),
            "font_size": _read(qs, "font_size", int),
            "show_original": _read(qs, "show_original", bool),
            "show_translation": _read(qs, "show_translation", bool),
            "color_index": _read(qs, "color_index", int),
            "background_color_index": _read(qs, "background_color_index", int),
            "opacity": _read(qs, "opacity", int),
            "display_mode": _read(qs, "display_mode", int),
        }
        settings, fixed = heal_settings(raw)
        if fixed:
            logger.warning("Invalid settings replaced with defaults: %s", ", ".join(fixed))
            self._write(settings)
        self.settings = settings
        logger.debug("Loaded %r", settings)
        return settings

    def save(self, settings, notify=True):
        settings.set_display_mode(settings.display_mode)
        self.settings = settings
        self._write(settings)
        if notify:
            self.changed.emit(settings.copy())

    def reset_to_defaults(self):
        settings = DisplaySettings()
        self.save(settings)
        return settings

    def _write(self, settings):
        for k, v in settings.to_dict().items():
            self._qs.setValue(k, v)
        self._qs.sync()
