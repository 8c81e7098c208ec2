import logging

from PyQt5.QtWidgets import (
    QComboBox,
    QDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
)

from caption_presentation import DisplayMode
from caption_settings import (
    COLOR_PALETTE,
    FONT_SIZE_MAX,
    FONT_SIZE_MIN,
    OPACITY_MAX,
    OPACITY_MIN,
    DisplaySettings,
)

logger = logging.getLogger(__name__)

_ACCENT = "#2E86AB"

LANGUAGE_OPTIONS = [
    ("Russian", "ru"),
    ("English", "en"),
    ("Chinese (Simplified)", "zh-CN"),
    ("Chinese (Traditional)", "zh-TW"),
    ("Japanese", "ja"),
    ("Korean", "ko"),
    ("Spanish", "es"),
    ("French", "fr"),
    ("German", "de"),
    ("Italian", "it"),
    ("Portuguese", "pt"),
    ("Arabic", "ar"),
    ("Thai", "th"),
    ("Vietnamese", "vi"),
    ("Indonesian", "id"),
    ("Turkish", "tr"),
    ("Polish", "pl"),
    ("Dutch", "nl"),
    ("Swedish", "sv"),
    ("Greek", "el"),
    ("Hebrew", "he"),
    ("Hindi", "hi"),
    ("Ukrainian", "uk"),
    ("Czech", "cs"),
    ("Romanian", "ro"),
    ("Hungarian", "hu"),
    ("Persian", "fa"),
]

_MODE_OPTIONS = [
    ("Original and translation", DisplayMode.BOTH),
    ("Translation only", DisplayMode.TRANSLATION_ONLY),
    ("Original only", DisplayMode.ORIGINAL_ONLY),
]


class SettingsDialog(QDialog):
    """Display settings. Apply saves and broadcasts without closing; Defaults resets everything."""

    def __init__(self, settings_store, parent=None):
        super().__init__(parent)
        self.settings_store = settings_store
        self.setWindowTitle("Settings")
        self.setMinimumWidth(380)
        self.setStyleSheet(f"""
            QDialog {{ background: rgba(255, 255, 255, 0.95); }}
            QLabel {{ color: #333; font-size: 13px; }}
            QPushButton {{ background: {_ACCENT}; color: white; border: none; border-radius: 8px; padding: 8px 16px; }}
            QPushButton:hover {{ background: #23698a; }}
            QSpinBox, QComboBox {{ min-width: 120px; }}
        """)

        layout = QVBoxLayout(self)
        layout.setSpacing(14)
        layout.setContentsMargins(24, 24, 24, 24)
        title = QLabel("Settings")
        title.setStyleSheet(f"color: {_ACCENT}; font-size: 18px; font-weight: bold;")
        layout.addWidget(title)

        form = QFormLayout()
        self.language_combo = QComboBox()
        for label, code in LANGUAGE_OPTIONS:
            self.language_combo.addItem(f"{label} ({code})", code)
        form.addRow("Translate to:", self.language_combo)

        self.font_spin = QSpinBox()
        self.font_spin.setRange(FONT_SIZE_MIN, FONT_SIZE_MAX)
        self.font_spin.setSuffix(" pt")
        form.addRow("Font size:", self.font_spin)

        self.color_combo = self._palette_combo()
        form.addRow("Text colour:", self.color_combo)
        self.background_combo = self._palette_combo()
        form.addRow("Background colour:", self.background_combo)

        self.opacity_spin = QSpinBox()
        self.opacity_spin.setRange(OPACITY_MIN, OPACITY_MAX)
        self.opacity_spin.setToolTip("Overlay opacity (1 = almost transparent, 255 = opaque)")
        form.addRow("Opacity:", self.opacity_spin)

        self.mode_combo = QComboBox()
        for label, mode in _MODE_OPTIONS:
            self.mode_combo.addItem(label, int(mode))
        form.addRow("Show:", self.mode_combo)
        layout.addLayout(form)

        btns = QHBoxLayout()
        defaults_btn = QPushButton("Defaults")
        defaults_btn.clicked.connect(self.restore_defaults)
        btns.addWidget(defaults_btn)
        btns.addStretch()
        apply_btn = QPushButton("Apply")
        apply_btn.setToolTip("Save and apply now. Dialog stays open.")
        apply_btn.clicked.connect(self.apply)
        btns.addWidget(apply_btn)
        close_btn = QPushButton("Close")
        close_btn.clicked.connect(self.reject)
        btns.addWidget(close_btn)
        layout.addLayout(btns)

        self.load_from(settings_store.settings)

    @staticmethod
    def _palette_combo():
        combo = QComboBox()
        for i, (name, _hex) in enumerate(COLOR_PALETTE, start=1):
            combo.addItem(name, i)
        return combo

    @staticmethod
    def _select_data(combo, value):
        idx = combo.findData(value)
        if idx >= 0:
            combo.setCurrentIndex(idx)

    def load_from(self, settings):
        lang = settings.target_language
        if self.language_combo.findData(lang) < 0:
            # Keep a hand-edited code selectable
            self.language_combo.addItem(lang, lang)
        self._select_data(self.language_combo, lang)
        self.font_spin.setValue(settings.font_size)
        self._select_data(self.color_combo, settings.color_index)
        self._select_data(self.background_combo, settings.background_color_index)
        self.opacity_spin.setValue(settings.opacity)
        self._select_data(self.mode_combo, int(settings.display_mode))

    def gather_settings(self):
        settings = DisplaySettings(
            target_language=self.language_combo.currentData(),
            font_size=self.font_spin.value(),
            color_index=self.color_combo.currentData(),
            background_color_index=self.background_combo.currentData(),
            opacity=self.opacity_spin.value(),
        )
        settings.set_display_mode(self.mode_combo.currentData())
        return settings

    def apply(self):
        settings = self.gather_settings()
        self.settings_store.save(settings)
        logger.info("Settings applied: %r", settings)

    def restore_defaults(self):
        self.load_from(self.settings_store.reset_to_defaults())
        logger.info("Settings reset to defaults")


def show_settings_dialog(settings_store, parent=None):
    """Run the settings dialog modally. Returns True if anything was applied."""
    dlg = SettingsDialog(settings_store, parent)
    applied = []

    def on_changed(settings):
        applied.append(settings)

    settings_store.changed.connect(on_changed)
    try:
        dlg.exec_()
    finally:
        settings_store.changed.disconnect(on_changed)
    return bool(applied)
