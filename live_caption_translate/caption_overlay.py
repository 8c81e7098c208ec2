import logging

from PyQt5.QtCore import Qt, QTimer, pyqtSlot
from PyQt5.QtGui import QColor, QCursor, QFont
from PyQt5.QtWidgets import (
    QApplication,
    QFrame,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from caption_presentation import ControlPanelVisibility, FadeController, next_display_mode
from caption_settings import OPACITY_STEP, palette_color
from caption_state import WAITING_TEXT

logger = logging.getLogger(__name__)

# Background alpha never drops below this, whatever the opacity setting
MIN_BACKGROUND_ALPHA = 50


class _PanelButton(QPushButton):
    """Small text button for the hover control panel."""
    _BTN_STYLE = """
        QPushButton {
            color: white;
            background: rgba(0, 0, 0, 120);
            border: none;
            border-radius: 6px;
            padding: 2px 6px;
        }
        QPushButton:hover {
            background: rgba(0, 0, 0, 200);
        }
    """

    def __init__(self, text, tooltip, parent=None):
        super().__init__(text, parent)
        self.setCursor(Qt.PointingHandCursor)
        self.setFocusPolicy(Qt.NoFocus)
        self.setFixedHeight(26)
        self.setMinimumWidth(30)
        self.setFont(QFont("Arial", 10))
        self.setToolTip(tooltip)
        self.setStyleSheet(self._BTN_STYLE)


class SubtitleOverlay(QWidget):
    """
    Frameless always-on-top caption window: original text over its translation,
    draggable, with a control panel that appears while the pointer is over it.

    Display changes made from the panel go through the SettingsStore; the
    overlay re-renders from the store's `changed` broadcast like every other
    subscriber.
    """

    DEFAULT_WIDTH = 900
    BOTTOM_MARGIN = 80

    def __init__(self, settings_store, config, on_quit=None, on_settings=None):
        super().__init__()
        self.settings_store = settings_store
        self._on_quit = on_quit
        self._on_settings = on_settings
        self._drag_start = None
        self._status_active = False
        self._show_original = True
        self._show_translation = True

        self.setWindowFlags(Qt.FramelessWindowHint | Qt.WindowStaysOnTopHint | Qt.Tool)
        self.setAttribute(Qt.WA_TranslucentBackground)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setCursor(Qt.OpenHandCursor)
        self.setFixedWidth(self.DEFAULT_WIDTH)

        settings = settings_store.settings
        self.fade = FadeController(
            opacity_byte=settings.opacity,
            hold_sec=config.fade_hold,
            divisor=config.fade_divisor,
            floor=config.fade_floor,
        )
        self.controls = ControlPanelVisibility(config.controls_hide_ms)

        layout = QVBoxLayout(self)
        layout.setSpacing(4)
        layout.setContentsMargins(0, 0, 0, 0)

        self.control_panel = self._create_control_panel()
        self.control_panel.hide()
        layout.addWidget(self.control_panel)

        self.body = QFrame(self)
        self.body.setObjectName("captionBody")
        body_layout = QVBoxLayout(self.body)
        body_layout.setSpacing(6)
        body_layout.setContentsMargins(12, 10, 12, 10)

        self.status_label = QLabel()
        self.status_label.setWordWrap(True)
        self.status_label.setFont(QFont("Arial", 12))
        self.status_label.setStyleSheet("color: #ff6b6b; background: transparent;")
        self.status_label.setAttribute(Qt.WA_TransparentForMouseEvents, True)
        self.status_label.hide()
        body_layout.addWidget(self.status_label)

        self.original_label = self._create_caption_label(WAITING_TEXT)
        body_layout.addWidget(self.original_label)

        self.divider = QFrame(self.body)
        self.divider.setFixedHeight(1)
        self.divider.setStyleSheet("background: rgba(255, 255, 255, 90);")
        body_layout.addWidget(self.divider)

        self.translation_label = self._create_caption_label("")
        body_layout.addWidget(self.translation_label)

        layout.addWidget(self.body)

        self._fade_timer = QTimer(self)
        self._fade_timer.setInterval(config.fade_tick_ms)
        self._fade_timer.timeout.connect(self._on_fade_tick)

        self._controls_timer = QTimer(self)
        self._controls_timer.setSingleShot(True)
        self._controls_timer.timeout.connect(self._on_controls_timer)

        settings_store.changed.connect(self.apply_settings)
        self.apply_settings(settings)
        self.reset_position()

    def _create_caption_label(self, text):
        label = QLabel(text)
        label.setWordWrap(True)
        label.setTextFormat(Qt.PlainText)
        label.setAlignment(Qt.AlignLeft | Qt.AlignTop)
        # Let clicks through to the overlay for dragging
        label.setAttribute(Qt.WA_TransparentForMouseEvents, True)
        return label

    def _create_control_panel(self):
        panel = QWidget(self)
        row = QHBoxLayout(panel)
        row.setContentsMargins(0, 0, 0, 0)
        row.setSpacing(4)
        buttons = [
            ("A-", "Smaller text", lambda: self._update_settings(lambda s: s.step_font_size(-1))),
            ("A+", "Larger text", lambda: self._update_settings(lambda s: s.step_font_size(1))),
            ("Color", "Next text colour", lambda: self._update_settings(lambda s: s.cycle_color())),
            ("Bg", "Next background colour",
             lambda: self._update_settings(lambda s: s.cycle_background_color())),
            ("◐-", "Less opaque", lambda: self._update_settings(lambda s: s.step_opacity(-OPACITY_STEP))),
            ("◐+", "More opaque", lambda: self._update_settings(lambda s: s.step_opacity(OPACITY_STEP))),
            ("Mode", "Both / translation only / original only", self._toggle_display_mode),
            ("Settings", "Open settings", self._open_settings),
            ("✕", "Close (Esc)", self._quit),
        ]
        row.addStretch()
        for text, tooltip, handler in buttons:
            btn = _PanelButton(text, tooltip, panel)
            btn.clicked.connect(handler)
            row.addWidget(btn)
        return panel

    # --- Control panel actions ---

    def _update_settings(self, mutate):
        settings = self.settings_store.settings.copy()
        mutate(settings)
        self.settings_store.save(settings)

    def _toggle_display_mode(self):
        self._update_settings(lambda s: s.set_display_mode(next_display_mode(s.display_mode)))

    def _open_settings(self):
        if self._on_settings:
            self._on_settings()

    def _quit(self):
        if self._on_quit:
            self._on_quit()
        else:
            self.close()

    # --- Render surface ---

    @pyqtSlot(str)
    def set_original_text(self, text):
        self._clear_status()
        self.original_label.setText(text)
        self.set_opacity(self.fade.on_caption_update())
        if not self._fade_timer.isActive():
            self._fade_timer.start()
        self.adjustSize()

    @pyqtSlot(str)
    def set_translated_text(self, text):
        self.translation_label.setText(text)
        self.adjustSize()

    def set_opacity(self, value):
        self.setWindowOpacity(max(0.0, min(1.0, value)))

    @pyqtSlot(bool, bool)
    def set_visible(self, show_original, show_translation):
        self._show_original = show_original
        self._show_translation = show_translation
        self._update_visibility()

    @pyqtSlot(str)
    def set_status(self, message):
        """Status replaces the caption rows until the next caption arrives."""
        if not message:
            self._clear_status()
            return
        self._status_active = True
        self.status_label.setText(message)
        self.status_label.show()
        self._update_visibility()
        self.adjustSize()

    @pyqtSlot()
    def clear(self):
        self._clear_status()
        self.original_label.setText(WAITING_TEXT)
        self.translation_label.setText("")
        self._fade_timer.stop()
        self.set_opacity(self.fade.reset())
        self.adjustSize()

    def _clear_status(self):
        if not self._status_active:
            return
        self._status_active = False
        self.status_label.hide()
        self.status_label.clear()
        self._update_visibility()

    def _update_visibility(self):
        show_original = self._show_original and not self._status_active
        show_translation = self._show_translation and not self._status_active
        self.original_label.setVisible(show_original)
        self.translation_label.setVisible(show_translation)
        self.divider.setVisible(show_original and show_translation)

    @pyqtSlot(object)
    def apply_settings(self, settings):
        """Re-render fonts, colours, background and visibility from DisplaySettings."""
        self.original_label.setFont(QFont("Arial", settings.font_size))
        # Translation one point smaller
        self.translation_label.setFont(QFont("Arial", max(1, settings.font_size - 1)))
        text_color = palette_color(settings.color_index)
        for label in (self.original_label, self.translation_label):
            label.setStyleSheet(f"color: {text_color}; background: transparent;")

        bg = QColor(palette_color(settings.background_color_index))
        alpha = min(255, max(MIN_BACKGROUND_ALPHA, settings.opacity))
        self.body.setStyleSheet(
            f"QFrame#captionBody {{ background-color: rgba({bg.red()}, {bg.green()}, {bg.blue()}, {alpha});"
            f" border-radius: 5px; }}"
        )

        self.fade.opacity_byte = settings.opacity
        if not self.fade.active:
            self.set_opacity(self.fade.baseline)
        self.set_visible(settings.show_original, settings.show_translation)
        self.adjustSize()
        logger.debug("Overlay settings applied: %r", settings)

    def reset_position(self):
        """Centre the overlay horizontally near the bottom of the primary screen."""
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        area = screen.availableGeometry()
        self.adjustSize()
        x = area.x() + (area.width() - self.width()) // 2
        y = area.y() + area.height() - self.height() - self.BOTTOM_MARGIN
        self.move(x, y)

    # --- Timers ---

    def _on_fade_tick(self):
        if not self.fade.active:
            self._fade_timer.stop()
            return
        self.set_opacity(self.fade.tick())

    def _on_controls_timer(self):
        pointer_over = self.rect().contains(self.mapFromGlobal(QCursor.pos()))
        if not self.controls.hide_timer_fired(pointer_over):
            self.control_panel.hide()
            self.adjustSize()

    # --- Events ---

    def enterEvent(self, e):
        super().enterEvent(e)
        self._controls_timer.stop()
        self.controls.pointer_entered()
        if not self.control_panel.isVisible():
            self.control_panel.show()
            self.adjustSize()

    def leaveEvent(self, e):
        super().leaveEvent(e)
        self._controls_timer.start(self.controls.pointer_left())

    def mousePressEvent(self, e):
        if e.button() == Qt.LeftButton:
            self._drag_start = (e.globalPos(), self.frameGeometry().topLeft())

    def mouseMoveEvent(self, e):
        if self._drag_start:
            delta = e.globalPos() - self._drag_start[0]
            self.move(self._drag_start[1] + delta)
            self.setCursor(Qt.ClosedHandCursor)

    def mouseReleaseEvent(self, e):
        if e.button() == Qt.LeftButton:
            self._drag_start = None
            self.setCursor(Qt.OpenHandCursor)

    def keyPressEvent(self, event):
        if event.key() in (Qt.Key_Escape, Qt.Key_Q):
            self._quit()
        elif event.key() == Qt.Key_R:
            self.reset_position()

    def closeEvent(self, e):
        self._fade_timer.stop()
        self._controls_timer.stop()
        super().closeEvent(e)
