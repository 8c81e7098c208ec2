import time

from PyQt5.QtCore import QObject, pyqtSignal, pyqtSlot

WAITING_TEXT = "Waiting for subtitles..."


class CaptionState(QObject):
    """
    Current caption, its translation and what the overlay should show.

    Lives on the GUI thread. The capture thread and translation threads reach it
    only through queued signals, so updates are applied one at a time in arrival
    order. Translations are applied as they complete: a slow earlier request can
    overwrite a faster later one.
    """

    original_changed = pyqtSignal(str)
    translation_changed = pyqtSignal(str)
    status_changed = pyqtSignal(str)
    visibility_changed = pyqtSignal(bool, bool)
    cleared = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.original_text = ""
        self.translated_text = ""
        self.status_text = ""
        self.last_update_time = time.time()
        self.show_original = True
        self.show_translation = True

    @pyqtSlot(str)
    def set_original(self, text):
        if not text or not text.strip() or text == self.original_text:
            return
        self.original_text = text
        self.last_update_time = time.time()
        self.status_text = ""
        self.original_changed.emit(text)

    @pyqtSlot(str)
    def set_translation(self, text):
        if text == self.translated_text:
            return
        self.translated_text = text
        self.translation_changed.emit(text)

    @pyqtSlot(str)
    def set_status(self, message):
        self.status_text = message
        self.status_changed.emit(message)

    @pyqtSlot()
    def clear(self):
        self.original_text = ""
        self.translated_text = ""
        self.status_text = ""
        self.cleared.emit()

    def set_visibility(self, show_original, show_translation):
        if (show_original, show_translation) == (self.show_original, self.show_translation):
            return
        self.show_original = show_original
        self.show_translation = show_translation
        self.visibility_changed.emit(show_original, show_translation)

    @pyqtSlot(object)
    def apply_settings(self, settings):
        self.set_visibility(settings.show_original, settings.show_translation)
