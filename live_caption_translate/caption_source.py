"""Caption sources: Windows LiveCaptions (UI Automation) or a plain text file."""
import logging
import os
import subprocess
import sys
import time

logger = logging.getLogger(__name__)

LIVE_CAPTIONS_PROCESS = "LiveCaptions"
LIVE_CAPTIONS_WINDOW_CLASS = "LiveCaptionsDesktopWindow"
CAPTIONS_TEXT_ID = "CaptionsTextBlock"

_GWL_EXSTYLE = -20
_WS_EX_TOOLWINDOW = 0x00000080
_SW_MINIMIZE = 6
_SW_RESTORE = 9


class CaptionSourceError(Exception):
    pass


class SourceUnavailable(CaptionSourceError):
    """The caption element went away. Transient: reset() and retry."""


class SourceLaunchFailure(CaptionSourceError):
    """The caption window never showed up after launch."""


class CaptionSource:
    """Interface the capture loop talks to."""

    def connect(self):
        """Start (or attach to) the caption provider. Raises SourceLaunchFailure."""

    def get_text(self):
        """Full caption buffer as currently displayed. Raises SourceUnavailable."""
        raise NotImplementedError

    def reset(self):
        """Forget cached element references so the next get_text() looks them up again."""

    def hide(self):
        pass

    def reveal(self):
        pass


class LiveCaptionsSource(CaptionSource):
    """Reads the Windows 11 LiveCaptions window through UI Automation."""

    def __init__(self, process_name=LIVE_CAPTIONS_PROCESS, launch_attempts=100, launch_interval=0.2):
        self.process_name = process_name
        self.launch_attempts = launch_attempts
        self.launch_interval = launch_interval
        self.window = None
        self._text_block = None

    def connect(self):
        if sys.platform != "win32":
            raise SourceLaunchFailure(f"{self.process_name} needs Windows 11; set CAPTION_SOURCE_FILE to read captions from a file")
        self._terminate_existing()
        try:
            process = subprocess.Popen([self.process_name])
        except OSError as e:
            raise SourceLaunchFailure(f"Failed to launch {self.process_name}: {e}") from e
        self.window = self.find_process_window(process.pid)
        if self.window is None:
            raise SourceLaunchFailure(f"Failed to find {self.process_name} window after launch")
        logger.info("Found %s window (pid %s)", self.process_name, process.pid)

    def find_process_window(self, pid):
        import uiautomation as auto
        for attempt in range(self.launch_attempts):
            try:
                window = auto.WindowControl(searchDepth=1, ClassName=LIVE_CAPTIONS_WINDOW_CLASS)
                if window.Exists(0, 0) and window.ProcessId == pid:
                    return window
            except Exception as e:
                logger.debug("Window lookup attempt %d failed: %s", attempt + 1, e)
            time.sleep(self.launch_interval)
        return None

    def get_text(self):
        if self.window is None:
            return ""
        if self._text_block is None:
            try:
                block = self.window.TextControl(searchDepth=0xFFFFFFFF, AutomationId=CAPTIONS_TEXT_ID)
                if not block.Exists(0, 0):
                    return ""
            except Exception as e:
                raise SourceUnavailable(str(e)) from e
            self._text_block = block
        try:
            return self._text_block.Name or ""
        except Exception as e:
            self._text_block = None
            raise SourceUnavailable(str(e)) from e

    def reset(self):
        self._text_block = None

    def hide(self):
        if self.window is None:
            return
        try:
            import uiautomation as auto
            handle = self.window.NativeWindowHandle
            style = auto.GetWindowLong(handle, _GWL_EXSTYLE)
            auto.ShowWindow(handle, _SW_MINIMIZE)
            auto.SetWindowLong(handle, _GWL_EXSTYLE, style | _WS_EX_TOOLWINDOW)
        except Exception as e:
            logger.warning("Failed to hide %s window: %s", self.process_name, e)

    def reveal(self):
        if self.window is None:
            return
        try:
            import uiautomation as auto
            handle = self.window.NativeWindowHandle
            style = auto.GetWindowLong(handle, _GWL_EXSTYLE)
            auto.SetWindowLong(handle, _GWL_EXSTYLE, style & ~_WS_EX_TOOLWINDOW)
            auto.ShowWindow(handle, _SW_RESTORE)
        except Exception as e:
            logger.warning("Failed to reveal %s window: %s", self.process_name, e)

    def _terminate_existing(self):
        try:
            subprocess.run(
                ["taskkill", "/F", "/IM", f"{self.process_name}.exe"],
                capture_output=True, timeout=5,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug("Error terminating %s: %s", self.process_name, e)


class FileCaptionSource(CaptionSource):
    """Caption buffer read from a text file another process keeps rewriting."""

    def __init__(self, path):
        self.path = path

    def connect(self):
        if not os.path.exists(self.path):
            raise SourceLaunchFailure(f"Caption file not found: {self.path}")

    def get_text(self):
        try:
            with open(self.path, encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise SourceUnavailable(str(e)) from e


def create_caption_source(config):
    """LiveCaptions on Windows; CAPTION_SOURCE_FILE (or [capture] source_file) elsewhere."""
    if config.source_file:
        return FileCaptionSource(config.source_file)
    return LiveCaptionsSource(
        process_name=config.process_name,
        launch_attempts=config.launch_attempts,
        launch_interval=config.launch_interval,
    )
