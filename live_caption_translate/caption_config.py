import configparser
import logging
import os
import sys

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s %(message)s"


def setup_logging(level=None, format=LOG_FORMAT):
    """
    Configure root logging once at startup.

    Args:
        level: Level name. Defaults to LOG_LEVEL env var or INFO.
        format: Log format string.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    log_level = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(level=log_level, format=format, stream=sys.stdout)
    logging.getLogger().setLevel(log_level)
    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(max(log_level, logging.INFO))
    return logging.getLogger()


class Config:
    """Tunables loaded from config.ini; environment variables take precedence."""

    def __init__(self, config_path=None):
        if config_path is None:
            # Look for config.ini in the same directory as this script
            config_path = os.path.join(os.path.dirname(__file__), "config.ini")

        self.config = configparser.ConfigParser()

        if os.path.exists(config_path):
            self.config.read(config_path, encoding="utf-8")
            logger.info("Loaded config from: %s", config_path)
        else:
            logger.debug("%s not found, using defaults/env vars", config_path)

        # Caption source
        self.process_name = self._get("capture", "process_name", "LiveCaptions")
        self.source_file = os.getenv("CAPTION_SOURCE_FILE") or self._get("capture", "source_file") or None
        self.poll_interval = self._getfloat("capture", "poll_interval", 0.025)
        self.reconnect_delay = self._getfloat("capture", "reconnect_delay", 1.0)
        self.launch_attempts = self._getint("capture", "launch_attempts", 100)
        self.launch_interval = self._getfloat("capture", "launch_interval", 0.2)
        # Pause between "started" status and the first caption
        self.settle_delay = self._getfloat("capture", "settle_delay", 2.0)

        # Text shaping
        self.byte_budget = self._getint("text", "byte_budget", 200)
        self.join_threshold = self._getint("text", "join_threshold", 35)

        # Translation
        self.endpoint = os.getenv("CAPTION_TRANSLATE_ENDPOINT") or self._get(
            "translation", "endpoint", "https://clients5.google.com/translate_a/t")
        self.client_id = self._get("translation", "client_id", "dict-chrome-ex")
        self.request_timeout = self._getfloat("translation", "request_timeout", 5.0)
        self.client_timeout = self._getfloat("translation", "client_timeout", 20.0)
        self.max_inflight = self._getint("translation", "max_inflight", 8)

        # Overlay fade and control panel
        self.fade_hold = self._getfloat("display", "fade_hold", 10.0)
        self.fade_divisor = self._getfloat("display", "fade_divisor", 20.0)
        self.fade_floor = self._getfloat("display", "fade_floor", 0.3)
        self.fade_tick_ms = self._getint("display", "fade_tick_ms", 1000)
        self.controls_hide_ms = self._getint("display", "controls_hide_ms", 300)

        self.log_level = (os.getenv("LOG_LEVEL") or self._get("logging", "level", "INFO")).upper()

    def _get(self, section, key, fallback=""):
        try:
            value = self.config.get(section, key)
            return value if value else fallback
        except (configparser.NoSectionError, configparser.NoOptionError):
            return fallback

    def _getint(self, section, key, fallback=0):
        try:
            return self.config.getint(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return fallback

    def _getfloat(self, section, key, fallback=0.0):
        try:
            return self.config.getfloat(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return fallback

    def log_config(self):
        """Log current configuration for debugging"""
        logger.info("Current settings:")
        logger.info("  Caption source: %s", self.source_file or self.process_name)
        logger.info("  Poll interval: %ss, reconnect delay: %ss", self.poll_interval, self.reconnect_delay)
        logger.info("  Translation endpoint: %s (client=%s)", self.endpoint, self.client_id)
        logger.info("  Timeouts: request %ss, client %ss", self.request_timeout, self.client_timeout)
        logger.info("  Byte budget: %s, join threshold: %s", self.byte_budget, self.join_threshold)
