"""Google dictionary-endpoint translation with a hard deadline and silent fallback."""
import logging
import threading

import requests

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://clients5.google.com/translate_a/t"
DEFAULT_CLIENT_ID = "dict-chrome-ex"


class _PendingCall:
    """One HTTP call running on its own daemon thread."""

    def __init__(self):
        self.done = threading.Event()
        self.result = None
        self.error = None


class CaptionTranslator:
    """
    Translates one caption at a time. translate() never raises: on timeout, HTTP
    error or an unexpected body it returns the text it was given.

    Two limits apply to every call: client_timeout is handed to requests as the
    connect/read timeout, request_timeout is the wall-clock deadline for the whole
    call, counted from the moment translate() is entered. Whichever fires first wins.

    Each call runs on a daemon thread, so a stalled request never holds up
    process exit. At most max_inflight calls may be on the wire; past that,
    translate() returns the original text without sending anything.
    """

    def __init__(self, endpoint=DEFAULT_ENDPOINT, client_id=DEFAULT_CLIENT_ID,
                 request_timeout=5.0, client_timeout=20.0, max_inflight=8, session=None):
        self.endpoint = endpoint
        self.client_id = client_id
        self.request_timeout = request_timeout
        self.client_timeout = client_timeout
        self.max_inflight = max_inflight
        self.session = session or requests.Session()
        self._inflight = set()
        self._lock = threading.Lock()
        self._closed = False

    def translate(self, text, target_lang):
        if not text or not text.strip():
            return ""
        call = _PendingCall()
        with self._lock:
            if self._closed:
                return text
            if len(self._inflight) >= self.max_inflight:
                logger.debug("Translation skipped: %d requests already in flight", len(self._inflight))
                return text
            self._inflight.add(call)
        threading.Thread(target=self._run, args=(call, text, target_lang),
                         name="translate-http", daemon=True).start()

        if not call.done.wait(self.request_timeout):
            logger.debug("Translation timed out (> %ss)", self.request_timeout)
            return text
        if isinstance(call.error, requests.exceptions.Timeout):
            logger.debug("Translation HTTP timeout")
            return text
        if isinstance(call.error, requests.exceptions.RequestException):
            logger.debug("Translation HTTP error: %s", call.error)
            return text
        if call.error is not None:
            logger.warning("Translation unexpected error: %s: %s", type(call.error).__name__, call.error)
            return text
        result = call.result
        if not result or not result.strip():
            return text
        logger.debug("Translated '%s' -> '%s'", text[:60], result[:60])
        return result

    def _run(self, call, text, target_lang):
        try:
            call.result = self._request(text, target_lang)
        except Exception as e:
            call.error = e
        finally:
            with self._lock:
                self._inflight.discard(call)
            call.done.set()

    def _request(self, text, target_lang):
        with self.session.get(
            self.endpoint,
            params={"client": self.client_id, "sl": "auto", "tl": target_lang, "q": text},
            timeout=self.client_timeout,
        ) as r:
            if not r.ok:
                logger.debug("Translation API error: HTTP %s", r.status_code)
                return None
            return parse_translation(r.json())

    @property
    def inflight(self):
        with self._lock:
            return len(self._inflight)

    def shutdown(self):
        """Refuse new calls, abandon the ones on the wire and release pooled connections."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            abandoned = len(self._inflight)
        if abandoned:
            logger.info("Abandoning %d in-flight translation request(s)", abandoned)
        self.session.close()
        logger.info("Translator shut down")

    def close(self):
        """Synchronous cleanup for atexit; never raises."""
        try:
            self.shutdown()
        except Exception as e:
            logger.warning("Error during translator shutdown: %s", e)


def parse_translation(data):
    """First string of the first inner list, e.g. [["Hallo", "Hello"]] -> "Hallo"."""
    if not isinstance(data, list) or not data:
        return None
    first = data[0]
    if isinstance(first, list):
        first = first[0] if first else None
    if not isinstance(first, str):
        return None
    return first
