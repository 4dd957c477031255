import logging
import threading

logger = logging.getLogger(__name__)


class ClientTokenCell:
    """
    Holds the process-wide client-credentials token.
    A single background thread refreshes it on a fixed interval; request
    handlers only ever read ``value`` and never wait on a refresh.
    """

    def __init__(self, fetch_token, interval):
        self._fetch_token = fetch_token
        self._interval = interval
        self._value = None
        self._stop = threading.Event()
        self._thread = None

    @property
    def value(self):
        return self._value

    def refresh(self):
        try:
            self._value = self._fetch_token()
            logger.info("client token retrieved")
        except Exception:
            # Keep serving the previous token; the next tick tries again
            logger.exception("client token refresh failed")

    def _run(self):
        self.refresh()
        while not self._stop.wait(self._interval):
            self.refresh()

    def start(self):
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="client-token-refresh", daemon=True)
        self._thread.start()

    def stop(self):
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
