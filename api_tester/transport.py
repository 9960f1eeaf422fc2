"""
Shared HTTP transport for a load test run.

One urllib3 connection pool (wrapped in a requests HTTPAdapter) is built per
run and shared by every worker thread. Each worker gets its own
requests.Session mounted on that adapter, so sessions are never shared
between threads while pooled connections are.
"""

import threading
import time

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.exceptions import InsecureRequestWarning

from .config import RunConfig

POOL_SIZE_PER_THREAD = 10


class IdleTimeoutAdapter(HTTPAdapter):
    """HTTPAdapter that drops its pooled connections after sitting idle too long."""

    def __init__(self, idle_timeout: float, **kwargs):
        """
        Args:
            idle_timeout: Seconds the pool may go unused before it is emptied
            **kwargs: Passed through to HTTPAdapter
        """
        self.idle_timeout = idle_timeout
        self._idle_lock = threading.Lock()
        self._last_used = time.monotonic()
        super().__init__(**kwargs)

    def send(self, request, **kwargs):
        with self._idle_lock:
            now = time.monotonic()
            if now - self._last_used > self.idle_timeout:
                self.poolmanager.clear()
            self._last_used = now
        return super().send(request, **kwargs)


class Transport:
    """
    HTTP client settings for one run.

    WARNING: for https targets certificate verification is turned off. This
    tool is meant for hammering test and self-signed endpoints; the setting
    only applies to sessions created by this class.
    """

    def __init__(self, config: RunConfig):
        self.timeout = config.request_timeout_ms / 1000
        self.verify = not config.is_https
        self.adapter = IdleTimeoutAdapter(
            idle_timeout=config.connect_timeout_ms / 1000,
            pool_maxsize=config.num_threads * POOL_SIZE_PER_THREAD,
            pool_block=False,
            max_retries=0,
        )
        if not self.verify:
            urllib3.disable_warnings(InsecureRequestWarning)

    def session(self) -> requests.Session:
        """Create a session for a single worker, backed by the shared pool."""
        session = requests.Session()
        session.mount("http://", self.adapter)
        session.mount("https://", self.adapter)
        session.verify = self.verify
        # No compression so timings are not skewed by decoding
        session.headers["Accept-Encoding"] = "identity"
        return session

    def send(self, session: requests.Session, request: requests.PreparedRequest) -> requests.Response:
        """Send a prepared request without reading the body."""
        return session.send(request, timeout=self.timeout, stream=True)

    def close_idle_connections(self) -> None:
        """Close every pooled connection not currently checked out."""
        self.adapter.close()
