"""Worker call loop and the shared response time collection."""

import threading
import time
from typing import List

import requests
from urllib3.exceptions import ProtocolError, ReadTimeoutError, SSLError

from .config import RunConfig
from .console import Sink
from .transport import Transport

DRAIN_CHUNK_SIZE = 64 * 1024


class ResponseTimes:
    """Thread-safe list of per-call response times in milliseconds."""

    def __init__(self, sink: Sink = print):
        self.sink = sink
        self.lock = threading.Lock()
        self._times: List[float] = []

    def record(self, elapsed_ms: float, line: str) -> None:
        """Emit the result line and store the time as one atomic step."""
        with self.lock:
            self.sink(line)
            self._times.append(elapsed_ms)

    def report(self, line: str) -> None:
        with self.lock:
            self.sink(line)

    def values(self) -> List[float]:
        with self.lock:
            return list(self._times)

    def __len__(self) -> int:
        with self.lock:
            return len(self._times)


def build_request(session: requests.Session, config: RunConfig) -> requests.PreparedRequest:
    """Prepare the GET request every call of a worker reuses."""
    headers = dict(config.headers)
    headers["Connection"] = config.connection_header
    return session.prepare_request(requests.Request("GET", config.url, headers=headers))


def drain_and_close(response: requests.Response) -> None:
    """
    Read the body to the end so the connection can go back to the pool.

    The raw bytes are read as sent; a Content-Encoding is never decoded.
    """
    try:
        while response.raw.read(DRAIN_CHUNK_SIZE, decode_content=False):
            pass
    except ProtocolError as e:
        raise requests.exceptions.ChunkedEncodingError(e)
    except ReadTimeoutError as e:
        raise requests.exceptions.ConnectionError(e)
    except SSLError as e:
        raise requests.exceptions.SSLError(e)
    finally:
        response.close()


def run_worker(
    worker_id: int,
    call_count: int,
    transport: Transport,
    response_times: ResponseTimes,
    config: RunConfig,
) -> None:
    """
    Make call_count sequential GET requests and record each one.

    Args:
        worker_id: Thread number used in the result lines
        call_count: Number of calls assigned to this worker
        transport: Shared Transport for the run
        response_times: Shared collection the timings go into
        config: Run configuration
    """
    session = transport.session()

    try:
        request = build_request(session, config)
    except (requests.exceptions.RequestException, ValueError) as e:
        response_times.report(f"Error:  Request creation failed for thread {worker_id:2d}: {e}")
        return

    sleep_seconds = config.sleep_time_ms / 1000

    for i in range(call_count):
        error = None
        status = ""

        start_time = time.perf_counter()
        try:
            response = transport.send(session, request)
        except requests.exceptions.RequestException as e:
            response = None
            error = e
        end_time = time.perf_counter()

        response_time = (end_time - start_time) * 1000

        if response is not None:
            status = f"{response.status_code} {response.reason}"
            # keep_connections_open deliberately leaves the body unread
            if not config.keep_connections_open:
                try:
                    drain_and_close(response)
                except requests.exceptions.RequestException as e:
                    error = e

        if error is not None:
            line = f"Thread {worker_id:2d}.{i:<6d} - Request failed: {error} - Response time: {response_time:.2f} ms"
        else:
            line = f"Thread {worker_id:2d}.{i:<6d} - Success: {status} - Response time: {response_time:.2f} ms"
        response_times.record(response_time, line)

        if sleep_seconds > 0:
            time.sleep(sleep_seconds)
