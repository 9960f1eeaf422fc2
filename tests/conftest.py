import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest


class LineCollector:
    """Sink that keeps every line in memory instead of printing it."""

    def __init__(self):
        self.lines = []

    def __call__(self, line):
        self.lines.append(line)

    def matching(self, text):
        return [line for line in self.lines if text in line]


class RecordingServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self):
        super().__init__(("127.0.0.1", 0), RecordingHandler)
        self.lock = threading.Lock()
        self.requests = []
        self.arrivals = []
        self.content_encoding = None

    @property
    def url(self):
        return f"http://127.0.0.1:{self.server_address[1]}/ping"

    def connection_headers(self):
        with self.lock:
            return [headers.get("Connection") for headers in self.requests]


class RecordingHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def do_GET(self):
        with self.server.lock:
            self.server.requests.append(dict(self.headers))
            self.server.arrivals.append(time.perf_counter())
        body = b"pong"
        self.send_response(200)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(body)))
        if self.server.content_encoding:
            self.send_header("Content-Encoding", self.server.content_encoding)
        if self.headers.get("Connection", "").lower() == "close":
            self.send_header("Connection", "close")
            self.close_connection = True
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def server():
    httpd = RecordingServer()
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield httpd
    httpd.shutdown()
    httpd.server_close()


@pytest.fixture
def closed_port_url():
    """URL of a local port nothing is listening on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return f"http://127.0.0.1:{port}"


@pytest.fixture
def sink():
    return LineCollector()
