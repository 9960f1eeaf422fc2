"""Run configuration for the load test engine."""

import json
import os
from dataclasses import dataclass, field
from typing import Dict

from .console import RESET, YELLOW

DEFAULT_TOTAL_CALLS = 10000
DEFAULT_NUM_THREADS = 12
DEFAULT_SLEEP_TIME_MS = 0
DEFAULT_REQUEST_TIMEOUT_MS = 10000
CONNECT_TIMEOUT_FACTOR = 3


def default_connect_timeout(request_timeout_ms: int) -> int:
    """Idle connection lifetime used when -connectTimeOut is not given."""
    return request_timeout_ms * CONNECT_TIMEOUT_FACTOR


@dataclass(frozen=True)
class RunConfig:
    """
    Resolved parameters for one load test run.

    All durations are in milliseconds. Instances are immutable so the same
    object can be handed to every worker thread.
    """
    url: str
    total_calls: int = DEFAULT_TOTAL_CALLS
    num_threads: int = DEFAULT_NUM_THREADS
    sleep_time_ms: int = DEFAULT_SLEEP_TIME_MS
    request_timeout_ms: int = DEFAULT_REQUEST_TIMEOUT_MS
    connect_timeout_ms: int = default_connect_timeout(DEFAULT_REQUEST_TIMEOUT_MS)
    reuse_connections: bool = False
    keep_connections_open: bool = False
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.url.startswith("http"):
            raise ValueError(f'"{self.url}" is not a valid URL')
        if self.total_calls < 0:
            raise ValueError("totalCalls must be 0 or greater")
        if self.num_threads < 1:
            raise ValueError("numThreads must be at least 1")
        if self.sleep_time_ms < 0:
            raise ValueError("sleepTime must be 0 or greater")
        if self.request_timeout_ms <= 0:
            raise ValueError("requestTimeOut must be greater than 0")
        if self.connect_timeout_ms <= 0:
            raise ValueError("connectTimeOut must be greater than 0")

    @property
    def is_https(self) -> bool:
        return self.url.lower().startswith("https")

    @property
    def connection_header(self) -> str:
        return "keep-alive" if self.reuse_connections else "close"


def load_headers_from_env() -> Dict[str, str]:
    """Load custom headers from environment variables."""
    headers = {}

    api_key = os.getenv("API_KEY")
    bearer_token = os.getenv("BEARER_TOKEN")

    if api_key:
        headers["X-API-Key"] = api_key
    if bearer_token:
        headers["Authorization"] = f"Bearer {bearer_token}"

    custom = os.getenv("CUSTOM_HEADERS")
    if custom:
        try:
            parsed = json.loads(custom)
        except json.JSONDecodeError:
            print(f"{YELLOW}Warning: CUSTOM_HEADERS is not valid JSON{RESET}")
        else:
            if isinstance(parsed, dict):
                headers.update({str(k): str(v) for k, v in parsed.items()})
            else:
                print(f"{YELLOW}Warning: CUSTOM_HEADERS must be a JSON object{RESET}")

    return headers
