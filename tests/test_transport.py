import time

import requests

from api_tester.config import RunConfig
from api_tester.transport import IdleTimeoutAdapter, Transport


def test_pool_sized_from_thread_count():
    transport = Transport(RunConfig(url="http://localhost", num_threads=4))

    assert transport.adapter._pool_maxsize == 40
    assert transport.adapter.max_retries.total == 0


def test_timeouts_in_seconds():
    transport = Transport(RunConfig(url="http://localhost", request_timeout_ms=2500, connect_timeout_ms=9000))

    assert transport.timeout == 2.5
    assert transport.adapter.idle_timeout == 9.0


def test_https_skips_verification():
    transport = Transport(RunConfig(url="https://localhost"))

    assert transport.session().verify is False


def test_http_keeps_default_verification():
    transport = Transport(RunConfig(url="http://localhost"))

    assert transport.session().verify is True


def test_sessions_share_one_adapter_without_compression():
    transport = Transport(RunConfig(url="http://localhost"))
    first, second = transport.session(), transport.session()

    assert first is not second
    assert first.get_adapter("http://localhost") is transport.adapter
    assert second.get_adapter("https://localhost") is transport.adapter
    assert first.headers["Accept-Encoding"] == "identity"


def test_idle_pool_is_cleared(server):
    adapter = IdleTimeoutAdapter(idle_timeout=0.05)
    transport = Transport(RunConfig(url=server.url))
    transport.adapter = adapter
    session = transport.session()

    request = session.prepare_request(requests.Request("GET", server.url))
    transport.send(session, request).close()
    assert len(adapter.poolmanager.pools) == 1

    time.sleep(0.1)
    cleared = []
    original_clear = adapter.poolmanager.clear

    def clear():
        cleared.append(True)
        original_clear()

    adapter.poolmanager.clear = clear
    transport.send(session, request).close()

    assert cleared == [True]


def test_only_derived_settings_are_kept():
    transport = Transport(RunConfig(url="http://localhost"))

    assert set(vars(transport)) == {"timeout", "verify", "adapter"}
