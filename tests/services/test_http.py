import asyncio
import json

import httpx
import pytest

from wallet_assistant.errors import UpstreamError, UpstreamTimeout
from wallet_assistant.services.http import fetch_with_retry, fetch_with_timeout, is_retryable_status

URL = "https://upstream.test/resource"


class _Counter:
    """Replays outcomes in order, repeating the last; ints are response statuses."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        outcome = self.outcomes[min(self.calls, len(self.outcomes)) - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome, json={"attempt": self.calls})


@pytest.mark.parametrize("status, retryable", [(200, False), (404, False), (429, True), (500, True), (503, True)])
def test_is_retryable_status(status, retryable):
    assert is_retryable_status(status) is retryable


@pytest.mark.asyncio
async def test_retries_5xx_then_succeeds():
    handler = _Counter(503, 200)

    response = await fetch_with_retry("GET", URL, retries=1, backoff_base=0, transport=httpx.MockTransport(handler))

    assert response.status_code == 200
    assert handler.calls == 2


@pytest.mark.asyncio
async def test_returns_last_response_when_retries_run_out():
    handler = _Counter(429)

    response = await fetch_with_retry("GET", URL, retries=2, backoff_base=0, transport=httpx.MockTransport(handler))

    assert response.status_code == 429
    assert handler.calls == 3


@pytest.mark.asyncio
async def test_client_errors_are_not_retried():
    handler = _Counter(404)

    response = await fetch_with_retry("GET", URL, retries=3, backoff_base=0, transport=httpx.MockTransport(handler))

    assert response.status_code == 404
    assert handler.calls == 1


@pytest.mark.asyncio
async def test_network_errors_retry_then_raise():
    handler = _Counter(httpx.ConnectError("connection refused"))

    with pytest.raises(UpstreamError) as excinfo:
        await fetch_with_retry(
            "GET", URL, retries=1, backoff_base=0, transport=httpx.MockTransport(handler), source="alchemy"
        )

    assert handler.calls == 2
    assert excinfo.value.source == "alchemy"
    assert excinfo.value.status is None


@pytest.mark.asyncio
async def test_backoff_doubles(monkeypatch):
    delays = []

    async def fake_sleep(delay, *args, **kwargs):
        delays.append(delay)

    monkeypatch.setattr("wallet_assistant.services.http.asyncio.sleep", fake_sleep)
    handler = _Counter(500)

    await fetch_with_retry("GET", URL, retries=3, backoff_base=0.2, transport=httpx.MockTransport(handler))

    assert [d for d in delays if d] == pytest.approx([0.2, 0.4, 0.8])


@pytest.mark.asyncio
async def test_deadline_raises_timeout_without_retry():
    calls = 0

    async def slow(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        await asyncio.sleep(5)
        return httpx.Response(200)

    with pytest.raises(UpstreamTimeout) as excinfo:
        await fetch_with_retry("GET", URL, timeout=0.05, retries=2, transport=httpx.MockTransport(slow), source="snapshot")

    assert calls == 1
    assert excinfo.value.timeout == 0.05
    assert "snapshot" in str(excinfo.value)


@pytest.mark.asyncio
async def test_fetch_with_timeout_passes_request_options():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"echo": True})

    response = await fetch_with_timeout(
        "POST", URL, json={"a": 1}, headers={"X-Test": "1"}, transport=httpx.MockTransport(handler)
    )

    assert response.json() == {"echo": True}
    assert seen[0].method == "POST"
    assert seen[0].headers["x-test"] == "1"
    assert json.loads(seen[0].content) == {"a": 1}
