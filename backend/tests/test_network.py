"""Tests for the fetch instrumentation wrapper."""
from __future__ import annotations

import asyncio

import httpx
import pytest

from sessiongeo.services.network import describe_request, instrument_fetch


def _records(collector):
    return [r.args[1] for r in collector.records]


@pytest.mark.asyncio
async def test_success_returns_same_response_object(network_records):
    response = httpx.Response(201, request=httpx.Request("POST", "https://api.test/reports"))

    async def fetch(url, method="GET", **kwargs):
        return response

    wrapped = instrument_fetch(fetch)
    result = await wrapped("https://api.test/reports", method="post", json={"name": "q3"})

    assert result is response
    request_record, response_record = _records(network_records)
    assert request_record["url"] == "https://api.test/reports"
    assert request_record["method"] == "POST"
    assert response_record["requestId"] == request_record["requestId"]
    assert response_record["status"] == 201
    assert response_record["statusText"] == "Created"
    assert "error" not in response_record


@pytest.mark.asyncio
async def test_failure_reraises_original_error(network_records):
    error = httpx.ConnectError("connection refused")

    async def fetch(url, **kwargs):
        raise error

    wrapped = instrument_fetch(fetch)
    with pytest.raises(httpx.ConnectError) as exc_info:
        await wrapped("https://api.test/down")

    assert exc_info.value is error
    request_record, response_record = _records(network_records)
    assert response_record["requestId"] == request_record["requestId"]
    assert response_record["error"] == "connection refused"
    assert "status" not in response_record


@pytest.mark.asyncio
async def test_mixed_sequence_matches_unwrapped_outcomes():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/missing":
            return httpx.Response(404, json={"detail": "nope"})
        if request.url.path == "/boom":
            raise httpx.ReadTimeout("timed out", request=request)
        return httpx.Response(200, json={"ok": True})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://api.test") as client:
        original = client.request
        wrapped = instrument_fetch(original)

        for path in ("/ok", "/missing"):
            plain = await original("GET", path)
            instrumented = await wrapped("GET", path)
            assert instrumented.status_code == plain.status_code
            assert instrumented.json() == plain.json()
            assert instrumented.headers == plain.headers

        with pytest.raises(httpx.ReadTimeout):
            await original("GET", "/boom")
        with pytest.raises(httpx.ReadTimeout):
            await wrapped("GET", "/boom")


@pytest.mark.asyncio
async def test_cancellation_propagates(network_records):
    started = asyncio.Event()

    async def slow_fetch(url):
        started.set()
        await asyncio.sleep(10)

    task = asyncio.create_task(instrument_fetch(slow_fetch)("https://api.test/slow"))
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(network_records.records) == 2


@pytest.mark.asyncio
async def test_logging_failure_does_not_leak(monkeypatch):
    from sessiongeo.services import network

    def broken_info(*args, **kwargs):
        raise RuntimeError("sink down")

    monkeypatch.setattr(network.network_logger, "info", broken_info)

    async def fetch(url):
        return "payload"

    assert await instrument_fetch(fetch)("https://api.test") == "payload"


def test_wrapper_exposes_original():
    async def fetch(url):
        return url

    assert instrument_fetch(fetch).__wrapped__ is fetch


def test_describe_request_variants():
    request = httpx.Request("DELETE", "https://api.test/items/1")
    assert describe_request((request,), {}) == ("https://api.test/items/1", "DELETE")
    assert describe_request(("GET", "/items"), {}) == ("/items", "GET")
    assert describe_request(("https://api.test",), {"method": "put"}) == ("https://api.test", "PUT")
    assert describe_request((), {"url": httpx.URL("https://api.test/x")}) == ("https://api.test/x", "GET")
