import asyncio
import json

import httpx
import pytest

from tron_mcp.config import TronConfig
from tron_mcp.tron_api.client import (
    BadJsonError,
    HttpStatusError,
    NetworkError,
    NonJsonResponseError,
    UpstreamCallResult,
    UpstreamClient,
    UpstreamTimeoutError,
)

URL = "https://upstream.test/wallet/getnowblock"


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def json_response(status, body):
    return httpx.Response(
        status,
        content=json.dumps(body).encode(),
        headers={"content-type": "application/json; charset=utf-8"},
    )


def make_client(handler, *, config=None):
    sleeper = SleepRecorder()
    async_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = UpstreamClient(config or TronConfig(), async_client=async_client, sleep=sleeper)
    return client, sleeper


@pytest.mark.asyncio
async def test_fetch_json_returns_parsed_body():
    client, sleeper = make_client(lambda request: json_response(200, {"block": 1}))
    assert await client.fetch_json(URL) == {"block": 1}
    assert sleeper.delays == []


@pytest.mark.asyncio
async def test_fetch_json_include_meta():
    client, _ = make_client(lambda request: json_response(200, {"ok": True}))
    result = await client.fetch_json(URL, include_meta=True)
    assert isinstance(result, UpstreamCallResult)
    assert result.data == {"ok": True}
    assert result.meta["url"] == URL
    assert result.meta["status"] == 200
    assert result.meta["contentType"].startswith("application/json")


@pytest.mark.asyncio
async def test_rate_limited_twice_then_success_backs_off():
    responses = [
        json_response(429, {"error": "slow down"}),
        json_response(429, {"error": "slow down"}),
        json_response(200, {"ok": True}),
    ]
    calls = []

    def handler(request):
        calls.append(request)
        return responses.pop(0)

    client, sleeper = make_client(handler)
    assert await client.fetch_json(URL, retries=2) == {"ok": True}
    assert len(calls) == 3
    assert sleeper.delays == [0.5, 1.0]


@pytest.mark.asyncio
async def test_rate_limited_exhausts_retries():
    calls = []

    def handler(request):
        calls.append(request)
        return json_response(429, {"error": "slow down"})

    client, sleeper = make_client(handler)
    with pytest.raises(HttpStatusError) as exc_info:
        await client.fetch_json(URL, retries=2)
    assert exc_info.value.status == 429
    assert exc_info.value.code == "HTTP_ERROR"
    assert len(calls) == 3
    assert sleeper.delays == [0.5, 1.0]


@pytest.mark.asyncio
async def test_non_json_response_is_not_retried():
    body = "<html>" + "x" * 500 + "</html>"
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(502, text=body, headers={"content-type": "text/html"})

    client, sleeper = make_client(handler)
    with pytest.raises(NonJsonResponseError) as exc_info:
        await client.fetch_json(URL)
    err = exc_info.value
    assert err.code == "NON_JSON"
    assert err.status == 502
    assert err.content_type == "text/html"
    assert err.url == URL
    assert err.body_snippet == body[:200]
    assert len(calls) == 1
    assert sleeper.delays == []


@pytest.mark.asyncio
async def test_bad_json_on_success_status():
    def handler(request):
        return httpx.Response(200, content=b"{not json", headers={"content-type": "application/json"})

    client, _ = make_client(handler)
    with pytest.raises(BadJsonError) as exc_info:
        await client.fetch_json(URL)
    assert exc_info.value.status == 200
    assert exc_info.value.body_snippet == "{not json"


@pytest.mark.asyncio
async def test_http_error_attaches_parsed_body():
    client, sleeper = make_client(lambda request: json_response(500, {"Error": "boom"}))
    with pytest.raises(HttpStatusError) as exc_info:
        await client.fetch_json(URL)
    assert exc_info.value.data == {"Error": "boom"}
    assert exc_info.value.status == 500
    assert sleeper.delays == []


@pytest.mark.asyncio
async def test_empty_json_body_is_none():
    def handler(request):
        return httpx.Response(200, content=b"", headers={"content-type": "application/json"})

    client, _ = make_client(handler)
    assert await client.fetch_json(URL) is None


@pytest.mark.asyncio
async def test_transport_timeout_retried_then_reported():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ReadTimeout("timed out", request=request)

    client, sleeper = make_client(handler)
    with pytest.raises(UpstreamTimeoutError) as exc_info:
        await client.fetch_json(URL, retries=1)
    assert exc_info.value.code == "TIMEOUT"
    assert len(calls) == 2
    assert sleeper.delays == [0.5]


@pytest.mark.asyncio
async def test_hard_timeout_aborts_slow_attempt():
    async def handler(request):
        await asyncio.sleep(5)
        return json_response(200, {})

    client, _ = make_client(handler)
    with pytest.raises(UpstreamTimeoutError):
        await client.fetch_json(URL, timeout_ms=20, retries=0)


@pytest.mark.asyncio
async def test_connection_error_becomes_network_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client, sleeper = make_client(handler)
    with pytest.raises(NetworkError):
        await client.fetch_json(URL, retries=2)
    assert sleeper.delays == [0.5, 1.0]


@pytest.mark.asyncio
async def test_post_body_and_headers_are_sent():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        seen["headers"] = dict(request.headers)
        return json_response(200, {})

    client, _ = make_client(handler)
    await client.fetch_json(
        URL,
        method="POST",
        headers={"Content-Type": "application/json", "TRON-PRO-API-KEY": "k"},
        body={"address": "T1", "visible": True},
    )
    assert seen["method"] == "POST"
    assert seen["body"] == {"address": "T1", "visible": True}
    assert seen["headers"]["tron-pro-api-key"] == "k"


def test_backoff_uses_configured_base():
    client = UpstreamClient(TronConfig(backoff_base_ms=100))
    assert [client.backoff_seconds(n) for n in range(3)] == [0.1, 0.2, 0.4]


@pytest.mark.asyncio
async def test_non_standard_json_constants_are_bad_json():
    def handler(request):
        return httpx.Response(200, content=b'{"balance": NaN}', headers={"content-type": "application/json"})

    client, _ = make_client(handler)
    with pytest.raises(BadJsonError):
        await client.fetch_json(URL)
