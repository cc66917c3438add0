from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from nightskycard.client import ChartFetchError, ProxyClient, extract_image_url
from nightskycard.config import ClientSettings
from nightskycard.models import DEFAULT_LOCATION, DEFAULT_VIEW, ChartRequest

_REQUEST = ChartRequest(location=DEFAULT_LOCATION, date="1990-04-20", view=DEFAULT_VIEW)


def _client(handler) -> ProxyClient:  # type: ignore[no-untyped-def]
    return ProxyClient("http://proxy.test/", transport=httpx.MockTransport(handler))


@pytest.mark.parametrize(
    "body, expected",
    [
        ({"data": {"imageUrl": "https://x/a.png"}}, "https://x/a.png"),
        ({"data": {"image_url": "https://x/b.png"}}, "https://x/b.png"),
        ({"data": {"imageUrl": "", "image_url": "https://x/c.png"}}, "https://x/c.png"),
        ({"data": {}}, None),
        ({"data": "nope"}, None),
        ({"error": "unavailable"}, None),
        ([1, 2, 3], None),
    ],
)
def test_extract_image_url(body: object, expected: str | None) -> None:
    assert extract_image_url(body) == expected


@pytest.mark.asyncio
async def test_fetch_posts_chart_payload_to_proxy() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": {"imageUrl": "https://x/img.png"}})

    url = await _client(handler).fetch_image_url(_REQUEST)

    assert url == "https://x/img.png"
    (request,) = seen
    assert request.method == "POST"
    assert str(request.url) == "http://proxy.test/api/star-chart"
    assert json.loads(request.content) == _REQUEST.to_payload()


@pytest.mark.asyncio
async def test_non_success_status_is_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"error": "unavailable"})

    with pytest.raises(ChartFetchError, match="503"):
        await _client(handler).fetch_image_url(_REQUEST)


@pytest.mark.asyncio
async def test_malformed_json_is_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>oops</html>")

    with pytest.raises(ChartFetchError, match="invalid JSON"):
        await _client(handler).fetch_image_url(_REQUEST)


@pytest.mark.asyncio
async def test_missing_image_url_is_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": {}})

    with pytest.raises(ChartFetchError, match="No imageUrl"):
        await _client(handler).fetch_image_url(_REQUEST)


@pytest.mark.asyncio
async def test_transport_error_is_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ChartFetchError, match="unreachable"):
        await _client(handler).fetch_image_url(_REQUEST)


def test_client_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NIGHTSKY_PROXY_URL", "http://proxy.test:9000")
    monkeypatch.setenv("NIGHTSKY_CACHE_PATH", "/tmp/charts.json")
    monkeypatch.setenv("NIGHTSKY_PROXY_TIMEOUT", "")

    settings = ClientSettings.from_env()

    assert settings.proxy_url == "http://proxy.test:9000"
    assert settings.cache_path == Path("/tmp/charts.json")
    assert settings.timeout == 30.0
