from __future__ import annotations

import base64
import json

import httpx
import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from nightskycard.config import ASTRONOMY_API_URL, ProxySettings
from nightskycard.proxy import (
    MISSING_CREDENTIALS_BODY,
    UPSTREAM_ERROR_BODY,
    ChartReply,
    basic_auth_header,
    create_app,
    generate_chart,
)

_PAYLOAD = {
    "style": "default",
    "observer": {"latitude": 36.6002, "longitude": -121.8947, "date": "1990-04-20"},
    "view": {
        "type": "area",
        "parameters": {
            "position": {"equatorial": {"rightAscension": 10, "declination": 20}},
            "zoom": 3,
        },
    },
}


class _Recorder:
    def __init__(self, response: httpx.Response | Exception) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _settings(**overrides: object) -> ProxySettings:
    values: dict[str, object] = {"app_id": "my-id", "app_secret": "my-secret"}
    values.update(overrides)
    return ProxySettings(**values)  # type: ignore[arg-type]


def test_basic_auth_header_encodes_id_and_secret() -> None:
    expected = base64.b64encode(b"my-id:my-secret").decode()
    assert basic_auth_header("my-id", "my-secret") == f"Basic {expected}"


def test_missing_credentials_returns_500_without_outbound_call() -> None:
    recorder = _Recorder(httpx.Response(200, text="{}"))
    app = create_app(
        _settings(app_id=None, app_secret=None), transport=httpx.MockTransport(recorder)
    )

    with TestClient(app) as client:
        resp = client.post("/api/star-chart", json=_PAYLOAD)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Missing AstronomyAPI credentials in .env"}
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_missing_secret_alone_is_a_configuration_error() -> None:
    recorder = _Recorder(httpx.Response(200, text="{}"))

    reply = await generate_chart(
        _PAYLOAD, _settings(app_secret=None), httpx.MockTransport(recorder)
    )

    assert reply == ChartReply(500, MISSING_CREDENTIALS_BODY, "application/json")
    assert recorder.requests == []


def test_relays_upstream_response_verbatim() -> None:
    upstream_body = '{"data": {"imageUrl": "https://x/img.png"}}'
    recorder = _Recorder(httpx.Response(200, text=upstream_body))
    app = create_app(_settings(), transport=httpx.MockTransport(recorder))

    with TestClient(app) as client:
        resp = client.post("/api/star-chart", json=_PAYLOAD)

    assert resp.status_code == 200
    assert resp.text == upstream_body

    (sent,) = recorder.requests
    assert sent.method == "POST"
    assert str(sent.url) == ASTRONOMY_API_URL
    assert sent.headers["Authorization"] == basic_auth_header("my-id", "my-secret")
    assert sent.headers["Content-Type"] == "application/json"
    assert json.loads(sent.content) == _PAYLOAD


def test_relays_upstream_error_status_and_body() -> None:
    recorder = _Recorder(httpx.Response(403, text='{"message":"bad key"}'))
    app = create_app(_settings(), transport=httpx.MockTransport(recorder))

    with TestClient(app) as client:
        resp = client.post("/api/star-chart", json=_PAYLOAD)

    assert resp.status_code == 403
    assert resp.text == '{"message":"bad key"}'


def test_passes_upstream_content_type_through() -> None:
    recorder = _Recorder(
        httpx.Response(
            502,
            text="<html>Bad gateway</html>",
            headers={"Content-Type": "text/html; charset=utf-8"},
        )
    )
    app = create_app(_settings(), transport=httpx.MockTransport(recorder))

    with TestClient(app) as client:
        resp = client.post("/api/star-chart", json=_PAYLOAD)

    assert resp.status_code == 502
    assert resp.headers["content-type"] == "text/html; charset=utf-8"
    assert resp.text == "<html>Bad gateway</html>"


def test_json_upstream_keeps_json_content_type() -> None:
    recorder = _Recorder(
        httpx.Response(200, json={"data": {"imageUrl": "https://x/a.png"}})
    )
    app = create_app(_settings(), transport=httpx.MockTransport(recorder))

    with TestClient(app) as client:
        resp = client.post("/api/star-chart", json=_PAYLOAD)

    assert resp.headers["content-type"] == "application/json"
    assert resp.json() == {"data": {"imageUrl": "https://x/a.png"}}


@pytest.mark.asyncio
async def test_upstream_exception_becomes_generic_500(
    caplog: pytest.LogCaptureFixture,
) -> None:
    recorder = _Recorder(httpx.ConnectError("connection refused"))

    with caplog.at_level("ERROR", logger="nightskycard.proxy"):
        reply = await generate_chart(
            _PAYLOAD, _settings(), httpx.MockTransport(recorder)
        )

    assert reply.status_code == 500
    assert reply.body == UPSTREAM_ERROR_BODY
    assert reply.media_type == "application/json"
    assert "AstronomyAPI call failed" in caplog.text


def test_upstream_url_is_configurable() -> None:
    recorder = _Recorder(httpx.Response(200, text="{}"))
    app = create_app(
        _settings(upstream_url="https://upstream.test/chart"),
        transport=httpx.MockTransport(recorder),
    )

    with TestClient(app) as client:
        client.post("/api/star-chart", json=_PAYLOAD)

    assert str(recorder.requests[0].url) == "https://upstream.test/chart"


def test_non_json_body_is_rejected() -> None:
    recorder = _Recorder(httpx.Response(200, text="{}"))
    app = create_app(_settings(), transport=httpx.MockTransport(recorder))

    with TestClient(app) as client:
        resp = client.post(
            "/api/star-chart",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )

    assert resp.status_code == 400
    assert recorder.requests == []


def test_healthz_reports_credential_presence() -> None:
    with TestClient(create_app(_settings(app_id=None))) as client:
        resp = client.get("/healthz")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "credentials": False}


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ASTRONOMY_APP_ID", "env-id")
    monkeypatch.setenv("ASTRONOMY_APP_SECRET", "env-secret")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.delenv("ASTRONOMY_API_URL", raising=False)

    settings = ProxySettings.from_env()

    assert settings.has_credentials
    assert settings.port == 8080
    assert settings.upstream_url == ASTRONOMY_API_URL


def test_settings_default_port_and_missing_credentials(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv("ASTRONOMY_APP_ID", raising=False)
    monkeypatch.setenv("ASTRONOMY_APP_SECRET", "")
    monkeypatch.delenv("PORT", raising=False)

    settings = ProxySettings.from_env()

    assert settings.port == 5050
    assert settings.app_id is None
    assert settings.app_secret is None
    assert not settings.has_credentials


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("ASTRONOMY_API_TIMEOUT", "30s"),
        ("ASTRONOMY_API_TIMEOUT", "0"),
        ("PORT", "abc"),
        ("PORT", "70000"),
    ],
)
def test_settings_reject_malformed_values(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        ProxySettings.from_env()


def test_settings_parse_timeout_as_float(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ASTRONOMY_API_TIMEOUT", "12.5")

    assert ProxySettings.from_env().timeout == 12.5
