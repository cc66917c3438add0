"""Credential-injecting proxy in front of the AstronomyAPI star-chart endpoint.

The browser never sees the AstronomyAPI credentials: it posts its chart request
here, the proxy adds a Basic-Auth header and relays the upstream status code and
raw body back unchanged.

Run with:
    uv run nightskycard-proxy
"""

import base64
import json
import logging
from typing import Any, NamedTuple

import httpx
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from nightskycard.config import ProxySettings, log_level
from nightskycard.logging_setup import setup_logging

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS_BODY = json.dumps(
    {"error": "Missing AstronomyAPI credentials in .env"}
)
UPSTREAM_ERROR_BODY = json.dumps({"error": "Server error calling AstronomyAPI"})
JSON_MEDIA_TYPE = "application/json"


class ChartReply(NamedTuple):
    status_code: int
    body: str
    media_type: str = JSON_MEDIA_TYPE


def basic_auth_header(app_id: str, app_secret: str) -> str:
    token = base64.b64encode(f"{app_id}:{app_secret}".encode()).decode("ascii")
    return f"Basic {token}"


async def generate_chart(
    payload: Any,
    settings: ProxySettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ChartReply:
    """Forward a chart request upstream and return its status, body and content type.

    Args:
        payload: Decoded JSON body from the client. Forwarded as-is.
        settings: Credentials and upstream endpoint.
        transport: Optional httpx transport (tests inject a MockTransport).

    Returns:
        The upstream status code, text body and Content-Type verbatim, or
        500 with a JSON error body when credentials are missing or the upstream call raises.
    """
    if not settings.has_credentials:
        logger.error("AstronomyAPI credentials are not configured")
        return ChartReply(500, MISSING_CREDENTIALS_BODY)

    assert settings.app_id is not None and settings.app_secret is not None
    headers = {
        "Authorization": basic_auth_header(settings.app_id, settings.app_secret),
        "Content-Type": "application/json",
    }
    try:
        async with httpx.AsyncClient(
            transport=transport, timeout=settings.timeout
        ) as client:
            resp = await client.post(
                settings.upstream_url, content=json.dumps(payload), headers=headers
            )
            text = resp.text
    except Exception:
        logger.exception("AstronomyAPI call failed")
        return ChartReply(500, UPSTREAM_ERROR_BODY)

    logger.info(
        "AstronomyAPI responded",
        extra={"status_code": resp.status_code, "bytes": len(text)},
    )
    return ChartReply(
        resp.status_code, text, resp.headers.get("Content-Type", JSON_MEDIA_TYPE)
    )


def create_app(
    settings: ProxySettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the proxy app. Settings are read from the environment when omitted."""
    app = FastAPI(title="Night Sky Card proxy")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings or ProxySettings.from_env()
    app.state.transport = transport

    @app.post("/api/star-chart")
    async def star_chart(request: Request) -> Response:
        try:
            payload = await request.json()
        except ValueError:
            return Response(
                content=json.dumps({"error": "Request body must be JSON"}),
                status_code=400,
                media_type=JSON_MEDIA_TYPE,
            )
        reply = await generate_chart(payload, app.state.settings, app.state.transport)
        return Response(
            content=reply.body,
            status_code=reply.status_code,
            media_type=reply.media_type,
        )

    @app.get("/healthz")
    async def healthz() -> dict[str, Any]:
        return {"status": "ok", "credentials": app.state.settings.has_credentials}

    return app


def main() -> None:
    load_dotenv()
    setup_logging(log_level())
    settings = ProxySettings.from_env()
    logger.info("API proxy: http://localhost:%s", settings.port)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
