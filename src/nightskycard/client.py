"""HTTP client the chart panel uses to reach the proxy."""

import logging

import httpx

from nightskycard.models import ChartRequest

logger = logging.getLogger(__name__)

STAR_CHART_PATH = "/api/star-chart"


class ChartFetchError(Exception):
    """The proxy could not produce an image URL."""


def extract_image_url(body: object) -> str | None:
    """Read ``data.imageUrl`` (or the ``data.image_url`` spelling) from a response."""
    if not isinstance(body, dict):
        return None
    data = body.get("data")
    if not isinstance(data, dict):
        return None
    url = data.get("imageUrl") or data.get("image_url")
    return url if isinstance(url, str) and url else None


class ProxyClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def fetch_image_url(self, request: ChartRequest) -> str:
        """POST the chart request to the proxy and return the image URL.

        Raises:
            ChartFetchError: On transport errors, non-2xx status, a body that is
                not JSON, or a body without an image URL.
        """
        try:
            async with httpx.AsyncClient(
                transport=self.transport, timeout=self.timeout
            ) as client:
                resp = await client.post(
                    self.base_url + STAR_CHART_PATH, json=request.to_payload()
                )
        except httpx.HTTPError as e:
            raise ChartFetchError(f"Proxy unreachable: {e}") from e

        if not resp.is_success:
            raise ChartFetchError(f"API error {resp.status_code}")
        try:
            body = resp.json()
        except ValueError as e:
            raise ChartFetchError("Proxy returned invalid JSON.") from e

        url = extract_image_url(body)
        if url is None:
            raise ChartFetchError("No imageUrl in response.")
        return url
