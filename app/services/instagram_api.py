import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from app.core.config import Settings
from app.core.exceptions import UpstreamError, UpstreamTimeoutError

logger = logging.getLogger(__name__)

PROFILE_PATH = "/api/instagram/profile"
POSTS_PATH = "/api/instagram/posts"

DEFAULT_IMAGE_CONTENT_TYPE = "image/jpeg"

IMAGE_REQUEST_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
    ),
    "Referer": "https://www.instagram.com/",
    "Accept": "image/avif,image/webp,image/apng,image/svg+xml,image/*,*/*;q=0.8",
    "Sec-Fetch-Dest": "image",
    "Sec-Fetch-Mode": "no-cors",
    "Sec-Fetch-Site": "cross-site",
}


class InstagramApiClient:
    """Client for the RapidAPI-hosted Instagram data provider and its media CDN.

    Each call opens its own ``httpx.AsyncClient`` and performs exactly one
    outbound request. Nothing is retried.

    Args:
        settings: Supplies credentials, base URL and timeouts.
        transport: Optional httpx transport, used by tests to stand in for the
            network.
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.transport = transport

    def _api_headers(self) -> Dict[str, str]:
        return {
            "x-rapidapi-key": self.settings.instagram_api_key or "",
            "x-rapidapi-host": self.settings.instagram_api_host,
            "Content-Type": "application/json",
            "Cache-Control": "no-store",
        }

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self.transport)

    async def fetch_profile(self, username: str) -> Any:
        """Fetch the raw profile payload for ``username``.

        Raises:
            UpstreamError: If the provider answers with a non-2xx status.
            UpstreamTimeoutError: If the provider does not answer in time.
        """
        logger.info("Fetching profile from %s for: %s", self.settings.instagram_api_host, username)
        return await self._post_json(PROFILE_PATH, {"username": username})

    async def fetch_posts(self, username: str, max_id: str = "") -> Any:
        """Fetch the raw post listing for ``username``.

        ``max_id`` is the provider's pagination cursor; empty for the first page.
        """
        logger.info("Fetching posts for: %s (max_id=%r)", username, max_id)
        return await self._post_json(POSTS_PATH, {"username": username, "maxId": max_id})

    async def _post_json(self, path: str, payload: Dict[str, Any]) -> Any:
        url = f"{self.settings.instagram_api_base_url.rstrip('/')}{path}"

        async with self._client(self.settings.upstream_timeout) as client:
            try:
                resp = await client.post(
                    url, headers=self._api_headers(), json=payload, follow_redirects=True
                )
            except httpx.TimeoutException as exc:
                logger.error("Instagram API timed out for %s", path)
                raise UpstreamTimeoutError("Request timeout") from exc

        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("Instagram API error: %s %s", resp.status_code, resp.text)
            raise UpstreamError(
                f"Instagram API error: {resp.reason_phrase}", resp.status_code
            ) from exc

        if not resp.content:
            logger.info("Instagram API returned an empty body for %s", path)
            return None

        data = resp.json()
        logger.debug("Instagram API raw response for %s: %s", path, data)
        return data

    async def fetch_image(self, url: str) -> Tuple[bytes, str]:
        """Download image bytes, bounded by ``image_fetch_timeout``.

        Returns:
            The raw bytes and the upstream ``Content-Type``, defaulting to
            ``image/jpeg``.

        Raises:
            UpstreamError: If the media host answers with a non-2xx status.
            UpstreamTimeoutError: If the download does not finish in time.
        """
        logger.info("Proxying Instagram image: %s...", url[:50])
        timeout = self.settings.image_fetch_timeout

        async with self._client(timeout) as client:
            try:
                resp = await asyncio.wait_for(
                    client.get(url, headers=IMAGE_REQUEST_HEADERS, follow_redirects=True),
                    timeout=timeout,
                )
            except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
                logger.error("Image fetch timed out after %ss: %s...", timeout, url[:50])
                raise UpstreamTimeoutError("Request timeout") from exc

        if not resp.is_success:
            logger.error("Failed to fetch Instagram image: %s", resp.status_code)
            raise UpstreamError("Failed to fetch image from source", resp.status_code)

        content_type = resp.headers.get("content-type") or DEFAULT_IMAGE_CONTENT_TYPE
        return resp.content, content_type
