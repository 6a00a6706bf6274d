"""Lightweight (no JavaScript) page fetch over httpx."""

from typing import Dict, Optional

import httpx
import structlog

from catalog_scraper.config import settings
from catalog_scraper.scrapers.base import FetchRequest, RawPage, RenderMode
from catalog_scraper.scrapers.utils.user_agents import get_random_user_agent

logger = structlog.get_logger(__name__)


def browser_headers(user_agent: str) -> Dict[str, str]:
    """Headers a desktop browser sends for a top-level navigation."""
    return {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-IN,en-GB;q=0.9,en-US;q=0.8,en;q=0.7",
        "Accept-Encoding": "gzip, deflate",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
    }


class LightweightFetchClient:
    """Single GET with browser-like headers, following redirects.

    Args:
        max_redirects: Redirect ceiling (settings.HTTP_MAX_REDIRECTS by default)
        user_agent: Fixed user-agent; rotated from the pool when None
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        max_redirects: Optional[int] = None,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._max_redirects = (
            settings.HTTP_MAX_REDIRECTS if max_redirects is None else max_redirects
        )
        self._user_agent = user_agent
        self._transport = transport

    async def fetch(self, request: FetchRequest) -> RawPage:
        """Fetch ``request.url`` without executing scripts.

        Args:
            request: Fetch request; its timeout bounds the whole exchange

        Returns:
            RawPage with ``fetched_with=LIGHTWEIGHT``

        Raises:
            httpx.HTTPStatusError: Non-2xx final response
            httpx.TimeoutException: Request timed out
            httpx.NetworkError: Connection-level failure
        """
        headers = browser_headers(self._user_agent or get_random_user_agent())
        timeout = request.timeout_ms / 1000

        try:
            async with httpx.AsyncClient(
                timeout=timeout,
                headers=headers,
                follow_redirects=True,
                max_redirects=self._max_redirects,
                transport=self._transport,
            ) as client:
                response = await client.get(request.url)
                response.raise_for_status()

                logger.debug(
                    "lightweight_fetch_success",
                    url=request.url,
                    final_url=str(response.url),
                    status_code=response.status_code,
                    bytes=len(response.content),
                )
                return RawPage(
                    html=response.text,
                    final_url=str(response.url),
                    fetched_with=RenderMode.LIGHTWEIGHT,
                )

        except httpx.HTTPStatusError as e:
            logger.error(
                "lightweight_fetch_http_error",
                url=request.url,
                status_code=e.response.status_code,
                error=str(e),
            )
            raise

        except httpx.TimeoutException as e:
            logger.error("lightweight_fetch_timeout", url=request.url, error=str(e))
            raise

        except httpx.NetworkError as e:
            logger.error("lightweight_fetch_network_error", url=request.url, error=str(e))
            raise
