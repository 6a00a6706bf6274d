"""Retrieval strategy selection: render first, lightweight fallback once."""

from typing import Optional

import httpx
import structlog

from catalog_scraper.core.exceptions import RenderFailedError, RetrievalFailedError
from catalog_scraper.scrapers.base import FetchRequest, RawPage, RenderMode, SiteAdapter
from catalog_scraper.scrapers.render_controller import RenderController
from catalog_scraper.scrapers.utils.browser_manager import RenderSession
from catalog_scraper.scrapers.utils.debug_artifacts import DebugArtifactStore
from catalog_scraper.scrapers.utils.http_client import LightweightFetchClient

logger = structlog.get_logger(__name__)


class FetchOrchestrator:
    """Chooses between the render controller and the lightweight client.

    In RENDER mode a failed render (launch error, navigation timeout,
    anti-bot redirect, empty document) falls back exactly once to the
    lightweight client. LIGHTWEIGHT mode never starts a browser.
    """

    def __init__(
        self,
        render_controller: Optional[RenderController] = None,
        http_client: Optional[LightweightFetchClient] = None,
        artifacts: Optional[DebugArtifactStore] = None,
    ):
        self.artifacts = artifacts or DebugArtifactStore()
        self.render_controller = render_controller or RenderController(
            artifacts=self.artifacts
        )
        self.http_client = http_client or LightweightFetchClient()

    async def fetch(
        self,
        request: FetchRequest,
        adapter: SiteAdapter,
        session: Optional[RenderSession] = None,
    ) -> RawPage:
        """Retrieve the page for ``request``.

        Args:
            request: URL, render mode and timeout
            adapter: Site adapter (timings, containers, debug slug)
            session: Long-lived render session owned by the caller

        Returns:
            RawPage from whichever strategy succeeded

        Raises:
            RetrievalFailedError: Every attempted strategy failed; carries
                the last strategy's error
        """
        log = logger.bind(adapter=adapter.slug, url=request.url)

        if request.render_mode is RenderMode.RENDER:
            try:
                return await self.render_controller.render(request, adapter, session=session)
            except RenderFailedError as e:
                log.warning(
                    "fallback_to_lightweight",
                    failed_state=e.state,
                    error_kind=e.kind,
                    error=e.message,
                )

        try:
            raw = await self.http_client.fetch(request)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log.error("retrieval_failed", error=str(e), render_mode=request.render_mode.value)
            raise RetrievalFailedError(request.url, e) from e

        self.artifacts.record_html(adapter.slug, raw.html)
        log.info("lightweight_fetch_completed", final_url=raw.final_url, html_length=len(raw.html))
        return raw
