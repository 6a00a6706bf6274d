"""Category scraping service.

Entry point for the routing layer: validates the URL against the site
adapter, retrieves the page (render with lightweight fallback), extracts
products and returns an immutable CategoryResult.
"""

import asyncio
from typing import Dict, Optional

import structlog

from catalog_scraper.core.exceptions import InvalidUrlError, NoProductsFoundError
from catalog_scraper.scrapers.base import (
    CategoryResult,
    FetchRequest,
    RawPage,
    RenderMode,
    SiteAdapter,
)
from catalog_scraper.scrapers.extractor import CatalogExtractor
from catalog_scraper.scrapers.factory import AdapterFactory, get_adapter_factory
from catalog_scraper.scrapers.fetcher import FetchOrchestrator
from catalog_scraper.scrapers.utils.browser_manager import RenderSession
from catalog_scraper.scrapers.utils.debug_artifacts import DebugArtifactStore

logger = structlog.get_logger(__name__)


class CategoryScraperService:
    """Scrapes category listing pages for any registered site.

    Long-lived render sessions (for adapters that declare them) belong to
    the service and are closed by ``aclose()`` or by leaving an
    ``async with`` block.

    Usage:
        async with CategoryScraperService() as service:
            result = await service.scrape_category("croma", url)
    """

    def __init__(
        self,
        factory: Optional[AdapterFactory] = None,
        orchestrator: Optional[FetchOrchestrator] = None,
        extractor: Optional[CatalogExtractor] = None,
        artifacts: Optional[DebugArtifactStore] = None,
    ):
        """Initialize the scraper service.

        Args:
            factory: Adapter registry; the global one (with the bundled
                adapters registered) when None
            orchestrator: Fetch orchestrator; built from ``artifacts`` when None
            extractor: Catalog extractor
            artifacts: Debug artifact store shared by fetch and extraction
        """
        if factory is None:
            from catalog_scraper.scrapers.register_adapters import register_all_adapters

            factory = get_adapter_factory()
            if not factory.get_registered_shops():
                register_all_adapters(factory)

        self.adapter_factory = factory
        self.artifacts = artifacts or DebugArtifactStore()
        self.orchestrator = orchestrator or FetchOrchestrator(artifacts=self.artifacts)
        self.extractor = extractor or CatalogExtractor()
        self._sessions: Dict[str, RenderSession] = {}
        self._sessions_lock = asyncio.Lock()
        self.logger = logger.bind(service="category_scraper_service")

    async def scrape_category(
        self,
        shop_slug: str,
        url: str,
        render: bool = True,
        timeout_ms: Optional[int] = None,
    ) -> CategoryResult:
        """Scrape one category listing page.

        Args:
            shop_slug: Registered adapter slug (e.g., "croma")
            url: Category page URL
            render: Use the scripted browser first (falls back to a plain
                HTTP fetch once on failure); False fetches lightweight only
            timeout_ms: Navigation/request timeout; adapter default when None

        Returns:
            CategoryResult with at least one product

        Raises:
            UnknownAdapterError: No adapter registered for ``shop_slug``
            InvalidUrlError: URL rejected by the adapter (no network call made)
            RetrievalFailedError: Every retrieval strategy failed
            NoProductsFoundError: Page retrieved but no product was extracted
        """
        adapter = self.adapter_factory.get_adapter(shop_slug)
        if not adapter.is_valid_url(url):
            self.logger.warning("invalid_category_url", shop_slug=shop_slug, url=url)
            raise InvalidUrlError(shop_slug, url)

        request = FetchRequest(
            url=url.strip(),
            render_mode=RenderMode.from_flag(render),
            timeout_ms=timeout_ms or adapter.default_timeout_ms,
        )
        log = self.logger.bind(adapter=adapter.slug, url=request.url)
        log.info("scrape_category_started", render_mode=request.render_mode.value)

        session = None
        if request.render_mode is RenderMode.RENDER and adapter.long_lived_session:
            session = await self._long_lived_session(adapter)

        raw_page = await self.orchestrator.fetch(request, adapter, session=session)
        return self._build_result(adapter, request, raw_page, log)

    async def scrape_url(self, url: str, render: bool = True) -> CategoryResult:
        """Scrape a category URL, picking the adapter from the URL itself.

        Raises:
            UnknownAdapterError: No registered adapter accepts the URL
        """
        adapter = self.adapter_factory.resolve_for_url(url)
        return await self.scrape_category(adapter.slug, url, render=render)

    def _build_result(
        self,
        adapter: SiteAdapter,
        request: FetchRequest,
        raw_page: RawPage,
        log,
    ) -> CategoryResult:
        outcome = self.extractor.extract(raw_page, adapter)

        if not outcome.products:
            self.artifacts.record_html(adapter.slug, raw_page.html, failed=True)
            log.warning(
                "no_products_found",
                fetched_with=raw_page.fetched_with.value,
                elements=outcome.elements_seen,
            )
            raise NoProductsFoundError(adapter.slug, request.url)

        result = CategoryResult(
            shop_slug=adapter.slug,
            source_url=request.url,
            category_name=outcome.category_name,
            products=outcome.products,
            fetched_with=raw_page.fetched_with,
            breadcrumbs=outcome.breadcrumbs,
            pagination=outcome.pagination,
            filters=outcome.filters,
            debug_artifacts=self.artifacts.latest(adapter.slug),
        )
        log.info(
            "scrape_category_completed",
            category_name=result.category_name,
            total_products=result.total_products,
            fetched_with=result.fetched_with.value,
        )
        return result

    async def _long_lived_session(self, adapter: SiteAdapter) -> RenderSession:
        async with self._sessions_lock:
            session = self._sessions.get(adapter.slug)
            if session is None:
                session = RenderSession(label=adapter.slug)
                self._sessions[adapter.slug] = session
            return session

    async def aclose(self) -> None:
        """Close every long-lived render session owned by this service."""
        async with self._sessions_lock:
            sessions, self._sessions = self._sessions, {}
        for slug, session in sessions.items():
            await session.close()
            self.logger.info("long_lived_session_closed", adapter=slug)

    async def __aenter__(self) -> "CategoryScraperService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
