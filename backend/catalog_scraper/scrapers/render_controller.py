"""Scripted browser rendering of category listing pages.

The controller walks a fixed sequence of states for every render:

    LAUNCH -> NAVIGATE -> DETECT_MISROUTE -> DISMISS_OVERLAYS
           -> TRIGGER_LAZY_LOAD -> WAIT_STABLE -> CAPTURE -> RELEASE

Any failure ends in FAILED with a RenderFailedError naming the state it
happened in. The page is always closed, and so is the session unless the
caller passed in its own long-lived one.
"""

import re
from enum import Enum
from typing import Callable, Optional

import structlog
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from catalog_scraper.config import settings
from catalog_scraper.core.exceptions import AntiBotRedirectError, RenderFailedError
from catalog_scraper.scrapers.base import (
    FetchRequest,
    RawPage,
    RenderMode,
    RenderProfile,
    SiteAdapter,
)
from catalog_scraper.scrapers.utils.browser_manager import RenderSession
from catalog_scraper.scrapers.utils.debug_artifacts import DebugArtifactStore
from catalog_scraper.scrapers.utils.polling import poll_until_settled
from catalog_scraper.scrapers.utils.selectors import SCOPE

logger = structlog.get_logger(__name__)


class RenderState(str, Enum):
    LAUNCH = "launch"
    NAVIGATE = "navigate"
    DETECT_MISROUTE = "detect_misroute"
    DISMISS_OVERLAYS = "dismiss_overlays"
    TRIGGER_LAZY_LOAD = "trigger_lazy_load"
    WAIT_STABLE = "wait_stable"
    CAPTURE = "capture"
    RELEASE = "release"
    CAPTURED = "captured"
    FAILED = "failed"


# Anti-bot walls tend to bounce to these instead of the listing
MISROUTE_PATH_RE = re.compile(r"/(?:cart|login|signin|signup)(?:[/?#.]|$)", re.IGNORECASE)
MISROUTE_TITLE_RE = re.compile(
    r"^\s*(?:my\s+)?(?:shopping\s+bag|cart|log\s?in|sign\s?in|sign\s?up)\b",
    re.IGNORECASE,
)

OVERLAY_SELECTORS = (
    '[class*="cookie"]',
    '[class*="popup"]',
    '[class*="modal"]',
    '[class*="newsletter"]',
    '[class*="dialog"]',
    'button[class*="close"]',
    '[aria-label*="close"]',
    '[title*="close"]',
)
MAX_OVERLAY_CLICKS_PER_SELECTOR = 5

SCROLL_JS = """
(step) => {
    window.scrollBy(0, step || Math.floor(window.innerHeight / 2));
    return document.body ? document.body.scrollHeight : 0;
}
"""

IMAGES_COMPLETE_JS = """
() => Array.from(document.images).every((img) => img.complete)
"""

BODY_TEXT_LENGTH_JS = """
() => (document.body && document.body.innerText ? document.body.innerText.trim().length : 0)
"""


def is_misrouted(final_url: str, title: str) -> bool:
    """True when the browser landed on a cart/login/signup page."""
    return bool(MISROUTE_PATH_RE.search(final_url or "")) or bool(
        MISROUTE_TITLE_RE.search(title or "")
    )


class RenderController:
    """Drives one Playwright render of a category page.

    Args:
        session_factory: Builds a RenderSession for calls that do not bring
            their own long-lived session
        artifacts: Debug artifact store for latest/failure captures
    """

    def __init__(
        self,
        session_factory: Callable[..., RenderSession] = RenderSession,
        artifacts: Optional[DebugArtifactStore] = None,
    ):
        self._session_factory = session_factory
        self.artifacts = artifacts or DebugArtifactStore()

    async def render(
        self,
        request: FetchRequest,
        adapter: SiteAdapter,
        session: Optional[RenderSession] = None,
    ) -> RawPage:
        """Render ``request.url`` and return the settled markup.

        Args:
            request: Fetch request (timeout bounds navigation)
            adapter: Site adapter supplying containers and timings
            session: Long-lived session to reuse; renders through it are
                serialized by its navigation lock

        Returns:
            RawPage with ``fetched_with=RENDER``

        Raises:
            RenderFailedError: Any state failed (AntiBotRedirectError for
                cart/login redirects)
        """
        log = logger.bind(adapter=adapter.slug, url=request.url)

        if session is not None:
            async with session.navigation_lock:
                return await self._render_with(session, request, adapter, log)

        try:
            async with self._session_factory(label=adapter.slug) as owned:
                return await self._render_with(owned, request, adapter, log)
        except RenderFailedError:
            raise
        except Exception as e:
            log.error("render_state_failed", state=RenderState.LAUNCH.value, error=str(e))
            raise RenderFailedError(RenderState.LAUNCH.value, str(e) or type(e).__name__) from e

    async def _render_with(
        self,
        session: RenderSession,
        request: FetchRequest,
        adapter: SiteAdapter,
        log,
    ) -> RawPage:
        state = RenderState.LAUNCH
        try:
            async with session.open_page() as page:
                try:
                    state = RenderState.NAVIGATE
                    await self._navigate(page, request, log)

                    state = RenderState.DETECT_MISROUTE
                    await self._detect_misroute(page, log)

                    state = RenderState.DISMISS_OVERLAYS
                    await self._dismiss_overlays(page, log)

                    state = RenderState.TRIGGER_LAZY_LOAD
                    await self._trigger_lazy_load(page, adapter.render, log)

                    state = RenderState.WAIT_STABLE
                    await self._wait_stable(page, adapter, log)

                    state = RenderState.CAPTURE
                    raw = await self._capture(page)
                except Exception as e:
                    log.warning("render_state_failed", state=state.value, error=str(e))
                    await self.artifacts.record_page(page, adapter.slug, failed=True)
                    if isinstance(e, RenderFailedError):
                        raise
                    raise RenderFailedError(state.value, str(e) or type(e).__name__) from e

                self.artifacts.record_html(adapter.slug, raw.html)
                await self.artifacts.record_screenshot(page, adapter.slug)
                state = RenderState.RELEASE

        except RenderFailedError:
            raise
        except Exception as e:
            # open_page() itself failed
            log.error("render_state_failed", state=state.value, error=str(e))
            raise RenderFailedError(state.value, str(e) or type(e).__name__) from e

        log.info(
            "render_state_captured",
            state=RenderState.CAPTURED.value,
            final_url=raw.final_url,
            html_length=len(raw.html),
        )
        return raw

    async def _navigate(self, page: Page, request: FetchRequest, log) -> None:
        response = await page.goto(
            request.url, wait_until="domcontentloaded", timeout=request.timeout_ms
        )
        if response is not None and response.status >= 400:
            raise RenderFailedError(
                RenderState.NAVIGATE.value, f"HTTP {response.status} for {request.url}"
            )

        try:
            await page.wait_for_load_state(
                "networkidle", timeout=settings.NETWORK_IDLE_TIMEOUT_MS
            )
        except PlaywrightTimeoutError:
            log.debug("network_idle_timeout")

    async def _detect_misroute(self, page: Page, log) -> None:
        final_url = page.url
        title = await page.title()
        log.debug("navigation_landed", final_url=final_url, title=title)
        if is_misrouted(final_url, title):
            log.warning("anti_bot_redirect", final_url=final_url, title=title)
            raise AntiBotRedirectError(final_url, title)

    async def _dismiss_overlays(self, page: Page, log) -> None:
        """Click visible popups and consent banners. Never raises."""
        for selector in OVERLAY_SELECTORS:
            try:
                elements = await page.query_selector_all(selector)
            except PlaywrightError as e:
                log.debug("overlay_query_failed", selector=selector, error=str(e))
                continue
            clicks = 0
            for element in elements:
                if clicks >= MAX_OVERLAY_CLICKS_PER_SELECTOR:
                    break
                try:
                    if not await element.is_visible():
                        continue
                    await element.click(timeout=2000)
                    clicks += 1
                    await page.wait_for_timeout(settings.OVERLAY_CLICK_PAUSE_MS)
                except PlaywrightError as e:
                    log.debug("overlay_dismiss_failed", selector=selector, error=str(e))
            if clicks:
                log.debug("overlay_dismissed", selector=selector, clicks=clicks)

    async def _trigger_lazy_load(self, page: Page, profile: RenderProfile, log) -> None:
        """Scroll until the document height stops growing."""
        tracker = {"height": None, "stable": 0, "polls": 0}

        async def poll() -> bool:
            height = await page.evaluate(SCROLL_JS, profile.scroll_step_px or 0)
            tracker["polls"] += 1
            if height == tracker["height"]:
                tracker["stable"] += 1
            else:
                tracker["height"] = height
                tracker["stable"] = 0
            return tracker["stable"] >= profile.scroll_stable_polls

        settled = await poll_until_settled(
            poll,
            max_polls=profile.scroll_max_polls,
            interval_ms=profile.scroll_poll_interval_ms,
        )
        log.debug(
            "lazy_load_scrolled",
            settled=settled,
            polls=tracker["polls"],
            height=tracker["height"],
        )

    async def _wait_stable(self, page: Page, adapter: SiteAdapter, log) -> None:
        selectors = [
            q.css for q in adapter.product_containers.candidates if q.css != SCOPE
        ]
        if selectors:
            try:
                await page.wait_for_selector(
                    ", ".join(selectors),
                    state="attached",
                    timeout=settings.CONTENT_WAIT_TIMEOUT_MS,
                )
            except PlaywrightTimeoutError:
                log.info("product_containers_not_seen", selectors=len(selectors))

        try:
            await page.wait_for_function(
                IMAGES_COMPLETE_JS, timeout=settings.IMAGE_WAIT_TIMEOUT_MS
            )
        except PlaywrightTimeoutError:
            log.info("images_not_complete")

        await page.wait_for_timeout(settings.SETTLE_DELAY_MS)

    async def _capture(self, page: Page) -> RawPage:
        html = await page.content()
        text_length = await page.evaluate(BODY_TEXT_LENGTH_JS)
        if not html or not text_length:
            raise RenderFailedError(RenderState.CAPTURE.value, "no renderable content")
        return RawPage(html=html, final_url=page.url, fetched_with=RenderMode.RENDER)
