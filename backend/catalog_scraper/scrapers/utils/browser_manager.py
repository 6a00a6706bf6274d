"""Playwright render session with anti-detection and scoped lifetime.

A RenderSession owns one Playwright driver, one Chromium browser and one
context. Pages are opened per render through ``open_page()``. Sessions are
released by ``async with`` on every exit path; ``install_shutdown_handlers``
turns SIGINT/SIGTERM into task cancellation so those scopes unwind.
"""

import asyncio
import signal
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, List, Optional

import structlog
from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)

from catalog_scraper.config import settings
from catalog_scraper.scrapers.utils.user_agents import get_random_user_agent

logger = structlog.get_logger(__name__)

VIEWPORT = {"width": 1920, "height": 1080}

# Minimal stealth JS to mask automation signals
STEALTH_JS = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'languages', { get: () => ['en-IN', 'en-GB', 'en-US', 'en', 'hi'] });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
window.chrome = { runtime: {} };
const originalQuery = window.navigator.permissions.query;
window.navigator.permissions.query = (parameters) =>
  parameters.name === 'notifications'
    ? Promise.resolve({ state: Notification.permission })
    : originalQuery(parameters);
"""

HEAVY_RESOURCE_PATTERN = "**/*.{woff,woff2,ttf,eot,mp4,webm}"

_LIVE_SESSIONS: "weakref.WeakSet[RenderSession]" = weakref.WeakSet()


class RenderSession:
    """One browser process + context, opened lazily and closed exactly once.

    Usage:
        async with RenderSession() as session:
            async with session.open_page() as page:
                await page.goto(url)
    """

    def __init__(
        self,
        headless: Optional[bool] = None,
        block_resources: Optional[bool] = None,
        user_agent: Optional[str] = None,
        label: str = "default",
    ):
        self._headless = settings.BROWSER_HEADLESS if headless is None else headless
        self._block_resources = (
            settings.BLOCK_HEAVY_RESOURCES if block_resources is None else block_resources
        )
        self._user_agent = user_agent
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._lock = asyncio.Lock()
        self.navigation_lock = asyncio.Lock()
        self.logger = logger.bind(session=label)

    @property
    def is_open(self) -> bool:
        return self._context is not None

    async def start(self) -> None:
        """Launch the browser and create the context. Idempotent."""
        async with self._lock:
            if self._context:
                return
            try:
                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=self._headless,
                    args=[
                        "--disable-blink-features=AutomationControlled",
                        "--disable-dev-shm-usage",
                        "--no-sandbox",
                    ],
                )
                self._context = await self._browser.new_context(
                    user_agent=self._user_agent or get_random_user_agent(),
                    viewport=VIEWPORT,
                    locale=settings.BROWSER_LOCALE,
                    timezone_id=settings.BROWSER_TIMEZONE,
                    java_script_enabled=True,
                    bypass_csp=True,
                )
                await self._context.add_init_script(STEALTH_JS)

                if self._block_resources:
                    await self._context.route(
                        HEAVY_RESOURCE_PATTERN, lambda route: route.abort()
                    )
            except BaseException:
                await self._teardown()
                raise

            _LIVE_SESSIONS.add(self)
            self.logger.info("render_session_started", headless=self._headless)

    async def close(self) -> None:
        """Close context, browser and driver. Safe to call repeatedly."""
        async with self._lock:
            was_open = self._context is not None
            await self._teardown()
            _LIVE_SESSIONS.discard(self)
            if was_open:
                self.logger.info("render_session_closed")

    async def _teardown(self) -> None:
        context, browser, driver = self._context, self._browser, self._playwright
        self._context = self._browser = self._playwright = None

        if context is not None:
            try:
                await context.close()
            except Exception as e:
                self.logger.warning("context_close_failed", error=str(e))
        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                self.logger.warning("browser_close_failed", error=str(e))
        if driver is not None:
            try:
                await driver.stop()
            except Exception as e:
                self.logger.warning("playwright_stop_failed", error=str(e))

    @asynccontextmanager
    async def open_page(self) -> AsyncIterator[Page]:
        """Open a fresh page; it is closed when the block exits."""
        if not self._context:
            await self.start()
        page = await self._context.new_page()
        try:
            yield page
        finally:
            try:
                await page.close()
            except Exception as e:
                self.logger.warning("page_close_failed", error=str(e))

    async def __aenter__(self) -> "RenderSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


async def close_all_sessions() -> int:
    """Close every render session still open in this process.

    Returns:
        Number of sessions closed
    """
    sessions = list(_LIVE_SESSIONS)
    for session in sessions:
        await session.close()
    if sessions:
        logger.info("render_sessions_closed", count=len(sessions))
    return len(sessions)


def install_shutdown_handlers(
    loop: Optional[asyncio.AbstractEventLoop] = None,
    spare: Iterable[asyncio.Task] = (),
) -> List[signal.Signals]:
    """Cancel running tasks on SIGINT/SIGTERM so session scopes unwind.

    Must be called from inside the running event loop. Platforms without
    ``add_signal_handler`` (Windows) are skipped.

    Args:
        loop: Loop to install on; defaults to the running loop
        spare: Tasks left running, e.g. a supervisor awaiting the others

    Returns:
        Signals whose handlers were installed
    """
    loop = loop or asyncio.get_running_loop()
    spared = set(spare)

    def _cancel_tasks(sig: signal.Signals) -> None:
        tasks = [t for t in asyncio.all_tasks(loop) if t not in spared and not t.done()]
        logger.warning("shutdown_signal_received", signal=sig.name, tasks=len(tasks))
        for task in tasks:
            task.cancel()

    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _cancel_tasks, sig)
        except NotImplementedError:
            logger.debug("signal_handler_unsupported", signal=sig.name)
            continue
        installed.append(sig)
    return installed
