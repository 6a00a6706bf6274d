"""Best-effort persistence of the last page seen per adapter.

Files are overwritten on every attempt:

    <root>/<slug>/latest.html
    <root>/<slug>/latest.png
    <root>/<slug>/latest-failure.html
    <root>/<slug>/latest-failure.png

Nothing in here ever raises; a failed write is logged and ignored.
"""

from pathlib import Path
from typing import Optional, Union

import structlog
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from catalog_scraper.config import settings
from catalog_scraper.scrapers.base import DebugArtifacts

logger = structlog.get_logger(__name__)


class DebugArtifactStore:
    """Writes debug HTML and screenshots under a per-adapter directory."""

    def __init__(
        self,
        root: Union[str, Path, None] = None,
        enabled: Optional[bool] = None,
    ):
        self.root = Path(root) if root is not None else settings.get_debug_artifact_dir()
        self.enabled = settings.DEBUG_ARTIFACTS_ENABLED if enabled is None else enabled

    def _path(self, slug: str, failed: bool, suffix: str) -> Path:
        name = "latest-failure" if failed else "latest"
        return self.root / slug / f"{name}.{suffix}"

    def record_html(self, slug: str, html: str, failed: bool = False) -> Optional[Path]:
        """Write page markup; returns the path or None when skipped/failed."""
        if not self.enabled:
            return None
        path = self._path(slug, failed, "html")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(html or "", encoding="utf-8")
        except OSError as e:
            logger.warning("debug_html_write_failed", adapter=slug, path=str(path), error=str(e))
            return None
        logger.debug("debug_html_written", adapter=slug, path=str(path))
        return path

    async def record_screenshot(
        self, page: Page, slug: str, failed: bool = False
    ) -> Optional[Path]:
        """Full-page screenshot of a live page; returns the path or None."""
        if not self.enabled or page is None:
            return None
        path = self._path(slug, failed, "png")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await page.screenshot(path=str(path), full_page=True)
        except (OSError, PlaywrightError) as e:
            logger.warning(
                "debug_screenshot_failed", adapter=slug, path=str(path), error=str(e)
            )
            return None
        logger.debug("debug_screenshot_written", adapter=slug, path=str(path))
        return path

    async def record_page(self, page: Page, slug: str, failed: bool = False) -> None:
        """Markup and screenshot of a live page, both best-effort."""
        if not self.enabled or page is None:
            return
        try:
            html = await page.content()
        except PlaywrightError as e:
            logger.warning("debug_page_content_failed", adapter=slug, error=str(e))
        else:
            self.record_html(slug, html, failed=failed)
        await self.record_screenshot(page, slug, failed=failed)

    def latest(self, slug: str) -> Optional[DebugArtifacts]:
        """Paths of the current "latest" (success) artifacts, if any exist."""
        if not self.enabled:
            return None
        html_path = self._path(slug, False, "html")
        screenshot_path = self._path(slug, False, "png")
        if not html_path.exists() and not screenshot_path.exists():
            return None
        return DebugArtifacts(
            html_path=str(html_path) if html_path.exists() else None,
            screenshot_path=str(screenshot_path) if screenshot_path.exists() else None,
        )
