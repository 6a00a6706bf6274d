"""Tests for the fetch orchestrator and the lightweight client."""

import httpx
import pytest

from catalog_scraper.core.exceptions import (
    AntiBotRedirectError,
    RenderFailedError,
    RetrievalFailedError,
)
from catalog_scraper.scrapers.adapters import AJIO
from catalog_scraper.scrapers.base import FetchRequest, RawPage, RenderMode
from catalog_scraper.scrapers.fetcher import FetchOrchestrator
from catalog_scraper.scrapers.utils.http_client import LightweightFetchClient

from fakes import RecordingHandler


URL = "https://www.ajio.com/men-tshirts/c/830216001"
LISTING = "<html><body><div class='item'>Tee ₹499</div></body></html>"


class StubRenderController:
    """Render controller returning a fixed page or raising a fixed error."""

    def __init__(self, error=None):
        self.error = error
        self.calls = []

    async def render(self, request, adapter, session=None):
        self.calls.append((request, session))
        if self.error:
            raise self.error
        return RawPage(html=LISTING, final_url=request.url, fetched_with=RenderMode.RENDER)


def make_orchestrator(controller, handler, artifacts):
    client = LightweightFetchClient(
        user_agent="test-agent", transport=httpx.MockTransport(handler)
    )
    return FetchOrchestrator(render_controller=controller, http_client=client, artifacts=artifacts)


class TestFetchOrchestrator:
    """Tests for FetchOrchestrator.fetch."""

    async def test_render_success_skips_http(self, artifacts):
        """Test a successful render is returned without an HTTP request."""
        controller = StubRenderController()
        handler = RecordingHandler(LISTING)
        orchestrator = make_orchestrator(controller, handler, artifacts)

        raw = await orchestrator.fetch(FetchRequest(url=URL), AJIO)

        assert raw.fetched_with is RenderMode.RENDER
        assert len(controller.calls) == 1
        assert handler.requests == []

    async def test_misroute_falls_back_exactly_once(self, artifacts):
        """Test an anti-bot redirect triggers one lightweight fetch."""
        controller = StubRenderController(
            error=AntiBotRedirectError("https://www.ajio.com/cart", "Shopping Bag")
        )
        handler = RecordingHandler(LISTING)
        orchestrator = make_orchestrator(controller, handler, artifacts)

        raw = await orchestrator.fetch(FetchRequest(url=URL), AJIO)

        assert raw.fetched_with is RenderMode.LIGHTWEIGHT
        assert raw.html == LISTING
        assert len(controller.calls) == 1
        assert len(handler.requests) == 1
        assert (artifacts.root / "ajio" / "latest.html").read_text(encoding="utf-8") == LISTING

    async def test_lightweight_mode_never_renders(self, artifacts):
        """Test render=False goes straight to HTTP."""
        controller = StubRenderController()
        handler = RecordingHandler(LISTING)
        orchestrator = make_orchestrator(controller, handler, artifacts)

        raw = await orchestrator.fetch(
            FetchRequest(url=URL, render_mode=RenderMode.LIGHTWEIGHT), AJIO
        )

        assert raw.fetched_with is RenderMode.LIGHTWEIGHT
        assert controller.calls == []
        assert len(handler.requests) == 1

    async def test_all_strategies_fail(self, artifacts):
        """Test RetrievalFailedError carries the last strategy's error."""
        controller = StubRenderController(error=RenderFailedError("navigate", "timeout"))
        handler = RecordingHandler("Service Unavailable", status_code=503)
        orchestrator = make_orchestrator(controller, handler, artifacts)

        with pytest.raises(RetrievalFailedError) as exc_info:
            await orchestrator.fetch(FetchRequest(url=URL), AJIO)

        error = exc_info.value
        assert isinstance(error.last_error, httpx.HTTPStatusError)
        assert error.last_error.response.status_code == 503
        assert error.__cause__ is error.last_error
        assert error.url == URL
        assert len(handler.requests) == 1

    async def test_session_is_passed_through(self, artifacts):
        """Test a caller-owned session reaches the render controller."""
        controller = StubRenderController()
        orchestrator = make_orchestrator(controller, RecordingHandler(LISTING), artifacts)
        session = object()

        await orchestrator.fetch(FetchRequest(url=URL), AJIO, session=session)

        assert controller.calls[0][1] is session


class TestLightweightFetchClient:
    """Tests for LightweightFetchClient."""

    async def test_browser_headers_and_redirects(self):
        """Test browser-like headers are sent and redirects followed."""
        seen = []

        def handler(request):
            seen.append(request)
            if request.url.path == "/old":
                return httpx.Response(301, headers={"location": "https://www.ajio.com/new"})
            return httpx.Response(200, text="<html>ok</html>")

        client = LightweightFetchClient(user_agent="test-agent", transport=httpx.MockTransport(handler))

        raw = await client.fetch(
            FetchRequest(url="https://www.ajio.com/old", render_mode=RenderMode.LIGHTWEIGHT)
        )

        assert raw.final_url == "https://www.ajio.com/new"
        assert raw.html == "<html>ok</html>"
        assert seen[0].headers["user-agent"] == "test-agent"
        assert seen[0].headers["accept-language"].startswith("en-IN")

    async def test_network_error_propagates(self):
        """Test connection failures are re-raised for the orchestrator."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = LightweightFetchClient(transport=httpx.MockTransport(handler))

        with pytest.raises(httpx.ConnectError):
            await client.fetch(FetchRequest(url=URL, render_mode=RenderMode.LIGHTWEIGHT))
