"""Pytest configuration and shared fixtures.

Playwright is replaced by the fakes in ``fakes.py`` and HTTP by
``httpx.MockTransport``, so no browser or network is needed.
"""

from pathlib import Path

import pytest

from catalog_scraper.scrapers.utils.debug_artifacts import DebugArtifactStore


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest.fixture
def artifacts(tmp_path: Path) -> DebugArtifactStore:
    """Debug artifact store rooted in a temp directory."""
    return DebugArtifactStore(root=tmp_path / "debug", enabled=True)
