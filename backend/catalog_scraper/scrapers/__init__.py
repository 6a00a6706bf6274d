"""Adaptive category-page retrieval and extraction.

This package provides:
- The shared data model and SiteAdapter parameter object
- Render (Playwright) and lightweight (httpx) retrieval with fallback
- Selector-strategy based extraction and field normalization
- Factory for looking up site adapters by slug or URL
"""

from .base import (
    CategoryResult,
    FetchRequest,
    ProductRecord,
    RawPage,
    RenderMode,
    SiteAdapter,
)
from .factory import AdapterFactory, adapter_factory, get_adapter_factory

__all__ = [
    # Data structures
    "CategoryResult",
    "FetchRequest",
    "ProductRecord",
    "RawPage",
    "RenderMode",
    "SiteAdapter",
    # Factory
    "AdapterFactory",
    "adapter_factory",
    "get_adapter_factory",
]
