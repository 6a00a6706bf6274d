"""Registry of site adapters, keyed by slug and resolvable by URL."""

from typing import Dict, List, Optional

import structlog

from catalog_scraper.core.exceptions import UnknownAdapterError
from catalog_scraper.scrapers.base import SiteAdapter


logger = structlog.get_logger(__name__)


class AdapterFactory:
    """Holds the SiteAdapter instances available to the scraper service."""

    def __init__(self):
        self._adapter_registry: Dict[str, SiteAdapter] = {}

    def register_adapter(self, adapter: SiteAdapter) -> None:
        """Register an adapter under its slug.

        Args:
            adapter: SiteAdapter instance; replaces any adapter with the
                same slug
        """
        if not isinstance(adapter, SiteAdapter):
            raise ValueError(f"Adapter must be a SiteAdapter: {adapter!r}")

        self._adapter_registry[adapter.slug] = adapter
        logger.debug("adapter_registered", shop_slug=adapter.slug, domains=adapter.domains)

    def get_adapter(self, shop_slug: str) -> SiteAdapter:
        """Look up an adapter by slug.

        Raises:
            UnknownAdapterError: No adapter is registered under ``shop_slug``
        """
        adapter = self._adapter_registry.get(shop_slug)
        if adapter is None:
            logger.warning("adapter_not_found", shop_slug=shop_slug)
            raise UnknownAdapterError(shop_slug)
        return adapter

    def resolve_for_url(self, url: str) -> SiteAdapter:
        """Find the adapter whose URL predicate accepts ``url``.

        Raises:
            UnknownAdapterError: No registered adapter accepts the URL
        """
        adapter = self.find_for_url(url)
        if adapter is None:
            logger.warning("adapter_not_found_for_url", url=url)
            raise UnknownAdapterError(url)
        return adapter

    def find_for_url(self, url: str) -> Optional[SiteAdapter]:
        for adapter in self._adapter_registry.values():
            if adapter.is_valid_url(url):
                return adapter
        return None

    def get_registered_shops(self) -> List[str]:
        """Get list of registered shop slugs."""
        return list(self._adapter_registry.keys())

    def has_adapter(self, shop_slug: str) -> bool:
        """Check if an adapter is registered for a shop."""
        return shop_slug in self._adapter_registry


# Global factory instance
adapter_factory = AdapterFactory()


def get_adapter_factory() -> AdapterFactory:
    """Get the global adapter factory instance.

    Returns:
        AdapterFactory instance
    """
    return adapter_factory
