"""Register all site adapters with the factory.

Import and call ``register_all_adapters()`` once at startup; the scraper
service does this itself when built without an explicit factory.
"""

from typing import Optional

import structlog

from catalog_scraper.scrapers.adapters import ALL_ADAPTERS
from catalog_scraper.scrapers.factory import AdapterFactory, get_adapter_factory

logger = structlog.get_logger(__name__)


def register_all_adapters(factory: Optional[AdapterFactory] = None) -> AdapterFactory:
    """Register every bundled adapter.

    Args:
        factory: Target factory; the global one when None

    Returns:
        The factory adapters were registered with
    """
    factory = factory or get_adapter_factory()

    for adapter in ALL_ADAPTERS:
        try:
            factory.register_adapter(adapter)
        except ValueError as e:
            logger.error(
                "adapter_registration_failed",
                shop_slug=getattr(adapter, "slug", None),
                error=str(e),
            )

    logger.info(
        "all_adapters_registered",
        count=len(factory.get_registered_shops()),
        shops=factory.get_registered_shops(),
    )
    return factory
