"""Custom exception classes for the catalog scraper.

Retrieval-level errors (InvalidUrlError, RetrievalFailedError,
NoProductsFoundError) are terminal for a scrape call. Field- and
product-level errors are recorded and absorbed by the extractor.
"""

from typing import Optional

from catalog_scraper.schemas.common import ErrorDetail, ErrorResponse


class CatalogScraperException(Exception):
    """Base exception for all catalog scraper errors."""

    kind: str = "internal_error"

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)

    def to_error_detail(self) -> ErrorDetail:
        """Structured ``{kind, message}`` payload for the routing layer."""
        return ErrorDetail(kind=self.kind, message=self.message)

    def to_error_response(self) -> ErrorResponse:
        """Full error envelope: ``{"status": "error", "error": {...}}``."""
        return ErrorResponse(error=self.to_error_detail())


class InvalidUrlError(CatalogScraperException):
    """Raised when a URL fails the adapter's domain/path predicate."""

    kind = "invalid_url"

    def __init__(self, shop_slug: str, url: str):
        self.shop_slug = shop_slug
        self.url = url
        super().__init__(f"Invalid {shop_slug} category URL: {url!r}")


class UnknownAdapterError(CatalogScraperException):
    """Raised when no adapter is registered for a slug or URL."""

    kind = "unknown_adapter"

    def __init__(self, identifier: str):
        super().__init__(f"No adapter registered for '{identifier}'")


class RenderFailedError(CatalogScraperException):
    """Raised when the browser render strategy fails in some state."""

    kind = "render_failed"

    def __init__(self, state: str, message: str):
        self.state = state
        super().__init__(f"Render failed during {state}: {message}")


class AntiBotRedirectError(RenderFailedError):
    """Raised when navigation lands on a cart/login/signup page."""

    kind = "anti_bot_redirect"

    def __init__(self, final_url: str, title: str = ""):
        self.final_url = final_url
        self.title = title
        super().__init__(
            "detect_misroute",
            f"redirected to {final_url!r} (title {title!r}) instead of the category page",
        )


class RetrievalFailedError(CatalogScraperException):
    """Raised when every attempted retrieval strategy failed."""

    kind = "retrieval_failed"

    def __init__(self, url: str, last_error: Optional[BaseException] = None):
        self.url = url
        self.last_error = last_error
        reason = str(last_error) if last_error else "no strategy succeeded"
        super().__init__(f"Could not retrieve {url}: {reason}")


class NoProductsFoundError(CatalogScraperException):
    """Raised when retrieval succeeded but no product element was parsed."""

    kind = "no_products_found"

    def __init__(self, shop_slug: str, url: str):
        self.shop_slug = shop_slug
        self.url = url
        super().__init__(f"No products found for {shop_slug} at {url}")


class PartialFieldExtraction(CatalogScraperException):
    """A single field of one product could not be resolved."""

    kind = "partial_field_extraction"

    def __init__(self, field_name: str, cause: BaseException):
        self.field_name = field_name
        self.cause = cause
        super().__init__(f"Field '{field_name}' failed: {cause}")


class ProductExtractionSkipped(CatalogScraperException):
    """A product element raised during extraction and was dropped."""

    kind = "product_extraction_skipped"

    def __init__(self, index: int, cause: BaseException):
        self.index = index
        self.cause = cause
        super().__init__(f"Product element #{index} skipped: {cause}")
