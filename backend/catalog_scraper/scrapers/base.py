"""Core data model shared by retrieval, extraction and the site adapters.

A SiteAdapter is a parameter object: it carries everything that differs
between sites (domains, selector tables, render timings, post-processing)
while the retrieval and extraction engine stays the same for all of them.
"""

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlparse

from catalog_scraper.config import settings
from catalog_scraper.scrapers.utils.normalizer import format_percent, format_price
from catalog_scraper.scrapers.utils.selectors import SelectorStrategy


class RenderMode(str, Enum):
    """How a page is retrieved."""

    RENDER = "render"
    LIGHTWEIGHT = "lightweight"

    @classmethod
    def from_flag(cls, render: bool) -> "RenderMode":
        """Map the routing layer's boolean ``render`` flag to a mode."""
        return cls.RENDER if render else cls.LIGHTWEIGHT


@dataclass(frozen=True)
class FetchRequest:
    """One retrieval attempt for a category URL."""

    url: str
    render_mode: RenderMode = RenderMode.RENDER
    timeout_ms: int = settings.DEFAULT_TIMEOUT_MS

    def __post_init__(self):
        if not self.url:
            raise ValueError("url is required")
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")


@dataclass(frozen=True)
class RawPage:
    """Markup produced by one retrieval strategy."""

    html: str
    final_url: str
    fetched_with: RenderMode
    captured_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class Breadcrumb:
    name: str
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "url": self.url}


@dataclass(frozen=True)
class Pagination:
    """Listing pagination state; a single page unless the site says otherwise."""

    current_page: int = 1
    total_pages: int = 1
    has_next_page: bool = False
    has_previous_page: bool = False
    next_url: Optional[str] = None
    previous_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "hasNextPage": self.has_next_page,
            "hasPreviousPage": self.has_previous_page,
            "nextUrl": self.next_url,
            "previousUrl": self.previous_url,
        }


@dataclass(frozen=True)
class DebugArtifacts:
    """Paths of the most recent debug files written for an adapter."""

    html_path: Optional[str] = None
    screenshot_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"htmlPath": self.html_path, "screenshotPath": self.screenshot_path}


@dataclass(frozen=True)
class ProductRecord:
    """Normalized product data structure produced for every site.

    Prices are Decimal amounts in ``currency``; display strings are only
    produced by ``to_dict()``. Discount fields are None unless both prices
    were found.
    """

    product_name: str
    product_id: Optional[str] = None
    brand: Optional[str] = None
    selling_price: Optional[Decimal] = None
    actual_price: Optional[Decimal] = None
    discount_percent: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    product_image: Optional[str] = None
    product_url: Optional[str] = None
    rating: Optional[float] = None
    review_count: int = 0
    availability: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    offers: Tuple[str, ...] = ()
    description: Optional[str] = None
    currency: str = "INR"
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate data after initialization."""
        if not self.product_name:
            raise ValueError("product_name is required")
        for name in ("selling_price", "actual_price", "discount_amount"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be a non-negative Decimal")
        if self.review_count is None or self.review_count < 0:
            raise ValueError("review_count must be a non-negative integer")

        object.__setattr__(self, "offers", tuple(self.offers))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def dedupe_key(self) -> Tuple[str, str]:
        """Identity used to drop duplicate cards within one listing."""
        if self.product_id:
            return ("id", self.product_id)
        if self.product_url:
            return ("url", self.product_url)
        return ("name", self.product_name.lower())

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape: camelCase keys, formatted prices, null when absent."""
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "brand": self.brand,
            "sellingPrice": format_price(self.selling_price),
            "actualPrice": format_price(self.actual_price),
            "discountPercent": format_percent(self.discount_percent),
            "discountAmount": format_price(self.discount_amount),
            "productImage": self.product_image,
            "productUrl": self.product_url,
            "rating": self.rating,
            "reviewCount": self.review_count,
            "availability": self.availability,
            "category": self.category,
            "subCategory": self.sub_category,
            "offers": list(self.offers),
            "description": self.description,
            "currency": self.currency,
            "additionalInfo": dict(self.metadata),
        }


@dataclass(frozen=True)
class CategoryResult:
    """Everything extracted from one category listing page."""

    shop_slug: str
    source_url: str
    category_name: str
    products: Tuple[ProductRecord, ...]
    fetched_with: RenderMode
    breadcrumbs: Tuple[Breadcrumb, ...] = ()
    pagination: Pagination = field(default_factory=Pagination)
    filters: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    debug_artifacts: Optional[DebugArtifacts] = None
    scraped_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    total_products: int = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "products", tuple(self.products))
        object.__setattr__(self, "breadcrumbs", tuple(self.breadcrumbs))
        object.__setattr__(
            self,
            "filters",
            MappingProxyType({k: tuple(v) for k, v in dict(self.filters).items()}),
        )
        object.__setattr__(self, "total_products", len(self.products))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shopSlug": self.shop_slug,
            "sourceUrl": self.source_url,
            "scrapedAt": self.scraped_at.isoformat(),
            "categoryName": self.category_name,
            "totalProducts": self.total_products,
            "products": [p.to_dict() for p in self.products],
            "breadcrumbs": [b.to_dict() for b in self.breadcrumbs],
            "pagination": self.pagination.to_dict(),
            "filters": {k: list(v) for k, v in self.filters.items()},
            "fetchedWith": self.fetched_with.value,
            "debugArtifacts": (
                self.debug_artifacts.to_dict() if self.debug_artifacts else None
            ),
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent, default=str)

    def suggested_filename(self) -> str:
        """File name for persisting this result: ``<slug>-category-<ts>.json``."""
        timestamp = self.scraped_at.strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        return f"{self.shop_slug}-category-{timestamp}.json"


@dataclass(frozen=True)
class EmbeddedCatalog:
    """Catalog data read from a page's embedded JSON instead of its DOM.

    ``products`` holds raw field dicts keyed like ProductRecord fields;
    they are normalized by the extractor exactly like DOM-read values.
    """

    products: List[Dict[str, Any]]
    breadcrumbs: List[Breadcrumb] = field(default_factory=list)
    pagination: Optional[Pagination] = None
    filters: Dict[str, List[str]] = field(default_factory=dict)
    category_name: Optional[str] = None


@dataclass(frozen=True)
class RenderProfile:
    """Render-mode timings for one site.

    ``scroll_step_px`` of None scrolls by half the viewport height.
    """

    navigation_timeout_ms: int = settings.DEFAULT_TIMEOUT_MS
    scroll_step_px: Optional[int] = None
    scroll_poll_interval_ms: int = settings.SCROLL_POLL_INTERVAL_MS
    scroll_stable_polls: int = settings.SCROLL_STABLE_POLLS
    scroll_max_polls: int = settings.SCROLL_MAX_POLLS

    def __post_init__(self):
        if self.scroll_stable_polls < 1:
            raise ValueError("scroll_stable_polls must be at least 1")
        if self.scroll_max_polls < self.scroll_stable_polls:
            raise ValueError("scroll_max_polls must be >= scroll_stable_polls")


EmbeddedParser = Callable[[str, "SiteAdapter"], Optional[EmbeddedCatalog]]
NameCleaner = Callable[[Optional[str]], Optional[str]]


@dataclass(frozen=True)
class SiteAdapter:
    """Everything site-specific about one e-commerce site.

    Attributes:
        slug: Registry key, e.g. "croma"
        name: Human-readable site name
        base_url: Origin used to absolutize relative links
        domains: Host suffixes accepted by ``is_valid_url``
        path_markers: At least one must appear in the URL path (if any)
        product_containers: Strategy locating product elements
        fields: Field name -> SelectorStrategy, read inside each element
        required_fields: Records missing any of these are dropped
        title_suffix: Regex stripped from <title> for the category name
        site_title: Bare site title that never counts as a category name
        embedded_parser: Reads catalog data embedded in the markup
        name_cleaner: Post-processing for product names
        default_brand: Brand used when none is found on the card
        guess_brand_from_name: Fall back to the leading word(s) of the name
        product_id_pattern: Regex on the product URL yielding an id
        price_requires_symbol: Prices must carry a currency symbol
        render: Render-mode timings
        long_lived_session: Keep one render session across calls
    """

    slug: str
    name: str
    base_url: str
    domains: Tuple[str, ...]
    product_containers: SelectorStrategy
    fields: Mapping[str, SelectorStrategy]
    path_markers: Tuple[str, ...] = ()
    required_fields: Tuple[str, ...] = ("product_name",)
    title_suffix: Optional[str] = None
    site_title: Optional[str] = None
    embedded_parser: Optional[EmbeddedParser] = field(default=None, compare=False)
    name_cleaner: Optional[NameCleaner] = field(default=None, compare=False)
    default_brand: Optional[str] = None
    guess_brand_from_name: bool = False
    product_id_pattern: Optional[str] = r"/p/([^/?#]+)"
    price_requires_symbol: bool = True
    render: RenderProfile = field(default_factory=RenderProfile)
    long_lived_session: bool = False

    def __post_init__(self):
        if not self.slug:
            raise ValueError("slug is required")
        if not self.domains:
            raise ValueError("at least one domain is required")
        object.__setattr__(self, "domains", tuple(d.lower() for d in self.domains))
        object.__setattr__(self, "path_markers", tuple(self.path_markers))
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @property
    def default_timeout_ms(self) -> int:
        return self.render.navigation_timeout_ms

    def is_valid_url(self, url: Optional[str]) -> bool:
        """Check that ``url`` is an http(s) URL on this site's category pages.

        Args:
            url: Candidate category URL

        Returns:
            True if the host belongs to the site and the path carries one of
            the site's category markers (when it declares any)
        """
        if not url or not isinstance(url, str):
            return False
        parsed = urlparse(url.strip())
        if parsed.scheme not in ("http", "https"):
            return False
        host = (parsed.hostname or "").lower()
        if not any(host == d or host.endswith("." + d) for d in self.domains):
            return False
        if self.path_markers and not any(m in parsed.path for m in self.path_markers):
            return False
        return True

    def product_id_from_url(self, url: Optional[str]) -> Optional[str]:
        if not url or not self.product_id_pattern:
            return None
        match = re.search(self.product_id_pattern, url)
        return match.group(1) if match else None
