"""The Body Shop India (thebodyshop.in) category listings.

Single-brand store: every product gets "The Body Shop" as its brand. The
site is slow to spin up a browser for, so renders share one long-lived
session owned by the scraper service.
"""

from catalog_scraper.scrapers import strategies as s
from catalog_scraper.scrapers.base import SiteAdapter
from catalog_scraper.scrapers.utils.selectors import strategy

PRODUCT_CONTAINERS = strategy(
    ".product-item",
    ".product-card",
    ".product-listing",
    ".product-tile",
    "[data-testid='product-item']",
    ".product-grid-item",
    ".product-list-item",
)

FIELDS = {
    "product_id": s.PRODUCT_ID,
    "product_name": strategy(
        ".product-name",
        ".product-title",
        ".product-name-link",
        "h3",
        "h4",
        ".title",
        "a[data-testid='product-name']",
        ".product-link",
    ),
    "selling_price": strategy(
        ".price",
        ".selling-price",
        ".offer-price",
        ".current-price",
        "[data-testid='selling-price']",
        ".price-current",
        pattern=s.CURRENCY_TEXT_RE,
    ),
    "actual_price": strategy(
        ".mrp",
        ".original-price",
        ".strikethrough",
        ".crossed-price",
        "[data-testid='mrp']",
        ".price-original",
        pattern=s.CURRENCY_TEXT_RE,
    ),
    "discount_percent": strategy(
        ".discount",
        ".off-percentage",
        ".savings",
        "[data-testid='discount']",
        pattern=s.PERCENT_TEXT_RE,
    ),
    "product_image": strategy(
        "img[alt*='product']",
        "img[alt*='thumbnail']",
        ".product-image img",
        ".product-thumbnail img",
        ".product-img img",
        "img[src*='thebodyshop']",
        "img",
        attrs=("src", "data-src"),
    ),
    "product_url": s.LINK,
    "rating": s.RATING.extended("[data-testid='rating']", ".star-rating"),
    "review_count": s.REVIEW_COUNT.extended("[data-testid='review-count']"),
    "description": s.DESCRIPTION,
    "offers": strategy(".offer", ".discount", ".promotion", ".badge", ".tag", multiple=True),
}

THE_BODY_SHOP = SiteAdapter(
    slug="thebodyshop",
    name="The Body Shop India",
    base_url="https://www.thebodyshop.in",
    domains=("thebodyshop.in",),
    path_markers=("/c/", "/category", "/products"),
    product_containers=PRODUCT_CONTAINERS,
    fields=FIELDS,
    title_suffix=r"\s*\|\s*The Body Shop.*$",
    site_title="The Body Shop",
    default_brand="The Body Shop",
    long_lived_session=True,
)
