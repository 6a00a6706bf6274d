"""Ajio (ajio.com) category listings.

Ajio is a heavily client-rendered React app behind bot protection. Cards
load lazily while scrolling in small steps, and class names change often,
so the adapter leans on long selector chains plus text heuristics: the
image alt text ("Product image of ...") for titles and the first rupee
amount on the card for the selling price.
"""

from catalog_scraper.scrapers import strategies as s
from catalog_scraper.scrapers.base import RenderProfile, SiteAdapter
from catalog_scraper.scrapers.utils.selectors import strategy

PRODUCT_CONTAINERS = strategy(
    ".rilrtl-products-list-item",
    ".item",
    ".items .item",
    ".product-grid .item",
    ".product-list .item",
    "[data-test='product-card']",
    ".preview-image",
    ".products-list li",
    ".grid-item",
    ".product-item",
    fallback=s.item_blocks_then_price_blocks,
)

FIELDS = {
    "product_name": strategy(
        ".nameCls",
        ".product-name",
        "h3",
        "h4",
        ".title",
        ".brand-name",
        ".name",
        "[data-test='name']",
        ".product-title",
        ".item-title",
        fallback=s.first_of(
            s.image_alt_title("Product image of "),
            s.first_descriptive_line,
        ),
    ),
    "brand": strategy(".brand", ".product-brand"),
    "selling_price": strategy(
        ".price strong",
        ".current-price",
        ".selling-price",
        ".price",
        ".net-price",
        ".final-price",
        "[class*='price']",
        pattern=s.CURRENCY_TEXT_RE,
        fallback=s.nth_currency_token(0),
    ),
    "actual_price": strategy(
        ".original-price",
        ".mrp",
        ".strike",
        "s",
        ".crossed-price",
        pattern=s.CURRENCY_TEXT_RE,
    ),
    "discount_percent": s.DISCOUNT.with_fallback(s.discount_in_text),
    "product_image": s.IMAGE,
    "product_url": s.LINK,
    "rating": s.RATING,
    "review_count": s.REVIEW_COUNT,
    "offers": s.OFFERS,
}

AJIO = SiteAdapter(
    slug="ajio",
    name="AJIO",
    base_url="https://www.ajio.com",
    domains=("ajio.com",),
    product_containers=PRODUCT_CONTAINERS,
    fields=FIELDS,
    required_fields=("product_name", "selling_price"),
    title_suffix=r"\s*[|-]\s*(?:Buy\s.*\s)?AJIO.*$",
    site_title="AJIO",
    render=RenderProfile(
        navigation_timeout_ms=90000,
        scroll_step_px=200,
        scroll_poll_interval_ms=200,
        scroll_stable_polls=10,
        scroll_max_polls=600,
    ),
)
