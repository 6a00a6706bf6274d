"""Licious (licious.in) category listings.

Prices on Licious cards are rendered as bare numbers next to a separate
rupee glyph element, so a currency symbol is not required when parsing.
"""

from catalog_scraper.scrapers import strategies as s
from catalog_scraper.scrapers.base import RenderProfile, SiteAdapter
from catalog_scraper.scrapers.utils.selectors import strategy

BARE_AMOUNT_RE = r"[0-9][0-9,]*(?:\.[0-9]+)?"

PRODUCT_CONTAINERS = strategy(
    ".product-card",
    ".product-item",
    "[data-test='product-card']",
    "[class*='ProductCard']",
    "[class*='product-tile']",
    ".item-product",
)

FIELDS = {
    "product_name": strategy(".product-name", ".title", "h3", "h2"),
    "selling_price": strategy(
        ".price .discounted-price",
        ".product-price .discounted-price",
        ".price .selling-price",
        ".product-price .selling-price",
        ".discounted-price",
        ".selling-price",
        ".price",
        ".product-price",
        pattern=BARE_AMOUNT_RE,
    ),
    "actual_price": strategy(
        ".price .original-price",
        ".product-price .original-price",
        ".price .actual-price",
        ".product-price .actual-price",
        ".original-price",
        ".actual-price",
        pattern=BARE_AMOUNT_RE,
    ),
    "discount_percent": strategy(".discount", ".offer-tag", pattern=s.PERCENT_TEXT_RE),
    "product_image": s.IMAGE,
    "product_url": s.LINK,
    "rating": strategy(".rating", ".product-rating", pattern=r"[0-9]+(?:\.[0-9]+)?"),
    "availability": s.AVAILABILITY,
    "description": strategy(".product-description", ".description", ".weight", ".net-wt"),
    "offers": s.OFFERS,
}

LICIOUS = SiteAdapter(
    slug="licious",
    name="Licious",
    base_url="https://www.licious.in",
    domains=("licious.in",),
    product_containers=PRODUCT_CONTAINERS,
    fields=FIELDS,
    required_fields=("product_name", "selling_price"),
    title_suffix=r"\s*[|-]\s*Licious.*$",
    site_title="Licious",
    price_requires_symbol=False,
    render=RenderProfile(
        navigation_timeout_ms=90000,
        scroll_step_px=None,
        scroll_poll_interval_ms=500,
        scroll_stable_polls=5,
        scroll_max_polls=200,
    ),
)
