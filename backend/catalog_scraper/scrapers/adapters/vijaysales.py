"""Vijay Sales (vijaysales.com) category listings.

Vijay Sales cards carry few stable price classes, so prices fall back to
reading rupee amounts out of the card text in order (selling, then MRP).
Card titles are often rendered twice inside the same element; repeated
words are dropped and the brand is guessed from the cleaned name.
"""

from catalog_scraper.scrapers import strategies as s
from catalog_scraper.scrapers.base import SiteAdapter
from catalog_scraper.scrapers.utils.normalizer import dedupe_repeated_words
from catalog_scraper.scrapers.utils.selectors import strategy

PRODUCT_CONTAINERS = strategy(
    ".product-card",
    ".product-item",
    ".product",
    "[data-product-id]",
)

FIELDS = {
    "product_id": s.PRODUCT_ID,
    "product_name": strategy(
        ".product-card__title",
        ".product-title",
        ".product-name",
        "h3",
        "h4",
        ".title",
        "a[data-href]",
        "a",
    ),
    "brand": s.BRAND,
    "selling_price": strategy(
        ".product-card__price",
        ".selling-price",
        ".offer-price",
        pattern=s.CURRENCY_TEXT_RE,
        fallback=s.nth_currency_token(0),
    ),
    "actual_price": strategy(
        ".product-card__mrp",
        ".mrp",
        ".strike",
        "del",
        pattern=s.CURRENCY_TEXT_RE,
        fallback=s.nth_currency_token(1),
    ),
    "discount_percent": strategy(
        ".product-card__discount",
        ".discount",
        pattern=s.PERCENT_TEXT_RE,
        fallback=s.discount_in_text,
    ),
    "product_image": strategy(
        ".product-card__image img",
        ".product-image img",
        "img",
        attrs=("src", "data-src"),
    ),
    "product_url": s.LINK,
    "rating": strategy(".rating", ".stars", ".product-rating", pattern=r"[0-9]+(?:\.[0-9]+)?"),
    "review_count": strategy(
        ".reviews",
        ".review-count",
        ".product-reviews",
        pattern=r"[0-9][0-9,]*",
    ),
    "offers": strategy(".offer", ".discount", ".promo", ".deal", multiple=True),
}

VIJAY_SALES = SiteAdapter(
    slug="vijaysales",
    name="Vijay Sales",
    base_url="https://www.vijaysales.com",
    domains=("vijaysales.com",),
    product_containers=PRODUCT_CONTAINERS,
    fields=FIELDS,
    title_suffix=r"\s*\|\s*Vijay Sales.*$",
    site_title="Vijay Sales",
    name_cleaner=dedupe_repeated_words,
    guess_brand_from_name=True,
)
