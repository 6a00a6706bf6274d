"""Shared selector tables and heuristic fallbacks.

Adapters compose these instead of repeating the same selector chains.
Heuristics are last-resort readers used only when no selector matched;
each one is named for what it guesses so it is obvious at the call site.
"""

import re
from typing import Dict, List, Optional
from urllib.parse import urlparse

from bs4 import Tag

from catalog_scraper.scrapers.base import Breadcrumb, Pagination
from catalog_scraper.scrapers.utils.normalizer import (
    clean_text,
    find_currency_tokens,
    normalize_url,
)
from catalog_scraper.scrapers.utils.selectors import (
    SCOPE,
    Query,
    resolve,
    resolve_all,
    select_elements,
    strategy,
)

CURRENCY_TEXT_RE = r"(?:₹|Rs\.?)\s*[0-9][0-9,]*(?:\.[0-9]+)?"
PERCENT_TEXT_RE = r"[0-9]+(?:\.[0-9]+)?\s*%(?:\s*off)?|[0-9]+(?:\.[0-9]+)?\s*off"

DEFAULT_CATEGORY_NAME = "Category not specified"

# Text that marks a line as UI chrome rather than a product title
TITLE_NOISE_TOKENS = ("₹", "OFF", "Add to", "Wishlist", "Quick View")
MIN_TITLE_LINE_LENGTH = 10


# ---------------------------------------------------------------------------
# Field tables
# ---------------------------------------------------------------------------

NAME = strategy(
    ".product-name",
    ".product-title",
    ".title",
    "h3",
    "h4",
    "h2",
)

BRAND = strategy(".brand", ".product-brand", ".brand-name")

SELLING_PRICE = strategy(
    ".selling-price",
    ".current-price",
    ".offer-price",
    ".final-price",
    ".price",
    pattern=CURRENCY_TEXT_RE,
)

ACTUAL_PRICE = strategy(
    ".mrp",
    ".original-price",
    ".strikethrough",
    ".strike",
    ".crossed-price",
    "s",
    "del",
    pattern=CURRENCY_TEXT_RE,
)

DISCOUNT = strategy(
    ".discount",
    ".off-percentage",
    ".savings",
    "[class*='discount']",
    pattern=PERCENT_TEXT_RE,
)

IMAGE = strategy(
    "img",
    attrs=("src", "data-src", "data-lazy-src"),
)

LINK = strategy(
    Query(SCOPE, ("href", "data-href")),
    "a[href]",
    "a[data-href]",
    attrs=("href", "data-href"),
)

RATING = strategy(
    ".rating",
    ".product-rating",
    ".stars",
    "[class*='rating']",
    Query("[aria-label*='star']", ("aria-label",), r"([0-9]+(?:\.[0-9]+)?)\s*star"),
    pattern=r"[0-9]+(?:\.[0-9]+)?",
)

REVIEW_COUNT = strategy(
    ".reviews",
    ".review-count",
    ".product-reviews",
    ".rating-count",
    "[class*='review']",
    pattern=r"[0-9][0-9,]*(?:\.[0-9]+)?\s*[kK]?",
)

OFFERS = strategy(
    ".offer",
    ".promotion",
    ".promo",
    ".deal",
    ".badge",
    ".tag",
    multiple=True,
)

AVAILABILITY = strategy(
    ".stock-status",
    ".availability",
    ".out-of-stock",
    "[class*='stock']",
)

DESCRIPTION = strategy(
    ".product-description",
    ".description",
    ".product-summary",
    ".product-info",
)

PRODUCT_ID = strategy(
    Query(SCOPE, ("data-product-id", "data-id", "data-sku")),
    Query("[data-product-id]", ("data-product-id",)),
)


# ---------------------------------------------------------------------------
# Page-level tables
# ---------------------------------------------------------------------------

PAGE_TITLE = strategy("title")
PAGE_HEADING = strategy("h1")

BREADCRUMB_CONTAINERS = strategy(
    ".breadcrumb",
    ".breadcrumbs",
    ".navigation-breadcrumb",
    ".breadcrumb-nav",
    "nav[aria-label*='readcrumb']",
)

PAGINATION_CONTAINERS = strategy(".pagination", ".pager", "[class*='pagination']")
PAGINATION_CURRENT = strategy(".current", ".active", "[aria-current]")
PAGINATION_NEXT = strategy(".next", ".next-page", "a[rel='next']")
PAGINATION_PREVIOUS = strategy(".prev", ".previous", ".previous-page", "a[rel='prev']")

FILTER_BLOCKS = strategy(".filter", ".facet")
FILTER_TITLE = strategy(".filter-title", ".facet-title", "h3", "h4")
FILTER_OPTIONS = strategy(".filter-option", ".facet-option", "li", multiple=True)


# ---------------------------------------------------------------------------
# Heuristics
# ---------------------------------------------------------------------------


def first_of(*heuristics):
    """Chain heuristics; the first one returning a value wins."""

    def read(scope: Tag):
        for heuristic in heuristics:
            value = heuristic(scope)
            if value:
                return value
        return None

    return read


def first_descriptive_line(scope: Tag) -> Optional[str]:
    """Title heuristic: first text line that is not price or UI chrome."""
    for line in scope.stripped_strings:
        line = clean_text(line)
        if not line or len(line) <= MIN_TITLE_LINE_LENGTH:
            continue
        if any(token in line for token in TITLE_NOISE_TOKENS):
            continue
        return line
    return None


def image_alt_title(prefix: str):
    """Title heuristic: strip a fixed prefix from the first image's alt text."""

    def read(scope: Tag) -> Optional[str]:
        for img in scope.select("img[alt]"):
            alt = clean_text(img.get("alt"))
            if alt and alt.startswith(prefix):
                return clean_text(alt[len(prefix):])
        return None

    return read


def nth_currency_token(n: int):
    """Price heuristic: the n-th currency amount in the element's text.

    Best-effort only. Listing cards usually print the selling price before
    the MRP, but nothing guarantees that order.
    """

    def read(scope: Tag) -> Optional[str]:
        tokens = find_currency_tokens(scope.get_text(" ", strip=True))
        if len(tokens) > n:
            return f"₹{tokens[n]}"
        return None

    return read


def discount_in_text(scope: Tag) -> Optional[str]:
    """Discount heuristic: "NN% off" anywhere in the element's text."""
    match = re.search(r"([0-9]+)%\s*off", scope.get_text(" ", strip=True), re.I)
    return f"{match.group(1)}%" if match else None


def _inside_page_chrome(element: Tag) -> bool:
    return element.find_parent(["header", "footer", "nav"]) is not None


def price_bearing_blocks(scope: Tag) -> List[Tag]:
    """Container heuristic: innermost blocks holding an image and a ₹ price.

    Walks up from every image to the closest ancestor whose text carries
    a rupee amount, skipping page header, footer and navigation.
    """
    blocks: List[Tag] = []
    seen = set()
    for img in scope.find_all("img"):
        if _inside_page_chrome(img):
            continue
        for ancestor in img.parents:
            if ancestor is scope or ancestor.name in ("body", "html", "[document]"):
                break
            if "₹" in ancestor.get_text():
                if id(ancestor) not in seen:
                    seen.add(id(ancestor))
                    blocks.append(ancestor)
                break

    # Drop any block that wraps another block
    block_ids = {id(b) for b in blocks}
    wrappers = set()
    for block in blocks:
        for ancestor in block.parents:
            if id(ancestor) in block_ids:
                wrappers.add(id(ancestor))
    return [b for b in blocks if id(b) not in wrappers]


def item_blocks_with_price(scope: Tag) -> List[Tag]:
    """Container heuristic: ``*[class*=item]`` elements with an image and price."""
    matches = []
    for element in scope.select("[class*='item']"):
        if element.find("img") is None:
            continue
        if element.select_one("[class*='price']") is not None or "₹" in element.get_text():
            matches.append(element)
    return matches


def item_blocks_then_price_blocks(scope: Tag) -> List[Tag]:
    return item_blocks_with_price(scope) or price_bearing_blocks(scope)


# ---------------------------------------------------------------------------
# Page-level metadata
# ---------------------------------------------------------------------------


def category_from_url(url: str) -> Optional[str]:
    """Derive a category label from the URL path."""
    path = urlparse(url).path.rstrip("/")
    match = re.search(r"/c/([^/]+)", path)
    if match:
        return f"Category {match.group(1)}"
    segment = path.rsplit("/", 1)[-1] if path else ""
    if not segment:
        return None
    return clean_text(re.sub(r"[-_]+", " ", segment).title())


def category_name(
    document: Tag,
    url: str,
    title_suffix: Optional[str] = None,
    site_title: Optional[str] = None,
    breadcrumbs: Optional[List[Breadcrumb]] = None,
) -> str:
    """Pick the category label for a listing page.

    Order: page title minus the site suffix, first h1, last breadcrumb,
    the URL path, then a fixed placeholder.
    """
    title = resolve(document, PAGE_TITLE)
    if title:
        stripped = (
            clean_text(re.sub(title_suffix, "", title, flags=re.IGNORECASE))
            if title_suffix
            else title
        )
        if stripped and (not site_title or stripped.lower() != site_title.lower()):
            return stripped

    heading = resolve(document, PAGE_HEADING)
    if heading:
        return heading

    if breadcrumbs:
        return breadcrumbs[-1].name

    return category_from_url(url) or DEFAULT_CATEGORY_NAME


def extract_breadcrumbs(document: Tag, base_url: str) -> List[Breadcrumb]:
    """Breadcrumb trail from the first known breadcrumb container."""
    containers = select_elements(document, BREADCRUMB_CONTAINERS)
    if not containers:
        return []

    crumbs: List[Breadcrumb] = []
    for item in containers[0].select("a, span"):
        name = clean_text(item.get_text(" ", strip=True))
        if not name or name in (">", "/", "|", "»"):
            continue
        href = item.get("href") if item.name == "a" else None
        if crumbs and crumbs[-1].name == name:
            # <a><span>Home</span></a> yields the same label twice
            if crumbs[-1].url is None and href:
                crumbs[-1] = Breadcrumb(name=name, url=normalize_url(href, base_url))
            continue
        crumbs.append(Breadcrumb(name=name, url=normalize_url(href, base_url)))
    return crumbs


def _page_number(text: Optional[str]) -> Optional[int]:
    if not text:
        return None
    match = re.search(r"[0-9]+", text)
    return int(match.group(0)) if match else None


def _link_href(scope: Tag, base_url: str) -> Optional[str]:
    href = resolve(scope, LINK)
    return normalize_url(href, base_url)


def extract_pagination(document: Tag, base_url: str) -> Pagination:
    """Pagination state; defaults to a single page when nothing is found."""
    containers = select_elements(document, PAGINATION_CONTAINERS)
    if not containers:
        return Pagination()

    container = containers[0]
    current = _page_number(resolve(container, PAGINATION_CURRENT)) or 1

    page_numbers = [
        n
        for n in (_page_number(clean_text(a.get_text())) for a in container.select("a, span, li"))
        if n is not None
    ]
    total = max(page_numbers + [current])

    next_elements = select_elements(container, PAGINATION_NEXT)
    previous_elements = select_elements(container, PAGINATION_PREVIOUS)
    next_url = _link_href(next_elements[0], base_url) if next_elements else None
    previous_url = (
        _link_href(previous_elements[0], base_url) if previous_elements else None
    )

    return Pagination(
        current_page=current,
        total_pages=total,
        has_next_page=bool(next_elements) or current < total,
        has_previous_page=bool(previous_elements) or current > 1,
        next_url=next_url,
        previous_url=previous_url,
    )


def extract_filters(document: Tag) -> Dict[str, List[str]]:
    """Facet filters as ``{title: [options]}``."""
    filters: Dict[str, List[str]] = {}
    for block in select_elements(document, FILTER_BLOCKS):
        title = resolve(block, FILTER_TITLE)
        if not title:
            continue
        options = [o for o in resolve_all(block, FILTER_OPTIONS) if o != title]
        if not options:
            continue
        known = filters.setdefault(title, [])
        for option in options:
            if option not in known:
                known.append(option)
    return filters
