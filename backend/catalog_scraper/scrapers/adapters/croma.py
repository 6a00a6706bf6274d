"""Croma (croma.com) category listings.

Croma server-renders its listing state into ``window.__INITIAL_DATA__``,
a JavaScript object literal (not strict JSON: it may contain ``undefined``
and trailing commas). The product list, breadcrumbs, filters and
pagination are read from ``plpReducer.plpData``; DOM selectors are only a
fallback for when the data island is missing.
"""

import json
import re
from typing import Any, Dict, List, Optional

import structlog

from catalog_scraper.scrapers import strategies as s
from catalog_scraper.scrapers.base import Breadcrumb, EmbeddedCatalog, Pagination, SiteAdapter
from catalog_scraper.scrapers.utils.normalizer import normalize_url
from catalog_scraper.scrapers.utils.selectors import strategy

logger = structlog.get_logger(__name__)

BASE_URL = "https://www.croma.com"
INITIAL_DATA_RE = re.compile(r"window\.__INITIAL_DATA__\s*=\s*")


def _object_literal_at(text: str, start: int) -> Optional[str]:
    """Return the ``{...}`` literal starting at ``start`` as strict JSON.

    Braces inside string literals are ignored. Outside strings, bare
    ``undefined`` becomes ``null`` and trailing commas are dropped.
    """
    if start >= len(text) or text[start] != "{":
        return None

    out: List[str] = []
    depth = 0
    i = start
    in_string = False
    quote = ""
    length = len(text)

    while i < length:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < length:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == quote:
                in_string = False
            i += 1
            continue

        if ch in ('"', "'"):
            in_string = True
            quote = ch
            out.append(ch)
        elif ch == "{":
            depth += 1
            out.append(ch)
        elif ch == "}":
            depth -= 1
            out.append(ch)
            if depth == 0:
                return "".join(out)
        elif ch == ",":
            j = i + 1
            while j < length and text[j].isspace():
                j += 1
            if j < length and text[j] in "}]":
                i += 1
                continue
            out.append(ch)
        elif text.startswith("undefined", i) and not (
            i > 0 and (text[i - 1].isalnum() or text[i - 1] in "_$")
        ):
            out.append("null")
            i += len("undefined")
            continue
        else:
            out.append(ch)
        i += 1

    return None


def extract_initial_data(html: str) -> Optional[Dict[str, Any]]:
    """Parse ``window.__INITIAL_DATA__`` out of the page, if present.

    Raises:
        ValueError: The literal was found but is not parseable
    """
    match = INITIAL_DATA_RE.search(html or "")
    if not match:
        return None
    start = html.find("{", match.end())
    if start == -1:
        return None
    literal = _object_literal_at(html, start)
    if literal is None:
        raise ValueError("unterminated __INITIAL_DATA__ object")
    return json.loads(literal)


def _price_text(price: Any) -> Optional[str]:
    if not isinstance(price, dict):
        return None
    if price.get("formattedValue"):
        return price["formattedValue"]
    if price.get("value") is not None:
        return f"₹{price['value']}"
    return None


def _product_fields(product: Dict[str, Any]) -> Dict[str, Any]:
    """Map one plpData product onto raw record fields."""
    code = product.get("code")
    message = product.get("productMessage")
    return {
        "product_id": code,
        "product_name": product.get("name"),
        "brand": product.get("manufacturer"),
        "selling_price": _price_text(product.get("price")),
        "actual_price": _price_text(product.get("mrp")),
        "discount_percent": product.get("discountValue"),
        "product_image": product.get("plpImage"),
        "product_url": f"{BASE_URL}/p/{code}" if code else None,
        "rating": product.get("averageRating") or product.get("finalReviewRating") or None,
        "review_count": product.get("finalReviewRatingCount") or 0,
        "availability": product.get("stockStatus") or "Available",
        "category": product.get("categoryL0"),
        "sub_category": product.get("categoryL1"),
        "offers": [message] if message else [],
        "metadata": {
            "applianceType": product.get("applianceType") or "",
            "demoFlag": bool(product.get("demoFlag")),
            "productLiveDate": product.get("productLiveDate") or "",
        },
    }


def _breadcrumbs(raw: Any) -> List[Breadcrumb]:
    crumbs = []
    for item in raw or []:
        if isinstance(item, dict) and item.get("name"):
            crumbs.append(
                Breadcrumb(name=str(item["name"]), url=normalize_url(item.get("url"), BASE_URL))
            )
    return crumbs


def _filters(raw: Any) -> Dict[str, List[str]]:
    """Accept either ``{title: [options]}`` or a list of facet objects."""
    filters: Dict[str, List[str]] = {}
    if isinstance(raw, dict):
        for title, options in raw.items():
            if isinstance(options, list):
                filters[str(title)] = [_option_name(o) for o in options if _option_name(o)]
    elif isinstance(raw, list):
        for facet in raw:
            if not isinstance(facet, dict):
                continue
            title = facet.get("name") or facet.get("title") or facet.get("code")
            values = facet.get("values") or facet.get("options") or []
            names = [_option_name(v) for v in values if _option_name(v)]
            if title and names:
                filters[str(title)] = names
    return filters


def _option_name(option: Any) -> Optional[str]:
    if isinstance(option, dict):
        value = option.get("name") or option.get("title") or option.get("code")
        return str(value) if value else None
    return str(option) if option not in (None, "") else None


def _pagination(raw: Any) -> Optional[Pagination]:
    if not isinstance(raw, dict):
        return None
    current = raw.get("currentPage")
    total = raw.get("totalPages") or raw.get("numberOfPages")
    try:
        current = int(current) if current is not None else 1
        total = int(total) if total is not None else current
    except (TypeError, ValueError):
        return None
    # Hybris pagination is zero-based
    if "numberOfPages" in raw:
        current += 1
    current = max(current, 1)
    total = max(total, current)
    return Pagination(
        current_page=current,
        total_pages=total,
        has_next_page=current < total,
        has_previous_page=current > 1,
    )


def parse_plp_data(html: str, adapter: SiteAdapter) -> Optional[EmbeddedCatalog]:
    """Read the listing out of ``plpReducer.plpData``."""
    data = extract_initial_data(html)
    if not data:
        return None
    plp = (data.get("plpReducer") or {}).get("plpData") or {}
    products = plp.get("products")
    if not isinstance(products, list):
        return None

    breadcrumbs = _breadcrumbs(plp.get("breadcrumbs"))
    logger.debug("croma_plp_data_found", adapter=adapter.slug, products=len(products))
    return EmbeddedCatalog(
        products=[_product_fields(p) for p in products if isinstance(p, dict)],
        breadcrumbs=breadcrumbs,
        pagination=_pagination(plp.get("pagination")),
        filters=_filters(plp.get("filters")),
        category_name=breadcrumbs[-1].name if breadcrumbs else None,
    )


PRODUCT_CONTAINERS = strategy(
    "li.product-item",
    ".cp-product",
    ".product-item",
    "[data-testid='product-card']",
)

FIELDS = {
    "product_name": s.NAME.extended("a[title]"),
    "selling_price": strategy(
        "[data-testid='new-price']",
        ".new-price",
        ".amount",
        pattern=s.CURRENCY_TEXT_RE,
    ).extended(*s.SELLING_PRICE.candidates),
    "actual_price": strategy(
        "[data-testid='old-price']",
        ".old-price",
        pattern=s.CURRENCY_TEXT_RE,
    ).extended(*s.ACTUAL_PRICE.candidates),
    "discount_percent": s.DISCOUNT,
    "product_image": s.IMAGE,
    "product_url": s.LINK,
    "rating": s.RATING,
    "review_count": s.REVIEW_COUNT,
    "offers": s.OFFERS,
}

CROMA = SiteAdapter(
    slug="croma",
    name="Croma",
    base_url=BASE_URL,
    domains=("croma.com",),
    path_markers=("/c/",),
    product_containers=PRODUCT_CONTAINERS,
    fields=FIELDS,
    title_suffix=r"\s*\|\s*Croma\.com.*$",
    site_title="Croma",
    embedded_parser=parse_plp_data,
)
