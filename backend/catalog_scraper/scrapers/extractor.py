"""Turns retrieved markup into normalized product records.

Two sources feed the same assembly step: data embedded in the page (when
the adapter declares a parser for it and it yields products) or the DOM,
read field by field through the adapter's selector strategies. Field
failures and product failures are logged and absorbed; only page-level
outcomes (how many products survived) are left for the caller to judge.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TypeVar

import structlog
from bs4 import BeautifulSoup, Tag

from catalog_scraper.core.exceptions import PartialFieldExtraction, ProductExtractionSkipped
from catalog_scraper.scrapers import strategies
from catalog_scraper.scrapers.base import (
    Breadcrumb,
    EmbeddedCatalog,
    Pagination,
    ProductRecord,
    RawPage,
    SiteAdapter,
)
from catalog_scraper.scrapers.utils.normalizer import (
    clean_text,
    derive_discount,
    guess_brand,
    normalize_url,
    parse_currency,
    parse_percentage,
    parse_rating,
    parse_review_count,
)
from catalog_scraper.scrapers.utils.selectors import resolve, resolve_all, select_elements

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class ExtractionOutcome:
    """Products and page metadata from one extraction pass."""

    products: List[ProductRecord]
    category_name: str
    breadcrumbs: List[Breadcrumb] = field(default_factory=list)
    pagination: Pagination = field(default_factory=Pagination)
    filters: Dict[str, List[str]] = field(default_factory=dict)
    source: str = "dom"
    elements_seen: int = 0
    skipped: List[ProductExtractionSkipped] = field(default_factory=list)
    partial_fields: int = 0
    dropped_incomplete: int = 0
    duplicates: int = 0


class CatalogExtractor:
    """Extracts a category listing under a SiteAdapter."""

    def extract(self, raw_page: RawPage, adapter: SiteAdapter) -> ExtractionOutcome:
        """Extract products and page metadata from ``raw_page``.

        Args:
            raw_page: Markup from the fetch orchestrator
            adapter: Site adapter with selector tables and rules

        Returns:
            ExtractionOutcome; ``products`` may be empty
        """
        log = logger.bind(adapter=adapter.slug, url=raw_page.final_url)
        soup = BeautifulSoup(raw_page.html, "html.parser")

        breadcrumbs = self._page_level(
            log, "breadcrumbs", lambda: strategies.extract_breadcrumbs(soup, adapter.base_url), []
        )
        pagination = self._page_level(
            log, "pagination", lambda: strategies.extract_pagination(soup, adapter.base_url), Pagination()
        )
        filters = self._page_level(log, "filters", lambda: strategies.extract_filters(soup), {})
        category_name = self._page_level(
            log,
            "category_name",
            lambda: strategies.category_name(
                soup,
                raw_page.final_url,
                title_suffix=adapter.title_suffix,
                site_title=adapter.site_title,
                breadcrumbs=breadcrumbs,
            ),
            strategies.DEFAULT_CATEGORY_NAME,
        )

        outcome = ExtractionOutcome(
            products=[],
            category_name=category_name,
            breadcrumbs=breadcrumbs,
            pagination=pagination,
            filters=filters,
        )

        embedded = self._read_embedded(raw_page, adapter, log)
        if embedded is not None and embedded.products:
            outcome.source = "embedded"
            if embedded.breadcrumbs:
                outcome.breadcrumbs = list(embedded.breadcrumbs)
            if embedded.pagination is not None:
                outcome.pagination = embedded.pagination
            if embedded.filters:
                outcome.filters = dict(embedded.filters)
            if embedded.category_name:
                outcome.category_name = embedded.category_name
            raw_products = list(embedded.products)
            outcome.elements_seen = len(raw_products)
        else:
            elements = select_elements(soup, adapter.product_containers)
            outcome.elements_seen = len(elements)
            log.debug("product_elements_found", count=len(elements))
            raw_products = self._read_elements(elements, adapter, outcome, log)

        seen_keys = set()
        for index, raw in enumerate(raw_products):
            try:
                record = self._assemble(raw, adapter, outcome.category_name, log)
            except Exception as e:
                outcome.skipped.append(ProductExtractionSkipped(index, e))
                log.warning("product_extraction_skipped", index=index, error=str(e))
                continue
            if record is None:
                outcome.dropped_incomplete += 1
                continue
            key = record.dedupe_key()
            if key in seen_keys:
                outcome.duplicates += 1
                continue
            seen_keys.add(key)
            outcome.products.append(record)

        log.info(
            "extraction_completed",
            source=outcome.source,
            elements=outcome.elements_seen,
            products=len(outcome.products),
            skipped=len(outcome.skipped),
            partial_fields=outcome.partial_fields,
            dropped_incomplete=outcome.dropped_incomplete,
            duplicates=outcome.duplicates,
        )
        return outcome

    def _page_level(self, log, name: str, read: Callable[[], T], default: T) -> T:
        """Page metadata is optional; a failure falls back to ``default``."""
        try:
            return read()
        except Exception as e:
            log.warning("page_metadata_failed", field=name, error=str(e))
            return default

    def _read_embedded(
        self, raw_page: RawPage, adapter: SiteAdapter, log
    ) -> Optional[EmbeddedCatalog]:
        if adapter.embedded_parser is None:
            return None
        try:
            embedded = adapter.embedded_parser(raw_page.html, adapter)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            log.warning("embedded_data_parse_failed", error=str(e))
            return None
        if embedded is None:
            log.debug("embedded_data_missing")
        return embedded

    def _read_elements(
        self,
        elements: List[Tag],
        adapter: SiteAdapter,
        outcome: ExtractionOutcome,
        log,
    ) -> List[Dict[str, Any]]:
        raw_products = []
        for index, element in enumerate(elements):
            try:
                raw_products.append(self._read_fields(element, adapter, outcome, log))
            except Exception as e:
                skipped = ProductExtractionSkipped(index, e)
                outcome.skipped.append(skipped)
                log.warning("product_extraction_skipped", index=index, error=str(e))
        return raw_products

    def _read_fields(
        self,
        element: Tag,
        adapter: SiteAdapter,
        outcome: ExtractionOutcome,
        log,
    ) -> Dict[str, Any]:
        raw: Dict[str, Any] = {}
        for name, strategy in adapter.fields.items():
            try:
                raw[name] = (
                    resolve_all(element, strategy) if strategy.multiple else resolve(element, strategy)
                )
            except Exception as e:
                partial = PartialFieldExtraction(name, e)
                outcome.partial_fields += 1
                log.debug("partial_field_extraction", field=name, error=partial.message)
                raw[name] = None
        return raw

    def _assemble(
        self,
        raw: Dict[str, Any],
        adapter: SiteAdapter,
        category_name: str,
        log,
    ) -> Optional[ProductRecord]:
        """Normalize raw field values into a ProductRecord.

        Returns None when a required field is missing.
        """
        name = clean_text(raw.get("product_name"))
        if name and adapter.name_cleaner is not None:
            name = adapter.name_cleaner(name)

        product_url = normalize_url(raw.get("product_url"), adapter.base_url)
        selling_price = parse_currency(
            raw.get("selling_price"), require_symbol=adapter.price_requires_symbol
        )
        actual_price = parse_currency(
            raw.get("actual_price"), require_symbol=adapter.price_requires_symbol
        )
        discount_amount, discount_percent = derive_discount(
            selling_price, actual_price, parse_percentage(raw.get("discount_percent"))
        )

        brand = clean_text(raw.get("brand")) or adapter.default_brand
        if not brand and adapter.guess_brand_from_name:
            brand = guess_brand(name)

        values = {
            "product_name": name,
            "product_id": clean_text(_as_text(raw.get("product_id")))
            or adapter.product_id_from_url(product_url),
            "brand": brand,
            "selling_price": selling_price,
            "actual_price": actual_price,
            "discount_percent": discount_percent,
            "discount_amount": discount_amount,
            "product_image": normalize_url(raw.get("product_image"), adapter.base_url),
            "product_url": product_url,
            "rating": parse_rating(raw.get("rating")),
            "review_count": parse_review_count(raw.get("review_count")) or 0,
            "availability": clean_text(raw.get("availability")),
            "category": clean_text(raw.get("category")) or category_name,
            "sub_category": clean_text(raw.get("sub_category")),
            "offers": _clean_list(raw.get("offers")),
            "description": clean_text(raw.get("description")),
            "metadata": raw.get("metadata") or {},
        }

        missing = [f for f in adapter.required_fields if values.get(f) in (None, "", ())]
        if missing:
            log.debug("product_missing_required_fields", missing=missing, name=name)
            return None

        return ProductRecord(**values)


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _clean_list(value: Any) -> tuple:
    if not value:
        return ()
    if isinstance(value, str):
        value = [value]
    cleaned = []
    for item in value:
        text = clean_text(_as_text(item))
        if text and text not in cleaned:
            cleaned.append(text)
    return tuple(cleaned)
