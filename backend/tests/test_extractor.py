"""Tests for catalog extraction across the site adapters."""

from decimal import Decimal

from catalog_scraper.scrapers.adapters import AJIO, CROMA, LICIOUS, THE_BODY_SHOP, VIJAY_SALES
from catalog_scraper.scrapers.adapters.croma import extract_initial_data
from catalog_scraper.scrapers.base import RawPage, RenderMode, SiteAdapter
from catalog_scraper.scrapers.extractor import CatalogExtractor
from catalog_scraper.scrapers.strategies import DEFAULT_CATEGORY_NAME
from catalog_scraper.scrapers.utils.selectors import strategy


def page(html: str, url: str) -> RawPage:
    return RawPage(html=html, final_url=url, fetched_with=RenderMode.RENDER)


# ============================================================================
# FIXTURES: CROMA
# ============================================================================

CROMA_URL = "https://www.croma.com/air-conditioners/c/46"

CROMA_ISLAND = """
<html><head><title>Air Conditioners | Croma.com</title></head><body>
<script>
window.__INITIAL_DATA__ = {
  "plpReducer": {
    "plpData": {
      "products": [
        {
          "code": "300123",
          "name": "LG 1.5 Ton 5 Star {Dual Inverter} Split AC",
          "manufacturer": "LG",
          "price": {"formattedValue": "₹35,990.00", "value": 35990},
          "mrp": {"value": 59990},
          "plpImage": "https://media.croma.com/image/upload/300123.png",
          "averageRating": 4.3,
          "finalReviewRatingCount": 87,
          "stockStatus": undefined,
          "productMessage": "Bank offer: {undefined} ends soon",
          "categoryL0": "Air Conditioners",
          "applianceType": "AC",
          "demoFlag": true,
          "productLiveDate": "2024-03-01",
        },
        {
          "code": "300456",
          "name": "Voltas 1 Ton Window AC",
          "manufacturer": "Voltas",
          "price": {"value": 24990},
          "mrp": undefined,
        },
      ],
      "breadcrumbs": [
        {"name": "Home", "url": "/"},
        {"name": "Air Conditioners", "url": "/air-conditioners/c/46"},
      ],
      "pagination": {"currentPage": 0, "numberOfPages": 3},
      "filters": [{"name": "Brand", "values": [{"name": "LG"}, {"name": "Voltas"}]}],
    }
  }
};
</script>
<li class="product-item"><h3>Ignored DOM card</h3><span class="amount">₹1</span></li>
</body></html>
"""

CROMA_BROKEN_ISLAND = """
<html><head><title>Televisions | Croma.com</title></head><body>
<script>window.__INITIAL_DATA__ = {"plpReducer": {"plpData": {"products": [</script>
<ul>
  <li class="product-item">
    <a href="/sony-bravia-55/p/271234"><img src="//media.croma.com/271234.png"></a>
    <h3>Sony Bravia 55 inch 4K TV</h3>
    <span class="amount">₹57,990</span>
    <span class="old-price">₹99,900</span>
  </li>
</ul>
</body></html>
"""


class TestCromaExtraction:
    """Tests for the Croma embedded-data path."""

    def test_initial_data_tolerates_js_literals(self):
        """Test undefined, trailing commas and braces inside strings."""
        data = extract_initial_data(CROMA_ISLAND)
        products = data["plpReducer"]["plpData"]["products"]
        assert products[0]["stockStatus"] is None
        assert products[0]["name"] == "LG 1.5 Ton 5 Star {Dual Inverter} Split AC"
        assert products[0]["productMessage"] == "Bank offer: {undefined} ends soon"
        assert products[1]["mrp"] is None

    def test_missing_island(self):
        """Test pages without the data island return None."""
        assert extract_initial_data("<html></html>") is None

    def test_embedded_products(self):
        """Test products, metadata and page data come from the island."""
        outcome = CatalogExtractor().extract(page(CROMA_ISLAND, CROMA_URL), CROMA)

        assert outcome.source == "embedded"
        assert len(outcome.products) == 2
        assert outcome.category_name == "Air Conditioners"
        assert [b.name for b in outcome.breadcrumbs] == ["Home", "Air Conditioners"]
        assert outcome.breadcrumbs[1].url == "https://www.croma.com/air-conditioners/c/46"
        assert outcome.pagination.current_page == 1
        assert outcome.pagination.total_pages == 3
        assert outcome.pagination.has_next_page
        assert outcome.filters == {"Brand": ["LG", "Voltas"]}

        lg = outcome.products[0]
        assert lg.product_id == "300123"
        assert lg.product_url == "https://www.croma.com/p/300123"
        assert lg.brand == "LG"
        assert lg.selling_price == Decimal("35990.00")
        assert lg.actual_price == Decimal("59990")
        assert lg.discount_amount == Decimal("24000.00")
        assert lg.discount_percent == Decimal("40")
        assert lg.rating == 4.3
        assert lg.review_count == 87
        assert lg.availability == "Available"
        assert lg.offers == ("Bank offer: {undefined} ends soon",)
        assert lg.metadata == {
            "applianceType": "AC",
            "demoFlag": True,
            "productLiveDate": "2024-03-01",
        }

        data = lg.to_dict()
        assert data["sellingPrice"] == "₹35,990"
        assert data["discountAmount"] == "₹24,000"
        assert data["discountPercent"] == "40%"

        voltas = outcome.products[1]
        assert voltas.selling_price == Decimal("24990")
        assert voltas.actual_price is None
        assert voltas.discount_amount is None
        assert voltas.discount_percent is None

    def test_non_string_image_keeps_product(self):
        """Test an image given as a list does not drop the product."""
        html = (
            "<script>window.__INITIAL_DATA__ = {\"plpReducer\": {\"plpData\": {\"products\": ["
            "{\"code\": \"1\", \"name\": \"TV One\", \"price\": {\"value\": 100},"
            " \"plpImage\": [\"//a.jpg\"]},"
            "{\"code\": \"2\", \"name\": \"TV Two\", \"price\": {\"value\": 200},"
            " \"plpImage\": {\"url\": \"//b.jpg\"}}"
            "]}}};</script>"
        )
        outcome = CatalogExtractor().extract(page(html, CROMA_URL), CROMA)

        assert outcome.source == "embedded"
        assert [p.product_name for p in outcome.products] == ["TV One", "TV Two"]
        assert outcome.products[0].product_image is None
        assert outcome.skipped == []

    def test_broken_island_falls_back_to_dom(self):
        """Test a malformed island does not stop DOM extraction."""
        url = "https://www.croma.com/televisions/c/997"
        outcome = CatalogExtractor().extract(page(CROMA_BROKEN_ISLAND, url), CROMA)

        assert outcome.source == "dom"
        assert outcome.category_name == "Televisions"
        [tv] = outcome.products
        assert tv.product_name == "Sony Bravia 55 inch 4K TV"
        assert tv.selling_price == Decimal("57990")
        assert tv.actual_price == Decimal("99900")
        assert tv.product_image == "https://media.croma.com/271234.png"
        assert tv.product_id == "271234"


# ============================================================================
# TESTS: HEURISTIC-HEAVY SITES
# ============================================================================

AJIO_URL = "https://www.ajio.com/men-tshirts/c/830216001"

AJIO_HTML = """
<html><head><title>Men T-Shirts | Buy Men T-Shirts Online | AJIO</title></head><body>
<header><img src="/logo.png"><span>Flat ₹200 off on first order</span></header>
<section class="grid">
  <div class="card-x">
    <a href="/netplay-crew-tee/p/469581234_blue?utm_source=ig"><img src="https://assets.ajio.com/a.jpg" alt="Product image of Netplay Cotton Crew Neck T-Shirt"></a>
    <div><span>₹499</span> <s>₹999</s> <span>50% off</span></div>
  </div>
  <div class="card-x">
    <a href="/dnmx-polo/p/469581235_white"><img src="https://assets.ajio.com/b.jpg" alt="Product image of DNMX Slim Fit Polo"></a>
    <div><span>₹699</span></div>
  </div>
</section>
</body></html>
"""


class TestAjioExtraction:
    """Tests for Ajio heuristics."""

    def test_price_bearing_blocks_and_alt_titles(self):
        """Test cards are found without known classes and titles read from alt text."""
        outcome = CatalogExtractor().extract(page(AJIO_HTML, AJIO_URL), AJIO)

        assert outcome.category_name == "Men T-Shirts"
        assert [p.product_name for p in outcome.products] == [
            "Netplay Cotton Crew Neck T-Shirt",
            "DNMX Slim Fit Polo",
        ]

        tee, polo = outcome.products
        assert tee.selling_price == Decimal("499")
        assert tee.actual_price == Decimal("999")
        assert tee.discount_amount == Decimal("500")
        assert tee.discount_percent == Decimal("50")
        assert tee.product_url == "https://www.ajio.com/netplay-crew-tee/p/469581234_blue"
        assert tee.product_id == "469581234_blue"

        assert polo.selling_price == Decimal("699")
        assert polo.actual_price is None
        assert polo.discount_percent is None

    def test_cards_without_price_are_dropped(self):
        """Test Ajio requires a selling price."""
        html = (
            "<html><body><div class='item'><img src='/x.jpg'>"
            "<h3>Coming Soon Graphic Tee</h3>₹</div></body></html>"
        )
        outcome = CatalogExtractor().extract(page(html, AJIO_URL), AJIO)
        assert outcome.products == []
        assert outcome.dropped_incomplete == 1


class TestLiciousExtraction:
    """Tests for Licious bare-number prices."""

    def test_bare_prices(self):
        """Test prices without a currency symbol are accepted."""
        html = """
        <html><head><title>Chicken | Licious</title></head><body>
        <div class="product-card">
          <a href="/chicken/chicken-curry-cut-pr_5785"><img src="/img/curry.jpg"></a>
          <h3 class="product-name">Chicken Curry Cut - Small Pieces</h3>
          <div class="weight">500 g | Serves 4</div>
          <div class="price"><span class="discounted-price">₹ 299</span><span class="original-price">349</span></div>
        </div>
        </body></html>
        """
        outcome = CatalogExtractor().extract(
            page(html, "https://www.licious.in/chicken"), LICIOUS
        )

        assert outcome.category_name == "Chicken"
        [curry] = outcome.products
        assert curry.selling_price == Decimal("299")
        assert curry.actual_price == Decimal("349")
        assert curry.discount_amount == Decimal("50")
        assert curry.discount_percent == Decimal("14")
        assert curry.description == "500 g | Serves 4"
        assert curry.product_url == "https://www.licious.in/chicken/chicken-curry-cut-pr_5785"


class TestBodyShopExtraction:
    """Tests for The Body Shop adapter."""

    def test_default_brand_and_description(self):
        """Test every product carries the house brand."""
        html = """
        <html><head><title>Skin Care | The Body Shop</title></head><body>
        <div class="product-item" data-product-id="TBS-01">
          <a href="/products/tea-tree-oil?utm_source=mail"><img src="/img/tt.jpg" alt="product image"></a>
          <h3 class="product-name">Tea Tree Oil</h3>
          <span class="price">₹ 895</span>
          <p class="description">Purifying facial oil</p>
        </div>
        <div class="product-item">
          <h3 class="product-name">Vitamin E Moisture Cream</h3>
        </div>
        </body></html>
        """
        outcome = CatalogExtractor().extract(
            page(html, "https://www.thebodyshop.in/c/skin-care"), THE_BODY_SHOP
        )

        assert outcome.category_name == "Skin Care"
        oil, cream = outcome.products
        assert oil.brand == "The Body Shop"
        assert oil.product_id == "TBS-01"
        assert oil.selling_price == Decimal("895")
        assert oil.description == "Purifying facial oil"
        assert oil.product_url == "https://www.thebodyshop.in/products/tea-tree-oil"
        assert oil.product_image == "https://www.thebodyshop.in/img/tt.jpg"

        assert cream.brand == "The Body Shop"
        assert cream.selling_price is None


class TestVijaySalesExtraction:
    """Tests for Vijay Sales name cleanup."""

    def test_repeated_title_and_brand_guess(self):
        """Test doubled titles are deduplicated and the brand guessed."""
        html = """
        <div class="product-card">
          <h3 class="product-card__title">Samsung Galaxy M14 Samsung Galaxy M14</h3>
          <span>₹12,499</span><span>₹17,999</span>
        </div>
        """
        outcome = CatalogExtractor().extract(
            page(html, "https://www.vijaysales.com/c/mobiles"), VIJAY_SALES
        )

        [phone] = outcome.products
        assert phone.product_name == "Samsung Galaxy M14"
        assert phone.brand == "Samsung"
        assert phone.selling_price == Decimal("12499")
        assert phone.actual_price == Decimal("17999")
        assert outcome.category_name == "Category mobiles"


# ============================================================================
# TESTS: ERROR ABSORPTION
# ============================================================================

def listing_adapter(**overrides) -> SiteAdapter:
    values = dict(
        slug="testshop",
        name="Test Shop",
        base_url="https://shop.example",
        domains=("shop.example",),
        product_containers=strategy(".card"),
        fields={
            "product_id": strategy(".sku"),
            "product_name": strategy(".name"),
            "selling_price": strategy(".price"),
        },
    )
    values.update(overrides)
    return SiteAdapter(**values)


def cards(*names: str) -> str:
    return "".join(
        f'<div class="card"><span class="sku">{i % 2}</span>'
        f'<span class="name">{name}</span><span class="price">₹100</span></div>'
        for i, name in enumerate(names)
    )


class TestErrorAbsorption:
    """Tests for field- and product-level failure handling."""

    def test_failing_field_is_partial(self):
        """Test a raising field leaves the product with that field empty."""

        def broken(scope):
            raise RuntimeError("selector engine hiccup")

        adapter = listing_adapter(
            product_containers=strategy(".card"),
            fields={
                "product_name": strategy(".name"),
                "rating": strategy(".missing", fallback=broken),
            },
        )
        outcome = CatalogExtractor().extract(
            page(cards("Alpha Widget"), "https://shop.example/c/1"), adapter
        )

        [product] = outcome.products
        assert product.rating is None
        assert outcome.partial_fields == 1

    def test_failing_product_is_skipped(self):
        """Test one bad product does not abort the listing."""

        def cleaner(name):
            if name.startswith("Bad"):
                raise ValueError("unreadable name")
            return name

        adapter = listing_adapter(
            fields={"product_name": strategy(".name")}, name_cleaner=cleaner
        )
        outcome = CatalogExtractor().extract(
            page(cards("Good One", "Bad One", "Good Two"), "https://shop.example/c/1"),
            adapter,
        )

        assert [p.product_name for p in outcome.products] == ["Good One", "Good Two"]
        assert len(outcome.skipped) == 1
        assert outcome.skipped[0].index == 1
        assert outcome.skipped[0].kind == "product_extraction_skipped"

    def test_unexpected_error_is_skipped(self):
        """Test errors outside the parsing family also skip only that product."""

        def cleaner(name):
            if name.startswith("Bad"):
                raise RuntimeError("boom")
            return name

        adapter = listing_adapter(
            fields={"product_name": strategy(".name")}, name_cleaner=cleaner
        )
        outcome = CatalogExtractor().extract(
            page(cards("Good One", "Bad One", "Good Two"), "https://shop.example/c/1"),
            adapter,
        )

        assert [p.product_name for p in outcome.products] == ["Good One", "Good Two"]
        [skipped] = outcome.skipped
        assert skipped.index == 1
        assert "boom" in skipped.message

    def test_duplicates_dropped(self):
        """Test repeated product ids keep the first card."""
        adapter = listing_adapter()
        outcome = CatalogExtractor().extract(
            page(cards("First", "Second", "Third"), "https://shop.example/c/1"), adapter
        )

        assert [p.product_name for p in outcome.products] == ["First", "Second"]
        assert outcome.duplicates == 1

    def test_empty_page_defaults(self):
        """Test an empty document yields no products and default metadata."""
        outcome = CatalogExtractor().extract(page("", "https://shop.example/"), listing_adapter())

        assert outcome.products == []
        assert outcome.category_name == DEFAULT_CATEGORY_NAME
        assert outcome.pagination.total_pages == 1
        assert outcome.breadcrumbs == []
