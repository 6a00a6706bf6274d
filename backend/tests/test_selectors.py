"""Tests for cascading selector resolution."""

from bs4 import BeautifulSoup

from catalog_scraper.scrapers.utils.selectors import (
    SCOPE,
    Query,
    SelectorStrategy,
    resolve,
    resolve_all,
    select_elements,
    strategy,
)


def card(html: str):
    return BeautifulSoup(html, "html.parser").select_one(".card")


class TestResolve:
    """Tests for single-valued resolution."""

    def test_first_matching_candidate_wins(self):
        """Test candidates are tried in declared order."""
        element = card(
            '<div class="card"><span class="c">third</span>'
            '<span class="b">second</span></div>'
        )
        assert resolve(element, strategy(".a", ".b", ".c")) == "second"

    def test_blank_match_falls_through(self):
        """Test a matching but empty candidate does not stop the cascade."""
        element = card('<div class="card"><span class="a">  </span><span class="b">B</span></div>')
        assert resolve(element, strategy(".a", ".b")) == "B"

    def test_attribute_order(self):
        """Test attributes are read in order, first non-blank wins."""
        element = card('<div class="card"><img src="" data-src="/lazy.jpg"></div>')
        assert resolve(element, strategy("img", attrs=("src", "data-src"))) == "/lazy.jpg"

    def test_pattern_group_extraction(self):
        """Test a regex narrows the value, using group 1 when present."""
        element = card('<div class="card"><span class="p">Offer price ₹1,299 only</span></div>')
        assert resolve(element, strategy(".p", pattern=r"₹\s*[0-9,]+")) == "₹1,299"
        star = Query(".p", (), r"price\s+(₹[0-9,]+)")
        assert resolve(element, SelectorStrategy(candidates=(star,))) == "₹1,299"

    def test_pattern_miss_falls_through(self):
        """Test a candidate whose text misses the pattern is skipped."""
        element = card(
            '<div class="card"><span class="a">Sold out</span>'
            '<span class="b">₹499</span></div>'
        )
        assert resolve(element, strategy(".a", ".b", pattern=r"₹[0-9,]+")) == "₹499"

    def test_scope_element_itself(self):
        """Test SCOPE reads attributes of the scope element."""
        element = card('<div class="card" data-product-id="SKU-9"><a href="/x">x</a></div>')
        assert resolve(element, strategy(Query(SCOPE, ("data-product-id",)))) == "SKU-9"

    def test_fallback_only_when_nothing_matched(self):
        """Test the heuristic fallback runs last."""
        calls = []

        def fallback(scope):
            calls.append(scope)
            return "guessed"

        element = card('<div class="card"><h3>Real Title</h3></div>')
        assert resolve(element, strategy("h3", fallback=fallback)) == "Real Title"
        assert calls == []
        assert resolve(element, strategy(".missing", fallback=fallback)) == "guessed"
        assert len(calls) == 1

    def test_no_match_is_none(self):
        """Test an unmatched strategy without fallback yields None."""
        element = card('<div class="card"></div>')
        assert resolve(element, strategy(".missing")) is None


class TestStrategyComposition:
    """Tests for strategy copies."""

    def test_extended_appends_candidates(self):
        """Test extended() keeps order and defaults."""
        base = strategy(".a", attrs=("title",))
        extended = base.extended(".b")
        assert [q.css for q in extended.candidates] == [".a", ".b"]
        assert extended.candidates[1].attrs == ("title",)
        assert [q.css for q in base.candidates] == [".a"]

    def test_with_fallback(self):
        """Test with_fallback() replaces only the fallback."""
        base = strategy(".a", multiple=True)
        copy = base.with_fallback(lambda scope: ["x"])
        assert copy.multiple is True
        assert base.fallback is None
        assert copy.fallback is not None


class TestResolveAll:
    """Tests for list-valued resolution and element selection."""

    def test_first_candidate_with_values(self):
        """Test all matches of the first productive candidate, de-duplicated."""
        element = card(
            '<div class="card"><span class="offer">Bank offer</span>'
            '<span class="offer">Bank offer</span><span class="offer">EMI</span>'
            '<span class="tag">New</span></div>'
        )
        offers = strategy(".promo", ".offer", ".tag", multiple=True)
        assert resolve_all(element, offers) == ["Bank offer", "EMI"]

    def test_empty_when_nothing_matches(self):
        """Test an empty list rather than None."""
        element = card('<div class="card"></div>')
        assert resolve_all(element, strategy(".offer", multiple=True)) == []

    def test_select_elements_order_and_fallback(self):
        """Test container selection prefers earlier candidates."""
        soup = BeautifulSoup(
            '<ul><li class="tile">1</li><li class="tile">2</li>'
            '<li class="product">3</li></ul>',
            "html.parser",
        )
        assert len(select_elements(soup, strategy(".missing", ".tile", ".product"))) == 2

        found = select_elements(
            soup, strategy(".missing", fallback=lambda scope: scope.select("li"))
        )
        assert len(found) == 3
