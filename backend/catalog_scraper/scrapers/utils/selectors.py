"""Cascading CSS selector resolution.

A field is described by a SelectorStrategy: an ordered list of candidate
queries plus an optional heuristic fallback. Candidates are tried in the
declared order and the first one that produces non-blank content wins.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Pattern, Sequence, Tuple, Union

from bs4 import Tag

from catalog_scraper.scrapers.utils.normalizer import clean_text

# Addresses the scope element itself instead of a descendant
SCOPE = ":scope-element"


@dataclass(frozen=True)
class Query:
    """One candidate: a CSS selector plus how to read the matched element.

    Attributes:
        css: CSS selector evaluated inside the scope, or SCOPE
        attrs: Attributes to read, first non-blank wins; text when empty
        pattern: Optional regex applied to the value (group 1 if present)
    """

    css: str
    attrs: Tuple[str, ...] = ()
    pattern: Optional[str] = None


@dataclass(frozen=True)
class SelectorStrategy:
    """Ordered candidate queries for one logical field.

    ``attrs`` and ``pattern`` act as defaults for candidates given as
    plain selector strings.
    """

    candidates: Tuple[Query, ...]
    attrs: Tuple[str, ...] = ()
    pattern: Optional[str] = None
    fallback: Optional[Callable[[Tag], Any]] = field(default=None, compare=False)
    multiple: bool = False

    def __post_init__(self):
        coerced = tuple(
            c if isinstance(c, Query) else Query(c, self.attrs, self.pattern)
            for c in self.candidates
        )
        object.__setattr__(self, "candidates", coerced)
        object.__setattr__(self, "attrs", tuple(self.attrs))

    def with_fallback(self, fallback: Callable[[Tag], Any]) -> "SelectorStrategy":
        """Copy of this strategy with a different heuristic fallback."""
        return SelectorStrategy(
            candidates=self.candidates,
            attrs=self.attrs,
            pattern=self.pattern,
            fallback=fallback,
            multiple=self.multiple,
        )

    def extended(self, *extra: Union[str, Query]) -> "SelectorStrategy":
        """Copy of this strategy with extra candidates appended."""
        extra_queries = tuple(
            q if isinstance(q, Query) else Query(q, self.attrs, self.pattern)
            for q in extra
        )
        return SelectorStrategy(
            candidates=self.candidates + extra_queries,
            attrs=self.attrs,
            pattern=self.pattern,
            fallback=self.fallback,
            multiple=self.multiple,
        )


def strategy(
    *candidates: Union[str, Query],
    attrs: Sequence[str] = (),
    pattern: Optional[str] = None,
    fallback: Optional[Callable[[Tag], Any]] = None,
    multiple: bool = False,
) -> SelectorStrategy:
    """Shorthand constructor used by the strategy tables."""
    return SelectorStrategy(
        candidates=tuple(candidates),
        attrs=tuple(attrs),
        pattern=pattern,
        fallback=fallback,
        multiple=multiple,
    )


_PATTERN_CACHE = {}


def _compile(pattern: str) -> Pattern:
    compiled = _PATTERN_CACHE.get(pattern)
    if compiled is None:
        compiled = re.compile(pattern, re.IGNORECASE)
        _PATTERN_CACHE[pattern] = compiled
    return compiled


def _query(scope: Tag, query: Query) -> List[Tag]:
    if query.css == SCOPE:
        return [scope]
    return scope.select(query.css)


def _read(element: Tag, query: Query) -> Optional[str]:
    """Read one element according to the query; None when blank."""
    value = None
    if query.attrs:
        for attr in query.attrs:
            raw = element.get(attr)
            if isinstance(raw, list):
                raw = " ".join(raw)
            value = clean_text(raw)
            if value:
                break
    else:
        value = clean_text(element.get_text(" ", strip=True))

    if not value:
        return None

    if query.pattern:
        match = _compile(query.pattern).search(value)
        if not match:
            return None
        value = clean_text(match.group(1) if match.groups() else match.group(0))

    return value or None


def resolve(scope: Tag, strategy: SelectorStrategy) -> Optional[str]:
    """Resolve a single-valued field within ``scope``.

    Args:
        scope: Product element (or whole document for page-level fields)
        strategy: Candidate queries in priority order

    Returns:
        First non-blank value, the fallback's value, or None
    """
    for query in strategy.candidates:
        elements = _query(scope, query)
        if not elements:
            continue
        value = _read(elements[0], query)
        if value:
            return value

    if strategy.fallback is not None:
        return strategy.fallback(scope)
    return None


def resolve_all(scope: Tag, strategy: SelectorStrategy) -> List[str]:
    """Resolve a list-valued field (e.g. offers) within ``scope``.

    The first candidate that yields at least one non-blank value wins and
    all of its matches are returned, de-duplicated in document order.
    """
    for query in strategy.candidates:
        values: List[str] = []
        for element in _query(scope, query):
            value = _read(element, query)
            if value and value not in values:
                values.append(value)
        if values:
            return values

    if strategy.fallback is not None:
        return list(strategy.fallback(scope) or [])
    return []


def select_elements(scope: Tag, strategy: SelectorStrategy) -> List[Tag]:
    """Return the elements of the first candidate that matches anything."""
    for query in strategy.candidates:
        elements = _query(scope, query)
        if elements:
            return elements

    if strategy.fallback is not None:
        return list(strategy.fallback(scope) or [])
    return []
