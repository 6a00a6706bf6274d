"""Scraper utilities for selector resolution, normalization and user agents."""

from .user_agents import (
    get_random_user_agent,
    USER_AGENTS,
)
from .normalizer import (
    parse_currency,
    parse_percentage,
    derive_discount,
    normalize_url,
    format_price,
)
from .selectors import SCOPE, Query, SelectorStrategy, resolve, resolve_all, select_elements


__all__ = [
    # User agents
    "get_random_user_agent",
    "USER_AGENTS",
    # Normalization
    "parse_currency",
    "parse_percentage",
    "derive_discount",
    "normalize_url",
    "format_price",
    # Selector resolution
    "SCOPE",
    "Query",
    "SelectorStrategy",
    "resolve",
    "resolve_all",
    "select_elements",
]
