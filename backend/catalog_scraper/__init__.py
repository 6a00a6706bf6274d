"""Catalog scraper: normalized product listings from Indian e-commerce category pages."""

__version__ = "1.0.0"
