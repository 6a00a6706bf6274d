"""Pydantic schemas handed to the routing layer."""

from catalog_scraper.schemas.common import ErrorDetail, ErrorResponse

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
]
