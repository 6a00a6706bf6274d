"""Common Pydantic schemas handed to the routing layer."""

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Structured error for a failed scrape call."""

    kind: str
    message: str


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    status: str = "error"
    error: ErrorDetail
