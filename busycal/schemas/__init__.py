"""Pydantic schemas for request/response validation."""

from busycal.schemas.common import ErrorResponse, HealthResponse
from busycal.schemas.link import CreateLinkRequest, CreateLinkResponse

__all__ = [
    "CreateLinkRequest",
    "CreateLinkResponse",
    "ErrorResponse",
    "HealthResponse",
]
