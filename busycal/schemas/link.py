"""Schemas for private link creation."""

from pydantic import Field

from busycal.schemas.common import BaseSchema


class CreateLinkRequest(BaseSchema):
    """Body of ``POST /create``."""

    url: str | None = None


class CreateLinkResponse(BaseSchema):
    """Shareable link wrapping the encrypted source URL."""

    private_url: str = Field(alias="privateUrl")
