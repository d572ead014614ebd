"""Pydantic schemas for API requests and responses.

Bodies are camelCase on the wire; fields are snake_case in Python.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime

# Oldest expiry age a cleanup request may name (about a century)
MAX_CLEANUP_AGE_DAYS = 36500


class CamelModel(BaseModel):
    """Base model serialising field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShortenRequest(CamelModel):
    """Request to shorten a URL."""

    url: str = Field(..., description="The URL to shorten", min_length=1)
    expires_in_days: Optional[int] = Field(
        None, description="Requested lifetime in days (default lifetime if omitted or out of range)"
    )
    custom_code: Optional[str] = Field(None, description="Optional custom short code")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "url": "https://example.com/very/long/path?x=1",
                    "expiresInDays": 7,
                },
                {
                    "url": "https://github.com/user/repo",
                    "customCode": "myrepo1",
                },
            ]
        },
    )


class ShortenResponse(CamelModel):
    """Response after shortening a URL."""

    short_code: str = Field(..., description="The generated short code")
    short_url: str = Field(..., description="The complete short URL")
    original_url: str = Field(..., description="The original long URL")
    created_at: datetime = Field(..., description="Creation timestamp")
    expires_at: datetime = Field(..., description="Expiry timestamp")


class URLInfoResponse(CamelModel):
    """Response with URL information."""

    short_code: str
    original_url: str
    domain: str
    created_at: datetime
    expires_at: datetime
    click_count: int
    is_active: bool


class StatsResponse(CamelModel):
    """Service-wide statistics."""

    total_urls: int
    total_clicks: int
    active_urls: int
    expired_urls: int
    recent_urls: List[URLInfoResponse]


class CleanupRequest(CamelModel):
    """Request to purge expired mappings."""

    older_than_days: Optional[int] = Field(
        None,
        ge=0,
        le=MAX_CLEANUP_AGE_DAYS,
        description="Only purge mappings expired for at least this many days",
    )
    include_expired: bool = Field(False, description="Actually delete expired mappings")


class CleanupResponse(CamelModel):
    """Cleanup result."""

    deleted_count: int
    message: str


class HealthResponse(CamelModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    database: str = Field(..., description="Database status")
    cache: str = Field(..., description="Cache status")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response."""

    error: str = Field(..., description="Error kind")
    message: str = Field(..., description="Human readable message")
    timestamp: datetime = Field(..., description="Time of the error")
