"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.

Design Principles:
- Request models: Define input shape (URL/shortcode rules are checked by
  the registry so that every caller gets the same error taxonomy)
- Response models: Define output structure
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from shortlink.core.setting import settings


class ShortenRequest(BaseModel):
    """Request model for URL shortening endpoint."""
    url: str = Field(..., description="The long URL to shorten (http or https)")
    validity: Optional[int] = Field(None, description="Validity in minutes (default 30)")
    shortcode: Optional[str] = Field(None, description="Custom shortcode (3-20 alphanumeric)")


class ShortenResponse(BaseModel):
    """Response model for URL shortening endpoint."""
    short_code: str = Field(..., description="The assigned short code")
    short_url: str = Field(..., description="The complete short URL")
    original_url: str = Field(..., description="The original long URL")
    created_at: datetime
    expires_at: datetime


class BatchShortenRequest(BaseModel):
    """Request model for shortening several URLs at once."""
    urls: list[ShortenRequest] = Field(
        ...,
        min_length=1,
        max_length=settings.MAX_BATCH_SIZE,
        description="URLs to shorten, processed in order"
    )


class BatchItemResult(BaseModel):
    """Outcome for one URL of a batch."""
    success: bool
    data: Optional[ShortenResponse] = None
    error: Optional[str] = None


class BatchShortenResponse(BaseModel):
    results: list[BatchItemResult]


class ClickItem(BaseModel):
    timestamp: datetime
    source: str
    location: str


class StatsResponse(BaseModel):
    """Response model for statistics endpoint."""
    original_url: str
    short_code: str
    short_url: str
    created_at: datetime
    expires_at: datetime
    validity_minutes: int
    is_expired: bool
    click_count: int
    clicks: list[ClickItem]


class StatsListResponse(BaseModel):
    """Response model for the statistics listing."""
    total_urls: int
    active_urls: int
    total_clicks: int
    urls: list[StatsResponse]
