"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from tinyurl.common.validators import is_valid_url, prepare_submitted_url
from tinyurl.database.models import Owner, UrlRecord


class ShortenRequest(BaseModel):
    """Request to shorten a URL."""

    url: str = Field(..., description="The URL to shorten", min_length=4, max_length=2048)

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Add a missing protocol, then require an absolute http(s) URL."""
        v = prepare_submitted_url(v)
        is_valid, error = is_valid_url(v)
        if not is_valid:
            raise ValueError(error)
        return v

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"url": "https://example.com/very/long/path/to/resource"},
                {"url": "github.com/user/repo"},
            ]
        }
    }


class ShortenResponse(BaseModel):
    """Response after shortening a URL."""

    short_url: str = Field(..., description="The complete short URL")
    short_code: str = Field(..., description="The generated short code")
    original_url: str = Field(..., description="The normalized long URL")
    created_at: datetime = Field(..., description="Creation timestamp")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "short_url": "https://short.link/aB3_x",
                    "short_code": "aB3_x",
                    "original_url": "https://example.com/very/long/path",
                    "created_at": "2024-01-01T12:00:00Z"
                }
            ]
        }
    }

    @classmethod
    def from_record(cls, record: UrlRecord) -> "ShortenResponse":
        return cls(
            short_url=record.short_url,
            short_code=record.short_code,
            original_url=record.original_url,
            created_at=record.created_at,
        )


class OwnerRequest(BaseModel):
    """Account registration forwarded by the signup flow."""

    email: str = Field(..., min_length=3, max_length=254)
    first_name: Optional[str] = Field(None, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)


class OwnerResponse(BaseModel):
    """A registered owner."""

    id: int
    email: Optional[str]
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_owner(cls, owner: Owner) -> "OwnerResponse":
        return cls(
            id=owner.id,
            email=owner.email,
            first_name=owner.first_name,
            last_name=owner.last_name,
            created_at=owner.created_at,
        )


class URLInfoResponse(BaseModel):
    """Response with URL information."""

    short_code: str
    short_url: str
    original_url: str
    created_at: datetime
    click_count: int
    last_accessed: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: UrlRecord) -> "URLInfoResponse":
        return cls(
            short_code=record.short_code,
            short_url=record.short_url,
            original_url=record.original_url,
            created_at=record.created_at,
            click_count=record.click_count,
            last_accessed=record.last_accessed,
        )


class OwnerURLsResponse(BaseModel):
    """An owner's history, in insertion order."""

    owner_id: int
    urls: List[URLInfoResponse]
    storage: str


class CollisionStatisticsResponse(BaseModel):
    """Collision diagnostics; ``collisions`` should always be 0."""

    total_urls: int
    unique_short_codes: int
    collisions: int
    collision_rate: float
    storage: str
    timestamp: datetime


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    storage: str = Field(..., description="Store currently serving requests (primary or fallback)")
    primary: str = Field(..., description="Primary store status")
    fallback: str = Field(..., description="Fallback store status")
    cache: str = Field(..., description="Cache status")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response."""

    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Machine-readable error code")
    retryable: bool = Field(False, description="Whether repeating the request may succeed")
