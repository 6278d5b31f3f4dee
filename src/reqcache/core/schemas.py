"""
Pydantic models for API boundaries.
Why: contract-first design; the error body has a fixed shape.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field

KEY_PATTERN = r"^[A-Za-z0-9_.:\-]+$"


class ValidationErrorDetail(BaseModel):
    field: str
    message: str


class ValidationErrorBody(BaseModel):
    error: str = "Validation error"
    details: List[ValidationErrorDetail]


class CacheKeyParams(BaseModel):
    key: str = Field(..., min_length=1, max_length=200, pattern=KEY_PATTERN)


class CacheWrite(BaseModel):
    value: Any
    ttl: Optional[int] = Field(default=None, ge=1, le=86400)


class StatsQuery(BaseModel):
    prefix: Optional[str] = Field(default=None, max_length=200)
    limit: int = Field(default=100, ge=1, le=1000)


class CacheEntryStats(BaseModel):
    key: str
    expires_in_ms: int


class CacheStats(BaseModel):
    size: int
    entries: List[CacheEntryStats]


class CacheItem(BaseModel):
    key: str
    value: Any
    ttl: Optional[int] = None
