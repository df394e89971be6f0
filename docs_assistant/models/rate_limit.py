from typing import Optional

from pydantic import BaseModel, Field


class RateRecord(BaseModel):
    """Per-identity request counter for the current fixed window."""

    identity: str
    count: int = Field(..., ge=0, description="Requests admitted since window_start")
    window_start: int = Field(..., description="Epoch milliseconds when the current window began")


class RateLimitResult(BaseModel):
    allowed: bool
    remaining: int = Field(..., ge=0)
    reset_time_ms: Optional[int] = Field(None, ge=0, description="Milliseconds until the window resets (rejections only)")
