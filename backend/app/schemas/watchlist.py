"""
Watchlist schemas for API request/response objects.
Mirrors the ORM model but shaped for the API layer.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class AddStockRequest(BaseModel):
    symbol: str = Field(min_length=1, max_length=20)
    company: str = Field(min_length=1, max_length=255)


class WatchlistActionResult(BaseModel):
    success: bool
    error: Optional[str] = None


class EnrichedWatchlistEntry(BaseModel):
    user_id: str
    symbol: str
    company: str
    added_at: Optional[datetime] = None
    # Quote-derived, never persisted. Absent when the quote lookup fails.
    current_price: Optional[float] = None
    change_percent: Optional[float] = None
    price_formatted: Optional[str] = None
    change_formatted: Optional[str] = None

    model_config = {"from_attributes": True}
