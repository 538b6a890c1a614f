"""
Market data schemas — normalized news articles, quotes, company profiles, search hits.
Built from Finnhub payloads; shared by the API layer and the digest pipeline.
"""

from typing import Optional

from pydantic import BaseModel


class NewsArticle(BaseModel):
    id: int
    headline: str
    summary: str = ""
    source: str = "Unknown"
    url: str
    datetime: int  # Unix timestamp (seconds) from Finnhub
    category: str = "general"
    related: str = ""
    image: Optional[str] = None


class Quote(BaseModel):
    symbol: str
    current: float
    change: Optional[float] = None
    change_pct: Optional[float] = None
    prev_close: Optional[float] = None


class CompanyProfile(BaseModel):
    symbol: str
    name: str
    exchange: Optional[str] = None
    industry: Optional[str] = None
    country: Optional[str] = None
    currency: Optional[str] = None
    market_cap: Optional[float] = None
    logo: Optional[str] = None
    web_url: Optional[str] = None
    ipo: Optional[str] = None


class StockWithWatchlistStatus(BaseModel):
    symbol: str
    name: str
    exchange: str = "US"
    type: str = "Stock"
    is_in_watchlist: bool = False
