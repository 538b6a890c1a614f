"""
News API — deduplicated Finnhub news, per symbol or general market.
"""

import logging

from fastapi import APIRouter, HTTPException, Query

from app.data.news import get_news
from app.errors import ConfigurationError, NewsFetchError
from app.schemas.market import NewsArticle

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[NewsArticle])
async def get_news_feed(
    symbols: str | None = Query(default=None, description="Comma-separated symbols"),
):
    """
    Up to 6 articles. With symbols: round-robin company news, newest first.
    Without: general market news in upstream order.
    """
    symbol_list = symbols.split(",") if symbols else None
    try:
        return await get_news(symbol_list)
    except ConfigurationError as e:
        logger.error(f"News feed unavailable: {e}")
        raise HTTPException(status_code=503, detail="News provider is not configured.")
    except NewsFetchError as e:
        logger.error(f"News feed fetch failed: {e}")
        raise HTTPException(status_code=502, detail="Failed to fetch news.")
