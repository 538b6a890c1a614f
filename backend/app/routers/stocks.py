"""
Stocks API — search dialog and stock detail page.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import CurrentUser, get_current_user
from app.database import get_db
from app.schemas.market import StockWithWatchlistStatus
from app.services.search import get_company_profile, search_stocks
from app.services.watchlist import is_in_watchlist

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/search", response_model=list[StockWithWatchlistStatus])
async def search(
    q: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_current_user),
):
    """Popular stocks for a blank query, otherwise a symbol/name search."""
    return await search_stocks(db, user, q)


@router.get("/{symbol}")
async def stock_details(
    symbol: str,
    db: AsyncSession = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_current_user),
):
    upper = symbol.strip().upper()
    try:
        profile = await get_company_profile(upper)
    except Exception as e:
        logger.error(f"Stock details: profile lookup failed for {upper}: {e}")
        profile = None
    if profile is None:
        raise HTTPException(status_code=404, detail=f"{upper} not found.")

    return {
        "symbol": upper,
        "profile": profile.model_dump(),
        "is_in_watchlist": await is_in_watchlist(db, user, upper),
    }
