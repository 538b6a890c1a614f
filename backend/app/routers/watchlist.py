"""
Watchlist API — the signed-in user's tracked symbols.

Add/remove failures come back in the response body (success=false, error=...)
so the UI can show them as toasts.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import CurrentUser, get_current_user
from app.database import get_db
from app.schemas.watchlist import (
    AddStockRequest,
    EnrichedWatchlistEntry,
    WatchlistActionResult,
)
from app.services.watchlist import (
    add_stock_to_watchlist,
    get_user_watchlist,
    is_in_watchlist,
    remove_stock_from_watchlist,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[EnrichedWatchlistEntry])
async def get_watchlist(
    db: AsyncSession = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_current_user),
):
    """The caller's watchlist with live price and change fields."""
    return await get_user_watchlist(db, user)


@router.get("/{symbol}")
async def get_membership(
    symbol: str,
    db: AsyncSession = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_current_user),
):
    return {
        "symbol": symbol.strip().upper(),
        "is_in_watchlist": await is_in_watchlist(db, user, symbol),
    }


@router.post("/", response_model=WatchlistActionResult)
async def add_stock(
    body: AddStockRequest,
    db: AsyncSession = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_current_user),
):
    return await add_stock_to_watchlist(db, user, body.symbol, body.company)


@router.delete("/{symbol}", response_model=WatchlistActionResult)
async def remove_stock(
    symbol: str,
    db: AsyncSession = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_current_user),
):
    return await remove_stock_from_watchlist(db, user, symbol)
