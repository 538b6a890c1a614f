"""
Stock search and company profile lookup for the search dialog and detail page.

Search never raises: any upstream problem degrades to an empty result.
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import CurrentUser
from app.data.finnhub_client import FinnhubClient
from app.schemas.market import CompanyProfile, StockWithWatchlistStatus
from app.services.watchlist import get_watchlist_symbols

logger = logging.getLogger(__name__)

POPULAR_STOCK_SYMBOLS = [
    "AAPL", "MSFT", "GOOGL", "AMZN", "TSLA", "META", "NVDA", "NFLX",
    "ORCL", "CRM", "ADBE", "INTC", "AMD", "PYPL", "UBER", "SHOP",
]
_POPULAR_LIMIT = 10
_SEARCH_LIMIT = 15


async def get_company_profile(
    symbol: str,
    client: Optional[FinnhubClient] = None,
) -> Optional[CompanyProfile]:
    client = client or FinnhubClient()
    return await asyncio.to_thread(client.get_company_profile, symbol.strip().upper())


async def _popular_stocks(client: FinnhubClient) -> list[StockWithWatchlistStatus]:
    symbols = POPULAR_STOCK_SYMBOLS[:_POPULAR_LIMIT]
    profiles = await asyncio.gather(
        *(asyncio.to_thread(client.get_company_profile, s) for s in symbols),
        return_exceptions=True,
    )

    stocks = []
    for symbol, profile in zip(symbols, profiles):
        if isinstance(profile, BaseException):
            logger.warning(f"Search: profile lookup failed for {symbol}: {profile}")
            continue
        if profile is None:
            continue
        stocks.append(
            StockWithWatchlistStatus(
                symbol=symbol,
                name=profile.name,
                exchange=profile.exchange or "US",
                type="Common Stock",
            )
        )
    return stocks


async def _lookup(client: FinnhubClient, query: str) -> list[StockWithWatchlistStatus]:
    results = await asyncio.to_thread(client.symbol_search, query)
    stocks = []
    for r in results:
        symbol = (r.get("symbol") or "").strip().upper()
        if not symbol:
            continue
        stocks.append(
            StockWithWatchlistStatus(
                symbol=symbol,
                name=r.get("description") or symbol,
                exchange="US",  # symbol lookup doesn't return the listing venue
                type=r.get("type") or "Stock",
            )
        )
        if len(stocks) >= _SEARCH_LIMIT:
            break
    return stocks


async def search_stocks(
    db: AsyncSession,
    user: Optional[CurrentUser],
    query: Optional[str] = None,
    client: Optional[FinnhubClient] = None,
) -> list[StockWithWatchlistStatus]:
    """
    Blank query: the popular-stocks set. Otherwise a Finnhub symbol lookup.
    Each result carries the caller's current watchlist membership.
    """
    term = (query or "").strip()
    try:
        client = client or FinnhubClient()
        stocks = await _lookup(client, term) if term else await _popular_stocks(client)
    except Exception as e:
        logger.error(f"Search: failed for query {term!r}: {e}")
        return []

    tracked = await get_watchlist_symbols(db, user)
    for stock in stocks:
        stock.is_in_watchlist = stock.symbol in tracked
    return stocks
