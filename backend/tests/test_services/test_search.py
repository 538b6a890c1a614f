"""
Unit tests for app.services.search
"""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.schemas.market import CompanyProfile
from app.services.search import POPULAR_STOCK_SYMBOLS, search_stocks


def _profile(symbol: str) -> CompanyProfile:
    return CompanyProfile(symbol=symbol, name=f"{symbol} Corp", exchange="NASDAQ NMS - GLOBAL MARKET")


@pytest.mark.asyncio
async def test_blank_query_returns_popular_stocks_with_membership(db, user):
    def _lookup(symbol):
        if symbol == "GOOGL":
            raise RuntimeError("timeout")
        if symbol == "AMZN":
            return None
        return _profile(symbol)

    client = MagicMock()
    client.get_company_profile.side_effect = _lookup

    with patch("app.services.search.get_watchlist_symbols", new=AsyncMock(return_value={"MSFT"})):
        stocks = await search_stocks(db, user, "   ", client=client)

    symbols = [s.symbol for s in stocks]
    assert "GOOGL" not in symbols and "AMZN" not in symbols
    assert symbols == [s for s in POPULAR_STOCK_SYMBOLS[:10] if s not in ("GOOGL", "AMZN")]
    assert {s.symbol for s in stocks if s.is_in_watchlist} == {"MSFT"}
    client.symbol_search.assert_not_called()


@pytest.mark.asyncio
async def test_query_uses_symbol_lookup_and_caps_results(db, user):
    client = MagicMock()
    client.symbol_search.return_value = [
        {"symbol": f"AA{i}", "description": f"Result {i}", "type": "Common Stock"} for i in range(20)
    ] + [{"symbol": "", "description": "blank"}]

    with patch("app.services.search.get_watchlist_symbols", new=AsyncMock(return_value={"AA1"})):
        stocks = await search_stocks(db, user, "aa", client=client)

    client.symbol_search.assert_called_once_with("aa")
    assert len(stocks) == 15
    assert stocks[1].is_in_watchlist is True
    assert stocks[0].name == "Result 0"


@pytest.mark.asyncio
async def test_search_failure_degrades_to_empty(db, user):
    client = MagicMock()
    client.symbol_search.side_effect = RuntimeError("finnhub down")

    assert await search_stocks(db, user, "apple", client=client) == []


@pytest.mark.asyncio
async def test_anonymous_search_marks_nothing_tracked(db):
    client = MagicMock()
    client.symbol_search.return_value = [{"symbol": "AAPL", "description": "Apple Inc"}]

    stocks = await search_stocks(db, None, "apple", client=client)

    assert [s.is_in_watchlist for s in stocks] == [False]
    db.execute.assert_not_awaited()
