"""
Finnhub client — news feeds, quotes, company profiles, symbol search.

News goes through raw HTTP (aiohttp) so the caller controls the exact query
window and the response cache. Quotes, profiles and search use the
finnhub-python SDK; those calls block, so async callers wrap them in
asyncio.to_thread.
"""

import asyncio
import logging
from typing import Any, Optional

import aiohttp
import finnhub

from app.config import get_settings
from app.data.cache import ResponseCache, response_cache
from app.errors import ConfigurationError, NewsFetchError
from app.schemas.market import CompanyProfile, Quote

logger = logging.getLogger(__name__)

_HTTP_TIMEOUT = aiohttp.ClientTimeout(total=10)


class FinnhubClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        cache: Optional[ResponseCache] = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.finnhub_api_key
        if not self._api_key:
            raise ConfigurationError("FINNHUB_API_KEY is not defined")
        self._base_url = (base_url or settings.finnhub_base_url).rstrip("/")
        self._cache = cache if cache is not None else response_cache
        self._client = finnhub.Client(api_key=self._api_key)

    # ── Raw HTTP ───────────────────────────────────────────────────────────

    async def fetch_json(
        self,
        path: str,
        params: Optional[dict] = None,
        revalidate_seconds: Optional[int] = None,
    ) -> Any:
        """
        GET a Finnhub endpoint and decode the JSON body.

        With revalidate_seconds set, a decoded payload younger than that many
        seconds is returned from the cache. Without it the request always hits
        the network and the result is not stored.
        """
        url = f"{self._base_url}/{path.lstrip('/')}"
        query = dict(params or {})
        cache_key = self._cache.key_for(url, query) if revalidate_seconds else None

        if cache_key:
            cached = self._cache.get(cache_key)
            if cached is not None:
                return cached

        query["token"] = self._api_key
        try:
            async with aiohttp.ClientSession(timeout=_HTTP_TIMEOUT) as session:
                async with session.get(url, params=query) as resp:
                    if resp.status >= 400:
                        raise NewsFetchError(f"Failed to fetch: {resp.status} {resp.reason}")
                    data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NewsFetchError(f"Request to {path} failed: {e!r}") from e
        except ValueError as e:
            raise NewsFetchError(f"Malformed JSON from {path}: {e}") from e

        if cache_key:
            self._cache.set(cache_key, data, revalidate_seconds)
        return data

    # ── News ───────────────────────────────────────────────────────────────

    async def get_general_news(self, revalidate_seconds: Optional[int] = None) -> Any:
        return await self.fetch_json(
            "news", {"category": "general"}, revalidate_seconds=revalidate_seconds
        )

    async def get_company_news(
        self,
        symbol: str,
        from_ts: int,
        to_ts: int,
        revalidate_seconds: Optional[int] = None,
    ) -> Any:
        return await self.fetch_json(
            "company-news",
            {"symbol": symbol, "from": from_ts, "to": to_ts},
            revalidate_seconds=revalidate_seconds,
        )

    # ── SDK calls (blocking) ───────────────────────────────────────────────

    def _safe_call(self, fn, *args, **kwargs):
        """Wrap Finnhub SDK calls with basic error handling."""
        try:
            return fn(*args, **kwargs)
        except Exception as e:
            logger.error(f"Finnhub call failed ({getattr(fn, '__name__', fn)}): {e}")
            return None

    def get_quote(self, symbol: str) -> Optional[Quote]:
        data = self._safe_call(self._client.quote, symbol)
        if not data or not data.get("c"):
            return None
        return Quote(
            symbol=symbol,
            current=data["c"],
            change=data.get("d"),
            change_pct=data.get("dp"),
            prev_close=data.get("pc"),
        )

    def get_company_profile(self, symbol: str) -> Optional[CompanyProfile]:
        data = self._safe_call(self._client.company_profile2, symbol=symbol)
        if not data or not data.get("name"):
            return None
        return CompanyProfile(
            symbol=data.get("ticker") or symbol,
            name=data["name"],
            exchange=data.get("exchange"),
            industry=data.get("finnhubIndustry"),
            country=data.get("country"),
            currency=data.get("currency"),
            market_cap=data.get("marketCapitalization"),
            logo=data.get("logo") or None,
            web_url=data.get("weburl") or None,
            ipo=data.get("ipo") or None,
        )

    def symbol_search(self, query: str) -> list[dict]:
        """Raw symbol lookup results; empty list on any failure."""
        data = self._safe_call(self._client.symbol_lookup, query)
        if not data:
            return []
        return list(data.get("result") or [])
