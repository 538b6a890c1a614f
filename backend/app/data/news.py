"""
Deduplicated news fetcher.

Two modes:
  - General market: one page of Finnhub general news, first 6 valid,
    non-duplicate articles in upstream order.
  - Per symbol: round-robin over the symbols, one company-news page per round,
    at most one accepted article per round. Stops when 6 articles are accepted
    or 6 rounds have run, whichever comes first. Result is newest first.

An article is a duplicate if its id, its URL or its case-folded headline was
already accepted in the same call.
"""

import logging
import time
from collections.abc import Sequence
from typing import Any, Optional

from app.config import get_settings
from app.data.finnhub_client import FinnhubClient
from app.errors import NewsFetchError
from app.schemas.market import NewsArticle

logger = logging.getLogger(__name__)

MAX_ARTICLES = 6
MAX_ROUNDS = 6
COMPANY_NEWS_LOOKBACK_DAYS = 5

_REQUIRED_FIELDS = ("id", "headline", "url", "datetime", "summary")
_TEXT_FIELDS = ("headline", "url", "summary")


def is_valid_article(raw: Any) -> bool:
    """True only if every required field is present and non-empty."""
    if not isinstance(raw, dict):
        return False
    if not all(raw.get(field) for field in _REQUIRED_FIELDS):
        return False
    if not all(isinstance(raw[field], str) for field in _TEXT_FIELDS):
        return False
    return isinstance(raw["id"], int) and isinstance(raw["datetime"], (int, float))


def format_article(
    raw: dict,
    is_company_news: bool = False,
    symbol: Optional[str] = None,
) -> NewsArticle:
    return NewsArticle(
        id=raw["id"],
        headline=raw["headline"],
        summary=raw.get("summary") or "",
        source=raw.get("source") or "Unknown",
        url=raw["url"],
        datetime=int(raw["datetime"]),
        category=raw.get("category") or ("company" if is_company_news else "general"),
        related=symbol or raw.get("related") or "",
        image=raw.get("image") or None,
    )


class NewsDeduplicator:
    """Seen-sets for one fetch call: ids, URLs and case-folded headlines."""

    def __init__(self) -> None:
        self.seen_ids: set[int] = set()
        self.seen_urls: set[str] = set()
        self.seen_headlines: set[str] = set()

    def accept(self, raw: dict) -> bool:
        """Record the article's keys and return True, or False if any key was seen."""
        article_id = raw["id"]
        url = raw["url"]
        headline = raw["headline"].casefold()

        if (
            article_id in self.seen_ids
            or url in self.seen_urls
            or headline in self.seen_headlines
        ):
            return False

        self.seen_ids.add(article_id)
        self.seen_urls.add(url)
        self.seen_headlines.add(headline)
        return True


def normalize_symbols(symbols: Sequence[str]) -> list[str]:
    """Trim, uppercase, drop blanks and repeats. Keeps first-seen order."""
    cleaned = (s.strip().upper() for s in symbols if s)
    return list(dict.fromkeys(s for s in cleaned if s))


def news_window(
    days: int = COMPANY_NEWS_LOOKBACK_DAYS,
    step: Optional[int] = None,
) -> tuple[int, int]:
    """
    (from, to) as whole-second Unix timestamps covering the last `days` days.

    With a step, `to` is rounded up to a multiple of it so repeated calls within
    one step produce the same bounds, and so the same cache key.
    """
    to_ts = int(time.time())
    if step and step > 1:
        to_ts = -(-to_ts // step) * step
    return to_ts - days * 24 * 60 * 60, to_ts


async def get_news(
    symbols: Optional[Sequence[str]] = None,
    client: Optional[FinnhubClient] = None,
    revalidate_seconds: Optional[int] = None,
) -> list[NewsArticle]:
    """
    Fetch and deduplicate news for the given symbols, or general market news
    when no symbols are given.

    Raises ConfigurationError when no Finnhub key is configured, and
    NewsFetchError when the general-news request itself fails. A per-symbol
    round whose request fails or whose page is malformed is logged and yields
    nothing.
    """
    if client is None:
        client = FinnhubClient()
    if revalidate_seconds is None:
        revalidate_seconds = get_settings().news_cache_seconds or None

    if symbols:
        return await _fetch_company_news(client, symbols, revalidate_seconds)
    return await _fetch_general_news(client, revalidate_seconds)


async def _fetch_general_news(
    client: FinnhubClient,
    revalidate_seconds: Optional[int],
) -> list[NewsArticle]:
    payload = await client.get_general_news(revalidate_seconds=revalidate_seconds)
    if not isinstance(payload, list):
        logger.warning(f"General news: unexpected payload type {type(payload).__name__}")
        return []

    dedup = NewsDeduplicator()
    articles: list[NewsArticle] = []
    for raw in payload:
        if not is_valid_article(raw) or not dedup.accept(raw):
            continue
        try:
            articles.append(format_article(raw))
        except ValueError as e:
            logger.warning(f"General news: dropping malformed article {raw.get('id')}: {e}")
            continue
        if len(articles) >= MAX_ARTICLES:
            break

    logger.debug(f"General news: {len(articles)} article(s) from {len(payload)} upstream.")
    return articles


def _first_new_article(
    payload: Any,
    dedup: NewsDeduplicator,
    symbol: str,
) -> Optional[NewsArticle]:
    """First valid, unseen article of one company-news page (one per round)."""
    if not isinstance(payload, list):
        return None
    for raw in payload:
        if is_valid_article(raw) and dedup.accept(raw):
            return format_article(raw, is_company_news=True, symbol=symbol)
    return None


async def _fetch_company_news(
    client: FinnhubClient,
    symbols: Sequence[str],
    revalidate_seconds: Optional[int],
) -> list[NewsArticle]:
    cleaned = normalize_symbols(symbols)
    if not cleaned:
        return []

    from_ts, to_ts = news_window(step=revalidate_seconds)
    dedup = NewsDeduplicator()
    articles: list[NewsArticle] = []
    round_no = 0

    while len(articles) < MAX_ARTICLES and round_no < MAX_ROUNDS:
        symbol = cleaned[round_no % len(cleaned)]

        try:
            payload = await client.get_company_news(
                symbol, from_ts, to_ts, revalidate_seconds=revalidate_seconds
            )
            article = _first_new_article(payload, dedup, symbol)
        except (NewsFetchError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Company news: round {round_no} for {symbol} failed: {e}")
            article = None

        if article is not None:
            articles.append(article)
        round_no += 1

    articles.sort(key=lambda a: a.datetime, reverse=True)
    logger.debug(
        f"Company news: {len(articles)} article(s) over {round_no} round(s) "
        f"for {', '.join(cleaned)}."
    )
    return articles
