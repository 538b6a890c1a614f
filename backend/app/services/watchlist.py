"""
Watchlist store accessor — per-user add / remove / membership / listing.

Every operation takes the caller's identity explicitly. An anonymous caller
(user=None) gets False, an empty list, or a failure result, never an
exception, so neither the API layer nor the digest job needs to branch on
session presence.

Uniqueness of (user_id, symbol) is enforced by the database constraint only.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import CurrentUser
from app.data.finnhub_client import FinnhubClient
from app.models.user import User
from app.models.watchlist import WatchlistEntry
from app.schemas.market import Quote
from app.schemas.watchlist import EnrichedWatchlistEntry, WatchlistActionResult

logger = logging.getLogger(__name__)

ERR_NOT_AUTHENTICATED = "Not authenticated"
ERR_INVALID_SYMBOL = "Invalid symbol"
ERR_DUPLICATE = "Stock already in watchlist"
ERR_ADD_FAILED = "Failed to add stock to watchlist"
ERR_REMOVE_FAILED = "Failed to remove stock from watchlist"

_UNIQUE_VIOLATION = "23505"  # PostgreSQL SQLSTATE


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code is not None:
        return code == _UNIQUE_VIOLATION
    return "unique" in str(orig).lower()


# ── Formatting ──────────────────────────────────────────────────────────────

def format_price(price: float) -> str:
    return f"${price:.2f}"


def format_change_percent(change_pct: float) -> str:
    sign = "+" if change_pct >= 0 else ""
    return f"{sign}{change_pct:.2f}%"


# ── Membership ──────────────────────────────────────────────────────────────

async def is_in_watchlist(
    db: AsyncSession,
    user: Optional[CurrentUser],
    symbol: str,
) -> bool:
    if user is None or not symbol:
        return False
    try:
        result = await db.execute(
            select(WatchlistEntry.id)
            .where(
                WatchlistEntry.user_id == user.id,
                WatchlistEntry.symbol == symbol.strip().upper(),
            )
            .limit(1)
        )
        return result.scalars().first() is not None
    except SQLAlchemyError as e:
        logger.error(f"Watchlist: membership check failed for {symbol}: {e}")
        return False


async def get_watchlist_symbols(
    db: AsyncSession,
    user: Optional[CurrentUser],
) -> set[str]:
    """All symbols the user tracks, for annotating search results."""
    if user is None:
        return set()
    try:
        result = await db.execute(
            select(WatchlistEntry.symbol).where(WatchlistEntry.user_id == user.id)
        )
        return set(result.scalars().all())
    except SQLAlchemyError as e:
        logger.error(f"Watchlist: symbol lookup failed for user {user.id}: {e}")
        return set()


# ── Mutations ───────────────────────────────────────────────────────────────

async def add_stock_to_watchlist(
    db: AsyncSession,
    user: Optional[CurrentUser],
    symbol: str,
    company: str,
) -> WatchlistActionResult:
    """Insert (user, SYMBOL). A second add for the same pair fails with ERR_DUPLICATE."""
    if user is None:
        return WatchlistActionResult(success=False, error=ERR_NOT_AUTHENTICATED)

    symbol = (symbol or "").strip().upper()
    if not symbol:
        return WatchlistActionResult(success=False, error=ERR_INVALID_SYMBOL)
    company = (company or "").strip() or symbol

    db.add(
        WatchlistEntry(
            user_id=user.id,
            symbol=symbol,
            company=company,
            added_at=datetime.now(timezone.utc),
        )
    )
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        if _is_unique_violation(e):
            logger.info(f"Watchlist: {symbol} already tracked by user {user.id}")
            return WatchlistActionResult(success=False, error=ERR_DUPLICATE)
        logger.error(f"Watchlist: integrity error adding {symbol}: {e}")
        return WatchlistActionResult(success=False, error=ERR_ADD_FAILED)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Watchlist: failed to add {symbol} for user {user.id}: {e}")
        return WatchlistActionResult(success=False, error=ERR_ADD_FAILED)

    logger.info(f"Watchlist: added {symbol} for user {user.id}")
    return WatchlistActionResult(success=True)


async def remove_stock_from_watchlist(
    db: AsyncSession,
    user: Optional[CurrentUser],
    symbol: str,
) -> WatchlistActionResult:
    """Delete (user, SYMBOL). Succeeds whether or not a row existed."""
    if user is None:
        return WatchlistActionResult(success=False, error=ERR_NOT_AUTHENTICATED)

    symbol = (symbol or "").strip().upper()
    try:
        await db.execute(
            delete(WatchlistEntry).where(
                WatchlistEntry.user_id == user.id,
                WatchlistEntry.symbol == symbol,
            )
        )
        await db.flush()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Watchlist: failed to remove {symbol} for user {user.id}: {e}")
        return WatchlistActionResult(success=False, error=ERR_REMOVE_FAILED)

    logger.info(f"Watchlist: removed {symbol} for user {user.id}")
    return WatchlistActionResult(success=True)


# ── Listing ─────────────────────────────────────────────────────────────────

async def _fetch_quote(client: Optional[FinnhubClient], symbol: str) -> Optional[Quote]:
    if client is None:
        return None
    try:
        return await asyncio.to_thread(client.get_quote, symbol)
    except Exception as e:
        logger.warning(f"Watchlist: quote lookup failed for {symbol}: {e}")
        return None


def _enrich(entry: WatchlistEntry, quote: Optional[Quote]) -> EnrichedWatchlistEntry:
    enriched = EnrichedWatchlistEntry(
        user_id=entry.user_id,
        symbol=entry.symbol,
        company=entry.company,
        added_at=entry.added_at,
    )
    if quote is None:
        return enriched

    enriched.current_price = quote.current
    enriched.price_formatted = format_price(quote.current)
    if quote.change_pct is not None:
        enriched.change_percent = quote.change_pct
        enriched.change_formatted = format_change_percent(quote.change_pct)
    return enriched


async def get_user_watchlist(
    db: AsyncSession,
    user: Optional[CurrentUser],
    client: Optional[FinnhubClient] = None,
) -> list[EnrichedWatchlistEntry]:
    """
    The caller's entries, newest first, each with live price fields attached.

    Quotes are fetched concurrently. An entry whose quote fails still appears,
    just without price fields.
    """
    if user is None:
        return []

    try:
        result = await db.execute(
            select(WatchlistEntry)
            .where(WatchlistEntry.user_id == user.id)
            .order_by(WatchlistEntry.added_at.desc())
        )
        entries = list(result.scalars().all())
    except SQLAlchemyError as e:
        logger.error(f"Watchlist: failed to load entries for user {user.id}: {e}")
        return []

    if not entries:
        return []

    if client is None:
        try:
            client = FinnhubClient()
        except Exception as e:
            logger.warning(f"Watchlist: quotes unavailable, listing without prices: {e}")

    quotes = await asyncio.gather(*(_fetch_quote(client, e.symbol) for e in entries))
    return [_enrich(entry, quote) for entry, quote in zip(entries, quotes)]


async def get_watchlist_symbols_by_email(db: AsyncSession, email: str) -> list[str]:
    """Symbols tracked by the user with this email. Empty on unknown email or any failure."""
    try:
        user_result = await db.execute(select(User.id).where(User.email == email).limit(1))
        user_id = user_result.scalars().first()
        if not user_id:
            return []

        result = await db.execute(
            select(WatchlistEntry.symbol)
            .where(WatchlistEntry.user_id == user_id)
            .order_by(WatchlistEntry.added_at)
        )
        return list(result.scalars().all())
    except Exception as e:
        logger.error(f"Watchlist: error getting symbols for {email}: {e}")
        # Leave the shared digest session usable for the next user.
        await db.rollback()
        return []
