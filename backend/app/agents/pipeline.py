"""
Daily news digest orchestrator.

Flow:
  1. Load every user with an email address
  2. For each user, strictly one after another:
       a. Watchlist symbols by email (none → general market news)
       b. Fetch news, capped at 6 articles
       c. Summarize via the LLM (no articles → nothing to send)
       d. Send the digest email
  3. Return a run summary with one UserDigestResult per user

A failure anywhere in one user's steps is logged and recorded on that user's
result; the run moves on to the next user. Only an empty roster fails the run.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.agents.summarizer import summarize_news
from app.config import get_settings
from app.data.news import MAX_ARTICLES, get_news
from app.database import Database
from app.models.user import User
from app.notifications.mailer import Mailer, get_mailer
from app.schemas.api import DigestRunResult, UserDigestResult
from app.schemas.market import NewsArticle
from app.services.watchlist import get_watchlist_symbols_by_email

logger = logging.getLogger(__name__)

NewsFetcher = Callable[[Optional[Sequence[str]]], Awaitable[list[NewsArticle]]]
Summarizer = Callable[..., Awaitable[str]]


def format_digest_date(now: datetime) -> str:
    """Long-form date for the subject line, e.g. 'Monday, October 19, 2026'."""
    return f"{now:%A, %B} {now.day}, {now.year}"


async def get_all_users_for_news_email(db: AsyncSession) -> list[User]:
    """Every user with an email address. Empty on database errors."""
    try:
        result = await db.execute(
            select(User).where(User.email.is_not(None), User.email != "").order_by(User.created_at)
        )
        return list(result.scalars().all())
    except SQLAlchemyError as e:
        logger.error(f"Digest: failed to load users: {e}")
        return []


async def _process_user(
    db: AsyncSession,
    user: User,
    fetch_news: NewsFetcher,
    summarize: Summarizer,
    mailer: Mailer,
    date_str: str,
) -> UserDigestResult:
    outcome = UserDigestResult(user_id=user.id, email=user.email)
    step = "derive-symbols"

    try:
        symbols = await get_watchlist_symbols_by_email(db, user.email)
        outcome.symbols = list(symbols)
        outcome.news_source = "company" if symbols else "general"

        step = "fetch-news"
        articles = (await fetch_news(symbols or None))[:MAX_ARTICLES]
        outcome.article_count = len(articles)

        step = "summarize"
        news_content: Optional[str] = None
        if articles:
            news_content = await summarize(articles, label=f"news-summary-{user.id}")

        step = "send-email"
        if news_content is None:
            logger.info(f"Digest: skipping email for user {user.id} - no news content")
            return outcome

        outcome.sent = await mailer.send_news_email(
            email=user.email,
            name=user.name,
            date=date_str,
            news_content=news_content,
        )

    except Exception as e:
        logger.error(f"Digest: user {user.id} failed at {step}: {e}", exc_info=True)
        outcome.sent = False
        outcome.error = f"{step}: {e}"

    return outcome


async def run_daily_news_digest(
    db: AsyncSession,
    fetch_news: NewsFetcher = get_news,
    summarize: Summarizer = summarize_news,
    mailer: Optional[Mailer] = None,
    now: Optional[datetime] = None,
) -> DigestRunResult:
    """
    Execute one digest run over the whole roster.

    This is the entry point shared by the daily cron job and the
    "send now" endpoint.
    """
    users = await get_all_users_for_news_email(db)
    if not users:
        logger.warning("Digest: no users found for news email.")
        return DigestRunResult(success=False, message="No users found for news email")

    mailer = mailer or get_mailer()
    if now is None:
        now = datetime.now(ZoneInfo(get_settings().timezone))
    date_str = format_digest_date(now)

    logger.info(f"Digest: starting run for {len(users)} user(s).")
    results: list[UserDigestResult] = []
    for user in users:
        results.append(
            await _process_user(db, user, fetch_news, summarize, mailer, date_str)
        )

    emails_sent = sum(1 for r in results if r.sent)
    failures = sum(1 for r in results if r.error)
    logger.info(
        f"Digest: run complete, {emails_sent}/{len(users)} email(s) sent, "
        f"{failures} user(s) failed."
    )
    return DigestRunResult(
        success=True,
        message=f"Processed news for {len(users)} users",
        users_processed=len(users),
        emails_sent=emails_sent,
        results=results,
    )


async def run_daily_news_digest_background(database: Database) -> Optional[DigestRunResult]:
    """
    Entry point for background task execution.
    Creates its own DB session (not tied to a request lifecycle).
    """
    async with database.session() as session:
        try:
            return await run_daily_news_digest(session)
        except Exception as e:
            logger.error(f"Background digest run failed: {e}", exc_info=True)
            return None
