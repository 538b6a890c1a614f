"""
Scheduler — APScheduler cron job for the daily news digest.

The job gets the Database handle passed in at start, opens its own session
and handles errors itself. A crashed run must never crash the scheduler.

Schedule:
  Daily News Digest:  DIGEST_CRON_HOUR:DIGEST_CRON_MINUTE (default 12:00) in TIMEZONE

The same run can be triggered on demand via POST /api/digest/send.
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import get_settings
from app.database import Database

logger = logging.getLogger(__name__)

_scheduler: Optional[AsyncIOScheduler] = None


# ── Jobs ────────────────────────────────────────────────────────────────────

async def _daily_news_digest(database: Database) -> None:
    """Full digest run over every user."""
    logger.info("Scheduler: Daily News Digest starting.")
    try:
        from app.agents.pipeline import run_daily_news_digest_background
        result = await run_daily_news_digest_background(database)
        if result is not None:
            logger.info(f"Scheduler: Daily News Digest finished: {result.message}")
    except Exception as e:
        logger.error(f"Scheduler: Daily News Digest failed: {e}", exc_info=True)


# ── Lifecycle ───────────────────────────────────────────────────────────────

def start_scheduler(database: Database) -> Optional[AsyncIOScheduler]:
    """
    Initialize and start the AsyncIOScheduler.
    Called from FastAPI lifespan startup.
    """
    global _scheduler

    settings = get_settings()
    if not settings.digest_enabled:
        logger.info("Scheduler: DIGEST_ENABLED is false, not scheduling the daily digest.")
        return None

    _scheduler = AsyncIOScheduler()
    _scheduler.add_job(
        _daily_news_digest,
        CronTrigger(
            hour=settings.digest_cron_hour,
            minute=settings.digest_cron_minute,
            timezone=settings.timezone,
        ),
        args=[database],
        id="daily_news_digest",
        name="Daily News Digest",
        max_instances=1,
        replace_existing=True,
    )

    _scheduler.start()
    job_names = [j.name for j in _scheduler.get_jobs()]
    logger.info(f"Scheduler started, {len(job_names)} jobs: {', '.join(job_names)}")
    return _scheduler


def shutdown_scheduler() -> None:
    """Stop the scheduler gracefully. Called from FastAPI lifespan shutdown."""
    global _scheduler
    if _scheduler and _scheduler.running:
        _scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped.")
    _scheduler = None
