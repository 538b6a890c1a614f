"""
Digest and event triggers — "send now" for the daily digest, and the
user-created hook that sends the welcome email.
"""

from fastapi import APIRouter, BackgroundTasks, Depends

from app.agents.onboarding import send_sign_up_email_background
from app.agents.pipeline import run_daily_news_digest_background
from app.database import Database, get_database
from app.schemas.api import UserCreatedEvent

router = APIRouter()


@router.post("/digest/send", status_code=202)
async def send_digest_now(
    background_tasks: BackgroundTasks,
    database: Database = Depends(get_database),
):
    """Run the daily digest immediately, outside the cron schedule."""
    background_tasks.add_task(run_daily_news_digest_background, database)
    return {"status": "queued", "job": "daily_news_digest"}


@router.post("/events/user-created", status_code=202)
async def user_created(event: UserCreatedEvent, background_tasks: BackgroundTasks):
    background_tasks.add_task(send_sign_up_email_background, event)
    return {"status": "queued", "job": "sign_up_email", "email": event.email}
