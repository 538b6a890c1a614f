"""
Welcome email for newly registered users: one LLM call, one send.
"""

import logging
from typing import Optional

from app.agents.base import TextModel
from app.agents.summarizer import format_user_profile, generate_welcome_intro
from app.notifications.mailer import Mailer, get_mailer
from app.schemas.api import PipelineResult, UserCreatedEvent

logger = logging.getLogger(__name__)


async def send_sign_up_email(
    event: UserCreatedEvent,
    model: Optional[TextModel] = None,
    mailer: Optional[Mailer] = None,
) -> PipelineResult:
    profile = format_user_profile(
        country=event.country,
        investment_goals=event.investment_goals,
        risk_tolerance=event.risk_tolerance,
        preferred_industry=event.preferred_industry,
    )
    intro = await generate_welcome_intro(profile, model=model)

    mailer = mailer or get_mailer()
    await mailer.send_welcome_email(email=event.email, name=event.name, intro=intro)
    logger.info(f"Onboarding: welcome email handled for {event.email}")

    return PipelineResult(success=True, message="Welcome email sent successfully")


async def send_sign_up_email_background(event: UserCreatedEvent) -> None:
    """Background-task wrapper; failures are logged, never raised."""
    try:
        await send_sign_up_email(event)
    except Exception as e:
        logger.error(f"Onboarding: welcome email for {event.email} failed: {e}", exc_info=True)
