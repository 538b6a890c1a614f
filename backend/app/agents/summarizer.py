"""
Email copywriters: the daily news digest body and the welcome intro.

Both are best-effort. Any model failure or odd response shape yields fixed
fallback copy instead of an exception.
"""

import json
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Optional

from app.agents.base import TextModel, load_prompt
from app.schemas.market import NewsArticle

logger = logging.getLogger(__name__)

NO_NEWS_PLACEHOLDER = (
    "<p class='mobile-text dark-text-secondary' style='margin: 0 0 20px 0; "
    "font-size: 16px; line-height: 1.6; color: #CCDADC;'>"
    "No news available at this time.</p>"
)

DEFAULT_WELCOME_INTRO = (
    "Thanks for joining Signalist. You now have the tools to track markets "
    "and make smarter moves"
)


def format_news_data(articles: Sequence[NewsArticle]) -> str:
    """JSON block of the article fields the digest prompt uses."""
    return json.dumps(
        [
            {
                "headline": a.headline,
                "summary": a.summary,
                "source": a.source,
                "url": a.url,
                "datetime": datetime.fromtimestamp(a.datetime, tz=timezone.utc).strftime("%m/%d/%Y"),
                "category": a.category,
                "related": a.related,
            }
            for a in articles
        ],
        indent=2,
    )


def format_user_profile(
    country: Optional[str],
    investment_goals: Optional[str],
    risk_tolerance: Optional[str],
    preferred_industry: Optional[str],
) -> str:
    return (
        f"- Country: {country or 'Not specified'}\n"
        f"- Investment Goals: {investment_goals or 'Not specified'}\n"
        f"- Risk Tolerance: {risk_tolerance or 'Not specified'}\n"
        f"- Preferred Industry: {preferred_industry or 'Not specified'}"
    )


async def summarize_news(
    articles: Sequence[NewsArticle],
    model: Optional[TextModel] = None,
    label: str = "news-summary",
) -> str:
    """HTML digest body for the articles, or NO_NEWS_PLACEHOLDER on any failure."""
    prompt = load_prompt("news_summary.md").replace("{{news_data}}", format_news_data(articles))
    try:
        model = model or TextModel()
        text = await model.generate(prompt, label=label)
    except Exception as e:
        logger.warning(f"{label}: summarization failed, using placeholder: {e}")
        return NO_NEWS_PLACEHOLDER
    if not text:
        logger.warning(f"{label}: no text in model response, using placeholder.")
        return NO_NEWS_PLACEHOLDER
    return text


async def generate_welcome_intro(
    user_profile: str,
    model: Optional[TextModel] = None,
) -> str:
    """Personalized welcome paragraph, or DEFAULT_WELCOME_INTRO on any failure."""
    prompt = load_prompt("welcome_intro.md").replace("{{user_profile}}", user_profile)
    try:
        model = model or TextModel()
        text = await model.generate(prompt, label="welcome-intro")
    except Exception as e:
        logger.warning(f"Welcome intro generation failed, using default: {e}")
        return DEFAULT_WELCOME_INTRO
    return text or DEFAULT_WELCOME_INTRO
