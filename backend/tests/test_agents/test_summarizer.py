"""
Unit tests for the email copywriters and welcome-email onboarding.
"""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.agents.base import extract_first_text
from app.agents.onboarding import send_sign_up_email
from app.agents.summarizer import (
    DEFAULT_WELCOME_INTRO,
    NO_NEWS_PLACEHOLDER,
    format_news_data,
    format_user_profile,
    generate_welcome_intro,
    summarize_news,
)
from app.schemas.api import UserCreatedEvent
from app.schemas.market import NewsArticle


def _article() -> NewsArticle:
    return NewsArticle(
        id=1,
        headline="Apple beats estimates",
        summary="Revenue up 8%",
        source="Reuters",
        url="https://news.example.com/1",
        datetime=1_700_000_000,  # 2023-11-14 22:13 UTC
        category="company",
        related="AAPL",
    )


def _model(return_value=None, side_effect=None):
    model = MagicMock()
    model.generate = AsyncMock(return_value=return_value, side_effect=side_effect)
    return model


# ── extract_first_text ────────────────────────────────────────────────────────

def test_extract_anthropic_shape():
    response = SimpleNamespace(content=[SimpleNamespace(type="text", text="<p>Hi</p>")])
    assert extract_first_text(response) == "<p>Hi</p>"


def test_extract_openai_shape():
    response = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="<p>Hi</p>"))])
    assert extract_first_text(response) == "<p>Hi</p>"


@pytest.mark.parametrize(
    "response",
    [
        None,
        SimpleNamespace(content=[]),
        SimpleNamespace(content=[SimpleNamespace(type="tool_use", id="x")]),
        SimpleNamespace(content=[SimpleNamespace(type="text", text="   ")]),
        SimpleNamespace(choices=[]),
    ],
)
def test_extract_unexpected_shape_is_none(response):
    assert extract_first_text(response) is None


# ── summarize_news ────────────────────────────────────────────────────────────

def test_format_news_data_uses_short_dates():
    data = json.loads(format_news_data([_article()]))
    assert data[0]["datetime"] == "11/14/2023"
    assert data[0]["related"] == "AAPL"


@pytest.mark.asyncio
async def test_summarize_returns_model_html():
    model = _model(return_value="<h3>Market</h3>")

    assert await summarize_news([_article()], model=model, label="news-summary-u1") == "<h3>Market</h3>"
    prompt = model.generate.await_args.args[0]
    assert "Apple beats estimates" in prompt
    assert "{{news_data}}" not in prompt


@pytest.mark.asyncio
async def test_summarize_falls_back_on_error_or_empty_text():
    assert await summarize_news([_article()], model=_model(side_effect=RuntimeError("500"))) == NO_NEWS_PLACEHOLDER
    assert await summarize_news([_article()], model=_model(return_value=None)) == NO_NEWS_PLACEHOLDER


# ── Welcome intro / onboarding ────────────────────────────────────────────────

def test_format_user_profile_fills_missing_fields():
    profile = format_user_profile("US", None, "Medium", "")
    assert "- Country: US" in profile
    assert "- Investment Goals: Not specified" in profile
    assert "- Preferred Industry: Not specified" in profile


@pytest.mark.asyncio
async def test_welcome_intro_falls_back_to_default():
    assert await generate_welcome_intro("- Country: US", model=_model(side_effect=RuntimeError("x"))) == DEFAULT_WELCOME_INTRO
    assert await generate_welcome_intro("- Country: US", model=_model(return_value="")) == DEFAULT_WELCOME_INTRO


@pytest.mark.asyncio
async def test_send_sign_up_email_uses_generated_intro():
    event = UserCreatedEvent(email="ada@example.com", name="Ada", country="UK", risk_tolerance="High")
    mailer = MagicMock()
    mailer.send_welcome_email = AsyncMock(return_value=True)

    result = await send_sign_up_email(event, model=_model(return_value="<p>Welcome, Ada</p>"), mailer=mailer)

    assert result.success is True
    assert result.message == "Welcome email sent successfully"
    mailer.send_welcome_email.assert_awaited_once_with(
        email="ada@example.com", name="Ada", intro="<p>Welcome, Ada</p>"
    )
