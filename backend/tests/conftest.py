"""
Shared pytest fixtures for Signalist backend tests.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.auth import CurrentUser


@pytest.fixture
def db():
    """
    A mock AsyncSession. execute/flush/rollback are awaitable; add is the
    plain sync method it is on a real session.
    """
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def user():
    return CurrentUser(id="user-1", email="ada@example.com", name="Ada")


@pytest.fixture
def make_result():
    """
    Factory for the object `await db.execute(...)` returns.
    Supports .scalars().all() and .scalars().first().
    """
    def _make(all_=None, first=None):
        result = MagicMock()
        result.scalars.return_value.all.return_value = list(all_ or [])
        result.scalars.return_value.first.return_value = first
        return result

    return _make


@pytest.fixture
def raw_article():
    """Factory for a raw Finnhub news payload item. Pass field=None to drop a field."""
    def _make(article_id, **overrides):
        item = {
            "id": article_id,
            "headline": f"Headline {article_id}",
            "summary": f"Summary {article_id}",
            "source": "Reuters",
            "url": f"https://news.example.com/{article_id}",
            "datetime": 1_700_000_000 + article_id,
            "category": "",
            "related": "",
            "image": "",
        }
        item.update(overrides)
        return {k: v for k, v in item.items() if v is not None}

    return _make
