"""
Unit tests for FinnhubClient.fetch_json and the response cache.

aiohttp.ClientSession is replaced with a small fake so no network is used.
"""
from unittest.mock import MagicMock, patch

import pytest

from app.data.cache import ResponseCache
from app.data.finnhub_client import FinnhubClient
from app.errors import NewsFetchError


# ── Helpers ───────────────────────────────────────────────────────────────────

class _FakeResponse:
    def __init__(self, status: int, payload, reason: str = "OK") -> None:
        self.status = status
        self.reason = reason
        self._payload = payload

    async def json(self, content_type=None):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class _FakeSession:
    """Records every GET; returns the queued responses in order."""

    def __init__(self, responses: list, calls: list) -> None:
        self._responses = responses
        self._calls = calls

    def __call__(self, *args, **kwargs):
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def get(self, url, params=None):
        self._calls.append((url, dict(params or {})))
        return self._responses.pop(0)


def _client(cache=None) -> FinnhubClient:
    return FinnhubClient(api_key="test-key", base_url="https://finnhub.test/api/v1", cache=cache if cache is not None else ResponseCache())


# ── ResponseCache ─────────────────────────────────────────────────────────────

def test_cache_key_ignores_token_and_param_order():
    a = ResponseCache.key_for("https://x/news", {"category": "general", "token": "a"})
    b = ResponseCache.key_for("https://x/news", {"token": "b", "category": "general"})
    assert a == b == "https://x/news?category=general"


def test_cache_entry_expires():
    cache = ResponseCache()
    with patch("app.data.cache.time.monotonic", return_value=100.0):
        cache.set("k", [1], ttl=60)
    with patch("app.data.cache.time.monotonic", return_value=159.0):
        assert cache.get("k") == [1]
    with patch("app.data.cache.time.monotonic", return_value=161.0):
        assert cache.get("k") is None
    assert len(cache) == 0


def test_cache_set_evicts_expired_entries():
    cache = ResponseCache(max_entries=5000)
    with patch("app.data.cache.time.monotonic", return_value=100.0):
        for i in range(1000):
            cache.set(f"window-{i}", [i], ttl=1)
    assert len(cache) == 1000

    with patch("app.data.cache.time.monotonic", return_value=102.0):
        cache.set("fresh", [1], ttl=1)

    assert len(cache) == 1


def test_cache_size_is_capped():
    cache = ResponseCache(max_entries=3)
    for i, now in enumerate([100.0, 101.0, 102.0, 103.0]):
        with patch("app.data.cache.time.monotonic", return_value=now):
            cache.set(f"k{i}", [i], ttl=60)

    assert len(cache) == 3
    with patch("app.data.cache.time.monotonic", return_value=104.0):
        assert cache.get("k0") is None
        assert cache.get("k3") == [3]


# ── fetch_json ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_fetch_without_revalidate_never_caches():
    cache = ResponseCache()
    calls: list = []
    session = _FakeSession([_FakeResponse(200, [1]), _FakeResponse(200, [2])], calls)
    client = _client(cache)

    with patch("app.data.finnhub_client.aiohttp.ClientSession", session):
        first = await client.get_general_news()
        second = await client.get_general_news()

    assert (first, second) == ([1], [2])
    assert len(calls) == 2
    assert len(cache) == 0
    assert calls[0][1] == {"category": "general", "token": "test-key"}


@pytest.mark.asyncio
async def test_fetch_with_revalidate_serves_from_cache():
    calls: list = []
    session = _FakeSession([_FakeResponse(200, [{"id": 1}])], calls)
    client = _client()

    with patch("app.data.finnhub_client.aiohttp.ClientSession", session):
        first = await client.get_company_news("AAPL", 1, 2, revalidate_seconds=300)
        second = await client.get_company_news("AAPL", 1, 2, revalidate_seconds=300)

    assert first == second == [{"id": 1}]
    assert len(calls) == 1
    assert calls[0][0] == "https://finnhub.test/api/v1/company-news"
    assert calls[0][1]["symbol"] == "AAPL"


@pytest.mark.asyncio
async def test_http_error_status_raises_news_fetch_error():
    session = _FakeSession([_FakeResponse(429, {}, reason="Too Many Requests")], [])
    client = _client()

    with patch("app.data.finnhub_client.aiohttp.ClientSession", session):
        with pytest.raises(NewsFetchError, match="429"):
            await client.get_general_news()


@pytest.mark.asyncio
async def test_malformed_json_raises_news_fetch_error():
    session = _FakeSession([_FakeResponse(200, ValueError("Expecting value"))], [])
    client = _client()

    with patch("app.data.finnhub_client.aiohttp.ClientSession", session):
        with pytest.raises(NewsFetchError):
            await client.get_general_news()


# ── SDK-backed lookups ────────────────────────────────────────────────────────

def test_get_quote_maps_fields():
    client = _client()
    client._client = MagicMock()
    client._client.quote.return_value = {"c": 189.5, "d": 2.1, "dp": 1.12, "pc": 187.4}

    quote = client.get_quote("AAPL")

    assert quote.current == 189.5
    assert quote.change_pct == 1.12


def test_get_quote_returns_none_for_zero_price_or_error():
    client = _client()
    client._client = MagicMock()
    client._client.quote.return_value = {"c": 0, "dp": None}
    assert client.get_quote("NOPE") is None

    client._client.quote.side_effect = RuntimeError("boom")
    assert client.get_quote("AAPL") is None
