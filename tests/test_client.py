"""Tests for client wiring and the recommendations feed."""

import pytest

from shelfwise.adapters.http.library_store import HttpLibraryStoreAdapter
from shelfwise.adapters.memory.library_store import InMemoryLibraryStore
from shelfwise.config import Settings, StoreBackend
from shelfwise.domain.errors import SessionExpired
from shelfwise.domain.outcomes import Outcome
from shelfwise.main import create_client
from shelfwise.services.recommendations import RecommendationFeed


def test_memory_backend(session):
    client = create_client(
        Settings(store_backend=StoreBackend.MEMORY, page_size=5, notice_ttl_seconds=1.0),
        session=session,
    )

    assert isinstance(client.store, InMemoryLibraryStore)
    assert client.catalog.page_size == 5
    assert client.library.notices is client.notices


@pytest.mark.asyncio
async def test_http_backend(session):
    client = create_client(
        Settings(store_backend=StoreBackend.HTTP, api_base_url="http://books.local/api"),
        session=session,
    )

    assert isinstance(client.store, HttpLibraryStoreAdapter)
    await client.aclose()


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("SHELFWISE_STORE_BACKEND", "memory")
    monkeypatch.setenv("SHELFWISE_PAGE_SIZE", "24")

    config = Settings()

    assert config.store_backend is StoreBackend.MEMORY
    assert config.page_size == 24


@pytest.mark.asyncio
async def test_client_shares_state_between_views(store, session):
    client = create_client(Settings(), session=session, store=store)

    await client.library.rate(4, 5)
    assert await client.profile.load()
    await client.catalog.open(0)

    assert [e.book_id for e in client.profile.entries] == [4]
    assert client.library.state(4).rating == 5


# ── Recommendations ────────────────────────────────


@pytest.mark.asyncio
async def test_recommendations_require_session(store, anonymous):
    feed = RecommendationFeed(store, anonymous)

    assert await feed.load() is Outcome.AUTH_REQUIRED
    assert store.calls == []


@pytest.mark.asyncio
async def test_recommendations_load(store, session):
    feed = RecommendationFeed(store, session)

    assert await feed.load() is Outcome.SUCCEEDED
    assert len(feed.books) == 10
    assert feed.error is None


@pytest.mark.asyncio
async def test_recommendations_failure(store, session):
    store.fail_next("recommendations")
    feed = RecommendationFeed(store, session)

    assert await feed.load() is Outcome.FAILED
    assert feed.error == "Failed to load recommendations. Please try again later."
    assert feed.books == []


@pytest.mark.asyncio
async def test_recommendations_expired_session(store, session):
    store.fail_next("recommendations", SessionExpired("Unauthorized", status_code=401))
    feed = RecommendationFeed(store, session)

    assert await feed.load() is Outcome.AUTH_REQUIRED
    assert not session.is_authenticated


def test_token_session_lifecycle(anonymous):
    assert not anonymous.is_authenticated

    anonymous.login("tok", "Grace")
    assert anonymous.is_authenticated
    assert anonymous.display_name == "Grace"
    assert anonymous.token == "tok"

    anonymous.logout()
    assert not anonymous.is_authenticated
    assert anonymous.display_name is None

    with pytest.raises(ValueError):
        anonymous.login("", "Grace")
