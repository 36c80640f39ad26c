"""Pytest configuration and fixtures."""
import os
from datetime import datetime, timedelta, timezone

import pytest

os.environ.setdefault("APP_BACKEND", "memory")

from fastapi.testclient import TestClient  # noqa: E402

from solemarket.auth import MemoryAuthService, get_auth_service  # noqa: E402
from solemarket.backends import MemoryListingStore, MemoryOrderStore, MemoryProfileStore  # noqa: E402
from solemarket.deps import (  # noqa: E402
    get_key_value_store,
    get_listing_feed,
    get_listing_store,
    get_order_store,
    get_profile_store,
)
from solemarket.feed import ListingFeed  # noqa: E402
from solemarket.main import app  # noqa: E402
from solemarket.models import Listing  # noqa: E402
from solemarket.storage import MemoryKeyValueStore  # noqa: E402

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, now_ms: int = 1_700_000_000_000):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


def make_listing(listing_id: str, age_days: int = 0, **fields) -> Listing:
    return Listing(id=listing_id, created_at=BASE_TIME - timedelta(days=age_days), **fields)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def nike() -> Listing:
    return make_listing("nike-1", name="Air Max", brand="Nike", price=150, sizes=[9, 10], image="nike.png")


@pytest.fixture
def vans() -> Listing:
    return make_listing("vans-1", age_days=1, name="Old Skool", brand="Vans", price=70, sizes=[8], image="vans.png")


@pytest.fixture
def listing_store(nike, vans) -> MemoryListingStore:
    return MemoryListingStore([nike, vans])


@pytest.fixture
def profile_store() -> MemoryProfileStore:
    return MemoryProfileStore()


@pytest.fixture
def order_store() -> MemoryOrderStore:
    return MemoryOrderStore()


@pytest.fixture
def kv_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def feed(listing_store) -> ListingFeed:
    return ListingFeed(listing_store, max_age_seconds=0)


@pytest.fixture
def auth_service() -> MemoryAuthService:
    return MemoryAuthService()


@pytest.fixture
def client(listing_store, profile_store, order_store, kv_store, feed, auth_service):
    app.dependency_overrides[get_listing_store] = lambda: listing_store
    app.dependency_overrides[get_profile_store] = lambda: profile_store
    app.dependency_overrides[get_order_store] = lambda: order_store
    app.dependency_overrides[get_key_value_store] = lambda: kv_store
    app.dependency_overrides[get_listing_feed] = lambda: feed
    app.dependency_overrides[get_auth_service] = lambda: auth_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def signed_in(client):
    """Register an account and return its Authorization header."""
    resp = client.post(
        "/auth/register",
        json={"name": "Sam", "email": "sam@example.com", "password": "secret1", "phone": "555-0100"},
    )
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}
