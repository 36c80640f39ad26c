"""
Collaborator providers for the routers.

One instance of each store per process, chosen by APP_BACKEND. Tests swap
them through app.dependency_overrides.
"""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from .auth import get_optional_user
from .backends import (
    ListingStore,
    MemoryListingStore,
    MemoryOrderStore,
    MemoryProfileStore,
    OrderStore,
    ProfileStore,
    SupabaseListingStore,
    SupabaseOrderStore,
    SupabaseProfileStore,
)
from .cart import CartRepository, ProfileCartRepository
from .config import get_settings
from .demo_data import demo_listings
from .feed import ListingFeed
from .guest_cart import GuestCartStore, guest_cart_key
from .models import AuthUser
from .profiles import get_or_create_profile
from .storage import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from .supabase_client import get_supabase


def _client():
    try:
        return get_supabase()
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Supabase client initialization failed",
        ) from exc


def _memory() -> bool:
    return get_settings().backend == "memory"


@lru_cache()
def get_listing_store() -> ListingStore:
    if _memory():
        return MemoryListingStore(demo_listings())
    return SupabaseListingStore(_client())


@lru_cache()
def get_profile_store() -> ProfileStore:
    if _memory():
        return MemoryProfileStore()
    return SupabaseProfileStore(_client())


@lru_cache()
def get_order_store() -> OrderStore:
    if _memory():
        return MemoryOrderStore()
    return SupabaseOrderStore(_client())


@lru_cache()
def get_key_value_store() -> KeyValueStore:
    if _memory():
        return MemoryKeyValueStore()
    return FileKeyValueStore(get_settings().guest_cart_dir)


@lru_cache()
def get_listing_feed() -> ListingFeed:
    return ListingFeed(get_listing_store(), max_age_seconds=get_settings().listing_feed_max_age_seconds)


def get_guest_cart(
    x_guest_id: Optional[str] = Header(default=None),
    storage: KeyValueStore = Depends(get_key_value_store),
) -> Optional[GuestCartStore]:
    if not x_guest_id:
        return None
    ttl_ms = get_settings().guest_cart_ttl_seconds * 1000
    return GuestCartStore(storage, key=guest_cart_key(x_guest_id), ttl_ms=ttl_ms)


def get_cart(
    user: Optional[AuthUser] = Depends(get_optional_user),
    guest_cart: Optional[GuestCartStore] = Depends(get_guest_cart),
    profiles: ProfileStore = Depends(get_profile_store),
    listings: ListingStore = Depends(get_listing_store),
) -> CartRepository:
    """
    Signed-in users get their profile cart, guests the local cart named by X-Guest-Id.
    A guest cart is never merged into the account cart on sign-in.
    """
    if user is not None:
        get_or_create_profile(profiles, user)
        return ProfileCartRepository(profiles, listings, user.id)
    if guest_cart is not None:
        return guest_cart
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Sign in or send an X-Guest-Id header to use a cart",
    )
