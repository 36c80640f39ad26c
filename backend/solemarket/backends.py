"""
Document-store collaborators: listings (`shoes`), user profiles (`users`) and
orders (`orders`).

Each store has a Supabase implementation and an in-memory one used by
APP_BACKEND=memory and the tests. Supabase exceptions and response errors are
re-raised as BackendError; callers decide whether to surface or absorb them.
"""
import copy
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from pydantic import ValidationError
from supabase import Client

from .catalog import sort_listings
from .errors import BackendError, CartConflictError, NotFoundError
from .models import Listing, Order, SortKey, UserProfile

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ListingStore(ABC):
    @abstractmethod
    def fetch_all(self) -> List[Listing]:
        """Full snapshot, newest first."""
        raise NotImplementedError

    @abstractmethod
    def get(self, listing_id: str) -> Listing:
        raise NotImplementedError

    @abstractmethod
    def get_many(self, listing_ids: List[str]) -> List[Listing]:
        raise NotImplementedError

    @abstractmethod
    def list_by_seller(self, seller_id: str) -> List[Listing]:
        raise NotImplementedError

    @abstractmethod
    def create(self, fields: Dict[str, Any]) -> Listing:
        raise NotImplementedError

    @abstractmethod
    def update(self, listing_id: str, fields: Dict[str, Any]) -> Listing:
        raise NotImplementedError

    @abstractmethod
    def delete(self, listing_id: str) -> None:
        raise NotImplementedError


class ProfileStore(ABC):
    @abstractmethod
    def get_profile(self, user_id: str) -> UserProfile:
        raise NotImplementedError

    @abstractmethod
    def create_profile(self, profile: UserProfile) -> UserProfile:
        raise NotImplementedError

    @abstractmethod
    def update_profile(
        self,
        user_id: str,
        fields: Dict[str, Any],
        expected_cart_version: Optional[int] = None,
    ) -> UserProfile:
        """Apply a partial update; with expected_cart_version set, only if the stored cart_version still matches."""
        raise NotImplementedError


class OrderStore(ABC):
    @abstractmethod
    def create_order(self, order: Order) -> Order:
        raise NotImplementedError


def _execute(query, what: str) -> List[Dict[str, Any]]:
    try:
        resp = query.execute()
    except Exception as exc:
        logger.exception("Supabase %s raised an exception", what)
        raise BackendError(f"Supabase {what} failed") from exc
    error = getattr(resp, "error", None)
    if error:
        logger.error("Supabase %s returned an error: %s", what, error)
        raise BackendError(f"Supabase error: {error}")
    return getattr(resp, "data", None) or []


def _row(model) -> Dict[str, Any]:
    return model.model_dump(mode="json", exclude_none=True)


def _listings(rows: Iterable[Dict[str, Any]]) -> List[Listing]:
    """Validate rows, skipping and logging any that cannot be read."""
    out = []
    for row in rows:
        try:
            out.append(Listing.model_validate(row))
        except ValidationError as exc:
            logger.warning("Skipping malformed listing %s: %s", row.get("id"), exc.errors()[0].get("msg"))
    return out


class SupabaseListingStore(ListingStore):
    table = "shoes"

    def __init__(self, client: Client):
        self.client = client

    def fetch_all(self) -> List[Listing]:
        rows = _execute(self.client.table(self.table).select("*").order("created_at", desc=True), "fetch listings")
        return _listings(rows)

    def get(self, listing_id: str) -> Listing:
        rows = _execute(self.client.table(self.table).select("*").eq("id", listing_id).limit(1), "get listing")
        found = _listings(rows)
        if not found:
            raise NotFoundError(f"Listing {listing_id} not found")
        return found[0]

    def get_many(self, listing_ids: List[str]) -> List[Listing]:
        if not listing_ids:
            return []
        rows = _execute(self.client.table(self.table).select("*").in_("id", listing_ids), "get listings")
        return _listings(rows)

    def list_by_seller(self, seller_id: str) -> List[Listing]:
        rows = _execute(
            self.client.table(self.table).select("*").eq("seller_id", seller_id).order("created_at", desc=True),
            "list seller listings",
        )
        return _listings(rows)

    def create(self, fields: Dict[str, Any]) -> Listing:
        record = _row(Listing.model_validate({**fields, "id": str(uuid4())}))
        rows = _execute(self.client.table(self.table).insert(record), "create listing")
        return Listing.model_validate(rows[0] if rows else record)

    def update(self, listing_id: str, fields: Dict[str, Any]) -> Listing:
        rows = _execute(self.client.table(self.table).update(fields).eq("id", listing_id), "update listing")
        if not rows:
            raise NotFoundError(f"Listing {listing_id} not found")
        return Listing.model_validate(rows[0])

    def delete(self, listing_id: str) -> None:
        _execute(self.client.table(self.table).delete().eq("id", listing_id), "delete listing")


class SupabaseProfileStore(ProfileStore):
    table = "users"

    def __init__(self, client: Client):
        self.client = client

    def get_profile(self, user_id: str) -> UserProfile:
        rows = _execute(self.client.table(self.table).select("*").eq("id", user_id).limit(1), "get profile")
        if not rows:
            raise NotFoundError(f"Profile {user_id} not found")
        return UserProfile.model_validate(rows[0])

    def create_profile(self, profile: UserProfile) -> UserProfile:
        record = _row(profile)
        record["cart"] = [line.model_dump(by_alias=True, exclude={"shoe"}) for line in profile.cart]
        rows = _execute(self.client.table(self.table).upsert(record, on_conflict="id"), "create profile")
        return UserProfile.model_validate(rows[0] if rows else record)

    def update_profile(
        self,
        user_id: str,
        fields: Dict[str, Any],
        expected_cart_version: Optional[int] = None,
    ) -> UserProfile:
        fields = {**fields, "updated_at": utcnow().isoformat()}
        query = self.client.table(self.table).update(fields).eq("id", user_id)
        if expected_cart_version is not None:
            query = query.eq("cart_version", expected_cart_version)
        rows = _execute(query, "update profile")
        if not rows:
            if expected_cart_version is not None:
                raise CartConflictError(f"Cart for {user_id} is no longer at version {expected_cart_version}")
            raise NotFoundError(f"Profile {user_id} not found")
        return UserProfile.model_validate(rows[0])


class SupabaseOrderStore(OrderStore):
    table = "orders"

    def __init__(self, client: Client):
        self.client = client

    def create_order(self, order: Order) -> Order:
        record = _row(order.model_copy(update={"id": order.id or str(uuid4())}))
        rows = _execute(self.client.table(self.table).insert(record), "create order")
        return Order.model_validate(rows[0] if rows else record)


class MemoryListingStore(ListingStore):
    def __init__(self, listings: Iterable[Listing] = ()):
        self._lock = threading.Lock()
        self._items: Dict[str, Listing] = {l.id: l for l in listings}

    def fetch_all(self) -> List[Listing]:
        with self._lock:
            items = list(self._items.values())
        return sort_listings(items, SortKey.NEWEST)

    def get(self, listing_id: str) -> Listing:
        with self._lock:
            listing = self._items.get(listing_id)
        if listing is None:
            raise NotFoundError(f"Listing {listing_id} not found")
        return listing

    def get_many(self, listing_ids: List[str]) -> List[Listing]:
        with self._lock:
            return [self._items[i] for i in listing_ids if i in self._items]

    def list_by_seller(self, seller_id: str) -> List[Listing]:
        return [l for l in self.fetch_all() if l.seller_id == seller_id]

    def create(self, fields: Dict[str, Any]) -> Listing:
        listing = Listing.model_validate({**fields, "id": str(uuid4())})
        with self._lock:
            self._items[listing.id] = listing
        return listing

    def update(self, listing_id: str, fields: Dict[str, Any]) -> Listing:
        with self._lock:
            current = self._items.get(listing_id)
            if current is None:
                raise NotFoundError(f"Listing {listing_id} not found")
            updated = Listing.model_validate({**current.model_dump(), **fields})
            self._items[listing_id] = updated
        return updated

    def delete(self, listing_id: str) -> None:
        with self._lock:
            self._items.pop(listing_id, None)


class MemoryProfileStore(ProfileStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._profiles: Dict[str, UserProfile] = {}

    def get_profile(self, user_id: str) -> UserProfile:
        with self._lock:
            profile = self._profiles.get(user_id)
        if profile is None:
            raise NotFoundError(f"Profile {user_id} not found")
        return profile.model_copy(deep=True)

    def create_profile(self, profile: UserProfile) -> UserProfile:
        with self._lock:
            self._profiles[profile.id] = profile.model_copy(deep=True)
        return profile

    def update_profile(
        self,
        user_id: str,
        fields: Dict[str, Any],
        expected_cart_version: Optional[int] = None,
    ) -> UserProfile:
        with self._lock:
            current = self._profiles.get(user_id)
            if current is None:
                raise NotFoundError(f"Profile {user_id} not found")
            if expected_cart_version is not None and current.cart_version != expected_cart_version:
                raise CartConflictError(f"Cart for {user_id} is no longer at version {expected_cart_version}")
            merged = {**current.model_dump(), **copy.deepcopy(fields), "updated_at": utcnow()}
            updated = UserProfile.model_validate(merged)
            self._profiles[user_id] = updated
        return updated.model_copy(deep=True)


class MemoryOrderStore(OrderStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.orders: List[Order] = []

    def create_order(self, order: Order) -> Order:
        stored = order.model_copy(update={"id": order.id or str(uuid4())})
        with self._lock:
            self.orders.append(stored)
        return stored
