"""
Listing feed and catalog view.

ListingFeed hands subscribers full-snapshot replacements of the listing set.
CatalogView holds one screen's filter, sort and search state and re-runs the
query engine over the whole snapshot whenever either side changes.
"""
import itertools
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from .backends import ListingStore
from .catalog import active_filter_count, default_filters, facet_values, query_catalog
from .errors import BackendError
from .models import FilterSpecification, Listing, SortKey

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[List[Listing]], None]


class ListingFeed:
    def __init__(
        self,
        store: ListingStore,
        max_age_seconds: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.max_age_seconds = max_age_seconds
        self.clock = clock
        self._lock = threading.Lock()
        self._ids = itertools.count()
        self._subscribers: Dict[int, SnapshotCallback] = {}
        self._snapshot: List[Listing] = []
        self._fetched_at: Optional[float] = None
        self.last_error: Optional[str] = None

    def refresh(self) -> List[Listing]:
        """Pull the full listing set and push it to every subscriber. A backend failure yields an empty snapshot."""
        try:
            listings = self.store.fetch_all()
            error = None
        except BackendError as exc:
            logger.warning("Listing snapshot unavailable: %s", exc)
            listings, error = [], str(exc)
        with self._lock:
            self._snapshot = listings
            self._fetched_at = self.clock()
            self.last_error = error
            subscribers = list(self._subscribers.values())
        for callback in subscribers:
            callback(list(listings))
        return list(listings)

    def _is_stale(self) -> bool:
        return self._fetched_at is None or self.clock() - self._fetched_at > self.max_age_seconds

    def current(self) -> List[Listing]:
        with self._lock:
            stale = self._is_stale()
            snapshot = list(self._snapshot)
        return self.refresh() if stale else snapshot

    def subscribe(self, on_snapshot: SnapshotCallback) -> Callable[[], None]:
        """Register for snapshots; the current one is delivered immediately. Returns the unsubscribe function."""
        snapshot = self.current()
        token = next(self._ids)
        with self._lock:
            self._subscribers[token] = on_snapshot
        on_snapshot(snapshot)

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)


class CatalogView:
    def __init__(
        self,
        feed: ListingFeed,
        filters: Optional[FilterSpecification] = None,
        sort_key: SortKey = SortKey.NEWEST,
    ):
        self.feed = feed
        self.filters = filters or default_filters()
        self.sort_key = SortKey(sort_key)
        self.listings: List[Listing] = []
        self.results: List[Listing] = []
        self._unsubscribe: Optional[Callable[[], None]] = feed.subscribe(self._on_snapshot)

    def _on_snapshot(self, listings: List[Listing]) -> None:
        self.listings = listings
        self._recompute()

    def _recompute(self) -> None:
        self.results = query_catalog(self.listings, self.filters, self.sort_key)

    def set_filters(self, filters: FilterSpecification) -> None:
        self.filters = filters
        self._recompute()

    def set_search(self, text: str) -> None:
        self.filters = self.filters.model_copy(update={"search": text})
        self._recompute()

    def set_sort(self, sort_key: SortKey) -> None:
        self.sort_key = SortKey(sort_key)
        self._recompute()

    def clear_filters(self) -> None:
        self.filters = default_filters()
        self.sort_key = SortKey.NEWEST
        self._recompute()

    @property
    def error(self) -> Optional[str]:
        return self.feed.last_error

    @property
    def active_filter_count(self) -> int:
        return active_filter_count(self.filters)

    def facets(self) -> Dict[str, List[Any]]:
        return facet_values(self.listings)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def __enter__(self) -> "CatalogView":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
