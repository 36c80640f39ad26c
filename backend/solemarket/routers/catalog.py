from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import Field

from ..deps import get_listing_feed
from ..feed import CatalogView, ListingFeed
from ..models import FilterSpecification, Listing, Record, SortKey

router = APIRouter()


class CatalogQuery(Record):
    filters: FilterSpecification = Field(default_factory=FilterSpecification)
    sort: SortKey = SortKey.NEWEST


class CatalogPage(Record):
    items: List[Listing]
    count: int
    active_filters: int
    error: Optional[str] = None


@router.post("/search", response_model=CatalogPage)
def search(query: CatalogQuery, feed: ListingFeed = Depends(get_listing_feed)):
    """
    Filter and sort the current listing snapshot.
    A failed snapshot yields an empty page with `error` set, not an error status.
    """
    with CatalogView(feed, query.filters, query.sort) as view:
        return CatalogPage(
            items=view.results,
            count=len(view.results),
            active_filters=view.active_filter_count,
            error=view.error,
        )


@router.get("/facets")
def facets(feed: ListingFeed = Depends(get_listing_feed)) -> Dict[str, List[Any]]:
    with CatalogView(feed) as view:
        return view.facets()
