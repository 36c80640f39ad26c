from typing import List

from fastapi import APIRouter, Depends, Response, status

from ..auth import get_current_user
from ..backends import ListingStore
from ..deps import get_listing_feed, get_listing_store
from ..feed import ListingFeed
from ..listings import create_listing, delete_listing, update_listing
from ..models import AuthUser, Listing, ListingDraft, ListingPatch

router = APIRouter()


@router.get("", response_model=List[Listing])
def list_listings(feed: ListingFeed = Depends(get_listing_feed)):
    return feed.current()


@router.get("/{listing_id}", response_model=Listing)
def get_listing(listing_id: str, store: ListingStore = Depends(get_listing_store)):
    return store.get(listing_id)


@router.post("", response_model=Listing, status_code=status.HTTP_201_CREATED)
def add_listing(
    draft: ListingDraft,
    store: ListingStore = Depends(get_listing_store),
    feed: ListingFeed = Depends(get_listing_feed),
    user: AuthUser = Depends(get_current_user),
):
    listing = create_listing(store, draft, user)
    feed.refresh()
    return listing


@router.patch("/{listing_id}", response_model=Listing)
def edit_listing(
    listing_id: str,
    patch: ListingPatch,
    store: ListingStore = Depends(get_listing_store),
    feed: ListingFeed = Depends(get_listing_feed),
    user: AuthUser = Depends(get_current_user),
):
    listing = update_listing(store, listing_id, patch, user)
    feed.refresh()
    return listing


@router.delete("/{listing_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_listing(
    listing_id: str,
    store: ListingStore = Depends(get_listing_store),
    feed: ListingFeed = Depends(get_listing_feed),
    user: AuthUser = Depends(get_current_user),
):
    delete_listing(store, listing_id, user)
    feed.refresh()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
