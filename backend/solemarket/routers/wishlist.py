from typing import List

from fastapi import APIRouter, Depends

from ..auth import get_current_user
from ..backends import ListingStore, ProfileStore
from ..deps import get_listing_store, get_profile_store
from ..models import AuthUser, Listing, Record
from ..profiles import toggle_wishlist, wishlist_listings

router = APIRouter()


class WishlistState(Record):
    wishlist: List[str]
    liked: bool


@router.get("", response_model=List[Listing])
def get_wishlist(
    user: AuthUser = Depends(get_current_user),
    profiles: ProfileStore = Depends(get_profile_store),
    listings: ListingStore = Depends(get_listing_store),
):
    return wishlist_listings(profiles, listings, user)


@router.post("/{shoe_id}", response_model=WishlistState)
def toggle(
    shoe_id: str,
    user: AuthUser = Depends(get_current_user),
    profiles: ProfileStore = Depends(get_profile_store),
    listings: ListingStore = Depends(get_listing_store),
):
    listings.get(shoe_id)
    wishlist = toggle_wishlist(profiles, user, shoe_id)
    return WishlistState(wishlist=wishlist, liked=shoe_id in wishlist)
