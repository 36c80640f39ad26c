from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..auth import get_current_user
from ..backends import ListingStore, ProfileStore
from ..deps import get_listing_store, get_profile_store
from ..listings import seller_stats
from ..models import AuthUser, Listing, UserProfile
from ..profiles import get_or_create_profile, rename_profile

router = APIRouter()


class RenameRequest(BaseModel):
    name: str


class SellerListings(BaseModel):
    listings: List[Listing]
    stats: Dict[str, Any]


@router.get("/me", response_model=UserProfile)
def me(
    user: AuthUser = Depends(get_current_user),
    profiles: ProfileStore = Depends(get_profile_store),
):
    return get_or_create_profile(profiles, user)


@router.patch("/me", response_model=UserProfile)
def rename(
    payload: RenameRequest,
    user: AuthUser = Depends(get_current_user),
    profiles: ProfileStore = Depends(get_profile_store),
):
    return rename_profile(profiles, user, payload.name)


@router.get("/me/listings", response_model=SellerListings)
def my_listings(
    user: AuthUser = Depends(get_current_user),
    listings: ListingStore = Depends(get_listing_store),
):
    mine = listings.list_by_seller(user.id)
    return SellerListings(listings=mine, stats=seller_stats(mine))
