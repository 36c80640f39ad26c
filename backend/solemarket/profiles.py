import logging
from typing import List

from .backends import ListingStore, ProfileStore, utcnow
from .errors import NotFoundError, ValidationFailedError
from .models import AuthUser, Listing, UserProfile

logger = logging.getLogger(__name__)


def default_name(user: AuthUser) -> str:
    return user.email.split("@")[0] if user.email else "User"


def get_or_create_profile(profiles: ProfileStore, user: AuthUser) -> UserProfile:
    try:
        return profiles.get_profile(user.id)
    except NotFoundError:
        logger.info("Creating missing profile for %s", user.id)
        profile = UserProfile(id=user.id, name=default_name(user), email=user.email, created_at=utcnow())
        return profiles.create_profile(profile)


def rename_profile(profiles: ProfileStore, user: AuthUser, name: str) -> UserProfile:
    if not name or not name.strip():
        raise ValidationFailedError(["Name cannot be empty"])
    get_or_create_profile(profiles, user)
    return profiles.update_profile(user.id, {"name": name.strip()})


def toggle_wishlist(profiles: ProfileStore, user: AuthUser, listing_id: str) -> List[str]:
    """Add the listing to the wishlist, or take it out if it is already there."""
    profile = get_or_create_profile(profiles, user)
    wishlist = list(profile.wishlist)
    if listing_id in wishlist:
        wishlist.remove(listing_id)
    else:
        wishlist.append(listing_id)
    profiles.update_profile(user.id, {"wishlist": wishlist})
    return wishlist


def wishlist_listings(profiles: ProfileStore, listings: ListingStore, user: AuthUser) -> List[Listing]:
    profile = get_or_create_profile(profiles, user)
    if not profile.wishlist:
        return []
    found = {l.id: l for l in listings.get_many(profile.wishlist)}
    return [found[i] for i in profile.wishlist if i in found]
