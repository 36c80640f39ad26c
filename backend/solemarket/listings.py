"""Seller-side listing operations: validation, create, edit, delete, stats."""
import logging
from typing import Any, Dict, Iterable, List, Union

from .backends import ListingStore, utcnow
from .errors import PermissionDeniedError, ValidationFailedError
from .models import AuthUser, Listing, ListingDraft, ListingPatch

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "brand", "price", "image")


def split_csv(value: Union[str, Iterable[str]]) -> List[str]:
    items = value.split(",") if isinstance(value, str) else list(value)
    return [item.strip() for item in items if item and item.strip()]


def normalize_sizes(sizes: Iterable[float]) -> List[float]:
    return sorted(set(float(s) for s in sizes))


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_draft(draft: ListingDraft) -> List[str]:
    errors = []
    missing = [f for f in REQUIRED_FIELDS if _blank(getattr(draft, f))]
    if missing:
        errors.append(f"Missing required fields: {', '.join(missing)}")
    if draft.price is not None and draft.price <= 0:
        errors.append("Price must be greater than zero")
    if draft.original_price is not None and draft.original_price <= 0:
        errors.append("Original price must be greater than zero")
    if not draft.sizes:
        errors.append("Select at least one size")
    return errors


def validate_patch(patch: ListingPatch) -> List[str]:
    errors = []
    for f in ("name", "brand", "image"):
        value = getattr(patch, f)
        if value is not None and not value.strip():
            errors.append(f"{f} cannot be empty")
    if patch.price is not None and patch.price <= 0:
        errors.append("Price must be greater than zero")
    if patch.sizes is not None and not patch.sizes:
        errors.append("Select at least one size")
    return errors


def draft_to_fields(draft: ListingDraft, seller: AuthUser) -> Dict[str, Any]:
    now = utcnow()
    return {
        "name": draft.name.strip(),
        "brand": draft.brand.strip(),
        "price": draft.price,
        "original_price": draft.original_price if draft.original_price is not None else draft.price,
        "image": draft.image.strip(),
        "additional_images": split_csv(draft.additional_images),
        "description": draft.description.strip(),
        "condition": draft.condition,
        "category": draft.category,
        "color": draft.color.strip(),
        "material": draft.material.strip(),
        "weight": draft.weight.strip(),
        "manufacturer": draft.manufacturer.strip(),
        "country_of_origin": draft.country_of_origin.strip(),
        "sku": draft.sku.strip(),
        "target_gender": draft.target_gender,
        "age_group": draft.age_group,
        "season": draft.season,
        "style": draft.style,
        "sizes": normalize_sizes(draft.sizes),
        "featured": draft.featured,
        "tags": split_csv(draft.tags),
        "rating": 0,
        "rating_count": 0,
        "views": 0,
        "likes": 0,
        "seller_id": seller.id,
        "seller_email": seller.email or "",
        "created_at": now,
        "updated_at": now,
        "is_active": True,
        "in_stock": True,
    }


def create_listing(store: ListingStore, draft: ListingDraft, seller: AuthUser) -> Listing:
    errors = validate_draft(draft)
    if errors:
        raise ValidationFailedError(errors)
    listing = store.create(draft_to_fields(draft, seller))
    logger.info("Seller %s listed %s (%s)", seller.id, listing.id, listing.name)
    return listing


def _owned(store: ListingStore, listing_id: str, user: AuthUser) -> Listing:
    listing = store.get(listing_id)
    if listing.seller_id != user.id:
        raise PermissionDeniedError("Only the seller can change this listing")
    return listing


def update_listing(store: ListingStore, listing_id: str, patch: ListingPatch, user: AuthUser) -> Listing:
    _owned(store, listing_id, user)
    errors = validate_patch(patch)
    if errors:
        raise ValidationFailedError(errors)
    fields = patch.model_dump(exclude_none=True)
    for f in ("name", "brand", "image"):
        if f in fields:
            fields[f] = fields[f].strip()
    if "sizes" in fields:
        fields["sizes"] = normalize_sizes(fields["sizes"])
    fields["updated_at"] = utcnow().isoformat()
    return store.update(listing_id, fields)


def delete_listing(store: ListingStore, listing_id: str, user: AuthUser) -> None:
    _owned(store, listing_id, user)
    store.delete(listing_id)
    logger.info("Seller %s deleted listing %s", user.id, listing_id)


def seller_stats(listings: List[Listing]) -> Dict[str, Any]:
    active = [l for l in listings if l.is_active and l.in_stock is not False]
    return {
        "total": len(listings),
        "active": len(active),
        "total_value": round(sum(l.price for l in listings), 2),
    }
