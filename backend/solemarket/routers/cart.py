import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import field_validator

from ..backends import ListingStore
from ..cart import CartRepository, cart_subtotal
from ..deps import get_cart, get_listing_store
from ..errors import BackendError
from ..models import CartLine, ListingSnapshot, Record, format_size

logger = logging.getLogger(__name__)

router = APIRouter()


class CartView(Record):
    items: List[CartLine]
    item_count: int
    subtotal: float
    error: Optional[str] = None

    @classmethod
    def of(cls, lines: List[CartLine], error: Optional[str] = None) -> "CartView":
        return cls(
            items=lines,
            item_count=sum(line.quantity for line in lines),
            subtotal=round(cart_subtotal(lines), 2),
            error=error,
        )


class LineChange(Record):
    shoe_id: str
    size: str
    quantity: int = 1

    @field_validator("size", mode="before")
    @classmethod
    def _size_as_str(cls, value: Any) -> Any:
        return format_size(value)


@router.get("", response_model=CartView)
def get_cart_view(cart: CartRepository = Depends(get_cart)):
    try:
        return CartView.of(cart.load())
    except BackendError as exc:
        logger.warning("Cart unavailable: %s", exc)
        return CartView.of([], error=str(exc))


@router.post("/items", response_model=CartView)
def add_item(
    change: LineChange,
    cart: CartRepository = Depends(get_cart),
    listings: ListingStore = Depends(get_listing_store),
):
    listing = listings.get(change.shoe_id)
    if listing.sizes:
        try:
            wanted = float(change.size)
        except ValueError:
            wanted = None
        if wanted not in listing.sizes:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Size {change.size} is not available")
    lines = cart.add_or_increment(listing.id, change.size, change.quantity, ListingSnapshot.of(listing))
    return CartView.of(lines)


@router.patch("/items", response_model=CartView)
def update_item(change: LineChange, cart: CartRepository = Depends(get_cart)):
    return CartView.of(cart.update_quantity(change.shoe_id, change.size, change.quantity))


@router.delete("/items/{shoe_id}/{size}", response_model=CartView)
def remove_item(shoe_id: str, size: str, cart: CartRepository = Depends(get_cart)):
    return CartView.of(cart.remove(shoe_id, size))


@router.delete("", response_model=CartView)
def clear_cart(cart: CartRepository = Depends(get_cart)):
    cart.clear()
    return CartView.of([])
