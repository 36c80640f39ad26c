"""
Cart lines and the cart repositories.

A cart is an ordered list of CartLine identified by (shoe_id, size). The line
helpers never mutate their input. Repositories are injected into every route
that needs a cart; there is no module-level cart state.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from .errors import CartConflictError
from .models import CartLine, Listing, ListingSnapshot

logger = logging.getLogger(__name__)

CartMutation = Callable[[List[CartLine]], List[CartLine]]

MAX_CART_WRITE_ATTEMPTS = 3


def _copy(lines: List[CartLine]) -> List[CartLine]:
    return [line.model_copy() for line in lines]


def remove_line(lines: List[CartLine], shoe_id: str, size: Any) -> List[CartLine]:
    return [line.model_copy() for line in lines if not line.same_line(shoe_id, size)]


def add_line(
    lines: List[CartLine],
    shoe_id: str,
    size: Any,
    quantity: int = 1,
    snapshot: Optional[ListingSnapshot] = None,
) -> List[CartLine]:
    """Increment the (shoe_id, size) line, or append it. A non-positive quantity removes the line."""
    if quantity <= 0:
        return remove_line(lines, shoe_id, size)
    out = _copy(lines)
    for line in out:
        if line.same_line(shoe_id, size):
            line.quantity += quantity
            return out
    out.append(CartLine(shoe_id=shoe_id, size=size, quantity=quantity, shoe=snapshot))
    return out


def set_line_quantity(lines: List[CartLine], shoe_id: str, size: Any, quantity: int) -> List[CartLine]:
    if quantity <= 0:
        return remove_line(lines, shoe_id, size)
    out = _copy(lines)
    for line in out:
        if line.same_line(shoe_id, size):
            line.quantity = quantity
    return out


def attach_snapshots(lines: List[CartLine], listings: Dict[str, Listing]) -> List[CartLine]:
    """Fill each line's snapshot from live listings, dropping lines whose listing is gone."""
    out = []
    for line in lines:
        listing = listings.get(line.shoe_id)
        if listing is None:
            continue
        out.append(line.model_copy(update={"shoe": ListingSnapshot.of(listing)}))
    return out


def strip_snapshots(lines: List[CartLine]) -> List[Dict[str, Any]]:
    return [line.model_dump(by_alias=True, exclude={"shoe"}) for line in lines]


def cart_subtotal(lines: List[CartLine]) -> float:
    return sum((line.shoe.price if line.shoe else 0.0) * line.quantity for line in lines)


class CartRepository(ABC):
    """load/save/clear plus the line mutations, all as read-modify-write."""

    @abstractmethod
    def load(self) -> List[CartLine]:
        raise NotImplementedError

    @abstractmethod
    def save(self, lines: List[CartLine]) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError

    def _mutate(self, mutation: CartMutation) -> List[CartLine]:
        lines = mutation(self.load())
        self.save(lines)
        return lines

    def add_or_increment(
        self,
        shoe_id: str,
        size: Any,
        quantity: int = 1,
        snapshot: Optional[ListingSnapshot] = None,
    ) -> List[CartLine]:
        return self._mutate(lambda lines: add_line(lines, shoe_id, size, quantity, snapshot))

    def update_quantity(self, shoe_id: str, size: Any, quantity: int) -> List[CartLine]:
        return self._mutate(lambda lines: set_line_quantity(lines, shoe_id, size, quantity))

    def remove(self, shoe_id: str, size: Any) -> List[CartLine]:
        return self._mutate(lambda lines: remove_line(lines, shoe_id, size))


class ProfileCartRepository(CartRepository):
    """
    The authenticated user's cart, stored on their profile document.

    Writes carry the profile's cart_version as a compare-and-set token, so two
    overlapping read-modify-write cycles cannot silently lose an update.
    """

    def __init__(self, profiles, listings, user_id: str):
        self.profiles = profiles
        self.listings = listings
        self.user_id = user_id
        self._version: Optional[int] = None

    def _read(self) -> List[CartLine]:
        profile = self.profiles.get_profile(self.user_id)
        self._version = profile.cart_version
        if not profile.cart:
            return []
        ids = list(dict.fromkeys(line.shoe_id for line in profile.cart))
        live = {l.id: l for l in self.listings.get_many(ids)}
        return attach_snapshots(profile.cart, live)

    def load(self) -> List[CartLine]:
        return self._read()

    def save(self, lines: List[CartLine]) -> None:
        if self._version is None:
            self._read()
        expected = self._version
        new_version = (expected or 0) + 1
        self.profiles.update_profile(
            self.user_id,
            {"cart": strip_snapshots(lines), "cart_version": new_version},
            expected_cart_version=expected,
        )
        self._version = new_version

    def clear(self) -> None:
        self._mutate(lambda lines: [])

    def _mutate(self, mutation: CartMutation) -> List[CartLine]:
        attempt = 1
        while True:
            try:
                return super()._mutate(mutation)
            except CartConflictError:
                if attempt >= MAX_CART_WRITE_ATTEMPTS:
                    raise
                logger.info("Cart for user %s changed concurrently, retrying (attempt %d)", self.user_id, attempt)
                attempt += 1
