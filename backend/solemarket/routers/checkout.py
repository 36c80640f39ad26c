from typing import Optional

from fastapi import APIRouter, Depends, status

from ..auth import get_current_user, get_optional_user
from ..backends import OrderStore, ProfileStore
from ..cart import CartRepository
from ..checkout import Quote, place_order, quote
from ..deps import get_cart, get_order_store, get_profile_store
from ..models import AuthUser, CardInfo, Order, PaymentMethod, Record, ShippingInfo
from ..profiles import get_or_create_profile

router = APIRouter()


class CheckoutRequest(Record):
    shipping_info: ShippingInfo
    payment_method: PaymentMethod = "card"
    card_info: Optional[CardInfo] = None


@router.post("/quote", response_model=Quote)
def get_quote(cart: CartRepository = Depends(get_cart)):
    return quote(cart.load())


@router.get("/shipping", response_model=ShippingInfo)
def shipping_defaults(
    user: AuthUser = Depends(get_current_user),
    profiles: ProfileStore = Depends(get_profile_store),
):
    """
    Pre-fill the shipping form from the signed-in user's profile.
    """
    profile = get_or_create_profile(profiles, user)
    return ShippingInfo(
        full_name=profile.name,
        email=user.email or profile.email or "",
        phone=profile.phone,
        address=profile.address,
        city=profile.city,
        state=profile.state,
        zip_code=profile.zip_code,
        country=profile.country or "USA",
    )


@router.post("", response_model=Order, status_code=status.HTTP_201_CREATED)
def checkout(
    request: CheckoutRequest,
    cart: CartRepository = Depends(get_cart),
    orders: OrderStore = Depends(get_order_store),
    user: Optional[AuthUser] = Depends(get_optional_user),
):
    return place_order(
        cart,
        orders,
        request.shipping_info,
        request.payment_method,
        request.card_info,
        user=user,
    )
