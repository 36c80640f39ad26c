"""
Checkout: price a cart, validate the shipping and payment form, place the order.

Payment is not processed; a placed order is recorded with status "confirmed"
and the cart it came from is cleared.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from pydantic import BaseModel, EmailStr, TypeAdapter, ValidationError

from .backends import OrderStore, utcnow
from .cart import CartRepository, cart_subtotal
from .errors import EmptyCartError, SoleMarketError, ValidationFailedError
from .models import AuthUser, CardInfo, CartLine, Order, OrderLine, PaymentMethod, ShippingInfo

logger = logging.getLogger(__name__)

FREE_SHIPPING_OVER = 100.0
SHIPPING_FEE = 9.99
TAX_RATE = 0.08
DELIVERY_DAYS = 7

REQUIRED_SHIPPING = ("full_name", "email", "phone", "address", "city", "state", "zip_code")

_email = TypeAdapter(EmailStr)


class Quote(BaseModel):
    item_count: int
    subtotal: float
    shipping: float
    tax: float
    total: float


def quote(lines: List[CartLine]) -> Quote:
    subtotal = cart_subtotal(lines)
    shipping = 0.0 if subtotal > FREE_SHIPPING_OVER else SHIPPING_FEE
    tax = subtotal * TAX_RATE
    return Quote(
        item_count=sum(line.quantity for line in lines),
        subtotal=round(subtotal, 2),
        shipping=shipping,
        tax=round(tax, 2),
        total=round(subtotal + shipping + tax, 2),
    )


def _digits(value: str) -> str:
    return "".join(value.split())


def validate_checkout(
    shipping: ShippingInfo,
    payment_method: PaymentMethod,
    card: Optional[CardInfo] = None,
) -> List[str]:
    errors = []
    missing = [f for f in REQUIRED_SHIPPING if not getattr(shipping, f).strip()]
    if missing:
        errors.append(f"Missing shipping information: {', '.join(missing)}")
    if shipping.email.strip():
        try:
            _email.validate_python(shipping.email.strip())
        except ValidationError:
            errors.append("Invalid email address")

    if payment_method == "card":
        card = card or CardInfo()
        if not all([card.card_number, card.expiry_date, card.cvv, card.cardholder_name]):
            errors.append("Missing card information")
        else:
            number = _digits(card.card_number)
            if not number.isdigit() or len(number) < 13:
                errors.append("Invalid card number")
            cvv = card.cvv.strip()
            if not cvv.isdigit() or not 3 <= len(cvv) <= 4:
                errors.append("Invalid CVV")
    return errors


def order_lines(lines: List[CartLine]) -> List[OrderLine]:
    out = []
    for line in lines:
        shoe = line.shoe
        price = shoe.price if shoe else 0.0
        out.append(
            OrderLine(
                shoe_id=line.shoe_id,
                shoe_name=shoe.name if shoe else "",
                shoe_brand=shoe.brand if shoe else "",
                shoe_image=shoe.image if shoe else "",
                size=line.size,
                quantity=line.quantity,
                unit_price=price,
                total_price=round(price * line.quantity, 2),
            )
        )
    return out


def place_order(
    cart: CartRepository,
    orders: OrderStore,
    shipping: ShippingInfo,
    payment_method: PaymentMethod,
    card: Optional[CardInfo] = None,
    user: Optional[AuthUser] = None,
    clock: Callable[[], datetime] = utcnow,
) -> Order:
    lines = cart.load()
    if not lines:
        raise EmptyCartError("Your cart is empty")
    errors = validate_checkout(shipping, payment_method, card)
    if errors:
        raise ValidationFailedError(errors)

    now = clock()
    totals = quote(lines)
    order = Order(
        order_number=f"ORD-{int(now.timestamp() * 1000)}",
        user_id=user.id if user else "guest",
        user_email=(user.email if user else None) or shipping.email,
        customer_type="registered" if user else "guest",
        items=order_lines(lines),
        shipping_info=shipping,
        payment_method=payment_method,
        subtotal=totals.subtotal,
        shipping=totals.shipping,
        tax=totals.tax,
        total=totals.total,
        notes="Registered user order" if user else "Guest order - no user account",
        created_at=now,
        estimated_delivery=now + timedelta(days=DELIVERY_DAYS),
    )
    stored = orders.create_order(order)
    logger.info("Order %s placed by %s, total %.2f", stored.order_number, stored.user_id, stored.total)

    try:
        cart.clear()
    except SoleMarketError:
        # The order stands even if the cart could not be emptied.
        logger.exception("Failed to clear cart after order %s", stored.order_number)
    return stored
