import math
from datetime import datetime
from enum import Enum
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

GUEST_CART_VERSION = 1


def _number_str(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def format_size(value: Any) -> Any:
    """Render sizes the way the mobile client shows them: 9.0 -> "9", "9.50" -> "9.5"."""
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return value.strip()
        return _number_str(number) if math.isfinite(number) else value
    return _number_str(value)


def _compact(value: Any) -> Any:
    if isinstance(value, list):
        return [v for v in value if v is not None]
    return value


class Record(BaseModel):
    """
    Base for documents read from Supabase or the mobile client.
    Accepts snake_case columns and camelCase document keys; nulls fall back to field defaults.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: _compact(v) for k, v in data.items() if v is not None}
        return data


# --- shoes ---
class Listing(Record):
    id: str = ""
    name: str = ""
    brand: str = ""
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    category: str = ""
    color: str = ""
    material: str = ""
    target_gender: str = ""
    age_group: str = ""
    season: str = ""
    style: str = ""
    condition: str = ""
    price: float = 0.0
    original_price: Optional[float] = None
    rating: float = 0.0
    rating_count: int = 0
    views: int = 0
    likes: int = 0
    featured: bool = False
    in_stock: Optional[bool] = None  # None = stock never recorded
    is_active: bool = True
    sizes: List[float] = Field(default_factory=list)
    image: str = ""
    additional_images: List[str] = Field(default_factory=list)
    weight: str = ""
    manufacturer: str = ""
    country_of_origin: str = ""
    sku: str = ""
    seller_id: str = ""
    seller_email: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return _number_str(value)


class ListingSnapshot(Record):
    """Display fields copied into a cart line at add time."""

    id: str
    name: str = ""
    brand: str = ""
    price: float = 0.0
    image: str = ""

    @classmethod
    def of(cls, listing: Listing) -> "ListingSnapshot":
        return cls(id=listing.id, name=listing.name, brand=listing.brand, price=listing.price, image=listing.image)


class CartLine(Record):
    shoe_id: str
    size: str
    quantity: int = 1
    shoe: Optional[ListingSnapshot] = None

    @field_validator("shoe_id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return _number_str(value)

    @field_validator("size", mode="before")
    @classmethod
    def _size_as_str(cls, value: Any) -> Any:
        return format_size(value)

    def same_line(self, shoe_id: str, size: Any) -> bool:
        return self.shoe_id == shoe_id and self.size == format_size(size)


class GuestCartRecord(Record):
    version: int = GUEST_CART_VERSION
    items: List[CartLine] = Field(default_factory=list)
    timestamp: int  # epoch ms of the last write


# --- catalog query ---
class PriceRange(Record):
    min: float = Field(default=0.0, ge=0)
    max: Optional[float] = None  # None = no upper bound


class SortKey(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    PRICE_LOW = "priceLow"
    PRICE_HIGH = "priceHigh"
    RATING = "rating"
    POPULAR = "popular"
    NAME_AZ = "nameAZ"
    NAME_ZA = "nameZA"
    FEATURED = "featured"


class FilterSpecification(Record):
    search: str = ""
    brands: List[str] = Field(default_factory=list)
    price_range: PriceRange = Field(default_factory=PriceRange)
    sizes: List[float] = Field(default_factory=list)
    conditions: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    materials: List[str] = Field(default_factory=list)
    genders: List[str] = Field(default_factory=list)
    age_groups: List[str] = Field(default_factory=list)
    seasons: List[str] = Field(default_factory=list)
    styles: List[str] = Field(default_factory=list)
    rating: float = Field(default=0.0, ge=0, le=5)
    featured: bool = False
    in_stock: bool = False


# --- users ---
class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None


class UserProfile(Record):
    id: str
    name: str = ""
    email: Optional[str] = None
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = "USA"
    role: Literal["customer", "admin"] = "customer"
    cart: List[CartLine] = Field(default_factory=list)
    cart_version: int = 0
    wishlist: List[str] = Field(default_factory=list)
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- listing write path ---
class ListingDraft(Record):
    """Seller input for a new or edited listing; comma-separated strings are accepted for list fields."""

    name: str = ""
    brand: str = ""
    price: Optional[float] = None
    original_price: Optional[float] = None
    image: str = ""
    additional_images: Union[List[str], str] = Field(default_factory=list)
    description: str = ""
    condition: str = "new"
    category: str = "sneakers"
    color: str = ""
    material: str = ""
    weight: str = ""
    manufacturer: str = ""
    country_of_origin: str = ""
    sku: str = ""
    tags: Union[List[str], str] = Field(default_factory=list)
    target_gender: str = "unisex"
    age_group: str = "adult"
    season: str = "all-season"
    style: str = "casual"
    featured: bool = False
    sizes: List[float] = Field(default_factory=list)


class ListingPatch(Record):
    name: Optional[str] = None
    brand: Optional[str] = None
    price: Optional[float] = None
    original_price: Optional[float] = None
    image: Optional[str] = None
    description: Optional[str] = None
    condition: Optional[str] = None
    category: Optional[str] = None
    color: Optional[str] = None
    material: Optional[str] = None
    sizes: Optional[List[float]] = None
    featured: Optional[bool] = None
    in_stock: Optional[bool] = None
    is_active: Optional[bool] = None


# --- checkout ---
PaymentMethod = Literal["card", "paypal", "applepay"]


class ShippingInfo(Record):
    full_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = "USA"


class CardInfo(Record):
    card_number: str = ""
    expiry_date: str = ""
    cvv: str = ""
    cardholder_name: str = ""


class OrderLine(Record):
    shoe_id: str
    shoe_name: str = ""
    shoe_brand: str = ""
    shoe_image: str = ""
    size: str
    quantity: int
    unit_price: float
    total_price: float


class Order(Record):
    id: Optional[str] = None
    order_number: str
    user_id: str
    user_email: Optional[str] = None
    customer_type: Literal["registered", "guest"]
    items: List[OrderLine]
    shipping_info: ShippingInfo
    payment_method: PaymentMethod
    subtotal: float
    shipping: float
    tax: float
    total: float
    status: str = "confirmed"
    notes: str = ""
    created_at: datetime
    estimated_delivery: datetime
