"""
Pydantic Schemas for Request/Response Validation

All payloads use camelCase on the wire (``orderNumber``, ``createdAt``,
``restaurantName`` ...). Requests may also use the snake_case field names.
"""

import re
from datetime import datetime, timezone
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from app.models import OrderStatus


def _ensure_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything we store is UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_ensure_utc)]
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ApiModel(BaseModel):
    """Base for every schema: camelCase aliases, ORM-friendly."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(ApiModel):
    """Plain confirmation body."""
    message: str


# =============================================================================
# ORDERS
# =============================================================================

class OrderItem(ApiModel):
    """Single line of an order, snapshotted from the menu at checkout."""
    name: NonEmptyStr = Field(..., max_length=200, examples=["Pizza"])
    price: float = Field(..., ge=0, examples=[300])
    quantity: int = Field(..., ge=1, examples=[2])
    restaurant_name: NonEmptyStr = Field(..., max_length=200, examples=["Bella Napoli"])
    image: Optional[str] = None
    menu_item_id: Optional[str] = None


class CardDetails(ApiModel):
    card_number: NonEmptyStr
    card_name: NonEmptyStr
    card_expiry: NonEmptyStr
    # Accepted from the checkout form, never stored or echoed back
    card_cvv: Optional[str] = Field(None, alias="cardCVV", exclude=True)

    @field_serializer("card_number")
    def mask_card_number(self, value: str) -> str:
        return f"**** {value[-4:]}"


class DigitalDetails(ApiModel):
    digital_payment_code: NonEmptyStr


class CreditPayment(ApiModel):
    type: Literal["credit"]
    details: CardDetails


class DigitalPayment(ApiModel):
    type: Literal["digital"]
    details: DigitalDetails


class CashPayment(ApiModel):
    type: Literal["cash"]
    details: Optional[dict[str, Any]] = None


PaymentMethod = Annotated[
    Union[CreditPayment, DigitalPayment, CashPayment],
    Field(discriminator="type"),
]


class StructuredAddress(ApiModel):
    label: Optional[str] = None
    street: NonEmptyStr
    city: NonEmptyStr
    state: NonEmptyStr
    postal_code: NonEmptyStr


# Either a free-text line or a structured address
DeliveryAddress = Union[NonEmptyStr, StructuredAddress]


class OrderCreate(ApiModel):
    """
    Checkout payload.

    ``id``, ``orderNumber``, ``status`` and ``createdAt`` are assigned by the
    server; if a client sends them they are ignored.
    """
    user_id: NonEmptyStr
    user_firebase_uid: NonEmptyStr
    items: List[OrderItem] = Field(..., min_length=1)
    total: float = Field(..., ge=0, examples=[686])
    payment_method: PaymentMethod
    delivery_address: DeliveryAddress


class OrderStatusUpdate(ApiModel):
    """Manual status change; any status may follow any other."""
    status: OrderStatus

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: Any) -> OrderStatus:
        try:
            return OrderStatus(v)
        except (ValueError, TypeError):
            raise ValueError("Invalid status")


class OrderResponse(ApiModel):
    id: str
    order_number: str
    user_id: str
    user_firebase_uid: str
    items: List[OrderItem]
    total: float
    status: OrderStatus
    created_at: UtcDatetime
    payment_method: PaymentMethod
    delivery_address: DeliveryAddress


class Pagination(ApiModel):
    page: int
    limit: int
    total: int
    pages: int


class OrderPage(ApiModel):
    orders: List[OrderResponse]
    pagination: Pagination


# =============================================================================
# RESTAURANTS
# =============================================================================

class RestaurantAddress(ApiModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None


class RestaurantCreate(ApiModel):
    name: NonEmptyStr = Field(..., max_length=120)
    cuisine: NonEmptyStr = Field(..., max_length=60)
    rating: float = Field(default=0.0, ge=0, le=5)
    delivery_time: NonEmptyStr = Field(..., examples=["25-30 min"])
    min_order: float = Field(..., ge=0)
    distance: float = Field(..., ge=0)
    image: NonEmptyStr
    address: Optional[RestaurantAddress] = None
    is_active: bool = True


class RestaurantUpdate(ApiModel):
    """Partial update; omitted or null fields are left as they are."""
    name: Optional[NonEmptyStr] = Field(None, max_length=120)
    cuisine: Optional[NonEmptyStr] = Field(None, max_length=60)
    rating: Optional[float] = Field(None, ge=0, le=5)
    delivery_time: Optional[NonEmptyStr] = None
    min_order: Optional[float] = Field(None, ge=0)
    distance: Optional[float] = Field(None, ge=0)
    image: Optional[NonEmptyStr] = None
    address: Optional[RestaurantAddress] = None
    is_active: Optional[bool] = None


class RestaurantResponse(ApiModel):
    id: str
    name: str
    cuisine: str
    rating: float
    delivery_time: str
    min_order: float
    distance: float
    image: str
    address: Optional[RestaurantAddress] = None
    is_active: bool
    created_at: UtcDatetime


class RestaurantSummary(ApiModel):
    id: str
    name: str
    cuisine: str


# =============================================================================
# MENU ITEMS
# =============================================================================

class MenuItemCreate(ApiModel):
    restaurant_id: NonEmptyStr
    name: NonEmptyStr = Field(..., max_length=120)
    description: NonEmptyStr
    price: float = Field(..., ge=0)
    category: NonEmptyStr = Field(..., max_length=60)
    image: NonEmptyStr
    is_vegetarian: bool = False
    is_spicy: bool = False
    is_available: bool = True


class MenuItemUpdate(ApiModel):
    """Partial update; omitted or null fields are left as they are."""
    restaurant_id: Optional[NonEmptyStr] = None
    name: Optional[NonEmptyStr] = Field(None, max_length=120)
    description: Optional[NonEmptyStr] = None
    price: Optional[float] = Field(None, ge=0)
    category: Optional[NonEmptyStr] = Field(None, max_length=60)
    image: Optional[NonEmptyStr] = None
    is_vegetarian: Optional[bool] = None
    is_spicy: Optional[bool] = None
    is_available: Optional[bool] = None


class MenuItemResponse(ApiModel):
    id: str
    restaurant_id: str
    name: str
    description: str
    price: float
    category: str
    image: str
    is_vegetarian: bool
    is_spicy: bool
    is_available: bool
    created_at: UtcDatetime
    restaurant: Optional[RestaurantSummary] = None


# =============================================================================
# USERS
# =============================================================================

class UserAddress(ApiModel):
    """Saved address; ``id`` is assigned by the server."""
    id: Optional[str] = None
    label: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    is_default: bool = False


def _validate_email(v: Optional[str]) -> Optional[str]:
    if v is None or v == "":
        return None
    if not re.match(r'^[\w\.+-]+@[\w\.-]+\.\w+$', v):
        raise ValueError('Invalid email format')
    return v.lower()


OptionalEmail = Annotated[Optional[str], AfterValidator(_validate_email)]


class UserCreate(ApiModel):
    firebase_uid: NonEmptyStr
    name: Optional[str] = Field(None, max_length=120)
    email: OptionalEmail = None
    phone: Optional[str] = Field(None, max_length=30)
    addresses: List[UserAddress] = Field(default_factory=list)
    default_address: Optional[str] = None
    delivery_address: Optional[str] = None


class UserUpdate(ApiModel):
    """Profile fields a user may change; omitted fields are left as they are."""
    name: Optional[str] = Field(None, max_length=120)
    email: OptionalEmail = None
    phone: Optional[str] = Field(None, max_length=30)
    default_address: Optional[str] = None
    delivery_address: Optional[str] = None
    preferred_payment_method: Optional[str] = Field(None, max_length=50)


class AddressUpsert(ApiModel):
    address: UserAddress
    address_id: Optional[str] = None


class UserResponse(ApiModel):
    id: str
    firebase_uid: str
    name: Optional[str] = None
    email: OptionalEmail = None
    phone: Optional[str] = None
    addresses: List[UserAddress] = Field(default_factory=list)
    default_address: Optional[str] = None
    delivery_address: Optional[str] = None
    preferred_payment_method: Optional[str] = None
    created_at: UtcDatetime
    updated_at: Optional[UtcDatetime] = None
