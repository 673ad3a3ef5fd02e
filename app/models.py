"""
SQLAlchemy Database Models

Collections of the ordering backend:
- Orders with their status lifecycle
- Restaurants and their menu items
- User profiles keyed by Firebase UID

JSON columns hold the nested documents (order items, payment method,
delivery address, saved addresses) in their camelCase wire shape.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from app.database import Base


def new_id() -> str:
    """Opaque 32-character identifier."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class OrderStatus(str, enum.Enum):
    """Order status tokens, exactly as they appear on the wire."""
    PENDING = "pending"
    PROCESSING = "processing"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "outForDelivery"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentType(str, enum.Enum):
    """How the customer pays."""
    CREDIT = "credit"
    DIGITAL = "digital"
    CASH = "cash"


class Order(Base):
    """
    Placed order.

    Everything except ``status`` is fixed at checkout. ``total`` is stored as
    submitted by the client and never recomputed from ``items``.
    """
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=new_id)
    order_number = Column(String(32), nullable=False, unique=True, index=True)

    # =========================================================================
    # OWNER
    # =========================================================================
    user_id = Column(String(64), nullable=False, index=True)
    user_firebase_uid = Column(String(128), nullable=False, index=True)

    # =========================================================================
    # CONTENTS
    # =========================================================================
    items = Column(JSON, nullable=False)  # list of order item documents
    total = Column(Float, nullable=False)
    payment_method = Column(JSON, nullable=False)
    delivery_address = Column(JSON, nullable=False)  # free text or structured

    # =========================================================================
    # LIFECYCLE
    # =========================================================================
    status = Column(
        Enum(OrderStatus, name="order_status", values_callable=_enum_values),
        default=OrderStatus.PROCESSING,
        nullable=False,
        index=True
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    __table_args__ = (
        Index("ix_orders_user_history", "user_firebase_uid", "created_at"),
        Index("ix_orders_status_created", "status", "created_at"),
        Index("ix_orders_user_status", "user_id", "status"),
    )

    def __repr__(self):
        return f"<Order {self.order_number} - {self.status.value}>"


class Restaurant(Base):
    """Restaurant listed in the app."""
    __tablename__ = "restaurants"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(120), nullable=False)
    cuisine = Column(String(60), nullable=False)
    rating = Column(Float, nullable=False, default=0.0)
    delivery_time = Column(String(40), nullable=False)
    min_order = Column(Float, nullable=False)
    distance = Column(Float, nullable=False)
    image = Column(String(500), nullable=False)
    address = Column(JSON, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    __table_args__ = (
        Index("ix_restaurants_active_cuisine", "is_active", "cuisine"),
        Index("ix_restaurants_active_rating", "is_active", "rating"),
    )

    def __repr__(self):
        return f"<Restaurant {self.name} - {self.cuisine}>"


class MenuItem(Base):
    """Dish offered by a restaurant."""
    __tablename__ = "menu_items"

    id = Column(String(32), primary_key=True, default=new_id)
    restaurant_id = Column(
        String(32),
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name = Column(String(120), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    category = Column(String(60), nullable=False, index=True)
    image = Column(String(500), nullable=False)
    is_vegetarian = Column(Boolean, nullable=False, default=False)
    is_spicy = Column(Boolean, nullable=False, default=False)
    is_available = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    restaurant = relationship("Restaurant", lazy="selectin")

    __table_args__ = (
        Index("ix_menu_items_restaurant_available", "restaurant_id", "is_available"),
        Index("ix_menu_items_restaurant_category", "restaurant_id", "category"),
    )

    def __repr__(self):
        return f"<MenuItem {self.name} - {self.price}>"


class User(Base):
    """
    Customer profile.

    Identity lives in Firebase; this row only carries profile data and the
    saved delivery addresses.
    """
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    firebase_uid = Column(String(128), nullable=False, unique=True, index=True)
    name = Column(String(120), nullable=True)
    email = Column(String(255), nullable=True, unique=True)
    phone = Column(String(30), nullable=True)

    addresses = Column(JSON, nullable=False, default=list)
    default_address = Column(String(500), nullable=True)
    delivery_address = Column(String(500), nullable=True)
    preferred_payment_method = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<User {self.firebase_uid}>"
