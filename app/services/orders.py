"""
Order Service

Persistence-side operations on orders: checkout, lookups, manual status
changes and the time-based auto-update.

Usage:
    from app.services.orders import get_order_service

    @router.post("/{order_id}/auto-update-status")
    async def auto_update(order_id: str, service: OrderService = Depends(get_order_service)):
        return await service.auto_update_status(order_id)
"""

import logging
import math
import secrets
from datetime import datetime
from typing import Optional, Sequence

from fastapi import Depends
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.errors import ConflictError, NotFoundError
from app.database import get_db
from app.models import Order, OrderStatus
from app.schemas import OrderCreate, StructuredAddress
from app.services.order_status import (
    elapsed_minutes,
    is_in_progress,
    next_status,
    settle_status,
)

logger = logging.getLogger(__name__)

# Attempts at drawing an unused order number before giving up
MAX_ORDER_NUMBER_ATTEMPTS = 5


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


class OrderService:
    """
    Order operations bound to one database session.

    Attributes:
        db: Session of the current request
        settings: Application settings (order number prefix, catch-up mode)
    """

    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    def _generate_order_number(self) -> str:
        """Human-facing number such as ``ORD-3F9A0C1B``."""
        return f"{self.settings.order_number_prefix}-{secrets.token_hex(4).upper()}"

    # =========================================================================
    # CHECKOUT
    # =========================================================================

    async def create(self, data: OrderCreate) -> Order:
        """
        Persist a new order in ``processing`` state.

        The total is stored exactly as submitted.

        Raises:
            ConflictError: If no unused order number could be drawn
        """
        address = data.delivery_address
        if isinstance(address, StructuredAddress):
            address = address.model_dump(by_alias=True, exclude_none=True)

        for attempt in range(1, MAX_ORDER_NUMBER_ATTEMPTS + 1):
            order = Order(
                order_number=self._generate_order_number(),
                user_id=data.user_id,
                user_firebase_uid=data.user_firebase_uid,
                items=[item.model_dump(by_alias=True, exclude_none=True) for item in data.items],
                total=data.total,
                status=OrderStatus.PROCESSING,
                payment_method=data.payment_method.model_dump(by_alias=True, exclude_none=True),
                delivery_address=address,
            )
            self.db.add(order)
            number = order.order_number
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                logger.warning(
                    f"Order number {number} already taken "
                    f"(attempt {attempt}/{MAX_ORDER_NUMBER_ATTEMPTS})"
                )
                continue

            await self.db.refresh(order)
            logger.info(
                f"Order {order.order_number} created for user {order.user_firebase_uid} "
                f"({len(order.items)} items, total {order.total})"
            )
            return order

        raise ConflictError(["orderNumber"])

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    async def get(self, order_id: str) -> Order:
        """
        Raises:
            NotFoundError: If no order has this id
        """
        order = await self.db.get(Order, order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    async def list_all(self) -> Sequence[Order]:
        result = await self.db.execute(select(Order).order_by(Order.created_at.desc()))
        return result.scalars().all()

    async def list_by_user(self, user_id: str) -> Sequence[Order]:
        result = await self.db.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
        )
        return result.scalars().all()

    async def list_by_firebase_uid(
        self,
        firebase_uid: str,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[Sequence[Order], int]:
        """Newest-first page of a user's order history, plus the total count."""
        total_result = await self.db.execute(
            select(func.count(Order.id)).where(Order.user_firebase_uid == firebase_uid)
        )
        total = total_result.scalar() or 0

        result = await self.db.execute(
            select(Order)
            .where(Order.user_firebase_uid == firebase_uid)
            .order_by(Order.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return result.scalars().all(), total

    # =========================================================================
    # STATUS CHANGES
    # =========================================================================

    async def auto_update_status(
        self,
        order_id: str,
        now: Optional[datetime] = None,
    ) -> Order:
        """
        Advance an in-progress order according to the time since checkout.

        Orders that are not in progress are returned untouched. At most one
        write is issued, and only the status column is written. The write is
        conditional on the status still being the one read here; if another
        request got there first the stored order is returned as it is.

        Raises:
            NotFoundError: If no order has this id
        """
        order = await self.get(order_id)
        current = order.status
        if not is_in_progress(current):
            return order

        elapsed = elapsed_minutes(order.created_at, now)
        if self.settings.order_auto_advance_catch_up:
            target = settle_status(current, elapsed)
        else:
            target = next_status(current, elapsed)

        if target == current:
            return order

        result = await self.db.execute(
            update(Order)
            .where(Order.id == order.id, Order.status == current)
            .values(status=target)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        if result.rowcount == 0:
            number = order.order_number
            stored = await self.db.get(Order, order_id, populate_existing=True)
            if stored is None:
                logger.info(f"Order {number} deleted before its status could advance")
                raise NotFoundError("Order not found")
            logger.info(
                f"Order {number} changed concurrently; "
                f"skipped {current.value} -> {target.value}"
            )
            return stored

        logger.info(
            f"Order {order.order_number}: {current.value} -> {target.value} "
            f"({elapsed:.1f} min since checkout)"
        )
        await self.db.refresh(order)
        return order

    async def update_status(self, order_id: str, status: OrderStatus) -> Order:
        """
        Set the status directly. Any status may replace any other.

        Raises:
            NotFoundError: If no order has this id
        """
        order = await self.get(order_id)
        previous = order.status
        order.status = status
        await self.db.commit()
        await self.db.refresh(order)

        logger.info(f"Order {order.order_number}: {previous.value} -> {status.value} (manual)")
        return order

    async def delete(self, order_id: str) -> None:
        """
        Raises:
            NotFoundError: If no order has this id
        """
        order = await self.get(order_id)
        number = order.order_number
        await self.db.delete(order)
        await self.db.commit()
        logger.info(f"Order {number} deleted")


def get_order_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    """FastAPI dependency: an OrderService for the request's session."""
    return OrderService(db)
