"""
Order Status Policy

Time-based auto-progression of an order through

    processing -> preparing -> outForDelivery -> delivered

Each stage has a threshold measured from the order's ``createdAt`` (not from
the previous transition). A single call advances at most one stage.
Statuses outside the three in-progress values are never touched.
"""

from datetime import datetime, timezone
from typing import Optional

from app.models import OrderStatus

IN_PROGRESS_STATUSES = frozenset({
    OrderStatus.PROCESSING,
    OrderStatus.PREPARING,
    OrderStatus.OUT_FOR_DELIVERY,
})

# status -> (next status, minutes since creation required)
TRANSITIONS: dict[OrderStatus, tuple[OrderStatus, float]] = {
    OrderStatus.PROCESSING: (OrderStatus.PREPARING, 1),
    OrderStatus.PREPARING: (OrderStatus.OUT_FOR_DELIVERY, 5),
    OrderStatus.OUT_FOR_DELIVERY: (OrderStatus.DELIVERED, 15),
}


def is_in_progress(status: OrderStatus) -> bool:
    return status in IN_PROGRESS_STATUSES


def elapsed_minutes(created_at: datetime, now: Optional[datetime] = None) -> float:
    """Minutes between ``created_at`` and ``now``; naive values are taken as UTC."""
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (now - created_at).total_seconds() / 60


def next_status(current: OrderStatus, elapsed: float) -> OrderStatus:
    """
    Decide the status an order should have after ``elapsed`` minutes.

    Args:
        current: The order's stored status
        elapsed: Minutes since the order was created

    Returns:
        The following stage if its threshold has been reached, else ``current``
    """
    transition = TRANSITIONS.get(current)
    if transition is None:
        return current
    following, threshold = transition
    return following if elapsed >= threshold else current


def settle_status(current: OrderStatus, elapsed: float) -> OrderStatus:
    """Apply ``next_status`` until it stops advancing."""
    status = current
    while True:
        following = next_status(status, elapsed)
        if following == status:
            return status
        status = following
