"""
HTTP clients of the ordering API.
"""

from app.client.poller import IN_PROGRESS_STATUSES, OrderStatusPoller

__all__ = ["IN_PROGRESS_STATUSES", "OrderStatusPoller"]
