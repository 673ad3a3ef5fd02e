"""
Order Tracking Script

Follows one order's status the way the web frontend does: fetch, auto-advance
while in progress, repeat every few seconds.
Run from project root: python scripts/track_order.py <order_id>
"""

import argparse
import asyncio
import os
import sys
from datetime import datetime

import httpx

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.client import OrderStatusPoller  # noqa: E402
from app.core.config import get_settings  # noqa: E402

STATUS_ICONS = {
    "pending": "⏳",
    "processing": "🧾",
    "preparing": "👨‍🍳",
    "outForDelivery": "🛵",
    "delivered": "✅",
    "completed": "🏁",
    "cancelled": "❌",
}


def print_status(order: dict) -> None:
    status = order.get("status", "unknown")
    icon = STATUS_ICONS.get(status, "•")
    print(
        f"[{datetime.now().strftime('%H:%M:%S')}] {icon} "
        f"{order.get('orderNumber', order.get('id'))}: {status}"
    )


async def track(order_id: str, api_url: str, interval: float, until_done: bool) -> None:
    print("=" * 60)
    print(f"📦 Tracking order {order_id}")
    print(f"🎯 API: {api_url} (every {interval}s)")
    print("=" * 60)

    async with httpx.AsyncClient(base_url=api_url, timeout=30.0) as client:
        async with OrderStatusPoller(client, order_id, on_update=print_status, interval=interval) as poller:
            if poller.order is None:
                print("❌ Order could not be loaded")
                return
            if until_done:
                order = await poller.wait_until_settled()
                print(f"🏁 Final status: {order.get('status')}")
            else:
                # Poll until interrupted
                await asyncio.Event().wait()


if __name__ == "__main__":
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Follow an order's status")
    parser.add_argument("order_id", help="Order id to track")
    parser.add_argument("--api", default=settings.api_base_url, help="API base URL")
    parser.add_argument(
        "--interval",
        type=float,
        default=settings.order_poll_interval_seconds,
        help="Seconds between polls",
    )
    parser.add_argument(
        "--until-done",
        action="store_true",
        help="Exit once the order is no longer in progress",
    )
    args = parser.parse_args()

    try:
        asyncio.run(track(args.order_id, args.api, args.interval, args.until_done))
    except KeyboardInterrupt:
        print("\n👋 Stopped tracking")
