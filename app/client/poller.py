"""
Order Status Poller

Keeps a displayed order current without manual refresh:

    1. On start, fetch the order once. If it is still in progress, ask the
       API to auto-advance it and adopt the result.
    2. Every ``interval`` seconds, fetch again. While in progress, call
       auto-update and adopt its result; otherwise adopt the fetched order.

Each tick runs as its own task, so a slow response may overlap the next
tick. There is no backoff and no cap on the number of polls. Failed requests
are logged and the next tick proceeds. ``stop()`` (or leaving the
``async with`` block) cancels the timer and every in-flight tick.

Usage:
    async with httpx.AsyncClient(base_url="http://localhost:5003") as client:
        async with OrderStatusPoller(client, order_id, on_update=print) as poller:
            await poller.wait_until_settled()
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from app.core.config import get_settings

logger = logging.getLogger(__name__)

# Wire tokens of the statuses the server still advances on its own
IN_PROGRESS_STATUSES = frozenset({"processing", "preparing", "outForDelivery"})

OrderCallback = Callable[[dict], Union[Any, Awaitable[Any]]]


class OrderStatusPoller:
    """
    Timer-driven tracker for a single order.

    Attributes:
        order_id: Order being tracked
        interval: Seconds between polls
        order: Last adopted order document (None until the first adoption)
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        order_id: str,
        on_update: Optional[OrderCallback] = None,
        interval: Optional[float] = None,
    ):
        """
        Args:
            client: HTTP client whose base_url points at the API
            order_id: Order to track
            on_update: Called with every adopted order (sync or async)
            interval: Poll period, defaults to ORDER_POLL_INTERVAL_SECONDS
        """
        self.client = client
        self.order_id = order_id
        self.on_update = on_update
        self.interval = interval if interval is not None else get_settings().order_poll_interval_seconds
        self.order: Optional[dict] = None

        self._timer: Optional[asyncio.Task] = None
        self._ticks: set[asyncio.Task] = set()
        self._settled = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> None:
        """Load the order once, then begin polling."""
        if self.running:
            return
        await self._load()
        self._timer = asyncio.create_task(self._run_timer())
        logger.debug(f"Polling order {self.order_id} every {self.interval}s")

    async def stop(self) -> None:
        """Cancel the timer and any tick still waiting on the network."""
        tasks = [task for task in (self._timer, *self._ticks) if task is not None]
        self._timer = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._ticks.clear()

    async def __aenter__(self) -> "OrderStatusPoller":
        try:
            await self.start()
        except BaseException:
            await self.stop()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def wait_until_settled(self) -> dict:
        """Block until an adopted order is no longer in progress."""
        await self._settled.wait()
        return self.order

    # =========================================================================
    # POLLING
    # =========================================================================

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            tick = asyncio.create_task(self._tick())
            self._ticks.add(tick)
            tick.add_done_callback(self._ticks.discard)

    async def _load(self) -> None:
        order = await self._fetch_order()
        if order is None:
            return
        await self._adopt(order)
        if order.get("status") in IN_PROGRESS_STATUSES:
            updated = await self._auto_update()
            if updated is not None:
                await self._adopt(updated)

    async def _tick(self) -> None:
        try:
            order = await self._fetch_order()
            if order is None:
                return
            if order.get("status") in IN_PROGRESS_STATUSES:
                updated = await self._auto_update()
                if updated is not None:
                    await self._adopt(updated)
            else:
                await self._adopt(order)
        except Exception:
            # Nothing awaits tick tasks; log here so the next tick still runs
            logger.exception(f"Poll of order {self.order_id} failed")

    async def _adopt(self, order: dict) -> None:
        self.order = order
        if order.get("status") in IN_PROGRESS_STATUSES:
            self._settled.clear()
        else:
            self._settled.set()
        if self.on_update is not None:
            result = self.on_update(order)
            if inspect.isawaitable(result):
                await result

    # =========================================================================
    # HTTP
    # =========================================================================

    async def _fetch_order(self) -> Optional[dict]:
        return await self._request("GET", f"/api/orders/{self.order_id}")

    async def _auto_update(self) -> Optional[dict]:
        return await self._request("POST", f"/api/orders/{self.order_id}/auto-update-status")

    async def _request(self, method: str, path: str) -> Optional[dict]:
        try:
            response = await self.client.request(method, path)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"{method} {path} failed: {e}")
            return None
