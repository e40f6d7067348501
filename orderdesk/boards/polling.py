"""
Board polling.

Boards are refreshed on a fixed interval. Each poll diffs the fetched order
ids against the previous poll so the caller can sound an alert for orders
that just arrived.
"""

import asyncio
from typing import Awaitable, Callable, Dict, Hashable, List, Optional, Sequence, TypeVar
from uuid import UUID

import structlog

from orderdesk.config import settings
from orderdesk.schemas.order import OrderSnapshot

logger = structlog.get_logger()

T = TypeVar("T")


def poll_interval(board: str) -> float:
    """Seconds between refreshes of a board"""
    intervals = {
        "kitchen": settings.kitchen_poll_seconds,
        "delivery": settings.delivery_poll_seconds,
        "manager": settings.manager_poll_seconds,
    }
    return intervals.get(board, settings.kitchen_poll_seconds)


def new_order_ids(previous: Optional[Sequence[UUID]], current: Sequence[UUID]) -> List[UUID]:
    """
    Ids present in `current` but not in `previous`, in `current` order.
    `previous` is None before the first poll, which never reports anything.
    """
    if previous is None:
        return []
    seen = set(previous)
    return [order_id for order_id in current if order_id not in seen]


class BoardPoller:
    """Re-fetches a board every `interval` seconds and reports new orders"""

    def __init__(
        self,
        fetch: Callable[[], Awaitable[List[OrderSnapshot]]],
        interval: float,
        on_new_orders: Optional[Callable[[List[UUID]], Awaitable[None]]] = None,
        name: str = "board",
    ):
        self.fetch = fetch
        self.interval = interval
        self.on_new_orders = on_new_orders
        self.name = name
        self.previous_ids: Optional[List[UUID]] = None
        self.orders: List[OrderSnapshot] = []

    @classmethod
    def for_board(
        cls,
        board: str,
        fetch: Callable[[], Awaitable[List[OrderSnapshot]]],
        on_new_orders: Optional[Callable[[List[UUID]], Awaitable[None]]] = None,
        interval: Optional[float] = None,
    ) -> "BoardPoller":
        return cls(fetch, interval or poll_interval(board), on_new_orders, name=board)

    async def poll_once(self) -> List[UUID]:
        """Fetch once and return the ids that were not on the previous poll"""
        orders = await self.fetch()
        current_ids = [order.id for order in orders]
        fresh = new_order_ids(self.previous_ids, current_ids)
        self.previous_ids = current_ids
        self.orders = orders

        if fresh and self.on_new_orders is not None:
            try:
                await self.on_new_orders(fresh)
            except Exception as e:
                logger.warning(
                    "New order callback failed",
                    board=self.name,
                    new_orders=len(fresh),
                    error=str(e),
                )
        return fresh

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """Poll until `shutdown_event` is set"""
        logger.info("Board polling started", board=self.name, interval=self.interval)
        while not shutdown_event.is_set():
            try:
                await self.poll_once()
            except Exception as e:
                # keep polling; the next tick refetches
                logger.error("Board poll failed", board=self.name, error=str(e))
            try:
                await asyncio.wait_for(shutdown_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
        logger.info("Board polling stopped", board=self.name)


class SupersedingRunner:
    """
    Runs requests per key so that only the newest result is delivered.

    A call whose key was re-requested while it was in flight returns None
    and its result is discarded.
    """

    def __init__(self):
        self._generations: Dict[Hashable, int] = {}

    async def run(self, key: Hashable, work: Callable[[], Awaitable[T]]) -> Optional[T]:
        generation = self._generations.get(key, 0) + 1
        self._generations[key] = generation

        result = await work()

        if self._generations.get(key) != generation:
            logger.debug("Discarded superseded result", key=str(key), generation=generation)
            return None
        return result
