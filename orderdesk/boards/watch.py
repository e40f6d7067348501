"""
Board watcher.

Polls a live board for one staff member outside the HTTP API, for kitchen
screens and printer hooks that only need to hear about arriving orders.
"""

import asyncio
from typing import Awaitable, Callable, List, Optional
from uuid import UUID

import structlog

from orderdesk.boards.polling import BoardPoller
from orderdesk.boards.service import BOARDS, BoardService
from orderdesk.config import settings
from orderdesk.database import SessionLocal
from orderdesk.errors import AccessDenied, ValidationError
from orderdesk.lifecycle.roles import StaffSession
from orderdesk.models.restaurant import Restaurant
from orderdesk.schemas.order import OrderSnapshot
from orderdesk.stores.sql import SqlOrderStore, SqlStaffDirectory

logger = structlog.get_logger()


def board_fetcher(
    session_factory,
    board: str,
    staff_session: StaffSession,
    iana_zone: str,
) -> Callable[[], Awaitable[List[OrderSnapshot]]]:
    """Fetch coroutine returning every order on the board, section by section"""
    options = {"iana_zone": iana_zone} if board == "manager" else {}

    async def fetch() -> List[OrderSnapshot]:
        async with session_factory() as db:
            response = await BoardService(SqlOrderStore(db)).build(board, staff_session, **options)
        return [item.order for section in response.sections.values() for item in section]

    return fetch


def log_arrivals(board: str) -> Callable[[List[UUID]], Awaitable[None]]:
    async def on_new_orders(order_ids: List[UUID]) -> None:
        logger.info(
            "New orders on board",
            board=board,
            count=len(order_ids),
            order_ids=[str(order_id) for order_id in order_ids],
        )
    return on_new_orders


async def watch_board(
    restaurant_id: UUID,
    staff_id: UUID,
    board: str,
    shutdown_event: asyncio.Event,
    role_mode: Optional[str] = None,
    on_new_orders: Optional[Callable[[List[UUID]], Awaitable[None]]] = None,
    interval: Optional[float] = None,
    session_factory=SessionLocal,
) -> BoardPoller:
    """Poll `board` as the given staff member until `shutdown_event` is set"""
    if board not in BOARDS:
        raise ValidationError(f"Unknown board: {board}")

    async with session_factory() as db:
        restaurant = await db.get(Restaurant, restaurant_id)
        staff_session = None
        if restaurant is not None:
            staff_session = await SqlStaffDirectory(db).session_for(restaurant, staff_id, role_mode)
        zone = (restaurant.timezone if restaurant is not None else None) or settings.default_timezone

    if staff_session is None:
        raise AccessDenied(f"Staff member {staff_id} cannot watch restaurant {restaurant_id}")

    poller = BoardPoller.for_board(
        board,
        board_fetcher(session_factory, board, staff_session, zone),
        on_new_orders or log_arrivals(board),
        interval=interval,
    )
    await poller.run(shutdown_event)
    return poller
