"""Board assembly for kitchen, delivery and manager views"""

from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

import structlog

from orderdesk.boards.polling import new_order_ids, poll_interval
from orderdesk.boards.priority import PriorityFlagger
from orderdesk.errors import ValidationError
from orderdesk.lifecycle.roles import StaffSession
from orderdesk.lifecycle.statuses import Fulfillment, OrderStatus
from orderdesk.localtime import LocalTimeResolver, ensure_utc, resolver as default_resolver, utcnow
from orderdesk.schemas.order import BoardOrder, BoardResponse, OrderSnapshot
from orderdesk.stores.base import OrderStore

logger = structlog.get_logger()

KITCHEN_SECTIONS: Tuple[OrderStatus, ...] = (
    OrderStatus.RECEIVED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
)

DELIVERY_AVAILABLE = (OrderStatus.READY,)
DELIVERY_ACTIVE = (OrderStatus.ASSIGNED, OrderStatus.ENROUTE)

# Section id -> statuses, in display order
MANAGER_SECTIONS: Dict[str, Tuple[OrderStatus, ...]] = {
    "received": (OrderStatus.RECEIVED,),
    "preparing": (OrderStatus.PREPARING,),
    "ready": (OrderStatus.READY,),
    "assigned": (OrderStatus.ASSIGNED,),
    "enroute": (OrderStatus.ENROUTE,),
    "completed": (OrderStatus.COMPLETED,),
    "cancelled_failed": (OrderStatus.CANCELLED, OrderStatus.FAILED),
}

MANAGER_PERIODS = ("today", "yesterday", "week", "month", "all")

BOARDS = ("kitchen", "delivery", "manager")


class BoardService:
    """Reads live orders and lays them out per board with priority flags"""

    def __init__(
        self,
        orders: OrderStore,
        flagger: Optional[PriorityFlagger] = None,
        clock: Callable[[], datetime] = utcnow,
        resolver: LocalTimeResolver = default_resolver,
    ):
        self.orders = orders
        self.flagger = flagger or PriorityFlagger()
        self.clock = clock
        self.resolver = resolver

    async def kitchen_board(
        self,
        session: StaffSession,
        known_ids: Optional[Sequence[UUID]] = None,
    ) -> BoardResponse:
        orders = await self.orders.query(session.restaurant_id, KITCHEN_SECTIONS)
        visible = session.visible_orders(orders)
        sections = {
            status.value: [o for o in visible if o.status == status]
            for status in KITCHEN_SECTIONS
        }
        return self._response("kitchen", sections, visible, known_ids)

    async def delivery_board(
        self,
        session: StaffSession,
        known_ids: Optional[Sequence[UUID]] = None,
    ) -> BoardResponse:
        orders = await self.orders.query(
            session.restaurant_id,
            DELIVERY_AVAILABLE + DELIVERY_ACTIVE,
        )
        # pickup orders never reach a driver
        orders = [o for o in orders if o.fulfillment == Fulfillment.DELIVERY]
        visible = session.visible_orders(orders)
        sections = {
            "available": [o for o in visible if o.status in DELIVERY_AVAILABLE],
            "active": [o for o in visible if o.status in DELIVERY_ACTIVE],
        }
        return self._response("delivery", sections, visible, known_ids)

    async def manager_board(
        self,
        session: StaffSession,
        iana_zone: str,
        period: str = "today",
        fulfillment: Optional[Fulfillment] = None,
        search: Optional[str] = None,
        known_ids: Optional[Sequence[UUID]] = None,
    ) -> BoardResponse:
        statuses = [s for group in MANAGER_SECTIONS.values() for s in group]
        orders = await self.orders.query(session.restaurant_id, statuses, order_by="-placed_at")
        orders = self._filter_manager(orders, iana_zone, period, fulfillment, search)
        visible = session.visible_orders(orders)
        sections = {
            section: [o for o in visible if o.status in group]
            for section, group in MANAGER_SECTIONS.items()
        }
        return self._response("manager", sections, visible, known_ids)

    async def build(self, board: str, session: StaffSession, **options) -> BoardResponse:
        if board == "kitchen":
            return await self.kitchen_board(session, options.get("known_ids"))
        if board == "delivery":
            return await self.delivery_board(session, options.get("known_ids"))
        if board == "manager":
            return await self.manager_board(session, **options)
        raise ValidationError(f"Unknown board: {board}")

    def _filter_manager(
        self,
        orders: Iterable[OrderSnapshot],
        iana_zone: str,
        period: str,
        fulfillment: Optional[Fulfillment],
        search: Optional[str],
    ) -> List[OrderSnapshot]:
        start, end = self._period_bounds(period, iana_zone)
        needle = (search or "").strip().lower()

        filtered = []
        for order in orders:
            placed = ensure_utc(order.placed_at)
            if start is not None and not (start <= placed < end):
                continue
            if fulfillment is not None and order.fulfillment != fulfillment:
                continue
            if needle and needle not in str(order.order_number or "").lower():
                continue
            filtered.append(order)
        return filtered

    def _period_bounds(self, period: str, iana_zone: str):
        """UTC [start, end) for a manager date filter; (None, None) for all"""
        if period not in MANAGER_PERIODS:
            raise ValidationError(f"Unknown period: {period}")
        if period == "all":
            return None, None

        now = ensure_utc(self.clock())
        today = self.resolver.today(iana_zone, now)
        midnight = self.resolver.local_midnight_utc

        if period == "today":
            return midnight(today, iana_zone), midnight(today + timedelta(days=1), iana_zone)
        if period == "yesterday":
            return midnight(today - timedelta(days=1), iana_zone), midnight(today, iana_zone)
        if period == "week":
            return now - timedelta(days=7), now

        first = today.replace(day=1)
        following = (first + timedelta(days=32)).replace(day=1)
        return midnight(first, iana_zone), midnight(following, iana_zone)

    def _response(
        self,
        board: str,
        sections: Dict[str, List[OrderSnapshot]],
        visible: List[OrderSnapshot],
        known_ids: Optional[Sequence[UUID]],
    ) -> BoardResponse:
        now = self.clock()
        return BoardResponse(
            board=board,
            sections={
                name: [BoardOrder(order=o, flags=self.flagger.flags(o, now)) for o in section]
                for name, section in sections.items()
            },
            new_order_ids=new_order_ids(known_ids, [o.id for o in visible]),
            poll_interval_seconds=poll_interval(board),
        )
