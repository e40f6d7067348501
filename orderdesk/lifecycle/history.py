"""
History projection.

Orders only keep their current status, so history boards are rebuilt from
the status_changed event log: one entry per order, taken from the latest
event whose status is in the board's terminal set.
"""

from datetime import datetime, timedelta
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple
from uuid import UUID

from orderdesk.errors import ValidationError
from orderdesk.lifecycle.roles import StaffSession
from orderdesk.lifecycle.statuses import OrderStatus
from orderdesk.localtime import ensure_utc, resolver
from orderdesk.schemas.events import STATUS_CHANGED, OrderEventRecord
from orderdesk.schemas.history import HistoryEntry
from orderdesk.schemas.order import OrderSnapshot

KITCHEN_TERMINAL: FrozenSet[OrderStatus] = frozenset({
    OrderStatus.READY,
    OrderStatus.CANCELLED,
})

DELIVERY_TERMINAL: FrozenSet[OrderStatus] = frozenset({
    OrderStatus.COMPLETED,
    OrderStatus.CANCELLED,
    OrderStatus.FAILED,
})

BOARD_TERMINAL_SETS: Dict[str, FrozenSet[OrderStatus]] = {
    "kitchen": KITCHEN_TERMINAL,
    "delivery": DELIVERY_TERMINAL,
    "manager": DELIVERY_TERMINAL,
}

HISTORY_PERIODS = ("today", "7d")


def _event_key(event: OrderEventRecord) -> Tuple[datetime, int]:
    # equal timestamps fall back to append order
    return ensure_utc(event.created_at), event.sequence


class HistoryProjector:
    """Collapses status_changed events into one history entry per order"""

    def __init__(self, terminal_statuses: Iterable[OrderStatus], hide_reopened: bool = False):
        self.terminal_statuses = frozenset(OrderStatus(s) for s in terminal_statuses)
        # When set, an order whose newest event is non-terminal is left out
        # until a later terminal event arrives.
        self.hide_reopened = hide_reopened

    @classmethod
    def for_board(cls, board: str, hide_reopened: bool = False) -> "HistoryProjector":
        try:
            return cls(BOARD_TERMINAL_SETS[board], hide_reopened=hide_reopened)
        except KeyError:
            raise ValidationError(f"Unknown board: {board}")

    def project(
        self,
        events: Iterable[OrderEventRecord],
        orders: Mapping[UUID, OrderSnapshot],
        session: Optional[StaffSession] = None,
    ) -> List[HistoryEntry]:
        """
        Build the history set.

        `orders` scopes the projection: events for orders not in the mapping
        are ignored. The result is newest first and has at most one entry
        per order id, whatever the input order.
        """
        groups: Dict[UUID, List[OrderEventRecord]] = {}
        for event in events:
            if event.event_type != STATUS_CHANGED or event.order_id not in orders:
                continue
            groups.setdefault(event.order_id, []).append(event)

        entries = []
        for order_id, group in groups.items():
            terminal = [e for e in group if e.payload.order_status() in self.terminal_statuses]
            if not terminal:
                continue

            winner = max(terminal, key=_event_key)
            if self.hide_reopened and max(group, key=_event_key) is not winner:
                continue

            order = orders[order_id]
            if session is not None and not session.mode.history_visible(session.actor, order):
                continue

            entries.append(self._entry(winner, order))

        entries.sort(key=lambda e: (ensure_utc(e.timestamp), e.sequence), reverse=True)
        return entries

    @staticmethod
    def _entry(event: OrderEventRecord, order: OrderSnapshot) -> HistoryEntry:
        payload = event.payload
        return HistoryEntry(
            order_id=order.id,
            order_number=order.order_number,
            fulfillment=order.fulfillment,
            status=payload.order_status(),
            timestamp=event.created_at,
            sequence=event.sequence,
            reason=getattr(payload, "reason", None),
            cook_id=order.cook_id,
            driver_id=order.driver_id,
            actor_id=event.actor_id,
        )


def filter_history(
    entries: Iterable[HistoryEntry],
    period: str,
    now: datetime,
    iana_zone: str,
    search: Optional[str] = None,
) -> List[HistoryEntry]:
    """Keep entries from today (local) or the last 7 days, optionally matching an order number"""
    if period == "today":
        cutoff = resolver.local_midnight_utc(resolver.today(iana_zone, now), iana_zone)
    elif period == "7d":
        cutoff = ensure_utc(now) - timedelta(days=7)
    else:
        raise ValidationError(f"Unknown history period: {period}")

    needle = (search or "").strip().lower()
    return [
        entry for entry in entries
        if ensure_utc(entry.timestamp) >= cutoff
        and (not needle or needle in str(entry.order_number or "").lower())
    ]


def timeline(events: Iterable[OrderEventRecord], order_id: UUID) -> List[OrderEventRecord]:
    """Full status trail of one order, oldest first"""
    trail = [
        e for e in events
        if e.order_id == order_id and e.event_type == STATUS_CHANGED
    ]
    trail.sort(key=_event_key)
    return trail
