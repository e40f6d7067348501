"""Priority flags for live boards

Flags are recomputed on every read from the order and the current time.
"""

from datetime import datetime, timedelta
from typing import FrozenSet, List, Optional

from orderdesk.config import settings
from orderdesk.lifecycle.statuses import Fulfillment, OrderStatus
from orderdesk.localtime import ensure_utc
from orderdesk.schemas.order import OrderSnapshot, PriorityFlag

LATE = "late"
SOON = "soon"

LATE_LABEL = "Retard"
SOON_LABEL = "Prévu bientôt"

# Only orders still in the kitchen can run late
LATE_STATUSES: FrozenSet[OrderStatus] = frozenset({
    OrderStatus.RECEIVED,
    OrderStatus.PREPARING,
})


class PriorityFlagger:
    """Computes late / soon flags with configurable thresholds"""

    def __init__(
        self,
        late_delivery_minutes: Optional[int] = None,
        late_pickup_minutes: Optional[int] = None,
        soon_window_minutes: Optional[int] = None,
    ):
        if late_delivery_minutes is None:
            late_delivery_minutes = settings.late_threshold_delivery_minutes
        if late_pickup_minutes is None:
            late_pickup_minutes = settings.late_threshold_pickup_minutes
        if soon_window_minutes is None:
            soon_window_minutes = settings.soon_window_minutes

        self.late_after = {
            Fulfillment.DELIVERY: timedelta(minutes=late_delivery_minutes),
            Fulfillment.PICKUP: timedelta(minutes=late_pickup_minutes),
        }
        self.soon_window = timedelta(minutes=soon_window_minutes)

    def flags(self, order: OrderSnapshot, now: datetime) -> List[PriorityFlag]:
        """Flags for `order` at `now`; late and soon may both apply"""
        now = ensure_utc(now)
        flags = []

        if OrderStatus(order.status) in LATE_STATUSES:
            age = now - ensure_utc(order.placed_at)
            if age > self.late_after[Fulfillment(order.fulfillment)]:
                flags.append(PriorityFlag(label=LATE_LABEL, type=LATE))

        if order.scheduled_at is not None:
            until = ensure_utc(order.scheduled_at) - now
            if timedelta(0) < until < self.soon_window:
                flags.append(PriorityFlag(label=SOON_LABEL, type=SOON))

        return flags


def priority_flags(order: OrderSnapshot, now: datetime) -> List[PriorityFlag]:
    """Flags for `order` using the configured thresholds"""
    return PriorityFlagger().flags(order, now)
