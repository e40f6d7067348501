"""Order statuses and the fixed status graph"""

import enum
from typing import Dict, FrozenSet, Optional, Tuple


class OrderStatus(str, enum.Enum):
    """Order lifecycle statuses"""
    RECEIVED = "received"
    PREPARING = "preparing"
    READY = "ready"
    ASSIGNED = "assigned"
    ENROUTE = "enroute"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class Fulfillment(str, enum.Enum):
    """How the order leaves the restaurant"""
    DELIVERY = "delivery"
    PICKUP = "pickup"


class StaffRole(str, enum.Enum):
    """Staff roles"""
    COOK = "cook"
    DELIVERY = "delivery"
    MANAGER = "manager"


TERMINAL_STATUSES: FrozenSet[OrderStatus] = frozenset({
    OrderStatus.COMPLETED,
    OrderStatus.CANCELLED,
    OrderStatus.FAILED,
})

REASON_REQUIRED: FrozenSet[OrderStatus] = frozenset({
    OrderStatus.CANCELLED,
    OrderStatus.FAILED,
})

# Forward path per fulfillment; cancel/fail edges are added in allowed_next()
_FORWARD: Dict[Fulfillment, Dict[OrderStatus, OrderStatus]] = {
    Fulfillment.DELIVERY: {
        OrderStatus.RECEIVED: OrderStatus.PREPARING,
        OrderStatus.PREPARING: OrderStatus.READY,
        OrderStatus.READY: OrderStatus.ASSIGNED,
        OrderStatus.ASSIGNED: OrderStatus.ENROUTE,
        OrderStatus.ENROUTE: OrderStatus.COMPLETED,
    },
    Fulfillment.PICKUP: {
        OrderStatus.RECEIVED: OrderStatus.PREPARING,
        OrderStatus.PREPARING: OrderStatus.READY,
        OrderStatus.READY: OrderStatus.COMPLETED,
    },
}

# Transitions that bind the order to a staff member, and the field they write
CLAIM_FIELDS: Dict[Tuple[OrderStatus, OrderStatus], str] = {
    (OrderStatus.RECEIVED, OrderStatus.PREPARING): "cook_id",
    (OrderStatus.READY, OrderStatus.ASSIGNED): "driver_id",
}

# Binding field per staff role
BINDING_FIELDS: Dict[StaffRole, str] = {
    StaffRole.COOK: "cook_id",
    StaffRole.DELIVERY: "driver_id",
}

# Which non-manager role may drive each edge
_EDGE_ROLES: Dict[Tuple[OrderStatus, OrderStatus], StaffRole] = {
    (OrderStatus.RECEIVED, OrderStatus.PREPARING): StaffRole.COOK,
    (OrderStatus.PREPARING, OrderStatus.READY): StaffRole.COOK,
    (OrderStatus.READY, OrderStatus.COMPLETED): StaffRole.COOK,
    (OrderStatus.RECEIVED, OrderStatus.CANCELLED): StaffRole.COOK,
    (OrderStatus.PREPARING, OrderStatus.CANCELLED): StaffRole.COOK,
    (OrderStatus.READY, OrderStatus.CANCELLED): StaffRole.COOK,
    (OrderStatus.READY, OrderStatus.ASSIGNED): StaffRole.DELIVERY,
    (OrderStatus.ASSIGNED, OrderStatus.ENROUTE): StaffRole.DELIVERY,
    (OrderStatus.ENROUTE, OrderStatus.COMPLETED): StaffRole.DELIVERY,
    (OrderStatus.ENROUTE, OrderStatus.FAILED): StaffRole.DELIVERY,
    (OrderStatus.ASSIGNED, OrderStatus.CANCELLED): StaffRole.DELIVERY,
    (OrderStatus.ENROUTE, OrderStatus.CANCELLED): StaffRole.DELIVERY,
}


def allowed_next(status: OrderStatus, fulfillment: Fulfillment) -> FrozenSet[OrderStatus]:
    """Return the statuses an order may legally move to from `status`"""
    status = OrderStatus(status)
    if status in TERMINAL_STATUSES:
        return frozenset()

    targets = {OrderStatus.CANCELLED}
    forward = _FORWARD[Fulfillment(fulfillment)].get(status)
    if forward is not None:
        targets.add(forward)
    if status == OrderStatus.ENROUTE:
        targets.add(OrderStatus.FAILED)
    return frozenset(targets)


def is_valid_transition(
    current: OrderStatus,
    target: OrderStatus,
    fulfillment: Fulfillment,
) -> bool:
    """True if `target` is allowed after `current`"""
    return OrderStatus(target) in allowed_next(current, fulfillment)


def edge_role(current: OrderStatus, target: OrderStatus) -> Optional[StaffRole]:
    """Staff role that drives the edge, or None if only managers may"""
    return _EDGE_ROLES.get((OrderStatus(current), OrderStatus(target)))


def claim_field(current: OrderStatus, target: OrderStatus) -> Optional[str]:
    """Assignment field written by a claim transition, if any"""
    return CLAIM_FIELDS.get((OrderStatus(current), OrderStatus(target)))
