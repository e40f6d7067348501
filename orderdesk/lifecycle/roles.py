"""Role modes

Each mode is a capability set: which orders a staff member sees, whether they
may hand an order to someone else, and which transitions they may drive.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from orderdesk.errors import TransitionForbidden, ValidationError
from orderdesk.lifecycle.statuses import (
    BINDING_FIELDS,
    OrderStatus,
    StaffRole,
    claim_field,
    edge_role,
)
from orderdesk.schemas.order import OrderSnapshot
from orderdesk.schemas.staff import StaffRef

# Status an unbound order sits in while it waits to be claimed by a role
CLAIMABLE_FROM: Dict[StaffRole, OrderStatus] = {
    StaffRole.COOK: OrderStatus.RECEIVED,
    StaffRole.DELIVERY: OrderStatus.READY,
}


class RoleMode(ABC):
    """Base class for role modes"""

    name: str = ""

    def binding_field(self, actor: StaffRef) -> Optional[str]:
        return BINDING_FIELDS.get(actor.role)

    def owns(self, actor: StaffRef, order: OrderSnapshot) -> bool:
        """True if the order is bound to the actor"""
        field = self.binding_field(actor)
        return field is not None and getattr(order, field) == actor.id

    def _is_unclaimed(self, actor: StaffRef, order: OrderSnapshot) -> bool:
        field = self.binding_field(actor)
        return (
            field is not None
            and getattr(order, field) is None
            and OrderStatus(order.status) == CLAIMABLE_FROM.get(actor.role)
        )

    @abstractmethod
    def visible_orders(self, actor: StaffRef, orders: Iterable[OrderSnapshot]) -> List[OrderSnapshot]:
        """Orders this actor sees on a live board"""

    def history_visible(self, actor: StaffRef, order: OrderSnapshot) -> bool:
        """Whether a history entry for this order is shown to the actor"""
        return True

    def can_reassign(self, actor: StaffRef) -> bool:
        """Whether the actor may bind an order to someone else"""
        return actor.role == StaffRole.MANAGER

    def authorize(
        self,
        actor: StaffRef,
        order: OrderSnapshot,
        target: OrderStatus,
        assignee: Optional[UUID] = None,
    ) -> None:
        """Raise TransitionForbidden unless the actor may drive this transition"""
        current = OrderStatus(order.status)
        target = OrderStatus(target)

        if not actor.is_active:
            raise TransitionForbidden("Inactive staff cannot change orders", str(order.id))

        if actor.role != StaffRole.MANAGER:
            role = edge_role(current, target)
            if role != actor.role:
                raise TransitionForbidden(
                    f"{actor.role.value} staff cannot move orders from {current.value} to {target.value}",
                    str(order.id),
                )

        if assignee is not None and assignee != actor.id and not self.can_reassign(actor):
            raise TransitionForbidden(
                f"Reassigning orders is not allowed in {self.name} mode",
                str(order.id),
            )

        self._check_binding(actor, order, current, target)

    def _check_binding(
        self,
        actor: StaffRef,
        order: OrderSnapshot,
        current: OrderStatus,
        target: OrderStatus,
    ) -> None:
        pass


class TeamMode(RoleMode):
    """Everyone of the role sees and works every order"""

    name = "team"

    def visible_orders(self, actor, orders):
        return list(orders)


class IndividualMode(RoleMode):
    """Staff see and work only the orders bound to them, plus orders waiting to be claimed"""

    name = "individual"

    def visible_orders(self, actor, orders):
        return [
            order for order in orders
            if self.owns(actor, order) or self._is_unclaimed(actor, order)
        ]

    def history_visible(self, actor, order):
        return self.owns(actor, order)

    def can_reassign(self, actor):
        return False

    def _check_binding(self, actor, order, current, target):
        field = claim_field(current, target)
        if field is not None and field == self.binding_field(actor):
            bound_to = getattr(order, field)
            if bound_to is None or bound_to == actor.id:
                return
        if not self.owns(actor, order):
            raise TransitionForbidden(
                "Order is not assigned to you",
                str(order.id),
            )


class ChefMode(RoleMode):
    """Kitchen lead: sees every order and may hand orders to other cooks"""

    name = "chef"

    def visible_orders(self, actor, orders):
        return list(orders)

    def can_reassign(self, actor):
        return True


class CoordinatorMode(ChefMode):
    """Delivery lead: sees every order and may hand orders to other drivers"""

    name = "coordinator"


_MODES: Dict[str, RoleMode] = {
    mode.name: mode
    for mode in (TeamMode(), IndividualMode(), ChefMode(), CoordinatorMode())
}


def get_role_mode(name: Optional[str]) -> RoleMode:
    """Look up a role mode by its configured name; defaults to team"""
    if not name:
        return _MODES["team"]
    mode = _MODES.get(name)
    if mode is None:
        raise ValueError(f"Unknown role mode: {name}")
    return mode


# Modes a staff member may pick for their own session
SELECTABLE_MODES: Dict[StaffRole, Tuple[str, ...]] = {
    StaffRole.COOK: ("team", "individual", "chef"),
    StaffRole.DELIVERY: ("team", "individual", "coordinator"),
    StaffRole.MANAGER: ("team",),
}


def session_mode(role: StaffRole, requested: Optional[str] = None, default: Optional[str] = None) -> RoleMode:
    """
    Mode a new session works in: the one the staff member picked, else the
    restaurant's default for their role. Managers always work in team mode.
    """
    role = StaffRole(role)
    if role == StaffRole.MANAGER:
        return _MODES["team"]

    name = requested or default or "team"
    if name not in SELECTABLE_MODES[role]:
        raise ValidationError(f"{role.value} staff cannot work in {name} mode")
    return get_role_mode(name)


class StaffSession:
    """A staff member working a restaurant under a role mode"""

    def __init__(self, actor: StaffRef, restaurant_id: UUID, mode: RoleMode):
        self.actor = actor
        self.restaurant_id = restaurant_id
        self.mode = mode

    def visible_orders(self, orders: Iterable[OrderSnapshot]) -> List[OrderSnapshot]:
        return self.mode.visible_orders(self.actor, orders)

    def can_reassign(self) -> bool:
        return self.mode.can_reassign(self.actor)
