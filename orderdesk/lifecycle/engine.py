"""Status transition engine"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence
from uuid import UUID

import pydantic
import structlog

from orderdesk.errors import (
    ConflictError,
    ExternalServiceError,
    InvalidAssignee,
    InvalidTransition,
    MissingReason,
    OrderDeskError,
    ValidationError,
)
from orderdesk.lifecycle.roles import StaffSession
from orderdesk.lifecycle.statuses import (
    REASON_REQUIRED,
    OrderStatus,
    StaffRole,
    claim_field,
    is_valid_transition,
)
from orderdesk.localtime import utcnow
from orderdesk.schemas.events import STATUS_CHANGED, OrderEventRecord, parse_payload
from orderdesk.schemas.order import OrderSnapshot
from orderdesk.stores.base import StaffDirectory, UnitOfWork

logger = structlog.get_logger()

ASSIGNMENT_FIELDS = ("cook_id", "driver_id")

ASSIGNEE_ROLES: Dict[str, StaffRole] = {
    "cook_id": StaffRole.COOK,
    "driver_id": StaffRole.DELIVERY,
}

REASON_FIELDS: Dict[OrderStatus, str] = {
    OrderStatus.CANCELLED: "cancellation_reason",
    OrderStatus.FAILED: "failure_reason",
}

TIMESTAMP_FIELDS: Dict[OrderStatus, str] = {
    OrderStatus.COMPLETED: "completed_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


class SideEffect(ABC):
    """Fire-and-forget reaction to a committed status change"""

    name: str = "side_effect"

    @abstractmethod
    async def status_changed(self, order: OrderSnapshot, event: OrderEventRecord) -> None:
        pass


class StatusTransitionEngine:
    """
    Validates and applies status transitions.

    The status write and the event append run in one unit of work; the
    order's current status is the version token for optimistic concurrency.
    Side effects run only after commit and can never undo a transition.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        staff: StaffDirectory,
        side_effects: Sequence[SideEffect] = (),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.staff = staff
        self.side_effects = list(side_effects)
        self.clock = clock

    async def transition(
        self,
        order: OrderSnapshot,
        target_status: OrderStatus,
        session: StaffSession,
        extra_fields: Optional[Dict[str, Any]] = None,
    ) -> OrderSnapshot:
        """Move `order` to `target_status` on behalf of the session's actor"""
        target = OrderStatus(target_status)
        current = OrderStatus(order.status)
        actor = session.actor
        extra = dict(extra_fields or {})

        if not is_valid_transition(current, target, order.fulfillment):
            raise InvalidTransition(current.value, target.value, str(order.id))

        reason = extra.pop("reason", None)
        if reason is not None and not isinstance(reason, str):
            raise ValidationError("A reason must be text", str(order.id))
        reason = (reason or "").strip()
        if target in REASON_REQUIRED and not reason:
            raise MissingReason(target.value, str(order.id))
        if reason and target not in REASON_REQUIRED:
            raise ValidationError("A reason only applies when cancelling or failing an order", str(order.id))

        field = claim_field(current, target)
        assignee = self._pop_assignee(extra, field, target, order)
        if extra:
            raise ValidationError(f"Unexpected fields: {', '.join(sorted(extra))}", str(order.id))

        session.mode.authorize(actor, order, target, assignee)

        if field is not None:
            if assignee is not None and assignee != actor.id:
                await self._check_assignee(session, field, assignee, order)
            elif assignee is None and actor.role == ASSIGNEE_ROLES[field]:
                assignee = actor.id

        payload = self._build_payload(target, reason, field, assignee, order)
        now = self.clock()
        changes = self._changes(target, reason, field, assignee, now)

        try:
            async with self.uow:
                updated = await self.uow.orders.update(
                    order.id,
                    {key: self._column_value(value) for key, value in changes.items()},
                    expected_status=current,
                )
                if not updated:
                    raise ConflictError(current.value, str(order.id))

                event = await self.uow.events.append(
                    order.id,
                    actor_type=actor.role.value,
                    event_type=STATUS_CHANGED,
                    payload=payload,
                    timestamp=now,
                    actor_id=actor.id,
                )
        except OrderDeskError:
            raise
        except Exception as e:
            logger.error(
                "Transition rolled back",
                order_id=str(order.id),
                from_status=current.value,
                to_status=target.value,
                error=str(e),
            )
            raise ExternalServiceError("Could not record the status change", str(order.id)) from e

        result = order.model_copy(update=changes)

        logger.info(
            "Order status changed",
            order_id=str(order.id),
            restaurant_id=str(order.restaurant_id),
            from_status=current.value,
            to_status=target.value,
            actor_id=str(actor.id),
            mode=session.mode.name,
            sequence=event.sequence,
        )

        await self._run_side_effects(result, event)
        return result

    def _pop_assignee(
        self,
        extra: Dict[str, Any],
        field: Optional[str],
        target: OrderStatus,
        order: OrderSnapshot,
    ) -> Optional[UUID]:
        assignee = None
        for name in ASSIGNMENT_FIELDS:
            value = extra.pop(name, None)
            if value is None:
                continue
            if name != field:
                raise ValidationError(
                    f"{name} cannot be set when moving an order to {target.value}",
                    str(order.id),
                )
            try:
                assignee = value if isinstance(value, UUID) else UUID(str(value))
            except ValueError:
                raise ValidationError(f"{name} must be a staff id", str(order.id))
        return assignee

    async def _check_assignee(
        self,
        session: StaffSession,
        field: str,
        assignee: UUID,
        order: OrderSnapshot,
    ) -> None:
        role = ASSIGNEE_ROLES[field]
        active = await self.staff.active_staff_by_role(session.restaurant_id, role)
        if assignee not in {staff.id for staff in active}:
            raise InvalidAssignee(
                f"{assignee} is not an active {role.value} staff member",
                str(order.id),
            )

    def _build_payload(
        self,
        target: OrderStatus,
        reason: str,
        field: Optional[str],
        assignee: Optional[UUID],
        order: OrderSnapshot,
    ) -> dict:
        raw: Dict[str, Any] = {"status": target.value}
        if reason:
            raw["reason"] = reason
        if field is not None and assignee is not None:
            raw[field] = assignee
        try:
            return parse_payload(raw).to_json()
        except pydantic.ValidationError as e:
            missing = ", ".join(str(err["loc"][-1]) for err in e.errors())
            raise ValidationError(
                f"Moving an order to {target.value} requires {missing}",
                str(order.id),
            ) from e

    def _changes(
        self,
        target: OrderStatus,
        reason: str,
        field: Optional[str],
        assignee: Optional[UUID],
        now: datetime,
    ) -> Dict[str, Any]:
        changes: Dict[str, Any] = {"status": target}
        if field is not None and assignee is not None:
            changes[field] = assignee
        if target in REASON_FIELDS:
            changes[REASON_FIELDS[target]] = reason
        if target in TIMESTAMP_FIELDS:
            changes[TIMESTAMP_FIELDS[target]] = now
        return changes

    @staticmethod
    def _column_value(value: Any) -> Any:
        if isinstance(value, OrderStatus):
            return value.value
        return value

    async def _run_side_effects(self, order: OrderSnapshot, event: OrderEventRecord) -> None:
        for effect in self.side_effects:
            try:
                await effect.status_changed(order, event)
            except Exception as e:
                logger.warning(
                    "Side effect failed",
                    side_effect=effect.name,
                    order_id=str(order.id),
                    status=order.status.value,
                    error=str(e),
                )


def allowed_targets(order: OrderSnapshot) -> List[OrderStatus]:
    """Statuses the order may move to next, in display order"""
    return [
        status for status in OrderStatus
        if is_valid_transition(order.status, status, order.fulfillment)
    ]
