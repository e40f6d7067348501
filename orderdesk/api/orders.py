"""Order status API endpoints"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.api.deps import get_side_effects, get_staff_session
from orderdesk.database import get_db
from orderdesk.errors import ConflictError, OrderNotFound
from orderdesk.lifecycle.engine import SideEffect, StatusTransitionEngine
from orderdesk.lifecycle.history import timeline
from orderdesk.lifecycle.roles import StaffSession
from orderdesk.schemas.events import STATUS_CHANGED, OrderEventResponse
from orderdesk.schemas.order import OrderSnapshot, TransitionRequest
from orderdesk.stores.sql import SqlEventLog, SqlOrderStore, SqlStaffDirectory, SqlUnitOfWork

router = APIRouter()


async def _load_order(db: AsyncSession, restaurant_id: UUID, order_id: UUID) -> OrderSnapshot:
    order = await SqlOrderStore(db).get(order_id)
    if order is None or order.restaurant_id != restaurant_id:
        raise OrderNotFound("Order not found", str(order_id))
    return order


@router.get("/{order_id}", response_model=OrderSnapshot)
async def get_order(
    restaurant_id: UUID,
    order_id: UUID,
    session: StaffSession = Depends(get_staff_session),
    db: AsyncSession = Depends(get_db),
):
    """Get order details"""
    return await _load_order(db, restaurant_id, order_id)


@router.post("/{order_id}/transitions", response_model=OrderSnapshot)
async def transition_order(
    restaurant_id: UUID,
    order_id: UUID,
    request: TransitionRequest,
    session: StaffSession = Depends(get_staff_session),
    side_effects: List[SideEffect] = Depends(get_side_effects),
    db: AsyncSession = Depends(get_db),
):
    """Move an order to its next status"""
    order = await _load_order(db, restaurant_id, order_id)
    
    # caller acted on a stale board
    if order.status != request.expected_status:
        raise ConflictError(request.expected_status.value, str(order_id))
    
    engine = StatusTransitionEngine(
        SqlUnitOfWork(db),
        SqlStaffDirectory(db),
        side_effects=side_effects,
    )
    return await engine.transition(
        order,
        request.target_status,
        session,
        request.extra_fields(),
    )


@router.get("/{order_id}/timeline", response_model=List[OrderEventResponse])
async def get_order_timeline(
    restaurant_id: UUID,
    order_id: UUID,
    session: StaffSession = Depends(get_staff_session),
    db: AsyncSession = Depends(get_db),
):
    """Full status trail of an order, oldest first"""
    await _load_order(db, restaurant_id, order_id)
    
    events = await SqlEventLog(db).query(STATUS_CHANGED, restaurant_id, order_id=order_id)
    
    return [
        OrderEventResponse(
            sequence=e.sequence,
            order_id=e.order_id,
            actor_type=e.actor_type,
            actor_id=e.actor_id,
            status=e.payload.order_status().value,
            payload=e.payload.to_json(),
            created_at=e.created_at,
        )
        for e in timeline(events, order_id)
    ]
