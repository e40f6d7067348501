"""Async SQLAlchemy stores sharing one session per unit of work"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.lifecycle.roles import StaffSession, session_mode
from orderdesk.lifecycle.statuses import OrderStatus, StaffRole
from orderdesk.models.event import OrderEvent
from orderdesk.models.order import Order
from orderdesk.models.restaurant import Restaurant, StaffUser
from orderdesk.schemas.events import OrderEventRecord
from orderdesk.schemas.order import OrderSnapshot
from orderdesk.schemas.staff import StaffRef
from orderdesk.stores.base import EventLog, OrderStore, StaffDirectory, UnitOfWork

logger = structlog.get_logger()


class SqlOrderStore(OrderStore):
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def get(self, order_id: UUID) -> Optional[OrderSnapshot]:
        result = await self.db.execute(
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        return OrderSnapshot.model_validate(order) if order else None
    
    async def query(
        self,
        restaurant_id: UUID,
        statuses: Iterable[OrderStatus],
        order_by: str = "placed_at",
    ) -> List[OrderSnapshot]:
        values = [OrderStatus(s).value for s in statuses]
        if order_by.startswith("-"):
            ordering = (Order.placed_at.desc(), Order.order_number.desc())
        else:
            ordering = (Order.placed_at.asc(), Order.order_number.asc())
        
        result = await self.db.execute(
            select(Order)
            .where(Order.restaurant_id == restaurant_id, Order.status.in_(values))
            .order_by(*ordering)
            .execution_options(populate_existing=True)
        )
        return [OrderSnapshot.model_validate(o) for o in result.scalars().all()]
    
    async def query_placed_between(
        self,
        restaurant_id: UUID,
        start: datetime,
        end: datetime,
    ) -> List[OrderSnapshot]:
        result = await self.db.execute(
            select(Order)
            .where(
                Order.restaurant_id == restaurant_id,
                Order.placed_at >= start,
                Order.placed_at < end,
            )
            .order_by(Order.placed_at.desc())
            .execution_options(populate_existing=True)
        )
        return [OrderSnapshot.model_validate(o) for o in result.scalars().all()]
    
    async def update(
        self,
        order_id: UUID,
        fields: Dict[str, Any],
        expected_status: OrderStatus,
    ) -> bool:
        result = await self.db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == OrderStatus(expected_status).value)
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class SqlEventLog(EventLog):
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def append(
        self,
        order_id: UUID,
        actor_type: str,
        event_type: str,
        payload: dict,
        timestamp: datetime,
        actor_id: Optional[UUID] = None,
    ) -> OrderEventRecord:
        restaurant_id = await self.db.scalar(
            select(Order.restaurant_id).where(Order.id == order_id)
        )
        event = OrderEvent(
            order_id=order_id,
            restaurant_id=restaurant_id,
            actor_type=actor_type,
            actor_id=actor_id,
            event_type=event_type,
            payload=payload,
            created_at=timestamp,
        )
        self.db.add(event)
        await self.db.flush()
        return _record(event)
    
    async def query(
        self,
        event_type: str,
        restaurant_id: UUID,
        order_id: Optional[UUID] = None,
    ) -> List[OrderEventRecord]:
        query = select(OrderEvent).where(
            OrderEvent.event_type == event_type,
            OrderEvent.restaurant_id == restaurant_id,
        )
        if order_id is not None:
            query = query.where(OrderEvent.order_id == order_id)
        
        result = await self.db.execute(
            query.order_by(OrderEvent.created_at.desc(), OrderEvent.id.desc())
        )
        return [_record(e) for e in result.scalars().all()]


def _record(event: OrderEvent) -> OrderEventRecord:
    return OrderEventRecord(
        sequence=event.id,
        order_id=event.order_id,
        actor_type=event.actor_type,
        actor_id=event.actor_id,
        event_type=event.event_type,
        payload=event.payload,
        created_at=event.created_at,
    )


class SqlStaffDirectory(StaffDirectory):
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def active_staff_by_role(self, restaurant_id: UUID, role: StaffRole) -> List[StaffRef]:
        result = await self.db.execute(
            select(StaffUser).where(
                StaffUser.restaurant_id == restaurant_id,
                StaffUser.role == StaffRole(role).value,
                StaffUser.is_active.is_(True),
            )
        )
        return [StaffRef.model_validate(s) for s in result.scalars().all()]
    
    async def staff_names(self, restaurant_id: UUID) -> Dict[UUID, str]:
        result = await self.db.execute(
            select(StaffUser.id, StaffUser.display_name, StaffUser.username)
            .where(StaffUser.restaurant_id == restaurant_id)
        )
        return {row.id: row.display_name or row.username for row in result.all()}
    
    async def session_for(
        self,
        restaurant: Restaurant,
        staff_id: UUID,
        requested_mode: Optional[str] = None,
    ) -> Optional[StaffSession]:
        """Session for an active staff member of the restaurant; None for anyone else"""
        result = await self.db.execute(
            select(StaffUser).where(
                StaffUser.id == staff_id,
                StaffUser.restaurant_id == restaurant.id,
            )
        )
        staff = result.scalar_one_or_none()
        
        if staff is None or not staff.is_active:
            return None
        
        actor = StaffRef.model_validate(staff)
        defaults = {
            StaffRole.COOK: restaurant.kitchen_mode,
            StaffRole.DELIVERY: restaurant.delivery_mode,
        }
        mode = session_mode(actor.role, requested_mode, defaults.get(actor.role))
        return StaffSession(actor, restaurant.id, mode)


class SqlUnitOfWork(UnitOfWork):
    """Order updates and event appends on one session, committed together"""
    
    def __init__(self, db: AsyncSession):
        self.db = db
        self.orders = SqlOrderStore(db)
        self.events = SqlEventLog(db)
    
    async def commit(self) -> None:
        await self.db.commit()
    
    async def rollback(self) -> None:
        await self.db.rollback()
        logger.warning("Order transaction rolled back")
