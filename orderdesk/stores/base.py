"""Store interfaces the lifecycle core reads and writes through"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from orderdesk.lifecycle.statuses import OrderStatus, StaffRole
from orderdesk.schemas.events import OrderEventRecord
from orderdesk.schemas.order import OrderSnapshot
from orderdesk.schemas.staff import StaffRef


class OrderStore(ABC):
    """Persistent record of orders"""

    @abstractmethod
    async def get(self, order_id: UUID) -> Optional[OrderSnapshot]:
        """Fetch one order"""
        pass

    @abstractmethod
    async def query(
        self,
        restaurant_id: UUID,
        statuses: Iterable[OrderStatus],
        order_by: str = "placed_at",
    ) -> List[OrderSnapshot]:
        """Orders of a restaurant in any of `statuses`, oldest first"""
        pass

    @abstractmethod
    async def query_placed_between(
        self,
        restaurant_id: UUID,
        start: datetime,
        end: datetime,
    ) -> List[OrderSnapshot]:
        """Orders placed in [start, end), newest first"""
        pass

    @abstractmethod
    async def update(
        self,
        order_id: UUID,
        fields: Dict[str, Any],
        expected_status: OrderStatus,
    ) -> bool:
        """Write `fields` only if the order still has `expected_status`; False on conflict"""
        pass


class EventLog(ABC):
    """Append-only order event log"""

    @abstractmethod
    async def append(
        self,
        order_id: UUID,
        actor_type: str,
        event_type: str,
        payload: dict,
        timestamp: datetime,
        actor_id: Optional[UUID] = None,
    ) -> OrderEventRecord:
        """Append one event and return it with its sequence number"""
        pass

    @abstractmethod
    async def query(
        self,
        event_type: str,
        restaurant_id: UUID,
        order_id: Optional[UUID] = None,
    ) -> List[OrderEventRecord]:
        """Events of a restaurant, newest first"""
        pass


class StaffDirectory(ABC):
    """Lookup of active staff"""

    @abstractmethod
    async def active_staff_by_role(self, restaurant_id: UUID, role: StaffRole) -> List[StaffRef]:
        """Active staff members of `role`"""
        pass

    @abstractmethod
    async def staff_names(self, restaurant_id: UUID) -> Dict[UUID, str]:
        """Display name of every staff member, active or not"""
        pass


class UnitOfWork(ABC):
    """
    Transaction scope over the order store and event log.
    Commits on clean exit, rolls back when the block raises.
    """

    orders: OrderStore
    events: EventLog

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            await self.commit()
        else:
            await self.rollback()

    @abstractmethod
    async def commit(self) -> None:
        pass

    @abstractmethod
    async def rollback(self) -> None:
        pass
