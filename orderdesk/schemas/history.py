"""History schemas"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel

from orderdesk.lifecycle.statuses import Fulfillment, OrderStatus


class HistoryEntry(BaseModel):
    """Latest terminal status of one order, derived from the event log"""
    order_id: UUID
    order_number: Optional[int] = None
    fulfillment: Optional[Fulfillment] = None
    status: OrderStatus
    timestamp: datetime
    sequence: int
    reason: Optional[str] = None
    cook_id: Optional[UUID] = None
    driver_id: Optional[UUID] = None
    actor_id: Optional[UUID] = None


class HistoryResponse(BaseModel):
    """History board"""
    board: str
    period: str
    items: List[HistoryEntry]
