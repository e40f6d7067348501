"""Order schemas"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional, List
from uuid import UUID
from pydantic import BaseModel, Field

from orderdesk.lifecycle.statuses import Fulfillment, OrderStatus


class OrderItemSnapshot(BaseModel):
    """Order line as placed"""
    id: UUID
    name: str
    quantity: int = 1
    unit_price: Decimal = Decimal("0")
    total_price: Decimal = Decimal("0")
    menu_item_id: Optional[UUID] = None
    modifiers: List[dict] = []

    class Config:
        from_attributes = True


class OrderSnapshot(BaseModel):
    """Current state of an order as read from the store"""
    id: UUID
    restaurant_id: UUID
    order_number: Optional[int] = None
    fulfillment: Fulfillment
    status: OrderStatus
    placed_at: datetime
    scheduled_at: Optional[datetime] = None
    cook_id: Optional[UUID] = None
    driver_id: Optional[UUID] = None
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None
    subtotal: Decimal = Decimal("0")
    delivery_fee: Decimal = Decimal("0")
    taxes: Decimal = Decimal("0")
    tip_amount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    cancellation_reason: Optional[str] = None
    failure_reason: Optional[str] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    items: List[OrderItemSnapshot] = []

    class Config:
        from_attributes = True


class TransitionRequest(BaseModel):
    """Move an order to its next status"""
    target_status: OrderStatus
    expected_status: OrderStatus = Field(
        description="Status the caller last read; the transition fails with 409 if it changed",
    )
    reason: Optional[str] = None
    cook_id: Optional[UUID] = None
    driver_id: Optional[UUID] = None

    def extra_fields(self) -> dict:
        return self.model_dump(include={"reason", "cook_id", "driver_id"}, exclude_none=True)


class PriorityFlag(BaseModel):
    """Transient board flag"""
    label: str
    type: str


class BoardOrder(BaseModel):
    """Order on a live board with its current flags"""
    order: OrderSnapshot
    flags: List[PriorityFlag] = []


class BoardResponse(BaseModel):
    """Live board for one staff view"""
    board: str
    sections: Dict[str, List[BoardOrder]]
    new_order_ids: List[UUID] = []
    poll_interval_seconds: Optional[float] = None
