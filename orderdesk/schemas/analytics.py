"""Analytics schemas

Money stays Decimal internally and is rounded to cents only when serialized.
"""

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated, List, Optional
from uuid import UUID
from pydantic import BaseModel, PlainSerializer

from orderdesk.lifecycle.statuses import Fulfillment, OrderStatus
from orderdesk.schemas.order import OrderItemSnapshot, OrderSnapshot

CENT = Decimal("0.01")
ZERO = Decimal("0")


def _round_money(value: Decimal) -> float:
    return float(Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


Money = Annotated[Decimal, PlainSerializer(_round_money, return_type=float, when_used="json")]
Percent = Annotated[float, PlainSerializer(lambda v: round(v, 2), return_type=float, when_used="json")]


class LocalPlacement(BaseModel):
    """Placement time resolved into the restaurant's zone"""
    year: int
    month: int
    day: int
    hour: int

    @property
    def date(self) -> date:
        return date(self.year, self.month, self.day)


class AnalyticsOrder(BaseModel):
    """Order as seen by the aggregator"""
    id: UUID
    status: OrderStatus
    fulfillment: Fulfillment
    placed_at: datetime
    local: LocalPlacement
    subtotal: Decimal = ZERO
    delivery_fee: Decimal = ZERO
    tip_amount: Decimal = ZERO
    taxes: Decimal = ZERO
    total: Decimal = ZERO
    driver_id: Optional[UUID] = None
    driver_name: Optional[str] = None
    payment_status: Optional[str] = None
    items: List[OrderItemSnapshot] = []

    @classmethod
    def from_snapshot(
        cls,
        order: OrderSnapshot,
        local: LocalPlacement,
        driver_name: Optional[str] = None,
    ) -> "AnalyticsOrder":
        return cls(
            id=order.id,
            status=order.status,
            fulfillment=order.fulfillment,
            placed_at=order.placed_at,
            local=local,
            subtotal=order.subtotal,
            delivery_fee=order.delivery_fee,
            tip_amount=order.tip_amount,
            taxes=order.taxes,
            total=order.total,
            driver_id=order.driver_id,
            driver_name=driver_name,
            payment_status=order.payment_status,
            items=order.items,
        )


class RevenueStats(BaseModel):
    total: Money = ZERO
    pickup: Money = ZERO
    delivery: Money = ZERO
    subtotal: Money = ZERO
    delivery_fees: Money = ZERO
    tips: Money = ZERO
    taxes: Money = ZERO


class DayBucket(BaseModel):
    date: str
    count: int = 0
    revenue: Money = ZERO


class WeekBucket(BaseModel):
    week: str
    count: int = 0
    revenue: Money = ZERO


class HourBucket(BaseModel):
    hour: int
    count: int = 0
    revenue: Money = ZERO


class TopItem(BaseModel):
    name: str
    quantity: int = 0
    revenue: Money = ZERO
    menu_item_id: Optional[UUID] = None


class CancelledFailedStats(BaseModel):
    cancelled: int = 0
    failed: int = 0
    total: int = 0
    cancellation_rate: Percent = 0.0


class DriverPerformance(BaseModel):
    driver_id: UUID
    driver_name: str
    orders_completed: int = 0
    total_tips: Money = ZERO
    average_tip: Money = ZERO


class AnalyticsReport(BaseModel):
    """Statistics for one window"""
    window_start: Optional[date] = None
    window_end: Optional[date] = None
    total_orders: int = 0
    revenue: RevenueStats = RevenueStats()
    orders_by_day: List[DayBucket] = []
    orders_by_week: List[WeekBucket] = []
    top_items: List[TopItem] = []
    cancelled_failed: CancelledFailedStats = CancelledFailedStats()
    driver_performance: List[DriverPerformance] = []
    hourly_stats: List[HourBucket] = []
    # set when a newer request from the same caller replaced this one
    superseded: bool = False
