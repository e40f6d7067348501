"""Analytics aggregation over a local-calendar window"""

from datetime import timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

import structlog

from orderdesk.analytics.windows import AnalyticsWindow, utc_bounds
from orderdesk.lifecycle.statuses import Fulfillment, OrderStatus
from orderdesk.localtime import LocalTimeResolver, resolver as default_resolver
from orderdesk.schemas.analytics import (
    ZERO,
    AnalyticsOrder,
    AnalyticsReport,
    CancelledFailedStats,
    DayBucket,
    DriverPerformance,
    HourBucket,
    LocalPlacement,
    RevenueStats,
    TopItem,
    WeekBucket,
)
from orderdesk.stores.base import OrderStore, StaffDirectory

logger = structlog.get_logger()

REFUNDED = "refunded"


class _Bucket:
    __slots__ = ("count", "revenue")

    def __init__(self):
        self.count = 0
        self.revenue = ZERO

    def add(self, total: Decimal) -> None:
        self.count += 1
        self.revenue += total


class AnalyticsAggregator:
    """
    Computes revenue, calendar buckets, top items, driver performance and
    cancellation statistics.

    Every order carries its placement time already resolved into the
    restaurant's zone; the aggregator never converts time zones itself.
    Sums are exact Decimals; rounding happens when the report is serialized.
    """

    def __init__(self, top_items_limit: int = 10, exclude_refunded: bool = False):
        self.top_items_limit = top_items_limit
        self.exclude_refunded = exclude_refunded

    def select(
        self,
        orders: Iterable[AnalyticsOrder],
        window: Optional[AnalyticsWindow] = None,
    ) -> List[AnalyticsOrder]:
        """Orders that count toward the window"""
        selected = []
        for order in orders:
            if window is not None and not window.contains(order.local.date):
                continue
            if self.exclude_refunded and (order.payment_status or "").lower() == REFUNDED:
                continue
            selected.append(order)
        return selected

    def aggregate(
        self,
        orders: Iterable[AnalyticsOrder],
        window: Optional[AnalyticsWindow] = None,
    ) -> AnalyticsReport:
        orders = self.select(orders, window)

        revenue = RevenueStats()
        days: Dict[str, _Bucket] = {}
        weeks: Dict[str, _Bucket] = {}
        hours: Dict[int, _Bucket] = {}
        items: Dict[object, TopItem] = {}
        drivers: Dict[UUID, DriverPerformance] = {}
        cancelled = 0
        failed = 0

        for order in orders:
            total = order.total
            revenue.total += total
            revenue.subtotal += order.subtotal
            revenue.delivery_fees += order.delivery_fee
            revenue.tips += order.tip_amount
            revenue.taxes += order.taxes
            if order.fulfillment == Fulfillment.PICKUP:
                revenue.pickup += total
            else:
                revenue.delivery += total

            day_key, week_key = self._calendar_keys(order)
            days.setdefault(day_key, _Bucket()).add(total)
            weeks.setdefault(week_key, _Bucket()).add(total)
            hours.setdefault(order.local.hour, _Bucket()).add(total)

            for item in order.items:
                key = item.menu_item_id or item.name
                stats = items.get(key)
                if stats is None:
                    stats = items[key] = TopItem(name=item.name, menu_item_id=item.menu_item_id)
                stats.quantity += item.quantity
                stats.revenue += item.total_price

            if order.status == OrderStatus.CANCELLED:
                cancelled += 1
            elif order.status == OrderStatus.FAILED:
                failed += 1

            if order.status == OrderStatus.COMPLETED and order.driver_id and order.driver_name:
                perf = drivers.get(order.driver_id)
                if perf is None:
                    perf = drivers[order.driver_id] = DriverPerformance(
                        driver_id=order.driver_id,
                        driver_name=order.driver_name,
                    )
                perf.orders_completed += 1
                perf.total_tips += order.tip_amount

        for perf in drivers.values():
            perf.average_tip = perf.total_tips / perf.orders_completed if perf.orders_completed else ZERO

        total_orders = len(orders)

        report = AnalyticsReport(
            window_start=window.start if window else None,
            window_end=window.end if window else None,
            total_orders=total_orders,
            revenue=revenue,
            orders_by_day=[
                DayBucket(date=key, count=b.count, revenue=b.revenue)
                for key, b in sorted(days.items())
            ],
            orders_by_week=[
                WeekBucket(week=key, count=b.count, revenue=b.revenue)
                for key, b in sorted(weeks.items())
            ],
            hourly_stats=[
                HourBucket(hour=hour, count=b.count, revenue=b.revenue)
                for hour, b in sorted(hours.items())
            ],
            # sorted() is stable, so equal quantities keep first-seen order
            top_items=sorted(items.values(), key=lambda i: -i.quantity)[: self.top_items_limit],
            cancelled_failed=CancelledFailedStats(
                cancelled=cancelled,
                failed=failed,
                total=cancelled + failed,
                cancellation_rate=(cancelled + failed) / total_orders * 100 if total_orders else 0.0,
            ),
            driver_performance=sorted(drivers.values(), key=lambda d: -d.orders_completed),
        )

        logger.debug(
            "Analytics aggregated",
            total_orders=total_orders,
            window_start=str(report.window_start),
            window_end=str(report.window_end),
        )
        return report

    @staticmethod
    def _calendar_keys(order: AnalyticsOrder) -> Tuple[str, str]:
        day = order.local.date
        monday = day - timedelta(days=day.weekday())
        return day.isoformat(), monday.isoformat()


async def build_report(
    orders: OrderStore,
    staff: StaffDirectory,
    restaurant_id: UUID,
    iana_zone: str,
    window: AnalyticsWindow,
    aggregator: Optional[AnalyticsAggregator] = None,
    resolver: LocalTimeResolver = default_resolver,
) -> AnalyticsReport:
    """Load a restaurant's orders for `window` and aggregate them"""
    aggregator = aggregator or AnalyticsAggregator()
    start, end = utc_bounds(window, iana_zone, resolver)

    placed = await orders.query_placed_between(restaurant_id, start, end)
    names = await staff.staff_names(restaurant_id)

    prepared = []
    for order in placed:
        parts = resolver.resolve(order.placed_at, iana_zone)
        prepared.append(
            AnalyticsOrder.from_snapshot(
                order,
                LocalPlacement(**parts._asdict()),
                driver_name=names.get(order.driver_id) if order.driver_id else None,
            )
        )

    logger.info(
        "Loaded orders for analytics",
        restaurant_id=str(restaurant_id),
        timezone=iana_zone,
        orders=len(prepared),
    )
    return aggregator.aggregate(prepared, window)
