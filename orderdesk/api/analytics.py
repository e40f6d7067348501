"""Analytics API endpoints"""

from datetime import date
from typing import Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.analytics.aggregator import AnalyticsAggregator, build_report
from orderdesk.analytics.windows import DateRange, resolve_window
from orderdesk.api.deps import get_restaurant, require_role, restaurant_timezone
from orderdesk.boards.polling import SupersedingRunner
from orderdesk.config import settings
from orderdesk.database import get_db
from orderdesk.lifecycle.roles import StaffSession
from orderdesk.lifecycle.statuses import StaffRole
from orderdesk.localtime import resolver
from orderdesk.models.restaurant import Restaurant
from orderdesk.schemas.analytics import AnalyticsReport
from orderdesk.stores.sql import SqlOrderStore, SqlStaffDirectory

router = APIRouter()

logger = structlog.get_logger()

# One in-flight report per manager and restaurant; switching ranges drops the older one
report_runner = SupersedingRunner()


@router.get("", response_model=AnalyticsReport)
async def get_analytics(
    restaurant_id: UUID,
    range_mode: DateRange = Query(DateRange.WEEK, alias="range"),
    start: Optional[date] = None,
    end: Optional[date] = None,
    restaurant: Restaurant = Depends(get_restaurant),
    session: StaffSession = Depends(require_role(StaffRole.MANAGER)),
    db: AsyncSession = Depends(get_db),
):
    """Revenue and order statistics over a local-calendar window (managers only)"""
    zone = restaurant_timezone(restaurant)
    window = resolve_window(range_mode, resolver.today(zone), start, end)
    
    aggregator = AnalyticsAggregator(
        top_items_limit=settings.analytics_top_items_limit,
        exclude_refunded=settings.analytics_exclude_refunded,
    )
    report = await report_runner.run(
        (restaurant_id, session.actor.id),
        lambda: build_report(
            SqlOrderStore(db),
            SqlStaffDirectory(db),
            restaurant_id,
            zone,
            window,
            aggregator,
        ),
    )
    
    if report is None:
        logger.info(
            "Analytics request superseded",
            restaurant_id=str(restaurant_id),
            staff_id=str(session.actor.id),
            range=range_mode.value,
        )
        return AnalyticsReport(window_start=window.start, window_end=window.end, superseded=True)
    
    return report
