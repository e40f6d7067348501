"""History API endpoints"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.api.deps import get_restaurant, get_staff_session, restaurant_timezone
from orderdesk.config import settings
from orderdesk.database import get_db
from orderdesk.lifecycle.history import HistoryProjector, filter_history
from orderdesk.lifecycle.roles import StaffSession
from orderdesk.lifecycle.statuses import OrderStatus
from orderdesk.localtime import utcnow
from orderdesk.models.restaurant import Restaurant
from orderdesk.schemas.events import STATUS_CHANGED
from orderdesk.schemas.history import HistoryResponse
from orderdesk.stores.sql import SqlEventLog, SqlOrderStore

router = APIRouter()


@router.get("", response_model=HistoryResponse)
async def get_history(
    restaurant_id: UUID,
    board: str = Query("kitchen"),
    period: str = Query("today"),
    search: Optional[str] = None,
    restaurant: Restaurant = Depends(get_restaurant),
    session: StaffSession = Depends(get_staff_session),
    db: AsyncSession = Depends(get_db),
):
    """Finished orders for a board, rebuilt from the event log"""
    projector = HistoryProjector.for_board(board, hide_reopened=settings.history_hide_reopened)
    
    orders = await SqlOrderStore(db).query(restaurant_id, list(OrderStatus))
    events = await SqlEventLog(db).query(STATUS_CHANGED, restaurant_id)
    
    entries = projector.project(events, {o.id: o for o in orders}, session)
    items = filter_history(entries, period, utcnow(), restaurant_timezone(restaurant), search)
    
    return HistoryResponse(board=board, period=period, items=items)
