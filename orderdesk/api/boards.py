"""Live board API endpoints"""

from typing import Dict, List, Optional, Tuple
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.api.deps import get_restaurant, get_staff_session, restaurant_timezone
from orderdesk.boards.service import BoardService
from orderdesk.database import get_db
from orderdesk.lifecycle.roles import StaffSession
from orderdesk.lifecycle.statuses import Fulfillment, StaffRole
from orderdesk.models.restaurant import Restaurant
from orderdesk.schemas.order import BoardResponse
from orderdesk.stores.sql import SqlOrderStore

router = APIRouter()

BOARD_ROLES: Dict[str, Tuple[StaffRole, ...]] = {
    "kitchen": (StaffRole.COOK, StaffRole.MANAGER),
    "delivery": (StaffRole.DELIVERY, StaffRole.MANAGER),
    "manager": (StaffRole.MANAGER,),
}


@router.get("/{board}", response_model=BoardResponse)
async def get_board(
    board: str,
    known: Optional[List[UUID]] = Query(None, description="Order ids on the caller's previous poll"),
    period: str = Query("today", description="Manager board date filter"),
    fulfillment: Optional[Fulfillment] = None,
    search: Optional[str] = None,
    restaurant: Restaurant = Depends(get_restaurant),
    session: StaffSession = Depends(get_staff_session),
    db: AsyncSession = Depends(get_db),
):
    """Orders on a live board, grouped into sections with priority flags"""
    roles = BOARD_ROLES.get(board)
    if roles is None:
        raise HTTPException(status_code=404, detail="Board not found")
    if session.actor.role not in roles:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )
    
    service = BoardService(SqlOrderStore(db))
    
    if board == "manager":
        return await service.manager_board(
            session,
            restaurant_timezone(restaurant),
            period=period,
            fulfillment=fulfillment,
            search=search,
            known_ids=known,
        )
    return await service.build(board, session, known_ids=known)
