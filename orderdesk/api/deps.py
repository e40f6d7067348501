"""Request dependencies: staff identity, role mode and side effects"""

from typing import List, Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.config import settings
from orderdesk.database import get_db
from orderdesk.lifecycle.engine import SideEffect
from orderdesk.lifecycle.roles import StaffSession
from orderdesk.lifecycle.statuses import StaffRole
from orderdesk.models.restaurant import Restaurant
from orderdesk.notifications import default_side_effects
from orderdesk.stores.sql import SqlStaffDirectory


async def get_restaurant(
    restaurant_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> Restaurant:
    """Load the restaurant named in the path"""
    result = await db.execute(select(Restaurant).where(Restaurant.id == restaurant_id))
    restaurant = result.scalar_one_or_none()
    
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    
    return restaurant


def restaurant_timezone(restaurant: Restaurant) -> str:
    return restaurant.timezone or settings.default_timezone


async def get_staff_session(
    restaurant: Restaurant = Depends(get_restaurant),
    x_staff_id: UUID = Header(..., description="Staff member resolved by the session layer"),
    x_role_mode: Optional[str] = Header(
        None,
        description="Mode picked on the staff member's device; the restaurant default applies when absent",
    ),
    db: AsyncSession = Depends(get_db),
) -> StaffSession:
    """Build the caller's session in the role mode they picked"""
    session = await SqlStaffDirectory(db).session_for(restaurant, x_staff_id, x_role_mode)
    
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied to this restaurant",
        )
    
    return session


def require_role(*roles: StaffRole):
    """Dependency factory restricting an endpoint to some staff roles"""
    async def role_checker(session: StaffSession = Depends(get_staff_session)) -> StaffSession:
        if session.actor.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return session
    return role_checker


def get_side_effects() -> List[SideEffect]:
    """Side effects run after each committed transition"""
    return default_side_effects()
