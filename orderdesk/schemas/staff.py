"""Staff schemas"""

from typing import Optional
from uuid import UUID
from pydantic import BaseModel

from orderdesk.lifecycle.statuses import StaffRole


class StaffRef(BaseModel):
    """A staff member acting on orders"""
    id: UUID
    role: StaffRole
    username: Optional[str] = None
    is_active: bool = True

    class Config:
        from_attributes = True
