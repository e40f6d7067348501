"""Order event schemas

The status_changed payload is a tagged union keyed on `status`, so each
variant declares exactly which fields it requires.
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, TypeAdapter

from orderdesk.lifecycle.statuses import OrderStatus

STATUS_CHANGED = "status_changed"


class _StatusPayload(BaseModel):
    """Common base for status_changed payload variants"""
    
    def order_status(self) -> OrderStatus:
        return OrderStatus(self.status)
    
    def to_json(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


class Received(_StatusPayload):
    status: Literal["received"] = "received"


class Preparing(_StatusPayload):
    status: Literal["preparing"] = "preparing"
    cook_id: Optional[UUID] = None


class Ready(_StatusPayload):
    status: Literal["ready"] = "ready"


class Assigned(_StatusPayload):
    status: Literal["assigned"] = "assigned"
    driver_id: UUID


class Enroute(_StatusPayload):
    status: Literal["enroute"] = "enroute"


class Completed(_StatusPayload):
    status: Literal["completed"] = "completed"


class Cancelled(_StatusPayload):
    status: Literal["cancelled"] = "cancelled"
    reason: str = Field(
        min_length=1,
        validation_alias=AliasChoices("reason", "cancellation_reason"),
    )


class Failed(_StatusPayload):
    status: Literal["failed"] = "failed"
    reason: str = Field(
        min_length=1,
        validation_alias=AliasChoices("reason", "failure_reason"),
    )


StatusPayload = Annotated[
    Union[Received, Preparing, Ready, Assigned, Enroute, Completed, Cancelled, Failed],
    Field(discriminator="status"),
]

status_payload_adapter = TypeAdapter(StatusPayload)


def parse_payload(raw: dict) -> StatusPayload:
    """Validate a raw payload dict into its status variant"""
    return status_payload_adapter.validate_python(raw)


class OrderEventRecord(BaseModel):
    """One appended status change. `sequence` orders events with equal timestamps."""
    sequence: int
    order_id: UUID
    actor_type: str
    actor_id: Optional[UUID] = None
    event_type: str = STATUS_CHANGED
    payload: StatusPayload
    created_at: datetime


class OrderEventResponse(BaseModel):
    """Event in API responses"""
    sequence: int
    order_id: UUID
    actor_type: str
    actor_id: Optional[UUID]
    status: str
    payload: dict
    created_at: datetime
