"""Pydantic schemas for request/response validation"""

from orderdesk.schemas.order import (
    OrderItemSnapshot,
    OrderSnapshot,
    TransitionRequest,
    PriorityFlag,
    BoardOrder,
    BoardResponse,
)
from orderdesk.schemas.events import (
    STATUS_CHANGED,
    StatusPayload,
    OrderEventRecord,
    OrderEventResponse,
    parse_payload,
)
from orderdesk.schemas.history import HistoryEntry, HistoryResponse
from orderdesk.schemas.staff import StaffRef
from orderdesk.schemas.analytics import (
    AnalyticsOrder,
    AnalyticsReport,
    LocalPlacement,
)

__all__ = [
    "OrderItemSnapshot",
    "OrderSnapshot",
    "TransitionRequest",
    "PriorityFlag",
    "BoardOrder",
    "BoardResponse",
    "STATUS_CHANGED",
    "StatusPayload",
    "OrderEventRecord",
    "OrderEventResponse",
    "parse_payload",
    "HistoryEntry",
    "HistoryResponse",
    "StaffRef",
    "AnalyticsOrder",
    "AnalyticsReport",
    "LocalPlacement",
]
