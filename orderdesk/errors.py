"""Error taxonomy for order lifecycle operations"""

from typing import Optional


class OrderDeskError(Exception):
    """Base error for the order desk"""
    
    status_code = 500
    
    def __init__(self, message: str, order_id: Optional[str] = None):
        self.message = message
        self.order_id = order_id
        super().__init__(message)


class ValidationError(OrderDeskError):
    """Request rejected before any mutation"""
    
    status_code = 422


class InvalidTransition(ValidationError):
    """Target status is not a legal next status"""
    
    def __init__(self, current: str, target: str, order_id: Optional[str] = None):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move order from {current} to {target}", order_id)


class MissingReason(ValidationError):
    """Cancelling or failing an order requires a reason"""
    
    def __init__(self, target: str, order_id: Optional[str] = None):
        self.target = target
        super().__init__(f"A reason is required to mark an order {target}", order_id)


class TransitionForbidden(ValidationError):
    """Actor's role or mode does not allow this transition"""
    
    status_code = 403


class InvalidAssignee(ValidationError):
    """Reassignment target is not active staff of the required role"""


class InvalidDateRange(ValidationError):
    """Analytics date range cannot be resolved"""


class OrderNotFound(OrderDeskError):
    """Order does not exist in the restaurant"""
    
    status_code = 404


class AccessDenied(OrderDeskError):
    """Caller is not an active staff member of the restaurant"""
    
    status_code = 403


class ConflictError(OrderDeskError):
    """Order status changed since the caller last read it"""
    
    status_code = 409
    
    def __init__(self, expected: str, order_id: Optional[str] = None):
        self.expected = expected
        super().__init__(
            f"Order is no longer {expected}; refresh and try again",
            order_id,
        )


class ExternalServiceError(OrderDeskError):
    """Persisting the transition failed and was rolled back"""
    
    status_code = 503
