"""
Side effects of committed status changes.

Each effect only enqueues a Celery task; the transition is already
committed and nothing here can undo it.
"""

from typing import List, Optional

import structlog

from orderdesk.config import settings
from orderdesk.lifecycle.engine import SideEffect
from orderdesk.lifecycle.statuses import Fulfillment, OrderStatus
from orderdesk.schemas.events import OrderEventRecord
from orderdesk.schemas.order import OrderSnapshot

logger = structlog.get_logger()

# Payments that never went through the card processor
NON_REFUNDABLE_METHODS = {"cash"}


def status_message(
    order_number: Optional[int],
    status: str,
    fulfillment: str,
    restaurant_name: Optional[str] = None,
) -> Optional[str]:
    """Customer SMS for a status, or None when the status isn't announced"""
    label = f"#{order_number}" if order_number is not None else ""
    sender = f"{restaurant_name}: " if restaurant_name else ""
    status = OrderStatus(status)

    if status == OrderStatus.PREPARING:
        text = f"Votre commande {label} est en préparation."
    elif status == OrderStatus.READY and Fulfillment(fulfillment) == Fulfillment.PICKUP:
        text = f"Votre commande {label} est prête à être récupérée."
    elif status == OrderStatus.ENROUTE:
        text = f"Votre commande {label} est en route."
    elif status == OrderStatus.COMPLETED:
        text = f"Votre commande {label} est terminée. Merci!"
    elif status == OrderStatus.CANCELLED:
        text = f"Votre commande {label} a été annulée."
    elif status == OrderStatus.FAILED:
        text = f"La livraison de votre commande {label} n'a pas pu être effectuée."
    else:
        return None
    return sender + " ".join(text.split())


class SmsSideEffect(SideEffect):
    """Queues a customer SMS for every announced status"""

    name = "status_sms"

    async def status_changed(self, order: OrderSnapshot, event: OrderEventRecord) -> None:
        if status_message(order.order_number, order.status, order.fulfillment) is None:
            return
        from orderdesk.jobs.tasks import send_status_sms

        send_status_sms.delay(str(order.id), OrderStatus(order.status).value)
        logger.debug("Status SMS queued", order_id=str(order.id), status=order.status.value)


class RefundSideEffect(SideEffect):
    """Queues a refund when a paid order is cancelled"""

    name = "refund"

    async def status_changed(self, order: OrderSnapshot, event: OrderEventRecord) -> None:
        if OrderStatus(order.status) != OrderStatus.CANCELLED:
            return
        if (order.payment_method or "").lower() in NON_REFUNDABLE_METHODS:
            return
        if (order.payment_status or "").lower() == "refunded":
            return
        from orderdesk.jobs.tasks import process_refund

        process_refund.delay(str(order.id))
        logger.info("Refund queued", order_id=str(order.id))


def default_side_effects() -> List[SideEffect]:
    """Side effects enabled by configuration"""
    if not settings.notifications_enabled:
        return []
    return [RefundSideEffect(), SmsSideEffect()]
