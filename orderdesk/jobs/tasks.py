"""Background job tasks for order status side effects"""

from uuid import UUID
import asyncio
import httpx
import structlog

from orderdesk.jobs.celery_app import celery_app
from orderdesk.config import settings

logger = structlog.get_logger()

REFUND_TIMEOUT_SECONDS = 15.0


def run_async(coro):
    """Helper to run async functions in sync context"""
    return asyncio.run(coro)


@celery_app.task(name="send_status_sms")
def send_status_sms(order_id: str, status: str):
    """Text the customer about their order's new status"""
    logger.info("Sending status SMS", order_id=order_id, status=status)
    
    async def _send():
        from orderdesk.database import SessionLocal
        from orderdesk.models.order import Order
        from orderdesk.models.restaurant import Restaurant
        from orderdesk.notifications import status_message
        from twilio.rest import Client as TwilioClient
        from sqlalchemy import select
        
        async with SessionLocal() as db:
            result = await db.execute(
                select(Order, Restaurant.name)
                .join(Restaurant, Restaurant.id == Order.restaurant_id)
                .where(Order.id == UUID(order_id))
            )
            row = result.one_or_none()
            
            if row is None:
                logger.warning("Order not found for status SMS", order_id=order_id)
                return
            
            order, restaurant_name = row
            if not order.customer_phone:
                logger.info("No customer phone, skipping SMS", order_id=order_id)
                return
            
            body = status_message(order.order_number, status, order.fulfillment, restaurant_name)
            if body is None:
                return
            
            client = TwilioClient(settings.twilio_account_sid, settings.twilio_auth_token)
            message = client.messages.create(
                body=body,
                from_=settings.twilio_phone_number,
                to=order.customer_phone,
            )
            
            logger.info("Status SMS sent", order_id=order_id, status=status, sid=message.sid)
    
    run_async(_send())


@celery_app.task(name="process_refund")
def process_refund(order_id: str):
    """Ask the payments API to refund a cancelled order"""
    if not settings.payments_api_url:
        logger.warning("Payments API not configured, refund skipped", order_id=order_id)
        return None
    
    url = f"{settings.payments_api_url.rstrip('/')}/api/stripe/cancel-payment"
    logger.info("Requesting refund", order_id=order_id)
    
    response = httpx.post(url, json={"orderId": order_id}, timeout=REFUND_TIMEOUT_SECONDS)
    try:
        result = response.json()
    except ValueError:
        result = {}
    
    if response.is_success and result.get("success"):
        logger.info(
            "Refund processed",
            order_id=order_id,
            action=result.get("action"),
            refund_id=result.get("refundId"),
            amount=result.get("amount"),
        )
    else:
        logger.warning(
            "Refund not processed",
            order_id=order_id,
            status_code=response.status_code,
            error=result.get("error") or result.get("message") or "unknown error",
        )
    return result
