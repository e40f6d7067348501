"""Celery application for order status side effects"""

from celery import Celery
from orderdesk.config import settings

celery_app = Celery(
    "orderdesk",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "orderdesk.jobs.tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    # SMS and refunds are independent; a slow payments API must not delay texts
    task_routes={
        "send_status_sms": {"queue": "notifications"},
        "process_refund": {"queue": "payments"},
    },
    task_annotations={
        "send_status_sms": {"time_limit": 30},
        "process_refund": {"time_limit": 60},
    },
    result_expires=86400,
)
