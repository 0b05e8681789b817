"""Glow Pay Gateway - Celery configuration.

Uses Celery with Redis as message broker for background payment
reconciliation, so a payment nobody polls still reaches a terminal state.

Usage:
    celery -A src.celery_app worker -Q payments -l info
"""

from celery import Celery

from src.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "glowpay_workers",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "src.workers.tasks.reconcile",
    ],
)

celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_routes={
        "src.workers.tasks.*": {"queue": "payments"},
    },
    # Task result expiration
    result_expires=3600,  # 1 hour
    # Worker settings
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)
