"""Workers module - Celery task queue for background tasks."""

from src.celery_app import celery_app

__all__ = [
    "celery_app",
]
