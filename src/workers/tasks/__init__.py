"""Glow Pay Gateway - Celery tasks module.

Tasks organized by functionality:
- reconcile: Delayed payment reconciliation
"""

from src.workers.tasks.reconcile import (
    reconcile_payment,
    run_reconcile,
    schedule_payment_reconcile,
)

__all__ = [
    "reconcile_payment",
    "run_reconcile",
    "schedule_payment_reconcile",
]
