"""Celery application for event-driven handlers."""

from __future__ import annotations

from celery import Celery

from contractflow.core.config import get_config

config = get_config()

celery_app = Celery("contractflow", broker=config.CELERY_BROKER_URL, backend=config.CELERY_RESULT_BACKEND)
celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    # Handlers are idempotent, so redelivery after a worker crash is safe.
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    task_routes={"contractflow.work_orders.*": {"queue": config.WORK_ORDER_QUEUE}},
    task_always_eager=config.CELERY_TASK_ALWAYS_EAGER,
)
