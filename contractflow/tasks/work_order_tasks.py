"""Work-order completion handler.

Delivered at least once by the broker. The cost entry id is derived from the
work order number, so a redelivered or retried message returns the entry
written by the first delivery instead of creating a second one.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import OperationalError

from contractflow.core.config import get_config
from contractflow.core.exceptions import DatabaseError
from contractflow.core.logging import DocumentLogContext, build_log_event
from contractflow.database.db import get_db_session
from contractflow.services.cost_entry_service import CostEntryService
from contractflow.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    name="contractflow.work_orders.record_cost",
    autoretry_for=(OperationalError, DatabaseError),
    retry_backoff=True,
    retry_jitter=True,
    max_retries=get_config().WORK_ORDER_TASK_MAX_RETRIES,
)
def record_work_order_cost(
    self,
    wo_number: str,
    project_id: str,
    amount: str,
    description: str | None = None,
    category: str = "LABOR",
    contract_id: str | None = None,
    completed_on: str | None = None,
    user_id: str | None = None,
) -> dict[str, Any]:
    context = DocumentLogContext(
        document_type="WorkOrder",
        document_id=wo_number,
        user_id=user_id,
        trace_id=self.request.id,
    )
    logger.info("work_order.cost.start", extra=build_log_event("work_order.cost.start", context))

    with get_db_session() as db:
        entry = CostEntryService(db).record_work_order_cost(
            wo_number=wo_number,
            project_id=project_id,
            amount=amount,
            description=description,
            category=category,
            contract_id=contract_id,
            entry_date=completed_on,
            user_id=user_id,
        )
        result = {
            "cost_entry_id": entry.id,
            "project_id": entry.project_id,
            "amount": str(entry.amount),
        }

    logger.info(
        "work_order.cost.finish",
        extra=build_log_event("work_order.cost.finish", context, reference_id=result["cost_entry_id"]),
    )
    return result
