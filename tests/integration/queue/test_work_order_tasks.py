from __future__ import annotations

from decimal import Decimal

import contractflow.tasks.work_order_tasks as work_order_tasks
from contractflow.models import CostEntry
from contractflow.tasks.celery_app import celery_app


def test_work_order_task_records_cost_once(monkeypatch, session_factory, db_session_patch):
    monkeypatch.setattr(work_order_tasks, "get_db_session", db_session_patch)

    first = work_order_tasks.record_work_order_cost(
        wo_number="WO-2026-015", project_id="P-001", amount="18500", completed_on="2026-05-02"
    )
    redelivered = work_order_tasks.record_work_order_cost(
        wo_number="WO-2026-015", project_id="P-001", amount="18500", completed_on="2026-05-02"
    )

    assert first == redelivered
    assert first == {"cost_entry_id": "CE-WO-2026-015-01", "project_id": "P-001", "amount": "18500.00"}

    session = session_factory()
    try:
        entries = session.query(CostEntry).all()
        assert len(entries) == 1
        assert entries[0].amount == Decimal("18500.00")
        assert entries[0].category == "LABOR"
    finally:
        session.close()


def test_work_order_task_is_registered_with_retry_policy():
    task = work_order_tasks.record_work_order_cost
    assert task.name == "contractflow.work_orders.record_cost"
    assert task.max_retries == work_order_tasks.get_config().WORK_ORDER_TASK_MAX_RETRIES


def test_work_order_task_is_routed_to_its_queue():
    assert work_order_tasks.record_work_order_cost.name in celery_app.tasks
    route = celery_app.conf.task_routes["contractflow.work_orders.*"]
    assert route == {"queue": work_order_tasks.get_config().WORK_ORDER_QUEUE}
