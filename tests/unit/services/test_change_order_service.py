from __future__ import annotations

from decimal import Decimal

import pytest

import contractflow.orchestration.lifecycles as lifecycles
from contractflow.core.exceptions import (
    DocumentLockedError,
    InvalidContractStateError,
    InvalidTransitionError,
    ValidationError,
)
from contractflow.models import ChangeOrderStatus, ContractStatus
from contractflow.services.change_order_service import ChangeOrderService
from contractflow.services.contract_service import ContractService


def _draft(session, contract_id, unit_price=5000, title="Extra partition"):
    return ChangeOrderService(session).create_change_order(
        {
            "contract_id": contract_id,
            "title": title,
            "reason": "client request",
            "days_impact": 3,
            "items": [{"item_name": title, "quantity": 1, "unit_price": unit_price}],
        }
    )


def test_create_requires_active_or_warranty_contract(session, projects):
    contract = ContractService(session, projects=projects).create_contract(
        {"project_id": "P-1", "original_amount": "1000"}
    )
    with pytest.raises(InvalidContractStateError) as exc_info:
        _draft(session, contract.id)
    assert exc_info.value.current_state == ContractStatus.DRAFT.value


def test_create_numbers_per_contract(session, active_contract):
    first = _draft(session, active_contract.id)
    second = _draft(session, active_contract.id, unit_price=-800, title="Omit skirting")
    assert first.co_number == "CO-001"
    assert second.co_number == "CO-002"
    assert first.project_id == active_contract.project_id
    assert first.amount == Decimal("5000.00")
    assert second.amount == Decimal("-800.00")


def test_update_only_while_draft(session, active_contract):
    service = ChangeOrderService(session)
    change_order = _draft(session, active_contract.id)
    updated = service.update_change_order(
        change_order.id,
        {"items": [{"item_name": "A", "quantity": 2, "unit_price": 100}, {"item_name": "B", "quantity": 1, "unit_price": 50}]},
    )
    assert updated.amount == Decimal("250.00")
    assert len(updated.items) == 2

    service.submit(change_order.id)
    with pytest.raises(DocumentLockedError):
        service.update_change_order(change_order.id, {"title": "late edit"})


def test_reject_prepends_note_and_returns_to_draft(session, active_contract):
    service = ChangeOrderService(session)
    change_order = _draft(session, active_contract.id)
    service.submit(change_order.id)
    rejected = service.reject(change_order.id, reason="missing drawings")
    assert rejected.status == ChangeOrderStatus.DRAFT
    assert rejected.notes == "[駁回] missing drawings"


def test_approve_updates_contract_amounts(session, active_contract):
    service = ChangeOrderService(session)
    change_order = _draft(session, active_contract.id)
    service.submit(change_order.id)
    approved = service.approve(change_order.id, user_id="u-manager")

    assert approved.status == ChangeOrderStatus.APPROVED
    assert approved.approved_by == "u-manager"
    assert approved.approved_at is not None
    contract = ContractService(session).get_contract(active_contract.id)
    assert contract.change_amount == Decimal("5000.00")
    assert contract.current_amount == Decimal("26000.00")
    assert contract.retention_amount == Decimal("1300.00")


def test_approve_twice_is_invalid(session, active_contract):
    service = ChangeOrderService(session)
    change_order = _draft(session, active_contract.id)
    service.submit(change_order.id)
    service.approve(change_order.id)
    with pytest.raises(InvalidTransitionError):
        service.approve(change_order.id)
    assert ContractService(session).get_contract(active_contract.id).change_amount == Decimal("5000.00")


def test_approve_on_completed_contract_leaves_both_untouched(session, active_contract, projects):
    service = ChangeOrderService(session)
    change_order = _draft(session, active_contract.id)
    service.submit(change_order.id)
    contracts = ContractService(session, projects=projects)
    contracts.update_contract(active_contract.id, {"warranty_months": 0})
    contracts.complete_contract(active_contract.id)

    with pytest.raises(InvalidContractStateError):
        service.approve(change_order.id)
    assert service.get_change_order(change_order.id).status == ChangeOrderStatus.PENDING
    assert contracts.get_contract(active_contract.id).current_amount == Decimal("21000.00")


def test_approve_rolls_back_both_rows_on_failure(session, active_contract, monkeypatch):
    service = ChangeOrderService(session)
    change_order = _draft(session, active_contract.id)
    service.submit(change_order.id)

    def _boom(contract):
        raise RuntimeError("storage failure")

    monkeypatch.setattr(lifecycles, "recompute_contract_amounts", _boom)
    with pytest.raises(RuntimeError):
        service.approve(change_order.id)

    session.expire_all()
    assert service.get_change_order(change_order.id).status == ChangeOrderStatus.PENDING
    contract = ContractService(session).get_contract(active_contract.id)
    assert contract.change_amount == Decimal("0.00")
    assert contract.current_amount == Decimal("21000.00")


def test_list_filters(session, active_contract):
    service = ChangeOrderService(session)
    first = _draft(session, active_contract.id)
    _draft(session, active_contract.id, title="Second")
    service.submit(first.id)
    assert [co.id for co in service.list_change_orders(status=ChangeOrderStatus.PENDING)] == [first.id]
    assert len(service.list_change_orders(contract_id=active_contract.id)) == 2
    assert service.list_change_orders(project_id="P-other") == []


@pytest.mark.parametrize("field", ["days_impact", "title", "items"])
def test_update_rejects_null_for_required_fields(session, active_contract, field):
    change_order = _draft(session, active_contract.id)
    with pytest.raises(ValidationError):
        ChangeOrderService(session).update_change_order(change_order.id, {field: None})

    assert change_order.days_impact == 3
    assert change_order.title == "Extra partition"
