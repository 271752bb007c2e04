"""Transition tables for the four lifecycle-managed document types."""

from __future__ import annotations

from typing import Any

from contractflow.core.exceptions import InvalidContractStateError, ValidationError
from contractflow.models.enums import ChangeOrderStatus, ContractStatus, PaymentStatus, QuotationStatus
from contractflow.orchestration.state_machine import DocumentStateMachine, LockPolicy, lock_document, transition
from contractflow.utils import money
from contractflow.utils.dates import add_months
from contractflow.utils.validators import prepend_note

CHANGE_ORDER_CONTRACT_STATES = (ContractStatus.ACTIVE, ContractStatus.WARRANTY)


def recompute_contract_amounts(contract: Any) -> None:
    """Keep ``current = original + change`` and retention derived from current."""
    contract.current_amount = money.round2(
        money.to_decimal(contract.original_amount) + money.to_decimal(contract.change_amount)
    )
    contract.retention_amount = money.retention(contract.current_amount, contract.retention_rate)


def _rejection_note(tag: str):
    def effect(document: Any, context: dict[str, Any]) -> None:
        document.notes = prepend_note(document.notes, tag, context.get("reason"))

    return effect


# Quotation

def _quotation_has_priced_items(quotation: Any, context: dict[str, Any]) -> None:
    if not quotation.items:
        raise ValidationError("Quotation must have at least one item", document_id=quotation.id)
    if money.to_decimal(quotation.total_amount) <= 0:
        raise ValidationError("Quotation total amount must be greater than 0", document_id=quotation.id)


QUOTATION_LIFECYCLE = DocumentStateMachine(
    "Quotation",
    [
        transition(QuotationStatus.DRAFT, "submit", QuotationStatus.PENDING, guard=_quotation_has_priced_items),
        transition(QuotationStatus.PENDING, "approve", QuotationStatus.APPROVED, effect=lock_document),
        transition(QuotationStatus.PENDING, "reject", QuotationStatus.DRAFT, effect=_rejection_note("[駁回原因]")),
    ],
)

QUOTATION_LOCK = LockPolicy(
    "Quotation",
    allowed_fields=frozenset({"notes"}),
    is_frozen=lambda quotation: quotation.is_locked or quotation.status != QuotationStatus.DRAFT,
)


# Contract

def _sign(contract: Any, context: dict[str, Any]) -> None:
    contract.sign_date = context.get("sign_date") or context["now"].date()
    lock_document(contract, context)


def _completion_state(contract: Any, context: dict[str, Any]) -> ContractStatus:
    if (contract.warranty_months or 0) > 0:
        return ContractStatus.WARRANTY
    return ContractStatus.COMPLETED


def _start_warranty(contract: Any, context: dict[str, Any]) -> None:
    if (contract.warranty_months or 0) > 0:
        contract.warranty_end = add_months(context["now"].date(), contract.warranty_months)


CONTRACT_LIFECYCLE = DocumentStateMachine(
    "Contract",
    [
        transition(ContractStatus.DRAFT, "sign", ContractStatus.ACTIVE, effect=_sign),
        transition(
            ContractStatus.ACTIVE,
            "complete",
            ContractStatus.COMPLETED,
            resolve=_completion_state,
            effect=_start_warranty,
        ),
        transition((ContractStatus.COMPLETED, ContractStatus.WARRANTY), "close", ContractStatus.CLOSED),
    ],
)

CONTRACT_LOCK = LockPolicy("Contract", allowed_fields=frozenset({"notes", "warranty_months"}))


# Change order

def _contract_accepts_changes(change_order: Any, context: dict[str, Any]) -> None:
    contract = context["contract"]
    if contract.status not in CHANGE_ORDER_CONTRACT_STATES:
        raise InvalidContractStateError(
            contract.id,
            contract.status.value,
            [state.value for state in CHANGE_ORDER_CONTRACT_STATES],
        )


def _apply_change_to_contract(change_order: Any, context: dict[str, Any]) -> None:
    contract = context["contract"]
    change_order.approved_at = context["now"]
    change_order.approved_by = context.get("user_id")
    contract.change_amount = money.round2(
        money.to_decimal(contract.change_amount) + money.to_decimal(change_order.amount)
    )
    recompute_contract_amounts(contract)
    contract.updated_by = context.get("user_id")


CHANGE_ORDER_LIFECYCLE = DocumentStateMachine(
    "ChangeOrder",
    [
        transition(ChangeOrderStatus.DRAFT, "submit", ChangeOrderStatus.PENDING),
        transition(
            ChangeOrderStatus.PENDING,
            "approve",
            ChangeOrderStatus.APPROVED,
            guard=_contract_accepts_changes,
            effect=_apply_change_to_contract,
        ),
        transition(ChangeOrderStatus.PENDING, "reject", ChangeOrderStatus.DRAFT, effect=_rejection_note("[駁回]")),
    ],
)

CHANGE_ORDER_LOCK = LockPolicy("ChangeOrder", allowed_fields=frozenset({"notes"}))


# Payment application

def _has_request_amount(application: Any, context: dict[str, Any]) -> None:
    if money.to_decimal(application.request_amount) <= 0:
        raise ValidationError("Request amount must be greater than 0", document_id=application.id)


def _fully_received(application: Any, context: dict[str, Any]) -> None:
    if money.to_decimal(application.received_amount) < money.to_decimal(application.net_amount):
        raise ValidationError(
            "Received amount does not cover the net amount yet",
            document_id=application.id,
            received_amount=str(application.received_amount),
            net_amount=str(application.net_amount),
        )


PAYMENT_LIFECYCLE = DocumentStateMachine(
    "PaymentApplication",
    [
        transition(PaymentStatus.DRAFT, "submit", PaymentStatus.PENDING, guard=_has_request_amount),
        transition(PaymentStatus.PENDING, "approve", PaymentStatus.APPROVED, effect=lock_document),
        transition(PaymentStatus.PENDING, "reject", PaymentStatus.DRAFT, effect=_rejection_note("[駁回]")),
        transition(PaymentStatus.APPROVED, "settle", PaymentStatus.PAID, guard=_fully_received),
    ],
)

PAYMENT_LOCK = LockPolicy("PaymentApplication", allowed_fields=frozenset({"notes"}))
