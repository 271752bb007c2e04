"""Contract engine.

A contract is created standalone or converted from an approved quotation
(at most one contract per quotation). ``current_amount`` is authoritative:
it equals ``original_amount + change_amount`` after every write, and
``retention_amount`` is derived from it. Signing locks the contract; from
then on only ``notes`` and ``warranty_months`` may be edited.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from contractflow.core.config import get_config
from contractflow.core.exceptions import AlreadyConvertedError, ValidationError
from contractflow.models import Contract, ContractStatus, DocumentPrefix
from contractflow.orchestration.lifecycles import CONTRACT_LIFECYCLE, CONTRACT_LOCK, recompute_contract_amounts
from contractflow.schemas.contracts import ContractCreateRequest, ContractUpdateRequest
from contractflow.services.base_service import BaseService
from contractflow.services.id_generator import SequentialIdGenerator
from contractflow.services.project_gateway import LoggingProjectGateway, ProjectGateway
from contractflow.services.quotation_service import QuotationService
from contractflow.utils import money

_SCALAR_FIELDS = (
    "title",
    "contract_no",
    "contract_type",
    "payment_terms",
    "start_date",
    "end_date",
    "warranty_months",
    "notes",
)


class ContractService(BaseService):
    """Service for contract creation, edits and the sign/complete/close lifecycle."""

    def __init__(self, db: Session | None = None, projects: ProjectGateway | None = None) -> None:
        super().__init__(db)
        self.projects = projects or LoggingProjectGateway()

    def _existing_for_quotation(self, quotation_id: str) -> Contract | None:
        return self.db.execute(select(Contract).where(Contract.quotation_id == quotation_id)).scalar_one_or_none()

    def create_contract(self, payload: ContractCreateRequest | dict[str, Any], user_id: str | None = None) -> Contract:
        request = self._parse(ContractCreateRequest, payload)
        config = get_config()
        with self.atomic():
            project_id = request.project_id
            title = request.title
            currency = "TWD"
            if request.quotation_id:
                existing = self._existing_for_quotation(request.quotation_id)
                if existing is not None:
                    raise AlreadyConvertedError(request.quotation_id, existing.id)
                quotation = QuotationService(self.db).find_approved_quotation(request.quotation_id)
                project_id = project_id or quotation.project_id
                title = title or quotation.title
                currency = quotation.currency
                original_amount = quotation.total_amount
            else:
                if not project_id:
                    raise ValidationError("project_id is required for a standalone contract")
                if request.original_amount is None:
                    raise ValidationError("original_amount is required for a standalone contract")
                original_amount = request.original_amount

            contract = Contract(
                id=SequentialIdGenerator(self.db).next_id(DocumentPrefix.CONTRACT.value, Contract.id),
                project_id=project_id,
                quotation_id=request.quotation_id,
                contract_no=request.contract_no,
                title=title or f"{project_id} 合約",
                contract_type=request.contract_type,
                currency=currency,
                original_amount=money.round2(original_amount),
                change_amount=money.round2(0),
                retention_rate=money.round_rate(
                    request.retention_rate if request.retention_rate is not None else config.DEFAULT_RETENTION_RATE
                ),
                payment_terms=request.payment_terms,
                start_date=request.start_date,
                end_date=request.end_date,
                warranty_months=(
                    request.warranty_months if request.warranty_months is not None else config.DEFAULT_WARRANTY_MONTHS
                ),
                status=ContractStatus.DRAFT,
                notes=request.notes,
                created_by=user_id,
                updated_by=user_id,
            )
            recompute_contract_amounts(contract)
            self.db.add(contract)
            try:
                self.db.flush()
            except IntegrityError as exc:
                if request.quotation_id:
                    raise AlreadyConvertedError(request.quotation_id) from exc
                raise
        return contract

    def convert_from_quotation(
        self,
        quotation_id: str,
        retention_rate: Any = None,
        user_id: str | None = None,
        **fields: Any,
    ) -> Contract:
        payload = {"quotation_id": quotation_id, "retention_rate": retention_rate, **fields}
        return self.create_contract(payload, user_id=user_id)

    def get_contract(self, contract_id: str) -> Contract:
        return self._get_or_404(Contract, contract_id, "Contract")

    def list_contracts(self, project_id: str | None = None, status: ContractStatus | None = None) -> list[Contract]:
        stmt = select(Contract)
        if project_id is not None:
            stmt = stmt.where(Contract.project_id == project_id)
        if status is not None:
            stmt = stmt.where(Contract.status == status)
        return list(self.db.execute(stmt.order_by(Contract.id.desc())).scalars())

    def update_contract(
        self,
        contract_id: str,
        patch: ContractUpdateRequest | dict[str, Any],
        user_id: str | None = None,
    ) -> Contract:
        changes = self._changes(self._parse(ContractUpdateRequest, patch))
        with self.atomic():
            contract = self._get_or_404(Contract, contract_id, "Contract", for_update=True)
            CONTRACT_LOCK.check(contract, changes)

            for name in _SCALAR_FIELDS:
                if name in changes:
                    setattr(contract, name, changes[name])
            if changes.get("original_amount") is not None:
                contract.original_amount = money.round2(changes["original_amount"])
            if changes.get("retention_rate") is not None:
                contract.retention_rate = money.round_rate(changes["retention_rate"])
            recompute_contract_amounts(contract)
            contract.updated_by = user_id
        return contract

    def sign_contract(self, contract_id: str, sign_date: date | None = None, user_id: str | None = None) -> Contract:
        with self.atomic():
            contract = self._get_or_404(Contract, contract_id, "Contract", for_update=True)
            CONTRACT_LIFECYCLE.fire(contract, "sign", user_id=user_id, sign_date=sign_date)
            contract.updated_by = user_id
        # The contract stays signed if the project module fails; the error still reaches the caller.
        self.projects.mark_in_progress(contract.project_id, user_id=user_id)
        return contract

    def complete_contract(self, contract_id: str, user_id: str | None = None) -> Contract:
        with self.atomic():
            contract = self._get_or_404(Contract, contract_id, "Contract", for_update=True)
            CONTRACT_LIFECYCLE.fire(contract, "complete", user_id=user_id)
            contract.updated_by = user_id
        return contract

    def close_contract(self, contract_id: str, user_id: str | None = None) -> Contract:
        with self.atomic():
            contract = self._get_or_404(Contract, contract_id, "Contract", for_update=True)
            CONTRACT_LIFECYCLE.fire(contract, "close", user_id=user_id)
            contract.updated_by = user_id
        return contract
