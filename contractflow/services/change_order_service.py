"""Change order engine."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select

from contractflow.core.exceptions import InvalidContractStateError
from contractflow.models import ChangeOrder, ChangeOrderItem, ChangeOrderStatus, Contract, DocumentPrefix
from contractflow.orchestration.commands import ApproveChangeOrder
from contractflow.orchestration.lifecycles import (
    CHANGE_ORDER_CONTRACT_STATES,
    CHANGE_ORDER_LIFECYCLE,
    CHANGE_ORDER_LOCK,
)
from contractflow.schemas.change_orders import ChangeOrderCreateRequest, ChangeOrderUpdateRequest
from contractflow.services.base_service import BaseService
from contractflow.services.id_generator import SequentialIdGenerator
from contractflow.services.line_items import build_lines
from contractflow.utils import money
from contractflow.utils.validators import sanitize_text


class ChangeOrderService(BaseService):
    """Service for change orders against active or in-warranty contracts."""

    def _next_co_number(self, contract_id: str) -> str:
        count = self.db.execute(
            select(func.count(ChangeOrder.id)).where(ChangeOrder.contract_id == contract_id)
        ).scalar_one()
        return f"CO-{count + 1:03d}"

    def create_change_order(
        self,
        payload: ChangeOrderCreateRequest | dict[str, Any],
        user_id: str | None = None,
    ) -> ChangeOrder:
        request = self._parse(ChangeOrderCreateRequest, payload)
        with self.atomic():
            # The contract row lock also serializes per-contract CO numbering.
            contract = self._get_or_404(Contract, request.contract_id, "Contract", for_update=True)
            if contract.status not in CHANGE_ORDER_CONTRACT_STATES:
                raise InvalidContractStateError(
                    contract.id,
                    contract.status.value,
                    [state.value for state in CHANGE_ORDER_CONTRACT_STATES],
                )

            change_order_id = SequentialIdGenerator(self.db).next_id(DocumentPrefix.CHANGE_ORDER.value, ChangeOrder.id)
            change_order = ChangeOrder(
                id=change_order_id,
                contract_id=contract.id,
                project_id=contract.project_id,
                co_number=self._next_co_number(contract.id),
                title=sanitize_text(request.title, max_len=200),
                reason=request.reason,
                days_impact=request.days_impact,
                status=ChangeOrderStatus.DRAFT,
                notes=request.notes,
                created_by=user_id,
                updated_by=user_id,
            )
            change_order.items = build_lines(ChangeOrderItem, change_order_id, request.items)
            change_order.amount = money.subtotal(change_order.items)
            self.db.add(change_order)
        return change_order

    def get_change_order(self, change_order_id: str) -> ChangeOrder:
        return self._get_or_404(ChangeOrder, change_order_id, "ChangeOrder")

    def list_change_orders(
        self,
        contract_id: str | None = None,
        project_id: str | None = None,
        status: ChangeOrderStatus | None = None,
    ) -> list[ChangeOrder]:
        stmt = select(ChangeOrder)
        if contract_id is not None:
            stmt = stmt.where(ChangeOrder.contract_id == contract_id)
        if project_id is not None:
            stmt = stmt.where(ChangeOrder.project_id == project_id)
        if status is not None:
            stmt = stmt.where(ChangeOrder.status == status)
        return list(self.db.execute(stmt.order_by(ChangeOrder.contract_id, ChangeOrder.co_number)).scalars())

    def update_change_order(
        self,
        change_order_id: str,
        patch: ChangeOrderUpdateRequest | dict[str, Any],
        user_id: str | None = None,
    ) -> ChangeOrder:
        changes = self._changes(self._parse(ChangeOrderUpdateRequest, patch))
        with self.atomic():
            change_order = self._get_or_404(ChangeOrder, change_order_id, "ChangeOrder", for_update=True)
            CHANGE_ORDER_LOCK.check(change_order, changes)

            for name in ("title", "reason", "days_impact", "notes"):
                if name in changes:
                    setattr(change_order, name, changes[name])
            if changes.get("items") is not None:
                change_order.items.clear()
                self.db.flush()
                change_order.items.extend(build_lines(ChangeOrderItem, change_order.id, changes["items"]))
                change_order.amount = money.subtotal(change_order.items)
            change_order.updated_by = user_id
        return change_order

    def _fire(self, change_order_id: str, event: str, user_id: str | None, **context: Any) -> ChangeOrder:
        with self.atomic():
            change_order = self._get_or_404(ChangeOrder, change_order_id, "ChangeOrder", for_update=True)
            CHANGE_ORDER_LIFECYCLE.fire(change_order, event, user_id=user_id, **context)
            change_order.updated_by = user_id
        return change_order

    def submit(self, change_order_id: str, user_id: str | None = None) -> ChangeOrder:
        return self._fire(change_order_id, "submit", user_id)

    def approve(self, change_order_id: str, user_id: str | None = None) -> ChangeOrder:
        return ApproveChangeOrder(self.db).execute(change_order_id, user_id=user_id)

    def reject(self, change_order_id: str, reason: str | None = None, user_id: str | None = None) -> ChangeOrder:
        return self._fire(change_order_id, "reject", user_id, reason=reason)
