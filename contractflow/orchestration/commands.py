"""Transactional commands that write across more than one aggregate."""

from __future__ import annotations

from contractflow.models import ChangeOrder, Contract
from contractflow.orchestration.lifecycles import CHANGE_ORDER_LIFECYCLE
from contractflow.services.base_service import BaseService


class ApproveChangeOrder(BaseService):
    """Approve a pending change order and fold its amount into the contract.

    Both rows are locked for the duration of the unit. The change-order status
    write and the contract amount write commit together or not at all, so
    ``contract.current_amount == original_amount + sum(approved change orders)``
    holds after every committed approval.
    """

    def execute(self, change_order_id: str, user_id: str | None = None) -> ChangeOrder:
        with self.atomic():
            change_order = self._get_or_404(ChangeOrder, change_order_id, "ChangeOrder", for_update=True)
            # Fail on the change order's own state before touching the contract row.
            CHANGE_ORDER_LIFECYCLE.transition_for(change_order, "approve")
            contract = self._get_or_404(Contract, change_order.contract_id, "Contract", for_update=True)

            CHANGE_ORDER_LIFECYCLE.fire(change_order, "approve", contract=contract, user_id=user_id)
            change_order.updated_by = user_id
        return change_order

    __call__ = execute
