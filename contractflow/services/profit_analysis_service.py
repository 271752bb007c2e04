"""Read-only profit roll-up per project and across active projects."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

import pandas as pd
from sqlalchemy import func, select

from contractflow.models import (
    ChangeOrder,
    ChangeOrderStatus,
    Contract,
    ContractStatus,
    CostEntry,
    Invoice,
    InvoiceStatus,
    PaymentApplication,
    PaymentReceipt,
    PaymentStatus,
)
from contractflow.services.base_service import BaseService
from contractflow.utils import money
from contractflow.utils.frames import records_to_df

REQUESTED_STATES = (PaymentStatus.APPROVED, PaymentStatus.PAID)


@dataclass(frozen=True)
class ProjectProfit:
    project_id: str
    contract_amount: Decimal
    change_order_amount: Decimal
    current_amount: Decimal
    total_cost: Decimal
    gross_profit: Decimal
    margin_rate: Decimal
    total_requested: Decimal
    total_invoiced: Decimal
    total_received: Decimal
    accounts_receivable: Decimal
    accounts_payable: Decimal


@dataclass(frozen=True)
class ProfitDashboard:
    project_count: int
    contract_amount: Decimal
    change_order_amount: Decimal
    current_amount: Decimal
    total_cost: Decimal
    gross_profit: Decimal
    margin_rate: Decimal
    total_requested: Decimal
    total_invoiced: Decimal
    total_received: Decimal
    accounts_receivable: Decimal
    accounts_payable: Decimal
    projects: list[ProjectProfit] = field(default_factory=list)


class ProfitAnalysisService(BaseService):
    """Aggregates contracts, change orders, costs, payments and invoices.

    Missing data counts as zero: a project without a contract yet still gets
    a row with ``contract_amount == 0``.
    """

    def _sum(self, stmt) -> Decimal:
        return money.round2(self.db.execute(stmt).scalar())

    def project_profit(self, project_id: str) -> ProjectProfit:
        contract_amount = self._sum(
            select(func.coalesce(func.sum(Contract.original_amount), 0)).where(Contract.project_id == project_id)
        )
        # Filter on the contract's project so a change order can never leak across projects.
        change_order_amount = self._sum(
            select(func.coalesce(func.sum(ChangeOrder.amount), 0))
            .join(Contract, Contract.id == ChangeOrder.contract_id)
            .where(Contract.project_id == project_id, ChangeOrder.status == ChangeOrderStatus.APPROVED)
        )
        total_cost = self._sum(
            select(func.coalesce(func.sum(CostEntry.amount), 0)).where(CostEntry.project_id == project_id)
        )
        accounts_payable = self._sum(
            select(func.coalesce(func.sum(CostEntry.amount), 0)).where(
                CostEntry.project_id == project_id, CostEntry.is_paid.is_(False)
            )
        )
        total_requested = self._sum(
            select(func.coalesce(func.sum(PaymentApplication.request_amount), 0)).where(
                PaymentApplication.project_id == project_id,
                PaymentApplication.status.in_(REQUESTED_STATES),
            )
        )
        total_received = self._sum(
            select(func.coalesce(func.sum(PaymentReceipt.amount), 0))
            .join(PaymentApplication, PaymentApplication.id == PaymentReceipt.application_id)
            .where(PaymentApplication.project_id == project_id)
        )
        total_invoiced = self._sum(
            select(func.coalesce(func.sum(Invoice.amount), 0)).where(
                Invoice.project_id == project_id, Invoice.status != InvoiceStatus.VOID
            )
        )

        current_amount = money.round2(contract_amount + change_order_amount)
        gross_profit = money.round2(current_amount - total_cost)
        return ProjectProfit(
            project_id=project_id,
            contract_amount=contract_amount,
            change_order_amount=change_order_amount,
            current_amount=current_amount,
            total_cost=total_cost,
            gross_profit=gross_profit,
            margin_rate=money.percent_of(gross_profit, current_amount),
            total_requested=total_requested,
            total_invoiced=total_invoiced,
            total_received=total_received,
            accounts_receivable=money.round2(total_invoiced - total_received),
            accounts_payable=accounts_payable,
        )

    def active_project_ids(self) -> list[str]:
        stmt = select(Contract.project_id).where(Contract.status == ContractStatus.ACTIVE).distinct()
        return sorted(self.db.execute(stmt).scalars())

    def dashboard(self) -> ProfitDashboard:
        rows = [self.project_profit(project_id) for project_id in self.active_project_ids()]

        def total(name: str) -> Decimal:
            return money.round2(sum((getattr(row, name) for row in rows), money.ZERO))

        current_amount = total("current_amount")
        gross_profit = total("gross_profit")
        return ProfitDashboard(
            project_count=len(rows),
            contract_amount=total("contract_amount"),
            change_order_amount=total("change_order_amount"),
            current_amount=current_amount,
            total_cost=total("total_cost"),
            gross_profit=gross_profit,
            margin_rate=money.percent_of(gross_profit, current_amount),
            total_requested=total("total_requested"),
            total_invoiced=total("total_invoiced"),
            total_received=total("total_received"),
            accounts_receivable=total("accounts_receivable"),
            accounts_payable=total("accounts_payable"),
            projects=rows,
        )

    def dashboard_frame(self) -> pd.DataFrame:
        return records_to_df(self.dashboard().projects, index="project_id")
