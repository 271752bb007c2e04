"""Quotation engine: versioned priced proposals with line items."""

from __future__ import annotations

from typing import Any

from sqlalchemy import or_, select

from contractflow.core.config import get_config
from contractflow.core.exceptions import ValidationError
from contractflow.models import DocumentPrefix, Quotation, QuotationItem, QuotationStatus
from contractflow.orchestration.lifecycles import QUOTATION_LIFECYCLE, QUOTATION_LOCK
from contractflow.schemas.quotations import QuotationCreateRequest, QuotationUpdateRequest
from contractflow.services.base_service import BaseService
from contractflow.services.id_generator import SequentialIdGenerator
from contractflow.services.line_items import build_lines, clone_lines
from contractflow.utils import money

_SCALAR_FIELDS = ("title", "is_tax_included", "valid_until", "notes")
_RATE_FIELDS = ("tax_rate", "exchange_rate")
_PRICING_FIELDS = frozenset({"items", "tax_rate", "is_tax_included"})


class QuotationService(BaseService):
    """Service for quotation CRUD, approval and re-versioning."""

    def _recalculate(self, quotation: Quotation) -> None:
        quotation.subtotal = money.subtotal(quotation.items)
        quotation.tax_amount = money.tax_amount(quotation.subtotal, quotation.tax_rate, quotation.is_tax_included)
        quotation.total_amount = money.round2(quotation.subtotal + quotation.tax_amount)

    def _replace_items(self, quotation: Quotation, items: list[Any]) -> None:
        quotation.items.clear()
        # Old rows must be deleted before new rows reuse their ids.
        self.db.flush()
        quotation.items.extend(build_lines(QuotationItem, quotation.id, items, with_category=True))

    def create_quotation(self, payload: QuotationCreateRequest | dict[str, Any], user_id: str | None = None) -> Quotation:
        request = self._parse(QuotationCreateRequest, payload)
        with self.atomic():
            quotation_id = SequentialIdGenerator(self.db).next_id(DocumentPrefix.QUOTATION.value, Quotation.id)
            quotation = Quotation(
                id=quotation_id,
                project_id=request.project_id,
                version_no=1,
                is_current=True,
                title=request.title,
                currency=request.currency.upper(),
                exchange_rate=money.round_rate(request.exchange_rate),
                tax_rate=money.round_rate(
                    request.tax_rate if request.tax_rate is not None else get_config().DEFAULT_TAX_RATE
                ),
                is_tax_included=request.is_tax_included,
                valid_until=request.valid_until,
                status=QuotationStatus.DRAFT,
                notes=request.notes,
                created_by=user_id,
                updated_by=user_id,
            )
            quotation.items = build_lines(QuotationItem, quotation_id, request.items, with_category=True)
            self._recalculate(quotation)
            self.db.add(quotation)
        return quotation

    def get_quotation(self, quotation_id: str) -> Quotation:
        return self._get_or_404(Quotation, quotation_id, "Quotation")

    def list_quotations(self, project_id: str | None = None, status: QuotationStatus | None = None) -> list[Quotation]:
        """Current versions only, newest first."""
        stmt = select(Quotation).where(Quotation.is_current.is_(True))
        if project_id is not None:
            stmt = stmt.where(Quotation.project_id == project_id)
        if status is not None:
            stmt = stmt.where(Quotation.status == status)
        return list(self.db.execute(stmt.order_by(Quotation.id.desc())).scalars())

    def get_versions(self, quotation_id: str) -> list[Quotation]:
        """Every version in the chain ``quotation_id`` belongs to, oldest first."""
        quotation = self.get_quotation(quotation_id)
        root_id = quotation.parent_id or quotation.id
        stmt = (
            select(Quotation)
            .where(or_(Quotation.id == root_id, Quotation.parent_id == root_id))
            .order_by(Quotation.version_no)
        )
        return list(self.db.execute(stmt).scalars())

    def find_approved_quotation(self, quotation_id: str) -> Quotation:
        quotation = self.get_quotation(quotation_id)
        if quotation.status != QuotationStatus.APPROVED:
            raise ValidationError(
                f"Quotation {quotation_id} is not approved",
                document_type="Quotation",
                document_id=quotation_id,
                current_state=quotation.status.value,
            )
        return quotation

    def update_quotation(
        self,
        quotation_id: str,
        patch: QuotationUpdateRequest | dict[str, Any],
        user_id: str | None = None,
    ) -> Quotation:
        changes = self._changes(self._parse(QuotationUpdateRequest, patch))
        with self.atomic():
            quotation = self._get_or_404(Quotation, quotation_id, "Quotation", for_update=True)
            QUOTATION_LOCK.check(quotation, changes)

            for name in _SCALAR_FIELDS:
                if name in changes:
                    setattr(quotation, name, changes[name])
            if "currency" in changes:
                quotation.currency = changes["currency"].upper()
            for name in _RATE_FIELDS:
                if name in changes:
                    setattr(quotation, name, money.round_rate(changes[name]))
            if "items" in changes:
                self._replace_items(quotation, changes["items"])
            # Totals of a frozen quotation stay as approved.
            if _PRICING_FIELDS & changes.keys() and not QUOTATION_LOCK.applies_to(quotation):
                self._recalculate(quotation)
            quotation.updated_by = user_id
        return quotation

    def _fire(self, quotation_id: str, event: str, user_id: str | None, **context: Any) -> Quotation:
        with self.atomic():
            quotation = self._get_or_404(Quotation, quotation_id, "Quotation", for_update=True)
            QUOTATION_LIFECYCLE.fire(quotation, event, user_id=user_id, **context)
            quotation.updated_by = user_id
        return quotation

    def submit(self, quotation_id: str, user_id: str | None = None) -> Quotation:
        return self._fire(quotation_id, "submit", user_id)

    def approve(self, quotation_id: str, user_id: str | None = None) -> Quotation:
        return self._fire(quotation_id, "approve", user_id)

    def reject(self, quotation_id: str, reason: str | None = None, user_id: str | None = None) -> Quotation:
        return self._fire(quotation_id, "reject", user_id, reason=reason)

    def create_new_version(self, quotation_id: str, user_id: str | None = None) -> Quotation:
        """Clone a locked quotation into a new editable DRAFT; the source row is left as is."""
        with self.atomic():
            original = self._get_or_404(Quotation, quotation_id, "Quotation", for_update=True)
            if not original.is_locked:
                raise ValidationError(
                    "Only a locked quotation can be re-versioned",
                    document_type="Quotation",
                    document_id=quotation_id,
                    current_state=original.status.value,
                )
            if not original.is_current:
                raise ValidationError(
                    "Only the current version can be re-versioned",
                    document_type="Quotation",
                    document_id=quotation_id,
                )

            new_id = SequentialIdGenerator(self.db).next_id(DocumentPrefix.QUOTATION.value, Quotation.id)
            version = Quotation(
                id=new_id,
                project_id=original.project_id,
                version_no=original.version_no + 1,
                parent_id=original.parent_id or original.id,
                is_current=True,
                title=original.title,
                currency=original.currency,
                exchange_rate=original.exchange_rate,
                tax_rate=original.tax_rate,
                is_tax_included=original.is_tax_included,
                subtotal=original.subtotal,
                tax_amount=original.tax_amount,
                total_amount=original.total_amount,
                valid_until=original.valid_until,
                status=QuotationStatus.DRAFT,
                notes=original.notes,
                created_by=user_id,
                updated_by=user_id,
            )
            version.items = clone_lines(QuotationItem, new_id, original.items, with_category=True)
            original.is_current = False
            self.db.add(version)
        return version
