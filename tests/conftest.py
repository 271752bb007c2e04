from __future__ import annotations

from contextlib import contextmanager
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from contractflow.models import Base
from contractflow.services.change_order_service import ChangeOrderService
from contractflow.services.contract_service import ContractService
from contractflow.services.payment_service import PaymentApplicationService
from contractflow.services.quotation_service import QuotationService

SCENARIO_ITEMS = [
    {"item_name": "Formwork", "quantity": 10, "unit_price": 1000},
    {"item_name": "Rebar", "quantity": 5, "unit_price": 2000},
]


class FakeProjectGateway:
    def __init__(self) -> None:
        self.in_progress: list[tuple[str, str | None]] = []

    def mark_in_progress(self, project_id: str, user_id: str | None = None) -> None:
        self.in_progress.append((project_id, user_id))


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite:///:memory:")
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture
def session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def db_session_patch(session_factory):
    """Context-manager factory matching ``get_db_session`` for modules that open their own session."""

    @contextmanager
    def _get_db_session():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    return _get_db_session


@pytest.fixture
def projects():
    return FakeProjectGateway()


@pytest.fixture
def approved_quotation(session):
    service = QuotationService(session)
    quotation = service.create_quotation(
        {"project_id": "P-001", "title": "Office fit-out", "items": SCENARIO_ITEMS, "tax_rate": 5}
    )
    service.submit(quotation.id, user_id="u-sales")
    return service.approve(quotation.id, user_id="u-manager")


@pytest.fixture
def active_contract(session, approved_quotation, projects):
    service = ContractService(session, projects=projects)
    contract = service.convert_from_quotation(approved_quotation.id, retention_rate=5, user_id="u-pm")
    return service.sign_contract(contract.id, sign_date=date(2026, 2, 1), user_id="u-pm")


@pytest.fixture
def approve_change_order(session):
    def _approve(contract_id: str, unit_price, title: str = "Extra partition"):
        service = ChangeOrderService(session)
        change_order = service.create_change_order(
            {
                "contract_id": contract_id,
                "title": title,
                "items": [{"item_name": title, "quantity": 1, "unit_price": unit_price}],
            }
        )
        service.submit(change_order.id)
        return service.approve(change_order.id, user_id="u-manager")

    return _approve


@pytest.fixture
def approve_application(session):
    def _approve(contract_id: str, progress, request_amount, finance=None):
        service = PaymentApplicationService(session, finance=finance)
        application = service.create_application(
            {
                "contract_id": contract_id,
                "progress_percent": progress,
                "request_amount": request_amount,
                "application_date": date(2026, 3, 31),
            }
        )
        service.submit(application.id)
        return service.approve(application.id, user_id="u-finance")

    return _approve
