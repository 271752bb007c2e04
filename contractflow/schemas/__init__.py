"""Pydantic request/response schemas for the document services."""

from contractflow.schemas.change_orders import ChangeOrderCreateRequest, ChangeOrderResponse, ChangeOrderUpdateRequest
from contractflow.schemas.common import ErrorEnvelope
from contractflow.schemas.contracts import ContractCreateRequest, ContractResponse, ContractUpdateRequest
from contractflow.schemas.items import LineItemInput, LineItemResponse
from contractflow.schemas.payments import (
    PaymentApplicationCreateRequest,
    PaymentApplicationResponse,
    PaymentApplicationUpdateRequest,
    ReceiptCreateRequest,
    ReceiptResponse,
)
from contractflow.schemas.quotations import QuotationCreateRequest, QuotationResponse, QuotationUpdateRequest

__all__ = [
    "ChangeOrderCreateRequest",
    "ChangeOrderResponse",
    "ChangeOrderUpdateRequest",
    "ContractCreateRequest",
    "ContractResponse",
    "ContractUpdateRequest",
    "ErrorEnvelope",
    "LineItemInput",
    "LineItemResponse",
    "PaymentApplicationCreateRequest",
    "PaymentApplicationResponse",
    "PaymentApplicationUpdateRequest",
    "QuotationCreateRequest",
    "QuotationResponse",
    "QuotationUpdateRequest",
    "ReceiptCreateRequest",
    "ReceiptResponse",
]
