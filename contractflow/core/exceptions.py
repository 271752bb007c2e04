"""Custom exceptions for the contractflow engine.

Every business-rule violation is a client error: it carries a stable
``error_code`` plus enough context (document id, current state, attempted
transition) for a controller to render a message. None of them are retried.
"""

from __future__ import annotations

from typing import Any


class ContractFlowException(Exception):
    """Base exception for contractflow."""

    error_code = "CONTRACTFLOW_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = {key: value for key, value in context.items() if value is not None}


class ValidationError(ContractFlowException):
    """Raised when input or a transition guard fails validation."""

    error_code = "VALIDATION_FAILED"


class NotFoundError(ContractFlowException):
    """Raised when a referenced document does not exist."""

    error_code = "NOT_FOUND"

    def __init__(self, document_type: str, document_id: str) -> None:
        super().__init__(
            f"{document_type} {document_id} not found",
            document_type=document_type,
            document_id=document_id,
        )
        self.document_type = document_type
        self.document_id = document_id


class InvalidTransitionError(ContractFlowException):
    """Raised when a status change is not allowed from the current state."""

    error_code = "INVALID_TRANSITION"

    def __init__(
        self,
        document_type: str,
        document_id: str | None,
        from_state: str,
        to_state: str,
        event: str | None = None,
    ) -> None:
        super().__init__(
            f"{document_type} {document_id}: transition {from_state} -> {to_state} is not allowed",
            document_type=document_type,
            document_id=document_id,
            from_state=from_state,
            to_state=to_state,
            event=event,
        )
        self.from_state = from_state
        self.to_state = to_state
        self.event = event


class DocumentLockedError(ContractFlowException):
    """Raised when a locked document is mutated outside its allow-list."""

    error_code = "DOCUMENT_LOCKED"

    def __init__(
        self,
        document_type: str,
        document_id: str,
        fields: list[str],
        allowed: list[str] | None = None,
    ) -> None:
        super().__init__(
            f"{document_type} {document_id} is locked; cannot modify {', '.join(sorted(fields))}",
            document_type=document_type,
            document_id=document_id,
            fields=sorted(fields),
            allowed_fields=sorted(allowed or []),
        )
        self.fields = sorted(fields)


class InvalidContractStateError(ContractFlowException):
    """Raised when an operation needs the contract in another status."""

    error_code = "INVALID_CONTRACT_STATE"

    def __init__(self, contract_id: str, current_state: str, expected: list[str]) -> None:
        super().__init__(
            f"Contract {contract_id} is {current_state}; expected one of {', '.join(expected)}",
            document_type="Contract",
            document_id=contract_id,
            current_state=current_state,
            expected_states=list(expected),
        )
        self.current_state = current_state


class InvalidApplicationStateError(ContractFlowException):
    """Raised when a payment application is not in the status an operation needs."""

    error_code = "INVALID_APPLICATION_STATE"

    def __init__(self, application_id: str, current_state: str, expected: str) -> None:
        super().__init__(
            f"Payment application {application_id} is {current_state}; expected {expected}",
            document_type="PaymentApplication",
            document_id=application_id,
            current_state=current_state,
            expected_state=expected,
        )
        self.current_state = current_state


class CumulativeExceededError(ContractFlowException):
    """Raised when cumulative progress on a contract would pass 100%."""

    error_code = "CUMULATIVE_EXCEEDED"

    def __init__(self, contract_id: str, previous_cumulative: Any, progress_percent: Any) -> None:
        super().__init__(
            f"Contract {contract_id}: cumulative progress {previous_cumulative} + {progress_percent} exceeds 100",
            document_type="Contract",
            document_id=contract_id,
            previous_cumulative=str(previous_cumulative),
            progress_percent=str(progress_percent),
        )


class AlreadyConvertedError(ContractFlowException):
    """Raised when a quotation already has a contract."""

    error_code = "ALREADY_CONVERTED"

    def __init__(self, quotation_id: str, contract_id: str | None = None) -> None:
        super().__init__(
            f"Quotation {quotation_id} has already been converted to a contract",
            document_type="Quotation",
            document_id=quotation_id,
            contract_id=contract_id,
        )


class SequenceExhaustedError(ContractFlowException):
    """Raised when an id prefix has no sequence numbers left for a period."""

    error_code = "SEQUENCE_EXHAUSTED"

    def __init__(self, prefix: str, period: str, max_value: int) -> None:
        super().__init__(
            f"Sequence {prefix}-{period} is exhausted (max {max_value})",
            prefix=prefix,
            period=period,
            max_value=max_value,
        )


class DatabaseError(ContractFlowException):
    """Raised when a database operation fails."""

    error_code = "DATABASE_ERROR"


class SequenceContentionError(DatabaseError):
    """Raised when two writers created the same sequence row; safe to retry."""

    error_code = "SEQUENCE_CONTENTION"


class ConfigurationError(ContractFlowException):
    """Raised when configuration is invalid."""

    error_code = "CONFIGURATION_ERROR"
