"""Common schema module."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, Field, model_validator

from contractflow.core.exceptions import ContractFlowException


class PatchRequest(BaseModel):
    """Partial update; fields listed in ``required_fields`` may be omitted but not set to null."""

    required_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "PatchRequest":
        nulled = sorted(
            name for name in self.model_fields_set & self.required_fields if getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"{', '.join(nulled)} cannot be null")
        return self


class ErrorEnvelope(BaseModel):
    status: str = "error"
    error_code: str
    detail: str
    context: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: ContractFlowException) -> "ErrorEnvelope":
        return cls(error_code=exc.error_code, detail=exc.message, context=exc.context)
