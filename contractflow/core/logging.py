"""Structured logging helpers for document lifecycle events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class DocumentLogContext:
    """Normalized context fields expected in structured logs."""

    document_type: str | None = None
    document_id: str | None = None
    user_id: str | None = None
    trace_id: str | None = None


def build_log_event(event: str, context: DocumentLogContext, **fields: Any) -> dict[str, Any]:
    """Build a normalized structured log payload."""
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "document_type": context.document_type,
        "document_id": context.document_id,
        "user_id": context.user_id,
        "trace_id": context.trace_id,
    }
    payload.update(fields)
    return payload
