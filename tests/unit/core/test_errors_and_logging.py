from __future__ import annotations

import json
import logging

from contractflow.core.exceptions import (
    CumulativeExceededError,
    DocumentLockedError,
    InvalidTransitionError,
    NotFoundError,
    SequenceContentionError,
)
from contractflow.core.logging import DocumentLogContext, build_log_event
from contractflow.core.logging_config import JsonFormatter, configure_logging
from contractflow.schemas.common import ErrorEnvelope


def test_error_envelope_carries_code_and_context():
    exc = InvalidTransitionError("Quotation", "QUO-202602-0001", "QUO_DRAFT", "QUO_APPROVED", event="approve")
    envelope = ErrorEnvelope.from_exception(exc)
    assert envelope.status == "error"
    assert envelope.error_code == "INVALID_TRANSITION"
    assert envelope.context == {
        "document_type": "Quotation",
        "document_id": "QUO-202602-0001",
        "from_state": "QUO_DRAFT",
        "to_state": "QUO_APPROVED",
        "event": "approve",
    }


def test_document_locked_lists_blocked_and_allowed_fields():
    exc = DocumentLockedError("Contract", "CTR-1", ["title", "original_amount"], allowed=["notes", "warranty_months"])
    assert exc.context["fields"] == ["original_amount", "title"]
    assert exc.context["allowed_fields"] == ["notes", "warranty_months"]
    assert "locked" in exc.message


def test_error_codes_are_stable():
    assert NotFoundError("Contract", "CTR-1").error_code == "NOT_FOUND"
    assert CumulativeExceededError("CTR-1", "30", "80").context["previous_cumulative"] == "30"
    assert SequenceContentionError("retry").error_code == "SEQUENCE_CONTENTION"


def test_json_formatter_lifts_event_fields():
    record = logging.LogRecord("contractflow", logging.INFO, __file__, 1, "document.transition", None, None)
    payload = build_log_event(
        "document.transition",
        DocumentLogContext(document_type="Contract", document_id="CTR-1", user_id="u-1"),
        from_state="CTR_DRAFT",
        to_state="CTR_ACTIVE",
    )
    for key, value in payload.items():
        setattr(record, key, value)

    line = json.loads(JsonFormatter().format(record))
    assert line["event"] == "document.transition"
    assert line["document_id"] == "CTR-1"
    assert line["to_state"] == "CTR_ACTIVE"
    assert "trace_id" not in line


def test_json_formatter_keeps_extra_fields_outside_the_log_context():
    record = logging.LogRecord("contractflow", logging.WARNING, __file__, 1, "startup.schema.incomplete", None, None)
    record.tables = ["contracts", "invoices"]

    line = json.loads(JsonFormatter().format(record))
    assert line["tables"] == ["contracts", "invoices"]
    assert line["level"] == "WARNING"


def test_configure_logging_installs_json_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configure_logging(level="debug", force=True)
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

        configure_logging(level="error")
        assert root.level == logging.DEBUG
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
