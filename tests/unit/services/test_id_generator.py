from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from contractflow.core.exceptions import SequenceExhaustedError
from contractflow.models import Contract, ContractStatus, DocumentSequence
from contractflow.services.id_generator import SequentialIdGenerator


def _fixed_clock():
    return date(2026, 2, 14)


def test_ids_are_sequential_per_prefix_and_period(session):
    generator = SequentialIdGenerator(session, clock=_fixed_clock)
    assert generator.next_id("CTR", Contract.id) == "CTR-202602-0001"
    assert generator.next_id("CTR", Contract.id) == "CTR-202602-0002"
    assert generator.next_id("QUO") == "QUO-202602-0001"
    assert generator.next_id("CTR", period="202603") == "CTR-202603-0001"


def test_counter_is_seeded_from_existing_rows(session):
    session.add(
        Contract(
            id="CTR-202602-0007",
            project_id="P-1",
            title="Imported",
            original_amount=Decimal("1"),
            current_amount=Decimal("1"),
            status=ContractStatus.DRAFT,
        )
    )
    session.commit()

    generator = SequentialIdGenerator(session, clock=_fixed_clock)
    assert generator.peek("CTR", Contract.id) == "CTR-202602-0008"
    assert generator.next_id("CTR", Contract.id) == "CTR-202602-0008"


def test_peek_does_not_reserve(session):
    generator = SequentialIdGenerator(session, clock=_fixed_clock)
    assert generator.peek("PAY") == "PAY-202602-0001"
    assert generator.next_id("PAY") == "PAY-202602-0001"
    assert generator.peek("PAY") == "PAY-202602-0002"


def test_overflow_raises_sequence_exhausted(session):
    generator = SequentialIdGenerator(session, clock=_fixed_clock, max_value=2)
    generator.next_id("INV")
    generator.next_id("INV")
    with pytest.raises(SequenceExhaustedError) as exc_info:
        generator.next_id("INV")
    assert exc_info.value.context == {"prefix": "INV", "period": "202602", "max_value": 2}

    counter = session.query(DocumentSequence).filter_by(prefix="INV", period="202602").one()
    assert counter.last_value == 2


def test_format_and_parse_helpers():
    assert SequentialIdGenerator.format_id("CO", "202612", 42) == "CO-202612-0042"
    assert SequentialIdGenerator.parse_sequence("CO-202612-0042") == 42
    assert SequentialIdGenerator.period_key(date(2026, 9, 1)) == "202609"


def test_zero_max_value_is_not_replaced_by_config(session):
    generator = SequentialIdGenerator(session, clock=_fixed_clock, max_value=0)
    assert generator.max_value == 0
    with pytest.raises(SequenceExhaustedError):
        generator.next_id("INV")
