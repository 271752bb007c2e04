"""Sequential, human-readable document identifiers.

Format: ``{PREFIX}-{YYYYMM}-{SEQ:04d}``, e.g. ``CTR-202602-0001``.

Each (prefix, period) pair owns one row in ``document_sequences``. Allocation
locks that row (``SELECT ... FOR UPDATE``) inside the caller's transaction,
so two writers can never hand out the same number. The first allocation for a
period seeds the counter from the highest id already stored in the target
table, which keeps numbering continuous for rows written before the counter
existed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from contractflow.core.config import get_config
from contractflow.core.exceptions import SequenceContentionError, SequenceExhaustedError
from contractflow.core.logging import DocumentLogContext, build_log_event
from contractflow.models.sequence import DocumentSequence

logger = logging.getLogger(__name__)


def _today() -> date:
    return datetime.now(timezone.utc).date()


class SequentialIdGenerator:
    """Allocates ids from a row-locked counter per prefix and period."""

    def __init__(
        self,
        db: Session,
        clock: Callable[[], date] | None = None,
        max_value: int | None = None,
    ) -> None:
        self.db = db
        self.clock = clock or _today
        self.max_value = get_config().SEQUENCE_MAX_VALUE if max_value is None else max_value

    @staticmethod
    def period_key(moment: date | datetime) -> str:
        return f"{moment.year:04d}{moment.month:02d}"

    @staticmethod
    def format_id(prefix: str, period: str, sequence: int) -> str:
        return f"{prefix}-{period}-{sequence:04d}"

    @staticmethod
    def parse_sequence(identifier: str) -> int:
        return int(identifier.rsplit("-", 1)[1])

    def next_id(self, prefix: str, id_column=None, period: str | None = None) -> str:
        """Reserve and return the next id for ``prefix``.

        ``id_column`` is the primary-key column of the table the id is for; it
        is scanned once to seed a new counter.
        """
        period = period or self.period_key(self.clock())
        counter = self._lock_counter(prefix, period, id_column)
        sequence = counter.last_value + 1
        if sequence > self.max_value:
            raise SequenceExhaustedError(prefix, period, self.max_value)

        counter.last_value = sequence
        self.db.flush()
        identifier = self.format_id(prefix, period, sequence)
        logger.debug(
            "sequence.allocated",
            extra=build_log_event(
                "sequence.allocated",
                DocumentLogContext(document_id=identifier),
                prefix=prefix,
                period=period,
            ),
        )
        return identifier

    def peek(self, prefix: str, id_column=None, period: str | None = None) -> str:
        """Return the id ``next_id`` would hand out, without reserving it."""
        period = period or self.period_key(self.clock())
        counter = self.db.execute(self._counter_stmt(prefix, period)).scalar_one_or_none()
        last = counter.last_value if counter is not None else self._scan_max(prefix, period, id_column)
        return self.format_id(prefix, period, last + 1)

    @staticmethod
    def _counter_stmt(prefix: str, period: str):
        return select(DocumentSequence).where(
            DocumentSequence.prefix == prefix,
            DocumentSequence.period == period,
        )

    def _lock_counter(self, prefix: str, period: str, id_column) -> DocumentSequence:
        stmt = (
            self._counter_stmt(prefix, period)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        counter = self.db.execute(stmt).scalar_one_or_none()
        if counter is not None:
            return counter

        counter = DocumentSequence(
            prefix=prefix,
            period=period,
            last_value=self._scan_max(prefix, period, id_column),
        )
        self.db.add(counter)
        try:
            self.db.flush()
        except IntegrityError as exc:
            # Another transaction created the counter first; the caller's unit must be retried.
            raise SequenceContentionError(
                f"Sequence {prefix}-{period} was created concurrently; retry the operation",
                prefix=prefix,
                period=period,
            ) from exc
        return counter

    def _scan_max(self, prefix: str, period: str, id_column) -> int:
        if id_column is None:
            return 0
        pattern = f"{prefix}-{period}-%"
        last_id = self.db.execute(select(func.max(id_column)).where(id_column.like(pattern))).scalar()
        if not last_id:
            return 0
        return self.parse_sequence(last_id)
