"""Generic status-transition engine shared by every document type.

A lifecycle is a table ``(state, event) -> Transition``. Firing an event runs
the transition's guard, moves the document to the target state and then runs
the effect. Guards raise their own typed errors; an event with no entry for
the current state raises ``InvalidTransitionError``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from contractflow.core.exceptions import DocumentLockedError, InvalidTransitionError
from contractflow.core.logging import DocumentLogContext, build_log_event

logger = logging.getLogger(__name__)

Guard = Callable[[Any, dict[str, Any]], None]
Effect = Callable[[Any, dict[str, Any]], None]
Resolver = Callable[[Any, dict[str, Any]], Enum]


def _state_value(state: Any) -> str:
    return state.value if isinstance(state, Enum) else str(state)


@dataclass(frozen=True)
class Transition:
    sources: tuple[Enum, ...]
    event: str
    target: Enum
    guard: Guard | None = None
    effect: Effect | None = None
    # Picks the target at fire time when one event can land in several states.
    resolve: Resolver | None = None


def transition(
    source: Enum | Iterable[Enum],
    event: str,
    target: Enum,
    guard: Guard | None = None,
    effect: Effect | None = None,
    resolve: Resolver | None = None,
) -> Transition:
    sources = (source,) if isinstance(source, Enum) else tuple(source)
    return Transition(sources=sources, event=event, target=target, guard=guard, effect=effect, resolve=resolve)


class DocumentStateMachine:
    """Transition table for one document type."""

    def __init__(self, document_type: str, transitions: Iterable[Transition], status_attr: str = "status") -> None:
        self.document_type = document_type
        self.status_attr = status_attr
        self._table: dict[tuple[str, str], Transition] = {}
        self._targets: dict[str, Enum] = {}
        for item in transitions:
            self._targets.setdefault(item.event, item.target)
            for source in item.sources:
                key = (_state_value(source), item.event)
                if key in self._table:
                    raise ValueError(f"Duplicate transition {key} for {document_type}")
                self._table[key] = item

    def can_fire(self, current: Any, event: str) -> bool:
        return (_state_value(current), event) in self._table

    def events_from(self, current: Any) -> list[str]:
        state = _state_value(current)
        return sorted(event for source, event in self._table if source == state)

    def transition_for(self, document: Any, event: str) -> Transition:
        current = _state_value(getattr(document, self.status_attr))
        found = self._table.get((current, event))
        if found is None:
            nominal = self._targets.get(event)
            raise InvalidTransitionError(
                self.document_type,
                getattr(document, "id", None),
                current,
                _state_value(nominal) if nominal is not None else event,
                event=event,
            )
        return found

    def fire(self, document: Any, event: str, **context: Any) -> Enum:
        """Apply ``event`` to ``document`` in place and return the new state."""
        found = self.transition_for(document, event)
        context.setdefault("now", datetime.now(timezone.utc))
        if found.guard is not None:
            found.guard(document, context)

        previous = _state_value(getattr(document, self.status_attr))
        target = found.resolve(document, context) if found.resolve is not None else found.target
        setattr(document, self.status_attr, target)
        if found.effect is not None:
            found.effect(document, context)

        logger.info(
            "document.transition",
            extra=build_log_event(
                "document.transition",
                DocumentLogContext(
                    document_type=self.document_type,
                    document_id=getattr(document, "id", None),
                    user_id=context.get("user_id"),
                ),
                from_state=previous,
                to_state=_state_value(target),
                transition_event=event,
            ),
        )
        return target


@dataclass(frozen=True)
class LockPolicy:
    """Fields that stay editable after a document is locked."""

    document_type: str
    allowed_fields: frozenset[str] = field(default_factory=lambda: frozenset({"notes"}))
    is_frozen: Callable[[Any], bool] | None = None

    def applies_to(self, document: Any) -> bool:
        if self.is_frozen is not None:
            return self.is_frozen(document)
        return bool(getattr(document, "is_locked", False))

    def check(self, document: Any, changes: Iterable[str]) -> None:
        if not self.applies_to(document):
            return
        blocked = [name for name in changes if name not in self.allowed_fields]
        if blocked:
            raise DocumentLockedError(
                self.document_type,
                getattr(document, "id", "?"),
                blocked,
                allowed=list(self.allowed_fields),
            )


def lock_document(document: Any, context: dict[str, Any]) -> None:
    """Effect stamping ``locked_at``/``locked_by``."""
    document.locked_at = context["now"]
    document.locked_by = context.get("user_id")
