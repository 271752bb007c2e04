"""Boundary to the project module, which owns project status."""

from __future__ import annotations

import logging
from typing import Protocol

from contractflow.core.logging import DocumentLogContext, build_log_event

logger = logging.getLogger(__name__)


class ProjectGateway(Protocol):
    def mark_in_progress(self, project_id: str, user_id: str | None = None) -> None:
        ...


class LoggingProjectGateway:
    """Default gateway used when no project module is wired in; records the request only."""

    def mark_in_progress(self, project_id: str, user_id: str | None = None) -> None:
        logger.info(
            "project.mark_in_progress",
            extra=build_log_event(
                "project.mark_in_progress",
                DocumentLogContext(document_type="Project", document_id=project_id, user_id=user_id),
            ),
        )
