"""Sanitizers for free-form document text."""

from __future__ import annotations


def sanitize_text(value: str | None, max_len: int = 20000) -> str:
    """Sanitize free-form content before persistence."""
    if value is None:
        return ""
    cleaned = str(value).replace("\x00", "").strip()
    cleaned = cleaned[:max_len]
    return cleaned


def prepend_note(notes: str | None, tag: str, reason: str | None) -> str:
    """Put ``{tag} {reason}`` on the first line, keeping the earlier notes below it."""
    head = f"{tag} {sanitize_text(reason, max_len=2000)}".rstrip()
    previous = sanitize_text(notes)
    if not previous:
        return head
    return f"{head}\n{previous}"
