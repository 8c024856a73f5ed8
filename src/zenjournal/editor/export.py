"""Plain-text rendering of a styled document."""

from __future__ import annotations

from pathlib import Path

from .document import StyledDocument


def to_plain_text(document: StyledDocument) -> str:
    """Concatenate run payloads in order, dropping all style."""
    return document.plain_text


def word_count(document: StyledDocument) -> int:
    return len(document.plain_text.split())


def export_filename(date_key: str) -> str:
    return f"diary-{date_key}.txt"


def export_to_file(document: StyledDocument, path: str | Path) -> Path:
    """Write the plain-text rendering to *path*, creating parent directories."""
    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(to_plain_text(document), encoding="utf-8")
    return target
