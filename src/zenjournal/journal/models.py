"""Core data models for the journal.

An :class:`Entry` is one calendar day's document plus tags. Entries are keyed
by their date key (``YYYY-MM-DD``), so an :data:`EntrySet` holds at most one
entry per day. :class:`AppSettings` is the single process-wide settings
record persisted alongside the entries.
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass, field, fields, replace
from enum import StrEnum
from typing import Any

from loguru import logger

from zenjournal.editor.document import StyledDocument, parse_content
from zenjournal.editor.style import clamp_font_size


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class Entry:
    """One day's journal entry.

    Attributes:
        id: Identity; always equal to the date key.
        date: ISO-8601 calendar date (``YYYY-MM-DD``).
        content: The styled document.
        tags: Ordered tag labels.
        updated_at: Last modification, epoch milliseconds. Sole ordering
            authority when reconciling copies.
    """

    id: str
    date: str
    content: StyledDocument = field(default_factory=StyledDocument)
    tags: list[str] = field(default_factory=list)
    updated_at: int = 0

    @classmethod
    def for_date(
        cls,
        date_key: str,
        content: StyledDocument,
        tags: list[str] | None = None,
        updated_at: int | None = None,
    ) -> Entry:
        return cls(
            id=date_key,
            date=date_key,
            content=content,
            tags=list(tags or []),
            updated_at=now_ms() if updated_at is None else updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Local-blob form; content stays a nested object."""
        return {
            "id": self.id,
            "date": self.date,
            "content": self.content.to_dict(),
            "tags": list(self.tags),
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Entry:
        """Parse either the local-blob or the remote-row form.

        Raises:
            ValueError: If required fields are missing or malformed.
        """
        if not isinstance(data, dict):
            raise ValueError(f"entry must be an object, got {type(data).__name__}")
        entry_id = data.get("id")
        if not entry_id or not isinstance(entry_id, str):
            raise ValueError("entry is missing an id")
        try:
            updated_at = int(data.get("updated_at", data.get("updatedAt", 0)))
        except (TypeError, ValueError):
            raise ValueError(f"entry {entry_id} has a non-integer updated_at") from None
        tags = data.get("tags") or []
        if not isinstance(tags, list):
            raise ValueError(f"entry {entry_id} has non-list tags")
        return cls(
            id=entry_id,
            date=str(data.get("date") or entry_id),
            content=parse_content(data.get("content")),
            tags=[str(t) for t in tags],
            updated_at=updated_at,
        )

    def to_row(self) -> dict[str, Any]:
        """Remote-table form; content is serialized to text."""
        return {
            "id": self.id,
            "date": self.date,
            "content": self.content.to_json(),
            "tags": list(self.tags),
            "updated_at": self.updated_at,
        }

    @property
    def plain_text(self) -> str:
        return self.content.plain_text


EntrySet = dict[str, Entry]
"""Mapping from entry id to entry. Keys are unique; order carries no meaning."""


def entries_to_json(entries: EntrySet) -> str:
    return json.dumps({key: entry.to_dict() for key, entry in entries.items()}, ensure_ascii=False)


class FontFamily(StrEnum):
    INTER = "inter"
    ROBOTO = "roboto"
    SOURCE = "source"
    MONTSERRAT = "montserrat"
    SERIF = "serif"
    MONO = "mono"


LIGHT_TEXT_COLOR = "#111827"
DARK_TEXT_COLOR = "#F3F4F6"


@dataclass
class AppSettings:
    """Process-wide editor preferences."""

    dark_mode: bool = False
    editor_font: FontFamily = FontFamily.INTER
    editor_font_size: int = 16
    editor_color: str = LIGHT_TEXT_COLOR
    sidebar_open: bool = True

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["editor_font"] = self.editor_font.value
        return data

    @classmethod
    def from_dict(cls, data: Any) -> AppSettings:
        """Build settings from a possibly partial stored object.

        Missing fields take their defaults; fields with unusable values are
        dropped with a warning rather than failing the whole load.
        """
        settings = cls()
        if not isinstance(data, dict):
            return settings
        for f in fields(cls):
            if f.name not in data:
                continue
            try:
                settings = settings.updated(f.name, data[f.name], swap_color=False)
            except (TypeError, ValueError) as e:
                logger.warning(f"Ignoring stored setting {f.name}={data[f.name]!r}: {e}")
        return settings

    def updated(self, key: str, value: Any, *, swap_color: bool = True) -> AppSettings:
        """Return a copy with *key* set to *value*.

        Turning dark mode on or off swaps the editor colour between the light
        and dark defaults when it is currently the other default; a custom
        colour is left alone.

        Raises:
            ValueError: Unknown key or a value of the wrong shape.
        """
        if key == "dark_mode":
            value = _coerce_bool(value)
        elif key == "sidebar_open":
            value = _coerce_bool(value)
        elif key == "editor_font":
            value = FontFamily(value)
        elif key == "editor_font_size":
            value = clamp_font_size(int(value))
        elif key == "editor_color":
            if not isinstance(value, str) or not value.startswith("#"):
                raise ValueError(f"not a colour: {value!r}")
        else:
            raise ValueError(f"unknown setting: {key}")

        new = replace(self, **{key: value})
        if key == "dark_mode" and swap_color:
            if value and self.editor_color == LIGHT_TEXT_COLOR:
                new.editor_color = DARK_TEXT_COLOR
            elif not value and self.editor_color == DARK_TEXT_COLOR:
                new.editor_color = LIGHT_TEXT_COLOR
        return new

    def for_theme(self) -> AppSettings:
        """Correct a light-default colour left over in dark mode."""
        if self.dark_mode and self.editor_color == LIGHT_TEXT_COLOR:
            return replace(self, editor_color=DARK_TEXT_COLOR)
        return self


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "1", "yes", "on"):
        return True
    if isinstance(value, str) and value.lower() in ("false", "0", "no", "off"):
        return False
    if isinstance(value, int):
        return bool(value)
    raise ValueError(f"not a boolean: {value!r}")


@dataclass
class SearchFilters:
    """Sidebar search state.

    Attributes:
        query: Case-insensitive substring to look for in text and tags.
        tag: If set, only entries carrying exactly this tag match.
    """

    query: str = ""
    tag: str | None = None
