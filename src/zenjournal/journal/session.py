"""Journal session — the single seam a UI or the CLI drives.

A session owns the settings, the open date and its live document, the
selection, and the components that persist them. A renderer reflects this
state and forwards user input as the operations below; it never edits the
document tree itself.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any

from loguru import logger

from zenjournal.core.events import SETTINGS_CHANGED, Event, EventBus
from zenjournal.editor.document import StyledDocument
from zenjournal.editor.export import export_filename, export_to_file, word_count
from zenjournal.editor.selection import Selection
from zenjournal.editor.style import StyleApplicator, StyleResult

from .autosave import AutosaveCoordinator
from .dates import date_key
from .models import AppSettings, Entry, SearchFilters
from .reconcile import Reconciler
from .search import all_tags, filter_entries
from .store import EntryStore


class JournalSession:
    """Everything the editor screen needs, in one object.

    Args:
        store: Local entry store (also holds settings).
        reconciler: Entry write path, sharing *store*.
        autosave_delay: Debounce window in seconds.
        event_bus: Optional bus for status notifications.
    """

    def __init__(
        self,
        store: EntryStore,
        reconciler: Reconciler,
        *,
        autosave_delay: float = 2.0,
        event_bus: EventBus | None = None,
    ):
        self.store = store
        self.reconciler = reconciler
        self.event_bus = event_bus
        self.autosave = AutosaveCoordinator(reconciler, delay=autosave_delay, event_bus=event_bus)
        self.applicator = StyleApplicator()
        self.settings = AppSettings()
        self.date_key = ""
        self.document = StyledDocument()
        self.selection: Selection | None = None

    # ── Lifecycle ──────────────────────────────────────────────────

    async def start(self, day: date | str | None = None) -> None:
        """Load settings and entries, reconcile with the remote, open *day* (default today)."""
        stored = await self.store.load_settings()
        self.settings = stored.for_theme()
        if self.settings != stored:
            await self.store.save_settings(self.settings)
        await self.reconciler.start()
        await self.open_date(day or date.today())

    async def close(self) -> None:
        """Save pending edits and finish queued remote writes."""
        await self.autosave.close()
        await self.reconciler.close()

    async def sign_out(self) -> None:
        await self.autosave.close()
        await self.reconciler.sign_out()
        await self.open_date(self.date_key or date.today())

    @property
    def entries(self) -> dict[str, Entry]:
        return self.reconciler.entries

    @property
    def current_entry(self) -> Entry | None:
        return self.entries.get(self.date_key)

    async def open_date(self, day: date | str) -> StyledDocument:
        """Make *day* the open entry; pending edits to the previous one are saved first."""
        key = day if isinstance(day, str) else date_key(day)
        await self.autosave.flush()
        entry = self.entries.get(key)
        self.date_key = key
        self.document = entry.content.copy() if entry else StyledDocument()
        self.selection = Selection.caret(len(self.document))
        await self.autosave.open(key, self.document)
        return self.document

    # ── Editing ────────────────────────────────────────────────────

    def select(self, selection: Selection | None) -> None:
        self.selection = selection

    def type_text(self, text: str) -> None:
        """Insert *text* at the caret, replacing a range selection."""
        selection = self.selection or Selection.caret(len(self.document))
        if not selection.fits(len(self.document)):
            logger.debug(f"Typing ignored: selection {selection} outside document")
            return
        if not selection.is_collapsed:
            self.document.delete_range(selection.start, selection.end)
        self.document.insert_text(selection.start, text)
        self.selection = Selection.caret(selection.start + len(text))
        self.autosave.document_changed()

    async def apply_font_size(self, size: int) -> StyleResult:
        """Resize the selection, or set the sticky size at the caret."""
        result = self.applicator.apply_font_size(self.document, self.selection, size)
        if result.default_size is not None:
            await self.update_setting("editor_font_size", result.default_size)
        if result.changed:
            self.autosave.document_changed()
        return result

    def toggle_mark(self, mark: str, value: Any = True) -> StyleResult:
        result = self.applicator.toggle_mark(self.document, self.selection, mark, value)
        if result.changed:
            self.autosave.document_changed()
        return result

    def selection_font_size(self) -> int | None:
        """Size shown in the toolbar for the current selection; None when unset."""
        return self.applicator.current_style_at(self.document, self.selection)

    @property
    def word_count(self) -> int:
        return word_count(self.document)

    # ── Persistence ────────────────────────────────────────────────

    async def save(self) -> bool:
        return await self.autosave.save_now()

    async def delete_current(self) -> None:
        """Remove the open entry from both stores and clear the editor."""
        await self.autosave.flush()
        done = await self.reconciler.delete_entry(self.date_key)
        self.document = StyledDocument()
        self.selection = Selection.caret(0)
        await self.autosave.open(self.date_key, self.document)
        if done is not None:
            await done

    async def set_tags(self, tags: list[str]) -> None:
        """Replace the open entry's tags (saving the current document with them)."""
        await self.autosave.flush()
        cleaned = list(dict.fromkeys(t.strip() for t in tags if t.strip()))
        existing = self.current_entry
        entry = Entry.for_date(self.date_key, self.document.copy(), tags=cleaned)
        if existing is not None and entry.updated_at <= existing.updated_at:
            entry.updated_at = existing.updated_at + 1
        done = await self.reconciler.save_entry(entry)
        self.autosave.mark_persisted()
        if done is not None:
            await done

    async def update_setting(self, key: str, value: Any) -> AppSettings:
        """Change one setting and persist the settings blob.

        Raises:
            ValueError: Unknown key or invalid value.
        """
        self.settings = self.settings.updated(key, value)
        await self.store.save_settings(self.settings)
        if self.event_bus:
            await self.event_bus.emit(Event(name=SETTINGS_CHANGED, payload={key: value}, source="session"))
        return self.settings

    def export(self, path: str | Path | None = None) -> Path:
        """Write the open document as plain text (default ``diary-<date>.txt``)."""
        return export_to_file(self.document, path or export_filename(self.date_key))

    def search(self, filters: SearchFilters | None = None) -> list[Entry]:
        return filter_entries(self.entries, filters)

    def tags(self) -> list[str]:
        return all_tags(self.entries)
