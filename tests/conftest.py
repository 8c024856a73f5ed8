"""Shared test fixtures for zenjournal."""

import os
import tempfile

import pytest

from zenjournal.core.storage import MemoryStorage
from zenjournal.editor.document import FONT_SIZE, StyledDocument
from zenjournal.journal.models import Entry


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file pointing storage into tmp_dir."""
    import yaml

    config_data = {
        "paths": {
            "data_dir": os.path.join(tmp_dir, "data"),
            "log_dir": os.path.join(tmp_dir, "logs"),
        },
        "sync": {"enabled": False},
    }
    config_path = os.path.join(tmp_dir, "config.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def memory_backend():
    return MemoryStorage()


@pytest.fixture
def make_entry():
    """Factory for entries with plain-text content."""

    def _make(date_key: str, text: str = "", *, updated_at: int = 1000, tags=None) -> Entry:
        return Entry.for_date(date_key, StyledDocument.from_text(text), tags=tags, updated_at=updated_at)

    return _make


class FakeRemote:
    """In-memory RemoteEntryService that records calls and can be told to fail."""

    def __init__(self, entries=None, error: Exception | None = None):
        self.rows = {e.id: e for e in (entries or [])}
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def list_all(self):
        self.calls.append(("list_all", ""))
        if self.error:
            raise self.error
        return list(self.rows.values())

    async def upsert(self, entry):
        self.calls.append(("upsert", entry.id))
        if self.error:
            raise self.error
        self.rows[entry.id] = entry

    async def delete(self, entry_id):
        self.calls.append(("delete", entry_id))
        if self.error:
            raise self.error
        self.rows.pop(entry_id, None)


@pytest.fixture
def fake_remote():
    return FakeRemote


@pytest.fixture
def sized():
    """(text, effective font size) for every non-empty run of a document."""

    def _sized(doc: StyledDocument) -> list[tuple[str, int | None]]:
        return [
            (doc.nodes[r.index].text, doc.effective_style(r.index, FONT_SIZE)) for r in doc.runs() if not r.is_empty
        ]

    return _sized
