"""Tests for zenjournal.editor.export."""

from zenjournal.editor.document import FONT_SIZE, StyledDocument
from zenjournal.editor.export import export_filename, export_to_file, to_plain_text, word_count


def _styled():
    return StyledDocument.from_dict(
        {"children": [{"text": "Dear "}, {"style": {FONT_SIZE: 30}, "children": [{"text": "diary,\nhello"}]}]}
    )


def test_plain_text_drops_style():
    assert to_plain_text(_styled()) == "Dear diary,\nhello"


def test_word_count():
    assert word_count(_styled()) == 3
    assert word_count(StyledDocument()) == 0
    assert word_count(StyledDocument.from_text("  spaced   out  ")) == 2


def test_export_filename():
    assert export_filename("2026-10-18") == "diary-2026-10-18.txt"


def test_export_to_file_creates_parents(tmp_path):
    target = tmp_path / "exports" / export_filename("2026-10-18")
    written = export_to_file(_styled(), target)
    assert written == target
    assert target.read_text(encoding="utf-8") == "Dear diary,\nhello"
