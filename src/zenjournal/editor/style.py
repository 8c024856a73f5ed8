"""Selection-scoped style application.

:class:`StyleApplicator` changes the font size of exactly the selected text
without disturbing the formatting around it:

* **Range selection**: split runs at both selection bounds, find the
  outermost nodes lying entirely inside the range, wrap each group of such
  siblings in a container carrying the new size, then strip the size from
  everything inside the wrapper so nothing nested can override it.
* **Caret**: update the default size for new text and drop an empty marker
  run at the caret carrying the size; text typed next lands in that run.

Bold/italic/underline/highlight are plain mark toggles on the selected runs.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from zenjournal.core.exceptions import SelectionOutOfDocument

from .document import FONT_SIZE, ROOT, Node, StyledDocument
from .selection import Selection

MIN_FONT_SIZE = 10
MAX_FONT_SIZE = 74

MARKS = ("bold", "italic", "underline", "highlight")


@dataclass
class StyleResult:
    """Outcome of a style operation, handed back for persistence and the toolbar."""

    document: StyledDocument
    selection: Selection | None
    active_size: int | None
    changed: bool = True
    default_size: int | None = None
    """Set when the operation changed the default size for new text."""


def clamp_font_size(size: int) -> int:
    return max(MIN_FONT_SIZE, min(MAX_FONT_SIZE, int(size)))


class StyleApplicator:
    """Applies style changes to one document in response to toolbar actions.

    Args:
        on_default_size: Called with the new size when a caret-only font-size
            change updates the default for subsequently typed text.
    """

    def __init__(self, on_default_size: Callable[[int], None] | None = None):
        self._on_default_size = on_default_size

    # ── Queries ────────────────────────────────────────────────────

    def current_style_at(self, document: StyledDocument, selection: Selection | None) -> int | None:
        """Effective font size at the selection's anchor, or None when unset.

        For a caret this is the run new text would join. For a range it is
        the selected character at the anchor end: the first one for a forward
        drag, the last one when the drag went backwards.
        """
        try:
            index = self._anchor_node(document, selection)
        except SelectionOutOfDocument:
            return None
        if index is None:
            return None
        return document.effective_style(index, FONT_SIZE)

    def _anchor_node(self, document: StyledDocument, selection: Selection | None) -> int | None:
        self._check(document, selection)
        if selection.is_collapsed:
            span = document.insertion_run(selection.anchor)
        else:
            anchor = selection.anchor if selection.anchor < selection.end else selection.end - 1
            span = document.run_at(anchor)
        return span.index if span else None

    @staticmethod
    def _check(document: StyledDocument, selection: Selection | None) -> None:
        if selection is None or not selection.fits(len(document)):
            raise SelectionOutOfDocument(f"selection {selection} outside document of length {len(document)}")

    # ── Font size ──────────────────────────────────────────────────

    def apply_font_size(
        self, document: StyledDocument, selection: Selection | None, size: int
    ) -> StyleResult:
        """Apply *size* to the selection (or as the sticky size at a caret).

        Mutates *document* in place. An out-of-document selection is a no-op.
        """
        size = clamp_font_size(size)
        try:
            self._check(document, selection)
        except SelectionOutOfDocument as e:
            logger.debug(f"Font size change ignored: {e}")
            return StyleResult(document, selection, None, changed=False)

        if selection.is_collapsed:
            self._insert_size_marker(document, selection.anchor, size)
            if self._on_default_size:
                self._on_default_size(size)
            return StyleResult(document, selection, size, default_size=size)

        self._apply_range(document, selection.start, selection.end, size)
        return StyleResult(document, selection, size)

    def _apply_range(self, document: StyledDocument, start: int, end: int, size: int) -> None:
        document.split_at(start)
        document.split_at(end)

        for group in self._covered_groups(document, start, end):
            wrapper = document.wrap(group, {FONT_SIZE: size})
            emptied = []
            for child in list(document.nodes[wrapper].children):
                emptied.extend(document.strip_attribute(child, FONT_SIZE))
            for container in emptied:
                document.unwrap(container)

    @staticmethod
    def _covered_groups(document: StyledDocument, start: int, end: int) -> list[list[int]]:
        """Outermost nodes lying wholly inside ``[start, end)``, grouped into
        runs of consecutive siblings."""
        layout = document.layout()

        def covered(index: int) -> bool:
            if index == ROOT:
                return False
            lo, hi = layout[index]
            if lo == hi:
                return start < lo < end
            return start <= lo and hi <= end

        groups: list[list[int]] = []
        for parent in document.walk():
            node = document.nodes[parent]
            if node.text is not None or (parent != ROOT and covered(parent)):
                continue
            current: list[int] = []
            for child in node.children:
                if covered(child):
                    current.append(child)
                elif current:
                    groups.append(current)
                    current = []
            if current:
                groups.append(current)
        return groups

    def _insert_size_marker(self, document: StyledDocument, offset: int, size: int) -> None:
        span = document.insertion_run(offset)
        if span is None:
            document.append_child(ROOT, Node(text="", style={FONT_SIZE: size}))
            return

        run = document.nodes[span.index]
        if span.is_empty:
            # Repeated changes at one caret reuse the marker already there.
            run.style[FONT_SIZE] = size
            return

        marker = Node(text="", style={**run.style, FONT_SIZE: size})
        if span.start < offset < span.end:
            document.split_run(span.index, offset - span.start)
            position = document.position_in_parent(span.index) + 1
        elif offset == span.end:
            position = document.position_in_parent(span.index) + 1
        else:
            position = document.position_in_parent(span.index)
        document.insert_child(run.parent, position, marker)

    # ── Pass-through marks ─────────────────────────────────────────

    def toggle_mark(
        self, document: StyledDocument, selection: Selection | None, mark: str, value: Any = True
    ) -> StyleResult:
        """Toggle *mark* on every run in a range selection.

        If every selected run already shows *value* the mark is switched off,
        otherwise it is set. Carets are left alone.
        """
        try:
            self._check(document, selection)
        except SelectionOutOfDocument as e:
            logger.debug(f"Toggle {mark} ignored: {e}")
            return StyleResult(document, selection, None, changed=False)

        if selection.is_collapsed:
            return StyleResult(document, selection, self.current_style_at(document, selection), changed=False)

        document.split_at(selection.start)
        document.split_at(selection.end)
        inside = [
            r for r in document.runs() if selection.start <= r.start and r.end <= selection.end and not r.is_empty
        ]
        switch_off = all(document.effective_style(r.index, mark) == value for r in inside)
        for r in inside:
            style = document.nodes[r.index].style
            style.pop(mark, None)
            if switch_off:
                if document.effective_style(r.index, mark) is not None:
                    style[mark] = False
            else:
                style[mark] = value
        return StyleResult(document, selection, self.current_style_at(document, selection))
