"""Text selection addressed directly against a :class:`StyledDocument`."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Selection:
    """A caret (``anchor == focus``) or a range between two plain-text offsets.

    ``focus`` may precede ``anchor`` for a backwards drag; use
    :attr:`start`/:attr:`end` for the ordered bounds.
    """

    anchor: int
    focus: int

    @classmethod
    def caret(cls, offset: int) -> Selection:
        return cls(offset, offset)

    @classmethod
    def span(cls, start: int, end: int) -> Selection:
        return cls(start, end)

    @property
    def is_collapsed(self) -> bool:
        return self.anchor == self.focus

    @property
    def start(self) -> int:
        return min(self.anchor, self.focus)

    @property
    def end(self) -> int:
        return max(self.anchor, self.focus)

    def fits(self, length: int) -> bool:
        """Whether both ends lie inside a document of *length* characters."""
        return 0 <= self.start and self.end <= length
