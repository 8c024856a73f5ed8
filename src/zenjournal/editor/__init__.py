"""Rich-text editing core: document tree, selections, style application, export."""

from .document import FONT_SIZE, Node, RunSpan, StyledDocument, parse_content
from .export import export_to_file, to_plain_text, word_count
from .selection import Selection
from .style import MARKS, StyleApplicator, StyleResult, clamp_font_size

__all__ = [
    "FONT_SIZE",
    "MARKS",
    "Node",
    "RunSpan",
    "Selection",
    "StyleApplicator",
    "StyleResult",
    "StyledDocument",
    "clamp_font_size",
    "export_to_file",
    "parse_content",
    "to_plain_text",
    "word_count",
]
