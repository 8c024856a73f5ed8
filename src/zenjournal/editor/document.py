"""Rich document model — an owned tree of styled text runs.

The document is an arena: every node lives in ``StyledDocument.nodes`` and
refers to its parent and children by index. Node 0 is the root container.
Leaves are *runs* (they carry text); inner nodes are *containers* (they carry
only style). A style attribute on a node applies to its whole subtree unless
a descendant sets the same attribute (innermost wins).

Positions are plain-text offsets: concatenating run texts in tree order gives
:attr:`StyledDocument.plain_text`, and an offset ``p`` sits between character
``p - 1`` and character ``p``.

All mutation goes through a handful of primitive operations (split a run,
wrap siblings, unwrap a container, strip an attribute, insert text) so the UI
layer never touches the tree directly.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

FONT_SIZE = "font_size_px"
"""Style attribute holding an integer pixel size."""

ROOT = 0


@dataclass
class Node:
    """One arena slot. ``text is None`` marks a container."""

    text: str | None = None
    style: dict[str, Any] = field(default_factory=dict)
    parent: int | None = None
    children: list[int] = field(default_factory=list)

    @property
    def is_run(self) -> bool:
        return self.text is not None


@dataclass(frozen=True)
class RunSpan:
    """A run's arena index and its ``[start, end)`` plain-text offsets."""

    index: int
    start: int
    end: int

    @property
    def is_empty(self) -> bool:
        return self.start == self.end


class StyledDocument:
    """Tree of styled text runs backing one journal entry."""

    def __init__(self) -> None:
        self.nodes: list[Node] = [Node()]

    @classmethod
    def from_text(cls, text: str, style: dict[str, Any] | None = None) -> StyledDocument:
        doc = cls()
        if text:
            doc.append_child(ROOT, Node(text=text, style=dict(style or {})))
        return doc

    # ── Traversal ──────────────────────────────────────────────────

    def walk(self, index: int = ROOT) -> Iterator[int]:
        """Yield *index* and its descendants in document (pre-)order."""
        stack = [index]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self.nodes[current].children))

    def runs(self) -> list[RunSpan]:
        """All runs in document order with their offsets."""
        spans = []
        offset = 0
        for index in self.walk():
            text = self.nodes[index].text
            if text is not None:
                spans.append(RunSpan(index, offset, offset + len(text)))
                offset += len(text)
        return spans

    def layout(self) -> dict[int, tuple[int, int]]:
        """Map every reachable node to the ``(start, end)`` range of its subtree."""
        spans: dict[int, tuple[int, int]] = {}
        offset = 0

        def visit(index: int) -> None:
            nonlocal offset
            start = offset
            node = self.nodes[index]
            if node.text is not None:
                offset += len(node.text)
            else:
                for child in node.children:
                    visit(child)
            spans[index] = (start, offset)

        visit(ROOT)
        return spans

    @property
    def plain_text(self) -> str:
        return "".join(self.nodes[r.index].text for r in self.runs())

    def __len__(self) -> int:
        return sum(r.end - r.start for r in self.runs())

    def ancestors(self, index: int) -> Iterator[int]:
        """Yield *index*, then its parent, up to and including the root."""
        current: int | None = index
        while current is not None:
            yield current
            current = self.nodes[current].parent

    def effective_style(self, index: int, attr: str) -> Any | None:
        """Value of *attr* at node *index* under innermost-wins, or None."""
        for ancestor in self.ancestors(index):
            style = self.nodes[ancestor].style
            if attr in style:
                return style[attr]
        return None

    def insertion_run(self, offset: int) -> RunSpan | None:
        """The run that text typed at *offset* belongs to.

        Text extends the run ending at the caret (the last one, so an empty
        marker run placed there captures it). At the very start of a run
        with nothing before it, the first run is used. None if the document
        has no runs or *offset* is past the end.
        """
        chosen = None
        first = None
        for span in self.runs():
            if first is None:
                first = span
            if span.start < offset <= span.end or span.start == span.end == offset:
                chosen = span
            elif span.start > offset:
                break
        if chosen is None and first is not None and offset == first.start:
            chosen = first
        return chosen

    def run_at(self, offset: int) -> RunSpan | None:
        """The non-empty run containing the character starting at *offset*."""
        for span in self.runs():
            if span.start <= offset < span.end:
                return span
        return None

    # ── Primitive mutations ────────────────────────────────────────

    def _add(self, node: Node) -> int:
        self.nodes.append(node)
        return len(self.nodes) - 1

    def insert_child(self, parent: int, position: int, node: Node) -> int:
        """Add *node* as child number *position* of *parent*; return its index."""
        index = self._add(node)
        node.parent = parent
        self.nodes[parent].children.insert(position, index)
        return index

    def append_child(self, parent: int, node: Node) -> int:
        return self.insert_child(parent, len(self.nodes[parent].children), node)

    def position_in_parent(self, index: int) -> int:
        parent = self.nodes[index].parent
        if parent is None:
            raise ValueError("root has no parent")
        return self.nodes[parent].children.index(index)

    def split_run(self, index: int, at: int) -> int:
        """Split run *index* at local offset *at*; return the new right-hand run.

        Both halves keep the original run's style.
        """
        node = self.nodes[index]
        if node.text is None:
            raise ValueError(f"node {index} is not a run")
        if not 0 < at < len(node.text):
            raise ValueError(f"split point {at} outside run of length {len(node.text)}")
        right = Node(text=node.text[at:], style=dict(node.style))
        node.text = node.text[:at]
        return self.insert_child(node.parent, self.position_in_parent(index) + 1, right)

    def split_at(self, offset: int) -> None:
        """Make *offset* a run boundary, splitting the run strictly containing it."""
        for span in self.runs():
            if span.start < offset < span.end:
                self.split_run(span.index, offset - span.start)
                return

    def wrap(self, indices: list[int], style: dict[str, Any]) -> int:
        """Move consecutive siblings *indices* into a new container with *style*."""
        if not indices:
            raise ValueError("nothing to wrap")
        parent = self.nodes[indices[0]].parent
        if parent is None:
            raise ValueError("cannot wrap the root")
        siblings = self.nodes[parent].children
        first = siblings.index(indices[0])
        if siblings[first : first + len(indices)] != indices:
            raise ValueError("wrapped nodes must be consecutive siblings")

        container = Node(style=dict(style), parent=parent, children=list(indices))
        container_index = self._add(container)
        siblings[first : first + len(indices)] = [container_index]
        for child in indices:
            self.nodes[child].parent = container_index
        return container_index

    def unwrap(self, index: int) -> None:
        """Replace container *index* by its children in its parent."""
        node = self.nodes[index]
        if node.text is not None or node.parent is None:
            raise ValueError(f"node {index} is not an unwrappable container")
        siblings = self.nodes[node.parent].children
        position = siblings.index(index)
        siblings[position : position + 1] = node.children
        for child in node.children:
            self.nodes[child].parent = node.parent
        node.children = []
        node.parent = None

    def strip_attribute(self, index: int, attr: str) -> list[int]:
        """Remove *attr* from *index* and every descendant.

        Returns the containers left with an empty style by the removal.
        """
        emptied = []
        for current in self.walk(index):
            node = self.nodes[current]
            if attr in node.style:
                del node.style[attr]
                if node.text is None and not node.style:
                    emptied.append(current)
        return emptied

    def insert_text(self, offset: int, text: str) -> None:
        """Type *text* at *offset*, extending the run given by :meth:`insertion_run`."""
        if not 0 <= offset <= len(self):
            raise ValueError(f"offset {offset} outside document of length {len(self)}")
        span = self.insertion_run(offset)
        if span is None:
            self.append_child(ROOT, Node(text=text))
            return
        node = self.nodes[span.index]
        local = offset - span.start
        node.text = node.text[:local] + text + node.text[local:]

    def delete_range(self, start: int, end: int) -> None:
        """Remove the text in ``[start, end)``; runs emptied by it are detached."""
        if not 0 <= start <= end <= len(self):
            raise ValueError(f"range [{start}, {end}) outside document of length {len(self)}")
        if start == end:
            return
        self.split_at(start)
        self.split_at(end)
        for span in self.runs():
            if start <= span.start and span.end <= end and not span.is_empty:
                node = self.nodes[span.index]
                self.nodes[node.parent].children.remove(span.index)
                node.parent = None

    # ── Codec ──────────────────────────────────────────────────────

    def to_dict(self, index: int = ROOT) -> dict[str, Any]:
        node = self.nodes[index]
        data: dict[str, Any] = {}
        if node.text is not None:
            data["text"] = node.text
        else:
            data["children"] = [self.to_dict(child) for child in node.children]
        if node.style:
            data["style"] = dict(node.style)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StyledDocument:
        """Rebuild a document from :meth:`to_dict` output.

        Raises:
            ValueError: The data is not a well-formed document tree.
        """
        if not isinstance(data, dict) or "text" in data:
            raise ValueError("document root must be a container object")
        doc = cls()
        doc.nodes[ROOT].style = _read_style(data)

        def build(parent: int, item: Any) -> None:
            if not isinstance(item, dict):
                raise ValueError(f"expected a node object, got {type(item).__name__}")
            style = _read_style(item)
            if "text" in item:
                if not isinstance(item["text"], str):
                    raise ValueError("run text must be a string")
                doc.append_child(parent, Node(text=item["text"], style=style))
            else:
                index = doc.append_child(parent, Node(style=style))
                for child in _read_children(item):
                    build(index, child)

        for child in _read_children(data):
            build(ROOT, child)
        return doc

    def to_json(self) -> str:
        """Canonical serialization; equal documents give identical strings."""
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: str) -> StyledDocument:
        return cls.from_dict(json.loads(raw))

    def copy(self) -> StyledDocument:
        """Deep copy; detached arena slots are dropped."""
        return StyledDocument.from_dict(self.to_dict())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StyledDocument):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        text = self.plain_text
        preview = text[:40] + "..." if len(text) > 40 else text
        return f"StyledDocument({preview!r}, runs={len(self.runs())})"


def parse_content(raw: Any) -> StyledDocument:
    """Decode stored entry content.

    Accepts a document dict, its JSON string, or (for content written by
    older clients) any other string, which becomes a single plain run.
    """
    if isinstance(raw, StyledDocument):
        return raw
    if isinstance(raw, dict):
        return StyledDocument.from_dict(raw)
    if raw is None or raw == "":
        return StyledDocument()
    if isinstance(raw, str):
        try:
            return StyledDocument.from_json(raw)
        except ValueError:
            return StyledDocument.from_text(raw)
    raise ValueError(f"unsupported content type: {type(raw).__name__}")


def _read_children(item: dict[str, Any]) -> list[Any]:
    children = item.get("children")
    if children is None:
        return []
    if not isinstance(children, list):
        raise ValueError(f"node children must be a list, got {type(children).__name__}")
    return children


def _read_style(item: dict[str, Any]) -> dict[str, Any]:
    style = item.get("style")
    if style is None:
        return {}
    if not isinstance(style, dict):
        raise ValueError("node style must be an object")
    for key, value in style.items():
        if value is not None and not isinstance(value, (str, int, float, bool)):
            raise ValueError(f"style {key!r} must be a scalar, got {type(value).__name__}")
    size = style.get(FONT_SIZE)
    if size is not None and (isinstance(size, bool) or not isinstance(size, int)):
        raise ValueError(f"{FONT_SIZE} must be an integer, got {size!r}")
    return dict(style)
