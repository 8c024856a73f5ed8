"""Tests for zenjournal.editor.document."""

import json

import pytest

from zenjournal.editor.document import FONT_SIZE, ROOT, Node, StyledDocument, parse_content
from zenjournal.editor.selection import Selection


@pytest.fixture
def nested_doc():
    """'Hi there' where 'there' sits in a 14px container and 'the' inside it is 18px."""
    return StyledDocument.from_dict(
        {
            "children": [
                {"text": "Hi "},
                {
                    "style": {FONT_SIZE: 14},
                    "children": [{"text": "the", "style": {FONT_SIZE: 18}}, {"text": "re"}],
                },
            ]
        }
    )


class TestTraversal:
    def test_plain_text_is_concatenated_runs(self, nested_doc):
        assert nested_doc.plain_text == "Hi there"
        assert len(nested_doc) == 8

    def test_runs_offsets(self, nested_doc):
        spans = [(r.start, r.end) for r in nested_doc.runs()]
        assert spans == [(0, 3), (3, 6), (6, 8)]

    def test_innermost_wins(self, nested_doc):
        runs = nested_doc.runs()
        assert nested_doc.effective_style(runs[0].index, FONT_SIZE) is None
        assert nested_doc.effective_style(runs[1].index, FONT_SIZE) == 18
        assert nested_doc.effective_style(runs[2].index, FONT_SIZE) == 14

    def test_empty_document(self):
        doc = StyledDocument()
        assert doc.plain_text == ""
        assert doc.runs() == []
        assert doc.insertion_run(0) is None

    def test_insertion_run_prefers_run_ending_at_caret(self):
        doc = StyledDocument.from_dict({"children": [{"text": "ab"}, {"text": "cd"}]})
        first, second = doc.runs()
        assert doc.insertion_run(2).index == first.index
        assert doc.insertion_run(0).index == first.index
        assert doc.insertion_run(3).index == second.index

    def test_insertion_run_picks_empty_marker(self):
        doc = StyledDocument.from_dict({"children": [{"text": "ab"}, {"text": "", "style": {FONT_SIZE: 20}}]})
        marker = doc.runs()[1]
        assert doc.insertion_run(2).index == marker.index


class TestMutation:
    def test_split_run_keeps_style(self):
        doc = StyledDocument.from_text("Hello", {"bold": True})
        index = doc.runs()[0].index
        right = doc.split_run(index, 2)
        assert doc.nodes[index].text == "He"
        assert doc.nodes[right].text == "llo"
        assert doc.nodes[right].style == {"bold": True}
        assert doc.plain_text == "Hello"

    def test_split_at_boundary_is_noop(self):
        doc = StyledDocument.from_text("Hello")
        doc.split_at(0)
        doc.split_at(5)
        assert len(doc.runs()) == 1

    def test_split_run_rejects_edges(self):
        doc = StyledDocument.from_text("Hello")
        with pytest.raises(ValueError):
            doc.split_run(doc.runs()[0].index, 0)

    def test_wrap_and_unwrap(self):
        doc = StyledDocument.from_dict({"children": [{"text": "a"}, {"text": "b"}, {"text": "c"}]})
        a, b, c = (r.index for r in doc.runs())
        wrapper = doc.wrap([b, c], {FONT_SIZE: 30})
        assert doc.nodes[ROOT].children == [a, wrapper]
        assert doc.effective_style(c, FONT_SIZE) == 30

        doc.unwrap(wrapper)
        assert doc.nodes[ROOT].children == [a, b, c]
        assert doc.effective_style(c, FONT_SIZE) is None

    def test_wrap_requires_consecutive_siblings(self):
        doc = StyledDocument.from_dict({"children": [{"text": "a"}, {"text": "b"}, {"text": "c"}]})
        a, _, c = (r.index for r in doc.runs())
        with pytest.raises(ValueError):
            doc.wrap([a, c], {})

    def test_strip_attribute_reports_emptied_containers(self, nested_doc):
        container = nested_doc.nodes[ROOT].children[1]
        emptied = nested_doc.strip_attribute(container, FONT_SIZE)
        assert emptied == [container]
        assert all(nested_doc.effective_style(r.index, FONT_SIZE) is None for r in nested_doc.runs())

    def test_insert_text_extends_run(self):
        doc = StyledDocument.from_text("Helo")
        doc.insert_text(3, "l")
        assert doc.plain_text == "Hello"
        assert len(doc.runs()) == 1

    def test_insert_into_empty_document(self):
        doc = StyledDocument()
        doc.insert_text(0, "hi")
        assert doc.plain_text == "hi"

    def test_insert_out_of_range(self):
        with pytest.raises(ValueError):
            StyledDocument.from_text("ab").insert_text(5, "x")

    def test_delete_range(self, nested_doc):
        nested_doc.delete_range(1, 5)
        assert nested_doc.plain_text == "Here"

    def test_delete_empty_range_is_noop(self):
        doc = StyledDocument.from_text("abc")
        doc.delete_range(1, 1)
        assert doc.plain_text == "abc"


class TestCodec:
    def test_json_is_canonical(self, nested_doc):
        again = StyledDocument.from_json(nested_doc.to_json())
        assert again == nested_doc
        assert again.to_json() == nested_doc.to_json()

    def test_copy_is_independent(self, nested_doc):
        clone = nested_doc.copy()
        clone.insert_text(0, "Oh, ")
        assert nested_doc.plain_text == "Hi there"
        assert clone != nested_doc

    def test_copy_drops_detached_nodes(self):
        doc = StyledDocument.from_dict({"children": [{"text": "a"}, {"text": "b"}]})
        doc.wrap([r.index for r in doc.runs()], {FONT_SIZE: 12})
        doc.unwrap(doc.nodes[ROOT].children[0])
        assert len(doc.copy().nodes) == 3

    def test_from_dict_rejects_run_root(self):
        with pytest.raises(ValueError):
            StyledDocument.from_dict({"text": "nope"})

    def test_from_dict_rejects_bad_text(self):
        with pytest.raises(ValueError):
            StyledDocument.from_dict({"children": [{"text": 5}]})

    @pytest.mark.parametrize(
        "data",
        [
            {"children": 5},
            {"children": "abc"},
            {"children": [{"children": True}]},
            {"style": ["bold"]},
            {"children": [{"text": "x", "style": {"bold": {"nested": 1}}}]},
            {"children": [{"text": "x", "style": {FONT_SIZE: "20px"}}]},
            {"children": [{"text": "x", "style": {FONT_SIZE: True}}]},
        ],
    )
    def test_from_dict_rejects_malformed_tree(self, data):
        with pytest.raises(ValueError):
            StyledDocument.from_dict(data)

    def test_malformed_json_string_content_falls_back_to_text(self):
        raw = json.dumps({"children": 5})
        assert parse_content(raw).plain_text == raw

    def test_pass_through_marks_survive(self):
        data = {"children": [{"text": "x", "style": {"bold": True, "highlight": "#ff0"}}]}
        assert StyledDocument.from_dict(data).to_dict() == data


class TestParseContent:
    def test_dict(self):
        assert parse_content({"children": [{"text": "a"}]}).plain_text == "a"

    def test_json_string(self):
        raw = json.dumps({"children": [{"text": "a"}]})
        assert parse_content(raw).plain_text == "a"

    @pytest.mark.parametrize("raw", [None, ""])
    def test_empty(self, raw):
        assert parse_content(raw) == StyledDocument()

    def test_legacy_plain_text(self):
        assert parse_content("Dear diary").plain_text == "Dear diary"

    def test_unsupported(self):
        with pytest.raises(ValueError):
            parse_content(42)


class TestSelection:
    def test_caret(self):
        sel = Selection.caret(3)
        assert sel.is_collapsed
        assert (sel.start, sel.end) == (3, 3)

    def test_backwards_range_is_ordered(self):
        sel = Selection(anchor=7, focus=2)
        assert (sel.start, sel.end) == (2, 7)
        assert not sel.is_collapsed

    def test_fits(self):
        assert Selection.span(0, 5).fits(5)
        assert not Selection.span(0, 6).fits(5)
        assert not Selection.caret(-1).fits(5)


def test_node_is_run():
    assert Node(text="").is_run
    assert not Node().is_run
