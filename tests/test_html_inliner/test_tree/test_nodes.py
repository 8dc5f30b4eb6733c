"""Tests for the arena node model and node handles."""

import pytest

from html_inliner.tree import (
    BorrowError,
    HTMLDocument,
    NodeArena,
    NodeRef,
    TagNode,
    TextNode,
    render_attributes,
)


@pytest.fixture
def document():
    return HTMLDocument()


class TestNodeArena:
    """Test arena storage and borrow tracking."""

    def test_add_and_ref(self):
        arena = NodeArena()
        index = arena.add(TextNode("x"))
        assert len(arena) == 1
        assert arena.ref(index) == NodeRef(arena, index)

    def test_ref_out_of_range(self):
        with pytest.raises(IndexError):
            NodeArena().ref(0)

    def test_shared_borrows_nest(self):
        arena = NodeArena()
        index = arena.add(TextNode("x"))
        with arena.borrow(index) as first:
            with arena.borrow(index) as second:
                assert first is second

    def test_mutable_borrow_excludes_readers(self):
        arena = NodeArena()
        index = arena.add(TextNode("x"))
        with arena.borrow(index):
            with pytest.raises(BorrowError):
                with arena.borrow_mut(index):
                    pass

    def test_readers_excluded_while_mutating(self):
        arena = NodeArena()
        index = arena.add(TextNode("x"))
        with arena.borrow_mut(index):
            with pytest.raises(BorrowError):
                with arena.borrow(index):
                    pass
            with pytest.raises(BorrowError):
                with arena.borrow_mut(index):
                    pass

    def test_borrow_released_after_exception(self):
        arena = NodeArena()
        index = arena.add(TextNode("x"))
        with pytest.raises(RuntimeError):
            with arena.borrow_mut(index):
                raise RuntimeError("boom")
        with arena.borrow_mut(index) as node:
            node.content = "y"
        with arena.borrow(index) as node:
            assert node.content == "y"

    def test_attach_rejects_second_owner(self):
        arena = NodeArena()
        index = arena.add(TextNode("x"))
        arena.attach([index])
        assert arena.is_owned(index)
        with pytest.raises(ValueError, match="already has an owner"):
            arena.attach([index])
        arena.detach([index])
        assert not arena.is_owned(index)

    def test_declaration_flag(self):
        assert TagNode("!DOCTYPE").is_declaration
        assert not TagNode("html").is_declaration


class TestNodeRefAccess:
    """Test reading and writing node content through handles."""

    def test_variant_checks(self, document):
        text = document.create_text("hello")
        tag = document.create_tag("p")
        assert text.is_text and not text.is_tag
        assert tag.is_tag and not tag.is_text

    def test_text_read_and_write(self, document):
        text = document.create_text("hello")
        text.text = "bye"
        assert text.text == "bye"

    def test_wrong_variant_raises_type_error(self, document):
        text = document.create_text("hello")
        tag = document.create_tag("p")
        with pytest.raises(TypeError):
            text.name
        with pytest.raises(TypeError):
            text.set_attribute("a", "b")
        with pytest.raises(TypeError):
            tag.text
        with pytest.raises(TypeError):
            text.children

    def test_name(self, document):
        tag = document.create_tag("link")
        tag.name = "style"
        assert tag.name == "style"
        with pytest.raises(ValueError, match="Tag name cannot be empty"):
            tag.name = ""

    def test_attributes(self, document):
        tag = document.create_tag("a", {"href": "x.css"})
        assert tag.get_attribute("href") == "x.css"
        assert tag.get_attribute("missing") is None
        assert tag.get_attribute("missing", "d") == "d"
        assert tag.has_attribute("href")

        tag.set_attribute("hidden")
        tag.set_attribute("href", "y.css")
        assert tag.attributes == {"href": "y.css", "hidden": ""}

        assert tag.remove_attribute("hidden") == ""
        assert tag.remove_attribute("hidden") is None
        assert tag.attributes == {"href": "y.css"}

    def test_attributes_property_is_a_copy(self, document):
        tag = document.create_tag("a", {"href": "x"})
        tag.attributes["href"] = "changed"
        assert tag.get_attribute("href") == "x"

        tag.attributes = {"src": "y"}
        assert tag.attributes == {"src": "y"}

    def test_write_during_read_fails_without_change(self, document):
        tag = document.create_tag("a", {"href": "x"})
        with tag.borrow():
            with pytest.raises(BorrowError):
                tag.set_attribute("href", "y")
        assert tag.get_attribute("href") == "x"

    def test_read_during_write_fails(self, document):
        tag = document.create_tag("a")
        with tag.borrow_mut() as node:
            node.name = "b"
            with pytest.raises(BorrowError):
                tag.name
        assert tag.name == "b"

    def test_equality_and_hash(self, document):
        tag = document.create_tag("a")
        same = NodeRef(document.arena, tag.index)
        assert tag == same
        assert hash(tag) == hash(same)
        assert tag != document.create_tag("a")
        assert tag != NodeRef(NodeArena(), tag.index)

    def test_repr(self, document):
        assert repr(document.create_tag("a")) == "NodeRef(0, tag='a')"
        assert repr(document.create_text("hi")) == "NodeRef(1, text='hi')"


class TestChildren:
    """Test child list mutation and ownership rules."""

    def test_append_and_read_children(self, document):
        parent = document.create_tag("p")
        first = document.create_text("one")
        second = document.create_tag("b")
        parent.append_child(first)
        parent.append_child(second)
        assert parent.children == [first, second]
        assert parent.child_count == 2

    def test_create_tag_with_children(self, document):
        child = document.create_text("x")
        parent = document.create_tag("p", children=[child])
        assert parent.children == [child]

    def test_node_cannot_have_two_parents(self, document):
        child = document.create_text("x")
        document.create_tag("a").append_child(child)
        with pytest.raises(ValueError, match="already has an owner"):
            document.create_tag("b").append_child(child)

    def test_root_cannot_become_a_child(self, document):
        root = document.create_tag("html")
        document.append_root(root)
        with pytest.raises(ValueError):
            document.create_tag("body").append_child(root)

    def test_node_cannot_be_its_own_child(self, document):
        tag = document.create_tag("a")
        with pytest.raises(ValueError, match="its own child"):
            tag.append_child(tag)

    def test_ancestor_cannot_become_a_child(self, document):
        outer = document.create_tag("a")
        inner = document.create_tag("b")
        leaf = document.create_tag("c")
        outer.append_child(inner)
        inner.append_child(leaf)

        with pytest.raises(ValueError, match="would create a cycle"):
            inner.append_child(outer)
        with pytest.raises(ValueError, match="would create a cycle"):
            leaf.set_children([outer])

        assert inner.children == [leaf]
        assert leaf.children == []
        assert not document.arena.is_owned(outer.index)
        assert outer.render() == "<a><b><c/></b></a>"

    def test_detached_subtree_can_be_reattached_below_former_child(self, document):
        outer = document.create_tag("a")
        inner = document.create_tag("b")
        outer.append_child(inner)
        outer.clear_children()
        inner.append_child(outer)
        assert inner.render() == "<b><a/></b>"

    def test_children_must_share_the_document(self, document):
        other = HTMLDocument()
        with pytest.raises(ValueError, match="different document"):
            document.create_tag("a").append_child(other.create_text("x"))

    def test_children_must_be_node_refs(self, document):
        with pytest.raises(TypeError, match="Child must be a NodeRef"):
            document.create_tag("a").set_children(["x"])

    def test_set_children_replaces_and_releases(self, document):
        parent = document.create_tag("ul")
        old = document.create_tag("li")
        new = document.create_tag("li")
        parent.set_children([old])
        parent.set_children([new])
        assert parent.children == [new]
        assert not document.arena.is_owned(old.index)
        document.create_tag("ol").append_child(old)

    def test_set_children_can_keep_existing_child(self, document):
        parent = document.create_tag("ul")
        kept = document.create_tag("li")
        parent.set_children([kept])
        parent.set_children([kept, document.create_text("x")])
        assert parent.child_count == 2

    def test_failed_set_children_keeps_previous_list(self, document):
        parent = document.create_tag("ul")
        old = document.create_tag("li")
        duplicate = document.create_tag("li")
        parent.set_children([old])
        with pytest.raises(ValueError):
            parent.set_children([duplicate, duplicate])
        assert parent.children == [old]
        assert document.arena.is_owned(old.index)
        assert not document.arena.is_owned(duplicate.index)

    def test_clear_children_releases(self, document):
        parent = document.create_tag("p")
        child = document.create_text("x")
        parent.append_child(child)
        parent.clear_children()
        assert parent.children == []
        document.create_tag("q").append_child(child)


class TestRendering:
    """Test rendering of subtrees."""

    def test_render_attributes(self):
        assert render_attributes({"a": "1", "b": ""}) == ' a="1" b'
        assert render_attributes({}) == ""

    def test_empty_tag_is_self_closing(self, document):
        assert document.create_tag("br").render() == "<br/>"

    def test_declaration_has_no_slash(self, document):
        assert document.create_tag("!DOCTYPE", {"html": ""}).render() == "<!DOCTYPE html>"

    def test_attributes_keep_insertion_order(self, document):
        tag = document.create_tag("img", {"src": "a.png", "alt": "A", "hidden": ""})
        assert tag.render() == '<img src="a.png" alt="A" hidden/>'

    def test_children_separated_by_one_space(self, document):
        tag = document.create_tag("p", children=[
            document.create_text("one"),
            document.create_tag("b", children=[document.create_text("two")]),
            document.create_text("three"),
        ])
        assert tag.render() == "<p>one <b>two</b> three</p>"

    def test_to_dict(self, document):
        tag = document.create_tag("p", {"id": "x"}, [document.create_text("t")])
        assert tag.to_dict() == {
            "tag": "p",
            "attributes": {"id": "x"},
            "children": [{"text": "t"}],
        }
