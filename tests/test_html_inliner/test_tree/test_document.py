"""Tests for HTMLDocument traversal, mutation and rendering."""

import pytest

from html_inliner.api import parse_string
from html_inliner.tree import BorrowError, HTMLDocument, NodeRef


def describe(ref):
    return ref.name if ref.is_tag else ref.text


class TestDepthFirst:
    """Test pre-order traversal with in-place mutation."""

    def test_pre_order(self):
        document = parse_string(
            "<!DOCTYPE html><html><head><title>T</title></head>"
            "<body><p>x</p><br/></body></html>"
        )
        visited = []
        document.depth_first(lambda ref: visited.append(describe(ref)))
        assert visited == ["!DOCTYPE", "html", "head", "title", "T", "body", "p", "x", "br"]

    def test_visitor_mutations_are_kept(self):
        document = parse_string('<head><link rel="stylesheet" href="a.css"/></head>')

        def rewrite(ref):
            if ref.is_tag and ref.has_attribute("href"):
                ref.name = "style"
                ref.remove_attribute("href")
                ref.remove_attribute("rel")
                ref.append_child(document.create_text("body {}"))

        document.depth_first(rewrite)
        assert document.render() == "<head><style>body {}</style></head>\n"

    def test_traversal_descends_into_replaced_children(self):
        document = parse_string("<ul><li>old</li></ul>")
        visited = []

        def visit(ref):
            visited.append(describe(ref))
            if ref.is_tag and ref.name == "ul":
                ref.set_children([document.create_text("new")])

        document.depth_first(visit)
        assert visited == ["ul", "new"]

    def test_visitor_exception_stops_traversal(self):
        document = parse_string("<a/><b/><c/>")
        visited = []

        def visit(ref):
            visited.append(ref.name)
            ref.set_attribute("seen")
            if ref.name == "b":
                raise RuntimeError("stop")

        with pytest.raises(RuntimeError, match="stop"):
            document.depth_first(visit)
        assert visited == ["a", "b"]
        assert document.render() == "<a seen/>\n<b seen/>\n<c/>\n"

    def test_conflicting_borrow_in_visitor_propagates(self):
        document = parse_string("<a/>")

        def visit(ref):
            with ref.borrow():
                ref.set_attribute("x", "y")

        with pytest.raises(BorrowError):
            document.depth_first(visit)
        assert document.roots[0].attributes == {}

    def test_nested_traversal_from_visitor(self):
        document = parse_string("<div><p>x</p></div>")
        inner = []

        def visit(ref):
            if ref.is_tag and ref.name == "div":
                ref.depth_first(lambda child: inner.append(describe(child)))

        document.depth_first(visit)
        assert inner == ["div", "p", "x"]

    def test_traversal_handles_deep_trees(self):
        depth = 5000
        markup = "<div>" * depth + "x" + "</div>" * depth
        document = parse_string(markup)
        count = []
        document.depth_first(count.append)
        assert len(count) == depth + 1
        assert document.render() == markup + "\n"


class TestHTMLDocument:
    """Test document construction, queries and output."""

    def test_roots_and_root(self):
        document = parse_string("<!DOCTYPE html><html></html>")
        assert len(document) == 2
        assert [ref.name for ref in document] == ["!DOCTYPE", "html"]
        assert document.root.name == "html"

    def test_root_is_none_without_tags(self):
        assert parse_string("just text").root is None
        assert HTMLDocument().root is None

    def test_iter_nodes_and_find_all(self):
        document = parse_string("<ul><li>a</li><li>b</li></ul>")
        assert len(list(document.iter_nodes())) == 5
        assert [ref.children[0].text for ref in document.find_all("li")] == ["a", "b"]
        assert document.find_all("table") == []

    def test_render_puts_each_root_on_its_own_line(self):
        document = parse_string("<!DOCTYPE html>\n<html><body><p>Hi</p></body></html>")
        assert document.render() == "<!DOCTYPE html>\n<html><body><p>Hi</p></body></html>\n"
        assert str(document) == document.render()

    def test_append_root(self):
        document = HTMLDocument()
        document.append_root(document.create_tag("p"))
        assert document.render() == "<p/>\n"
        with pytest.raises(ValueError, match="different document"):
            document.append_root(HTMLDocument().create_tag("p"))

    def test_roots_from_constructor(self):
        document = HTMLDocument()
        ref = document.create_text("x")
        built = HTMLDocument(document.arena, [ref.index])
        assert built.roots == [NodeRef(document.arena, ref.index)]

    def test_create_tag_rejects_empty_name(self):
        with pytest.raises(ValueError):
            HTMLDocument().create_tag("")

    def test_structural_equality(self):
        assert parse_string("<p>x</p>") == parse_string("<p>\n x \n</p>")
        assert parse_string("<p>x</p>") != parse_string("<p>y</p>")

    def test_summary_and_repr(self):
        document = parse_string("<p>text")
        summary = document.summary()
        assert summary["roots"] == 2
        assert summary["nodes"] == 2
        assert summary["performance"]["sibling_promotions"] == 1
        assert summary["diagnostics"][0]["severity"] == "INFO"
        assert repr(document) == "HTMLDocument(roots=2, nodes=2)"


class TestRoundTrip:
    """Rendering a parsed document and parsing it again gives the same tree."""

    @pytest.mark.parametrize("markup", [
        "<p>one<b>two</b>three</p>",
        '<div class="a b" hidden><img src="x.png"/></div>',
        '<script>if (1 < 2) {alert("hi");}</script>',
        "<!DOCTYPE html>\n<html>\n<body>\n</body>\n</html>",
        "<ul><li>one<li>two</ul>",
    ])
    def test_render_then_parse(self, markup):
        document = parse_string(markup)
        assert parse_string(document.render()) == document
