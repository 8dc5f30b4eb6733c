"""The parsed document: an ordered sequence of root nodes over one arena."""

from typing import Any, Dict, Iterator, List, Optional

from html_inliner.shared import DiagnosticEntry, PerformanceMetrics

from .nodes import NodeArena, NodeRef, TagNode, TextNode, Visitor, render_node, walk


class HTMLDocument:
    """Root-level nodes of a parsed document plus parse diagnostics.

    A document may have several roots, e.g. a doctype declaration followed
    by the ``html`` element. Structural equality (``==``) compares the node
    trees only, not diagnostics or metrics.
    """

    def __init__(
        self,
        arena: Optional[NodeArena] = None,
        roots: Optional[List[int]] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.arena = arena if arena is not None else NodeArena()
        self._roots: List[int] = []
        self.correlation_id = correlation_id
        self.diagnostics: List[DiagnosticEntry] = []
        self.performance = PerformanceMetrics()
        if roots:
            self._roots = self.arena.attach(roots)

    def __len__(self) -> int:
        return len(self._roots)

    def __iter__(self) -> Iterator[NodeRef]:
        return iter(self.roots)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HTMLDocument):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"HTMLDocument(roots={len(self._roots)}, nodes={len(self.arena)})"

    @property
    def roots(self) -> List[NodeRef]:
        return [NodeRef(self.arena, index) for index in self._roots]

    @property
    def root(self) -> Optional[NodeRef]:
        """The first root tag that is not a declaration, if any."""
        for ref in self.roots:
            with ref.borrow() as node:
                if isinstance(node, TagNode) and not node.is_declaration:
                    return ref
        return None

    @property
    def has_promotions(self) -> bool:
        return self.performance.sibling_promotions > 0

    # Construction

    def create_text(self, content: str) -> NodeRef:
        """Create a detached text node owned by this document's arena."""
        return NodeRef(self.arena, self.arena.add(TextNode(content)))

    def create_tag(
        self,
        name: str,
        attributes: Optional[Dict[str, str]] = None,
        children: Optional[List[NodeRef]] = None,
    ) -> NodeRef:
        """Create a detached tag node; ``children`` must be detached nodes."""
        if not name:
            raise ValueError("Tag name cannot be empty")
        ref = NodeRef(self.arena, self.arena.add(TagNode(name, dict(attributes or {}))))
        if children:
            ref.set_children(children)
        return ref

    def append_root(self, node: NodeRef) -> None:
        if node.arena is not self.arena:
            raise ValueError("Node belongs to a different document")
        self.arena.attach([node.index])
        self._roots.append(node.index)

    # Traversal

    def depth_first(self, visit: Visitor) -> None:
        """Call ``visit`` on every node in pre-order.

        ``visit`` may mutate the node it is given; the traversal descends into
        the node's children as they are after ``visit`` returns. An exception
        raised by ``visit`` aborts the traversal and propagates to the caller;
        mutations already applied are kept.
        """
        walk(self.arena, list(self._roots), visit)

    def iter_nodes(self) -> Iterator[NodeRef]:
        """Yield every reachable node in pre-order."""
        found: List[NodeRef] = []
        walk(self.arena, list(self._roots), found.append)
        return iter(found)

    def find_all(self, name: str) -> List[NodeRef]:
        """Find every tag with the given name, in document order."""
        matches: List[NodeRef] = []

        def collect(ref: NodeRef) -> None:
            with ref.borrow() as node:
                if isinstance(node, TagNode) and node.name == name:
                    matches.append(ref)

        self.depth_first(collect)
        return matches

    # Output

    def render(self) -> str:
        """Render every root followed by a newline."""
        return "".join(render_node(self.arena, index) + "\n" for index in self._roots)

    def to_dict(self) -> List[Dict[str, Any]]:
        return [ref.to_dict() for ref in self.roots]

    def summary(self) -> Dict[str, Any]:
        return {
            "roots": len(self._roots),
            "nodes": len(self.arena),
            "performance": self.performance.to_dict(),
            "diagnostics": [entry.to_dict() for entry in self.diagnostics],
        }
