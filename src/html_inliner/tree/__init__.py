"""Tree model and tree building.

This module provides the arena-backed node model, the document wrapper with
its depth-first traversal contract, and the forgiving tree builder.
"""

from html_inliner.shared.errors import BorrowError, ParseError

from .builder import HTMLTreeBuilder, build_tree
from .document import HTMLDocument
from .nodes import (
    Node,
    NodeArena,
    NodeRef,
    TagNode,
    TextNode,
    render_attributes,
    render_node,
    walk,
)

__all__ = [
    "BorrowError",
    "HTMLDocument",
    "HTMLTreeBuilder",
    "Node",
    "NodeArena",
    "NodeRef",
    "ParseError",
    "TagNode",
    "TextNode",
    "build_tree",
    "render_attributes",
    "render_node",
    "walk",
]
