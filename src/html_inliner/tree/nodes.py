"""Arena-backed node storage with runtime-checked borrows.

Nodes live in a ``NodeArena`` and are addressed by integer index; a tag's
children are a list of indices. Callers never hold node objects directly,
they hold ``NodeRef`` handles. Every access goes through a borrow on the
slot: any number of shared borrows, or exactly one exclusive borrow. A
conflicting access raises ``BorrowError`` before anything is changed.

Traversal and rendering are iterative so nesting depth is not limited by
the interpreter's recursion limit.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Union

from html_inliner.shared.errors import BorrowError

DECLARATION_MARKER = "!"
# Owner recorded for nodes in a document's root list
ROOT_OWNER = -1


@dataclass
class TextNode:
    """Leaf holding a run of text."""

    content: str


@dataclass
class TagNode:
    """Element with a name, attributes and child indices into the arena."""

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List[int] = field(default_factory=list)

    @property
    def is_declaration(self) -> bool:
        return self.name.startswith(DECLARATION_MARKER)


Node = Union[TextNode, TagNode]
Visitor = Callable[["NodeRef"], Any]


class _Slot:
    __slots__ = ("node", "readers", "writing", "owner")

    def __init__(self, node: Node) -> None:
        self.node = node
        self.readers = 0
        self.writing = False
        self.owner: Optional[int] = None


class NodeArena:
    """Owns every node of one document."""

    def __init__(self) -> None:
        self._slots: List[_Slot] = []

    def __len__(self) -> int:
        return len(self._slots)

    def add(self, node: Node) -> int:
        self._slots.append(_Slot(node))
        return len(self._slots) - 1

    def ref(self, index: int) -> "NodeRef":
        self._slot(index)
        return NodeRef(self, index)

    def _slot(self, index: int) -> _Slot:
        if not 0 <= index < len(self._slots):
            raise IndexError(f"node index {index} out of range")
        return self._slots[index]

    @contextmanager
    def borrow(self, index: int) -> Iterator[Node]:
        """Shared access to a node; fails while the node is mutably borrowed."""
        slot = self._slot(index)
        if slot.writing:
            raise BorrowError(f"node {index} is already mutably borrowed")
        slot.readers += 1
        try:
            yield slot.node
        finally:
            slot.readers -= 1

    @contextmanager
    def borrow_mut(self, index: int) -> Iterator[Node]:
        """Exclusive access to a node; fails while any other borrow is live."""
        slot = self._slot(index)
        if slot.writing:
            raise BorrowError(f"node {index} is already mutably borrowed")
        if slot.readers:
            raise BorrowError(
                f"node {index} is borrowed {slot.readers} time(s); cannot mutate"
            )
        slot.writing = True
        try:
            yield slot.node
        finally:
            slot.writing = False

    def is_owned(self, index: int) -> bool:
        return self._slot(index).owner is not None

    def attach(self, indices: Iterable[int], owner: Optional[int] = None) -> List[int]:
        """Mark nodes as owned by ``owner`` (the root list when None).

        Rejects nodes that already have an owner and nodes that are ``owner``
        itself or one of its ancestors, so the nodes always form a forest.
        """
        indices = list(indices)
        seen = set()
        for index in indices:
            if index == owner:
                raise ValueError("a node cannot be its own child")
            if index in seen or self._slot(index).owner is not None:
                raise ValueError(f"node {index} already has an owner")
            seen.add(index)

        if owner is not None:
            ancestor = self._slot(owner).owner
            while ancestor is not None and ancestor != ROOT_OWNER:
                if ancestor in seen:
                    raise ValueError(
                        f"node {ancestor} is an ancestor of node {owner}; "
                        "attaching it would create a cycle"
                    )
                ancestor = self._slots[ancestor].owner

        for index in indices:
            self._slots[index].owner = ROOT_OWNER if owner is None else owner
        return indices

    def detach(self, indices: Iterable[int]) -> None:
        for index in indices:
            self._slot(index).owner = None


class NodeRef:
    """Handle to one node in an arena.

    Two handles are equal when they address the same slot of the same arena.
    Property reads take a shared borrow for the duration of the read and
    property writes take an exclusive borrow for the duration of the write.
    """

    __slots__ = ("_arena", "index")

    def __init__(self, arena: NodeArena, index: int) -> None:
        self._arena = arena
        self.index = index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NodeRef):
            return NotImplemented
        return self._arena is other._arena and self.index == other.index

    def __hash__(self) -> int:
        return hash((id(self._arena), self.index))

    def __repr__(self) -> str:
        with self.borrow() as node:
            if isinstance(node, TextNode):
                preview = node.content[:20]
                return f"NodeRef({self.index}, text={preview!r})"
            return f"NodeRef({self.index}, tag={node.name!r})"

    @property
    def arena(self) -> NodeArena:
        return self._arena

    def borrow(self):
        """Context manager yielding the node for reading."""
        return self._arena.borrow(self.index)

    def borrow_mut(self):
        """Context manager yielding the node for in-place mutation."""
        return self._arena.borrow_mut(self.index)

    # Variant checks

    @property
    def is_text(self) -> bool:
        with self.borrow() as node:
            return isinstance(node, TextNode)

    @property
    def is_tag(self) -> bool:
        with self.borrow() as node:
            return isinstance(node, TagNode)

    def _tag(self, node: Node) -> TagNode:
        if not isinstance(node, TagNode):
            raise TypeError(f"node {self.index} is a text node, not a tag")
        return node

    def _text(self, node: Node) -> TextNode:
        if not isinstance(node, TextNode):
            raise TypeError(f"node {self.index} is a tag, not a text node")
        return node

    # Text content

    @property
    def text(self) -> str:
        with self.borrow() as node:
            return self._text(node).content

    @text.setter
    def text(self, content: str) -> None:
        with self.borrow_mut() as node:
            self._text(node).content = content

    # Tag name and attributes

    @property
    def name(self) -> str:
        with self.borrow() as node:
            return self._tag(node).name

    @name.setter
    def name(self, value: str) -> None:
        if not value:
            raise ValueError("Tag name cannot be empty")
        with self.borrow_mut() as node:
            self._tag(node).name = value

    @property
    def attributes(self) -> Dict[str, str]:
        """A copy of the attribute mapping."""
        with self.borrow() as node:
            return dict(self._tag(node).attributes)

    @attributes.setter
    def attributes(self, value: Dict[str, str]) -> None:
        with self.borrow_mut() as node:
            self._tag(node).attributes = dict(value)

    def get_attribute(self, name: str, default: Optional[str] = None) -> Optional[str]:
        with self.borrow() as node:
            return self._tag(node).attributes.get(name, default)

    def has_attribute(self, name: str) -> bool:
        with self.borrow() as node:
            return name in self._tag(node).attributes

    def set_attribute(self, name: str, value: str = "") -> None:
        with self.borrow_mut() as node:
            self._tag(node).attributes[name] = value

    def remove_attribute(self, name: str) -> Optional[str]:
        """Remove an attribute, returning its value or None if absent."""
        with self.borrow_mut() as node:
            return self._tag(node).attributes.pop(name, None)

    # Children

    @property
    def children(self) -> List["NodeRef"]:
        with self.borrow() as node:
            indices = list(self._tag(node).children)
        return [NodeRef(self._arena, index) for index in indices]

    @property
    def child_count(self) -> int:
        with self.borrow() as node:
            return len(self._tag(node).children)

    def _indices(self, refs: Iterable["NodeRef"]) -> List[int]:
        indices = []
        for ref in refs:
            if not isinstance(ref, NodeRef):
                raise TypeError("Child must be a NodeRef")
            if ref._arena is not self._arena:
                raise ValueError("Child belongs to a different document")
            indices.append(ref.index)
        return indices

    def set_children(self, children: Iterable["NodeRef"]) -> None:
        """Replace the child list; the previous children are released."""
        new = self._indices(children)
        with self.borrow_mut() as node:
            tag = self._tag(node)
            old = tag.children
            self._arena.detach(old)
            try:
                self._arena.attach(new, owner=self.index)
            except ValueError:
                self._arena.attach(old, owner=self.index)
                raise
            tag.children = new

    def append_child(self, child: "NodeRef") -> None:
        (index,) = self._indices([child])
        with self.borrow_mut() as node:
            tag = self._tag(node)
            self._arena.attach([index], owner=self.index)
            tag.children.append(index)

    def clear_children(self) -> None:
        with self.borrow_mut() as node:
            tag = self._tag(node)
            self._arena.detach(tag.children)
            tag.children = []

    # Whole-subtree operations

    def depth_first(self, visit: Visitor) -> None:
        """Visit this node and its descendants in pre-order."""
        walk(self._arena, [self.index], visit)

    def render(self) -> str:
        return render_node(self._arena, self.index)

    def to_dict(self) -> Dict[str, Any]:
        return node_to_dict(self._arena, self.index)


def walk(arena: NodeArena, indices: Iterable[int], visit: Visitor) -> None:
    """Pre-order traversal calling ``visit`` with no borrow held.

    A node's children are read after ``visit`` returns, so a child list the
    visitor replaced is the one descended into. Exceptions from ``visit``
    propagate unchanged and end the walk.
    """
    stack: List[Iterator[int]] = [iter(list(indices))]
    while stack:
        index = next(stack[-1], None)
        if index is None:
            stack.pop()
            continue
        visit(NodeRef(arena, index))
        with arena.borrow(index) as node:
            children = list(node.children) if isinstance(node, TagNode) else []
        if children:
            stack.append(iter(children))


def render_attributes(attributes: Dict[str, str]) -> str:
    """Render attributes in insertion order, booleans as bare names."""
    parts = []
    for key, value in attributes.items():
        parts.append(f' {key}="{value}"' if value else f" {key}")
    return "".join(parts)


def render_node(arena: NodeArena, index: int) -> str:
    """Render one subtree back to markup.

    A tag without children renders self-closing (declarations such as
    ``!DOCTYPE`` without the slash); children are separated by one space.
    """
    out: List[str] = []
    stack: List[Union[int, str]] = [index]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            out.append(item)
            continue
        with arena.borrow(item) as node:
            if isinstance(node, TextNode):
                out.append(node.content)
                continue
            attributes = render_attributes(node.attributes)
            if not node.children:
                closer = ">" if node.is_declaration else "/>"
                out.append(f"<{node.name}{attributes}{closer}")
                continue
            out.append(f"<{node.name}{attributes}>")
            stack.append(f"</{node.name}>")
            children = list(node.children)
        for position in range(len(children) - 1, -1, -1):
            stack.append(children[position])
            if position:
                stack.append(" ")
    return "".join(out)


def node_to_dict(arena: NodeArena, index: int) -> Dict[str, Any]:
    with arena.borrow(index) as node:
        if isinstance(node, TextNode):
            return {"text": node.content}
        name = node.name
        attributes = dict(node.attributes)
        children = list(node.children)
    return {
        "tag": name,
        "attributes": attributes,
        "children": [node_to_dict(arena, child) for child in children],
    }
