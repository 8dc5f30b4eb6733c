"""Tree building from a merged token stream.

The builder is forgiving about nesting. An open tag collects the nodes that
follow it until a close tag arrives:

* a close tag with the same name ends the element and the collected nodes
  become its children;
* a close tag with a different name, or the end of input, means the open
  tag had no content after all: it becomes an empty element and the
  collected nodes are promoted to follow it as siblings. A mismatched close
  tag is left for the enclosing element to examine.

A close tag that reaches the top level with nothing left to close is the
one unrecoverable condition and raises ``ParseError``.

The recursion in that description is run on an explicit stack of open
frames, so arbitrarily deep markup does not hit the interpreter's
recursion limit.
"""

import time
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional

from html_inliner.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    TreeConfig,
    get_logger,
)
from html_inliner.shared.errors import ParseError
from html_inliner.tokenization import Token, TokenType

from .document import HTMLDocument
from .nodes import NodeArena, TagNode, TextNode

MS_PER_SECOND = 1000


@dataclass
class _OpenFrame:
    """An open tag still waiting for its close tag."""

    token: Token
    nodes: List[int] = field(default_factory=list)


class _Lookahead:
    """One-token lookahead over a token iterator."""

    _EMPTY = object()

    def __init__(self, tokens: Iterable[Token]) -> None:
        self._tokens: Iterator[Token] = iter(tokens)
        self._peeked: object = self._EMPTY
        self.consumed = 0

    def peek(self) -> Optional[Token]:
        if self._peeked is self._EMPTY:
            self._peeked = next(self._tokens, None)
        return self._peeked  # type: ignore[return-value]

    def next(self) -> Optional[Token]:
        token = self.peek()
        self._peeked = self._EMPTY
        if token is not None:
            self.consumed += 1
        return token


class HTMLTreeBuilder:
    """Builds an ``HTMLDocument`` from tokens, promoting unclosed tags.

    The builder is reusable; each ``build`` call produces a new document.
    """

    def __init__(
        self,
        config: Optional[TreeConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or TreeConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "tree_builder")

    def build(self, tokens: Iterable[Token]) -> HTMLDocument:
        """Build a document tree from a token stream.

        Args:
            tokens: Tokens, normally already passed through ``merge_text``

        Returns:
            The parsed document with diagnostics and metrics attached

        Raises:
            ParseError: A close tag matched no open tag at all
        """
        start_time = time.time()
        document = HTMLDocument(correlation_id=self.correlation_id)
        arena = document.arena
        source = _Lookahead(tokens)
        roots: List[int] = []
        stack: List[_OpenFrame] = []

        def emit(indices: List[int]) -> None:
            (stack[-1].nodes if stack else roots).extend(indices)

        while True:
            if stack:
                token = source.peek()
                if token is None:
                    emit(self._promote(stack.pop(), arena, document, "end_of_input"))
                    continue
                if token.type is TokenType.CLOSE_TAG:
                    frame = stack.pop()
                    if token.value == frame.token.value:
                        source.next()
                        emit([self._element(frame, arena)])
                    else:
                        emit(self._promote(frame, arena, document, "mismatched_close",
                                           closed_by=token))
                    continue
                source.next()
            else:
                token = source.next()
                if token is None:
                    break

            if token.type is TokenType.TEXT:
                content = token.value.strip()
                if content:
                    emit([arena.add(TextNode(content))])
            elif token.type is TokenType.CLOSE_TAG:
                self.logger.debug(
                    "Close tag with no open tag",
                    extra={"tag": token.value, "position": token.position.to_dict()},
                )
                raise ParseError(token.value, token.position)
            elif token.is_self_closing:
                emit([arena.add(TagNode(token.value, dict(token.attributes)))])
            else:
                stack.append(_OpenFrame(token))

        for index in roots:
            document.append_root(arena.ref(index))

        metrics = document.performance
        metrics.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
        metrics.tokens_processed = source.consumed
        metrics.nodes_created = len(arena)

        self.logger.debug(
            "Tree building completed",
            extra={
                "roots": len(roots),
                "nodes": len(arena),
                "promotions": metrics.sibling_promotions,
            },
        )
        return document

    def _element(self, frame: _OpenFrame, arena: NodeArena) -> int:
        token = frame.token
        index = arena.add(TagNode(token.value, dict(token.attributes), frame.nodes))
        arena.attach(frame.nodes, owner=index)
        return index

    def _promote(
        self,
        frame: _OpenFrame,
        arena: NodeArena,
        document: HTMLDocument,
        reason: str,
        closed_by: Optional[Token] = None,
    ) -> List[int]:
        """Turn an unclosed frame into an empty tag followed by its nodes."""
        token = frame.token
        index = arena.add(TagNode(token.value, dict(token.attributes)))
        if frame.nodes:
            document.performance.sibling_promotions += 1
            self._record_promotion(document, token, len(frame.nodes), reason, closed_by)
        return [index] + frame.nodes

    def _record_promotion(
        self,
        document: HTMLDocument,
        token: Token,
        promoted: int,
        reason: str,
        closed_by: Optional[Token],
    ) -> None:
        details = {"tag": token.value, "promoted_nodes": promoted, "reason": reason}
        if closed_by is not None:
            details["closed_by"] = closed_by.value

        self.logger.debug(f"Promoted children of unclosed <{token.value}>", extra=details)

        if not self.config.record_diagnostics:
            return
        limit = self.config.max_diagnostics
        if limit is not None and len(document.diagnostics) >= limit:
            return
        document.diagnostics.append(
            DiagnosticEntry(
                severity=DiagnosticSeverity.INFO,
                message=(
                    f"<{token.value}> has no matching close tag; "
                    f"{promoted} node(s) promoted to siblings"
                ),
                component="tree_builder",
                position=token.position.to_dict(),
                details=details,
                correlation_id=self.correlation_id,
            )
        )


def build_tree(
    tokens: Iterable[Token],
    config: Optional[TreeConfig] = None,
    correlation_id: Optional[str] = None,
) -> HTMLDocument:
    """Build a document from tokens; raises ``ParseError`` on an orphan close tag."""
    return HTMLTreeBuilder(config, correlation_id).build(tokens)
