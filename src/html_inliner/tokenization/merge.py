"""Coalescing of adjacent text tokens.

The tokenizer flushes its buffer as text whenever a ``<`` interrupts an
unfinished span, so one run of script or prose can arrive as several text
fragments. Merging them here keeps the tree builder free of adjacent-text
special cases.
"""

from typing import Iterable, Iterator, List, Optional

from .tokenizer import Token, TokenType


def _join(fragments: List[Token]) -> Token:
    if len(fragments) == 1:
        return fragments[0]
    first = fragments[0]
    return Token(
        TokenType.TEXT,
        "".join(fragment.value for fragment in fragments),
        "".join(fragment.literal for fragment in fragments),
        {},
        first.position,
    )


def merge_text(tokens: Iterable[Token]) -> Iterator[Token]:
    """Yield ``tokens`` with every run of consecutive text tokens joined.

    The merged token takes the position of the first fragment. Non-text
    tokens pass through unchanged and in order.
    """
    pending: List[Token] = []
    for token in tokens:
        if token.type is TokenType.TEXT:
            pending.append(token)
            continue
        if pending:
            yield _join(pending)
            pending = []
        yield token
    if pending:
        yield _join(pending)


class TextMerger:
    """Iterator wrapper around :func:`merge_text` that counts merges."""

    def __init__(self, tokens: Iterable[Token]) -> None:
        self._tokens = tokens
        self.fragments_merged = 0
        self._iterator: Optional[Iterator[Token]] = None

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        if self._iterator is None:
            self._iterator = merge_text(self._count(self._tokens))
        return next(self._iterator)

    def _count(self, tokens: Iterable[Token]) -> Iterator[Token]:
        previous_text = False
        for token in tokens:
            is_text = token.type is TokenType.TEXT
            if is_text and previous_text:
                self.fragments_merged += 1
            previous_text = is_text
            yield token
