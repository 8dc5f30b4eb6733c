"""Exception hierarchy for the inliner.

Configuration errors live in ``shared.config`` with their own base class;
everything raised while parsing, mutating or inlining derives from
``InlinerError``.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from html_inliner.tokenization.tokenizer import TokenPosition


class InlinerError(Exception):
    """Base class for parse, tree and inlining failures."""


class ParseError(InlinerError):
    """A close tag was found with no open tag left to close.

    This is the only condition that makes a parse fail; every other
    mismatch is recovered by sibling promotion.
    """

    def __init__(
        self, tag_name: str, position: Optional["TokenPosition"] = None
    ) -> None:
        self.tag_name = tag_name
        self.position = position
        message = f"unexpected close tag: </{tag_name}>"
        if position is not None:
            message += f" at line {position.line}, column {position.column}"
        super().__init__(message)


class BorrowError(InlinerError):
    """A node was accessed in a way that conflicts with a live borrow."""


class InlineError(InlinerError):
    """A referenced resource could not be loaded."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")
