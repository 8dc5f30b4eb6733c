"""Forgiving HTML parser and resource inliner.

Parses loosely formed HTML into a mutable, arena-backed tree that can be
rewritten in place during a single depth-first traversal, and uses that to
bundle a page and its linked resources into one self-contained document.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_file(), inline()
- Level 2: Configured parser - ForgivingHTMLParser class
- Level 3: Building blocks - tokenize(), merge_text(), build_tree()
"""

__version__ = "0.1.0"
__author__ = "html-inliner contributors"

from .api import ForgivingHTMLParser, parse, parse_file, parse_string
from .inline import ResourceInliner, inline, inline_document
from .shared.config import InlinerConfig
from .shared.errors import BorrowError, InlineError, InlinerError, ParseError
from .tokenization import Token, TokenType, merge_text, tokenize
from .tree import HTMLDocument, NodeRef, build_tree

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "parse",
    "parse_string",
    "parse_file",
    "inline",

    # Level 2: Configured parser and visitor
    "ForgivingHTMLParser",
    "ResourceInliner",
    "inline_document",

    # Level 3: Building blocks
    "tokenize",
    "merge_text",
    "build_tree",
    "Token",
    "TokenType",
    "HTMLDocument",
    "NodeRef",

    # Configuration and errors
    "InlinerConfig",
    "InlinerError",
    "ParseError",
    "BorrowError",
    "InlineError",
]
