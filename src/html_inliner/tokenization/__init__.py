"""Tokenization layer.

Key Components:
    HTMLTokenizer: Single-pass tokenizer over a character iterable
    Token: Classified lexical unit carrying its source literal
    TokenType: OPEN_TAG, CLOSE_TAG or TEXT
    TokenPosition: Line, column and offset of a token's literal
    merge_text: Lazy adapter joining consecutive text tokens
"""

from .merge import TextMerger, merge_text
from .tokenizer import (
    HTMLTokenizer,
    Token,
    TokenPosition,
    TokenType,
    parse_attribute,
    split_words,
    tokenize,
)

__all__ = [
    "HTMLTokenizer",
    "TextMerger",
    "Token",
    "TokenPosition",
    "TokenType",
    "merge_text",
    "parse_attribute",
    "split_words",
    "tokenize",
]
