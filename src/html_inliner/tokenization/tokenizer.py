"""Forgiving HTML tokenizer.

Characters are buffered up to each ``>`` and the buffered span is then
classified as an open tag, a close tag or plain text. Classification is a
heuristic: a span is only a tag when every word in it looks like a tag name
or a ``key="value"`` pair, which lets raw script text containing ``<`` and
``>`` fall through as text.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from html_inliner.shared import TokenizerConfig, get_logger

# Words are whitespace separated, except inside a double-quoted value
WORD_PATTERN = re.compile(r'(?:[^\s"]|"[^"]*"|")+')
IDENTIFIER_PATTERN = re.compile(r"[A-Za-z][A-Za-z0-9_:.\-]*\Z")
DECLARATION_MARKER = "!"
SELF_CLOSING_SUFFIX = "/>"


class TokenType(Enum):
    """Lexical token kinds."""

    OPEN_TAG = auto()
    CLOSE_TAG = auto()
    TEXT = auto()


@dataclass(frozen=True)
class TokenPosition:
    """Position of the first character of a token's literal."""

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "column": self.column, "offset": self.offset}


START_POSITION = TokenPosition(1, 1, 0)


@dataclass
class Token:
    """A classified lexical unit with its source literal.

    ``value`` is the tag name for OPEN_TAG and CLOSE_TAG tokens and the raw
    content for TEXT tokens.
    """

    type: TokenType
    value: str
    literal: str
    attributes: Dict[str, str] = field(default_factory=dict)
    position: TokenPosition = START_POSITION

    @property
    def name(self) -> str:
        if self.type is TokenType.TEXT:
            raise AttributeError("text tokens have no name")
        return self.value

    @property
    def content(self) -> str:
        if self.type is not TokenType.TEXT:
            raise AttributeError(f"{self.type.name.lower()} tokens have no content")
        return self.value

    @property
    def is_text(self) -> bool:
        return self.type is TokenType.TEXT

    @property
    def is_self_closing(self) -> bool:
        return self.type is TokenType.OPEN_TAG and self.literal.endswith(
            SELF_CLOSING_SUFFIX
        )

    @classmethod
    def open_tag(
        cls,
        name: str,
        attributes: Optional[Dict[str, str]] = None,
        literal: Optional[str] = None,
        position: TokenPosition = START_POSITION,
    ) -> "Token":
        return cls(
            TokenType.OPEN_TAG,
            name,
            literal if literal is not None else f"<{name}>",
            dict(attributes or {}),
            position,
        )

    @classmethod
    def close_tag(
        cls, name: str, position: TokenPosition = START_POSITION
    ) -> "Token":
        return cls(TokenType.CLOSE_TAG, name, f"</{name}>", {}, position)

    @classmethod
    def text(cls, content: str, position: TokenPosition = START_POSITION) -> "Token":
        return cls(TokenType.TEXT, content, content, {}, position)


def split_words(body: str) -> List[str]:
    """Split a tag body on whitespace, keeping quoted values in one word."""
    return WORD_PATTERN.findall(body)


def parse_attribute(word: str) -> Tuple[str, str]:
    """Split ``key="value"`` once on ``=``; a bare word is a boolean attribute."""
    key, sep, value = word.partition("=")
    if not sep:
        return key, ""
    return key, value.strip('"')


class HTMLTokenizer:
    """Single-pass tokenizer over a character iterable.

    Iterating the tokenizer consumes the source; a second iteration yields
    nothing new. ``characters_processed`` and ``tokens_emitted`` are updated
    as tokens are produced.
    """

    def __init__(
        self,
        source: Iterable[str],
        config: Optional[TokenizerConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or TokenizerConfig()
        self.logger = get_logger(__name__, correlation_id, "tokenizer")
        self._source = iter(source)
        self.characters_processed = 0
        self.tokens_emitted = 0

    def __iter__(self) -> Iterator[Token]:
        for token in self._scan():
            self.tokens_emitted += 1
            yield token

    def _scan(self) -> Iterator[Token]:
        buffer: List[str] = []
        start = START_POSITION
        line, column, offset = 1, 1, 0

        for char in self._source:
            if char == "<" and buffer:
                # An unterminated span cannot be a tag
                yield Token.text("".join(buffer), start)
                buffer = []
            if not buffer:
                start = TokenPosition(line, column, offset)
            buffer.append(char)

            self.characters_processed += 1
            offset += 1
            if char == "\n":
                line += 1
                column = 1
            else:
                column += 1

            if char == ">":
                yield self.classify("".join(buffer), start)
                buffer = []

        if buffer:
            yield Token.text("".join(buffer), start)

    def classify(self, literal: str, position: TokenPosition = START_POSITION) -> Token:
        """Classify a literal span ending in ``>``."""
        if literal.startswith("</"):
            name = literal[2:]
            if name.endswith(">"):
                name = name[:-1]
            return Token(TokenType.CLOSE_TAG, name.strip(), literal, {}, position)

        if literal.startswith("<"):
            token = self._classify_open_tag(literal, position)
            if token is not None:
                return token

        if self.logger.is_enabled_for(logging.DEBUG):
            self.logger.debug(
                "Span classified as text",
                extra={"literal": literal[:40], "position": position.to_dict()},
            )
        return Token.text(literal, position)

    def _classify_open_tag(
        self, literal: str, position: TokenPosition
    ) -> Optional[Token]:
        body = literal[1:]
        if body.endswith(">"):
            body = body[:-1]
        if body.endswith("/"):
            body = body[:-1]

        prefix = ""
        if body.startswith(DECLARATION_MARKER):
            prefix = DECLARATION_MARKER
            body = body[1:]

        words = split_words(body)
        if not words or not self._is_name(words[0]):
            return None
        if not all(self._is_name(word) or '="' in word for word in words[1:]):
            return None

        attributes: Dict[str, str] = {}
        for word in words[1:]:
            key, value = parse_attribute(word)
            attributes[key] = value

        return Token(TokenType.OPEN_TAG, prefix + words[0], literal, attributes, position)

    def _is_name(self, word: str) -> bool:
        if word.isalpha():
            return True
        if self.config.strict_names:
            return False
        return IDENTIFIER_PATTERN.match(word) is not None


def tokenize(
    chars: Iterable[str],
    config: Optional[TokenizerConfig] = None,
    correlation_id: Optional[str] = None,
) -> Iterator[Token]:
    """Lazily tokenize a character sequence.

    Args:
        chars: Any iterable of single characters, typically a string
        config: Tokenizer settings; defaults to strict names
        correlation_id: Optional correlation ID for logging

    Returns:
        A single-use iterator of tokens
    """
    return iter(HTMLTokenizer(chars, config, correlation_id))
