"""Parser API with progressive disclosure.

Level 1 is the module-level ``parse``, ``parse_string`` and ``parse_file``
functions; level 2 is ``ForgivingHTMLParser``, a configured, reusable parser
that keeps usage statistics. All of them raise ``ParseError`` for a close tag
that matches nothing; every other malformation is recovered.
"""

import time
import uuid
from pathlib import Path
from typing import Any, Dict, Optional, TextIO, Union

from html_inliner.shared import InlinerConfig, get_logger
from html_inliner.shared.errors import ParseError
from html_inliner.tokenization import HTMLTokenizer, TextMerger
from html_inliner.tree import HTMLDocument, HTMLTreeBuilder

InputType = Union[str, Path, TextIO]

MS_PER_SECOND = 1000


def parse(
    input_data: InputType,
    config: Optional[InlinerConfig] = None,
    correlation_id: Optional[str] = None,
) -> HTMLDocument:
    """Parse markup from a string, a path or a text file object.

    Args:
        input_data: Markup as ``str``, a ``Path`` to read, or an object with ``read()``
        config: Optional configuration; defaults to ``InlinerConfig()``
        correlation_id: Optional correlation ID for request tracking

    Returns:
        HTMLDocument with the parsed roots

    Raises:
        ParseError: A close tag matched no open tag
        TypeError: The input type is not supported

    Examples:
        >>> doc = parse('<p>hello</p>')
        >>> doc.root.name
        'p'
    """
    return ForgivingHTMLParser(config, correlation_id).parse(input_data)


def parse_string(
    markup: str,
    config: Optional[InlinerConfig] = None,
    correlation_id: Optional[str] = None,
) -> HTMLDocument:
    """Parse markup held in a string.

    Examples:
        >>> print(parse_string('<outer><inner>text</outer>').render(), end="")
        <outer><inner/> text</outer>
    """
    return ForgivingHTMLParser(config, correlation_id).parse_string(markup)


def parse_file(
    file_path: Union[str, Path],
    encoding: Optional[str] = None,
    config: Optional[InlinerConfig] = None,
    correlation_id: Optional[str] = None,
) -> HTMLDocument:
    """Read a file and parse it.

    Args:
        file_path: Path to the document
        encoding: Text encoding; defaults to ``config.inline.encoding``
        config: Optional configuration
        correlation_id: Optional correlation ID for request tracking

    Raises:
        OSError: The file cannot be read
        ParseError: A close tag matched no open tag
    """
    return ForgivingHTMLParser(config, correlation_id).parse_file(file_path, encoding)


class ForgivingHTMLParser:
    """Configured parser for repeated use.

    Examples:
        >>> parser = ForgivingHTMLParser(InlinerConfig.lenient())
        >>> parser.parse('<h1>Title</h1>').root.name
        'h1'
        >>> parser.statistics["total_parses"]
        1
    """

    def __init__(
        self,
        config: Optional[InlinerConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or InlinerConfig()
        if correlation_id is None and self.config.global_.enable_correlation_tracking:
            correlation_id = uuid.uuid4().hex[:12]
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "parser")
        self._tree_builder = HTMLTreeBuilder(self.config.tree, correlation_id)
        self.reset_statistics()

    def parse(self, input_data: InputType) -> HTMLDocument:
        if isinstance(input_data, str):
            return self.parse_string(input_data)
        if isinstance(input_data, Path):
            return self.parse_file(input_data)
        if hasattr(input_data, "read"):
            content = input_data.read()
            if not isinstance(content, str):
                raise TypeError("file-like input must be opened in text mode")
            return self.parse_string(content)
        raise TypeError(f"Unsupported input type: {type(input_data).__name__}")

    def parse_file(
        self, file_path: Union[str, Path], encoding: Optional[str] = None
    ) -> HTMLDocument:
        path = Path(file_path)
        self.logger.debug("Reading document", extra={"file_path": str(path)})
        content = path.read_text(encoding=encoding or self.config.inline.encoding)
        return self.parse_string(content)

    def parse_string(self, markup: str) -> HTMLDocument:
        start_time = time.time()
        tokenizer = HTMLTokenizer(markup, self.config.tokenizer, self.correlation_id)
        merger = TextMerger(tokenizer) if self.config.tokenizer.merge_text else None
        self._parse_count += 1

        try:
            document = self._tree_builder.build(merger if merger is not None else tokenizer)
        except ParseError as e:
            self.logger.warning(
                "Parse failed",
                extra={"error": str(e), "characters": tokenizer.characters_processed},
            )
            raise

        processing_time = (time.time() - start_time) * MS_PER_SECOND
        document.performance.processing_time_ms = processing_time
        document.performance.characters_processed = tokenizer.characters_processed

        self._successful_parses += 1
        self._total_processing_time += processing_time
        self._total_promotions += document.performance.sibling_promotions
        if merger is not None:
            self._fragments_merged += merger.fragments_merged

        self.logger.info(
            "Parse completed",
            extra={
                "roots": len(document),
                "nodes": document.performance.nodes_created,
                "promotions": document.performance.sibling_promotions,
                "processing_time_ms": processing_time,
            },
        )
        return document

    @property
    def statistics(self) -> Dict[str, Any]:
        return {
            "total_parses": self._parse_count,
            "successful_parses": self._successful_parses,
            "failed_parses": self._parse_count - self._successful_parses,
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._successful_parses
                if self._successful_parses > 0 else 0.0
            ),
            "sibling_promotions": self._total_promotions,
            "text_fragments_merged": self._fragments_merged,
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0
        self._total_promotions = 0
        self._fragments_merged = 0
