"""Inlining of linked resources into a parsed document.

``ResourceInliner`` is a depth-first visitor. For every tag carrying an
``href`` or ``src`` link it loads the referenced file relative to a base
directory and either embeds the text as the tag's only child (HTML, JS and
CSS; stylesheets also become ``<style>``) or rewrites the link as a base64
data URI. A file that cannot be read aborts the whole run with
``InlineError``.
"""

import base64
import mimetypes
from pathlib import Path
from typing import Optional, Tuple, Union
from urllib.parse import urlsplit

from html_inliner.api import ForgivingHTMLParser
from html_inliner.shared import InlineConfig, InlinerConfig, get_logger
from html_inliner.shared.errors import InlineError
from html_inliner.tree import HTMLDocument, NodeRef, TagNode, TextNode

PathType = Union[str, Path]


def data_uri(payload: bytes, media_type: str) -> str:
    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:{media_type};base64,{encoded}"


def is_external(link: str) -> bool:
    """True for links that do not name a local file (URLs, data URIs, anchors)."""
    if link.startswith("#") or link.startswith("//"):
        return True
    scheme = urlsplit(link).scheme
    # A single letter is a Windows drive, not a scheme
    return len(scheme) > 1


class ResourceInliner:
    """Depth-first visitor that inlines the resources a document links to.

    Attributes:
        inlined_text: Number of tags that received embedded text content
        inlined_binary: Number of links rewritten as data URIs
        skipped: Number of external links left untouched
    """

    def __init__(
        self,
        base: PathType,
        config: Optional[InlineConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.base = Path(base)
        self.config = config or InlineConfig()
        self.logger = get_logger(__name__, correlation_id, "inliner")
        self.inlined_text = 0
        self.inlined_binary = 0
        self.skipped = 0

    def __call__(self, node: NodeRef) -> None:
        with node.borrow() as current:
            if not isinstance(current, TagNode):
                return
            found = self._find_link(current)
        if found is None:
            return

        attribute, raw_link = found
        link = raw_link.strip("/")
        if not link or (self.config.skip_external and is_external(raw_link)):
            self.skipped += 1
            self.logger.debug(
                "Leaving link untouched", extra={"link": raw_link, "attribute": attribute}
            )
            return

        path = self.base / link
        suffix = Path(link).suffix.lower()
        if suffix in self.config.text_extensions:
            self._embed_text(node, path, suffix)
        else:
            self._embed_data_uri(node, attribute, path, link)

    def _find_link(self, tag: TagNode) -> Optional[Tuple[str, str]]:
        for attribute in self.config.link_attributes:
            if attribute in tag.attributes:
                return attribute, tag.attributes[attribute]
        return None

    def _embed_text(self, node: NodeRef, path: Path, suffix: str) -> None:
        try:
            content = path.read_text(encoding=self.config.encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise InlineError(str(path), str(e)) from e

        text = node.arena.ref(node.arena.add(TextNode(content)))
        with node.borrow_mut() as tag:
            if suffix in self.config.stylesheet_extensions:
                tag.name = "style"
                tag.attributes.pop("rel", None)
            for attribute in self.config.link_attributes:
                tag.attributes.pop(attribute, None)
        node.clear_children()
        node.append_child(text)

        self.inlined_text += 1
        self.logger.debug(
            "Embedded text resource",
            extra={"path": str(path), "characters": len(content)},
        )

    def _embed_data_uri(self, node: NodeRef, attribute: str, path: Path, link: str) -> None:
        try:
            payload = path.read_bytes()
        except OSError as e:
            raise InlineError(str(path), str(e)) from e

        media_type = mimetypes.guess_type(link)[0] or self.config.fallback_media_type
        node.set_attribute(attribute, data_uri(payload, media_type))

        self.inlined_binary += 1
        self.logger.debug(
            "Embedded binary resource",
            extra={"path": str(path), "media_type": media_type, "bytes": len(payload)},
        )


def inline_document(
    document: HTMLDocument,
    base: PathType,
    config: Optional[InlineConfig] = None,
    correlation_id: Optional[str] = None,
) -> ResourceInliner:
    """Inline every linked resource of ``document`` in place.

    Returns:
        The inliner, whose counters describe what was embedded

    Raises:
        InlineError: A referenced file could not be read
    """
    inliner = ResourceInliner(base, config, correlation_id)
    document.depth_first(inliner)
    return inliner


def inline(
    markup: str,
    base: PathType,
    config: Optional[InlinerConfig] = None,
    correlation_id: Optional[str] = None,
) -> str:
    """Parse ``markup``, inline its resources relative to ``base`` and render it.

    Raises:
        ParseError: The markup has a close tag that matches nothing
        InlineError: A referenced file could not be read
    """
    config = config or InlinerConfig()
    parser = ForgivingHTMLParser(config, correlation_id)
    document = parser.parse_string(markup)
    inliner = inline_document(document, base, config.inline, parser.correlation_id)
    parser.logger.info(
        "Inlining completed",
        extra={
            "inlined_text": inliner.inlined_text,
            "inlined_binary": inliner.inlined_binary,
            "skipped": inliner.skipped,
        },
    )
    return document.render()
