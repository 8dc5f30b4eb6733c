"""Resource inlining on top of the parsed tree."""

from .inliner import (
    ResourceInliner,
    data_uri,
    inline,
    inline_document,
    is_external,
)

__all__ = [
    "ResourceInliner",
    "data_uri",
    "inline",
    "inline_document",
    "is_external",
]
