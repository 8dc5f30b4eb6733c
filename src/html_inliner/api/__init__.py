"""Public parsing API."""

from .parser import ForgivingHTMLParser, InputType, parse, parse_file, parse_string

__all__ = [
    "ForgivingHTMLParser",
    "InputType",
    "parse",
    "parse_file",
    "parse_string",
]
