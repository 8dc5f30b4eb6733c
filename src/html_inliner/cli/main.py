"""Main CLI entry point for the html-inliner command-line tool.

Reads an HTML document, inlines every linked resource relative to a base
directory and writes the self-contained result to stdout or a file.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from html_inliner import __version__
from html_inliner.inline import inline
from html_inliner.shared import (
    ConfigError,
    InlinerConfig,
    configure_logging,
    get_logger,
)
from html_inliner.shared.errors import InlineError, ParseError

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130  # Standard exit code for SIGINT


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="html-inliner",
        description="Take html resources and bundle them into a single html file.",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "input",
        type=Path,
        help="Path to html file",
    )
    parser.add_argument(
        "base",
        nargs="?",
        type=Path,
        default=Path("."),
        help="Directory which links will be resolved against (default: .)",
    )
    parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)",
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="JSON configuration file",
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Accept tag names with digits or dashes, such as h1 or data-id",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )
    verbosity.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only report errors",
    )
    return parser


def load_config(args: argparse.Namespace) -> InlinerConfig:
    """Build the effective configuration from the config file and flags."""
    config = InlinerConfig()
    if args.config:
        config = InlinerConfig.from_json(args.config.read_text(encoding="utf-8"))
    if args.lenient:
        config = config.override(tokenizer__strict_names=False)
    if args.verbose:
        config = config.override(global___logging_level="DEBUG")
    elif args.quiet:
        config = config.override(global___logging_level="ERROR")
    return config


def error(stage: str, message: object) -> int:
    print(f"error: {stage}: {message}", file=sys.stderr)
    return EXIT_FAILURE


def run(args: argparse.Namespace) -> int:
    try:
        config = load_config(args)
    except (OSError, ConfigError) as e:
        return error("loading config", e)

    configure_logging(config.global_.logging_level)
    logger = get_logger(__name__, None, "cli")

    try:
        markup = args.input.read_text(encoding=config.inline.encoding)
    except (OSError, UnicodeDecodeError) as e:
        return error("opening input file", e)

    logger.debug(
        "Inlining document",
        extra={"input": str(args.input), "base": str(args.base)},
    )
    try:
        inlined = inline(markup, args.base, config)
    except (ParseError, InlineError) as e:
        return error("inlining html", e)

    try:
        if args.output:
            args.output.write_text(inlined, encoding=config.inline.encoding)
        else:
            sys.stdout.write(inlined)
            sys.stdout.flush()
    except OSError as e:
        return error("writing output", e)

    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        return run(args)
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
