"""Command-line interface for the inliner."""

from .main import main

__all__ = ["main"]
