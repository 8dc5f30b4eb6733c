"""Shared utilities for the inliner.

This module provides configuration objects, diagnostic types and logging
helpers used across the tokenization, tree and inlining layers.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    GlobalConfig,
    InlineConfig,
    InlinerConfig,
    TokenizerConfig,
    TreeConfig,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "GlobalConfig",
    "InlineConfig",
    "InlinerConfig",
    "TokenizerConfig",
    "TreeConfig",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
]
