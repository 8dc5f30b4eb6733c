"""Diagnostic and metrics types shared by the parsing layers.

Diagnostics describe recoveries the tree builder applied (a parse never
fails on a recoverable mismatch, but the caller may still want to know it
happened). Metrics summarize one parse run.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()       # Recoveries such as sibling promotion
    WARNING = auto()
    ERROR = auto()


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
            "position": self.position,
            "details": self.details,
        }


@dataclass
class PerformanceMetrics:
    """Counters and timing for one tokenize + build run."""

    processing_time_ms: float = 0.0
    characters_processed: int = 0
    tokens_processed: int = 0
    nodes_created: int = 0
    sibling_promotions: int = 0

    @property
    def characters_per_second(self) -> float:
        """Calculate characters processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.characters_processed * 1000.0) / self.processing_time_ms

    @property
    def tokens_per_second(self) -> float:
        """Calculate tokens processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.tokens_processed * 1000.0) / self.processing_time_ms

    @property
    def promotion_rate(self) -> float:
        """Sibling promotion events per created node."""
        if self.nodes_created == 0:
            return 0.0
        return self.sibling_promotions / self.nodes_created

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processing_time_ms": self.processing_time_ms,
            "characters_processed": self.characters_processed,
            "tokens_processed": self.tokens_processed,
            "nodes_created": self.nodes_created,
            "sibling_promotions": self.sibling_promotions,
        }
