"""Tests for diagnostic entries and performance metrics."""

import pytest

from html_inliner.shared.result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)


class TestDiagnosticEntry:
    """Test DiagnosticEntry functionality."""

    def test_diagnostic_entry_creation(self):
        entry = DiagnosticEntry(
            severity=DiagnosticSeverity.INFO,
            message="promoted",
            component="tree_builder",
            position={"line": 1, "column": 2, "offset": 1},
            details={"tag": "p"},
        )
        assert entry.timestamp > 0
        assert entry.to_dict() == {
            "severity": "INFO",
            "message": "promoted",
            "component": "tree_builder",
            "position": {"line": 1, "column": 2, "offset": 1},
            "details": {"tag": "p"},
        }

    def test_diagnostic_entry_validation(self):
        with pytest.raises(ValueError, match="Diagnostic message cannot be empty"):
            DiagnosticEntry(DiagnosticSeverity.INFO, "", "tree_builder")
        with pytest.raises(ValueError, match="Diagnostic component cannot be empty"):
            DiagnosticEntry(DiagnosticSeverity.INFO, "message", "")


class TestPerformanceMetrics:
    """Test PerformanceMetrics rates."""

    def test_rates(self):
        metrics = PerformanceMetrics(
            processing_time_ms=500.0,
            characters_processed=1000,
            tokens_processed=50,
            nodes_created=40,
            sibling_promotions=4,
        )
        assert metrics.characters_per_second == 2000.0
        assert metrics.tokens_per_second == 100.0
        assert metrics.promotion_rate == 0.1
        assert metrics.to_dict()["sibling_promotions"] == 4

    def test_zero_values(self):
        metrics = PerformanceMetrics()
        assert metrics.characters_per_second == 0.0
        assert metrics.tokens_per_second == 0.0
        assert metrics.promotion_rate == 0.0
