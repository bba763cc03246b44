"""Tests for change-set analysis."""

import pytest

from depindex.indexer.change_analyzer import ChangeAnalyzer, FileChange, calculate_risk_level
from depindex.indexer.index_builder import IndexBuilder
from depindex.indexer.index_loader import IndexQueryEngine
from depindex.indexer.models import BreakingChange, ChangeType, Location, Severity

from conftest import EVENT_PUBLISHER, MOVEMENT_SERVICE_IMPL

PUBLISHER_PATH = "src/main/java/com/acme/events/EventPublisher.java"
IMPL_PATH = "src/main/java/com/acme/movements/MovementServiceImpl.java"
RECON_PATH = "src/main/java/com/acme/reconciliation/ReconciliationService.java"

PUBLISHER_WITHOUT_METHOD = """package com.acme.events;

public interface EventPublisher {
}
"""


def change_of(severity):
    return BreakingChange(
        type=ChangeType.METHOD_REMOVED,
        severity=severity,
        description="x",
        location=Location(file="A.java", line=1),
    )


@pytest.fixture
def engine(java_repo, storage):
    IndexBuilder(storage).build_index(str(java_repo), "acme/ledger")
    engine = IndexQueryEngine(storage)
    engine.load("acme/ledger")
    return engine


class TestRiskLevel:
    """Test risk grading."""

    def test_no_changes(self):
        """Test that nothing breaking and little reach is low risk."""
        assert calculate_risk_level([], 0) == "low"
        assert calculate_risk_level([change_of(Severity.MINOR)], 5) == "low"

    def test_critical(self):
        """Test that any critical change is critical."""
        assert calculate_risk_level([change_of(Severity.CRITICAL)], 0) == "critical"

    def test_high(self):
        """Test that many major changes or wide reach is high risk."""
        assert calculate_risk_level([change_of(Severity.MAJOR)] * 3, 0) == "high"
        assert calculate_risk_level([], 11) == "high"

    def test_medium(self):
        """Test that a single major change or moderate reach is medium risk."""
        assert calculate_risk_level([change_of(Severity.MAJOR)], 0) == "medium"
        assert calculate_risk_level([], 6) == "medium"
        assert calculate_risk_level([], 10) == "medium"


class TestChangeAnalyzer:
    """Test ChangeAnalyzer.analyze_changes."""

    def test_without_index(self):
        """Test that breaking changes are found without a loaded index."""
        result = ChangeAnalyzer().analyze_changes(
            [FileChange(PUBLISHER_PATH, EVENT_PUBLISHER, PUBLISHER_WITHOUT_METHOD)]
        )

        assert [c.type for c in result.breaking_changes] == [ChangeType.METHOD_REMOVED]
        assert result.breaking_changes[0].affected_files is None
        assert result.affected_classes == ["EventPublisher"]
        assert result.affected_files == []
        assert result.risk_level == "medium"

    def test_with_index(self, engine):
        """Test that impact fills affected files and classes."""
        analyzer = ChangeAnalyzer(query_engine=engine)

        result = analyzer.analyze_changes(
            [FileChange(PUBLISHER_PATH, EVENT_PUBLISHER, PUBLISHER_WITHOUT_METHOD)]
        )

        assert result.breaking_changes[0].affected_files == [IMPL_PATH, RECON_PATH]
        assert result.affected_files == [IMPL_PATH, RECON_PATH]
        assert result.risk_level == "medium"

    def test_changed_files_are_not_affected_files(self, engine):
        """Test that files in the change set are excluded from the affected files."""
        result = ChangeAnalyzer(query_engine=engine).analyze_changes(
            [
                FileChange(PUBLISHER_PATH, EVENT_PUBLISHER, EVENT_PUBLISHER),
                FileChange(IMPL_PATH, MOVEMENT_SERVICE_IMPL, MOVEMENT_SERVICE_IMPL),
            ]
        )

        assert result.breaking_changes == []
        assert result.affected_files == [RECON_PATH]
        assert result.affected_classes == ["EventPublisher", "MovementServiceImpl", "MovementService"]
        assert result.risk_level == "low"

    def test_deleted_file(self):
        """Test that deleting a file removes every type it declared."""
        result = ChangeAnalyzer().analyze_changes([FileChange(PUBLISHER_PATH, EVENT_PUBLISHER, None)])

        assert [c.type for c in result.breaking_changes] == [ChangeType.CLASS_REMOVED]
        assert result.risk_level == "critical"

    def test_added_file(self):
        """Test that a new file breaks nothing."""
        result = ChangeAnalyzer().analyze_changes([FileChange(PUBLISHER_PATH, None, EVENT_PUBLISHER)])

        assert result.breaking_changes == []
        assert result.affected_classes == ["EventPublisher"]

    def test_unsupported_files_are_ignored(self):
        """Test that files without an analyzer contribute nothing."""
        result = ChangeAnalyzer().analyze_changes(
            [FileChange("README.md", "old", None), FileChange("app.py", "x = 1", "y = 2")]
        )

        assert result.breaking_changes == []
        assert result.affected_classes == []
        assert result.risk_level == "low"

    def test_to_dict(self):
        """Test the serialized result."""
        result = ChangeAnalyzer().analyze_changes([FileChange(PUBLISHER_PATH, EVENT_PUBLISHER, None)])
        data = result.to_dict()

        assert data["risk_level"] == "critical"
        assert data["breaking_changes"][0]["type"] == "class_removed"
