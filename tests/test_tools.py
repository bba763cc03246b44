"""Tests for the MCP tool facades."""

import pytest

from depindex.indexer.analyzers import AnalyzerRegistry
from depindex.indexer.grammars import get_language_registry
from depindex.indexer.index_builder import IndexBuilder
from depindex.indexer.index_loader import QueryEngineCache
from depindex.tools.impact_tool import ImpactTool
from depindex.tools.index_tool import IndexingTool
from depindex.tools.symbol_tool import SymbolTool

from conftest import EVENT_PUBLISHER

IMPL_PATH = "src/main/java/com/acme/movements/MovementServiceImpl.java"
RECON_PATH = "src/main/java/com/acme/reconciliation/ReconciliationService.java"


@pytest.fixture
def tools(storage):
    analyzers = AnalyzerRegistry.default()
    language_registry = get_language_registry()
    engines = QueryEngineCache(storage)
    builder = IndexBuilder(storage, analyzers=analyzers, language_registry=language_registry)
    return (
        IndexingTool(builder, engines),
        SymbolTool(analyzers, language_registry, engines),
        ImpactTool(analyzers, language_registry, engines),
    )


@pytest.fixture
def indexed(tools, java_repo):
    index_tool, _, _ = tools
    result = index_tool.index_repository(str(java_repo), "acme/ledger")
    assert result["success"], result
    return tools


class TestIndexingTool:
    """Test IndexingTool."""

    def test_index_repository(self, tools, java_repo):
        """Test that indexing reports counts."""
        result = tools[0].index_repository(str(java_repo), "acme/ledger")

        assert result["success"]
        assert result["index_key"] == "acme-ledger"
        assert result["total_classes"] == 4
        assert result["indexed_files"] == 4
        assert result["total_files"] == 7

    def test_default_repo_name(self, tools, java_repo):
        """Test that the directory name is used when no name is given."""
        result = tools[0].index_repository(str(java_repo))
        assert result["repository"] == java_repo.name

    def test_missing_path(self, tools, tmp_path):
        """Test that a missing path is reported as a failure."""
        result = tools[0].index_repository(str(tmp_path / "missing"))
        assert result["success"] is False
        assert "does not exist" in result["error"]

    def test_index_status(self, indexed):
        """Test status of an indexed and an unknown repository."""
        status = indexed[0].get_index_status("acme/ledger")
        assert status["success"]
        assert status["total_classes"] == 4

        missing = indexed[0].get_index_status("acme/unknown")
        assert missing["success"] is False
        assert "acme/unknown" in missing["error"]

    def test_list_indexes(self, indexed):
        """Test that persisted indexes are listed by key."""
        assert indexed[0].list_indexes()["indexes"] == ["acme-ledger"]


class TestSymbolTool:
    """Test SymbolTool."""

    def test_get_symbols(self, tools, tmp_path):
        """Test extraction from a file on disk."""
        source_path = tmp_path / "EventPublisher.java"
        source_path.write_text(EVENT_PUBLISHER)

        result = tools[1].get_symbols(str(source_path))

        assert result["success"]
        assert result["language"] == "java"
        assert result["classes"][0]["name"] == "EventPublisher"
        assert result["classes"][0]["publicMethods"][0]["name"] == "publish"

    def test_get_symbols_unsupported(self, tools, tmp_path):
        """Test that files without an analyzer are rejected."""
        source_path = tmp_path / "tool.py"
        source_path.write_text("x = 1\n")

        result = tools[1].get_symbols(str(source_path))

        assert result["success"] is False

    def test_get_symbols_missing_file(self, tools, tmp_path):
        """Test that an unreadable file is reported as a failure."""
        result = tools[1].get_symbols(str(tmp_path / "Missing.java"))
        assert result["success"] is False

    def test_find_class(self, indexed):
        """Test looking up an indexed type."""
        result = indexed[1].find_class("acme/ledger", "MovementServiceImpl")
        assert result["success"]
        assert result["class"]["path"] == IMPL_PATH

        assert indexed[1].find_class("acme/ledger", "Missing")["success"] is False

    def test_find_classes_in_file(self, indexed):
        """Test listing the types of an indexed file."""
        result = indexed[1].find_classes_in_file("acme/ledger", RECON_PATH)
        assert result["classes"] == ["ReconciliationService"]


class TestImpactTool:
    """Test ImpactTool."""

    def test_analyze_impact(self, indexed):
        """Test two-hop impact through the tool."""
        result = indexed[2].analyze_impact("acme/ledger", "EventPublisher")

        assert result["success"]
        assert result["direct_dependents"] == ["MovementServiceImpl"]
        assert result["indirect_dependents"] == ["ReconciliationService"]
        assert result["total_impact"] == 2

    def test_unknown_repository(self, tools):
        """Test that querying a repository without an index fails cleanly."""
        result = tools[2].analyze_impact("acme/unknown", "EventPublisher")
        assert result["success"] is False

    def test_find_dependents(self, indexed):
        """Test reverse edges through the tool."""
        result = indexed[2].find_dependents("acme/ledger", "MovementServiceImpl")
        assert result["dependents"] == ["ReconciliationService"]
        assert result["dependencies"] == ["MovementService"]

    def test_detect_breaking_changes(self, indexed):
        """Test breaking-change detection with impact from the index."""
        result = indexed[2].detect_breaking_changes(
            "acme/ledger",
            [
                {
                    "filename": "src/main/java/com/acme/events/EventPublisher.java",
                    "old_content": EVENT_PUBLISHER,
                    "new_content": None,
                }
            ],
        )

        assert result["success"]
        assert result["index_available"]
        assert result["risk_level"] == "critical"
        assert result["breaking_changes"][0]["affectedFiles"] == [IMPL_PATH, RECON_PATH]

    def test_detect_breaking_changes_without_index(self, tools):
        """Test that detection still works when the repository is not indexed."""
        result = tools[2].detect_breaking_changes(
            "acme/unknown",
            [{"filename": "EventPublisher.java", "old_content": EVENT_PUBLISHER}],
        )

        assert result["success"]
        assert result["index_available"] is False
        assert result["breaking_changes"][0]["type"] == "class_removed"

    def test_detect_breaking_changes_bad_input(self, tools):
        """Test that malformed change items are reported as a failure."""
        result = tools[2].detect_breaking_changes("acme/ledger", [{"old_content": "x"}])
        assert result["success"] is False
