"""Breaking-change and blast-radius analysis for a set of edited files."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .analyzers import AnalyzerRegistry
from .grammars import LanguageRegistry, get_language_registry
from .index_loader import IndexQueryEngine
from .models import BreakingChange, FileAnalysis, Severity

logger = logging.getLogger(__name__)


@dataclass
class FileChange:
    """One edited file; a missing side means the file was added or deleted."""

    filename: str
    old_content: Optional[str] = None
    new_content: Optional[str] = None


@dataclass
class ChangeAnalysis:
    breaking_changes: List[BreakingChange] = field(default_factory=list)
    affected_files: List[str] = field(default_factory=list)
    affected_classes: List[str] = field(default_factory=list)
    risk_level: str = "low"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "breaking_changes": [c.to_dict() for c in self.breaking_changes],
            "affected_files": list(self.affected_files),
            "affected_classes": list(self.affected_classes),
            "risk_level": self.risk_level,
        }


def calculate_risk_level(breaking_changes: List[BreakingChange], affected_file_count: int) -> str:
    """Grade a change set from its breaking changes and how far it reaches.

    Args:
        breaking_changes: Changes detected across all edited files
        affected_file_count: Number of files outside the edit that depend on it

    Returns:
        One of "low", "medium", "high" or "critical"
    """
    critical = sum(1 for c in breaking_changes if c.severity == Severity.CRITICAL)
    major = sum(1 for c in breaking_changes if c.severity == Severity.MAJOR)

    if critical > 0:
        return "critical"
    if major >= 3 or affected_file_count > 10:
        return "high"
    if major > 0 or affected_file_count > 5:
        return "medium"
    return "low"


class ChangeAnalyzer:
    """Runs language analyzers over before/after file contents.

    With a loaded query engine the result also carries which types and files
    outside the edit are reached through the dependency graph.
    """

    def __init__(
        self,
        analyzers: Optional[AnalyzerRegistry] = None,
        language_registry: Optional[LanguageRegistry] = None,
        query_engine: Optional[IndexQueryEngine] = None,
    ):
        self.analyzers = analyzers if analyzers is not None else AnalyzerRegistry.default()
        self.language_registry = language_registry or get_language_registry()
        self.query_engine = query_engine

    def analyze_changes(self, changes: List[FileChange]) -> ChangeAnalysis:
        """Analyze a set of file edits.

        Args:
            changes: Edited files with their previous and current contents

        Returns:
            ChangeAnalysis with breaking changes, affected types and files, and risk
        """
        breaking_changes: List[BreakingChange] = []
        declared_classes: Dict[str, None] = {}
        changed_files = {change.filename for change in changes}

        for change in changes:
            language = self.language_registry.detect_language(change.filename)
            if not self.analyzers.supports(language):
                logger.debug(f"No analyzer for {change.filename}, skipping")
                continue

            try:
                file_changes, file_classes = self._analyze_file(change, language)
            except Exception as e:
                logger.error(f"Error analyzing change to {change.filename}: {e}")
                continue

            breaking_changes.extend(file_changes)
            for class_name in file_classes:
                declared_classes[class_name] = None

        affected_classes = dict(declared_classes)
        affected_files: Dict[str, None] = {}

        if self.query_engine is not None and self.query_engine.is_loaded():
            for change in breaking_changes:
                impact = self.query_engine.analyze_impact(change.class_name)
                change.affected_files = list(impact.affected_files)

            for class_name in declared_classes:
                for dependency in self.query_engine.find_dependencies(class_name):
                    affected_classes[dependency] = None

                impact = self.query_engine.analyze_impact(class_name)
                for path in impact.affected_files:
                    if path not in changed_files:
                        affected_files[path] = None

        risk_level = calculate_risk_level(breaking_changes, len(affected_files))
        logger.info(
            f"Change analysis: {len(breaking_changes)} breaking changes, "
            f"{len(affected_files)} affected files, risk {risk_level}"
        )

        return ChangeAnalysis(
            breaking_changes=breaking_changes,
            affected_files=list(affected_files),
            affected_classes=list(affected_classes),
            risk_level=risk_level,
        )

    def _analyze_file(self, change: FileChange, language: str):
        analyzer = self.analyzers.create(language)

        old_analysis = None
        if change.old_content is not None:
            old_analysis = analyzer.analyze_text(change.old_content, change.filename)

        if change.new_content is not None:
            new_analysis = analyzer.analyze_text(change.new_content, change.filename)
        else:
            # Deleted file: every previously declared type is gone
            new_analysis = FileAnalysis()

        classes = [c.name for c in (old_analysis.classes if old_analysis else [])]
        classes.extend(c.name for c in new_analysis.classes if c.name not in classes)

        return analyzer.detect_breaking_changes(old_analysis, new_analysis), classes
