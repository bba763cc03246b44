"""MCP tool for dependency impact and breaking-change analysis."""

import logging
from typing import List

from ..errors import IndexNotFoundError
from ..indexer.analyzers import AnalyzerRegistry
from ..indexer.change_analyzer import ChangeAnalyzer, FileChange
from ..indexer.grammars import LanguageRegistry
from ..indexer.index_loader import QueryEngineCache

logger = logging.getLogger(__name__)


class ImpactTool:
    """Tool for answering "what breaks if this changes" questions."""

    def __init__(
        self,
        analyzers: AnalyzerRegistry,
        language_registry: LanguageRegistry,
        engines: QueryEngineCache,
    ):
        self.analyzers = analyzers
        self.language_registry = language_registry
        self.engines = engines

    def analyze_impact(self, repo_name: str, class_name: str) -> dict:
        """Direct and indirect dependents of a type and the files they live in.

        Args:
            repo_name: Repository identifier
            class_name: Simple name of the type

        Returns:
            Dictionary with the impact analysis
        """
        try:
            engine = self.engines.get(repo_name)
            if engine.find_class(class_name) is None:
                logger.warning(f"Class {class_name} is not declared in {repo_name}")

            impact = engine.analyze_impact(class_name)
            return {
                "success": True,
                "repository": repo_name,
                "class_name": class_name,
                **impact.to_dict(),
            }

        except Exception as e:
            logger.error(f"Error analyzing impact of {class_name}: {e}")
            return {"success": False, "error": str(e)}

    def find_dependents(self, repo_name: str, class_name: str) -> dict:
        """Types with a dependency edge pointing at a type."""
        try:
            engine = self.engines.get(repo_name)
            dependents = engine.find_dependents(class_name)

            return {
                "success": True,
                "repository": repo_name,
                "class_name": class_name,
                "dependents": dependents,
                "dependencies": engine.find_dependencies(class_name),
            }

        except Exception as e:
            logger.error(f"Error finding dependents of {class_name}: {e}")
            return {"success": False, "error": str(e)}

    def detect_breaking_changes(self, repo_name: str, changes: List[dict]) -> dict:
        """Detect breaking changes in a set of edited files.

        Args:
            repo_name: Repository whose index is used for impact
            changes: Items with "filename" and optional "old_content"/"new_content"

        Returns:
            Dictionary with breaking changes, affected files and classes, and risk level
        """
        try:
            file_changes = [
                FileChange(
                    filename=change["filename"],
                    old_content=change.get("old_content"),
                    new_content=change.get("new_content"),
                )
                for change in changes
            ]

            try:
                engine = self.engines.get(repo_name)
            except IndexNotFoundError:
                logger.warning(f"No index for {repo_name}, impact will not be computed")
                engine = None

            analyzer = ChangeAnalyzer(self.analyzers, self.language_registry, engine)
            result = analyzer.analyze_changes(file_changes)

            return {
                "success": True,
                "repository": repo_name,
                "index_available": engine is not None,
                **result.to_dict(),
            }

        except Exception as e:
            logger.error(f"Error detecting breaking changes: {e}")
            return {"success": False, "error": str(e)}
