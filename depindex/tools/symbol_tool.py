"""MCP tool for inspecting declared types and their public members."""

import logging
from pathlib import Path
from typing import Optional

from ..indexer.analyzers import AnalyzerRegistry
from ..indexer.grammars import LanguageRegistry
from ..indexer.index_loader import QueryEngineCache

logger = logging.getLogger(__name__)


class SymbolTool:
    """Tool for extracting and looking up types."""

    def __init__(
        self,
        analyzers: AnalyzerRegistry,
        language_registry: LanguageRegistry,
        engines: QueryEngineCache,
    ):
        """Initialize symbol tool.

        Args:
            analyzers: Language analyzer registry
            language_registry: Language detector
            engines: Per-repository query engines
        """
        self.analyzers = analyzers
        self.language_registry = language_registry
        self.engines = engines

    def get_symbols(self, file_path: str, class_name: Optional[str] = None) -> dict:
        """Extract types and public methods from a single file.

        Args:
            file_path: Path to the source file
            class_name: Only report this type

        Returns:
            Dictionary with extracted types
        """
        try:
            logger.info(f"Extracting symbols from: {file_path}")

            language = self.language_registry.detect_language(file_path)
            if not self.analyzers.supports(language):
                return {
                    "success": False,
                    "error": f"No analyzer available for language: {language or 'unknown'}",
                }

            content = Path(file_path).read_text(encoding="utf-8")
            analysis = self.analyzers.create(language).analyze_text(content, file_path)

            classes = analysis.classes
            if class_name:
                classes = [c for c in classes if c.name == class_name]

            return {
                "success": True,
                "file_path": file_path,
                "language": language,
                "imports": analysis.imports,
                "total_classes": len(classes),
                "classes": [c.to_dict() for c in classes],
                "dependencies": [d.to_dict() for d in analysis.dependencies],
            }

        except Exception as e:
            logger.error(f"Error extracting symbols: {e}")
            return {"success": False, "error": str(e)}

    def find_class(self, repo_name: str, class_name: str) -> dict:
        """Look up a type in a repository's index."""
        try:
            engine = self.engines.get(repo_name)
            class_info = engine.find_class(class_name)

            if class_info is None:
                return {"success": False, "error": f"Class not found: {class_name}"}

            return {"success": True, "repository": repo_name, "class": class_info.to_dict()}

        except Exception as e:
            logger.error(f"Error finding class {class_name}: {e}")
            return {"success": False, "error": str(e)}

    def find_classes_in_file(self, repo_name: str, file_path: str) -> dict:
        """List the types an indexed file declares."""
        try:
            engine = self.engines.get(repo_name)
            classes = engine.find_classes_in_file(file_path)

            return {
                "success": True,
                "repository": repo_name,
                "file_path": file_path,
                "classes": classes,
            }

        except Exception as e:
            logger.error(f"Error listing classes in {file_path}: {e}")
            return {"success": False, "error": str(e)}
