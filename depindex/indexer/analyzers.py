"""Language-specific analyzers using the strategy pattern.

Each language has its own analyzer class that knows how to turn one source
file into types, public members and dependency edges. Analyzers own a parser
and are not safe to share between threads; the registry therefore hands out
factories so that every worker can build its own instance.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from .models import (
    BreakingChange,
    ChangeType,
    FileAnalysis,
    Location,
    Severity,
    SourceFile,
)

logger = logging.getLogger(__name__)


class LanguageAnalyzer(ABC):
    """Base class for language-specific file analysis."""

    def __init__(self, language: str):
        self.language = language

    @abstractmethod
    def analyze(self, source_file: SourceFile) -> FileAnalysis:
        """Extract types, public members and dependency edges from one file."""
        pass

    def analyze_text(self, content: str, relative_path: str) -> FileAnalysis:
        """Analyze source text that does not live on disk."""
        source_file = SourceFile(
            path=relative_path,
            relative_path=relative_path,
            content=content,
            size=len(content.encode("utf-8")),
            last_modified=datetime.now(timezone.utc),
        )
        return self.analyze(source_file)

    def detect_breaking_changes(
        self, old_analysis: Optional[FileAnalysis], new_analysis: Optional[FileAnalysis]
    ) -> List[BreakingChange]:
        """Compare two extractions of the same file."""
        return compare_extractions(old_analysis, new_analysis)


def compare_extractions(
    old_analysis: Optional[FileAnalysis], new_analysis: Optional[FileAnalysis]
) -> List[BreakingChange]:
    """Report public-API breaking edits between two extractions of one file.

    Types are matched by simple name, and methods within a type by name only,
    so overloads collapse onto one entry and a change to one overload is
    reported against whichever overload was extracted last.

    Args:
        old_analysis: Extraction of the previous version
        new_analysis: Extraction of the current version

    Returns:
        Breaking changes, empty when either side is missing
    """
    if old_analysis is None or new_analysis is None:
        return []

    changes: List[BreakingChange] = []
    old_classes = {c.name: c for c in old_analysis.classes}
    new_classes = {c.name: c for c in new_analysis.classes}

    for class_name, old_class in old_classes.items():
        new_class = new_classes.get(class_name)
        if new_class is None:
            changes.append(
                BreakingChange(
                    type=ChangeType.CLASS_REMOVED,
                    severity=Severity.CRITICAL,
                    description=f"Class '{class_name}' was removed",
                    location=Location(file=old_class.path, line=0),
                    class_name=class_name,
                )
            )
            continue

        old_methods = {m.name: m for m in old_class.public_methods}
        new_methods = {m.name: m for m in new_class.public_methods}

        for method_name, old_method in old_methods.items():
            new_method = new_methods.get(method_name)
            if new_method is None:
                changes.append(
                    BreakingChange(
                        type=ChangeType.METHOD_REMOVED,
                        severity=Severity.MAJOR,
                        description=f"Public method '{method_name}' was removed from {class_name}",
                        location=Location(file=old_class.path, line=old_method.line),
                        class_name=class_name,
                    )
                )
            elif old_method.signature != new_method.signature:
                changes.append(
                    BreakingChange(
                        type=ChangeType.SIGNATURE_CHANGED,
                        severity=Severity.MAJOR,
                        description=(
                            f"Signature of '{method_name}' changed in {class_name}: "
                            f"'{old_method.signature}' -> '{new_method.signature}'"
                        ),
                        location=Location(file=new_class.path, line=new_method.line),
                        class_name=class_name,
                    )
                )

    if changes:
        logger.debug(f"Detected {len(changes)} breaking changes")
    return changes


AnalyzerFactory = Callable[[], LanguageAnalyzer]


class AnalyzerRegistry:
    """Registry mapping language tags to analyzer factories."""

    def __init__(self):
        self._factories: Dict[str, AnalyzerFactory] = {}

    @classmethod
    def default(cls) -> "AnalyzerRegistry":
        """Create a registry with every built-in analyzer registered."""
        from .java_analyzer import JavaAnalyzer

        registry = cls()
        registry.register("java", JavaAnalyzer)
        return registry

    def register(self, language: str, factory: AnalyzerFactory) -> None:
        """Register an analyzer factory for a language.

        Args:
            language: Language tag as reported by the language registry
            factory: Zero-argument callable returning a fresh analyzer
        """
        self._factories[language] = factory
        logger.info(f"Registered analyzer for: {language}")

    def supports(self, language: Optional[str]) -> bool:
        return language is not None and language in self._factories

    def create(self, language: str) -> Optional[LanguageAnalyzer]:
        """Build a new analyzer instance for a language, or None if unsupported."""
        factory = self._factories.get(language)
        if factory is None:
            return None
        return factory()

    def get_supported_languages(self) -> List[str]:
        return list(self._factories.keys())
