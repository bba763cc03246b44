"""Builds the repository-wide dependency index."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from ..storage.adapter import StorageAdapter, index_key
from .analyzers import AnalyzerFactory, AnalyzerRegistry, LanguageAnalyzer
from .grammars import LanguageRegistry, get_language_registry
from .models import (
    DependencyIndex,
    FileAnalysis,
    FileMetadata,
    IndexMetadata,
    SourceFile,
    format_timestamp,
)
from .scanner import RepositoryScanner

logger = logging.getLogger(__name__)


class IndexBuilder:
    """Scan a repository, analyze every supported file and persist the merged index."""

    def __init__(
        self,
        storage: StorageAdapter,
        analyzers: Optional[AnalyzerRegistry] = None,
        language_registry: Optional[LanguageRegistry] = None,
        scanner: Optional[RepositoryScanner] = None,
        max_workers: int = 4,
    ):
        """Initialize index builder.

        Args:
            storage: Backend the finished index is written to
            analyzers: Language analyzer registry (defaults to the built-in analyzers)
            language_registry: Language detector
            scanner: Repository scanner
            max_workers: Size of the per-file analysis worker pool
        """
        self.storage = storage
        self.analyzers = analyzers if analyzers is not None else AnalyzerRegistry.default()
        self.language_registry = language_registry or get_language_registry()
        self.scanner = scanner or RepositoryScanner()
        self.max_workers = max(1, max_workers)
        self._local = threading.local()

    def register_analyzer(self, language: str, factory: AnalyzerFactory) -> None:
        self.analyzers.register(language, factory)

    def build_index(self, repo_path: str, repo_name: str) -> DependencyIndex:
        """Build and persist the dependency index of a repository.

        Args:
            repo_path: Repository root on local disk
            repo_name: Repository identifier, e.g. "owner/name"

        Returns:
            The persisted index

        Raises:
            DiscoveryError: If the repository root cannot be read
            StorageError: If the index cannot be persisted
        """
        logger.info(f"Starting indexing for {repo_name}")
        logger.info(f"Path: {repo_path}")

        start_time = time.monotonic()
        files = self.scanner.scan(repo_path)
        logger.info(f"Files found: {len(files)}")

        language_stats: Dict[str, int] = {}
        to_analyze: List[Tuple[SourceFile, str]] = []

        for source_file in files:
            language = self.language_registry.detect_language(source_file.relative_path)
            if not language or not self.language_registry.is_source_file(source_file.relative_path):
                continue

            language_stats[language] = language_stats.get(language, 0) + 1

            # Detected languages without an analyzer only count towards statistics
            if not self.analyzers.supports(language):
                continue
            to_analyze.append((source_file, language))

        results = self._analyze_files(to_analyze)

        index = DependencyIndex(
            repository=repo_name,
            last_updated=format_timestamp(datetime.now(timezone.utc)),
            metadata=IndexMetadata(total_files=len(files)),
        )

        # Single-writer merge in scan order so later files win key collisions
        failed_files = []
        for (source_file, language), analysis in zip(to_analyze, results):
            if analysis is None:
                failed_files.append(source_file.relative_path)
                continue
            merge_analysis(index, analysis, source_file, language)

        index.metadata.indexing_duration = int((time.monotonic() - start_time) * 1000)
        index.metadata.languages = list(language_stats.keys())

        self.storage.save(index_key(repo_name), index)

        logger.info(f"Indexing complete in {index.metadata.indexing_duration}ms")
        logger.info("Language statistics:")
        for language, count in language_stats.items():
            logger.info(f"  - {language}: {count} files")
        logger.info(f"Classes found: {len(index.classes)}")
        logger.info(f"Dependencies mapped: {len(index.dependencies)}")

        if failed_files:
            logger.warning(f"Failed to analyze {len(failed_files)} files:")
            for failed_file in failed_files:
                logger.warning(f"  - {failed_file}")

        return index

    def load_index(self, repo_name: str) -> Optional[DependencyIndex]:
        """Load the persisted index of a repository, or None if there is none."""
        return self.storage.load(index_key(repo_name))

    def _analyze_files(
        self, to_analyze: List[Tuple[SourceFile, str]]
    ) -> List[Optional[FileAnalysis]]:
        """Analyze files on the worker pool, preserving input order."""
        if not to_analyze:
            return []

        total = len(to_analyze)
        logger.info(f"Analyzing {total} files with {self.max_workers} workers")

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="analyzer") as pool:
            return list(pool.map(self._analyze_one, to_analyze))

    def _analyze_one(self, item: Tuple[SourceFile, str]) -> Optional[FileAnalysis]:
        source_file, language = item
        try:
            analyzer = self._get_analyzer(language)
            return analyzer.analyze(source_file)
        except Exception as e:
            logger.error(f"Error analyzing file {source_file.relative_path}: {e}")
            return None

    def _get_analyzer(self, language: str) -> LanguageAnalyzer:
        """Return this worker thread's analyzer for a language."""
        cache = getattr(self._local, "analyzers", None)
        if cache is None:
            cache = {}
            self._local.analyzers = cache

        if language not in cache:
            cache[language] = self.analyzers.create(language)
        return cache[language]


def merge_analysis(
    index: DependencyIndex, analysis: FileAnalysis, source_file: SourceFile, language: str
) -> None:
    """Fold one file's extraction into the index.

    Classes are keyed by simple name and relations by "from -> to"; an entry
    written later replaces an earlier one with the same key.
    """
    relative_path = source_file.relative_path

    index.files[relative_path] = FileMetadata(
        path=relative_path,
        language=language,
        size=source_file.size,
        last_modified=format_timestamp(source_file.last_modified),
        classes=[c.name for c in analysis.classes],
    )

    for class_info in analysis.classes:
        index.classes[class_info.name] = replace(class_info, path=relative_path)

    for relation in analysis.dependencies:
        index.dependencies[relation.key] = replace(relation, file=relative_path)
