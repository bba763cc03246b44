"""Read-only queries over a persisted dependency index."""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import IndexNotFoundError
from ..storage.adapter import StorageAdapter, index_key
from .models import ClassInfo, DependencyIndex, MethodInfo

logger = logging.getLogger(__name__)


@dataclass
class ImpactAnalysis:
    """Types and files affected by a change to one type, two hops deep."""

    direct_dependents: List[str] = field(default_factory=list)
    indirect_dependents: List[str] = field(default_factory=list)
    affected_files: List[str] = field(default_factory=list)
    total_impact: int = 0  # direct + indirect counts, a node reachable both ways counts twice

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direct_dependents": list(self.direct_dependents),
            "indirect_dependents": list(self.indirect_dependents),
            "affected_files": list(self.affected_files),
            "total_impact": self.total_impact,
        }


class IndexQueryEngine:
    """Holds one loaded index snapshot and answers queries against it.

    An engine serves a single repository at a time; loading another one
    replaces the snapshot. Use separate engines to query several
    repositories concurrently.
    """

    def __init__(self, storage: StorageAdapter):
        """Initialize query engine.

        Args:
            storage: Backend indexes are read from
        """
        self.storage = storage
        self.index: Optional[DependencyIndex] = None
        self.load_time_ms = 0

    @classmethod
    def from_index(cls, index: DependencyIndex, storage: Optional[StorageAdapter] = None):
        """Create an engine around an index that is already in memory."""
        engine = cls(storage)
        engine.index = index
        return engine

    def load(self, repo_name: str) -> Optional[DependencyIndex]:
        """Load the index of a repository.

        Args:
            repo_name: Repository identifier

        Returns:
            The loaded index, or None if none has been persisted (the engine is
            then left empty)

        Raises:
            StorageError: If the backend fails
        """
        start_time = time.monotonic()
        logger.info(f"Loading index for {repo_name}...")

        self.index = self.storage.load(index_key(repo_name))
        self.load_time_ms = int((time.monotonic() - start_time) * 1000)

        if self.index is None:
            logger.warning(f"No index found for {repo_name}")
            return None

        logger.info(f"Index loaded in {self.load_time_ms}ms")
        logger.info(f"  - Classes: {len(self.index.classes)}")
        logger.info(f"  - Dependencies: {len(self.index.dependencies)}")
        logger.info(f"  - Files: {len(self.index.files)}")
        return self.index

    def load_or_raise(self, repo_name: str) -> DependencyIndex:
        """Load the index of a repository, raising if none exists.

        Raises:
            IndexNotFoundError: If no index has been persisted for the repository
            StorageError: If the backend fails
        """
        index = self.load(repo_name)
        if index is None:
            raise IndexNotFoundError(repo_name)
        return index

    def is_loaded(self) -> bool:
        return self.index is not None

    def clear(self) -> None:
        self.index = None
        self.load_time_ms = 0

    def find_class(self, class_name: str) -> Optional[ClassInfo]:
        if self.index is None:
            return None
        return self.index.classes.get(class_name)

    def find_dependencies(self, class_name: str) -> List[str]:
        """Direct supertypes recorded on a type."""
        class_info = self.find_class(class_name)
        return list(class_info.dependencies) if class_info else []

    def find_dependents(self, class_name: str) -> List[str]:
        """Names of every type with a relation pointing at ``class_name``."""
        if self.index is None:
            return []

        dependents: Dict[str, None] = {}
        for relation in self.index.dependencies.values():
            if relation.target == class_name:
                dependents[relation.source] = None
        return list(dependents)

    def find_methods_in_class(self, class_name: str) -> List[MethodInfo]:
        class_info = self.find_class(class_name)
        return list(class_info.public_methods) if class_info else []

    def find_files_by_language(self, language: str) -> List[str]:
        if self.index is None:
            return []
        return [path for path, meta in self.index.files.items() if meta.language == language]

    def find_classes_in_file(self, file_path: str) -> List[str]:
        if self.index is None:
            return []
        file_info = self.index.files.get(file_path)
        return list(file_info.classes) if file_info else []

    def analyze_impact(self, class_name: str) -> ImpactAnalysis:
        """Files and types affected if ``class_name`` changes.

        Follows reverse edges two hops: direct dependents, then their
        dependents. ``total_impact`` adds the two counts without removing
        types that appear at both levels.

        Args:
            class_name: Simple name of the changed type

        Returns:
            ImpactAnalysis with dependents, affected files and total impact
        """
        if self.index is None:
            return ImpactAnalysis()

        direct_dependents = self.find_dependents(class_name)
        affected_files: Dict[str, None] = {}

        for dependent in direct_dependents:
            dep_class = self.find_class(dependent)
            if dep_class:
                affected_files[dep_class.path] = None

        indirect_dependents: Dict[str, None] = {}
        for dependent in direct_dependents:
            for second_level in self.find_dependents(dependent):
                indirect_dependents[second_level] = None
                dep_class = self.find_class(second_level)
                if dep_class:
                    affected_files[dep_class.path] = None

        return ImpactAnalysis(
            direct_dependents=direct_dependents,
            indirect_dependents=list(indirect_dependents),
            affected_files=list(affected_files),
            total_impact=len(direct_dependents) + len(indirect_dependents),
        )

    def get_stats(self) -> Optional[Dict[str, Any]]:
        """Summary of the loaded index, or None if nothing is loaded."""
        if self.index is None:
            return None

        return {
            "repository": self.index.repository,
            "last_updated": self.index.last_updated,
            "total_classes": len(self.index.classes),
            "total_dependencies": len(self.index.dependencies),
            "total_files": len(self.index.files),
            "languages": list(self.index.metadata.languages),
            "load_time_ms": self.load_time_ms,
        }


class QueryEngineCache:
    """One query engine per repository, loaded on first use.

    A cached engine is checked against storage at most once every
    ``refresh_interval`` seconds and replaced when storage holds an index
    with a newer ``last_updated``, so rebuilds made by another process
    become visible without a restart.
    """

    def __init__(self, storage: StorageAdapter, refresh_interval: float = 60.0):
        self.storage = storage
        self.refresh_interval = refresh_interval
        self._engines: Dict[str, IndexQueryEngine] = {}
        self._checked_at: Dict[str, float] = {}

    def get(self, repo_name: str) -> IndexQueryEngine:
        """Return the loaded engine of a repository.

        Raises:
            IndexNotFoundError: If no index has been persisted for the repository
        """
        engine = self._engines.get(repo_name)
        if engine is None:
            engine = IndexQueryEngine(self.storage)
            engine.load_or_raise(repo_name)
            self._remember(repo_name, engine)
        elif time.monotonic() - self._checked_at[repo_name] >= self.refresh_interval:
            engine = self._refresh(repo_name, engine)
        return engine

    def put(self, repo_name: str, index: DependencyIndex) -> IndexQueryEngine:
        """Serve a freshly built index without reading it back from storage."""
        engine = IndexQueryEngine.from_index(index, self.storage)
        self._remember(repo_name, engine)
        return engine

    def invalidate(self, repo_name: str) -> None:
        self._engines.pop(repo_name, None)
        self._checked_at.pop(repo_name, None)

    def loaded_repositories(self) -> List[str]:
        return list(self._engines.keys())

    def _remember(self, repo_name: str, engine: IndexQueryEngine) -> None:
        self._engines[repo_name] = engine
        self._checked_at[repo_name] = time.monotonic()

    def _refresh(self, repo_name: str, engine: IndexQueryEngine) -> IndexQueryEngine:
        self._checked_at[repo_name] = time.monotonic()
        stored = self.storage.load(index_key(repo_name))

        # Timestamps share one fixed-width ISO format, so string order is time order
        if stored is None or stored.last_updated <= engine.index.last_updated:
            return engine

        logger.info(
            f"Reloading index for {repo_name}: "
            f"{engine.index.last_updated} -> {stored.last_updated}"
        )
        refreshed = IndexQueryEngine.from_index(stored, self.storage)
        self._remember(repo_name, refreshed)
        return refreshed
