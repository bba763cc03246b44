"""Exceptions raised by the dependency indexer."""


class DependencyIndexError(Exception):
    """Base class for all dependency indexer errors."""


class DiscoveryError(DependencyIndexError):
    """The repository root could not be walked."""


class AnalysisError(DependencyIndexError):
    """A single file could not be analyzed."""

    def __init__(self, file_path: str, message: str):
        super().__init__(f"{file_path}: {message}")
        self.file_path = file_path


class StorageError(DependencyIndexError):
    """A storage backend failed to read or write an index."""


class IndexNotFoundError(DependencyIndexError):
    """No index has been persisted for a repository."""

    def __init__(self, repository: str):
        super().__init__(f"Index not found for {repository}")
        self.repository = repository
