"""MCP tool for building dependency indexes."""

import logging
from pathlib import Path
from typing import Optional

from ..errors import IndexNotFoundError
from ..indexer.index_builder import IndexBuilder
from ..indexer.index_loader import QueryEngineCache
from ..storage.adapter import index_key

logger = logging.getLogger(__name__)


class IndexingTool:
    """Tool for indexing repositories into a dependency index."""

    def __init__(self, builder: IndexBuilder, engines: QueryEngineCache):
        """Initialize indexing tool.

        Args:
            builder: Index builder writing to the configured storage
            engines: Per-repository query engines, refreshed after each build
        """
        self.builder = builder
        self.engines = engines

    def index_repository(self, repo_path: str, repo_name: Optional[str] = None) -> dict:
        """Build and persist the dependency index of a repository.

        Args:
            repo_path: Path to the repository to index
            repo_name: Repository identifier (defaults to basename of repo_path)

        Returns:
            Dictionary with indexing results
        """
        logger.info(f"Starting repository indexing: {repo_path}")
        repo_path_obj = Path(repo_path)

        if repo_name is None:
            repo_name = repo_path_obj.name
            logger.info(f"Auto-generated repo_name: {repo_name}")

        if not repo_path_obj.is_dir():
            return {"success": False, "error": f"Repository path does not exist: {repo_path}"}

        try:
            index = self.builder.build_index(str(repo_path_obj), repo_name)
            self.engines.put(repo_name, index)

            return {
                "success": True,
                "repository": repo_name,
                "index_key": index_key(repo_name),
                "total_files": index.metadata.total_files,
                "indexed_files": len(index.files),
                "total_classes": len(index.classes),
                "total_dependencies": len(index.dependencies),
                "languages": index.metadata.languages,
                "indexing_duration_ms": index.metadata.indexing_duration,
            }

        except Exception as e:
            logger.error(f"Error indexing repository {repo_path}: {e}", exc_info=True)
            return {"success": False, "error": str(e)}

    def get_index_status(self, repo_name: str) -> dict:
        """Get statistics of a repository's persisted index.

        Args:
            repo_name: Repository identifier

        Returns:
            Dictionary with index statistics
        """
        try:
            engine = self.engines.get(repo_name)
            return {"success": True, **engine.get_stats()}

        except IndexNotFoundError as e:
            return {"success": False, "error": str(e)}
        except Exception as e:
            logger.error(f"Error getting index status for {repo_name}: {e}")
            return {"success": False, "error": str(e)}

    def list_indexes(self) -> dict:
        """List the repositories that have a persisted index."""
        try:
            keys = self.builder.storage.list_keys()
            return {"success": True, "total": len(keys), "indexes": keys}

        except Exception as e:
            logger.error(f"Error listing indexes: {e}")
            return {"success": False, "error": str(e)}
