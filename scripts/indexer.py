#!/usr/bin/env python3
"""Standalone indexer script - builds a repository's dependency index and exits."""

import logging
import os
import sys
from pathlib import Path

# Setup logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    """Main indexer function."""
    try:
        # Import here to avoid issues if running from different context
        from depindex.config import create_storage, get_env_config
        from depindex.indexer.index_builder import IndexBuilder

        config = get_env_config()
        workspace_path = config["workspace_path"]
        repo_name = config["repo_name"]

        logger.info(f"Starting indexer for repository: {repo_name}")
        logger.info(f"Workspace path: {workspace_path}")
        logger.info(f"Index storage: {config['index_storage']}")
        logger.info(f"Workers: {config['max_workers']}")

        if not Path(workspace_path).is_dir():
            logger.error(f"Repository path does not exist: {workspace_path}")
            sys.exit(1)

        storage = create_storage(config)
        builder = IndexBuilder(storage, max_workers=config["max_workers"])

        index = builder.build_index(workspace_path, repo_name)

        logger.info("=" * 80)
        logger.info("Indexing Complete!")
        logger.info(f"Repository: {repo_name}")
        logger.info(f"Total files: {index.metadata.total_files}")
        logger.info(f"Analyzed files: {len(index.files)}")
        logger.info(f"Classes: {len(index.classes)}")
        logger.info(f"Dependencies: {len(index.dependencies)}")
        logger.info(f"Duration: {index.metadata.indexing_duration}ms")
        logger.info("=" * 80)

        sys.exit(0)

    except Exception as e:
        logger.error(f"Fatal error during indexing: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
