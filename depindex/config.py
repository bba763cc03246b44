"""Environment configuration shared by the server and the indexer script."""

import os
from pathlib import Path

from .storage.adapter import LocalFileStorage, StorageAdapter
from .storage.object_store import ObjectStoreStorage


def get_env_config():
    """Get configuration from environment variables."""
    workspace_path = os.getenv("WORKSPACE_PATH", "/workspace")
    return {
        "workspace_path": workspace_path,
        "repo_name": os.getenv("REPO_NAME") or Path(workspace_path).name,
        "index_storage": os.getenv("INDEX_STORAGE", "local").lower(),
        "index_path": os.getenv("INDEX_PATH", "./indexes"),
        "object_store_url": os.getenv("OBJECT_STORE_URL"),
        "object_store_prefix": os.getenv("OBJECT_STORE_PREFIX", "indexes/"),
        "object_store_token": os.getenv("OBJECT_STORE_TOKEN"),
        "max_workers": int(os.getenv("MAX_WORKERS", "4")),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "log_file": os.getenv("LOG_FILE"),
    }


def create_storage(config: dict) -> StorageAdapter:
    """Build the storage backend named by ``config["index_storage"]``.

    Args:
        config: Configuration as returned by get_env_config

    Returns:
        A local-disk or object-store backend

    Raises:
        ValueError: If the backend is unknown or the object store has no URL
    """
    backend = config.get("index_storage", "local")

    if backend == "local":
        return LocalFileStorage(config.get("index_path", "./indexes"))

    if backend == "object":
        if not config.get("object_store_url"):
            raise ValueError("OBJECT_STORE_URL is required when INDEX_STORAGE=object")
        return ObjectStoreStorage(
            config["object_store_url"],
            prefix=config.get("object_store_prefix", "indexes/"),
            token=config.get("object_store_token"),
        )

    raise ValueError(f"Unknown index storage backend: {backend}")
