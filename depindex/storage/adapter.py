"""Storage abstraction for dependency indexes.

Builders and query engines only talk to ``StorageAdapter``, so indexes can
live on local disk or in an object store without changing either side.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from ..errors import StorageError
from ..indexer.models import DependencyIndex

logger = logging.getLogger(__name__)

PATH_SEPARATORS = re.compile(r"[\\/]")


def index_key(repository: str) -> str:
    """Storage key of a repository's index, e.g. ``owner-name`` for ``owner/name``."""
    return PATH_SEPARATORS.sub("-", repository)


def serialize_index(index: DependencyIndex) -> str:
    return json.dumps(index.to_dict(), indent=2)


def deserialize_index(payload: str) -> DependencyIndex:
    return DependencyIndex.from_dict(json.loads(payload))


class StorageAdapter(ABC):
    """Durable key/value store for dependency indexes."""

    @abstractmethod
    def save(self, key: str, index: DependencyIndex) -> None:
        """Write an index, replacing whatever the key held before."""
        pass

    @abstractmethod
    def load(self, key: str) -> Optional[DependencyIndex]:
        """Read an index, or None if the key holds nothing."""
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    def list_keys(self) -> List[str]:
        pass


class LocalFileStorage(StorageAdapter):
    """Indexes stored as pretty-printed JSON files in a directory."""

    def __init__(self, base_path: str = "./indexes"):
        self.base_path = Path(base_path)

    def _file_path(self, key: str) -> Path:
        return self.base_path / f"{key}.json"

    def save(self, key: str, index: DependencyIndex) -> None:
        file_path = self._file_path(key)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(serialize_index(index), encoding="utf-8")
        except OSError as e:
            logger.error(f"Error saving index to {file_path}: {e}")
            raise StorageError(f"Cannot write index {key}: {e}") from e

        logger.info(f"Index saved to: {file_path}")

    def load(self, key: str) -> Optional[DependencyIndex]:
        file_path = self._file_path(key)
        try:
            payload = file_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(f"No index file at {file_path}")
            return None
        except OSError as e:
            raise StorageError(f"Cannot read index {key}: {e}") from e

        try:
            return deserialize_index(payload)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise StorageError(f"Corrupt index {key}: {e}") from e

    def exists(self, key: str) -> bool:
        return self._file_path(key).is_file()

    def list_keys(self) -> List[str]:
        if not self.base_path.is_dir():
            return []
        return sorted(p.stem for p in self.base_path.glob("*.json"))
