"""Repository file discovery."""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from ..errors import DiscoveryError
from .models import SourceFile

logger = logging.getLogger(__name__)

# Version control, dependency caches, build output, IDE and virtualenv directories
DEFAULT_IGNORE_DIRS = frozenset(
    {
        ".git",
        ".svn",
        ".hg",
        "node_modules",
        "vendor",
        "target",
        "build",
        "dist",
        "out",
        "bin",
        ".gradle",
        ".mvn",
        ".idea",
        ".vscode",
        "__pycache__",
        ".pytest_cache",
        "venv",
        ".venv",
        ".env",
        ".next",
        ".nuxt",
    }
)


class RepositoryScanner:
    """Walk a repository and read every text file outside noise directories."""

    def __init__(self, ignore_dirs: Optional[Iterable[str]] = None):
        """Initialize scanner.

        Args:
            ignore_dirs: Directory names to skip (defaults to DEFAULT_IGNORE_DIRS)
        """
        self.ignore_dirs = frozenset(ignore_dirs) if ignore_dirs is not None else DEFAULT_IGNORE_DIRS

    def scan(self, root_path: str) -> List[SourceFile]:
        """Read all text files reachable from a root directory.

        Args:
            root_path: Repository root

        Returns:
            Source files in deterministic (sorted) traversal order

        Raises:
            DiscoveryError: If the root does not exist or cannot be listed
        """
        root = Path(root_path).resolve()
        if not root.is_dir():
            raise DiscoveryError(f"Repository path is not a directory: {root_path}")
        try:
            os.listdir(root)
        except OSError as e:
            raise DiscoveryError(f"Cannot read repository path {root_path}: {e}") from e

        files: List[SourceFile] = []
        for dir_path, dir_names, file_names in os.walk(root):
            # Prune in place so os.walk never descends into ignored directories
            dir_names[:] = sorted(d for d in dir_names if d not in self.ignore_dirs)

            for file_name in sorted(file_names):
                full_path = Path(dir_path) / file_name
                source_file = self._read_file(full_path, root)
                if source_file is not None:
                    files.append(source_file)

        logger.info(f"Discovered {len(files)} files under {root}")
        return files

    def _read_file(self, full_path: Path, root: Path) -> Optional[SourceFile]:
        """Read one file, returning None for binary or unreadable files."""
        if not full_path.is_file():
            return None

        try:
            stats = full_path.stat()
            raw = full_path.read_bytes()
            content = raw.decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Skipping unreadable file {full_path}: {e}")
            return None

        if "\x00" in content:
            logger.debug(f"Skipping binary file {full_path}")
            return None

        return SourceFile(
            path=str(full_path),
            relative_path=full_path.relative_to(root).as_posix(),
            content=content,
            size=stats.st_size,
            last_modified=datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
        )
