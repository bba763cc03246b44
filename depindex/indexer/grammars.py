"""Language configuration and detection for repository files."""

import json
import logging
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


class LanguageConfig:
    """Detection settings for one language tag."""

    def __init__(
        self,
        name: str,
        extensions: List[str],
        tree_sitter_language: Optional[str] = None,
        is_source: bool = True,
    ):
        """
        Args:
            name: Language tag (java, python, maven, etc.)
            extensions: List of file extensions, lowercase with leading dot
            tree_sitter_language: Tree-sitter grammar identifier, if one is used
            is_source: False for manifest and build-descriptor formats
        """
        self.name = name
        self.extensions = extensions
        self.tree_sitter_language = tree_sitter_language
        self.is_source = is_source


class LanguageRegistry:
    """Maps file paths to language tags using the packaged detection table."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Args:
            config_path: Alternative detection table (defaults to the packaged languages.json)
        """
        if config_path is None:
            config_path = Path(__file__).parent / "languages.json"

        self.config_path = config_path
        self.languages: Dict[str, LanguageConfig] = {}
        self.extension_map: Dict[str, str] = {}
        self.file_name_map: Dict[str, str] = {}
        self._load_config()

    def _load_config(self) -> None:
        try:
            config_data = json.loads(Path(self.config_path).read_text(encoding="utf-8"))

            for lang_name, lang_config in config_data["languages"].items():
                language = LanguageConfig(
                    name=lang_name,
                    extensions=[ext.lower() for ext in lang_config.get("extensions", [])],
                    tree_sitter_language=lang_config.get("tree_sitter_language"),
                    is_source=lang_config.get("source", True),
                )
                self.languages[lang_name] = language

                for ext in language.extensions:
                    self.extension_map[ext] = lang_name

            for file_name, lang_name in config_data.get("file_names", {}).items():
                self.file_name_map[file_name.lower()] = lang_name

            logger.debug(
                f"Loaded {len(self.languages)} languages and {len(self.file_name_map)} special file names"
            )

        except Exception as e:
            logger.error(f"Invalid language table {self.config_path}: {e}")
            raise

    def detect_language(self, file_path: str) -> Optional[str]:
        """Detect programming language from file extension or name.

        Args:
            file_path: Path to the file

        Returns:
            Language tag or None if not recognized
        """
        path = PurePosixPath(file_path.replace("\\", "/").lower())

        if path.suffix in self.extension_map:
            return self.extension_map[path.suffix]

        # Build and manifest files are recognized by name
        if path.name in self.file_name_map:
            return self.file_name_map[path.name]

        return None

    def is_source_file(self, file_path: str) -> bool:
        """Check if a file holds analyzable source code.

        Args:
            file_path: Path to the file

        Returns:
            True if a language is detected and it is not a configuration-only format
        """
        language = self.detect_language(file_path)
        if language is None:
            return False
        config = self.languages.get(language)
        return config is None or config.is_source

    def get_language_stats(self, file_paths: Iterable[str]) -> Dict[str, int]:
        """Count source files per language.

        Args:
            file_paths: File paths to classify

        Returns:
            Mapping of language tag to file count
        """
        stats: Dict[str, int] = {}
        for file_path in file_paths:
            if not self.is_source_file(file_path):
                continue
            language = self.detect_language(file_path)
            stats[language] = stats.get(language, 0) + 1
        return stats

    def get_primary_language(self, file_paths: Iterable[str]) -> Optional[str]:
        """Return the language with the most source files, or None."""
        stats = self.get_language_stats(file_paths)
        primary = None
        max_count = 0
        for language, count in stats.items():
            if count > max_count:
                max_count = count
                primary = language
        return primary

    def get_language_config(self, language: str) -> Optional[LanguageConfig]:
        return self.languages.get(language)

    def get_supported_languages(self) -> List[str]:
        return list(self.languages.keys())

    def get_supported_extensions(self) -> List[str]:
        return list(self.extension_map.keys())


# Shared by the builder, change analyzer and tools
_registry: Optional[LanguageRegistry] = None


def get_language_registry(config_path: Optional[Path] = None) -> LanguageRegistry:
    """Return the process-wide language registry.

    Args:
        config_path: Detection table to use; only honoured by the first call
    """
    global _registry
    if _registry is None:
        _registry = LanguageRegistry(config_path)
    return _registry
