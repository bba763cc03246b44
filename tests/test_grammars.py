"""Tests for language detection."""

import pytest

from depindex.indexer.grammars import LanguageRegistry


@pytest.fixture
def registry():
    return LanguageRegistry()


class TestDetectLanguage:
    """Test extension and file-name based detection."""

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("src/main/java/Foo.java", "java"),
            ("app/Main.KT", "kotlin"),
            ("web/index.tsx", "typescript"),
            ("lib/util.mjs", "javascript"),
            ("tool/run.py", "python"),
            ("native/vec.hpp", "cpp"),
            ("tasks/db.rake", "ruby"),
        ],
    )
    def test_extensions(self, registry, path, expected):
        """Test that known extensions map to their language tag."""
        assert registry.detect_language(path) == expected

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("Dockerfile", "dockerfile"),
            ("ops/Makefile", "makefile"),
            ("Gemfile", "ruby"),
            ("Rakefile", "ruby"),
            ("web/package.json", "json"),
            ("pom.xml", "maven"),
            ("module/build.gradle", "gradle"),
        ],
    )
    def test_special_file_names(self, registry, path, expected):
        """Test that build and manifest files are recognized by name."""
        assert registry.detect_language(path) == expected

    def test_unknown(self, registry):
        """Test that unrecognized files have no language."""
        assert registry.detect_language("README.md") is None
        assert registry.detect_language("config/settings.xml") is None
        assert registry.detect_language("LICENSE") is None

    def test_windows_separators(self, registry):
        """Test that backslash paths are handled like forward-slash paths."""
        assert registry.detect_language("src\\main\\Foo.java") == "java"


class TestSourceFiles:
    """Test source-file classification and statistics."""

    def test_manifests_are_not_source(self, registry):
        """Test that build descriptors are detected but not counted as source."""
        assert not registry.is_source_file("pom.xml")
        assert not registry.is_source_file("Dockerfile")
        assert not registry.is_source_file("README.md")
        assert registry.is_source_file("Foo.java")

    def test_language_stats(self, registry):
        """Test that statistics count source files only."""
        stats = registry.get_language_stats(
            ["A.java", "B.java", "c.py", "pom.xml", "package.json", "notes.txt"]
        )
        assert stats == {"java": 2, "python": 1}

    def test_primary_language(self, registry):
        """Test that the most common source language wins."""
        assert registry.get_primary_language(["a.py", "B.java", "C.java"]) == "java"

    def test_primary_language_tie_keeps_first_seen(self, registry):
        """Test that ties resolve to the language seen first."""
        assert registry.get_primary_language(["a.go", "B.java"]) == "go"

    def test_primary_language_none(self, registry):
        """Test that no source files means no primary language."""
        assert registry.get_primary_language(["pom.xml", "README.md"]) is None

    def test_java_uses_tree_sitter(self, registry):
        """Test that the Java configuration names its grammar."""
        assert registry.get_language_config("java").tree_sitter_language == "java"
        assert ".java" in registry.get_supported_extensions()
