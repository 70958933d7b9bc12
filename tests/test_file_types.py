"""
Tests for canonical file type classification
"""

import pytest

from codecapture.exceptions import ClassificationError
from codecapture.ingest import file_types
from codecapture.ingest.file_types import (
    EXTENSION_TYPES,
    FILENAME_TYPES,
    CanonicalFileType,
    classify,
    get_file_extension,
)


class TestExtensionRules:
    """Tests for extension based classification."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("src/App.java", CanonicalFileType.JAVA),
            ("src/Main.kt", CanonicalFileType.JAVA),
            ("web/app.ts", CanonicalFileType.JAVASCRIPT),
            ("tool.py", CanonicalFileType.PYTHON),
            ("db/schema.sql", CanonicalFileType.SQL),
            ("native/io.h", CanonicalFileType.C),
            ("native/io.hpp", CanonicalFileType.CPP),
            ("Service.cs", CanonicalFileType.CSHARP),
            ("deploy.sh", CanonicalFileType.SHELL_SCRIPT),
            ("run.bat", CanonicalFileType.BATCH_SCRIPT),
            ("docs/guide.md", CanonicalFileType.MARKDOWN),
        ],
    )
    def test_extension_mapping(self, path, expected):
        """Test common extensions map to their canonical type."""
        assert classify(path) == expected

    def test_case_insensitive(self):
        """Test filename and extension are lowercased before matching."""
        assert classify("SRC/APP.JAVA") == CanonicalFileType.JAVA
        assert classify("POM.XML") == CanonicalFileType.MAVEN

    def test_declared_extension_used(self):
        """Test an explicit extension overrides the one in the path."""
        assert classify("script", "py") == CanonicalFileType.PYTHON
        assert classify("script", ".SQL") == CanonicalFileType.SQL


class TestFilenameRules:
    """Tests for exact filename classification."""

    def test_filename_beats_extension(self):
        """Test pom.xml is maven, not xml."""
        assert classify("pom.xml", "xml") == CanonicalFileType.MAVEN
        assert classify("other.xml", "xml") == CanonicalFileType.XML

    def test_manifests(self):
        """Test build manifests are recognized by name."""
        assert classify("app/build.gradle.kts") == CanonicalFileType.GRADLE
        assert classify("package.json") == CanonicalFileType.NPM
        assert classify("requirements.txt") == CanonicalFileType.PYTHON_PIP
        assert classify("setup.py") == CanonicalFileType.PYTHON_SETUP
        assert classify("Gemfile") == CanonicalFileType.RUBY_BUNDLER

    def test_every_filename_rule_wins(self):
        """Test each filename rule wins over any extension rule."""
        for filename, expected in FILENAME_TYPES.items():
            for ext in list(EXTENSION_TYPES)[:5]:
                assert classify(filename, ext) == expected


class TestDefaultRule:
    """Tests for the catch-all rule."""

    def test_unknown_is_default(self):
        """Test unknown files fall back to default."""
        assert classify("notes.weird") == CanonicalFileType.DEFAULT
        assert classify("LICENSE") == CanonicalFileType.DEFAULT

    def test_always_returns_a_type(self):
        """Test classify returns exactly one canonical type for odd input."""
        for path, ext in [("", ""), (".hidden", None), ("a.b.c", "c"), ("dir/", "")]:
            assert isinstance(classify(path, ext), CanonicalFileType)

    def test_get_file_extension(self):
        """Test extension extraction drops the dot and lowercases."""
        assert get_file_extension("a/b/File.JAVA") == "java"
        assert get_file_extension("Makefile") == ""

    def test_no_matching_rule(self, monkeypatch):
        """Test an empty rule table is reported rather than guessed around."""
        monkeypatch.setattr(file_types, "FILE_TYPE_RULES", ())
        with pytest.raises(ClassificationError):
            classify("App.java")
