"""Tests for assemblist.formatting.paths and formatting.scanner."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import write_file

from assemblist.formatting.paths import (
    evaluate_file_name_mapping,
    get_distribution_name,
    get_output_directory,
    normalise_output_directory,
    to_relative,
)
from assemblist.formatting.scanner import is_selected, match_path, scan
from assemblist.models import DEFAULT_OUTPUT_FILE_NAME_MAPPING, Artifact, AssemblerConfig, Assembly


# ---------------------------------------------------------------------------
# Relative paths and output directories
# ---------------------------------------------------------------------------


class TestToRelative:
    @pytest.mark.parametrize(
        "base, target, expected",
        [
            ("/home", "/home", "."),
            ("/home", "/home/", "./"),
            ("/home", "/home/dir/sub", "dir/sub"),
            ("/home/", "/home/dir", "dir"),
            ("/home", "/other/dir", "/other/dir"),
            ("C:\\work", "C:\\work\\src", "src"),
        ],
    )
    def test_cases(self, base: str, target: str, expected: str) -> None:
        assert to_relative(base, target) == expected

    def test_trailing_separator(self) -> None:
        assert to_relative("/home", "/home", trailing_separator=True) == "./"


class TestOutputDirectory:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("", ""),
            ("lib", "lib/"),
            ("/lib", "lib/"),
            ("lib/", "lib/"),
            ("a//b", "a/b/"),
        ],
    )
    def test_normalise(self, value: str, expected: str) -> None:
        assert normalise_output_directory(value) == expected

    def test_final_name_expressions(self) -> None:
        assert get_output_directory("${finalName}/bin", "demo-1.0") == "demo-1.0/bin/"
        assert get_output_directory("${build.finalName}", "demo-1.0") == "demo-1.0/"

    def test_artifact_expressions(self) -> None:
        artifact = Artifact(group_id="org.example", artifact_id="lib", version="2")
        assert get_output_directory("lib/${artifact.groupId}", None, artifact=artifact) == "lib/org.example/"

    def test_project_expressions(self, config: AssemblerConfig) -> None:
        assert get_output_directory("${project.artifactId}", None, config) == "demo/"


# ---------------------------------------------------------------------------
# File-name mappings and distribution names
# ---------------------------------------------------------------------------


class TestFileNameMapping:
    def test_default_mapping(self) -> None:
        artifact = Artifact(group_id="g", artifact_id="lib", version="1.2", type="test-jar")
        assert evaluate_file_name_mapping(DEFAULT_OUTPUT_FILE_NAME_MAPPING, artifact) == "lib-1.2.jar"

    def test_dash_classifier(self) -> None:
        artifact = Artifact(group_id="g", artifact_id="lib", version="1", classifier="sources")
        mapping = "${artifact.artifactId}${dashClassifier?}.${artifact.extension}"
        assert evaluate_file_name_mapping(mapping, artifact) == "lib-sources.jar"

    def test_project_fallback(self, config: AssemblerConfig) -> None:
        artifact = Artifact(group_id="g", artifact_id="lib", version="1")
        assert evaluate_file_name_mapping("${project.artifactId}-${artifact.artifactId}", artifact, config) == "demo-lib"


class TestDistributionName:
    def test_appends_assembly_id(self, config: AssemblerConfig) -> None:
        assert get_distribution_name(Assembly(id="bin"), config) == "demo-1.0-bin"

    def test_classifier_when_id_not_appended(self, config: AssemblerConfig) -> None:
        config = config.model_copy(update={"append_assembly_id": False, "classifier": "dist"})
        assert get_distribution_name(Assembly(id="bin"), config) == "demo-1.0-dist"

    def test_bare_final_name(self, config: AssemblerConfig) -> None:
        config = config.model_copy(update={"append_assembly_id": False, "final_name": "custom"})
        assert get_distribution_name(Assembly(id="bin"), config) == "custom"


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------


class TestMatchPath:
    @pytest.mark.parametrize(
        "pattern, path, expected",
        [
            ("*.txt", "README.txt", True),
            ("*.txt", "docs/README.txt", False),
            ("**/*.txt", "docs/README.txt", True),
            ("**/*.txt", "README.txt", True),
            ("docs/", "docs/a/b.md", True),
            ("src/**/scripts/*", "src/main/scripts/run.sh", True),
            ("READ?E*", "README.md", True),
        ],
    )
    def test_ant_patterns(self, pattern: str, path: str, expected: bool) -> None:
        assert match_path(pattern, path) is expected


class TestScan:
    def test_includes_excludes_and_default_excludes(self, tmp_path: Path) -> None:
        write_file(tmp_path / "a.txt")
        write_file(tmp_path / "b.log")
        write_file(tmp_path / "sub" / "c.txt")
        write_file(tmp_path / ".git" / "config")
        write_file(tmp_path / "notes.txt~")

        assert scan(tmp_path) == ["a.txt", "b.log", "sub/c.txt"]
        assert scan(tmp_path, includes=["**/*.txt"], excludes=["sub/**"]) == ["a.txt"]
        assert ".git/config" in scan(tmp_path, use_default_excludes=False)

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert scan(tmp_path / "absent") == []

    def test_is_selected_without_includes(self) -> None:
        assert is_selected("any/file")
        assert not is_selected("x/.svn/entries")
